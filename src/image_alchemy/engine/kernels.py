import numpy as np
from numba import njit, prange

# =========================================================
# Numba kernels (JIT, cached on disk)
# All kernels write into a caller-allocated ``out`` array.
# =========================================================


@njit(parallel=True, fastmath=True, cache=True, nogil=True)
def convolve_numba(img, kernel, scale, offset, out):
    """
    2D convolution with edge extension.

    Args:
        img: (H, W, C) float32, C-contiguous
        kernel: (KH, KW) float64
        scale: divisor applied to every weighted sum
        offset: added after scaling
        out: (H, W, C) float32 output
    """
    rows, cols, channels = img.shape
    kh, kw = kernel.shape
    cy = kh // 2
    cx = kw // 2

    for r in prange(rows):
        for c in range(cols):
            for ch in range(channels):
                acc = 0.0
                for i in range(kh):
                    y = r + i - cy
                    if y < 0:
                        y = 0
                    elif y >= rows:
                        y = rows - 1
                    for j in range(kw):
                        x = c + j - cx
                        if x < 0:
                            x = 0
                        elif x >= cols:
                            x = cols - 1
                        acc += img[y, x, ch] * kernel[i, j]
                out[r, c, ch] = acc / scale + offset


@njit(parallel=True, fastmath=True, cache=True, nogil=True)
def recomb_numba(img, matrix, out):
    """
    Per-pixel matrix multiply: out[..., m] = sum_c matrix[m, c] * img[..., c]

    Args:
        img: (H, W, C) float32
        matrix: (M, C) float64
        out: (H, W, M) float32
    """
    rows, cols, channels = img.shape
    m_rows = matrix.shape[0]

    for r in prange(rows):
        for c in range(cols):
            for m in range(m_rows):
                acc = 0.0
                for ch in range(channels):
                    acc += matrix[m, ch] * img[r, c, ch]
                out[r, c, m] = acc


@njit(parallel=True, fastmath=True, cache=True, nogil=True)
def premultiply_numba(img, colour_bands, max_alpha, out):
    """Scale the colour bands by alpha / max_alpha; alpha is the last band."""
    rows, cols, channels = img.shape
    alpha_band = channels - 1

    for r in prange(rows):
        for c in range(cols):
            factor = img[r, c, alpha_band] / max_alpha
            for ch in range(colour_bands):
                out[r, c, ch] = img[r, c, ch] * factor
            for ch in range(colour_bands, channels):
                out[r, c, ch] = img[r, c, ch]


@njit(parallel=True, fastmath=True, cache=True, nogil=True)
def unpremultiply_numba(img, colour_bands, max_alpha, out):
    """Inverse of premultiply_numba; fully transparent pixels become 0."""
    rows, cols, channels = img.shape
    alpha_band = channels - 1

    for r in prange(rows):
        for c in range(cols):
            alpha = img[r, c, alpha_band]
            if alpha <= 0.0:
                for ch in range(colour_bands):
                    out[r, c, ch] = 0.0
            else:
                factor = max_alpha / alpha
                for ch in range(colour_bands):
                    out[r, c, ch] = img[r, c, ch] * factor
            for ch in range(colour_bands, channels):
                out[r, c, ch] = img[r, c, ch]


def warmup():
    """Compile every kernel once on a tiny image so the first request is not slow."""
    img = np.ones((4, 4, 4), dtype=np.float32)
    out = np.empty_like(img)
    convolve_numba(img, np.ones((3, 3), dtype=np.float64), 9.0, 0.0, out)
    premultiply_numba(img, 3, 255.0, out)
    unpremultiply_numba(img, 3, 255.0, out)
    recomb_numba(img[..., :3].copy(), np.eye(3, dtype=np.float64), np.empty((4, 4, 3), dtype=np.float32))
