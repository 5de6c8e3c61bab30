"""
Pixel primitives.

Each function takes an ``ImageHandle`` and returns a new one; input buffers
are never written to. Heavy loops run in the numba kernels, colourspace
conversion goes through colour-science and resampling through Pillow.
"""
import math
from typing import Sequence, Tuple

import colour
import numpy as np
from PIL import Image

from image_alchemy.engine.image import (
    DTYPES,
    SINGLE_COLOUR_BAND,
    BandFormat,
    ImageHandle,
    Interpretation,
    max_value,
)
from image_alchemy.engine.kernels import (
    convolve_numba,
    premultiply_numba,
    recomb_numba,
    unpremultiply_numba,
)

# Alpha of a Lab image is kept on the 8-bit scale
LAB_ALPHA_MAX = 255.0


def _float_pixels(image: ImageHandle) -> np.ndarray:
    return np.ascontiguousarray(image.pixels, dtype=np.float32)


def _alpha_max(interpretation: Interpretation) -> float:
    if interpretation == Interpretation.LAB:
        return LAB_ALPHA_MAX
    return max_value(interpretation)


def split_alpha(image: ImageHandle) -> Tuple[np.ndarray, np.ndarray]:
    """(colour bands, extra bands) as float32 arrays; extra may have 0 bands."""
    pixels = _float_pixels(image)
    n = image.colour_bands
    return pixels[..., :n], pixels[..., n:]


def cast(image: ImageHandle, band_format: BandFormat) -> ImageHandle:
    """Round and clip to the range of ``band_format``."""
    dtype = DTYPES[band_format]
    if image.pixels.dtype == dtype:
        return image
    if band_format == BandFormat.FLOAT:
        return image.with_pixels(image.pixels.astype(np.float32))
    info = np.iinfo(dtype)
    pixels = np.clip(np.rint(image.pixels), info.min, info.max).astype(dtype)
    return image.with_pixels(pixels)


def premultiply(image: ImageHandle) -> ImageHandle:
    """Scale colour bands by alpha. Images without alpha only become float."""
    pixels = _float_pixels(image)
    if not image.has_alpha:
        return image.with_pixels(pixels)
    out = np.empty_like(pixels)
    premultiply_numba(pixels, image.colour_bands, _alpha_max(image.interpretation), out)
    return image.with_pixels(out)


def unpremultiply(image: ImageHandle) -> ImageHandle:
    """Divide colour bands by alpha. Images without alpha only become float."""
    pixels = _float_pixels(image)
    if not image.has_alpha:
        return image.with_pixels(pixels)
    out = np.empty_like(pixels)
    unpremultiply_numba(pixels, image.colour_bands, _alpha_max(image.interpretation), out)
    return image.with_pixels(out)


def on_straight_alpha(image: ImageHandle, premultiplied: bool, operation) -> ImageHandle:
    """
    Apply ``operation`` to straight colour. Premultiplied alpha images are
    divided by alpha first and premultiplied again afterwards.
    """
    if not premultiplied or not image.has_alpha:
        return operation(image)
    return premultiply(operation(unpremultiply(image)))


def conv(image: ImageHandle, kernel, scale: float = 1.0, offset: float = 0.0) -> ImageHandle:
    """Convolve every band with ``kernel``; the result is float."""
    pixels = _float_pixels(image)
    matrix = np.ascontiguousarray(kernel, dtype=np.float64)
    out = np.empty_like(pixels)
    convolve_numba(pixels, matrix, float(scale), float(offset), out)
    return image.with_pixels(out)


def gaussian_kernel(sigma: float, min_ampl: float = 0.2) -> np.ndarray:
    """1D normalised gaussian, truncated where it falls below ``min_ampl``."""
    radius = max(1, int(math.ceil(sigma * math.sqrt(-2.0 * math.log(min_ampl)))))
    x = np.arange(-radius, radius + 1, dtype=np.float64)
    kernel = np.exp(-(x * x) / (2.0 * sigma * sigma))
    return kernel / kernel.sum()


def _gaussian_pixels(pixels: np.ndarray, sigma: float, min_ampl: float) -> np.ndarray:
    kernel = gaussian_kernel(sigma, min_ampl)
    pixels = np.ascontiguousarray(pixels, dtype=np.float32)
    horizontal = np.empty_like(pixels)
    convolve_numba(pixels, kernel[np.newaxis, :], 1.0, 0.0, horizontal)
    out = np.empty_like(pixels)
    convolve_numba(horizontal, kernel[:, np.newaxis], 1.0, 0.0, out)
    return out


def gaussblur(image: ImageHandle, sigma: float, min_ampl: float = 0.2) -> ImageHandle:
    """Separable gaussian blur of every band; the result is float."""
    return image.with_pixels(_gaussian_pixels(image.pixels, sigma, min_ampl))


def sharpen(
    image: ImageHandle,
    sigma: float,
    m1: float,
    m2: float,
    x1: float = 2.0,
    y2: float = 10.0,
    y3: float = 20.0,
) -> ImageHandle:
    """
    Unsharp mask on the CIELAB lightness channel.

    Differences up to ``x1`` are amplified by ``m1`` (flat areas), larger
    ones by ``m2`` (jagged areas). Brightening is capped at ``y2`` and
    darkening at ``y3``. Returns a Lab image; callers convert it back.
    """
    lab = colourspace(image, Interpretation.LAB)
    pixels = lab.pixels.copy()
    lightness = pixels[..., 0:1]

    blurred = _gaussian_pixels(lightness, sigma, 0.1)
    diff = lightness - blurred
    magnitude = np.abs(diff)
    gain = np.where(magnitude <= x1, magnitude * m1, x1 * m1 + (magnitude - x1) * m2)
    delta = np.clip(np.sign(diff) * gain, -y3, y2)

    pixels[..., 0:1] = np.clip(lightness + delta, 0.0, 100.0)
    return lab.with_pixels(pixels.astype(np.float32))


def _to_srgb01(pixels: np.ndarray, interpretation: Interpretation) -> np.ndarray:
    """Colour bands as sRGB in [0, 1], (H, W, 3)."""
    if interpretation == Interpretation.LAB:
        return colour.XYZ_to_sRGB(colour.Lab_to_XYZ(pixels))
    rgb = pixels / max_value(interpretation)
    if interpretation in SINGLE_COLOUR_BAND:
        rgb = np.repeat(rgb, 3, axis=2)
    return rgb


def colourspace(image: ImageHandle, target: Interpretation) -> ImageHandle:
    """
    Convert to ``target``.

    Integer targets come back cast to their natural format (uchar for
    ``srgb``/``rgb``/``b-w``, ushort for the 16-bit ones); Lab is float.
    Extra (alpha) bands are carried over, rescaled to the target's range.
    """
    source = image.interpretation
    if source == target or {source, target} == {Interpretation.SRGB, Interpretation.RGB}:
        return image.with_pixels(image.pixels, interpretation=target)

    colour_px, extra = split_alpha(image)
    rgb01 = _to_srgb01(colour_px, source)

    if target == Interpretation.LAB:
        converted = colour.XYZ_to_Lab(colour.sRGB_to_XYZ(np.clip(rgb01, 0.0, 1.0)))
    elif target in SINGLE_COLOUR_BAND:
        luminance = colour.sRGB_to_XYZ(np.clip(rgb01, 0.0, 1.0))[..., 1:2]
        converted = colour.cctf_encoding(luminance, function="sRGB") * max_value(target)
    else:
        converted = rgb01 * max_value(target)

    if extra.shape[2]:
        extra = extra * (_alpha_max(target) / _alpha_max(source))
        converted = np.concatenate([converted, extra], axis=2)

    result = image.with_pixels(np.asarray(converted, dtype=np.float32), interpretation=target)
    if target == Interpretation.LAB:
        return result
    natural = BandFormat.USHORT if max_value(target) > 255 else BandFormat.UCHAR
    return cast(result, natural)


def recomb(image: ImageHandle, matrix) -> ImageHandle:
    """Recombine the colour bands through ``matrix``; alpha is untouched."""
    matrix = np.ascontiguousarray(matrix, dtype=np.float64)
    colour_px, extra = split_alpha(image)
    out = np.empty(colour_px.shape[:2] + (matrix.shape[0],), dtype=np.float32)
    recomb_numba(np.ascontiguousarray(colour_px), matrix, out)
    return image.with_pixels(np.concatenate([out, extra], axis=2))


def linear(image: ImageHandle, scale: float, offset: float) -> ImageHandle:
    """``scale * v + offset`` on the colour bands."""
    colour_px, extra = split_alpha(image)
    out = colour_px * np.float32(scale) + np.float32(offset)
    return image.with_pixels(np.concatenate([out, extra], axis=2))


def gamma(image: ImageHandle, exponent: float) -> ImageHandle:
    """Raise normalised colour bands to ``1 / exponent``."""
    colour_px, extra = split_alpha(image)
    top = image.max_value
    out = top * np.power(np.clip(colour_px / top, 0.0, None), 1.0 / exponent)
    return image.with_pixels(np.concatenate([out.astype(np.float32), extra], axis=2))


def invert(image: ImageHandle) -> ImageHandle:
    """Negate the colour bands against the full-scale value."""
    colour_px, extra = split_alpha(image)
    out = image.max_value - colour_px
    result = image.with_pixels(np.concatenate([out, extra], axis=2))
    return cast(result, image.band_format)


def resize(image: ImageHandle, width: int, height: int) -> ImageHandle:
    """Lanczos resample to ``width`` x ``height``, keeping the band format."""
    if (width, height) == (image.width, image.height):
        return image
    pixels = _float_pixels(image)
    bands = [
        np.asarray(
            Image.fromarray(np.ascontiguousarray(pixels[..., b])).resize(
                (width, height), Image.Resampling.LANCZOS
            ),
            dtype=np.float32,
        )
        for b in range(image.bands)
    ]
    result = image.with_pixels(np.stack(bands, axis=2))
    return cast(result, image.band_format)


def crop(image: ImageHandle, left: int, top: int, width: int, height: int) -> ImageHandle:
    pixels = image.pixels[top:top + height, left:left + width].copy()
    return image.with_pixels(pixels, band_format=image.band_format)


def rotate(image: ImageHandle, angle: int) -> ImageHandle:
    """Rotate clockwise by a multiple of 90 degrees."""
    turns = (angle // 90) % 4
    if turns == 0:
        return image
    # np.rot90 turns counter-clockwise for positive k
    pixels = np.ascontiguousarray(np.rot90(image.pixels, k=-turns, axes=(0, 1)))
    return image.with_pixels(pixels, band_format=image.band_format)


def flip(image: ImageHandle, horizontal: bool = True) -> ImageHandle:
    axis = 1 if horizontal else 0
    pixels = np.ascontiguousarray(np.flip(image.pixels, axis=axis))
    return image.with_pixels(pixels, band_format=image.band_format)


def find_trim(image: ImageHandle, threshold: float) -> Tuple[int, int, int, int]:
    """
    Bounding box (left, top, width, height) of everything that differs from
    the top-left pixel by more than ``threshold`` (8-bit scale) on any band.
    A zero-sized box means the image is uniform.
    """
    pixels = _float_pixels(image)
    scaled = threshold * image.max_value / 255.0
    diff = np.abs(pixels - pixels[0, 0]).max(axis=2)
    mask = diff > scaled

    rows = np.flatnonzero(mask.any(axis=1))
    cols = np.flatnonzero(mask.any(axis=0))
    if rows.size == 0 or cols.size == 0:
        return 0, 0, 0, 0
    return (
        int(cols[0]),
        int(rows[0]),
        int(cols[-1] - cols[0] + 1),
        int(rows[-1] - rows[0] + 1),
    )


def background_values(image: ImageHandle, rgba: Sequence[int]) -> np.ndarray:
    """
    An 8-bit RGBA colour expressed in the image's band layout and range.
    Single colour band images get the colour's luma.
    """
    red, green, blue, alpha = rgba
    scale = image.max_value / 255.0
    if image.colour_bands == 1:
        values = [0.2126 * red + 0.7152 * green + 0.0722 * blue]
    else:
        values = [red, green, blue]
    if image.has_alpha:
        values.append(alpha)
    return np.asarray(values, dtype=np.float32) * np.float32(scale)


def bandjoin_alpha(image: ImageHandle, alpha: np.ndarray) -> ImageHandle:
    """Append an alpha band ((H, W) array in the image's range)."""
    pixels = np.concatenate([_float_pixels(image), alpha[..., np.newaxis].astype(np.float32)], axis=2)
    return cast(image.with_pixels(pixels), image.band_format)


def embed(
    image: ImageHandle,
    left: int,
    top: int,
    width: int,
    height: int,
    background: Sequence[float],
) -> ImageHandle:
    """Place the image at (left, top) on a ``width`` x ``height`` canvas."""
    canvas = np.empty((height, width, image.bands), dtype=image.pixels.dtype)
    canvas[...] = np.asarray(background, dtype=np.float64).astype(image.pixels.dtype)
    canvas[top:top + image.height, left:left + image.width] = image.pixels
    return image.with_pixels(canvas, band_format=image.band_format)


def mask_alpha(image: ImageHandle, mask: np.ndarray, premultiplied: bool = False) -> ImageHandle:
    """
    Multiply alpha by ``mask`` ((H, W) floats in [0, 1]); images without an
    alpha band get one made from the mask. Premultiplied colour bands are
    scaled along with their alpha.
    """
    top = image.max_value
    mask = mask.astype(np.float32)
    if not image.has_alpha:
        return bandjoin_alpha(image, mask * top)
    pixels = _float_pixels(image).copy()
    if premultiplied:
        pixels *= mask[..., np.newaxis]
    else:
        pixels[..., -1] *= mask
    return cast(image.with_pixels(pixels), image.band_format)


def flatten(image: ImageHandle, rgba: Sequence[int], premultiplied: bool) -> ImageHandle:
    """Composite onto an opaque colour and drop the alpha band."""
    if not image.has_alpha:
        return image
    colour_px, extra = split_alpha(image)
    alpha = extra[..., -1:] / image.max_value
    background = background_values(image, rgba)[:image.colour_bands]
    if not premultiplied:
        colour_px = colour_px * alpha
    out = colour_px + background * (1.0 - alpha)
    return image.with_pixels(out.astype(np.float32))


def composite_over(image: ImageHandle, rgba: Sequence[int], premultiplied: bool) -> ImageHandle:
    """
    Porter-Duff "over" of the image onto a (translucent) colour.
    The result is premultiplied.
    """
    if not premultiplied:
        image = premultiply(image)
    colour_px, extra = split_alpha(image)
    top = image.max_value
    fg_alpha = extra[..., -1:] / top

    background = background_values(image, rgba)
    bg_alpha = background[-1] / top
    bg_colour = background[:image.colour_bands] * bg_alpha

    out_colour = colour_px + bg_colour * (1.0 - fg_alpha)
    out_alpha = (fg_alpha + bg_alpha * (1.0 - fg_alpha)) * top
    return image.with_pixels(np.concatenate([out_colour, out_alpha], axis=2).astype(np.float32))
