"""
Image decode and encode.

Decoding goes through Pillow (with the HEIF opener registered), encoding
picks the Pillow writer and its options from the target extension.
"""
from io import BytesIO

import numpy as np
import pillow_heif
from loguru import logger
from PIL import Image

from image_alchemy.engine import ops
from image_alchemy.engine.image import (
    AccessMode,
    BandFormat,
    ImageHandle,
    Interpretation,
)
from image_alchemy.exceptions import EngineFailure
from image_alchemy.params import EncodingOptions

pillow_heif.register_heif_opener()

EXIF_ORIENTATION_TAG = 274

# Pillow modes we convert before reading pixels
_CONVERT_MODES = {
    "1": "L",
    "La": "LA",
    "RGBa": "RGBA",
    "RGBX": "RGB",
    "PA": "RGBA",
    "CMYK": "RGB",
    "YCbCr": "RGB",
    "HSV": "RGB",
    "LAB": "RGB",
    "F": "L",
}

_SIXTEEN_BIT_MODES = ("I;16", "I;16B", "I;16L", "I;16N", "I")

_WRITE_MODES = {1: "L", 2: "LA", 3: "RGB", 4: "RGBA"}

# Writers that keep 16-bit single band images as I;16
SIXTEEN_BIT_EXTENSIONS = ("png",)


def _normalise_mode(img: Image.Image) -> Image.Image:
    if img.mode == "P":
        return img.convert("RGBA" if "transparency" in img.info else "RGB")
    target = _CONVERT_MODES.get(img.mode)
    if target:
        return img.convert(target)
    return img


def _pixels_from_pil(img: Image.Image):
    """(pixels, interpretation) of a decoded Pillow image"""
    if img.mode in _SIXTEEN_BIT_MODES:
        data = np.clip(np.asarray(img).astype(np.int64), 0, 65535).astype(np.uint16)
        return data[..., np.newaxis], Interpretation.GREY16

    img = _normalise_mode(img)
    data = np.asarray(img, dtype=np.uint8)
    if data.ndim == 2:
        data = data[..., np.newaxis]

    if img.mode in ("L", "LA"):
        return data, Interpretation.B_W
    return data, Interpretation.SRGB


def load(path: str, access: AccessMode = AccessMode.RANDOM) -> ImageHandle:
    """
    Decode ``path`` into an ImageHandle.

    Pillow always decodes the whole frame; ``access`` is recorded on the
    handle so operations can tell how the source was opened.

    Raises:
        EngineFailure: the file is not a decodable image
    """
    try:
        with Image.open(path) as img:
            loader = f"{img.format.lower()}load" if img.format else "unknown"
            orientation = int(img.getexif().get(EXIF_ORIENTATION_TAG, 1) or 1)
            img.load()
            pixels, interpretation = _pixels_from_pil(img)
    except (OSError, ValueError, SyntaxError, Image.DecompressionBombError) as e:
        raise EngineFailure(str(e) or e.__class__.__name__) from e

    logger.debug(f"Loaded {loader} {pixels.shape[1]}x{pixels.shape[0]} ({interpretation.value}, {access.value})")

    return ImageHandle(
        pixels=np.ascontiguousarray(pixels),
        interpretation=interpretation,
        loader=loader,
        access=access,
        orientation=orientation if 1 <= orientation <= 8 else 1,
    )


def _prepare_for_save(image: ImageHandle, extension: str) -> ImageHandle:
    """
    Bring any handle to a buffer Pillow can write: 8-bit sRGB or b-w, or
    16-bit greyscale for PNG (Pillow has no 16-bit RGB or LA writer).
    """
    if extension in SIXTEEN_BIT_EXTENSIONS and image.interpretation == Interpretation.GREY16 and image.bands == 1:
        return ops.cast(image, BandFormat.USHORT)
    if image.interpretation == Interpretation.LAB:
        image = ops.colourspace(image, Interpretation.SRGB)
    elif image.interpretation == Interpretation.RGB16:
        image = ops.colourspace(image, Interpretation.SRGB)
    elif image.interpretation == Interpretation.GREY16:
        image = ops.colourspace(image, Interpretation.B_W)
    return ops.cast(image, BandFormat.UCHAR)


def _save_jpeg(img: Image.Image, buffer: BytesIO, options: EncodingOptions):
    # JPEG cannot carry an alpha band
    if img.mode == "RGBA":
        img = img.convert("RGB")
    elif img.mode == "LA":
        img = img.convert("L")
    img.save(
        buffer,
        format="JPEG",
        quality=options.quality if options.quality is not None else 85,
        progressive=bool(options.interlace),
        optimize=True,
    )


def _save_png(img: Image.Image, buffer: BytesIO, options: EncodingOptions):
    if options.interlace:
        # Pillow's PNG writer has no Adam7 support
        logger.debug("PNG interlacing requested; writing a non-interlaced PNG")
    img.save(
        buffer,
        format="PNG",
        compress_level=options.compression if options.compression is not None else 6,
    )


def _save_webp(img: Image.Image, buffer: BytesIO, options: EncodingOptions):
    if img.mode == "L":
        img = img.convert("RGB")
    elif img.mode == "LA":
        img = img.convert("RGBA")
    img.save(
        buffer,
        format="WEBP",
        quality=options.quality if options.quality is not None else 85,
    )


_WRITERS = {
    "jpg": _save_jpeg,
    "png": _save_png,
    "webp": _save_webp,
}


def can_write(extension: str) -> bool:
    return extension in _WRITERS


def write_to_buffer(image: ImageHandle, extension: str, options: EncodingOptions) -> bytes:
    """
    Encode ``image`` as ``extension``.

    Raises:
        EngineFailure: unknown extension or the writer failed
    """
    writer = _WRITERS.get(extension)
    if writer is None:
        raise EngineFailure(f"No writer for extension: {extension}")

    prepared = _prepare_for_save(image, extension)
    mode = _WRITE_MODES.get(prepared.bands)
    if mode is None:
        raise EngineFailure(f"Cannot write an image with {prepared.bands} bands")

    pixels = prepared.pixels
    if mode == "L":
        pixels = pixels[..., 0]

    buffer = BytesIO()
    try:
        writer(Image.fromarray(np.ascontiguousarray(pixels)), buffer, options)
    except (OSError, ValueError, KeyError) as e:
        raise EngineFailure(f"Unable to write {extension}: {e}") from e
    return buffer.getvalue()
