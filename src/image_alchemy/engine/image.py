"""Image handle and the enums describing its pixel layout."""
from dataclasses import dataclass, replace
from enum import Enum

import numpy as np


class Interpretation(str, Enum):
    """Colourspace tag of a pixel buffer."""
    B_W = "b-w"
    GREY16 = "grey16"
    SRGB = "srgb"
    RGB = "rgb"
    RGB16 = "rgb16"
    LAB = "lab"


class BandFormat(str, Enum):
    """Numeric sample type of a pixel buffer."""
    UCHAR = "uchar"
    USHORT = "ushort"
    FLOAT = "float"


class AccessMode(str, Enum):
    """How the decoder may walk the source pixels."""
    SEQUENTIAL = "sequential"
    RANDOM = "random"


DTYPES = {
    BandFormat.UCHAR: np.uint8,
    BandFormat.USHORT: np.uint16,
    BandFormat.FLOAT: np.float32,
}

SIXTEEN_BIT = (Interpretation.RGB16, Interpretation.GREY16)
SINGLE_COLOUR_BAND = (Interpretation.B_W, Interpretation.GREY16)


def is_16bit(interpretation: Interpretation) -> bool:
    return interpretation in SIXTEEN_BIT


def max_value(interpretation: Interpretation) -> float:
    """Full-scale sample value (also the alpha maximum) for an interpretation."""
    return 65535.0 if is_16bit(interpretation) else 255.0


@dataclass(frozen=True)
class ImageHandle:
    """
    Decoded pixels plus their metadata.

    ``pixels`` is always a (height, width, bands) array. Handles are never
    mutated: every engine operation returns a new one.
    """
    pixels: np.ndarray
    interpretation: Interpretation
    band_format: BandFormat = BandFormat.UCHAR
    loader: str = ""
    access: AccessMode = AccessMode.RANDOM
    orientation: int = 1

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def bands(self) -> int:
        return int(self.pixels.shape[2])

    @property
    def colour_bands(self) -> int:
        return 1 if self.interpretation in SINGLE_COLOUR_BAND else 3

    @property
    def has_alpha(self) -> bool:
        return self.bands > self.colour_bands

    @property
    def bit_depth(self) -> int:
        return int(np.dtype(DTYPES[self.band_format]).itemsize * 8)

    @property
    def max_value(self) -> float:
        return max_value(self.interpretation)

    def with_pixels(self, pixels: np.ndarray, **changes) -> "ImageHandle":
        """New handle sharing this one's metadata, with ``changes`` applied."""
        if "band_format" not in changes:
            changes["band_format"] = band_format_of(pixels)
        return replace(self, pixels=pixels, **changes)


def band_format_of(pixels: np.ndarray) -> BandFormat:
    if pixels.dtype == np.uint8:
        return BandFormat.UCHAR
    if pixels.dtype == np.uint16:
        return BandFormat.USHORT
    return BandFormat.FLOAT
