"""
Pixel engine: decoded image handles and the primitives the manipulators
orchestrate (load, resize, crop, convolve, recombine, colourspace, cast,
premultiply, write).
"""
from image_alchemy.engine import ops
from image_alchemy.engine.image import (
    AccessMode,
    BandFormat,
    ImageHandle,
    Interpretation,
    is_16bit,
)
from image_alchemy.engine.io import can_write, load, write_to_buffer
from image_alchemy.engine.kernels import warmup

__all__ = [
    "AccessMode",
    "BandFormat",
    "ImageHandle",
    "Interpretation",
    "can_write",
    "is_16bit",
    "load",
    "ops",
    "warmup",
    "write_to_buffer",
]
