"""
The manipulation chain.

``default_manipulators`` returns the fixed order the processor runs them in:
geometry first, then tone and colour, frequency-domain effects, and
background compositing last.
"""
from typing import List

from image_alchemy.manipulators.adjust import Brightness, Contrast, Gamma
from image_alchemy.manipulators.background import Background
from image_alchemy.manipulators.base import Manipulator, ManipulatorKind, ManipulatorResult
from image_alchemy.manipulators.blur import Blur
from image_alchemy.manipulators.filter import Filter
from image_alchemy.manipulators.geometry import Crop, Orientation, Size, Trim
from image_alchemy.manipulators.shape import Shape
from image_alchemy.manipulators.sharpen import Sharpen


def default_manipulators() -> List[Manipulator]:
    return [
        Trim(),
        Orientation(),
        Size(),
        Crop(),
        Shape(),
        Brightness(),
        Contrast(),
        Gamma(),
        Filter(),
        Sharpen(),
        Blur(),
        Background(),
    ]


__all__ = [
    "Background",
    "Blur",
    "Brightness",
    "Contrast",
    "Crop",
    "Filter",
    "Gamma",
    "Manipulator",
    "ManipulatorKind",
    "ManipulatorResult",
    "Orientation",
    "Shape",
    "Sharpen",
    "Size",
    "Trim",
    "default_manipulators",
]
