"""
Geometry manipulators: trim, orientation, resize (with letterboxing and
square crops) and rectangular crop.
"""
from typing import Tuple

import numpy as np

from image_alchemy.color import parse_color
from image_alchemy.engine import ImageHandle, ops
from image_alchemy.manipulators.base import Manipulator, ManipulatorKind, ManipulatorResult
from image_alchemy.params import (
    resolve_crop,
    resolve_dimension,
    resolve_dpr,
    resolve_fit,
    resolve_orientation,
    resolve_position,
    resolve_trim,
)

# EXIF orientation -> (clockwise rotation, mirror afterwards)
EXIF_TRANSFORMS = {
    1: (0, False),
    2: (0, True),
    3: (180, False),
    4: (180, True),
    5: (90, True),
    6: (90, False),
    7: (270, True),
    8: (270, False),
}

# Fit modes that never enlarge the source
NO_ENLARGE = ("fit", "squaredown", "letterbox")


class Trim(Manipulator):
    """Remove the uniform border around the image (``trim=threshold``)."""

    kind = ManipulatorKind.TRIM

    def apply(self, image, params, state):
        if params.get("trim") is None:
            return ManipulatorResult(image)

        threshold = resolve_trim(params["trim"])
        left, top, width, height = ops.find_trim(image, threshold)

        # Nothing but border: keep the image as it is
        if width == 0 or height == 0:
            return ManipulatorResult(image)

        return ManipulatorResult(ops.crop(image, left, top, width, height))


class Orientation(Manipulator):
    """Rotate by ``or=90/180/270`` or follow the EXIF tag with ``or=auto``."""

    kind = ManipulatorKind.ORIENTATION

    def apply(self, image, params, state):
        orientation = resolve_orientation(params.get("or"))
        if orientation is None or orientation == 0:
            return ManipulatorResult(image)

        if orientation == "auto":
            angle, mirror = EXIF_TRANSFORMS[image.orientation]
        else:
            angle, mirror = orientation, False

        image = ops.rotate(image, angle)
        if mirror:
            image = ops.flip(image, horizontal=True)
        return ManipulatorResult(image.with_pixels(image.pixels, band_format=image.band_format, orientation=1))


def crop_offsets(image_width: int, image_height: int, width: int, height: int, position: str) -> Tuple[int, int]:
    """Top-left corner of a ``width`` x ``height`` box placed at ``position``"""
    left = (image_width - width) // 2
    top = (image_height - height) // 2

    if "left" in position:
        left = 0
    elif "right" in position:
        left = image_width - width

    if position.startswith("top"):
        top = 0
    elif position.startswith("bottom"):
        top = image_height - height

    return left, top


class Size(Manipulator):
    """
    Resize according to ``w``, ``h``, ``dpr`` and the fit mode ``t``.

    Alpha images are premultiplied before resampling so transparent pixels
    do not bleed colour into their neighbours. Letterboxing with a
    non-opaque background adds an alpha band.
    """

    kind = ManipulatorKind.SIZE

    def apply(self, image, params, state):
        has_alpha = state.has_alpha
        is_premultiplied = state.is_premultiplied

        dpr = resolve_dpr(params.get("dpr"))
        width = resolve_dimension(params.get("w"))
        height = resolve_dimension(params.get("h"))
        fit = resolve_fit(params.get("t"))

        if not width and not height:
            return ManipulatorResult(image, has_alpha=has_alpha, is_premultiplied=is_premultiplied)

        width = max(1, int(round(width * dpr))) if width else 0
        height = max(1, int(round(height * dpr))) if height else 0

        target_width, target_height = self.resolve_target(image.width, image.height, width, height, fit)

        if (target_width, target_height) != (image.width, image.height):
            if has_alpha and not is_premultiplied:
                image = ops.premultiply(image)
                is_premultiplied = True
            image = ops.resize(image, target_width, target_height)

        if width and height:
            if fit in ("square", "squaredown"):
                image = self.crop_to(image, width, height, resolve_position(params.get("a")))
            elif fit == "letterbox":
                image, has_alpha = self.letterbox(image, width, height, params.get("bg"), is_premultiplied)

        return ManipulatorResult(image, has_alpha=has_alpha, is_premultiplied=is_premultiplied)

    @staticmethod
    def resolve_target(image_width: int, image_height: int, width: int, height: int, fit: str) -> Tuple[int, int]:
        """Size the image is resampled to, before any crop or embed"""
        if fit == "absolute" and width and height:
            return width, height

        if width and height:
            scale_x = width / image_width
            scale_y = height / image_height
            if fit in ("square", "squaredown"):
                scale = max(scale_x, scale_y)
            else:
                scale = min(scale_x, scale_y)
        elif width:
            scale = width / image_width
        else:
            scale = height / image_height

        if fit in NO_ENLARGE:
            scale = min(scale, 1.0)

        return (
            max(1, int(round(image_width * scale))),
            max(1, int(round(image_height * scale))),
        )

    @staticmethod
    def crop_to(image: ImageHandle, width: int, height: int, position: str) -> ImageHandle:
        width = min(width, image.width)
        height = min(height, image.height)
        if (width, height) == (image.width, image.height):
            return image
        left, top = crop_offsets(image.width, image.height, width, height, position)
        return ops.crop(image, left, top, width, height)

    @staticmethod
    def letterbox(image: ImageHandle, width: int, height: int, bg, is_premultiplied: bool):
        """Centre the image on a ``width`` x ``height`` canvas; returns (image, has_alpha)"""
        if (width, height) == (image.width, image.height):
            return image, image.has_alpha

        color = parse_color(bg)
        if not color.is_opaque() and not image.has_alpha:
            image = ops.bandjoin_alpha(image, np.full((image.height, image.width), image.max_value, dtype=np.float32))

        background = ops.background_values(image, color.to_rgba())
        if is_premultiplied and image.has_alpha:
            alpha = background[-1] / image.max_value
            background[:image.colour_bands] *= alpha

        left = (width - image.width) // 2
        top = (height - image.height) // 2
        return ops.embed(image, left, top, width, height, background), image.has_alpha


class Crop(Manipulator):
    """Rectangular crop ``crop=w,h,x,y``, clamped to the image."""

    kind = ManipulatorKind.CROP

    def apply(self, image, params, state):
        box = resolve_crop(params.get("crop"))
        if box is None:
            return ManipulatorResult(image)

        width, height, left, top = box
        if left >= image.width or top >= image.height:
            return ManipulatorResult(image)

        width = min(width, image.width - left)
        height = min(height, image.height - top)
        return ManipulatorResult(ops.crop(image, left, top, width, height))
