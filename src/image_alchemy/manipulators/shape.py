import math
from typing import List, Tuple

import numpy as np
from PIL import Image, ImageDraw

from image_alchemy.engine import ops
from image_alchemy.manipulators.base import Manipulator, ManipulatorKind, ManipulatorResult
from image_alchemy.params import resolve_shape

Point = Tuple[float, float]

# Inner/outer radius ratio of the five-pointed star
STAR_INNER_RATIO = 0.382


def regular_polygon(cx: float, cy: float, radius: float, sides: int, start_deg: float) -> List[Point]:
    step = 2.0 * math.pi / sides
    start = math.radians(start_deg)
    return [
        (cx + radius * math.cos(start + i * step), cy + radius * math.sin(start + i * step))
        for i in range(sides)
    ]


def star(cx: float, cy: float, radius: float) -> List[Point]:
    points = []
    for i in range(10):
        r = radius if i % 2 == 0 else radius * STAR_INNER_RATIO
        angle = math.radians(-90.0 + i * 36.0)
        points.append((cx + r * math.cos(angle), cy + r * math.sin(angle)))
    return points


def heart(cx: float, cy: float, radius: float, steps: int = 120) -> List[Point]:
    """Classic parametric heart, scaled to fit a circle of ``radius``"""
    points = []
    for i in range(steps):
        t = 2.0 * math.pi * i / steps
        x = 16.0 * math.sin(t) ** 3
        y = 13.0 * math.cos(t) - 5.0 * math.cos(2 * t) - 2.0 * math.cos(3 * t) - math.cos(4 * t)
        # curve spans roughly x in [-16, 16], y in [-17, 12]
        points.append((cx + x * radius / 17.0, cy - (y + 2.5) * radius / 17.0))
    return points


def shape_mask(shape: str, width: int, height: int) -> np.ndarray:
    """
    Mask for ``shape`` at the given size: (height, width) floats, 1 inside
    the shape and 0 outside.
    """
    mask = Image.new("L", (width, height), 0)
    draw = ImageDraw.Draw(mask)

    cx = width / 2.0
    cy = height / 2.0
    radius = min(width, height) / 2.0

    if shape == "ellipse":
        draw.ellipse((0, 0, width - 1, height - 1), fill=255)
    elif shape == "circle":
        draw.ellipse((cx - radius, cy - radius, cx + radius - 1, cy + radius - 1), fill=255)
    elif shape == "square":
        draw.rectangle((cx - radius, cy - radius, cx + radius - 1, cy + radius - 1), fill=255)
    elif shape == "triangle":
        draw.polygon(regular_polygon(cx, cy, radius, 3, -90.0), fill=255)
    elif shape == "triangle-180":
        draw.polygon(regular_polygon(cx, cy, radius, 3, 90.0), fill=255)
    elif shape == "pentagon":
        draw.polygon(regular_polygon(cx, cy, radius, 5, -90.0), fill=255)
    elif shape == "pentagon-180":
        draw.polygon(regular_polygon(cx, cy, radius, 5, 90.0), fill=255)
    elif shape == "hexagon":
        draw.polygon(regular_polygon(cx, cy, radius, 6, 0.0), fill=255)
    elif shape == "star":
        draw.polygon(star(cx, cy, radius), fill=255)
    elif shape == "heart":
        draw.polygon(heart(cx, cy, radius), fill=255)
    else:
        raise ValueError(f"Unknown shape: {shape}")

    return np.asarray(mask, dtype=np.float32) / 255.0


class Shape(Manipulator):
    """
    Mask the image to ``shape``; pixels outside become transparent.
    ``strim`` additionally crops to the shape's bounding box.
    """

    kind = ManipulatorKind.SHAPE

    def apply(self, image, params, state):
        shape = resolve_shape(params.get("shape"))
        if shape is None:
            return ManipulatorResult(image, has_alpha=state.has_alpha)

        mask = shape_mask(shape, image.width, image.height)
        image = ops.mask_alpha(image, mask, premultiplied=state.is_premultiplied)

        if params.get("strim") is not None:
            rows = np.flatnonzero(mask.any(axis=1))
            cols = np.flatnonzero(mask.any(axis=0))
            if rows.size and cols.size:
                image = ops.crop(
                    image,
                    int(cols[0]),
                    int(rows[0]),
                    int(cols[-1] - cols[0] + 1),
                    int(rows[-1] - rows[0] + 1),
                )

        return ManipulatorResult(image, has_alpha=True)
