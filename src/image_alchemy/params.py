"""
Parameter resolvers.

Every resolver turns one raw query value into a typed setting. They are
pure and total: malformed or out-of-range input falls back to the policy
default instead of raising, so one bad knob only disables its own feature.
"""
from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Any, Optional, Tuple, Union

from image_alchemy.config import DEFAULT_COMPRESSION_LEVEL, DEFAULT_QUALITY

_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")
_LEADING_FLOAT_RE = re.compile(r"^\s*([+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?)")
# Plain decimal notation only; rejects digit separators, inf and nan
_NUMBER_RE = re.compile(r"^\s*[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?\s*$")

SHARPEN_FLAT_DEFAULT = 1
SHARPEN_JAGGED_DEFAULT = 2
SHARPEN_FAST_SIGMA = -1.0
BLUR_NONE = -1.0

TRIM_DEFAULT = 10
GAMMA_DEFAULT = 2.2
MAX_DIMENSION = 5000
MAX_DPR = 8.0

FIT_MODES = ("fit", "fitup", "square", "squaredown", "absolute", "letterbox")

POSITIONS = {
    "center": "center",
    "centre": "center",
    "top": "top",
    "t": "top",
    "right": "right",
    "r": "right",
    "bottom": "bottom",
    "b": "bottom",
    "left": "left",
    "l": "left",
    "top-left": "top-left",
    "tl": "top-left",
    "top-right": "top-right",
    "tr": "top-right",
    "bottom-left": "bottom-left",
    "bl": "bottom-left",
    "bottom-right": "bottom-right",
    "br": "bottom-right",
}

SHAPES = (
    "circle",
    "ellipse",
    "triangle",
    "triangle-180",
    "pentagon",
    "pentagon-180",
    "hexagon",
    "square",
    "star",
    "heart",
)

ORIENTATIONS = ("auto", "0", "90", "180", "270")


@dataclass(frozen=True)
class SharpenSettings:
    """Sharpen triple; ``sigma == -1`` selects the fast kernel."""

    flat: int = SHARPEN_FLAT_DEFAULT
    jagged: int = SHARPEN_JAGGED_DEFAULT
    sigma: float = SHARPEN_FAST_SIGMA

    @property
    def is_fast(self) -> bool:
        return self.sigma == SHARPEN_FAST_SIGMA


@dataclass(frozen=True)
class EncodingOptions:
    """Writer options; fields that do not apply to the extension stay None."""

    quality: Optional[int] = None
    interlace: Optional[bool] = None
    compression: Optional[int] = None


def to_number(raw: Any) -> Optional[float]:
    """Strictly numeric value of ``raw``, or None when it is not a number."""
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        value = float(raw)
    elif isinstance(raw, str):
        if not _NUMBER_RE.match(raw):
            return None
        value = float(raw)
    else:
        return None
    if not math.isfinite(value):
        return None
    return value


def leading_int(raw: Any) -> int:
    """Integer prefix of ``raw`` (``"12px"`` -> 12), 0 when there is none."""
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        return int(raw) if math.isfinite(raw) else 0
    if not isinstance(raw, str):
        return 0
    match = _LEADING_INT_RE.match(raw)
    return int(match.group(1)) if match else 0


def leading_float(raw: Any) -> float:
    """Float prefix of ``raw``, 0.0 when there is none."""
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        return float(raw) if math.isfinite(raw) else 0.0
    if not isinstance(raw, str):
        return 0.0
    match = _LEADING_FLOAT_RE.match(raw)
    return float(match.group(1)) if match else 0.0


def resolve_sharpen(raw: Any) -> SharpenSettings:
    """Resolve ``sharp=flat,jagged,sigma``; missing fields keep their defaults."""
    flat = SHARPEN_FLAT_DEFAULT
    jagged = SHARPEN_JAGGED_DEFAULT
    sigma = SHARPEN_FAST_SIGMA

    if raw is None:
        return SharpenSettings(flat, jagged, sigma)

    pieces = str(raw).split(",")

    value = leading_int(pieces[0])
    if 0 < value <= 10000:
        flat = value

    if len(pieces) > 1:
        value = leading_int(pieces[1])
        if 0 < value <= 10000:
            jagged = value

    if len(pieces) > 2:
        value = leading_float(pieces[2])
        if 0.01 <= value <= 10000:
            sigma = value

    return SharpenSettings(flat, jagged, sigma)


def resolve_blur(raw: Any) -> float:
    """Blur sigma in [0, 1000], or -1.0 meaning no blur."""
    value = to_number(raw)
    if value is None or value < 0 or value > 1000:
        return BLUR_NONE
    return value


def resolve_quality(raw: Any) -> int:
    """JPEG/WebP quality in [0, 100], default 85."""
    value = to_number(raw)
    if value is None or value < 0 or value > 100:
        return DEFAULT_QUALITY
    return int(value)


def resolve_compression_level(raw: Any) -> int:
    """zlib compression level of PNG output in [0, 9], default 6."""
    value = to_number(raw)
    if value is None or value < 0 or value > 9:
        return DEFAULT_COMPRESSION_LEVEL
    return int(value)


def resolve_trim(raw: Any) -> int:
    value = to_number(raw)
    if value is None or value < 1 or value > 254:
        return TRIM_DEFAULT
    return int(value)


def resolve_dimension(raw: Any) -> int:
    """Width or height in pixels, 0 when unset or invalid."""
    value = to_number(raw)
    if value is None or value < 1 or value > MAX_DIMENSION:
        return 0
    return int(value)


def resolve_dpr(raw: Any) -> float:
    value = to_number(raw)
    if value is None or value < 1 or value > MAX_DPR:
        return 1.0
    return value


def resolve_fit(raw: Any) -> str:
    if isinstance(raw, str) and raw in FIT_MODES:
        return raw
    return "fit"


def resolve_position(raw: Any) -> str:
    if isinstance(raw, str):
        return POSITIONS.get(raw.lower(), "center")
    return "center"


def resolve_orientation(raw: Any) -> Optional[Union[int, str]]:
    """``auto`` or a clockwise angle; None when not set or invalid."""
    if raw is None:
        return None
    value = str(raw).strip().lower()
    if value not in ORIENTATIONS:
        return None
    if value == "auto":
        return value
    return int(value)


def resolve_crop(raw: Any) -> Optional[Tuple[int, int, int, int]]:
    """``crop=w,h,x,y``; None unless all four are valid."""
    if not isinstance(raw, str):
        return None
    pieces = raw.split(",")
    if len(pieces) != 4:
        return None
    values = [to_number(p) for p in pieces]
    if any(v is None for v in values):
        return None
    width, height, left, top = (int(v) for v in values)
    if width <= 0 or height <= 0 or left < 0 or top < 0:
        return None
    return width, height, left, top


def resolve_shape(raw: Any) -> Optional[str]:
    if isinstance(raw, str) and raw in SHAPES:
        return raw
    return None


def _percentage(raw: Any) -> int:
    value = to_number(raw)
    if value is None or value < -100 or value > 100:
        return 0
    return int(value)


def resolve_brightness(raw: Any) -> int:
    return _percentage(raw)


def resolve_contrast(raw: Any) -> int:
    return _percentage(raw)


def resolve_gamma(raw: Any) -> Optional[float]:
    """Gamma exponent in [1, 3]; None when not requested, 2.2 when invalid."""
    if raw is None:
        return None
    value = to_number(raw)
    if value is None or value < 1.0 or value > 3.0:
        return GAMMA_DEFAULT
    return value


def resolve_encoding_options(extension: str, params) -> EncodingOptions:
    """Writer options for ``extension`` from the request parameters."""
    quality = None
    interlace = None
    compression = None

    if extension in ("jpg", "webp"):
        quality = resolve_quality(params.get("q"))
    if extension in ("jpg", "png"):
        interlace = "il" in params
    if extension == "png":
        compression = resolve_compression_level(params.get("level"))

    return EncodingOptions(quality=quality, interlace=interlace, compression=compression)
