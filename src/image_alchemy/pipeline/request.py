from collections.abc import Mapping
from types import MappingProxyType
from typing import Any, Iterator, Optional, TypedDict


class ManipulationParams(TypedDict, total=False):
    """Query parameters understood by the manipulators"""
    # Geometry
    trim: str
    w: str
    h: str
    dpr: str
    t: str    # fit mode
    a: str    # alignment for square crops
    crop: str
    shape: str
    strim: str

    # Orientation: auto / 0 / 90 / 180 / 270
    # (`or` is a keyword, so it is only usable through the mapping)

    # Tone & Colour
    bri: str
    con: str
    gam: str
    filt: str
    sharp: str
    blur: str
    bg: str

    # Output
    output: str
    q: str
    level: str
    il: str


class ManipulationRequest(Mapping):
    """
    Immutable parameter mapping for one request.
    The source mapping is copied, so later changes to it do not leak in.
    """

    __slots__ = ("_params",)

    def __init__(self, params: Optional[Mapping] = None):
        self._params = MappingProxyType(dict(params or {}))

    @classmethod
    def of(cls, params) -> "ManipulationRequest":
        if isinstance(params, cls):
            return params
        return cls(params)

    def __getitem__(self, key: str) -> Any:
        return self._params[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._params)

    def __len__(self) -> int:
        return len(self._params)

    def __repr__(self) -> str:
        return f"ManipulationRequest({dict(self._params)!r})"
