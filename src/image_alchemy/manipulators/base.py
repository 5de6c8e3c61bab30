from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from image_alchemy.engine import ImageHandle
from image_alchemy.pipeline.request import ManipulationRequest
from image_alchemy.pipeline.state import PipelineState


class ManipulatorKind(Enum):
    """The closed set of manipulators the processor knows how to chain."""
    TRIM = "trim"
    ORIENTATION = "orientation"
    SIZE = "size"
    CROP = "crop"
    SHAPE = "shape"
    BRIGHTNESS = "brightness"
    CONTRAST = "contrast"
    GAMMA = "gamma"
    FILTER = "filter"
    SHARPEN = "sharpen"
    BLUR = "blur"
    BACKGROUND = "background"


@dataclass(frozen=True)
class ManipulatorResult:
    """
    Output of one manipulator.

    ``has_alpha`` / ``is_premultiplied`` are the manipulator's report on the
    pipeline flags; None means "no report". The processor decides per kind
    which reports it trusts.
    """
    image: ImageHandle
    has_alpha: Optional[bool] = None
    is_premultiplied: Optional[bool] = None


class Manipulator(ABC):
    """One step of the manipulation chain."""

    kind: ManipulatorKind

    @abstractmethod
    def apply(self, image: ImageHandle, params: ManipulationRequest, state: PipelineState) -> ManipulatorResult:
        """
        Run the manipulation.

        Args:
            image: Handle produced by the previous step; not used after this call
            params: Request parameters
            state: Current pipeline flags (read only)

        Returns:
            ManipulatorResult with the new handle and any flag reports
        """

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"
