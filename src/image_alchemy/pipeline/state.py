from dataclasses import dataclass

from image_alchemy.engine import AccessMode, ImageHandle, is_16bit


@dataclass
class PipelineState:
    """
    Flags threaded through the manipulator chain for a single request.

    - has_alpha: the image carries an alpha band
    - is_16bit: the decoded source was 16 bits per sample
    - is_premultiplied: colour bands are currently scaled by alpha
    - access: how the source was decoded
    """
    has_alpha: bool = False
    is_16bit: bool = False
    is_premultiplied: bool = False
    access: AccessMode = AccessMode.SEQUENTIAL

    @classmethod
    def from_image(cls, image: ImageHandle, access: AccessMode) -> "PipelineState":
        """Initial state for a freshly decoded image"""
        return cls(
            has_alpha=image.has_alpha,
            is_16bit=is_16bit(image.interpretation),
            is_premultiplied=False,
            access=access,
        )
