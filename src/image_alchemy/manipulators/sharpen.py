from image_alchemy.engine import ImageHandle, Interpretation, ops
from image_alchemy.manipulators.base import Manipulator, ManipulatorKind, ManipulatorResult
from image_alchemy.params import SharpenSettings, resolve_sharpen

# Fast, mild sharpen; the weights sum to 24
FAST_SHARPEN_KERNEL = [
    [-1.0, -1.0, -1.0],
    [-1.0, 32.0, -1.0],
    [-1.0, -1.0, -1.0],
]
FAST_SHARPEN_SCALE = 24.0


class Sharpen(Manipulator):
    """
    ``sharp=flat,jagged,sigma``.

    Without a sigma a fixed 3x3 kernel is used in the current colourspace.
    With one, an unsharp mask runs on Lab lightness with separate gains for
    flat and jagged areas, then the image goes back to its colourspace.
    Sharpening runs on premultiplied pixels to avoid fringes at alpha edges.
    """

    kind = ManipulatorKind.SHARPEN

    def apply(self, image, params, state):
        if params.get("sharp") is None:
            return ManipulatorResult(image, is_premultiplied=state.is_premultiplied)

        settings = resolve_sharpen(params["sharp"])

        if state.has_alpha and not state.is_premultiplied:
            image = ops.premultiply(image)

        return ManipulatorResult(self.sharpen(image, settings), is_premultiplied=True)

    @staticmethod
    def sharpen(image: ImageHandle, settings: SharpenSettings) -> ImageHandle:
        if settings.is_fast:
            return ops.conv(image, FAST_SHARPEN_KERNEL, scale=FAST_SHARPEN_SCALE)

        # A plain RGB tag is ambiguous for the trip back from Lab
        colourspace_before = image.interpretation
        if colourspace_before == Interpretation.RGB:
            colourspace_before = Interpretation.SRGB

        sharpened = ops.sharpen(image, settings.sigma, settings.flat, settings.jagged)
        return ops.colourspace(sharpened, colourspace_before)
