from image_alchemy.engine import Interpretation, ops
from image_alchemy.manipulators.base import Manipulator, ManipulatorKind, ManipulatorResult

SEPIA_MATRIX = [
    [0.3588, 0.7044, 0.1368],
    [0.2990, 0.5870, 0.1140],
    [0.2392, 0.4696, 0.0912],
]


class Filter(Manipulator):
    """
    Named colour filters selected by ``filt``: greyscale, sepia or negate.
    Any other value leaves the image untouched.
    """

    kind = ManipulatorKind.FILTER

    def apply(self, image, params, state):
        filt = params.get("filt")

        if filt == "greyscale":
            image = ops.on_straight_alpha(
                image, state.is_premultiplied, lambda straight: self.greyscale(straight, state.is_16bit)
            )
        elif filt == "sepia":
            # Linear, so it works on premultiplied colour too
            image = self.sepia(image, state.is_16bit)
        elif filt == "negate":
            image = ops.on_straight_alpha(image, state.is_premultiplied, ops.invert)

        return ManipulatorResult(image)

    @staticmethod
    def greyscale(image, is_16bit: bool = False):
        """Single colour band black-and-white; an alpha band is kept"""
        target = Interpretation.GREY16 if is_16bit else Interpretation.B_W
        return ops.colourspace(image, target)

    @staticmethod
    def sepia(image, is_16bit: bool = False):
        """Recombine the RGB bands through the sepia matrix; alpha untouched"""
        if image.colour_bands == 1:
            image = ops.colourspace(image, Interpretation.RGB16 if is_16bit else Interpretation.SRGB)
        return ops.recomb(image, SEPIA_MATRIX)
