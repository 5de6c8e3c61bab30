from image_alchemy.engine import ops
from image_alchemy.manipulators.base import Manipulator, ManipulatorKind, ManipulatorResult
from image_alchemy.params import BLUR_NONE, resolve_blur

MILD_BLUR_KERNEL = [
    [1.0, 1.0, 1.0],
    [1.0, 1.0, 1.0],
    [1.0, 1.0, 1.0],
]

# Below this sigma a gaussian mask degenerates; use the box kernel instead
MIN_GAUSSIAN_SIGMA = 0.3


class Blur(Manipulator):
    """``blur=0..1000``: gaussian sigma, or a mild box blur for tiny values."""

    kind = ManipulatorKind.BLUR

    def apply(self, image, params, state):
        sigma = resolve_blur(params.get("blur"))
        if sigma == BLUR_NONE:
            return ManipulatorResult(image, is_premultiplied=state.is_premultiplied)

        is_premultiplied = state.is_premultiplied
        if state.has_alpha and not is_premultiplied:
            image = ops.premultiply(image)
            is_premultiplied = True

        if sigma < MIN_GAUSSIAN_SIGMA:
            image = ops.conv(image, MILD_BLUR_KERNEL, scale=9.0)
        else:
            image = ops.gaussblur(image, sigma)

        return ManipulatorResult(image, is_premultiplied=is_premultiplied)
