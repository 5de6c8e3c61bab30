from image_alchemy.color import parse_color
from image_alchemy.engine import ops
from image_alchemy.manipulators.base import Manipulator, ManipulatorKind, ManipulatorResult


class Background(Manipulator):
    """
    ``bg=colour`` for images with alpha.

    An opaque colour flattens the image onto it. A translucent one is
    composited under the image and the result stays premultiplied.
    """

    kind = ManipulatorKind.BACKGROUND

    def apply(self, image, params, state):
        if not state.has_alpha or params.get("bg") is None:
            return ManipulatorResult(image, is_premultiplied=state.is_premultiplied)

        color = parse_color(params["bg"])

        if color.is_opaque():
            image = ops.flatten(image, color.to_rgba(), premultiplied=state.is_premultiplied)
            return ManipulatorResult(image, is_premultiplied=False)

        image = ops.composite_over(image, color.to_rgba(), premultiplied=state.is_premultiplied)
        return ManipulatorResult(image, is_premultiplied=True)
