"""
Tone adjustments on the colour bands: brightness, contrast and gamma.

None of them are linear in alpha, so premultiplied images are adjusted on
their straight colour.
"""
from image_alchemy.engine import ops
from image_alchemy.manipulators.base import Manipulator, ManipulatorKind, ManipulatorResult
from image_alchemy.params import resolve_brightness, resolve_contrast, resolve_gamma


class Brightness(Manipulator):
    """``bri=-100..100``: percentage of full scale added to every colour band."""

    kind = ManipulatorKind.BRIGHTNESS

    def apply(self, image, params, state):
        brightness = resolve_brightness(params.get("bri"))
        if brightness == 0:
            return ManipulatorResult(image)

        offset = image.max_value * brightness / 100.0
        image = ops.on_straight_alpha(
            image, state.is_premultiplied, lambda straight: ops.linear(straight, 1.0, offset)
        )
        return ManipulatorResult(image)


class Contrast(Manipulator):
    """``con=-100..100``: scale the colour bands around mid-grey."""

    kind = ManipulatorKind.CONTRAST

    def apply(self, image, params, state):
        contrast = resolve_contrast(params.get("con"))
        if contrast == 0:
            return ManipulatorResult(image)

        factor = 1.0 + contrast / 100.0
        offset = image.max_value / 2.0 * (1.0 - factor)
        image = ops.on_straight_alpha(
            image, state.is_premultiplied, lambda straight: ops.linear(straight, factor, offset)
        )
        return ManipulatorResult(image)


class Gamma(Manipulator):
    """``gam=1.0..3.0`` (default 2.2 when the value is invalid)."""

    kind = ManipulatorKind.GAMMA

    def apply(self, image, params, state):
        exponent = resolve_gamma(params.get("gam"))
        if exponent is None:
            return ManipulatorResult(image)

        image = ops.on_straight_alpha(
            image, state.is_premultiplied, lambda straight: ops.gamma(straight, exponent)
        )
        return ManipulatorResult(image)
