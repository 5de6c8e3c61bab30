"""Tests for colour specification parsing."""

import pytest

from image_alchemy.color import NAMED_COLORS, TRANSPARENT, Color, parse_color


class TestHexForms:
    """Test the 3, 4, 6 and 8 digit hex forms."""

    @pytest.mark.parametrize(
        "spec, expected",
        [
            ("ABC", (170, 187, 204, 255)),
            ("#ABC", (170, 187, 204, 255)),
            ("0ABC", (170, 187, 204, 0)),
            ("11FF33", (17, 255, 51, 255)),
            ("#11ff33", (17, 255, 51, 255)),
            ("0011FF33", (17, 255, 51, 0)),
            ("#800011FF", (0, 17, 255, 128)),
        ],
    )
    def test_concrete_cases(self, spec, expected):
        assert tuple(parse_color(spec)) == expected

    def test_to_rgba(self):
        assert parse_color("#ABC").to_rgba() == [170, 187, 204, 255]


class TestNamedColors:
    """Test the CSS name table."""

    def test_black(self):
        assert parse_color("black") == Color(0, 0, 0, 255)

    def test_case_insensitive(self):
        assert parse_color("DarkOrange") == parse_color("darkorange") == Color(255, 140, 0, 255)

    def test_transparent(self):
        color = parse_color("transparent")
        assert color.is_transparent()
        assert not color.is_opaque()

    def test_every_name_resolves_opaque(self):
        """All names except transparent are fully opaque."""
        for name in NAMED_COLORS:
            if name == "transparent":
                continue
            assert parse_color(name).is_opaque(), name


class TestInvalid:
    """Anything not understood is transparent black."""

    @pytest.mark.parametrize("spec", ["unknown", None, "01", "01234", "012345678", "#GGG", "", 255])
    def test_invalid_inputs(self, spec):
        assert parse_color(spec) == TRANSPARENT
        assert tuple(parse_color(spec)) == (0, 0, 0, 0)

    def test_classmethod_matches_function(self):
        assert Color.parse("ABC") == parse_color("ABC")
