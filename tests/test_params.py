"""Tests for the parameter resolvers."""

import pytest

from image_alchemy.params import (
    EncodingOptions,
    SharpenSettings,
    leading_int,
    to_number,
    resolve_blur,
    resolve_brightness,
    resolve_compression_level,
    resolve_crop,
    resolve_dimension,
    resolve_dpr,
    resolve_encoding_options,
    resolve_fit,
    resolve_gamma,
    resolve_orientation,
    resolve_position,
    resolve_quality,
    resolve_shape,
    resolve_sharpen,
    resolve_trim,
)
from image_alchemy.pipeline.request import ManipulationRequest


class TestSharpen:
    """Test sharpen triple resolution and defaults."""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            (None, SharpenSettings(1, 2, -1.0)),
            ("", SharpenSettings(1, 2, -1.0)),
            ("5", SharpenSettings(5, 2, -1.0)),
            ("5,7", SharpenSettings(5, 7, -1.0)),
            ("5,7,0.5", SharpenSettings(5, 7, 0.5)),
        ],
    )
    def test_missing_fields_keep_defaults(self, raw, expected):
        assert resolve_sharpen(raw) == expected

    def test_out_of_range_fields_fall_back(self):
        settings = resolve_sharpen("0,20000,0.001")
        assert settings == SharpenSettings(1, 2, -1.0)
        assert settings.is_fast

    def test_lenient_integers(self):
        assert resolve_sharpen("3px,4x").flat == 3
        assert resolve_sharpen("3px,4x").jagged == 4
        assert leading_int("abc") == 0

    def test_accurate_mode(self):
        assert not resolve_sharpen("1,2,1.5").is_fast


class TestBlur:
    """resolve_blur is total."""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("50", 50.0),
            (50, 50.0),
            ("0", 0.0),
            ("1000", 1000.0),
            (None, -1.0),
            ("a", -1.0),
            ("-1", -1.0),
            ("1001", -1.0),
            ("nan", -1.0),
            (True, -1.0),
            ("1_0", -1.0),
            (" 12.5 ", 12.5),
            ("1e2", 100.0),
        ],
    )
    def test_values(self, raw, expected):
        assert resolve_blur(raw) == expected


class TestEncodingValues:
    """Quality and compression level."""

    def test_quality(self):
        assert resolve_quality("70") == 70
        assert resolve_quality(None) == 85
        assert resolve_quality("101") == 85
        assert resolve_quality("high") == 85

    def test_compression_level(self):
        assert resolve_compression_level("9") == 9
        assert resolve_compression_level("0") == 0
        assert resolve_compression_level("10") == 6
        assert resolve_compression_level(None) == 6

    def test_options_per_extension(self):
        params = ManipulationRequest({"q": "60", "il": "", "level": "3"})

        assert resolve_encoding_options("jpg", params) == EncodingOptions(quality=60, interlace=True)
        assert resolve_encoding_options("png", params) == EncodingOptions(interlace=True, compression=3)
        assert resolve_encoding_options("webp", params) == EncodingOptions(quality=60)

    def test_interlace_is_key_presence(self):
        assert resolve_encoding_options("jpg", {}).interlace is False
        assert resolve_encoding_options("jpg", {"il": None}).interlace is True

    def test_idempotent(self):
        """Resolving the same request twice gives identical results."""
        params = ManipulationRequest({"sharp": "2,3,0.7", "q": "40", "il": "1"})
        assert resolve_sharpen(params["sharp"]) == resolve_sharpen(params["sharp"])
        assert resolve_encoding_options("jpg", params) == resolve_encoding_options("jpg", params)


class TestGeometryParams:
    """Supplemental geometry resolvers."""

    def test_trim(self):
        assert resolve_trim("20") == 20
        assert resolve_trim("") == 10
        assert resolve_trim("255") == 10

    def test_dimension(self):
        assert resolve_dimension("300") == 300
        assert resolve_dimension("0") == 0
        assert resolve_dimension("5001") == 0
        assert resolve_dimension(None) == 0

    def test_dpr(self):
        assert resolve_dpr("2") == 2.0
        assert resolve_dpr("9") == 1.0

    def test_fit_and_position(self):
        assert resolve_fit("letterbox") == "letterbox"
        assert resolve_fit("bogus") == "fit"
        assert resolve_position("tl") == "top-left"
        assert resolve_position("BOTTOM") == "bottom"
        assert resolve_position("nowhere") == "center"

    def test_orientation(self):
        assert resolve_orientation("auto") == "auto"
        assert resolve_orientation("90") == 90
        assert resolve_orientation(270) == 270
        assert resolve_orientation("45") is None
        assert resolve_orientation(None) is None

    def test_crop(self):
        assert resolve_crop("10,20,3,4") == (10, 20, 3, 4)
        assert resolve_crop("10,20,3") is None
        assert resolve_crop("0,20,3,4") is None
        assert resolve_crop("a,b,c,d") is None

    def test_shape(self):
        assert resolve_shape("star") == "star"
        assert resolve_shape("blob") is None


class TestToneParams:
    def test_brightness_range(self):
        assert resolve_brightness("-50") == -50
        assert resolve_brightness("150") == 0

    def test_gamma(self):
        assert resolve_gamma(None) is None
        assert resolve_gamma("1.5") == 1.5
        assert resolve_gamma("5") == 2.2
        assert resolve_gamma("x") == 2.2


class TestManipulationRequest:
    def test_source_changes_do_not_leak(self):
        source = {"w": "10"}
        request = ManipulationRequest(source)
        source["w"] = "20"
        assert request["w"] == "10"

    def test_immutable(self):
        request = ManipulationRequest({"w": "10"})
        with pytest.raises(TypeError):
            request["w"] = "20"

    def test_of_reuses_instances(self):
        request = ManipulationRequest({"w": "10"})
        assert ManipulationRequest.of(request) is request
        assert dict(ManipulationRequest.of({"h": "5"})) == {"h": "5"}


class TestToNumber:
    @pytest.mark.parametrize("raw", ["1_0", "0x10", "inf", "-infinity", "1,5", "", " ", "1 0"])
    def test_rejects_non_decimal(self, raw):
        assert to_number(raw) is None

    @pytest.mark.parametrize("raw, expected", [("10", 10.0), ("-.5", -0.5), ("+3.", 3.0), ("2E1", 20.0), (7, 7.0)])
    def test_accepts_decimal(self, raw, expected):
        assert to_number(raw) == expected
