"""Tests for ServiceConfig and JSON persistence."""

import json

from image_alchemy.config import ALLOWED_IMAGE_TYPES, ConfigManager, ServiceConfig


class TestServiceConfig:
    def test_defaults(self):
        config = ServiceConfig()
        assert config.allowed_types == ALLOWED_IMAGE_TYPES
        assert config.alpha_capable == ("png", "webp")
        assert config.default_identity == "127.0.0.1"
        assert config.mime_type("webp") == "image/webp"

    def test_allowed_types_are_copied(self):
        config = ServiceConfig()
        config.allowed_types["bmp"] = "image/bmp"
        assert "bmp" not in ALLOWED_IMAGE_TYPES


class TestConfigManager:
    """Loading and saving the JSON file."""

    def test_missing_file_gives_defaults(self, tmp_path):
        assert ConfigManager(tmp_path / "missing.json").load() == ServiceConfig()

    def test_round_trip(self, tmp_path):
        path = tmp_path / "nested" / "config.json"
        config = ServiceConfig(alpha_capable=("png",), lossy_fallback="webp", log_level="DEBUG")

        ok, error = ConfigManager(path).save(config)
        assert ok and error is None

        loaded = ConfigManager(path).load()
        assert loaded == config

    def test_partial_file(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"default_identity": "0.0.0.0"}), encoding="utf-8")

        loaded = ConfigManager(path).load()
        assert loaded.default_identity == "0.0.0.0"
        assert loaded.allowed_types == ALLOWED_IMAGE_TYPES

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("{not json", encoding="utf-8")
        assert ConfigManager(path).load() == ServiceConfig()

    def test_not_an_object(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("[1, 2]", encoding="utf-8")
        assert ConfigManager(path).load() == ServiceConfig()

    def test_save_failure(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("x", encoding="utf-8")
        ok, error = ConfigManager(blocker / "config.json").save(ServiceConfig())
        assert not ok
        assert error
