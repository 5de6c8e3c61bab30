"""Configuration defaults and JSON persistence for the image service.

The processor works with a ``ServiceConfig``; callers either use the
defaults or load one from a JSON file through ``ConfigManager``.
"""

import json
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Dict, Optional, Tuple

from loguru import logger

# Output extensions the engine can write, with their MIME types.
# GIF is not listed: it is only reachable through the GIF shim.
ALLOWED_IMAGE_TYPES: Dict[str, str] = {
    "jpg": "image/jpeg",
    "png": "image/png",
    "webp": "image/webp",
}

ALPHA_CAPABLE_TYPES: Tuple[str, ...] = ("png", "webp")

GIF_EXTENSION = "gif"
GIF_MIME_TYPE = "image/gif"

DEFAULT_QUALITY = 85
DEFAULT_COMPRESSION_LEVEL = 6
DEFAULT_IDENTITY = "127.0.0.1"

BAN_LOG_TEMPLATE = "User rate limit exceeded. IP: {identity} Expires: {ban_time}"

CONFIG_FILE = Path.home() / ".image_alchemy" / "config.json"


@dataclass
class ServiceConfig:
    """Settings for one ``ImageProcessor``."""

    allowed_types: Dict[str, str] = field(default_factory=lambda: dict(ALLOWED_IMAGE_TYPES))
    alpha_capable: Tuple[str, ...] = ALPHA_CAPABLE_TYPES
    # Extension forced when the image has alpha the target cannot carry
    alpha_fallback: str = "png"
    # Extension forced when the target is not allowed at all
    lossy_fallback: str = "jpg"
    default_identity: str = DEFAULT_IDENTITY
    ban_log_template: str = BAN_LOG_TEMPLATE
    log_level: str = "INFO"
    log_file: Optional[str] = None

    def mime_type(self, extension: str) -> str:
        return self.allowed_types[extension]


class ConfigManager:
    """Handles loading and saving of the service configuration."""

    def __init__(self, config_path: Path = CONFIG_FILE):
        """
        Args:
            config_path: Path to the JSON configuration file
        """
        self.config_path = Path(config_path)

    def load(self) -> ServiceConfig:
        """Load configuration from file, returning defaults if not found.

        Returns:
            ServiceConfig with loaded or default values
        """
        config = ServiceConfig()

        if not self.config_path.exists():
            return config

        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Could not load config file {self.config_path}: {e}")
            return config

        if not isinstance(data, dict):
            logger.warning(f"Ignoring config file {self.config_path}: not a JSON object")
            return config

        allowed = data.get("allowed_types")
        if isinstance(allowed, dict) and allowed:
            config.allowed_types = {str(k): str(v) for k, v in allowed.items()}
        alpha_capable = data.get("alpha_capable")
        if isinstance(alpha_capable, list):
            config.alpha_capable = tuple(str(ext) for ext in alpha_capable)
        config.alpha_fallback = data.get("alpha_fallback", config.alpha_fallback)
        config.lossy_fallback = data.get("lossy_fallback", config.lossy_fallback)
        config.default_identity = data.get("default_identity", config.default_identity)
        config.ban_log_template = data.get("ban_log_template", config.ban_log_template)
        config.log_level = data.get("log_level", config.log_level)
        config.log_file = data.get("log_file", config.log_file)

        logger.debug(f"Loaded configuration from {self.config_path}")
        return config

    def save(self, config: ServiceConfig) -> Tuple[bool, Optional[str]]:
        """Save configuration to file.

        Returns:
            Tuple of (success, error_message)
        """
        data = asdict(config)
        data["alpha_capable"] = list(config.alpha_capable)
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            return True, None
        except OSError as e:
            return False, str(e)
