"""
image_alchemy: on-the-fly image manipulation.

    processor = ImageProcessor(fetcher, gif_encoder=detect_gif_encoder())
    result = processor.run(url, "jpg", {"w": "300", "sharp": "1,2,0.5"})
"""
from image_alchemy.collaborators import LocalHandle, RequestContext, TemporaryFileHandle
from image_alchemy.color import Color, parse_color
from image_alchemy.config import ConfigManager, ServiceConfig
from image_alchemy.logger import configure_logging, create_logger, setup_logging
from image_alchemy.exceptions import (
    EngineFailure,
    ImageAlchemyError,
    ImageNotReadable,
    RateExceeded,
    ResourceFetchFailed,
)
from image_alchemy.pipeline.processor import ImageProcessor, ProcessedImage
from image_alchemy.pipeline import ManipulationRequest, detect_gif_encoder

__version__ = "0.1.0"

__all__ = [
    "Color",
    "ConfigManager",
    "EngineFailure",
    "ImageAlchemyError",
    "ImageNotReadable",
    "ImageProcessor",
    "LocalHandle",
    "ManipulationRequest",
    "ProcessedImage",
    "RateExceeded",
    "RequestContext",
    "ResourceFetchFailed",
    "ServiceConfig",
    "configure_logging",
    "create_logger",
    "TemporaryFileHandle",
    "parse_color",
    "detect_gif_encoder",
    "setup_logging",
]
