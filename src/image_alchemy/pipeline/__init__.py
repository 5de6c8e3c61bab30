"""
Per-request values and the GIF shim. The orchestrator lives in
``image_alchemy.pipeline.processor``.
"""
from image_alchemy.pipeline.gif import PillowGifEncoder, detect_gif_encoder
from image_alchemy.pipeline.request import ManipulationParams, ManipulationRequest
from image_alchemy.pipeline.state import PipelineState

__all__ = [
    "ManipulationParams",
    "ManipulationRequest",
    "PillowGifEncoder",
    "PipelineState",
    "detect_gif_encoder",
]
