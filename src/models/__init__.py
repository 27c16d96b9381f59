"""
Typed models for the face watch application.

Use the from_dict/to_dict adapters to convert from raw config dicts.
"""

from .frame import FrameData
from .detection import BoundingBox, DetectionResult
from .signature import FaceSignature, MatchResult
from .tick import TickResult
from .config import (
    Config,
    CameraConfig,
    DetectionConfig,
    DescriptorConfig,
    MatchingConfig,
    LoopConfig,
    RegistryConfig,
    WebConfig,
)

__all__ = [
    # Frame
    "FrameData",
    # Detection
    "BoundingBox",
    "DetectionResult",
    # Registry / matching
    "FaceSignature",
    "MatchResult",
    "TickResult",
    # Config
    "Config",
    "CameraConfig",
    "DetectionConfig",
    "DescriptorConfig",
    "MatchingConfig",
    "LoopConfig",
    "RegistryConfig",
    "WebConfig",
]
