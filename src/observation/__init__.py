"""
Observation layer for pluggable live frame sources.

This layer abstracts the capture device (camera, stream, video file) from the
detection loop. Each source implements the FrameSource interface and returns
FrameData objects; FrameBuffer turns them into RGBA rasters for detectors.
"""

from .base import FrameSource, FrameSourceConfig
from .frame_buffer import FrameBuffer
from .opencv_source import OpenCVSource, OpenCVSourceConfig, create_source_from_config

__all__ = [
    "FrameSource",
    "FrameSourceConfig",
    "FrameBuffer",
    "OpenCVSource",
    "OpenCVSourceConfig",
    "create_source_from_config",
]
