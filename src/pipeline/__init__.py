"""
Pipeline module for the face watch system.

The detection loop orchestrates the per-tick flow:
- Frame acquisition from a FrameSource
- RGBA preprocessing into a FrameBuffer
- Detection (descriptor, heuristic region, or motion)
- Matching against the signature registry
- Delivery of TickResult to observers
"""

from .engine import (
    DetectionLoop,
    DetectionLoopConfig,
    LoopState,
    LoopStats,
    create_loop_from_config,
)
from .scheduler import ImmediateScheduler, RefreshScheduler

__all__ = [
    "DetectionLoop",
    "DetectionLoopConfig",
    "LoopState",
    "LoopStats",
    "create_loop_from_config",
    "ImmediateScheduler",
    "RefreshScheduler",
]
