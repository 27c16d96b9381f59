"""
Captured camera frames as handed from a FrameSource to the detection loop.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

SUPPORTED_CHANNELS = (1, 3, 4)


@dataclass
class FrameData:
    """
    One frame as delivered by the capture device.

    Attributes:
        frame: Pixels in device order: BGR, BGRA or single-channel gray.
        width, height: Negotiated capture size; may differ from the requested 640x480.
        timestamp: Capture time (time.time()).
        frame_index: 1-based count of frames read since the source was opened.
        source: source_id of the producing FrameSource.
        mirrored: Frame was flipped horizontally (user-facing camera).
    """
    frame: np.ndarray
    width: int
    height: int
    timestamp: float
    frame_index: int = 0
    source: Optional[str] = None
    mirrored: bool = False

    @classmethod
    def from_numpy(
        cls,
        frame: np.ndarray,
        timestamp: float,
        frame_index: int = 0,
        source: Optional[str] = None,
        mirrored: bool = False,
    ) -> "FrameData":
        """
        Wrap a captured array, taking width/height from its shape.

        Raises:
            ValueError: The array is not an image with 1, 3 or 4 channels.
        """
        if frame.ndim not in (2, 3) or (frame.ndim == 3 and frame.shape[2] not in SUPPORTED_CHANNELS):
            raise ValueError(f"Unsupported frame shape {frame.shape}")
        h, w = frame.shape[:2]
        return cls(frame, w, h, timestamp, frame_index, source, mirrored)

    @property
    def channels(self) -> int:
        return 1 if self.frame.ndim == 2 else self.frame.shape[2]

    @property
    def size(self) -> Tuple[int, int]:
        """(width, height)"""
        return (self.width, self.height)
