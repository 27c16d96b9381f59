"""
Preprocessing: copy captured frames into a stable RGBA raster.

Detectors read 8-bit R, G, B, A samples from a row-major buffer with a
stride of width * 4 bytes, regardless of what the capture device produced.
"""

from __future__ import annotations

from typing import Optional, Tuple

import cv2
import numpy as np

from models.frame import FrameData

CHANNELS = 4

_TO_RGBA = {
    1: cv2.COLOR_GRAY2RGBA,
    3: cv2.COLOR_BGR2RGBA,
    4: cv2.COLOR_BGRA2RGBA,
}


class FrameBuffer:
    """
    Reusable RGBA pixel buffer.

    load() converts a frame into the buffer in place. The backing array is only
    reallocated when the frame dimensions change, which load() reports so the
    caller can drop any previous-frame reference of the old size.
    """

    def __init__(self, width: int = 0, height: int = 0):
        self._pixels: np.ndarray = np.zeros((height, width, CHANNELS), dtype=np.uint8)
        self.frame_index = 0
        self.timestamp = 0.0

    @classmethod
    def from_rgba(cls, pixels: np.ndarray, frame_index: int = 0, timestamp: float = 0.0) -> "FrameBuffer":
        """Wrap an existing (h, w, 4) uint8 RGBA array (copied)."""
        if pixels.ndim != 3 or pixels.shape[2] != CHANNELS:
            raise ValueError(f"expected (h, w, 4) RGBA array, got shape {pixels.shape}")
        buf = cls(pixels.shape[1], pixels.shape[0])
        np.copyto(buf._pixels, pixels.astype(np.uint8, copy=False))
        buf.frame_index = frame_index
        buf.timestamp = timestamp
        return buf

    @property
    def width(self) -> int:
        return self._pixels.shape[1]

    @property
    def height(self) -> int:
        return self._pixels.shape[0]

    @property
    def size(self) -> Tuple[int, int]:
        """Return (width, height)."""
        return (self.width, self.height)

    @property
    def stride(self) -> int:
        """Bytes per row."""
        return self.width * CHANNELS

    @property
    def pixels(self) -> np.ndarray:
        """(height, width, 4) RGBA view."""
        return self._pixels

    @property
    def data(self) -> np.ndarray:
        """Flat RGBA byte view (length width * height * 4)."""
        return self._pixels.reshape(-1)

    @property
    def is_empty(self) -> bool:
        return self._pixels.size == 0

    def same_size(self, other: Optional["FrameBuffer"]) -> bool:
        return other is not None and other.size == self.size

    def load(self, frame_data: FrameData) -> bool:
        """
        Copy a captured frame into the buffer.

        Returns:
            True if the buffer was resized to new dimensions.
        """
        frame = frame_data.frame
        code = _TO_RGBA.get(frame_data.channels)
        if code is None:
            raise ValueError(f"Unsupported frame with {frame_data.channels} channels")

        h, w = frame.shape[:2]
        resized = (w, h) != self.size
        if resized:
            self._pixels = np.empty((h, w, CHANNELS), dtype=np.uint8)

        np.copyto(self._pixels, cv2.cvtColor(frame, code))
        self.frame_index = frame_data.frame_index
        self.timestamp = frame_data.timestamp
        return resized

    def sample(self, x: int, y: int) -> Tuple[int, int, int, int]:
        """Return the (r, g, b, a) sample at integer pixel coordinates."""
        r, g, b, a = self._pixels[y, x]
        return int(r), int(g), int(b), int(a)

    def to_bgr(self) -> np.ndarray:
        """Convert back to a BGR array (for drawing/display and ML backends)."""
        return cv2.cvtColor(self._pixels, cv2.COLOR_RGBA2BGR)
