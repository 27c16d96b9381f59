"""
Pixel-difference motion detector.

Compares every 4th pixel of the current RGBA frame against the previous one.
A pixel counts as changed when any colour channel moved by more than the
sensitivity threshold; motion is reported when more than 1% of the sampled
pixels changed.
"""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from models.detection import DetectionResult
from observation.frame_buffer import CHANNELS, FrameBuffer
from .base import Detector

MIN_SENSITIVITY = 5
MAX_SENSITIVITY = 50
DEFAULT_SENSITIVITY = 20

PIXEL_STEP = 4
BYTE_STRIDE = PIXEL_STEP * CHANNELS
MOTION_FRACTION = 0.01


def validate_sensitivity(value: int) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        raise ValueError(f"sensitivity must be an integer, got {value!r}")
    if not (MIN_SENSITIVITY <= value <= MAX_SENSITIVITY):
        raise ValueError(
            f"sensitivity must be between {MIN_SENSITIVITY} and {MAX_SENSITIVITY}, got {value}"
        )
    return int(value)


class MotionDiffDetector(Detector):
    """Frame differencing against the previous tick's buffer. Produces no descriptor."""

    name = "motion"
    uses_previous_frame = True

    def __init__(self, sensitivity: int = DEFAULT_SENSITIVITY):
        self._sensitivity = validate_sensitivity(sensitivity)

    @property
    def sensitivity(self) -> int:
        return self._sensitivity

    @sensitivity.setter
    def sensitivity(self, value: int) -> None:
        self._sensitivity = validate_sensitivity(value)
        logging.info(f"Motion sensitivity set to {self._sensitivity}")

    def changed_pixels(self, current: FrameBuffer, previous: FrameBuffer) -> int:
        """Number of sampled pixels whose R, G or B moved by more than the sensitivity."""
        cur = current.data[::BYTE_STRIDE], current.data[1::BYTE_STRIDE], current.data[2::BYTE_STRIDE]
        prev = previous.data[::BYTE_STRIDE], previous.data[1::BYTE_STRIDE], previous.data[2::BYTE_STRIDE]

        changed = np.zeros(cur[0].shape, dtype=bool)
        for c, p in zip(cur, prev):
            diff = np.abs(c.astype(np.int16) - p.astype(np.int16))
            changed |= diff > self._sensitivity
        return int(np.count_nonzero(changed))

    def detect(self, current: FrameBuffer, previous: Optional[FrameBuffer] = None) -> DetectionResult:
        if previous is None or not current.same_size(previous) or current.is_empty:
            return DetectionResult.absent()

        sampled = current.data.size / BYTE_STRIDE
        changed = self.changed_pixels(current, previous)
        ratio = changed / sampled if sampled else 0.0
        return DetectionResult(
            present=changed > MOTION_FRACTION * sampled,
            confidence=ratio,
        )
