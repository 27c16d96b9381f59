"""
Debug overlay for --display mode.
"""

from __future__ import annotations

import cv2
import numpy as np

from models.tick import TickResult

COLOR_MATCHED = (0, 255, 0)  # Green
COLOR_UNMATCHED = (255, 0, 0)  # Blue
COLOR_MOTION = (0, 0, 255)  # Red


def annotate(frame: np.ndarray, tick: TickResult) -> np.ndarray:
    """Draw the detected region and match label onto a BGR frame (in place)."""
    if not tick.present:
        return frame

    if tick.region is None:
        cv2.putText(frame, "Motion Detected!", (10, 30), cv2.FONT_HERSHEY_SIMPLEX, 0.8, COLOR_MOTION, 2)
        return frame

    x1, y1, x2, y2 = tick.region.as_int_tuple()
    color = COLOR_MATCHED if tick.match is not None else COLOR_UNMATCHED
    cv2.rectangle(frame, (x1, y1), (x2, y2), color, 3)

    label = tick.match.describe() if tick.match is not None else "Face Detected"
    cv2.putText(frame, label, (x1, max(y1 - 10, 15)), cv2.FONT_HERSHEY_SIMPLEX, 0.6, color, 2)
    return frame
