"""
Detection interfaces.

We keep this lightweight so the loop can drive any of the detector variants:
- ML descriptor extraction (face detector + recognizer models)
- heuristic colour-region analysis of the frame centre
- pixel-difference motion detection against the previous frame
"""

from __future__ import annotations

from typing import Optional

from models.detection import DetectionResult
from observation.frame_buffer import FrameBuffer


class Detector:
    """
    Detector interface: one RGBA frame (plus the previous one) in, one result out.

    uses_previous_frame tells the detection loop whether it has to retain the
    previous buffer between ticks.
    """

    name: str = "detector"
    uses_previous_frame: bool = False
    produces_descriptor: bool = False

    def detect(self, current: FrameBuffer, previous: Optional[FrameBuffer] = None) -> DetectionResult:
        raise NotImplementedError
