"""
Build the configured detector variant.
"""

from __future__ import annotations

from models.config import DescriptorConfig, DetectionConfig
from .base import Detector
from .descriptor import MLDescriptorDetector, YuNetSFaceBackend, YuNetSFaceConfig
from .heuristic import HeuristicRegionDetector
from .motion import MotionDiffDetector

BACKENDS = ("descriptor", "heuristic", "motion")


def create_detector(detection: DetectionConfig) -> Detector:
    """
    Create a detector from the `detection` config section.

    Raises:
        ValueError: Unknown backend, or motion sensitivity out of range.
        FileNotFoundError: Descriptor backend selected but models are missing.
    """
    if detection.backend == "heuristic":
        return HeuristicRegionDetector()
    if detection.backend == "motion":
        return MotionDiffDetector(sensitivity=detection.sensitivity)
    if detection.backend == "descriptor":
        dcfg = detection.descriptor or DescriptorConfig()
        model = YuNetSFaceBackend(
            YuNetSFaceConfig(
                detector_model=dcfg.detector_model,
                recognizer_model=dcfg.recognizer_model,
                input_size=int(dcfg.input_size),
                score_threshold=float(dcfg.score_threshold),
                nms_threshold=float(dcfg.nms_threshold),
            )
        )
        return MLDescriptorDetector(model, score_threshold=float(dcfg.score_threshold))
    raise ValueError(f"detection.backend must be one of: {', '.join(BACKENDS)}")
