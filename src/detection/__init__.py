"""
Face Watch - Detection Module

Detector variants sharing the detect(current, previous) -> DetectionResult contract.
"""

from .base import Detector
from .descriptor import MLDescriptorDetector, DescriptorBackend, FaceObservation
from .heuristic import HeuristicRegionDetector
from .motion import MotionDiffDetector
from .factory import create_detector

__all__ = [
    "Detector",
    "MLDescriptorDetector",
    "DescriptorBackend",
    "FaceObservation",
    "HeuristicRegionDetector",
    "MotionDiffDetector",
    "create_detector",
]
