"""
Per-tick result delivered to detection loop observers.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from .detection import BoundingBox, DetectionResult
from .signature import MatchResult


@dataclass(frozen=True)
class TickResult:
    """
    Observable outcome of one detection loop tick.

    Attributes:
        frame_index: Frame number reported by the source.
        timestamp: Capture timestamp of the frame.
        detection: Raw detector output for this tick.
        match: Registry match, if a descriptor was produced and matched.
    """
    frame_index: int
    timestamp: float
    detection: DetectionResult
    match: Optional[MatchResult] = None

    @property
    def present(self) -> bool:
        return self.detection.present

    @property
    def region(self) -> Optional[BoundingBox]:
        return self.detection.region

    @property
    def descriptor_available(self) -> bool:
        return self.detection.has_descriptor

    def to_dict(self) -> Dict[str, Any]:
        region = self.region.as_tuple() if self.region is not None else None
        return {
            "frame_index": self.frame_index,
            "timestamp": self.timestamp,
            "present": self.present,
            "region": list(region) if region is not None else None,
            "confidence": self.detection.confidence,
            "match": (
                {
                    "id": self.match.signature_id,
                    "label": self.match.label,
                    "distance": self.match.distance,
                }
                if self.match is not None
                else None
            ),
        }
