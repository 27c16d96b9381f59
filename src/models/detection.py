"""
Detection models for per-frame detector output.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple


@dataclass(frozen=True)
class BoundingBox:
    """
    A bounding box in pixel coordinates.

    Attributes:
        x1: Left edge x coordinate.
        y1: Top edge y coordinate.
        x2: Right edge x coordinate.
        y2: Bottom edge y coordinate.
    """
    x1: float
    y1: float
    x2: float
    y2: float

    @property
    def width(self) -> float:
        return self.x2 - self.x1

    @property
    def height(self) -> float:
        return self.y2 - self.y1

    @property
    def center(self) -> Tuple[float, float]:
        return ((self.x1 + self.x2) / 2, (self.y1 + self.y2) / 2)

    @property
    def area(self) -> float:
        return self.width * self.height

    def as_tuple(self) -> Tuple[float, float, float, float]:
        """Return as (x1, y1, x2, y2) tuple."""
        return (self.x1, self.y1, self.x2, self.y2)

    def as_int_tuple(self) -> Tuple[int, int, int, int]:
        """Return as integer (x1, y1, x2, y2) tuple."""
        return (int(self.x1), int(self.y1), int(self.x2), int(self.y2))

    @classmethod
    def from_xywh(cls, x: float, y: float, w: float, h: float) -> "BoundingBox":
        """Create from (x, y, width, height) format."""
        return cls(x1=x, y1=y, x2=x + w, y2=y + h)


@dataclass(frozen=True)
class DetectionResult:
    """
    Output of one detect() call.

    Attributes:
        present: Whether a subject (face or motion) was judged present.
        region: Location of the subject, if the detector localises it.
        descriptor: Fixed-length vector for matching, if the detector produces one.
        confidence: Detector-specific score (face score, changed-pixel ratio).
    """
    present: bool
    region: Optional[BoundingBox] = None
    descriptor: Optional[Tuple[float, ...]] = None
    confidence: float = 0.0

    @classmethod
    def absent(cls, confidence: float = 0.0) -> "DetectionResult":
        return cls(present=False, confidence=confidence)

    @classmethod
    def with_descriptor(
        cls,
        region: BoundingBox,
        descriptor: Sequence[float],
        confidence: float = 1.0,
    ) -> "DetectionResult":
        return cls(
            present=True,
            region=region,
            descriptor=tuple(float(v) for v in descriptor),
            confidence=confidence,
        )

    @property
    def has_descriptor(self) -> bool:
        return self.descriptor is not None and len(self.descriptor) > 0
