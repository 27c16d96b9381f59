"""
Enrolled face signatures and match results.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Tuple


@dataclass(frozen=True)
class FaceSignature:
    """
    A named descriptor enrolled by a user.

    Attributes:
        id: Opaque unique token, increasing by creation time.
        name: Display label. Not required to be unique.
        saved_at: Human-readable creation time (advisory only).
        descriptor: Immutable vector used for matching.
    """
    id: str
    name: str
    saved_at: str
    descriptor: Tuple[float, ...]

    def to_record(self) -> Dict[str, Any]:
        """Convert to the exchanged JSON object shape."""
        return {
            "id": self.id,
            "name": self.name,
            "savedAt": self.saved_at,
            "descriptor": list(self.descriptor),
        }


@dataclass(frozen=True)
class MatchResult:
    """Best registry match for a query descriptor."""
    signature: FaceSignature
    distance: float

    @property
    def label(self) -> str:
        return self.signature.name

    @property
    def signature_id(self) -> str:
        return self.signature.id

    def describe(self) -> str:
        """Label with distance rounded to two places, e.g. 'Alice (0.42)'."""
        return f"{self.label} ({round(self.distance, 2)})"
