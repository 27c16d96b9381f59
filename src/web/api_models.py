from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from models.signature import FaceSignature


class StatusResponse(BaseModel):
    running: bool = Field(..., description="True while the detection loop is ticking")
    detector: str = Field(..., description="descriptor|heuristic|motion")
    matcher: str = Field(..., description="labeled|nearest")
    frames: int = Field(0, description="Frames processed since the loop started")
    transient_errors: int = Field(0, description="Ticks skipped because detection failed")
    present: bool = Field(False, description="Presence flag of the latest tick")
    match: Optional[str] = Field(None, description="Label of the current match")
    distance: Optional[float] = Field(None, description="Distance of the current match")
    sensitivity: Optional[int] = Field(None, description="Motion sensitivity (motion detector only)")
    signatures: int = Field(0, description="Enrolled signature count")
    last_error: Optional[str] = None


class SignatureSummary(BaseModel):
    """A registry entry without its descriptor."""
    id: str
    name: str
    savedAt: str
    descriptor_length: int

    @classmethod
    def from_signature(cls, signature: FaceSignature) -> "SignatureSummary":
        return cls(
            id=signature.id,
            name=signature.name,
            savedAt=signature.saved_at,
            descriptor_length=len(signature.descriptor),
        )


class EnrollRequest(BaseModel):
    name: str = Field(..., description="Label for the face currently in view")


class SensitivityRequest(BaseModel):
    value: int = Field(..., description="Per-channel motion threshold, 5..50")


class SensitivityResponse(BaseModel):
    sensitivity: int


class ImportResponse(BaseModel):
    imported: int
