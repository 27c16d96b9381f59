"""
Error taxonomy for the face watch pipeline.

- DeviceError: the capture device could not be opened. Terminal for the session.
- ValidationError: malformed enrollment/import input. Registry is left unchanged.
- DetectionTransientError: a single tick failed to preprocess/detect. The loop continues.
- MismatchError: descriptor length mismatch during matching. Never leaves the matcher.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class DeviceErrorReason(str, Enum):
    PERMISSION_DENIED = "PermissionDenied"
    NO_DEVICE = "NoDevice"
    BUSY = "Busy"


class DeviceError(RuntimeError):
    """Raised by FrameSource.open() when the capture device is unavailable."""

    def __init__(self, reason: DeviceErrorReason, message: Optional[str] = None):
        self.reason = reason
        super().__init__(message or reason.value)

    def __str__(self) -> str:
        detail = self.args[0] if self.args else ""
        if detail and detail != self.reason.value:
            return f"{self.reason.value}: {detail}"
        return self.reason.value


class ValidationError(ValueError):
    """Malformed signature input (empty name, missing descriptor, bad import batch)."""


class DetectionTransientError(RuntimeError):
    """A single tick's preprocess/detect step failed."""

    def __init__(self, frame_index: int, cause: BaseException):
        self.frame_index = frame_index
        self.cause = cause
        super().__init__(f"tick {frame_index} failed: {cause}")


class MismatchError(ValueError):
    """Descriptor lengths differ."""
