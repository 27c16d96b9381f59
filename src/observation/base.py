"""
FrameSource interface for pluggable live frame sources.

This defines the contract that all frame sources must implement,
enabling the detection loop to work with any capture device:
- USB/CSI cameras (front or back facing)
- RTSP/IP cameras
- Video files (offline replay)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Optional

from models.frame import FrameData

FACING_MODES = ("front", "back")

IDEAL_WIDTH = 640
IDEAL_HEIGHT = 480


@dataclass
class FrameSourceConfig:
    """
    Base configuration for frame sources.

    Attributes:
        source_id: Unique identifier for this source (e.g., "front-camera").
        facing_mode: Which camera to request, "front" (user) or "back" (environment).
        preferred_width: Requested capture width. The device may negotiate another size.
        preferred_height: Requested capture height.
        fps: Target frames per second. None = use source default.
        metadata: Additional source-specific configuration.
    """
    source_id: str = "default"
    facing_mode: str = "front"
    preferred_width: int = IDEAL_WIDTH
    preferred_height: int = IDEAL_HEIGHT
    fps: Optional[int] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.facing_mode not in FACING_MODES:
            raise ValueError(f"facing_mode must be one of {FACING_MODES}, got {self.facing_mode!r}")


class FrameSource(ABC):
    """
    Abstract base class for frame sources.

    Lifecycle:
        1. Create instance with config
        2. Call open() to activate the device (raises DeviceError on failure)
        3. Call read() once per loop tick
        4. Call close() to deactivate the device

    read() must never block the caller indefinitely; a stalled device
    yields None so the loop stays cancellable.

    Can also be used as a context manager:
        with OpenCVSource(config) as source:
            for frame_data in source:
                process(frame_data)
    """

    def __init__(self, config: FrameSourceConfig):
        self._config = config
        self._is_open = False
        self._frame_index = 0

    @property
    def source_id(self) -> str:
        """Unique identifier for this source."""
        return self._config.source_id

    @property
    def config(self) -> FrameSourceConfig:
        return self._config

    @property
    def is_open(self) -> bool:
        """Whether the source is currently open and ready to read."""
        return self._is_open

    @property
    def frame_index(self) -> int:
        """Current frame index (number of frames read since open)."""
        return self._frame_index

    @abstractmethod
    def open(self) -> None:
        """
        Activate the capture device.

        Must be called before read(). Never retried automatically.

        Raises:
            DeviceError: PermissionDenied, NoDevice or Busy.
        """
        pass

    @abstractmethod
    def read(self) -> Optional[FrameData]:
        """
        Read the next frame from the source.

        Returns:
            FrameData for the captured frame, or None if no frame is
            available this tick (stall, end of file, device error).
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """
        Deactivate the device and release its resources.

        Safe to call multiple times.
        """
        pass

    def __enter__(self) -> "FrameSource":
        """Context manager entry - opens the source."""
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit - closes the source."""
        self.close()

    def __iter__(self) -> Iterator[FrameData]:
        """
        Iterate over frames from the source.

        Yields FrameData objects until the source is exhausted or closed.
        The source must be open before iterating.
        """
        if not self._is_open:
            raise RuntimeError("Source must be open before iterating")

        while True:
            frame_data = self.read()
            if frame_data is None:
                break
            yield frame_data
