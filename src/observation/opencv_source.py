"""
OpenCV-based frame source.

Supports:
- USB webcams, selected by index or by facing mode (front/back)
- RTSP/IP cameras (device_id as str URL)
- Video files (device_id as file path)
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from typing import Optional, Union

import cv2

from errors import DeviceError, DeviceErrorReason
from models.config import CameraConfig
from models.frame import FrameData
from .base import FrameSource, FrameSourceConfig, IDEAL_HEIGHT, IDEAL_WIDTH


@dataclass
class OpenCVSourceConfig(FrameSourceConfig):
    """
    Configuration for OpenCV-based frame sources.

    Attributes:
        device_id: Camera index (int), RTSP URL (str), or file path (str).
            None resolves the index from facing_mode.
        front_device_id: Camera index used for facing_mode="front".
        back_device_id: Camera index used for facing_mode="back".
        mirror: Flip front-facing camera frames horizontally.
        open_timeout_ms: Upper bound for opening a network/device capture.
        read_timeout_ms: Upper bound for a single frame grab.
        buffer_size: OpenCV capture buffer size (reduces latency for live feeds).
    """
    device_id: Optional[Union[int, str]] = None
    front_device_id: int = 0
    back_device_id: int = 1
    mirror: bool = True
    open_timeout_ms: int = 5000
    read_timeout_ms: int = 1000
    buffer_size: int = 1

    @classmethod
    def from_camera_config(cls, camera: CameraConfig, source_id: str = "camera") -> "OpenCVSourceConfig":
        """
        Adapter: Create OpenCVSourceConfig from the typed camera section.

        Args:
            camera: Camera section of the application Config.
            source_id: Identifier for this source.
        """
        width, height = camera.resolution or [IDEAL_WIDTH, IDEAL_HEIGHT]
        return cls(
            source_id=source_id,
            facing_mode=camera.facing_mode,
            preferred_width=int(width),
            preferred_height=int(height),
            fps=camera.fps,
            device_id=camera.device_id,
            front_device_id=camera.front_device_id,
            back_device_id=camera.back_device_id,
            mirror=camera.mirror,
            open_timeout_ms=camera.open_timeout_ms,
            read_timeout_ms=camera.read_timeout_ms,
        )


class OpenCVSource(FrameSource):
    """
    OpenCV-based frame source for cameras and video files.

    Wraps cv2.VideoCapture to provide frames as FrameData objects.
    Opening failures are reported once as DeviceError and never retried.

    Example:
        config = OpenCVSourceConfig(facing_mode="front")
        with OpenCVSource(config) as source:
            for frame_data in source:
                process(frame_data.frame)
    """

    def __init__(self, config: OpenCVSourceConfig):
        super().__init__(config)
        self._opencv_config = config
        self._cap: Optional[cv2.VideoCapture] = None

    @property
    def device_id(self) -> Union[int, str]:
        cfg = self._opencv_config
        if cfg.device_id is not None:
            return cfg.device_id
        return cfg.front_device_id if cfg.facing_mode == "front" else cfg.back_device_id

    @property
    def is_rtsp(self) -> bool:
        """Check if this is an RTSP stream."""
        return isinstance(self.device_id, str) and (
            self.device_id.startswith("rtsp://") or
            self.device_id.startswith("rtsps://")
        )

    @property
    def is_file(self) -> bool:
        """Check if this is a video file."""
        return (
            isinstance(self.device_id, str) and
            not self.is_rtsp and
            os.path.exists(self.device_id)
        )

    @property
    def should_mirror(self) -> bool:
        return (
            self._opencv_config.mirror
            and self._opencv_config.facing_mode == "front"
            and isinstance(self.device_id, int)
        )

    def open(self) -> None:
        """Open the capture device or raise DeviceError."""
        if self._is_open:
            return

        self._check_device_permissions()

        cfg = self._opencv_config
        params = [
            cv2.CAP_PROP_OPEN_TIMEOUT_MSEC, cfg.open_timeout_ms,
            cv2.CAP_PROP_READ_TIMEOUT_MSEC, cfg.read_timeout_ms,
        ]
        cap = cv2.VideoCapture(self.device_id, cv2.CAP_ANY, params)

        if not cap.isOpened():
            cap.release()
            raise DeviceError(
                DeviceErrorReason.NO_DEVICE,
                f"could not open capture device {self.device_id!r}",
            )

        # Properties only make sense for local cameras (not streams/files)
        if isinstance(self.device_id, int):
            cap.set(cv2.CAP_PROP_FRAME_WIDTH, cfg.preferred_width)
            cap.set(cv2.CAP_PROP_FRAME_HEIGHT, cfg.preferred_height)
            if cfg.fps:
                cap.set(cv2.CAP_PROP_FPS, cfg.fps)
            cap.set(cv2.CAP_PROP_BUFFERSIZE, cfg.buffer_size)

        # A device held by another process opens but refuses to deliver frames
        if not self.is_file and not cap.grab():
            cap.release()
            raise DeviceError(
                DeviceErrorReason.BUSY,
                f"capture device {self.device_id!r} opened but delivers no frames",
            )

        self._cap = cap
        self._is_open = True
        self._frame_index = 0

        actual_w = cap.get(cv2.CAP_PROP_FRAME_WIDTH)
        actual_h = cap.get(cv2.CAP_PROP_FRAME_HEIGHT)
        logging.info(
            f"OpenCVSource opened: source_id={self.source_id}, device={self.device_id}, "
            f"facing={cfg.facing_mode}, requested=({cfg.preferred_width}x{cfg.preferred_height}), "
            f"actual=({actual_w}x{actual_h})"
        )

    def _check_device_permissions(self) -> None:
        """Map unreadable V4L2 device nodes to PermissionDenied."""
        if not isinstance(self.device_id, int):
            return
        node = f"/dev/video{self.device_id}"
        if os.path.exists(node) and not os.access(node, os.R_OK | os.W_OK):
            raise DeviceError(
                DeviceErrorReason.PERMISSION_DENIED,
                f"no read/write access to {node}",
            )

    def read(self) -> Optional[FrameData]:
        """Read the next frame, or None if the grab failed or timed out."""
        if not self._is_open or self._cap is None:
            return None

        ret, frame = self._cap.read()
        if not ret or frame is None:
            if self.is_file:
                logging.info("End of video file reached")
            else:
                logging.warning(f"Frame grab failed on device {self.device_id}")
            return None

        mirrored = self.should_mirror
        if mirrored:
            frame = cv2.flip(frame, 1)

        self._frame_index += 1
        return FrameData.from_numpy(
            frame,
            timestamp=time.time(),
            frame_index=self._frame_index,
            source=self.source_id,
            mirrored=mirrored,
        )

    def close(self) -> None:
        """Close the capture device and release resources."""
        if self._cap is not None:
            self._cap.release()
            self._cap = None
        if self._is_open:
            logging.info(f"OpenCVSource closed: source_id={self.source_id}")
        self._is_open = False


def create_source_from_config(camera: CameraConfig, source_id: str = "camera") -> FrameSource:
    """Build the frame source named by camera.backend."""
    if camera.backend != "opencv":
        raise ValueError(f"Unsupported camera backend: {camera.backend}")
    return OpenCVSource(OpenCVSourceConfig.from_camera_config(camera, source_id=source_id))
