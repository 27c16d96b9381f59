"""
Pytest configuration and shared fixtures.
"""

import os
import sys
import time

import numpy as np
import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from models.frame import FrameData  # noqa: E402
from observation.base import FrameSource, FrameSourceConfig  # noqa: E402
from web.state import state as web_state  # noqa: E402


class MockSource(FrameSource):
    """Frame source replaying a fixed list of frames."""

    def __init__(self, frames=None, config: FrameSourceConfig = None):
        super().__init__(config or FrameSourceConfig(source_id="mock"))
        self._frames = list(frames or [])
        self._pos = 0
        self.open_count = 0
        self.close_count = 0

    def open(self) -> None:
        self._is_open = True
        self._pos = 0
        self._frame_index = 0
        self.open_count += 1

    def read(self):
        if not self._is_open or self._pos >= len(self._frames):
            return None

        frame = self._frames[self._pos]
        self._pos += 1
        self._frame_index += 1
        return FrameData.from_numpy(frame, timestamp=time.time(), frame_index=self._frame_index, source=self.source_id)

    def close(self) -> None:
        self._is_open = False
        self.close_count += 1


class EndlessSource(MockSource):
    """Frame source that keeps producing the same frame until closed."""

    def read(self):
        if not self._is_open:
            return None
        self._frame_index += 1
        frame = self._frames[0]
        return FrameData.from_numpy(frame, timestamp=time.time(), frame_index=self._frame_index, source=self.source_id)


def solid_frame(value, width: int = 640, height: int = 480) -> np.ndarray:
    """BGR frame filled with one colour; value is an int (gray) or a (b, g, r) tuple."""
    frame = np.zeros((height, width, 3), dtype=np.uint8)
    frame[:] = value
    return frame


def frame_data(frame: np.ndarray, frame_index: int = 1) -> FrameData:
    return FrameData.from_numpy(frame, timestamp=time.time(), frame_index=frame_index, source="test")


@pytest.fixture
def gray_frame():
    """640x480 mid-gray BGR frame, accepted by the heuristic detector."""
    return solid_frame(128)


@pytest.fixture(autouse=True)
def reset_web_state():
    """The web state is a process-wide singleton."""
    web_state.reset()
    yield
    web_state.reset()


@pytest.fixture
def temp_config_dir(tmp_path):
    """Create a temporary config directory with default.yaml."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()

    default_yaml = config_dir / "default.yaml"
    default_yaml.write_text("""
camera:
  backend: "opencv"
  facing_mode: "front"
  resolution: [640, 480]
  fps: 30

detection:
  backend: "heuristic"
  sensitivity: 20

matching:
  policy: "auto"

web:
  enabled: true
  port: 5000

log_path: "logs/test.log"
log_level: "INFO"
""")

    return config_dir


@pytest.fixture
def valid_config():
    """Return a valid configuration dictionary."""
    return {
        "camera": {
            "backend": "opencv",
            "device_id": 0,
            "facing_mode": "front",
            "resolution": [640, 480],
            "fps": 30,
        },
        "detection": {
            "backend": "heuristic",
            "sensitivity": 20,
        },
        "matching": {
            "policy": "auto",
        },
        "loop": {
            "refresh_hz": 60,
            "max_consecutive_failures": 30,
        },
        "web": {
            "enabled": True,
            "port": 5000,
        },
        "log_path": "logs/test.log",
        "log_level": "INFO",
    }
