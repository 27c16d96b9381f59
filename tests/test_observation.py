"""
Tests for observation layer.
"""

from unittest.mock import patch

import numpy as np
import pytest

from conftest import MockSource, frame_data, solid_frame
from errors import DeviceError, DeviceErrorReason
from models.config import CameraConfig
from observation.base import FrameSourceConfig
from observation.frame_buffer import FrameBuffer
from observation.opencv_source import OpenCVSource, OpenCVSourceConfig, create_source_from_config


class TestFrameSourceConfig:
    def test_default_config(self):
        config = FrameSourceConfig()
        assert config.source_id == "default"
        assert config.facing_mode == "front"
        assert (config.preferred_width, config.preferred_height) == (640, 480)
        assert config.fps is None

    def test_invalid_facing_mode(self):
        with pytest.raises(ValueError, match="facing_mode"):
            FrameSourceConfig(facing_mode="left")


class TestOpenCVSourceConfig:
    def test_from_camera_config(self):
        camera = CameraConfig.from_dict({
            "device_id": "rtsp://192.168.1.100/stream",
            "facing_mode": "back",
            "resolution": [1280, 720],
            "fps": 30,
            "mirror": False,
        })
        config = OpenCVSourceConfig.from_camera_config(camera, source_id="door-cam")

        assert config.source_id == "door-cam"
        assert config.device_id == "rtsp://192.168.1.100/stream"
        assert config.facing_mode == "back"
        assert (config.preferred_width, config.preferred_height) == (1280, 720)
        assert config.mirror is False

    def test_defaults_request_ideal_size(self):
        config = OpenCVSourceConfig.from_camera_config(CameraConfig())
        assert (config.preferred_width, config.preferred_height) == (640, 480)
        assert config.device_id is None


class TestMockSource:
    def test_source_lifecycle(self):
        frames = [np.zeros((100, 100, 3), dtype=np.uint8) for _ in range(3)]
        source = MockSource(frames, FrameSourceConfig(source_id="test"))

        assert not source.is_open
        source.open()
        assert source.is_open
        assert source.frame_index == 0

        fd = source.read()
        assert fd is not None
        assert fd.source == "test"
        assert fd.frame_index == 1

        source.close()
        assert not source.is_open

    def test_context_manager(self):
        frames = [np.zeros((50, 50, 3), dtype=np.uint8) for _ in range(2)]

        with MockSource(frames) as source:
            assert source.is_open
            assert sum(1 for _ in source) == 2

        assert not source.is_open

    def test_iteration_requires_open(self):
        source = MockSource([])

        with pytest.raises(RuntimeError, match="must be open"):
            list(source)


class TestOpenCVSource:
    def test_facing_mode_selects_device(self):
        front = OpenCVSource(OpenCVSourceConfig(facing_mode="front", front_device_id=2, back_device_id=3))
        back = OpenCVSource(OpenCVSourceConfig(facing_mode="back", front_device_id=2, back_device_id=3))
        assert front.device_id == 2
        assert back.device_id == 3

    def test_explicit_device_id_wins(self):
        source = OpenCVSource(OpenCVSourceConfig(facing_mode="back", device_id=0))
        assert source.device_id == 0

    def test_rtsp_detection(self):
        source = OpenCVSource(OpenCVSourceConfig(device_id="rtsp://192.168.1.1/stream"))
        assert source.is_rtsp is True
        assert source.is_file is False
        assert source.should_mirror is False

    def test_front_camera_mirrors(self):
        assert OpenCVSource(OpenCVSourceConfig(device_id=0)).should_mirror is True
        assert OpenCVSource(OpenCVSourceConfig(device_id=0, mirror=False)).should_mirror is False
        assert OpenCVSource(OpenCVSourceConfig(device_id=0, facing_mode="back")).should_mirror is False

    @patch("observation.opencv_source.cv2.VideoCapture")
    def test_open_missing_device(self, mock_capture):
        mock_capture.return_value.isOpened.return_value = False
        source = OpenCVSource(OpenCVSourceConfig(device_id=97))

        with pytest.raises(DeviceError) as exc_info:
            source.open()

        assert exc_info.value.reason is DeviceErrorReason.NO_DEVICE
        assert not source.is_open

    @patch("observation.opencv_source.cv2.VideoCapture")
    def test_open_busy_device(self, mock_capture):
        cap = mock_capture.return_value
        cap.isOpened.return_value = True
        cap.grab.return_value = False
        source = OpenCVSource(OpenCVSourceConfig(device_id=97))

        with pytest.raises(DeviceError) as exc_info:
            source.open()

        assert exc_info.value.reason is DeviceErrorReason.BUSY
        cap.release.assert_called_once()

    @patch("observation.opencv_source.cv2.VideoCapture")
    def test_read_mirrors_and_counts(self, mock_capture):
        frame = np.zeros((4, 6, 3), dtype=np.uint8)
        frame[:, 0] = 255
        cap = mock_capture.return_value
        cap.isOpened.return_value = True
        cap.grab.return_value = True
        cap.get.return_value = 0
        cap.read.return_value = (True, frame)

        with OpenCVSource(OpenCVSourceConfig(device_id=97)) as source:
            fd = source.read()

        assert fd.frame_index == 1
        assert fd.size == (6, 4)
        assert fd.mirrored is True
        assert fd.frame[0, -1, 0] == 255
        assert fd.frame[0, 0, 0] == 0
        cap.release.assert_called_once()

    @patch("observation.opencv_source.cv2.VideoCapture")
    def test_read_failure_returns_none(self, mock_capture):
        cap = mock_capture.return_value
        cap.isOpened.return_value = True
        cap.grab.return_value = True
        cap.get.return_value = 0
        cap.read.return_value = (False, None)

        source = OpenCVSource(OpenCVSourceConfig(device_id=97))
        source.open()

        assert source.read() is None
        source.close()
        source.close()

    def test_create_source_rejects_unknown_backend(self):
        with pytest.raises(ValueError):
            create_source_from_config(CameraConfig(backend="picamera2"))


class TestFrameBuffer:
    def test_bgr_to_rgba(self):
        buf = FrameBuffer()
        buf.load(frame_data(solid_frame((10, 20, 30), width=4, height=2)))

        assert buf.size == (4, 2)
        assert buf.stride == 16
        assert buf.sample(0, 0) == (30, 20, 10, 255)
        assert buf.data.size == 4 * 2 * 4

    def test_grayscale_and_bgra(self):
        buf = FrameBuffer()
        buf.load(frame_data(np.full((2, 2), 77, dtype=np.uint8)))
        assert buf.sample(1, 1) == (77, 77, 77, 255)

        bgra = np.zeros((2, 2, 4), dtype=np.uint8)
        bgra[:] = (1, 2, 3, 4)
        buf.load(frame_data(bgra))
        assert buf.sample(0, 1) == (3, 2, 1, 4)

    def test_load_reports_resize(self):
        buf = FrameBuffer()
        assert buf.is_empty
        assert buf.load(frame_data(solid_frame(0, 8, 6))) is True
        assert buf.load(frame_data(solid_frame(9, 8, 6))) is False
        assert buf.load(frame_data(solid_frame(9, 4, 6))) is True
        assert buf.size == (4, 6)

    def test_same_size(self):
        a = FrameBuffer(4, 2)
        assert a.same_size(FrameBuffer(4, 2))
        assert not a.same_size(FrameBuffer(2, 4))
        assert not a.same_size(None)

    def test_to_bgr(self):
        frame = solid_frame((10, 20, 30), width=3, height=3)
        buf = FrameBuffer()
        buf.load(frame_data(frame))
        np.testing.assert_array_equal(buf.to_bgr(), frame)

    def test_from_rgba_rejects_wrong_shape(self):
        with pytest.raises(ValueError):
            FrameBuffer.from_rgba(np.zeros((2, 2, 3), dtype=np.uint8))
