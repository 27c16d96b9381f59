"""
Smoke tests for typed models and adapters.
"""

import numpy as np
import pytest

from errors import DetectionTransientError, DeviceError, DeviceErrorReason, MismatchError, ValidationError
from models.frame import FrameData
from models.detection import BoundingBox, DetectionResult
from models.signature import FaceSignature, MatchResult
from models.tick import TickResult


class TestBoundingBox:
    def test_properties(self):
        bbox = BoundingBox(x1=100, y1=100, x2=200, y2=150)
        assert bbox.width == 100
        assert bbox.height == 50
        assert bbox.center == (150.0, 125.0)
        assert bbox.area == 5000

    def test_as_tuple(self):
        bbox = BoundingBox(x1=10.5, y1=20.5, x2=30.5, y2=40.5)
        assert bbox.as_tuple() == (10.5, 20.5, 30.5, 40.5)
        assert bbox.as_int_tuple() == (10, 20, 30, 40)

    def test_from_xywh(self):
        bbox = BoundingBox.from_xywh(x=240, y=160, w=160, h=160)
        assert bbox.x2 == 400
        assert bbox.y2 == 320


class TestDetectionResult:
    def test_absent(self):
        result = DetectionResult.absent(confidence=0.2)
        assert result.present is False
        assert result.region is None
        assert result.has_descriptor is False
        assert result.confidence == 0.2

    def test_with_descriptor_freezes_values(self):
        values = [0.1, 0.2]
        result = DetectionResult.with_descriptor(BoundingBox(0, 0, 1, 1), values)
        values.append(0.3)

        assert result.present is True
        assert result.descriptor == (0.1, 0.2)
        assert result.has_descriptor is True

    def test_empty_descriptor_is_not_available(self):
        result = DetectionResult(present=True, descriptor=())
        assert result.has_descriptor is False


class TestFrameData:
    def test_from_numpy(self):
        frame = np.zeros((480, 640, 3), dtype=np.uint8)
        fd = FrameData.from_numpy(frame, timestamp=1.0, frame_index=3, source="cam")
        assert fd.size == (640, 480)
        assert fd.channels == 3
        assert fd.frame_index == 3

    def test_grayscale_channels(self):
        fd = FrameData.from_numpy(np.zeros((10, 20), dtype=np.uint8), timestamp=0.0)
        assert fd.channels == 1
        assert fd.size == (20, 10)

    @pytest.mark.parametrize("shape", [(4, 4, 2), (4,), (2, 2, 2, 3)])
    def test_rejects_non_image(self, shape):
        with pytest.raises(ValueError):
            FrameData.from_numpy(np.zeros(shape, dtype=np.uint8), timestamp=0.0)


class TestSignature:
    def test_to_record_shape(self):
        sig = FaceSignature(id="1700000000000", name="Alice", saved_at="01/02/2024, 03:04:05 PM", descriptor=(0.5, 0.25))
        assert sig.to_record() == {
            "id": "1700000000000",
            "name": "Alice",
            "savedAt": "01/02/2024, 03:04:05 PM",
            "descriptor": [0.5, 0.25],
        }

    def test_match_describe_rounds_distance(self):
        sig = FaceSignature(id="1", name="Alice", saved_at="", descriptor=(0.0,))
        match = MatchResult(signature=sig, distance=0.4249)
        assert match.label == "Alice"
        assert match.signature_id == "1"
        assert match.describe() == "Alice (0.42)"


class TestTickResult:
    def test_to_dict_with_match(self):
        sig = FaceSignature(id="7", name="Bob", saved_at="", descriptor=(0.0,))
        detection = DetectionResult.with_descriptor(BoundingBox(1, 2, 3, 4), [0.0], confidence=0.9)
        tick = TickResult(frame_index=5, timestamp=10.0, detection=detection, match=MatchResult(sig, 0.1))

        d = tick.to_dict()

        assert d["present"] is True
        assert d["region"] == [1, 2, 3, 4]
        assert d["match"] == {"id": "7", "label": "Bob", "distance": 0.1}
        assert tick.descriptor_available is True

    def test_to_dict_motion(self):
        tick = TickResult(frame_index=1, timestamp=0.0, detection=DetectionResult(present=True, confidence=0.3))

        d = tick.to_dict()

        assert d["region"] is None
        assert d["match"] is None
        assert tick.descriptor_available is False


class TestErrors:
    def test_device_error_reason(self):
        err = DeviceError(DeviceErrorReason.BUSY, "camera in use")
        assert err.reason is DeviceErrorReason.BUSY
        assert str(err) == "Busy: camera in use"

    def test_device_error_without_message(self):
        assert str(DeviceError(DeviceErrorReason.NO_DEVICE)) == "NoDevice"

    def test_transient_error_wraps_cause(self):
        cause = RuntimeError("boom")
        err = DetectionTransientError(12, cause)
        assert err.frame_index == 12
        assert err.cause is cause
        assert "boom" in str(err)

    @pytest.mark.parametrize("cls", [ValidationError, MismatchError])
    def test_value_errors(self, cls):
        assert issubclass(cls, ValueError)
