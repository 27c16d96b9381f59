"""
ML descriptor detector.

The face model is a black box behind the DescriptorBackend protocol: an image
goes in, a list of scored faces with 128-length descriptors comes out. The
bundled backend runs OpenCV's YuNet face detector and SFace recognizer.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import List, Optional, Protocol, Tuple

import cv2
import numpy as np

from models.detection import BoundingBox, DetectionResult
from observation.frame_buffer import FrameBuffer
from .base import Detector

DESCRIPTOR_LENGTH = 128


def unit_descriptor(feature: np.ndarray) -> Tuple[float, ...]:
    """
    Scale a recognizer feature to unit length.

    SFace features are unnormalised; the Euclidean match thresholds assume
    unit-length descriptors (distance 0 to 2).
    """
    v = np.asarray(feature, dtype=np.float64).ravel()
    v = v / (np.linalg.norm(v) + 1e-9)
    return tuple(float(x) for x in v)


@dataclass(frozen=True)
class FaceObservation:
    """One face found by a backend, in original frame pixel coordinates."""
    bbox: BoundingBox
    score: float
    descriptor: Tuple[float, ...]


class DescriptorBackend(Protocol):
    def detect_faces(self, frame_bgr: np.ndarray) -> List[FaceObservation]:
        ...


@dataclass(frozen=True)
class YuNetSFaceConfig:
    detector_model: str
    recognizer_model: str
    input_size: int = 320
    score_threshold: float = 0.5
    nms_threshold: float = 0.3
    top_k: int = 5000


class YuNetSFaceBackend(DescriptorBackend):
    """
    OpenCV FaceDetectorYN + FaceRecognizerSF.

    Frames are downscaled so the longer side equals input_size before
    detection; boxes and landmarks are scaled back before alignment so the
    recognizer sees full-resolution crops.
    """

    def __init__(self, cfg: YuNetSFaceConfig):
        self.cfg = cfg
        for path in (cfg.detector_model, cfg.recognizer_model):
            if not os.path.exists(path):
                raise FileNotFoundError(
                    f"Face model not found: {path}. Download the YuNet/SFace ONNX models "
                    "or switch detection.backend to 'heuristic'."
                )

        size = (cfg.input_size, cfg.input_size)
        self._detector = cv2.FaceDetectorYN.create(
            cfg.detector_model, "", size, cfg.score_threshold, cfg.nms_threshold, cfg.top_k
        )
        self._recognizer = cv2.FaceRecognizerSF.create(cfg.recognizer_model, "")
        logging.info(
            f"Face models loaded: detector={cfg.detector_model}, recognizer={cfg.recognizer_model}, "
            f"input_size={cfg.input_size}"
        )

    def detect_faces(self, frame_bgr: np.ndarray) -> List[FaceObservation]:
        h, w = frame_bgr.shape[:2]
        scale = self.cfg.input_size / max(w, h)
        small_w, small_h = max(1, int(round(w * scale))), max(1, int(round(h * scale)))
        small = cv2.resize(frame_bgr, (small_w, small_h), interpolation=cv2.INTER_LINEAR)

        self._detector.setInputSize((small_w, small_h))
        _, faces = self._detector.detect(small)
        if faces is None or len(faces) == 0:
            return []

        out: List[FaceObservation] = []
        for row in faces:
            face_info = row.astype(np.float32).copy()
            # columns 0-13 are x, y, w, h and five landmark (x, y) pairs; 14 is the score
            face_info[:14] /= scale
            aligned = self._recognizer.alignCrop(frame_bgr, face_info)
            feature = self._recognizer.feature(aligned)

            x, y, bw, bh = (float(v) for v in face_info[:4])
            out.append(
                FaceObservation(
                    bbox=BoundingBox.from_xywh(x, y, bw, bh),
                    score=float(face_info[14]),
                    descriptor=unit_descriptor(feature),
                )
            )
        return out


class MLDescriptorDetector(Detector):
    """
    Surfaces the first face reported by the backend.

    Only the primary face is passed on to matching; a primary face scoring
    below score_threshold counts as no face.
    """

    name = "descriptor"
    produces_descriptor = True

    def __init__(self, backend: DescriptorBackend, score_threshold: float = 0.5):
        self._backend = backend
        self.score_threshold = score_threshold

    def detect(self, current: FrameBuffer, previous: Optional[FrameBuffer] = None) -> DetectionResult:
        if current.is_empty:
            return DetectionResult.absent()

        faces = self._backend.detect_faces(current.to_bgr())
        if not faces:
            return DetectionResult.absent()

        primary = faces[0]
        if primary.score < self.score_threshold:
            return DetectionResult.absent(confidence=primary.score)

        if len(primary.descriptor) != DESCRIPTOR_LENGTH:
            logging.debug(
                f"Backend descriptor has {len(primary.descriptor)} components, expected {DESCRIPTOR_LENGTH}"
            )

        return DetectionResult.with_descriptor(
            region=primary.bbox,
            descriptor=primary.descriptor,
            confidence=primary.score,
        )
