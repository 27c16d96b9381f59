"""
Heuristic face-region detector.

Judges the centre square of the frame (one third of the shorter side) by its
average colour, then encodes a fixed 16 x 8 grid of luma samples as a
128-length signature. Not a real face detector: the arithmetic is kept exact
and reproducible so signatures stay comparable across runs.
"""

from __future__ import annotations

import math
from typing import Optional, Tuple

import numpy as np

from models.detection import BoundingBox, DetectionResult
from observation.frame_buffer import FrameBuffer
from .base import Detector

# Policy constants
REGION_FRACTION = 1 / 3
SAMPLE_STRIDE = 10
MAX_COLOR_VARIANCE = 80.0
MIN_BRIGHTNESS = 80.0
MAX_BRIGHTNESS = 200.0

GRID_ROWS = 16
GRID_COLS = 8
DESCRIPTOR_LENGTH = GRID_ROWS * GRID_COLS
LUMA_WEIGHTS = (0.3, 0.6, 0.1)


def center_region(width: int, height: int) -> Tuple[float, float, float]:
    """Return (x, y, side) of the centred square analysed by the heuristic."""
    side = min(width, height) * REGION_FRACTION
    x = width // 2 - side / 2
    y = height // 2 - side / 2
    return x, y, side


def channel_means(buffer: FrameBuffer, x: float, y: float, side: float) -> Optional[Tuple[float, float, float]]:
    """Mean R, G, B over every SAMPLE_STRIDE-th pixel of the square, or None if nothing was sampled."""
    x0 = math.floor(x)
    y0 = math.floor(y)
    xs = np.arange(x0, x0 + side, SAMPLE_STRIDE).astype(np.int64)
    ys = np.arange(y0, y0 + side, SAMPLE_STRIDE).astype(np.int64)
    xs = xs[(xs >= 0) & (xs < buffer.width)]
    ys = ys[(ys >= 0) & (ys < buffer.height)]
    if xs.size == 0 or ys.size == 0:
        return None

    samples = buffer.pixels[np.ix_(ys, xs)][..., :3].astype(np.float64)
    r, g, b = samples.reshape(-1, 3).mean(axis=0)
    return float(r), float(g), float(b)


def color_variance(r: float, g: float, b: float) -> float:
    return abs(r - g) + abs(r - b) + abs(g - b)


def brightness(r: float, g: float, b: float) -> float:
    return (r + g + b) / 3


def is_face_like(r: float, g: float, b: float) -> bool:
    return (
        color_variance(r, g, b) < MAX_COLOR_VARIANCE
        and MIN_BRIGHTNESS < brightness(r, g, b) < MAX_BRIGHTNESS
    )


def region_signature(buffer: FrameBuffer, x: float, y: float, side: float) -> Tuple[float, ...]:
    """
    Encode the square as 128 luma samples on a 16-row x 8-column grid.

    Component i samples column (i % 8) / 8 and row (i // 8) / 16 of the square.
    Samples falling outside the frame encode as 0.
    """
    idx = np.arange(DESCRIPTOR_LENGTH)
    cols = (idx % GRID_COLS) / GRID_COLS
    rows = (idx // GRID_COLS) / GRID_ROWS
    px = np.floor(x + side * cols).astype(np.int64)
    py = np.floor(y + side * rows).astype(np.int64)

    inside = (px >= 0) & (px < buffer.width) & (py >= 0) & (py < buffer.height)
    rgb = buffer.pixels[np.clip(py, 0, buffer.height - 1), np.clip(px, 0, buffer.width - 1), :3]
    rgb = rgb.astype(np.float64)

    wr, wg, wb = LUMA_WEIGHTS
    values = (rgb[:, 0] * wr + rgb[:, 1] * wg + rgb[:, 2] * wb) / 255
    values[~inside] = 0.0
    return tuple(float(v) for v in values)


class HeuristicRegionDetector(Detector):
    """Colour heuristic over the centre of the frame, producing a 128-length descriptor."""

    name = "heuristic"
    produces_descriptor = True

    def detect(self, current: FrameBuffer, previous: Optional[FrameBuffer] = None) -> DetectionResult:
        if current.is_empty:
            return DetectionResult.absent()

        x, y, side = center_region(current.width, current.height)
        means = channel_means(current, x, y, side)
        if means is None or not is_face_like(*means):
            return DetectionResult.absent()

        return DetectionResult.with_descriptor(
            region=BoundingBox.from_xywh(x, y, side, side),
            descriptor=region_signature(current, x, y, side),
            confidence=1.0,
        )
