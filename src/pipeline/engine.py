"""
Detection loop for the face watch pipeline.

One tick: read a frame -> copy it into the RGBA buffer -> detect -> match
against the registry when a descriptor was produced -> notify observers ->
yield to the scheduler. Ticks run one at a time on a single thread; work from
other threads (HTTP handlers) is queued with submit() and executed at the
next tick boundary.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Future
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

import cv2

from detection.base import Detector
from detection.motion import MotionDiffDetector
from errors import DetectionTransientError, ValidationError
from matching.matcher import Matcher
from models.config import LoopConfig
from models.frame import FrameData
from models.signature import FaceSignature, MatchResult
from models.tick import TickResult
from observation.base import FrameSource
from observation.frame_buffer import FrameBuffer
from registry.registry import SignatureRegistry
from .overlay import annotate
from .scheduler import ImmediateScheduler, RefreshScheduler


class LoopState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"


@dataclass
class DetectionLoopConfig:
    """
    Configuration for the detection loop.

    Attributes:
        max_consecutive_failures: Max empty frame reads in a row before stopping.
        stats_log_interval: Seconds between status log messages.
        display: Show an annotated cv2 window ('q' stops the loop).
    """
    max_consecutive_failures: int = 30
    stats_log_interval: float = 60.0
    display: bool = False


@dataclass
class LoopStats:
    """Runtime statistics for the detection loop."""
    frame_count: int = 0
    present_count: int = 0
    match_count: int = 0
    transient_errors: int = 0
    consecutive_failures: int = 0
    start_time: float = field(default_factory=time.time)
    last_stats_log_time: float = field(default_factory=time.time)


class DetectionLoop:
    """
    Drives FrameSource -> FrameBuffer -> Detector -> Matcher once per tick.

    State: Idle -> Running -> Idle. run() blocks until stop() is called, the
    source runs dry, or the display window is closed; the source is always
    closed before run() returns.

    Example:
        loop = DetectionLoop(source, HeuristicRegionDetector(), registry, NearestMatcher())
        loop.add_observer(lambda tick: print(tick.present, tick.match))
        loop.run()
    """

    def __init__(
        self,
        source: FrameSource,
        detector: Detector,
        registry: SignatureRegistry,
        matcher: Matcher,
        config: Optional[DetectionLoopConfig] = None,
        scheduler: Optional[Any] = None,
    ):
        self.source = source
        self.detector = detector
        self.registry = registry
        self.matcher = matcher
        self.config = config or DetectionLoopConfig()
        self._scheduler = scheduler or RefreshScheduler()
        self.stats = LoopStats()

        self._state = LoopState.IDLE
        self._stop_requested = False
        self._loop_thread: Optional[int] = None
        self._current = FrameBuffer()
        self._previous: Optional[FrameBuffer] = None
        self._last_result: Optional[TickResult] = None
        self._last_match: Optional[MatchResult] = None
        self.last_error: Optional[str] = None

        self._observers: List[Callable[[TickResult], None]] = []
        self._commands_lock = threading.Lock()
        self._commands: List[Tuple[Callable[[], Any], Future]] = []

    @property
    def state(self) -> LoopState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is LoopState.RUNNING

    @property
    def last_result(self) -> Optional[TickResult]:
        return self._last_result

    @property
    def last_match(self) -> Optional[MatchResult]:
        return self._last_match

    def add_observer(self, observer: Callable[[TickResult], None]) -> None:
        """
        Add a callback invoked with the TickResult of every completed tick.

        Observers run on the loop thread; exceptions are logged and ignored.
        """
        self._observers.append(observer)

    def run(self) -> None:
        """
        Open the source and tick until stopped.

        Raises:
            RuntimeError: The loop is already running.
            DeviceError: The source could not be opened (loop returns to Idle).
        """
        with self._commands_lock:
            if self._state is LoopState.RUNNING:
                raise RuntimeError("Detection loop is already running")
            self._state = LoopState.RUNNING
        self._stop_requested = False
        self._loop_thread = threading.get_ident()
        self.stats = LoopStats()
        self.last_error = None

        try:
            self.source.open()
            logging.info(f"Detection loop started: source={self.source.source_id}, detector={self.detector.name}")
            self._scheduler.reset()

            while not self._stop_requested:
                self._drain_commands()

                frame_data = self.source.read()
                if frame_data is None:
                    self.stats.consecutive_failures += 1
                    if self.stats.consecutive_failures >= self.config.max_consecutive_failures:
                        logging.error(
                            f"Too many consecutive failures ({self.stats.consecutive_failures}), stopping"
                        )
                        break
                    self._scheduler.wait_next()
                    continue

                self.stats.consecutive_failures = 0
                tick = self.tick(frame_data)

                if tick is not None and self.config.display:
                    if not self._handle_display(frame_data, tick):
                        break  # User pressed 'q'

                self._handle_periodic_tasks()
                self._scheduler.wait_next()
        except KeyboardInterrupt:
            logging.info("Detection loop interrupted by user")
        finally:
            self._cleanup()

    def stop(self) -> None:
        """Signal the loop to stop after the tick in flight."""
        self._stop_requested = True

    def tick(self, frame_data: FrameData) -> Optional[TickResult]:
        """
        Process one frame. Returns None when the tick failed transiently.
        """
        self.stats.frame_count += 1
        try:
            self._current.load(frame_data)
            if self._previous is not None and not self._current.same_size(self._previous):
                logging.info(
                    f"Frame size changed to {self._current.width}x{self._current.height}, "
                    "discarding previous frame"
                )
                self._previous = None

            detection = self.detector.detect(self._current, self._previous)

            match = None
            if detection.has_descriptor and len(self.registry) > 0:
                match = self.matcher.find_best_match(detection.descriptor, self.registry.all())
        except Exception as e:
            error = DetectionTransientError(frame_data.frame_index, e)
            self.stats.transient_errors += 1
            self.last_error = str(error)
            logging.warning(f"Detection error, continuing with next frame: {error}")
            return None

        result = TickResult(
            frame_index=frame_data.frame_index,
            timestamp=frame_data.timestamp,
            detection=detection,
            match=match,
        )
        self._last_result = result
        self._last_match = match
        if detection.present:
            self.stats.present_count += 1
        if match is not None:
            self.stats.match_count += 1

        if self.detector.uses_previous_frame:
            # Swap instead of copying; the old previous buffer is reused for the next frame
            self._previous, self._current = self._current, (self._previous or FrameBuffer())

        for observer in self._observers:
            try:
                observer(result)
            except Exception as e:
                logging.warning(f"Observer error: {e}")

        return result

    def submit(self, fn: Callable[[], Any]) -> Future:
        """
        Run fn on the loop's timeline.

        While the loop is running (and the caller is not the loop thread) fn
        is queued and executed at the next tick boundary; otherwise it runs
        immediately. The returned Future carries fn's result or exception.
        """
        future: Future = Future()
        with self._commands_lock:
            queued = (
                self._state is LoopState.RUNNING
                and threading.get_ident() != self._loop_thread
            )
            if queued:
                self._commands.append((fn, future))
        if not queued:
            self._execute(fn, future)
        return future

    @staticmethod
    def _execute(fn: Callable[[], Any], future: Future) -> None:
        if not future.set_running_or_notify_cancel():
            return
        try:
            future.set_result(fn())
        except Exception as e:
            future.set_exception(e)

    def _drain_commands(self) -> None:
        with self._commands_lock:
            pending, self._commands = self._commands, []
        for fn, future in pending:
            self._execute(fn, future)

    def enroll_current(self, name: str) -> FaceSignature:
        """
        Enroll the descriptor produced by the most recent tick.

        Raises:
            ValidationError: Empty name, or no descriptor in the latest tick.
        """
        result = self._last_result
        if result is None or not result.descriptor_available:
            raise ValidationError("No face descriptor available; position a face in the frame")
        return self.registry.enroll(name, result.detection.descriptor)

    def remove_signature(self, signature_id: str) -> Optional[FaceSignature]:
        """Remove a signature and clear the reported match if it pointed at it."""
        removed = self.registry.remove(signature_id)
        if self._last_match is not None and self._last_match.signature_id == signature_id:
            self._last_match = None
        return removed

    def set_sensitivity(self, value: int) -> None:
        """
        Change the motion threshold; applies from the next tick.

        Raises:
            ValueError: Not a motion detector, or value outside [5, 50].
        """
        if not isinstance(self.detector, MotionDiffDetector):
            raise ValueError(f"Detector '{self.detector.name}' has no sensitivity setting")
        self.detector.sensitivity = value

    def status(self) -> Dict[str, Any]:
        """Snapshot for status reporting."""
        tick = self._last_result
        match = self._last_match
        return {
            "running": self.is_running,
            "detector": self.detector.name,
            "matcher": self.matcher.policy,
            "frames": self.stats.frame_count,
            "transient_errors": self.stats.transient_errors,
            "present": tick.present if tick is not None else False,
            "match": match.label if match is not None else None,
            "distance": match.distance if match is not None else None,
            "sensitivity": getattr(self.detector, "sensitivity", None),
            "signatures": len(self.registry),
            "last_error": self.last_error,
        }

    def _handle_display(self, frame_data: FrameData, tick: TickResult) -> bool:
        """
        Handle cv2 display window.

        Returns False if user pressed 'q' to quit.
        """
        cv2.imshow("Face Watch", annotate(frame_data.frame.copy(), tick))
        key = cv2.waitKey(1) & 0xFF
        return key != ord('q')

    def _handle_periodic_tasks(self) -> None:
        now = time.time()
        if now - self.stats.last_stats_log_time >= self.config.stats_log_interval:
            logging.info(
                f"Loop stats: frames={self.stats.frame_count}, present={self.stats.present_count}, "
                f"matches={self.stats.match_count}, errors={self.stats.transient_errors}"
            )
            self.stats.last_stats_log_time = now

    def _cleanup(self) -> None:
        """Close the source and return to Idle."""
        try:
            self.source.close()
        except Exception as e:
            logging.warning(f"Error closing source: {e}")

        with self._commands_lock:
            self._state = LoopState.IDLE
            pending, self._commands = self._commands, []
        self._loop_thread = None
        self._previous = None
        self._last_result = None
        self._last_match = None

        # Commands that arrived during the last tick still run, now off-loop
        for fn, future in pending:
            self._execute(fn, future)

        if self.config.display:
            cv2.destroyAllWindows()

        logging.info(
            f"Detection loop stopped: frames={self.stats.frame_count}, "
            f"errors={self.stats.transient_errors}"
        )


def create_loop_from_config(
    loop_cfg: LoopConfig,
    source: FrameSource,
    detector: Detector,
    registry: SignatureRegistry,
    matcher: Matcher,
    display: bool = False,
) -> DetectionLoop:
    """
    Factory to create a DetectionLoop from the `loop` config section.

    refresh_hz <= 0 disables pacing (offline replay of video files).
    """
    refresh_hz = float(loop_cfg.refresh_hz)
    scheduler = RefreshScheduler(refresh_hz) if refresh_hz > 0 else ImmediateScheduler()
    loop_config = DetectionLoopConfig(
        max_consecutive_failures=int(loop_cfg.max_consecutive_failures),
        stats_log_interval=float(loop_cfg.stats_log_interval),
        display=display,
    )
    return DetectionLoop(source, detector, registry, matcher, loop_config, scheduler)
