"""
Capture loop driving screen grabs, file saving and duplicate detection.

A session waits out the initial delay, then captures up to ``max_count``
frames spaced by ``interval_delay``. With duplicate detection enabled the
session ends as soon as a frame is perceptually identical to the previous
one.
"""

from __future__ import annotations

import asyncio
import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Awaitable, Callable, List, Optional

from ..config import Settings
from ..dedup.detector import DuplicateDetector
from ..logging import get_logger
from .frame import Frame, FrameError
from .keys import ArrowKey, KeySendError, KeySender
from .screen import ScreenCaptureError, ScreenGrabber

logger = get_logger(__name__)

TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"


class CaptureError(Exception):
    """Raised when a capture session cannot be started."""


class StopReason(Enum):
    """Why a capture session ended."""
    MAX_COUNT = "max_count"
    DUPLICATE = "duplicate"
    STOPPED = "stopped"
    ERROR = "error"


@dataclass
class CaptureResult:
    """Outcome of a capture session."""
    directory: Path
    saved: List[Path] = field(default_factory=list)
    reason: StopReason = StopReason.MAX_COUNT

    @property
    def count(self) -> int:
        return len(self.saved)


def save_frame(frame: Frame, path: Path) -> Path:
    """Write a frame to disk as PNG."""
    frame.to_image().save(path, format="PNG")
    return path


def _unique_path(path: Path) -> Path:
    if not path.exists():
        return path
    counter = 1
    while True:
        candidate = path.with_name(f"{path.stem}-{counter}{path.suffix}")
        if not candidate.exists():
            return candidate
        counter += 1


class CaptureEngine:
    """
    Runs single shots and auto-capture sessions.

    The engine awaits every duplicate check before grabbing the next frame,
    so the detector never sees overlapping calls.
    """

    def __init__(self,
                 settings: Settings,
                 grabber: Optional[ScreenGrabber] = None,
                 detector: Optional[DuplicateDetector] = None,
                 key_sender: Optional[KeySender] = None,
                 sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
                 now: Callable[[], datetime] = datetime.now,
                 on_countdown: Optional[Callable[[int, str], None]] = None,
                 on_complete: Optional[Callable[[CaptureResult, str], None]] = None):
        self._settings = settings.clamped()
        self._grabber = grabber if grabber is not None else ScreenGrabber()
        self._detector = detector if detector is not None else DuplicateDetector()
        self._key_sender = key_sender if key_sender is not None else KeySender()
        self._sleep = sleep
        self._now = now
        self._on_countdown = on_countdown
        self._on_complete = on_complete
        self._running = False
        self._stop_requested = False

        self._detector.set_threshold(self._settings.duplicate_threshold)

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def detector(self) -> DuplicateDetector:
        return self._detector

    @property
    def is_running(self) -> bool:
        return self._running

    def apply_settings(self, settings: Settings) -> None:
        """Replace the settings and push the new threshold into the detector."""
        self._settings = settings.clamped()
        self._detector.set_threshold(self._settings.duplicate_threshold)

    def stop(self) -> None:
        """Ask a running session to end before its next capture."""
        if self._running:
            logger.info("Stop requested")
            self._stop_requested = True

    def take_single_shot(self) -> Path:
        """
        Capture the screen once and save it with a timestamped name.

        Raises:
            ScreenCaptureError: If the screen cannot be captured
            OSError: If the file cannot be written
        """
        directory = self._settings.save_directory()
        directory.mkdir(parents=True, exist_ok=True)

        frame = self._grabber.grab()
        stamp = self._now().strftime(TIMESTAMP_FORMAT)
        path = _unique_path(directory / f"{self._settings.filename_prefix}_{stamp}.png")
        save_frame(frame, path)

        logger.info(f"Saved single shot to {path}")
        return path

    async def run(self) -> CaptureResult:
        """
        Run one auto-capture session until a stop condition is met.

        Raises:
            CaptureError: If a session is already running or the save folder
                cannot be created
        """
        if self._running:
            raise CaptureError("A capture session is already running")

        self._running = True
        self._stop_requested = False
        settings = self._settings

        try:
            self._detector.reset()
            self._detector.set_threshold(settings.duplicate_threshold)

            directory = self._session_directory(settings)
            result = CaptureResult(directory=directory)
            logger.info(
                f"Starting capture: up to {settings.max_count} shots every "
                f"{settings.interval_delay}s into {directory}"
            )

            await self._countdown(settings)
            if self._stop_requested:
                result.reason = StopReason.STOPPED
            else:
                result.reason = await self._capture_loop(settings, result)

            logger.info(f"Capture finished ({result.reason.value}): {result.count} image(s) saved")
            if self._on_complete is not None:
                self._on_complete(result, settings.completion_sound)
            return result
        finally:
            self._running = False
            self._stop_requested = False

    def _session_directory(self, settings: Settings) -> Path:
        directory = settings.save_directory()
        if settings.auto_create_folder:
            directory = directory / self._now().strftime(TIMESTAMP_FORMAT)
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise CaptureError(f"Cannot create save folder {directory}: {exc}") from exc
        return directory

    async def _countdown(self, settings: Settings) -> None:
        remaining = settings.initial_delay
        while remaining > 0 and not self._stop_requested:
            if self._on_countdown is not None:
                self._on_countdown(math.ceil(remaining), settings.countdown_sound)
            step = min(1.0, remaining)
            await self._sleep(step)
            remaining -= step

    async def _capture_loop(self, settings: Settings, result: CaptureResult) -> StopReason:
        for index in range(1, settings.max_count + 1):
            if self._stop_requested:
                return StopReason.STOPPED

            try:
                frame = await asyncio.to_thread(self._grabber.grab)
            except ScreenCaptureError as exc:
                logger.error(f"Capture {index} failed: {exc}")
                return StopReason.ERROR

            if settings.detect_duplicate and await self._detector.is_duplicate(frame):
                logger.info(f"Capture {index} matches the previous one, stopping")
                return StopReason.DUPLICATE

            path = _unique_path(result.directory / f"{settings.filename_prefix}_{index:03d}.png")
            try:
                await asyncio.to_thread(save_frame, frame, path)
            except (FrameError, OSError) as exc:
                logger.error(f"Failed to save {path}: {exc}")
                return StopReason.ERROR
            result.saved.append(path)
            logger.debug(f"Saved {path}")

            await self._press_key(settings)

            if index < settings.max_count:
                await self._sleep(settings.interval_delay)

        return StopReason.MAX_COUNT

    async def _press_key(self, settings: Settings) -> None:
        try:
            await asyncio.to_thread(self._key_sender.press, ArrowKey(settings.arrow_key))
        except KeySendError as exc:
            logger.warning(f"{exc}")
