"""Screen grabbing via mss."""

from __future__ import annotations

import mss
from PIL import Image

from ..logging import get_logger
from .frame import Frame

logger = get_logger(__name__)


class ScreenCaptureError(Exception):
    """Raised when the screen cannot be captured."""


class ScreenGrabber:
    def __init__(self, monitor: int = 1) -> None:
        # mss numbers monitors from 1; 0 is the union of all of them
        self._monitor = monitor

    @property
    def monitor(self) -> int:
        return self._monitor

    def grab(self) -> Frame:
        """
        Capture the configured monitor as an RGB frame.

        Raises:
            ScreenCaptureError: If the display cannot be read
        """
        try:
            with mss.mss() as sct:
                monitors = sct.monitors
                if self._monitor >= len(monitors):
                    raise ScreenCaptureError(
                        f"Monitor {self._monitor} not available ({len(monitors) - 1} connected)"
                    )
                shot = sct.grab(monitors[self._monitor])
                image = Image.frombytes("RGB", shot.size, shot.bgra, "raw", "BGRX")
        except ScreenCaptureError:
            raise
        except Exception as exc:
            raise ScreenCaptureError(f"Screen capture failed: {exc}") from exc

        logger.debug(f"Captured monitor {self._monitor}: {image.width}x{image.height}")
        return Frame.from_image(image)
