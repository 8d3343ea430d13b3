"""Helpers for building test frames and fake capture collaborators."""

from typing import List, Optional

import numpy as np
from PIL import Image, ImageOps

from shotbar.capture.frame import Frame
from shotbar.capture.keys import ArrowKey, KeySendError
from shotbar.capture.screen import ScreenCaptureError


def screen_image(width: int = 320, height: int = 200) -> Image.Image:
    """A desktop-like image: gradient background with dark bars of varying width."""
    x = np.linspace(0, 200, width, dtype=np.float32)
    y = np.linspace(0, 55, height, dtype=np.float32)
    gray = x[None, :] + y[:, None]
    for i, top in enumerate(range(10, height - 10, 24)):
        gray[top:top + 8, 12:12 + (i * 37) % (width - 24) + 20] = 10
    rgb = np.stack([gray, gray * 0.8, 255 - gray], axis=-1).clip(0, 255).astype(np.uint8)
    return Image.fromarray(rgb, "RGB")


def with_blinking_clock(image: Image.Image) -> Image.Image:
    """Copy of ``image`` with a tiny patch changed in the corner, like a clock tick."""
    changed = image.copy()
    for x in range(image.width - 6, image.width - 3):
        for y in range(3, 6):
            changed.putpixel((x, y), (255, 255, 255))
    return changed


def different_screen(image: Image.Image) -> Image.Image:
    return ImageOps.invert(image)


def make_frame(image: Optional[Image.Image] = None) -> Frame:
    return Frame.from_image(image if image is not None else screen_image())


def solid_frame(color, size=(32, 32)) -> Frame:
    return Frame.from_image(Image.new("RGB", size, color))


class FakeGrabber:
    """Returns queued frames in order; raises once the queue is exhausted."""

    def __init__(self, frames: List[Frame]) -> None:
        self.frames = list(frames)
        self.calls = 0

    def grab(self) -> Frame:
        self.calls += 1
        if not self.frames:
            raise ScreenCaptureError("no more frames")
        return self.frames.pop(0)


class FakeKeySender:
    def __init__(self, fail: bool = False) -> None:
        self.pressed: List[ArrowKey] = []
        self.fail = fail

    def press(self, key: ArrowKey) -> None:
        if self.fail:
            raise KeySendError("no display")
        self.pressed.append(key)


class RecordingSleep:
    """Async sleep replacement recording requested durations."""

    def __init__(self, on_sleep=None) -> None:
        self.durations: List[float] = []
        self.on_sleep = on_sleep

    async def __call__(self, seconds: float) -> None:
        self.durations.append(seconds)
        if self.on_sleep is not None:
            await self.on_sleep(len(self.durations))
