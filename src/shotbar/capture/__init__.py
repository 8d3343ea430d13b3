"""Screen capture: frames, grabbing, key input and the capture loop."""

from .frame import Frame, FrameError

__all__ = [
    "Frame",
    "FrameError",
]
