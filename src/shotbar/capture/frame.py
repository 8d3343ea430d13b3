"""Raw bitmap frames handed from the screen grabber to the detector."""

from __future__ import annotations

from dataclasses import dataclass

from PIL import Image


# Bytes per pixel for the modes a frame may carry
_MODE_BANDS = {
    "L": 1,
    "RGB": 3,
    "RGBA": 4,
}


class FrameError(Exception):
    """Raised when a frame's pixel buffer does not describe a valid image."""


@dataclass(frozen=True)
class Frame:
    """Immutable raw bitmap: dimensions plus a packed pixel buffer."""
    width: int
    height: int
    pixels: bytes
    mode: str = "RGB"

    @property
    def size(self) -> tuple[int, int]:
        return (self.width, self.height)

    @classmethod
    def from_image(cls, image: Image.Image) -> "Frame":
        """Build a frame from a Pillow image, converting unsupported modes to RGB."""
        if image.mode not in _MODE_BANDS:
            image = image.convert("RGB")
        return cls(
            width=image.width,
            height=image.height,
            pixels=image.tobytes(),
            mode=image.mode,
        )

    def validate(self) -> None:
        """
        Check that dimensions and buffer length agree.

        Raises:
            FrameError: If the frame cannot be decoded as an image
        """
        if self.mode not in _MODE_BANDS:
            raise FrameError(f"Unsupported frame mode: {self.mode}")
        if self.width <= 0 or self.height <= 0:
            raise FrameError(f"Invalid frame dimensions: {self.width}x{self.height}")

        expected = self.width * self.height * _MODE_BANDS[self.mode]
        if len(self.pixels) != expected:
            raise FrameError(
                f"Pixel buffer has {len(self.pixels)} bytes, expected {expected} "
                f"for {self.width}x{self.height} {self.mode}"
            )

    def to_image(self) -> Image.Image:
        """Decode the frame into a Pillow image."""
        self.validate()
        return Image.frombytes(self.mode, self.size, self.pixels)
