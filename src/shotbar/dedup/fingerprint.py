"""Perceptual fingerprint computation for captured frames."""

from dataclasses import dataclass
from typing import Optional, Union

from PIL import Image
import imagehash

from ..capture.frame import Frame
from ..logging import get_logger

logger = get_logger(__name__)

# 16x16 hashes give 256 bits, fine enough that a ticking clock moves only a
# handful of bits while a page turn moves a large share of them.
DEFAULT_HASH_SIZE = 16


@dataclass(frozen=True)
class Fingerprint:
    """Perceptual hashes of a single frame."""
    phash: imagehash.ImageHash
    dhash: Optional[imagehash.ImageHash] = None


class FingerprintError(Exception):
    """Raised when a fingerprint cannot be computed for an image."""


def compute_fingerprint(
    source: Union[Frame, Image.Image],
    hash_size: int = DEFAULT_HASH_SIZE,
    compute_dhash: bool = True,
) -> Fingerprint:
    """
    Compute the perceptual fingerprint of a frame or image.

    Args:
        source: Frame from the screen grabber, or an already decoded Pillow image
        hash_size: Side length of the hash grid
        compute_dhash: Whether to compute dhash in addition to phash

    Returns:
        Fingerprint containing computed hashes

    Raises:
        FingerprintError: If the image cannot be decoded or hashed
    """
    try:
        img = source.to_image() if isinstance(source, Frame) else source

        # Hash in RGB so frames and files of different modes compare alike
        if img.mode != 'RGB':
            img = img.convert('RGB')

        phash = imagehash.phash(img, hash_size=hash_size)
        dhash = imagehash.dhash(img, hash_size=hash_size) if compute_dhash else None

        logger.debug(f"Computed fingerprint {img.width}x{img.height}: phash={phash}")

        return Fingerprint(phash=phash, dhash=dhash)

    except Exception as exc:
        raise FingerprintError(f"Failed to compute fingerprint: {exc}") from exc
