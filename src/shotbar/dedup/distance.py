"""Distance metrics for fingerprint comparison."""

import imagehash

from .fingerprint import Fingerprint


class DistanceError(Exception):
    """Raised when two fingerprints cannot be compared."""


def hamming_distance(a: imagehash.ImageHash, b: imagehash.ImageHash) -> int:
    """
    Calculate Hamming distance between two perceptual hashes.

    Args:
        a: First hash
        b: Second hash

    Returns:
        Hamming distance (number of differing bits)

    Raises:
        DistanceError: If the hashes have different shapes
    """
    try:
        return int(a - b)
    except Exception as exc:
        raise DistanceError(f"Cannot compare hashes: {exc}") from exc


def normalized_distance(a: imagehash.ImageHash, b: imagehash.ImageHash) -> float:
    """Hamming distance divided by the hash bit count, in [0, 1]."""
    distance = hamming_distance(a, b)
    return distance / a.hash.size


def combined_distance(
    fingerprint_a: Fingerprint,
    fingerprint_b: Fingerprint,
    phash_weight: float = 0.7,
    dhash_weight: float = 0.3
) -> float:
    """
    Calculate combined distance using weighted normalized pHash + dHash.

    Args:
        fingerprint_a: First fingerprint
        fingerprint_b: Second fingerprint
        phash_weight: Weight for phash distance
        dhash_weight: Weight for dhash distance

    Returns:
        Combined weighted distance, 0.0 for identical fingerprints
    """
    phash_dist = normalized_distance(fingerprint_a.phash, fingerprint_b.phash)

    # Use dhash if available for both fingerprints
    if fingerprint_a.dhash is not None and fingerprint_b.dhash is not None:
        dhash_dist = normalized_distance(fingerprint_a.dhash, fingerprint_b.dhash)
        return phash_weight * phash_dist + dhash_weight * dhash_dist
    else:
        return phash_dist
