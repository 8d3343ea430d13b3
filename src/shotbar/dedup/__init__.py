"""Perceptual duplicate detection for consecutive screen captures."""

from .fingerprint import Fingerprint, FingerprintError, compute_fingerprint
from .distance import DistanceError, hamming_distance, normalized_distance, combined_distance
from .detector import DuplicateDetector, DEFAULT_THRESHOLD

__all__ = [
    "Fingerprint",
    "FingerprintError",
    "compute_fingerprint",
    "DistanceError",
    "hamming_distance",
    "normalized_distance",
    "combined_distance",
    "DuplicateDetector",
    "DEFAULT_THRESHOLD",
]
