"""
Stateful duplicate detection over a stream of captured frames.

The detector keeps exactly one fingerprint, the one of the most recently
processed frame, and answers whether each new frame is a perceptual duplicate
of it. Errors inside the check never propagate: a failed check reports
"not a duplicate" so a capture run is never halted by an internal fault.
"""

import asyncio
from typing import Callable, Optional

from ..capture.frame import Frame
from ..logging import get_logger
from .distance import combined_distance
from .fingerprint import Fingerprint, compute_fingerprint

logger = get_logger(__name__)

DEFAULT_THRESHOLD = 0.05

FingerprintFn = Callable[[Frame], Fingerprint]
DistanceFn = Callable[[Fingerprint, Fingerprint], float]


class DuplicateDetector:
    """
    Perceptual duplicate detector comparing each frame with the previous one.

    Only one ``is_duplicate`` call may be in flight per instance. The capture
    engine awaits each verdict before grabbing the next frame; overlapping
    calls leave the stored baseline in whatever state resolves last.
    """

    def __init__(self,
                 threshold: float = DEFAULT_THRESHOLD,
                 fingerprint: FingerprintFn = compute_fingerprint,
                 distance: DistanceFn = combined_distance):
        """
        Args:
            threshold: Maximum distance for two frames to count as duplicates
            fingerprint: Function extracting a Fingerprint from a Frame
            distance: Function comparing two Fingerprints
        """
        self._threshold = threshold
        self._fingerprint = fingerprint
        self._distance = distance
        self._last: Optional[Fingerprint] = None

    @property
    def threshold(self) -> float:
        return self._threshold

    @property
    def has_baseline(self) -> bool:
        return self._last is not None

    def reset(self) -> None:
        """Forget the baseline so the next frame starts a new comparison chain."""
        self._last = None

    def set_threshold(self, value: float) -> None:
        """Replace the threshold used for subsequent comparisons. Not validated."""
        self._threshold = value

    async def is_duplicate(self, frame: Frame) -> bool:
        """
        Check whether ``frame`` is a duplicate of the previously processed frame.

        Fingerprint extraction runs in a worker thread so the caller's event
        loop keeps ticking while it executes.

        Returns:
            True if the distance to the previous frame is within the threshold
        """
        try:
            current = await asyncio.to_thread(self._fingerprint, frame)
        except Exception as exc:
            logger.warning(f"Fingerprint extraction failed, treating frame as new: {exc}")
            return False

        previous = self._last
        if previous is None:
            self._last = current
            logger.debug("Stored first fingerprint as baseline")
            return False

        # Compare against the immediately preceding frame, not the first one,
        # so a sequence that drifted and then settled is still caught.
        self._last = current

        try:
            distance = self._distance(current, previous)
        except Exception as exc:
            logger.warning(f"Fingerprint comparison failed, treating frame as new: {exc}")
            return False

        threshold = self._threshold
        if distance <= threshold:
            logger.info(f"Duplicate detected. Distance: {distance:.4f}, Threshold: {threshold:.4f}")
            return True

        logger.debug(f"Not a duplicate. Distance: {distance:.4f}, Threshold: {threshold:.4f}")
        return False
