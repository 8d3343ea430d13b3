"""Tests for fingerprint distance metrics."""

import pytest
from PIL import Image
import imagehash

from shotbar.dedup.distance import (
    DistanceError,
    combined_distance,
    hamming_distance,
    normalized_distance,
)
from shotbar.dedup.fingerprint import Fingerprint, compute_fingerprint
from tests.helpers.frames import screen_image, with_blinking_clock, different_screen


class TestHammingDistance:
    def test_identical(self):
        img = Image.new('RGB', (64, 64), 'red')
        assert hamming_distance(imagehash.phash(img), imagehash.phash(img)) == 0

    def test_symmetric(self):
        img1 = Image.new('RGB', (32, 32), 'white')
        img2 = Image.new('RGB', (32, 32), 'white')
        for x in range(16):
            img1.putpixel((x, x), (0, 0, 0))
            img2.putpixel((x, 31 - x), (0, 0, 0))

        hash1 = imagehash.phash(img1)
        hash2 = imagehash.phash(img2)

        distance = hamming_distance(hash1, hash2)
        assert isinstance(distance, int)
        assert distance == hamming_distance(hash2, hash1)

    def test_shape_mismatch(self):
        img = screen_image()
        with pytest.raises(DistanceError):
            hamming_distance(imagehash.phash(img, hash_size=8), imagehash.phash(img, hash_size=16))


class TestNormalizedDistance:
    def test_range(self):
        a = imagehash.phash(screen_image(), hash_size=16)
        b = imagehash.phash(different_screen(screen_image()), hash_size=16)

        distance = normalized_distance(a, b)
        assert 0.0 < distance <= 1.0
        assert distance == hamming_distance(a, b) / 256


class TestCombinedDistance:
    def test_identical_is_zero(self):
        fingerprint = compute_fingerprint(screen_image())
        assert combined_distance(fingerprint, fingerprint) == 0.0

    def test_blinking_clock_is_within_default_threshold(self):
        base = screen_image()
        distance = combined_distance(
            compute_fingerprint(with_blinking_clock(base)),
            compute_fingerprint(base),
        )
        assert distance <= 0.05

    def test_content_change_exceeds_threshold(self):
        base = screen_image()
        distance = combined_distance(
            compute_fingerprint(different_screen(base)),
            compute_fingerprint(base),
        )
        assert distance > 0.5

    def test_phash_only_fallback(self):
        a = compute_fingerprint(screen_image())
        b = compute_fingerprint(different_screen(screen_image()))
        b_phash_only = Fingerprint(phash=b.phash, dhash=None)

        assert combined_distance(a, b_phash_only) == normalized_distance(a.phash, b.phash)

    def test_custom_weights(self):
        a = compute_fingerprint(screen_image())
        b = compute_fingerprint(different_screen(screen_image()))

        expected = 0.8 * normalized_distance(a.phash, b.phash) + 0.2 * normalized_distance(a.dhash, b.dhash)
        assert abs(combined_distance(a, b, phash_weight=0.8, dhash_weight=0.2) - expected) < 1e-9

    def test_mismatched_hash_sizes(self):
        a = compute_fingerprint(screen_image(), hash_size=8)
        b = compute_fingerprint(screen_image(), hash_size=16)

        with pytest.raises(DistanceError):
            combined_distance(a, b)
