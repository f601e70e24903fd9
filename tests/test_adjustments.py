from __future__ import annotations

import unittest

import numpy as np

from core.adjustments import apply_adjustments_rgba, apply_filters, contrast_factor
from core.buffer import PixelBuffer
from core.state import FilterSettings


def _random_buffer(w: int = 17, h: int = 11, seed: int = 0) -> PixelBuffer:
    rng = np.random.default_rng(seed)
    return PixelBuffer(rng.integers(0, 256, size=(h, w, 4), dtype=np.uint8))


class FilterSettingsTests(unittest.TestCase):
    def test_defaults_are_identity(self) -> None:
        self.assertTrue(FilterSettings().is_identity)

    def test_values_clamped_to_slider_range(self) -> None:
        s = FilterSettings(brightness=300, contrast=-400)
        self.assertEqual(s.brightness, 255)
        self.assertEqual(s.contrast, -255)
        self.assertEqual(s.with_changes(contrast=259).contrast, 255)


class ContrastFactorTests(unittest.TestCase):
    def test_zero_contrast_is_exactly_one(self) -> None:
        self.assertEqual(contrast_factor(0), 1.0)

    def test_factor_grows_with_contrast(self) -> None:
        self.assertLess(contrast_factor(-100), 1.0)
        self.assertGreater(contrast_factor(100), 1.0)
        self.assertAlmostEqual(contrast_factor(255), 129.5)

    def test_degenerate_denominator_raises(self) -> None:
        with self.assertRaises(ValueError):
            contrast_factor(259)


class FilterPipelineTests(unittest.TestCase):
    def test_grayscale_of_solid_red(self) -> None:
        src = PixelBuffer.blank(4, 4, (255, 0, 0, 255))
        out = apply_filters(src, FilterSettings(grayscale=True))
        self.assertEqual(out.size, (4, 4))
        expected = np.tile(np.array([76, 76, 76, 255], dtype=np.uint8), (4, 4, 1))
        self.assertTrue(np.array_equal(out.data, expected))

    def test_identity_settings_preserve_every_value(self) -> None:
        arr = np.zeros((1, 256, 4), dtype=np.uint8)
        arr[0, :, 0] = np.arange(256)
        arr[0, :, 1] = np.arange(255, -1, -1)
        arr[0, :, 2] = np.arange(256)
        arr[0, :, 3] = 200
        src = PixelBuffer(arr)
        out = apply_filters(src, FilterSettings(contrast=0))
        self.assertEqual(out, src)

    def test_reapplying_is_idempotent(self) -> None:
        src = _random_buffer()
        settings = FilterSettings(grayscale=True, brightness=40, contrast=80)
        first = apply_filters(src, settings)
        second = apply_filters(src, settings)
        self.assertEqual(first.tobytes(), second.tobytes())

    def test_changing_settings_does_not_accumulate(self) -> None:
        src = _random_buffer(seed=3)
        target = FilterSettings(brightness=-30, contrast=20)
        direct = apply_filters(src, target)
        out = apply_filters(src, FilterSettings(brightness=90, contrast=-120))
        out = apply_filters(src, target, out=out)
        self.assertEqual(out, direct)

    def test_source_is_not_modified(self) -> None:
        src = _random_buffer(seed=5)
        before = src.tobytes()
        apply_filters(src, FilterSettings(grayscale=True, brightness=100, contrast=100))
        self.assertEqual(src.tobytes(), before)

    def test_brightness_clamps_and_alpha_passes_through(self) -> None:
        src = PixelBuffer.blank(2, 1, (250, 5, 128, 10))
        out = apply_filters(src, FilterSettings(brightness=20))
        self.assertEqual(out.pixel(0, 0), (255, 25, 148, 10))
        out = apply_filters(src, FilterSettings(brightness=-20))
        self.assertEqual(out.pixel(1, 0), (230, 0, 108, 10))

    def test_brightness_applies_before_contrast(self) -> None:
        src = PixelBuffer.blank(1, 1, (100, 100, 100, 255))
        out = apply_filters(src, FilterSettings(brightness=10, contrast=50))
        # (110 - 128) * 1.4822... + 128 = 101.32
        self.assertEqual(out.pixel(0, 0)[:3], (101, 101, 101))

    def test_full_contrast_saturates_around_midpoint(self) -> None:
        src = PixelBuffer.from_bytes(2, 1, bytes([129, 129, 129, 255, 127, 127, 127, 255]))
        out = apply_filters(src, FilterSettings(contrast=255))
        self.assertEqual(out.pixel(0, 0)[:3], (255, 255, 255))
        self.assertEqual(out.pixel(1, 0)[:3], (0, 0, 0))

    def test_output_buffer_is_reused_when_shape_matches(self) -> None:
        src = _random_buffer(seed=7)
        out = PixelBuffer.blank(src.width, src.height)
        result = apply_filters(src, FilterSettings(brightness=12), out=out)
        self.assertIs(result, out)
        self.assertEqual(result, apply_filters(src, FilterSettings(brightness=12)))

    def test_output_buffer_ignored_on_shape_mismatch(self) -> None:
        src = _random_buffer(seed=9)
        out = PixelBuffer.blank(2, 2)
        result = apply_filters(src, FilterSettings(), out=out)
        self.assertIsNot(result, out)
        self.assertEqual(result.size, src.size)

    def test_rejects_non_rgba_input(self) -> None:
        with self.assertRaises(ValueError):
            apply_adjustments_rgba(np.zeros((2, 2, 3), dtype=np.uint8))


if __name__ == "__main__":
    unittest.main()
