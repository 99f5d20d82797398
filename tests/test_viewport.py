from __future__ import annotations

import unittest

from core.viewport import (
    compute_display_scale,
    container_width_for,
    handle_tolerance,
    image_origin,
    in_display_area,
    to_display_space,
    to_image_space,
)


class DisplayScaleTests(unittest.TestCase):
    def test_downscales_to_container(self) -> None:
        self.assertAlmostEqual(compute_display_scale(1600, 760, 800), 0.475)

    def test_caps_at_max_display_width(self) -> None:
        self.assertAlmostEqual(compute_display_scale(1600, 1200, 800), 0.5)

    def test_never_upscales(self) -> None:
        self.assertEqual(compute_display_scale(400, 1000, 800), 1)

    def test_degenerate_inputs(self) -> None:
        self.assertEqual(compute_display_scale(0, 500, 800), 1.0)
        self.assertGreater(compute_display_scale(1000, -40, 800), 0)

    def test_container_padding(self) -> None:
        self.assertEqual(container_width_for(800), 760)


class MappingTests(unittest.TestCase):
    def test_to_image_space(self) -> None:
        self.assertEqual(to_image_space(70, 45, (20, 20), 0.5), (100, 50))

    def test_display_round_trip(self) -> None:
        x, y = to_display_space(100, 50, (20, 20), 0.5)
        self.assertEqual((x, y), (70, 45))

    def test_handle_tolerance_scales_with_zoom(self) -> None:
        self.assertEqual(handle_tolerance(1.0), 8.0)
        self.assertEqual(handle_tolerance(0.5), 16.0)


class ImageAreaTests(unittest.TestCase):
    def test_origin_uses_half_the_padding(self) -> None:
        # Narrow widget: image sits at the margin
        self.assertEqual(image_origin(800, 760, 40), (20.0, 20.0))
        # Wide widget: image is centred horizontally
        self.assertEqual(image_origin(1000, 600, 40), (200.0, 20.0))
        self.assertEqual(image_origin(800, 700, 60), (50.0, 30.0))

    def test_in_display_area(self) -> None:
        origin, size = (20.0, 20.0), (400, 300)
        self.assertTrue(in_display_area(20, 20, origin, size))
        self.assertTrue(in_display_area(420, 320, origin, size))
        self.assertFalse(in_display_area(19, 100, origin, size))
        self.assertFalse(in_display_area(100, 321, origin, size))


if __name__ == "__main__":
    unittest.main()
