from __future__ import annotations

import unittest
from dataclasses import replace

import numpy as np
from PIL import Image

from core.compositor import OVERLAY_COLOR, composite_blur, render_preview, selection_mask
from core.geometry import CircleSelection, RectSelection, ShapeKind
from core.state import SessionState

RED = (255, 0, 0, 255)
GREEN = (0, 255, 0, 255)


def _green_blur(img: Image.Image, radius: int) -> Image.Image:
    # Stand-in backend: makes "blurred" pixels trivially recognizable.
    return Image.new("RGBA", img.size, GREEN)


def _checker(w: int, h: int) -> Image.Image:
    arr = np.zeros((h, w, 4), dtype=np.uint8)
    arr[..., 3] = 255
    arr[::2, ::2, :3] = 255
    arr[1::2, 1::2, :3] = 255
    return Image.fromarray(arr)


class SelectionMaskTests(unittest.TestCase):
    def test_rect_mask_covers_pixel_centers(self) -> None:
        mask = selection_mask((10, 8), RectSelection(2, 1, 5, 3))
        self.assertEqual(mask.shape, (8, 10))
        self.assertEqual(int(mask.sum()), 15)
        self.assertTrue(mask[1, 2])
        self.assertTrue(mask[3, 6])
        self.assertFalse(mask[4, 6])
        self.assertFalse(mask[1, 7])

    def test_circle_mask(self) -> None:
        mask = selection_mask((100, 100), CircleSelection(0, 0, 50))
        self.assertTrue(mask[50, 50])
        self.assertFalse(mask[0, 0])
        self.assertFalse(mask[99, 99])
        # Area is close to pi * r^2
        self.assertLess(abs(int(mask.sum()) - 7854), 150)


class CompositeBlurTests(unittest.TestCase):
    def test_only_selection_receives_blur(self) -> None:
        src = Image.new("RGBA", (60, 40), RED)
        out = composite_blur(src, RectSelection(10, 10, 20, 15), 5, blur=_green_blur)
        arr = np.array(out)
        self.assertEqual(tuple(arr[15, 15]), GREEN)
        self.assertEqual(tuple(arr[5, 5]), RED)
        self.assertEqual(tuple(arr[30, 50]), RED)
        self.assertEqual(int((arr[..., 1] == 255).sum()), 20 * 15)

    def test_circle_clip(self) -> None:
        src = Image.new("RGBA", (100, 100), RED)
        out = np.array(composite_blur(src, CircleSelection(0, 0, 50), 5, blur=_green_blur))
        self.assertEqual(tuple(out[50, 50]), GREEN)
        self.assertEqual(tuple(out[2, 2]), RED)

    def test_source_bitmap_untouched(self) -> None:
        src = Image.new("RGBA", (60, 40), RED)
        composite_blur(src, RectSelection(0, 0, 60, 40), 5, blur=_green_blur)
        self.assertEqual(src.getpixel((10, 10)), RED)

    def test_real_blur_changes_only_selection(self) -> None:
        src = _checker(80, 60)
        out = np.array(composite_blur(src, RectSelection(20, 20, 30, 20), 3))
        ref = np.array(src)
        self.assertTrue(np.array_equal(out[:20], ref[:20]))
        self.assertFalse(np.array_equal(out[25:35, 25:45], ref[25:35, 25:45]))


class RenderPreviewTests(unittest.TestCase):
    def _state(self, **kw) -> SessionState:
        st = SessionState().with_bitmap(_checker(120, 80))
        return replace(st, **kw)

    def test_no_bitmap_renders_nothing(self) -> None:
        self.assertIsNone(render_preview(SessionState()))

    def test_idempotent(self) -> None:
        st = self._state(blur_radius_px=4)
        a = np.array(render_preview(st))
        b = np.array(render_preview(st))
        self.assertTrue(np.array_equal(a, b))

    def test_preview_disabled_skips_blur(self) -> None:
        src = Image.new("RGBA", (120, 80), RED)
        st = replace(SessionState().with_bitmap(src), preview_enabled=False)
        out = np.array(render_preview(st, blur=_green_blur))
        self.assertFalse(np.any(np.all(out == np.array(GREEN, dtype=np.uint8), axis=-1)))
        # Interior (away from the outline) stays unblurred
        self.assertEqual(tuple(out[40, 45]), RED)

    def test_overlay_draws_outline_and_handles(self) -> None:
        src = Image.new("RGBA", (120, 80), RED)
        st = SessionState().with_bitmap(src)
        out = render_preview(st, blur=_green_blur)
        rect = st.rect
        self.assertEqual(out.getpixel((int(rect.x), int(rect.y))), OVERLAY_COLOR)
        br = (int(rect.x + rect.width), int(rect.y + rect.height))
        self.assertEqual(out.getpixel(br), OVERLAY_COLOR)
        # Inside the selection, away from the outline: the blurred layer
        self.assertEqual(out.getpixel((int(rect.x + rect.width / 2), int(rect.y + rect.height / 2))), GREEN)

    def test_circle_overlay_handle(self) -> None:
        src = Image.new("RGBA", (300, 200), RED)
        st = replace(SessionState().with_bitmap(src), shape_kind=ShapeKind.CIRCLE)
        out = render_preview(st, blur=_green_blur)
        c = st.circle
        self.assertEqual(out.getpixel((int(c.x + 2 * c.radius) - 1, int(c.y + c.radius))), OVERLAY_COLOR)
        self.assertEqual(out.getpixel((int(c.center[0]), int(c.center[1]))), GREEN)


if __name__ == "__main__":
    unittest.main()
