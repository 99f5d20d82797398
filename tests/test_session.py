from __future__ import annotations

import os
import unittest
from unittest import mock

from PIL import Image

from core.geometry import CircleSelection, Handle, RectSelection, ShapeKind
from core.interaction import Cursor, Dragging, Idle, Resizing
from core.session import BlurSession
from core.state import ToolConfig


def _bitmap(w: int = 600, h: int = 400) -> Image.Image:
    return Image.new("RGBA", (w, h), (10, 20, 30, 255))


class SessionLoadTests(unittest.TestCase):
    def test_new_bitmap_installs_defaults(self) -> None:
        s = BlurSession()
        self.assertTrue(s.finish_load(s.begin_load(), _bitmap()))
        self.assertEqual(s.state.rect, RectSelection(120, 80, 180, 120))
        s.set_shape_kind("circle")
        self.assertEqual(s.state.selection.radius, 60)

    def test_shape_kinds_keep_their_own_bounds(self) -> None:
        s = BlurSession()
        s.finish_load(s.begin_load(), _bitmap())
        s.pointer_down(200, 150)
        s.pointer_move(230, 150)
        s.pointer_up()
        moved = s.state.rect
        s.set_shape_kind(ShapeKind.CIRCLE)
        self.assertEqual(s.state.circle, CircleSelection(120, 80, 60))
        s.set_shape_kind(ShapeKind.RECTANGLE)
        self.assertEqual(s.state.rect, moved)

    def test_stale_load_is_discarded(self) -> None:
        s = BlurSession()
        first = s.begin_load()
        second = s.begin_load()
        self.assertTrue(s.finish_load(second, _bitmap(300, 200)))
        self.assertFalse(s.finish_load(first, _bitmap(600, 400)))
        self.assertEqual(s.state.bitmap_size, (300, 200))

    def test_failed_load_keeps_state(self) -> None:
        s = BlurSession()
        s.finish_load(s.begin_load(), _bitmap())
        before = s.state
        s.fail_load(s.begin_load(), RuntimeError("boom"))
        self.assertIs(s.state, before)

    def test_new_bitmap_resets_selection(self) -> None:
        s = BlurSession()
        s.finish_load(s.begin_load(), _bitmap())
        s.pointer_down(200, 150)
        s.pointer_move(400, 300)
        s.finish_load(s.begin_load(), _bitmap(1000, 500))
        self.assertEqual(s.state.rect, RectSelection(200, 100, 300, 150))
        self.assertIsInstance(s.interaction, Idle)


class SessionSettingsTests(unittest.TestCase):
    def test_blur_radius_clamped(self) -> None:
        s = BlurSession()
        self.assertEqual(s.state.blur_radius_px, 10)
        s.set_blur_radius(99)
        self.assertEqual(s.state.blur_radius_px, 30)
        s.set_blur_radius(0)
        self.assertEqual(s.state.blur_radius_px, 1)

    def test_reset_selection(self) -> None:
        s = BlurSession()
        s.finish_load(s.begin_load(), _bitmap())
        s.pointer_down(300, 200)
        s.pointer_move(500, 350)
        s.pointer_up()
        s.reset_selection()
        self.assertEqual(s.state.rect, RectSelection(120, 80, 180, 120))

    def test_status_text(self) -> None:
        s = BlurSession()
        self.assertEqual(s.status_text(), "No image loaded")
        s.finish_load(s.begin_load(), _bitmap())
        self.assertEqual(s.status_text(), "Image: 600 × 400 pixels | Blur area: 180 × 120 at (120, 80)")

    def test_export_disabled_without_bitmap(self) -> None:
        self.assertIsNone(BlurSession().export())
        self.assertIsNone(BlurSession().render())

    def test_env_overrides_default_image(self) -> None:
        with mock.patch.dict(os.environ, {"SELECTIVE_BLUR_DEFAULT_IMAGE": ""}):
            self.assertIsNone(ToolConfig.from_env().default_image_url)
        with mock.patch.dict(os.environ, {"SELECTIVE_BLUR_DEFAULT_IMAGE": "/tmp/a.png"}):
            self.assertEqual(ToolConfig.from_env().default_image_url, "/tmp/a.png")


class SessionViewportTests(unittest.TestCase):
    def test_scale_from_viewport(self) -> None:
        s = BlurSession()
        s.finish_load(s.begin_load(), _bitmap(1600, 800))
        # No viewport yet: fits the max display width
        self.assertAlmostEqual(s.state.display_scale, 0.5)
        s.set_viewport_width(800)
        self.assertAlmostEqual(s.state.display_scale, 0.475)
        self.assertEqual(s.display_size, (760, 380))

    def test_pointer_is_mapped_to_image_space(self) -> None:
        s = BlurSession()
        s.finish_load(s.begin_load(), _bitmap(1600, 800))
        s.set_viewport_width(840)  # container 800 -> scale 0.5
        # Default rect: (320, 160, 480, 240); bottom-right handle at (800, 400)
        origin = (20.0, 20.0)
        cursor = s.pointer_down(20 + 400, 20 + 200, origin)
        self.assertEqual(s.interaction, Resizing(Handle.BR))
        self.assertEqual(cursor, Cursor.NW_RESIZE)
        s.pointer_move(20 + 450, 20 + 250, origin)
        self.assertEqual(s.state.rect, RectSelection(320, 160, 580, 340))

    def test_resize_during_drag_keeps_gesture(self) -> None:
        s = BlurSession()
        s.finish_load(s.begin_load(), _bitmap(1600, 800))
        s.set_viewport_width(840)
        s.pointer_down(300, 150)  # image (600, 300), inside the rect
        self.assertEqual(s.interaction, Dragging(280, 140))
        s.set_viewport_width(440)  # scale 0.25
        self.assertEqual(s.interaction, Dragging(280, 140))
        s.pointer_move(200, 100)  # image (800, 400)
        self.assertEqual((s.state.rect.x, s.state.rect.y), (520, 260))

    def test_leave_ends_gesture(self) -> None:
        s = BlurSession()
        s.finish_load(s.begin_load(), _bitmap())
        s.pointer_down(200, 150)
        s.pointer_leave()
        self.assertIsInstance(s.interaction, Idle)
        before = s.state
        s.pointer_move(400, 300)
        self.assertIs(s.state, before)


if __name__ == "__main__":
    unittest.main()
