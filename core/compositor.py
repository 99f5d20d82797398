from __future__ import annotations

import math
from typing import Optional, Tuple

import numpy as np
from PIL import Image, ImageDraw

from core.blur import BlurFn, gaussian_blur
from core.geometry import CircleSelection, Selection
from core.state import SessionState

OVERLAY_COLOR = (59, 130, 246, 255)
# Overlay metrics in display px; divided by the display scale when drawn.
OUTLINE_WIDTH = 2.0
DASH_ON = 5.0
DASH_OFF = 5.0
HANDLE_DRAW_SIZE = 8.0


def pil_to_np_rgba(img: Image.Image) -> np.ndarray:
    arr = np.array(img.convert("RGBA"), dtype=np.uint8)
    if arr.ndim != 3 or arr.shape[2] != 4:
        raise ValueError("Expected RGBA image")
    return arr


def np_rgba_to_pil(arr: np.ndarray) -> Image.Image:
    return Image.fromarray(arr)


def selection_mask(size: Tuple[int, int], selection: Selection) -> np.ndarray:
    """
    Boolean HxW clip mask; a pixel is inside when its center is inside the
    shape, the same test used for pointer hit-testing.
    """
    w, h = size
    ys = np.arange(h, dtype=np.float64)[:, None] + 0.5
    xs = np.arange(w, dtype=np.float64)[None, :] + 0.5

    if isinstance(selection, CircleSelection):
        cx, cy = selection.center
        r = selection.radius
        return (xs - cx) ** 2 + (ys - cy) ** 2 <= r * r

    x0, y0, sw, sh = selection.bounds()
    inside_x = (xs >= x0) & (xs <= x0 + sw)
    inside_y = (ys >= y0) & (ys <= y0 + sh)
    return inside_x & inside_y


def composite_blur(
    bitmap: Image.Image,
    selection: Selection,
    radius: int,
    blur: BlurFn = gaussian_blur,
) -> Image.Image:
    """
    Base bitmap with a fully blurred copy merged in through a hard clip of
    `selection`. The whole image is blurred before clipping so the blur near
    the selection edge matches the blur everywhere else.
    """
    base = bitmap.convert("RGBA")
    blurred = blur(base, int(radius)).convert("RGBA")
    if blurred.size != base.size:
        raise ValueError("blur backend must preserve image size")

    mask = selection_mask(base.size, selection)
    base_np = pil_to_np_rgba(base)
    out = np.where(mask[..., None], pil_to_np_rgba(blurred), base_np)
    return np_rgba_to_pil(out.astype(np.uint8))


def _dash_segments(x0: float, y0: float, x1: float, y1: float, on: float, off: float):
    length = math.hypot(x1 - x0, y1 - y0)
    if length <= 0:
        return
    ux = (x1 - x0) / length
    uy = (y1 - y0) / length
    t = 0.0
    while t < length:
        t_end = min(length, t + on)
        yield (x0 + ux * t, y0 + uy * t, x0 + ux * t_end, y0 + uy * t_end)
        t += on + off


def _draw_dashed_rect(draw: ImageDraw.ImageDraw, sel: Selection, width: int, on: float, off: float) -> None:
    x, y, w, h = sel.bounds()
    corners = [(x, y), (x + w, y), (x + w, y + h), (x, y + h)]
    for i in range(4):
        ax, ay = corners[i]
        bx, by = corners[(i + 1) % 4]
        for seg in _dash_segments(ax, ay, bx, by, on, off):
            draw.line(seg, fill=OVERLAY_COLOR, width=width)


def _draw_dashed_circle(draw: ImageDraw.ImageDraw, sel: CircleSelection, width: int, on: float, off: float) -> None:
    x, y, d, _ = sel.bounds()
    circumference = math.pi * d
    if circumference <= 0:
        return
    deg_per_px = 360.0 / circumference
    start = 0.0
    while start < 360.0:
        end = min(360.0, start + on * deg_per_px)
        draw.arc([x, y, x + d, y + d], start=start, end=end, fill=OVERLAY_COLOR, width=width)
        start += (on + off) * deg_per_px


def draw_selection_overlay(img: Image.Image, selection: Selection, display_scale: float = 1.0) -> None:
    """Draw the dashed outline and resize handles onto `img` in place."""
    scale = max(0.01, float(display_scale))
    width = max(1, int(round(OUTLINE_WIDTH / scale)))
    on = DASH_ON / scale
    off = DASH_OFF / scale
    half = HANDLE_DRAW_SIZE / scale * 0.5

    draw = ImageDraw.Draw(img)
    if isinstance(selection, CircleSelection):
        _draw_dashed_circle(draw, selection, width, on, off)
    else:
        _draw_dashed_rect(draw, selection, width, on, off)

    for _handle, hx, hy in selection.handle_points():
        draw.rectangle([hx - half, hy - half, hx + half, hy + half], fill=OVERLAY_COLOR)


def render_preview(state: SessionState, blur: BlurFn = gaussian_blur) -> Optional[Image.Image]:
    """
    Editing surface at native image resolution: bitmap, blurred selection
    when the preview is on, then the selection affordances on top.
    """
    if state.bitmap is None:
        return None

    if state.preview_enabled:
        surface = composite_blur(state.bitmap, state.selection, state.blur_radius_px, blur)
    else:
        surface = state.bitmap.convert("RGBA").copy()

    draw_selection_overlay(surface, state.selection, state.display_scale)
    return surface
