from __future__ import annotations

from typing import Tuple

MAX_DISPLAY_WIDTH = 800
CONTAINER_PADDING = 40
HANDLE_SIZE = 8.0

# Lower bound so a collapsed host widget never produces a zero scale.
_MIN_SCALE = 0.01


def compute_display_scale(
    bitmap_width: float,
    container_width: float,
    max_display_width: float = MAX_DISPLAY_WIDTH,
) -> float:
    """
    Image px -> display px factor. Fits the bitmap into the container (capped
    at `max_display_width`) and never upscales.
    """
    if bitmap_width <= 0:
        return 1.0
    avail = min(float(container_width), float(max_display_width))
    if avail <= 0:
        return _MIN_SCALE
    return max(_MIN_SCALE, min(1.0, avail / float(bitmap_width)))


def container_width_for(widget_width: float, padding: float = CONTAINER_PADDING) -> float:
    return float(widget_width) - float(padding)


def to_image_space(
    display_x: float,
    display_y: float,
    origin: Tuple[float, float],
    scale: float,
) -> Tuple[float, float]:
    ox, oy = origin
    return ((display_x - ox) / scale, (display_y - oy) / scale)


def to_display_space(
    x: float,
    y: float,
    origin: Tuple[float, float],
    scale: float,
) -> Tuple[float, float]:
    ox, oy = origin
    return (x * scale + ox, y * scale + oy)


def handle_tolerance(scale: float, handle_size: float = HANDLE_SIZE) -> float:
    # Handles stay the same size on screen whatever the zoom.
    return float(handle_size) / max(_MIN_SCALE, float(scale))


def image_origin(
    widget_width: float,
    display_width: float,
    padding: float = CONTAINER_PADDING,
) -> Tuple[float, float]:
    """Top-left of the displayed image inside the host widget, centred horizontally."""
    margin = float(padding) / 2.0
    return (max(margin, (float(widget_width) - float(display_width)) * 0.5), margin)


def in_display_area(
    display_x: float,
    display_y: float,
    origin: Tuple[float, float],
    display_size: Tuple[float, float],
) -> bool:
    ox, oy = origin
    dw, dh = display_size
    return ox <= display_x <= ox + dw and oy <= display_y <= oy + dh
