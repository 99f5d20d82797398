from __future__ import annotations

import math
from dataclasses import dataclass, replace
from enum import Enum
from typing import List, Optional, Tuple, Union

MIN_SIZE = 50.0
MIN_RADIUS = 25.0


class ShapeKind(str, Enum):
    RECTANGLE = "rectangle"
    CIRCLE = "circle"

    @classmethod
    def parse(cls, value: Union[str, "ShapeKind"]) -> "ShapeKind":
        if isinstance(value, ShapeKind):
            return value
        norm = str(value).strip().lower()
        # Adjective forms ("rectangular", "circular") and "rect" name the same shapes.
        aliases = {"rect": cls.RECTANGLE, "rectangular": cls.RECTANGLE, "circular": cls.CIRCLE}
        if norm in aliases:
            return aliases[norm]
        return cls(norm)


class Handle(str, Enum):
    TL = "tl"
    TR = "tr"
    BL = "bl"
    BR = "br"
    CIRCLE = "circle"


def _finite(v: float, fallback: float) -> float:
    v = float(v)
    return v if math.isfinite(v) else fallback


def _clip(v: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, v))


@dataclass(frozen=True)
class RectSelection:
    x: float
    y: float
    width: float
    height: float

    kind = ShapeKind.RECTANGLE

    def bounds(self) -> Tuple[float, float, float, float]:
        return (self.x, self.y, self.width, self.height)

    def contains_point(self, x: float, y: float) -> bool:
        return self.x <= x <= self.x + self.width and self.y <= y <= self.y + self.height

    def handle_points(self) -> List[Tuple[Handle, float, float]]:
        x1 = self.x + self.width
        y1 = self.y + self.height
        return [
            (Handle.TL, self.x, self.y),
            (Handle.TR, x1, self.y),
            (Handle.BL, self.x, y1),
            (Handle.BR, x1, y1),
        ]

    def clamp_to_bitmap(self, bw: float, bh: float) -> "RectSelection":
        min_w = min(MIN_SIZE, bw)
        min_h = min(MIN_SIZE, bh)
        w = _clip(_finite(self.width, min_w), min_w, bw)
        h = _clip(_finite(self.height, min_h), min_h, bh)
        x = _clip(_finite(self.x, 0.0), 0.0, bw - w)
        y = _clip(_finite(self.y, 0.0), 0.0, bh - h)
        return RectSelection(x, y, w, h)

    def move_to(self, x: float, y: float, bw: float, bh: float) -> "RectSelection":
        return replace(self, x=x, y=y).clamp_to_bitmap(bw, bh)

    def resize(self, handle: Handle, px: float, py: float, bw: float, bh: float) -> "RectSelection":
        px = _clip(_finite(px, self.x), 0.0, bw)
        py = _clip(_finite(py, self.y), 0.0, bh)
        left, top = self.x, self.y
        right, bottom = self.x + self.width, self.y + self.height

        # Dragged edges follow the pointer; the opposite corner stays put.
        if handle in (Handle.TL, Handle.BL):
            left = max(0.0, min(px, right - MIN_SIZE))
        elif handle in (Handle.TR, Handle.BR):
            right = min(bw, max(px, left + MIN_SIZE))
        else:
            return self.clamp_to_bitmap(bw, bh)

        if handle in (Handle.TL, Handle.TR):
            top = max(0.0, min(py, bottom - MIN_SIZE))
        else:
            bottom = min(bh, max(py, top + MIN_SIZE))

        return RectSelection(left, top, right - left, bottom - top).clamp_to_bitmap(bw, bh)

    def describe(self) -> str:
        return (
            f"{round(self.width)} × {round(self.height)} "
            f"at ({round(self.x)}, {round(self.y)})"
        )


@dataclass(frozen=True)
class CircleSelection:
    x: float
    y: float
    radius: float

    kind = ShapeKind.CIRCLE

    @property
    def center(self) -> Tuple[float, float]:
        return (self.x + self.radius, self.y + self.radius)

    def bounds(self) -> Tuple[float, float, float, float]:
        d = self.radius * 2.0
        return (self.x, self.y, d, d)

    def contains_point(self, x: float, y: float) -> bool:
        cx, cy = self.center
        return math.hypot(x - cx, y - cy) <= self.radius

    def handle_points(self) -> List[Tuple[Handle, float, float]]:
        return [(Handle.CIRCLE, self.x + self.radius * 2.0, self.y + self.radius)]

    def clamp_to_bitmap(self, bw: float, bh: float) -> "CircleSelection":
        max_r = min(bw, bh) / 2.0
        min_r = min(MIN_RADIUS, max_r)
        r = _clip(_finite(self.radius, min_r), min_r, max_r)
        x = _clip(_finite(self.x, 0.0), 0.0, bw - 2.0 * r)
        y = _clip(_finite(self.y, 0.0), 0.0, bh - 2.0 * r)
        return CircleSelection(x, y, r)

    def move_to(self, x: float, y: float, bw: float, bh: float) -> "CircleSelection":
        return replace(self, x=x, y=y).clamp_to_bitmap(bw, bh)

    def resize(self, handle: Handle, px: float, py: float, bw: float, bh: float) -> "CircleSelection":
        cx, cy = self.center
        dist = _finite(math.hypot(_finite(px, cx) - cx, _finite(py, cy) - cy), self.radius)
        limit = min(bw - self.x, bh - self.y) / 2.0
        r = max(MIN_RADIUS, min(dist, limit))
        return CircleSelection(self.x, self.y, r).clamp_to_bitmap(bw, bh)

    def describe(self) -> str:
        cx, cy = self.center
        return f"radius {round(self.radius)} at ({round(cx)}, {round(cy)})"


Selection = Union[RectSelection, CircleSelection]


def contains_point(selection: Selection, x: float, y: float) -> bool:
    return selection.contains_point(x, y)


def hit_test_handle(selection: Selection, x: float, y: float, tolerance: float) -> Optional[Handle]:
    """
    Return the handle within `tolerance` image px of (x, y), nearest first.
    """
    best: Optional[Handle] = None
    best_d = float(tolerance)
    for handle, hx, hy in selection.handle_points():
        d = math.hypot(x - hx, y - hy)
        if d <= best_d:
            best = handle
            best_d = d
    return best


def clamp_to_bitmap(selection: Selection, bw: float, bh: float) -> Selection:
    return selection.clamp_to_bitmap(bw, bh)


def resize(selection: Selection, handle: Handle, px: float, py: float, bw: float, bh: float) -> Selection:
    return selection.resize(handle, px, py, bw, bh)


def move_to(selection: Selection, x: float, y: float, bw: float, bh: float) -> Selection:
    return selection.move_to(x, y, bw, bh)


def default_selections(bw: int, bh: int) -> Tuple[RectSelection, CircleSelection]:
    x = math.floor(bw * 0.2)
    y = math.floor(bh * 0.2)
    rect = RectSelection(x, y, math.floor(bw * 0.3), math.floor(bh * 0.3))
    circle = CircleSelection(x, y, math.floor(min(bw, bh) * 0.15))
    return rect.clamp_to_bitmap(bw, bh), circle.clamp_to_bitmap(bw, bh)


def describe(selection: Selection) -> str:
    return selection.describe()
