from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from typing import Optional

from PIL import Image

from core.geometry import (
    CircleSelection,
    RectSelection,
    Selection,
    ShapeKind,
    default_selections,
)
from core.viewport import CONTAINER_PADDING, HANDLE_SIZE, MAX_DISPLAY_WIDTH

DEFAULT_IMAGE_URL = "https://picsum.photos/600/400?random=1"
DEFAULT_IMAGE_ENV = "SELECTIVE_BLUR_DEFAULT_IMAGE"


@dataclass
class ToolConfig:
    handle_size: float = HANDLE_SIZE
    max_display_width: int = MAX_DISPLAY_WIDTH
    container_padding: int = CONTAINER_PADDING

    # Blur slider range (px)
    blur_min: int = 1
    blur_max: int = 30
    default_blur: int = 10

    # Remote image shown at startup; None disables it.
    default_image_url: Optional[str] = DEFAULT_IMAGE_URL

    @classmethod
    def from_env(cls) -> "ToolConfig":
        cfg = cls()
        raw = os.environ.get(DEFAULT_IMAGE_ENV)
        if raw is not None:
            cfg.default_image_url = raw.strip() or None
        return cfg

    def clamp_blur(self, value: int) -> int:
        return max(self.blur_min, min(self.blur_max, int(value)))


def _placeholder_rect() -> RectSelection:
    return RectSelection(100.0, 100.0, 200.0, 150.0)


def _placeholder_circle() -> CircleSelection:
    return CircleSelection(100.0, 100.0, 100.0)


@dataclass(frozen=True)
class SessionState:
    bitmap: Optional[Image.Image] = None
    rect: RectSelection = field(default_factory=_placeholder_rect)
    circle: CircleSelection = field(default_factory=_placeholder_circle)
    shape_kind: ShapeKind = ShapeKind.RECTANGLE
    blur_radius_px: int = 10
    preview_enabled: bool = True
    display_scale: float = 1.0

    @property
    def has_bitmap(self) -> bool:
        return self.bitmap is not None

    @property
    def bitmap_size(self) -> tuple[int, int]:
        if self.bitmap is None:
            return (0, 0)
        return self.bitmap.size

    @property
    def selection(self) -> Selection:
        return self.circle if self.shape_kind == ShapeKind.CIRCLE else self.rect

    def with_selection(self, selection: Selection) -> "SessionState":
        if isinstance(selection, CircleSelection):
            return replace(self, circle=selection)
        return replace(self, rect=selection)

    def with_bitmap(self, bitmap: Image.Image) -> "SessionState":
        rect, circle = default_selections(bitmap.width, bitmap.height)
        return replace(self, bitmap=bitmap, rect=rect, circle=circle)

    def with_defaults(self) -> "SessionState":
        if self.bitmap is None:
            return self
        rect, circle = default_selections(self.bitmap.width, self.bitmap.height)
        return replace(self, rect=rect, circle=circle)
