from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional, Tuple, Union

from PIL import Image

from core.blur import BlurFn, gaussian_blur
from core.compositor import render_preview
from core.export import ExportResult, export_image
from core.geometry import ShapeKind
from core.interaction import (
    IDLE,
    Cursor,
    InteractionState,
    PointerDown,
    PointerEvent,
    PointerLeave,
    PointerMove,
    PointerUp,
    handle_event,
)
from core.state import SessionState, ToolConfig
from core.viewport import compute_display_scale, container_width_for, handle_tolerance, to_image_space

logger = logging.getLogger(__name__)


class BlurSession:
    """
    Owns the session and gesture state of one editing tool instance.

    Every entry point replaces `state` with a new immutable value; nothing
    else holds a reference that can change underneath a redraw.
    """

    def __init__(self, config: Optional[ToolConfig] = None, blur: BlurFn = gaussian_blur):
        self.config = config or ToolConfig()
        self.blur = blur
        self.state = SessionState(blur_radius_px=self.config.default_blur)
        self.interaction: InteractionState = IDLE
        self.cursor: Cursor = Cursor.CROSSHAIR

        self._container_width: Optional[float] = None
        self._next_ticket = 0
        self._installed_ticket = -1

    # ---------------------------
    # Image loading
    # ---------------------------
    def begin_load(self) -> int:
        ticket = self._next_ticket
        self._next_ticket += 1
        return ticket

    def finish_load(self, ticket: int, bitmap: Image.Image) -> bool:
        """Install `bitmap` unless a newer load already landed."""
        if ticket <= self._installed_ticket:
            logger.info("Discarding stale image load (ticket %d <= %d)", ticket, self._installed_ticket)
            return False
        self._installed_ticket = ticket
        self.install_bitmap(bitmap)
        logger.info("Installed %dx%d image (ticket %d)", bitmap.width, bitmap.height, ticket)
        return True

    def fail_load(self, ticket: int, error: Exception) -> None:
        logger.warning("Image load %d failed: %s", ticket, error)

    def install_bitmap(self, bitmap: Image.Image) -> None:
        self.state = self.state.with_bitmap(bitmap)
        self.interaction = IDLE
        self._recompute_scale()

    # ---------------------------
    # Settings
    # ---------------------------
    def set_shape_kind(self, kind: Union[str, ShapeKind]) -> None:
        self.state = replace(self.state, shape_kind=ShapeKind.parse(kind))
        self.interaction = IDLE

    def set_blur_radius(self, radius: int) -> None:
        self.state = replace(self.state, blur_radius_px=self.config.clamp_blur(radius))

    def set_preview_enabled(self, enabled: bool) -> None:
        self.state = replace(self.state, preview_enabled=bool(enabled))

    def reset_selection(self) -> None:
        self.state = self.state.with_defaults()
        self.interaction = IDLE

    # ---------------------------
    # Viewport
    # ---------------------------
    def set_viewport_width(self, widget_width: float) -> float:
        self._container_width = container_width_for(widget_width, self.config.container_padding)
        return self._recompute_scale()

    def _recompute_scale(self) -> float:
        if self.state.bitmap is None:
            return self.state.display_scale
        container = self._container_width
        if container is None:
            container = float(self.config.max_display_width)
        scale = compute_display_scale(self.state.bitmap.width, container, self.config.max_display_width)
        if scale != self.state.display_scale:
            logger.debug("Display scale %.4f -> %.4f", self.state.display_scale, scale)
            self.state = replace(self.state, display_scale=scale)
        return scale

    @property
    def display_size(self) -> Tuple[int, int]:
        bw, bh = self.state.bitmap_size
        s = self.state.display_scale
        return (int(round(bw * s)), int(round(bh * s)))

    # ---------------------------
    # Pointer input (display px, relative to `origin`)
    # ---------------------------
    def _dispatch(self, event: PointerEvent) -> Optional[Cursor]:
        tolerance = handle_tolerance(self.state.display_scale, self.config.handle_size)
        tr = handle_event(self.state, self.interaction, event, tolerance)
        self.state = tr.state
        self.interaction = tr.interaction
        if tr.cursor is not None:
            self.cursor = tr.cursor
        return tr.cursor

    def pointer_down(self, display_x: float, display_y: float, origin: Tuple[float, float] = (0.0, 0.0)) -> Optional[Cursor]:
        x, y = to_image_space(display_x, display_y, origin, self.state.display_scale)
        return self._dispatch(PointerDown(x, y))

    def pointer_move(self, display_x: float, display_y: float, origin: Tuple[float, float] = (0.0, 0.0)) -> Optional[Cursor]:
        x, y = to_image_space(display_x, display_y, origin, self.state.display_scale)
        return self._dispatch(PointerMove(x, y))

    def pointer_up(self) -> Optional[Cursor]:
        return self._dispatch(PointerUp())

    def pointer_leave(self) -> Optional[Cursor]:
        return self._dispatch(PointerLeave())

    # ---------------------------
    # Output
    # ---------------------------
    def render(self) -> Optional[Image.Image]:
        return render_preview(self.state, self.blur)

    def export(self) -> Optional[ExportResult]:
        return export_image(self.state, self.blur)

    def status_text(self) -> str:
        bw, bh = self.state.bitmap_size
        if not self.state.has_bitmap:
            return "No image loaded"
        return f"Image: {bw} × {bh} pixels | Blur area: {self.state.selection.describe()}"
