"""
Pointer gesture state machine for the selection.

States: Idle, Dragging(grab offset), Resizing(handle). Events arrive already
converted to image px; `handle_event` is a pure transition that returns the
new session state, the new interaction state and the cursor to show.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple, Optional, Union

from core.geometry import Handle, Selection, hit_test_handle, move_to, resize
from core.state import SessionState


class Cursor(str, Enum):
    NW_RESIZE = "nw-resize"
    NE_RESIZE = "ne-resize"
    E_RESIZE = "e-resize"
    MOVE = "move"
    CROSSHAIR = "crosshair"


_HANDLE_CURSORS = {
    Handle.TL: Cursor.NW_RESIZE,
    Handle.BR: Cursor.NW_RESIZE,
    Handle.TR: Cursor.NE_RESIZE,
    Handle.BL: Cursor.NE_RESIZE,
    Handle.CIRCLE: Cursor.E_RESIZE,
}


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Dragging:
    grab_dx: float
    grab_dy: float


@dataclass(frozen=True)
class Resizing:
    handle: Handle


InteractionState = Union[Idle, Dragging, Resizing]

IDLE = Idle()


@dataclass(frozen=True)
class PointerDown:
    x: float
    y: float


@dataclass(frozen=True)
class PointerMove:
    x: float
    y: float


@dataclass(frozen=True)
class PointerUp:
    pass


@dataclass(frozen=True)
class PointerLeave:
    pass


PointerEvent = Union[PointerDown, PointerMove, PointerUp, PointerLeave]


class Transition(NamedTuple):
    state: SessionState
    interaction: InteractionState
    cursor: Optional[Cursor] = None


def cursor_for_handle(handle: Optional[Handle]) -> Cursor:
    if handle is None:
        return Cursor.CROSSHAIR
    return _HANDLE_CURSORS[handle]


def hover_cursor(selection: Selection, x: float, y: float, tolerance: float) -> Cursor:
    handle = hit_test_handle(selection, x, y, tolerance)
    if handle is not None:
        return cursor_for_handle(handle)
    if selection.contains_point(x, y):
        return Cursor.MOVE
    return Cursor.CROSSHAIR


def _pointer_down(state: SessionState, ev: PointerDown, tolerance: float) -> Transition:
    sel = state.selection
    # Handles win over the interior so small selections stay resizable.
    handle = hit_test_handle(sel, ev.x, ev.y, tolerance)
    if handle is not None:
        return Transition(state, Resizing(handle), cursor_for_handle(handle))
    if sel.contains_point(ev.x, ev.y):
        return Transition(state, Dragging(ev.x - sel.x, ev.y - sel.y), Cursor.MOVE)
    return Transition(state, IDLE, Cursor.CROSSHAIR)


def _pointer_move(
    state: SessionState,
    interaction: InteractionState,
    ev: PointerMove,
    tolerance: float,
) -> Transition:
    bw, bh = state.bitmap_size
    sel = state.selection

    if isinstance(interaction, Dragging):
        moved = move_to(sel, ev.x - interaction.grab_dx, ev.y - interaction.grab_dy, bw, bh)
        return Transition(state.with_selection(moved), interaction, Cursor.MOVE)

    if isinstance(interaction, Resizing):
        resized = resize(sel, interaction.handle, ev.x, ev.y, bw, bh)
        return Transition(state.with_selection(resized), interaction, cursor_for_handle(interaction.handle))

    return Transition(state, IDLE, hover_cursor(sel, ev.x, ev.y, tolerance))


def handle_event(
    state: SessionState,
    interaction: InteractionState,
    event: PointerEvent,
    tolerance: float,
) -> Transition:
    if state.bitmap is None:
        return Transition(state, IDLE, None)

    if isinstance(event, (PointerUp, PointerLeave)):
        return Transition(state, IDLE, None)

    if isinstance(event, PointerDown):
        if not isinstance(interaction, Idle):
            # A second press mid-gesture keeps the current gesture.
            return Transition(state, interaction, None)
        return _pointer_down(state, event, tolerance)

    if isinstance(event, PointerMove):
        return _pointer_move(state, interaction, event, tolerance)

    raise TypeError(f"Unknown pointer event: {event!r}")
