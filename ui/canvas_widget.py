from __future__ import annotations
from typing import Callable, Optional, Tuple

from PySide6.QtCore import Qt, QPoint, QRectF
from PySide6.QtGui import QPainter, QImage, QPixmap, QColor, QPen, QCursor
from PySide6.QtWidgets import QWidget

from core.interaction import Cursor
from core.viewport import CONTAINER_PADDING, image_origin, in_display_area

_QT_CURSORS = {
    Cursor.NW_RESIZE: Qt.SizeFDiagCursor,
    Cursor.NE_RESIZE: Qt.SizeBDiagCursor,
    Cursor.E_RESIZE: Qt.SizeHorCursor,
    Cursor.MOVE: Qt.SizeAllCursor,
    Cursor.CROSSHAIR: Qt.CrossCursor,
}


class CanvasWidget(QWidget):
    """
    Shows the composited preview scaled by the session display scale.
    Pointer events are reported in widget px together with the image origin,
    so callers can map them into image space:
      - on_pointer_down(x, y, origin) / on_pointer_move(x, y, origin)
      - on_pointer_up() on left release, on_pointer_leave() when the pointer exits
        the widget or is dragged off the image
      - on_viewport_resized(width) whenever the widget width changes
    Each callback may return a Cursor which is applied immediately.
    `padding` must be the container padding the session uses for the scale.
    """
    def __init__(
        self,
        on_pointer_down: Callable[[float, float, Tuple[float, float]], Optional[Cursor]],
        on_pointer_move: Callable[[float, float, Tuple[float, float]], Optional[Cursor]],
        on_pointer_up: Callable[[], Optional[Cursor]],
        on_pointer_leave: Callable[[], Optional[Cursor]],
        on_viewport_resized: Callable[[int], None],
        padding: float = CONTAINER_PADDING,
        parent: Optional[QWidget] = None,
    ):
        super().__init__(parent)
        self._padding = padding
        self.setMouseTracking(True)
        self.setMinimumSize(320, 240)
        self.setCursor(QCursor(Qt.CrossCursor))

        self._preview: Optional[QImage] = None
        self._display_size: Tuple[int, int] = (0, 0)
        self._pressed = False

        self._on_pointer_down = on_pointer_down
        self._on_pointer_move = on_pointer_move
        self._on_pointer_up = on_pointer_up
        self._on_pointer_leave = on_pointer_leave
        self._on_viewport_resized = on_viewport_resized

    def set_preview(self, qimg: Optional[QImage], display_size: Tuple[int, int]) -> None:
        self._preview = qimg
        self._display_size = display_size
        self.update()

    def image_origin(self) -> Tuple[float, float]:
        return image_origin(self.width(), self._display_size[0], self._padding)

    def apply_cursor(self, cursor: Optional[Cursor]) -> None:
        if cursor is None:
            return
        self.setCursor(QCursor(_QT_CURSORS[cursor]))

    def paintEvent(self, _) -> None:
        p = QPainter(self)
        p.setRenderHint(QPainter.SmoothPixmapTransform, True)
        p.fillRect(self.rect(), QColor(255, 255, 255))

        if self._preview is None:
            p.setPen(QPen(QColor(110, 110, 110)))
            p.drawText(self.rect(), Qt.AlignCenter, "Drop an image or File → Open…")
            return

        # Only the presentation is scaled; pixel content stays at image resolution.
        x0, y0 = self.image_origin()
        dw, dh = self._display_size
        target = QRectF(x0, y0, dw, dh)
        p.drawPixmap(target, QPixmap.fromImage(self._preview), QRectF(self._preview.rect()))

        p.setPen(QPen(QColor(229, 231, 235), 1))
        p.drawRect(target.adjusted(-1, -1, 0, 0))

    def resizeEvent(self, e) -> None:
        super().resizeEvent(e)
        if e.size().width() != e.oldSize().width():
            self._on_viewport_resized(e.size().width())

    def _pos(self, e) -> QPoint:
        return e.position().toPoint()

    def mousePressEvent(self, e) -> None:
        if e.button() != Qt.LeftButton:
            return
        self._pressed = True
        pos = self._pos(e)
        self.apply_cursor(self._on_pointer_down(pos.x(), pos.y(), self.image_origin()))

    def mouseMoveEvent(self, e) -> None:
        pos = self._pos(e)
        origin = self.image_origin()
        # The mouse grab holds back leaveEvent, so leaving the image ends the gesture here.
        if self._pressed and not in_display_area(pos.x(), pos.y(), origin, self._display_size):
            self._pressed = False
            self.apply_cursor(self._on_pointer_leave())
            return
        self.apply_cursor(self._on_pointer_move(pos.x(), pos.y(), origin))

    def mouseReleaseEvent(self, e) -> None:
        if e.button() != Qt.LeftButton or not self._pressed:
            return
        self._pressed = False
        self.apply_cursor(self._on_pointer_up())

    def leaveEvent(self, e) -> None:
        self._pressed = False
        self.apply_cursor(self._on_pointer_leave())
        super().leaveEvent(e)
