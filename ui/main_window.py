from __future__ import annotations
import logging
from pathlib import Path
from typing import Optional, Tuple

from PIL import Image

from PySide6.QtCore import Qt
from PySide6.QtGui import QAction, QImage, QKeySequence, QIcon
from PySide6.QtWidgets import (
    QMainWindow, QWidget, QFileDialog, QVBoxLayout, QHBoxLayout, QLabel,
    QSlider, QCheckBox, QPushButton, QMessageBox, QDockWidget, QInputDialog,
    QGroupBox, QButtonGroup,
)

from core.export import write_export
from core.geometry import ShapeKind
from core.interaction import Cursor
from core.session import BlurSession
from core.state import ToolConfig
from ui.canvas_widget import CanvasWidget
from ui.image_loader import ImageLoader

logger = logging.getLogger(__name__)


def pil_rgba_to_qimage(img: Image.Image) -> QImage:
    img = img.convert("RGBA")
    w, h = img.size
    data = img.tobytes("raw", "RGBA")
    qimg = QImage(data, w, h, QImage.Format_RGBA8888)
    # Important: keep a copy because Python-owned bytes may be freed
    return qimg.copy()


class MainWindow(QMainWindow):
    def __init__(self, config: Optional[ToolConfig] = None, logo_path: Optional[Path] = None):
        super().__init__()
        if logo_path is not None and logo_path.exists():
            self.setWindowIcon(QIcon(str(logo_path)))
        self.setWindowTitle("Selective Blur")

        self.session = BlurSession(config or ToolConfig())
        self._pending_label: dict[int, str] = {}

        self.loader = ImageLoader(self)
        self.loader.loaded.connect(self._on_image_loaded)
        self.loader.failed.connect(self._on_image_failed)

        # Central
        self.canvas = CanvasWidget(
            on_pointer_down=self._pointer_down,
            on_pointer_move=self._pointer_move,
            on_pointer_up=self._pointer_up,
            on_pointer_leave=self._pointer_leave,
            on_viewport_resized=self._viewport_resized,
            padding=self.session.config.container_padding,
        )

        central = QWidget()
        lay = QVBoxLayout()
        lay.addWidget(self.canvas)
        central.setLayout(lay)
        self.setCentralWidget(central)

        self._build_menu()
        self._build_controls_dock()

        self.setAcceptDrops(True)
        self.resize(1100, 760)
        self._rerender()

    # ---------------------------
    # Menu / Actions
    # ---------------------------
    def _build_menu(self) -> None:
        open_act = QAction("Open…", self)
        open_act.setShortcut(QKeySequence.StandardKey.Open)
        open_act.triggered.connect(self.open_file)

        open_url_act = QAction("Open URL…", self)
        open_url_act.triggered.connect(self.open_url)

        self._act_save = QAction("Save As…", self)
        self._act_save.setShortcut(QKeySequence.StandardKey.SaveAs)
        self._act_save.triggered.connect(self.save_as)

        reset_act = QAction("Reset Selection", self)
        reset_act.setShortcut("R")
        reset_act.triggered.connect(self._reset_selection)

        quit_act = QAction("Quit", self)
        quit_act.setShortcut(QKeySequence.StandardKey.Quit)
        quit_act.triggered.connect(self.close)

        mfile = self.menuBar().addMenu("File")
        mfile.addAction(open_act)
        mfile.addAction(open_url_act)
        mfile.addAction(self._act_save)
        mfile.addSeparator()
        mfile.addAction(quit_act)

        medit = self.menuBar().addMenu("Edit")
        medit.addAction(reset_act)

    # ---------------------------
    # Controls dock
    # ---------------------------
    def _make_group(self, title: str) -> Tuple[QGroupBox, QVBoxLayout]:
        g = QGroupBox(title)
        gl = QVBoxLayout(g)
        return g, gl

    def _build_controls_dock(self) -> None:
        cfg = self.session.config
        dock = QDockWidget("Controls", self)
        dock.setAllowedAreas(Qt.LeftDockWidgetArea | Qt.RightDockWidgetArea)

        panel = QWidget()
        v = QVBoxLayout(panel)

        g_shape, gl_shape = self._make_group("Blur Shape")
        shape_row = QHBoxLayout()
        self.rect_btn = QPushButton("Rectangle")
        self.circle_btn = QPushButton("Circle")
        self._shape_group = QButtonGroup(self)
        self._shape_group.setExclusive(True)
        for btn, kind in ((self.rect_btn, ShapeKind.RECTANGLE), (self.circle_btn, ShapeKind.CIRCLE)):
            btn.setCheckable(True)
            btn.clicked.connect(lambda _checked=False, k=kind: self._set_shape(k))
            self._shape_group.addButton(btn)
            shape_row.addWidget(btn)
        self.rect_btn.setChecked(True)
        gl_shape.addLayout(shape_row)
        v.addWidget(g_shape)

        g_blur, gl_blur = self._make_group("Blur Intensity")
        self.blur_slider = QSlider(Qt.Horizontal)
        self.blur_slider.setRange(cfg.blur_min, cfg.blur_max)
        self.blur_slider.setValue(self.session.state.blur_radius_px)
        self.blur_slider.valueChanged.connect(self._on_blur_changed)
        gl_blur.addWidget(self.blur_slider)
        labels = QHBoxLayout()
        labels.addWidget(QLabel("Light"))
        self.blur_label = QLabel(f"{self.session.state.blur_radius_px}px")
        self.blur_label.setAlignment(Qt.AlignCenter)
        labels.addWidget(self.blur_label)
        strong = QLabel("Strong")
        strong.setAlignment(Qt.AlignRight)
        labels.addWidget(strong)
        gl_blur.addLayout(labels)
        v.addWidget(g_blur)

        g_prev, gl_prev = self._make_group("Preview")
        self.preview_chk = QCheckBox("Show blur preview")
        self.preview_chk.setChecked(self.session.state.preview_enabled)
        self.preview_chk.toggled.connect(self._on_preview_toggled)
        gl_prev.addWidget(self.preview_chk)
        v.addWidget(g_prev)

        g_act, gl_act = self._make_group("Actions")
        act_row = QHBoxLayout()
        reset_btn = QPushButton("Reset")
        reset_btn.clicked.connect(self._reset_selection)
        act_row.addWidget(reset_btn)
        self.save_btn = QPushButton("Save")
        self.save_btn.clicked.connect(self.save_as)
        act_row.addWidget(self.save_btn)
        gl_act.addLayout(act_row)
        v.addWidget(g_act)

        help_lbl = QLabel(
            "Drag inside the selection to move it.\n"
            "Drag the corner handles (rectangle) or the edge handle (circle) to resize."
        )
        help_lbl.setWordWrap(True)
        v.addWidget(help_lbl)

        v.addStretch(1)
        dock.setWidget(panel)
        self.addDockWidget(Qt.RightDockWidgetArea, dock)

    # ---------------------------
    # File IO
    # ---------------------------
    def open_file(self) -> None:
        path, _ = QFileDialog.getOpenFileName(
            self, "Open Image", "", "Images (*.png *.jpg *.jpeg *.bmp *.webp *.gif *.tif *.tiff)"
        )
        if not path:
            return
        self.load_path(path)

    def open_url(self) -> None:
        url, ok = QInputDialog.getText(self, "Open URL", "Image URL:")
        url = url.strip()
        if ok and url:
            self.load_url(url)

    def load_path(self, path: str) -> None:
        ticket = self.session.begin_load()
        self._pending_label[ticket] = path
        self.loader.load_path(ticket, path)

    def load_url(self, url: str) -> None:
        ticket = self.session.begin_load()
        self._pending_label[ticket] = url
        self.loader.load_url(ticket, url)

    def load_source(self, source: str) -> None:
        if source.startswith(("http://", "https://")):
            self.load_url(source)
        else:
            self.load_path(source)

    def _on_image_loaded(self, ticket: int, img: Image.Image) -> None:
        self._pending_label.pop(ticket, None)
        if self.session.finish_load(ticket, img):
            self._sync_ui_from_state()
            self._rerender()

    def _on_image_failed(self, ticket: int, message: str) -> None:
        label = self._pending_label.pop(ticket, "image")
        self.session.fail_load(ticket, RuntimeError(message))
        QMessageBox.critical(self, "Open failed", f"Could not load {label}:\n{message}")

    def save_as(self) -> None:
        result = self.session.export()
        if result is None:
            QMessageBox.information(self, "Nothing to save", "Load an image first.")
            return

        path, _ = QFileDialog.getSaveFileName(self, "Save As", result.filename, "PNG (*.png)")
        if not path:
            return
        if not path.lower().endswith(".png"):
            path += ".png"

        try:
            written = write_export(result, path)
        except OSError as e:
            logger.error("Save to %s failed: %s", path, e)
            QMessageBox.critical(self, "Save failed", str(e))
            return
        logger.info("Saved %s", written)
        self.statusBar().showMessage(f"Saved {written}", 5000)

    # ---------------------------
    # Drag & drop support
    # ---------------------------
    def dragEnterEvent(self, e) -> None:
        if e.mimeData().hasUrls():
            e.acceptProposedAction()

    def dropEvent(self, e) -> None:
        urls = e.mimeData().urls()
        if not urls:
            return
        url = urls[0]
        if url.isLocalFile():
            self.load_path(url.toLocalFile())
        elif url.scheme() in ("http", "https"):
            self.load_url(url.toString())

    # ---------------------------
    # Controls
    # ---------------------------
    def _set_shape(self, kind: ShapeKind) -> None:
        self.session.set_shape_kind(kind)
        self._rerender()

    def _on_blur_changed(self, value: int) -> None:
        self.session.set_blur_radius(value)
        self.blur_label.setText(f"{self.session.state.blur_radius_px}px")
        self._rerender()

    def _on_preview_toggled(self, checked: bool) -> None:
        self.session.set_preview_enabled(checked)
        self._rerender()

    def _reset_selection(self) -> None:
        self.session.reset_selection()
        self._rerender()

    def _sync_ui_from_state(self) -> None:
        st = self.session.state
        self.rect_btn.setChecked(st.shape_kind == ShapeKind.RECTANGLE)
        self.circle_btn.setChecked(st.shape_kind == ShapeKind.CIRCLE)
        self.blur_slider.blockSignals(True)
        self.blur_slider.setValue(st.blur_radius_px)
        self.blur_slider.blockSignals(False)
        self.blur_label.setText(f"{st.blur_radius_px}px")
        self.preview_chk.blockSignals(True)
        self.preview_chk.setChecked(st.preview_enabled)
        self.preview_chk.blockSignals(False)

    # ---------------------------
    # Pointer / viewport
    # ---------------------------
    def _pointer_down(self, x: float, y: float, origin: Tuple[float, float]) -> Optional[Cursor]:
        before = self.session.state
        cursor = self.session.pointer_down(x, y, origin)
        if self.session.state is not before:
            self._rerender()
        return cursor

    def _pointer_move(self, x: float, y: float, origin: Tuple[float, float]) -> Optional[Cursor]:
        before = self.session.state
        cursor = self.session.pointer_move(x, y, origin)
        if self.session.state is not before:
            self._rerender()
        return cursor

    def _pointer_up(self) -> Optional[Cursor]:
        return self.session.pointer_up()

    def _pointer_leave(self) -> Optional[Cursor]:
        return self.session.pointer_leave()

    def _viewport_resized(self, width: int) -> None:
        before = self.session.state.display_scale
        self.session.set_viewport_width(width)
        if self.session.state.display_scale != before:
            self._rerender()

    # ---------------------------
    # Rendering
    # ---------------------------
    def _rerender(self) -> None:
        preview = self.session.render()
        if preview is None:
            self.canvas.set_preview(None, (0, 0))
        else:
            self.canvas.set_preview(pil_rgba_to_qimage(preview), self.session.display_size)
        has_image = self.session.state.has_bitmap
        self._act_save.setEnabled(has_image)
        self.save_btn.setEnabled(has_image)
        self._update_status()

    def _update_status(self) -> None:
        self.statusBar().showMessage(self.session.status_text())
