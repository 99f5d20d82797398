from __future__ import annotations

import logging
from typing import Callable, Optional

from PIL import Image
from PySide6.QtCore import QObject, QRunnable, QThreadPool, Signal

from core.io import DecodeError, load_image_rgba, load_image_url

logger = logging.getLogger(__name__)


class ImageLoadSignals(QObject):
    loaded = Signal(int, object)  # ticket, PIL image
    failed = Signal(int, str)  # ticket, error message


class ImageLoadTask(QRunnable):
    """
    Decode one image off the GUI thread. Results come back through
    `signals`, tagged with the ticket handed out by the session.
    """

    def __init__(self, ticket: int, loader: Callable[[], Image.Image], label: str):
        super().__init__()
        self.ticket = ticket
        self.loader = loader
        self.label = label
        self.signals = ImageLoadSignals()
        # The loader holds the reference until the result is delivered.
        self.setAutoDelete(False)

    def run(self) -> None:
        try:
            img = self.loader()
        except DecodeError as e:
            self.signals.failed.emit(self.ticket, str(e))
            return
        except Exception as e:
            logger.exception("Unexpected error loading %s", self.label)
            self.signals.failed.emit(self.ticket, f"Image load error: {e}")
            return
        self.signals.loaded.emit(self.ticket, img)


class ImageLoader(QObject):
    """Starts decode tasks; every request gets its own worker."""

    loaded = Signal(int, object)
    failed = Signal(int, str)

    def __init__(self, parent: Optional[QObject] = None):
        super().__init__(parent)
        self.thread_pool = QThreadPool.globalInstance()
        self._tasks: dict[int, ImageLoadTask] = {}

    def load_path(self, ticket: int, path: str) -> None:
        self._start(ImageLoadTask(ticket, lambda: load_image_rgba(path), path))

    def load_url(self, ticket: int, url: str) -> None:
        self._start(ImageLoadTask(ticket, lambda: load_image_url(url), url))

    def _start(self, task: ImageLoadTask) -> None:
        # Keep the task (and its signals object) alive until it reports back.
        self._tasks[task.ticket] = task
        task.signals.loaded.connect(self._on_loaded)
        task.signals.failed.connect(self._on_failed)
        logger.debug("Loading %s (ticket %d)", task.label, task.ticket)
        self.thread_pool.start(task)

    def _on_loaded(self, ticket: int, img: object) -> None:
        self._tasks.pop(ticket, None)
        self.loaded.emit(ticket, img)

    def _on_failed(self, ticket: int, message: str) -> None:
        self._tasks.pop(ticket, None)
        self.failed.emit(ticket, message)
