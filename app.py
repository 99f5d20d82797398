import argparse
import logging
import sys
from pathlib import Path

from PySide6.QtGui import QIcon
from PySide6.QtWidgets import QApplication

from core.state import ToolConfig
from ui.main_window import MainWindow


def _asset_path(*parts: str) -> Path:
    # PyInstaller onefile extracts bundled files under sys._MEIPASS.
    if getattr(sys, "frozen", False):
        return Path(getattr(sys, "_MEIPASS")) / Path(*parts)
    return Path(__file__).resolve().parent / Path(*parts)


def setup_logging(debug: bool = False) -> None:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
    root = logging.getLogger()
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if debug else logging.INFO)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="selective-blur", description="Blur a region of an image.")
    parser.add_argument("image", nargs="?", help="image path or http(s) URL to open")
    parser.add_argument("--debug", action="store_true", help="verbose logging")
    return parser.parse_args(argv)


def main() -> int:
    args = _parse_args(sys.argv[1:])
    setup_logging(args.debug)

    app = QApplication(sys.argv[:1])
    app.setApplicationName("Selective Blur")

    logo_path = _asset_path("assets", "Logo.png")
    if logo_path.exists():
        app.setWindowIcon(QIcon(str(logo_path)))

    config = ToolConfig.from_env()
    w = MainWindow(config=config, logo_path=logo_path)
    w.show()

    source = args.image or config.default_image_url
    if source:
        w.load_source(source)
    return app.exec()


if __name__ == "__main__":
    raise SystemExit(main())
