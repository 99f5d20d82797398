from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import Optional

from core.blur import BlurFn, gaussian_blur
from core.compositor import composite_blur
from core.state import SessionState

logger = logging.getLogger(__name__)

EXPORT_PREFIX = "blurred-image"


@dataclass(frozen=True)
class ExportResult:
    data: bytes
    filename: str
    size: tuple[int, int]


def export_filename(now: Optional[float] = None) -> str:
    ts = time.time() if now is None else float(now)
    return f"{EXPORT_PREFIX}-{int(ts * 1000)}.png"


def export_image(
    state: SessionState,
    blur: BlurFn = gaussian_blur,
    now: Optional[float] = None,
) -> Optional[ExportResult]:
    """
    Flatten the current state to PNG bytes at full bitmap resolution.

    The selection is always blurred here; the preview toggle only affects the
    editing surface. Returns None when no bitmap is loaded.
    """
    if state.bitmap is None:
        return None

    out_img = composite_blur(state.bitmap, state.selection, state.blur_radius_px, blur)
    buf = BytesIO()
    # PNG keeps the result lossless and preserves alpha
    out_img.save(buf, format="PNG")
    result = ExportResult(data=buf.getvalue(), filename=export_filename(now), size=out_img.size)
    logger.info("Exported %s (%d bytes)", result.filename, len(result.data))
    return result


def write_export(result: ExportResult, target: str) -> Path:
    """Write to `target`, or to `target/<generated name>` if it is a folder."""
    path = Path(target)
    if path.is_dir():
        path = path / result.filename
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(result.data)
    return path
