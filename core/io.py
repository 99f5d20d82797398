from __future__ import annotations

import http.client
import logging
import urllib.error
import urllib.request
from io import BytesIO
from pathlib import Path

from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

USER_AGENT = "SelectiveBlur/0.1"


class DecodeError(Exception):
    """Raised when an image cannot be read, fetched or decoded."""


def _decode(fp, label: str) -> Image.Image:
    try:
        img = Image.open(fp)
        img.load()
    except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as e:
        raise DecodeError(f"Cannot decode image {label}: {e}") from e
    # Convert to RGBA for consistent compositing
    return img.convert("RGBA")


def load_image_rgba(path: str) -> Image.Image:
    p = Path(path)
    if not p.is_file():
        raise DecodeError(f"No such image file: {path}")
    with p.open("rb") as f:
        return _decode(f, p.name)


def load_image_bytes(data: bytes) -> Image.Image:
    if not data:
        raise DecodeError("Empty image data")
    return _decode(BytesIO(data), f"({len(data)} bytes)")


def load_image_url(url: str, timeout: float = 10.0) -> Image.Image:
    req = urllib.request.Request(url, headers={"User-Agent": USER_AGENT})
    try:
        with urllib.request.urlopen(req, timeout=timeout) as response:
            data = response.read()
    except (urllib.error.URLError, http.client.HTTPException, OSError, ValueError) as e:
        raise DecodeError(f"Cannot fetch {url}: {e}") from e
    logger.debug("Fetched %d bytes from %s", len(data), url)
    return load_image_bytes(data)
