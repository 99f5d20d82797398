from __future__ import annotations

from typing import Callable

from PIL import Image, ImageFilter

BlurFn = Callable[[Image.Image, int], Image.Image]


def gaussian_blur(img: Image.Image, radius: int) -> Image.Image:
    if radius <= 0:
        return img.copy()
    return img.filter(ImageFilter.GaussianBlur(radius=float(radius)))
