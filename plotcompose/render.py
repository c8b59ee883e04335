from __future__ import annotations

import numpy as np
from PIL import Image

from plotcompose.renderable import Renderable, resolve_size
from plotcompose.shaping import TextShaper


def render(item: Renderable, width: int | None = None, height: int | None = None, *, shaper: TextShaper | None = None) -> np.ndarray:
    """Rasterise any renderable to an (H, W, 4) uint8 RGBA array."""
    if not isinstance(item, Renderable):
        raise TypeError(f"expected a renderable, got {type(item)!r}")
    w, h = resolve_size(item, width, height)
    rgba = item.render(w, h, shaper=shaper)
    if rgba.shape != (h, w, 4) or rgba.dtype != np.uint8:
        raise ValueError(f"renderer returned {rgba.shape} {rgba.dtype}, expected ({h}, {w}, 4) uint8")
    return rgba


def to_image(item: Renderable, width: int | None = None, height: int | None = None, *, shaper: TextShaper | None = None) -> Image.Image:
    return Image.fromarray(render(item, width, height, shaper=shaper))
