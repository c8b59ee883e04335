from __future__ import annotations

from functools import lru_cache

import numpy as np

from plotcompose.raster.canvas import RGBA, blend_coverage


@lru_cache(maxsize=16)
def _disc_stamp(radius: int) -> np.ndarray:
    offsets = np.arange(-radius, radius + 1)
    disc = (offsets[:, None] ** 2 + offsets[None, :] ** 2) <= radius * radius + radius
    return disc.astype(np.uint8) * 255


def draw_markers(dst: np.ndarray, xs: np.ndarray, ys: np.ndarray, color: RGBA, size: int = 3) -> None:
    radius = max(0, size // 2)
    stamp = _disc_stamp(radius)
    px = np.rint(xs).astype(np.int64).tolist()
    py = np.rint(ys).astype(np.int64).tolist()
    for x, y in zip(px, py, strict=True):
        blend_coverage(dst, x - radius, y - radius, stamp, color)
