from __future__ import annotations

import numpy as np

from plotcompose.raster.canvas import RGBA, fill_rect


def draw_polyline(dst: np.ndarray, xs: np.ndarray, ys: np.ndarray, color: RGBA, width: int = 1) -> None:
    if xs.size < 2:
        return
    pts = np.rint(np.column_stack((xs, ys))).astype(np.int64)
    for (x0, y0), (x1, y1) in zip(pts[:-1].tolist(), pts[1:].tolist(), strict=True):
        _draw_segment(dst, x0, y0, x1, y1, color=color, width=width)


def _draw_segment(dst: np.ndarray, x0: int, y0: int, x1: int, y1: int, *, color: RGBA, width: int) -> None:
    # Bresenham; the brush is a width x width square centred on each step.
    dx = abs(x1 - x0)
    sx = 1 if x0 < x1 else -1
    dy = -abs(y1 - y0)
    sy = 1 if y0 < y1 else -1
    err = dx + dy
    radius = max(0, width // 2)
    size = 2 * radius + 1
    while True:
        fill_rect(dst, x0 - radius, y0 - radius, size, size, color)
        if x0 == x1 and y0 == y1:
            break
        e2 = 2 * err
        if e2 >= dy:
            err += dy
            x0 += sx
        if e2 <= dx:
            err += dx
            y0 += sy
