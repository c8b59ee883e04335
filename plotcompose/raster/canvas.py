from __future__ import annotations

import numpy as np


RGBA = tuple[int, int, int, int]


def new_canvas(width: int, height: int, color: RGBA = (0, 0, 0, 0)) -> np.ndarray:
    if width <= 0 or height <= 0:
        raise ValueError("canvas width/height must be > 0")
    canvas = np.empty((height, width, 4), dtype=np.uint8)
    canvas[:, :] = np.asarray(color, dtype=np.uint8)
    return canvas


def _clip(dst: np.ndarray, x0: int, y0: int, w: int, h: int) -> tuple[int, int, int, int, int, int] | None:
    dx0 = max(0, x0)
    dy0 = max(0, y0)
    dx1 = min(dst.shape[1], x0 + w)
    dy1 = min(dst.shape[0], y0 + h)
    if dx1 <= dx0 or dy1 <= dy0:
        return None
    return dx0, dy0, dx1, dy1, dx0 - x0, dy0 - y0


def composite(dst_rgb: np.ndarray, dst_alpha: np.ndarray, src_rgb: np.ndarray, src_alpha: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """Porter-Duff "over" on float arrays; alphas are in [0, 1]."""
    out_alpha = src_alpha + dst_alpha * (1.0 - src_alpha)
    num = src_rgb * src_alpha[..., None] + dst_rgb * (dst_alpha * (1.0 - src_alpha))[..., None]
    safe = np.where(out_alpha > 1e-6, out_alpha, 1.0)
    return num / safe[..., None], out_alpha


def blit(dst: np.ndarray, src: np.ndarray, x0: int = 0, y0: int = 0) -> None:
    h, w, _ = src.shape
    clipped = _clip(dst, x0, y0, w, h)
    if clipped is None:
        return
    dx0, dy0, dx1, dy1, sx0, sy0 = clipped
    view = dst[dy0:dy1, dx0:dx1]
    patch = src[sy0 : sy0 + (dy1 - dy0), sx0 : sx0 + (dx1 - dx0)]
    rgb, alpha = composite(
        view[:, :, :3].astype(np.float32),
        view[:, :, 3].astype(np.float32) / 255.0,
        patch[:, :, :3].astype(np.float32),
        patch[:, :, 3].astype(np.float32) / 255.0,
    )
    view[:, :, :3] = np.clip(rgb, 0, 255).astype(np.uint8)
    view[:, :, 3] = np.clip(alpha * 255.0, 0, 255).astype(np.uint8)


def fill_rect(dst: np.ndarray, x0: int, y0: int, width: int, height: int, color: RGBA) -> None:
    clipped = _clip(dst, x0, y0, width, height)
    if clipped is None:
        return
    dx0, dy0, dx1, dy1, _, _ = clipped
    view = dst[dy0:dy1, dx0:dx1]
    src_alpha = np.full(view.shape[:2], color[3] / 255.0, dtype=np.float32)
    src_rgb = np.broadcast_to(np.asarray(color[:3], dtype=np.float32), view.shape[:2] + (3,))
    rgb, alpha = composite(view[:, :, :3].astype(np.float32), view[:, :, 3].astype(np.float32) / 255.0, src_rgb, src_alpha)
    view[:, :, :3] = np.clip(rgb, 0, 255).astype(np.uint8)
    view[:, :, 3] = np.clip(alpha * 255.0, 0, 255).astype(np.uint8)


def draw_hline(dst: np.ndarray, x0: int, x1: int, y: int, color: RGBA) -> None:
    left = min(x0, x1)
    fill_rect(dst, left, y, abs(x1 - x0) + 1, 1, color)


def draw_vline(dst: np.ndarray, x: int, y0: int, y1: int, color: RGBA) -> None:
    top = min(y0, y1)
    fill_rect(dst, x, top, 1, abs(y1 - y0) + 1, color)


def draw_rect_outline(dst: np.ndarray, x0: int, y0: int, width: int, height: int, color: RGBA) -> None:
    if width <= 0 or height <= 0:
        return
    draw_hline(dst, x0, x0 + width - 1, y0, color)
    draw_hline(dst, x0, x0 + width - 1, y0 + height - 1, color)
    draw_vline(dst, x0, y0 + 1, y0 + height - 2, color)
    draw_vline(dst, x0 + width - 1, y0 + 1, y0 + height - 2, color)


def blend_coverage(dst: np.ndarray, x: int, y: int, mask: np.ndarray, color: RGBA) -> None:
    h, w = mask.shape
    clipped = _clip(dst, x, y, w, h)
    if clipped is None:
        return
    dx0, dy0, dx1, dy1, sx0, sy0 = clipped
    cov = mask[sy0 : sy0 + (dy1 - dy0), sx0 : sx0 + (dx1 - dx0)].astype(np.float32) / 255.0
    src_alpha = (color[3] / 255.0) * cov
    if not np.any(src_alpha > 0):
        return
    view = dst[dy0:dy1, dx0:dx1]
    src_rgb = np.broadcast_to(np.asarray(color[:3], dtype=np.float32), cov.shape + (3,))
    rgb, alpha = composite(view[:, :, :3].astype(np.float32), view[:, :, 3].astype(np.float32) / 255.0, src_rgb, src_alpha)
    view[:, :, :3] = np.clip(rgb, 0, 255).astype(np.uint8)
    view[:, :, 3] = np.clip(alpha * 255.0, 0, 255).astype(np.uint8)
