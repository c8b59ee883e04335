from __future__ import annotations

from enum import Enum
import math
from typing import Any

from plotcompose.errors import DegenerateRange, InvalidFrame
from plotcompose.renderable import PanelGeometry, Renderable, resolve_size
from plotcompose.scales import DataLimits


class Frame(str, Enum):
    DATA = "data"
    PANEL_NORMALIZED = "panel"
    CANVAS_NORMALIZED = "canvas"


_FRAME_ALIASES = {
    "data": Frame.DATA,
    "panel": Frame.PANEL_NORMALIZED,
    "panel_normalized": Frame.PANEL_NORMALIZED,
    "npc": Frame.PANEL_NORMALIZED,
    "canvas": Frame.CANVAS_NORMALIZED,
    "canvas_normalized": Frame.CANVAS_NORMALIZED,
}


def coerce_frame(frame: Frame | str) -> Frame:
    if isinstance(frame, Frame):
        return frame
    try:
        return _FRAME_ALIASES[str(frame).strip().lower()]
    except KeyError:
        raise InvalidFrame(f"unknown coordinate frame: {frame!r}") from None


def _spans(limits: DataLimits) -> tuple[float, float]:
    x_span = limits.x_span
    y_span = limits.y_span
    if not math.isfinite(x_span) or x_span == 0.0:
        raise DegenerateRange(f"x range has zero width: [{limits.xmin}, {limits.xmax}]")
    if not math.isfinite(y_span) or y_span == 0.0:
        raise DegenerateRange(f"y range has zero height: [{limits.ymin}, {limits.ymax}]")
    return x_span, y_span


# The helpers below accept floats or numpy arrays alike.


def data_to_panel(x: Any, y: Any, limits: DataLimits, *, y_origin: str = "bottom") -> tuple[Any, Any]:
    x_span, y_span = _spans(limits)
    px = (x - limits.xmin) / x_span
    py = (y - limits.ymin) / y_span
    if y_origin == "top":
        py = 1.0 - py
    return px, py


def panel_to_data(px: Any, py: Any, limits: DataLimits, *, y_origin: str = "bottom") -> tuple[Any, Any]:
    x_span, y_span = _spans(limits)
    if y_origin == "top":
        py = 1.0 - py
    return limits.xmin + px * x_span, limits.ymin + py * y_span


def panel_to_pixels(px: Any, py: Any, region: PanelGeometry) -> tuple[Any, Any]:
    return region.x + px * region.width, region.y + (1.0 - py) * region.height


def pixels_to_panel(sx: Any, sy: Any, region: PanelGeometry) -> tuple[Any, Any]:
    if region.width == 0 or region.height == 0:
        raise DegenerateRange("panel has zero area")
    return (sx - region.x) / region.width, 1.0 - (sy - region.y) / region.height


def canvas_to_pixels(cx: float, cy: float, surface: tuple[int, int]) -> tuple[float, float]:
    w, h = surface
    return cx * w, (1.0 - cy) * h


def pixels_to_canvas(sx: float, sy: float, surface: tuple[int, int]) -> tuple[float, float]:
    w, h = surface
    return sx / w, 1.0 - sy / h


def select_panel(
    renderable: Renderable | None,
    panel: int | None = None,
    *,
    size: tuple[int, int] | None = None,
) -> PanelGeometry:
    if renderable is None:
        raise InvalidFrame("a renderable is required to resolve panel coordinates")
    w, h = resolve_size(renderable, *(size or (None, None)))
    panels = renderable.panels(w, h)
    if not panels:
        raise InvalidFrame("renderable has no panels")
    if panel is None:
        if len(panels) > 1:
            raise InvalidFrame(f"renderable has {len(panels)} panels; select one with `panel=`")
        return panels[0]
    if not 0 <= panel < len(panels):
        raise InvalidFrame(f"panel index {panel} out of range for {len(panels)} panels")
    return panels[panel]


def canvas_point(
    frame: Frame | str,
    x: float,
    y: float,
    renderable: Renderable | None = None,
    *,
    panel: int | None = None,
    size: tuple[int, int] | None = None,
) -> tuple[float, float]:
    """Convert (x, y) in `frame` to normalised canvas coordinates (origin bottom-left)."""
    frame = coerce_frame(frame)
    if frame is Frame.CANVAS_NORMALIZED:
        return float(x), float(y)
    geom = select_panel(renderable, panel, size=size)
    if frame is Frame.DATA:
        if geom.limits is None:
            raise InvalidFrame("selected panel has no data coordinates")
        x, y = data_to_panel(x, y, geom.limits, y_origin=geom.y_origin)
    assert renderable is not None
    surface = resolve_size(renderable, *(size or (None, None)))
    sx, sy = panel_to_pixels(x, y, geom)
    return pixels_to_canvas(sx, sy, surface)


def from_canvas_point(
    frame: Frame | str,
    cx: float,
    cy: float,
    renderable: Renderable | None = None,
    *,
    panel: int | None = None,
    size: tuple[int, int] | None = None,
) -> tuple[float, float]:
    frame = coerce_frame(frame)
    if frame is Frame.CANVAS_NORMALIZED:
        return float(cx), float(cy)
    geom = select_panel(renderable, panel, size=size)
    assert renderable is not None
    surface = resolve_size(renderable, *(size or (None, None)))
    px, py = pixels_to_panel(*canvas_to_pixels(cx, cy, surface), geom)
    if frame is Frame.PANEL_NORMALIZED:
        return px, py
    if geom.limits is None:
        raise InvalidFrame("selected panel has no data coordinates")
    return panel_to_data(px, py, geom.limits, y_origin=geom.y_origin)
