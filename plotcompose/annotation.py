from __future__ import annotations

from dataclasses import dataclass, field
import math
from typing import Any

import numpy as np

from plotcompose.coords import Frame, canvas_point, canvas_to_pixels, coerce_frame, panel_to_pixels
from plotcompose.raster.canvas import RGBA, blend_coverage
from plotcompose.raster.draw_text import rotate_mask, rotated_extent
from plotcompose.renderable import PanelGeometry, Renderable
from plotcompose.shaping import Content, TextShaper, TextStyle, check_content, default_shaper


def _check_just(name: str, value: float) -> float:
    value = float(value)
    if not math.isfinite(value) or value < 0.0 or value > 1.0:
        raise ValueError(f"{name} must be in [0, 1], got {value}")
    return value


@dataclass(frozen=True)
class Annotation:
    content: Content
    x: float = 0.5
    y: float = 0.5
    frame: Frame = Frame.DATA
    hjust: float = 0.5
    vjust: float = 0.5
    style: TextStyle = field(default_factory=TextStyle)
    panel: int | None = None

    def __post_init__(self) -> None:
        check_content(self.content)
        object.__setattr__(self, "frame", coerce_frame(self.frame))
        object.__setattr__(self, "hjust", _check_just("hjust", self.hjust))
        object.__setattr__(self, "vjust", _check_just("vjust", self.vjust))
        if not (math.isfinite(self.x) and math.isfinite(self.y)):
            raise ValueError("annotation position must be finite")


@dataclass(frozen=True)
class PositionedAnnotation:
    """Content pinned to a surface: `left`/`top` is the top-left of its (rotated) box in pixels."""

    content: Content
    style: TextStyle
    left: float
    top: float
    width: float
    height: float
    surface: tuple[int, int]

    @property
    def bounds(self) -> tuple[float, float, float, float]:
        return (self.left, self.top, self.width, self.height)

    @property
    def canvas_anchor(self) -> tuple[float, float]:
        w, h = self.surface
        return (self.left / w, 1.0 - self.top / h)


def justify(x: float, y: float, width: float, height: float, hjust: float, vjust: float) -> tuple[float, float]:
    """Top-left corner of a width x height box anchored at screen point (x, y)."""
    return (x - hjust * width, y - (1.0 - vjust) * height)


def _position(
    content: Content,
    style: TextStyle,
    sx: float,
    sy: float,
    hjust: float,
    vjust: float,
    surface: tuple[int, int],
    shaper: TextShaper | None,
) -> PositionedAnnotation:
    box = (shaper or default_shaper()).measure(content, style)
    width, height = rotated_extent(box.width, box.height, style.angle)
    left, top = justify(sx, sy, width, height, hjust, vjust)
    return PositionedAnnotation(content=content, style=style, left=left, top=top, width=width, height=height, surface=surface)


def place(
    content: Content,
    x: float,
    y: float,
    *,
    frame: Frame | str = Frame.DATA,
    hjust: float = 0.5,
    vjust: float = 0.5,
    style: TextStyle | None = None,
    renderable: Renderable | None = None,
    panel: int | None = None,
    surface: tuple[int, int] | None = None,
    shaper: TextShaper | None = None,
) -> PositionedAnnotation:
    check_content(content)
    hjust = _check_just("hjust", hjust)
    vjust = _check_just("vjust", vjust)
    if surface is None:
        if renderable is None:
            raise ValueError("placing content needs a renderable or an explicit surface size")
        surface = (renderable.width, renderable.height)
    cx, cy = canvas_point(frame, x, y, renderable, panel=panel, size=surface)
    sx, sy = canvas_to_pixels(cx, cy, surface)
    return _position(content, style or TextStyle(), sx, sy, hjust, vjust, surface, shaper)


def place_annotation(
    annotation: Annotation,
    renderable: Renderable | None = None,
    *,
    surface: tuple[int, int] | None = None,
    shaper: TextShaper | None = None,
) -> PositionedAnnotation:
    return place(
        annotation.content,
        annotation.x,
        annotation.y,
        frame=annotation.frame,
        hjust=annotation.hjust,
        vjust=annotation.vjust,
        style=annotation.style,
        renderable=renderable,
        panel=annotation.panel,
        surface=surface,
        shaper=shaper,
    )


def place_in_region(
    annotation: Annotation,
    region: PanelGeometry,
    *,
    surface: tuple[int, int],
    shaper: TextShaper | None = None,
) -> PositionedAnnotation:
    """Place using (x, y) normalised to `region` instead of a renderable's panel."""
    sx, sy = panel_to_pixels(annotation.x, annotation.y, region)
    return _position(annotation.content, annotation.style, sx, sy, annotation.hjust, annotation.vjust, surface, shaper)


def draw_annotation(canvas: np.ndarray, positioned: PositionedAnnotation, shaper: TextShaper | None = None) -> None:
    mask = (shaper or default_shaper()).rasterize(positioned.content, positioned.style)
    mask = rotate_mask(mask, positioned.style.angle)
    cx = positioned.left + positioned.width / 2.0
    cy = positioned.top + positioned.height / 2.0
    x0 = int(math.floor(cx - mask.shape[1] / 2.0 + 0.5))
    y0 = int(math.floor(cy - mask.shape[0] / 2.0 + 0.5))
    blend_coverage(canvas, x0, y0, mask, positioned.style.color)


def draw_content(
    canvas: np.ndarray,
    content: Content,
    x: float,
    y: float,
    style: TextStyle,
    *,
    hjust: float = 0.5,
    vjust: float = 0.5,
    shaper: TextShaper | None = None,
) -> PositionedAnnotation:
    """Draw content anchored at pixel (x, y) of `canvas` and return where it went."""
    shaper = shaper or default_shaper()
    surface = (canvas.shape[1], canvas.shape[0])
    positioned = _position(content, style, x, y, hjust, vjust, surface, shaper)
    draw_annotation(canvas, positioned, shaper)
    return positioned


def draw_label(
    content: Content,
    x: float = 0.5,
    y: float = 0.5,
    *,
    frame: Frame | str = Frame.DATA,
    hjust: float = 0.5,
    vjust: float = 0.5,
    fontface: str = "plain",
    size: float = 14.0,
    angle: float = 0.0,
    color: RGBA | None = None,
    family: str | None = None,
    panel: int | None = None,
) -> Annotation:
    options: dict[str, Any] = {"fontface": fontface, "size": size, "angle": angle, "family": family}
    if color is not None:
        options["color"] = color
    style = TextStyle(**options)
    return Annotation(content=content, x=x, y=y, frame=frame, hjust=hjust, vjust=vjust, style=style, panel=panel)
