from __future__ import annotations

from dataclasses import dataclass, field, replace
import math
from typing import Any, Sequence

import numpy as np

from plotcompose.adapters import normalize_xy
from plotcompose.annotation import draw_content
from plotcompose.config import ComposeDefaults
from plotcompose.coords import data_to_panel, panel_to_pixels
from plotcompose.errors import PlotDataError
from plotcompose.raster import blit, draw_markers, draw_polyline, draw_rect_outline, fill_rect, new_canvas
from plotcompose.raster.canvas import RGBA, draw_hline, draw_vline
from plotcompose.raster.draw_text import DEFAULT_FONT_FAMILY
from plotcompose.renderable import PanelGeometry, resolve_size
from plotcompose.scales import DataLimits, compute_limits, format_ticks_for_axis, generate_nice_ticks
from plotcompose.series import SeriesSpec, SeriesStyle
from plotcompose.shaping import TextShaper, TextStyle, default_shaper


def _contiguous_true_runs(mask: np.ndarray) -> list[tuple[int, int]]:
    idx = np.flatnonzero(mask)
    if idx.size == 0:
        return []
    breaks = np.flatnonzero(np.diff(idx) > 1)
    starts = [int(idx[0])] + [int(idx[b + 1]) for b in breaks]
    ends = [int(idx[b]) + 1 for b in breaks] + [int(idx[-1]) + 1]
    return list(zip(starts, ends))


def _check_lim(name: str, lim: tuple[float, float] | None) -> tuple[float, float] | None:
    if lim is None:
        return None
    lo, hi = (float(v) for v in lim)
    if not (math.isfinite(lo) and math.isfinite(hi)):
        raise PlotDataError(f"{name} must be finite")
    return (lo, hi)


@dataclass(frozen=True)
class PlotStyle:
    background: RGBA = (255, 255, 255, 255)
    panel_background: RGBA = (236, 238, 242, 255)
    grid_color: RGBA = (255, 255, 255, 255)
    frame_color: RGBA = (150, 156, 166, 255)
    text_color: RGBA = (30, 30, 30, 255)
    font_family: str = DEFAULT_FONT_FAMILY
    tick_font_px: float = 11.0
    label_font_px: float = 13.0
    title_font_px: float = 15.0
    strip_font_px: float = 12.0
    facet_gap: int = 10

    def text(self, size: float, *, fontface: str = "plain", angle: float = 0.0) -> TextStyle:
        return TextStyle(fontface=fontface, size=size, angle=angle, color=self.text_color, family=self.font_family)


@dataclass(frozen=True)
class Facet:
    layers: tuple[SeriesSpec, ...] = ()
    title: str | None = None
    xlim: tuple[float, float] | None = None
    ylim: tuple[float, float] | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "xlim", _check_lim("xlim", self.xlim))
        object.__setattr__(self, "ylim", _check_lim("ylim", self.ylim))

    def limits(self) -> DataLimits:
        """Data limits of the facet; explicit `xlim`/`ylim` are used unbuffered."""
        computed: list[DataLimits] = []
        for spec in self.layers:
            live = spec.data.mask & np.isfinite(spec.data.x) & np.isfinite(spec.data.y)
            if np.any(live):
                computed.append(compute_limits(spec.data.x, spec.data.y, live))
        if not computed and (self.xlim is None or self.ylim is None):
            raise PlotDataError("facet has no finite data and no explicit limits")
        if self.xlim is not None:
            xmin, xmax = self.xlim
        else:
            xmin, xmax = min(c.xmin for c in computed), max(c.xmax for c in computed)
        if self.ylim is not None:
            ymin, ymax = self.ylim
        else:
            ymin, ymax = min(c.ymin for c in computed), max(c.ymax for c in computed)
        return DataLimits(xmin=xmin, xmax=xmax, ymin=ymin, ymax=ymax)


@dataclass(frozen=True)
class Plot:
    """A raster scatter/line plot with one panel per facet.

    Instances are immutable; `add_facet`, `add_layer` and `with_size` return
    new plots.
    """

    facets: tuple[Facet, ...]
    width: int = 640
    height: int = 480
    title: str | None = None
    x_label: str | None = None
    y_label: str | None = None
    facet_ncol: int | None = None
    style: PlotStyle = field(default_factory=PlotStyle)

    def __post_init__(self) -> None:
        if not self.facets:
            raise PlotDataError("plot needs at least one facet")
        if self.width <= 0 or self.height <= 0:
            raise ValueError("plot width/height must be > 0")
        if self.facet_ncol is not None and self.facet_ncol <= 0:
            raise ValueError("facet_ncol must be > 0")

    def add_facet(
        self,
        y: Any = None,
        *,
        x: Any = None,
        data: Any = None,
        mode: str = "markers",
        color: RGBA | None = None,
        title: str | None = None,
        xlim: tuple[float, float] | None = None,
        ylim: tuple[float, float] | None = None,
    ) -> "Plot":
        facet = Facet(layers=(_series(y, x=x, data=data, mode=mode, color=color),), title=title, xlim=xlim, ylim=ylim)
        return replace(self, facets=self.facets + (facet,))

    def add_layer(
        self,
        y: Any = None,
        *,
        x: Any = None,
        data: Any = None,
        mode: str = "markers",
        color: RGBA | None = None,
        facet: int = -1,
    ) -> "Plot":
        spec = _series(y, x=x, data=data, mode=mode, color=color)
        facets = list(self.facets)
        target = facets[facet]
        facets[facet] = replace(target, layers=target.layers + (spec,))
        return replace(self, facets=tuple(facets))

    def with_size(self, width: int, height: int) -> "Plot":
        return replace(self, width=width, height=height)

    @property
    def _has_strips(self) -> bool:
        return any(f.title for f in self.facets)

    def _gutters(self) -> tuple[float, float, float, float]:
        s = self.style
        left = 6.0 + (s.label_font_px * 1.4 + 4.0 if self.y_label else 0.0)
        right = 12.0
        top = 8.0 + (s.title_font_px * 1.4 + 4.0 if self.title else 0.0)
        bottom = 6.0 + (s.label_font_px * 1.4 + 4.0 if self.x_label else 0.0)
        return left, right, top, bottom

    def _facet_chrome(self) -> tuple[float, float, float]:
        """Space each facet cell reserves for y ticks, x ticks and its strip."""
        s = self.style
        strip = s.strip_font_px * 1.4 + 4.0 if self._has_strips else 0.0
        return s.tick_font_px * 3.6 + 6.0, s.tick_font_px * 1.3 + 8.0, strip

    def panels(self, width: int | None = None, height: int | None = None) -> tuple[PanelGeometry, ...]:
        w, h = resolve_size(self, width, height)
        left, right, top, bottom = self._gutters()
        y_ticks, x_ticks, strip = self._facet_chrome()
        n = len(self.facets)
        ncol = min(self.facet_ncol or n, n)
        nrow = math.ceil(n / ncol)
        gap = float(self.style.facet_gap)
        cell_w = (w - left - right - gap * (ncol - 1)) / ncol
        cell_h = (h - top - bottom - gap * (nrow - 1)) / nrow
        panel_w = cell_w - y_ticks
        panel_h = cell_h - x_ticks - strip
        if panel_w <= 1 or panel_h <= 1:
            raise PlotDataError(f"figure too small for {n} panel(s) at {w}x{h}")
        out: list[PanelGeometry] = []
        for i, facet in enumerate(self.facets):
            row, col = divmod(i, ncol)
            x0 = left + col * (cell_w + gap) + y_ticks
            y0 = top + row * (cell_h + gap) + strip
            out.append(PanelGeometry(x0, y0, panel_w, panel_h, facet.limits(), "bottom"))
        return tuple(out)

    def render(self, width: int | None = None, height: int | None = None, *, shaper: TextShaper | None = None) -> np.ndarray:
        w, h = resolve_size(self, width, height)
        shaper = shaper or default_shaper()
        s = self.style
        canvas = new_canvas(w, h, color=s.background)
        panels = self.panels(w, h)
        for facet, geom in zip(self.facets, panels, strict=True):
            self._draw_facet(canvas, facet, geom, shaper)

        left, _, _, bottom = self._gutters()
        x_mid = (min(p.x for p in panels) + max(p.right for p in panels)) / 2.0
        y_mid = (min(p.y for p in panels) + max(p.bottom for p in panels)) / 2.0
        if self.title:
            draw_content(canvas, self.title, w / 2.0, 6.0, s.text(s.title_font_px, fontface="bold"), vjust=1.0, shaper=shaper)
        if self.x_label:
            draw_content(canvas, self.x_label, x_mid, h - 4.0, s.text(s.label_font_px), vjust=0.0, shaper=shaper)
        if self.y_label:
            draw_content(canvas, self.y_label, 4.0, y_mid, s.text(s.label_font_px, angle=90.0), hjust=0.0, shaper=shaper)
        return canvas

    def _draw_facet(self, canvas: np.ndarray, facet: Facet, geom: PanelGeometry, shaper: TextShaper) -> None:
        s = self.style
        limits = geom.limits
        assert limits is not None
        x0 = int(math.floor(geom.x + 0.5))
        y0 = int(math.floor(geom.y + 0.5))
        pw = int(math.floor(geom.right + 0.5)) - x0
        ph = int(math.floor(geom.bottom + 0.5)) - y0
        fill_rect(canvas, x0, y0, pw, ph, s.panel_background)

        tick_x = generate_nice_ticks(limits.xmin, limits.xmax, max(2, pw // 100))
        tick_y = generate_nice_ticks(limits.ymin, limits.ymax, max(2, ph // 60))
        tx, _ = panel_to_pixels(data_to_panel(tick_x, limits.ymin, limits)[0], 0.0, geom)
        _, ty = panel_to_pixels(0.0, data_to_panel(limits.xmin, tick_y, limits)[1], geom)
        for sx in np.rint(tx).astype(np.int64).tolist():
            draw_vline(canvas, sx, y0, y0 + ph - 1, s.grid_color)
        for sy in np.rint(ty).astype(np.int64).tolist():
            draw_hline(canvas, x0, x0 + pw - 1, sy, s.grid_color)

        # Data is drawn on a panel-sized layer so out-of-range points are clipped.
        layer = new_canvas(pw, ph)
        for spec in facet.layers:
            live = spec.data.mask & np.isfinite(spec.data.x) & np.isfinite(spec.data.y)
            px, py = data_to_panel(spec.data.x, spec.data.y, limits)
            sx, sy = panel_to_pixels(px, py, geom)
            sx = sx - x0
            sy = sy - y0
            if spec.style.mode in {"lines", "lines+markers"}:
                for start, end in _contiguous_true_runs(live):
                    draw_polyline(layer, sx[start:end], sy[start:end], spec.style.color, width=spec.style.line_width)
            if spec.style.mode in {"markers", "lines+markers"}:
                draw_markers(layer, sx[live], sy[live], spec.style.color, size=max(2, spec.style.marker_size))
        blit(canvas, layer, x0, y0)
        draw_rect_outline(canvas, x0, y0, pw, ph, s.frame_color)

        tick_style = s.text(s.tick_font_px)
        for value, label in zip(tx.tolist(), format_ticks_for_axis(tick_x), strict=True):
            draw_content(canvas, label, value, geom.bottom + 4.0, tick_style, vjust=1.0, shaper=shaper)
        for value, label in zip(ty.tolist(), format_ticks_for_axis(tick_y), strict=True):
            draw_content(canvas, label, geom.x - 4.0, value, tick_style, hjust=1.0, shaper=shaper)
        if facet.title:
            draw_content(canvas, facet.title, geom.x + geom.width / 2.0, geom.y - 3.0, s.text(s.strip_font_px), vjust=0.0, shaper=shaper)


def _series(y: Any, *, x: Any, data: Any, mode: str, color: RGBA | None, label: str | None = None) -> SeriesSpec:
    style = SeriesStyle(mode=mode) if color is None else SeriesStyle(mode=mode, color=color)  # type: ignore[arg-type]
    return SeriesSpec(data=normalize_xy(y, x=x, data=data), style=style, label=label)


def plot(
    y: Any = None,
    *,
    x: Any = None,
    data: Any = None,
    mode: str = "markers",
    color: RGBA | None = None,
    xlim: tuple[float, float] | None = None,
    ylim: tuple[float, float] | None = None,
    width: int | None = None,
    height: int | None = None,
    title: str | None = None,
    x_label: str | None = None,
    y_label: str | None = None,
    facet_title: str | None = None,
    facet_ncol: int | None = None,
    style: PlotStyle | None = None,
    defaults: ComposeDefaults | None = None,
) -> Plot:
    d = defaults or ComposeDefaults()
    if style is None:
        style = PlotStyle(background=d.background, text_color=d.text_color, font_family=d.font_family)
    facet = Facet(layers=(_series(y, x=x, data=data, mode=mode, color=color),), title=facet_title, xlim=xlim, ylim=ylim)
    return Plot(
        facets=(facet,),
        width=d.figure_width if width is None else width,
        height=d.figure_height if height is None else height,
        title=title,
        x_label=x_label,
        y_label=y_label,
        facet_ncol=facet_ncol,
        style=style,
    )


def facet_plot(
    facets: Sequence[Facet],
    *,
    width: int = 640,
    height: int = 480,
    ncol: int | None = None,
    title: str | None = None,
    x_label: str | None = None,
    y_label: str | None = None,
) -> Plot:
    return Plot(facets=tuple(facets), width=width, height=height, title=title, x_label=x_label, y_label=y_label, facet_ncol=ncol)
