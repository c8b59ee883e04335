from __future__ import annotations

from dataclasses import dataclass, replace
import logging
import math
from typing import Literal, Union

import numpy as np

from plotcompose.annotation import Annotation, PositionedAnnotation, draw_annotation, draw_label, place_in_region
from plotcompose.errors import EmptyContent, InvalidGridSpec, InvalidPadding
from plotcompose.raster import blit, new_canvas
from plotcompose.raster.canvas import RGBA
from plotcompose.raster.draw_text import DEFAULT_FONT_SIZE_PX, DEFAULT_LINE_HEIGHT, rotated_extent
from plotcompose.renderable import PanelGeometry, Renderable, resolve_size
from plotcompose.shaping import Content, TextShaper, default_shaper
from plotcompose.units import Size, coerce_size, lines, null, pixel_edges, px, resolve_tracks, track_edges

LOGGER = logging.getLogger(__name__)

CaptionLocation = Literal["below", "above"]
CAPTION_LOCATIONS = ("below", "above")
AlignMode = Literal["none", "h", "v", "hv"]
ALIGN_MODES = ("none", "h", "v", "hv")


@dataclass(frozen=True)
class TextCell:
    """A caption row's content.

    `annotation.x` is normalised over the panel column of the table cell at
    `align_to` (the full width when unset); `annotation.y` over the row
    minus `padding` pixels at top and bottom.
    """

    annotation: Annotation
    padding: float = 0.0
    align_to: tuple[int, int] | None = None


CellContent = Union[Renderable, TextCell, None]


@dataclass(frozen=True)
class LayoutCell:
    row: int
    col: int
    content: CellContent = None
    row_span: int = 1
    col_span: int = 1

    def __post_init__(self) -> None:
        if self.row < 0 or self.col < 0:
            raise InvalidGridSpec(f"cell position must be non-negative, got ({self.row}, {self.col})")
        if self.row_span < 1 or self.col_span < 1:
            raise InvalidGridSpec("cell spans must be >= 1")

    def covers(self) -> set[tuple[int, int]]:
        return {
            (r, c)
            for r in range(self.row, self.row + self.row_span)
            for c in range(self.col, self.col + self.col_span)
        }

    def shifted(self, rows: int) -> "LayoutCell":
        content = self.content
        if isinstance(content, TextCell) and content.align_to is not None:
            r, c = content.align_to
            content = replace(content, align_to=(r + rows, c))
        return replace(self, row=self.row + rows, content=content)


@dataclass(frozen=True)
class CellOverlay:
    """A label drawn over a cell, with x/y normalised to the cell's area."""

    row: int
    col: int
    annotation: Annotation


@dataclass(frozen=True)
class PlacedCell:
    """A cell at render size; `content_rect` is the inset area its content is drawn into when aligned."""

    cell: LayoutCell
    rect: PanelGeometry
    content_rect: PanelGeometry | None = None

    @property
    def inner(self) -> PanelGeometry:
        return self.rect if self.content_rect is None else self.content_rect


@dataclass(frozen=True)
class TableLayout:
    width: int
    height: int
    col_edges: tuple[int, ...]
    row_edges: tuple[int, ...]
    cells: tuple[PlacedCell, ...]
    labels: tuple[PositionedAnnotation, ...]


@dataclass(frozen=True)
class LayoutTable:
    """An immutable grid of sized tracks whose cells hold renderables or captions.

    Null-unit tracks share whatever the absolute tracks leave over, by
    weight. Cells may span tracks but never overlap. With `align` set,
    cell contents are inset so their panels share left/right edges down
    each column ("v") and top/bottom edges across each row ("h").
    """

    widths: tuple[Size, ...]
    heights: tuple[Size, ...]
    cells: tuple[LayoutCell, ...]
    width: int
    height: int
    panel_cell: tuple[int, int] | None = None
    overlays: tuple[CellOverlay, ...] = ()
    background: RGBA = (255, 255, 255, 255)
    font_size_px: float = DEFAULT_FONT_SIZE_PX
    line_height: float = DEFAULT_LINE_HEIGHT
    align: AlignMode = "none"

    def __post_init__(self) -> None:
        if self.align not in ALIGN_MODES:
            raise InvalidGridSpec(f"align must be one of {ALIGN_MODES}, got {self.align!r}")
        object.__setattr__(self, "widths", tuple(coerce_size(s, "null") for s in self.widths))
        object.__setattr__(self, "heights", tuple(coerce_size(s, "null") for s in self.heights))
        object.__setattr__(self, "cells", tuple(self.cells))
        object.__setattr__(self, "overlays", tuple(self.overlays))
        if not self.widths or not self.heights:
            raise InvalidGridSpec("a table needs at least one row and one column")
        if any(s.value < 0 for s in self.widths + self.heights):
            raise InvalidGridSpec("track sizes must be non-negative")
        if self.width <= 0 or self.height <= 0:
            raise ValueError("table width/height must be > 0")
        nrow, ncol = self.shape
        taken: set[tuple[int, int]] = set()
        for cell in self.cells:
            if cell.row + cell.row_span > nrow or cell.col + cell.col_span > ncol:
                raise InvalidGridSpec(f"cell at ({cell.row}, {cell.col}) is outside the {nrow}x{ncol} table")
            covered = cell.covers()
            if covered & taken:
                raise InvalidGridSpec(f"cell at ({cell.row}, {cell.col}) overlaps another cell")
            taken |= covered
        for overlay in self.overlays:
            if not (0 <= overlay.row < nrow and 0 <= overlay.col < ncol):
                raise InvalidGridSpec(f"overlay at ({overlay.row}, {overlay.col}) is outside the table")
        if self.panel_cell is not None and self.cell_at(*self.panel_cell) is None:
            raise InvalidGridSpec(f"panel_cell {self.panel_cell} does not name a cell")

    @property
    def shape(self) -> tuple[int, int]:
        return (len(self.heights), len(self.widths))

    def cell_at(self, row: int, col: int) -> LayoutCell | None:
        for cell in self.cells:
            if cell.row == row and cell.col == col:
                return cell
        return None

    def row_heights(self, height: int | None = None) -> tuple[float, ...]:
        total = self.height if height is None else height
        return resolve_tracks(self.heights, total, font_size_px=self.font_size_px, line_height=self.line_height)

    def col_widths(self, width: int | None = None) -> tuple[float, ...]:
        total = self.width if width is None else width
        return resolve_tracks(self.widths, total, font_size_px=self.font_size_px, line_height=self.line_height)

    def _place(self, w: int, h: int) -> tuple[tuple[int, ...], tuple[int, ...], tuple[PlacedCell, ...]]:
        xs = pixel_edges(track_edges(self.col_widths(w)))
        ys = pixel_edges(track_edges(self.row_heights(h)))
        placed = tuple(PlacedCell(cell, _cell_rect(cell, xs, ys)) for cell in self.cells)
        return xs, ys, _align_cells(placed, self.align)

    def layout(self, width: int | None = None, height: int | None = None, *, shaper: TextShaper | None = None) -> TableLayout:
        w, h = resolve_size(self, width, height)
        shaper = shaper or default_shaper()
        xs, ys, placed = self._place(w, h)
        by_pos = {(p.cell.row, p.cell.col): p for p in placed}

        labels: list[PositionedAnnotation] = []
        for p in placed:
            content = p.cell.content
            if not isinstance(content, TextCell):
                continue
            x0, x1 = p.rect.x, p.rect.right
            anchor = by_pos.get(content.align_to) if content.align_to is not None else None
            if anchor is not None:
                x0, x1 = _panel_span(anchor)
            band = PanelGeometry(x0, p.rect.y + content.padding, x1 - x0, p.rect.height - 2.0 * content.padding)
            labels.append(place_in_region(content.annotation, band, surface=(w, h), shaper=shaper))
        for overlay in self.overlays:
            target = by_pos.get((overlay.row, overlay.col))
            rect = target.rect if target is not None else _cell_rect(LayoutCell(overlay.row, overlay.col), xs, ys)
            labels.append(place_in_region(overlay.annotation, rect, surface=(w, h), shaper=shaper))
        return TableLayout(width=w, height=h, col_edges=xs, row_edges=ys, cells=placed, labels=tuple(labels))

    def panels(self, width: int | None = None, height: int | None = None) -> tuple[PanelGeometry, ...]:
        w, h = resolve_size(self, width, height)
        _, _, placed = self._place(w, h)
        out: list[PanelGeometry] = []
        for p in sorted(placed, key=lambda p: (p.cell.row, p.cell.col)):
            out.extend(_child_panels(p.cell, p.inner))
        return tuple(out)

    def render(self, width: int | None = None, height: int | None = None, *, shaper: TextShaper | None = None) -> np.ndarray:
        shaper = shaper or default_shaper()
        layout = self.layout(width, height, shaper=shaper)
        canvas = new_canvas(layout.width, layout.height, color=self.background)
        for p in layout.cells:
            content = p.cell.content
            if content is None or isinstance(content, TextCell):
                continue
            area = p.inner
            cw, ch = int(area.width), int(area.height)
            if cw <= 0 or ch <= 0:
                LOGGER.debug("skipping zero-area cell at (%d, %d)", p.cell.row, p.cell.col)
                continue
            x0, y0 = (int(math.floor(v + 0.5)) for v in (area.x, area.y))
            blit(canvas, content.render(cw, ch, shaper=shaper), x0, y0)
        for positioned in layout.labels:
            draw_annotation(canvas, positioned, shaper)
        return canvas


def _cell_rect(cell: LayoutCell, xs: tuple[int, ...], ys: tuple[int, ...]) -> PanelGeometry:
    x0, x1 = xs[cell.col], xs[cell.col + cell.col_span]
    y0, y1 = ys[cell.row], ys[cell.row + cell.row_span]
    return PanelGeometry(float(x0), float(y0), float(x1 - x0), float(y1 - y0))


def _align_cells(placed: tuple[PlacedCell, ...], align: AlignMode) -> tuple[PlacedCell, ...]:
    if align == "none":
        return placed
    # left, top, right, bottom distance from the cell edge to its panels
    margins: dict[int, tuple[float, float, float, float]] = {}
    for i, p in enumerate(placed):
        panels = _child_panels(p.cell, p.rect)
        if panels:
            margins[i] = (
                min(q.x for q in panels) - p.rect.x,
                min(q.y for q in panels) - p.rect.y,
                p.rect.right - max(q.right for q in panels),
                p.rect.bottom - max(q.bottom for q in panels),
            )
    insets = {i: [0.0, 0.0, 0.0, 0.0] for i in margins}
    groupings = []
    if "v" in align:
        groupings.append((("col", "col_span"), (0, 2)))
    if "h" in align:
        groupings.append((("row", "row_span"), (1, 3)))
    for (start, span), sides in groupings:
        groups: dict[tuple[int, int], list[int]] = {}
        for i in margins:
            cell = placed[i].cell
            groups.setdefault((getattr(cell, start), getattr(cell, span)), []).append(i)
        for members in groups.values():
            for side in sides:
                target = max(margins[i][side] for i in members)
                for i in members:
                    insets[i][side] = target - margins[i][side]

    out = list(placed)
    for i, (left, top, right, bottom) in insets.items():
        rect = placed[i].rect
        if left + right >= rect.width or top + bottom >= rect.height:
            LOGGER.debug("cell at (%d, %d) too small to align", placed[i].cell.row, placed[i].cell.col)
            continue
        inner = PanelGeometry(rect.x + left, rect.y + top, rect.width - left - right, rect.height - top - bottom)
        out[i] = replace(placed[i], content_rect=inner)
    return tuple(out)


def _child_panels(cell: LayoutCell, rect: PanelGeometry) -> list[PanelGeometry]:
    content = cell.content
    if content is None or isinstance(content, TextCell):
        return []
    cw, ch = int(rect.width), int(rect.height)
    if cw <= 0 or ch <= 0:
        return []
    return [p.offset(rect.x, rect.y) for p in content.panels(cw, ch)]


def _panel_span(anchor: PlacedCell) -> tuple[float, float]:
    panels = _child_panels(anchor.cell, anchor.inner)
    if not panels:
        return anchor.rect.x, anchor.rect.right
    return min(p.x for p in panels), max(p.right for p in panels)


def as_table(item: Renderable | LayoutTable) -> LayoutTable:
    """Coerce a renderable to a one-cell table; tables are returned as is."""
    if isinstance(item, LayoutTable):
        return item
    if not isinstance(item, Renderable):
        raise TypeError(f"expected a renderable or LayoutTable, got {type(item)!r}")
    return LayoutTable(
        widths=(null(),),
        heights=(null(),),
        cells=(LayoutCell(0, 0, item),),
        width=int(item.width),
        height=int(item.height),
        panel_cell=(0, 0),
        background=(255, 255, 255, 0),
    )


def _padding_px(vpadding: Size | float, table: LayoutTable) -> float:
    try:
        size = coerce_size(vpadding, "px")
    except (TypeError, ValueError) as exc:
        raise InvalidPadding(f"invalid vpadding: {vpadding!r}") from exc
    if size.is_relative:
        raise InvalidPadding("vpadding must be an absolute size (px or lines)")
    pad = size.to_px(table.font_size_px, table.line_height)
    if not math.isfinite(pad) or pad < 0:
        raise InvalidPadding(f"vpadding must be >= 0, got {pad}")
    return pad


def add_caption(
    item: Renderable | LayoutTable,
    annotation: Annotation | None,
    vpadding: Size | float = lines(1),
    location: CaptionLocation = "below",
    *,
    shaper: TextShaper | None = None,
) -> LayoutTable:
    """Return a new table with one caption row added below (or above) `item`.

    The row is as tall as the caption's rotated box plus `vpadding` above
    and below it; existing rows keep their size and position relative to
    each other.
    """
    table = as_table(item)
    if location not in CAPTION_LOCATIONS:
        raise ValueError(f"location must be one of {CAPTION_LOCATIONS}, got {location!r}")
    if annotation is None:
        raise EmptyContent("caption content is required")
    pad = _padding_px(vpadding, table)
    shaper = shaper or default_shaper()
    box = shaper.measure(annotation.content, annotation.style)
    _, box_h = rotated_extent(box.width, box.height, annotation.style.angle)
    row_h = int(math.ceil(box_h + 2.0 * pad))
    nrow, ncol = table.shape

    cells = table.cells
    overlays = table.overlays
    panel_cell = table.panel_cell
    if location == "below":
        heights = table.heights + (px(row_h),)
        new_row = nrow
    else:
        heights = (px(row_h),) + table.heights
        new_row = 0
        cells = tuple(cell.shifted(1) for cell in cells)
        overlays = tuple(replace(o, row=o.row + 1) for o in overlays)
        if panel_cell is not None:
            panel_cell = (panel_cell[0] + 1, panel_cell[1])
    caption = LayoutCell(new_row, 0, TextCell(annotation, pad, panel_cell), col_span=ncol)
    LOGGER.debug("caption row %s: box height %.2f px, padding %.2f px, row height %d px", location, box_h, pad, row_h)
    return replace(
        table,
        heights=heights,
        cells=cells + (caption,),
        overlays=overlays,
        panel_cell=panel_cell,
        height=table.height + row_h,
    )


def add_sub(
    item: Renderable | LayoutTable,
    content: Content,
    x: float = 0.5,
    y: float = 1.0,
    *,
    hjust: float = 0.5,
    vjust: float = 1.0,
    fontface: str = "plain",
    size: float = 14.0,
    angle: float = 0.0,
    color: RGBA | None = None,
    family: str | None = None,
    vpadding: Size | float = lines(1),
    location: CaptionLocation = "below",
    shaper: TextShaper | None = None,
) -> LayoutTable:
    """Add a sub-caption under a plot. x is panel-relative, y is relative to the new row."""
    annotation = draw_label(
        content,
        x,
        y,
        frame="panel",
        hjust=hjust,
        vjust=vjust,
        fontface=fontface,
        size=size,
        angle=angle,
        color=color,
        family=family,
    )
    return add_caption(item, annotation, vpadding=vpadding, location=location, shaper=shaper)
