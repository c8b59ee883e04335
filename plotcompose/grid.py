from __future__ import annotations

import logging
import math
from typing import Sequence, Union

from plotcompose.annotation import Annotation, draw_label
from plotcompose.config import ComposeDefaults
from plotcompose.coords import Frame
from plotcompose.drawing import Drawing, to_canvas
from plotcompose.errors import InvalidGridSpec
from plotcompose.raster.canvas import RGBA
from plotcompose.renderable import Renderable
from plotcompose.shaping import Content, TextStyle
from plotcompose.table import AlignMode, CellOverlay, LayoutCell, LayoutTable, as_table
from plotcompose.units import null

LOGGER = logging.getLogger(__name__)

TagSpec = Union[None, bool, str, Sequence[str]]
DEFAULT_TAG_OFFSET = (0.05, 0.05)


def infer_grid_shape(count: int, nrow: int | None = None, ncol: int | None = None) -> tuple[int, int]:
    """Smallest near-square grid holding `count` cells; ties get more columns than rows."""
    if count <= 0:
        raise InvalidGridSpec("grid needs at least one item")
    for name, value in (("nrow", nrow), ("ncol", ncol)):
        if value is not None and (isinstance(value, bool) or not isinstance(value, int) or value <= 0):
            raise InvalidGridSpec(f"{name} must be a positive integer, got {value!r}")
    if nrow is None and ncol is None:
        ncol = math.ceil(math.sqrt(count))
        nrow = math.ceil(count / ncol)
    elif nrow is None:
        assert ncol is not None
        nrow = math.ceil(count / ncol)
    elif ncol is None:
        ncol = math.ceil(count / nrow)
    if count > nrow * ncol:
        raise InvalidGridSpec(f"{count} items do not fit in a {nrow}x{ncol} grid")
    return nrow, ncol


def _alpha_label(index: int) -> str:
    # 0 -> A, 25 -> Z, 26 -> AA
    out = ""
    index += 1
    while index:
        index, rem = divmod(index - 1, 26)
        out = chr(ord("A") + rem) + out
    return out


def tag_sequence(tags: TagSpec, count: int) -> tuple[str, ...]:
    if tags is None or tags is False:
        return ()
    if tags is True or tags == "AUTO":
        return tuple(_alpha_label(i) for i in range(count))
    if tags == "auto":
        return tuple(_alpha_label(i).lower() for i in range(count))
    if isinstance(tags, str):
        raise InvalidGridSpec(f"unknown tag style {tags!r}; use 'AUTO', 'auto' or a sequence of labels")
    labels = tuple(str(t) for t in tags)
    if len(labels) > count:
        raise InvalidGridSpec(f"{len(labels)} tags given for {count} items")
    return labels


def _weights(name: str, values: Sequence[float] | None, count: int) -> tuple[float, ...]:
    if values is None:
        return (1.0,) * count
    weights = tuple(float(v) for v in values)
    if len(weights) != count:
        raise InvalidGridSpec(f"{name} has {len(weights)} entries, expected {count}")
    if any(not math.isfinite(w) or w <= 0 for w in weights):
        raise InvalidGridSpec(f"{name} must be strictly positive, got {list(weights)}")
    return weights


def _natural_extent(sizes: dict[int, list[int]], weights: tuple[float, ...]) -> int:
    unit = max(size / weights[i] for i, values in sizes.items() for size in values)
    return max(1, int(math.ceil(unit * sum(weights) - 1e-9)))


def compose_grid(
    items: Sequence[Renderable | None],
    nrow: int | None = None,
    ncol: int | None = None,
    rel_heights: Sequence[float] | None = None,
    rel_widths: Sequence[float] | None = None,
    tags: TagSpec = None,
    tag_offset: tuple[float, float] = DEFAULT_TAG_OFFSET,
    *,
    align: AlignMode = "none",
    tag_style: TextStyle | None = None,
    width: int | None = None,
    height: int | None = None,
    background: RGBA | None = None,
    defaults: ComposeDefaults | None = None,
) -> LayoutTable:
    """Arrange `items` row-major in an aligned grid; `None` items leave a blank cell.

    Row i gets `rel_heights[i] / sum(rel_heights)` of the height and
    likewise for columns. Without an explicit size the grid is just big
    enough for every item to keep its own size.

    Tags belong to positions: `tags[i]` labels item i, and a `None` item
    uses up its tag (or letter) without drawing it, and so does a blank tag. `align` lines panel
    edges up down columns ("v"), across rows ("h") or both ("hv").
    """
    items = list(items)
    nrow, ncol = infer_grid_shape(len(items), nrow, ncol)
    heights = _weights("rel_heights", rel_heights, nrow)
    widths = _weights("rel_widths", rel_widths, ncol)
    if len(tag_offset) != 2 or not all(math.isfinite(float(v)) for v in tag_offset):
        raise InvalidGridSpec(f"tag_offset must be two finite numbers, got {tag_offset!r}")
    present = [(i, as_table(item)) for i, item in enumerate(items) if item is not None]
    if not present:
        raise InvalidGridSpec("grid needs at least one non-empty item")
    labels = tag_sequence(tags, len(items))

    cells: list[LayoutCell] = []
    col_sizes: dict[int, list[int]] = {}
    row_sizes: dict[int, list[int]] = {}
    for i, table in present:
        row, col = divmod(i, ncol)
        cells.append(LayoutCell(row, col, table))
        col_sizes.setdefault(col, []).append(table.width)
        row_sizes.setdefault(row, []).append(table.height)

    d = defaults or ComposeDefaults()
    style = tag_style or TextStyle(fontface=d.tag_fontface, size=d.tag_size_px, color=d.text_color, family=d.font_family)
    overlays = tuple(
        CellOverlay(
            row=i // ncol,
            col=i % ncol,
            annotation=Annotation(
                labels[i],
                x=float(tag_offset[0]),
                y=1.0 - float(tag_offset[1]),
                frame=Frame.PANEL_NORMALIZED,
                hjust=0.0,
                vjust=1.0,
                style=style,
            ),
        )
        for i, _ in present
        if i < len(labels) and labels[i].strip()
    )

    total_w = int(width) if width is not None else _natural_extent(col_sizes, widths)
    total_h = int(height) if height is not None else _natural_extent(row_sizes, heights)
    LOGGER.debug(
        "grid %dx%d for %d items, size %dx%d, rel_heights=%s rel_widths=%s",
        nrow,
        ncol,
        len(items),
        total_w,
        total_h,
        heights,
        widths,
    )
    return LayoutTable(
        widths=tuple(null(w) for w in widths),
        heights=tuple(null(h) for h in heights),
        cells=tuple(cells),
        width=total_w,
        height=total_h,
        overlays=overlays,
        background=d.background if background is None else background,
        font_size_px=d.font_size_px,
        line_height=d.line_height,
        align=align,
    )


plot_grid = compose_grid


def title_drawing(
    content: Content,
    width: int,
    height: int,
    *,
    x: float = 0.5,
    hjust: float = 0.5,
    fontface: str = "bold",
    size: float = 16.0,
    color: RGBA | None = None,
) -> Drawing:
    label = draw_label(content, x, 0.5, frame="canvas", hjust=hjust, vjust=0.5, fontface=fontface, size=size, color=color)
    return to_canvas(width=width, height=height) + label


def add_title(
    item: Renderable,
    content: Content,
    title_weight: float = 0.1,
    *,
    x: float = 0.5,
    hjust: float = 0.5,
    fontface: str = "bold",
    size: float = 16.0,
    color: RGBA | None = None,
) -> LayoutTable:
    """Stack a title row over `item`; it takes `title_weight / (title_weight + 1)` of the height."""
    if not math.isfinite(title_weight) or title_weight <= 0:
        raise InvalidGridSpec(f"title_weight must be > 0, got {title_weight}")
    title_h = max(1, int(round(item.height * title_weight)))
    title = title_drawing(content, item.width, title_h, x=x, hjust=hjust, fontface=fontface, size=size, color=color)
    total_h = int(math.ceil(item.height * (1.0 + title_weight) - 1e-9))
    return compose_grid([title, item], ncol=1, rel_heights=[title_weight, 1.0], width=item.width, height=total_h)
