from __future__ import annotations

import unittest

import numpy as np

from plotcompose import (
    EmptyContent,
    InvalidGridSpec,
    InvalidPadding,
    LayoutCell,
    LayoutTable,
    add_caption,
    add_sub,
    as_table,
    compose_grid,
    draw_label,
    plot,
)
from plotcompose.shaping import TextBox, TextStyle
from plotcompose.units import lines, null, px


class FixedBoxShaper:
    def __init__(self, width: int = 40, height: int = 10) -> None:
        self.width = width
        self.height = height

    def measure(self, content: object, style: TextStyle) -> TextBox:
        return TextBox(width=float(self.width), height=float(self.height), ascent=float(self.height))

    def rasterize(self, content: object, style: TextStyle) -> np.ndarray:
        return np.full((self.height, self.width), 255, dtype=np.uint8)


SHAPER = FixedBoxShaper()


def _plot(ys: list[float] | None = None, **kwargs: object):
    ys = ys if ys is not None else [1.0, 3.0, 2.0]
    options = {"width": 300, "height": 200, "x_label": "index", "y_label": "value"}
    options.update(kwargs)
    return plot(ys, **options)  # type: ignore[arg-type]


class TableExtensionTests(unittest.TestCase):
    def test_as_table_wraps_renderable_once(self) -> None:
        p = _plot()
        table = as_table(p)
        self.assertEqual(table.shape, (1, 1))
        self.assertEqual((table.width, table.height), (300, 200))
        self.assertEqual(table.panel_cell, (0, 0))
        self.assertIs(as_table(table), table)
        self.assertEqual(table.panels(), p.panels())
        with self.assertRaises(TypeError):
            as_table("not a plot")  # type: ignore[arg-type]

    def test_caption_row_height_is_box_plus_padding(self) -> None:
        table = add_sub(_plot(), "caption", vpadding=px(5), shaper=SHAPER)
        self.assertEqual(table.shape, (2, 1))
        self.assertEqual(table.heights[-1], px(20))
        self.assertEqual(table.height, 220)
        self.assertEqual(table.width, 300)

    def test_default_padding_is_one_line(self) -> None:
        table = add_sub(_plot(), "caption", shaper=SHAPER)
        pad = lines(1).to_px()
        self.assertEqual(table.height, 200 + int(np.ceil(10 + 2 * pad)))

    def test_stacked_captions_add_up_and_keep_first_row(self) -> None:
        p = _plot()
        once = add_sub(p, "first", vpadding=px(5), shaper=SHAPER)
        twice = add_sub(once, "second", vpadding=px(2), shaper=FixedBoxShaper(height=16))
        self.assertEqual(twice.height, 200 + 20 + 20)
        self.assertEqual(twice.row_heights(), (200.0, 20.0, 20.0))
        self.assertEqual(twice.panels(), p.panels())
        layout = twice.layout(shaper=SHAPER)
        first = next(c for c in layout.cells if c.cell.row == 0)
        self.assertEqual((first.rect.x, first.rect.y, first.rect.width, first.rect.height), (0.0, 0.0, 300.0, 200.0))
        # The first caption row is untouched by the second insertion.
        self.assertEqual(once.layout(shaper=SHAPER).labels[0].bounds, layout.labels[0].bounds)

    def test_caption_y_is_relative_to_new_row(self) -> None:
        table = add_sub(_plot(), "caption", y=0, vjust=0, vpadding=px(5), shaper=SHAPER)
        label = table.layout(shaper=SHAPER).labels[0]
        self.assertAlmostEqual(label.top + label.height, 220 - 5)
        top = add_sub(_plot(), "caption", y=1, vjust=1, vpadding=px(5), shaper=SHAPER)
        self.assertAlmostEqual(top.layout(shaper=SHAPER).labels[0].top, 200 + 5)

    def test_caption_position_is_independent_of_data(self) -> None:
        small = add_sub(_plot([0.0, 1.0]), "caption", x=0.3, y=0.2, vjust=0, shaper=SHAPER)
        large = add_sub(_plot([-5e6, 2e6, 9e6]), "caption", x=0.3, y=0.2, vjust=0, shaper=SHAPER)
        self.assertEqual(small.layout(shaper=SHAPER).labels[0].bounds, large.layout(shaper=SHAPER).labels[0].bounds)

    def test_caption_x_aligns_with_panel_column(self) -> None:
        p = _plot()
        panel = p.panels()[0]
        self.assertGreater(panel.x, 0)
        left = add_sub(p, "caption", x=0, hjust=0, shaper=SHAPER).layout(shaper=SHAPER).labels[0]
        self.assertAlmostEqual(left.left, panel.x)
        right = add_sub(p, "caption", x=1, hjust=1, shaper=SHAPER).layout(shaper=SHAPER).labels[0]
        self.assertAlmostEqual(right.left + right.width, panel.right)

    def test_caption_on_grid_spans_full_width(self) -> None:
        grid = compose_grid([_plot(), _plot()])
        label = add_sub(grid, "caption", x=0, hjust=0, shaper=SHAPER).layout(shaper=SHAPER).labels[0]
        self.assertEqual(label.left, 0.0)

    def test_caption_above_shifts_original_rows(self) -> None:
        p = _plot()
        table = add_sub(p, "heading", location="above", vpadding=px(5), shaper=SHAPER)
        self.assertEqual(table.heights[0], px(20))
        self.assertEqual(table.panel_cell, (1, 0))
        self.assertAlmostEqual(table.panels()[0].y, p.panels()[0].y + 20)
        below = add_sub(table, "caption", x=0, hjust=0, vpadding=px(5), shaper=SHAPER)
        self.assertAlmostEqual(below.layout(shaper=SHAPER).labels[-1].left, p.panels()[0].x)

    def test_squeezed_table_still_fills_its_area(self) -> None:
        captioned = add_sub(_plot(), "caption", vpadding=px(5), shaper=SHAPER)
        grid = compose_grid([captioned], height=12)
        layout = grid.layout(shaper=SHAPER)
        self.assertEqual(layout.row_edges[-1], 12)
        inner = captioned.layout(height=12, shaper=SHAPER)
        self.assertEqual(inner.row_edges, (0, 0, 12))
        self.assertEqual(grid.render(shaper=SHAPER).shape, (12, 300, 4))

    def test_invalid_padding(self) -> None:
        p = _plot()
        for pad in (-1, px(-3), null(1), float("nan")):
            with self.assertRaises(InvalidPadding):
                add_sub(p, "caption", vpadding=pad, shaper=SHAPER)

    def test_empty_caption(self) -> None:
        with self.assertRaises(EmptyContent):
            add_sub(_plot(), "  ", shaper=SHAPER)
        with self.assertRaises(EmptyContent):
            add_caption(_plot(), None, shaper=SHAPER)

    def test_unknown_location(self) -> None:
        with self.assertRaises(ValueError):
            add_caption(_plot(), draw_label("c", frame="panel"), location="left", shaper=SHAPER)  # type: ignore[arg-type]

    def test_input_table_is_not_modified(self) -> None:
        base = as_table(_plot())
        add_sub(base, "caption", shaper=SHAPER)
        self.assertEqual(base.shape, (1, 1))
        self.assertEqual(base.height, 200)

    def test_table_rejects_overlapping_and_out_of_bounds_cells(self) -> None:
        p = _plot()
        with self.assertRaises(InvalidGridSpec):
            LayoutTable((null(),), (null(),), (LayoutCell(0, 0, p), LayoutCell(0, 0, p)), 10, 10)
        with self.assertRaises(InvalidGridSpec):
            LayoutTable((null(),), (null(),), (LayoutCell(0, 0, p, col_span=2),), 10, 10)
        with self.assertRaises(InvalidGridSpec):
            LayoutTable((null(),), (null(),), (), 10, 10, panel_cell=(0, 0))

    def test_render_includes_caption_pixels(self) -> None:
        table = add_sub(_plot(), "caption", y=0.5, vjust=0.5, vpadding=px(5), shaper=SHAPER)
        rgba = table.render(shaper=SHAPER)
        self.assertEqual(rgba.shape, (220, 300, 4))
        panel = _plot().panels()[0]
        cx = int(panel.x + panel.width / 2)
        self.assertEqual(tuple(int(v) for v in rgba[210, cx]), (20, 20, 20, 255))


if __name__ == "__main__":
    unittest.main()
