from __future__ import annotations

import unittest

import numpy as np

import plotcompose as pc
from plotcompose.coords import canvas_to_pixels
from plotcompose.shaping import TextBox, TextStyle
from plotcompose.units import px


class FixedBoxShaper:
    def measure(self, content: object, style: TextStyle) -> TextBox:
        return TextBox(width=30.0, height=12.0, ascent=12.0)

    def rasterize(self, content: object, style: TextStyle) -> np.ndarray:
        return np.full((12, 30), 255, dtype=np.uint8)


SHAPER = FixedBoxShaper()


def _base(ys: list[float]) -> pc.Plot:
    xs = np.linspace(10, 500, len(ys))
    return pc.plot(ys, x=xs, xlim=(10, 500), ylim=(0, 1000), width=480, height=320, x_label="x", y_label="y")


class EndToEndScenarioTests(unittest.TestCase):
    def test_data_label_then_caption(self) -> None:
        base = _base([50.0, 900.0, 300.0, 700.0])
        label = pc.draw_label("x", 20, 400, frame="data", hjust=0, vjust=0)
        drawing = pc.to_canvas(base) + label

        placed = pc.place_annotation(label, drawing, shaper=SHAPER)
        sx, sy = canvas_to_pixels(*pc.canvas_point("data", 20, 400, base), (480, 320))
        self.assertAlmostEqual(placed.left, sx, places=6)
        self.assertAlmostEqual(placed.top + placed.height, sy, places=6)

        table = pc.add_sub(drawing, "caption", y=0, vjust=0, vpadding=px(4), shaper=SHAPER)
        self.assertEqual(table.height, 320 + 20)
        caption = table.layout(shaper=SHAPER).labels[0]
        self.assertAlmostEqual(caption.top + caption.height, 340 - 4)

        other = pc.add_sub(pc.to_canvas(_base([1.0, 2.0])) + label, "caption", y=0, vjust=0, vpadding=px(4), shaper=SHAPER)
        self.assertEqual(other.layout(shaper=SHAPER).labels[0].bounds, caption.bounds)

        rgba = pc.render(table, shaper=SHAPER)
        self.assertEqual(rgba.shape, (340, 480, 4))
        self.assertEqual(tuple(int(v) for v in rgba[int(sy) - 6, int(sx) + 15]), (20, 20, 20, 255))

    def test_tagged_grid_with_title_and_caption(self) -> None:
        plots = [_base([100.0, 200.0]), _base([300.0, 50.0]), _base([10.0, 990.0])]
        grid = pc.compose_grid(plots, tags=True)
        titled = pc.add_title(grid, "Three panels", 0.1)
        captioned = pc.add_sub(titled, "Figure 1", shaper=SHAPER)
        data_panels = [p for p in captioned.panels() if p.limits is not None]
        self.assertEqual(len(data_panels), 3)
        rgba = captioned.render(shaper=SHAPER)
        self.assertEqual(rgba.shape, (captioned.height, captioned.width, 4))
        self.assertAlmostEqual(titled.row_heights()[0] / titled.height, 0.1 / 1.1, places=12)

    def test_invalid_grid_is_reported(self) -> None:
        p = _base([1.0, 2.0])
        with self.assertRaises(pc.InvalidGridSpec):
            pc.compose_grid([p, p, p], nrow=1, ncol=2)
        self.assertTrue(issubclass(pc.InvalidGridSpec, pc.ComposeError))
        self.assertTrue(issubclass(pc.ComposeError, ValueError))


if __name__ == "__main__":
    unittest.main()
