from __future__ import annotations

import unittest

import numpy as np

from plotcompose import Annotation, EmptyContent, Frame, draw_label, place, place_annotation, plot, to_canvas
from plotcompose.annotation import justify
from plotcompose.coords import canvas_point, canvas_to_pixels
from plotcompose.mathtext import Literal, Superscript
from plotcompose.shaping import TextBox, TextStyle


class FixedBoxShaper:
    """Every piece of content measures `width` x `height` and rasterises as a solid block."""

    def __init__(self, width: int = 40, height: int = 10) -> None:
        self.width = width
        self.height = height
        self.calls: list[object] = []

    def measure(self, content: object, style: TextStyle) -> TextBox:
        self.calls.append(content)
        return TextBox(width=float(self.width), height=float(self.height), ascent=float(self.height))

    def rasterize(self, content: object, style: TextStyle) -> np.ndarray:
        return np.full((self.height, self.width), 255, dtype=np.uint8)


class AnnotationPlacementTests(unittest.TestCase):
    def test_justify_anchors_box_corners(self) -> None:
        self.assertEqual(justify(100.0, 50.0, 40.0, 10.0, 0.0, 0.0), (100.0, 40.0))
        self.assertEqual(justify(100.0, 50.0, 40.0, 10.0, 1.0, 1.0), (60.0, 50.0))
        self.assertEqual(justify(100.0, 50.0, 40.0, 10.0, 0.5, 0.5), (80.0, 45.0))

    def test_place_bottom_left_and_top_right(self) -> None:
        shaper = FixedBoxShaper()
        low = place("x", 0.25, 0.5, frame="canvas", hjust=0, vjust=0, surface=(200, 100), shaper=shaper)
        self.assertEqual((low.left, low.top, low.width, low.height), (50.0, 40.0, 40.0, 10.0))
        high = place("x", 0.25, 0.5, frame="canvas", hjust=1, vjust=1, surface=(200, 100), shaper=shaper)
        self.assertEqual((high.left, high.top), (10.0, 50.0))

    def test_rotation_uses_rotated_box(self) -> None:
        shaper = FixedBoxShaper()
        style = TextStyle(angle=90)
        placed = place("x", 0.5, 0.5, frame="canvas", style=style, hjust=0, vjust=0, surface=(200, 100), shaper=shaper)
        self.assertEqual((placed.width, placed.height), (10.0, 40.0))
        self.assertEqual((placed.left, placed.top), (100.0, 10.0))

    def test_data_frame_placement_follows_panel(self) -> None:
        shaper = FixedBoxShaper()
        p = plot([0, 1000], x=[10, 500], xlim=(10, 500), ylim=(0, 1000), width=400, height=300)
        placed = place("x", 20, 400, frame=Frame.DATA, hjust=0, vjust=0, renderable=p, shaper=shaper)
        sx, sy = canvas_to_pixels(*canvas_point("data", 20, 400, p), (400, 300))
        self.assertAlmostEqual(placed.left, sx, places=9)
        self.assertAlmostEqual(placed.top + placed.height, sy, places=9)

    def test_place_does_not_touch_renderable(self) -> None:
        p = plot([1, 2, 3], width=300, height=200)
        before = p.panels()
        place("x", 1, 2, renderable=p, shaper=FixedBoxShaper())
        self.assertEqual(p.panels(), before)

    def test_place_needs_a_surface(self) -> None:
        with self.assertRaises(ValueError):
            place("x", 0.5, 0.5, frame="canvas", shaper=FixedBoxShaper())

    def test_justification_range_is_checked(self) -> None:
        with self.assertRaises(ValueError):
            draw_label("x", hjust=1.5)
        with self.assertRaises(ValueError):
            place("x", 0.5, 0.5, frame="canvas", vjust=-0.1, surface=(10, 10), shaper=FixedBoxShaper())

    def test_empty_content_is_rejected(self) -> None:
        for content in ("", "   ", None, Literal(" ")):
            with self.assertRaises(EmptyContent):
                draw_label(content)  # type: ignore[arg-type]
        with self.assertRaises(TypeError):
            draw_label(42)  # type: ignore[arg-type]

    def test_draw_label_builds_immutable_annotation(self) -> None:
        label = draw_label("R", 1, 2, frame="canvas", fontface="bold", size=18, angle=45)
        self.assertIsInstance(label, Annotation)
        self.assertIs(label.frame, Frame.CANVAS_NORMALIZED)
        self.assertEqual(label.style.fontface, "bold")
        self.assertEqual(label.style.size, 18)
        with self.assertRaises(AttributeError):
            label.x = 3  # type: ignore[misc]

    def test_draw_label_color_overrides_only_color(self) -> None:
        plain = draw_label("R", family="DejaVu Sans")
        red = draw_label("R", family="DejaVu Sans", color=(255, 0, 0, 255))
        self.assertEqual(plain.style.color, TextStyle().color)
        self.assertEqual(red.style.color, (255, 0, 0, 255))
        self.assertEqual(red.style.family, "DejaVu Sans")

    def test_math_content_uses_same_placement(self) -> None:
        shaper = FixedBoxShaper()
        expr = Superscript(Literal("R"), Literal("2"))
        text = place("R2", 0.5, 0.5, frame="canvas", surface=(100, 100), shaper=shaper)
        math_ = place(expr, 0.5, 0.5, frame="canvas", surface=(100, 100), shaper=shaper)
        self.assertEqual(text.bounds, math_.bounds)
        self.assertIs(shaper.calls[-1], expr)

    def test_drawing_renders_canvas_labels(self) -> None:
        drawing = to_canvas(width=100, height=50) + draw_label("x", 0.5, 0.5, frame="canvas")
        rgba = drawing.render(shaper=FixedBoxShaper())
        self.assertEqual(rgba.shape, (50, 100, 4))
        self.assertEqual(int(rgba[25, 50, 3]), 255)
        self.assertEqual(int(rgba[0, 0, 3]), 0)
        positioned = place_annotation(drawing.labels[0], drawing, shaper=FixedBoxShaper())
        self.assertEqual(positioned.bounds, (30.0, 20.0, 40.0, 10.0))

    def test_drawing_add_returns_new_value(self) -> None:
        blank = to_canvas(width=10, height=10)
        labelled = blank.add(draw_label("a", frame="canvas"), draw_label("b", frame="canvas"))
        self.assertEqual(blank.labels, ())
        self.assertEqual([a.content for a in labelled.labels], ["a", "b"])
        with self.assertRaises(TypeError):
            blank.add("a")  # type: ignore[arg-type]


if __name__ == "__main__":
    unittest.main()
