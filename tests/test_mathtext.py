from __future__ import annotations

import threading
import unittest

import numpy as np

from plotcompose import mathtext
from plotcompose.errors import ContentRenderError, EmptyContent
from plotcompose.mathtext import Literal, Operator, Subscript, Superscript, Symbol, layout_expression, parse_expression, to_plain_text
from plotcompose.shaping import RasterTextShaper, TextStyle, check_content


def _metrics(text: str, size: float) -> tuple[float, float, float]:
    return (len(text) * size * 0.5, size * 0.8, size * 0.2)


class MathExpressionTests(unittest.TestCase):
    def test_parse_superscript_and_relation(self) -> None:
        node = parse_expression("R^2 == 0.87")
        self.assertEqual(node, Operator("==", Superscript(Literal("R"), Literal("2")), Literal("0.87")))
        self.assertEqual(to_plain_text(node), "R^2 = 0.87")

    def test_superscripts_nest_to_the_right(self) -> None:
        self.assertEqual(
            parse_expression("a^b^c"),
            Superscript(Literal("a"), Superscript(Literal("b"), Literal("c"))),
        )
        self.assertEqual(
            parse_expression("x[i]^2"),
            Superscript(Subscript(Literal("x"), Literal("i")), Literal("2")),
        )

    def test_parse_subscript_and_symbols(self) -> None:
        self.assertEqual(parse_expression("x[i]"), Subscript(Literal("x"), Literal("i")))
        self.assertEqual(parse_expression("alpha + beta"), Operator("+", Symbol("alpha"), Symbol("beta")))

    def test_parse_grouping_and_strings(self) -> None:
        node = parse_expression('{a + b}^2 * "units"')
        self.assertEqual(
            node,
            Operator("*", Superscript(Operator("+", Literal("a"), Literal("b")), Literal("2")), Literal("units")),
        )
        self.assertEqual(to_plain_text(parse_expression("(a)")), "(a)")

    def test_parse_errors_are_content_errors(self) -> None:
        for source in ("", "x^", "x[1", "a $ b", "a +"):
            with self.assertRaises(ContentRenderError):
                parse_expression(source)

    def test_unknown_symbol_and_operator(self) -> None:
        with self.assertRaises(ContentRenderError):
            _ = Symbol("aleph").glyph
        with self.assertRaises(ContentRenderError):
            Operator("**", Literal("a"), Literal("b"))

    def test_superscript_layout_rises_above_base(self) -> None:
        layout = layout_expression(Superscript(Literal("R"), Literal("2")), 10.0, _metrics)
        self.assertAlmostEqual(layout.width, 5.0 + 3.5)
        base, script = layout.runs
        self.assertEqual(base.dy, 0.0)
        self.assertLess(script.dy, 0.0)
        self.assertAlmostEqual(script.size, 10.0 * mathtext.SCRIPT_SCALE)
        self.assertGreater(layout.ascent, 8.0)

    def test_subscript_layout_drops_below_baseline(self) -> None:
        layout = layout_expression(Subscript(Literal("x"), Literal("i")), 10.0, _metrics)
        self.assertGreater(layout.runs[1].dy, 0.0)
        self.assertGreater(layout.descent, 2.0)

    def test_operator_layout_concatenates(self) -> None:
        layout = layout_expression(parse_expression("a == b"), 10.0, _metrics)
        self.assertEqual([r.text for r in layout.runs], ["a", " = ", "b"])
        self.assertAlmostEqual(layout.width, 5.0 + 15.0 + 5.0)
        self.assertEqual([r.x for r in layout.runs], [0.0, 5.0, 20.0])

    def test_blank_math_is_empty_content(self) -> None:
        with self.assertRaises(EmptyContent):
            check_content(Operator("*", Literal(""), Literal(" ")))
        self.assertEqual(check_content(Symbol("pi")), Symbol("pi"))


class RasterTextShaperTests(unittest.TestCase):
    def setUp(self) -> None:
        self.shaper = RasterTextShaper()

    def test_measure_plain_text(self) -> None:
        box = self.shaper.measure("Hello", TextStyle(size=16))
        self.assertGreater(box.width, 0)
        self.assertGreater(box.height, 0)
        two_lines = self.shaper.measure("Hello\nworld", TextStyle(size=16))
        self.assertGreater(two_lines.height, box.height)

    def test_height_does_not_depend_on_glyphs(self) -> None:
        style = TextStyle(size=14)
        self.assertEqual(self.shaper.measure("ace", style).height, self.shaper.measure("Tly", style).height)

    def test_rasterize_returns_coverage_mask(self) -> None:
        mask = self.shaper.rasterize("Caption", TextStyle(size=18))
        self.assertEqual(mask.dtype, np.uint8)
        self.assertEqual(mask.ndim, 2)
        self.assertTrue(np.any(mask > 0))

    def test_math_measures_and_rasterises(self) -> None:
        expr = parse_expression("R^2 == 0.87")
        box = self.shaper.measure(expr, TextStyle(size=14))
        plain = self.shaper.measure("R", TextStyle(size=14))
        self.assertGreater(box.width, plain.width)
        mask = self.shaper.rasterize(expr, TextStyle(size=14))
        self.assertTrue(np.any(mask > 0))

    def test_bold_is_not_narrower(self) -> None:
        plain = self.shaper.measure("Panel", TextStyle(size=14))
        bold = self.shaper.measure("Panel", TextStyle(size=14, fontface="bold"))
        self.assertGreaterEqual(bold.width, plain.width)

    def test_unknown_symbol_propagates(self) -> None:
        with self.assertRaises(ContentRenderError):
            self.shaper.measure(Symbol("aleph"), TextStyle())

    def test_shared_between_threads(self) -> None:
        results: list[float] = []
        errors: list[Exception] = []

        def work() -> None:
            try:
                results.append(self.shaper.measure("threaded", TextStyle(size=12)).width)
            except Exception as exc:
                errors.append(exc)

        threads = [threading.Thread(target=work) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        self.assertEqual(errors, [])
        self.assertEqual(len(set(results)), 1)

    def test_bad_style_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            TextStyle(fontface="heavy")
        with self.assertRaises(ValueError):
            TextStyle(size=0)


if __name__ == "__main__":
    unittest.main()
