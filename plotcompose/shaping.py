from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
import math
import threading
from typing import Protocol, Union

import numpy as np
from PIL import Image, ImageDraw

from plotcompose.config import ComposeDefaults
from plotcompose.errors import ContentRenderError, EmptyContent
from plotcompose.mathtext import ExpressionLayout, MathNode, is_blank, is_math, layout_expression
from plotcompose.raster.canvas import RGBA
from plotcompose.raster.draw_text import FONTFACES, ITALIC_SHEAR, LoadedFont, finish_mask, load_font, measure_text, render_text_mask


Content = Union[str, MathNode]


@dataclass(frozen=True)
class TextStyle:
    fontface: str = "plain"
    size: float = 14.0
    angle: float = 0.0
    color: RGBA = (20, 20, 20, 255)
    family: str | None = None
    line_height: float = 1.2

    def __post_init__(self) -> None:
        if self.fontface not in FONTFACES:
            raise ValueError(f"fontface must be one of {FONTFACES}, got {self.fontface!r}")
        if not math.isfinite(self.size) or self.size <= 0:
            raise ValueError("text size must be > 0")
        if not math.isfinite(self.angle):
            raise ValueError("angle must be finite")
        if self.line_height <= 0:
            raise ValueError("line_height must be > 0")


@dataclass(frozen=True)
class TextBox:
    """Unrotated extent of shaped content, in pixels."""

    width: float
    height: float
    ascent: float = 0.0


def check_content(content: object) -> Content:
    if content is None:
        raise EmptyContent("content is required")
    if isinstance(content, str):
        if not content.strip():
            raise EmptyContent("content must not be empty")
        return content
    if is_math(content):
        if is_blank(content):  # type: ignore[arg-type]
            raise EmptyContent("math content must not be empty")
        return content  # type: ignore[return-value]
    raise TypeError(f"content must be a string or math expression, got {type(content)!r}")


class TextShaper(Protocol):
    """Measures and rasterises content at zero rotation; callers rotate the result."""

    def measure(self, content: Content, style: TextStyle) -> TextBox:
        ...

    def rasterize(self, content: Content, style: TextStyle) -> np.ndarray:
        ...


class RasterTextShaper:
    """Pillow-backed shaper. Calls are serialised, so one instance can be shared across threads."""

    def __init__(self, defaults: ComposeDefaults | None = None) -> None:
        self._defaults = defaults or ComposeDefaults()
        self._lock = threading.Lock()

    @property
    def defaults(self) -> ComposeDefaults:
        return self._defaults

    def measure(self, content: Content, style: TextStyle) -> TextBox:
        check_content(content)
        with self._lock:
            try:
                if isinstance(content, str):
                    m = measure_text(content, self._font(style, style.size), line_height=style.line_height)
                    return TextBox(width=m.width, height=m.height, ascent=m.ascent)
                layout = self._layout(content, style)
                loaded = self._font(style, style.size)
                extra = (loaded.embolden_px - 1) + (ITALIC_SHEAR * layout.height if loaded.synthetic_italic else 0.0)
                return TextBox(width=layout.width + extra, height=layout.height, ascent=layout.ascent)
            except ContentRenderError:
                raise
            except (OSError, ValueError) as exc:
                raise ContentRenderError(f"cannot shape content {content!r}: {exc}") from exc

    def rasterize(self, content: Content, style: TextStyle) -> np.ndarray:
        check_content(content)
        with self._lock:
            try:
                if isinstance(content, str):
                    return render_text_mask(content, self._font(style, style.size), line_height=style.line_height)
                return self._rasterize_math(content, style)
            except ContentRenderError:
                raise
            except (OSError, ValueError) as exc:
                raise ContentRenderError(f"cannot render content {content!r}: {exc}") from exc

    def _font(self, style: TextStyle, size: float) -> LoadedFont:
        return load_font(style.family or self._defaults.font_family, size, style.fontface)

    def _string_metrics(self, style: TextStyle):
        def metrics(text: str, size: float) -> tuple[float, float, float]:
            loaded = self._font(style, size)
            ascent, descent = loaded.metrics()
            return loaded.advance(text), float(ascent), float(descent)

        return metrics

    def _layout(self, node: MathNode, style: TextStyle) -> ExpressionLayout:
        return layout_expression(node, style.size, self._string_metrics(style))

    def _rasterize_math(self, node: MathNode, style: TextStyle) -> np.ndarray:
        layout = self._layout(node, style)
        image = Image.new("L", (max(1, math.ceil(layout.width)), max(1, math.ceil(layout.height))), 0)
        draw = ImageDraw.Draw(image)
        for run in layout.runs:
            font = self._font(style, run.size).font
            draw.text((run.x, layout.ascent + run.dy), run.text, fill=255, font=font, anchor="ls")
        return finish_mask(np.asarray(image, dtype=np.uint8), self._font(style, style.size))


@lru_cache(maxsize=1)
def default_shaper() -> RasterTextShaper:
    return RasterTextShaper()
