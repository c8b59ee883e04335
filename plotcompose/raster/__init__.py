from .canvas import RGBA, blend_coverage, blit, draw_hline, draw_rect_outline, draw_vline, fill_rect, new_canvas
from .draw_lines import draw_polyline
from .draw_markers import draw_markers
from .draw_text import (
    DEFAULT_FONT_FAMILY,
    FONTFACES,
    LoadedFont,
    load_font,
    measure_text,
    render_text_mask,
    rotate_mask,
    rotated_extent,
)

__all__ = [
    "DEFAULT_FONT_FAMILY",
    "FONTFACES",
    "LoadedFont",
    "RGBA",
    "blend_coverage",
    "blit",
    "draw_hline",
    "draw_markers",
    "draw_polyline",
    "draw_rect_outline",
    "draw_vline",
    "fill_rect",
    "load_font",
    "measure_text",
    "new_canvas",
    "render_text_mask",
    "rotate_mask",
    "rotated_extent",
]
