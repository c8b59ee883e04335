from plotcompose.annotation import Annotation, PositionedAnnotation, draw_label, place, place_annotation
from plotcompose.config import ComposeDefaults, load_defaults
from plotcompose.coords import Frame, canvas_point, from_canvas_point
from plotcompose.drawing import Drawing, to_canvas
from plotcompose.errors import (
    ComposeError,
    ContentRenderError,
    DegenerateRange,
    EmptyContent,
    InvalidFrame,
    InvalidGridSpec,
    InvalidPadding,
    PlotDataError,
)
from plotcompose.grid import add_title, compose_grid, plot_grid
from plotcompose.mathtext import parse_expression
from plotcompose.plot import Facet, Plot, PlotStyle, facet_plot, plot
from plotcompose.render import render, to_image
from plotcompose.shaping import RasterTextShaper, TextShaper, TextStyle
from plotcompose.table import LayoutCell, LayoutTable, add_caption, add_sub, as_table
from plotcompose.units import Size, lines, null, px

__all__ = [
    "Annotation",
    "ComposeDefaults",
    "ComposeError",
    "ContentRenderError",
    "DegenerateRange",
    "Drawing",
    "EmptyContent",
    "Facet",
    "Frame",
    "InvalidFrame",
    "InvalidGridSpec",
    "InvalidPadding",
    "LayoutCell",
    "LayoutTable",
    "Plot",
    "PlotDataError",
    "PlotStyle",
    "PositionedAnnotation",
    "RasterTextShaper",
    "Size",
    "TextShaper",
    "TextStyle",
    "add_caption",
    "add_sub",
    "add_title",
    "as_table",
    "canvas_point",
    "compose_grid",
    "draw_label",
    "facet_plot",
    "from_canvas_point",
    "lines",
    "load_defaults",
    "null",
    "parse_expression",
    "place",
    "place_annotation",
    "plot",
    "plot_grid",
    "px",
    "render",
    "to_canvas",
    "to_image",
]
