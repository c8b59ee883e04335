from __future__ import annotations

from dataclasses import dataclass, replace
import logging

import numpy as np

from plotcompose.annotation import Annotation, draw_annotation, place_annotation
from plotcompose.raster import new_canvas
from plotcompose.raster.canvas import RGBA
from plotcompose.renderable import PanelGeometry, Renderable, resolve_size
from plotcompose.shaping import TextShaper, default_shaper

LOGGER = logging.getLogger(__name__)

DEFAULT_CANVAS_SIZE = (640, 480)


@dataclass(frozen=True)
class Drawing:
    """A renderable (or a blank canvas) with labels drawn on top.

    Labels keep their own coordinate frame: DATA and PANEL_NORMALIZED
    labels resolve against the base's panels, CANVAS_NORMALIZED labels
    against the whole surface. A blank canvas has a single panel covering
    the surface and no data coordinates.
    """

    base: Renderable | None = None
    labels: tuple[Annotation, ...] = ()
    width: int | None = None  # type: ignore[assignment]
    height: int | None = None  # type: ignore[assignment]
    background: RGBA = (255, 255, 255, 0)

    def __post_init__(self) -> None:
        if self.base is not None and not isinstance(self.base, Renderable):
            raise TypeError(f"base must be a renderable, got {type(self.base)!r}")
        default_w, default_h = (self.base.width, self.base.height) if self.base is not None else DEFAULT_CANVAS_SIZE
        object.__setattr__(self, "width", int(default_w if self.width is None else self.width))
        object.__setattr__(self, "height", int(default_h if self.height is None else self.height))
        if self.width <= 0 or self.height <= 0:
            raise ValueError("drawing width/height must be > 0")
        labels = tuple(self.labels)
        for label in labels:
            if not isinstance(label, Annotation):
                raise TypeError(f"labels must be Annotation values, got {type(label)!r}")
        object.__setattr__(self, "labels", labels)

    def add(self, *labels: Annotation) -> "Drawing":
        return replace(self, labels=self.labels + labels)

    def __add__(self, other: object) -> "Drawing":
        if isinstance(other, Annotation):
            return self.add(other)
        return NotImplemented

    def panels(self, width: int | None = None, height: int | None = None) -> tuple[PanelGeometry, ...]:
        w, h = resolve_size(self, width, height)
        if self.base is None:
            return (PanelGeometry(0.0, 0.0, float(w), float(h)),)
        return self.base.panels(w, h)

    def render(self, width: int | None = None, height: int | None = None, *, shaper: TextShaper | None = None) -> np.ndarray:
        w, h = resolve_size(self, width, height)
        shaper = shaper or default_shaper()
        if self.base is None:
            canvas = new_canvas(w, h, color=self.background)
        else:
            canvas = self.base.render(w, h, shaper=shaper)
        for label in self.labels:
            positioned = place_annotation(label, self, surface=(w, h), shaper=shaper)
            LOGGER.debug("drawing label %r at %s", label.content, positioned.bounds)
            draw_annotation(canvas, positioned, shaper)
        return canvas


def to_canvas(
    renderable: Renderable | None = None,
    *,
    width: int | None = None,
    height: int | None = None,
    background: RGBA = (255, 255, 255, 0),
) -> Drawing:
    """Wrap `renderable` (or a blank canvas) so labels can be drawn onto it."""
    if isinstance(renderable, Drawing) and width is None and height is None:
        return renderable
    return Drawing(base=renderable, width=width, height=height, background=background)
