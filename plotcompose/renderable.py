from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal, Protocol, runtime_checkable

import numpy as np

from plotcompose.scales import DataLimits

if TYPE_CHECKING:
    from plotcompose.shaping import TextShaper


YOrigin = Literal["bottom", "top"]


@dataclass(frozen=True)
class PanelGeometry:
    """A rectangle on a drawing surface, in pixels with a top-left origin.

    `limits` is set when the rectangle is a data panel; `y_origin` says
    whether data y grows from the bottom edge (plots) or the top edge
    (image-like panels).
    """

    x: float
    y: float
    width: float
    height: float
    limits: DataLimits | None = None
    y_origin: YOrigin = "bottom"

    def offset(self, dx: float, dy: float) -> "PanelGeometry":
        return PanelGeometry(self.x + dx, self.y + dy, self.width, self.height, self.limits, self.y_origin)

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height


@runtime_checkable
class Renderable(Protocol):
    @property
    def width(self) -> int:
        ...

    @property
    def height(self) -> int:
        ...

    def panels(self, width: int | None = None, height: int | None = None) -> tuple[PanelGeometry, ...]:
        ...

    def render(self, width: int | None = None, height: int | None = None, *, shaper: "TextShaper | None" = None) -> np.ndarray:
        ...


def resolve_size(item: Renderable, width: int | None, height: int | None) -> tuple[int, int]:
    w = item.width if width is None else int(width)
    h = item.height if height is None else int(height)
    if w <= 0 or h <= 0:
        raise ValueError("render width/height must be > 0")
    return w, h
