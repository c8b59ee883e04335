from __future__ import annotations

from dataclasses import dataclass
import math
from typing import Literal, Sequence

from plotcompose.raster.draw_text import DEFAULT_FONT_SIZE_PX, DEFAULT_LINE_HEIGHT


SizeUnit = Literal["null", "px", "lines"]
SIZE_UNITS = ("null", "px", "lines")


@dataclass(frozen=True)
class Size:
    """A track size: a relative weight (`null`) or an absolute length (`px`, `lines`)."""

    value: float
    unit: SizeUnit = "null"

    def __post_init__(self) -> None:
        if self.unit not in SIZE_UNITS:
            raise ValueError(f"unknown size unit: {self.unit!r}")
        if not math.isfinite(self.value):
            raise ValueError("size value must be finite")

    @property
    def is_relative(self) -> bool:
        return self.unit == "null"

    def to_px(self, font_size_px: float = DEFAULT_FONT_SIZE_PX, line_height: float = DEFAULT_LINE_HEIGHT) -> float:
        if self.unit == "px":
            return float(self.value)
        if self.unit == "lines":
            return float(self.value) * font_size_px * line_height
        raise ValueError("relative sizes have no absolute length")


def null(value: float = 1.0) -> Size:
    return Size(float(value), "null")


def px(value: float) -> Size:
    return Size(float(value), "px")


def lines(value: float = 1.0) -> Size:
    return Size(float(value), "lines")


def coerce_size(value: Size | float | int, default_unit: SizeUnit = "px") -> Size:
    if isinstance(value, Size):
        return value
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"expected Size or number, got {type(value)!r}")
    return Size(float(value), default_unit)


def resolve_tracks(
    sizes: Sequence[Size],
    total: float,
    *,
    font_size_px: float = DEFAULT_FONT_SIZE_PX,
    line_height: float = DEFAULT_LINE_HEIGHT,
) -> tuple[float, ...]:
    """Track lengths that add up to `total`.

    Relative tracks share what the absolute ones leave over. When the
    absolute tracks alone exceed `total` they shrink proportionally and
    the relative tracks get nothing.
    """
    fixed = [0.0 if s.is_relative else s.to_px(font_size_px, line_height) for s in sizes]
    absolute = sum(fixed)
    weight = sum(s.value for s in sizes if s.is_relative)
    total = float(total)
    if absolute > total or (weight <= 0 and absolute > 0):
        scale = total / absolute
        return tuple(f * scale for f in fixed)
    if weight <= 0:
        return tuple(fixed)
    remaining = total - absolute
    return tuple(remaining * s.value / weight if s.is_relative else f for s, f in zip(sizes, fixed))


def track_edges(track_sizes: Sequence[float], origin: float = 0.0) -> tuple[float, ...]:
    edges = [float(origin)]
    for size in track_sizes:
        edges.append(edges[-1] + size)
    return tuple(edges)


def pixel_edges(edges: Sequence[float]) -> tuple[int, ...]:
    # Consecutive rounded edges keep the partition gap-free.
    return tuple(int(math.floor(e + 0.5)) for e in edges)
