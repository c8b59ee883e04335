from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

import numpy as np

from plotcompose.raster.canvas import RGBA


SeriesMode = Literal["markers", "lines", "lines+markers"]
SERIES_MODES = ("markers", "lines", "lines+markers")


@dataclass(frozen=True)
class SeriesData:
    """Float x/y columns; `mask` is False where either value is missing or non-finite."""

    x: np.ndarray
    y: np.ndarray
    mask: np.ndarray


@dataclass(frozen=True)
class SeriesStyle:
    mode: SeriesMode = "markers"
    color: RGBA = (52, 101, 164, 255)
    marker_size: int = 5
    line_width: int = 1

    def __post_init__(self) -> None:
        if self.mode not in SERIES_MODES:
            raise ValueError(f"mode must be one of {SERIES_MODES}, got {self.mode!r}")
        if self.marker_size < 1 or self.line_width < 1:
            raise ValueError("marker_size and line_width must be >= 1")


@dataclass(frozen=True)
class SeriesSpec:
    """One drawn layer of a facet."""

    data: SeriesData
    style: SeriesStyle
    label: str | None = None
