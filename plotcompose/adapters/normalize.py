from __future__ import annotations

from typing import Any

import numpy as np

from plotcompose.errors import PlotDataError
from plotcompose.series import SeriesData


try:
    import pandas as pd
except ImportError:  # pragma: no cover - optional dependency
    pd = None  # type: ignore[assignment]


def normalize_xy(y: Any = None, *, x: Any = None, data: Any = None) -> SeriesData:
    """Float x/y arrays plus the mask of points that can be drawn.

    With `data`, string arguments name DataFrame columns and a missing `y`
    picks the frame's only numeric column. A missing `x` is 0..n-1.
    """
    if data is not None:
        y = _frame_column(data, y)
        if x is not None:
            x = _frame_column(data, x)
    if y is None:
        raise PlotDataError("y input is required")
    ys = _float_array(y, "y")
    if ys.size == 0:
        raise PlotDataError("empty series")
    xs = np.arange(ys.size, dtype=np.float64) if x is None else _float_array(x, "x")
    if xs.shape != ys.shape:
        raise PlotDataError(f"x and y length mismatch: {xs.size} != {ys.size}")
    mask = np.isfinite(xs) & np.isfinite(ys)
    if not mask.any():
        raise PlotDataError("series contains no finite points")
    return SeriesData(x=xs, y=ys, mask=mask)


def _frame_column(frame: Any, key: Any) -> Any:
    if pd is None or not isinstance(frame, pd.DataFrame):
        raise PlotDataError("`data` must be a pandas DataFrame")
    if key is None:
        numeric = frame.select_dtypes("number").columns
        if len(numeric) != 1:
            raise PlotDataError(f"y must name a column when data has {len(numeric)} numeric columns")
        return frame[numeric[0]]
    if isinstance(key, str):
        if key not in frame.columns:
            raise PlotDataError(f"column not found: {key}")
        return frame[key]
    return key


def _float_array(value: Any, axis: str) -> np.ndarray:
    # None marks a missing point; anything else must convert with float().
    if isinstance(value, (str, bytes)) or np.ndim(value) != 1:
        raise PlotDataError(f"{axis} must be a 1-D sequence of numbers")
    arr = np.asarray(value)
    if arr.dtype.kind in "iufb":
        return arr.astype(np.float64)
    try:
        return np.array([np.nan if v is None else float(v) for v in arr.tolist()], dtype=np.float64)
    except (TypeError, ValueError) as exc:
        raise PlotDataError(f"{axis} contains non-numeric values") from exc
