from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

import numpy as np


@dataclass(frozen=True)
class DataLimits:
    xmin: float
    xmax: float
    ymin: float
    ymax: float

    @property
    def x_span(self) -> float:
        return self.xmax - self.xmin

    @property
    def y_span(self) -> float:
        return self.ymax - self.ymin


def compute_limits(
    x: np.ndarray,
    y: np.ndarray,
    mask: np.ndarray,
    *,
    x_buffer_ratio: float = 0.04,
    y_buffer_ratio: float = 0.05,
) -> DataLimits:
    vx = x[mask]
    vy = y[mask]
    xmin, xmax = _buffered(float(np.min(vx)), float(np.max(vx)), x_buffer_ratio)
    ymin, ymax = _buffered(float(np.min(vy)), float(np.max(vy)), y_buffer_ratio)
    return DataLimits(xmin=xmin, xmax=xmax, ymin=ymin, ymax=ymax)


def _buffered(vmin: float, vmax: float, ratio: float) -> tuple[float, float]:
    if vmin == vmax:
        delta = max(1.0, abs(vmin) * ratio)
        return vmin - delta, vmax + delta
    pad = (vmax - vmin) * ratio
    return vmin - pad, vmax + pad


def generate_nice_ticks(vmin: float, vmax: float, target: int) -> np.ndarray:
    if target <= 0:
        raise ValueError("target must be > 0")
    lo, hi = min(vmin, vmax), max(vmin, vmax)
    if lo == hi:
        return np.asarray([lo], dtype=np.float64)

    span = _nice_number(hi - lo, round_result=False)
    step = _nice_number(span / max(target - 1, 1), round_result=True)
    tick_min = np.ceil(lo / step) * step
    tick_max = np.floor(hi / step) * step
    ticks = np.arange(tick_min, tick_max + 0.5 * step, step, dtype=np.float64)
    # Snap floating-point drift so values like -4.44e-16 become 0.
    ticks = np.rint(ticks / step) * step
    ticks[np.isclose(ticks, 0.0, rtol=0.0, atol=step * 1e-9)] = 0.0
    return ticks


def format_tick(value: float, *, step: float | None = None) -> str:
    if not np.isfinite(value):
        return str(value)
    if step is not None and np.isfinite(step) and step > 0 and abs(value) <= step * 1e-9:
        value = 0.0
    abs_v = abs(value)
    decimals = _decimals_from_step(step) if step is not None else 6
    if abs_v != 0 and (abs_v >= 1e6 or (step is not None and abs(step) < 1e-4) or abs_v < 1e-6):
        return f"{value:.3g}"

    d = Decimal(str(value))
    quant = Decimal("1").scaleb(-decimals)
    try:
        q = d.quantize(quant)
    except InvalidOperation:
        q = d
    out = format(q, "f")
    if "." in out:
        out = out.rstrip("0").rstrip(".")
    if out == "-0":
        out = "0"
    return out


def format_ticks_for_axis(ticks: np.ndarray) -> list[str]:
    if ticks.size == 0:
        return []
    if ticks.size == 1:
        return [format_tick(float(ticks[0]))]
    step = float(abs(ticks[1] - ticks[0]))
    return [format_tick(float(v), step=step) for v in ticks]


def _nice_number(value: float, *, round_result: bool) -> float:
    exp = np.floor(np.log10(value))
    frac = value / (10**exp)
    if round_result:
        bounds = ((1.5, 1.0), (3.0, 2.0), (7.0, 5.0))
        nice_frac = next((nice for limit, nice in bounds if frac < limit), 10.0)
    else:
        bounds = ((1.0, 1.0), (2.0, 2.0), (5.0, 5.0))
        nice_frac = next((nice for limit, nice in bounds if frac <= limit), 10.0)
    return float(nice_frac * (10**exp))


def _decimals_from_step(step: float) -> int:
    if step <= 0 or not np.isfinite(step):
        return 6
    exp = Decimal(str(step)).normalize().as_tuple().exponent
    return min(12, max(0, -int(exp)))
