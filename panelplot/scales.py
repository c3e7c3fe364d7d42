from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
import logging
import math
from typing import Sequence

import numpy as np

from panelplot.errors import NoDataError, ScaleDomainError
from panelplot.options import AXIS_SCALE_KINDS, AxisScaleKind
from panelplot.series import Axis, Series

LOGGER = logging.getLogger(__name__)

DEFAULT_TICK_COUNT = 10

_E10 = math.sqrt(50.0)
_E5 = math.sqrt(10.0)
_E2 = math.sqrt(2.0)


def compute_extent(series: Sequence[Series], axis: Axis) -> tuple[float, float]:
    """Min/max along ``axis`` over every point that is not a gap marker."""
    chunks = [s.values(axis) for s in series]
    chunks = [c for c in chunks if c.size > 0]
    if not chunks:
        raise NoDataError(f"no data: every {axis} value is a gap marker" if series else "no data: series set is empty")
    values = np.concatenate(chunks)
    return float(np.min(values)), float(np.max(values))


def log_domain_is_valid(series: Sequence[Series], axis: Axis) -> bool:
    try:
        lo, _ = compute_extent(series, axis)
    except NoDataError:
        return False
    return lo > 0.0


def tick_increment(start: float, stop: float, count: int) -> float:
    """Tick step for ``count`` ticks; negative values encode ``1 / step`` for sub-unit steps."""
    step = (stop - start) / max(0, count)
    if step <= 0 or not math.isfinite(step):
        return 0.0
    power = math.floor(math.log10(step))
    error = step / (10.0**power)
    if error >= _E10:
        factor = 10.0
    elif error >= _E5:
        factor = 5.0
    elif error >= _E2:
        factor = 2.0
    else:
        factor = 1.0
    if power >= 0:
        return factor * (10.0**power)
    return -(10.0 ** (-power)) / factor


def nice_linear(domain: tuple[float, float], count: int = DEFAULT_TICK_COUNT) -> tuple[float, float]:
    """Expand ``domain`` outward to the tick step until the step stabilizes."""
    start, stop = domain
    reverse = stop < start
    if reverse:
        start, stop = stop, start
    prestep: float | None = None
    for _ in range(10):
        step = tick_increment(start, stop, count)
        if step == prestep:
            break
        if step > 0:
            start = math.floor(start / step) * step
            stop = math.ceil(stop / step) * step
        elif step < 0:
            start = math.ceil(start * step) / step
            stop = math.floor(stop * step) / step
        else:
            break
        prestep = step
    return (stop, start) if reverse else (start, stop)


def nice_log(domain: tuple[float, float]) -> tuple[float, float]:
    lo, hi = domain
    if lo <= 0 or hi <= 0:
        raise ScaleDomainError(f"log domain must be strictly positive, got [{lo}, {hi}]")
    return 10.0 ** math.floor(math.log10(lo)), 10.0 ** math.ceil(math.log10(hi))


def widen_degenerate(kind: AxisScaleKind, lo: float, hi: float) -> tuple[float, float]:
    if lo != hi:
        return lo, hi
    if kind == "log":
        return lo / 10.0, hi * 10.0
    delta = max(1.0, abs(lo) * 0.05)
    return lo - delta, hi + delta


@dataclass(frozen=True)
class AxisScale:
    kind: AxisScaleKind
    domain: tuple[float, float]
    range: tuple[float, float]

    def __post_init__(self) -> None:
        d0, d1 = self.domain
        if not (math.isfinite(d0) and math.isfinite(d1)) or d0 == d1:
            raise ScaleDomainError(f"scale domain must be finite and non-empty, got {self.domain}")
        if self.kind == "log" and (d0 <= 0 or d1 <= 0):
            raise ScaleDomainError(f"log domain must be strictly positive, got {self.domain}")

    def _transform(self, values: np.ndarray) -> np.ndarray:
        if self.kind == "log":
            with np.errstate(divide="ignore", invalid="ignore"):
                return np.log10(values)
        return values

    def __call__(self, values: float | np.ndarray) -> np.ndarray:
        arr = np.asarray(values, dtype=np.float64)
        t0, t1 = self._transform(np.asarray(self.domain, dtype=np.float64))
        r0, r1 = self.range
        return r0 + (self._transform(arr) - t0) / (t1 - t0) * (r1 - r0)

    def map_value(self, value: float) -> float:
        return float(self(value))

    def ticks(self, count: int = DEFAULT_TICK_COUNT) -> np.ndarray:
        lo, hi = sorted(self.domain)
        if self.kind == "log":
            return log_ticks(lo, hi, count)
        return linear_ticks(lo, hi, count)

    def tick_labels(self, ticks: np.ndarray | None = None) -> list[str]:
        ticks = self.ticks() if ticks is None else ticks
        if self.kind == "log":
            return [_format_log_tick(float(v)) for v in ticks]
        return format_ticks_for_axis(ticks)


def build_scale(kind: str, extent: tuple[float, float], pixel_range: tuple[float, float]) -> AxisScale:
    if kind not in AXIS_SCALE_KINDS:
        raise ScaleDomainError(f"unknown scale kind: {kind!r}")
    lo, hi = extent
    if not (math.isfinite(lo) and math.isfinite(hi)):
        raise ScaleDomainError(f"extent must be finite, got {extent}")
    if kind == "log" and lo <= 0:
        raise ScaleDomainError(f"log scale requires strictly positive values, minimum is {lo}")
    lo, hi = widen_degenerate(kind, lo, hi)  # type: ignore[arg-type]
    domain = nice_log((lo, hi)) if kind == "log" else nice_linear((lo, hi))
    return AxisScale(kind=kind, domain=domain, range=pixel_range)  # type: ignore[arg-type]


class ScaleEngine:
    """Derives axis scales from the full series set; nothing is cached between redraws."""

    def x_scale(self, series: Sequence[Series], kind: str, plot_width: float) -> AxisScale:
        return build_scale(kind, compute_extent(series, "x"), (0.0, float(plot_width)))

    def y_scale(self, series: Sequence[Series], kind: str, plot_height: float) -> AxisScale:
        return build_scale(kind, compute_extent(series, "y"), (float(plot_height), 0.0))

    def scales(
        self,
        series: Sequence[Series],
        *,
        x_kind: str,
        y_kind: str,
        plot_width: float,
        plot_height: float,
    ) -> tuple[AxisScale, AxisScale]:
        x_scale = self.x_scale(series, x_kind, plot_width)
        y_scale = self.y_scale(series, y_kind, plot_height)
        LOGGER.debug("scales x=%s%s y=%s%s", x_kind, x_scale.domain, y_kind, y_scale.domain)
        return x_scale, y_scale


def linear_ticks(start: float, stop: float, count: int = DEFAULT_TICK_COUNT) -> np.ndarray:
    if start == stop:
        return np.asarray([start], dtype=np.float64)
    step = tick_increment(start, stop, count)
    if step == 0:
        return np.asarray([], dtype=np.float64)
    if step > 0:
        i0 = math.ceil(start / step)
        i1 = math.floor(stop / step)
        ticks = np.arange(i0, i1 + 1, dtype=np.float64) * step
    else:
        inv = -step
        i0 = math.ceil(start * inv)
        i1 = math.floor(stop * inv)
        ticks = np.arange(i0, i1 + 1, dtype=np.float64) / inv
    size = step if step > 0 else 1.0 / -step
    ticks[np.isclose(ticks, 0.0, rtol=0.0, atol=size * 1e-9)] = 0.0
    return ticks


def log_ticks(lo: float, hi: float, count: int = DEFAULT_TICK_COUNT) -> np.ndarray:
    i0 = math.floor(math.log10(lo))
    i1 = math.ceil(math.log10(hi))
    values: list[float] = []
    if i1 - i0 < count:
        for power in range(i0, i1 + 1):
            for k in range(1, 10):
                v = k * 10.0**power
                if lo * (1 - 1e-12) <= v <= hi * (1 + 1e-12):
                    values.append(v)
    else:
        values = [10.0**p for p in range(i0, i1 + 1) if lo * (1 - 1e-12) <= 10.0**p <= hi * (1 + 1e-12)]
    return np.asarray(values, dtype=np.float64)


def _format_log_tick(value: float) -> str:
    exponent = math.log10(value)
    if abs(exponent - round(exponent)) > 1e-9:
        return ""
    exponent = int(round(exponent))
    if -4 <= exponent <= 5:
        return format_tick(10.0**exponent)
    return f"1e{exponent}"


def format_tick(value: float, *, step: float | None = None) -> str:
    if not np.isfinite(value):
        return str(value)
    if step is not None and np.isfinite(step) and step > 0 and abs(value) <= step * 1e-9:
        value = 0.0
    abs_v = abs(value)
    decimals = _decimals_from_step(step) if step is not None else 6
    if abs_v != 0 and (abs_v >= 1e6 or (step is not None and abs(step) < 1e-4) or abs_v < 1e-6):
        return f"{value:.4e}"

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


def _decimals_from_step(step: float) -> int:
    if step <= 0 or not np.isfinite(step):
        return 6
    d = Decimal(repr(step)).normalize()
    exp = d.as_tuple().exponent
    decimals = max(0, -int(exp))
    return min(12, decimals)
