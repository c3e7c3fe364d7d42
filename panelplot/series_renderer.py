from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np

from panelplot.options import PlotOptions
from panelplot.scales import AxisScale
from panelplot.scene import Element
from panelplot.series import Point, Series


CATEGORY10: tuple[str, ...] = (
    "#1f77b4",
    "#ff7f0e",
    "#2ca02c",
    "#d62728",
    "#9467bd",
    "#8c564b",
    "#e377c2",
    "#7f7f7f",
    "#bcbd22",
    "#17becf",
)

CATEGORY20: tuple[str, ...] = (
    "#1f77b4",
    "#aec7e8",
    "#ff7f0e",
    "#ffbb78",
    "#2ca02c",
    "#98df8a",
    "#d62728",
    "#ff9896",
    "#9467bd",
    "#c5b0d5",
    "#8c564b",
    "#c49c94",
    "#e377c2",
    "#f7b6d2",
    "#7f7f7f",
    "#c7c7c7",
    "#bcbd22",
    "#dbdb8d",
    "#17becf",
    "#9edae5",
)


@dataclass(frozen=True)
class Marker:
    index: int
    x: float
    y: float
    value: Point


def palette_for(count: int) -> tuple[str, ...]:
    return CATEGORY10 if count < 10 else CATEGORY20


def series_colors(series: Sequence[Series]) -> list[str]:
    """Colors by series index; an explicit ``Series.color`` wins."""
    palette = palette_for(len(series))
    return [s.color if s.color else palette[i % len(palette)] for i, s in enumerate(series)]


def line_segments(series: Series, x_scale: AxisScale, y_scale: AxisScale) -> list[np.ndarray]:
    """Pixel polylines of ``series``, split at every gap marker."""
    px = x_scale(series.x)
    py = y_scale(series.y)
    ok = series.defined & np.isfinite(px) & np.isfinite(py)
    segments: list[np.ndarray] = []
    if not np.any(ok):
        return segments
    # Run boundaries of the defined mask.
    edges = np.diff(np.concatenate(([0], ok.astype(np.int8), [0])))
    starts = np.flatnonzero(edges == 1)
    stops = np.flatnonzero(edges == -1)
    for start, stop in zip(starts, stops):
        segments.append(np.column_stack((px[start:stop], py[start:stop])))
    return segments


def path_data(segments: Sequence[np.ndarray]) -> str:
    parts: list[str] = []
    for seg in segments:
        if seg.shape[0] == 0:
            continue
        coords = [f"{_fmt(x)},{_fmt(y)}" for x, y in seg.tolist()]
        parts.append("M" + "L".join(coords))
    return "".join(parts)


def point_markers(series: Series, x_scale: AxisScale, y_scale: AxisScale) -> list[Marker]:
    px = x_scale(series.x)
    py = y_scale(series.y)
    ok = series.defined & np.isfinite(px) & np.isfinite(py)
    return [
        Marker(
            index=int(i),
            x=float(px[i]),
            y=float(py[i]),
            value=Point(x=float(series.x[i]), y=float(series.y[i])),
        )
        for i in np.flatnonzero(ok)
    ]


def remove_small_values(series: Sequence[Series], threshold: float) -> int:
    """Turn every point with ``y <= threshold`` into a gap marker; returns the count masked now."""
    return sum(s.mask_small_values(threshold) for s in series)


class SeriesRenderer:
    def __init__(self, options: PlotOptions) -> None:
        self.options = options

    def render(
        self,
        data_group: Element,
        series: Sequence[Series],
        x_scale: AxisScale,
        y_scale: AxisScale,
    ) -> list[Element]:
        data_group.clear()
        colors = series_colors(series)
        return [
            self.build_series_group(data_group, s, color, x_scale, y_scale)
            for s, color in zip(series, colors, strict=True)
        ]

    def build_series_group(
        self,
        data_group: Element,
        series: Series,
        color: str,
        x_scale: AxisScale,
        y_scale: AxisScale,
    ) -> Element:
        group = data_group.append("g", cls="data", id=series.id, style={"cursor": "pointer"})
        group.append(
            "path",
            cls="line",
            attrs={
                "d": path_data(line_segments(series, x_scale, y_scale)),
                "stroke": color,
                "stroke-width": self.options.line_width,
                "fill": "none",
            },
        )
        for marker in point_markers(series, x_scale, y_scale):
            group.append(
                "circle",
                cls="dot",
                attrs={
                    "cx": marker.x,
                    "cy": marker.y,
                    "r": self.options.point_radius,
                    "fill": color,
                    "data-index": marker.index,
                },
            )
        return group


def _fmt(value: float) -> str:
    out = f"{value:.3f}".rstrip("0").rstrip(".")
    return "0" if out in {"", "-0"} else out
