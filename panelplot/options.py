from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
import tomllib
from typing import Any, Literal, Mapping


AxisScaleKind = Literal["linear", "log"]
LegendAnchor = Literal["topleft", "topright", "bottomleft", "bottomright"]
ExportFormat = Literal["svg", "png", "jpeg", "pdf"]

AXIS_SCALE_KINDS: tuple[str, ...] = ("linear", "log")
LEGEND_ANCHORS: tuple[str, ...] = ("topleft", "topright", "bottomleft", "bottomright")
EXPORT_FORMATS: tuple[str, ...] = ("svg", "png", "jpeg", "pdf")


@dataclass(frozen=True)
class PlotOptions:
    """Fixed-effect chart configuration.

    Lengths are SVG user-space pixels unless the name says inches. The live
    SVG is ``plot_width + margin_left + margin_right`` wide and is scaled to
    its container on screen.
    """

    margin_top: float = 20.0
    margin_bottom: float = 70.0
    margin_left: float = 80.0
    margin_right: float = 20.0
    plot_width: float = 1000.0
    plot_ratio: float = 2.0

    tick_font_size: float = 18.0
    label_font_size: float = 22.0
    legend_font_size: float = 18.0
    title_font_size: float = 26.0
    font_family: str = "Helvetica"

    line_width: float = 2.5
    line_width_selection: float = 4.5
    point_radius: float = 3.5
    point_radius_selection: float = 5.5

    show_legend: bool = True
    legend_location: LegendAnchor = "topright"
    legend_offset: float = 10.0
    legend_padding: float = 10.0
    legend_line_break: float = 25.0

    x_axis_scale: AxisScaleKind = "linear"
    y_axis_scale: AxisScaleKind = "linear"

    print_dpi: float = 300.0
    print_width: float = 8.5
    print_height: float = 11.0
    print_plot_width: float = 6.5
    print_margin_top: float = 1.5
    print_footer_font_size: float = 10.0
    print_footer_padding: float = 20.0
    print_footer_line_break: float = 15.0

    header_percent: float = 0.08
    button_font_size: float = 12.0
    tooltip_text: tuple[str, str, str] = ("", "X Value", "Y Value")

    axis_color: str = "#000000"
    text_color: str = "#000000"
    legend_outline_color: str = "#999999"
    legend_fill_color: str = "#ffffff"

    def __post_init__(self) -> None:
        for name in ("margin_top", "margin_bottom", "margin_left", "margin_right", "legend_offset", "legend_padding"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0")
        for name in (
            "plot_width",
            "plot_ratio",
            "tick_font_size",
            "label_font_size",
            "legend_font_size",
            "title_font_size",
            "line_width",
            "line_width_selection",
            "point_radius",
            "point_radius_selection",
            "legend_line_break",
            "print_dpi",
            "print_width",
            "print_height",
            "print_plot_width",
            "print_footer_font_size",
            "header_percent",
            "button_font_size",
        ):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be > 0")
        if self.legend_location not in LEGEND_ANCHORS:
            raise ValueError(f"legend_location must be one of {LEGEND_ANCHORS}, got {self.legend_location!r}")
        for name in ("x_axis_scale", "y_axis_scale"):
            if getattr(self, name) not in AXIS_SCALE_KINDS:
                raise ValueError(f"{name} must be one of {AXIS_SCALE_KINDS}, got {getattr(self, name)!r}")
        if self.print_plot_width > self.print_width:
            raise ValueError("print_plot_width must not exceed print_width")
        if len(self.tooltip_text) != 3:
            raise ValueError("tooltip_text must have exactly three entries")

    @property
    def plot_height(self) -> float:
        return self.plot_width / self.plot_ratio

    @property
    def svg_width(self) -> float:
        return self.plot_width + self.margin_left + self.margin_right

    @property
    def svg_height(self) -> float:
        return self.plot_height + self.margin_top + self.margin_bottom

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "PlotOptions":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(raw) - known)
        if unknown:
            raise ValueError(f"unknown plot option(s): {', '.join(unknown)}")
        values = dict(raw)
        if "tooltip_text" in values:
            values["tooltip_text"] = tuple(str(v) for v in values["tooltip_text"])
        return cls(**values)


@dataclass(frozen=True)
class PrintMetadata:
    generator: str = "panelplot"
    version: str = ""
    url: str = ""
    time: str = ""

    def footer_lines(self) -> list[str]:
        return [f"Created with: {self.generator} version {self.version}", self.url, self.time]


def load_options(path: str | Path) -> PlotOptions:
    """Read ``PlotOptions`` from a TOML file (a ``[plot]`` table or top-level keys)."""
    options_path = Path(path)
    if not options_path.exists():
        raise FileNotFoundError(f"options file not found: {options_path}")
    with options_path.open("rb") as f:
        raw = tomllib.load(f)
    table = raw.get("plot", raw)
    if not isinstance(table, dict):
        raise ValueError("[plot] must be a table")
    return PlotOptions.from_mapping(table)
