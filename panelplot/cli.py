from __future__ import annotations

import argparse
from dataclasses import replace
import json
import logging
from pathlib import Path
import sys
from typing import Any, Sequence

from panelplot.chart import LinePlot
from panelplot.errors import ExportError, PlotDataError
from panelplot.export import DirectorySink
from panelplot.options import EXPORT_FORMATS, PlotOptions, PrintMetadata, load_options
from panelplot.panel import Panel

LOGGER = logging.getLogger(__name__)


def load_chart_description(path: str | Path) -> dict[str, Any]:
    """Read a JSON chart description (title, axis labels, series, metadata)."""
    chart_path = Path(path)
    if not chart_path.exists():
        raise FileNotFoundError(f"chart data file not found: {chart_path}")
    with chart_path.open("r", encoding="utf-8") as f:
        raw = json.load(f)
    if not isinstance(raw, dict):
        raise PlotDataError("chart description must be a JSON object")
    series = raw.get("series")
    if not isinstance(series, list):
        raise PlotDataError("chart description requires a 'series' list")
    return raw


def build_chart(description: dict[str, Any], options: PlotOptions, *, out_dir: Path | None = None) -> LinePlot:
    overrides = {k: description[k] for k in ("x_axis_scale", "y_axis_scale") if k in description}
    if overrides:
        options = replace(options, **overrides)
    meta_raw = description.get("metadata") or {}
    metadata = PrintMetadata(
        version=str(meta_raw.get("version", "")),
        url=str(meta_raw.get("url", "")),
        time=str(meta_raw.get("time", "")),
    )
    panel = Panel(title=str(description.get("title", "")), body_width=options.svg_width, body_height=options.svg_height)
    sink = DirectorySink(out_dir) if out_dir is not None else None
    chart = LinePlot(panel, options, metadata, sink=sink)

    data: list[Any] = []
    ids: list[str] = []
    labels: list[str] = []
    for i, entry in enumerate(description["series"]):
        if not isinstance(entry, dict):
            raise PlotDataError(f"series entry {i} must be an object")
        series_id = str(entry.get("id", f"series-{i}"))
        ids.append(series_id)
        labels.append(str(entry.get("label", series_id)))
        data.append(entry["points"] if "points" in entry else {"x": entry.get("x"), "y": entry.get("y")})
    chart.plot_data(
        data,
        labels,
        ids,
        x_label=str(description.get("x_label", "")),
        y_label=str(description.get("y_label", "")),
    )
    return chart


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="panelplot")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (DEBUG, INFO, WARNING, ...).")
    sub = parser.add_subparsers(dest="command", required=True)

    export = sub.add_parser("export", help="Render a chart description to svg/png/jpeg/pdf.")
    export.add_argument("data", type=Path)
    export.add_argument("--format", choices=list(EXPORT_FORMATS), default="png")
    export.add_argument("--out", type=Path, default=Path("."))
    export.add_argument("--options", type=Path, default=None, help="TOML file with a [plot] table.")
    export.add_argument("--filename", default=None, help="Output file stem (default: figure).")
    export.add_argument("--remove-below", type=float, default=None, help="Mask points with y <= this value.")

    table = sub.add_parser("table", help="Print the data table of a chart description.")
    table.add_argument("data", type=Path)
    table.add_argument("--options", type=Path, default=None, help="TOML file with a [plot] table.")

    args = parser.parse_args(argv)
    logging.basicConfig(level=getattr(logging, str(args.log_level).upper(), logging.WARNING))

    try:
        options = load_options(args.options) if args.options is not None else PlotOptions()
        description = load_chart_description(args.data)
        if args.command == "table":
            chart = build_chart(description, options)
            print(chart.table.render_text() if chart.table is not None else "")
            return 0
        chart = build_chart(description, options, out_dir=args.out)
        if args.remove_below is not None:
            chart.remove_small_values(args.remove_below)
        result = chart.save_figure(args.format, filename=args.filename)
        print(result.path)
        return 0
    except (PlotDataError, ExportError, FileNotFoundError, ValueError) as exc:
        LOGGER.error("%s", exc)
        print(f"error: {exc}", file=sys.stderr)
        return 2
