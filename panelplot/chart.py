from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Any, Literal, Sequence

import numpy as np

from panelplot.adapters.normalize import normalize_series
from panelplot.axes import AxisRenderer
from panelplot.errors import NoDataError, PlotDataError, ScaleDomainError
from panelplot.export import ExportPipeline, ExportResult, ExportSink, PrintTarget
from panelplot.geometry import GeometryProvider, PanelGeometry, ViewportGeometry
from panelplot.legend import LegendLayoutEngine, LegendState
from panelplot.options import AXIS_SCALE_KINDS, PlotOptions, PrintMetadata
from panelplot.panel import Panel, ViewMode
from panelplot.render.fonts import TextMeasurer
from panelplot.render.raster import rasterize, to_rgba_array
from panelplot.render.svg import SvgDocument, scene_to_svg
from panelplot.resize import TRANSITION_MS, ResizeCoordinator
from panelplot.scales import AxisScale, ScaleEngine, log_domain_is_valid
from panelplot.scene import Element, Transform
from panelplot.selection import SelectionState, SelectionStateMachine, apply_selection
from panelplot.series import Axis, Series
from panelplot.series_renderer import SeriesRenderer, remove_small_values, series_colors
from panelplot.table import DataTableProjector, TableView
from panelplot.tooltip import ActiveTooltip, TooltipHandle, tooltip_lines

LOGGER = logging.getLogger(__name__)

ChartStatus = Literal["empty", "ready", "no-data", "destroyed"]

NO_DATA_MESSAGE = "No data to display"


@dataclass
class ChartState:
    """Derived state of one chart; rebuilt by redraws and never serialized."""

    status: ChartStatus = "empty"
    message: str | None = None
    viewport: ViewportGeometry | None = None
    x_scale: AxisScale | None = None
    y_scale: AxisScale | None = None
    legend: LegendState | None = None
    selection: SelectionState = field(default_factory=SelectionState)
    view: ViewMode = "plot"
    transition_ms: int = 0
    x_axis_height: float = 0.0
    y_axis_width: float = 0.0
    # Notices raised by the latest draw or scale toggle.
    notices: list[str] = field(default_factory=list)


class LinePlot:
    """Multi-series line chart mounted in a ``Panel``.

    The chart owns a small SVG-like scene::

        svg > g.plot > g.all-data, g.x-axis, g.y-axis, g.legend, g.d3-tooltip

    and keeps every derived value (scales, legend placement, selection) in
    ``self.state``.
    """

    def __init__(
        self,
        panel: Panel,
        options: PlotOptions | None = None,
        metadata: PrintMetadata | None = None,
        *,
        geometry: GeometryProvider | None = None,
        sink: ExportSink | None = None,
        print_target: PrintTarget | None = None,
    ) -> None:
        self.panel = panel
        self.options = options if options is not None else PlotOptions()
        self.metadata = metadata if metadata is not None else PrintMetadata()
        self.geometry = geometry if geometry is not None else PanelGeometry(panel, TextMeasurer(self.options.font_family))

        self.scale_engine = ScaleEngine()
        self.series_renderer = SeriesRenderer(self.options)
        self.axes = AxisRenderer(self.options, self.geometry)
        self.legend = LegendLayoutEngine(self.options, self.geometry)
        self.selection = SelectionStateMachine(self.options)
        self.table_projector = DataTableProjector()
        self.resize = ResizeCoordinator(self.options, panel, self.geometry)
        self.exporter = ExportPipeline(self.options, self.metadata, sink=sink, print_target=print_target)
        self.tooltip = ActiveTooltip()

        self.series: list[Series] = []
        self.x_label = ""
        self.y_label = ""
        self.x_axis_scale = self.options.x_axis_scale
        self.y_axis_scale = self.options.y_axis_scale
        self.table: TableView | None = None
        self.state = ChartState()

        self.root = self._build_skeleton()
        self.panel.content = self.root
        self.state.viewport = self._viewport()

    @property
    def ids(self) -> list[str]:
        return [s.id for s in self.series]

    @property
    def labels(self) -> list[str]:
        return [s.label for s in self.series]

    def _build_skeleton(self) -> Element:
        opts = self.options
        root = Element(
            tag="svg",
            cls="panelplot",
            attrs={
                "viewBox": f"0 0 {opts.svg_width:g} {opts.svg_height:g}",
                "version": "1.1",
                "preserveAspectRatio": "xMinYMin meet",
            },
            style={"font-family": opts.font_family},
        )
        plot = root.append("g", cls="plot", transform=Transform(translate=(opts.margin_left, opts.margin_top)))
        plot.append("g", cls="all-data")
        plot.append("g", cls="x-axis")
        plot.append("g", cls="y-axis")
        plot.append("g", cls="legend")
        plot.append("g", cls="d3-tooltip")
        return root

    def _group(self, cls: str) -> Element:
        node = self.root.select(cls)
        if node is None:
            raise RuntimeError(f"chart scene is missing g.{cls}")
        return node

    def _viewport(self) -> ViewportGeometry:
        viewport = self.resize.on_resize()
        if viewport is None:
            # Never laid out at a usable size: assume the SVG is shown 1:1.
            viewport = ViewportGeometry.from_options(self.options, self.options.svg_width)
        return viewport

    def plot_data(
        self,
        data: Sequence[Any],
        labels: Sequence[str] | None = None,
        ids: Sequence[str] | None = None,
        *,
        x_label: str = "",
        y_label: str = "",
    ) -> ChartState:
        """Replace every series and draw from scratch.

        ``Series`` items keep their own id and label unless ``ids`` or
        ``labels`` override them.
        """
        self._require_alive()
        if ids is None:
            ids = [item.id if isinstance(item, Series) else f"series-{i}" for i, item in enumerate(data)]
        else:
            ids = [str(i) for i in ids]
        if labels is None:
            labels = [item.label if isinstance(item, Series) else series_id for item, series_id in zip(data, ids)]
        else:
            labels = [str(v) for v in labels]
        if len(ids) != len(data) or len(labels) != len(data):
            raise PlotDataError(f"expected {len(data)} ids and labels, got {len(ids)} and {len(labels)}")
        series = [
            normalize_series(item, series_id=series_id, label=label)
            for item, series_id, label in zip(data, ids, labels, strict=True)
        ]
        if len({s.id for s in series}) != len(series):
            raise PlotDataError("series ids must be unique")
        self.series = series
        self.x_label = x_label
        self.y_label = y_label
        self.selection.clear()
        self.legend.reset()
        return self.redraw(transition=True)

    def redraw(self, transition: bool = True) -> ChartState:
        """Full redraw: scales, series, axes, legend, selection and table."""
        self._require_alive()
        self.tooltip.close()
        viewport = self._viewport()
        state = self.state
        state.notices.clear()
        state.viewport = viewport
        state.transition_ms = TRANSITION_MS if transition else 0
        self._clear_message()

        try:
            x_scale, y_scale = self._scales(viewport)
        except NoDataError as exc:
            self._show_no_data(str(exc))
            return state

        data_group = self._group("all-data")
        self.series_renderer.render(data_group, self.series, x_scale, y_scale)
        state.x_axis_height, state.y_axis_width = self.axes.render(
            self._group("x-axis"),
            self._group("y-axis"),
            x_scale,
            y_scale,
            viewport,
            x_label=self.x_label,
            y_label=self.y_label,
        )

        legend_group = self._group("legend")
        if self.options.show_legend:
            state.legend = self.legend.build(legend_group, self.series, series_colors(self.series), viewport)
        else:
            legend_group.clear()
            state.legend = None

        state.selection = self.selection.restore(self.ids)
        apply_selection(data_group, legend_group if self.options.show_legend else None, self.selection)
        self._rebuild_table()

        state.x_scale = x_scale
        state.y_scale = y_scale
        state.status = "ready"
        state.message = None
        LOGGER.debug(
            "redraw: %d series, x=%s y=%s, transition=%dms",
            len(self.series),
            self.x_axis_scale,
            self.y_axis_scale,
            state.transition_ms,
        )
        return state

    def _scales(self, viewport: ViewportGeometry) -> tuple[AxisScale, AxisScale]:
        kinds = {}
        for axis, kind in (("x", self.x_axis_scale), ("y", self.y_axis_scale)):
            if kind == "log" and self.series and not log_domain_is_valid(self.series, axis):  # type: ignore[arg-type]
                notice = f"{axis} axis: log scale needs strictly positive data; drawing it linear"
                LOGGER.warning("%s", notice)
                self.state.notices.append(notice)
                kind = "linear"
            kinds[axis] = kind
        return self.scale_engine.scales(
            self.series,
            x_kind=kinds["x"],
            y_kind=kinds["y"],
            plot_width=viewport.plot_width,
            plot_height=viewport.plot_height,
        )

    def _show_no_data(self, reason: str) -> None:
        for cls in ("all-data", "x-axis", "y-axis", "legend"):
            self._group(cls).clear()
        self.legend.reset()
        opts = self.options
        self._group("plot").append(
            "text",
            cls="no-data",
            attrs={
                "x": opts.plot_width / 2.0,
                "y": opts.plot_height / 2.0,
                "text-anchor": "middle",
                "alignment-baseline": "central",
                "fill": opts.text_color,
            },
            style={"font-size": opts.label_font_size},
            text=NO_DATA_MESSAGE,
        )
        self._rebuild_table()
        state = self.state
        state.status = "no-data"
        state.message = NO_DATA_MESSAGE
        state.x_scale = None
        state.y_scale = None
        state.legend = None
        LOGGER.warning("nothing to draw: %s", reason)

    def _clear_message(self) -> None:
        message = self.root.select("no-data")
        if message is not None:
            message.remove()

    def _rebuild_table(self) -> None:
        self.table = self.table_projector.project(self.series, self.options.tooltip_text)
        self.panel.table_text = self.table.render_text()

    def set_axis_scale(self, axis: Axis, kind: str) -> ChartState:
        """Switch one axis between linear and log, then redraw with a transition."""
        self._require_alive()
        if axis not in ("x", "y"):
            raise ValueError(f"axis must be 'x' or 'y', got {axis!r}")
        if kind not in AXIS_SCALE_KINDS:
            raise ScaleDomainError(f"unknown scale kind: {kind!r}")
        if kind == "log" and self.series and not log_domain_is_valid(self.series, axis):
            notice = f"{axis} axis: log scale rejected, data has values <= 0"
            self.state.notices.append(notice)
            LOGGER.warning("%s", notice)
            raise ScaleDomainError(notice)
        if axis == "x":
            self.x_axis_scale = kind  # type: ignore[assignment]
        else:
            self.y_axis_scale = kind  # type: ignore[assignment]
        return self.redraw(transition=True)

    def click_series(self, series_id: str) -> SelectionState:
        self._require_alive()
        if series_id not in self.ids:
            raise PlotDataError(f"unknown series id: {series_id!r}")
        self.selection.click(series_id)
        legend_group = self._group("legend") if self.options.show_legend else None
        apply_selection(self._group("all-data"), legend_group, self.selection)
        self.tooltip.reapply()
        self.state.selection = self.selection.state
        return self.state.selection

    def click_legend_entry(self, series_id: str) -> SelectionState:
        return self.click_series(series_id)

    def begin_legend_drag(self, pointer: tuple[float, float]) -> LegendState:
        return self.legend.begin_drag(pointer)

    def drag_legend(self, pointer: tuple[float, float]) -> LegendState:
        self.state.legend = self.legend.drag_to(pointer)
        return self.state.legend

    def move_legend(self, x: float, y: float) -> LegendState:
        self.state.legend = self.legend.move_to(x, y)
        return self.state.legend

    def end_legend_drag(self) -> LegendState:
        self.state.legend = self.legend.end_drag()
        return self.state.legend

    def hover_point(self, series_id: str, index: int) -> TooltipHandle:
        """Open the tooltip for one point, closing any tooltip already open."""
        self._require_alive()
        group = self._group("all-data").find("data", series_id)
        if group is None:
            raise PlotDataError(f"unknown series id: {series_id!r}")
        dot = next((n for n in group.children if n.has_class("dot") and n.attrs.get("data-index") == index), None)
        if dot is None:
            raise PlotDataError(f"series {series_id!r} has no visible point at index {index}")
        series = self.series[self.ids.index(series_id)]
        x_value = float(series.x[index])
        y_value = float(series.y[index])
        handle = TooltipHandle(
            series_id=series_id,
            label=series.label,
            index=index,
            x_value=x_value,
            y_value=y_value,
            position=(float(dot.attrs["cx"]), float(dot.attrs["cy"])),
            lines=tooltip_lines(series.label, x_value, y_value, self.options.tooltip_text),
        )

        def restore() -> float:
            style = self.selection.styles(self.ids).get(series_id)
            return style.point_radius if style is not None else self.options.point_radius

        return self.tooltip.open(
            handle,
            self._group("d3-tooltip"),
            dot,
            hover_radius=self.options.point_radius_selection,
            restore_radius=restore,
            font_size=self.options.tick_font_size,
        )

    def hover_exit(self) -> TooltipHandle | None:
        return self.tooltip.close()

    def show_view(self, mode: ViewMode) -> ChartState:
        """Show the plot or the data table; series data is never touched."""
        self._require_alive()
        self.panel.show(mode)
        if mode == "data":
            self._rebuild_table()
        self.state.view = mode
        return self.state

    def on_resize(self) -> ViewportGeometry | None:
        self._require_alive()
        viewport = self.resize.on_resize()
        if viewport is not None:
            self.state.viewport = viewport
        self.state.transition_ms = 0
        return viewport

    def save_figure(self, format: str = "png", *, filename: str | None = None) -> ExportResult:
        self._require_alive()
        viewport = self.state.viewport or self._viewport()
        return self.exporter.export(
            self.root,
            format,
            title=self.panel.title,
            filename=filename,
            live_svg_width=viewport.svg_width,
            live_plot_width=viewport.plot_width,
        )

    def remove_small_values(self, limit: float) -> int:
        """Mask every point with ``y <= limit`` as a gap, then redraw if anything changed."""
        self._require_alive()
        count = remove_small_values(self.series, limit)
        if count and self.state.status != "empty":
            self.redraw(transition=True)
        return count

    def to_svg(self) -> str:
        return scene_to_svg(self.root)

    def to_rgba(self) -> np.ndarray:
        """Rasterize the live scene at its on-screen size."""
        viewport = self.state.viewport or self._viewport()
        document = SvgDocument.from_markup(self.to_svg())
        image = rasterize(
            document,
            width=max(1, int(round(viewport.screen_width))),
            height=max(1, int(round(viewport.screen_height))),
        )
        return to_rgba_array(image)

    def destroy(self) -> None:
        self.tooltip.close()
        self.root.clear()
        self.panel.unmount()
        self.legend.reset()
        self.selection.clear()
        self.series = []
        self.table = None
        self.state = ChartState(status="destroyed")
        LOGGER.debug("chart destroyed")

    def _require_alive(self) -> None:
        if self.state.status == "destroyed":
            raise RuntimeError("chart has been destroyed")
