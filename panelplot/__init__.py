from panelplot.adapters import normalize_series, normalize_xy
from panelplot.chart import ChartState, LinePlot
from panelplot.errors import DecodeError, ExportError, NoDataError, PlotDataError, ScaleDomainError
from panelplot.export import DirectorySink, ExportJob, ExportPipeline, ExportResult, PdfPrintTarget
from panelplot.geometry import GeometryProvider, PanelGeometry, ViewportGeometry
from panelplot.legend import LegendLayoutEngine, LegendState, clamp_legend_position, legend_translate
from panelplot.options import PlotOptions, PrintMetadata, load_options
from panelplot.panel import Panel
from panelplot.scales import AxisScale, ScaleEngine
from panelplot.selection import SelectionState, SelectionStateMachine
from panelplot.series import Point, Series
from panelplot.table import DataTableProjector, TableView

__all__ = [
    "AxisScale",
    "ChartState",
    "DataTableProjector",
    "DecodeError",
    "DirectorySink",
    "ExportError",
    "ExportJob",
    "ExportPipeline",
    "ExportResult",
    "GeometryProvider",
    "LegendLayoutEngine",
    "LegendState",
    "LinePlot",
    "NoDataError",
    "Panel",
    "PanelGeometry",
    "PdfPrintTarget",
    "PlotDataError",
    "PlotOptions",
    "Point",
    "PrintMetadata",
    "ScaleDomainError",
    "ScaleEngine",
    "SelectionState",
    "SelectionStateMachine",
    "Series",
    "TableView",
    "ViewportGeometry",
    "clamp_legend_position",
    "legend_translate",
    "load_options",
    "normalize_series",
    "normalize_xy",
]
