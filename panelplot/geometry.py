from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from panelplot.options import PlotOptions
from panelplot.panel import Panel
from panelplot.render.fonts import TextMeasurer
from panelplot.render.svg import parse_viewbox
from panelplot.scene import Box, Element, TextMeasure, bounding_box


class GeometryProvider(Protocol):
    """Pixel queries against the host the chart is mounted in."""

    def body_size(self) -> tuple[float, float]: ...

    def measure(self, element: Element) -> Box | None:
        """On-screen bounding box of ``element`` as the host displays it."""
        ...


@dataclass(frozen=True)
class ViewportGeometry:
    plot_width: float
    plot_height: float
    svg_width: float
    svg_height: float
    margin_top: float
    margin_bottom: float
    margin_left: float
    margin_right: float
    display_scale: float
    screen_width: float
    screen_height: float

    @classmethod
    def from_options(cls, options: PlotOptions, body_width: float) -> "ViewportGeometry":
        if body_width <= 0:
            raise ValueError("body width must be > 0")
        display_scale = options.svg_width / float(body_width)
        return cls(
            plot_width=options.plot_width,
            plot_height=options.plot_height,
            svg_width=options.svg_width,
            svg_height=options.svg_height,
            margin_top=options.margin_top,
            margin_bottom=options.margin_bottom,
            margin_left=options.margin_left,
            margin_right=options.margin_right,
            display_scale=display_scale,
            screen_width=options.svg_width / display_scale,
            screen_height=options.svg_height / display_scale,
        )


class PanelGeometry:
    """Measures scene nodes as a ``Panel`` body displays them.

    The scene root is fitted to the body width through its ``viewBox``, so
    user-space boxes shrink or grow by ``body_width / viewBox_width``.
    """

    def __init__(self, panel: Panel, measure_text: TextMeasure | None = None) -> None:
        self.panel = panel
        self.measure_text = measure_text if measure_text is not None else TextMeasurer()

    def body_size(self) -> tuple[float, float]:
        return self.panel.body_size()

    def measure(self, element: Element) -> Box | None:
        parent_matrix = element.parent.screen_matrix() if element.parent is not None else None
        box = bounding_box(element, self.measure_text, parent_matrix)
        if box is None:
            return None
        return box.scaled(self._screen_factor(element.root()))

    def _screen_factor(self, root: Element) -> float:
        viewbox = parse_viewbox(str(root.attrs.get("viewBox", "")))
        width = viewbox[2] if viewbox is not None else float(root.attrs.get("width", 0.0) or 0.0)
        if width <= 0:
            return 1.0
        return self.panel.body_width / width
