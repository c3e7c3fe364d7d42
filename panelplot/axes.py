from __future__ import annotations

from panelplot.geometry import GeometryProvider, ViewportGeometry
from panelplot.options import PlotOptions
from panelplot.scales import AxisScale
from panelplot.scene import Element, Transform


TICK_SIZE = 6.0
TICK_PADDING = 3.0


class AxisRenderer:
    """Bottom and left axes with labels offset past the measured tick labels."""

    def __init__(self, options: PlotOptions, geometry: GeometryProvider) -> None:
        self.options = options
        self.geometry = geometry

    def render(
        self,
        x_axis: Element,
        y_axis: Element,
        x_scale: AxisScale,
        y_scale: AxisScale,
        viewport: ViewportGeometry,
        *,
        x_label: str = "",
        y_label: str = "",
    ) -> tuple[float, float]:
        """Draw both axes; returns the x tick height and y tick width in user units."""
        x_tick = self._tick_group(x_axis, "x-tick")
        x_tick.transform = Transform(translate=(0.0, viewport.plot_height))
        self._draw_bottom(x_tick, x_scale)
        y_tick = self._tick_group(y_axis, "y-tick")
        self._draw_left(y_tick, y_scale)

        x_axis_height = self._first_tick_extent(x_tick, "height") * viewport.display_scale
        x_tick.append(
            "text",
            cls="x-label",
            attrs={
                "fill": self.options.text_color,
                "text-anchor": "middle",
                "alignment-baseline": "text-before-edge",
                "x": viewport.plot_width / 2.0,
                "y": viewport.margin_bottom - x_axis_height,
            },
            style={"font-size": self.options.label_font_size, "font-weight": "500"},
            text=x_label,
        )

        y_axis_width = self._first_tick_extent(y_tick, "width") * viewport.display_scale
        y_tick.append(
            "text",
            cls="y-label",
            attrs={
                "fill": self.options.text_color,
                "text-anchor": "middle",
                "alignment-baseline": "text-after-edge",
                "x": -viewport.plot_height / 2.0,
                "y": y_axis_width - viewport.margin_left,
            },
            style={"font-size": self.options.label_font_size, "font-weight": "500"},
            text=y_label,
            transform=Transform(rotate=-90.0),
        )
        return x_axis_height, y_axis_width

    def _tick_group(self, axis: Element, cls: str) -> Element:
        axis.clear()
        return axis.append(
            "g",
            cls=cls,
            style={"font-size": self.options.tick_font_size, "font-family": self.options.font_family},
        )

    def _draw_bottom(self, group: Element, scale: AxisScale) -> None:
        r0, r1 = sorted(scale.range)
        group.append(
            "path",
            cls="domain",
            attrs={
                "d": f"M{r0},{TICK_SIZE}L{r0},0L{r1},0L{r1},{TICK_SIZE}",
                "stroke": self.options.axis_color,
                "fill": "none",
            },
        )
        ticks = scale.ticks()
        for value, label in zip(ticks.tolist(), scale.tick_labels(ticks), strict=True):
            tick = group.append("g", cls="tick", transform=Transform(translate=(scale.map_value(value), 0.0)))
            tick.append("line", attrs={"y2": TICK_SIZE, "stroke": self.options.axis_color})
            tick.append(
                "text",
                attrs={
                    "fill": self.options.text_color,
                    "y": TICK_SIZE + TICK_PADDING,
                    "text-anchor": "middle",
                    "alignment-baseline": "text-before-edge",
                },
                text=label,
            )

    def _draw_left(self, group: Element, scale: AxisScale) -> None:
        r0, r1 = sorted(scale.range)
        group.append(
            "path",
            cls="domain",
            attrs={
                "d": f"M{-TICK_SIZE},{r1}L0,{r1}L0,{r0}L{-TICK_SIZE},{r0}",
                "stroke": self.options.axis_color,
                "fill": "none",
            },
        )
        ticks = scale.ticks()
        for value, label in zip(ticks.tolist(), scale.tick_labels(ticks), strict=True):
            tick = group.append("g", cls="tick", transform=Transform(translate=(0.0, scale.map_value(value))))
            tick.append("line", attrs={"x2": -TICK_SIZE, "stroke": self.options.axis_color})
            tick.append(
                "text",
                attrs={
                    "fill": self.options.text_color,
                    "x": -(TICK_SIZE + TICK_PADDING),
                    "text-anchor": "end",
                    "alignment-baseline": "central",
                },
                text=label,
            )

    def _first_tick_extent(self, group: Element, dimension: str) -> float:
        first = group.select("tick")
        if first is None:
            return 0.0
        box = self.geometry.measure(first)
        if box is None:
            return 0.0
        return box.height if dimension == "height" else box.width
