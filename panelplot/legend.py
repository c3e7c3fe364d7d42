from __future__ import annotations

from dataclasses import dataclass, replace
import logging
from typing import Sequence

from panelplot.geometry import GeometryProvider, ViewportGeometry
from panelplot.options import LEGEND_ANCHORS, LegendAnchor, PlotOptions
from panelplot.scene import Element, Transform
from panelplot.series import Series

LOGGER = logging.getLogger(__name__)

LABEL_X = 30.0
SWATCH_LENGTH = 20.0
SWATCH_MARKER_X = 10.0


def legend_translate(
    anchor: LegendAnchor,
    offset: float,
    plot_width: float,
    plot_height: float,
    legend_width: float,
    legend_height: float,
) -> tuple[float, float]:
    """Top-left legend corner placing its outer edge ``offset`` px inside the anchored corner."""
    if anchor == "topleft":
        return offset, offset
    if anchor == "topright":
        return plot_width - legend_width - offset, offset
    if anchor == "bottomleft":
        return offset, plot_height - legend_height - offset
    if anchor == "bottomright":
        return plot_width - legend_width - offset, plot_height - legend_height - offset
    raise ValueError(f"legend anchor must be one of {LEGEND_ANCHORS}, got {anchor!r}")


def clamp_legend_position(
    x: float,
    y: float,
    plot_width: float,
    plot_height: float,
    legend_width: float,
    legend_height: float,
) -> tuple[float, float]:
    max_x = plot_width - legend_width
    max_y = plot_height - legend_height
    x = 0.0 if x < 0 else (max_x if x > max_x else x)
    y = 0.0 if y < 0 else (max_y if y > max_y else y)
    return float(x), float(y)


@dataclass(frozen=True)
class LegendState:
    anchor: LegendAnchor
    offset: float
    content_width: float
    content_height: float
    translate: tuple[float, float]
    dragged: bool = False


class LegendLayoutEngine:
    """Builds legend content, places it at its anchor, and tracks drags.

    Sizes are measured on screen through the geometry provider and converted
    back to user space with the viewport's ``display_scale``.
    """

    def __init__(self, options: PlotOptions, geometry: GeometryProvider) -> None:
        self.options = options
        self.geometry = geometry
        self.state: LegendState | None = None
        self._group: Element | None = None
        self._plot_size = (options.plot_width, options.plot_height)
        self._grab: tuple[float, float] | None = None

    def build(
        self,
        legend_group: Element,
        series: Sequence[Series],
        colors: Sequence[str],
        viewport: ViewportGeometry,
    ) -> LegendState:
        opts = self.options
        legend_group.clear()
        self._group = legend_group
        self._grab = None
        self._plot_size = (viewport.plot_width, viewport.plot_height)

        for i, (s, color) in enumerate(zip(series, colors, strict=True)):
            row_y = opts.legend_line_break * i
            entry = legend_group.append(
                "g",
                cls="legend-entry",
                id=s.id,
                style={"cursor": "pointer", "font-size": opts.legend_font_size, "font-family": opts.font_family},
                transform=Transform(translate=(opts.legend_padding, opts.legend_line_break)),
            )
            entry.append(
                "text",
                cls="legend-text",
                attrs={"x": LABEL_X, "y": row_y, "alignment-baseline": "central", "fill": opts.text_color},
                text=s.label,
            )
            entry.append(
                "line",
                cls="legend-line",
                attrs={
                    "x2": SWATCH_LENGTH,
                    "y1": row_y,
                    "y2": row_y,
                    "stroke-width": opts.line_width,
                    "stroke": color,
                    "fill": "none",
                },
            )
            entry.append(
                "circle",
                cls="legend-circle",
                attrs={"cx": SWATCH_MARKER_X, "cy": row_y, "r": opts.point_radius, "fill": color},
            )

        box = self.geometry.measure(legend_group)
        screen_w = box.width if box is not None else 0.0
        screen_h = box.height if box is not None else 0.0
        width = screen_w * viewport.display_scale + 2 * opts.legend_padding
        height = screen_h * viewport.display_scale + 2 * opts.legend_padding

        outline = legend_group.append(
            "rect",
            cls="legend-outline",
            attrs={
                "height": height,
                "width": width,
                "stroke": opts.legend_outline_color,
                "fill": opts.legend_fill_color,
            },
            style={"cursor": "move"},
        )
        # Outline is drawn under the entries.
        legend_group.children.remove(outline)
        legend_group.children.insert(0, outline)

        translate = legend_translate(
            opts.legend_location,
            opts.legend_offset,
            viewport.plot_width,
            viewport.plot_height,
            width,
            height,
        )
        self.state = LegendState(
            anchor=opts.legend_location,
            offset=opts.legend_offset,
            content_width=width,
            content_height=height,
            translate=translate,
        )
        legend_group.transform = Transform(translate=translate)
        LOGGER.debug("legend built: %d entries, size=(%.1f, %.1f) at %s", len(series), width, height, translate)
        return self.state

    def begin_drag(self, pointer: tuple[float, float]) -> LegendState:
        state = self._require_state()
        self._grab = (pointer[0] - state.translate[0], pointer[1] - state.translate[1])
        return state

    def drag_to(self, pointer: tuple[float, float]) -> LegendState:
        grab = self._grab if self._grab is not None else (0.0, 0.0)
        return self.move_to(pointer[0] - grab[0], pointer[1] - grab[1])

    def move_to(self, x: float, y: float) -> LegendState:
        """Place the legend's top-left corner at ``(x, y)`` clamped to the plot area."""
        state = self._require_state()
        plot_w, plot_h = self._plot_size
        translate = clamp_legend_position(x, y, plot_w, plot_h, state.content_width, state.content_height)
        self.state = replace(state, translate=translate, dragged=True)
        if self._group is not None:
            self._group.transform = Transform(translate=translate)
        return self.state

    def end_drag(self) -> LegendState:
        self._grab = None
        return self._require_state()

    def reset(self) -> None:
        self.state = None
        self._group = None
        self._grab = None

    def _require_state(self) -> LegendState:
        if self.state is None:
            raise RuntimeError("legend has not been built")
        return self.state
