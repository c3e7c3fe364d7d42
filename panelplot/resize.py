from __future__ import annotations

from dataclasses import dataclass
import logging

from panelplot.geometry import GeometryProvider, ViewportGeometry
from panelplot.options import PlotOptions
from panelplot.panel import Panel

LOGGER = logging.getLogger(__name__)

TRANSITION_MS = 500
FOOTER_FONT_RATIO = 0.35
FOOTER_LINE_HEIGHT = 1.5


@dataclass(frozen=True)
class PanelCosmetics:
    header_height: float
    footer_font_size: float
    footer_line_height: float
    button_font_size: float


class ResizeCoordinator:
    """Cheap re-layout on container size changes.

    Only the viewport and panel cosmetics are refreshed; scales, series and
    legend are left alone. A zero-sized body keeps the previous layout and
    marks the coordinator ``pending`` until a usable size arrives.
    """

    def __init__(self, options: PlotOptions, panel: Panel, geometry: GeometryProvider) -> None:
        self.options = options
        self.panel = panel
        self.geometry = geometry
        self.viewport: ViewportGeometry | None = None
        self.cosmetics: PanelCosmetics | None = None
        self.pending = False

    def on_resize(self) -> ViewportGeometry | None:
        width, height = self.geometry.body_size()
        if width <= 0 or height <= 0:
            self.pending = True
            LOGGER.debug("resize deferred: body is %sx%s", width, height)
            return self.viewport

        viewport = ViewportGeometry.from_options(self.options, width)
        header_height = height * self.options.header_percent
        cosmetics = PanelCosmetics(
            header_height=header_height,
            footer_font_size=header_height * FOOTER_FONT_RATIO,
            footer_line_height=FOOTER_LINE_HEIGHT / viewport.display_scale,
            button_font_size=self.options.button_font_size / viewport.display_scale,
        )
        self._apply(cosmetics)
        self.viewport = viewport
        self.cosmetics = cosmetics
        self.pending = False
        LOGGER.debug("resize: body=%sx%s display_scale=%.4f", width, height, viewport.display_scale)
        return viewport

    def _apply(self, cosmetics: PanelCosmetics) -> None:
        self.panel.header.height = cosmetics.header_height
        self.panel.footer.style.update(
            {
                "font-size": cosmetics.footer_font_size,
                "line-height": cosmetics.footer_line_height,
                "button-font-size": cosmetics.button_font_size,
            }
        )
