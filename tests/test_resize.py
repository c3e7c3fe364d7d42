from __future__ import annotations

import unittest

from panelplot.geometry import PanelGeometry
from panelplot.options import PlotOptions
from panelplot.panel import Panel
from panelplot.resize import ResizeCoordinator


class ResizeCoordinatorTests(unittest.TestCase):
    def setUp(self) -> None:
        self.panel = Panel(body_width=550.0, body_height=400.0)
        self.coordinator = ResizeCoordinator(PlotOptions(), self.panel, PanelGeometry(self.panel))

    def test_resize_updates_viewport_and_cosmetics(self) -> None:
        viewport = self.coordinator.on_resize()
        self.assertIsNotNone(viewport)
        self.assertAlmostEqual(viewport.display_scale, 2.0)
        self.assertAlmostEqual(viewport.screen_width, 550.0)
        self.assertAlmostEqual(viewport.screen_height, 295.0)
        cosmetics = self.coordinator.cosmetics
        self.assertAlmostEqual(cosmetics.header_height, 32.0)
        self.assertAlmostEqual(cosmetics.footer_font_size, 11.2)
        self.assertAlmostEqual(cosmetics.footer_line_height, 0.75)
        self.assertAlmostEqual(cosmetics.button_font_size, 6.0)
        self.assertAlmostEqual(self.panel.header.height, 32.0)
        self.assertAlmostEqual(self.panel.footer.style["font-size"], 11.2)

    def test_zero_size_defers(self) -> None:
        self.panel.resize(0, 0)
        self.assertIsNone(self.coordinator.on_resize())
        self.assertTrue(self.coordinator.pending)

        self.panel.resize(1100, 800)
        viewport = self.coordinator.on_resize()
        self.assertFalse(self.coordinator.pending)
        self.assertAlmostEqual(viewport.display_scale, 1.0)

    def test_zero_size_keeps_previous_layout(self) -> None:
        first = self.coordinator.on_resize()
        self.panel.resize(0, 400)
        self.assertIs(self.coordinator.on_resize(), first)
        self.assertTrue(self.coordinator.pending)


if __name__ == "__main__":
    unittest.main()
