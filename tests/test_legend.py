from __future__ import annotations

import unittest

import numpy as np

from panelplot.geometry import ViewportGeometry
from panelplot.legend import LegendLayoutEngine, clamp_legend_position, legend_translate
from panelplot.options import PlotOptions
from panelplot.scene import Box, Element
from panelplot.series import Series


class _FixedGeometry:
    def __init__(self, box: Box | None) -> None:
        self.box = box
        self.measured: list[Element] = []

    def body_size(self) -> tuple[float, float]:
        return 550.0, 295.0

    def measure(self, element: Element) -> Box | None:
        self.measured.append(element)
        return self.box


def _series(*ids: str) -> list[Series]:
    return [Series(id=i, label=i.upper(), x=np.array([0.0, 1.0]), y=np.array([1.0, 2.0])) for i in ids]


class LegendPlacementTests(unittest.TestCase):
    def test_anchor_translates(self) -> None:
        self.assertEqual(legend_translate("topright", 10, 1000, 500, 150, 60), (840, 10))
        self.assertEqual(legend_translate("topleft", 10, 1000, 500, 150, 60), (10, 10))
        self.assertEqual(legend_translate("bottomleft", 10, 1000, 500, 150, 60), (10, 430))
        self.assertEqual(legend_translate("bottomright", 10, 1000, 500, 150, 60), (840, 430))
        with self.assertRaises(ValueError):
            legend_translate("center", 10, 1000, 500, 150, 60)  # type: ignore[arg-type]

    def test_clamp_keeps_legend_inside_plot(self) -> None:
        self.assertEqual(clamp_legend_position(-50, 9999, 1000, 500, 150, 60), (0.0, 440.0))
        self.assertEqual(clamp_legend_position(5000, -1, 1000, 500, 150, 60), (850.0, 0.0))
        self.assertEqual(clamp_legend_position(100, 100, 1000, 500, 150, 60), (100.0, 100.0))


class LegendLayoutEngineTests(unittest.TestCase):
    def setUp(self) -> None:
        self.options = PlotOptions()
        self.geometry = _FixedGeometry(Box(0.0, 0.0, 65.0, 20.0))
        self.engine = LegendLayoutEngine(self.options, self.geometry)
        # Body at half the SVG width: one screen pixel is two user units.
        self.viewport = ViewportGeometry.from_options(self.options, self.options.svg_width / 2)
        self.group = Element("g", cls="legend")

    def test_build_sizes_from_screen_measurement(self) -> None:
        state = self.engine.build(self.group, _series("a", "b"), ["#111111", "#222222"], self.viewport)
        self.assertEqual((state.content_width, state.content_height), (150.0, 60.0))
        self.assertEqual(state.translate, (840.0, 10.0))
        self.assertFalse(state.dragged)
        self.assertEqual(self.group.transform.translate, (840.0, 10.0))

    def test_build_structure(self) -> None:
        self.engine.build(self.group, _series("a", "b"), ["#111111", "#222222"], self.viewport)
        outline = self.group.children[0]
        self.assertTrue(outline.has_class("legend-outline"))
        self.assertEqual(outline.attrs["width"], 150.0)
        self.assertEqual(outline.style["cursor"], "move")
        entries = self.group.select_all("legend-entry")
        self.assertEqual([e.id for e in entries], ["a", "b"])
        second = entries[1]
        self.assertEqual(second.select("legend-text").text, "B")
        self.assertEqual(second.select("legend-text").attrs["y"], 25.0)
        self.assertEqual(second.select("legend-line").attrs["stroke"], "#222222")
        self.assertEqual(second.select("legend-circle").attrs["cx"], 10.0)

    def test_missing_measurement_falls_back_to_padding(self) -> None:
        engine = LegendLayoutEngine(self.options, _FixedGeometry(None))
        state = engine.build(self.group, _series("a"), ["#111111"], self.viewport)
        self.assertEqual((state.content_width, state.content_height), (20.0, 20.0))

    def test_drag_keeps_grab_offset(self) -> None:
        self.engine.build(self.group, _series("a"), ["#111111"], self.viewport)
        self.engine.begin_drag((850.0, 20.0))
        state = self.engine.drag_to((700.0, 120.0))
        self.assertEqual(state.translate, (690.0, 110.0))
        self.assertTrue(state.dragged)
        state = self.engine.drag_to((-100.0, 2000.0))
        self.assertEqual(state.translate, (0.0, 440.0))
        self.assertEqual(self.engine.end_drag().translate, (0.0, 440.0))

    def test_rebuild_returns_to_anchor(self) -> None:
        self.engine.build(self.group, _series("a"), ["#111111"], self.viewport)
        self.engine.move_to(100.0, 100.0)
        state = self.engine.build(self.group, _series("a"), ["#111111"], self.viewport)
        self.assertFalse(state.dragged)
        self.assertEqual(state.translate, (840.0, 10.0))

    def test_drag_before_build_is_an_error(self) -> None:
        with self.assertRaises(RuntimeError):
            self.engine.begin_drag((0.0, 0.0))
        self.engine.build(self.group, _series("a"), ["#111111"], self.viewport)
        self.engine.reset()
        with self.assertRaises(RuntimeError):
            self.engine.move_to(0.0, 0.0)


if __name__ == "__main__":
    unittest.main()
