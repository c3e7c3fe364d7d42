from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
import tempfile
import unittest
from unittest import mock

from PIL import Image

from panelplot.chart import LinePlot
from panelplot.errors import DecodeError
from panelplot.export import DirectorySink, ExportJob, ExportPipeline, OffscreenHost, render_to_image
from panelplot.options import PlotOptions, PrintMetadata
from panelplot.panel import Panel


def _chart(options: PlotOptions, sink: DirectorySink | None = None) -> LinePlot:
    panel = Panel(title="Spectra", body_width=options.svg_width, body_height=options.svg_height)
    chart = LinePlot(panel, options, PrintMetadata(version="0.1.0", url="https://example.org", time="today"), sink=sink)
    chart.plot_data([[[0, 1], [1, 3], [2, 2]], [[0, 2], [1, None], [2, 4]]], ["A", "B"], ["a", "b"], x_label="T", y_label="Sa")
    return chart


class ExportJobTests(unittest.TestCase):
    def test_raster_job_geometry(self) -> None:
        job = ExportJob.for_format("png", PlotOptions())
        self.assertEqual(job.dpi, 300.0)
        self.assertEqual(job.plot_width, 1950.0)
        self.assertEqual(job.plot_height, 975.0)
        self.assertEqual((job.svg_width, job.svg_height), (2550.0, 3300.0))
        self.assertEqual(job.margin_left, 600.0)
        self.assertEqual(job.margin_top, 450.0)
        self.assertAlmostEqual(job.scale_plot(1100.0), 1950.0 / 1100.0)
        self.assertAlmostEqual(job.scale_dpi, 300.0 / 96.0)

    def test_vector_formats_use_css_dpi(self) -> None:
        self.assertEqual(ExportJob.for_format("svg", PlotOptions()).dpi, 96.0)
        self.assertEqual(ExportJob.for_format("pdf", PlotOptions()).dpi, 96.0)

    def test_unknown_format(self) -> None:
        with self.assertRaises(ValueError):
            ExportJob.for_format("gif", PlotOptions())


class PrintSceneTests(unittest.TestCase):
    def test_print_scene_layout(self) -> None:
        options = PlotOptions()
        chart = _chart(options)
        chart.hover_point("a", 0)
        host = OffscreenHost()
        pipeline = ExportPipeline(options, chart.metadata, host=host)
        job = ExportJob.for_format("png", options)
        clone = pipeline.build_print_scene(chart.root, job, title="Spectra", live_svg_width=1100.0, live_plot_width=1000.0)

        self.assertEqual(len(host), 1)
        self.assertNotIn("viewBox", clone.attrs)
        self.assertEqual((clone.attrs["width"], clone.attrs["height"]), (2550.0, 3300.0))
        plot = clone.select("plot")
        self.assertEqual(plot.transform.translate, (600.0, 450.0))
        self.assertAlmostEqual(plot.transform.scale, 1950.0 / 1100.0)
        self.assertEqual(plot.select("d3-tooltip").children, [])
        title = plot.select("plot-title")
        self.assertEqual(title.text, "Spectra")
        self.assertEqual((title.attrs["x"], title.attrs["y"]), (500.0, -40.0))
        footer = clone.select("print-footer")
        self.assertEqual([t.text for t in footer.children], ["today", "https://example.org", "Created with: panelplot version 0.1.0"])
        self.assertAlmostEqual(footer.children[1].attrs["y"], -15.0 * 300.0 / 96.0)

        # The live scene is untouched.
        self.assertIn("viewBox", chart.root.attrs)
        self.assertEqual(len(chart.root.select("d3-tooltip").children), 1)
        self.assertIsNone(chart.root.select("plot-title"))


class ExportPipelineTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.out = Path(self._tmp.name)
        self.options = PlotOptions(print_dpi=72.0)
        self.chart = _chart(self.options, DirectorySink(self.out))

    def test_svg_export(self) -> None:
        result = self.chart.save_figure("svg")
        self.assertEqual(result.path, self.out / "figure.svg")
        text = result.path.read_text(encoding="utf-8")
        self.assertIn('width="816"', text)
        self.assertIn("Spectra", text)
        self.assertEqual(len(self.chart.exporter.host), 0)

    def test_png_export_is_opaque_page(self) -> None:
        result = self.chart.save_figure("png", filename="page")
        self.assertEqual(result.path.name, "page.png")
        with Image.open(result.path) as image:
            self.assertEqual(image.size, (612, 792))
            self.assertEqual(image.mode, "RGB")
            self.assertEqual(image.getpixel((0, 0)), (255, 255, 255))

    def test_jpeg_export(self) -> None:
        result = self.chart.save_figure("jpeg")
        with Image.open(result.path) as image:
            self.assertEqual(image.format, "JPEG")
            self.assertEqual(image.size, (612, 792))

    def test_pdf_export_goes_through_print_target(self) -> None:
        result = self.chart.save_figure("pdf", filename="report")
        self.assertEqual(result.path, self.out / "report.pdf")
        self.assertTrue(result.path.read_bytes().startswith(b"%PDF"))

    def test_decode_failure_cleans_up(self) -> None:
        with mock.patch("panelplot.export.scene_to_svg", return_value="<svg><g></svg>"):
            with self.assertLogs("panelplot.export", level="ERROR"):
                with self.assertRaises(DecodeError):
                    self.chart.save_figure("png")
        self.assertEqual(len(self.chart.exporter.host), 0)
        self.assertFalse((self.out / "figure.png").exists())


class RenderToImageTests(unittest.TestCase):
    def test_future_resolves_to_image(self) -> None:
        markup = (
            '<svg xmlns="http://www.w3.org/2000/svg" width="10" height="10">'
            '<rect x="0" y="0" width="10" height="10" fill="#ff0000"/></svg>'
        )
        with ThreadPoolExecutor(max_workers=1) as pool:
            image = render_to_image(markup, width=10, height=10, executor=pool).result()
        self.assertEqual(image.size, (10, 10))
        self.assertEqual(image.getpixel((5, 5)), (255, 0, 0, 255))

    def test_future_fails_with_decode_error(self) -> None:
        with ThreadPoolExecutor(max_workers=1) as pool:
            future = render_to_image("not markup", width=10, height=10, executor=pool)
            self.assertIsInstance(future.exception(), DecodeError)


if __name__ == "__main__":
    unittest.main()
