from __future__ import annotations

import contextlib
import io
import json
from pathlib import Path
import tempfile
import unittest

from panelplot.cli import load_chart_description, main
from panelplot.errors import PlotDataError


DESCRIPTION = {
    "title": "Response spectrum",
    "x_label": "Period (s)",
    "y_label": "Sa (g)",
    "y_axis_scale": "log",
    "metadata": {"version": "1.0", "url": "https://example.org", "time": "2024-05-01"},
    "series": [
        {"id": "pga", "label": "PGA", "points": [[0.1, 1.5], [0.2, None], [0.3, 3]]},
        {"id": "sa", "label": "SA", "x": [0.1, 0.2, 0.3], "y": [0.5, 0.7, 0.9]},
    ],
}


class CliTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.root = Path(self._tmp.name)
        self.data = self.root / "chart.json"
        self.data.write_text(json.dumps(DESCRIPTION), encoding="utf-8")

    def test_export_svg(self) -> None:
        out = self.root / "out"
        with contextlib.redirect_stdout(io.StringIO()):
            code = main(["export", str(self.data), "--format", "svg", "--out", str(out)])
        self.assertEqual(code, 0)
        text = (out / "figure.svg").read_text(encoding="utf-8")
        self.assertIn("Response spectrum", text)
        self.assertIn("Created with: panelplot version 1.0", text)

    def test_export_with_options_and_filename(self) -> None:
        options = self.root / "plot.toml"
        options.write_text("[plot]\nprint_dpi = 50\n", encoding="utf-8")
        out = self.root / "out"
        with contextlib.redirect_stdout(io.StringIO()):
            code = main(
                [
                    "export",
                    str(self.data),
                    "--format",
                    "png",
                    "--out",
                    str(out),
                    "--options",
                    str(options),
                    "--filename",
                    "spectrum",
                    "--remove-below",
                    "0.6",
                ]
            )
        self.assertEqual(code, 0)
        self.assertTrue((out / "spectrum.png").exists())

    def test_table(self) -> None:
        buf = io.StringIO()
        with contextlib.redirect_stdout(buf):
            code = main(["table", str(self.data)])
        self.assertEqual(code, 0)
        text = buf.getvalue()
        self.assertIn("PGA", text)
        self.assertIn("X Value", text)
        self.assertIn("1.5", text)

    def test_missing_file(self) -> None:
        with contextlib.redirect_stderr(io.StringIO()):
            code = main(["table", str(self.root / "missing.json")])
        self.assertEqual(code, 2)

    def test_description_requires_series_list(self) -> None:
        bad = self.root / "bad.json"
        bad.write_text(json.dumps({"series": {}}), encoding="utf-8")
        with self.assertRaises(PlotDataError):
            load_chart_description(bad)


if __name__ == "__main__":
    unittest.main()
