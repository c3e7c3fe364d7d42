from __future__ import annotations

import unittest

import numpy as np

from panelplot.series import Series
from panelplot.table import DataTableProjector, cell_text


class DataTableProjectorTests(unittest.TestCase):
    def test_rows_per_series(self) -> None:
        series = Series(id="pga", label="PGA", x=np.array([0.1, 0.2, 0.3]), y=np.array([1.5, np.nan, 3.0]))
        view = DataTableProjector().project([series], ("", "X Value", "Y Value"))
        self.assertEqual(
            [row.cells for row in view.rows],
            [("PGA",), ("X Value", "0.1", "0.2", "0.3"), ("Y Value", "1.5", "", "3")],
        )
        self.assertEqual([row.kind for row in view.rows], ["header", "x", "y"])
        self.assertEqual(view.tables[0].series_id, "pga")

    def test_render_text_is_rectangular(self) -> None:
        series = [
            Series(id="a", label="Alpha", x=np.array([0.0, 1.0]), y=np.array([10.0, 20.0])),
            Series(id="b", label="Beta", x=np.array([0.0, 1.0, 2.0]), y=np.array([1e-7, np.nan, 123456.789])),
        ]
        text = DataTableProjector().project(series, ("", "X", "Y")).render_text()
        lines = text.splitlines()
        self.assertEqual(len({len(line) for line in lines}), 1)
        self.assertIn("Alpha", text)
        self.assertIn("123457", text)

    def test_empty(self) -> None:
        self.assertEqual(DataTableProjector().project([], ("", "X", "Y")).render_text(), "")

    def test_cell_text(self) -> None:
        self.assertEqual(cell_text(None), "")
        self.assertEqual(cell_text(float("inf")), "")
        self.assertEqual(cell_text(4.0), "4")
        self.assertEqual(cell_text(0.25), "0.25")


if __name__ == "__main__":
    unittest.main()
