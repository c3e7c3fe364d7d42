from __future__ import annotations

from decimal import Decimal
import unittest

import numpy as np

from panelplot.adapters import normalize_series, normalize_xy
from panelplot.errors import PlotDataError
from panelplot.series import Point, Series


class NormalizeSeriesTests(unittest.TestCase):
    def test_pairs_with_none_become_gaps(self) -> None:
        series = normalize_series([[0, 1.5], [1, None], [Decimal("2"), 3]], series_id="a", label="A")
        self.assertEqual(series.label, "A")
        self.assertEqual(series.defined.tolist(), [True, False, True])
        self.assertEqual(list(series.points)[1], Point(x=1.0, y=None))
        self.assertTrue(list(series.points)[1].is_gap)
        self.assertEqual(series.values("x").tolist(), [0.0, 2.0])

    def test_label_defaults_to_id(self) -> None:
        series = normalize_series([[0, 1]], series_id="only")
        self.assertEqual(series.label, "only")

    def test_mapping_input_without_x_uses_index(self) -> None:
        series = normalize_series({"y": [4.0, 5.0, 6.0]}, series_id="m")
        self.assertEqual(series.x.tolist(), [0.0, 1.0, 2.0])
        with self.assertRaises(PlotDataError):
            normalize_series({"x": [1, 2]}, series_id="m")

    def test_numpy_pairs_map_infinities_to_gaps(self) -> None:
        arr = np.array([[0.0, 1.0], [1.0, np.inf], [2.0, 3.0]])
        series = normalize_series(arr, series_id="n")
        self.assertTrue(np.isnan(series.y[1]))
        with self.assertRaises(PlotDataError):
            normalize_series(np.zeros((3, 3)), series_id="n")

    def test_torch_tensor_input(self) -> None:
        try:
            import torch
        except ImportError:
            self.skipTest("torch not installed")
        tensor = torch.tensor([[0.0, 2.0], [1.0, float("nan")], [2.0, 4.0]])
        series = normalize_series(tensor, series_id="t")
        self.assertEqual(series.x.tolist(), [0.0, 1.0, 2.0])
        self.assertEqual(series.defined.tolist(), [True, False, True])

    def test_torch_xy_input(self) -> None:
        try:
            import torch
        except ImportError:
            self.skipTest("torch not installed")
        series = normalize_xy(torch.tensor([1.0, 2.0]), x=torch.tensor([10.0, 20.0]), series_id="t")
        self.assertEqual(series.x.tolist(), [10.0, 20.0])
        self.assertEqual(series.y.dtype, np.float64)

    def test_pandas_dataframe_input(self) -> None:
        try:
            import pandas as pd
        except Exception:
            self.skipTest("pandas not installed")
        frame = pd.DataFrame({"x": [0, 1, 2], "y": [1.0, None, 3.0], "note": ["a", "b", "c"]})
        series = normalize_series(frame, series_id="df")
        self.assertEqual(series.defined.tolist(), [True, False, True])

    def test_rejects_non_numeric_values(self) -> None:
        with self.assertRaises(PlotDataError):
            normalize_series([[0, "high"]], series_id="bad")
        with self.assertRaises(PlotDataError):
            normalize_series([[0, 1, 2]], series_id="bad")
        with self.assertRaises(PlotDataError):
            normalize_series("0,1", series_id="bad")
        with self.assertRaises(PlotDataError):
            normalize_xy([1, 2, 3], x=[0, 1], series_id="bad")

    def test_existing_series_is_copied_under_new_id(self) -> None:
        series = Series(id="s", label="S", x=np.array([0.0]), y=np.array([1.0]))
        renamed = normalize_series(series, series_id="other")
        self.assertEqual((renamed.id, renamed.label), ("other", "S"))
        self.assertEqual(renamed.y.tolist(), [1.0])
        self.assertIsNot(renamed.y, series.y)
        self.assertEqual(normalize_series(series, series_id="s", label="Relabel").label, "Relabel")
        self.assertEqual(series.id, "s")


class SeriesTests(unittest.TestCase):
    def test_validation(self) -> None:
        with self.assertRaises(ValueError):
            Series(id=" ", label="x", x=np.array([0.0]), y=np.array([1.0]))
        with self.assertRaises(ValueError):
            Series(id="a", label="a", x=np.array([0.0, 1.0]), y=np.array([1.0]))

    def test_mask_small_values_is_idempotent(self) -> None:
        series = Series(id="a", label="a", x=np.array([0.0, 1.0, 2.0, 3.0]), y=np.array([0.5, 2.0, np.nan, 1.0]))
        self.assertEqual(series.mask_small_values(1.0), 2)
        self.assertEqual(series.defined.tolist(), [False, True, False, False])
        self.assertEqual(series.mask_small_values(1.0), 0)
        self.assertEqual(len(series), 4)


if __name__ == "__main__":
    unittest.main()
