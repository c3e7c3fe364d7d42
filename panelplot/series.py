from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Literal

import numpy as np


Axis = Literal["x", "y"]


@dataclass(frozen=True)
class Point:
    x: float | None
    y: float | None

    @property
    def is_gap(self) -> bool:
        return self.x is None or self.y is None


@dataclass
class Series:
    """One chart line. Gap markers are stored as NaN in ``x``/``y``."""

    id: str
    label: str
    x: np.ndarray
    y: np.ndarray
    color: str | None = None

    def __post_init__(self) -> None:
        if not str(self.id).strip():
            raise ValueError("series id must be non-empty")
        self.x = np.asarray(self.x, dtype=np.float64)
        self.y = np.asarray(self.y, dtype=np.float64)
        if self.x.ndim != 1 or self.y.ndim != 1:
            raise ValueError("series x/y must be 1-D")
        if self.x.shape != self.y.shape:
            raise ValueError(f"x and y length mismatch: {self.x.size} != {self.y.size}")

    def __len__(self) -> int:
        return int(self.x.size)

    @property
    def defined(self) -> np.ndarray:
        return np.isfinite(self.x) & np.isfinite(self.y)

    @property
    def points(self) -> Iterator[Point]:
        for xv, yv in zip(self.x.tolist(), self.y.tolist(), strict=True):
            yield Point(x=None if np.isnan(xv) else xv, y=None if np.isnan(yv) else yv)

    def values(self, axis: Axis) -> np.ndarray:
        """Non-gap values along one axis."""
        arr = self.x if axis == "x" else self.y
        return arr[self.defined]

    def mask_small_values(self, threshold: float) -> int:
        # NaN compares False, so existing gaps are left alone.
        with np.errstate(invalid="ignore"):
            small = self.y <= threshold
        count = int(np.count_nonzero(small))
        if count:
            self.x[small] = np.nan
            self.y[small] = np.nan
        return count
