from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import replace
from decimal import Decimal
from typing import Any

import numpy as np

from panelplot.errors import PlotDataError
from panelplot.series import Series


try:
    import pandas as pd
except Exception:  # pragma: no cover - optional dependency
    pd = None  # type: ignore[assignment]

try:
    import torch
except Exception:  # pragma: no cover - optional dependency
    torch = None  # type: ignore[assignment]


def normalize_series(data: Any, *, series_id: str, label: str | None = None) -> Series:
    """Coerce one series input into a ``Series``.

    Accepted inputs: an existing ``Series`` (copied under ``series_id``,
    keeping its label unless ``label`` is given); a sequence of ``[x, y]`` pairs
    (either coordinate may be None); an ``(N, 2)`` array, tensor or two-column
    DataFrame; a mapping with ``"x"`` and ``"y"`` sequences.
    """
    if isinstance(data, Series):
        return replace(
            data,
            id=series_id,
            label=data.label if label is None else str(label),
            x=data.x.copy(),
            y=data.y.copy(),
        )
    label = series_id if label is None else str(label)
    if isinstance(data, Mapping):
        if "y" not in data:
            raise PlotDataError(f"series {series_id!r}: mapping input requires a 'y' entry")
        return normalize_xy(data["y"], x=data.get("x"), series_id=series_id, label=label)

    pairs = _coerce_pairs(data, series_id=series_id)
    return Series(id=series_id, label=label, x=pairs[:, 0].copy(), y=pairs[:, 1].copy())


def normalize_xy(y: Any, *, x: Any = None, series_id: str, label: str | None = None) -> Series:
    y_arr = _coerce_1d_numeric(y, label="y")
    if x is None:
        x_arr = np.arange(y_arr.size, dtype=np.float64)
    else:
        x_arr = _coerce_1d_numeric(x, label="x")
    if x_arr.shape != y_arr.shape:
        raise PlotDataError(f"series {series_id!r}: x and y length mismatch: {x_arr.size} != {y_arr.size}")
    return Series(id=series_id, label=series_id if label is None else str(label), x=x_arr, y=y_arr)


def _coerce_pairs(value: Any, *, series_id: str) -> np.ndarray:
    if torch is not None and isinstance(value, torch.Tensor):
        tensor = value.detach()
        if tensor.is_cuda:
            tensor = tensor.cpu()
        value = tensor.to(torch.float64).numpy()

    if pd is not None and isinstance(value, pd.DataFrame):
        numeric_cols = [c for c in value.columns if _is_numeric_dtype(value[c])]
        if len(numeric_cols) != 2:
            raise PlotDataError(f"series {series_id!r}: DataFrame input must contain exactly two numeric columns")
        value = value[numeric_cols].to_numpy()

    if isinstance(value, np.ndarray):
        if value.ndim != 2 or value.shape[1] != 2:
            raise PlotDataError(f"series {series_id!r}: point array must have shape (N, 2)")
        if value.dtype.kind in {"i", "u", "f", "b"}:
            return _gaps_to_nan(value.astype(np.float64))
        value = value.tolist()

    if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        out = np.empty((len(value), 2), dtype=np.float64)
        for i, pair in enumerate(value):
            if not isinstance(pair, Sequence) or isinstance(pair, (str, bytes, bytearray)) or len(pair) != 2:
                raise PlotDataError(f"series {series_id!r}: point {i} is not an [x, y] pair: {pair!r}")
            out[i, 0] = _coerce_scalar(pair[0], label="x", index=i)
            out[i, 1] = _coerce_scalar(pair[1], label="y", index=i)
        return _gaps_to_nan(out)

    raise PlotDataError(f"series {series_id!r}: unsupported point input type: {type(value)!r}")


def _is_numeric_dtype(series: Any) -> bool:
    if pd is None:
        return False
    return bool(pd.api.types.is_numeric_dtype(series))


def _coerce_1d_numeric(value: Any, *, label: str) -> np.ndarray:
    if torch is not None and isinstance(value, torch.Tensor):
        tensor = value.detach()
        if tensor.ndim != 1:
            raise PlotDataError(f"{label} must be 1-D")
        if tensor.is_cuda:
            tensor = tensor.cpu()
        return _gaps_to_nan(tensor.to(torch.float64).numpy())

    if pd is not None and isinstance(value, pd.Series):
        return _coerce_ndarray(value.to_numpy(), label=label)

    if isinstance(value, np.ndarray):
        if value.ndim != 1:
            raise PlotDataError(f"{label} must be 1-D")
        return _coerce_ndarray(value, label=label)

    if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        return _coerce_ndarray(np.asarray(value, dtype=object), label=label)

    raise PlotDataError(f"unsupported {label} input type: {type(value)!r}")


def _coerce_ndarray(arr: np.ndarray, *, label: str) -> np.ndarray:
    if arr.dtype.kind in {"i", "u", "f", "b"}:
        return _gaps_to_nan(arr.astype(np.float64))
    out = np.empty(arr.shape[0], dtype=np.float64)
    for i, raw in enumerate(arr.tolist()):
        out[i] = _coerce_scalar(raw, label=label, index=i)
    return _gaps_to_nan(out)


def _coerce_scalar(raw: Any, *, label: str, index: int) -> float:
    if raw is None:
        return np.nan
    if isinstance(raw, Decimal):
        return float(raw)
    if isinstance(raw, (str, bytes)):
        raise PlotDataError(f"{label} contains non-numeric value at index {index}: {raw!r}")
    try:
        return float(raw)
    except (TypeError, ValueError) as exc:
        raise PlotDataError(f"{label} contains non-numeric value at index {index}: {raw!r}") from exc


def _gaps_to_nan(arr: np.ndarray) -> np.ndarray:
    arr = np.array(arr, dtype=np.float64, copy=True)
    arr[~np.isfinite(arr)] = np.nan
    return arr
