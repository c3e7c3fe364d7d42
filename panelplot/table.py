from __future__ import annotations

from dataclasses import dataclass
import math
from typing import Literal, Sequence

from panelplot.series import Series


RowKind = Literal["header", "x", "y"]

MAX_CELL_WIDTH = 28


@dataclass(frozen=True)
class TableRow:
    kind: RowKind
    cells: tuple[str, ...]


@dataclass(frozen=True)
class SeriesTable:
    series_id: str
    rows: tuple[TableRow, TableRow, TableRow]


@dataclass(frozen=True)
class TableView:
    """Tabular mirror of the chart data: a label row, an X row and a Y row per series."""

    tables: tuple[SeriesTable, ...]

    @property
    def rows(self) -> tuple[TableRow, ...]:
        return tuple(row for table in self.tables for row in table.rows)

    def render_text(self) -> str:
        rows = self.rows
        if not rows:
            return ""
        ncols = max(len(row.cells) for row in rows)
        widths = [4] * ncols
        for row in rows:
            if row.kind == "header":
                continue
            for i, cell in enumerate(row.cells):
                widths[i] = min(MAX_CELL_WIDTH, max(widths[i], len(cell)))

        def _clip(value: str, width: int) -> str:
            if len(value) <= width:
                return value + (" " * (width - len(value)))
            if width <= 3:
                return value[:width]
            return value[: width - 3] + "..."

        border = "+" + "+".join("-" * (w + 2) for w in widths) + "+"
        inner = len(border) - 4
        lines: list[str] = []
        for table in self.tables:
            header, x_row, y_row = table.rows
            lines.append(border)
            lines.append("| " + _clip(header.cells[0] if header.cells else "", inner) + " |")
            lines.append(border)
            for row in (x_row, y_row):
                cells = list(row.cells) + [""] * (ncols - len(row.cells))
                lines.append("| " + " | ".join(_clip(cells[i], widths[i]) for i in range(ncols)) + " |")
        lines.append(border)
        return "\n".join(lines)


class DataTableProjector:
    def project(self, series: Sequence[Series], tooltip_text: Sequence[str]) -> TableView:
        """Project series into table rows; gap coordinates become empty cells."""
        x_title = tooltip_text[1]
        y_title = tooltip_text[2]
        tables = []
        for s in series:
            points = list(s.points)
            tables.append(
                SeriesTable(
                    series_id=s.id,
                    rows=(
                        TableRow(kind="header", cells=(s.label,)),
                        TableRow(kind="x", cells=(x_title, *(cell_text(p.x) for p in points))),
                        TableRow(kind="y", cells=(y_title, *(cell_text(p.y) for p in points))),
                    ),
                )
            )
        return TableView(tables=tuple(tables))


def cell_text(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, float):
        if not math.isfinite(value):
            return ""
        if abs(value - round(value)) <= 1e-9 and abs(value) < 1e15:
            return str(int(round(value)))
        return f"{value:.6g}"
    return str(value)
