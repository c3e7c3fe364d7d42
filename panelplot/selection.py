from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from panelplot.options import PlotOptions
from panelplot.scene import Element


@dataclass(frozen=True)
class SelectionState:
    selected_id: str | None = None

    @property
    def is_selected(self) -> bool:
        return self.selected_id is not None


@dataclass(frozen=True)
class SeriesStyle:
    line_width: float
    point_radius: float
    legend_font_weight: str
    legend_line_width: float
    legend_point_radius: float


class SelectionStateMachine:
    """``Unselected`` / ``Selected(id)`` with click-to-toggle transitions."""

    def __init__(self, options: PlotOptions) -> None:
        self.options = options
        self.state = SelectionState()

    def click(self, series_id: str) -> SelectionState:
        if self.state.selected_id == series_id:
            self.state = SelectionState()
        else:
            self.state = SelectionState(selected_id=series_id)
        return self.state

    def clear(self) -> SelectionState:
        self.state = SelectionState()
        return self.state

    def restore(self, ids: Sequence[str]) -> SelectionState:
        """Drop the selection when its series is no longer present."""
        if self.state.selected_id is not None and self.state.selected_id not in ids:
            self.state = SelectionState()
        return self.state

    def styles(self, ids: Sequence[str]) -> dict[str, SeriesStyle]:
        opts = self.options
        default = SeriesStyle(
            line_width=opts.line_width,
            point_radius=opts.point_radius,
            legend_font_weight="initial",
            legend_line_width=opts.line_width,
            legend_point_radius=opts.point_radius,
        )
        out = {series_id: default for series_id in ids}
        selected = self.state.selected_id
        if selected is not None and selected in out:
            out[selected] = SeriesStyle(
                line_width=opts.line_width_selection,
                point_radius=opts.point_radius_selection,
                legend_font_weight="bold",
                legend_line_width=opts.line_width_selection,
                legend_point_radius=opts.point_radius_selection,
            )
        return out


def apply_selection(
    data_group: Element,
    legend_group: Element | None,
    machine: SelectionStateMachine,
) -> None:
    """Reset every series to its default look, then emphasize the selected one."""
    groups = [g for g in data_group.children if g.has_class("data")]
    styles = machine.styles([g.id for g in groups if g.id is not None])
    for group in groups:
        style = styles[group.id]  # type: ignore[index]
        for node in group.children:
            if node.has_class("line"):
                node.attrs["stroke-width"] = style.line_width
            elif node.has_class("dot"):
                node.attrs["r"] = style.point_radius

    if legend_group is not None:
        for entry in legend_group.select_all("legend-entry"):
            style = styles.get(entry.id)  # type: ignore[arg-type]
            if style is None:
                continue
            for node in entry.children:
                if node.has_class("legend-text"):
                    node.style["font-weight"] = style.legend_font_weight
                elif node.has_class("legend-line"):
                    node.attrs["stroke-width"] = style.legend_line_width
                elif node.has_class("legend-circle"):
                    node.attrs["r"] = style.legend_point_radius

    selected = machine.state.selected_id
    if selected is not None:
        target = data_group.find("data", selected)
        if target is not None:
            target.raise_()
