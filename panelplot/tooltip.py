from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from panelplot.scales import format_tick
from panelplot.scene import Element, Transform


TOOLTIP_OFFSET = 10.0
TOOLTIP_LINE_HEIGHT = 1.2


@dataclass(frozen=True)
class TooltipHandle:
    """One open tooltip: the hovered point, its pixel position, and display lines."""

    series_id: str
    label: str
    index: int
    x_value: float
    y_value: float
    position: tuple[float, float]
    lines: tuple[str, ...]


def tooltip_lines(label: str, x_value: float, y_value: float, tooltip_text: tuple[str, str, str]) -> tuple[str, ...]:
    title, x_title, y_title = tooltip_text
    return (
        f"{title}{label}",
        f"{x_title}: {format_tick(x_value)}",
        f"{y_title}: {format_tick(y_value)}",
    )


class ActiveTooltip:
    """Owns at most one open tooltip and the dot it enlarged.

    The dot's resting radius is looked up when the tooltip closes, so a
    selection change made while hovering is honored.
    """

    def __init__(self) -> None:
        self.handle: TooltipHandle | None = None
        self._node: Element | None = None
        self._dot: Element | None = None
        self._hover_radius: float | None = None
        self._restore_radius: Callable[[], float] | None = None

    @property
    def is_open(self) -> bool:
        return self.handle is not None

    def open(
        self,
        handle: TooltipHandle,
        tooltip_group: Element,
        dot: Element,
        *,
        hover_radius: float,
        restore_radius: Callable[[], float],
        font_size: float,
    ) -> TooltipHandle:
        self.close()
        dot.attrs["r"] = hover_radius
        x, y = handle.position
        node = tooltip_group.append(
            "g",
            cls="tooltip",
            id=handle.series_id,
            style={"font-size": font_size},
            transform=Transform(translate=(x + TOOLTIP_OFFSET, y - TOOLTIP_OFFSET)),
        )
        for i, line in enumerate(handle.lines):
            node.append(
                "text",
                attrs={"x": 0, "y": -font_size * TOOLTIP_LINE_HEIGHT * (len(handle.lines) - 1 - i)},
                text=line,
            )
        self.handle = handle
        self._node = node
        self._dot = dot
        self._hover_radius = hover_radius
        self._restore_radius = restore_radius
        return handle

    def reapply(self) -> None:
        """Enlarge the hovered dot again after series styling was reset."""
        if self._dot is not None and self._hover_radius is not None:
            self._dot.attrs["r"] = self._hover_radius

    def close(self) -> TooltipHandle | None:
        """Remove the tooltip node and shrink the hovered dot back."""
        handle = self.handle
        if self._dot is not None and self._restore_radius is not None:
            self._dot.attrs["r"] = self._restore_radius()
        if self._node is not None:
            self._node.remove()
        self.handle = None
        self._node = None
        self._dot = None
        self._hover_radius = None
        self._restore_radius = None
        return handle
