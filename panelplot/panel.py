from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

from panelplot.scene import Element


ViewMode = Literal["plot", "data"]
VIEW_MODES: tuple[str, ...] = ("plot", "data")


@dataclass
class PanelRegion:
    height: float = 0.0
    style: dict[str, Any] = field(default_factory=dict)


@dataclass
class Panel:
    """Host container for one chart: a titled body with header and footer strips.

    ``body_width``/``body_height`` are on-screen pixels. The chart mounts its
    scene into ``content`` and its text table into ``table_text``; only the
    region named by ``view`` is visible.
    """

    title: str = ""
    body_width: float = 800.0
    body_height: float = 600.0
    header: PanelRegion = field(default_factory=PanelRegion)
    footer: PanelRegion = field(default_factory=PanelRegion)
    view: ViewMode = "plot"
    content: Element | None = None
    table_text: str | None = None

    def __post_init__(self) -> None:
        if self.body_width < 0 or self.body_height < 0:
            raise ValueError("panel body size must be >= 0")

    def body_size(self) -> tuple[float, float]:
        return self.body_width, self.body_height

    def resize(self, width: float, height: float) -> None:
        if width < 0 or height < 0:
            raise ValueError("panel body size must be >= 0")
        self.body_width = float(width)
        self.body_height = float(height)

    def show(self, view: ViewMode) -> None:
        if view not in VIEW_MODES:
            raise ValueError(f"view must be one of {VIEW_MODES}, got {view!r}")
        self.view = view

    def unmount(self) -> None:
        self.content = None
        self.table_text = None
