from __future__ import annotations

import copy
from dataclasses import dataclass, field
import math
import re
from typing import Any, Callable, Iterator, Mapping


Matrix = tuple[float, float, float, float, float, float]
IDENTITY: Matrix = (1.0, 0.0, 0.0, 1.0, 0.0, 0.0)

# (text, font_size_px, bold) -> (width, ascent, descent)
TextMeasure = Callable[[str, float, bool], tuple[float, float, float]]

DEFAULT_FONT_SIZE = 16.0

_PATH_TOKEN = re.compile(r"[MLZmlz]|-?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")


def multiply(m: Matrix, n: Matrix) -> Matrix:
    a, b, c, d, e, f = m
    a2, b2, c2, d2, e2, f2 = n
    return (
        a * a2 + c * b2,
        b * a2 + d * b2,
        a * c2 + c * d2,
        b * c2 + d * d2,
        a * e2 + c * f2 + e,
        b * e2 + d * f2 + f,
    )


def apply(m: Matrix, x: float, y: float) -> tuple[float, float]:
    a, b, c, d, e, f = m
    return (a * x + c * y + e, b * x + d * y + f)


@dataclass
class Transform:
    """SVG ``translate(tx,ty) scale(s) rotate(deg)`` applied in that order."""

    translate: tuple[float, float] = (0.0, 0.0)
    scale: float = 1.0
    rotate: float = 0.0

    def matrix(self) -> Matrix:
        tx, ty = self.translate
        rad = math.radians(self.rotate)
        cos_r = math.cos(rad)
        sin_r = math.sin(rad)
        m = (1.0, 0.0, 0.0, 1.0, tx, ty)
        m = multiply(m, (self.scale, 0.0, 0.0, self.scale, 0.0, 0.0))
        return multiply(m, (cos_r, sin_r, -sin_r, cos_r, 0.0, 0.0))

    def to_attr(self) -> str:
        parts = []
        tx, ty = self.translate
        if tx or ty:
            parts.append(f"translate({_num(tx)},{_num(ty)})")
        if self.scale != 1.0:
            parts.append(f"scale({_num(self.scale)})")
        if self.rotate:
            parts.append(f"rotate({_num(self.rotate)})")
        return " ".join(parts)


@dataclass(frozen=True)
class Box:
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def union(self, other: "Box | None") -> "Box":
        if other is None:
            return self
        x0 = min(self.x, other.x)
        y0 = min(self.y, other.y)
        return Box(x0, y0, max(self.right, other.right) - x0, max(self.bottom, other.bottom) - y0)

    def scaled(self, factor: float) -> "Box":
        return Box(self.x * factor, self.y * factor, self.width * factor, self.height * factor)


@dataclass(eq=False)
class Element:
    """Minimal retained scene node with SVG naming for tags and attributes."""

    tag: str
    cls: str | None = None
    id: str | None = None
    attrs: dict[str, Any] = field(default_factory=dict)
    style: dict[str, Any] = field(default_factory=dict)
    text: str | None = None
    transform: Transform | None = None
    children: list["Element"] = field(default_factory=list)
    parent: "Element | None" = field(default=None, repr=False)

    def append(
        self,
        tag: str,
        *,
        cls: str | None = None,
        id: str | None = None,
        attrs: Mapping[str, Any] | None = None,
        style: Mapping[str, Any] | None = None,
        text: str | None = None,
        transform: Transform | None = None,
    ) -> "Element":
        child = Element(
            tag=tag,
            cls=cls,
            id=id,
            attrs=dict(attrs or {}),
            style=dict(style or {}),
            text=text,
            transform=transform,
        )
        child.parent = self
        self.children.append(child)
        return child

    def remove(self) -> None:
        if self.parent is not None:
            self.parent.children = [c for c in self.parent.children if c is not self]
            self.parent = None

    def clear(self) -> None:
        for child in self.children:
            child.parent = None
        self.children = []

    def raise_(self) -> None:
        """Move to the end of the parent's children so it draws on top."""
        parent = self.parent
        if parent is None:
            return
        parent.children = [c for c in parent.children if c is not self]
        parent.children.append(self)

    def has_class(self, name: str) -> bool:
        return self.cls is not None and name in self.cls.split()

    def iter(self) -> Iterator["Element"]:
        yield self
        for child in self.children:
            yield from child.iter()

    def select(self, cls: str) -> "Element | None":
        for node in self.iter():
            if node is not self and node.has_class(cls):
                return node
        return None

    def select_all(self, cls: str) -> list["Element"]:
        return [node for node in self.iter() if node is not self and node.has_class(cls)]

    def find(self, cls: str, id: str) -> "Element | None":
        for node in self.iter():
            if node.id == id and node.has_class(cls):
                return node
        return None

    def root(self) -> "Element":
        node = self
        while node.parent is not None:
            node = node.parent
        return node

    def clone(self) -> "Element":
        parent = self.parent
        self.parent = None
        try:
            copied = copy.deepcopy(self)
        finally:
            self.parent = parent
        return copied

    def local_matrix(self) -> Matrix:
        return IDENTITY if self.transform is None else self.transform.matrix()

    def screen_matrix(self) -> Matrix:
        """Matrix from this node's local space to the root's user space."""
        chain: list[Element] = []
        node: Element | None = self
        while node is not None:
            chain.append(node)
            node = node.parent
        m = IDENTITY
        for node in reversed(chain):
            m = multiply(m, node.local_matrix())
        return m

    def inherited_style(self, name: str, default: Any = None) -> Any:
        node: Element | None = self
        while node is not None:
            if name in node.style:
                return node.style[name]
            node = node.parent
        return default

    @property
    def hidden(self) -> bool:
        return self.style.get("display") == "none"


def path_points(d: str) -> list[list[tuple[float, float]]]:
    """Split absolute ``M``/``L`` path data into polylines."""
    segments: list[list[tuple[float, float]]] = []
    current: list[tuple[float, float]] | None = None
    numbers: list[float] = []
    command = ""
    for token in _PATH_TOKEN.findall(d or ""):
        if token in {"M", "L", "m", "l", "Z", "z"}:
            command = token.upper()
            if command == "M":
                current = []
                segments.append(current)
            continue
        numbers.append(float(token))
        if len(numbers) == 2:
            if current is None:
                current = []
                segments.append(current)
            if command in {"M", "L"}:
                current.append((numbers[0], numbers[1]))
            numbers = []
    return [seg for seg in segments if seg]


def bounding_box(element: Element, measure: TextMeasure, matrix: Matrix | None = None) -> Box | None:
    """Geometry bounds of ``element`` (own transform included) under ``matrix``."""
    if element.hidden:
        return None
    base = IDENTITY if matrix is None else matrix
    m = multiply(base, element.local_matrix())
    box = _own_box(element, measure, m)
    for child in element.children:
        child_box = bounding_box(child, measure, m)
        if child_box is not None:
            box = child_box.union(box)
    return box


def _own_box(element: Element, measure: TextMeasure, m: Matrix) -> Box | None:
    a = element.attrs
    points: list[tuple[float, float]] = []
    if element.tag == "line":
        points = [(_f(a, "x1"), _f(a, "y1")), (_f(a, "x2"), _f(a, "y2"))]
    elif element.tag == "circle":
        cx, cy, r = _f(a, "cx"), _f(a, "cy"), _f(a, "r")
        points = [(cx - r, cy - r), (cx + r, cy + r)]
    elif element.tag == "rect":
        x, y = _f(a, "x"), _f(a, "y")
        points = [(x, y), (x + _f(a, "width"), y + _f(a, "height"))]
    elif element.tag == "path":
        for seg in path_points(str(a.get("d", ""))):
            points.extend(seg)
    elif element.tag == "text" and element.text:
        box = text_box(element, measure)
        points = [(box.x, box.y), (box.right, box.bottom)]
    if not points:
        return None
    if element.tag in {"circle", "rect", "text"}:
        (x0, y0), (x1, y1) = points
        points = [(x0, y0), (x1, y0), (x0, y1), (x1, y1)]
    mapped = [apply(m, x, y) for x, y in points]
    xs = [p[0] for p in mapped]
    ys = [p[1] for p in mapped]
    return Box(min(xs), min(ys), max(xs) - min(xs), max(ys) - min(ys))


def text_box(element: Element, measure: TextMeasure) -> Box:
    """Local bounds of a text node from its anchor and baseline attributes."""
    size = float(element.inherited_style("font-size", DEFAULT_FONT_SIZE))
    bold = str(element.inherited_style("font-weight", "normal")) in {"bold", "600", "700", "800", "900"}
    width, ascent, descent = measure(element.text or "", size, bold)
    x = _f(element.attrs, "x")
    y = _f(element.attrs, "y")
    anchor = element.attrs.get("text-anchor", "start")
    if anchor == "middle":
        x -= width / 2.0
    elif anchor == "end":
        x -= width
    baseline = element.attrs.get("alignment-baseline", "alphabetic")
    height = ascent + descent
    if baseline == "central":
        top = y - height / 2.0
    elif baseline in {"text-before-edge", "hanging"}:
        top = y
    elif baseline == "text-after-edge":
        top = y - height
    else:
        top = y - ascent
    return Box(x, top, width, height)


def _f(attrs: Mapping[str, Any], key: str) -> float:
    value = attrs.get(key, 0.0)
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _num(value: float) -> str:
    out = f"{float(value):.4f}".rstrip("0").rstrip(".")
    return "0" if out in {"", "-0"} else out
