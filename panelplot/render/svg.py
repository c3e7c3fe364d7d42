from __future__ import annotations

from dataclasses import dataclass
import math
import re
from typing import Any, Optional, Union
import xml.etree.ElementTree as ET

from panelplot.scene import IDENTITY, Element, Matrix, multiply, path_points


SVG_NS = "http://www.w3.org/2000/svg"

Color = tuple[int, int, int, int]

_INHERITED = ("fill", "stroke", "stroke-width", "font-size", "font-weight", "font-family", "text-anchor")
_TRANSFORM_RE = re.compile(r"(matrix|translate|scale|rotate)\s*\(([^)]*)\)")
_NAMED_COLORS: dict[str, Color] = {
    "black": (0, 0, 0, 255),
    "white": (255, 255, 255, 255),
    "red": (255, 0, 0, 255),
    "green": (0, 128, 0, 255),
    "blue": (0, 0, 255, 255),
    "gray": (128, 128, 128, 255),
    "grey": (128, 128, 128, 255),
}


def scene_to_svg(root: Element) -> str:
    """Serialize a scene rooted at an ``svg`` node to standalone markup."""
    tree = _to_etree(root)
    tree.set("xmlns", SVG_NS)
    return ET.tostring(tree, encoding="unicode")


def _to_etree(node: Element) -> ET.Element:
    out = ET.Element(node.tag)
    if node.id is not None:
        out.set("id", str(node.id))
    if node.cls:
        out.set("class", node.cls)
    for key, value in node.attrs.items():
        if value is None:
            continue
        out.set(key, _attr_text(value))
    if node.transform is not None:
        text = node.transform.to_attr()
        if text:
            out.set("transform", text)
    if node.style:
        out.set("style", ";".join(f"{k}:{_style_text(k, v)}" for k, v in node.style.items()))
    if node.text is not None:
        out.text = node.text
    for child in node.children:
        out.append(_to_etree(child))
    return out


def _attr_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return _fmt(float(value))
    return str(value)


def _style_text(key: str, value: Any) -> str:
    if key in {"font-size", "line-height"} and isinstance(value, (int, float)):
        return f"{_fmt(float(value))}px"
    return _attr_text(value)


def _fmt(value: float) -> str:
    out = f"{value:.4f}".rstrip("0").rstrip(".")
    return "0" if out in {"", "-0"} else out


@dataclass(frozen=True)
class SvgRect:
    x: float
    y: float
    width: float
    height: float
    fill: Optional[Color]
    stroke: Optional[Color]
    stroke_width: float
    matrix: Matrix


@dataclass(frozen=True)
class SvgCircle:
    cx: float
    cy: float
    r: float
    fill: Optional[Color]
    stroke: Optional[Color]
    stroke_width: float
    matrix: Matrix


@dataclass(frozen=True)
class SvgLine:
    x1: float
    y1: float
    x2: float
    y2: float
    stroke: Optional[Color]
    stroke_width: float
    matrix: Matrix


@dataclass(frozen=True)
class SvgPath:
    segments: list[list[tuple[float, float]]]
    stroke: Optional[Color]
    stroke_width: float
    matrix: Matrix


@dataclass(frozen=True)
class SvgText:
    x: float
    y: float
    text: str
    font_size: float
    bold: bool
    font_family: str
    anchor: str
    baseline: str
    fill: Optional[Color]
    matrix: Matrix


SvgItem = Union[SvgRect, SvgCircle, SvgLine, SvgPath, SvgText]


@dataclass
class SvgDocument:
    """Flattened draw list in document order with resolved transforms and styles."""

    width: float
    height: float
    viewbox: tuple[float, float, float, float]
    items: list[SvgItem]

    @classmethod
    def from_markup(cls, svg_markup: str) -> "SvgDocument":
        root = ET.fromstring(svg_markup)
        return cls._from_root(root)

    @classmethod
    def _from_root(cls, root: ET.Element) -> "SvgDocument":
        width = _parse_length(root.attrib.get("width"))
        height = _parse_length(root.attrib.get("height"))
        viewbox = parse_viewbox(root.attrib.get("viewBox"))
        if viewbox is None:
            vb = (0.0, 0.0, width or 100.0, height or 100.0)
        else:
            vb = viewbox
        if width is None:
            width = vb[2]
        if height is None:
            height = vb[3]
        items: list[SvgItem] = []
        _collect(root, IDENTITY, {}, items)
        return cls(width=width, height=height, viewbox=vb, items=items)


def _collect(elem: ET.Element, matrix: Matrix, inherited: dict[str, str], out: list[SvgItem]) -> None:
    props = dict(inherited)
    for key in _INHERITED + ("display", "alignment-baseline"):
        if key in elem.attrib:
            props[key] = elem.attrib[key]
    props.update(_parse_style(elem.attrib.get("style")))
    if props.get("display") == "none":
        return
    props.pop("display", None)
    m = multiply(matrix, parse_transform(elem.attrib.get("transform")))

    tag = _strip_namespace(elem.tag)
    if tag == "rect":
        out.append(_parse_rect(elem, props, m))
    elif tag == "circle":
        out.append(_parse_circle(elem, props, m))
    elif tag == "line":
        line = _parse_line(elem, props, m)
        if line:
            out.append(line)
    elif tag == "path":
        path = _parse_path(elem, props, m)
        if path:
            out.append(path)
    elif tag == "text":
        text = _parse_text(elem, props, m)
        if text:
            out.append(text)

    props.pop("alignment-baseline", None)
    for child in elem:
        _collect(child, m, props, out)


def parse_transform(value: Optional[str]) -> Matrix:
    m = IDENTITY
    if not value:
        return m
    for name, raw_args in _TRANSFORM_RE.findall(value):
        args = [float(v) for v in raw_args.replace(",", " ").split()]
        if name == "translate":
            tx = args[0] if args else 0.0
            ty = args[1] if len(args) > 1 else 0.0
            step: Matrix = (1.0, 0.0, 0.0, 1.0, tx, ty)
        elif name == "scale":
            sx = args[0] if args else 1.0
            sy = args[1] if len(args) > 1 else sx
            step = (sx, 0.0, 0.0, sy, 0.0, 0.0)
        elif name == "rotate":
            rad = math.radians(args[0] if args else 0.0)
            cos_r, sin_r = math.cos(rad), math.sin(rad)
            step = (cos_r, sin_r, -sin_r, cos_r, 0.0, 0.0)
            if len(args) == 3:
                cx, cy = args[1], args[2]
                step = multiply(multiply((1.0, 0.0, 0.0, 1.0, cx, cy), step), (1.0, 0.0, 0.0, 1.0, -cx, -cy))
        else:
            if len(args) != 6:
                raise ValueError(f"matrix() takes 6 values, got {len(args)}")
            step = tuple(args)  # type: ignore[assignment]
        m = multiply(m, step)
    return m


def _strip_namespace(tag: str) -> str:
    if "}" in tag:
        return tag.split("}", 1)[1]
    return tag


def _parse_style(value: Optional[str]) -> dict[str, str]:
    out: dict[str, str] = {}
    if not value:
        return out
    for part in value.split(";"):
        if ":" not in part:
            continue
        key, _, val = part.partition(":")
        out[key.strip()] = val.strip()
    return out


def _parse_length(value: Optional[str]) -> Optional[float]:
    if not value:
        return None
    value = value.strip()
    if value.endswith("px"):
        value = value[:-2]
    try:
        return float(value)
    except ValueError:
        return None


def parse_viewbox(value: Optional[str]) -> Optional[tuple[float, float, float, float]]:
    if not value:
        return None
    parts = value.replace(",", " ").split()
    if len(parts) != 4:
        return None
    try:
        return tuple(float(p) for p in parts)  # type: ignore[return-value]
    except ValueError:
        return None


def _stroke_width(props: dict[str, str], default: float) -> float:
    value = _parse_length(props.get("stroke-width"))
    return default if value is None else value


def _parse_rect(elem: ET.Element, props: dict[str, str], m: Matrix) -> SvgRect:
    x = _parse_length(elem.attrib.get("x")) or 0.0
    y = _parse_length(elem.attrib.get("y")) or 0.0
    w = _parse_length(elem.attrib.get("width")) or 0.0
    h = _parse_length(elem.attrib.get("height")) or 0.0
    return SvgRect(
        x=x,
        y=y,
        width=w,
        height=h,
        fill=_parse_color(props.get("fill", "black")),
        stroke=_parse_color(props.get("stroke")),
        stroke_width=_stroke_width(props, 1.0),
        matrix=m,
    )


def _parse_circle(elem: ET.Element, props: dict[str, str], m: Matrix) -> SvgCircle:
    return SvgCircle(
        cx=_parse_length(elem.attrib.get("cx")) or 0.0,
        cy=_parse_length(elem.attrib.get("cy")) or 0.0,
        r=_parse_length(elem.attrib.get("r")) or 0.0,
        fill=_parse_color(props.get("fill", "black")),
        stroke=_parse_color(props.get("stroke")),
        stroke_width=_stroke_width(props, 1.0),
        matrix=m,
    )


def _parse_line(elem: ET.Element, props: dict[str, str], m: Matrix) -> Optional[SvgLine]:
    x1 = _parse_length(elem.attrib.get("x1")) or 0.0
    y1 = _parse_length(elem.attrib.get("y1")) or 0.0
    x2 = _parse_length(elem.attrib.get("x2")) or 0.0
    y2 = _parse_length(elem.attrib.get("y2")) or 0.0
    stroke = _parse_color(props.get("stroke"))
    if stroke is None:
        return None
    return SvgLine(x1=x1, y1=y1, x2=x2, y2=y2, stroke=stroke, stroke_width=_stroke_width(props, 1.0), matrix=m)


def _parse_path(elem: ET.Element, props: dict[str, str], m: Matrix) -> Optional[SvgPath]:
    segments = path_points(elem.attrib.get("d", ""))
    stroke = _parse_color(props.get("stroke"))
    if not segments or stroke is None:
        return None
    return SvgPath(segments=segments, stroke=stroke, stroke_width=_stroke_width(props, 1.0), matrix=m)


def _parse_text(elem: ET.Element, props: dict[str, str], m: Matrix) -> Optional[SvgText]:
    text = "".join(elem.itertext())
    if not text:
        return None
    weight = props.get("font-weight", "normal")
    return SvgText(
        x=_parse_length(elem.attrib.get("x")) or 0.0,
        y=_parse_length(elem.attrib.get("y")) or 0.0,
        text=text,
        font_size=_parse_length(props.get("font-size")) or 16.0,
        bold=weight in {"bold", "600", "700", "800", "900"},
        font_family=props.get("font-family", "").split(",")[0].strip().strip("'\""),
        anchor=props.get("text-anchor", "start"),
        baseline=props.get("alignment-baseline", "alphabetic"),
        fill=_parse_color(props.get("fill", "black")),
        matrix=m,
    )


def _parse_color(value: Optional[str]) -> Optional[Color]:
    if not value:
        return None
    value = value.strip().lower()
    if value == "none":
        return None
    if value in _NAMED_COLORS:
        return _NAMED_COLORS[value]
    if value.startswith("#"):
        hex_value = value[1:]
        if len(hex_value) == 3:
            r = int(hex_value[0] * 2, 16)
            g = int(hex_value[1] * 2, 16)
            b = int(hex_value[2] * 2, 16)
            return (r, g, b, 255)
        if len(hex_value) == 6:
            r = int(hex_value[0:2], 16)
            g = int(hex_value[2:4], 16)
            b = int(hex_value[4:6], 16)
            return (r, g, b, 255)
        if len(hex_value) == 8:
            r = int(hex_value[0:2], 16)
            g = int(hex_value[2:4], 16)
            b = int(hex_value[4:6], 16)
            a = int(hex_value[6:8], 16)
            return (r, g, b, a)
    if value.startswith("rgb"):
        numbers = value[value.find("(") + 1 : value.find(")")].split(",")
        if len(numbers) >= 3:
            try:
                r = int(numbers[0])
                g = int(numbers[1])
                b = int(numbers[2])
                return (r, g, b, 255)
            except ValueError:
                return None
    return None
