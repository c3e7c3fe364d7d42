from __future__ import annotations

import math
from typing import Optional

import numpy as np
from PIL import Image, ImageDraw

from panelplot.render.fonts import DEFAULT_FONT_FAMILY, load_font, render_text_mask, text_metrics
from panelplot.render.svg import Color, SvgCircle, SvgDocument, SvgLine, SvgPath, SvgRect, SvgText
from panelplot.scene import Matrix, apply, multiply


def rasterize(
    document: SvgDocument,
    *,
    width: Optional[int] = None,
    height: Optional[int] = None,
    background: Optional[Color] = None,
) -> Image.Image:
    """Draw ``document`` into a new RGBA image.

    The viewBox is fitted with ``xMinYMin meet`` semantics. Without a
    ``background`` the canvas starts fully transparent.
    """
    out_w = int(math.ceil(width if width is not None else document.width))
    out_h = int(math.ceil(height if height is not None else document.height))
    if out_w <= 0 or out_h <= 0:
        raise ValueError(f"raster size must be positive, got {out_w}x{out_h}")
    image = Image.new("RGBA", (out_w, out_h), background if background is not None else (0, 0, 0, 0))
    draw = ImageDraw.Draw(image)

    vb_x, vb_y, vb_w, vb_h = document.viewbox
    fit = min(out_w / vb_w if vb_w else 1.0, out_h / vb_h if vb_h else 1.0)
    base: Matrix = (fit, 0.0, 0.0, fit, -vb_x * fit, -vb_y * fit)

    for item in document.items:
        m = multiply(base, item.matrix)
        if isinstance(item, SvgRect):
            _draw_rect(draw, item, m)
        elif isinstance(item, SvgCircle):
            _draw_circle(draw, item, m)
        elif isinstance(item, SvgLine):
            _draw_line(draw, item, m)
        elif isinstance(item, SvgPath):
            _draw_path(draw, item, m)
        elif isinstance(item, SvgText):
            _draw_text(image, item, m)
    return image


def to_rgba_array(image: Image.Image) -> np.ndarray:
    return np.asarray(image.convert("RGBA"), dtype=np.uint8).copy()


def flatten_on_white(image: Image.Image) -> Image.Image:
    """Composite ``image`` over an opaque white canvas of the same size."""
    canvas = Image.new("RGBA", image.size, (255, 255, 255, 255))
    canvas.alpha_composite(image.convert("RGBA"))
    return canvas.convert("RGB")


def _scale_of(m: Matrix) -> float:
    a, b, c, d, _, _ = m
    return math.sqrt(abs(a * d - b * c))


def _px_width(width: float, m: Matrix) -> int:
    return max(1, int(round(width * _scale_of(m))))


def _draw_rect(draw: ImageDraw.ImageDraw, rect: SvgRect, m: Matrix) -> None:
    corners = [
        apply(m, rect.x, rect.y),
        apply(m, rect.x + rect.width, rect.y),
        apply(m, rect.x + rect.width, rect.y + rect.height),
        apply(m, rect.x, rect.y + rect.height),
    ]
    outline = rect.stroke if rect.stroke and rect.stroke_width > 0 else None
    draw.polygon(corners, fill=rect.fill, outline=outline, width=_px_width(rect.stroke_width, m) if outline else 1)


def _draw_circle(draw: ImageDraw.ImageDraw, circle: SvgCircle, m: Matrix) -> None:
    cx, cy = apply(m, circle.cx, circle.cy)
    r = circle.r * _scale_of(m)
    if r <= 0:
        return
    outline = circle.stroke if circle.stroke and circle.stroke_width > 0 else None
    draw.ellipse(
        (cx - r, cy - r, cx + r, cy + r),
        fill=circle.fill,
        outline=outline,
        width=_px_width(circle.stroke_width, m) if outline else 1,
    )


def _draw_line(draw: ImageDraw.ImageDraw, line: SvgLine, m: Matrix) -> None:
    p0 = apply(m, line.x1, line.y1)
    p1 = apply(m, line.x2, line.y2)
    draw.line([p0, p1], fill=line.stroke, width=_px_width(line.stroke_width, m))


def _draw_path(draw: ImageDraw.ImageDraw, path: SvgPath, m: Matrix) -> None:
    width = _px_width(path.stroke_width, m)
    for segment in path.segments:
        pts = [apply(m, x, y) for x, y in segment]
        if len(pts) == 1:
            x, y = pts[0]
            r = width / 2.0
            draw.ellipse((x - r, y - r, x + r, y + r), fill=path.stroke)
            continue
        draw.line(pts, fill=path.stroke, width=width, joint="curve")


def _draw_text(image: Image.Image, item: SvgText, m: Matrix) -> None:
    if item.fill is None:
        return
    scale = _scale_of(m)
    size_px = item.font_size * scale
    if size_px < 1.0:
        return
    family = item.font_family or DEFAULT_FONT_FAMILY
    font = load_font(family, size_px, item.bold)
    mask = render_text_mask(item.text, font)

    # Local-space box of the glyph run relative to the text position.
    width, ascent, descent = text_metrics(item.text, item.font_size, item.bold, font_family=family)
    x0 = item.x
    if item.anchor == "middle":
        x0 -= width / 2.0
    elif item.anchor == "end":
        x0 -= width
    height = ascent + descent
    if item.baseline == "central":
        y0 = item.y - height / 2.0
    elif item.baseline in {"text-before-edge", "hanging"}:
        y0 = item.y
    elif item.baseline == "text-after-edge":
        y0 = item.y - height
    else:
        y0 = item.y - ascent

    a, b = m[0], m[1]
    angle = math.degrees(math.atan2(b, a))
    if abs(angle) > 1e-6:
        mask = mask.rotate(-angle, expand=True, resample=Image.BICUBIC)
    corners = [apply(m, x0, y0), apply(m, x0 + width, y0), apply(m, x0, y0 + height), apply(m, x0 + width, y0 + height)]
    left = int(round(min(p[0] for p in corners)))
    top = int(round(min(p[1] for p in corners)))
    layer = Image.new("RGBA", mask.size, item.fill)
    image.paste(layer, (left, top), mask)
