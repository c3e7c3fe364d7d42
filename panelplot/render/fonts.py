from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from PIL import Image, ImageDraw, ImageFont


DEFAULT_FONT_FAMILY = "Helvetica"
SANS_FONT_FALLBACK_PATTERNS = (
    "helvetica",
    "arial",
    "liberationsans",
    "liberation sans",
    "dejavusans",
    "dejavu sans",
    "freesans",
)

Font = ImageFont.FreeTypeFont | ImageFont.ImageFont


@lru_cache(maxsize=64)
def load_font(font_family: str, font_size_px: float, bold: bool = False) -> Font:
    size = max(1, int(round(font_size_px)))
    font_path = _resolve_font_path(font_family, bold)
    if font_path is None:
        return ImageFont.load_default(size=size)
    try:
        return ImageFont.truetype(str(font_path), size=size)
    except OSError:
        return ImageFont.load_default(size=size)


def text_metrics(
    text: str,
    font_size_px: float,
    bold: bool = False,
    *,
    font_family: str = DEFAULT_FONT_FAMILY,
) -> tuple[float, float, float]:
    """Return ``(advance_width, ascent, descent)`` in pixels at ``font_size_px``.

    Fonts are loaded at integer sizes; the result is rescaled to the requested
    fractional size so layout stays continuous under display scaling.
    """
    size = max(1, int(round(font_size_px)))
    font = load_font(font_family, float(size), bold)
    factor = float(font_size_px) / size
    ascent, descent = _font_metrics(font)
    width = float(font.getlength(text)) if text else 0.0
    return width * factor, ascent * factor, descent * factor


class TextMeasurer:
    """Callable text measure bound to one font family."""

    def __init__(self, font_family: str = DEFAULT_FONT_FAMILY) -> None:
        self.font_family = font_family

    def __call__(self, text: str, font_size_px: float, bold: bool = False) -> tuple[float, float, float]:
        return text_metrics(text, font_size_px, bold, font_family=self.font_family)


def render_text_mask(text: str, font: Font) -> Image.Image:
    """Coverage mask whose top edge is the font ascent line and left edge the pen origin."""
    ascent, descent = _font_metrics(font)
    width = max(1, int(round(font.getlength(text))) + 1)
    height = max(1, int(round(ascent + descent)))
    mask = Image.new("L", (width, height), 0)
    ImageDraw.Draw(mask).text((0, 0), text, fill=255, font=font)
    return mask


def _font_metrics(font: Font) -> tuple[float, float]:
    if isinstance(font, ImageFont.FreeTypeFont):
        ascent, descent = font.getmetrics()
        return float(ascent), float(descent)
    left, top, right, bottom = font.getbbox("Ag")
    return float(bottom), 0.0


@lru_cache(maxsize=32)
def _resolve_font_path(font_family: str, bold: bool) -> Path | None:
    wanted = font_family.strip().lower() if font_family.strip() else DEFAULT_FONT_FAMILY.lower()
    patterns = (wanted,) + SANS_FONT_FALLBACK_PATTERNS

    font_dirs = [
        Path.home() / "Library" / "Fonts",
        Path("/Library/Fonts"),
        Path("/System/Library/Fonts"),
        Path("/System/Library/Fonts/Supplemental"),
        Path("/usr/share/fonts"),
        Path("/usr/local/share/fonts"),
    ]

    candidates: list[Path] = []
    for base in font_dirs:
        if not base.exists():
            continue
        for ext in ("*.ttf", "*.otf", "*.ttc"):
            candidates.extend(base.rglob(ext))
    candidates.sort(key=lambda p: (len(p.name), p.name))

    for pattern in patterns:
        p = pattern.replace(" ", "")
        matches = [path for path in candidates if p in path.stem.lower().replace(" ", "")]
        if not matches:
            continue
        for path in matches:
            stem = path.stem.lower()
            is_bold = "bold" in stem
            if is_bold == bold and "italic" not in stem and "oblique" not in stem and "mono" not in stem:
                return path
        return matches[0]
    return None
