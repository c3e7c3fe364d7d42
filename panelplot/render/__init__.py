from .fonts import TextMeasurer, load_font, text_metrics
from .raster import flatten_on_white, rasterize, to_rgba_array
from .svg import SvgDocument, parse_transform, scene_to_svg

__all__ = [
    "SvgDocument",
    "TextMeasurer",
    "flatten_on_white",
    "load_font",
    "parse_transform",
    "rasterize",
    "scene_to_svg",
    "text_metrics",
    "to_rgba_array",
]
