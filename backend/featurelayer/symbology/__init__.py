"""Esri drawing-info symbology: renderer model, resolution and styling."""

from .colors import Color, points_to_pixels, to_color_bytes, to_css_color, to_normalized_color
from .renderers import (
    ClassBreaksRenderer,
    SimpleRenderer,
    UniqueValueRenderer,
    UnsupportedRenderer,
    parse_renderer,
    parse_symbol,
)
from .resolver import resolve_symbol
from .style import StyleDescriptor, build_style, style_features

__all__ = [
    "ClassBreaksRenderer",
    "Color",
    "SimpleRenderer",
    "StyleDescriptor",
    "UniqueValueRenderer",
    "UnsupportedRenderer",
    "build_style",
    "parse_renderer",
    "parse_symbol",
    "points_to_pixels",
    "resolve_symbol",
    "style_features",
    "to_color_bytes",
    "to_css_color",
    "to_normalized_color",
]
