"""Dash patterns for the named Esri simple-line styles.

Patterns are 16-bit stipple masks read from the most significant bit, one
bit per pixel, in the same convention as OpenGL line stipples.
"""

from typing import Dict, Optional

LINE_STYLE_DASH = "esriSLSDash"
LINE_STYLE_NULL = "esriSLSNull"

# Default dash used when a renderer asks for a plain dashed line
DEFAULT_DASH_PATTERN = 0x00FF

DASH_PATTERNS: Dict[str, int] = {
    "esriSLSDashDot": 0x1C47,
    "esriSLSDashDotDot": 0x3F91,
    "esriSLSDot": 0xAAAA,
    "esriSLSLongDash": 0x0FFF,
    "esriSLSLongDashDot": 0xF1FE,
    "esriSLSShortDash": 0x0F0F,
    "esriSLSShortDashDot": 0x0C7F,
    "esriSLSShortDashDotDot": 0x2727,
    "esriSLSShortDot": 0x5555,
}


def dash_pattern_for(style: Optional[str]) -> Optional[int]:
    """Return the stipple mask for ``style``, or None for solid/unknown lines."""
    if style == LINE_STYLE_DASH:
        return DEFAULT_DASH_PATTERN
    return DASH_PATTERNS.get(style or "")
