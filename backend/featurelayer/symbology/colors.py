from __future__ import annotations

from typing import NamedTuple, Sequence, Tuple

# Esri symbol sizes are in points, the renderer works in pixels (1pt = 4/3px)
POINTS_TO_PIXELS = 4 / 3


class Color(NamedTuple):
    red: float
    green: float
    blue: float
    alpha: float


def _clamp_byte(value: float) -> int:
    return max(0, min(255, int(round(value))))


def to_normalized_color(esri_color: Sequence[float]) -> Color:
    """Map an Esri ``[r, g, b, a]`` byte quadruple to 0..1 channels."""
    r, g, b, a = (esri_color[i] for i in range(4))
    return Color(r / 255.0, g / 255.0, b / 255.0, a / 255.0)


def to_color_bytes(color: Color) -> Tuple[int, int, int, int]:
    """Inverse of :func:`to_normalized_color`."""
    return (
        _clamp_byte(color.red * 255.0),
        _clamp_byte(color.green * 255.0),
        _clamp_byte(color.blue * 255.0),
        _clamp_byte(color.alpha * 255.0),
    )


def to_css_color(color: Color) -> str:
    r, g, b, a = to_color_bytes(color)
    return f"rgba({r},{g},{b},{round(a / 255.0, 4)})"


def points_to_pixels(value: float) -> float:
    return value * POINTS_TO_PIXELS
