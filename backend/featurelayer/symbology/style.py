"""Turn resolved Esri symbols into renderer-ready style descriptors.

Every size, width and offset is converted from points to pixels and every
colour is normalised here, so consumers never see Esri units.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict

from ..features import FeatureRecord
from .colors import points_to_pixels, to_css_color, to_normalized_color
from .line_styles import LINE_STYLE_NULL, dash_pattern_for
from .renderers import (
    FILL_STYLE_NULL,
    PictureMarkerSymbol,
    Renderer,
    SimpleFillSymbol,
    SimpleLineSymbol,
    SimpleMarkerSymbol,
    Symbol,
    UnsupportedSymbol,
)
from .resolver import resolve_symbol

DEFAULT_LINE_COLOR = (255, 255, 255, 255)
DEFAULT_FILL_COLOR = (255, 255, 255, 1)
DEFAULT_OUTLINE_COLOR = (0, 0, 0, 255)


class _StyleModel(BaseModel):
    model_config = ConfigDict(frozen=True)


class StyleColor(_StyleModel):
    rgba: Tuple[float, float, float, float]
    css: str

    @classmethod
    def from_esri(cls, esri_color: Sequence[int]) -> "StyleColor":
        color = to_normalized_color(esri_color)
        return cls(rgba=tuple(color), css=to_css_color(color))


class PointStyle(_StyleModel):
    color: StyleColor
    pixel_size: Optional[float] = None
    outline_color: Optional[StyleColor] = None
    outline_width: Optional[float] = None


class BillboardStyle(_StyleModel):
    image: str
    width: Optional[float] = None
    height: Optional[float] = None
    rotation: Optional[float] = None
    pixel_offset: Optional[Tuple[float, float]] = None


class PolylineStyle(_StyleModel):
    color: StyleColor
    width: Optional[float] = None
    dash_pattern: Optional[int] = None


class PolygonStyle(_StyleModel):
    fill_color: StyleColor
    outline_color: Optional[StyleColor] = None
    outline_width: Optional[float] = None


class StyleDescriptor(_StyleModel):
    """Per-feature style. ``show_*`` False is an explicit hide signal.

    Descriptors are shared by every feature that resolves to the same symbol,
    so they are frozen.
    """

    show_point: bool = True
    show_polyline: bool = True
    show_polygon: bool = True
    point: Optional[PointStyle] = None
    billboard: Optional[BillboardStyle] = None
    polyline: Optional[PolylineStyle] = None
    polygon: Optional[PolygonStyle] = None

    @classmethod
    def hidden(cls) -> "StyleDescriptor":
        return cls(show_point=False, show_polyline=False, show_polygon=False)


def _pixels(value: Optional[float]) -> Optional[float]:
    return points_to_pixels(value) if value is not None else None


def _picture_style(symbol: PictureMarkerSymbol) -> StyleDescriptor:
    image = symbol.image_url
    if not image:
        return StyleDescriptor()

    pixel_offset = None
    if symbol.xoffset or symbol.yoffset:
        pixel_offset = (
            points_to_pixels(symbol.xoffset or 0.0),
            points_to_pixels(symbol.yoffset or 0.0),
        )

    billboard = BillboardStyle(
        image=image,
        width=_pixels(symbol.width),
        height=_pixels(symbol.height),
        rotation=symbol.angle,
        pixel_offset=pixel_offset,
    )
    # The billboard replaces the point primitive
    return StyleDescriptor(show_point=False, billboard=billboard)


def _marker_style(symbol: SimpleMarkerSymbol) -> StyleDescriptor:
    if not symbol.color:
        return StyleDescriptor()
    outline_color = None
    outline_width = None
    if symbol.outline is not None:
        if symbol.outline.color:
            outline_color = StyleColor.from_esri(symbol.outline.color)
        outline_width = _pixels(symbol.outline.width)
    point = PointStyle(
        color=StyleColor.from_esri(symbol.color),
        pixel_size=_pixels(symbol.size),
        outline_color=outline_color,
        outline_width=outline_width,
    )
    return StyleDescriptor(point=point)


def _line_style(symbol: SimpleLineSymbol) -> StyleDescriptor:
    color = symbol.color or DEFAULT_LINE_COLOR
    polyline = PolylineStyle(
        color=StyleColor.from_esri(color),
        width=_pixels(symbol.width),
        dash_pattern=dash_pattern_for(symbol.style),
    )
    return StyleDescriptor(show_polyline=symbol.style != LINE_STYLE_NULL, polyline=polyline)


def _fill_style(symbol: SimpleFillSymbol) -> StyleDescriptor:
    color = list(symbol.color or DEFAULT_FILL_COLOR)
    # Fully transparent interiors cannot be picked; keep them barely visible
    if color[3] == 0:
        color[3] = 1
    fill_color = StyleColor.from_esri(color)

    outline = symbol.outline
    if outline is None:
        return StyleDescriptor(polygon=PolygonStyle(fill_color=fill_color))

    outline_color = StyleColor.from_esri(outline.color or DEFAULT_OUTLINE_COLOR)
    outline_width = _pixels(outline.width)
    outline_hidden = outline.style == LINE_STYLE_NULL
    return StyleDescriptor(
        show_polygon=not (symbol.style == FILL_STYLE_NULL and outline_hidden),
        show_polyline=not outline_hidden,
        polygon=PolygonStyle(
            fill_color=fill_color,
            outline_color=outline_color,
            outline_width=outline_width,
        ),
        polyline=PolylineStyle(
            color=outline_color,
            width=outline_width,
            dash_pattern=dash_pattern_for(outline.style),
        ),
    )


def build_style(symbol: Optional[Symbol]) -> Optional[StyleDescriptor]:
    """Build the descriptor for one resolved symbol.

    ``None`` (no symbol) hides every primitive. An unsupported symbol type
    returns ``None`` so the consumer keeps its own defaults.
    """
    if symbol is None:
        return StyleDescriptor.hidden()
    if isinstance(symbol, PictureMarkerSymbol):
        return _picture_style(symbol)
    if isinstance(symbol, SimpleMarkerSymbol):
        return _marker_style(symbol)
    if isinstance(symbol, SimpleLineSymbol):
        return _line_style(symbol)
    if isinstance(symbol, SimpleFillSymbol):
        return _fill_style(symbol)
    if isinstance(symbol, UnsupportedSymbol):
        return None
    raise TypeError(f"Unknown symbol variant: {type(symbol).__name__}")


def style_features(
    renderer: Renderer,
    features: Iterable[FeatureRecord],
) -> List[Tuple[FeatureRecord, Optional[StyleDescriptor]]]:
    """Pair each feature with the style its renderer assigns.

    Features of a layer whose renderer is unsupported get ``None``.
    """
    if not renderer.applies_style:
        return [(feature, None) for feature in features]

    # Renderers reuse a handful of symbols across many features
    built: Dict[int, Optional[StyleDescriptor]] = {}
    styled: List[Tuple[FeatureRecord, Optional[StyleDescriptor]]] = []
    for feature in features:
        symbol = resolve_symbol(renderer, feature.attributes)
        key = id(symbol)
        if key not in built:
            built[key] = build_style(symbol)
        styled.append((feature, built[key]))
    return styled
