"""Typed model of the Esri ``drawingInfo.renderer`` document.

Renderers and symbols are closed unions keyed on their ``type`` string. Types
this package does not understand are kept as explicit ``Unsupported*``
variants so that callers can skip styling without guessing.

See https://developers.arcgis.com/web-map-specification/objects/symbol/
"""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Mapping, Optional, Type, Union

from pydantic import BaseModel, ConfigDict, field_validator

RENDERER_SIMPLE = "simple"
RENDERER_UNIQUE_VALUE = "uniqueValue"
RENDERER_CLASS_BREAKS = "classBreaks"

FILL_STYLE_NULL = "esriSFSNull"


def format_value(value: Any) -> str:
    """Render an attribute value the way unique-value keys are written."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class _EsriModel(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)


class Outline(_EsriModel):
    type: Optional[str] = None
    color: Optional[List[int]] = None
    width: Optional[float] = None
    style: Optional[str] = None


class PictureMarkerSymbol(_EsriModel):
    type: Literal["esriPMS"] = "esriPMS"
    contentType: Optional[str] = None
    imageData: Optional[str] = None
    url: Optional[str] = None
    xoffset: Optional[float] = None
    yoffset: Optional[float] = None
    angle: Optional[float] = None
    width: Optional[float] = None
    height: Optional[float] = None

    @property
    def image_url(self) -> Optional[str]:
        if self.imageData:
            return f"data:{self.contentType};base64,{self.imageData}"
        return self.url


class SimpleMarkerSymbol(_EsriModel):
    type: Literal["esriSMS"] = "esriSMS"
    color: Optional[List[int]] = None
    size: Optional[float] = None
    style: Optional[str] = None
    angle: Optional[float] = None
    outline: Optional[Outline] = None


class SimpleLineSymbol(_EsriModel):
    type: Literal["esriSLS"] = "esriSLS"
    color: Optional[List[int]] = None
    width: Optional[float] = None
    style: Optional[str] = None


class SimpleFillSymbol(_EsriModel):
    type: Literal["esriSFS"] = "esriSFS"
    color: Optional[List[int]] = None
    style: Optional[str] = None
    outline: Optional[Outline] = None


class UnsupportedSymbol(_EsriModel):
    """A symbol type with no styling support (text symbols, CIM, ...)."""

    type: Optional[str] = None


Symbol = Union[
    PictureMarkerSymbol,
    SimpleMarkerSymbol,
    SimpleLineSymbol,
    SimpleFillSymbol,
    UnsupportedSymbol,
]

_SYMBOL_TYPES: Dict[str, Type[_EsriModel]] = {
    "esriPMS": PictureMarkerSymbol,
    "esriSMS": SimpleMarkerSymbol,
    "esriSLS": SimpleLineSymbol,
    "esriSFS": SimpleFillSymbol,
}


def parse_symbol(document: Any) -> Optional[Symbol]:
    """Parse a symbol document; ``None`` means "no symbol"."""
    if document is None:
        return None
    if isinstance(document, _EsriModel):
        return document  # type: ignore[return-value]
    if not isinstance(document, Mapping):
        raise ValueError(f"Symbol must be an object, got {type(document).__name__}")
    symbol_type = document.get("type")
    model = _SYMBOL_TYPES.get(symbol_type) if isinstance(symbol_type, str) else None
    if model is None:
        return UnsupportedSymbol(type=symbol_type if isinstance(symbol_type, str) else None)
    return model.model_validate(document)  # type: ignore[return-value]


class _SymbolHolder(_EsriModel):
    @field_validator("symbol", "defaultSymbol", mode="before", check_fields=False)
    @classmethod
    def _parse_symbol(cls, value: Any) -> Optional[Symbol]:
        return parse_symbol(value)


class SimpleRenderer(_SymbolHolder):
    type: Literal["simple"] = "simple"
    symbol: Optional[Symbol] = None

    @property
    def applies_style(self) -> bool:
        return True


class UniqueValueInfo(_SymbolHolder):
    value: str
    symbol: Optional[Symbol] = None

    @field_validator("value", mode="before")
    @classmethod
    def _stringify_value(cls, value: Any) -> str:
        return "" if value is None else format_value(value)


class UniqueValueRenderer(_SymbolHolder):
    type: Literal["uniqueValue"] = "uniqueValue"
    field1: str
    field2: Optional[str] = None
    field3: Optional[str] = None
    fieldDelimiter: Optional[str] = None
    uniqueValueInfos: List[UniqueValueInfo] = []
    defaultSymbol: Optional[Symbol] = None

    @property
    def applies_style(self) -> bool:
        return True


class ClassBreakInfo(_SymbolHolder):
    classMaxValue: float
    # Informational only; breaks are matched on classMaxValue alone
    classMinValue: Optional[float] = None
    symbol: Optional[Symbol] = None


class ClassBreaksRenderer(_SymbolHolder):
    type: Literal["classBreaks"] = "classBreaks"
    field: str
    classBreakInfos: List[ClassBreakInfo] = []
    defaultSymbol: Optional[Symbol] = None

    @property
    def applies_style(self) -> bool:
        return True


class UnsupportedRenderer(_EsriModel):
    """Any renderer type outside simple/uniqueValue/classBreaks."""

    type: Optional[str] = None

    @property
    def applies_style(self) -> bool:
        return False


Renderer = Union[SimpleRenderer, UniqueValueRenderer, ClassBreaksRenderer, UnsupportedRenderer]

_RENDERER_TYPES: Dict[str, Type[_EsriModel]] = {
    RENDERER_SIMPLE: SimpleRenderer,
    RENDERER_UNIQUE_VALUE: UniqueValueRenderer,
    RENDERER_CLASS_BREAKS: ClassBreaksRenderer,
}


def parse_renderer(document: Any) -> Renderer:
    """Parse ``drawingInfo.renderer``.

    Unknown or missing ``type`` values produce :class:`UnsupportedRenderer`.
    A known type with a malformed body raises ``pydantic.ValidationError``.
    """
    if not isinstance(document, Mapping):
        return UnsupportedRenderer()
    renderer_type = document.get("type")
    model = _RENDERER_TYPES.get(renderer_type) if isinstance(renderer_type, str) else None
    if model is None:
        return UnsupportedRenderer(type=renderer_type if isinstance(renderer_type, str) else None)
    return model.model_validate(document)  # type: ignore[return-value]


__all__ = [
    "ClassBreakInfo",
    "ClassBreaksRenderer",
    "Outline",
    "PictureMarkerSymbol",
    "Renderer",
    "SimpleFillSymbol",
    "SimpleLineSymbol",
    "SimpleMarkerSymbol",
    "SimpleRenderer",
    "Symbol",
    "UniqueValueInfo",
    "UniqueValueRenderer",
    "UnsupportedRenderer",
    "UnsupportedSymbol",
    "format_value",
    "parse_renderer",
    "parse_symbol",
]
