from __future__ import annotations

import math
from typing import Any, Mapping, Optional

from ..utils.logging import get_logger
from .renderers import (
    ClassBreaksRenderer,
    Renderer,
    SimpleRenderer,
    Symbol,
    UniqueValueRenderer,
    UnsupportedRenderer,
    format_value,
)

logger = get_logger(__name__)

Attributes = Mapping[str, Any]


def _lookup(attributes: Attributes, field: Optional[str]) -> Optional[Any]:
    if not field:
        return None
    return attributes.get(field)


def _present(value: Any) -> bool:
    return value is not None and value != ""


def _as_number(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return None if math.isnan(number) else number


def unique_value_key(renderer: UniqueValueRenderer, attributes: Attributes) -> Optional[str]:
    """Build the composite ``field1[<d>field2[<d>field3]]`` lookup key."""
    first = _lookup(attributes, renderer.field1)
    if first is None:
        return None
    key = format_value(first)

    delimiter = renderer.fieldDelimiter
    if delimiter and renderer.field2:
        second = _lookup(attributes, renderer.field2)
        if _present(second):
            key += delimiter + format_value(second)
            if renderer.field3:
                third = _lookup(attributes, renderer.field3)
                if _present(third):
                    key += delimiter + format_value(third)
    return key


def _resolve_unique_value(renderer: UniqueValueRenderer, attributes: Optional[Attributes]) -> Optional[Symbol]:
    if attributes is None:
        return renderer.defaultSymbol
    key = unique_value_key(renderer, attributes)
    if key is None:
        return renderer.defaultSymbol
    for info in renderer.uniqueValueInfos:
        if info.value == key:
            return info.symbol if info.symbol is not None else renderer.defaultSymbol
    return renderer.defaultSymbol


def _resolve_class_breaks(renderer: ClassBreaksRenderer, attributes: Optional[Attributes]) -> Optional[Symbol]:
    if attributes is None:
        return renderer.defaultSymbol
    raw = _lookup(attributes, renderer.field)
    value = _as_number(raw)
    if value is None:
        logger.debug(
            "Class breaks field is missing or not numeric",
            extra={'field': renderer.field, 'value': raw},
        )
        return renderer.defaultSymbol
    for info in renderer.classBreakInfos:
        if value <= info.classMaxValue:
            return info.symbol
    return renderer.defaultSymbol


def resolve_symbol(renderer: Renderer, attributes: Optional[Attributes]) -> Optional[Symbol]:
    """Return the symbol that ``renderer`` assigns to a feature.

    ``None`` is a real answer ("no symbol", hide the feature) for the three
    supported renderers. For :class:`UnsupportedRenderer` it is returned too,
    so check ``renderer.applies_style`` before treating it as a hide signal.
    Data problems in ``attributes`` never raise; they fall back to the
    renderer's default symbol.
    """
    if isinstance(renderer, SimpleRenderer):
        return renderer.symbol
    if isinstance(renderer, UniqueValueRenderer):
        return _resolve_unique_value(renderer, attributes)
    if isinstance(renderer, ClassBreaksRenderer):
        return _resolve_class_breaks(renderer, attributes)
    if isinstance(renderer, UnsupportedRenderer):
        return None
    raise TypeError(f"Unknown renderer variant: {type(renderer).__name__}")
