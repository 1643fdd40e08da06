"""Feature records and query pages as returned by a FeatureServer layer."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

IDENTIFIER_FIELD = "OBJECTID"


class MalformedPage(ValueError):
    """A query response whose features are not shaped like Esri JSON."""


def find_identifier(attributes: Mapping[str, Any]) -> Optional[Any]:
    """Return the ``OBJECTID`` attribute, matching the name case-insensitively."""
    if IDENTIFIER_FIELD in attributes:
        return attributes[IDENTIFIER_FIELD]
    lowered = IDENTIFIER_FIELD.lower()
    if lowered in attributes:
        return attributes[lowered]
    for key, value in attributes.items():
        if isinstance(key, str) and key.lower() == lowered:
            return value
    return None


@dataclass(frozen=True)
class FeatureRecord:
    geometry: Optional[Dict[str, Any]]
    attributes: Mapping[str, Any]
    identifier: Optional[Any] = None

    @classmethod
    def from_esri(cls, feature: Any) -> "FeatureRecord":
        if not isinstance(feature, Mapping):
            raise MalformedPage(f"Feature is a {type(feature).__name__}, not an object")
        raw_attributes = feature.get("attributes") or {}
        if not isinstance(raw_attributes, Mapping):
            raise MalformedPage(f"Feature attributes are a {type(raw_attributes).__name__}, not an object")
        geometry = feature.get("geometry")
        if geometry is not None and not isinstance(geometry, Mapping):
            raise MalformedPage(f"Feature geometry is a {type(geometry).__name__}, not an object")
        attributes = dict(raw_attributes)
        return cls(
            geometry=geometry,
            attributes=MappingProxyType(attributes),
            identifier=find_identifier(attributes),
        )


@dataclass(frozen=True)
class PageResult:
    """One query response: its features and the ``exceededTransferLimit`` flag."""

    features: Tuple[FeatureRecord, ...] = ()
    exceeded_limit: bool = False

    @classmethod
    def from_esri(cls, payload: Mapping[str, Any]) -> "PageResult":
        raw_features = payload.get("features") or []
        if not isinstance(raw_features, list):
            raise MalformedPage(f"'features' is a {type(raw_features).__name__}, not a list")
        return cls(
            features=tuple(FeatureRecord.from_esri(feature) for feature in raw_features),
            exceeded_limit=payload.get("exceededTransferLimit") is True,
        )

    @property
    def identifiers(self) -> List[Any]:
        return [feature.identifier for feature in self.features]
