"""Esri JSON geometry to GeoJSON, and styled features to a FeatureCollection."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from shapely.errors import GEOSException
from shapely.geometry import LinearRing, MultiPolygon, Polygon, mapping
from shapely.geometry.polygon import orient

from .features import FeatureRecord
from .symbology.style import StyleDescriptor
from .utils.logging import get_logger

logger = get_logger(__name__)


def _coords(point: Sequence[Any]) -> List[float]:
    # Drop the measure value; keep z when present
    return [float(v) for v in point[:3] if v is not None]


def _point(geometry: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    x, y = geometry.get("x"), geometry.get("y")
    if x is None or y is None or x == "NaN":
        return None
    coordinates = [float(x), float(y)]
    if geometry.get("z") is not None:
        coordinates.append(float(geometry["z"]))
    return {"type": "Point", "coordinates": coordinates}


def _lines(paths: Sequence[Sequence[Any]]) -> Optional[Dict[str, Any]]:
    lines = [[_coords(p) for p in path] for path in paths if len(path) >= 2]
    if not lines:
        return None
    if len(lines) == 1:
        return {"type": "LineString", "coordinates": lines[0]}
    return {"type": "MultiLineString", "coordinates": lines}


def _polygons(rings: Sequence[Sequence[Any]]) -> Optional[Dict[str, Any]]:
    """Group Esri rings into polygons.

    Esri writes exterior rings clockwise and holes counter-clockwise. A hole
    belongs to the first exterior that contains it; a hole with no exterior
    is promoted to a polygon of its own.
    """
    shells: List[Tuple[LinearRing, List[LinearRing]]] = []
    holes: List[LinearRing] = []
    for raw_ring in rings:
        try:
            ring = LinearRing([_coords(p)[:2] for p in raw_ring])
        except (ValueError, GEOSException):
            logger.debug("Skipping degenerate ring with %d points", len(raw_ring))
            continue
        if ring.is_ccw:
            holes.append(ring)
        else:
            shells.append((ring, []))

    for hole in holes:
        for shell, shell_holes in shells:
            if Polygon(shell).covers(hole):
                shell_holes.append(hole)
                break
        else:
            shells.append((hole, []))

    polygons = [orient(Polygon(shell, shell_holes), sign=1.0) for shell, shell_holes in shells]
    if not polygons:
        return None
    if len(polygons) == 1:
        return mapping(polygons[0])
    return mapping(MultiPolygon(polygons))


def esri_geometry_to_geojson(geometry: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if not geometry:
        return None
    if "x" in geometry:
        return _point(geometry)
    if "points" in geometry:
        points = [_coords(p) for p in geometry["points"] or []]
        return {"type": "MultiPoint", "coordinates": points} if points else None
    if "paths" in geometry:
        return _lines(geometry["paths"] or [])
    if "rings" in geometry:
        return _polygons(geometry["rings"] or [])
    logger.warning(f"Unsupported Esri geometry with keys: {sorted(geometry)}")
    return None


def to_geojson_feature(feature: FeatureRecord, style: Optional[StyleDescriptor]) -> Dict[str, Any]:
    # Foreign member; properties hold only the layer attributes
    out: Dict[str, Any] = {
        "type": "Feature",
        "geometry": esri_geometry_to_geojson(feature.geometry),
        "properties": dict(feature.attributes),
        "style": style.model_dump() if style is not None else None,
    }
    if feature.identifier is not None:
        out["id"] = feature.identifier
    return out


def to_geojson_features(
    styled: Iterable[Tuple[FeatureRecord, Optional[StyleDescriptor]]],
) -> List[Dict[str, Any]]:
    return [to_geojson_feature(feature, style) for feature, style in styled]
