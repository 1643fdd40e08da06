from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from .arcgis import (
    DEFAULT_WHERE,
    STAGE_METADATA,
    ArcGISClient,
    ServiceReference,
    TransportFailure,
    effective_where,
    parse_service_reference,
)
from .features import PageResult
from .geojson import to_geojson_features
from .models import LayerCollectionProperties, LayerMetadata, StyledFeatureCollection
from .paging import fetch_all
from .settings import ARCGIS_TIMEOUT, FEATURES_PER_REQUEST, MAX_FEATURES, cache
from .symbology.style import style_features
from .utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class LayerOptions:
    where: str = DEFAULT_WHERE
    layer_def: Optional[str] = None
    features_per_request: int = FEATURES_PER_REQUEST
    max_features: int = MAX_FEATURES
    use_style_information_from_service: bool = True


async def load_layer_metadata(client: ArcGISClient, reference: ServiceReference) -> LayerMetadata:
    """Fetch and parse the layer description, using the metadata cache."""
    cache_key = {'layer_url': reference.layer_url}
    document = cache.get(cache_key)
    if document is None:
        document = await client.fetch_layer_metadata(reference)
        cache.set(cache_key, document)

    try:
        return LayerMetadata.from_esri(document)
    except ValueError as exc:
        raise TransportFailure(f"Layer metadata could not be parsed: {exc}", stage=STAGE_METADATA) from exc


async def describe_layer(url: str, timeout: int = ARCGIS_TIMEOUT) -> LayerMetadata:
    reference = parse_service_reference(url)
    async with ArcGISClient(timeout=timeout) as client:
        return await load_layer_metadata(client, reference)


def _max_features_notice(metadata: LayerMetadata, max_features: int) -> str:
    name = metadata.name or "This layer"
    return (
        f"{name} has reached the maximum of {max_features} features. "
        "Only part of the layer is included."
    )


async def load_styled_layer(
    url: str,
    options: Optional[LayerOptions] = None,
    timeout: int = ARCGIS_TIMEOUT,
) -> StyledFeatureCollection:
    """Fetch every feature of a layer and attach the service's symbology.

    The URL is validated before any request is made. A failed metadata or page
    request raises :class:`TransportFailure` and no partial layer is returned.
    """
    options = options or LayerOptions()
    reference = parse_service_reference(url)
    where = effective_where(options.where, options.layer_def)
    page_size = options.features_per_request

    async with ArcGISClient(timeout=timeout) as client:
        metadata = await load_layer_metadata(client, reference)

        async def page_fetch(offset: Optional[int]) -> PageResult:
            return await client.fetch_page(reference, where, page_size, offset=offset)

        result = await fetch_all(
            page_fetch,
            page_size=page_size,
            max_features=options.max_features,
            pagination_supported=metadata.supportsPagination,
        )

    if options.use_style_information_from_service and metadata.has_drawing_info:
        styled = style_features(metadata.renderer, result.features)
    else:
        styled = [(feature, None) for feature in result.features]

    notice = None
    if result.reached_max_features:
        notice = _max_features_notice(metadata, options.max_features)
        logger.warning(notice, extra={'layer_url': reference.layer_url})

    properties = LayerCollectionProperties(
        name=metadata.name,
        featureCount=len(result.features),
        pagesFetched=result.pages_fetched,
        reachedMaxFeatures=result.reached_max_features,
        notice=notice,
        rendererType=metadata.renderer.type,
    )
    return StyledFeatureCollection(features=to_geojson_features(styled), properties=properties)


def options_from_request(payload: Dict[str, Any]) -> LayerOptions:
    options = LayerOptions()
    if payload.get('where'):
        options.where = payload['where']
    options.layer_def = payload.get('layerDef')
    if payload.get('featuresPerRequest'):
        options.features_per_request = int(payload['featuresPerRequest'])
    if payload.get('maxFeatures'):
        options.max_features = int(payload['maxFeatures'])
    options.use_style_information_from_service = bool(
        payload.get('useStyleInformationFromService', True)
    )
    return options
