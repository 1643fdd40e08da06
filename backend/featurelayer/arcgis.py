import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional
from urllib.parse import urlsplit, urlunsplit

import httpx
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from .features import MalformedPage, PageResult
from .settings import ARCGIS_TIMEOUT
from .utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_WHERE = "1=1"
OUTPUT_SPATIAL_REFERENCE = "4326"

STAGE_METADATA = "metadata"
STAGE_PAGE = "page"

_LAYER_PATH_PATTERN = re.compile(r"^(.*FeatureServer)/(\d+)")


class ArcGISError(Exception):
    """Raised when a FeatureServer layer cannot be read."""

    def __init__(self, message: str, code: Optional[int] = None):
        super().__init__(message)
        self.code = code


class InvalidServiceReference(ArcGISError):
    """The URL does not point at a ``.../FeatureServer/<layerId>`` layer."""


class TransportFailure(ArcGISError):
    """A metadata or page request failed or returned an unusable body."""

    def __init__(
        self,
        message: str,
        stage: str,
        code: Optional[int] = None,
        offset: Optional[int] = None,
    ):
        super().__init__(message, code=code)
        self.stage = stage
        self.offset = offset


@dataclass(frozen=True)
class ServiceReference:
    service_url: str
    layer_id: int

    @property
    def layer_url(self) -> str:
        return f"{self.service_url}/{self.layer_id}"

    @property
    def query_url(self) -> str:
        return f"{self.layer_url}/query"


def _strip_query(url: str) -> str:
    parts = urlsplit(url.strip())
    return urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))


def parse_service_reference(url: Optional[str]) -> ServiceReference:
    """Split a layer URL into its FeatureServer base and numeric layer id."""
    if not url or not url.strip():
        raise InvalidServiceReference("A FeatureServer layer URL is required")
    cleaned = _strip_query(url)
    match = _LAYER_PATH_PATTERN.match(cleaned)
    if not match:
        raise InvalidServiceReference(
            f"'{cleaned}' is not a FeatureServer layer URL (expected .../FeatureServer/<layerId>)"
        )
    return ServiceReference(service_url=match.group(1), layer_id=int(match.group(2)))


def effective_where(where: Optional[str], layer_def: Optional[str]) -> str:
    # Older catalog entries filtered with ``layerDef``; honour it while ``where``
    # is left at its default.
    where = (where or "").strip() or DEFAULT_WHERE
    if where == DEFAULT_WHERE and layer_def and layer_def.strip():
        return layer_def.strip()
    return where


def build_query_params(
    where: str = DEFAULT_WHERE,
    result_offset: Optional[int] = None,
    result_record_count: Optional[int] = None,
) -> Dict[str, Any]:
    params: Dict[str, Any] = {
        'f': 'json',
        'where': where,
        'outFields': '*',
        'outSR': OUTPUT_SPATIAL_REFERENCE,
    }
    if result_offset is not None:
        params['resultRecordCount'] = result_record_count
        params['resultOffset'] = result_offset
    return params


def _raise_for_error_payload(payload: Any, stage: str, offset: Optional[int] = None) -> Dict[str, Any]:
    if not isinstance(payload, dict):
        raise TransportFailure("ArcGIS returned a non-object JSON document", stage=stage, offset=offset)
    if 'error' in payload:
        error_info = payload['error'] or {}
        if not isinstance(error_info, dict):
            error_info = {'message': str(error_info)}
        message = error_info.get('message') or 'ArcGIS API error'
        details = error_info.get('details')
        if isinstance(details, list):
            detail_text = '; '.join(str(item) for item in details if item)
            if detail_text:
                message = f"{message}: {detail_text}"
        logger.error(f"ArcGIS API error during {stage} request: {message}")
        raise TransportFailure(message, stage=stage, code=error_info.get('code'), offset=offset)
    return payload


class ArcGISClient:
    """Async access to one FeatureServer layer's metadata and query pages."""

    def __init__(self, timeout: int = ARCGIS_TIMEOUT):
        self.timeout = timeout

    async def __aenter__(self):
        self.session = httpx.AsyncClient(timeout=self.timeout)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.session.aclose()

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=4, max=10),
        retry=retry_if_exception_type(httpx.TransportError),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True
    )
    async def _get_metadata(self, url: str) -> httpx.Response:
        response = await self.session.get(url, params={'f': 'json'})
        response.raise_for_status()
        return response

    async def fetch_layer_metadata(self, reference: ServiceReference) -> Dict[str, Any]:
        """Return the raw layer description (``{layerUrl}?f=json``)."""
        logger.info("Loading layer metadata", extra={'layer_url': reference.layer_url})
        try:
            response = await self._get_metadata(reference.layer_url)
            payload = response.json()
        except httpx.HTTPError as exc:
            raise TransportFailure(f"Failed to load layer metadata: {exc}", stage=STAGE_METADATA) from exc
        except ValueError as exc:
            raise TransportFailure("Layer metadata is not valid JSON", stage=STAGE_METADATA) from exc
        return _raise_for_error_payload(payload, STAGE_METADATA)

    async def fetch_page(
        self,
        reference: ServiceReference,
        where: str,
        page_size: int,
        offset: Optional[int] = None,
    ) -> PageResult:
        """Run one query. Not retried: a failure aborts the whole fetch."""
        params = build_query_params(where, result_offset=offset, result_record_count=page_size)

        logger.info(
            "Querying layer page",
            extra={'layer_url': reference.layer_url, 'offset': offset, 'page_size': page_size}
        )

        try:
            response = await self.session.get(reference.query_url, params=params)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPError as exc:
            raise TransportFailure(f"Feature query failed: {exc}", stage=STAGE_PAGE, offset=offset) from exc
        except ValueError as exc:
            raise TransportFailure("Feature query returned invalid JSON", stage=STAGE_PAGE, offset=offset) from exc

        payload = _raise_for_error_payload(payload, STAGE_PAGE, offset)
        try:
            page = PageResult.from_esri(payload)
        except MalformedPage as exc:
            raise TransportFailure(
                f"Feature query returned a malformed page: {exc}", stage=STAGE_PAGE, offset=offset
            ) from exc
        logger.debug(
            f"Page returned {len(page.features)} features",
            extra={'offset': offset, 'exceeded_limit': page.exceeded_limit}
        )
        return page
