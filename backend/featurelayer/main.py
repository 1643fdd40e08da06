import uuid
from datetime import datetime, timezone
from typing import Optional

import uvicorn
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .arcgis import InvalidServiceReference, TransportFailure
from .layer import describe_layer, load_styled_layer, options_from_request
from .models import (
    ErrorResponse,
    HealthResponse,
    LayerFeaturesRequest,
    LayerMetadataResponse,
    LayerRequest,
    StyledFeatureCollection,
)
from .settings import ARCGIS_TIMEOUT, FRONTEND_ORIGIN, LOG_LEVEL
from .utils.logging import get_logger, setup_logging

setup_logging(LOG_LEVEL)
logger = get_logger(__name__)

app = FastAPI(
    title="Feature Layer API",
    description="FeatureServer layer ingestion with service symbology",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc"
)

origins = [origin.strip() for origin in FRONTEND_ORIGIN.split(",") if origin.strip()]
allow_origin_regex: Optional[str] = r"https?://.*"
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=False,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
    allow_origin_regex=allow_origin_regex,
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@app.middleware("http")
async def request_logging_middleware(request: Request, call_next):
    """Log requests with timing and add request ID."""
    request_id = str(uuid.uuid4())[:8]
    start_time = _utcnow()
    request.state.request_id = request_id

    logger.info(
        "Request started",
        extra={
            'request_id': request_id,
            'method': request.method,
            'url': str(request.url),
            'client_ip': request.client.host if request.client else None
        }
    )

    try:
        response = await call_next(request)
    except Exception as e:
        duration = (_utcnow() - start_time).total_seconds() * 1000
        logger.error(
            "Request failed",
            extra={
                'request_id': request_id,
                'method': request.method,
                'url': str(request.url),
                'duration_ms': round(duration, 2),
                'error': str(e)
            },
            exc_info=True
        )
        raise

    duration = (_utcnow() - start_time).total_seconds() * 1000
    logger.info(
        "Request completed",
        extra={
            'request_id': request_id,
            'method': request.method,
            'url': str(request.url),
            'status_code': response.status_code,
            'duration_ms': round(duration, 2)
        }
    )
    response.headers["X-Request-ID"] = request_id
    return response


def _request_id(request: Request) -> str:
    return getattr(request.state, 'request_id', 'unknown')


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Handle HTTP exceptions with structured error response."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=str(exc.detail), request_id=_request_id(request)).model_dump()
    )


@app.exception_handler(InvalidServiceReference)
async def invalid_reference_handler(request: Request, exc: InvalidServiceReference):
    return JSONResponse(
        status_code=400,
        content=ErrorResponse(error=str(exc), request_id=_request_id(request)).model_dump()
    )


@app.exception_handler(TransportFailure)
async def transport_failure_handler(request: Request, exc: TransportFailure):
    logger.error(
        f"ArcGIS {exc.stage} request failed: {exc}",
        extra={'stage': exc.stage, 'offset': exc.offset, 'code': exc.code}
    )
    return JSONResponse(
        status_code=502,
        content=ErrorResponse(
            error=str(exc),
            stage=exc.stage,
            request_id=_request_id(request)
        ).model_dump()
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle general exceptions with structured error response."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error="Internal server error",
            detail=str(exc) if LOG_LEVEL == "DEBUG" else None,
            request_id=_request_id(request)
        ).model_dump()
    )


@app.get("/healthz", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return HealthResponse(
        status="ok",
        timestamp=_utcnow().isoformat(),
        version=__version__
    )


@app.post("/api/layer/metadata", response_model=LayerMetadataResponse)
async def layer_metadata(request: LayerRequest):
    """Describe a FeatureServer layer: name, attribution, paging and renderer."""
    metadata = await describe_layer(request.url, timeout=ARCGIS_TIMEOUT)
    return LayerMetadataResponse(
        url=request.url,
        name=metadata.name,
        description=metadata.description,
        copyrightText=metadata.copyrightText,
        dataCustodian=metadata.dataCustodian,
        geometryType=metadata.geometryType,
        maxScale=metadata.maxScale,
        supportsPagination=metadata.supportsPagination,
        rendererType=metadata.renderer.type,
    )


@app.post("/api/layer/features", response_model=StyledFeatureCollection)
async def layer_features(request: LayerFeaturesRequest):
    """Fetch every feature of a layer as GeoJSON with per-feature styles."""
    options = options_from_request(request.model_dump())
    collection = await load_styled_layer(request.url, options, timeout=ARCGIS_TIMEOUT)
    logger.info(
        f"Returning {collection.properties.featureCount} styled features",
        extra={'url': request.url, 'reached_max_features': collection.properties.reachedMaxFeatures}
    )
    return collection


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
