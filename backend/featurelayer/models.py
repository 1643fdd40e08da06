from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from .symbology.renderers import Renderer, UnsupportedRenderer, parse_renderer


def replace_underscores(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value.replace("_", " ")


def _section(document: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = document.get(key) or {}
    if not isinstance(value, dict):
        raise ValueError(f"'{key}' is a {type(value).__name__}, not an object")
    return value


class LayerMetadata(BaseModel):
    """The parts of a FeatureServer layer description this service uses."""

    name: Optional[str] = None
    description: Optional[str] = None
    copyrightText: Optional[str] = None
    dataCustodian: Optional[str] = None
    geometryType: Optional[str] = None
    maxScale: Optional[float] = None
    supportsPagination: bool = False
    renderer: Renderer = UnsupportedRenderer()

    @field_validator("renderer", mode="before")
    @classmethod
    def _parse_renderer(cls, value: Any) -> Renderer:
        return parse_renderer(value)

    @classmethod
    def from_esri(cls, document: Dict[str, Any]) -> "LayerMetadata":
        """Parse a layer description.

        Raises ``ValueError`` (``ValidationError`` included) when the document
        or one of its nested sections is not shaped like a layer description.
        """
        if not isinstance(document, dict):
            raise ValueError(f"Layer description is a {type(document).__name__}, not an object")
        name = document.get("name")
        if isinstance(name, str):
            name = replace_underscores(name)
        author = _section(document, "documentInfo").get("Author")
        capabilities = _section(document, "advancedQueryCapabilities")
        drawing_info = _section(document, "drawingInfo")
        return cls(
            name=name or None,
            description=document.get("description") or None,
            copyrightText=document.get("copyrightText") or None,
            dataCustodian=author or None,
            geometryType=document.get("geometryType"),
            maxScale=document.get("maxScale"),
            supportsPagination=bool(capabilities.get("supportsPagination")),
            renderer=drawing_info.get("renderer"),
        )

    @property
    def has_drawing_info(self) -> bool:
        return self.renderer.applies_style


class LayerRequest(BaseModel):
    url: str = Field(..., min_length=1)

    @field_validator("url")
    @classmethod
    def strip_url(cls, value: str) -> str:
        return value.strip()


class LayerFeaturesRequest(LayerRequest):
    where: str = "1=1"
    layerDef: Optional[str] = None
    featuresPerRequest: Optional[int] = Field(default=None, ge=1, le=10000)
    maxFeatures: Optional[int] = Field(default=None, ge=1)
    useStyleInformationFromService: bool = True


class LayerMetadataResponse(BaseModel):
    url: str
    name: Optional[str] = None
    description: Optional[str] = None
    copyrightText: Optional[str] = None
    dataCustodian: Optional[str] = None
    geometryType: Optional[str] = None
    maxScale: Optional[float] = None
    supportsPagination: bool = False
    rendererType: Optional[str] = None


class LayerCollectionProperties(BaseModel):
    name: Optional[str] = None
    featureCount: int
    pagesFetched: int
    reachedMaxFeatures: bool = False
    notice: Optional[str] = None
    rendererType: Optional[str] = None


class StyledFeatureCollection(BaseModel):
    type: str = "FeatureCollection"
    features: List[Dict[str, Any]]
    properties: LayerCollectionProperties


class ErrorResponse(BaseModel):
    error: str
    detail: Optional[str] = None
    stage: Optional[str] = None
    request_id: Optional[str] = None


class HealthResponse(BaseModel):
    status: str
    timestamp: str
    version: Optional[str] = None
