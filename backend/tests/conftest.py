import httpx
import pytest

from arcgis_fakes import FakeArcGIS
from featurelayer.settings import cache


@pytest.fixture(autouse=True)
def clear_metadata_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def fake_arcgis(monkeypatch):
    service = FakeArcGIS()
    monkeypatch.setattr("featurelayer.arcgis.httpx.AsyncClient", service.client_factory)
    return service


@pytest.fixture
def connect_error():
    return httpx.ConnectError("connection refused")
