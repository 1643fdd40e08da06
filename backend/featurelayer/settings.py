import os

from .utils.cache import get_cache

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
FRONTEND_ORIGIN = os.getenv("FRONTEND_ORIGIN", "http://localhost:3000")
ARCGIS_TIMEOUT = int(os.getenv("ARCGIS_TIMEOUT_S", "20"))
METADATA_CACHE_TTL = int(os.getenv("METADATA_CACHE_TTL", "900"))

# Paging defaults for feature queries
FEATURES_PER_REQUEST = int(os.getenv("FEATURES_PER_REQUEST", "1000"))
MAX_FEATURES = int(os.getenv("MAX_FEATURES", "5000"))

cache = get_cache(ttl=METADATA_CACHE_TTL)
