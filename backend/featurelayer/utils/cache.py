import hashlib
from typing import Any, Dict, Optional

import orjson
from cachetools import TTLCache

from .logging import get_logger

logger = get_logger(__name__)


class MetadataCache:
    """TTL cache for layer metadata documents, keyed by request parameters."""

    def __init__(self, max_size: int = 256, ttl: int = 900):
        self.cache: TTLCache = TTLCache(maxsize=max_size, ttl=ttl)

    @staticmethod
    def make_key(request: Dict[str, Any]) -> str:
        serialized = orjson.dumps(request, option=orjson.OPT_SORT_KEYS)
        return hashlib.sha256(serialized).hexdigest()[:16]

    def get(self, request: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        key = self.make_key(request)
        document = self.cache.get(key)
        if document is None:
            logger.debug("Metadata cache miss", extra={'cache_key': key})
            return None
        logger.debug("Metadata cache hit", extra={'cache_key': key})
        return document

    def set(self, request: Dict[str, Any], document: Dict[str, Any]) -> None:
        self.cache[self.make_key(request)] = document

    def clear(self) -> None:
        self.cache.clear()


_cache: Optional[MetadataCache] = None


def get_cache(ttl: int = 900, max_size: int = 256) -> MetadataCache:
    """Return the process-wide metadata cache."""
    global _cache
    if _cache is None:
        _cache = MetadataCache(max_size=max_size, ttl=ttl)
        logger.info(f"Initialized metadata cache with TTL={ttl}s, max_size={max_size}")
    return _cache
