"""Reassemble a whole layer from a paged query endpoint.

FeatureServer layers cap how many features one query returns and report
``exceededTransferLimit`` when more exist. The total count is not requested up
front (``returnCountOnly`` times out on large services), so pages are pulled
one after another until the service runs dry, starts repeating itself, or the
feature cap is passed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, List, Optional, Set

from .features import FeatureRecord, PageResult
from .utils.logging import get_logger

logger = get_logger(__name__)

PageFetch = Callable[[Optional[int]], Awaitable[PageResult]]


@dataclass
class FetchState:
    accumulated_features: List[FeatureRecord] = field(default_factory=list)
    seen_ids: Set[Any] = field(default_factory=set)
    current_offset: int = 0
    exceeded_limit: bool = False
    pages_fetched: int = 0


@dataclass(frozen=True)
class FetchResult:
    features: List[FeatureRecord]
    pages_fetched: int
    reached_max_features: bool = False


async def fetch_all(
    page_fetch: PageFetch,
    page_size: int,
    max_features: int,
    pagination_supported: bool,
) -> FetchResult:
    """Fetch every feature of a layer through ``page_fetch``.

    Without pagination support a single request is made with no offset and its
    features are returned as-is. With pagination, ``max_features`` is a soft
    cap: the loop only checks it before requesting the next page, so the
    result can exceed it by up to one page.

    Exceptions from ``page_fetch`` propagate unchanged and nothing gathered so
    far is returned.
    """
    if not pagination_supported:
        page = await page_fetch(None)
        features = list(page.features)
        return FetchResult(
            features=features,
            pages_fetched=1,
            reached_max_features=len(features) >= max_features,
        )

    if page_size < 1:
        raise ValueError("page_size must be a positive integer")

    first = await page_fetch(0)
    state = FetchState(
        accumulated_features=list(first.features),
        seen_ids=set(first.identifiers),
        exceeded_limit=first.exceeded_limit,
        pages_fetched=1,
    )

    while len(state.accumulated_features) <= max_features and state.exceeded_limit:
        state.current_offset += page_size
        page = await page_fetch(state.current_offset)
        state.pages_fetched += 1

        if not page.features:
            logger.debug("Empty page, layer exhausted", extra={'offset': state.current_offset})
            break

        new_ids = page.identifiers
        if all(identifier in state.seen_ids for identifier in new_ids):
            # The service ignored the offset and handed back data we already hold
            logger.warning(
                "Page repeated previously fetched features; stopping",
                extra={'offset': state.current_offset, 'page_features': len(new_ids)},
            )
            break

        state.seen_ids.update(new_ids)
        state.accumulated_features.extend(page.features)
        state.exceeded_limit = page.exceeded_limit

    logger.info(
        "Fetched %d features in %d pages",
        len(state.accumulated_features),
        state.pages_fetched,
    )
    return FetchResult(
        features=state.accumulated_features,
        pages_fetched=state.pages_fetched,
        reached_max_features=len(state.accumulated_features) >= max_features,
    )
