"""Catalog search: medicines first, products when no medicine matches."""

from __future__ import annotations

import logging

from backend import BackendUnavailable, MediHutBackend
from schemas import SearchHit, SearchResults

logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 2
SEARCH_ORDER = ("medicine", "product")


def is_query_too_short(query: str) -> bool:
    return len((query or "").strip()) < MIN_QUERY_LENGTH


def search_catalog(query: str, backend: MediHutBackend) -> SearchResults:
    """Run the search. Raises BackendUnavailable only when every kind failed."""
    cleaned = query.strip()
    failures = 0
    for kind in SEARCH_ORDER:
        try:
            payload = backend.search(kind, cleaned)
        except BackendUnavailable as exc:
            logger.error("search_failed", extra={"kind": kind, "error": str(exc)})
            failures += 1
            continue

        hits = [SearchHit.from_record(item, kind) for item in payload["items"] if isinstance(item, dict)]
        logger.info("search_completed", extra={"kind": kind, "count": payload["count"]})
        if hits:
            return SearchResults(query=cleaned, kind=kind, hits=hits, count=max(payload["count"], len(hits)))

    if failures == len(SEARCH_ORDER):
        raise BackendUnavailable("catalog search unavailable")
    return SearchResults(query=cleaned)
