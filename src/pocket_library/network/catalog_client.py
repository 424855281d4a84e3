"""Open Library search client."""

import logging
from typing import Optional

import httpx

from pocket_library.database.models import DEFAULT_COVER_BASE_URL, CatalogResult
from pocket_library.errors import CatalogSearchError
from pocket_library.utils.constants import (
    CATALOG_SEARCH_FIELDS,
    DEFAULT_SEARCH_LIMIT,
)

logger = logging.getLogger(__name__)


def _as_tuple(value) -> tuple:
    if not value:
        return ()
    if isinstance(value, str):
        return (value,)
    return tuple(str(v) for v in value)


def _as_int(value) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def parse_search_response(payload: dict,
                          cover_base_url: str = DEFAULT_COVER_BASE_URL
                          ) -> list[CatalogResult]:
    """Turn a ``search.json`` body into CatalogResults.

    Docs without a key cannot be saved later, so they are dropped.
    """
    docs = payload.get("docs") or []
    results = []
    for doc in docs:
        if not isinstance(doc, dict):
            continue
        key = doc.get("key")
        if not key:
            logger.debug(f"Skipping catalog doc without key: {doc!r}")
            continue
        results.append(CatalogResult(
            key=str(key),
            title=str(doc.get("title") or ""),
            authors=_as_tuple(doc.get("author_name")),
            first_publish_year=_as_int(doc.get("first_publish_year")),
            cover_image_id=_as_int(doc.get("cover_i")),
            isbn=_as_tuple(doc.get("isbn")),
            publisher=_as_tuple(doc.get("publisher")),
            language=_as_tuple(doc.get("language")),
            cover_base_url=cover_base_url,
        ))
    return results


class OpenLibraryClient:
    """Stateless request/response wrapper around Open Library search.

    Performs no connectivity check and persists nothing.
    """

    def __init__(self, base_url: str = "https://openlibrary.org",
                 cover_base_url: str = DEFAULT_COVER_BASE_URL,
                 timeout: float = 30.0,
                 user_agent: str = "PocketLibrary/1.0",
                 transport: Optional[httpx.BaseTransport] = None):
        self.cover_base_url = cover_base_url
        self.client = httpx.Client(
            base_url=base_url.rstrip("/") + "/",
            timeout=timeout,
            headers={
                "Accept": "application/json",
                "User-Agent": user_agent,
            },
            transport=transport,
        )

    def search(self, query: str,
               limit: int = DEFAULT_SEARCH_LIMIT) -> list[CatalogResult]:
        """Search the catalog. Raises CatalogSearchError on any failure."""
        params = {
            "q": query,
            "fields": CATALOG_SEARCH_FIELDS,
            "limit": limit,
        }
        try:
            response = self.client.get("search.json", params=params)
        except httpx.HTTPError as e:
            logger.error(f"Error searching online: {e}")
            raise CatalogSearchError(None, f"Search failed: {e}") from e

        if not response.is_success:
            error_msg = (
                f"Search failed: {response.status_code} "
                f"{response.reason_phrase}"
            )
            logger.error(error_msg)
            raise CatalogSearchError(response.status_code, error_msg)

        try:
            payload = response.json()
        except ValueError as e:
            raise CatalogSearchError(
                response.status_code, "Search failed: malformed response"
            ) from e
        if not isinstance(payload, dict):
            raise CatalogSearchError(
                response.status_code, "Search failed: malformed response"
            )

        results = parse_search_response(payload, self.cover_base_url)
        logger.debug(f"Found {len(results)} books online")
        return results

    def close(self):
        self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
