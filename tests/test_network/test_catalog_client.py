"""Tests for the Open Library search client."""

import httpx
import pytest

from pocket_library.errors import CatalogSearchError
from pocket_library.network.catalog_client import (
    OpenLibraryClient,
    parse_search_response,
)

HOBBIT_DOC = {
    "key": "/works/OL262758W",
    "title": "The Hobbit",
    "author_name": ["J.R.R. Tolkien"],
    "first_publish_year": 1937,
    "cover_i": 6979861,
    "isbn": ["9780261102217"],
    "publisher": ["Allen & Unwin"],
    "language": ["eng"],
}


def _client(handler):
    return OpenLibraryClient(
        base_url="https://catalog.test",
        transport=httpx.MockTransport(handler),
    )


class TestSearch:
    def test_parses_results(self):
        seen = {}

        def handler(request):
            seen["url"] = request.url
            return httpx.Response(200, json={"numFound": 1,
                                             "docs": [HOBBIT_DOC]})

        with _client(handler) as client:
            results = client.search("hobbit", limit=5)

        assert len(results) == 1
        hit = results[0]
        assert hit.key == "/works/OL262758W"
        assert hit.authors == ("J.R.R. Tolkien",)
        assert hit.first_publish_year == 1937
        assert hit.cover_image_id == 6979861
        assert hit.isbn == ("9780261102217",)

        url = seen["url"]
        assert url.path == "/search.json"
        assert url.params["q"] == "hobbit"
        assert url.params["limit"] == "5"
        assert "key" in url.params["fields"]
        assert "isbn" in url.params["fields"]

    def test_empty_docs(self):
        client = _client(lambda r: httpx.Response(200, json={"docs": []}))
        assert client.search("zzz") == []

    def test_missing_docs_key(self):
        client = _client(lambda r: httpx.Response(200, json={}))
        assert client.search("zzz") == []

    def test_http_error_status(self):
        client = _client(lambda r: httpx.Response(503))
        with pytest.raises(CatalogSearchError) as exc:
            client.search("hobbit")
        assert exc.value.status_code == 503
        assert str(exc.value) == "Search failed: 503 Service Unavailable"

    def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(CatalogSearchError) as exc:
            _client(handler).search("hobbit")
        assert exc.value.status_code is None
        assert exc.value.message.startswith("Search failed:")

    def test_malformed_json(self):
        client = _client(lambda r: httpx.Response(200, content=b"<html>"))
        with pytest.raises(CatalogSearchError, match="malformed"):
            client.search("hobbit")

    def test_non_object_body(self):
        client = _client(lambda r: httpx.Response(200, json=[1, 2]))
        with pytest.raises(CatalogSearchError, match="malformed"):
            client.search("hobbit")


class TestParseSearchResponse:
    def test_skips_docs_without_key(self):
        results = parse_search_response({"docs": [{"title": "No key"},
                                                  HOBBIT_DOC]})
        assert [r.key for r in results] == ["/works/OL262758W"]

    def test_optional_fields_missing(self):
        results = parse_search_response({"docs": [{"key": "/works/X"}]})
        hit = results[0]
        assert hit.title == ""
        assert hit.authors == ()
        assert hit.first_publish_year is None
        assert hit.cover_image_id is None
        assert hit.authors_display == "Unknown Author"

    def test_cover_base_url_passed_through(self):
        results = parse_search_response({"docs": [HOBBIT_DOC]},
                                        "http://covers.test")
        assert results[0].cover_image_url("S") == (
            "http://covers.test/b/id/6979861-S.jpg"
        )
