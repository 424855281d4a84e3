"""Per-user cloud document store.

Documents live at ``books/{userId}/userBooks/{bookId}``. The store is a
backup/sync mirror only; the local database stays the source of truth.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional
from urllib.parse import quote

import httpx

from pocket_library.database.models import BookSnapshot
from pocket_library.errors import CloudSyncError
from pocket_library.utils.constants import (
    CLOUD_ROOT_COLLECTION,
    CLOUD_USER_COLLECTION,
)

logger = logging.getLogger(__name__)


class CloudStore(ABC):
    """Contract for the remote mirror. Every failure is a CloudSyncError."""

    @abstractmethod
    def put(self, user_id: str, payload: dict[str, Any]):
        """Merge-upsert ``payload`` into the document named by payload['id'].

        Fields not present in ``payload`` keep their stored values.
        """

    @abstractmethod
    def get(self, user_id: str, book_id: str) -> Optional[BookSnapshot]:
        """The stored document, or None if there is none."""

    @abstractmethod
    def list_all(self, user_id: str) -> list[BookSnapshot]:
        """Every document in the user's collection."""

    @abstractmethod
    def delete(self, user_id: str, book_id: str):
        """Remove a document; deleting a missing one is not an error."""


# ── Firestore typed values ──────────────────────────────────────

def encode_value(value: Any) -> dict:
    """Wrap a Python value in a Firestore typed-value object."""
    if value is None:
        return {"nullValue": None}
    if isinstance(value, bool):
        return {"booleanValue": value}
    if isinstance(value, int):
        return {"integerValue": str(value)}
    if isinstance(value, float):
        return {"doubleValue": value}
    if isinstance(value, str):
        return {"stringValue": value}
    if isinstance(value, (list, tuple)):
        return {"arrayValue": {"values": [encode_value(v) for v in value]}}
    if isinstance(value, dict):
        return {"mapValue": {"fields": encode_fields(value)}}
    raise TypeError(f"cannot store {type(value).__name__} in Firestore")


def encode_fields(data: dict[str, Any]) -> dict:
    return {key: encode_value(val) for key, val in data.items()}


def decode_value(typed: Any) -> Any:
    """Unwrap a Firestore typed value.

    Unknown shapes come back as-is so the caller can reject them.
    """
    if not isinstance(typed, dict) or len(typed) != 1:
        return typed
    kind, raw = next(iter(typed.items()))
    if kind == "nullValue":
        return None
    if kind == "integerValue":
        try:
            return int(raw)
        except (TypeError, ValueError):
            return raw
    if kind == "doubleValue":
        return float(raw)
    if kind in ("stringValue", "booleanValue", "timestampValue",
                "referenceValue", "bytesValue"):
        return raw
    if kind == "arrayValue":
        return [decode_value(v) for v in (raw or {}).get("values", [])]
    if kind == "mapValue":
        return decode_fields((raw or {}).get("fields", {}))
    return typed


def decode_fields(fields: dict) -> dict[str, Any]:
    return {key: decode_value(val) for key, val in (fields or {}).items()}


def document_id(book_id: str) -> str:
    """Firestore document id for a book id.

    Catalog keys look like ``/works/OL45883W``; Firestore ids cannot hold a
    slash, so slashes become ``~``. The real id travels in the ``id`` field.
    Book ids are catalog keys or uuids, neither of which contains ``~``, so
    distinct ids never share a document.
    """
    return book_id.strip("/").replace("/", "~")


def snapshot_from_document(document: dict) -> BookSnapshot:
    """Build a snapshot from a Firestore REST document resource."""
    name = document.get("name", "")
    return BookSnapshot(
        doc_id=name.rsplit("/", 1)[-1],
        fields=decode_fields(document.get("fields", {})),
    )


class FirestoreCloudStore(CloudStore):
    """CloudStore backed by the Firestore REST API."""

    BASE_URL = "https://firestore.googleapis.com/v1/"
    PAGE_SIZE = 300

    def __init__(self, project_id: str,
                 token_provider: Callable[[], Optional[str]],
                 timeout: float = 30.0, base_url: str = BASE_URL,
                 transport: Optional[httpx.BaseTransport] = None):
        self.project_id = project_id
        self.token_provider = token_provider
        self.client = httpx.Client(
            base_url=base_url, timeout=timeout, transport=transport
        )

    # ── Paths ───────────────────────────────────────────────────

    def collection_path(self, user_id: str) -> str:
        return (
            f"projects/{quote(self.project_id, safe='')}"
            f"/databases/(default)/documents"
            f"/{CLOUD_ROOT_COLLECTION}/{quote(user_id, safe='')}"
            f"/{CLOUD_USER_COLLECTION}"
        )

    def document_path(self, user_id: str, book_id: str) -> str:
        doc_id = quote(document_id(book_id), safe="")
        return f"{self.collection_path(user_id)}/{doc_id}"

    # ── CloudStore ──────────────────────────────────────────────

    def put(self, user_id: str, payload: dict[str, Any]):
        book_id = payload.get("id")
        if not book_id:
            raise CloudSyncError("Cannot write a book without an id")
        # The update mask limits the write to these fields (merge semantics)
        params = [("updateMask.fieldPaths", key) for key in payload]
        response = self._request(
            "PATCH", self.document_path(user_id, book_id),
            params=params, json={"fields": encode_fields(payload)},
        )
        self._raise_for_status(response, f"write {book_id}")

    def get(self, user_id: str, book_id: str) -> Optional[BookSnapshot]:
        response = self._request("GET", self.document_path(user_id, book_id))
        if response.status_code == 404:
            return None
        self._raise_for_status(response, f"read {book_id}")
        return snapshot_from_document(self._json(response))

    def list_all(self, user_id: str) -> list[BookSnapshot]:
        snapshots = []
        page_token = None
        while True:
            params = {"pageSize": self.PAGE_SIZE}
            if page_token:
                params["pageToken"] = page_token
            response = self._request(
                "GET", self.collection_path(user_id), params=params
            )
            self._raise_for_status(response, "list books")
            body = self._json(response)
            for document in body.get("documents", []):
                snapshots.append(snapshot_from_document(document))
            page_token = body.get("nextPageToken")
            if not page_token:
                return snapshots

    def delete(self, user_id: str, book_id: str):
        response = self._request(
            "DELETE", self.document_path(user_id, book_id)
        )
        if response.status_code == 404:
            return
        self._raise_for_status(response, f"delete {book_id}")

    def close(self):
        self.client.close()

    # ── Helpers ─────────────────────────────────────────────────

    def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            token = self.token_provider()
        except Exception as e:
            raise CloudSyncError(f"No cloud credentials: {e}") from e
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        try:
            return self.client.request(method, path, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            raise CloudSyncError(f"Cloud request failed: {e}") from e

    @staticmethod
    def _raise_for_status(response: httpx.Response, action: str):
        if not response.is_success:
            raise CloudSyncError(
                f"Cloud {action} failed: {response.status_code} "
                f"{response.reason_phrase}"
            )

    @staticmethod
    def _json(response: httpx.Response) -> dict:
        try:
            body = response.json()
        except ValueError as e:
            raise CloudSyncError("Cloud returned malformed JSON") from e
        if not isinstance(body, dict):
            raise CloudSyncError("Cloud returned an unexpected body")
        return body
