"""Data models for the database layer."""

import time
from dataclasses import dataclass, field
from typing import Any, Optional

from pocket_library.utils.constants import (
    COVER_SIZES,
    PROMOTED_COVER_SIZE,
    UNKNOWN_AUTHOR,
)

DEFAULT_COVER_BASE_URL = "https://covers.openlibrary.org"


def now_millis() -> int:
    """Current time as epoch milliseconds."""
    return int(time.time() * 1000)


@dataclass
class Book:
    """One saved favorite, stored in the ``books`` table."""

    id: str = ""
    title: str = ""
    author: str = ""
    year: Optional[int] = None
    cover_url: Optional[str] = None
    personal_photo_path: Optional[str] = None
    is_manual_entry: bool = False
    created_at: int = field(default_factory=now_millis)
    synced_to_cloud: bool = False

    @classmethod
    def from_row(cls, row) -> "Book":
        """Build a Book from a ``sqlite3.Row``."""
        data = dict(row)
        data["is_manual_entry"] = bool(data["is_manual_entry"])
        data["synced_to_cloud"] = bool(data["synced_to_cloud"])
        return cls(**data)

    def to_row(self) -> tuple:
        """Column values in ``BOOK_COLUMNS`` order."""
        return (
            self.id, self.title, self.author, self.year, self.cover_url,
            self.personal_photo_path, int(self.is_manual_entry),
            self.created_at, int(self.synced_to_cloud),
        )

    @property
    def has_photo(self) -> bool:
        return bool(self.personal_photo_path)

    def to_cloud_payload(self, user_id: str) -> dict[str, Any]:
        """The document written to the cloud store.

        ``cover_url`` is not part of the cloud document, so a book pulled
        onto a fresh device comes back without its cover.
        """
        return {
            "id": self.id,
            "title": self.title,
            "author": self.author,
            "year": self.year,
            "personalPhotoPath": self.personal_photo_path,
            "isManualEntry": self.is_manual_entry,
            "dateAdded": self.created_at,
            "userId": user_id,
        }

    @classmethod
    def from_snapshot(cls, snapshot: "BookSnapshot",
                      now_ms: Optional[int] = None) -> "Book":
        """Parse a cloud snapshot, filling defaults for missing fields.

        Raises ValueError when the document cannot be a book.
        """
        fields = snapshot.fields
        book_id = fields.get("id")
        if not isinstance(book_id, str) or not book_id.strip():
            raise ValueError(f"document {snapshot.doc_id!r} has no book id")

        date_added = _optional(fields, "dateAdded", int)
        if date_added is None:
            date_added = now_ms if now_ms is not None else now_millis()

        return cls(
            id=book_id,
            title=_optional(fields, "title", str) or "",
            author=_optional(fields, "author", str) or "",
            year=_optional(fields, "year", int),
            cover_url=_optional(fields, "coverUrl", str),
            personal_photo_path=_optional(fields, "personalPhotoPath", str),
            is_manual_entry=bool(_optional(fields, "isManualEntry", bool)),
            created_at=date_added,
            synced_to_cloud=True,
        )


def _optional(fields: dict, name: str, kind: type):
    """Read an optional typed field; None when absent, ValueError if mistyped."""
    value = fields.get(name)
    if value is None:
        return None
    # bool is an int subclass; never accept it where a number is expected
    if kind is int and isinstance(value, bool):
        raise ValueError(f"field {name!r} should be a number, got a boolean")
    if kind is int and isinstance(value, float) and value.is_integer():
        return int(value)
    if not isinstance(value, kind):
        raise ValueError(
            f"field {name!r} should be {kind.__name__}, "
            f"got {type(value).__name__}"
        )
    return value


@dataclass(frozen=True)
class BookSnapshot:
    """A cloud document as read back, before it is trusted as a Book."""

    doc_id: str
    fields: dict = field(default_factory=dict)


@dataclass(frozen=True)
class CatalogResult:
    """One search hit from the Open Library catalog. Never persisted."""

    key: str
    title: str = ""
    authors: tuple[str, ...] = ()
    first_publish_year: Optional[int] = None
    cover_image_id: Optional[int] = None
    isbn: tuple[str, ...] = ()
    publisher: tuple[str, ...] = ()
    language: tuple[str, ...] = ()
    cover_base_url: str = field(default=DEFAULT_COVER_BASE_URL, repr=False)

    @property
    def has_cover(self) -> bool:
        return self.cover_image_id is not None

    @property
    def authors_display(self) -> str:
        """All authors joined with commas, or the unknown-author label."""
        return ", ".join(self.authors) if self.authors else UNKNOWN_AUTHOR

    @property
    def first_author(self) -> str:
        return self.authors[0] if self.authors else UNKNOWN_AUTHOR

    def cover_image_url(self, size: str = "M") -> Optional[str]:
        """Cover URL at size S, M or L; None when the hit has no cover."""
        if size not in COVER_SIZES:
            raise ValueError(f"cover size must be one of {COVER_SIZES}")
        if self.cover_image_id is None:
            return None
        base = self.cover_base_url.rstrip("/")
        return f"{base}/b/id/{self.cover_image_id}-{size}.jpg"

    def to_book(self, now_ms: Optional[int] = None) -> Book:
        """Promote this hit into an unsynced Book keyed by the catalog key."""
        return Book(
            id=self.key,
            title=self.title,
            author=self.authors_display,
            year=self.first_publish_year,
            cover_url=self.cover_image_url(PROMOTED_COVER_SIZE),
            personal_photo_path=None,
            is_manual_entry=False,
            created_at=now_ms if now_ms is not None else now_millis(),
            synced_to_cloud=False,
        )


@dataclass
class SyncSummary:
    """Counts from a pull-then-push refresh."""

    pulled: int = 0
    pushed: int = 0
