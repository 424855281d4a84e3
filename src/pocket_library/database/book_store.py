"""Local book store — CRUD on the ``books`` table plus live queries."""

import threading
from typing import Iterable, Optional

from .connection import DatabaseConnection
from .live_query import ChangeHub, LiveQuery
from .models import Book

BOOK_COLUMNS = (
    "id", "title", "author", "year", "cover_url", "personal_photo_path",
    "is_manual_entry", "created_at", "synced_to_cloud",
)

_UPSERT_SQL = (
    f"INSERT OR REPLACE INTO books ({', '.join(BOOK_COLUMNS)}) "
    f"VALUES ({', '.join('?' for _ in BOOK_COLUMNS)})"
)

_ORDER_NEWEST = " ORDER BY created_at DESC, rowid DESC"


def _like_pattern(text: str) -> str:
    """Substring LIKE pattern with the wildcards in ``text`` escaped."""
    escaped = (
        text.lower()
        .replace("\\", "\\\\")
        .replace("%", "\\%")
        .replace("_", "\\_")
    )
    return f"%{escaped}%"


class BookStore:
    """Durable keyed store of Books.

    Writes are serialized through one lock per store and committed before
    the method returns; subscribers of live queries are notified after the
    commit, still under the lock, so snapshots arrive in write order.
    """

    def __init__(self, db: DatabaseConnection):
        self.db = db
        self._write_lock = threading.RLock()
        self._hub = ChangeHub(self._write_lock)

    # ── Writes ──────────────────────────────────────────────────

    def upsert(self, book: Book):
        """Insert the book, replacing any row with the same id."""
        with self._write_lock:
            with self.db.get_connection(write=True) as conn:
                conn.execute(_UPSERT_SQL, book.to_row())
            self._hub.notify()

    def upsert_many(self, books: Iterable[Book]):
        """Batch upsert in a single transaction."""
        rows = [b.to_row() for b in books]
        if not rows:
            return
        with self._write_lock:
            with self.db.get_connection(write=True) as conn:
                conn.executemany(_UPSERT_SQL, rows)
            self._hub.notify()

    def update(self, book: Book) -> int:
        """Replace every field of an existing row. Returns rows affected."""
        with self._write_lock:
            with self.db.get_connection(write=True) as conn:
                cursor = conn.execute(
                    "UPDATE books SET title = ?, author = ?, year = ?, "
                    "cover_url = ?, personal_photo_path = ?, "
                    "is_manual_entry = ?, created_at = ?, "
                    "synced_to_cloud = ? WHERE id = ?",
                    (book.title, book.author, book.year, book.cover_url,
                     book.personal_photo_path, int(book.is_manual_entry),
                     book.created_at, int(book.synced_to_cloud), book.id),
                )
                changed = cursor.rowcount
            if changed:
                self._hub.notify()
            return changed

    def delete(self, book: Book):
        with self._write_lock:
            with self.db.get_connection(write=True) as conn:
                cursor = conn.execute(
                    "DELETE FROM books WHERE id = ?", (book.id,)
                )
                changed = cursor.rowcount
            if changed:
                self._hub.notify()

    def delete_all(self):
        with self._write_lock:
            with self.db.get_connection(write=True) as conn:
                conn.execute("DELETE FROM books")
            self._hub.notify()

    def mark_synced(self, book_id: str):
        """Flag one book as confirmed in the cloud."""
        with self._write_lock:
            with self.db.get_connection(write=True) as conn:
                cursor = conn.execute(
                    "UPDATE books SET synced_to_cloud = 1 "
                    "WHERE id = ? AND synced_to_cloud = 0",
                    (book_id,),
                )
                changed = cursor.rowcount
            if changed:
                self._hub.notify()

    def update_photo_path(self, book_id: str, path: str):
        """Set the photo path; the row is unsynced until pushed again."""
        with self._write_lock:
            with self.db.get_connection(write=True) as conn:
                cursor = conn.execute(
                    "UPDATE books SET personal_photo_path = ?, "
                    "synced_to_cloud = 0 WHERE id = ?",
                    (path, book_id),
                )
                changed = cursor.rowcount
            if changed:
                self._hub.notify()

    # ── Reads ───────────────────────────────────────────────────

    def get(self, book_id: str) -> Optional[Book]:
        row = self.db.query_one(
            "SELECT * FROM books WHERE id = ?", (book_id,)
        )
        return Book.from_row(row) if row else None

    def exists(self, book_id: str) -> bool:
        row = self.db.query_one(
            "SELECT EXISTS(SELECT 1 FROM books WHERE id = ? LIMIT 1) AS found",
            (book_id,),
        )
        return bool(row["found"])

    def count(self) -> int:
        row = self.db.query_one("SELECT COUNT(*) AS cnt FROM books")
        return row["cnt"] if row else 0

    def list_unsynced(self) -> list[Book]:
        rows = self.db.execute(
            "SELECT * FROM books WHERE synced_to_cloud = 0" + _ORDER_NEWEST
        )
        return [Book.from_row(r) for r in rows]

    def get_all(self) -> list[Book]:
        rows = self.db.execute("SELECT * FROM books" + _ORDER_NEWEST)
        return [Book.from_row(r) for r in rows]

    def search(self, text: str) -> list[Book]:
        """Case-insensitive substring match on title or author."""
        text = (text or "").strip()
        if not text:
            return self.get_all()
        pattern = _like_pattern(text)
        rows = self.db.execute(
            "SELECT * FROM books "
            "WHERE LOWER(title) LIKE ? ESCAPE '\\' "
            "OR LOWER(author) LIKE ? ESCAPE '\\'" + _ORDER_NEWEST,
            (pattern, pattern),
        )
        return [Book.from_row(r) for r in rows]

    # ── Live queries ────────────────────────────────────────────

    def query_all(self) -> LiveQuery:
        """All books, newest first, re-emitted after every change."""
        return LiveQuery(self._hub, self.get_all, "all books")

    def query_search(self, text: str) -> LiveQuery:
        """Filtered books, newest first; blank text behaves like query_all."""
        if not (text or "").strip():
            return self.query_all()
        return LiveQuery(
            self._hub, lambda: self.search(text), f"search {text.strip()!r}"
        )

    def subscriber_count(self) -> int:
        return self._hub.subscriber_count()
