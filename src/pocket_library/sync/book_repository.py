"""BookRepository — offline-first favorites backed by a cloud mirror.

Every mutating operation succeeds or fails on the local database alone.
Mirroring to the cloud happens afterwards as a best-effort side effect:

1. Skip if the device is offline or nobody is signed in
2. Write the book to ``books/{userId}/userBooks/{bookId}`` (merge)
3. On success, flag the local row ``synced_to_cloud``
4. On failure, log it and leave the flag false for the next bulk push

Nothing here retries. ``sync_unsynced_to_cloud`` pushes every unsynced
book once; ``pull_from_cloud`` merges the user's cloud copy into the local
database.
"""

import logging
import sqlite3
import uuid
from contextlib import contextmanager
from dataclasses import replace
from typing import Callable, Optional

from pocket_library.cloud.auth import AuthSession
from pocket_library.cloud.cloud_store import CloudStore
from pocket_library.database.book_store import BookStore
from pocket_library.database.live_query import LiveQuery
from pocket_library.database.models import (
    Book,
    CatalogResult,
    SyncSummary,
    now_millis,
)
from pocket_library.errors import (
    DuplicateError,
    NotFoundError,
    OfflineError,
    StorageError,
    ValidationError,
)
from pocket_library.network.catalog_client import OpenLibraryClient
from pocket_library.network.connectivity import ConnectivityProbe
from pocket_library.sync.retry import NoRetry, RetryPolicy
from pocket_library.utils.constants import DEFAULT_SEARCH_LIMIT
from pocket_library.utils.validators import validate_manual_entry

logger = logging.getLogger(__name__)


@contextmanager
def _local(action: str):
    """Turn database failures into StorageError."""
    try:
        yield
    except sqlite3.Error as e:
        logger.error(f"Error {action}: {e}")
        raise StorageError(f"Could not {action}: {e}") from e


class BookRepository:
    """Public operations used by the UI state holders."""

    def __init__(self, store: BookStore, catalog: OpenLibraryClient,
                 cloud: Optional[CloudStore], auth: Optional[AuthSession],
                 probe: ConnectivityProbe,
                 retry_policy: Optional[RetryPolicy] = None,
                 search_limit: int = DEFAULT_SEARCH_LIMIT,
                 clock: Callable[[], int] = now_millis):
        self.store = store
        self.catalog = catalog
        self.cloud = cloud
        self.auth = auth
        self.probe = probe
        self.retry_policy = retry_policy or NoRetry()
        self.search_limit = search_limit
        self.clock = clock

    # ── Network helpers ─────────────────────────────────────────

    def is_online(self) -> bool:
        return self.probe.is_online()

    def _current_user_id(self) -> Optional[str]:
        if self.auth is None:
            return None
        return self.auth.current_user_id()

    # ── Catalog search ──────────────────────────────────────────

    def search_online(self, query: str) -> list[CatalogResult]:
        """Search the public catalog.

        Raises OfflineError before touching the network when offline,
        ValidationError for a blank query, CatalogSearchError when the
        catalog fails.
        """
        if not self.probe.is_online():
            logger.warning("No internet connection available")
            raise OfflineError("No internet connection. Try manual entry.")
        if not query or not query.strip():
            raise ValidationError("Search query cannot be empty")

        query = query.strip()
        logger.debug(f"Searching online for: {query}")
        return self.catalog.search(query, self.search_limit)

    # ── Local favorites ─────────────────────────────────────────

    def get_all_favorites(self) -> LiveQuery:
        return self.store.query_all()

    def search_favorites(self, text: str) -> LiveQuery:
        return self.store.query_search(text)

    def is_in_favorites(self, book_id: str) -> bool:
        try:
            return self.store.exists(book_id)
        except sqlite3.Error as e:
            logger.error(f"Error checking if book in favorites: {e}")
            return False

    def add_from_catalog_result(self, result: CatalogResult) -> Book:
        """Save a search hit as a favorite.

        Raises DuplicateError if a book with the same key is already saved.
        """
        with _local("add book"):
            if self.store.exists(result.key):
                logger.warning(f"Book already in favorites: {result.title}")
                raise DuplicateError("Book is already in your library")

            book = result.to_book(self.clock())
            self.store.upsert(book)
        logger.debug(f"Book saved to local database: {book.title}")

        self._sync_book(book)
        return book

    def add_manual(self, title: str, author: str,
                   year: Optional[int] = None) -> Book:
        """Save a book typed in by the user under a fresh uuid."""
        errors = validate_manual_entry(title, author, year)
        if errors:
            raise ValidationError("; ".join(errors))

        book = Book(
            id=str(uuid.uuid4()),
            title=title.strip(),
            author=author.strip(),
            year=year,
            cover_url=None,
            personal_photo_path=None,
            is_manual_entry=True,
            created_at=self.clock(),
            synced_to_cloud=False,
        )
        with _local("add manual book"):
            self.store.upsert(book)
        logger.debug(f"Manual book saved: {book.title} by {book.author}")

        self._sync_book(book)
        return book

    def update(self, book: Book) -> int:
        """Replace a saved book's fields. Raises NotFoundError if missing.

        The stored copy is unsynced until the edited state reaches the cloud.
        """
        book = replace(book, synced_to_cloud=False)
        with _local("update book"):
            rows_updated = self.store.update(book)
        if rows_updated == 0:
            raise NotFoundError("Book not found in database")

        self._sync_book(book)
        return rows_updated

    def delete(self, book: Book):
        """Remove a book locally, then try to remove the cloud copy.

        The local delete is the whole contract; the cloud delete may fail
        silently and leave a stale copy behind.
        """
        with _local("delete book"):
            self.store.delete(book)
        logger.debug(f"Book deleted from local database: {book.title}")

        user_id = self._current_user_id()
        if user_id is None or self.cloud is None:
            return
        if not self.probe.is_online():
            logger.debug("No internet - cloud copy left in place")
            return
        try:
            self.cloud.delete(user_id, book.id)
            logger.debug(f"Book deleted from cloud: {book.id}")
        except Exception as e:
            logger.warning(f"Failed to delete from cloud: {e}")
            self.retry_policy.on_delete_failure(user_id, book.id, e)

    def attach_photo(self, book_id: str, path: str):
        """Store a personal photo path and mirror the book if it exists."""
        with _local("update personal photo"):
            self.store.update_photo_path(book_id, path)
            book = self.store.get(book_id)
        if book is not None:
            self._sync_book(book)

    # ── Cloud mirror ────────────────────────────────────────────

    def _sync_book(self, book: Book) -> bool:
        """Push one book to the cloud; True only on a confirmed write."""
        if not self.probe.is_online():
            logger.debug("No internet - will sync later")
            return False
        user_id = self._current_user_id()
        if user_id is None or self.cloud is None:
            logger.debug("No signed-in user - will sync later")
            return False

        try:
            self.cloud.put(user_id, book.to_cloud_payload(user_id))
            self.store.mark_synced(book.id)
        except Exception as e:
            logger.warning(f"Failed to sync book {book.id}: {e}")
            self.retry_policy.on_sync_failure(book, e)
            return False
        logger.debug(f"Book synced to cloud: {book.title}")
        return True

    def sync_unsynced_to_cloud(self) -> int:
        """Push every unsynced book once. Returns how many were attempted."""
        if not self.probe.is_online():
            logger.debug("No internet - cannot sync")
            return 0

        try:
            unsynced = self.store.list_unsynced()
        except sqlite3.Error as e:
            logger.error(f"Error listing unsynced books: {e}")
            return 0
        logger.debug(f"Found {len(unsynced)} unsynced books")

        for book in unsynced:
            self._sync_book(book)
        return len(unsynced)

    def pull_from_cloud(self) -> int:
        """Merge the user's cloud books into the local database.

        Returns the number of books merged; 0 when offline, signed out, or
        the listing fails. Malformed documents are skipped one by one.
        """
        if not self.probe.is_online():
            logger.debug("No internet - cannot fetch from cloud")
            return 0
        user_id = self._current_user_id()
        if user_id is None or self.cloud is None:
            logger.warning("Cannot fetch from cloud: no user is logged in")
            return 0

        try:
            snapshots = self.cloud.list_all(user_id)
        except Exception as e:
            logger.error(f"Error fetching from cloud: {e}")
            return 0
        logger.debug(f"Found {len(snapshots)} books in cloud")

        now = self.clock()
        books = []
        for snapshot in snapshots:
            try:
                books.append(Book.from_snapshot(snapshot, now))
            except ValueError as e:
                logger.warning(f"Error parsing book from cloud: {e}")

        if books:
            try:
                self.store.upsert_many(books)
            except sqlite3.Error as e:
                logger.error(f"Error merging cloud books: {e}")
                return 0
            logger.info(f"Merged {len(books)} books from cloud")
        return len(books)

    def refresh(self) -> SyncSummary:
        """Pull the cloud copy, then push anything still unsynced."""
        pulled = self.pull_from_cloud()
        pushed = self.sync_unsynced_to_cloud()
        return SyncSummary(pulled=pulled, pushed=pushed)
