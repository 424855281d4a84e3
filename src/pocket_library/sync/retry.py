"""Hook for reacting to failed cloud mirror attempts.

The repository never retries on its own. A failed push simply leaves the
book unsynced until the next bulk push; a failed delete leaves the cloud
copy behind. A RetryPolicy is told about each failure and may schedule
whatever it likes.
"""

from pocket_library.database.models import Book


class RetryPolicy:
    """Receives cloud failures. The base class ignores them."""

    def on_sync_failure(self, book: Book, error: Exception):
        pass

    def on_delete_failure(self, user_id: str, book_id: str,
                          error: Exception):
        pass


class NoRetry(RetryPolicy):
    """Default policy: do nothing."""
