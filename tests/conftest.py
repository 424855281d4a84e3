"""Shared test fixtures."""

import pytest

from pocket_library.cloud.cloud_store import CloudStore
from pocket_library.database.book_store import BookStore
from pocket_library.database.connection import DatabaseConnection
from pocket_library.database.models import BookSnapshot, CatalogResult
from pocket_library.database.schema import initialize_database
from pocket_library.errors import CloudSyncError
from pocket_library.sync.book_repository import BookRepository
from pocket_library.sync.retry import RetryPolicy


# ── Fakes ────────────────────────────────────────────────────────


class FakeProbe:
    """Connectivity probe whose answer the test controls."""

    def __init__(self, online=True):
        self.online = online
        self.calls = 0

    def is_online(self):
        self.calls += 1
        return self.online

    def connection_label(self):
        return "WiFi" if self.online else "No Connection"


class FakeAuth:
    def __init__(self, user_id="user-1"):
        self.user_id = user_id

    def current_user_id(self):
        return self.user_id


class FakeCloudStore(CloudStore):
    """In-memory cloud keyed by (user_id, book_id) with merge writes."""

    def __init__(self):
        self.docs = {}
        self.fail = False
        self.puts = []
        self.deletes = []

    def put(self, user_id, payload):
        self.puts.append((user_id, dict(payload)))
        if self.fail:
            raise CloudSyncError("Cloud write failed: 503 Service Unavailable")
        self.docs.setdefault((user_id, payload["id"]), {}).update(payload)

    def get(self, user_id, book_id):
        fields = self.docs.get((user_id, book_id))
        if fields is None:
            return None
        return BookSnapshot(doc_id=book_id, fields=dict(fields))

    def list_all(self, user_id):
        if self.fail:
            raise CloudSyncError("Cloud list books failed: 503")
        return [
            BookSnapshot(doc_id=book_id, fields=dict(fields))
            for (uid, book_id), fields in self.docs.items()
            if uid == user_id
        ]

    def delete(self, user_id, book_id):
        self.deletes.append((user_id, book_id))
        if self.fail:
            raise CloudSyncError("Cloud delete failed: 503")
        self.docs.pop((user_id, book_id), None)


class FakeCatalog:
    def __init__(self, results=None, error=None):
        self.results = list(results or [])
        self.error = error
        self.calls = []
        self.closed = False

    def search(self, query, limit=20):
        self.calls.append((query, limit))
        if self.error is not None:
            raise self.error
        return list(self.results)

    def close(self):
        self.closed = True


class RecordingRetryPolicy(RetryPolicy):
    def __init__(self):
        self.sync_failures = []
        self.delete_failures = []

    def on_sync_failure(self, book, error):
        self.sync_failures.append((book.id, error))

    def on_delete_failure(self, user_id, book_id, error):
        self.delete_failures.append((user_id, book_id, error))


def make_result(key="/works/OL45883W", title="The Hobbit",
                authors=("J.R.R. Tolkien",), year=1937, cover_id=6979861):
    return CatalogResult(
        key=key,
        title=title,
        authors=tuple(authors),
        first_publish_year=year,
        cover_image_id=cover_id,
    )


# ── Fixtures ─────────────────────────────────────────────────────


@pytest.fixture
def db_path(tmp_path):
    """Provide a temporary database path."""
    return tmp_path / "test.db"


@pytest.fixture
def db(db_path):
    """Provide an initialized database connection."""
    conn = DatabaseConnection(db_path)
    initialize_database(conn)
    return conn


@pytest.fixture
def store(db):
    return BookStore(db)


@pytest.fixture
def probe():
    return FakeProbe(online=True)


@pytest.fixture
def auth():
    return FakeAuth("user-1")


@pytest.fixture
def cloud():
    return FakeCloudStore()


@pytest.fixture
def catalog():
    return FakeCatalog([make_result()])


@pytest.fixture
def retry_policy():
    return RecordingRetryPolicy()


@pytest.fixture
def clock():
    """Monotonic fake clock in epoch milliseconds, one second per tick."""
    ticks = iter(range(1_700_000_000_000, 1_800_000_000_000, 1000))
    return lambda: next(ticks)


@pytest.fixture
def repo(store, catalog, cloud, auth, probe, retry_policy, clock):
    """Provide a repository wired to fakes, online and signed in."""
    return BookRepository(
        store=store,
        catalog=catalog,
        cloud=cloud,
        auth=auth,
        probe=probe,
        retry_policy=retry_policy,
        clock=clock,
    )


@pytest.fixture
def result_factory():
    """Build CatalogResults with sensible defaults."""
    return make_result
