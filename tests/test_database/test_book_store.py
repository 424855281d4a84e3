"""Tests for BookStore CRUD and filtering."""

from pocket_library.database.book_store import _like_pattern
from pocket_library.database.models import Book


def _book(book_id, title="Title", author="Author", created_at=1000, **kw):
    return Book(id=book_id, title=title, author=author,
                created_at=created_at, **kw)


class TestUpsert:
    def test_insert_and_get(self, store):
        store.upsert(_book("b1", year=1999, cover_url="http://c/1.jpg"))
        book = store.get("b1")
        assert book.title == "Title"
        assert book.year == 1999
        assert book.cover_url == "http://c/1.jpg"
        assert book.is_manual_entry is False
        assert book.synced_to_cloud is False

    def test_upsert_twice_keeps_one_row(self, store):
        store.upsert(_book("b1", title="First"))
        store.upsert(_book("b1", title="Second"))
        assert store.count() == 1
        assert store.get("b1").title == "Second"

    def test_upsert_many(self, store):
        store.upsert_many([_book("a"), _book("b"), _book("a", title="X")])
        assert store.count() == 2
        assert store.get("a").title == "X"

    def test_upsert_many_empty_is_noop(self, store):
        store.upsert_many([])
        assert store.count() == 0

    def test_bool_flags_round_trip(self, store):
        store.upsert(_book("m", is_manual_entry=True, synced_to_cloud=True))
        book = store.get("m")
        assert book.is_manual_entry is True
        assert book.synced_to_cloud is True


class TestReads:
    def test_get_missing_returns_none(self, store):
        assert store.get("nope") is None

    def test_exists(self, store):
        store.upsert(_book("b1"))
        assert store.exists("b1") is True
        assert store.exists("b2") is False

    def test_get_all_newest_first(self, store):
        store.upsert(_book("old", created_at=1000))
        store.upsert(_book("new", created_at=3000))
        store.upsert(_book("mid", created_at=2000))
        assert [b.id for b in store.get_all()] == ["new", "mid", "old"]

    def test_equal_timestamps_latest_insert_first(self, store):
        store.upsert(_book("first", created_at=5))
        store.upsert(_book("second", created_at=5))
        assert [b.id for b in store.get_all()] == ["second", "first"]

    def test_list_unsynced(self, store):
        store.upsert(_book("a", synced_to_cloud=True))
        store.upsert(_book("b"))
        assert [b.id for b in store.list_unsynced()] == ["b"]


class TestSearch:
    def test_matches_title_case_insensitive(self, store):
        store.upsert(_book("h", title="The Hobbit", author="Tolkien"))
        store.upsert(_book("d", title="Dune", author="Herbert"))
        assert [b.id for b in store.search("hOBb")] == ["h"]

    def test_matches_author(self, store):
        store.upsert(_book("h", title="The Hobbit", author="J.R.R. Tolkien"))
        store.upsert(_book("d", title="Dune", author="Frank Herbert"))
        assert [b.id for b in store.search("herb")] == ["d"]

    def test_blank_returns_everything(self, store):
        store.upsert(_book("a"))
        store.upsert(_book("b"))
        assert len(store.search("   ")) == 2

    def test_wildcards_are_literal(self, store):
        store.upsert(_book("pct", title="100% Wool"))
        store.upsert(_book("other", title="1000 Wool"))
        assert [b.id for b in store.search("0%")] == ["pct"]
        assert store.search("_") == []

    def test_like_pattern_escapes(self):
        assert _like_pattern("A_b%c\\") == "%a\\_b\\%c\\\\%"


class TestWrites:
    def test_update_returns_rowcount(self, store):
        store.upsert(_book("b1"))
        changed = store.update(_book("b1", title="Renamed", year=2001))
        assert changed == 1
        assert store.get("b1").title == "Renamed"

    def test_update_missing_returns_zero(self, store):
        assert store.update(_book("ghost")) == 0
        assert store.count() == 0

    def test_delete(self, store):
        store.upsert(_book("b1"))
        store.delete(_book("b1"))
        assert store.get("b1") is None

    def test_delete_missing_is_noop(self, store):
        store.delete(_book("ghost"))
        assert store.count() == 0

    def test_delete_all(self, store):
        store.upsert_many([_book("a"), _book("b")])
        store.delete_all()
        assert store.count() == 0

    def test_mark_synced(self, store):
        store.upsert(_book("b1"))
        store.mark_synced("b1")
        assert store.get("b1").synced_to_cloud is True
        assert store.list_unsynced() == []

    def test_update_photo_path(self, store):
        store.upsert(_book("b1"))
        store.update_photo_path("b1", "/photos/b1.jpg")
        book = store.get("b1")
        assert book.personal_photo_path == "/photos/b1.jpg"
        assert book.has_photo

    def test_update_photo_path_clears_sync_flag(self, store):
        store.upsert(_book("b1", synced_to_cloud=True))
        store.update_photo_path("b1", "/photos/b1.jpg")
        assert store.get("b1").synced_to_cloud is False

    def test_update_photo_path_missing_book(self, store):
        store.update_photo_path("ghost", "/photos/x.jpg")
        assert store.get("ghost") is None
