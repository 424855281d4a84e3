"""Tests for schema creation and migration."""

from pocket_library.database.connection import DatabaseConnection
from pocket_library.database.schema import SCHEMA_VERSION, initialize_database


def _index_names(db):
    rows = db.execute(
        "SELECT name FROM sqlite_master WHERE type='index' AND tbl_name='books'"
    )
    return {r["name"] for r in rows}


class TestInitializeDatabase:
    def test_creates_books_table(self, db):
        rows = db.execute("PRAGMA table_info(books)")
        columns = [r["name"] for r in rows]
        assert columns == [
            "id", "title", "author", "year", "cover_url",
            "personal_photo_path", "is_manual_entry", "created_at",
            "synced_to_cloud",
        ]

    def test_records_schema_version(self, db):
        rows = db.execute("SELECT MAX(version) AS v FROM schema_version")
        assert rows[0]["v"] == SCHEMA_VERSION

    def test_creates_indexes(self, db):
        assert {"idx_books_created_at", "idx_books_synced"} <= _index_names(db)

    def test_is_idempotent(self, db):
        db.execute(
            "INSERT INTO books (id, title, author, created_at) "
            "VALUES ('b1', 'T', 'A', 1)"
        )
        initialize_database(db)
        assert len(db.execute("SELECT * FROM books")) == 1

    def test_uses_wal_journal(self, db):
        rows = db.execute("PRAGMA journal_mode")
        assert rows[0][0].lower() == "wal"


class TestReopen:
    def test_existing_file_left_untouched(self, db_path):
        first = DatabaseConnection(db_path)
        initialize_database(first)
        first.execute(
            "INSERT INTO books (id, title, author, created_at) "
            "VALUES ('kept', 'T', 'A', 1)"
        )

        second = DatabaseConnection(db_path)
        initialize_database(second)
        assert [r["id"] for r in second.execute("SELECT id FROM books")] == [
            "kept"
        ]
        rows = second.execute("SELECT COUNT(*) AS n FROM schema_version")
        assert rows[0]["n"] == 1
