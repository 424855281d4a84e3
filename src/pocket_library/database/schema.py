"""Database schema definition and initialization."""

SCHEMA_VERSION = 1

# Each statement is a separate string to avoid executescript issues
_SCHEMA_STATEMENTS = [
    """CREATE TABLE IF NOT EXISTS schema_version (
        version INTEGER PRIMARY KEY,
        applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )""",

    # Saved favorites; id is the catalog key or a generated uuid
    """CREATE TABLE IF NOT EXISTS books (
        id TEXT PRIMARY KEY NOT NULL,
        title TEXT NOT NULL,
        author TEXT NOT NULL,
        year INTEGER,
        cover_url TEXT,
        personal_photo_path TEXT,
        is_manual_entry INTEGER NOT NULL DEFAULT 0,
        created_at INTEGER NOT NULL,
        synced_to_cloud INTEGER NOT NULL DEFAULT 0
    )""",

    "CREATE INDEX IF NOT EXISTS idx_books_created_at ON books(created_at)",
    "CREATE INDEX IF NOT EXISTS idx_books_synced ON books(synced_to_cloud)",

    f"INSERT OR IGNORE INTO schema_version (version) VALUES ({SCHEMA_VERSION})",
]


def _get_schema_version(conn) -> int:
    """Get the current schema version, or 0 if no schema exists."""
    try:
        row = conn.execute(
            "SELECT MAX(version) as v FROM schema_version"
        ).fetchone()
        return row["v"] if row and row["v"] else 0
    except Exception:
        return 0


def initialize_database(db_connection):
    """Create the books table and indexes on a fresh database file."""
    with db_connection.get_connection() as conn:
        # WAL lets readers run while a write is in progress
        conn.execute("PRAGMA journal_mode = WAL")

        version = _get_schema_version(conn)

        if version == 0:
            for stmt in _SCHEMA_STATEMENTS:
                conn.execute(stmt)
