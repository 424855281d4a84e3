"""Local SQLite storage: schema, models, the book store and live queries."""
