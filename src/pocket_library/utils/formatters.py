"""Formatting utilities for display values."""

from datetime import datetime
from typing import Optional


def format_year(year: Optional[int]) -> str:
    """Format a publication year, blank when unknown."""
    return str(year) if year else ""


def format_added(created_at_ms: int) -> str:
    """Format an epoch-millisecond timestamp as a local date."""
    return datetime.fromtimestamp(created_at_ms / 1000).strftime("%Y-%m-%d")


def format_sync_state(synced: bool) -> str:
    """Short label for a book's cloud state."""
    return "synced" if synced else "local only"
