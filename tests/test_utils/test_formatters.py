"""Tests for display formatters."""

from datetime import datetime

from pocket_library.utils.formatters import (
    format_added,
    format_sync_state,
    format_year,
)


def test_format_year():
    assert format_year(1965) == "1965"
    assert format_year(None) == ""


def test_format_added():
    expected = datetime.fromtimestamp(1_700_000_000).strftime("%Y-%m-%d")
    assert format_added(1_700_000_000_000) == expected


def test_format_sync_state():
    assert format_sync_state(True) == "synced"
    assert format_sync_state(False) == "local only"
