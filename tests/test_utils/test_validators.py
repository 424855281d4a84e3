"""Tests for manual-entry validation."""

import pytest

from pocket_library.utils.validators import parse_year, validate_manual_entry


class TestValidateManualEntry:
    def test_valid_entry(self):
        assert validate_manual_entry("Dune", "Frank Herbert", 1965) == []

    def test_year_optional(self):
        assert validate_manual_entry("Dune", "Frank Herbert") == []

    def test_missing_title_or_author(self):
        assert validate_manual_entry("", "A") == ["Title and author are required"]
        assert validate_manual_entry("T", None) == [
            "Title and author are required"
        ]

    @pytest.mark.parametrize("year", [999, 2101, -5])
    def test_year_out_of_range(self, year):
        assert validate_manual_entry("T", "A", year) == [
            "Year must be between 1000 and 2100"
        ]

    def test_year_not_a_number(self):
        assert validate_manual_entry("T", "A", "1965") == ["Year must be a number"]
        assert validate_manual_entry("T", "A", True) == ["Year must be a number"]

    def test_collects_every_error(self):
        assert len(validate_manual_entry("", "", 10)) == 2


class TestParseYear:
    def test_blank_is_none(self):
        assert parse_year("") is None
        assert parse_year("   ") is None
        assert parse_year(None) is None

    def test_number(self):
        assert parse_year(" 1965 ") == 1965

    def test_garbage_raises(self):
        with pytest.raises(ValueError):
            parse_year("nineteen")
