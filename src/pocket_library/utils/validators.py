"""Validation rules for user-entered book data."""

from typing import Optional

from pocket_library.utils.constants import MAX_YEAR, MIN_YEAR


def validate_manual_entry(title: str, author: str,
                          year: Optional[int] = None) -> list[str]:
    """Validate a manual book entry. Returns list of error strings."""
    errors = []

    if not (title or "").strip() or not (author or "").strip():
        errors.append("Title and author are required")

    if year is not None:
        if isinstance(year, bool) or not isinstance(year, int):
            errors.append("Year must be a number")
        elif year < MIN_YEAR or year > MAX_YEAR:
            errors.append(f"Year must be between {MIN_YEAR} and {MAX_YEAR}")

    return errors


def parse_year(text: str) -> Optional[int]:
    """Parse a year typed by the user; blank means no year.

    Raises ValueError for anything that is not a whole number.
    """
    text = (text or "").strip()
    if not text:
        return None
    return int(text)
