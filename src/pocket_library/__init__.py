"""Pocket Library — offline-first book favorites with cloud sync."""

from pocket_library.utils.constants import APP_VERSION

__version__ = APP_VERSION
