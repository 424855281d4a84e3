"""Application configuration — loads .env, then overrides from settings.json."""

import json
import os
from pathlib import Path

from dotenv import load_dotenv

# Find the project root (where .env lives)
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
load_dotenv(_PROJECT_ROOT / ".env")

# Runtime settings file for in-app configuration
_SETTINGS_FILE = _PROJECT_ROOT / "data" / "settings.json"


def _load_settings() -> dict:
    """Load saved runtime settings from JSON file."""
    if _SETTINGS_FILE.exists():
        try:
            return json.loads(_SETTINGS_FILE.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError):
            pass
    return {}


def _save_settings(settings: dict):
    """Persist runtime settings to JSON file."""
    _SETTINGS_FILE.parent.mkdir(parents=True, exist_ok=True)
    _SETTINGS_FILE.write_text(
        json.dumps(settings, indent=2), encoding="utf-8"
    )


# Load saved settings once at import time
_runtime = _load_settings()


class Config:
    """Central configuration: .env defaults, settings.json overrides."""

    # Paths
    PROJECT_ROOT: Path = _PROJECT_ROOT
    DATABASE_PATH: Path = Path(
        os.getenv("DATABASE_PATH",
                  str(_PROJECT_ROOT / "data" / "pocket_library.db"))
    )
    SESSION_PATH: Path = Path(
        os.getenv("SESSION_PATH", str(_PROJECT_ROOT / "data" / "session.json"))
    )
    PHOTOS_DIRECTORY: str = _runtime.get(
        "photos_directory",
        os.getenv("PHOTOS_DIRECTORY", str(_PROJECT_ROOT / "data" / "photos")),
    )

    # Open Library catalog (settings.json overrides .env)
    CATALOG_BASE_URL: str = _runtime.get(
        "catalog_base_url",
        os.getenv("CATALOG_BASE_URL", "https://openlibrary.org"),
    )
    COVER_BASE_URL: str = _runtime.get(
        "cover_base_url",
        os.getenv("COVER_BASE_URL", "https://covers.openlibrary.org"),
    )
    CATALOG_SEARCH_LIMIT: int = int(_runtime.get(
        "catalog_search_limit",
        os.getenv("CATALOG_SEARCH_LIMIT", "20"),
    ))
    HTTP_TIMEOUT: float = float(_runtime.get(
        "http_timeout",
        os.getenv("HTTP_TIMEOUT", "30"),
    ))
    USER_AGENT: str = os.getenv("USER_AGENT", "PocketLibrary/1.0")

    # Firebase (settings.json overrides .env)
    FIREBASE_PROJECT_ID: str = _runtime.get(
        "firebase_project_id",
        os.getenv("FIREBASE_PROJECT_ID", ""),
    )
    FIREBASE_API_KEY: str = _runtime.get(
        "firebase_api_key",
        os.getenv("FIREBASE_API_KEY", ""),
    )

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FILE: str = os.getenv("LOG_FILE", "")

    @classmethod
    def is_cloud_configured(cls) -> bool:
        """True when both Firebase settings are present."""
        return bool(cls.FIREBASE_PROJECT_ID and cls.FIREBASE_API_KEY)

    @classmethod
    def update_catalog_settings(cls, base_url: str, cover_base_url: str,
                                search_limit: int, timeout: float):
        """Update catalog settings at runtime and persist to disk."""
        cls.CATALOG_BASE_URL = base_url
        cls.COVER_BASE_URL = cover_base_url
        cls.CATALOG_SEARCH_LIMIT = search_limit
        cls.HTTP_TIMEOUT = timeout

        settings = _load_settings()
        settings["catalog_base_url"] = base_url
        settings["cover_base_url"] = cover_base_url
        settings["catalog_search_limit"] = search_limit
        settings["http_timeout"] = timeout
        _save_settings(settings)

    @classmethod
    def update_firebase_settings(cls, project_id: str, api_key: str):
        """Update Firebase project settings and persist."""
        cls.FIREBASE_PROJECT_ID = project_id
        cls.FIREBASE_API_KEY = api_key

        settings = _load_settings()
        settings["firebase_project_id"] = project_id
        settings["firebase_api_key"] = api_key
        _save_settings(settings)
