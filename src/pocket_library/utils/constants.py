"""Application-wide constants."""

APP_NAME = "Pocket Library"
APP_VERSION = "1.0.0"

# Open Library search
CATALOG_SEARCH_FIELDS = (
    "key,title,author_name,first_publish_year,cover_i,isbn,publisher,language"
)
DEFAULT_SEARCH_LIMIT = 20

# Cover sizes served by covers.openlibrary.org
COVER_SIZES = ("S", "M", "L")
PROMOTED_COVER_SIZE = "L"

UNKNOWN_AUTHOR = "Unknown Author"

# Manual entry bounds for the publication year
MIN_YEAR = 1000
MAX_YEAR = 2100

# Firestore layout: books/{userId}/userBooks/{bookId}
CLOUD_ROOT_COLLECTION = "books"
CLOUD_USER_COLLECTION = "userBooks"
