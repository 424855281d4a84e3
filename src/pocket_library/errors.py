"""Exception hierarchy shared by the storage, network, cloud and sync layers."""

from typing import Optional


class LibraryError(Exception):
    """Base exception for library operations."""


class ValidationError(LibraryError):
    """Input was rejected before any work was done."""


class OfflineError(LibraryError):
    """The network was required but the device is offline."""


class DuplicateError(LibraryError):
    """The book is already in the library."""


class NotFoundError(LibraryError):
    """The target book does not exist locally."""


class StorageError(LibraryError):
    """The local database failed."""


class CatalogSearchError(LibraryError):
    """The catalog search request failed.

    ``status_code`` is None when the request never got an HTTP response.
    """

    def __init__(self, status_code: Optional[int], message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class CloudSyncError(LibraryError):
    """A cloud read, write or delete failed."""


class AuthError(LibraryError):
    """Authentication with the identity provider failed."""

    def __init__(self, code: str, message: str = ""):
        super().__init__(message or code)
        self.code = code
        self.message = message or code
