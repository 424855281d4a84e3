"""Application entry point — wires the collaborators and runs the command line."""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from pocket_library.cloud.auth import FirebaseAuth
from pocket_library.cloud.cloud_store import FirestoreCloudStore
from pocket_library.config import Config
from pocket_library.database.book_store import BookStore
from pocket_library.database.connection import DatabaseConnection
from pocket_library.database.models import Book
from pocket_library.database.schema import initialize_database
from pocket_library.errors import LibraryError, NotFoundError, ValidationError
from pocket_library.network.catalog_client import OpenLibraryClient
from pocket_library.network.connectivity import ConnectivityProbe
from pocket_library.sync.book_repository import BookRepository
from pocket_library.utils.constants import APP_NAME
from pocket_library.utils.formatters import (
    format_added,
    format_sync_state,
    format_year,
)
from pocket_library.utils.logging_setup import setup_logging
from pocket_library.utils.validators import parse_year

logger = logging.getLogger(__name__)


def build_auth() -> Optional[FirebaseAuth]:
    """Firebase auth from Config, or None when the cloud is not configured."""
    if not Config.is_cloud_configured():
        return None
    return FirebaseAuth(
        Config.FIREBASE_API_KEY,
        session_path=Config.SESSION_PATH,
        timeout=Config.HTTP_TIMEOUT,
    )


def build_repository(auth: Optional[FirebaseAuth] = None) -> BookRepository:
    """Create every long-lived collaborator once and hand them over."""
    db = DatabaseConnection(Config.DATABASE_PATH)
    initialize_database(db)

    catalog = OpenLibraryClient(
        base_url=Config.CATALOG_BASE_URL,
        cover_base_url=Config.COVER_BASE_URL,
        timeout=Config.HTTP_TIMEOUT,
        user_agent=Config.USER_AGENT,
    )

    cloud = None
    if auth is not None:
        cloud = FirestoreCloudStore(
            Config.FIREBASE_PROJECT_ID,
            token_provider=auth.id_token,
            timeout=Config.HTTP_TIMEOUT,
        )
    else:
        logger.info("Firebase is not configured; running local-only")

    return BookRepository(
        store=BookStore(db),
        catalog=catalog,
        cloud=cloud,
        auth=auth,
        probe=ConnectivityProbe(),
        search_limit=Config.CATALOG_SEARCH_LIMIT,
    )


def _print_book(book: Book):
    year = format_year(book.year)
    year = f" ({year})" if year else ""
    photo = "  [photo]" if book.has_photo else ""
    print(f"{book.id}  {book.title}{year} by {book.author}  "
          f"added {format_added(book.created_at)}, "
          f"{format_sync_state(book.synced_to_cloud)}{photo}")


def _find_book(repo: BookRepository, book_id: str) -> Book:
    book = repo.store.get(book_id)
    if book is None:
        raise NotFoundError(f"No saved book with id {book_id}")
    return book


def resolve_photo_path(path: str) -> str:
    """Absolute photo path; relative paths live under PHOTOS_DIRECTORY."""
    photo = Path(path).expanduser()
    if not photo.is_absolute():
        photo = Path(Config.PHOTOS_DIRECTORY) / photo
    return str(photo)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pocket-library",
        description=f"{APP_NAME}: search Open Library and keep a synced "
                    f"list of favorites.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("search", help="Search the online catalog")
    p.add_argument("query")
    p.add_argument("--save", type=int, metavar="N",
                   help="Save result number N (1-based) to favorites")

    p = sub.add_parser("add", help="Add a book by hand")
    p.add_argument("title")
    p.add_argument("author")
    p.add_argument("--year", default="")

    sub.add_parser("list", help="List saved favorites")

    p = sub.add_parser("find", help="Search saved favorites")
    p.add_argument("text")

    p = sub.add_parser("delete", help="Delete a saved book")
    p.add_argument("book_id")

    p = sub.add_parser("photo", help="Attach a personal photo to a book")
    p.add_argument("book_id")
    p.add_argument("path")

    sub.add_parser("sync", help="Push unsynced books to the cloud")
    sub.add_parser("pull", help="Merge cloud books into this device")
    sub.add_parser("status", help="Show connection and sync status")

    for name in ("login", "signup"):
        p = sub.add_parser(name, help=f"{name.title()} with email/password")
        p.add_argument("email")
        p.add_argument("password")
    sub.add_parser("logout", help="Forget the signed-in user")
    return parser


def run(args: argparse.Namespace) -> int:
    auth = build_auth()
    if args.command in ("login", "signup", "logout") and auth is None:
        print("Firebase is not configured (set FIREBASE_PROJECT_ID and "
              "FIREBASE_API_KEY).", file=sys.stderr)
        return 2

    repo = build_repository(auth)
    try:
        if args.command == "search":
            results = repo.search_online(args.query)
            if not results:
                print("No books found.")
            for i, result in enumerate(results, start=1):
                year = format_year(result.first_publish_year)
                print(f"{i:2d}. {result.title} - {result.authors_display}"
                      f"{f' ({year})' if year else ''}")
                if result.isbn or result.publisher:
                    extras = [f"ISBN {result.isbn[0]}" if result.isbn else "",
                              ", ".join(result.publisher[:2])]
                    print("    " + "; ".join(e for e in extras if e))
            if args.save:
                if not 1 <= args.save <= len(results):
                    raise ValidationError(f"No result number {args.save}")
                book = repo.add_from_catalog_result(results[args.save - 1])
                print(f"Added '{book.title}' to favorites")
        elif args.command == "add":
            try:
                year = parse_year(args.year)
            except ValueError:
                raise ValidationError("Year must be a number") from None
            book = repo.add_manual(args.title, args.author, year)
            print(f"Added '{book.title}' to favorites")
        elif args.command == "list":
            for book in repo.get_all_favorites().snapshot():
                _print_book(book)
        elif args.command == "find":
            for book in repo.search_favorites(args.text).snapshot():
                _print_book(book)
        elif args.command == "delete":
            repo.delete(_find_book(repo, args.book_id))
            print("Book deleted")
        elif args.command == "photo":
            _find_book(repo, args.book_id)
            repo.attach_photo(args.book_id, resolve_photo_path(args.path))
            print("Photo attached")
        elif args.command == "sync":
            print(f"Attempted to sync {repo.sync_unsynced_to_cloud()} books")
        elif args.command == "pull":
            print(f"Merged {repo.pull_from_cloud()} books from the cloud")
        elif args.command == "status":
            unsynced = len(repo.store.list_unsynced())
            user = auth.current_user_id() if auth else None
            print(f"Connection: {repo.probe.connection_label()}")
            print(f"Signed in:  {user or 'no'}")
            print(f"Books:      {repo.store.count()} ({unsynced} unsynced)")
        elif args.command == "login":
            print(f"Signed in as {auth.login(args.email, args.password)}")
            print(f"Merged {repo.pull_from_cloud()} books from the cloud")
        elif args.command == "signup":
            print(f"Created account {auth.sign_up(args.email, args.password)}")
            print(f"Attempted to sync {repo.sync_unsynced_to_cloud()} books")
        elif args.command == "logout":
            auth.logout()
            print("Signed out")
    except LibraryError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        repo.catalog.close()
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """Launch the Pocket Library command line."""
    setup_logging(Config.LOG_LEVEL, Config.LOG_FILE or None)
    args = _build_parser().parse_args(argv)
    return run(args)


if __name__ == "__main__":
    sys.exit(main())
