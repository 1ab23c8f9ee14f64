#!/usr/bin/env python3
"""
Catalog Management Utility

This script provides utilities to manage the catalog storage:
- Initialize the collection files
- Create a user
- List users and books
- Show catalog statistics
- Report books whose owner no longer exists
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from catalog.service import CatalogService
from utilities.config import CatalogConfig
from utilities.exceptions import CatalogError
from utilities.logger import get_logger, setup_logging


async def initialize(service: CatalogService, args) -> None:
    """Create the collection files if they are missing."""
    await service.initialize_storage()
    print(f"Storage ready in {service.store.data_dir.resolve()}")


async def create_user(service: CatalogService, args) -> None:
    """Register a user from the command line."""
    await service.initialize_storage()
    user = await service.register(args.email, args.password)
    print(f"Created user {user.email} ({user.id})")


async def list_users(service: CatalogService, args) -> None:
    """List registered users, without password hashes."""
    users = await service.list_users()
    if not users:
        print("No users found")
        return

    print(f"Found {len(users)} users:")
    for i, user in enumerate(users, 1):
        print(f"{i:3d}. {user.email}  id={user.id}  created={user.created_at}")


async def list_books(service: CatalogService, args) -> None:
    """List books, optionally filtered by genre."""
    books = await service.list_books(genre=args.genre)
    if not books:
        print("No books found")
        return

    print(f"Found {len(books)} books:")
    for i, book in enumerate(books, 1):
        print(f"{i:3d}. {book.title} by {book.author} ({book.published_year})")
        print(f"     Genre: {book.genre}")
        print(f"     ID: {book.id}  Owner: {book.owner_id}")


async def show_statistics(service: CatalogService, args) -> None:
    """Show user and book counts."""
    stats = await service.get_stats()
    print(f"Total users: {stats['total_users']}")
    print(f"Total books: {stats['total_books']}")
    for genre, count in stats["books_by_genre"].items():
        print(f"  {genre}: {count}")


async def report_orphans(service: CatalogService, args) -> None:
    """List books whose owner is not a registered user. Nothing is removed."""
    orphans = await service.find_orphaned_books()
    if not orphans:
        print("No orphaned books found")
        return

    print(f"Warning: {len(orphans)} books reference unknown owners:")
    for book in orphans:
        print(f"  {book.id}  '{book.title}'  owner={book.owner_id}")


COMMANDS = {
    "init": initialize,
    "create-user": create_user,
    "users": list_users,
    "books": list_books,
    "stats": show_statistics,
    "orphans": report_orphans,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Manage the book catalog storage")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("init", help="Initialize the collection files")

    create_parser = subparsers.add_parser("create-user", help="Register a user")
    create_parser.add_argument("email")
    create_parser.add_argument("password")

    subparsers.add_parser("users", help="List users")

    books_parser = subparsers.add_parser("books", help="List books")
    books_parser.add_argument("--genre", default=None, help="Filter by genre substring")

    subparsers.add_parser("stats", help="Show catalog statistics")
    subparsers.add_parser("orphans", help="Report books whose owner no longer exists")
    return parser


async def main(argv=None) -> int:
    """Main function."""
    args = build_parser().parse_args(argv)
    config = CatalogConfig()

    setup_logging(
        log_level=config.log_level,
        log_format=config.log_format,
        log_file=config.get_log_file_path(),
        debug=config.debug
    )

    logger = get_logger(__name__)
    logger.debug("Running management command", command=args.command, data_dir=config.data_dir)

    service = CatalogService(config)
    try:
        await COMMANDS[args.command](service, args)
    except CatalogError as e:
        logger.debug("Management command failed", command=args.command, error_type=type(e).__name__)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
