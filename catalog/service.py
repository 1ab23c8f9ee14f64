"""
Catalog service: the operation set consumed by the HTTP API and the admin CLI.
"""

from collections import Counter
from datetime import timedelta
from typing import Any, Dict, List, Mapping, Optional

import structlog

from catalog.books import BookCatalog
from catalog.models import Book
from identity.models import AuthenticatedUser, LoginResult, PublicUser
from identity.tokens import Authenticator
from identity.vault import CredentialVault
from storage.record_store import RecordStore
from utilities.config import CatalogConfig
from utilities.exceptions import StorageError

logger = structlog.get_logger(__name__)


class CatalogService:
    """Wires the record store, vault, authenticator and book catalog together."""

    def __init__(self, config: CatalogConfig):
        """
        Initialize the service from an explicit configuration.

        Args:
            config: Catalog configuration built at startup
        """
        self.config = config
        self.store = RecordStore(config.get_data_dir())
        self.vault = CredentialVault(self.store, collection_name=config.users_collection)
        self.authenticator = Authenticator(
            self.vault,
            secret_key=config.jwt_secret,
            algorithm=config.jwt_algorithm,
            token_lifetime=timedelta(hours=config.token_expire_hours)
        )
        self.books = BookCatalog(self.store, collection_name=config.books_collection)

    async def initialize_storage(self) -> None:
        """Create the users and books collections if absent. Must run before serving."""
        await self.vault.initialize()
        await self.books.initialize()
        if self.config.uses_default_secret():
            logger.warning(
                "Token signing secret is the built-in default; set JWT_SECRET in production"
            )
        logger.info("Storage initialized", data_dir=str(self.store.data_dir))

    async def register(self, email: Optional[str], password: Optional[str]) -> PublicUser:
        return await self.vault.register(email, password)

    async def login(self, email: Optional[str], password: Optional[str]) -> LoginResult:
        return await self.authenticator.login(email, password)

    async def require_authentication(self, token: Optional[str]) -> AuthenticatedUser:
        return await self.authenticator.require_authentication(token)

    async def list_books(self, genre: Optional[str] = None) -> List[Book]:
        return await self.books.list_books(genre=genre)

    async def get_book(self, book_id: str) -> Book:
        return await self.books.get_book(book_id)

    async def create_book(self, user_id: str, fields: Mapping[str, Any]) -> Book:
        return await self.books.create_book(user_id, fields)

    async def update_book(self, user_id: str, book_id: str, fields: Mapping[str, Any]) -> Book:
        return await self.books.update_book(user_id, book_id, fields)

    async def delete_book(self, user_id: str, book_id: str) -> Book:
        return await self.books.delete_book(user_id, book_id)

    async def list_users(self) -> List[PublicUser]:
        return await self.vault.list_users()

    async def find_orphaned_books(self) -> List[Book]:
        """
        Books whose owner is not a registered user.

        Ownership is only checked against the authenticated identity at
        creation time, so this is a report, not a repair.
        """
        user_ids = {user.id for user in await self.vault.list_users()}
        return [book for book in await self.books.list_books() if book.owner_id not in user_ids]

    async def get_stats(self) -> Dict[str, Any]:
        """User and book counts, with books per genre."""
        users = await self.vault.list_users()
        books = await self.books.list_books()
        genres = Counter(book.genre for book in books)
        return {
            "total_users": len(users),
            "total_books": len(books),
            "books_by_genre": dict(genres.most_common()),
        }

    async def health_check(self) -> Dict[str, Any]:
        """
        Check that both collections load.

        Returns:
            Dictionary with health status
        """
        try:
            users = await self.vault.list_users()
            books = await self.books.list_books()
            return {
                "status": "healthy",
                "users_count": len(users),
                "books_count": len(books),
            }
        except StorageError as e:
            logger.error("Storage health check failed", error=str(e))
            return {
                "status": "unhealthy",
                "error": str(e)
            }
