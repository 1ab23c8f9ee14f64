"""
Book catalog operations over the record store.

Every operation re-reads the books collection. Mutations run as one
serialized load -> mutate -> save cycle on the collection.
"""

import uuid
from typing import Any, Dict, List, Mapping, Optional, Tuple

import structlog
from pydantic import ValidationError as PydanticValidationError

from catalog.models import Book, BookCreate, BookUpdate
from identity.authorization import authorize_mutation
from storage.record_store import RecordStore, utc_timestamp
from utilities.exceptions import NotFoundError, StorageCorruptError, ValidationError

logger = structlog.get_logger(__name__)


def _parse_book(record: Dict[str, Any]) -> Book:
    try:
        return Book.model_validate(record)
    except PydanticValidationError as e:
        raise StorageCorruptError(f"Malformed book record: {e}") from e


def _find_index(records: List[Dict[str, Any]], book_id: str) -> int:
    for index, record in enumerate(records):
        if record.get("id") == book_id:
            return index
    raise NotFoundError()


def _validate(model, fields: Optional[Mapping[str, Any]]):
    if not isinstance(fields, Mapping):
        raise ValidationError("Invalid book data")
    try:
        return model.model_validate(dict(fields))
    except PydanticValidationError as e:
        raise ValidationError("Invalid book data") from e


class BookCatalog:
    """CRUD operations on books, with ownership checks on mutations."""

    def __init__(self, store: RecordStore, collection_name: str = "books"):
        """
        Initialize the catalog.

        Args:
            store: Record store holding the books collection
            collection_name: Name of the books collection
        """
        self.store = store
        self.collection_name = collection_name
        self.logger = logger.bind(component="book_catalog")

    async def initialize(self) -> None:
        await self.store.initialize(self.collection_name)

    async def list_books(self, genre: Optional[str] = None) -> List[Book]:
        """
        List books in stored order.

        Args:
            genre: Optional case-insensitive substring filter on genre

        Returns:
            Matching books
        """
        records = await self.store.load_all(self.collection_name)
        books = [_parse_book(record) for record in records]
        if genre:
            needle = genre.lower()
            books = [book for book in books if needle in book.genre.lower()]
        return books

    async def get_book(self, book_id: str) -> Book:
        """
        Raises:
            NotFoundError: No book with this ID
        """
        records = await self.store.load_all(self.collection_name)
        return _parse_book(records[_find_index(records, book_id)])

    async def create_book(self, owner_id: str, fields: Mapping[str, Any]) -> Book:
        """
        Create a book owned by the authenticated user.

        Args:
            owner_id: ID of the authenticated user
            fields: title, author, genre and publishedYear

        Raises:
            ValidationError: Required field missing or of the wrong type
        """
        data = _validate(BookCreate, fields)
        book = Book(
            id=str(uuid.uuid4()),
            title=data.title,
            author=data.author,
            genre=data.genre,
            published_year=data.published_year,
            owner_id=owner_id,
            created_at=utc_timestamp(),
        )

        def append_book(records: List[Dict[str, Any]]) -> Book:
            records.append(book.to_record())
            return book

        created = await self.store.modify(self.collection_name, append_book)
        self.logger.info("Book created", book_id=created.id, owner_id=owner_id)
        return created

    async def update_book(self, user_id: str, book_id: str, fields: Mapping[str, Any]) -> Book:
        """
        Apply a partial update to a book owned by the user.

        Existence and ownership are checked before the fields, so a
        non-owner is refused whatever the payload.

        Raises:
            NotFoundError: No book with this ID
            ForbiddenError: The user does not own the book
            ValidationError: A provided field is invalid
        """
        def apply_update(records: List[Dict[str, Any]]) -> Tuple[Book, BookUpdate]:
            index = _find_index(records, book_id)
            book = _parse_book(records[index])
            authorize_mutation(user_id, book)
            update = _validate(BookUpdate, fields)
            updated = update.apply_to(book, updated_at=utc_timestamp())
            records[index] = updated.to_record()
            return updated, update

        updated, update = await self.store.modify(self.collection_name, apply_update)
        self.logger.info(
            "Book updated",
            book_id=book_id,
            user_id=user_id,
            fields=sorted(update.model_fields_set)
        )
        return updated

    async def delete_book(self, user_id: str, book_id: str) -> Book:
        """
        Delete a book owned by the user.

        Returns:
            The removed book

        Raises:
            NotFoundError: No book with this ID
            ForbiddenError: The user does not own the book
        """
        def remove_book(records: List[Dict[str, Any]]) -> Book:
            index = _find_index(records, book_id)
            book = _parse_book(records[index])
            authorize_mutation(user_id, book)
            del records[index]
            return book

        deleted = await self.store.modify(self.collection_name, remove_book)
        self.logger.info("Book deleted", book_id=book_id, user_id=user_id)
        return deleted
