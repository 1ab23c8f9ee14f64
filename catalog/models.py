"""
Pydantic models for book records, their inputs and paginated listings.

Persisted and wire field names are camelCase; attributes are snake_case.
"""

import math
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, StrictInt, StrictStr


class Book(BaseModel):
    """Book record as stored in the books collection."""
    id: str = Field(..., description="Unique book identifier")
    title: str = Field(..., description="Book title")
    author: str = Field(..., description="Book author")
    genre: str = Field(..., description="Book genre")
    published_year: int = Field(..., alias="publishedYear", description="Year of publication")
    owner_id: str = Field(..., alias="ownerId", description="ID of the user who created the book")
    created_at: str = Field(..., alias="createdAt", description="Creation timestamp")
    updated_at: Optional[str] = Field(None, alias="updatedAt", description="Last update timestamp")

    model_config = {
        "populate_by_name": True,
        "json_schema_extra": {
            "example": {
                "id": "0b6f3a4e-9a53-4c0e-9d2b-0c1e5f6a7b8c",
                "title": "The Left Hand of Darkness",
                "author": "Ursula K. Le Guin",
                "genre": "Science Fiction",
                "publishedYear": 1969,
                "ownerId": "5d1c2b3a-4e5f-6a7b-8c9d-0e1f2a3b4c5d",
                "createdAt": "2024-01-15T10:30:00+00:00"
            }
        }
    }

    def to_record(self) -> Dict[str, Any]:
        """Serialize for storage and responses; ``updatedAt`` is omitted until set."""
        return self.model_dump(by_alias=True, exclude_none=True)


class BookCreate(BaseModel):
    """Fields supplied when creating a book. Unknown keys are ignored."""
    title: StrictStr = Field(..., min_length=1)
    author: StrictStr = Field(..., min_length=1)
    genre: StrictStr = Field(..., min_length=1)
    published_year: StrictInt = Field(..., alias="publishedYear")

    model_config = {"populate_by_name": True, "extra": "ignore"}


class BookUpdate(BaseModel):
    """
    Partial update of a book.

    Only fields present in the input are applied, so an explicit
    ``publishedYear: 0`` is distinguished from an absent year. A present
    field must still be valid; ``null`` is rejected.
    """
    title: StrictStr = Field(None, min_length=1)
    author: StrictStr = Field(None, min_length=1)
    genre: StrictStr = Field(None, min_length=1)
    published_year: StrictInt = Field(None, alias="publishedYear")

    model_config = {"populate_by_name": True, "extra": "ignore"}

    def changes(self) -> Dict[str, Any]:
        """Provided fields keyed by attribute name."""
        return {name: getattr(self, name) for name in self.model_fields_set}

    def apply_to(self, book: Book, updated_at: str) -> Book:
        """Merge the provided fields into a book and stamp ``updatedAt``."""
        return book.model_copy(update={**self.changes(), "updated_at": updated_at})


class Pagination(BaseModel):
    """Pagination metadata for a book listing."""
    current_page: int = Field(..., alias="currentPage")
    total_pages: int = Field(..., alias="totalPages")
    total_books: int = Field(..., alias="totalBooks")
    has_next: bool = Field(..., alias="hasNext")
    has_prev: bool = Field(..., alias="hasPrev")

    model_config = {"populate_by_name": True}


class BookPage(BaseModel):
    """One page of a book listing."""
    books: List[Book]
    pagination: Pagination

    @classmethod
    def from_books(cls, books: List[Book], page: int, limit: int) -> "BookPage":
        """
        Slice a full listing into one page.

        Args:
            books: Complete, already filtered listing
            page: Page number, starting at 1
            limit: Books per page
        """
        if page < 1 or limit < 1:
            raise ValueError("page and limit must be positive")

        start = (page - 1) * limit
        end = start + limit
        return cls(
            books=books[start:end],
            pagination=Pagination(
                current_page=page,
                total_pages=math.ceil(len(books) / limit),
                total_books=len(books),
                has_next=end < len(books),
                has_prev=page > 1,
            ),
        )

    def to_response(self) -> Dict[str, Any]:
        return {
            "books": [book.to_record() for book in self.books],
            "pagination": self.pagination.model_dump(by_alias=True),
        }
