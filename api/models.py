"""
API request and response schemas for the FastAPI application.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from catalog.models import Book, Pagination
from identity.models import PublicUser


class CredentialsRequest(BaseModel):
    """Body of the register and login endpoints. Presence is checked by the vault."""
    email: Optional[str] = Field(None, description="User email")
    password: Optional[str] = Field(None, description="User password")


class UserSummary(BaseModel):
    id: str = Field(..., description="Unique user identifier")
    email: str = Field(..., description="User email")


class RegisterResponse(BaseModel):
    """Response model for a successful registration."""
    message: str = Field(..., description="Outcome message")
    user: PublicUser = Field(..., description="Created user, without password")


class LoginResponse(BaseModel):
    """Response model for a successful login."""
    message: str = Field(..., description="Outcome message")
    token: str = Field(..., description="Bearer token, valid for 24 hours")
    user: UserSummary = Field(..., description="Logged-in user")


class BookListResponse(BaseModel):
    """Response model for book listings; pagination present when requested."""
    books: List[Book] = Field(..., description="List of books")
    pagination: Optional[Pagination] = Field(None, description="Pagination metadata")


class BookResponse(BaseModel):
    """Response model wrapping a single book."""
    message: Optional[str] = Field(None, description="Outcome message for mutations")
    book: Book = Field(..., description="The book")


class ErrorResponse(BaseModel):
    """Error response model."""
    error: str = Field(..., description="Error message")
    detail: Optional[str] = Field(None, description="Additional error details")
    status_code: int = Field(..., description="HTTP status code")


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(..., description="Service status")
    timestamp: datetime = Field(..., description="Current timestamp")
    version: str = Field(..., description="API version")
    storage_status: str = Field(..., description="Record store status")
