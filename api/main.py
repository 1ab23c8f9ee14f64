"""
FastAPI main application for the Book Catalog API.
"""

import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from uuid import uuid4

import structlog
from fastapi import Body, Depends, FastAPI, Query, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.auth import get_current_user, get_service
from api.config import APIConfig
from api.models import (
    BookListResponse, BookResponse, CredentialsRequest, ErrorResponse,
    HealthResponse, LoginResponse, RegisterResponse
)
from catalog.models import BookPage
from catalog.service import CatalogService
from identity.models import AuthenticatedUser
from utilities.config import CatalogConfig
from utilities.exceptions import (
    AuthFailure, CatalogError, DuplicateIdentityError, ForbiddenError,
    InvalidTokenError, NotFoundError, StorageError, ValidationError
)
from utilities.logger import setup_logging

# Setup logging
logger = structlog.get_logger(__name__)

# Most specific first; the first matching class wins
ERROR_STATUS_CODES = [
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (DuplicateIdentityError, status.HTTP_400_BAD_REQUEST),
    (InvalidTokenError, status.HTTP_403_FORBIDDEN),
    (AuthFailure, status.HTTP_401_UNAUTHORIZED),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ForbiddenError, status.HTTP_403_FORBIDDEN),
]


def status_code_for(exc: CatalogError) -> int:
    """HTTP status for a catalog error; anything unmapped is a server error."""
    for error_class, status_code in ERROR_STATUS_CODES:
        if isinstance(exc, error_class):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def error_response(status_code: int, error: str, detail: Optional[str] = None, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=error, detail=detail, status_code=status_code).model_dump(),
        headers=headers
    )


def create_app(
    catalog_config: Optional[CatalogConfig] = None,
    api_config: Optional[APIConfig] = None
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        catalog_config: Core configuration; read from the environment when omitted
        api_config: Server configuration; read from the environment when omitted

    Returns:
        Configured application. Storage is initialized by its lifespan.
    """
    catalog_config = catalog_config or CatalogConfig()
    api_config = api_config or APIConfig()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager."""
        setup_logging(
            log_level=catalog_config.log_level,
            log_format=catalog_config.log_format,
            log_file=catalog_config.get_log_file_path(),
            debug=catalog_config.debug
        )
        logger.info("Starting Book Catalog API")

        service = CatalogService(catalog_config)
        try:
            await service.initialize_storage()
        except StorageError as e:
            logger.error("Failed to initialize storage", error=str(e))
            raise

        app.state.service = service

        yield

        logger.info("Shutting down Book Catalog API")

    app = FastAPI(
        title=api_config.api_title,
        description=api_config.api_description + f"""

    ## Features

    * **Accounts**: Register and log in with email and password
    * **Books**: Create, browse, search, update and delete books
    * **Ownership**: Only the user who created a book may change or delete it
    * **Pagination**: Optional page/limit pagination of book listings

    ## Authentication

    All `/books` endpoints require a token obtained from `/auth/login`:

    ```
    Authorization: Bearer your_token_here
    ```

    Tokens expire {catalog_config.token_expire_hours} hours after issuance.
    """,
        version=api_config.api_version,
        lifespan=lifespan
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=api_config.cors_origins,
        allow_credentials=api_config.cors_allow_credentials,
        allow_methods=api_config.cors_allow_methods,
        allow_headers=api_config.cors_allow_headers,
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Tag the request with an id and log its outcome and duration."""
        request_id = request.headers.get("X-Request-ID") or str(uuid4())
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        started = time.perf_counter()
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        logger.info(
            "Request handled",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 2)
        )
        return response

    # Exception handlers
    @app.exception_handler(CatalogError)
    async def catalog_exception_handler(request: Request, exc: CatalogError):
        """Translate catalog errors; storage failures are hidden behind a generic message."""
        status_code = status_code_for(exc)
        if status_code >= 500:
            logger.error(
                "Internal failure",
                path=request.url.path,
                error_type=type(exc).__name__,
                error=str(exc)
            )
            return error_response(
                status_code,
                "Internal server error",
                detail=str(exc) if api_config.debug else None
            )
        return error_response(status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Malformed requests are client errors."""
        return error_response(
            status.HTTP_400_BAD_REQUEST,
            "Invalid request data",
            detail="; ".join(
                f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
                for error in exc.errors()
            )
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Handle HTTP exceptions."""
        error = "Route not found" if exc.status_code == status.HTTP_404_NOT_FOUND else str(exc.detail)
        return error_response(exc.status_code, error, headers=getattr(exc, "headers", None))

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle general exceptions."""
        logger.error("Unhandled exception", error=str(exc), path=request.url.path, exc_info=exc)
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Internal server error",
            detail=str(exc) if api_config.debug else None
        )

    # Health check endpoint (no authentication required)
    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check(request: Request):
        """Health check endpoint."""
        service: Optional[CatalogService] = getattr(request.app.state, "service", None)
        storage_status = "unavailable"
        if service:
            health_info = await service.health_check()
            storage_status = health_info.get("status", "unknown")

        return HealthResponse(
            status="OK" if storage_status == "healthy" else "DEGRADED",
            timestamp=datetime.now(timezone.utc),
            version=api_config.api_version,
            storage_status=storage_status
        )

    # Auth endpoints
    @app.post(
        "/auth/register",
        response_model=RegisterResponse,
        status_code=status.HTTP_201_CREATED,
        responses={400: {"model": ErrorResponse}},
        tags=["Auth"]
    )
    async def register(
        payload: CredentialsRequest,
        service: CatalogService = Depends(get_service)
    ):
        """
        Register a new user.

        - **email**: Unique email address
        - **password**: Password, stored only as a salted hash
        """
        user = await service.register(payload.email, payload.password)
        return JSONResponse(
            status_code=status.HTTP_201_CREATED,
            content={"message": "User registered", "user": user.model_dump(by_alias=True)}
        )

    @app.post(
        "/auth/login",
        response_model=LoginResponse,
        responses={401: {"model": ErrorResponse}},
        tags=["Auth"]
    )
    async def login(
        payload: CredentialsRequest,
        service: CatalogService = Depends(get_service)
    ):
        """Log in and receive a bearer token."""
        result = await service.login(payload.email, payload.password)
        return JSONResponse(
            content={
                "message": "Login successful",
                "token": result.token,
                "user": {"id": result.id, "email": result.email},
            }
        )

    # Books endpoints
    @app.get("/books", response_model=BookListResponse, tags=["Books"])
    async def get_books(
        genre: Optional[str] = None,
        page: Optional[int] = Query(None, ge=1),
        limit: Optional[int] = Query(None, ge=1),
        current_user: AuthenticatedUser = Depends(get_current_user),
        service: CatalogService = Depends(get_service)
    ):
        """
        List books, optionally filtered and paginated.

        - **genre**: Case-insensitive substring filter on genre
        - **page**: Page number (starts from 1), used together with limit
        - **limit**: Books per page, used together with page
        """
        books = await service.list_books(genre=genre)

        if page is not None and limit is not None:
            return JSONResponse(content=BookPage.from_books(books, page, limit).to_response())

        return JSONResponse(content={"books": [book.to_record() for book in books]})

    @app.get("/books/search", response_model=BookListResponse, tags=["Books"])
    async def search_books(
        genre: Optional[str] = None,
        current_user: AuthenticatedUser = Depends(get_current_user),
        service: CatalogService = Depends(get_service)
    ):
        """
        Search books by genre.

        - **genre**: Required case-insensitive substring of the genre
        """
        if not genre:
            raise ValidationError("Genre is required")

        books = await service.list_books(genre=genre)
        return JSONResponse(content={"books": [book.to_record() for book in books]})

    @app.get("/books/{book_id}", response_model=BookResponse, tags=["Books"])
    async def get_book(
        book_id: str,
        current_user: AuthenticatedUser = Depends(get_current_user),
        service: CatalogService = Depends(get_service)
    ):
        """Get a single book by ID."""
        book = await service.get_book(book_id)
        return JSONResponse(content={"book": book.to_record()})

    @app.post(
        "/books",
        response_model=BookResponse,
        status_code=status.HTTP_201_CREATED,
        tags=["Books"]
    )
    async def create_book(
        payload: Dict[str, Any] = Body(...),
        current_user: AuthenticatedUser = Depends(get_current_user),
        service: CatalogService = Depends(get_service)
    ):
        """
        Create a book owned by the caller.

        - **title**, **author**, **genre**: Non-empty strings
        - **publishedYear**: Integer year
        """
        book = await service.create_book(current_user.id, payload)
        return JSONResponse(
            status_code=status.HTTP_201_CREATED,
            content={"message": "Book created", "book": book.to_record()}
        )

    @app.put("/books/{book_id}", response_model=BookResponse, tags=["Books"])
    async def update_book(
        book_id: str,
        payload: Dict[str, Any] = Body(...),
        current_user: AuthenticatedUser = Depends(get_current_user),
        service: CatalogService = Depends(get_service)
    ):
        """
        Update the provided fields of a book owned by the caller.

        Fields left out of the body are kept as they are.
        """
        book = await service.update_book(current_user.id, book_id, payload)
        return JSONResponse(content={"message": "Book updated", "book": book.to_record()})

    @app.delete("/books/{book_id}", response_model=BookResponse, tags=["Books"])
    async def delete_book(
        book_id: str,
        current_user: AuthenticatedUser = Depends(get_current_user),
        service: CatalogService = Depends(get_service)
    ):
        """Delete a book owned by the caller."""
        book = await service.delete_book(current_user.id, book_id)
        return JSONResponse(content={"message": "Book deleted", "book": book.to_record()})

    return app


# Create FastAPI application
app = create_app()

