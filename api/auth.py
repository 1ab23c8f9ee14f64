"""
Bearer token authentication dependencies for the FastAPI API.
"""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from catalog.service import CatalogService
from identity.models import AuthenticatedUser

# Missing credentials are reported by the authenticator, not by FastAPI
security = HTTPBearer(auto_error=False)


def get_service(request: Request) -> CatalogService:
    """Catalog service created during application startup."""
    return request.app.state.service


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    service: CatalogService = Depends(get_service)
) -> AuthenticatedUser:
    """
    Resolve the caller from the ``Authorization: Bearer`` header.

    Raises:
        MissingTokenError: No bearer token supplied
        InvalidTokenError: Token rejected or its user no longer exists
    """
    token = credentials.credentials if credentials else None
    return await service.require_authentication(token)
