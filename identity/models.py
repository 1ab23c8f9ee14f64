"""
Pydantic models for user identity and token claims.

Persisted and wire field names are camelCase; attributes are snake_case.
"""

from typing import Any, Dict

from pydantic import BaseModel, Field


class PublicUser(BaseModel):
    """User as exposed outside the vault: never carries the password hash."""
    id: str = Field(..., description="Unique user identifier")
    email: str = Field(..., description="User email")
    created_at: str = Field(..., alias="createdAt", description="Creation timestamp")

    model_config = {"populate_by_name": True}


class User(BaseModel):
    """User record as stored in the users collection."""
    id: str = Field(..., description="Unique user identifier")
    email: str = Field(..., description="User email, unique and case-sensitive")
    password_hash: str = Field(..., alias="passwordHash", description="bcrypt hash")
    created_at: str = Field(..., alias="createdAt", description="Creation timestamp")

    model_config = {"populate_by_name": True}

    def to_public(self) -> PublicUser:
        """Strip the password hash."""
        return PublicUser(id=self.id, email=self.email, created_at=self.created_at)

    def to_record(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class TokenClaims(BaseModel):
    """Identity claims embedded in a bearer token."""
    user_id: str = Field(..., alias="userId")
    email: str
    iat: int = Field(..., description="Issued-at, seconds since epoch")
    exp: int = Field(..., description="Expiry, seconds since epoch")

    model_config = {"populate_by_name": True}


class AuthenticatedUser(BaseModel):
    """Result of a successful token verification."""
    user: User
    claims: TokenClaims

    @property
    def id(self) -> str:
        return self.user.id

    @property
    def email(self) -> str:
        return self.user.email


class LoginResult(BaseModel):
    """Token issued by a successful login."""
    token: str
    id: str
    email: str
