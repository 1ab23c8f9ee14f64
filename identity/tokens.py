"""
Bearer token authentication.

Tokens are HS256 JWTs carrying the user's id and email. They are not stored:
a token is valid while its signature checks out, it has not expired, and its
user still exists in the credential vault.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
import structlog
from pydantic import ValidationError as PydanticValidationError

from identity.models import AuthenticatedUser, LoginResult, TokenClaims, User
from identity.vault import CredentialVault
from utilities.exceptions import InvalidTokenError, MissingTokenError, UnknownIdentityError

logger = structlog.get_logger(__name__)

DEFAULT_TOKEN_LIFETIME = timedelta(hours=24)


class Authenticator:
    """Issues and verifies signed, time-limited bearer tokens."""

    def __init__(
        self,
        vault: CredentialVault,
        secret_key: str,
        algorithm: str = "HS256",
        token_lifetime: timedelta = DEFAULT_TOKEN_LIFETIME
    ):
        """
        Initialize the authenticator.

        Args:
            vault: Credential vault used for logins and identity re-resolution
            secret_key: Token signing secret
            algorithm: JWT signing algorithm
            token_lifetime: Time from issuance to expiry
        """
        self.vault = vault
        self._secret_key = secret_key
        self.algorithm = algorithm
        self.token_lifetime = token_lifetime
        self.logger = logger.bind(component="authenticator")

    def issue_token(self, user: User) -> str:
        """
        Issue a signed token for a user.

        Args:
            user: Authenticated user

        Returns:
            Encoded JWT
        """
        now = datetime.now(timezone.utc)
        claims = {
            "userId": user.id,
            "email": user.email,
            "iat": int(now.timestamp()),
            "exp": int((now + self.token_lifetime).timestamp()),
        }
        return jwt.encode(claims, self._secret_key, algorithm=self.algorithm)

    def decode_token(self, token: str) -> TokenClaims:
        """
        Check signature and expiry and return the claims.

        Raises:
            InvalidTokenError: Token is malformed, badly signed or expired
        """
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self.algorithm],
                options={"require": ["exp", "iat"]}
            )
        except jwt.ExpiredSignatureError:
            self.logger.info("Rejected expired token")
            raise InvalidTokenError()
        except jwt.InvalidTokenError as e:
            self.logger.info("Rejected invalid token", reason=str(e))
            raise InvalidTokenError()

        try:
            return TokenClaims.model_validate(payload)
        except PydanticValidationError:
            self.logger.info("Rejected token with missing identity claims")
            raise InvalidTokenError()

    async def verify_token(self, token: str) -> AuthenticatedUser:
        """
        Verify a token and resolve its user.

        Raises:
            InvalidTokenError: Token is malformed, badly signed or expired
            UnknownIdentityError: Token user no longer exists
        """
        claims = self.decode_token(token)
        user = await self.vault.get_by_id(claims.user_id)
        if user is None:
            self.logger.warning("Token refers to unknown user", user_id=claims.user_id)
            raise UnknownIdentityError()
        return AuthenticatedUser(user=user, claims=claims)

    async def login(self, email: Optional[str], password: Optional[str]) -> LoginResult:
        """Verify credentials and issue a token."""
        user = await self.vault.verify_credentials(email, password)
        token = self.issue_token(user)
        self.logger.info("User logged in", user_id=user.id)
        return LoginResult(token=token, id=user.id, email=user.email)

    async def require_authentication(self, token: Optional[str]) -> AuthenticatedUser:
        """
        Gate for protected operations.

        A missing token fails before any storage access.

        Raises:
            MissingTokenError: No token supplied
            InvalidTokenError: Token rejected
        """
        if not token:
            raise MissingTokenError()
        return await self.verify_token(token)
