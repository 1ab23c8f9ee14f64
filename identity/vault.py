"""
Credential vault: the users collection with identity-specific operations.

Passwords are stored only as salted bcrypt hashes with a fixed cost factor.
"""

import uuid
from functools import lru_cache
from typing import Any, Dict, List, Optional

import anyio
import bcrypt
import structlog
from pydantic import ValidationError as PydanticValidationError

from identity.models import PublicUser, User
from storage.record_store import RecordStore, utc_timestamp
from utilities.exceptions import (
    DuplicateIdentityError, InvalidCredentialsError, StorageCorruptError, ValidationError
)

logger = structlog.get_logger(__name__)

BCRYPT_ROUNDS = 10
# bcrypt ignores (or, in recent releases, rejects) input past this length
MAX_PASSWORD_BYTES = 72


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its hash. Malformed hashes never match."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


@lru_cache(maxsize=1)
def _dummy_hash() -> str:
    # Compared against when the email is unknown, so both failure paths cost one bcrypt check
    return hash_password("not-a-real-password")


def _require_credentials(email: Any, password: Any) -> None:
    if not isinstance(email, str) or not isinstance(password, str) or not email or not password:
        raise ValidationError("Email and password are required")


def _parse_user(record: Dict[str, Any]) -> User:
    try:
        return User.model_validate(record)
    except PydanticValidationError as e:
        raise StorageCorruptError(f"Malformed user record: {e}") from e


class CredentialVault:
    """Stores users and verifies their credentials."""

    def __init__(self, store: RecordStore, collection_name: str = "users"):
        """
        Initialize the vault.

        Args:
            store: Record store holding the users collection
            collection_name: Name of the users collection
        """
        self.store = store
        self.collection_name = collection_name
        self.logger = logger.bind(component="credential_vault")

    async def initialize(self) -> None:
        await self.store.initialize(self.collection_name)

    async def register(self, email: Optional[str], password: Optional[str]) -> PublicUser:
        """
        Register a new user.

        Args:
            email: Email, unique across the vault (exact match)
            password: Plaintext password, hashed before storage

        Returns:
            The created user without its password hash

        Raises:
            ValidationError: Email or password missing or empty
            DuplicateIdentityError: Email already registered
        """
        _require_credentials(email, password)
        if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")

        # Hash outside the collection lock
        password_hash = await anyio.to_thread.run_sync(hash_password, password)
        user = User(
            id=str(uuid.uuid4()),
            email=email,
            password_hash=password_hash,
            created_at=utc_timestamp(),
        )

        def append_user(records: List[Dict[str, Any]]) -> User:
            if any(record.get("email") == email for record in records):
                raise DuplicateIdentityError()
            records.append(user.to_record())
            return user

        try:
            created = await self.store.modify(self.collection_name, append_user)
        except DuplicateIdentityError:
            self.logger.info("Registration rejected, email already registered")
            raise

        self.logger.info("User registered", user_id=created.id)
        return created.to_public()

    async def verify_credentials(self, email: Optional[str], password: Optional[str]) -> User:
        """
        Check an email/password pair.

        Returns:
            The full user record, hash included. Strip it before exposing.

        Raises:
            InvalidCredentialsError: Unknown email or wrong password, indistinguishably
        """
        _require_credentials(email, password)

        users = await self._load_users()
        user = next((u for u in users if u.email == email), None)

        password_hash = user.password_hash if user else await anyio.to_thread.run_sync(_dummy_hash)
        matches = await anyio.to_thread.run_sync(verify_password, password, password_hash)
        if user is None or not matches:
            self.logger.info("Credential check failed")
            raise InvalidCredentialsError()
        return user

    async def get_by_id(self, user_id: str) -> Optional[User]:
        """Find a user by ID."""
        users = await self._load_users()
        return next((u for u in users if u.id == user_id), None)

    async def list_users(self) -> List[PublicUser]:
        return [u.to_public() for u in await self._load_users()]

    async def _load_users(self) -> List[User]:
        records = await self.store.load_all(self.collection_name)
        return [_parse_user(record) for record in records]
