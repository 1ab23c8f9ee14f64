"""
Tests for bearer token issuance and verification.
"""

import time
from unittest.mock import AsyncMock

import jwt
import pytest

from identity.models import AuthenticatedUser, LoginResult
from identity.tokens import Authenticator
from identity.vault import CredentialVault
from utilities.exceptions import (
    AuthFailure, InvalidCredentialsError, InvalidTokenError, MissingTokenError, UnknownIdentityError
)

SECRET = "test-secret"


@pytest.fixture
def vault(record_store):
    return CredentialVault(record_store)


@pytest.fixture
def authenticator(vault):
    return Authenticator(vault, secret_key=SECRET)


async def registered_user(vault, email="a@x.com", password="p1"):
    await vault.initialize()
    await vault.register(email, password)
    return await vault.verify_credentials(email, password)


class TestIssueToken:
    """Test cases for token issuance."""

    @pytest.mark.asyncio
    async def test_token_carries_identity_and_24h_expiry(self, authenticator, vault):
        user = await registered_user(vault)

        token = authenticator.issue_token(user)
        payload = jwt.decode(token, SECRET, algorithms=["HS256"])

        assert payload["userId"] == user.id
        assert payload["email"] == user.email
        assert payload["exp"] - payload["iat"] == 24 * 3600

    @pytest.mark.asyncio
    async def test_login_issues_verifiable_token(self, authenticator, vault):
        user = await registered_user(vault)

        result = await authenticator.login("a@x.com", "p1")

        assert isinstance(result, LoginResult)
        assert result.id == user.id
        assert result.email == "a@x.com"
        authenticated = await authenticator.verify_token(result.token)
        assert authenticated.id == user.id

    @pytest.mark.asyncio
    async def test_login_with_bad_credentials(self, authenticator, vault):
        await registered_user(vault)

        with pytest.raises(InvalidCredentialsError):
            await authenticator.login("a@x.com", "wrong")


class TestVerifyToken:
    """Test cases for token verification."""

    @pytest.mark.asyncio
    async def test_valid_token_resolves_current_user(self, authenticator, vault):
        user = await registered_user(vault)

        authenticated = await authenticator.verify_token(authenticator.issue_token(user))

        assert isinstance(authenticated, AuthenticatedUser)
        assert authenticated.user == user
        assert authenticated.claims.user_id == user.id
        assert authenticated.email == "a@x.com"

    @pytest.mark.asyncio
    async def test_token_signed_with_other_secret_rejected(self, authenticator, vault):
        user = await registered_user(vault)
        forged = Authenticator(vault, secret_key="other-secret").issue_token(user)

        with pytest.raises(InvalidTokenError) as exc_info:
            await authenticator.verify_token(forged)

        assert exc_info.value.message == "Invalid or expired token"

    @pytest.mark.asyncio
    async def test_expired_token_rejected(self, authenticator, vault):
        user = await registered_user(vault)
        now = int(time.time())
        expired = jwt.encode(
            {"userId": user.id, "email": user.email, "iat": now - 90000, "exp": now - 3600},
            SECRET,
            algorithm="HS256"
        )

        with pytest.raises(InvalidTokenError):
            await authenticator.verify_token(expired)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("token", ["garbage", "a.b.c", "Bearer xyz"])
    async def test_malformed_token_rejected(self, authenticator, token):
        with pytest.raises(InvalidTokenError):
            await authenticator.verify_token(token)

    @pytest.mark.asyncio
    async def test_token_without_identity_claim_rejected(self, authenticator):
        now = int(time.time())
        token = jwt.encode({"email": "a@x.com", "iat": now, "exp": now + 60}, SECRET, algorithm="HS256")

        with pytest.raises(InvalidTokenError):
            await authenticator.verify_token(token)

    @pytest.mark.asyncio
    async def test_token_of_removed_user_rejected(self, authenticator, vault, record_store):
        """Test that a well-signed token fails once its user is gone."""
        user = await registered_user(vault)
        token = authenticator.issue_token(user)
        await record_store.save_all("users", [])

        with pytest.raises(UnknownIdentityError) as exc_info:
            await authenticator.verify_token(token)

        assert isinstance(exc_info.value, InvalidTokenError)
        assert exc_info.value.message == "Invalid token"


class TestRequireAuthentication:
    """Test cases for the protected-operation gate."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("token", [None, ""])
    async def test_missing_token_fails_without_storage_access(self, token):
        """Test that a missing token is rejected before the vault is consulted."""
        vault = AsyncMock(spec=CredentialVault)
        authenticator = Authenticator(vault, secret_key=SECRET)

        with pytest.raises(MissingTokenError) as exc_info:
            await authenticator.require_authentication(token)

        assert isinstance(exc_info.value, AuthFailure)
        assert exc_info.value.message == "Token required"
        vault.get_by_id.assert_not_called()
        vault.verify_credentials.assert_not_called()

    @pytest.mark.asyncio
    async def test_valid_token_passes(self, authenticator, vault):
        user = await registered_user(vault)

        authenticated = await authenticator.require_authentication(authenticator.issue_token(user))

        assert authenticated.id == user.id
