"""Tests for auth security functions."""

from datetime import timedelta
from uuid import uuid4

import pytest
from jose import JWTError, jwt

from skillhub.auth.security import (
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)
from skillhub.config import get_settings


class TestPasswordHashing:
    """Tests for password hashing functions."""

    def test_hash_password_creates_hash(self) -> None:
        """Hash should be different from plain password."""
        hashed = hash_password("secret123")
        assert hashed != "secret123"
        assert hashed.startswith("$argon2id$")

    def test_hash_password_unique_hashes(self) -> None:
        """Same password should produce different hashes (due to salt)."""
        assert hash_password("secret123") != hash_password("secret123")

    def test_verify_password_correct(self) -> None:
        """Correct password should verify without a rehash."""
        hashed = hash_password("secret123")
        is_valid, new_hash = verify_password("secret123", hashed)
        assert is_valid is True
        assert new_hash is None

    def test_verify_password_incorrect(self) -> None:
        """Incorrect password should fail verification."""
        hashed = hash_password("secret123")
        is_valid, new_hash = verify_password("secret124", hashed)
        assert is_valid is False
        assert new_hash is None

    def test_verify_password_garbage_hash(self) -> None:
        """A value that is not an Argon2 hash never verifies."""
        is_valid, _ = verify_password("secret123", "not-a-hash")
        assert is_valid is False


class TestAccessTokens:
    """Tests for JWT access tokens."""

    def test_round_trip_keeps_claims(self) -> None:
        user_id = str(uuid4())
        token = create_access_token(
            {"sub": user_id, "email": "a@b.com", "role": "student", "name": "A"}
        )
        payload = decode_access_token(token)
        assert payload["sub"] == user_id
        assert payload["role"] == "student"
        assert payload["type"] == "access"
        assert "exp" in payload and "iat" in payload

    def test_expired_token_rejected(self) -> None:
        """A token past its lifetime does not decode."""
        token = create_access_token({"sub": "x"}, expires_delta=timedelta(seconds=-1))
        with pytest.raises(JWTError):
            decode_access_token(token)

    def test_wrong_type_rejected(self) -> None:
        """Tokens that are not access tokens are refused."""
        settings = get_settings()
        token = jwt.encode(
            {"sub": "x", "type": "refresh"},
            settings.auth_secret_key,
            algorithm=settings.auth_algorithm,
        )
        with pytest.raises(JWTError):
            decode_access_token(token)

    def test_tampered_signature_rejected(self) -> None:
        token = create_access_token({"sub": "x"})
        with pytest.raises(JWTError):
            decode_access_token(token[:-2] + ("AA" if token[-2:] != "AA" else "BB"))
