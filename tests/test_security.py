"""Tests for password hashing and bearer tokens."""

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from school.app.core.config import settings
from school.app.core.security import (
    JWT_ALGORITHM,
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)
from school.app.exceptions import AuthenticationError


class TestPasswordHashing:
    """Tests for PBKDF2 password hashes."""

    def test_hash_and_verify(self):
        encoded = hash_password("correct horse", iterations=1000)
        assert encoded.startswith("pbkdf2_sha256$1000$")
        assert verify_password("correct horse", encoded) is True
        assert verify_password("wrong horse", encoded) is False

    def test_same_password_gets_different_salts(self):
        assert hash_password("samepass", iterations=1000) != hash_password("samepass", iterations=1000)

    @pytest.mark.parametrize(
        "stored",
        ["", "plaintext", "bcrypt$1000$abc$def", "pbkdf2_sha256$notanumber$abc$def"],
    )
    def test_malformed_hash_never_matches(self, stored):
        assert verify_password("anything", stored) is False


class TestAccessTokens:
    """Tests for JWT issue and validation."""

    def test_round_trip_claims(self):
        token = create_access_token(42, "teacher", "t@classnama.io")
        claims = decode_access_token(token)
        assert claims["sub"] == "42"
        assert claims["role"] == "teacher"
        assert claims["email"] == "t@classnama.io"
        assert claims["iss"] == settings.auth_token_iss

    def test_expired_token_rejected(self):
        token = create_access_token(1, "admin", "a@classnama.io", expires_delta=timedelta(seconds=-1))
        with pytest.raises(AuthenticationError, match="expired"):
            decode_access_token(token)

    def test_wrong_secret_rejected(self):
        now = datetime.now(timezone.utc)
        token = jwt.encode(
            {
                "sub": "1",
                "role": "admin",
                "iss": settings.auth_token_iss,
                "aud": settings.auth_token_iss,
                "exp": now + timedelta(hours=1),
            },
            "some-other-secret",
            algorithm=JWT_ALGORITHM,
        )
        with pytest.raises(AuthenticationError, match="Invalid token"):
            decode_access_token(token)

    def test_missing_role_claim_rejected(self):
        now = datetime.now(timezone.utc)
        token = jwt.encode(
            {
                "sub": "1",
                "iss": settings.auth_token_iss,
                "aud": settings.auth_token_iss,
                "exp": now + timedelta(hours=1),
            },
            settings.auth_token_secret,
            algorithm=JWT_ALGORITHM,
        )
        with pytest.raises(AuthenticationError):
            decode_access_token(token)

    def test_garbage_rejected(self):
        with pytest.raises(AuthenticationError):
            decode_access_token("not.a.token")
