import base64
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
from cryptography.exceptions import InvalidKey
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from school.app.core.config import settings
from school.app.exceptions import AuthenticationError

PASSWORD_SCHEME = "pbkdf2_sha256"
PASSWORD_ITERATIONS = 100_000
PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_LENGTH = 72
JWT_ALGORITHM = "HS256"


def _kdf(salt: bytes, iterations: int) -> PBKDF2HMAC:
    return PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=32,
        salt=salt,
        iterations=iterations,
    )


def hash_password(password: str, iterations: int = PASSWORD_ITERATIONS) -> str:
    """Hash a password with PBKDF2-HMAC-SHA256 and a random 16-byte salt.

    Args:
        password: Plain text password
        iterations: PBKDF2 work factor

    Returns:
        Encoded string ``pbkdf2_sha256$<iterations>$<salt>$<hash>`` with the
        salt and hash in URL-safe base64
    """
    salt = secrets.token_bytes(16)
    derived = _kdf(salt, iterations).derive(password.encode("utf-8"))
    return "$".join((
        PASSWORD_SCHEME,
        str(iterations),
        base64.urlsafe_b64encode(salt).decode(),
        base64.urlsafe_b64encode(derived).decode(),
    ))


def verify_password(password: str, encoded: str) -> bool:
    """Check a password against a value produced by ``hash_password``.

    The comparison is constant time. Malformed stored values never match.
    """
    try:
        scheme, iterations, salt_b64, hash_b64 = encoded.split("$")
        if scheme != PASSWORD_SCHEME:
            return False
        salt = base64.urlsafe_b64decode(salt_b64)
        expected = base64.urlsafe_b64decode(hash_b64)
        _kdf(salt, int(iterations)).verify(password.encode("utf-8"), expected)
    except (ValueError, InvalidKey):
        return False
    return True


def create_access_token(
    subject: int | str,
    role: str,
    email: str,
    expires_delta: timedelta | None = None,
) -> str:
    """Issue a signed HS256 token for an authenticated user.

    Args:
        subject: Entity id, stored as a string in ``sub``
        role: admin, manager, teacher or student
        email: Included for clients, not used for authorization
        expires_delta: Lifetime, defaults to AUTH_TOKEN_EXP_HOURS

    Returns:
        Encoded JWT
    """
    now = datetime.now(timezone.utc)
    if expires_delta is None:
        expires_delta = timedelta(hours=settings.auth_token_exp_hours)
    claims = {
        "sub": str(subject),
        "role": role,
        "email": email,
        "iss": settings.auth_token_iss,
        "aud": settings.auth_token_iss,
        "iat": now,
        "nbf": now,
        "exp": now + expires_delta,
    }
    return jwt.encode(claims, settings.auth_token_secret, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> dict[str, Any]:
    """Validate signature, expiry, issuer and audience and return the claims.

    Raises:
        AuthenticationError: The token is invalid or expired
    """
    try:
        return jwt.decode(
            token,
            settings.auth_token_secret,
            algorithms=[JWT_ALGORITHM],
            audience=settings.auth_token_iss,
            issuer=settings.auth_token_iss,
            options={"require": ["sub", "role", "exp", "iss", "aud"]},
        )
    except jwt.ExpiredSignatureError as e:
        raise AuthenticationError("Token has expired") from e
    except jwt.InvalidTokenError as e:
        raise AuthenticationError("Invalid token") from e
