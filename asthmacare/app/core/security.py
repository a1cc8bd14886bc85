"""Password hashing and access token helpers."""

import uuid
from datetime import datetime, timedelta

import bcrypt
from jose import JWTError, jwt

from asthmacare.app.core.config import settings


def hash_password(plain: str) -> str:
    """Hash a password with a fresh bcrypt salt."""
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Check a password against a stored bcrypt hash."""
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Malformed hash
        return False


def create_access_token(
    user_id: str,
    email: str,
    secret_key: str | None = None,
    algorithm: str | None = None,
    expiration_hours: int | None = None,
) -> tuple[str, str, datetime]:
    """
    Create a signed access token.

    Returns:
        Tuple of (token, token_id, expires_at). The token id is stored by the
        identity provider so the token can be revoked on sign-out.
    """
    token_id = str(uuid.uuid4())
    expires_at = datetime.utcnow() + timedelta(
        hours=expiration_hours or settings.jwt_expiration_hours
    )
    token = jwt.encode(
        {"sub": user_id, "email": email, "jti": token_id, "exp": expires_at},
        secret_key or settings.secret_key,
        algorithm=algorithm or settings.jwt_algorithm,
    )
    return token, token_id, expires_at


def decode_access_token(
    token: str,
    secret_key: str | None = None,
    algorithm: str | None = None,
) -> dict | None:
    """Decode and verify an access token, returning its claims or None."""
    try:
        return jwt.decode(
            token,
            secret_key or settings.secret_key,
            algorithms=[algorithm or settings.jwt_algorithm],
        )
    except JWTError:
        return None
