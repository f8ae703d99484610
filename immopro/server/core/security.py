"""
Security helpers.

Password hashing with bcrypt, access tokens with PyJWT and the input rules
applied to credentials.
"""

from __future__ import annotations

import re
import secrets
import string
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import bcrypt
import jwt

from .config import settings

EMAIL_REGEX = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

PASSWORD_MIN_LENGTH = 8
# bcrypt only hashes the first 72 bytes and refuses longer input
PASSWORD_MAX_BYTES = 72
GENERATED_PASSWORD_LENGTH = 16
PASSWORD_SPECIAL_CHARS = "@$!%*?&"


def hash_password(password: str) -> str:
    """Hash a password with bcrypt."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    """Verify a password against a bcrypt hash."""
    if len(password.encode("utf-8")) > PASSWORD_MAX_BYTES:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Malformed hash stored in the database
        return False


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_REGEX.match(email or ""))


def password_problems(password: str) -> list[str]:
    """
    List the strength rules a password breaks.

    A strong password has at least 8 characters, at most 72 bytes once
    encoded in UTF-8, and mixes lower-case letters, upper-case letters and
    digits.

    Returns:
        Human readable problems, empty when the password is acceptable
    """
    problems = []
    if len(password) < PASSWORD_MIN_LENGTH:
        problems.append(f"Password must be at least {PASSWORD_MIN_LENGTH} characters long")
    if len(password.encode("utf-8")) > PASSWORD_MAX_BYTES:
        problems.append(f"Password must be at most {PASSWORD_MAX_BYTES} bytes long")
    if not re.search(r"[a-z]", password):
        problems.append("Password must contain a lower-case letter")
    if not re.search(r"[A-Z]", password):
        problems.append("Password must contain an upper-case letter")
    if not re.search(r"\d", password):
        problems.append("Password must contain a digit")
    return problems


def generate_strong_password(length: int = GENERATED_PASSWORD_LENGTH) -> str:
    """
    Generate a random password that passes ``password_problems``.

    At least one character of each class (lower, upper, digit, special) is
    guaranteed before the remaining characters are drawn from all classes.
    """
    pools = [string.ascii_lowercase, string.ascii_uppercase, string.digits, PASSWORD_SPECIAL_CHARS]
    alphabet = "".join(pools)
    chars = [secrets.choice(pool) for pool in pools]
    chars += [secrets.choice(alphabet) for _ in range(length - len(pools))]
    secrets.SystemRandom().shuffle(chars)
    return "".join(chars)


def create_access_token(user_id: int, email: str, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a signed access token.

    Args:
        user_id: Identifier of the authenticated user
        email: Email of the authenticated user
        expires_delta: Token lifetime, defaults to ``JWT_EXPIRE_DAYS``

    Returns:
        Encoded JWT
    """
    jwt_config = settings.jwt
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(days=jwt_config.expire_days))
    payload = {"user_id": user_id, "email": email, "exp": expire}
    return jwt.encode(payload, jwt_config.secret, algorithm=jwt_config.algorithm)


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Decode and validate an access token.

    Raises:
        jwt.PyJWTError: When the token is malformed, badly signed or expired
    """
    jwt_config = settings.jwt
    return jwt.decode(token, jwt_config.secret, algorithms=[jwt_config.algorithm])
