"""Password hashing and access-token utilities."""
from __future__ import annotations

import uuid
from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt
from nacl import pwhash
from nacl.exceptions import InvalidkeyError

from orbit_social.core.settings import settings


def hash_password(password: str) -> str:
    """Return an argon2id hash of ``password`` in modular-crypt format."""
    hashed: bytes = pwhash.argon2id.str(
        password.encode("utf-8"),
        opslimit=settings.password_hash_opslimit,
        memlimit=settings.password_hash_memlimit,
    )
    return hashed.decode("ascii")


def verify_password(password: str, password_hash: str) -> bool:
    """Return True if ``password`` matches the stored hash."""
    try:
        return pwhash.verify(password_hash.encode("ascii"), password.encode("utf-8"))
    except InvalidkeyError:
        return False


def create_access_token(subject: uuid.UUID | str, extra_claims: dict[str, str] | None = None) -> str:
    """Create a signed JWT for the given user id."""
    to_encode: dict[str, object] = {"sub": str(subject)}
    if extra_claims:
        to_encode.update(extra_claims)
    expire = datetime.now(UTC) + timedelta(minutes=settings.access_token_expire_minutes)
    to_encode["exp"] = expire
    encoded_jwt: str = jwt.encode(
        to_encode,
        settings.secret_key,
        algorithm=settings.jwt_algorithm,
    )
    return encoded_jwt


def decode_access_token(token: str) -> uuid.UUID | None:
    """Return the user id carried by ``token`` or None if it is invalid.

    Expired tokens, bad signatures and malformed subjects all yield None.
    """
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None

    subject = payload.get("sub")
    if subject is None:
        return None
    try:
        return uuid.UUID(str(subject))
    except ValueError:
        return None
