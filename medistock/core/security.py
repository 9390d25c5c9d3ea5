"""
Password hashing, patient bearer tokens and the dispenser terminal key.
"""

import secrets
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from medistock.core.config import get_settings

settings = get_settings()

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

ALGORITHM = "HS256"
TOKEN_SCOPE = "patient"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def create_access_token(
    subject: str | int,
    name: str | None = None,
    email: str | None = None,
    expires_delta_minutes: int | None = None,
) -> str:
    """
    Bearer token for a patient session. ``sub`` is the patient id; name and
    email ride along for display only.
    """
    minutes = expires_delta_minutes if expires_delta_minutes is not None else settings.access_token_expire_minutes
    claims: dict[str, Any] = {
        "sub": str(subject),
        "scope": TOKEN_SCOPE,
        "name": name,
        "email": email,
        "exp": datetime.now(timezone.utc) + timedelta(minutes=minutes),
    }
    return jwt.encode(claims, settings.secret_key, algorithm=ALGORITHM)


def decode_token(token: str) -> dict[str, Any]:
    """
    Decode and validate a JWT. Raises ValueError on a bad or expired token.
    """
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
    except ExpiredSignatureError:
        raise ValueError("Token has expired. Please log in again.") from None
    except JWTError as exc:
        raise ValueError("Invalid token") from exc


def decode_patient_id(token: str) -> int:
    """
    Patient id carried by a session token. Raises ValueError when the token
    is invalid or was not issued for a patient.
    """
    payload = decode_token(token)
    subject = str(payload.get("sub") or "")
    if payload.get("scope") != TOKEN_SCOPE or not subject.isdigit():
        raise ValueError("Invalid token payload")
    return int(subject)


def terminal_key_matches(provided: str | None) -> bool:
    """
    True when no terminal key is configured, or ``provided`` equals it.
    """
    expected = get_settings().terminal_api_key
    if not expected:
        return True
    return bool(provided) and secrets.compare_digest(provided, expected)
