"""
JWT and request helpers for issuing, reading and verifying session tokens.

Functions
---------
create_access_token(data: dict) -> str
    Creates a signed JWT access token with an expiration (`exp`) claim.
verify_token(token: str) -> dict | None
    Verify a JWT's signature & expiration and return its claims if valid.
issue_session_token(user_details: dict) -> str
    Token for an authenticated user: `sub` (user id), `email`, `sid` (nonce).
extract_token(request) -> str | None
    Token from the `token` cookie or an `Authorization: Bearer` header.
parse_uuid(value) -> UUID | None
    Strict UUID parsing for identifiers received from clients.

Environment contract (from `settings`)
--------------------------------------
SECRET_KEY : str
    HMAC signing key for JWTs.
ALGORITHM : str
    JWT signing algorithm (e.g., "HS256").
ACCESS_TOKEN_EXPIRE_MINUTES : int
    Token lifetime window in minutes.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from jose import jwt, JWTError
from starlette.requests import HTTPConnection
from coldbot.database.config.config import settings, Settings

logger = logging.getLogger("uvicorn")

TOKEN_COOKIE = "token"
"""Name of the HttpOnly cookie carrying the session JWT."""


def create_access_token(data: dict, app_settings: Settings = settings) -> str:
    """
    Create a signed JWT access token.

    Parameters
    ----------
    data : dict
        Claims to embed in the token.
    app_settings : Settings
        Source of the signing key, algorithm and lifetime.

    Returns
    -------
    str
        Encoded JWT string.

    Notes
    -----
    - Adds an `exp` (expiration) claim calculated from ACCESS_TOKEN_EXPIRE_MINUTES.
    """
    expiration_time = app_settings.ACCESS_TOKEN_EXPIRE_MINUTES
    encoding = data.copy()
    # exp is a NumericDate (seconds since epoch)
    expires = int(datetime.now(timezone.utc).timestamp()) + (int(expiration_time) * 60)
    encoding.update({"exp": expires})
    return jwt.encode(encoding, app_settings.SECRET_KEY, algorithm=app_settings.ALGORITHM)


def verify_token(token: str, app_settings: Settings = settings) -> Optional[dict]:
    """
    Verify a JWT and return its claims.

    Parameters
    ----------
    token : str
        Encoded JWT string from the client (cookie or Authorization header).

    Returns
    -------
    dict | None
        The decoded claims if the token is valid, otherwise None.

    Notes
    -----
    - On any JWTError (invalid signature, expired, malformed), returns None.
    """
    try:
        return jwt.decode(token, app_settings.SECRET_KEY, algorithms=[app_settings.ALGORITHM])
    except JWTError as e:
        logger.debug(f"Rejected session token: {e}")
        return None


def issue_session_token(user_details: dict, app_settings: Settings = settings) -> str:
    return create_access_token(
        {
            "sub": str(user_details["id"]),
            "email": user_details["email"],
            "sid": user_details["session_id"],
        },
        app_settings=app_settings,
    )


def extract_token(request: HTTPConnection) -> Optional[str]:
    """
    Read the session token from the request.

    The `token` cookie wins; otherwise an `Authorization: Bearer <jwt>`
    header is accepted.
    """
    token = request.cookies.get(TOKEN_COOKIE)
    if token:
        return token
    authorization = request.headers.get("authorization", "")
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return None


def parse_uuid(value) -> Optional[uuid.UUID]:
    """Return ``value`` as a UUID, or None when it is not a well-formed one."""
    if isinstance(value, uuid.UUID):
        return value
    if not isinstance(value, str):
        return None
    try:
        return uuid.UUID(value.strip())
    except ValueError:
        return None
