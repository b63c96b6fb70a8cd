"""
FastAPI dependencies resolving the caller's identity.

The session provider and admin allow-list are read from `app.state`, where
`create_app` stores the single instances shared with the request gate.
"""

import logging
from typing import Optional

from fastapi import HTTPException, Request

from coldbot.api.utils import extract_token
from coldbot.auth.admin import is_admin
from coldbot.auth.session_provider import Identity

logger = logging.getLogger("uvicorn")


def get_optional_identity(request: Request) -> Optional[Identity]:
    """Identity of the caller, or None. Session lookup errors count as no session."""
    provider = request.app.state.session_provider
    try:
        return provider.get_session(extract_token(request))
    except Exception as e:
        logger.error(f"Session lookup failed: {e}")
        return None


def get_current_identity(request: Request) -> Identity:
    """Identity of the caller; 401 when there is no valid session."""
    identity = get_optional_identity(request)
    if identity is None:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return identity


def caller_is_admin(request: Request, identity: Optional[Identity]) -> bool:
    return identity is not None and is_admin(identity.email, request.app.state.admin_emails)


def require_admin(request: Request) -> Identity:
    """Identity of an admin caller; 401 without session, 403 for non-admins."""
    identity = get_current_identity(request)
    if not caller_is_admin(request, identity):
        logger.warning(f"Unauthorized admin API access attempt: {identity.email}")
        raise HTTPException(status_code=403, detail="Forbidden")
    return identity
