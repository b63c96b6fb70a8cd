"""
Session accessor.

A session token is a JWT (see `coldbot.api.utils`) carrying the user id
(`sub`), email and session nonce (`sid`). A token resolves to an `Identity`
only when:

- its signature and expiry are valid,
- the user still exists and has confirmed their email,
- the nonce matches the user's current `session_id` (sign-out and password
  reset rotate it).

Resolved identities are cached per token for `cache_seconds` (never past the
token expiry), so the store is not hit on every request. `invalidate` drops
a user's cached entries immediately after a rotation in this process.
"""

import logging
import threading
import time
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, Optional, Tuple

from coldbot.api.utils import issue_session_token, parse_uuid, verify_token
from coldbot.database.config.config import Settings, settings
from coldbot.database.core.funcs import get_session_nonce

logger = logging.getLogger("uvicorn")


@dataclass(frozen=True)
class Identity:
    """The authenticated principal behind a request."""

    id: uuid.UUID
    email: str
    session_id: str
    expires_at: datetime


def _lookup_user(user_id: uuid.UUID) -> Optional[dict]:
    return get_session_nonce(user_id=user_id)


class SessionProvider:
    """
    Resolve session tokens to identities.

    Parameters
    ----------
    lookup : Callable[[UUID], dict | None]
        Returns {'id', 'email', 'session_id', 'verified'} for a user id.
    cache_seconds : int
        Lifetime of a cached resolution; 0 disables the cache.
    clock : Callable[[], float]
        Epoch-seconds time source.
    app_settings : Settings
        Signing configuration for token checks and refreshes.
    """

    def __init__(
        self,
        lookup: Callable[[uuid.UUID], Optional[dict]] = _lookup_user,
        cache_seconds: int = 30,
        clock: Callable[[], float] = time.time,
        app_settings: Settings = settings,
    ):
        self._lookup = lookup
        self.cache_seconds = cache_seconds
        self._clock = clock
        self._settings = app_settings
        self._lock = threading.Lock()
        self._cache: Dict[str, Tuple[Identity, float]] = {}

    def get_session(self, token: Optional[str]) -> Optional[Identity]:
        """
        Return the identity for ``token``, or None when there is no valid
        session. Store errors propagate to the caller.
        """
        if not token:
            return None
        claims = verify_token(token, app_settings=self._settings)
        if not claims:
            return None

        now = self._clock()
        with self._lock:
            cached = self._cache.get(token)
            if cached and cached[1] > now:
                return cached[0]
            self._cache.pop(token, None)

        user_id = parse_uuid(claims.get("sub"))
        expires = claims.get("exp")
        if user_id is None or not isinstance(expires, (int, float)):
            return None

        user = self._lookup(user_id)
        if user is None or not user.get("verified") or user.get("session_id") != claims.get("sid"):
            return None

        identity = Identity(
            id=user_id,
            email=user["email"],
            session_id=user["session_id"],
            expires_at=datetime.fromtimestamp(expires, tz=timezone.utc),
        )
        if self.cache_seconds > 0:
            with self._lock:
                self._purge(now)
                self._cache[token] = (identity, min(now + self.cache_seconds, float(expires)))
        return identity

    def invalidate(self, user_id: uuid.UUID) -> None:
        """Forget every cached resolution for ``user_id``."""
        with self._lock:
            stale = [token for token, (identity, _) in self._cache.items() if identity.id == user_id]
            for token in stale:
                del self._cache[token]

    def refresh(self, identity: Identity) -> str:
        """Issue a new token for the same session (same nonce, new expiry)."""
        return issue_session_token(
            {"id": identity.id, "email": identity.email, "session_id": identity.session_id},
            app_settings=self._settings,
        )

    def _purge(self, now: float) -> None:
        expired = [token for token, (_, expires_at) in self._cache.items() if expires_at <= now]
        for token in expired:
            del self._cache[token]
