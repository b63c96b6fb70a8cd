"""
Request gate.

Every inbound request passes through `RequestGateMiddleware` before any page
handler runs. The decision itself is the pure function `evaluate`; rules are
checked in order and the first match wins:

1. Ignored prefix (assets, API, docs) → pass through, the session is never
   read.
2. Public route → redirect home when a session exists, else pass.
3. No session → redirect to login with ``redirectTo=<path>``.
4. Admin prefix and email not in the allow-list → redirect home.
5. Otherwise pass, with the security headers attached.

API routes are ignored here and answer 401/403 themselves.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, FrozenSet, Mapping, Optional, Tuple
from urllib.parse import quote

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import RedirectResponse

from coldbot.api.utils import extract_token
from coldbot.auth.admin import is_admin
from coldbot.auth.session_provider import Identity, SessionProvider

logger = logging.getLogger("uvicorn")

SECURITY_HEADERS: Mapping[str, str] = {
    "X-Frame-Options": "DENY",
    "X-Content-Type-Options": "nosniff",
    "X-XSS-Protection": "1; mode=block",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Permissions-Policy": "camera=(), microphone=(), geolocation=(), interest-cohort=()",
}

LOGIN_ERROR_LOCATION = "/login?error=auth"


class GateAction(str, Enum):
    PASS = "pass"
    REDIRECT = "redirect"


@dataclass(frozen=True)
class GatePolicy:
    """
    Static configuration of the gate.

    Attributes
    ----------
    admin_emails : frozenset[str]
        Lower-cased admin allow-list.
    ignored_prefixes : tuple[str, ...]
        Paths equal to one of these, or below one of them, are never gated.
    public_routes : frozenset[str]
        Exact paths reachable without a session.
    admin_prefix : str
        Paths equal to it or below it require an admin.
    """

    admin_emails: FrozenSet[str] = frozenset()
    ignored_prefixes: Tuple[str, ...] = (
        "/assets",
        "/images",
        "/favicon.ico",
        "/api/",
        "/docs",
        "/redoc",
        "/openapi.json",
    )
    public_routes: FrozenSet[str] = frozenset(
        {"/login", "/auth/callback", "/auth/confirm", "/auth/reset-password"}
    )
    admin_prefix: str = "/admin"
    login_path: str = "/login"
    home_path: str = "/"

    def is_ignored(self, path: str) -> bool:
        return any(
            path == prefix or path.startswith(prefix.rstrip("/") + "/")
            for prefix in self.ignored_prefixes
        )

    def is_admin_path(self, path: str) -> bool:
        return path == self.admin_prefix or path.startswith(self.admin_prefix.rstrip("/") + "/")


@dataclass(frozen=True)
class GateDecision:
    action: GateAction
    location: Optional[str] = None
    headers: Mapping[str, str] = field(default_factory=dict)


def login_redirect(path: str, policy: GatePolicy) -> str:
    return f"{policy.login_path}?redirectTo={quote(path, safe='/')}"


def evaluate(
    path: str,
    get_session: Callable[[], Optional[Identity]],
    policy: GatePolicy,
) -> GateDecision:
    """
    Decide what happens to a request for ``path``.

    Parameters
    ----------
    path : str
        Request path (no query string).
    get_session : Callable[[], Identity | None]
        Lazily fetches the session; only called when a rule needs it. Any
        exception it raises is treated as "no session".
    policy : GatePolicy
        Gate configuration.

    Returns
    -------
    GateDecision
    """
    if policy.is_ignored(path):
        return GateDecision(GateAction.PASS)

    try:
        identity = get_session()
    except Exception as e:
        logger.error(f"Session lookup failed in request gate: {e}")
        identity = None

    if path in policy.public_routes:
        if identity is not None:
            return GateDecision(GateAction.REDIRECT, location=policy.home_path)
        return GateDecision(GateAction.PASS)

    if identity is None:
        return GateDecision(GateAction.REDIRECT, location=login_redirect(path, policy))

    if policy.is_admin_path(path) and not is_admin(identity.email, policy.admin_emails):
        logger.warning(f"Unauthorized admin access attempt: {identity.email}")
        return GateDecision(GateAction.REDIRECT, location=policy.home_path)

    return GateDecision(GateAction.PASS, headers=SECURITY_HEADERS)


class RequestGateMiddleware(BaseHTTPMiddleware):
    """
    Starlette middleware applying `evaluate` to every HTTP request.

    Parameters
    ----------
    app : ASGIApp
        Wrapped application.
    policy : GatePolicy
        Gate configuration.
    session_provider : SessionProvider
        Resolves the request's token to an identity.
    """

    def __init__(self, app, policy: GatePolicy, session_provider: SessionProvider):
        super().__init__(app)
        self.policy = policy
        self.session_provider = session_provider

    async def dispatch(self, request: Request, call_next):
        try:
            decision = evaluate(
                request.url.path,
                lambda: self.session_provider.get_session(extract_token(request)),
                self.policy,
            )
        except Exception:
            logger.exception("Request gate failed")
            return RedirectResponse(LOGIN_ERROR_LOCATION)

        if decision.action is GateAction.REDIRECT:
            return RedirectResponse(decision.location)

        response = await call_next(request)
        for name, value in decision.headers.items():
            response.headers[name] = value
        return response
