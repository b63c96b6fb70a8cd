"""
Domain exceptions raised below the router and translated to HTTP statuses in
`fast_api`.
"""


class ColdbotError(Exception):
    """Base class for application errors."""


class AuthError(ColdbotError):
    """Credentials, session or one-time code rejected."""

    def __init__(self, detail: str, status_code: int = 401):
        super().__init__(detail)
        self.detail = detail
        self.status_code = status_code


class UpstreamUnavailable(ColdbotError):
    """The prediction endpoint could not produce an answer."""


class RateLimitExceeded(ColdbotError):
    """Too many requests for one identity on one route."""

    def __init__(self, retry_after: int):
        super().__init__(f"Rate limit exceeded, retry in {retry_after}s")
        self.retry_after = retry_after


class ExchangeNotFound(ColdbotError):
    """Feedback targets an exchange that does not exist."""
