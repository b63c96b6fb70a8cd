"""
reCAPTCHA verification for the auth forms.

The browser solves the widget rendered with `RECAPTCHA_SITE_KEY` and sends
the resulting token with sign-in / sign-up; the server confirms it against
Google's siteverify API with `RECAPTCHA_SECRET_KEY`. With no secret
configured verification is skipped.
"""

import logging
from typing import Optional

import httpx

logger = logging.getLogger("uvicorn")

VERIFY_URL = "https://www.google.com/recaptcha/api/siteverify"


async def verify_captcha(
    token: Optional[str],
    secret: str,
    remote_ip: Optional[str] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    timeout: float = 10.0,
) -> bool:
    """
    Check a reCAPTCHA response token.

    Parameters
    ----------
    token : str | None
        Token produced by the widget.
    secret : str
        Server-side secret; empty disables verification.
    remote_ip : str | None
        Client address forwarded to Google.
    transport : httpx.AsyncBaseTransport | None
        Custom transport for tests.

    Returns
    -------
    bool
        True when verification passed or is disabled. Network failures count
        as a failed verification.
    """
    if not secret:
        return True
    if not token:
        return False

    data = {"secret": secret, "response": token}
    if remote_ip:
        data["remoteip"] = remote_ip

    try:
        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            response = await client.post(VERIFY_URL, data=data)
            response.raise_for_status()
            payload = response.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.error(f"Captcha verification failed: {e}")
        return False

    if not isinstance(payload, dict):
        logger.error("Captcha verification returned an unexpected payload")
        return False
    if not payload.get("success", False):
        logger.info(f"Captcha rejected: {payload.get('error-codes', [])}")
        return False
    return True
