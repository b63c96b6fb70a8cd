"""
Synchronous HTTP client for the ColdBot API.

Usage
-----
.. code-block:: python

    from coldbot.client.api_client import ChatApiClient

    with ChatApiClient("http://localhost:8000") as api:
        api.sign_in("agent@coldbot.fr", "Spear#123")
        reply = api.send_message("Quel est le prix d'une amende de classe 3 ?")
        api.send_feedback(reply["exchangeId"], is_positive=True)
"""

import logging
from typing import Any, Optional

import httpx

logger = logging.getLogger("uvicorn")


class ChatApiError(Exception):
    """Network failure or non-2xx answer from the API."""

    def __init__(self, detail: str, status_code: Optional[int] = None):
        super().__init__(detail)
        self.detail = detail
        self.status_code = status_code


class ChatApiClient:
    """
    Thin wrapper over `httpx.Client`.

    The session token returned by sign-in is sent as a Bearer header on every
    later call.

    Parameters
    ----------
    base_url : str
        Server root, e.g. ``http://localhost:8000``.
    token : str | None
        Existing session token.
    timeout : float
        Per-request timeout in seconds.
    transport : httpx.BaseTransport | None
        Custom transport (tests use `httpx.MockTransport` or an ASGI app).
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = 60.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.token = token
        self._client = httpx.Client(base_url=base_url, timeout=timeout, transport=transport)

    def __enter__(self) -> "ChatApiClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def _request(self, method: str, url: str, **kwargs) -> Any:
        headers = kwargs.pop("headers", {})
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        try:
            response = self._client.request(method, url, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"Request to {url} failed: {e}")
            raise ChatApiError(str(e)) from e
        if response.is_error:
            try:
                detail = response.json().get("detail", response.text)
            except (ValueError, AttributeError):
                detail = response.text
            raise ChatApiError(str(detail), status_code=response.status_code)
        try:
            return response.json()
        except ValueError as e:
            raise ChatApiError("Malformed response", status_code=response.status_code) from e

    def sign_in(self, email: str, password: str, captcha_token: Optional[str] = None) -> dict:
        data = self._request(
            "POST",
            "/api/auth/signin",
            json={"email": email, "password": password, "captchaToken": captcha_token},
        )
        self.token = data["accessToken"]
        return data["user"]

    def send_message(self, message: str, conversation_id: Optional[str] = None) -> dict:
        """
        Send a chat message.

        Returns
        -------
        dict
            {'text', 'conversationId', 'exchangeId'}

        Raises
        ------
        ChatApiError
            On network failure, error status or a body without ``text``.
        """
        payload = {"message": message}
        if conversation_id:
            payload["conversationId"] = conversation_id
        data = self._request("POST", "/api/chatbot", json=payload)
        if not isinstance(data, dict) or not isinstance(data.get("text"), str):
            raise ChatApiError("Malformed response")
        return data

    def send_feedback(
        self,
        exchange_id: str,
        is_positive: bool,
        reason: Optional[str] = None,
        comment: Optional[str] = None,
    ) -> dict:
        return self._request(
            "POST",
            "/api/feedback",
            json={
                "exchangeId": exchange_id,
                "isPositive": is_positive,
                "reason": reason,
                "comment": comment,
            },
        )

    def list_conversations(self, search: Optional[str] = None) -> list:
        params = {"q": search} if search else None
        return self._request("GET", "/api/conversations", params=params)
