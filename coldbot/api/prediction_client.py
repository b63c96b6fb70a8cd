"""
Client for the third-party prediction (conversational AI) endpoint.

Contract
--------
POST ``{PREDICTION_URL}`` with JSON ``{"question": <text>}`` and either a
Bearer API key or HTTP Basic credentials. A 2xx JSON object is expected; the
answer is read from ``text``, then ``reply``, then replaced by
`NO_ANSWER`.

Any network error, non-2xx status or non-JSON body raises
`UpstreamUnavailable`. The upstream error is logged here and never reaches
the client.
"""

import logging
from typing import Optional

import httpx

from coldbot.api.errors import UpstreamUnavailable
from coldbot.database.config.config import Settings

logger = logging.getLogger("uvicorn")

NO_ANSWER = "Aucune réponse disponible"


class PredictionClient:
    """
    Async HTTP client for the prediction endpoint.

    Parameters
    ----------
    url : str
        Full endpoint URL.
    api_key : str
        Bearer token; wins over Basic credentials when set.
    username, password : str
        HTTP Basic credentials.
    timeout : float
        Total request timeout in seconds.
    transport : httpx.AsyncBaseTransport | None
        Custom transport (tests use `httpx.MockTransport`).
    """

    def __init__(
        self,
        url: str,
        api_key: str = "",
        username: str = "",
        password: str = "",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url
        self.api_key = api_key
        self.username = username
        self.password = password
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, app_settings: Settings) -> "PredictionClient":
        return cls(
            url=app_settings.PREDICTION_URL,
            api_key=app_settings.PREDICTION_API_KEY,
            username=app_settings.PREDICTION_USERNAME,
            password=app_settings.PREDICTION_PASSWORD,
            timeout=app_settings.PREDICTION_TIMEOUT_SECONDS,
        )

    def _auth_kwargs(self) -> dict:
        if self.api_key:
            return {"headers": {"Authorization": f"Bearer {self.api_key}"}}
        if self.username or self.password:
            return {"auth": httpx.BasicAuth(self.username, self.password)}
        return {}

    async def predict(self, question: str) -> str:
        """
        Ask the prediction endpoint a question.

        Returns
        -------
        str
            The answer text.

        Raises
        ------
        UpstreamUnavailable
            On network error, non-2xx status or malformed body.
        """
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(
                    self.url,
                    json={"question": question},
                    **self._auth_kwargs(),
                )
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"Prediction endpoint answered {e.response.status_code}: {e.response.text[:500]}")
            raise UpstreamUnavailable(f"status {e.response.status_code}") from e
        except httpx.HTTPError as e:
            logger.exception("Prediction endpoint request failed")
            raise UpstreamUnavailable(str(e)) from e
        except ValueError as e:
            logger.error(f"Prediction endpoint returned a non-JSON body: {e}")
            raise UpstreamUnavailable("invalid body") from e

        if not isinstance(data, dict):
            logger.error(f"Prediction endpoint returned an unexpected payload type: {type(data).__name__}")
            raise UpstreamUnavailable("invalid body")

        for key in ("text", "reply"):
            answer = data.get(key)
            if isinstance(answer, str) and answer.strip():
                return answer
        return NO_ANSWER
