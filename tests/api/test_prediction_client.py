import base64
import json

import httpx
import pytest

from coldbot.api.errors import UpstreamUnavailable
from coldbot.api.prediction_client import NO_ANSWER, PredictionClient
from coldbot.database.config.config import Settings

URL = "https://prediction.test/api/v1/prediction/flow"


def _client(handler, **kwargs):
    return PredictionClient(url=URL, transport=httpx.MockTransport(handler), **kwargs)


def _answer(payload, status_code=200, seen=None):
    def handler(request):
        if seen is not None:
            seen.append(request)
        return httpx.Response(status_code, json=payload)

    return handler


@pytest.mark.asyncio
async def test_api_key_wins_over_basic_credentials():
    seen = []
    client = _client(_answer({"text": "ok"}, seen=seen), api_key="k-123", username="u", password="p")

    assert await client.predict("Bonjour") == "ok"
    assert seen[0].headers["authorization"] == "Bearer k-123"
    assert json.loads(seen[0].content) == {"question": "Bonjour"}


@pytest.mark.asyncio
async def test_basic_credentials_when_no_api_key():
    seen = []
    client = _client(_answer({"text": "ok"}, seen=seen), username="COLDORG", password="secret")

    await client.predict("Bonjour")

    expected = base64.b64encode(b"COLDORG:secret").decode()
    assert seen[0].headers["authorization"] == f"Basic {expected}"


@pytest.mark.asyncio
async def test_no_credentials_sends_no_authorization():
    seen = []

    await _client(_answer({"text": "ok"}, seen=seen)).predict("Bonjour")

    assert "authorization" not in seen[0].headers


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload, expected",
    [
        ({"text": "premier"}, "premier"),
        ({"reply": "second"}, "second"),
        ({"text": "", "reply": "second"}, "second"),
        ({"text": None}, NO_ANSWER),
        ({}, NO_ANSWER),
    ],
)
async def test_answer_field_precedence(payload, expected):
    assert await _client(_answer(payload)).predict("Bonjour") == expected


@pytest.mark.asyncio
@pytest.mark.parametrize("status_code", [400, 401, 500, 503])
async def test_error_status_is_unavailable(status_code):
    with pytest.raises(UpstreamUnavailable):
        await _client(_answer({"text": "ignored"}, status_code=status_code)).predict("Bonjour")


@pytest.mark.asyncio
async def test_network_error_is_unavailable():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(UpstreamUnavailable):
        await _client(handler).predict("Bonjour")


@pytest.mark.asyncio
async def test_non_json_or_non_object_body_is_unavailable():
    with pytest.raises(UpstreamUnavailable):
        await _client(lambda request: httpx.Response(200, text="<html>oops</html>")).predict("Bonjour")
    with pytest.raises(UpstreamUnavailable):
        await _client(_answer(["a", "list"])).predict("Bonjour")


def test_from_settings_reads_prediction_configuration():
    app_settings = Settings(
        PREDICTION_URL=URL,
        PREDICTION_API_KEY="k-123",
        PREDICTION_TIMEOUT_SECONDS=12.5,
    )

    client = PredictionClient.from_settings(app_settings)

    assert client.url == URL
    assert client.api_key == "k-123"
    assert client.timeout == 12.5
