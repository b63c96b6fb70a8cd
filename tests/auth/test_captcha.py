from urllib.parse import parse_qs

import httpx
import pytest

from coldbot.auth.captcha import verify_captcha


def _transport(payload, status_code=200, seen=None):
    def handler(request):
        if seen is not None:
            seen.append(request)
        return httpx.Response(status_code, json=payload)

    return httpx.MockTransport(handler)


@pytest.mark.asyncio
async def test_disabled_without_secret():
    assert await verify_captcha(None, secret="") is True


@pytest.mark.asyncio
async def test_missing_token_fails_when_enabled():
    assert await verify_captcha(None, secret="s3cret") is False


@pytest.mark.asyncio
async def test_success_forwards_secret_token_and_address():
    seen = []

    result = await verify_captcha(
        "widget-token",
        secret="s3cret",
        remote_ip="203.0.113.7",
        transport=_transport({"success": True}, seen=seen),
    )

    assert result is True
    form = parse_qs(seen[0].content.decode())
    assert form == {"secret": ["s3cret"], "response": ["widget-token"], "remoteip": ["203.0.113.7"]}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload, status_code",
    [
        ({"success": False, "error-codes": ["invalid-input-response"]}, 200),
        ({}, 200),
        (["success"], 200),
        ({"success": True}, 500),
    ],
)
async def test_rejections_and_bad_answers_fail(payload, status_code):
    assert await verify_captcha("widget-token", secret="s3cret", transport=_transport(payload, status_code)) is False


@pytest.mark.asyncio
async def test_network_error_fails():
    def handler(request):
        raise httpx.ConnectError("unreachable")

    assert await verify_captcha("widget-token", secret="s3cret", transport=httpx.MockTransport(handler)) is False
