import re
import smtplib

import pytest

import coldbot.database.core.funcs as funcs_module
from coldbot.database.entities.user import User
from coldbot.database.helpers.transactionManagement import SessionLocal

PASSWORD = "Spear#123"

NEW_PASSWORD = "Frost!2024"


class Outbox:
    def __init__(self):
        self.messages = []

    def __call__(self, email, subject, body):
        self.messages.append({"email": email, "subject": subject, "body": body})

    def last_code(self):
        return re.search(r"code=([A-Za-z0-9_-]+)", self.messages[-1]["body"]).group(1)


@pytest.fixture
def outbox(monkeypatch):
    box = Outbox()
    monkeypatch.setattr(funcs_module, "send_auth_email", box)
    return box


def _bearer(token):
    return {"Authorization": f"Bearer {token}"}


def _users():
    with SessionLocal() as session:
        return session.query(User).all()


def test_signup_confirm_and_session(client, outbox):
    response = client.post("/api/auth/signup", json={"email": "New@ColdBot.fr", "password": PASSWORD})

    assert response.status_code == 201
    assert outbox.messages[0]["email"] == "New@ColdBot.fr"
    assert "/api/auth/callback?code=" in outbox.messages[0]["body"]
    assert _users()[0].email == "new@coldbot.fr"
    assert _users()[0].verified is False

    callback = client.get("/api/auth/callback", params={"code": outbox.last_code()})

    assert callback.status_code == 307
    assert callback.headers["location"] == "/"
    assert "token=" in callback.headers["set-cookie"]
    assert "httponly" in callback.headers["set-cookie"].lower()
    assert _users()[0].verified is True

    session = client.get("/api/auth/session")
    assert session.status_code == 200
    assert session.json()["user"]["email"] == "new@coldbot.fr"
    assert session.json()["isAdmin"] is False


def test_callback_code_is_single_use(client, outbox):
    client.post("/api/auth/signup", json={"email": "new@coldbot.fr", "password": PASSWORD})
    code = outbox.last_code()
    client.get("/api/auth/callback", params={"code": code})

    again = client.get("/api/auth/callback", params={"code": code})

    assert again.headers["location"] == "/login?error=callback_failed"


@pytest.mark.parametrize("params", [{}, {"code": "bogus"}])
def test_invalid_callback_redirects_to_login_error(client, params):
    response = client.get("/api/auth/callback", params=params)

    assert response.status_code == 307
    assert response.headers["location"] == "/login?error=callback_failed"


def test_signup_rejects_weak_password_and_duplicates(client, outbox, make_user):
    make_user("taken@coldbot.fr")

    weak = client.post("/api/auth/signup", json={"email": "new@coldbot.fr", "password": "short"})
    duplicate = client.post("/api/auth/signup", json={"email": "TAKEN@coldbot.fr", "password": PASSWORD})

    assert weak.status_code == 400
    assert duplicate.status_code == 400
    assert duplicate.json()["detail"] == "Email already exists"
    assert outbox.messages == []


def test_signup_mail_failure_does_not_create_account(client, monkeypatch):
    def broken(email, subject, body):
        raise smtplib.SMTPException("relay refused")

    monkeypatch.setattr(funcs_module, "send_auth_email", broken)

    response = client.post("/api/auth/signup", json={"email": "new@coldbot.fr", "password": PASSWORD})

    assert response.status_code == 503
    assert _users() == []


def test_signin_returns_token_and_cookie(client, make_user):
    make_user("agent@coldbot.fr")

    response = client.post("/api/auth/signin", json={"email": "Agent@coldbot.fr", "password": PASSWORD})

    assert response.status_code == 200
    body = response.json()
    assert body["user"]["email"] == "agent@coldbot.fr"
    assert "token=" in response.headers["set-cookie"]
    assert client.get("/api/auth/session", headers=_bearer(body["accessToken"])).status_code == 200


def test_signin_failures(client, make_user):
    make_user("agent@coldbot.fr")
    make_user("pending@coldbot.fr", verified=False)

    wrong = client.post("/api/auth/signin", json={"email": "agent@coldbot.fr", "password": "Wrong#123"})
    unknown = client.post("/api/auth/signin", json={"email": "ghost@coldbot.fr", "password": PASSWORD})
    pending = client.post("/api/auth/signin", json={"email": "pending@coldbot.fr", "password": PASSWORD})

    assert wrong.status_code == 401
    assert unknown.status_code == 401
    assert pending.status_code == 403


def test_signin_is_rate_limited_per_address(client):
    statuses = [
        client.post("/api/auth/signin", json={"email": "ghost@coldbot.fr", "password": PASSWORD}).status_code
        for _ in range(11)
    ]

    assert statuses == [401] * 10 + [429]


def test_signout_invalidates_existing_tokens(client, make_user):
    make_user("agent@coldbot.fr")
    token = client.post("/api/auth/signin", json={"email": "agent@coldbot.fr", "password": PASSWORD}).json()["accessToken"]
    assert client.get("/api/auth/session", headers=_bearer(token)).status_code == 200

    response = client.post("/api/auth/signout", headers=_bearer(token))

    assert response.status_code == 200
    assert client.get("/api/auth/session", headers=_bearer(token)).status_code == 401


def test_refresh_issues_a_working_token(client, auth_headers):
    response = client.post("/api/auth/refresh", headers=auth_headers("agent@coldbot.fr"))

    assert response.status_code == 200
    assert client.get("/api/auth/session", headers=_bearer(response.json()["accessToken"])).status_code == 200


def test_password_reset_flow(client, outbox, make_user):
    make_user("agent@coldbot.fr")
    old_token = client.post("/api/auth/signin", json={"email": "agent@coldbot.fr", "password": PASSWORD}).json()["accessToken"]

    requested = client.post("/api/auth/reset-password", json={"email": "agent@coldbot.fr"})
    assert requested.status_code == 200
    assert "/auth/reset-password?code=" in outbox.messages[-1]["body"]

    confirmed = client.post(
        "/api/auth/reset-password/confirm",
        json={"code": outbox.last_code(), "password": NEW_PASSWORD},
    )

    assert confirmed.status_code == 200
    assert client.get("/api/auth/session", headers=_bearer(old_token)).status_code == 401
    old = client.post("/api/auth/signin", json={"email": "agent@coldbot.fr", "password": PASSWORD})
    new = client.post("/api/auth/signin", json={"email": "agent@coldbot.fr", "password": NEW_PASSWORD})
    assert old.status_code == 401
    assert new.status_code == 200


def test_password_reset_for_unknown_email_is_silent(client, outbox):
    response = client.post("/api/auth/reset-password", json={"email": "ghost@coldbot.fr"})

    assert response.status_code == 200
    assert outbox.messages == []


def test_password_reset_rejects_bad_code_and_weak_password(client, outbox, make_user):
    make_user("agent@coldbot.fr")
    client.post("/api/auth/reset-password", json={"email": "agent@coldbot.fr"})

    bad_code = client.post("/api/auth/reset-password/confirm", json={"code": "bogus", "password": NEW_PASSWORD})
    weak = client.post("/api/auth/reset-password/confirm", json={"code": outbox.last_code(), "password": "weak"})

    assert bad_code.status_code == 400
    assert weak.status_code == 400


def test_auth_config_exposes_site_key_only(client):
    response = client.get("/api/auth/config")

    assert response.status_code == 200
    assert set(response.json()) == {"recaptchaSiteKey"}


def test_check_admin(client, auth_headers):
    anonymous = client.get("/api/check-admin")
    agent = client.get("/api/check-admin", headers=auth_headers("agent@coldbot.fr"))
    boss = client.get("/api/check-admin", headers=auth_headers("boss@coldbot.fr"))

    assert anonymous.status_code == 401
    assert anonymous.json()["isAdmin"] is False
    assert agent.json() == {"isAdmin": False, "email": "agent@coldbot.fr"}
    assert boss.json() == {"isAdmin": True, "email": "boss@coldbot.fr"}


def test_admin_stats_requires_admin(client, auth_headers):
    assert client.get("/api/admin/stats").status_code == 401
    assert client.get("/api/admin/stats", headers=auth_headers("agent@coldbot.fr")).status_code == 403


def test_admin_stats_aggregates(client, auth_headers):
    agent = auth_headers("agent@coldbot.fr")
    exchange_id = client.post("/api/chatbot", json={"message": "Bonjour"}, headers=agent).json()["exchangeId"]
    client.post("/api/chatbot", json={"message": "Encore"}, headers=agent)
    client.post("/api/feedback", json={"exchangeId": exchange_id, "isPositive": True}, headers=agent)
    client.post(
        "/api/feedback",
        json={"exchangeId": exchange_id, "isPositive": False, "reason": "unclear"},
        headers=agent,
    )

    stats = client.get("/api/admin/stats", headers=auth_headers("boss@coldbot.fr")).json()

    assert stats["totalUsers"] == 1
    assert stats["activeUsers"] == 1
    assert stats["totalConversations"] == 2
    assert stats["totalQuestions"] == 2
    assert stats["feedbackStats"]["positive"] == 1
    assert stats["feedbackStats"]["negative"] == 1
    assert stats["feedbackStats"]["reasons"]["unclear"] == 1
    assert stats["feedbackStats"]["reasons"]["other"] == 0
    assert len(stats["userActivity"]) == 7
    assert stats["userActivity"][-1]["questions"] == 2
