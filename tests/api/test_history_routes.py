import csv
import io
from datetime import datetime, timezone

import pytest

from coldbot.api.utils import issue_session_token
from coldbot.database.entities.question_history import QuestionHistory
from coldbot.database.helpers.transactionManagement import SessionLocal


def _seed(user_id, question, answer, created_at):
    with SessionLocal() as session:
        session.add(QuestionHistory(user_id=user_id, question=question, answer=answer, created_at=created_at))
        session.commit()


@pytest.fixture
def people(make_user):
    agent = make_user("agent@coldbot.fr")
    other = make_user("other@coldbot.fr")
    boss = make_user("boss@coldbot.fr")
    _seed(agent["id"], "Prix amende classe 3 ?", "68 euros", datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc))
    _seed(agent["id"], "Délai de paiement ?", "45 jours pour l'AMENDE minorée", datetime(2024, 5, 2, 23, 30, tzinfo=timezone.utc))
    _seed(agent["id"], "Prix amende classe 3 ?", "68 euros", datetime(2024, 5, 3, 8, 0, tzinfo=timezone.utc))
    _seed(other["id"], "Contester un PV ?", "Sous 45 jours", datetime(2024, 5, 2, 12, 0, tzinfo=timezone.utc))

    def headers(user):
        return {"Authorization": f"Bearer {issue_session_token(user)}"}

    return {"agent": headers(agent), "other": headers(other), "boss": headers(boss), "agent_id": str(agent["id"]), "other_id": str(other["id"])}


def test_exchange_round_trips_byte_identical(client, auth_headers):
    headers = auth_headers("agent@coldbot.fr")
    question = "Amende « classe 3 » : 100% ? _oui_ \\ non"
    client.post("/api/chatbot", json={"message": question}, headers=headers)

    rows = client.get("/api/history", headers=headers).json()["rows"]

    assert len(rows) == 1
    assert rows[0]["question"] == question
    assert rows[0]["answer"] == "Réponse de test"
    assert rows[0]["user"] == "agent@coldbot.fr"


def test_non_admin_sees_only_own_rows_newest_first(client, people):
    rows = client.get("/api/history", headers=people["agent"]).json()["rows"]

    assert [row["date"][:10] for row in rows] == ["2024-05-03", "2024-05-02", "2024-05-01"]
    assert {row["user"] for row in rows} == {"agent@coldbot.fr"}


def test_non_admin_cannot_widen_scope(client, people):
    response = client.get(
        "/api/history",
        params={"allUsers": "true", "userId": people["other_id"]},
        headers=people["agent"],
    )

    assert {row["user"] for row in response.json()["rows"]} == {"agent@coldbot.fr"}


def test_admin_can_see_all_users_or_one_user(client, people):
    everything = client.get("/api/history", params={"allUsers": "true"}, headers=people["boss"]).json()
    one = client.get("/api/history", params={"userId": people["other_id"]}, headers=people["boss"]).json()
    own = client.get("/api/history", headers=people["boss"]).json()

    assert everything["stats"]["totalQuestions"] == 4
    assert everything["stats"]["totalUsers"] == 2
    assert [row["user"] for row in one["rows"]] == ["other@coldbot.fr"]
    assert own["rows"] == []


def test_text_search_is_case_insensitive_on_question_or_answer(client, people):
    rows = client.get("/api/history", params={"q": "amende"}, headers=people["agent"]).json()["rows"]

    assert len(rows) == 3
    rows = client.get("/api/history", params={"q": "PAIEMENT"}, headers=people["agent"]).json()["rows"]
    assert [row["question"] for row in rows] == ["Délai de paiement ?"]


def test_search_treats_wildcards_literally(client, people):
    rows = client.get("/api/history", params={"q": "%"}, headers=people["agent"]).json()["rows"]

    assert rows == []


def test_date_range_is_inclusive_and_end_date_covers_whole_day(client, people):
    rows = client.get(
        "/api/history",
        params={"start": "2024-05-01", "end": "2024-05-02"},
        headers=people["agent"],
    ).json()["rows"]

    assert [row["date"][:16] for row in rows] == ["2024-05-02T23:30", "2024-05-01T09:00"]


def test_invalid_dates_are_rejected(client, people):
    response = client.get("/api/history", params={"start": "yesterday"}, headers=people["agent"])

    assert response.status_code == 400


def test_history_stats(client, people):
    stats = client.get("/api/history", headers=people["agent"]).json()["stats"]

    assert stats["totalQuestions"] == 3
    assert stats["totalUsers"] == 1
    assert stats["averageQuestionsPerUser"] == 3
    assert stats["questionsPerDay"] == {"2024-05-01": 1, "2024-05-02": 1, "2024-05-03": 1}
    assert stats["topQuestions"][0] == {"question": "Prix amende classe 3 ?", "count": 2}


def test_history_requires_session(client):
    assert client.get("/api/history").status_code == 401


def test_csv_export(client, people):
    response = client.get("/api/history/export", params={"allUsers": "true"}, headers=people["boss"])

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    disposition = response.headers["content-disposition"]
    assert disposition.startswith('attachment; filename="coldbot-history-')
    assert disposition.endswith('.csv"')
    rows = list(csv.reader(io.StringIO(response.text)))
    assert rows[0] == ["Date", "User", "Question", "Answer"]
    assert len(rows) == 5
    assert rows[1][1:] == ["agent@coldbot.fr", "Prix amende classe 3 ?", "68 euros"]


def test_conversations_sidebar_groups_exchanges(client, auth_headers):
    headers = auth_headers("agent@coldbot.fr")
    first = client.post("/api/chatbot", json={"message": "Première question"}, headers=headers).json()
    client.post(
        "/api/chatbot",
        json={"message": "Deuxième question", "conversationId": first["conversationId"]},
        headers=headers,
    )
    client.post("/api/chatbot", json={"message": "Autre sujet"}, headers=headers)

    conversations = client.get("/api/conversations", headers=headers).json()

    assert len(conversations) == 2
    grouped = next(c for c in conversations if c["id"] == first["conversationId"])
    assert grouped["title"] == "Première question"
    assert [e["question"] for e in grouped["exchanges"]] == ["Première question", "Deuxième question"]

    filtered = client.get("/api/conversations", params={"q": "autre"}, headers=headers).json()
    assert [c["title"] for c in filtered] == ["Autre sujet"]
