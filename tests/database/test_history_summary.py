import csv
import io
from datetime import datetime, timezone

import pytest

from coldbot.database.core.history import (
    HistoryFilters,
    history_to_csv,
    parse_date_bound,
    resolve_scope,
    summarize_history,
)
from coldbot.database.entities.conversations import TITLE_MAX_LENGTH, title_from_message


def _row(date, user_id, question, user="agent@coldbot.fr", answer="ok"):
    return {"id": "x", "date": date, "userId": user_id, "user": user, "conversationId": None, "question": question, "answer": answer}


def test_bare_dates_cover_the_whole_day():
    assert parse_date_bound("2024-05-01") == datetime(2024, 5, 1, tzinfo=timezone.utc)
    assert parse_date_bound("2024-05-01", end_of_day=True) == datetime(2024, 5, 1, 23, 59, 59, 999999, tzinfo=timezone.utc)


def test_datetimes_are_normalised_to_utc():
    assert parse_date_bound("2024-05-01T10:00:00Z") == datetime(2024, 5, 1, 10, tzinfo=timezone.utc)
    assert parse_date_bound("2024-05-01T12:00:00+02:00") == datetime(2024, 5, 1, 10, tzinfo=timezone.utc)
    assert parse_date_bound("2024-05-01T10:00:00") == datetime(2024, 5, 1, 10, tzinfo=timezone.utc)


@pytest.mark.parametrize("value", [None, "", "  "])
def test_missing_bounds(value):
    assert parse_date_bound(value) is None


@pytest.mark.parametrize("value", ["yesterday", "2024-13-01", "01/05/2024"])
def test_malformed_bounds_raise(value):
    with pytest.raises(ValueError):
        parse_date_bound(value)


def test_scope_for_non_admin_is_always_own_rows():
    filters = resolve_scope(HistoryFilters(user_id="someone", all_users=True), "me", caller_is_admin=False)

    assert (filters.user_id, filters.all_users) == ("me", False)


@pytest.mark.parametrize(
    "filters, expected",
    [
        (HistoryFilters(), ("me", False)),
        (HistoryFilters(user_id="someone"), ("someone", False)),
        (HistoryFilters(user_id="someone", all_users=True), (None, True)),
    ],
)
def test_scope_for_admin(filters, expected):
    resolved = resolve_scope(filters, "me", caller_is_admin=True)

    assert (resolved.user_id, resolved.all_users) == expected


def test_summary_of_empty_result():
    assert summarize_history([]) == {
        "totalQuestions": 0,
        "totalUsers": 0,
        "averageQuestionsPerUser": 0,
        "questionsPerDay": {},
        "topQuestions": [],
    }


def test_summary_counts():
    rows = [
        _row("2024-05-03T08:00:00+00:00", "u1", "Prix ?"),
        _row("2024-05-01T09:00:00+00:00", "u1", "Délai ?"),
        _row("2024-05-01T10:00:00+00:00", "u2", "Prix ?"),
    ]

    stats = summarize_history(rows)

    assert stats["totalQuestions"] == 3
    assert stats["totalUsers"] == 2
    assert stats["averageQuestionsPerUser"] == 1.5
    assert list(stats["questionsPerDay"].items()) == [("2024-05-01", 2), ("2024-05-03", 1)]
    assert stats["topQuestions"] == [{"question": "Prix ?", "count": 2}, {"question": "Délai ?", "count": 1}]


def test_average_is_rounded_to_two_decimals():
    rows = [_row("2024-05-01T09:00:00+00:00", user, "Q") for user in ("u1", "u1", "u2", "u3")]

    assert summarize_history(rows)["averageQuestionsPerUser"] == 1.33


def test_top_questions_keep_five_and_first_seen_order_on_ties():
    rows = [_row("2024-05-01T09:00:00+00:00", "u1", f"Q{i}") for i in range(7)]

    top = summarize_history(rows)["topQuestions"]

    assert [item["question"] for item in top] == ["Q0", "Q1", "Q2", "Q3", "Q4"]


def test_csv_quotes_commas_quotes_and_newlines():
    rows = [_row("2024-05-01T09:00:00+00:00", "u1", 'Prix, "classe 3"\nurgent', answer="68 €")]

    parsed = list(csv.reader(io.StringIO(history_to_csv(rows))))

    assert parsed == [
        ["Date", "User", "Question", "Answer"],
        ["2024-05-01T09:00:00+00:00", "agent@coldbot.fr", 'Prix, "classe 3"\nurgent', "68 €"],
    ]


def test_title_collapses_whitespace_and_truncates():
    assert title_from_message("  Prix   d'une\namende  ") == "Prix d'une amende"

    title = title_from_message("mot " * 60)

    assert len(title) <= TITLE_MAX_LENGTH
    assert title.endswith("…")
