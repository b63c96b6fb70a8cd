"""
History query service.

Turns the filters of the history view into a store query, computes the
aggregates shown above the table and renders the CSV export.

Scope rules
-----------
- Non-admin callers only ever see their own exchanges.
- Admins see their own exchanges by default, those of a given user when
  `user_id` is supplied, or everything with `all_users=True`.

Known limitation: results are not paginated.
"""

import csv
import io
from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from uuid import UUID

from sqlalchemy.orm import Session

from coldbot.database.daos.question_history_dao import QuestionHistoryDao
from coldbot.database.helpers.time_utils import as_utc
from coldbot.database.helpers.transactionManagement import transactional

TOP_QUESTIONS = 5
CSV_HEADER = ["Date", "User", "Question", "Answer"]


@dataclass
class HistoryFilters:
    """Filters applied to the history query."""

    start: datetime | None = None
    end: datetime | None = None
    search: str | None = None
    user_id: UUID | None = None
    all_users: bool = False


def parse_date_bound(value: str | None, end_of_day: bool = False) -> datetime | None:
    """
    Parse a date or datetime query parameter into an aware UTC bound.

    A bare date (``2024-05-01``) means the start of that day, or its last
    microsecond when ``end_of_day`` is set, so end bounds include the whole
    day. Naive datetimes are read as UTC.

    Raises
    ------
    ValueError
        If the value is not ISO 8601.
    """
    if value is None or not value.strip():
        return None
    value = value.strip()
    if "T" not in value and " " not in value:
        day = date.fromisoformat(value)
        bound = time.max if end_of_day else time.min
        return datetime.combine(day, bound, tzinfo=timezone.utc)
    return as_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))


def resolve_scope(filters: HistoryFilters, caller_id: UUID, caller_is_admin: bool) -> HistoryFilters:
    """Apply the scope rules for the caller and return the effective filters."""
    if not caller_is_admin:
        filters.user_id = caller_id
        filters.all_users = False
    elif filters.all_users:
        filters.user_id = None
    elif filters.user_id is None:
        filters.user_id = caller_id
    return filters


@transactional
def fetch_history(session: Session, filters: HistoryFilters) -> list[dict]:
    """
    Run the filtered history query.

    Returns
    -------
    list[dict]
        Newest first; each item:
        {'id', 'date', 'userId', 'user', 'conversationId', 'question', 'answer'}
    """
    search = filters.search.strip() if filters.search else None
    rows = QuestionHistoryDao().searchExchanges(
        session,
        search=search or None,
        start=filters.start,
        end=filters.end,
        user_id=None if filters.all_users else filters.user_id,
    )
    return [
        {
            "id": str(exchange.id),
            "date": as_utc(exchange.created_at).isoformat(),
            "userId": str(exchange.user_id),
            "user": email,
            "conversationId": str(exchange.conversation_id) if exchange.conversation_id else None,
            "question": exchange.question,
            "answer": exchange.answer,
        }
        for exchange, email in rows
    ]


def summarize_history(rows: list[dict]) -> dict:
    """
    Aggregates over a history result.

    Returns
    -------
    dict
        - totalQuestions: number of rows
        - totalUsers: distinct owners
        - averageQuestionsPerUser: rounded to 2 decimals, 0 when empty
        - questionsPerDay: {ISO date: count}, ascending
        - topQuestions: [{'question', 'count'}], top 5 by exact text, ties in
          order of first appearance
    """
    total = len(rows)
    users = {row["userId"] for row in rows}
    per_day = Counter(row["date"][:10] for row in rows)
    top = Counter(row["question"] for row in rows).most_common(TOP_QUESTIONS)
    return {
        "totalQuestions": total,
        "totalUsers": len(users),
        "averageQuestionsPerUser": round(total / len(users), 2) if users else 0,
        "questionsPerDay": {day: per_day[day] for day in sorted(per_day)},
        "topQuestions": [{"question": question, "count": count} for question, count in top],
    }


def history_to_csv(rows: list[dict]) -> str:
    """Render rows as CSV with the columns Date, User, Question, Answer."""
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(CSV_HEADER)
    for row in rows:
        writer.writerow([row["date"], row["user"] or "", row["question"], row["answer"]])
    return buffer.getvalue()
