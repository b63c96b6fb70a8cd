"""
QuestionHistory DAO

Purpose
-------
Data access for exchanges (question/answer round trips):
- Insert a new exchange
- Fetch an exchange by id
- Fetch the exchanges of a conversation in chronological order
- Filtered search used by the history view and CSV export

Search semantics
----------------
- ``search`` matches case-insensitively as a substring of the question OR the
  answer. ``%`` and ``_`` in the term are matched literally.
- ``start`` / ``end`` bounds are inclusive.
- Results are ordered by ``created_at`` descending and carry the owner's
  email (None when the user row no longer exists).
"""

import logging
from datetime import datetime
from uuid import UUID
from sqlalchemy import asc, desc, func, or_
from sqlalchemy.orm import Session
from coldbot.database.entities.question_history import QuestionHistory
from coldbot.database.entities.user import User

logger = logging.getLogger("uvicorn")

class QuestionHistoryDao:
    """
    Data Access Object (DAO) for `QuestionHistory` entities.
    """

    def createExchange(self, session: Session, exchange: QuestionHistory) -> QuestionHistory:
        """
        Stage a new exchange.

        Parameters
        ----------
        session : Session
            Active SQLAlchemy session.
        exchange : QuestionHistory
            Entity to insert.

        Returns
        -------
        QuestionHistory
            The staged entity (``id`` already assigned).
        """
        try:
            session.add(exchange)
            session.flush()
            return exchange
        except Exception as e:
            logger.error(f"Error in QuestionHistoryDao.createExchange. Error Message: {e}")
            raise e

    def fetchExchangeById(self, session: Session, exchange_id: UUID) -> QuestionHistory | None:
        try:
            return session.get(QuestionHistory, exchange_id)
        except Exception as e:
            logger.error(f"Error in QuestionHistoryDao.fetchExchangeById (id={exchange_id}). Error Message: {e}")
            raise e

    def fetchExchangesByConversationId(self, session: Session, conversation_id: UUID):
        """
        Fetch all exchanges of a conversation, oldest first.

        Returns
        -------
        list[QuestionHistory]
        """
        try:
            return (
                session.query(QuestionHistory)
                .filter(QuestionHistory.conversation_id == conversation_id)
                .order_by(asc(QuestionHistory.created_at))
                .all()
            )
        except Exception as e:
            logger.error(f"Error in QuestionHistoryDao.fetchExchangesByConversationId. Error Message: {e}")
            raise e

    def searchExchanges(
        self,
        session: Session,
        search: str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        user_id: UUID | None = None,
    ):
        """
        Filtered history search.

        Parameters
        ----------
        session : Session
            Active SQLAlchemy session.
        search : str | None
            Case-insensitive substring matched against question or answer.
        start, end : datetime | None
            Inclusive bounds on ``created_at``.
        user_id : UUID | None
            Restrict to one owner.

        Returns
        -------
        list[tuple[QuestionHistory, str | None]]
            Exchanges with the owner's email, newest first.
        """
        try:
            query = (
                session.query(QuestionHistory, User.email)
                .outerjoin(User, User.id == QuestionHistory.user_id)
            )
            if search:
                query = query.filter(
                    or_(
                        QuestionHistory.question.icontains(search, autoescape=True),
                        QuestionHistory.answer.icontains(search, autoescape=True),
                    )
                )
            if start is not None:
                query = query.filter(QuestionHistory.created_at >= start)
            if end is not None:
                query = query.filter(QuestionHistory.created_at <= end)
            if user_id is not None:
                query = query.filter(QuestionHistory.user_id == user_id)
            return query.order_by(desc(QuestionHistory.created_at)).all()
        except Exception as e:
            logger.error(f"Error in QuestionHistoryDao.searchExchanges. Error Message: {e}")
            raise e

    def countExchanges(self, session: Session) -> int:
        try:
            return session.query(func.count(QuestionHistory.id)).scalar() or 0
        except Exception as e:
            logger.error(f"Error in QuestionHistoryDao.countExchanges. Error Message: {e}")
            raise e

    def fetchExchangeDatesSince(self, session: Session, since: datetime):
        """Creation times of every exchange at or after ``since``."""
        try:
            rows = (
                session.query(QuestionHistory.created_at)
                .filter(QuestionHistory.created_at >= since)
                .all()
            )
            return [row[0] for row in rows]
        except Exception as e:
            logger.error(f"Error in QuestionHistoryDao.fetchExchangeDatesSince. Error Message: {e}")
            raise e
