"""
MessageFeedback DAO

Persists and reads like/dislike feedback on exchanges:
* createFeedback(session, MessageFeedback) stages a feedback record
* fetchFeedback(session) returns all rows for the admin dashboard
"""

import logging
from sqlalchemy.orm import Session
from coldbot.database.entities.message_feedback import MessageFeedback

logger = logging.getLogger("uvicorn")

class MessageFeedbackDao:
    """
    Data Access Object (DAO) for `MessageFeedback` entities.
    """

    def createFeedback(self, session: Session, feedback: MessageFeedback) -> MessageFeedback:
        """
        Stage a feedback record for insertion.

        Parameters
        ----------
        session : Session
            Active SQLAlchemy session.
        feedback : MessageFeedback
            Entity to insert.

        Raises
        ------
        Exception
            If the insert fails (for example an unknown ``message_id``).
        """
        try:
            session.add(feedback)
            session.flush()
            return feedback
        except Exception as e:
            logger.error(f"Error in MessageFeedbackDao.createFeedback. Error Message: {e}")
            raise e

    def fetchFeedback(self, session: Session):
        """
        Return every feedback row.

        Returns
        -------
        list[MessageFeedback]
        """
        try:
            return session.query(MessageFeedback).all()
        except Exception as e:
            logger.error(f"Error in MessageFeedbackDao.fetchFeedback. Error Message: {e}")
            raise e
