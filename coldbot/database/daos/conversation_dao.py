"""
Conversation DAO

Purpose
-------
Provides a thin data-access layer for the `Conversation` ORM entity:
- Create conversations
- Query by id or by owner
- Bump `updated_at` after each exchange
- Count conversations for the dashboard

Design
------
- Requires an active SQLAlchemy `Session` supplied by the caller (no session
  creation inside the DAO). Transaction boundaries live in the service layer.
- Uses straightforward ORM queries (`session.query(...).filter(...).all()`).

Error Handling
--------------
- Methods catch generic `Exception`, log the error message, and re-raise.
- `updateConversationByDate` uses `.one()`, which raises `NoResultFound` if the
  conversation does not exist.
"""

import logging
from datetime import datetime
from uuid import UUID
from sqlalchemy import desc, func
from sqlalchemy.orm import Session
from coldbot.database.entities.conversations import Conversation

logger = logging.getLogger("uvicorn")

class ConversationDao:
    """
    Data Access Object (DAO) for managing Conversation entities.
    Provides CRUD operations on the `conversations` table.
    """

    def createConversation(self, session: Session, conversation: Conversation):
        """
        Create a new conversation record.

        Parameters
        ----------
        session : Session
            Active SQLAlchemy session.
        conversation : Conversation
            Conversation entity instance to be added.

        Raises
        ------
        Exception
            If the conversation cannot be created.
        """
        try:
            session.add(conversation)
            session.flush()
        except Exception as e:
            logger.error(f"Error in ConversationDao.createConversation. Error: {e}")
            raise e

    def fetchConversationById(self, session: Session, conversation_id: UUID) -> Conversation | None:
        try:
            return session.get(Conversation, conversation_id)
        except Exception as e:
            logger.error(f"Error in ConversationDao.fetchConversationById. Error: {e}")
            raise e

    def fetchConversationByUserId(self, session: Session, user_id: UUID):
        """
        Fetch all conversations belonging to a specific user,
        ordered by most recently updated.

        Parameters
        ----------
        session : Session
            Active SQLAlchemy session.
        user_id : UUID
            Unique identifier of the user.

        Returns
        -------
        list[Conversation]
            List of conversations for the given user.

        Raises
        ------
        Exception
            If the query fails.
        """
        try:
            conversations = (
                session.query(Conversation)
                .filter(Conversation.user_id == user_id)
                .order_by(desc(Conversation.updated_at))
                .all()
            )
            return conversations
        except Exception as e:
            logger.error(f"Error in ConversationDao.fetchConversationByUserId. Error: {e}")
            raise e

    def updateConversationByDate(self, session: Session, conversation_id: UUID, timestamp: datetime):
        """
        Update the `updated_at` timestamp of a conversation.

        Parameters
        ----------
        session : Session
            Active SQLAlchemy session.
        conversation_id : UUID
            Unique identifier of the conversation.
        timestamp : datetime
            Time of the latest exchange.

        Raises
        ------
        Exception
            If the conversation does not exist or the update fails.
        """
        try:
            conversation = (
                session.query(Conversation)
                .filter(Conversation.id == conversation_id)
                .one()
            )
            conversation.updated_at = timestamp
        except Exception as e:
            logger.error(f"Error in ConversationDao.updateConversationByDate. Error: {e}")
            raise e

    def countConversations(self, session: Session) -> int:
        try:
            return session.query(func.count(Conversation.id)).scalar() or 0
        except Exception as e:
            logger.error(f"Error in ConversationDao.countConversations. Error: {e}")
            raise e
