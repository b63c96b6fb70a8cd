"""
Conversation ORM Model
=======================

The ``Conversation`` ORM model groups the exchanges of one user. It is created
lazily with the first message of a chat and its ``updated_at`` is bumped on
every later turn.

Key features
~~~~~~~~~~~~
- UUID primary key (``id``)
- Foreign key to the owning user (``user_id`` → ``app_user.id``)
- ``title`` derived from the first question
- Timezone-aware ``created_at`` / ``updated_at`` (UTC), with
  ``updated_at >= created_at``
"""

from coldbot.database.config.connection_engine import declarativeBase
from sqlalchemy import ForeignKey, DateTime, TEXT, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from uuid import UUID
import uuid
from datetime import datetime
from coldbot.database.helpers.time_utils import utc_now

TITLE_MAX_LENGTH = 100
"""Conversation titles are cut to this many characters."""


def title_from_message(message: str) -> str:
    """Derive a conversation title from its first message."""
    title = " ".join(message.split())
    if len(title) > TITLE_MAX_LENGTH:
        return title[: TITLE_MAX_LENGTH - 1].rstrip() + "…"
    return title


class Conversation(declarativeBase):
    """
    ORM model for the `conversations` table.

    Attributes
    ----------
    id : UUID
        Primary key. Unique identifier for the conversation.
    user_id : UUID
        Foreign key reference to the `app_user` table (the owner).
    title : str
        Human-readable title, taken from the first message.
    created_at : datetime
        Creation time (UTC).
    updated_at : datetime
        Time of the most recent exchange (UTC).
    """

    __tablename__ = 'conversations'

    id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True), primary_key=True
    )
    """Primary key. UUID of the conversation."""

    user_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey('app_user.id'), nullable=False, index=True
    )
    """Foreign key reference to the `app_user` table (owner)."""

    title: Mapped[str] = mapped_column(
        TEXT, nullable=False
    )
    """Title of the conversation (cannot be null)."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )

    def __init__(self, user_id: UUID, title: str, created_at=None):
        """
        Initialize a new Conversation object.

        Parameters
        ----------
        user_id : UUID
            The ID of the user who owns this conversation.
        title : str
            Title of the conversation.
        created_at : datetime | str | None
            Creation timestamp. Accepts datetime or ISO8601 string; defaults to now.
        """
        self.id = uuid.uuid4()
        self.user_id = user_id
        self.title = title
        if isinstance(created_at, str):
            created_at = datetime.fromisoformat(created_at)
        self.created_at = created_at or utc_now()
        self.updated_at = self.created_at

    def __str__(self) -> str:
        return (
            f"Conversation: id:{self.id}, user: {self.user_id}, title: {self.title}, updated: {self.updated_at}"
        )
