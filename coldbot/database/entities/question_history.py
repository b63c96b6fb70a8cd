"""
QuestionHistory ORM Model
=========================

One row per chat round trip (an *exchange*): the user's question and the
answer returned by the prediction endpoint. Rows are written once and never
updated.

Key features
~~~~~~~~~~~~
- UUID primary key (``id``)
- Owner (``user_id`` → ``app_user.id``)
- Optional conversation (``conversation_id`` → ``conversations.id``)
- ``question`` / ``answer`` text stored verbatim
- Timezone-aware ``created_at`` (UTC)
"""

from coldbot.database.config.connection_engine import declarativeBase
from sqlalchemy import ForeignKey, DateTime, TEXT, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from uuid import UUID
import uuid
from datetime import datetime
from coldbot.database.helpers.time_utils import utc_now

class QuestionHistory(declarativeBase):
    """
    ORM model for the `question_history` table.

    Attributes
    ----------
    id : UUID
        Primary key of the exchange.
    user_id : UUID
        Owner of the exchange.
    conversation_id : UUID | None
        Conversation this exchange belongs to.
    question : str
        Text sent by the user.
    answer : str
        Text returned by the prediction endpoint.
    created_at : datetime
        Time of the round trip (UTC).
    """

    __tablename__ = 'question_history'

    id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True), primary_key=True
    )

    user_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey('app_user.id'), nullable=False, index=True
    )

    conversation_id: Mapped[UUID | None] = mapped_column(
        Uuid(as_uuid=True), ForeignKey('conversations.id'), nullable=True, index=True
    )

    question: Mapped[str] = mapped_column(
        TEXT, nullable=False
    )

    answer: Mapped[str] = mapped_column(
        TEXT, nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, index=True
    )

    def __init__(
        self,
        user_id: UUID,
        question: str,
        answer: str,
        conversation_id: UUID | None = None,
        created_at=None,
    ):
        """
        Initialize a new QuestionHistory object.

        Parameters
        ----------
        user_id : UUID
            Owner of the exchange.
        question : str
            The user's question.
        answer : str
            The upstream answer.
        conversation_id : UUID | None
            Conversation the exchange belongs to.
        created_at : datetime | str | None
            Timestamp of the exchange; defaults to now.
        """
        self.id = uuid.uuid4()
        self.user_id = user_id
        self.conversation_id = conversation_id
        self.question = question
        self.answer = answer
        if isinstance(created_at, str):
            created_at = datetime.fromisoformat(created_at)
        self.created_at = created_at or utc_now()

    def __str__(self) -> str:
        return (
            f"Exchange: id:{self.id}, "
            f"conversation: {self.conversation_id}, "
            f"question: {self.question}, "
            f"time_created: {self.created_at}"
        )
