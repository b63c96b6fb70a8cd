"""
MessageFeedback ORM Model
=========================

Like/dislike feedback left by a user on one exchange, with an optional reason
and free-text comment.

Table
-----
- ``message_feedback``; ``message_id`` references ``question_history.id``.
- No uniqueness on (message_id, user_id): submitting twice stores two rows.
"""

from enum import Enum
from coldbot.database.config.connection_engine import declarativeBase
from sqlalchemy import ForeignKey, DateTime, Boolean, TEXT, VARCHAR, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from uuid import UUID
import uuid
from datetime import datetime
from coldbot.database.helpers.time_utils import utc_now


class FeedbackReason(str, Enum):
    """Reasons offered with a negative rating."""

    INCOMPLETE = "incomplete"
    INCORRECT = "incorrect"
    UNCLEAR = "unclear"
    IRRELEVANT = "irrelevant"
    OUTDATED = "outdated"
    UNKNOWN = "unknown"
    OTHER = "other"


class MessageFeedback(declarativeBase):
    """
    ORM model for the `message_feedback` table.

    Attributes
    ----------
    id : UUID
        Primary key for this feedback record.
    message_id : UUID
        Exchange being rated (`question_history.id`).
    user_id : UUID
        Author of the feedback.
    is_positive : bool
        Like (True) or dislike (False).
    reason : str | None
        One of `FeedbackReason`.
    comment : str | None
        Free-text comment.
    created_at : datetime
        Time when the feedback was recorded (UTC).
    """

    __tablename__ = 'message_feedback'

    id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True), primary_key=True
    )

    message_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey('question_history.id'), nullable=False, index=True
    )

    user_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey('app_user.id'), nullable=False
    )

    is_positive: Mapped[bool] = mapped_column(
        Boolean, nullable=False
    )

    reason: Mapped[str | None] = mapped_column(
        VARCHAR(32), nullable=True
    )

    comment: Mapped[str | None] = mapped_column(
        TEXT, nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )

    def __init__(
        self,
        message_id: UUID,
        user_id: UUID,
        is_positive: bool,
        reason: str | None = None,
        comment: str | None = None,
        created_at=None,
    ):
        self.id = uuid.uuid4()
        self.message_id = message_id
        self.user_id = user_id
        self.is_positive = is_positive
        self.reason = reason
        self.comment = comment
        if isinstance(created_at, str):
            created_at = datetime.fromisoformat(created_at)
        self.created_at = created_at or utc_now()

    def __str__(self) -> str:
        return (
            f"Feedback: id:{self.id}, "
            f"message_id: {self.message_id}, "
            f"is_positive: {self.is_positive}, "
            f"reason: {self.reason}"
        )
