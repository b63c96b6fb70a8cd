"""
UserProfile ORM Model
=====================

Denormalized usage profile kept next to the identity record. It is upserted
on every chat turn (question counter, last question date) and on sign-in
(last seen), and read by the admin dashboard.
"""

from coldbot.database.config.connection_engine import declarativeBase
from sqlalchemy import ForeignKey, DateTime, Integer, VARCHAR, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from uuid import UUID
from datetime import datetime
from coldbot.database.helpers.time_utils import utc_now

class UserProfile(declarativeBase):
    """
    ORM model for the `user_profiles` table.

    Attributes
    ----------
    id : UUID
        Primary key, same value as the owning `app_user.id`.
    email : str
        Copy of the identity email.
    questions_used : int
        Number of chat turns recorded for the user.
    last_question_date : datetime | None
        Time of the most recent chat turn.
    last_seen : datetime | None
        Time of the most recent sign-in or chat turn.
    created_at, updated_at : datetime
        Row bookkeeping timestamps (UTC).
    """

    __tablename__ = "user_profiles"

    id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("app_user.id"), primary_key=True
    )

    email: Mapped[str] = mapped_column(
        VARCHAR(255), nullable=False
    )

    questions_used: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )

    last_question_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    last_seen: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )

    def __init__(self, user_id: UUID, email: str, created_at: datetime | None = None):
        timestamp = created_at or utc_now()
        self.id = user_id
        self.email = email
        self.questions_used = 0
        self.last_question_date = None
        self.last_seen = None
        self.created_at = timestamp
        self.updated_at = timestamp

    def __str__(self) -> str:
        return f"UserProfile: id:{self.id}, email: {self.email}, questions_used: {self.questions_used}"
