"""
User ORM Model
==============

The ``User`` ORM model is the identity provider's account record. It maps to
the ``app_user`` table and holds credentials, the current session nonce and
the one-time code used for email confirmation and password reset.

Key features
~~~~~~~~~~~~
- UUID primary key (``id``)
- Unique, lower-cased ``email``
- bcrypt ``password`` hash
- ``session_id`` nonce embedded in every issued token; rotating it signs the
  user out everywhere
- ``verification_code`` / ``code_created_on`` for the auth-code exchange
"""

from coldbot.database.config.connection_engine import declarativeBase
from sqlalchemy import VARCHAR, Boolean, TEXT, DateTime, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from uuid import UUID
import uuid
from datetime import datetime
from coldbot.database.helpers.time_utils import utc_now

class User(declarativeBase):
    """
    ORM model for the `app_user` table.

    Attributes
    ----------
    id : UUID
        Primary key. Unique identifier for the user.
    email : str
        Email address of the user (unique, stored lower-case).
    password : str
        Hashed password of the user.
    session_id : str
        Current session nonce for the user.
    verified : bool
        Whether the user's email has been confirmed.
    verification_code : str | None
        Pending one-time code (confirmation or password reset).
    code_created_on : datetime | None
        Timestamp when the pending code was generated.
    created_at : datetime
        Account creation time (UTC).
    """

    __tablename__ = "app_user"

    id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True), primary_key=True
    )
    """Primary key. UUID of the user."""

    email: Mapped[str] = mapped_column(
        VARCHAR(255), nullable=False, unique=True, index=True
    )
    """Email address of the user (max length 255)."""

    password: Mapped[str] = mapped_column(
        TEXT, nullable=False
    )
    """Hashed password of the user."""

    session_id: Mapped[str] = mapped_column(
        TEXT, nullable=False
    )
    """Session nonce string associated with the user."""

    verified: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    """Boolean flag indicating if the user has confirmed their email."""

    verification_code: Mapped[str | None] = mapped_column(
        TEXT, nullable=True, index=True
    )
    """One-time code for the auth-code exchange or password reset."""

    code_created_on: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    """Datetime when the pending code was created."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    """Account creation timestamp."""

    def __init__(
        self,
        email: str,
        password: str,
        session_id: str,
        verification_code: str | None = None,
        code_created_on=None,
        verified: bool = False,
    ):
        """
        Initialize a new User object.

        Parameters
        ----------
        email : str
            Email address of the user.
        password : str
            Hashed password of the user.
        session_id : str
            Initial session nonce.
        verification_code : str | None
            Pending confirmation code.
        code_created_on : datetime | str | None
            Creation timestamp for the code (datetime or ISO8601 string).
        verified : bool
            Initial confirmation state.
        """
        self.id = uuid.uuid4()
        self.email = email.strip().lower()
        self.password = password
        self.session_id = session_id
        self.verified = verified
        self.verification_code = verification_code
        self.created_at = utc_now()
        if isinstance(code_created_on, str):
            self.code_created_on = datetime.fromisoformat(code_created_on)
        else:
            self.code_created_on = code_created_on

    def __str__(self) -> str:
        return f"User: id:{self.id}, email: {self.email}, verified: {self.verified}"
