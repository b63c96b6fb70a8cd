"""
Pydantic models used for request validation and API data contracts.

Each class defines the structure of data expected in API endpoints, ensuring
validation and automatic OpenAPI schema generation. JSON field names are
camelCase (as sent by the browser client); Python attribute names are
snake_case and accepted as well.
"""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

FeedbackReasonValue = Literal[
    "incomplete", "incorrect", "unclear", "irrelevant", "outdated", "unknown", "other"
]


class ChatRequest(BaseModel):
    """
    A chat message sent to the assistant.
    """
    model_config = ConfigDict(populate_by_name=True)

    message: str = Field(..., description="User message; must not be blank.", examples=["Quel est le prix d'une amende de classe 3 ?"])
    conversation_id: Optional[str] = Field(None, alias="conversationId", description="Existing conversation owned by the caller.")


class FeedbackRequest(BaseModel):
    """
    Like/dislike on an exchange, with an optional reason and comment.
    """
    model_config = ConfigDict(populate_by_name=True)

    exchange_id: str = Field(..., alias="exchangeId", description="Identifier of the rated exchange (UUID).")
    is_positive: bool = Field(..., alias="isPositive")
    reason: Optional[FeedbackReasonValue] = None
    """Reason given with a negative rating."""
    comment: Optional[str] = Field(None, max_length=2000)
    """Free-text comment."""


class UserCredentials(BaseModel):
    """
    Represents sign-in or sign-up credentials.
    """
    model_config = ConfigDict(populate_by_name=True)

    email: str = Field(..., min_length=3, max_length=255)
    """The email of the user."""
    password: str
    """The plaintext password provided for authentication."""
    captcha_token: Optional[str] = Field(None, alias="captchaToken")
    """reCAPTCHA response token, required when captcha is enabled."""


class PasswordResetRequest(BaseModel):
    """
    Email address asking for a password reset link.
    """
    email: str


class PasswordResetConfirm(BaseModel):
    """
    Code received by email and the new password.
    """
    code: str
    password: str
