"""
Service-layer operations for authentication, chat turns, conversations,
feedback and the admin dashboard.

Store operations are wrapped with the `@transactional` decorator, which manages
SQLAlchemy sessions and transactions automatically. Each of them accepts (and
uses) an injected `session: Session` provided by the decorator, so every
other argument must be passed by keyword. `authenticate_user` and
`confirm_password_reset` raise `AuthError` instead of returning a result
dict.

This module provides high-level operations that orchestrate DAO calls and
auxiliary services (encryption, email).
"""

import logging
import smtplib
from collections import Counter
from datetime import datetime, timedelta
from email.mime.text import MIMEText
from uuid import UUID

from sqlalchemy.orm import Session

from coldbot.api.errors import AuthError, ExchangeNotFound
from coldbot.crypt.encrypt_decrypt import EncryptionDec
from coldbot.database.config.config import settings
from coldbot.database.daos.conversation_dao import ConversationDao
from coldbot.database.daos.message_feedback_dao import MessageFeedbackDao
from coldbot.database.daos.question_history_dao import QuestionHistoryDao
from coldbot.database.daos.user_dao import UserDao
from coldbot.database.daos.user_profile_dao import UserProfileDao
from coldbot.database.entities.conversations import Conversation, title_from_message
from coldbot.database.entities.message_feedback import MessageFeedback, FeedbackReason
from coldbot.database.entities.question_history import QuestionHistory
from coldbot.database.entities.user import User
from coldbot.database.helpers.time_utils import as_utc, utc_now
from coldbot.database.helpers.transactionManagement import transactional

logger = logging.getLogger("uvicorn")

INVALID_PASSWORD_DETAIL = (
    "Password is invalid. Must contain at least 8 characters, 1 lowercase, "
    "1 uppercase, 1 digit, and 1 special character."
)

ACTIVITY_WINDOW_DAYS = 7
"""Window used by the dashboard for active users and daily activity."""


def _user_details(user: User) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "verified": user.verified,
        "session_id": user.session_id,
    }


def _code_expired(user: User, now: datetime) -> bool:
    created_on = as_utc(user.code_created_on)
    if created_on is None:
        return True
    return now > created_on + timedelta(minutes=settings.AUTH_CODE_EXPIRE_MINUTES)


def send_auth_email(email: str, subject: str, body: str) -> None:
    """
    Send a plain-text email through the configured SMTP relay.

    Parameters
    ----------
    email : str
        Recipient email address.
    subject : str
        Message subject.
    body : str
        Plain-text body.

    Notes
    -----
    - Uses `settings.SENDER_EMAIL` and `settings.APP_PASSWORD` for SMTP auth
      over STARTTLS on `settings.SMTP_HOST:settings.SMTP_PORT`.
    - When no sender is configured the message is not sent and a warning is
      logged.
    - SMTP exceptions are propagated to the caller.
    """
    sender_email = settings.SENDER_EMAIL
    sender_password = settings.APP_PASSWORD

    if not sender_email:
        logger.warning(f"SENDER_EMAIL is not configured; email '{subject}' to {email} was not sent")
        return

    msg = MIMEText(body)
    msg["Subject"] = subject
    msg["From"] = sender_email
    msg["To"] = email

    with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT) as server:
        server.starttls()
        server.login(sender_email, sender_password)
        server.sendmail(sender_email, email, msg.as_string())


@transactional
def check_create_user_instance(session: Session, email: str, password: str):
    """
    Validate uniqueness and password policy, create a new user, and email a
    confirmation link.

    Parameters
    ----------
    session : Session
        Active SQLAlchemy session (injected by @transactional).
    email : str
        Email address (must be unique, compared case-insensitively).
    password : str
        Plaintext password to be validated and hashed at DAO level.

    Returns
    -------
    dict
        - On success: {'res': True, 'detail': <message>} \n
        - On failure: {'res': False, 'detail': <reason>} \n

    Notes
    -----
    - The confirmation link points at `/api/auth/callback?code=...`; following
      it verifies the account and opens a session.
    """
    user_dao = UserDao()
    enc = EncryptionDec()
    email = email.strip().lower()
    if len(user_dao.fetchUserByEmail(session=session, email=email)) > 0:
        return {"res": False, "detail": "Email already exists"}
    if not enc.is_valid_password(password):
        return {"res": False, "detail": INVALID_PASSWORD_DETAIL}

    code = enc.generate_verification_code()
    user = User(
        email=email,
        password=password,
        session_id=enc.generate_session_nonce(),
        verification_code=code,
        code_created_on=utc_now(),
    )
    user_dao.createUser(session=session, user_data=user)
    send_auth_email(
        email=email,
        subject="Confirm your ColdBot account",
        body=(
            "Welcome to ColdBot.\n\n"
            f"Confirm your email address by opening: {settings.SITE_URL}/api/auth/callback?code={code}\n"
        ),
    )
    return {"res": True, "detail": "Confirmation email sent"}


@transactional
def login_user(session: Session, email: str, password: str):
    """
    Authenticate a user by email and password.

    Parameters
    ----------
    session : Session
        Active SQLAlchemy session (injected by @transactional).
    email : str
        Email to authenticate.
    password : str
        Plaintext password to verify.

    Returns
    -------
    dict
        - authenticated (bool): True if credentials are valid and the email
          is confirmed.
        - detail (str): Error or info message.
        - user_details (dict | None): {id, email, verified, session_id} when
          the credentials matched.

    Notes
    -----
    - A successful sign-in records activity on the user's profile.
    """
    user_dao = UserDao()
    enc = EncryptionDec()
    users_fetched = user_dao.fetchUserByEmail(session, email)
    if len(users_fetched) == 0 or not enc.check_passwords(password, users_fetched[0].password):
        return {
            "authenticated": False,
            "detail": "Invalid email or password",
            "user_details": None,
        }
    user = users_fetched[0]
    if not user.verified:
        return {
            "authenticated": False,
            "detail": "Email address is not confirmed",
            "user_details": _user_details(user),
        }
    UserProfileDao().upsertProfileActivity(session, user.id, user.email, utc_now())
    return {"authenticated": True, "detail": "", "user_details": _user_details(user)}


@transactional
def exchange_code_for_session(session: Session, code: str) -> dict | None:
    """
    Exchange a one-time authorization code for a session.

    The code is consumed, the account marked verified and the user's
    profile touched.

    Returns
    -------
    dict | None
        User details for the new session, or None when the code is unknown
        or expired.
    """
    if not code:
        return None
    user_dao = UserDao()
    users = user_dao.fetchUserByCode(session, code)
    if len(users) == 0:
        return None
    user = users[0]
    now = utc_now()
    if _code_expired(user, now):
        user_dao.updateVerCode(session, user.id, code=None, code_created_on=None)
        return None
    user_dao.updateVerified(session, user.id)
    UserProfileDao().upsertProfileActivity(session, user.id, user.email, now)
    return _user_details(user)


@transactional
def rotate_session(session: Session, user_id: UUID) -> str:
    """
    Replace the session nonce of a user, invalidating every issued token.

    Returns
    -------
    str
        The new nonce.
    """
    nonce = EncryptionDec().generate_session_nonce()
    UserDao().updateSessionId(session, user_id, nonce)
    return nonce


@transactional
def get_session_nonce(session: Session, user_id: UUID) -> dict | None:
    """
    Read what a session token is checked against.

    Returns
    -------
    dict | None
        {'id', 'email', 'session_id', 'verified'} or None for an unknown user.
    """
    user = UserDao().fetchUserById(session, user_id)
    if user is None:
        return None
    return _user_details(user)


@transactional
def request_password_reset(session: Session, email: str) -> None:
    """
    Email a password reset link when the address belongs to an account.

    Unknown addresses are ignored silently so callers cannot probe for
    accounts.
    """
    user_dao = UserDao()
    users = user_dao.fetchUserByEmail(session, email)
    if len(users) == 0:
        logger.info("Password reset requested for an unknown email")
        return
    user = users[0]
    code = EncryptionDec().generate_verification_code()
    user_dao.updateVerCode(session, user.id, code=code, code_created_on=utc_now())
    send_auth_email(
        email=user.email,
        subject="Reset your ColdBot password",
        body=(
            "A password reset was requested for your ColdBot account.\n\n"
            f"Choose a new password at: {settings.SITE_URL}/auth/reset-password?code={code}\n"
        ),
    )


@transactional
def reset_password(session: Session, code: str, password: str):
    """
    Set a new password using a reset code.

    Parameters
    ----------
    session : Session
        Active SQLAlchemy session (injected by @transactional).
    code : str
        Code received by email.
    password : str
        New plaintext password (password policy applies).

    Returns
    -------
    dict
        {'res': bool, 'detail': str}, plus 'user_id' on success

    Notes
    -----
    - A successful reset rotates the session nonce (signs out everywhere) and
      marks the email as confirmed.
    """
    user_dao = UserDao()
    enc = EncryptionDec()
    users = user_dao.fetchUserByCode(session, code) if code else []
    if len(users) == 0:
        return {"res": False, "detail": "Reset code is invalid"}
    user = users[0]
    if _code_expired(user, utc_now()):
        return {"res": False, "detail": "Reset code expired"}
    if not enc.is_valid_password(password):
        return {"res": False, "detail": INVALID_PASSWORD_DETAIL}
    user_dao.updatePassword(session, user.id, password)
    user_dao.updateVerified(session, user.id)
    user_dao.updateSessionId(session, user.id, enc.generate_session_nonce())
    return {"res": True, "detail": "", "user_id": user.id}


def authenticate_user(email: str, password: str) -> dict:
    """
    Sign-in check raising on failure.

    Returns
    -------
    dict
        User details {id, email, verified, session_id}.

    Raises
    ------
    AuthError
        401 for unknown email or wrong password, 403 when the email is not
        confirmed yet.
    """
    auth = login_user(email=email, password=password)
    if not auth["authenticated"]:
        status_code = 403 if auth["user_details"] is not None else 401
        raise AuthError(auth["detail"], status_code=status_code)
    return auth["user_details"]


def confirm_password_reset(code: str, password: str) -> UUID:
    """
    Apply a password reset and return the id of the user whose sessions
    must be dropped.

    Raises
    ------
    AuthError
        400 for an unknown or expired code, or a password rejected by the
        password policy.
    """
    res = reset_password(code=code, password=password)
    if not res["res"]:
        raise AuthError(res["detail"], status_code=400)
    return res["user_id"]


@transactional
def conversation_belongs_to(session: Session, conversation_id: UUID, user_id: UUID) -> bool:
    conversation = ConversationDao().fetchConversationById(session, conversation_id)
    return conversation is not None and conversation.user_id == user_id


@transactional
def record_chat_turn(
    session: Session,
    user_id: UUID,
    email: str,
    question: str,
    answer: str,
    conversation_id: UUID | None = None,
) -> dict:
    """
    Persist one chat round trip atomically.

    Steps (single transaction):
      1) Create the conversation, titled after the question, when none is given.
      2) Insert the exchange.
      3) Bump the conversation's `updated_at`.
      4) Upsert the profile: `questions_used += 1`, `last_question_date`,
         `last_seen`.

    Parameters
    ----------
    session : Session
        Active SQLAlchemy session (injected by @transactional).
    user_id : UUID
        Owner of the turn.
    email : str
        Owner's email, copied onto a newly created profile.
    question : str
        The trimmed user message.
    answer : str
        The prediction endpoint's answer.
    conversation_id : UUID | None
        Existing conversation, already checked for ownership.

    Returns
    -------
    dict
        {'conversationId': <UUID>, 'exchangeId': <UUID>}
    """
    conversation_dao = ConversationDao()
    timestamp = utc_now()
    if conversation_id is None:
        conversation = Conversation(
            user_id=user_id, title=title_from_message(question), created_at=timestamp
        )
        conversation_dao.createConversation(session, conversation)
        conversation_id = conversation.id

    exchange = QuestionHistoryDao().createExchange(
        session,
        QuestionHistory(
            user_id=user_id,
            question=question,
            answer=answer,
            conversation_id=conversation_id,
            created_at=timestamp,
        ),
    )
    conversation_dao.updateConversationByDate(session, conversation_id=conversation_id, timestamp=timestamp)
    UserProfileDao().upsertProfileActivity(
        session, user_id, email, timestamp, asked_question=True
    )
    return {"conversationId": conversation_id, "exchangeId": exchange.id}


@transactional
def get_conversations_with_exchanges(session: Session, user_id: UUID, search: str | None = None) -> list[dict]:
    """
    List a user's conversations with their exchanges, for the sidebar.

    Parameters
    ----------
    session : Session
        Active SQLAlchemy session (injected by @transactional).
    user_id : UUID
        Owner of the conversations.
    search : str | None
        Optional case-insensitive filter on question or answer text.
        Conversations left without exchanges are dropped.

    Returns
    -------
    list[dict]
        Newest conversation first; each item:
        {'id', 'title', 'createdAt', 'updatedAt', 'exchanges': [{'id', 'question', 'answer', 'createdAt'}]}
    """
    conversation_dao = ConversationDao()
    history_dao = QuestionHistoryDao()
    needle = search.strip().lower() if search and search.strip() else None
    result = []
    for conversation in conversation_dao.fetchConversationByUserId(session, user_id):
        exchanges = history_dao.fetchExchangesByConversationId(session, conversation.id)
        if needle:
            exchanges = [
                ex for ex in exchanges
                if needle in ex.question.lower() or needle in ex.answer.lower()
            ]
        if not exchanges:
            continue
        result.append(
            {
                "id": str(conversation.id),
                "title": conversation.title,
                "createdAt": as_utc(conversation.created_at).isoformat(),
                "updatedAt": as_utc(conversation.updated_at).isoformat(),
                "exchanges": [
                    {
                        "id": str(ex.id),
                        "question": ex.question,
                        "answer": ex.answer,
                        "createdAt": as_utc(ex.created_at).isoformat(),
                    }
                    for ex in exchanges
                ],
            }
        )
    return result


@transactional
def record_feedback(
    session: Session,
    exchange_id: UUID,
    user_id: UUID,
    is_positive: bool,
    reason: str | None = None,
    comment: str | None = None,
) -> dict:
    """
    Store one like/dislike on an exchange.

    Not idempotent: repeated calls create multiple rows.

    Raises
    ------
    ExchangeNotFound
        When `exchange_id` does not reference an existing exchange.
    """
    if QuestionHistoryDao().fetchExchangeById(session, exchange_id) is None:
        raise ExchangeNotFound(str(exchange_id))
    if comment is not None:
        comment = comment.strip() or None
    feedback = MessageFeedbackDao().createFeedback(
        session,
        MessageFeedback(
            message_id=exchange_id,
            user_id=user_id,
            is_positive=is_positive,
            reason=reason,
            comment=comment,
        ),
    )
    return {
        "id": str(feedback.id),
        "exchangeId": str(feedback.message_id),
        "isPositive": feedback.is_positive,
        "reason": feedback.reason,
        "comment": feedback.comment,
        "createdAt": as_utc(feedback.created_at).isoformat(),
    }


@transactional
def get_admin_stats(session: Session, now: datetime | None = None) -> dict:
    """
    Aggregate usage figures for the admin dashboard.

    Returns
    -------
    dict
        - totalUsers: number of profiles
        - activeUsers: profiles seen within the last 7 days
        - totalConversations, totalQuestions
        - feedbackStats: {'positive', 'negative', 'reasons': {reason: count}}
          (reasons counted on negative feedback only)
        - userActivity: [{'date', 'questions'}] for the last 7 days, oldest first
    """
    now = now or utc_now()
    profile_dao = UserProfileDao()
    history_dao = QuestionHistoryDao()

    feedback_rows = MessageFeedbackDao().fetchFeedback(session)
    positive = sum(1 for row in feedback_rows if row.is_positive)
    reasons = Counter(
        row.reason for row in feedback_rows if not row.is_positive and row.reason
    )

    first_day = (now - timedelta(days=ACTIVITY_WINDOW_DAYS - 1)).date()
    since = datetime.combine(first_day, datetime.min.time(), tzinfo=now.tzinfo)
    per_day = Counter(
        as_utc(created_at).date() for created_at in history_dao.fetchExchangeDatesSince(session, since)
    )
    user_activity = [
        {"date": day.isoformat(), "questions": per_day.get(day, 0)}
        for day in (first_day + timedelta(days=offset) for offset in range(ACTIVITY_WINDOW_DAYS))
    ]

    return {
        "totalUsers": profile_dao.countProfiles(session),
        "activeUsers": profile_dao.countActiveProfiles(session, now, days=ACTIVITY_WINDOW_DAYS),
        "totalConversations": ConversationDao().countConversations(session),
        "totalQuestions": history_dao.countExchanges(session),
        "feedbackStats": {
            "positive": positive,
            "negative": len(feedback_rows) - positive,
            "reasons": {reason.value: reasons.get(reason.value, 0) for reason in FeedbackReason},
        },
        "userActivity": user_activity,
    }
