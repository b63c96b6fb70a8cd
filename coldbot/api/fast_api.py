"""
FastAPI Router — Auth • Chat • History • Feedback • Admin
=========================================================

Purpose
-------
Defines the HTTP API under ``/api``:
- Authentication: sign-up, sign-in, sign-out, refresh, session, password
  reset, authorization-code callback, captcha config
- Chat: forwards a message to the prediction endpoint and records the turn
- History: filtered history, CSV export, conversation sidebar
- Feedback: like/dislike on an exchange
- Admin: admin check and dashboard statistics

Key Notes
---------
- Input validation via Pydantic models in `coldbot.api.models`.
- Session token: HttpOnly cookie `token` (JWT) or `Authorization: Bearer`.
- API routes are not gated by the request gate; each route resolves the
  caller with the dependencies in `coldbot.api.dependencies` (401 / 403).
- Shared services (settings, session provider, rate limiter, prediction
  client, admin allow-list) live on `request.app.state`.
"""

import logging
import smtplib
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from fastapi.responses import JSONResponse, RedirectResponse

from coldbot.api.dependencies import (
    caller_is_admin,
    get_current_identity,
    get_optional_identity,
    require_admin,
)
from coldbot.api.errors import AuthError, ExchangeNotFound, RateLimitExceeded, UpstreamUnavailable
from coldbot.api.models import (
    ChatRequest,
    FeedbackRequest,
    PasswordResetConfirm,
    PasswordResetRequest,
    UserCredentials,
)
from coldbot.api.utils import TOKEN_COOKIE, issue_session_token, parse_uuid
from coldbot.auth.captcha import verify_captcha
from coldbot.auth.session_provider import Identity
from coldbot.database.core.funcs import (
    authenticate_user,
    check_create_user_instance,
    confirm_password_reset,
    conversation_belongs_to,
    exchange_code_for_session,
    get_admin_stats,
    get_conversations_with_exchanges,
    record_chat_turn,
    record_feedback,
    request_password_reset,
    rotate_session,
)
from coldbot.database.core.history import (
    HistoryFilters,
    fetch_history,
    history_to_csv,
    parse_date_bound,
    resolve_scope,
    summarize_history,
)

logger = logging.getLogger("uvicorn")

router = APIRouter(prefix="/api")
"""Creates the FastAPI router in which we define its routes"""


def _client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def _enforce_rate_limit(request: Request, identity: str, route: str) -> None:
    try:
        request.app.state.rate_limiter.check_or_raise(identity, route)
    except RateLimitExceeded as e:
        logger.info(f"Rate limit exceeded on {route} for {identity}")
        raise HTTPException(
            status_code=429,
            detail="Too many requests",
            headers={"Retry-After": str(e.retry_after)},
        )


def _set_token_cookie(request: Request, response: Response, token: str) -> None:
    app_settings = request.app.state.settings
    response.set_cookie(
        key=TOKEN_COOKIE,
        value=token,
        httponly=True,
        secure=app_settings.COOKIE_SECURE,
        samesite="lax",
        max_age=app_settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )


async def _check_captcha(request: Request, token: Optional[str]) -> None:
    secret = request.app.state.settings.RECAPTCHA_SECRET_KEY
    if not await verify_captcha(token, secret, remote_ip=_client_ip(request)):
        raise HTTPException(status_code=400, detail="Captcha verification failed")


def _user_payload(identity: Identity) -> dict:
    return {"id": str(identity.id), "email": identity.email}


# Auth

@router.post('/auth/signup', status_code=201)
async def signup(data: UserCredentials, request: Request):
    """Create an account and email a confirmation link.

    Request body:
        UserCredentials {email, password, captchaToken?}

    Response:
        201: {'detail': str}
        400: invalid password, duplicate email or failed captcha
        429: too many attempts from this address
        503: confirmation email could not be sent (account not created)
    """
    _enforce_rate_limit(request, _client_ip(request), '/api/auth/signup')
    await _check_captcha(request, data.captcha_token)
    try:
        res = check_create_user_instance(email=data.email, password=data.password)
    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"Confirmation email delivery failed: {e}")
        raise HTTPException(status_code=503, detail="Unable to send confirmation email")
    if not res['res']:
        raise HTTPException(status_code=400, detail=res['detail'])
    return {'detail': res['detail']}


@router.post('/auth/signin')
async def signin(data: UserCredentials, request: Request, response: Response):
    """Authenticate with email and password and set the session cookie.

    Response:
        200: {'user': {id, email}, 'accessToken': str}
        401: wrong credentials
        403: email not confirmed yet
    """
    _enforce_rate_limit(request, _client_ip(request), '/api/auth/signin')
    await _check_captcha(request, data.captcha_token)
    try:
        details = authenticate_user(email=data.email, password=data.password)
    except AuthError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)
    access_token = issue_session_token(details, app_settings=request.app.state.settings)
    _set_token_cookie(request, response, access_token)
    return {
        'user': {'id': str(details['id']), 'email': details['email']},
        'accessToken': access_token,
    }


@router.post('/auth/signout')
async def signout(request: Request, response: Response, identity: Optional[Identity] = Depends(get_optional_identity)):
    """Invalidate every token of the caller and clear the cookie."""
    if identity is not None:
        rotate_session(user_id=identity.id)
        request.app.state.session_provider.invalidate(identity.id)
    response.delete_cookie(TOKEN_COOKIE)
    return {'detail': 'Signed out'}


@router.post('/auth/refresh')
async def refresh(request: Request, response: Response, identity: Identity = Depends(get_current_identity)):
    """Issue a new token for the current session."""
    access_token = request.app.state.session_provider.refresh(identity)
    _set_token_cookie(request, response, access_token)
    return {'accessToken': access_token}


@router.get('/auth/session')
async def current_session(request: Request, identity: Identity = Depends(get_current_identity)):
    return {
        'user': _user_payload(identity),
        'expiresAt': identity.expires_at.isoformat(),
        'isAdmin': caller_is_admin(request, identity),
    }


@router.get('/auth/config')
async def auth_config(request: Request):
    """Public configuration needed by the auth forms."""
    return {'recaptchaSiteKey': request.app.state.settings.RECAPTCHA_SITE_KEY or None}


@router.post('/auth/reset-password')
async def request_reset(data: PasswordResetRequest, request: Request):
    """Email a reset link. Always answers 200 so accounts cannot be probed."""
    _enforce_rate_limit(request, _client_ip(request), '/api/auth/reset-password')
    try:
        request_password_reset(email=data.email)
    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"Password reset email delivery failed: {e}")
    return {'detail': 'If an account exists for this email, a reset link has been sent'}


@router.post('/auth/reset-password/confirm')
async def confirm_reset(data: PasswordResetConfirm, request: Request):
    try:
        user_id = confirm_password_reset(code=data.code, password=data.password)
    except AuthError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)
    request.app.state.session_provider.invalidate(user_id)
    return {'detail': 'Password updated'}


@router.get('/auth/callback')
async def auth_callback(request: Request, code: Optional[str] = None):
    """Exchange an authorization code for a session, then go home.

    Any failure redirects to `/login?error=callback_failed`.
    """
    try:
        details = exchange_code_for_session(code=code) if code else None
    except Exception:
        logger.exception("Authorization code exchange failed")
        details = None
    if details is None:
        return RedirectResponse('/login?error=callback_failed')
    response = RedirectResponse('/')
    _set_token_cookie(
        request,
        response,
        issue_session_token(details, app_settings=request.app.state.settings),
    )
    return response


@router.get('/check-admin')
async def check_admin(request: Request, identity: Optional[Identity] = Depends(get_optional_identity)):
    """Tell the client whether the caller is an admin.

    Response:
        200: {'isAdmin': bool, 'email': str}
        401: {'isAdmin': False}
    """
    if identity is None:
        return JSONResponse(status_code=401, content={'detail': 'Unauthorized', 'isAdmin': False})
    return {'isAdmin': caller_is_admin(request, identity), 'email': identity.email}


# Chat

@router.post('/chatbot')
async def chatbot(data: ChatRequest, request: Request, identity: Identity = Depends(get_current_identity)):
    """Answer a chat message.

    Request body:
        ChatRequest {message, conversationId?}

    Behavior:
        - 401 without a session, 400 for a blank message.
        - 429 with `Retry-After` when the caller exceeded the rate limit; no
          other work is done.
        - 404 when `conversationId` is not a conversation of the caller.
        - Forwards the message to the prediction endpoint; failures answer
          500 "Service unavailable".
        - Records the turn; a storage failure is logged and the answer is
          still returned.

    Response:
        200: {'text': str, 'conversationId': str | None, 'exchangeId': str | None}
    """
    message = data.message.strip()
    if not message:
        raise HTTPException(status_code=400, detail='Message must not be empty')

    _enforce_rate_limit(request, str(identity.id), '/api/chatbot')

    conversation_id = None
    if data.conversation_id:
        conversation_id = parse_uuid(data.conversation_id)
        if conversation_id is None or not conversation_belongs_to(
            conversation_id=conversation_id, user_id=identity.id
        ):
            raise HTTPException(status_code=404, detail='Conversation not found')

    try:
        answer = await request.app.state.prediction_client.predict(message)
    except UpstreamUnavailable:
        raise HTTPException(status_code=500, detail='Service unavailable')

    exchange_id = None
    try:
        turn = record_chat_turn(
            user_id=identity.id,
            email=identity.email,
            question=message,
            answer=answer,
            conversation_id=conversation_id,
        )
        conversation_id = turn['conversationId']
        exchange_id = turn['exchangeId']
    except Exception:
        logger.exception(f"Failed to record chat turn for user {identity.id}")

    return {
        'text': answer,
        'conversationId': str(conversation_id) if conversation_id else None,
        'exchangeId': str(exchange_id) if exchange_id else None,
    }


# History

def history_filters(
    request: Request,
    identity: Identity = Depends(get_current_identity),
    start: Optional[str] = Query(None, description="Inclusive lower bound (ISO date or datetime)."),
    end: Optional[str] = Query(None, description="Inclusive upper bound; a bare date means end of day."),
    q: Optional[str] = Query(None, description="Case-insensitive text searched in question and answer."),
    user_id: Optional[str] = Query(None, alias="userId"),
    all_users: bool = Query(False, alias="allUsers"),
) -> HistoryFilters:
    """Build the history filters from query parameters, scoped to the caller."""
    try:
        filters = HistoryFilters(
            start=parse_date_bound(start),
            end=parse_date_bound(end, end_of_day=True),
            search=q,
            all_users=all_users,
        )
    except ValueError:
        raise HTTPException(status_code=400, detail='Dates must be ISO 8601')
    if user_id:
        filters.user_id = parse_uuid(user_id)
        if filters.user_id is None:
            raise HTTPException(status_code=400, detail='userId must be a UUID')
    return resolve_scope(filters, identity.id, caller_is_admin(request, identity))


@router.get('/history')
async def history(filters: HistoryFilters = Depends(history_filters)):
    """Filtered history rows, newest first, with aggregates."""
    rows = fetch_history(filters=filters)
    return {'rows': rows, 'stats': summarize_history(rows)}


@router.get('/history/export')
async def history_export(filters: HistoryFilters = Depends(history_filters)):
    """Filtered history as a CSV attachment."""
    rows = fetch_history(filters=filters)
    stamp = datetime.now(timezone.utc).strftime('%Y-%m-%dT%H-%M-%SZ')
    return Response(
        content=history_to_csv(rows),
        media_type='text/csv; charset=utf-8',
        headers={'Content-Disposition': f'attachment; filename="coldbot-history-{stamp}.csv"'},
    )


@router.get('/conversations')
async def conversations(q: Optional[str] = None, identity: Identity = Depends(get_current_identity)):
    """The caller's conversations with their exchanges, for the sidebar."""
    return get_conversations_with_exchanges(user_id=identity.id, search=q)


# Feedback

@router.post('/feedback', status_code=201)
async def feedback(data: FeedbackRequest, identity: Identity = Depends(get_current_identity)):
    """Record a like/dislike on an exchange.

    Response:
        201: the stored feedback
        400: `exchangeId` is not a UUID
        404: no such exchange
        422: unknown reason
    """
    exchange_id = parse_uuid(data.exchange_id)
    if exchange_id is None:
        raise HTTPException(status_code=400, detail='exchangeId must be a UUID')
    try:
        return record_feedback(
            exchange_id=exchange_id,
            user_id=identity.id,
            is_positive=data.is_positive,
            reason=data.reason,
            comment=data.comment,
        )
    except ExchangeNotFound:
        raise HTTPException(status_code=404, detail='Exchange not found')


# Admin

@router.get('/admin/stats')
async def admin_stats(identity: Identity = Depends(require_admin)):
    """Dashboard statistics (admin only)."""
    return get_admin_stats()
