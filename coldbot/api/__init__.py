"""
API Package — FastAPI Router • Gate • Models • JWT Utils • Upstream Client
==========================================================================

Mission
-------
This package defines the HTTP interface of the service: the request gate in
front of page routes, the `/api` router, request validation, session token
helpers, the rate limiter and the prediction endpoint client.

Contents
--------
- fast_api
    FastAPI router with endpoints for:
      • Auth: sign-up, sign-in, sign-out, refresh, session, password reset,
        authorization-code callback, captcha config
      • Chat (/chatbot): rate-limited call to the prediction endpoint, turn
        recorded as conversation + exchange + profile update
      • History: filtered rows with aggregates, CSV export, conversations
      • Feedback: like/dislike with reason and comment on an exchange
      • Admin: /check-admin and dashboard statistics

- gate
    `RequestGateMiddleware` and the pure `evaluate` decision function
    (ignored paths, public routes, login redirect, admin prefix, security
    headers).

- dependencies
    FastAPI dependencies resolving the caller (401 / 403).

- models
    Pydantic request models (camelCase JSON aliases).

- utils
    JWT helpers:
      • create_access_token(payload) — issues signed JWTs with exp
      • verify_token(token) — validates JWTs and returns their claims
      • extract_token(request) — cookie `token` or Bearer header

- rate_limit
    In-memory fixed-window limiter keyed by (identity, route).

- prediction_client
    httpx client for the external prediction endpoint.

- errors
    Domain exceptions translated to HTTP statuses by the router.

Operational Notes
-----------------
- Security: Auth via HttpOnly `token` cookie (JWT) or Bearer header. Never log secrets.
- Upstream failures answer a generic 500 "Service unavailable"; details stay in the logs.
"""
