"""
Auth Package — Sessions • Admin allow-list • Captcha
====================================================

- session_provider
    `SessionProvider` resolves a session token to an `Identity`, checking the
    signature, expiry and the user's current session nonce, with a short
    in-process cache.

- admin
    Parsing of the `ADMIN_EMAILS` allow-list and the `is_admin` predicate.

- captcha
    reCAPTCHA verification for the sign-in and sign-up forms.
"""
