"""
The `crypt` package provides the cryptographic helpers behind the identity
provider: password hashing, password policy, one-time codes and session
nonces.

Contents
--------
- encrypt_decrypt
    Utility module exposing the `EncryptionDec` class:
        * `hash_password` — bcrypt hash of a plaintext password
        * `check_passwords` — verifies a plaintext password against a stored hash
        * `is_valid_password` — password policy (8+ chars, lower, upper, digit, special)
        * `generate_verification_code` — URL-safe one-time code for the
          confirmation link and password reset
        * `generate_session_nonce` — random nonce embedded in session tokens
"""
