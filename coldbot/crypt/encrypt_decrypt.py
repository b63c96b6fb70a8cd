import bcrypt
import re
import secrets

class EncryptionDec:
    """
    Utility class for password hashing, validation, and one-time secrets.

    Methods
    -------
    hash_password(text: str) -> str
        Hashes a plaintext password using bcrypt with a generated salt.
    check_passwords(plain_text: str, passwd: str) -> bool
        Verifies a plaintext password against a hashed password.
    is_valid_password(password: str) -> bool
        Validates that a password meets security requirements.
    generate_verification_code(nbytes: int = 32) -> str
        Generates a URL-safe one-time code.
    generate_session_nonce() -> str
        Generates a fresh session nonce.
    """

    def hash_password(self, text: str) -> str:
        """
        Hash a plaintext password using bcrypt.

        Parameters
        ----------
        text : str
            The plaintext password.

        Returns
        -------
        str
            The bcrypt-hashed password (UTF-8 decoded).
        """
        salt = bcrypt.gensalt()
        hashed = bcrypt.hashpw(text.encode("utf-8"), salt)
        return hashed.decode("utf-8")

    def check_passwords(self, plain_text: str, passwd: str) -> bool:
        """
        Verify if a plaintext password matches a hashed password.

        A malformed stored hash never matches.
        """
        try:
            return bcrypt.checkpw(plain_text.encode("utf-8"), passwd.encode("utf-8"))
        except ValueError:
            return False

    def is_valid_password(self, password: str) -> bool:
        """
        Validate that a password meets security complexity rules.

        Notes
        -----
        - Minimum length: 8 characters
        - Must contain at least:
          - one lowercase letter
          - one uppercase letter
          - one digit
          - one special character (!@#$%^&*(),.?":{}|<>)
        """
        if len(password) < 8:
            return False

        has_lower = re.search(r"[a-z]", password)
        has_upper = re.search(r"[A-Z]", password)
        has_digit = re.search(r"\d", password)
        has_special = re.search(r"[!@#$%^&*(),.?\":{}|<>]", password)

        return all([has_lower, has_upper, has_digit, has_special])

    def generate_verification_code(self, nbytes: int = 32) -> str:
        """
        Generate a URL-safe one-time code, sent by email as a link parameter.

        Example
        -------
        >>> len(EncryptionDec().generate_verification_code()) >= 32
        True
        """
        return secrets.token_urlsafe(nbytes)

    def generate_session_nonce(self) -> str:
        return secrets.token_hex(16)
