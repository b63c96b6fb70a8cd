"""
Configuration — Pydantic v2 Settings (env / .env)
=================================================

Purpose
-------
Centralized, strongly-typed application configuration using:
- Pydantic v2 `BaseSettings` for environment-driven values
- `pydantic-settings` v2 for `.env` loading and model config

Load Order & Behavior
---------------------
- Values are read from the environment; if not present, `.env` is used.
- Missing required fields raise a validation error at import time.
- `extra="ignore"`: unknown env vars are ignored (not an error).

Usage
-----
from coldbot.database.config.config import settings

# Example
prediction_url = settings.PREDICTION_URL
ceiling = settings.RATE_LIMIT_REQUESTS

Security
--------
- Never commit secrets or the `.env` file to source control.
- Prefer runtime environment variables in production (K8s/Secrets Manager/etc.).
"""


from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    """
    Application configuration settings loaded from environment variables
    or a `.env` file. Provides strongly typed access to environment values.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Relational store
    DB_URL: str = Field("", description="Full SQLAlchemy URL. When set, the DB_* parts below are ignored.")
    DB_DRIVER_NAME: str = Field("postgresql+psycopg2", description="Database driver (e.g., `postgresql+psycopg2`, `sqlite`).")
    DB_USERNAME: str = Field("", description="Database username credential.")
    DB_PASSWORD: str = Field("", description="Database password credential.")
    DB_HOST: str = Field("localhost", description="Hostname or IP address of the database server.")
    DB_DATABASE_NAME: str = Field("coldbot", description="Name of the application’s database.")
    CREATE_TABLES: bool = Field(False, description="Create missing tables on startup (development convenience).")

    # Sessions
    SECRET_KEY: str = Field(..., description="Secret key for signing session tokens.")
    ALGORITHM: str = Field("HS256", description="JWT signing algorithm.")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(60, description="Duration (in minutes) before session tokens expire.")
    SESSION_CACHE_SECONDS: int = Field(30, description="How long a validated session is reused before it is checked again.")
    COOKIE_SECURE: bool = Field(False, description="Mark the session cookie as Secure (True in production).")

    # Authorization
    ADMIN_EMAILS: str = Field("", description="Comma-separated admin allow-list.")

    # Prediction endpoint
    PREDICTION_URL: str = Field(..., description="URL of the external prediction endpoint.")
    PREDICTION_API_KEY: str = Field("", description="Bearer credential for the prediction endpoint.")
    PREDICTION_USERNAME: str = Field("", description="Basic-auth user for the prediction endpoint.")
    PREDICTION_PASSWORD: str = Field("", description="Basic-auth password for the prediction endpoint.")
    PREDICTION_TIMEOUT_SECONDS: float = Field(30.0, description="Deadline for one prediction call.")

    # Rate limiting
    RATE_LIMIT_REQUESTS: int = Field(10, description="Requests allowed per identity and route inside one window.")
    RATE_LIMIT_INTERVAL: int = Field(60, description="Rate limit window length in seconds.")

    # Captcha
    RECAPTCHA_SITE_KEY: str = Field("", description="Public reCAPTCHA site key handed to the frontend.")
    RECAPTCHA_SECRET_KEY: str = Field("", description="reCAPTCHA secret. Verification is skipped when empty.")

    # Mail
    SENDER_EMAIL: str = Field("", description="Address used for confirmation and reset emails.")
    APP_PASSWORD: str = Field("", description="SMTP password for SENDER_EMAIL.")
    SMTP_HOST: str = Field("smtp.gmail.com", description="SMTP server host.")
    SMTP_PORT: int = Field(587, description="SMTP server port (STARTTLS).")
    AUTH_CODE_EXPIRE_MINUTES: int = Field(60, description="Lifetime of confirmation and reset codes.")

    # Web
    SITE_URL: str = Field("http://localhost:8000", description="Public base URL used in emailed links.")
    FRONTEND_URL: str = Field("http://localhost:5173", description="Allowed CORS origin.")
    FRONTEND_DIST: str = Field("frontend/dist", description="Directory holding the built frontend.")
    LOG_LEVEL: str = Field("INFO", description="Level for the application logger.")

# Singleton instance of Settings, ready to be imported across the app
settings = Settings()
"""Defines a Settings object that contains the contents of the .env file"""
