"""
Connection Engine (SQLAlchemy)

Purpose
-------
Centralizes database initialization for the application:
- Builds the SQLAlchemy connection URL from environment-backed settings.
- Creates the Engine (connection pool + SQL execution entry point).
- Defines shared MetaData for table and schema objects.
- Exposes a Declarative Base class for ORM models.

Notes
-----
- `DB_URL` wins when present (handy for SQLite in tests); otherwise the URL is
  assembled with `URL.create(...)` from the DB_* settings.
- All ORM models must inherit from `declarativeBase`.
"""


from sqlalchemy import create_engine
from sqlalchemy.engine import URL, make_url
from sqlalchemy.orm import declarative_base
from sqlalchemy.schema import MetaData
from coldbot.database.config.config import settings, Settings


def build_connection_url(app_settings: Settings = settings) -> URL:
    """
    Return the SQLAlchemy URL for the configured store.

    Parameters
    ----------
    app_settings : Settings
        Settings to read from (defaults to the process-wide singleton).
    """
    if app_settings.DB_URL:
        return make_url(app_settings.DB_URL)
    return URL.create(
        drivername=app_settings.DB_DRIVER_NAME,
        username=app_settings.DB_USERNAME or None,
        password=app_settings.DB_PASSWORD or None,
        host=app_settings.DB_HOST,
        database=app_settings.DB_DATABASE_NAME,
    )


connection_url = build_connection_url()
"""The SQLAlchemy connection URL derived from Settings."""

connection_engine = create_engine(connection_url, pool_pre_ping=True)
"""Engine object: Core interface to the database.
Responsible for managing connections, executing SQL, and pooling.
"""

metadata = MetaData()
"""Shared schema metadata for every table."""

declarativeBase = declarative_base(metadata=metadata)
"""Declarative Base: Root class for ORM models."""
