"""
Database Transaction Management
===============================

This module provides utilities for managing SQLAlchemy database sessions
using Python context variables and a decorator-based transaction wrapper.

A function decorated with ``@transactional`` runs inside one session: the
session is created on the outermost call, reused by nested decorated calls,
committed once when the outermost call returns and rolled back if anything
raises. DAOs therefore never commit on their own, which keeps multi-step
operations (for example a chat turn: conversation + exchange + profile)
atomic.
"""

from functools import wraps
import contextvars
import logging
from sqlalchemy.orm import sessionmaker
from coldbot.database.config.connection_engine import connection_engine

logger = logging.getLogger("uvicorn")

SessionLocal = sessionmaker(bind=connection_engine, expire_on_commit=False)
"""Session factory bound to the application engine."""

db_session_context = contextvars.ContextVar("db_session_context", default=None)
"""Context variable storing the active SQLAlchemy session."""


def transactional(func):
    """
    Decorator to wrap functions in a managed SQLAlchemy transaction.

    Ensures that:
    - If a session already exists in context, it is reused.
    - Otherwise, a new session is created, committed, and closed.
    - On errors, the session is rolled back and closed.

    Parameters
    ----------
    func : callable
        The function to wrap. It must accept a `session` keyword argument.

    Example
    -------
    >>> @transactional
    ... def create_user(user: User, session=None):
    ...     session.add(user)
    ...     return user
    """
    @wraps(func)
    def wrap_func(*args, **kwargs):
        session = db_session_context.get()
        if session:
            return func(*args, session=session, **kwargs)

        session = SessionLocal()
        token = db_session_context.set(session)

        try:
            result = func(*args, session=session, **kwargs)
            session.flush()
            session.commit()
        except Exception:
            logger.warning(f"Rolling back transaction opened by {func.__name__}")
            session.rollback()
            raise
        finally:
            session.close()
            db_session_context.reset(token)

        return result

    return wrap_func
