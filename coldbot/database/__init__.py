"""
ColdBot persistence layer: accounts, activity profiles, conversations, chat
exchanges and answer feedback.

Contents:
    - config:
        `Settings` loaded from the environment, and the SQLAlchemy engine
        built from `DB_URL` (PostgreSQL in production, SQLite in tests).

    - entities:
        ORM models for `app_user`, `user_profiles`, `conversations`,
        `question_history` and `message_feedback`.

    - daos:
        Per-entity Data Access Objects; they flush but never commit.

    - core:
        `@transactional` services used by the API router (auth flows, chat
        turns, feedback, dashboard stats) and the history query service.

    - helpers:
        The `@transactional` session manager and UTC time helpers.
"""
