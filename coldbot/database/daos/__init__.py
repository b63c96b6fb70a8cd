"""
DAOs Package — Data Access Layer (SQLAlchemy 2.0)
=================================================

The `daos` package provides the Data Access Layer for the application.
It encapsulates all interactions with SQLAlchemy ORM entities, providing
clean CRUD APIs for the service layer while hiding direct query details.

Conventions
-----------
- SQLAlchemy 2.0 typed mappings (Mapped[...] / mapped_column)
- Session lifecycle (open/commit/rollback) is handled by `@transactional`
- DAOs flush but never commit
- DAOs log and re-raise so upper layers decide error policy

Contents
--------
- UserDao
    Identity records: creation with password hashing, lookup by id, email or
    one-time code, verification, session nonce and password updates.

- UserProfileDao
    Activity profile upserts and dashboard counters.

- ConversationDao
    Conversation creation, lookup, ``updated_at`` bumps and counting.

- QuestionHistoryDao
    Exchange inserts, per-conversation reads and the filtered history search.

- MessageFeedbackDao
    Feedback inserts and reads for the dashboard.
"""
