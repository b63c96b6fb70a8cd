"""
Entities Package — SQLAlchemy 2.0 ORM Models (UUID + UTC)
=========================================================

The `entities` package defines the ORM models of the application, mapping
database tables to Python classes using SQLAlchemy 2.0-typed mappings.
These classes are consumed by DAOs (`daos` package).

Tech Stack & Conventions
------------------------
- PostgreSQL in production, any SQLAlchemy backend in tests (`Uuid` type)
- Timezone-aware timestamps written as UTC
- SQLAlchemy 2.0 style `Mapped[...]` + `mapped_column(...)`

Contents
--------
- User (`app_user`)
    Identity provider account: email, password hash, session nonce,
    confirmation / reset code.

- UserProfile (`user_profiles`)
    Usage profile: question counter, last question date, last seen.

- Conversation (`conversations`)
    Titled group of exchanges owned by one user.

- QuestionHistory (`question_history`)
    One question/answer round trip (an exchange).

- MessageFeedback (`message_feedback`)
    Like/dislike with optional reason and comment on one exchange.
"""

from coldbot.database.entities.user import User
from coldbot.database.entities.user_profile import UserProfile
from coldbot.database.entities.conversations import Conversation
from coldbot.database.entities.question_history import QuestionHistory
from coldbot.database.entities.message_feedback import MessageFeedback, FeedbackReason
