"""
UserProfile DAO

Upserts and counts the per-user activity profile. The profile row is created in
the ORM; the question counter of an existing row is incremented in SQL
(`questions_used = questions_used + 1`) so concurrent turns do not lose
updates.
"""

import logging
from datetime import datetime, timedelta
from uuid import UUID
from sqlalchemy import func
from sqlalchemy.orm import Session
from coldbot.database.entities.user_profile import UserProfile

logger = logging.getLogger("uvicorn")

class UserProfileDao:
    """
    Data Access Object (DAO) for `UserProfile` rows.
    """

    def upsertProfileActivity(
        self,
        session: Session,
        user_id: UUID,
        email: str,
        timestamp: datetime,
        asked_question: bool = False,
    ) -> UserProfile:
        """
        Create the profile if missing and record activity on it.

        Parameters
        ----------
        session : Session
            Active SQLAlchemy session.
        user_id : UUID
            Owner of the profile.
        email : str
            Email copied onto a new profile.
        timestamp : datetime
            Time of the activity; always written to ``last_seen``.
        asked_question : bool
            When True, ``questions_used`` is incremented and
            ``last_question_date`` set.

        Returns
        -------
        UserProfile
            The created or updated profile.
        """
        try:
            profile = session.get(UserProfile, user_id)
            if profile is None:
                profile = UserProfile(user_id=user_id, email=email, created_at=timestamp)
                profile.questions_used = 1 if asked_question else 0
                session.add(profile)
            elif asked_question:
                profile.questions_used = UserProfile.questions_used + 1
            if asked_question:
                profile.last_question_date = timestamp
            profile.last_seen = timestamp
            profile.updated_at = timestamp
            session.flush()
            return profile
        except Exception as e:
            logger.error(f"Error in UserProfileDao.upsertProfileActivity. Error Message: {e}")
            raise e

    def countProfiles(self, session: Session) -> int:
        try:
            return session.query(func.count(UserProfile.id)).scalar() or 0
        except Exception as e:
            logger.error(f"Error in UserProfileDao.countProfiles. Error Message: {e}")
            raise e

    def countActiveProfiles(self, session: Session, now: datetime, days: int = 7) -> int:
        """Number of profiles seen within the last ``days`` days."""
        try:
            since = now - timedelta(days=days)
            return (
                session.query(func.count(UserProfile.id))
                .filter(UserProfile.last_seen >= since)
                .scalar()
                or 0
            )
        except Exception as e:
            logger.error(f"Error in UserProfileDao.countActiveProfiles. Error Message: {e}")
            raise e
