"""
User DAO

Purpose
-------
Thin data-access layer for the `User` ORM entity. Provides:
- Creation with password hashing
- Lookup by id, by email or by pending one-time code
- Session nonce rotation
- Verification status, one-time code and password updates

Design
------
- The DAO expects an active SQLAlchemy `Session` supplied by the caller
  (normally through `@transactional`); it never commits.
- Emails are compared lower-cased.
- Passwords are hashed using `EncryptionDec.hash_password(...)` before insert.

Usage
-----
.. code-block:: python

    from coldbot.database.helpers.transactionManagement import transactional, db_session_context
    from coldbot.database.entities.user import User
    from coldbot.database.daos.user_dao import UserDao

    @transactional
    def register():
        session = db_session_context.get()
        dao = UserDao()
        dao.createUser(session, User(email="agent@coldbot.fr", password="Spear#123", session_id="nonce"))
        return dao.fetchUserByEmail(session, "agent@coldbot.fr")

Error Handling
--------------
- Each method catches generic `Exception`, logs a message, and re-raises.
- Methods using `.one()` can raise `NoResultFound` or `MultipleResultsFound`.
"""

import logging
import uuid
from datetime import datetime
from sqlalchemy.orm import Session
from coldbot.database.entities.user import User
from coldbot.crypt.encrypt_decrypt import EncryptionDec

logger = logging.getLogger("uvicorn")

class UserDao:
    """
    Data Access Object (DAO) for managing User entities.
    Provides methods for creating users, retrieving user data,
    and updating authentication/verification fields.
    """

    def createUser(self, session: Session, user_data: User) -> bool:
        """
        Create a new user in the database with a hashed password.

        Parameters
        ----------
        session : Session
            Active SQLAlchemy session.
        user_data : User
            User entity object containing the plain-text password.

        Returns
        -------
        bool
            True if the user was staged for insertion.

        Raises
        ------
        Exception
            If hashing or insertion fails.
        """
        try:
            enc = EncryptionDec()
            user_data.password = enc.hash_password(text=user_data.password)
            session.add(user_data)
            session.flush()
            return True
        except Exception as e:
            logger.error(f"Error in UserDao.createUser. Error Message: {e}")
            raise e

    def fetchUserById(self, session: Session, user_id: uuid.UUID) -> User | None:
        """
        Fetch a user by primary key.

        Returns
        -------
        User | None
            The matching user, or None.
        """
        try:
            return session.get(User, user_id)
        except Exception as e:
            logger.error(f"Error in UserDao.fetchUserById. Error Message: {e}")
            raise e

    def fetchUserByEmail(self, session: Session, email: str):
        """
        Fetch a user by email.

        Parameters
        ----------
        session : Session
            Active SQLAlchemy session.
        email : str
            Email address of the user (any case).

        Returns
        -------
        list[User]
            A list containing the matching user (at most one due to limit(1)).

        Raises
        ------
        Exception
            If query fails.
        """
        try:
            users = (
                session.query(User)
                .filter(User.email == email.strip().lower())
                .limit(1)
                .all()
            )
            return users
        except Exception as e:
            logger.error(f"Error in UserDao.fetchUserByEmail. Error Message: {e}")
            raise e

    def fetchUserByCode(self, session: Session, code: str):
        """
        Fetch the user holding a pending one-time code.

        Returns
        -------
        list[User]
            At most one user.
        """
        try:
            return (
                session.query(User)
                .filter(User.verification_code == code)
                .limit(1)
                .all()
            )
        except Exception as e:
            logger.error(f"Error in UserDao.fetchUserByCode. Error Message: {e}")
            raise e

    def updateVerified(self, session: Session, user_id: uuid.UUID):
        """
        Mark a user as verified and clear the pending code.

        Raises
        ------
        Exception
            If user cannot be found or update fails.
        """
        try:
            user = session.query(User).filter(User.id == user_id).one()
            user.verified = True
            user.verification_code = None
            user.code_created_on = None
        except Exception as e:
            logger.error(f"Error in UserDao.updateVerified. Error Message: {e}")
            raise e

    def updateVerCode(self, session: Session, user_id: uuid.UUID, code: str | None, code_created_on: datetime | None):
        """
        Update a user's one-time code and creation timestamp.

        Parameters
        ----------
        session : Session
            Active SQLAlchemy session.
        user_id : uuid.UUID
            Unique identifier of the user.
        code : str | None
            The new code, or None to clear it.
        code_created_on : datetime | None
            Timestamp when the code was generated.

        Raises
        ------
        Exception
            If update fails.
        """
        try:
            user = session.query(User).filter(User.id == user_id).one()
            user.verification_code = code
            user.code_created_on = code_created_on
        except Exception as e:
            logger.error(f"Error in UserDao.updateVerCode. Error Message: {e}")
            raise e

    def updateSessionId(self, session: Session, user_id: uuid.UUID, session_id: str):
        """
        Replace a user's session nonce. Tokens carrying the old nonce stop
        resolving to a session.

        Raises
        ------
        Exception
            If update fails.
        """
        try:
            user = session.query(User).filter(User.id == user_id).one()
            user.session_id = session_id
        except Exception as e:
            logger.error(f"Error in UserDao.updateSessionId. Error Message: {e}")
            raise e

    def updatePassword(self, session: Session, user_id: uuid.UUID, password: str):
        """Hash and store a new password for the user."""
        try:
            user = session.query(User).filter(User.id == user_id).one()
            user.password = EncryptionDec().hash_password(text=password)
        except Exception as e:
            logger.error(f"Error in UserDao.updatePassword. Error Message: {e}")
            raise e
