"""
Repository for users (webhook owners).
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hookrelay.models.db.user import UserDB

logger = logging.getLogger(__name__)


class UserRepository:
    """
    Async repository for the users table.

    Attributes:
        db: SQLAlchemy async session
    """

    def __init__(self, db: AsyncSession):
        self._db = db

    async def get_by_id(self, user_id: str) -> UserDB | None:
        return await self._db.get(UserDB, user_id)

    async def get_by_email(self, email: str) -> UserDB | None:
        stmt = select(UserDB).where(UserDB.email == email)
        result = await self._db.execute(stmt)
        return result.scalar_one_or_none()

    async def register(self, user_id: str, email: str) -> UserDB | None:
        """
        Insert a brand-new user; existing rows are never touched.

        Returns:
            The new user, or None when the email already belongs to someone
        """
        if await self.get_by_email(email) is not None:
            return None

        user = UserDB(id=user_id, email=email)
        self._db.add(user)
        await self._db.flush()
        logger.info(f"User registered: {user_id}")
        return user

    async def upsert_user(self, user_id: str, email: str | None = None) -> UserDB:
        """
        Create a user or bring an existing one up to date.

        Only for identities vouched for by a signed token; the email
        reassignment below would hand an account to anyone able to name it.

        - known id: email is updated when one is given
        - new id, known email: the email's row is reassigned to the new id
        - otherwise: a new row is inserted

        Args:
            user_id: Token subject
            email: Email from the login event or token claims (optional)

        Returns:
            UserDB: The stored user
        """
        user = await self.get_by_id(user_id)
        if user is not None:
            if email and user.email != email:
                user.email = email
                await self._db.flush()
            return user

        if email:
            existing = await self.get_by_email(email)
            if existing is not None:
                previous_id = existing.id
                existing.id = user_id
                await self._db.flush()
                logger.info(f"Reassigned user {previous_id} to id {user_id} by email")
                return existing

        user = UserDB(id=user_id, email=email)
        self._db.add(user)
        await self._db.flush()
        logger.info(f"User created: {user_id}")
        return user
