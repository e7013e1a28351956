"""
SnapPDF Backend - User Directory Service
==========================================

What:  Finds or creates the `users` row for a verified Google identity.
Who:   POST /api/auth/google/login, after a verified identity exchange.
"""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from snappdf.database import translate_db_error
from snappdf.exceptions import DatabaseError
from snappdf.models.user import User

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_email(self, email: str) -> Optional[User]:
        try:
            result = await self.session.execute(select(User).where(User.email == email))
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error fetching user %s: %s", email, str(e))
            raise translate_db_error(e, "get_user")

    async def get_or_create(self, email: str, avatar: Optional[str]) -> User:
        """
        Return the user for `email`, creating it on first login.

        Creation is `INSERT ... ON CONFLICT (email) DO NOTHING` followed by a
        re-select, so two first logins racing for the same email both end up
        with the single row. An existing user's avatar is replaced when Google
        reports a different one. The email itself never changes.
        """
        user = await self.get_by_email(email)

        if user is None:
            await self._create_if_absent(email, avatar)
            user = await self.get_by_email(email)
            if user is None:
                logger.error("User %s missing right after insert", email)
                raise DatabaseError(context={"action": "create_user"})

        if not avatar or user.avatar == avatar:
            return user

        user.avatar = avatar
        logger.info("Updating avatar for %s", email)
        try:
            await self.session.flush()
        except SQLAlchemyError as e:
            logger.error("Database error on update_avatar for %s: %s", email, str(e))
            raise translate_db_error(e, "update_avatar")
        return user

    async def _create_if_absent(self, email: str, avatar: Optional[str]) -> bool:
        statement = (
            pg_insert(User)
            .values(email=email, avatar=avatar)
            .on_conflict_do_nothing(index_elements=[User.email])
            .returning(User.id)
        )
        try:
            result = await self.session.execute(statement)
            created = result.scalar_one_or_none() is not None
        except SQLAlchemyError as e:
            logger.error("Database error on create_user for %s: %s", email, str(e))
            raise translate_db_error(e, "create_user")

        if created:
            logger.info("Created user %s", email)
        else:
            logger.info("User %s was created by a concurrent login", email)
        return created
