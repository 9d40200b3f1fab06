"""
Credential store: async persistence of user records.

The store is the only shared mutable state in the service, so it owns the two
guarantees the credential flows rely on:

- email uniqueness is a database UNIQUE constraint, not a lookup-then-insert;
- refresh rotation is a conditional UPDATE keyed by (user id, expected token),
  so at most one concurrent caller can replace a given stored token.

Every method runs in its own short transaction. SQLAlchemy errors are wrapped
into StorePersistenceError; nothing is retried.
"""

import logging
from typing import Protocol, runtime_checkable

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from authcore.core.exceptions import StorePersistenceError, UserAlreadyExistsError
from authcore.models import User

logger = logging.getLogger(__name__)


@runtime_checkable
class CredentialStore(Protocol):
    """Contract the credential flows depend on."""

    async def get_by_email(self, email: str) -> User | None:
        ...

    async def get_by_refresh_token(self, refresh_token: str) -> User | None:
        """Return the user whose currently stored refresh token equals refresh_token."""
        ...

    async def insert(self, user: User) -> User:
        """Persist a new user. Raises UserAlreadyExistsError on a duplicate email."""
        ...

    async def set_refresh_token(self, user_id: int, refresh_token: str) -> None:
        """Unconditionally replace the user's stored refresh token."""
        ...

    async def rotate_refresh_token(self, user_id: int, expected: str, replacement: str) -> bool:
        """
        Replace the stored token only if it still equals expected.
        Returns False when another caller rotated it first.
        """
        ...


class SqlCredentialStore:
    """CredentialStore on a SQLAlchemy async session factory."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get_by_email(self, email: str) -> User | None:
        return await self._first(select(User).where(User.email == email))

    async def get_by_refresh_token(self, refresh_token: str) -> User | None:
        return await self._first(select(User).where(User.refresh_token == refresh_token))

    async def insert(self, user: User) -> User:
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    session.add(user)
                    await session.flush()
        except IntegrityError as e:
            # Lost a race with a concurrent signup for the same email.
            logger.info("Insert rejected by unique constraint", extra={"uid": user.uid})
            raise UserAlreadyExistsError() from e
        except SQLAlchemyError as e:
            logger.error("User insert failed: %s", e)
            raise StorePersistenceError() from e
        return user

    async def set_refresh_token(self, user_id: int, refresh_token: str) -> None:
        stmt = (
            update(User)
            .where(User.id == user_id)
            .values(refresh_token=refresh_token)
            .execution_options(synchronize_session=False)
        )
        await self._execute_update(stmt)

    async def rotate_refresh_token(self, user_id: int, expected: str, replacement: str) -> bool:
        stmt = (
            update(User)
            .where(User.id == user_id, User.refresh_token == expected)
            .values(refresh_token=replacement)
            .execution_options(synchronize_session=False)
        )
        return await self._execute_update(stmt) == 1

    async def _first(self, stmt) -> User | None:
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                return result.scalars().first()
        except SQLAlchemyError as e:
            logger.error("User lookup failed: %s", e)
            raise StorePersistenceError("User lookup failed") from e

    async def _execute_update(self, stmt) -> int:
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    result = await session.execute(stmt)
                    return result.rowcount
        except SQLAlchemyError as e:
            logger.error("User update failed: %s", e)
            raise StorePersistenceError("User update failed") from e
