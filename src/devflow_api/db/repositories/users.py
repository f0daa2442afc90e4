from __future__ import annotations

from sqlalchemy import exists, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from devflow_api.db.models import UserAccount


class UserRepository:
    """Accounts that author questions and sign in.

    Emails are stored lower-cased and compared case-insensitively.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    async def create(
        self,
        *,
        email: str,
        password_hash: str,
        full_name: str | None,
        image: str | None = None,
    ) -> UserAccount:
        entity = UserAccount(
            email=email.strip().lower(),
            password_hash=password_hash,
            full_name=full_name,
            image=image,
        )
        self._session.add(entity)
        await self._session.flush()
        return entity

    async def email_taken(self, email: str) -> bool:
        stmt = select(exists().where(func.lower(UserAccount.email) == email.strip().lower()))
        return bool(await self._session.scalar(stmt))

    async def get_by_email(self, email: str) -> UserAccount | None:
        stmt = select(UserAccount).where(func.lower(UserAccount.email) == email.strip().lower())
        return await self._session.scalar(stmt)

    async def get_active(self, user_id: str) -> UserAccount | None:
        """Return the account if it exists and has not been disabled."""
        stmt = select(UserAccount).where(
            UserAccount.id == user_id,
            UserAccount.is_active.is_(True),
        )
        return await self._session.scalar(stmt)

    async def update_password_hash(self, entity: UserAccount, password_hash: str) -> None:
        entity.password_hash = password_hash
        await self._session.flush()


__all__ = ["UserRepository"]
