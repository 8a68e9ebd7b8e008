"""User profile service: create, get, list.

All DB operations use the injected AsyncSession. Transactions are managed
by the caller (router layer) via `async with db.begin()`.
"""

import uuid

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.fc_common.errors import EmailExistsError, UserNotFoundError
from src.fc_user.db_models import UserModel
from src.fc_user.password import hash_password


class UserService:
    """Stateless service, instantiate once, reuse across requests."""

    async def create_user(
        self,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
        db: AsyncSession,
    ) -> UserModel:
        # DB UNIQUE constraint is the final guard
        result = await db.execute(select(UserModel).where(UserModel.email == email))
        if result.scalar_one_or_none() is not None:
            raise EmailExistsError()

        user = UserModel(
            email=email,
            password_hash=hash_password(password),
            first_name=first_name,
            last_name=last_name,
        )
        db.add(user)
        try:
            await db.flush()  # server defaults (id, created_at) without committing
        except IntegrityError as exc:
            # Lost a race with a concurrent create for the same email
            raise EmailExistsError() from exc
        await db.refresh(user)
        return user

    async def get_user(self, user_id: uuid.UUID, db: AsyncSession) -> UserModel:
        user = await db.get(UserModel, user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return user

    async def list_users(self, limit: int, offset: int, db: AsyncSession) -> list[UserModel]:
        result = await db.execute(
            select(UserModel).order_by(UserModel.created_at, UserModel.id).limit(limit).offset(offset)
        )
        return list(result.scalars().all())
