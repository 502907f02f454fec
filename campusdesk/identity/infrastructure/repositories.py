"""
Identity Infrastructure Repositories
====================================

SQLAlchemy implementation of the user repository.
"""

from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from campusdesk.config import UserRole
from campusdesk.identity.application import IUserRepository
from campusdesk.identity.domain import User
from campusdesk.identity.infrastructure.models import UserModel


def _to_entity(model: UserModel) -> User:
    return User(
        id=model.id,
        name=model.name,
        email=model.email,
        role=UserRole(model.role),
        password_hash=model.password_hash,
        assigned_category_id=model.assigned_category_id,
        google_id=model.google_id,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


class SQLAlchemyUserRepository(IUserRepository):
    """SQLAlchemy implementation for users."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def _get_model(self, user_id: UUID) -> Optional[UserModel]:
        return await self._session.get(UserModel, user_id)

    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        model = await self._get_model(user_id)
        return _to_entity(model) if model else None

    async def get_by_email(self, email: str) -> Optional[User]:
        stmt = select(UserModel).where(UserModel.email == email.strip().lower())
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return _to_entity(model) if model else None

    async def get_by_google_id(self, google_id: str) -> Optional[User]:
        stmt = select(UserModel).where(UserModel.google_id == google_id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return _to_entity(model) if model else None

    async def add(self, user: User) -> User:
        model = UserModel(
            id=user.id,
            name=user.name,
            email=user.email,
            password_hash=user.password_hash,
            role=user.role.value,
            assigned_category_id=user.assigned_category_id,
            google_id=user.google_id,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )
        self._session.add(model)
        await self._session.flush()
        return _to_entity(model)

    async def update(self, user: User) -> User:
        model = await self._get_model(user.id)
        if model is None:
            return await self.add(user)

        model.name = user.name
        model.email = user.email
        model.password_hash = user.password_hash
        model.role = user.role.value
        model.assigned_category_id = user.assigned_category_id
        model.google_id = user.google_id
        model.updated_at = user.updated_at

        await self._session.flush()
        return _to_entity(model)

    async def delete(self, user_id: UUID) -> None:
        await self._session.execute(delete(UserModel).where(UserModel.id == user_id))
        await self._session.flush()

    async def list(self, role: Optional[UserRole], page: int, limit: int) -> Tuple[List[User], int]:
        stmt = select(UserModel)
        count_stmt = select(func.count(UserModel.id))
        if role is not None:
            stmt = stmt.where(UserModel.role == UserRole(role).value)
            count_stmt = count_stmt.where(UserModel.role == UserRole(role).value)

        stmt = stmt.order_by(UserModel.created_at.desc()).offset((page - 1) * limit).limit(limit)

        result = await self._session.execute(stmt)
        total = (await self._session.execute(count_stmt)).scalar_one()
        return [_to_entity(m) for m in result.scalars().all()], total

    async def list_staff(self) -> List[User]:
        stmt = (
            select(UserModel)
            .where(UserModel.role == UserRole.CATEGORY_STAFF.value)
            .order_by(UserModel.name)
        )
        result = await self._session.execute(stmt)
        return [_to_entity(m) for m in result.scalars().all()]

    async def commit(self) -> None:
        await self._session.commit()
