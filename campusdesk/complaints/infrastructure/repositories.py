"""
Complaints Infrastructure Repositories
======================================

SQLAlchemy implementations of the category and complaint repositories.

``SQLAlchemyCategoryRepository`` also serves the identity module as its
category directory (staff binding), and ``SQLAlchemyComplaintRepository``
as its submission counter.
"""

from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from campusdesk.config import ComplaintStatus
from campusdesk.complaints.application.services import (
    ComplaintRecord,
    ICategoryRepository,
    IComplaintRepository,
)
from campusdesk.complaints.domain import Category, Complaint
from campusdesk.complaints.infrastructure.models import CategoryModel, ComplaintModel
from campusdesk.identity.infrastructure.models import UserModel


# ========== Mappers ==========

def _category_to_entity(model: CategoryModel) -> Category:
    return Category(
        id=model.id,
        name=model.name,
        description=model.description or "",
        staff_user_id=model.staff_user_id,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


def _complaint_to_entity(model: ComplaintModel) -> Complaint:
    return Complaint(
        id=model.id,
        title=model.title,
        description=model.description,
        category_id=model.category_id,
        student_id=model.student_id,
        status=ComplaintStatus(model.status),
        file_url=model.file_url,
        remarks=model.remarks or "",
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


# ========== Category Repository ==========

class SQLAlchemyCategoryRepository(ICategoryRepository):
    """SQLAlchemy implementation for categories."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def get(self, category_id: UUID) -> Optional[Category]:
        model = await self._session.get(CategoryModel, category_id)
        return _category_to_entity(model) if model else None

    async def get_by_name(self, name: str) -> Optional[Category]:
        result = await self._session.execute(
            select(CategoryModel).where(CategoryModel.name == name)
        )
        model = result.scalar_one_or_none()
        return _category_to_entity(model) if model else None

    async def list(self) -> List[Category]:
        result = await self._session.execute(select(CategoryModel).order_by(CategoryModel.name))
        return [_category_to_entity(m) for m in result.scalars().all()]

    async def add(self, category: Category) -> Category:
        model = CategoryModel(
            id=category.id,
            name=category.name,
            description=category.description,
            staff_user_id=category.staff_user_id,
            created_at=category.created_at,
            updated_at=category.updated_at,
        )
        self._session.add(model)
        await self._session.flush()
        return _category_to_entity(model)

    async def update(self, category: Category) -> Category:
        model = await self._session.get(CategoryModel, category.id)
        if model is None:
            return await self.add(category)

        model.name = category.name
        model.description = category.description
        model.staff_user_id = category.staff_user_id
        model.updated_at = category.updated_at

        await self._session.flush()
        return _category_to_entity(model)

    async def delete(self, category_id: UUID) -> None:
        await self._session.execute(
            update(UserModel)
            .where(UserModel.assigned_category_id == category_id)
            .values(assigned_category_id=None)
        )
        await self._session.execute(delete(CategoryModel).where(CategoryModel.id == category_id))
        await self._session.flush()

    # ----- category directory (identity module) -----

    async def exists(self, category_id: UUID) -> bool:
        return await self._session.get(CategoryModel, category_id) is not None

    async def bind_staff(self, category_id: UUID, user_id: UUID) -> Optional[UUID]:
        """
        Make ``user_id`` the category's staff member.

        Returns the previously bound staff member's id (if another one was
        bound) after clearing their assignment.
        """
        model = await self._session.get(CategoryModel, category_id)
        if model is None:
            return None

        previous = model.staff_user_id
        model.staff_user_id = user_id

        if previous is not None and previous != user_id:
            await self._session.execute(
                update(UserModel)
                .where(UserModel.id == previous, UserModel.assigned_category_id == category_id)
                .values(assigned_category_id=None)
            )

        await self._session.flush()
        return previous if previous != user_id else None

    async def release_staff(self, user_id: UUID) -> None:
        await self._session.execute(
            update(CategoryModel)
            .where(CategoryModel.staff_user_id == user_id)
            .values(staff_user_id=None)
        )
        await self._session.flush()

    async def names(self, category_ids: Iterable[UUID]) -> Dict[UUID, str]:
        ids = [cid for cid in category_ids if cid is not None]
        if not ids:
            return {}
        result = await self._session.execute(
            select(CategoryModel.id, CategoryModel.name).where(CategoryModel.id.in_(ids))
        )
        return {row.id: row.name for row in result}

    async def commit(self) -> None:
        await self._session.commit()


# ========== Complaint Repository ==========

class SQLAlchemyComplaintRepository(IComplaintRepository):
    """SQLAlchemy implementation for complaints."""

    def __init__(self, session: AsyncSession):
        self._session = session

    def _joined(self):
        return (
            select(
                ComplaintModel,
                CategoryModel.name,
                CategoryModel.staff_user_id,
                UserModel.name,
                UserModel.email,
            )
            .outerjoin(CategoryModel, ComplaintModel.category_id == CategoryModel.id)
            .outerjoin(UserModel, ComplaintModel.student_id == UserModel.id)
        )

    @staticmethod
    def _to_record(row) -> ComplaintRecord:
        model, category_name, staff_user_id, student_name, student_email = row
        return ComplaintRecord(
            complaint=_complaint_to_entity(model),
            category_name=category_name,
            category_staff_user_id=staff_user_id,
            student_name=student_name,
            student_email=student_email,
        )

    async def get(self, complaint_id: UUID) -> Optional[ComplaintRecord]:
        result = await self._session.execute(self._joined().where(ComplaintModel.id == complaint_id))
        row = result.first()
        return self._to_record(row) if row else None

    async def add(self, complaint: Complaint) -> Complaint:
        model = ComplaintModel(
            id=complaint.id,
            title=complaint.title,
            description=complaint.description,
            category_id=complaint.category_id,
            student_id=complaint.student_id,
            status=complaint.status.value,
            file_url=complaint.file_url,
            remarks=complaint.remarks,
            created_at=complaint.created_at,
            updated_at=complaint.updated_at,
        )
        self._session.add(model)
        await self._session.flush()
        return _complaint_to_entity(model)

    async def save(self, complaint: Complaint) -> Complaint:
        model = await self._session.get(ComplaintModel, complaint.id)
        if model is None:
            return await self.add(complaint)

        model.status = complaint.status.value
        model.remarks = complaint.remarks
        model.updated_at = complaint.updated_at

        await self._session.flush()
        return _complaint_to_entity(model)

    async def list(
        self,
        student_id: Optional[UUID] = None,
        category_id: Optional[UUID] = None,
        status: Optional[ComplaintStatus] = None,
        page: int = 1,
        limit: int = 20,
    ) -> Tuple[List[ComplaintRecord], int]:
        conditions = []
        if student_id is not None:
            conditions.append(ComplaintModel.student_id == student_id)
        if category_id is not None:
            conditions.append(ComplaintModel.category_id == category_id)
        if status is not None:
            conditions.append(ComplaintModel.status == ComplaintStatus(status).value)

        stmt = (
            self._joined()
            .where(*conditions)
            .order_by(ComplaintModel.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        count_stmt = select(func.count(ComplaintModel.id)).where(*conditions)

        result = await self._session.execute(stmt)
        total = (await self._session.execute(count_stmt)).scalar_one()
        return [self._to_record(row) for row in result.all()], total

    async def count_by_category(self, category_id: UUID) -> int:
        result = await self._session.execute(
            select(func.count(ComplaintModel.id)).where(ComplaintModel.category_id == category_id)
        )
        return result.scalar_one()

    async def count_by_student(self, student_id: UUID) -> int:
        result = await self._session.execute(
            select(func.count(ComplaintModel.id)).where(ComplaintModel.student_id == student_id)
        )
        return result.scalar_one()

    async def count_by_status(self) -> Dict[ComplaintStatus, int]:
        result = await self._session.execute(
            select(ComplaintModel.status, func.count(ComplaintModel.id)).group_by(ComplaintModel.status)
        )
        counts = {status: 0 for status in ComplaintStatus}
        for status, count in result.all():
            counts[ComplaintStatus(status)] = count
        return counts

    async def count_created_since(self, since: datetime) -> int:
        result = await self._session.execute(
            select(func.count(ComplaintModel.id)).where(ComplaintModel.created_at >= since)
        )
        return result.scalar_one()

    async def count_per_category(self) -> List[Tuple[str, int]]:
        count = func.count(ComplaintModel.id).label("count")
        result = await self._session.execute(
            select(CategoryModel.name, count)
            .join(CategoryModel, ComplaintModel.category_id == CategoryModel.id)
            .group_by(CategoryModel.name)
            .order_by(count.desc(), CategoryModel.name)
        )
        return [(name, n) for name, n in result.all()]

    async def commit(self) -> None:
        await self._session.commit()
