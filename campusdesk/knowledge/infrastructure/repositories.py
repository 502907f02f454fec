"""
Knowledge Infrastructure Repositories
=====================================

SQLAlchemy implementation of the knowledge document repository.
"""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from campusdesk.identity.infrastructure.models import UserModel
from campusdesk.knowledge.application.services import IKnowledgeRepository, KnowledgeDocRecord
from campusdesk.knowledge.domain import KnowledgeDoc
from campusdesk.knowledge.infrastructure.models import KnowledgeDocModel


def _to_entity(model: KnowledgeDocModel) -> KnowledgeDoc:
    return KnowledgeDoc(
        id=model.id,
        filename=model.filename,
        original_name=model.original_name,
        uploaded_by=model.uploaded_by,
        vector_ids=list(model.vector_ids or []),
        file_size=model.file_size,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


class SQLAlchemyKnowledgeRepository(IKnowledgeRepository):
    """SQLAlchemy implementation for knowledge documents."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def get(self, doc_id: UUID) -> Optional[KnowledgeDoc]:
        model = await self._session.get(KnowledgeDocModel, doc_id)
        return _to_entity(model) if model else None

    async def add(self, doc: KnowledgeDoc) -> KnowledgeDoc:
        model = KnowledgeDocModel(
            id=doc.id,
            filename=doc.filename,
            original_name=doc.original_name,
            uploaded_by=doc.uploaded_by,
            chunk_count=doc.chunk_count,
            vector_ids=list(doc.vector_ids),
            file_size=doc.file_size,
            created_at=doc.created_at,
            updated_at=doc.updated_at,
        )
        self._session.add(model)
        await self._session.flush()
        return _to_entity(model)

    async def delete(self, doc_id: UUID) -> None:
        await self._session.execute(delete(KnowledgeDocModel).where(KnowledgeDocModel.id == doc_id))
        await self._session.flush()

    async def list(self) -> List[KnowledgeDocRecord]:
        stmt = (
            select(KnowledgeDocModel, UserModel.name, UserModel.email)
            .outerjoin(UserModel, KnowledgeDocModel.uploaded_by == UserModel.id)
            .order_by(KnowledgeDocModel.created_at.desc())
        )
        result = await self._session.execute(stmt)
        return [
            KnowledgeDocRecord(doc=_to_entity(model), uploader_name=name, uploader_email=email)
            for model, name, email in result.all()
        ]

    async def commit(self) -> None:
        await self._session.commit()
