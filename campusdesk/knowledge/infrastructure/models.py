"""
Knowledge Infrastructure Models
===============================

SQLAlchemy ORM model for ingested knowledge documents.
"""

from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID, uuid4

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from campusdesk.infrastructure.database import Base


class KnowledgeDocModel(Base):
    """Database model for the KnowledgeDoc entity."""
    __tablename__ = "knowledge_docs"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    filename: Mapped[str] = mapped_column(String(255), nullable=False)
    original_name: Mapped[str] = mapped_column(String(255), nullable=False)
    uploaded_by: Mapped[Optional[UUID]] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True
    )

    chunk_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    vector_ids: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    file_size: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc)
    )
