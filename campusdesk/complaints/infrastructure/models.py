"""
Complaints Infrastructure Models
================================

SQLAlchemy ORM models for categories and complaints.
"""

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from campusdesk.config import ComplaintStatus
from campusdesk.infrastructure.database import Base


class CategoryModel(Base):
    """Database model for the Category entity."""
    __tablename__ = "categories"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True, index=True)
    description: Mapped[str] = mapped_column(String(500), nullable=False, default="")

    # Weak reference: no FK so a staff delete never cascades here
    staff_user_id: Mapped[Optional[UUID]] = mapped_column(Uuid, nullable=True)

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


class ComplaintModel(Base):
    """
    Database model for the Complaint entity.

    Deleting a category or student with complaints is refused at the
    application layer, so the foreign keys carry no cascade.
    """
    __tablename__ = "complaints"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)

    category_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("categories.id"), nullable=False)
    student_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("users.id"), nullable=False)

    status: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default=ComplaintStatus.OPEN.value,
        index=True
    )
    file_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    remarks: Mapped[str] = mapped_column(Text, nullable=False, default="")

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

    __table_args__ = (
        Index("ix_complaints_student_created", "student_id", "created_at"),
        Index("ix_complaints_category_status", "category_id", "status"),
    )
