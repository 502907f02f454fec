"""
Complaints Application DTOs
===========================

Pydantic models for request/response validation.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import Field, field_validator

from campusdesk.config import ComplaintStatus
from campusdesk.shared.api.schemas import CamelModel, Pagination


# ========== Request DTOs ==========

class UpdateComplaintRequest(CamelModel):
    """Staff/admin update. At least one field must be present."""
    status: Optional[ComplaintStatus] = None
    remarks: Optional[str] = Field(None, max_length=2000)

    @field_validator("remarks")
    @classmethod
    def strip_remarks(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v is not None else v


class CategoryRequest(CamelModel):
    name: str = Field(..., min_length=2, max_length=100)
    description: Optional[str] = Field("", max_length=500)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 2:
            raise ValueError("Name must be at least 2 characters")
        return v


class CategoryUpdateRequest(CamelModel):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    description: Optional[str] = Field(None, max_length=500)


# ========== Response DTOs ==========

class CategoryRef(CamelModel):
    id: UUID
    name: Optional[str] = None


class StudentRef(CamelModel):
    id: UUID
    name: Optional[str] = None
    email: Optional[str] = None


class ComplaintResponse(CamelModel):
    id: UUID
    title: str
    description: str
    category: CategoryRef
    status: ComplaintStatus
    student_id: StudentRef
    file_url: Optional[str] = None
    remarks: str = ""
    created_at: datetime
    updated_at: datetime


class ComplaintEnvelope(CamelModel):
    complaint: ComplaintResponse


class ComplaintListResponse(CamelModel):
    complaints: List[ComplaintResponse]
    pagination: Pagination


class CategoryResponse(CamelModel):
    id: UUID
    name: str
    description: str = ""
    staff_user_id: Optional[UUID] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CategoryEnvelope(CamelModel):
    category: CategoryResponse


class CategoryListResponse(CamelModel):
    categories: List[CategoryResponse]


class CategoryStat(CamelModel):
    name: str
    count: int


class AnalyticsResponse(CamelModel):
    total_complaints: int
    open: int
    in_progress: int
    pending_verification: int
    resolved: int
    resolution_rate: int
    recent_count: int
    category_stats: List[CategoryStat]
