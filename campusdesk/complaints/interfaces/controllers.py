"""
Complaints Controllers (API Routes)
===================================

FastAPI routes for complaints, categories and analytics.

Controllers delegate to application services; authorization and the
status state machine live below this layer.
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile, status

from campusdesk.config import ComplaintStatus, settings
from campusdesk.core import Actor
from campusdesk.complaints.application import (
    AnalyticsResponse,
    AnalyticsService,
    Attachment,
    CategoryEnvelope,
    CategoryListResponse,
    CategoryRef,
    CategoryRequest,
    CategoryResponse,
    CategoryService,
    CategoryStat,
    CategoryUpdateRequest,
    ComplaintEnvelope,
    ComplaintListResponse,
    ComplaintRecord,
    ComplaintResponse,
    ComplaintService,
    StudentRef,
    UpdateComplaintRequest,
)
from campusdesk.complaints.domain import Category
from campusdesk.complaints.interfaces.dependencies import (
    get_analytics_service,
    get_category_service,
    get_complaint_service,
)
from campusdesk.identity.interfaces.dependencies import get_actor
from campusdesk.shared.api.rate_limit import limiter
from campusdesk.shared.api.responses import ok
from campusdesk.shared.api.schemas import Pagination

complaints_router = APIRouter(prefix="/complaints", tags=["Complaints"])
categories_router = APIRouter(prefix="/categories", tags=["Categories"])
analytics_router = APIRouter(prefix="/analytics", tags=["Analytics"])


# ========== Mappers ==========

def to_complaint_response(record: ComplaintRecord) -> ComplaintResponse:
    complaint = record.complaint
    return ComplaintResponse(
        id=complaint.id,
        title=complaint.title,
        description=complaint.description,
        category=CategoryRef(id=complaint.category_id, name=record.category_name),
        status=complaint.status,
        student_id=StudentRef(
            id=complaint.student_id,
            name=record.student_name,
            email=record.student_email,
        ),
        file_url=complaint.file_url,
        remarks=complaint.remarks,
        created_at=complaint.created_at,
        updated_at=complaint.updated_at,
    )


def _complaint_page(records: List[ComplaintRecord], total: int, page: int, limit: int) -> ComplaintListResponse:
    return ComplaintListResponse(
        complaints=[to_complaint_response(r) for r in records],
        pagination=Pagination.build(total, page, limit),
    )


def _category_response(category: Category) -> CategoryResponse:
    return CategoryResponse.model_validate(category)


# ========== Complaint Routes ==========

@complaints_router.post("", status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.complaint_rate_limit)
async def create_complaint(
    request: Request,
    title: str = Form(..., min_length=3, max_length=200),
    description: str = Form(..., min_length=10, max_length=5000),
    category: UUID = Form(...),
    file: Optional[UploadFile] = File(None),
    actor: Actor = Depends(get_actor),
    service: ComplaintService = Depends(get_complaint_service),
):
    """Submit a complaint with an optional single attachment."""
    attachment = None
    if file is not None and file.filename:
        attachment = Attachment(filename=file.filename, content=await file.read(settings.max_upload_bytes + 1))

    record = await service.submit(actor, title, description, category, attachment)
    return ok(ComplaintEnvelope(complaint=to_complaint_response(record)), "Complaint submitted successfully.")


@complaints_router.get("/my")
async def my_complaints(
    status_filter: Optional[ComplaintStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    actor: Actor = Depends(get_actor),
    service: ComplaintService = Depends(get_complaint_service),
):
    records, total = await service.list_own(actor, status_filter, page, limit)
    return ok(_complaint_page(records, total, page, limit))


@complaints_router.get("/assigned")
async def assigned_complaints(
    status_filter: Optional[ComplaintStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    actor: Actor = Depends(get_actor),
    service: ComplaintService = Depends(get_complaint_service),
):
    records, total = await service.list_assigned(actor, status_filter, page, limit)
    return ok(_complaint_page(records, total, page, limit))


@complaints_router.get("/all")
async def all_complaints(
    status_filter: Optional[ComplaintStatus] = Query(None, alias="status"),
    category: Optional[UUID] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    actor: Actor = Depends(get_actor),
    service: ComplaintService = Depends(get_complaint_service),
):
    records, total = await service.list_all(actor, status_filter, category, page, limit)
    return ok(_complaint_page(records, total, page, limit))


@complaints_router.get("/{complaint_id}")
async def get_complaint(
    complaint_id: UUID,
    actor: Actor = Depends(get_actor),
    service: ComplaintService = Depends(get_complaint_service),
):
    record = await service.get(actor, complaint_id)
    return ok(ComplaintEnvelope(complaint=to_complaint_response(record)))


async def _update(
    complaint_id: UUID,
    payload: UpdateComplaintRequest,
    actor: Actor,
    service: ComplaintService,
):
    record = await service.update(actor, complaint_id, status=payload.status, remarks=payload.remarks)
    return ok(ComplaintEnvelope(complaint=to_complaint_response(record)), "Complaint updated successfully.")


@complaints_router.patch("/{complaint_id}/status")
async def update_complaint_status(
    complaint_id: UUID,
    payload: UpdateComplaintRequest,
    actor: Actor = Depends(get_actor),
    service: ComplaintService = Depends(get_complaint_service),
):
    """Staff/admin status and remarks update."""
    return await _update(complaint_id, payload, actor, service)


@complaints_router.put("/{complaint_id}")
async def update_complaint(
    complaint_id: UUID,
    payload: UpdateComplaintRequest,
    actor: Actor = Depends(get_actor),
    service: ComplaintService = Depends(get_complaint_service),
):
    return await _update(complaint_id, payload, actor, service)


@complaints_router.post("/{complaint_id}/confirm")
async def confirm_complaint(
    complaint_id: UUID,
    actor: Actor = Depends(get_actor),
    service: ComplaintService = Depends(get_complaint_service),
):
    """Owning student confirms the fix."""
    record = await service.confirm(actor, complaint_id)
    return ok(
        ComplaintEnvelope(complaint=to_complaint_response(record)),
        "Complaint marked as resolved. Thank you for your feedback.",
    )


# ========== Category Routes ==========

@categories_router.get("")
async def list_categories(
    actor: Actor = Depends(get_actor),
    service: CategoryService = Depends(get_category_service),
):
    categories = await service.list(actor)
    return ok(CategoryListResponse(categories=[_category_response(c) for c in categories]))


@categories_router.post("", status_code=status.HTTP_201_CREATED)
async def create_category(
    payload: CategoryRequest,
    actor: Actor = Depends(get_actor),
    service: CategoryService = Depends(get_category_service),
):
    category = await service.create(actor, payload.name, payload.description or "")
    return ok(CategoryEnvelope(category=_category_response(category)), "Category created successfully.")


@categories_router.put("/{category_id}")
async def update_category(
    category_id: UUID,
    payload: CategoryUpdateRequest,
    actor: Actor = Depends(get_actor),
    service: CategoryService = Depends(get_category_service),
):
    category = await service.update(actor, category_id, payload.name, payload.description)
    return ok(CategoryEnvelope(category=_category_response(category)), "Category updated successfully.")


@categories_router.delete("/{category_id}")
async def delete_category(
    category_id: UUID,
    actor: Actor = Depends(get_actor),
    service: CategoryService = Depends(get_category_service),
):
    await service.delete(actor, category_id)
    return ok(message="Category deleted successfully.")


# ========== Analytics Routes ==========

@analytics_router.get("")
async def get_analytics(
    actor: Actor = Depends(get_actor),
    service: AnalyticsService = Depends(get_analytics_service),
):
    """Dashboard statistics."""
    summary = await service.summary(actor)
    return ok(AnalyticsResponse(
        total_complaints=summary.total,
        open=summary.by_status.get(ComplaintStatus.OPEN, 0),
        in_progress=summary.by_status.get(ComplaintStatus.IN_PROGRESS, 0),
        pending_verification=summary.by_status.get(ComplaintStatus.PENDING_VERIFICATION, 0),
        resolved=summary.by_status.get(ComplaintStatus.RESOLVED, 0),
        resolution_rate=summary.resolution_rate,
        recent_count=summary.recent_count,
        category_stats=[CategoryStat(name=name, count=count) for name, count in summary.per_category],
    ))
