"""
Complaints Dependencies
=======================

FastAPI dependencies wiring complaint, category and analytics services.
"""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from campusdesk.config import settings
from campusdesk.complaints.application import (
    AnalyticsService,
    CategoryService,
    ComplaintService,
    IEventPublisher,
)
from campusdesk.complaints.infrastructure import (
    SQLAlchemyCategoryRepository,
    SQLAlchemyComplaintRepository,
)
from campusdesk.infrastructure.database import get_session
from campusdesk.infrastructure.storage import LocalFileStorage


def get_event_publisher(request: Request) -> IEventPublisher:
    """The notification dispatcher created at startup."""
    return request.app.state.notification_dispatcher


def get_attachment_storage() -> LocalFileStorage:
    return LocalFileStorage(settings.upload_dir)


def get_complaint_service(
    session: AsyncSession = Depends(get_session),
    publisher: IEventPublisher = Depends(get_event_publisher),
    storage: LocalFileStorage = Depends(get_attachment_storage),
) -> ComplaintService:
    return ComplaintService(
        SQLAlchemyComplaintRepository(session),
        SQLAlchemyCategoryRepository(session),
        publisher,
        storage,
    )


def get_category_service(session: AsyncSession = Depends(get_session)) -> CategoryService:
    return CategoryService(SQLAlchemyCategoryRepository(session), SQLAlchemyComplaintRepository(session))


def get_analytics_service(session: AsyncSession = Depends(get_session)) -> AnalyticsService:
    return AnalyticsService(SQLAlchemyComplaintRepository(session))
