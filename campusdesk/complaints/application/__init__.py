"""
Complaints Application Layer
============================

Contains:
- Services: ComplaintService, CategoryService, AnalyticsService
- Notifications: NotificationDispatcher and its ports
- DTOs: Data transfer objects for API serialization
"""

from campusdesk.complaints.application.dto import (
    UpdateComplaintRequest,
    CategoryRequest,
    CategoryUpdateRequest,
    CategoryRef,
    StudentRef,
    ComplaintResponse,
    ComplaintEnvelope,
    ComplaintListResponse,
    CategoryResponse,
    CategoryEnvelope,
    CategoryListResponse,
    CategoryStat,
    AnalyticsResponse,
)
from campusdesk.complaints.application.notifications import (
    IRealtimeSink,
    IMailer,
    IEventPublisher,
    NotificationDispatcher,
    render_submitted_email,
    render_status_email,
    ACTION_REQUIRED,
)
from campusdesk.complaints.application.services import (
    ComplaintService,
    CategoryService,
    AnalyticsService,
    AnalyticsSummary,
    ComplaintRecord,
    Attachment,
    IComplaintRepository,
    ICategoryRepository,
    IFileStorage,
)

__all__ = [
    # DTOs
    "UpdateComplaintRequest",
    "CategoryRequest",
    "CategoryUpdateRequest",
    "CategoryRef",
    "StudentRef",
    "ComplaintResponse",
    "ComplaintEnvelope",
    "ComplaintListResponse",
    "CategoryResponse",
    "CategoryEnvelope",
    "CategoryListResponse",
    "CategoryStat",
    "AnalyticsResponse",
    # Notifications
    "IRealtimeSink",
    "IMailer",
    "IEventPublisher",
    "NotificationDispatcher",
    "render_submitted_email",
    "render_status_email",
    "ACTION_REQUIRED",
    # Services
    "ComplaintService",
    "CategoryService",
    "AnalyticsService",
    "AnalyticsSummary",
    "ComplaintRecord",
    "Attachment",
    # Interfaces
    "IComplaintRepository",
    "ICategoryRepository",
    "IFileStorage",
]
