"""
Complaints Application Services
===============================

Orchestrates complaint submission, the lifecycle engine, category
management and analytics.

Ordering rule for every state change: authorize, apply, commit, and
only then publish the event for notification fan-out.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Tuple
from uuid import UUID

from campusdesk.config import ComplaintStatus, settings
from campusdesk.core import (
    Actor,
    ConflictError,
    Operation,
    PayloadTooLarge,
    ResourceNotFoundException,
    access_policy,
)
from campusdesk.complaints.application.notifications import IEventPublisher
from campusdesk.complaints.domain import (
    Category,
    Complaint,
    ComplaintConfirmed,
    ComplaintLifecycle,
    ComplaintStatusChanged,
    ComplaintSubmitted,
    lifecycle as default_lifecycle,
    utcnow,
)
from campusdesk.identity.application import ICategoryDirectory, ISubmissionCounter
from campusdesk.infrastructure.storage import ensure_allowed_extension
from campusdesk.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


# ========== Read models ==========

@dataclass
class ComplaintRecord:
    """A complaint joined with its category and submitting student."""
    complaint: Complaint
    category_name: Optional[str] = None
    category_staff_user_id: Optional[UUID] = None
    student_name: Optional[str] = None
    student_email: Optional[str] = None


@dataclass
class Attachment:
    filename: str
    content: bytes


@dataclass
class AnalyticsSummary:
    total: int
    by_status: Dict[ComplaintStatus, int]
    recent_count: int
    per_category: List[Tuple[str, int]]

    @property
    def resolution_rate(self) -> int:
        """Resolved share of all complaints, as a rounded percentage."""
        if self.total == 0:
            return 0
        resolved = self.by_status.get(ComplaintStatus.RESOLVED, 0)
        return int(resolved / self.total * 100 + 0.5)


# ========== Repository / Port Interfaces ==========

class IComplaintRepository(ISubmissionCounter):
    """Interface for complaint data access."""

    @abstractmethod
    async def get(self, complaint_id: UUID) -> Optional[ComplaintRecord]:
        """Get a complaint with its category and student."""

    @abstractmethod
    async def add(self, complaint: Complaint) -> Complaint:
        """Persist a new complaint."""

    @abstractmethod
    async def save(self, complaint: Complaint) -> Complaint:
        """Persist status/remarks changes."""

    @abstractmethod
    async def list(
        self,
        student_id: Optional[UUID] = None,
        category_id: Optional[UUID] = None,
        status: Optional[ComplaintStatus] = None,
        page: int = 1,
        limit: int = 20,
    ) -> Tuple[List[ComplaintRecord], int]:
        """Filtered page, newest first, with total count."""

    @abstractmethod
    async def count_by_category(self, category_id: UUID) -> int:
        """Number of complaints referencing the category."""

    @abstractmethod
    async def count_by_status(self) -> Dict[ComplaintStatus, int]:
        """Complaint count per status."""

    @abstractmethod
    async def count_created_since(self, since: datetime) -> int:
        """Complaints created at or after ``since``."""

    @abstractmethod
    async def count_per_category(self) -> List[Tuple[str, int]]:
        """(category name, count), most complaints first."""

    @abstractmethod
    async def commit(self) -> None:
        """Commit the unit of work."""


class ICategoryRepository(ICategoryDirectory):
    """Interface for category data access."""

    @abstractmethod
    async def get(self, category_id: UUID) -> Optional[Category]:
        """Get category by ID."""

    @abstractmethod
    async def get_by_name(self, name: str) -> Optional[Category]:
        """Get category by exact name."""

    @abstractmethod
    async def list(self) -> List[Category]:
        """All categories sorted by name."""

    @abstractmethod
    async def add(self, category: Category) -> Category:
        """Persist a new category."""

    @abstractmethod
    async def update(self, category: Category) -> Category:
        """Persist changes to a category."""

    @abstractmethod
    async def delete(self, category_id: UUID) -> None:
        """Delete a category and clear staff assignments pointing at it."""

    @abstractmethod
    async def commit(self) -> None:
        """Commit the unit of work."""


class IFileStorage(ABC):

    @abstractmethod
    async def save(self, content: bytes, original_name: str, prefix: str = "file"):
        """Store bytes; return an object with ``name`` and ``url``."""

    @abstractmethod
    async def delete(self, name: Optional[str]) -> bool:
        """Delete a stored file by name."""


# ========== Application Services ==========

class ComplaintService:
    """
    Complaint use cases.

    Coordinates the access policy, the lifecycle engine, repositories and
    the event publisher.
    """

    def __init__(
        self,
        complaints: IComplaintRepository,
        categories: ICategoryRepository,
        publisher: IEventPublisher,
        storage: Optional[IFileStorage] = None,
        lifecycle: Optional[ComplaintLifecycle] = None,
    ):
        self._complaints = complaints
        self._categories = categories
        self._publisher = publisher
        self._storage = storage
        self._lifecycle = lifecycle or default_lifecycle

    async def _load(self, complaint_id: UUID) -> ComplaintRecord:
        record = await self._complaints.get(complaint_id)
        if record is None:
            raise ResourceNotFoundException("Complaint", str(complaint_id))
        return record

    async def submit(
        self,
        actor: Actor,
        title: str,
        description: str,
        category_id: UUID,
        attachment: Optional[Attachment] = None,
    ) -> ComplaintRecord:
        """
        Create a complaint in status Open and send the confirmation email.

        Raises:
            AccessDenied: actor is not a student
            ResourceNotFoundException: unknown category
            ValidationException: blocked attachment type
            PayloadTooLarge: attachment over the size cap
        """
        access_policy.authorize(actor, Operation.SUBMIT_COMPLAINT)

        if await self._categories.get(category_id) is None:
            raise ResourceNotFoundException("Category", str(category_id))

        file_url = None
        stored = None
        if attachment is not None and self._storage is not None:
            ensure_allowed_extension(attachment.filename, settings.blocked_extensions)
            if len(attachment.content) > settings.max_upload_bytes:
                raise PayloadTooLarge(
                    f"File too large. Maximum size is {settings.max_upload_bytes // (1024 * 1024)}MB."
                )
            stored = await self._storage.save(attachment.content, attachment.filename, prefix="complaint")
            file_url = stored.url

        complaint = Complaint(
            title=title.strip(),
            description=description.strip(),
            category_id=category_id,
            student_id=actor.user_id,
            file_url=file_url,
        )
        try:
            await self._complaints.add(complaint)
            await self._complaints.commit()
        except Exception:
            if stored is not None:
                logger.error("Complaint write failed, removing attachment", extra={"file_name": stored.name})
                await self._storage.delete(stored.name)
            raise

        record = await self._load(complaint.id)
        logger.info("Complaint submitted", extra={"complaint_id": str(complaint.id)})

        if record.student_email:
            self._publisher.publish(ComplaintSubmitted(
                complaint_id=complaint.id,
                title=complaint.title,
                student_email=record.student_email,
                student_name=record.student_name or "",
            ))
        return record

    async def get(self, actor: Actor, complaint_id: UUID) -> ComplaintRecord:
        record = await self._load(complaint_id)
        access_policy.authorize(
            actor,
            Operation.READ_COMPLAINT,
            owner_id=record.complaint.student_id,
            category_id=record.complaint.category_id,
        )
        return record

    async def list_own(
        self, actor: Actor, status: Optional[ComplaintStatus] = None, page: int = 1, limit: int = 10
    ) -> Tuple[List[ComplaintRecord], int]:
        access_policy.authorize(actor, Operation.LIST_OWN_COMPLAINTS)
        return await self._complaints.list(student_id=actor.user_id, status=status, page=page, limit=limit)

    async def list_assigned(
        self, actor: Actor, status: Optional[ComplaintStatus] = None, page: int = 1, limit: int = 20
    ) -> Tuple[List[ComplaintRecord], int]:
        """Complaints in the staff member's assigned category."""
        access_policy.authorize(actor, Operation.LIST_ASSIGNED_COMPLAINTS)
        return await self._complaints.list(
            category_id=actor.assigned_category_id, status=status, page=page, limit=limit
        )

    async def list_all(
        self,
        actor: Actor,
        status: Optional[ComplaintStatus] = None,
        category_id: Optional[UUID] = None,
        page: int = 1,
        limit: int = 20,
    ) -> Tuple[List[ComplaintRecord], int]:
        access_policy.authorize(actor, Operation.LIST_ALL_COMPLAINTS)
        return await self._complaints.list(category_id=category_id, status=status, page=page, limit=limit)

    async def update(
        self,
        actor: Actor,
        complaint_id: UUID,
        status: Optional[ComplaintStatus] = None,
        remarks: Optional[str] = None,
    ) -> ComplaintRecord:
        """
        Staff/admin update of status and/or remarks.

        Fan-out happens only when the status actually changed.
        """
        record = await self._load(complaint_id)
        complaint = record.complaint

        outcome = self._lifecycle.apply_update(complaint, actor, status=status, remarks=remarks)

        await self._complaints.save(complaint)
        await self._complaints.commit()

        logger.info("Complaint updated", extra={
            "complaint_id": str(complaint.id),
            "previous_status": outcome.previous_status.value,
            "status": outcome.status.value,
            "actor_role": actor.role.value,
        })

        if outcome.status_changed:
            self._publisher.publish(ComplaintStatusChanged(
                complaint_id=complaint.id,
                title=complaint.title,
                student_id=complaint.student_id,
                student_email=record.student_email or "",
                student_name=record.student_name or "",
                previous_status=outcome.previous_status,
                status=outcome.status,
                remarks=complaint.remarks,
                updated_at=complaint.updated_at,
            ))

        return record

    async def confirm(self, actor: Actor, complaint_id: UUID) -> ComplaintRecord:
        """Owning student confirms resolution of a pending complaint."""
        record = await self._load(complaint_id)
        complaint = record.complaint

        self._lifecycle.confirm(complaint, actor)

        await self._complaints.save(complaint)
        await self._complaints.commit()

        logger.info("Complaint confirmed", extra={"complaint_id": str(complaint.id)})

        self._publisher.publish(ComplaintConfirmed(
            complaint_id=complaint.id,
            staff_user_id=record.category_staff_user_id,
            updated_at=complaint.updated_at,
        ))
        return record


class CategoryService:
    """Category management. Only admins may write."""

    def __init__(self, categories: ICategoryRepository, complaints: IComplaintRepository):
        self._categories = categories
        self._complaints = complaints

    async def list(self, actor: Actor) -> List[Category]:
        access_policy.authorize(actor, Operation.LIST_CATEGORIES)
        return await self._categories.list()

    async def create(self, actor: Actor, name: str, description: str = "") -> Category:
        access_policy.authorize(actor, Operation.MANAGE_CATEGORIES)

        if await self._categories.get_by_name(name.strip()) is not None:
            raise ConflictError("A category with this name already exists.")

        category = await self._categories.add(Category(name=name, description=description or ""))
        await self._categories.commit()
        logger.info("Category created", extra={"category_id": str(category.id)})
        return category

    async def update(
        self,
        actor: Actor,
        category_id: UUID,
        name: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Category:
        access_policy.authorize(actor, Operation.MANAGE_CATEGORIES)

        category = await self._categories.get(category_id)
        if category is None:
            raise ResourceNotFoundException("Category", str(category_id))

        if name is not None and name.strip() != category.name:
            existing = await self._categories.get_by_name(name.strip())
            if existing is not None and existing.id != category.id:
                raise ConflictError("A category with this name already exists.")
            category.name = name.strip()

        if description is not None:
            category.description = description.strip()

        category.updated_at = utcnow()
        category = await self._categories.update(category)
        await self._categories.commit()
        return category

    async def delete(self, actor: Actor, category_id: UUID) -> None:
        """
        Delete a category.

        Raises:
            ConflictError: complaints still reference it (message carries the count)
        """
        access_policy.authorize(actor, Operation.MANAGE_CATEGORIES)

        in_use = await self._complaints.count_by_category(category_id)
        if in_use > 0:
            raise ConflictError(f"Cannot delete category. {in_use} complaint(s) are using it.")

        if await self._categories.get(category_id) is None:
            raise ResourceNotFoundException("Category", str(category_id))

        await self._categories.delete(category_id)
        await self._categories.commit()
        logger.info("Category deleted", extra={"category_id": str(category_id)})


class AnalyticsService:
    """Aggregate complaint statistics for the admin dashboard."""

    RECENT_WINDOW = timedelta(days=7)

    def __init__(self, complaints: IComplaintRepository):
        self._complaints = complaints

    async def summary(self, actor: Actor) -> AnalyticsSummary:
        access_policy.authorize(actor, Operation.VIEW_ANALYTICS)

        by_status = await self._complaints.count_by_status()
        return AnalyticsSummary(
            total=sum(by_status.values()),
            by_status=by_status,
            recent_count=await self._complaints.count_created_since(utcnow() - self.RECENT_WINDOW),
            per_category=await self._complaints.count_per_category(),
        )
