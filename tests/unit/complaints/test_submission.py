"""
Unit Tests for Complaint Submission
Tests for: attachment storage and its cleanup when the complaint write fails
"""
from typing import Dict, List
from uuid import uuid4

import pytest

from campusdesk.config import UserRole
from campusdesk.core import Actor
from campusdesk.complaints.application import Attachment, ComplaintRecord, ComplaintService, IEventPublisher
from campusdesk.complaints.domain import Category
from campusdesk.infrastructure.storage import LocalFileStorage


class StubCategories:
    """Category lookups backed by a dict."""

    def __init__(self, *categories: Category):
        self.by_id: Dict = {c.id: c for c in categories}

    async def get(self, category_id):
        return self.by_id.get(category_id)


class InMemoryComplaints:
    """Complaint writes kept in memory; optionally failing on commit."""

    def __init__(self, fail_commit: bool = False):
        self.fail_commit = fail_commit
        self.rows: Dict = {}
        self.committed = False

    async def add(self, complaint):
        self.rows[complaint.id] = complaint
        return complaint

    async def commit(self):
        if self.fail_commit:
            raise RuntimeError("database unavailable")
        self.committed = True

    async def get(self, complaint_id):
        complaint = self.rows.get(complaint_id)
        if complaint is None:
            return None
        return ComplaintRecord(complaint=complaint, category_name="Dormitory Issues")


class RecordingPublisher(IEventPublisher):

    def __init__(self):
        self.events: List[object] = []

    def publish(self, event: object) -> None:
        self.events.append(event)


@pytest.fixture
def dormitory() -> Category:
    return Category(name="Dormitory Issues", description="Housing problems")


@pytest.fixture
def student_actor() -> Actor:
    return Actor(user_id=uuid4(), role=UserRole.STUDENT)


@pytest.fixture
def storage(tmp_path) -> LocalFileStorage:
    return LocalFileStorage(tmp_path / "uploads")


ATTACHMENT = Attachment(filename="leak.jpg", content=b"\xff\xd8\xff\xe0 photo")


class TestSubmitAttachment:
    """Test attachment handling during submission"""

    @pytest.mark.asyncio
    async def test_attachment_kept_on_success(self, dormitory, student_actor, storage):
        """Test a stored attachment stays once the complaint is committed"""
        complaints = InMemoryComplaints()
        service = ComplaintService(complaints, StubCategories(dormitory), RecordingPublisher(), storage)

        record = await service.submit(
            student_actor, "Leaking faucet", "The faucet has leaked for days.", dormitory.id, ATTACHMENT
        )

        assert complaints.committed is True
        assert record.complaint.file_url.startswith("/uploads/complaint-")
        assert len(list(storage.directory.iterdir())) == 1

    @pytest.mark.asyncio
    async def test_attachment_removed_when_write_fails(self, dormitory, student_actor, storage):
        """Test a failed complaint write leaves no orphaned attachment"""
        publisher = RecordingPublisher()
        service = ComplaintService(
            InMemoryComplaints(fail_commit=True), StubCategories(dormitory), publisher, storage
        )

        with pytest.raises(RuntimeError):
            await service.submit(
                student_actor, "Leaking faucet", "The faucet has leaked for days.", dormitory.id, ATTACHMENT
            )

        assert list(storage.directory.iterdir()) == []
        assert publisher.events == []

    @pytest.mark.asyncio
    async def test_write_failure_without_attachment(self, dormitory, student_actor, storage):
        """Test the write error propagates when there is nothing to clean up"""
        service = ComplaintService(
            InMemoryComplaints(fail_commit=True), StubCategories(dormitory), RecordingPublisher(), storage
        )

        with pytest.raises(RuntimeError):
            await service.submit(student_actor, "Leaking faucet", "The faucet has leaked for days.", dormitory.id)
