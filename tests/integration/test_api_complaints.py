"""
Integration Tests for Complaint Endpoints
Tests the full complaint lifecycle over HTTP, scoping rules and the
notifications each step produces
"""
import uuid

import pytest
from httpx import AsyncClient

from campusdesk.config import ADMIN_ROOM, COMPLAINT_UPDATED_EVENT, settings, user_room
from campusdesk.complaints.application import ACTION_REQUIRED
from campusdesk.complaints.interfaces.dependencies import get_complaint_service
from campusdesk.core import PayloadTooLarge
from campusdesk.main import app


async def submit(client: AsyncClient, headers: dict, category_id, title: str = "Leaking faucet", files=None):
    return await client.post(
        "/api/complaints",
        data={
            "title": title,
            "description": "The bathroom faucet on floor 2 has been leaking for days.",
            "category": str(category_id),
        },
        files=files,
        headers=headers,
    )


async def set_status(client: AsyncClient, headers: dict, complaint_id: str, status: str, remarks=None):
    payload = {"status": status}
    if remarks is not None:
        payload["remarks"] = remarks
    return await client.patch(f"/api/complaints/{complaint_id}/status", json=payload, headers=headers)


class TestLifecycleScenario:
    """End-to-end walk through the complaint lifecycle"""

    @pytest.mark.asyncio
    async def test_full_lifecycle(
        self, client: AsyncClient, student, staff, admin, category, dispatcher, realtime_sink, mailer, auth_headers
    ):
        """Test submit, work, verify and confirm with every notification"""
        # Student submits
        response = await submit(client, auth_headers(student), category.id)
        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Complaint submitted successfully."
        complaint = body["data"]["complaint"]
        assert complaint["status"] == "Open"
        assert complaint["category"] == {"id": str(category.id), "name": "Dormitory Issues"}
        assert complaint["studentId"]["email"] == student.email
        complaint_id = complaint["id"]

        await dispatcher.drain(timeout=5)
        assert [m.subject for m in mailer.sent] == ["Complaint Submitted"]
        assert realtime_sink.events == []

        # Staff starts work
        response = await set_status(client, auth_headers(staff), complaint_id, "In Progress", "Plumber booked")
        assert response.status_code == 200
        assert response.json()["message"] == "Complaint updated successfully."
        assert response.json()["data"]["complaint"]["remarks"] == "Plumber booked"

        await dispatcher.drain(timeout=5)
        student_events = realtime_sink.for_room(user_room(student.id))
        assert len(student_events) == 1
        assert student_events[0]["event"] == COMPLAINT_UPDATED_EVENT
        assert student_events[0]["data"]["status"] == "In Progress"
        assert student_events[0]["data"]["complaintId"] == complaint_id
        assert len(realtime_sink.for_room(ADMIN_ROOM)) == 1

        # Staff hands over for verification
        response = await set_status(client, auth_headers(staff), complaint_id, "Pending Student Verification")
        assert response.status_code == 200

        await dispatcher.drain(timeout=5)
        last_mail = mailer.sent[-1]
        assert last_mail.to == student.email
        assert last_mail.subject == "Complaint Status Updated: Pending Student Verification"
        assert ACTION_REQUIRED in last_mail.html

        # Student confirms
        realtime_sink.events.clear()
        response = await client.post(f"/api/complaints/{complaint_id}/confirm", headers=auth_headers(student))
        assert response.status_code == 200
        assert response.json()["message"] == "Complaint marked as resolved. Thank you for your feedback."
        assert response.json()["data"]["complaint"]["status"] == "Resolved"

        await dispatcher.drain(timeout=5)
        assert realtime_sink.rooms() == [user_room(staff.id), ADMIN_ROOM]
        assert all(e["data"]["status"] == "Resolved" for e in realtime_sink.events)

        # Terminal
        response = await set_status(client, auth_headers(admin), complaint_id, "In Progress")
        assert response.status_code == 400
        response = await client.post(f"/api/complaints/{complaint_id}/confirm", headers=auth_headers(student))
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_admin_force_resolve(self, client: AsyncClient, student, staff, admin, category, auth_headers):
        """Test admins may resolve an open complaint directly but staff may not"""
        complaint_id = (await submit(client, auth_headers(student), category.id)).json()["data"]["complaint"]["id"]

        denied = await set_status(client, auth_headers(staff), complaint_id, "Resolved")
        assert denied.status_code == 403
        assert denied.json()["message"] == (
            "Staff can only set status to: In Progress, Pending Student Verification"
        )

        response = await set_status(client, auth_headers(admin), complaint_id, "Resolved")
        assert response.status_code == 200
        assert response.json()["data"]["complaint"]["status"] == "Resolved"

    @pytest.mark.asyncio
    async def test_put_alias(self, client: AsyncClient, student, admin, category, auth_headers):
        """Test PUT /complaints/{id} behaves like the status route"""
        complaint_id = (await submit(client, auth_headers(student), category.id)).json()["data"]["complaint"]["id"]

        response = await client.put(
            f"/api/complaints/{complaint_id}", json={"remarks": "Looking into it"}, headers=auth_headers(admin)
        )

        assert response.status_code == 200
        assert response.json()["data"]["complaint"]["remarks"] == "Looking into it"
        assert response.json()["data"]["complaint"]["status"] == "Open"


class TestUpdateRules:
    """Test update validation and notification suppression"""

    @pytest.mark.asyncio
    async def test_empty_update(self, client: AsyncClient, student, admin, category, auth_headers):
        """Test an update with nothing to change"""
        complaint_id = (await submit(client, auth_headers(student), category.id)).json()["data"]["complaint"]["id"]

        response = await client.patch(
            f"/api/complaints/{complaint_id}/status", json={}, headers=auth_headers(admin)
        )

        assert response.status_code == 400
        assert response.json()["message"].startswith("No changes specified")

    @pytest.mark.asyncio
    async def test_unknown_status_value(self, client: AsyncClient, student, admin, category, auth_headers):
        """Test statuses outside the enum are validation errors"""
        complaint_id = (await submit(client, auth_headers(student), category.id)).json()["data"]["complaint"]["id"]

        response = await set_status(client, auth_headers(admin), complaint_id, "Closed")

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_remarks_only_sends_nothing(
        self, client: AsyncClient, student, staff, category, dispatcher, realtime_sink, mailer, auth_headers
    ):
        """Test a remarks-only update produces no notification"""
        complaint_id = (await submit(client, auth_headers(student), category.id)).json()["data"]["complaint"]["id"]
        await dispatcher.drain(timeout=5)
        mailer.sent.clear()

        response = await client.patch(
            f"/api/complaints/{complaint_id}/status", json={"remarks": "Parts ordered"}, headers=auth_headers(staff)
        )
        await dispatcher.drain(timeout=5)

        assert response.status_code == 200
        assert realtime_sink.events == []
        assert mailer.sent == []

    @pytest.mark.asyncio
    async def test_blank_remarks_rejected(self, client: AsyncClient, student, staff, category, auth_headers):
        """Test whitespace-only remarks without a status are not a change"""
        complaint_id = (await submit(client, auth_headers(student), category.id)).json()["data"]["complaint"]["id"]

        response = await client.patch(
            f"/api/complaints/{complaint_id}/status", json={"remarks": "   "}, headers=auth_headers(staff)
        )

        assert response.status_code == 400
        assert response.json()["message"].startswith("No changes specified")

    @pytest.mark.asyncio
    async def test_same_status_with_new_remarks(
        self, client: AsyncClient, student, staff, category, dispatcher, realtime_sink, mailer, auth_headers
    ):
        """Test resending the current status with new remarks succeeds without notifying"""
        complaint_id = (await submit(client, auth_headers(student), category.id)).json()["data"]["complaint"]["id"]
        await set_status(client, auth_headers(staff), complaint_id, "In Progress")
        await dispatcher.drain(timeout=5)
        realtime_sink.events.clear()
        mailer.sent.clear()

        response = await set_status(client, auth_headers(staff), complaint_id, "In Progress", "Technician on site")
        await dispatcher.drain(timeout=5)

        assert response.status_code == 200
        complaint = response.json()["data"]["complaint"]
        assert complaint["status"] == "In Progress"
        assert complaint["remarks"] == "Technician on site"
        assert realtime_sink.events == []
        assert mailer.sent == []

    @pytest.mark.asyncio
    async def test_other_category_staff_denied(
        self, client: AsyncClient, student, other_staff, category, auth_headers
    ):
        """Test staff cannot update another category's complaint"""
        complaint_id = (await submit(client, auth_headers(student), category.id)).json()["data"]["complaint"]["id"]

        response = await set_status(client, auth_headers(other_staff), complaint_id, "In Progress")

        assert response.status_code == 403
        assert response.json()["message"] == "Access denied. This complaint belongs to a different category."

    @pytest.mark.asyncio
    async def test_student_cannot_update(self, client: AsyncClient, student, category, auth_headers):
        """Test owners cannot change their own complaint's status"""
        complaint_id = (await submit(client, auth_headers(student), category.id)).json()["data"]["complaint"]["id"]

        response = await set_status(client, auth_headers(student), complaint_id, "In Progress")

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_confirm_requires_pending(self, client: AsyncClient, student, category, auth_headers):
        """Test confirming an open complaint"""
        complaint_id = (await submit(client, auth_headers(student), category.id)).json()["data"]["complaint"]["id"]

        response = await client.post(f"/api/complaints/{complaint_id}/confirm", headers=auth_headers(student))

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_other_student_cannot_confirm(
        self, client: AsyncClient, student, other_student, admin, category, auth_headers
    ):
        """Test only the owner may confirm"""
        complaint_id = (await submit(client, auth_headers(student), category.id)).json()["data"]["complaint"]["id"]
        await set_status(client, auth_headers(admin), complaint_id, "Pending Student Verification")

        response = await client.post(f"/api/complaints/{complaint_id}/confirm", headers=auth_headers(other_student))

        assert response.status_code == 403


class TestSubmission:
    """Test complaint submission validation"""

    @pytest.mark.asyncio
    async def test_attachment_stored(self, client: AsyncClient, student, category, auth_headers):
        """Test an attachment gets a public URL"""
        response = await submit(
            client, auth_headers(student), category.id,
            files={"file": ("leak.jpg", b"\xff\xd8\xff\xe0 fake jpeg", "image/jpeg")},
        )

        assert response.status_code == 201
        file_url = response.json()["data"]["complaint"]["fileUrl"]
        assert file_url.startswith("/uploads/complaint-")
        assert file_url.endswith(".jpg")

    @pytest.mark.asyncio
    async def test_no_attachment(self, client: AsyncClient, student, category, auth_headers):
        """Test attachments are optional"""
        response = await submit(client, auth_headers(student), category.id)

        assert response.json()["data"]["complaint"]["fileUrl"] is None

    @pytest.mark.asyncio
    async def test_blocked_extension(self, client: AsyncClient, student, category, auth_headers):
        """Test executable attachments are refused"""
        response = await submit(
            client, auth_headers(student), category.id,
            files={"file": ("run.exe", b"MZ", "application/octet-stream")},
        )

        assert response.status_code == 400
        assert "not allowed" in response.json()["message"]

    @pytest.mark.asyncio
    async def test_attachment_too_large(self, client: AsyncClient, student, category, auth_headers, monkeypatch):
        """Test the attachment size cap"""
        monkeypatch.setattr(settings, "max_upload_bytes", 8)

        response = await submit(
            client, auth_headers(student), category.id,
            files={"file": ("photo.png", b"0123456789", "image/png")},
        )

        assert response.status_code == 413

    @pytest.mark.asyncio
    async def test_attachment_read_is_bounded(self, client: AsyncClient, student, category, auth_headers, monkeypatch):
        """Test only one byte past the cap is read from an oversized attachment"""
        monkeypatch.setattr(settings, "max_upload_bytes", 8)
        received = []

        class RecordingComplaints:
            async def submit(self, actor, title, description, category_id, attachment=None):
                received.append(len(attachment.content))
                raise PayloadTooLarge("File too large.")

        app.dependency_overrides[get_complaint_service] = lambda: RecordingComplaints()

        response = await submit(
            client, auth_headers(student), category.id,
            files={"file": ("photo.png", b"0" * 4096, "image/png")},
        )

        assert response.status_code == 413
        assert received == [9]

    @pytest.mark.asyncio
    async def test_unknown_category(self, client: AsyncClient, student, auth_headers, database):
        """Test submitting to a category that does not exist"""
        response = await submit(client, auth_headers(student), uuid.uuid4())

        assert response.status_code == 404
        assert response.json()["message"] == "Category not found."

    @pytest.mark.asyncio
    async def test_title_too_short(self, client: AsyncClient, student, category, auth_headers):
        """Test form validation"""
        response = await submit(client, auth_headers(student), category.id, title="Hi")

        assert response.status_code == 400
        assert "title" in response.json()["message"]

    @pytest.mark.asyncio
    async def test_staff_cannot_submit(self, client: AsyncClient, staff, category, auth_headers):
        """Test only students submit complaints"""
        response = await submit(client, auth_headers(staff), category.id)

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_requires_authentication(self, client: AsyncClient, category):
        """Test anonymous submissions are rejected"""
        response = await submit(client, {}, category.id)

        assert response.status_code == 401


class TestReading:
    """Test list and detail scoping"""

    @pytest.mark.asyncio
    async def test_my_complaints_only_own(
        self, client: AsyncClient, student, other_student, category, auth_headers
    ):
        """Test students see only their own complaints, newest first"""
        await submit(client, auth_headers(student), category.id, title="First issue")
        await submit(client, auth_headers(student), category.id, title="Second issue")
        await submit(client, auth_headers(other_student), category.id, title="Someone else")

        response = await client.get("/api/complaints/my", headers=auth_headers(student))

        data = response.json()["data"]
        assert [c["title"] for c in data["complaints"]] == ["Second issue", "First issue"]
        assert data["pagination"] == {"total": 2, "page": 1, "pages": 1}

    @pytest.mark.asyncio
    async def test_pagination(self, client: AsyncClient, student, category, auth_headers):
        """Test page and limit"""
        for n in range(3):
            await submit(client, auth_headers(student), category.id, title=f"Issue {n}")

        response = await client.get("/api/complaints/my?page=2&limit=2", headers=auth_headers(student))

        data = response.json()["data"]
        assert len(data["complaints"]) == 1
        assert data["pagination"] == {"total": 3, "page": 2, "pages": 2}

    @pytest.mark.asyncio
    async def test_assigned_queue(
        self, client: AsyncClient, student, staff, other_staff, category, auth_headers
    ):
        """Test staff see only their category's complaints"""
        await submit(client, auth_headers(student), category.id)

        mine = await client.get("/api/complaints/assigned", headers=auth_headers(staff))
        theirs = await client.get("/api/complaints/assigned", headers=auth_headers(other_staff))

        assert mine.json()["data"]["pagination"]["total"] == 1
        assert theirs.json()["data"]["pagination"]["total"] == 0

    @pytest.mark.asyncio
    async def test_unassigned_staff_queue_denied(self, client: AsyncClient, make_user, auth_headers):
        """Test staff without a category get an explicit denial"""
        from campusdesk.config import UserRole

        loose = await make_user(UserRole.CATEGORY_STAFF)

        response = await client.get("/api/complaints/assigned", headers=auth_headers(loose))

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_all_with_status_filter(self, client: AsyncClient, student, admin, category, auth_headers):
        """Test the admin list filters by status"""
        first = (await submit(client, auth_headers(student), category.id)).json()["data"]["complaint"]["id"]
        await submit(client, auth_headers(student), category.id)
        await set_status(client, auth_headers(admin), first, "In Progress")

        response = await client.get("/api/complaints/all?status=In%20Progress", headers=auth_headers(admin))

        complaints = response.json()["data"]["complaints"]
        assert [c["id"] for c in complaints] == [first]

    @pytest.mark.asyncio
    async def test_all_requires_admin(self, client: AsyncClient, student, auth_headers):
        """Test students cannot list every complaint"""
        response = await client.get("/api/complaints/all", headers=auth_headers(student))

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_detail_scoping(
        self, client: AsyncClient, student, other_student, staff, other_staff, admin, category, auth_headers
    ):
        """Test who may read a single complaint"""
        complaint_id = (await submit(client, auth_headers(student), category.id)).json()["data"]["complaint"]["id"]
        url = f"/api/complaints/{complaint_id}"

        assert (await client.get(url, headers=auth_headers(student))).status_code == 200
        assert (await client.get(url, headers=auth_headers(staff))).status_code == 200
        assert (await client.get(url, headers=auth_headers(admin))).status_code == 200
        assert (await client.get(url, headers=auth_headers(other_student))).status_code == 403
        assert (await client.get(url, headers=auth_headers(other_staff))).status_code == 403

    @pytest.mark.asyncio
    async def test_detail_not_found(self, client: AsyncClient, admin, auth_headers):
        """Test a missing complaint"""
        response = await client.get(f"/api/complaints/{uuid.uuid4()}", headers=auth_headers(admin))

        assert response.status_code == 404
        assert response.json()["success"] is False
        assert response.json()["message"] == "Complaint not found."
