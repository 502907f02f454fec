"""
Notification Fan-out
====================

Turns persisted complaint events into real-time pushes and emails.

Every handler runs as its own asyncio task, launched after the change
is committed and never awaited by the request. Real-time delivery and
email are independent: one failing or stalling never affects the other,
and no failure reaches the caller. Delivery is best-effort.
"""

import asyncio
from abc import ABC, abstractmethod
from html import escape
from typing import Any, Dict, Optional, Set

from campusdesk.config import (
    ADMIN_ROOM,
    COMPLAINT_UPDATED_EVENT,
    ComplaintStatus,
    settings,
    user_room,
)
from campusdesk.complaints.domain import (
    ComplaintConfirmed,
    ComplaintStatusChanged,
    ComplaintSubmitted,
)
from campusdesk.infrastructure.email import EmailMessage
from campusdesk.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


# ========== Ports ==========

class IRealtimeSink(ABC):
    """Pushes an event to every connection in a room."""

    @abstractmethod
    async def emit(self, room: str, event: str, data: Dict[str, Any]) -> int:
        """Return the number of connections reached."""


class IMailer(ABC):

    @abstractmethod
    async def send(self, message: EmailMessage) -> bool:
        """Send an email; return whether it was delivered."""


class IEventPublisher(ABC):
    """Receives events once the triggering change is durable."""

    @abstractmethod
    def publish(self, event: object) -> None:
        """Schedule handlers for ``event`` without waiting for them."""


# ========== Email templates ==========

_STATUS_COLORS = {
    ComplaintStatus.OPEN: ("#e3f2fd", "#1565c0"),
    ComplaintStatus.IN_PROGRESS: ("#fff3e0", "#e65100"),
    ComplaintStatus.PENDING_VERIFICATION: ("#ede7f6", "#5e35b1"),
    ComplaintStatus.RESOLVED: ("#e8f5e9", "#2e7d32"),
}

ACTION_REQUIRED = (
    "Action Required: Please log in to your account and confirm if the issue "
    "is resolved to your satisfaction."
)


def _layout(heading: str, body: str) -> str:
    return f"""<!DOCTYPE html>
<html>
<head><meta charset="utf-8"></head>
<body style="font-family: 'Segoe UI', Arial, sans-serif; background-color: #f4f7fa; margin: 0; padding: 20px;">
  <div style="max-width: 600px; margin: 0 auto; background: white; border-radius: 12px; overflow: hidden;">
    <div style="background: #4f46e5; padding: 30px; text-align: center;">
      <h1 style="color: white; margin: 0; font-size: 22px;">{heading}</h1>
    </div>
    <div style="padding: 30px;">
      {body}
      <p style="color: #888; font-size: 13px; margin-top: 30px;">{escape(settings.email_from_name)}</p>
    </div>
  </div>
</body>
</html>
"""


def _badge(status: ComplaintStatus) -> str:
    background, color = _STATUS_COLORS.get(status, _STATUS_COLORS[ComplaintStatus.OPEN])
    return (
        f'<span style="background: {background}; color: {color}; padding: 3px 10px; '
        f'border-radius: 12px; font-size: 13px;">{escape(status.value)}</span>'
    )


def render_submitted_email(event: ComplaintSubmitted) -> EmailMessage:
    body = f"""<p>Hello <strong>{escape(event.student_name)}</strong>,</p>
      <p>Your complaint has been successfully submitted. Here are the details:</p>
      <p><strong>Title:</strong> {escape(event.title)}</p>
      <p><strong>Status:</strong> {_badge(ComplaintStatus.OPEN)}</p>
      <p>We will review your complaint and get back to you shortly.</p>"""
    return EmailMessage(
        to=event.student_email,
        subject="Complaint Submitted",
        html=_layout("Complaint Submitted", body),
    )


def render_status_email(event: ComplaintStatusChanged) -> EmailMessage:
    remarks = f"<p><strong>Remarks:</strong> {escape(event.remarks)}</p>" if event.remarks else ""
    action = (
        f'<p style="font-weight: bold; margin-top: 15px;">{ACTION_REQUIRED}</p>'
        if event.status == ComplaintStatus.PENDING_VERIFICATION else ""
    )
    body = f"""<p>Hello <strong>{escape(event.student_name)}</strong>,</p>
      <p>Your complaint status has been updated:</p>
      <p><strong>Title:</strong> {escape(event.title)}</p>
      <p><strong>New Status:</strong> {_badge(event.status)}</p>
      {remarks}
      {action}"""
    return EmailMessage(
        to=event.student_email,
        subject=f"Complaint Status Updated: {event.status.value}",
        html=_layout("Status Update", body),
    )


# ========== Dispatcher ==========

class NotificationDispatcher(IEventPublisher):
    """
    Schedules real-time and email handlers as independent tasks.

    References to running tasks are kept until they finish so they are
    not garbage collected mid-flight; ``drain`` waits for all of them.
    """

    def __init__(self, sink: IRealtimeSink, mailer: IMailer):
        self._sink = sink
        self._mailer = mailer
        self._tasks: Set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def publish(self, event: object) -> None:
        if isinstance(event, ComplaintStatusChanged):
            self._spawn(self._push_status_changed(event), "realtime", event.complaint_id)
            self._spawn(self._send(render_status_email(event)), "email", event.complaint_id)
        elif isinstance(event, ComplaintConfirmed):
            self._spawn(self._push_confirmed(event), "realtime", event.complaint_id)
        elif isinstance(event, ComplaintSubmitted):
            self._spawn(self._send(render_submitted_email(event)), "email", event.complaint_id)
        else:
            logger.warning("Unhandled event type", extra={"event_type": type(event).__name__})

    def _spawn(self, coro, channel: str, complaint_id) -> None:
        task = asyncio.get_running_loop().create_task(self._guard(coro, channel, complaint_id))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    @staticmethod
    async def _guard(coro, channel: str, complaint_id) -> None:
        try:
            await coro
        except Exception as e:
            logger.error(
                "Notification failed",
                extra={"channel": channel, "complaint_id": str(complaint_id), "error": str(e)}
            )

    async def _emit(self, room: str, data: Dict[str, Any]) -> None:
        try:
            await self._sink.emit(room, COMPLAINT_UPDATED_EVENT, data)
        except Exception as e:
            logger.error(
                "Realtime emit failed",
                extra={"room": room, "complaint_id": data.get("complaintId"), "error": str(e)}
            )

    async def _push_status_changed(self, event: ComplaintStatusChanged) -> None:
        complaint_id = str(event.complaint_id)
        await self._emit(user_room(event.student_id), {
            "complaintId": complaint_id,
            "status": event.status.value,
            "remarks": event.remarks,
            "updatedAt": event.updated_at.isoformat(),
        })
        await self._emit(ADMIN_ROOM, {
            "complaintId": complaint_id,
            "status": event.status.value,
        })

    async def _push_confirmed(self, event: ComplaintConfirmed) -> None:
        payload = {"complaintId": str(event.complaint_id), "status": event.status.value}
        if event.staff_user_id is not None:
            await self._emit(user_room(event.staff_user_id), payload)
        await self._emit(ADMIN_ROOM, payload)

    async def _send(self, message: EmailMessage) -> None:
        delivered = await self._mailer.send(message)
        if not delivered:
            logger.warning("Email not delivered", extra={"subject": message.subject})

    async def drain(self, timeout: Optional[float] = None) -> None:
        """Wait for in-flight notifications (shutdown and tests)."""
        if not self._tasks:
            return
        await asyncio.wait(set(self._tasks), timeout=timeout)
