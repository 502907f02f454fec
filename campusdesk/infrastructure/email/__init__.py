"""
Email Infrastructure
====================

SMTP mail transport with circuit breaker and retry logic.

Delivery is best-effort: ``send`` reports success as a bool and never
raises, so a broken mail server cannot fail the request that triggered
the email.
"""

import asyncio
import time
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

import aiosmtplib

from campusdesk.config import settings
from campusdesk.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


class CircuitState:
    """Circuit breaker states."""
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreaker:
    """
    Circuit breaker for preventing cascade failures.

    States:
    - CLOSED: Normal operation, requests pass through
    - OPEN: After N failures, reject all requests for M seconds
    - HALF_OPEN: After timeout, allow one test request
    """

    def __init__(
        self,
        failure_threshold: int = 5,
        recovery_timeout: float = 60.0
    ):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._last_failure_time: Optional[float] = None

    @property
    def state(self) -> str:
        """Get current circuit state."""
        if self._state == CircuitState.OPEN and self._last_failure_time is not None:
            elapsed = time.monotonic() - self._last_failure_time
            if elapsed >= self.recovery_timeout:
                self._state = CircuitState.HALF_OPEN
        return self._state

    def allow_request(self) -> bool:
        """Check if request should be allowed."""
        return self.state in (CircuitState.CLOSED, CircuitState.HALF_OPEN)

    def record_success(self) -> None:
        """Record successful request."""
        self._failure_count = 0
        self._state = CircuitState.CLOSED

    def record_failure(self) -> None:
        """Record failed request."""
        self._failure_count += 1
        self._last_failure_time = time.monotonic()

        if self._failure_count >= self.failure_threshold:
            self._state = CircuitState.OPEN
            logger.warning(
                "Circuit breaker opened",
                extra={
                    "failure_count": self._failure_count,
                    "recovery_timeout": self.recovery_timeout
                }
            )


@dataclass
class EmailMessage:
    """Outbound email."""
    to: str
    subject: str
    html: str
    text: Optional[str] = None


class SMTPMailer:
    """
    SMTP client with circuit breaker and retry logic.

    Handles sending HTML emails with:
    - Circuit breaker to prevent cascade failures
    - Exponential backoff retry
    - Timeout handling
    """

    def __init__(
        self,
        max_retries: int = 3,
        base_delay: float = 1.0,
        circuit_breaker: Optional[CircuitBreaker] = None,
    ):
        self._max_retries = max_retries
        self._base_delay = base_delay
        self._circuit_breaker = circuit_breaker or CircuitBreaker(
            failure_threshold=5,
            recovery_timeout=60
        )

    @property
    def is_configured(self) -> bool:
        return bool(settings.smtp_user and settings.smtp_password)

    @property
    def circuit_breaker(self) -> CircuitBreaker:
        return self._circuit_breaker

    def _build_mime(self, message: EmailMessage) -> MIMEMultipart:
        mime = MIMEMultipart("alternative")
        mime["Subject"] = message.subject
        mime["From"] = f'"{settings.email_from_name}" <{settings.email_from}>'
        mime["To"] = message.to
        if message.text:
            mime.attach(MIMEText(message.text, "plain"))
        mime.attach(MIMEText(message.html, "html"))
        return mime

    async def _deliver(self, mime: MIMEMultipart) -> None:
        use_tls = settings.smtp_port == 465
        await aiosmtplib.send(
            mime,
            hostname=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.smtp_user,
            password=settings.smtp_password,
            use_tls=use_tls,
            start_tls=not use_tls,
            timeout=settings.email_timeout_seconds,
        )

    async def send(self, message: EmailMessage) -> bool:
        """
        Send an email.

        Returns:
            True if sent successfully, False otherwise
        """
        if not self.is_configured:
            logger.info("SMTP credentials not configured, skipping email", extra={"subject": message.subject})
            return False

        if not self._circuit_breaker.allow_request():
            logger.warning(
                "Circuit breaker open, skipping email",
                extra={"subject": message.subject}
            )
            return False

        mime = self._build_mime(message)

        for attempt in range(self._max_retries):
            try:
                await self._deliver(mime)
                self._circuit_breaker.record_success()
                logger.info("Email sent", extra={"subject": message.subject})
                return True
            except Exception as e:
                logger.error(
                    "Email delivery failed",
                    extra={
                        "error": str(e),
                        "attempt": attempt + 1,
                        "subject": message.subject
                    }
                )

            if attempt < self._max_retries - 1:
                await asyncio.sleep(self._base_delay * (2 ** attempt))

        self._circuit_breaker.record_failure()
        return False
