"""
Core Exceptions
================

Custom exceptions for the application following clean architecture principles.

These exceptions define domain-specific errors that can be caught and handled
appropriately at the application boundaries. Each class carries the HTTP
status it is translated to by the API exception handler.
"""

from typing import Iterable, Optional


class ApplicationException(Exception):
    """Base exception for all application errors."""

    status_code: int = 500

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class DomainException(ApplicationException):
    """Base exception for domain logic violations."""

    status_code = 400


class ValidationException(ApplicationException):
    """Exception for validation errors."""

    status_code = 400


class AuthenticationError(ApplicationException):
    """Missing, invalid or expired credentials."""

    status_code = 401

    def __init__(self, message: str = "Authentication required.", details: Optional[dict] = None):
        super().__init__(message, details)


class AccessDenied(ApplicationException):
    """Authenticated, but not permitted to perform the operation."""

    status_code = 403

    def __init__(self, message: str = "Access denied.", details: Optional[dict] = None):
        super().__init__(message, details)


class ResourceNotFoundException(ApplicationException):
    """Exception when a requested resource is not found."""

    status_code = 404

    def __init__(
        self,
        resource_type: str,
        resource_id: Optional[str] = None,
        details: Optional[dict] = None
    ):
        self.resource_type = resource_type
        self.resource_id = resource_id
        message = f"{resource_type} not found."
        super().__init__(message, details or ({"id": resource_id} if resource_id else None))


class ConflictError(ApplicationException):
    """Duplicate unique value, or delete blocked by referencing records."""

    status_code = 409


class PayloadTooLarge(ValidationException):
    """Uploaded file exceeds the configured size cap."""

    status_code = 413


class ConfigurationException(ApplicationException):
    """Exception for configuration errors."""


# ========== Complaint lifecycle ==========

class NoChangesSpecified(DomainException):
    """Update request carried neither a status nor remarks."""

    def __init__(self, message: str = "No changes specified. Provide a status or remarks."):
        super().__init__(message)


class InvalidTransition(DomainException):
    """Requested status is not reachable from the complaint's current status."""

    def __init__(self, current: str, target: str, message: Optional[str] = None):
        self.current = current
        self.target = target
        super().__init__(
            message or f"Cannot move complaint from '{current}' to '{target}'.",
            {"current": current, "target": target}
        )


class ForbiddenTransition(ApplicationException):
    """The actor's role may not set the requested status."""

    status_code = 403

    def __init__(self, role: str, target: str, allowed: Iterable[str]):
        self.role = role
        self.target = target
        self.allowed = list(allowed)
        super().__init__(
            f"Staff can only set status to: {', '.join(self.allowed)}",
            {"target": target, "allowed": self.allowed}
        )


# ========== Knowledge ingestion ==========

class UnextractableDocument(DomainException):
    """The uploaded document has no extractable text layer."""

    status_code = 422

    def __init__(self, document_name: str):
        super().__init__(
            "Could not extract any text from the PDF. It might be a scanned image or empty.",
            {"document": document_name}
        )


class NoIngestibleContent(DomainException):
    """Every chunk of the document fell below the noise threshold."""

    status_code = 422

    def __init__(self, document_name: str):
        super().__init__(
            "No valid text chunks were found in the document (chunks too small).",
            {"document": document_name}
        )


# ========== External services ==========

class ExternalServiceException(ApplicationException):
    """Base exception for external service failures."""

    status_code = 503

    def __init__(
        self,
        service_name: str,
        message: str,
        details: Optional[dict] = None
    ):
        self.service_name = service_name
        super().__init__(f"{service_name}: {message}", details)


class ExternalServiceUnavailable(ExternalServiceException):
    """An external capability is not configured or unreachable."""


class LLMException(ExternalServiceException):
    """Exception for LLM API failures."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__("LLM Service", message, details)


class VectorStoreException(ExternalServiceException):
    """Exception for vector store failures."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__("Vector Store", message, details)
