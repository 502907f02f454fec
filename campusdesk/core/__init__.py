"""
Core Module
============

Shared core utilities and abstractions used across the application.

This module contains framework-agnostic code that defines the fundamental
building blocks of the system: the error taxonomy and the access control
layer.
"""

from campusdesk.core.exceptions import (
    ApplicationException,
    DomainException,
    ValidationException,
    AuthenticationError,
    AccessDenied,
    ResourceNotFoundException,
    ConflictError,
    PayloadTooLarge,
    ConfigurationException,
    NoChangesSpecified,
    InvalidTransition,
    ForbiddenTransition,
    UnextractableDocument,
    NoIngestibleContent,
    ExternalServiceException,
    ExternalServiceUnavailable,
    LLMException,
    VectorStoreException,
)
from campusdesk.core.access import (
    Actor,
    AccessDecision,
    AccessPolicy,
    Operation,
    access_policy,
)

__all__ = [
    "ApplicationException",
    "DomainException",
    "ValidationException",
    "AuthenticationError",
    "AccessDenied",
    "ResourceNotFoundException",
    "ConflictError",
    "PayloadTooLarge",
    "ConfigurationException",
    "NoChangesSpecified",
    "InvalidTransition",
    "ForbiddenTransition",
    "UnextractableDocument",
    "NoIngestibleContent",
    "ExternalServiceException",
    "ExternalServiceUnavailable",
    "LLMException",
    "VectorStoreException",
    "Actor",
    "AccessDecision",
    "AccessPolicy",
    "Operation",
    "access_policy",
]
