"""
Complaints Infrastructure Layer
===============================

Contains:
- SQLAlchemy models
- Repository implementations
"""

from campusdesk.complaints.infrastructure.models import CategoryModel, ComplaintModel
from campusdesk.complaints.infrastructure.repositories import (
    SQLAlchemyCategoryRepository,
    SQLAlchemyComplaintRepository,
)

__all__ = [
    "CategoryModel",
    "ComplaintModel",
    "SQLAlchemyCategoryRepository",
    "SQLAlchemyComplaintRepository",
]
