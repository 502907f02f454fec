"""
Identity Domain Layer
=====================

Contains:
- Entities: User, FederatedProfile
"""

from campusdesk.identity.domain.entities import User, FederatedProfile

__all__ = ["User", "FederatedProfile"]
