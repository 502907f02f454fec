"""Complaints Interfaces Layer - HTTP routers."""

from campusdesk.complaints.interfaces.controllers import (
    analytics_router,
    categories_router,
    complaints_router,
)

__all__ = ["complaints_router", "categories_router", "analytics_router"]
