"""
Identity Interfaces Layer
=========================

Contains:
- Controllers: auth and user administration routes
- Realtime: authenticated WebSocket endpoint
- Dependencies: current user / actor resolution
"""

from campusdesk.identity.interfaces.controllers import auth_router, users_router
from campusdesk.identity.interfaces.realtime import realtime_router

__all__ = ["auth_router", "users_router", "realtime_router"]
