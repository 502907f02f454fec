"""
Rate Limiting
=============

Process-local rate limits using slowapi (in-memory storage).

Usage:
    @router.post("/login")
    @limiter.limit(settings.auth_rate_limit)
    async def login(request: Request, ...):
        ...

Decorated endpoints must accept ``request: Request``.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from campusdesk.config import settings

limiter = Limiter(
    key_func=get_remote_address,
    storage_uri="memory://",
    strategy="fixed-window",
    enabled=settings.rate_limit_enabled,
)
