"""
Campusdesk - Main Application
=============================

Campus complaint tracker with real-time notifications and a
retrieval-augmented campus assistant.

Modules:
- Identity: registration, login, token renewal, Google login, user admin
- Complaints: submission, the status lifecycle, categories, analytics
- Knowledge: PDF knowledge base and the campus assistant

Clean Architecture Layers:
- Interfaces: FastAPI controllers
- Application: Services and DTOs
- Domain: Entities, lifecycle rules and events
- Infrastructure: Database, LLM, vector store, email, file storage
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

# Configuration
from campusdesk.config import settings

# Infrastructure
from campusdesk.infrastructure.database import close_database, create_tables, init_database
from campusdesk.infrastructure.email import SMTPMailer
from campusdesk.infrastructure.llm import build_llm_client
from campusdesk.infrastructure.storage import PUBLIC_PREFIX
from campusdesk.infrastructure.vectorstore import MilvusVectorStore

# Notification fan-out
from campusdesk.complaints.application import NotificationDispatcher
from campusdesk.shared.infrastructure.realtime import connection_manager

# Module Routers
from campusdesk.identity.interfaces import auth_router, realtime_router, users_router
from campusdesk.complaints.interfaces import analytics_router, categories_router, complaints_router
from campusdesk.knowledge.interfaces import chatbot_router, knowledge_router

# Shared HTTP plumbing
from campusdesk.shared.api.middleware import (
    CorrelationIDMiddleware,
    LoggingMiddleware,
    ResponseTimeMiddleware,
    register_exception_handlers,
)
from campusdesk.shared.api.rate_limit import limiter
from campusdesk.shared.api.responses import ok

# Logging
from campusdesk.shared.infrastructure.logging import get_logger, setup_logging

logger = get_logger(__name__)

API_PREFIX = "/api"


def init_services(app: FastAPI) -> None:
    """
    Build the process-wide services and store them in app state.

    Synchronous so serverless entry points (lifespan off) can call it
    at import time.
    """
    setup_logging(settings.log_level, settings.environment)

    logger.info("Initializing database")
    init_database()

    logger.info("Initializing LLM client")
    llm_client = build_llm_client()

    vector_store = MilvusVectorStore()
    if not vector_store.is_configured:
        logger.info("Vector store not configured - assistant will serve fallback replies")

    mailer = SMTPMailer()
    if not mailer.is_configured:
        logger.info("SMTP not configured - emails will be skipped")

    # Store services in app state for dependency injection
    app.state.llm_client = llm_client
    app.state.vector_store = vector_store
    app.state.connection_manager = connection_manager
    app.state.notification_dispatcher = NotificationDispatcher(connection_manager, mailer)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan manager.

    STARTUP:
    1. Setup structured logging and build services
    2. Create database tables
    3. Connect the vector store (optional)

    SHUTDOWN:
    1. Wait briefly for in-flight notifications
    2. Close database connections
    """
    # === STARTUP ===
    init_services(app)
    logger.info("Starting Campusdesk", extra={
        "version": settings.app_version,
        "environment": settings.environment
    })

    logger.info("Creating database tables")
    await create_tables()

    vector_store = app.state.vector_store
    if vector_store.is_configured:
        logger.info("Initializing Milvus vector store")
        try:
            await vector_store.initialize()
        except Exception as e:
            logger.warning(f"Vector store not available: {e}")

    logger.info("Campusdesk started successfully")

    yield  # Application runs here

    # === SHUTDOWN ===
    logger.info("Shutting down Campusdesk")

    await app.state.notification_dispatcher.drain(timeout=10)
    await close_database()

    logger.info("Campusdesk shutdown complete")


# Create FastAPI application
app = FastAPI(
    title="Campusdesk API",
    description="""
    ## Campus Complaint Tracker

    Students file complaints, category staff work them through a small
    status lifecycle, and students confirm the fix.

    - **Auth** `/api/auth`: register, login, token renewal, Google login
    - **Complaints** `/api/complaints`: submit, list, update status, confirm
    - **Categories** `/api/categories` and **Users** `/api/users`: administration
    - **Analytics** `/api/analytics`: dashboard statistics
    - **Knowledge** `/api/knowledge` and **Chatbot** `/api/chatbot`: campus assistant
    - **Real-time** `WS /ws?token=...`: `complaintUpdated` events
    """,
    version=settings.app_version,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# === Rate limiting ===
app.state.limiter = limiter

# === CORS Middleware ===
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# === Custom Middleware (from shared) ===
app.add_middleware(CorrelationIDMiddleware)
app.add_middleware(ResponseTimeMiddleware)
app.add_middleware(LoggingMiddleware)
register_exception_handlers(app)

# === Include Module Routers ===
for router in (
    auth_router,
    users_router,
    complaints_router,
    categories_router,
    analytics_router,
    knowledge_router,
    chatbot_router,
):
    app.include_router(router, prefix=API_PREFIX)

app.include_router(realtime_router)

# === Uploaded files (read-only) ===
settings.upload_dir.mkdir(parents=True, exist_ok=True)
app.mount(PUBLIC_PREFIX, StaticFiles(directory=settings.upload_dir), name="uploads")


# === Health Check Endpoint ===

@app.get(f"{API_PREFIX}/health", tags=["Health"])
async def health_check(request: Request):
    """
    Health check endpoint for load balancers and orchestrators.

    Reports which optional capabilities are configured.
    """
    state = request.app.state
    vector_store = getattr(state, "vector_store", None)
    manager = getattr(state, "connection_manager", None)

    checks = {
        "llm_client": "available" if getattr(state, "llm_client", None) else "not_configured",
        "vector_store": "available" if vector_store is not None and vector_store.is_configured else "not_configured",
        "realtime_connections": manager.connection_count if manager else 0,
    }

    return ok({
        "status": "healthy",
        "version": settings.app_version,
        "environment": settings.environment,
        "checks": checks,
    })


# === Development Entry Point ===

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "campusdesk.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.environment == "development",
        log_level="info"
    )
