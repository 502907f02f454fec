"""
Configuration Module
====================

Application settings and configuration management using Pydantic.
"""

from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Uses Pydantic for validation and type safety.
    """

    # ========== Application ==========
    app_name: str = Field(default="campusdesk", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(default="development", description="Environment name")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Root log level")

    # ========== Server ==========
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, description="Server port", ge=1, le=65535)

    # ========== Database ==========
    database_url: str = Field(
        default="postgresql+asyncpg://localhost:5432/campusdesk",
        description="Database connection URL (async driver)"
    )
    db_pool_size: int = Field(default=5, description="Database connection pool size", ge=1)
    db_max_overflow: int = Field(default=10, description="Max overflow connections", ge=0)

    # ========== Auth ==========
    jwt_secret: str = Field(default="change-me-access", description="Access token signing secret")
    jwt_refresh_secret: str = Field(default="change-me-refresh", description="Refresh token signing secret")
    jwt_algorithm: str = Field(default="HS256", description="JWT signing algorithm")
    access_token_expire_minutes: int = Field(default=15, ge=1)
    refresh_token_expire_days: int = Field(default=7, ge=1)
    refresh_cookie_name: str = Field(default="refreshToken")
    bcrypt_rounds: int = Field(default=12, ge=4, le=16)
    client_url: str = Field(
        default="http://localhost:5173",
        description="Front-end origin used for federated login redirects"
    )

    # ========== Google OAuth ==========
    google_client_id: Optional[str] = Field(default=None)
    google_client_secret: Optional[str] = Field(default=None)
    google_redirect_uri: str = Field(default="http://localhost:8000/api/auth/google/callback")

    # ========== Uploads ==========
    upload_dir: Path = Field(default=Path("uploads"), description="Root directory for uploaded files")
    knowledge_subdir: str = Field(default="knowledge")
    max_upload_bytes: int = Field(default=10 * 1024 * 1024, ge=1)
    max_knowledge_upload_bytes: int = Field(default=20 * 1024 * 1024, ge=1)
    blocked_extensions: List[str] = Field(
        default=[
            ".exe", ".bat", ".cmd", ".sh", ".ps1", ".vbs", ".js", ".jsx",
            ".msi", ".dll", ".com", ".scr", ".pif", ".hta", ".cpl", ".msc",
            ".inf", ".reg", ".ws", ".wsf", ".wsc", ".wsh",
        ],
        description="Attachment extensions rejected on complaint upload"
    )

    # ========== Email (SMTP) ==========
    smtp_host: str = Field(default="smtp.gmail.com")
    smtp_port: int = Field(default=587, ge=1, le=65535)
    smtp_user: Optional[str] = Field(default=None)
    smtp_password: Optional[str] = Field(default=None)
    email_from: str = Field(default="no-reply@campusdesk.local")
    email_from_name: str = Field(default="Campus Complaint Desk")
    email_timeout_seconds: float = Field(default=10.0, ge=0.1, le=60)

    # ========== LLM Settings ==========
    llm_provider: str = Field(default="zai", description="zai, openai or mock")
    zai_api_key: Optional[str] = Field(default=None, description="Z.AI API key")
    openai_api_key: Optional[str] = Field(default=None, description="OpenAI API key")
    llm_model: str = Field(default="glm-4.7", description="Model for generation and classification")
    embedding_model: str = Field(default="embedding-3", description="Embedding model")
    embedding_dimension: int = Field(default=768, description="Embedding vector dimension", ge=8)
    llm_temperature: float = Field(default=0.3, ge=0.0, le=1.0)
    llm_max_tokens: int = Field(default=1000, ge=1, le=8000)

    # ========== Zilliz Cloud (Managed Milvus) ==========
    zilliz_uri: str = Field(default="", description="Zilliz Cloud cluster URI")
    zilliz_api_key: str = Field(default="", description="Zilliz Cloud API key")
    vector_collection_name: str = Field(default="campus_knowledge")
    top_k_results: int = Field(default=5, description="Chunks retrieved per chat query", ge=1, le=20)

    # ========== Knowledge ingestion ==========
    chunk_size: int = Field(default=1000, description="Character size for document chunks", ge=100)
    min_chunk_length: int = Field(default=20, description="Chunks shorter than this are noise", ge=1)

    # ========== Chatbot ==========
    chat_category_labels: List[str] = Field(
        default=[
            "Dormitory Issues",
            "Laboratory Equipment",
            "Internet & Network",
            "Classroom Facilities",
            "Other",
        ]
    )
    chat_fallback_label: str = Field(default="Other")

    # ========== CORS ==========
    cors_origins: List[str] = Field(
        default=["http://localhost:5173", "http://localhost:3000"],
        description="Allowed CORS origins"
    )

    # ========== Rate Limiting ==========
    rate_limit_enabled: bool = Field(default=True)
    auth_rate_limit: str = Field(default="20/15 minutes")
    complaint_rate_limit: str = Field(default="10/15 minutes")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Ensure environment is one of allowed values."""
        allowed = {"development", "staging", "production", "testing"}
        if v not in allowed:
            raise ValueError(f"environment must be one of {allowed}")
        return v

    @field_validator("llm_provider")
    @classmethod
    def validate_llm_provider(cls, v: str) -> str:
        allowed = {"zai", "openai", "mock"}
        if v not in allowed:
            raise ValueError(f"llm_provider must be one of {allowed}")
        return v


@lru_cache()
def get_settings() -> Settings:
    """Returns cached Settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()


# ========== Constants ==========

class UserRole(str, Enum):
    """Roles a user can hold."""
    STUDENT = "student"
    CATEGORY_STAFF = "category_staff"
    ADMIN = "admin"


class ComplaintStatus(str, Enum):
    """Complaint lifecycle statuses, in lifecycle order."""
    OPEN = "Open"
    IN_PROGRESS = "In Progress"
    PENDING_VERIFICATION = "Pending Student Verification"
    RESOLVED = "Resolved"


COMPLAINT_UPDATED_EVENT = "complaintUpdated"
ADMIN_ROOM = f"role_{UserRole.ADMIN.value}"


def user_room(user_id) -> str:
    """Private real-time channel for a single user."""
    return f"user_{user_id}"


def role_room(role) -> str:
    """Shared real-time channel for every connection holding ``role``."""
    value = role.value if isinstance(role, UserRole) else role
    return f"role_{value}"
