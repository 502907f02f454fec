"""
Knowledge Application DTOs
==========================

Pydantic models for knowledge base and assistant endpoints.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import Field, field_validator

from campusdesk.shared.api.schemas import CamelModel


class ChatRequest(CamelModel):
    message: str = Field(..., min_length=1, max_length=1000)

    @field_validator("message")
    @classmethod
    def not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Message cannot be empty")
        return v


class ChatResponse(CamelModel):
    reply: str
    suggested_category: Optional[str] = None


class UploaderRef(CamelModel):
    id: UUID
    name: Optional[str] = None
    email: Optional[str] = None


class KnowledgeDocResponse(CamelModel):
    """Knowledge document metadata. ``uploaded_by`` is null once the uploader is deleted."""
    id: UUID
    filename: str
    original_name: str
    uploaded_by: Optional[UploaderRef] = None
    chunk_count: int
    vector_ids: List[str]
    file_size: int
    created_at: datetime
    updated_at: datetime


class KnowledgeDocEnvelope(CamelModel):
    doc: KnowledgeDocResponse


class KnowledgeDocListResponse(CamelModel):
    documents: List[KnowledgeDocResponse]
