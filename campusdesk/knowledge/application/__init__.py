"""
Knowledge Application Layer
===========================

Contains:
- Services: IngestionService, ChatService
- DTOs: Data transfer objects for API serialization
"""

from campusdesk.knowledge.application.dto import (
    ChatRequest,
    ChatResponse,
    UploaderRef,
    KnowledgeDocResponse,
    KnowledgeDocEnvelope,
    KnowledgeDocListResponse,
)
from campusdesk.knowledge.application.services import (
    IngestionService,
    ChatService,
    KnowledgeDocRecord,
    IKnowledgeRepository,
    ITextExtractor,
    IDocumentStorage,
    GREETING_REPLY,
    HELP_REPLY,
    ERROR_REPLY,
)

__all__ = [
    # DTOs
    "ChatRequest",
    "ChatResponse",
    "UploaderRef",
    "KnowledgeDocResponse",
    "KnowledgeDocEnvelope",
    "KnowledgeDocListResponse",
    # Services
    "IngestionService",
    "ChatService",
    "KnowledgeDocRecord",
    # Interfaces
    "IKnowledgeRepository",
    "ITextExtractor",
    "IDocumentStorage",
    # Replies
    "GREETING_REPLY",
    "HELP_REPLY",
    "ERROR_REPLY",
]
