"""
Knowledge Domain Layer
======================

Contains:
- Entities: KnowledgeDoc, TextChunk, ChatReply
- Chunking: chunk_text
- Prompt builders for the campus assistant
"""

from campusdesk.knowledge.domain.entities import (
    KnowledgeDoc,
    TextChunk,
    ChatReply,
    chunk_text,
    AssistantPromptBuilder,
    CategoryPromptBuilder,
)

__all__ = [
    "KnowledgeDoc",
    "TextChunk",
    "ChatReply",
    "chunk_text",
    "AssistantPromptBuilder",
    "CategoryPromptBuilder",
]
