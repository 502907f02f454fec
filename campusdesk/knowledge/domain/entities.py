"""
Knowledge Domain Entities
=========================

Pure Python business objects for the knowledge base and the campus
assistant: ingested document metadata, text chunking, chat replies and
the prompt builders.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Sequence
from uuid import UUID, uuid4


@dataclass
class TextChunk:
    """A contiguous slice of a document's text, already trimmed."""
    index: int
    text: str


def chunk_text(text: str, size: int = 1000, min_length: int = 20) -> List[TextChunk]:
    """
    Split text into fixed-size sequential chunks.

    Each slice is trimmed and kept only if at least ``min_length``
    characters remain. ``index`` is the slice position in the original
    sequence, so skipped slices leave gaps.
    """
    if size <= 0:
        raise ValueError("size must be positive")

    chunks = []
    for index, start in enumerate(range(0, len(text), size)):
        piece = text[start:start + size].strip()
        if len(piece) >= min_length:
            chunks.append(TextChunk(index=index, text=piece))
    return chunks


@dataclass
class KnowledgeDoc:
    """
    Metadata of an ingested document.

    Invariant: ``chunk_count == len(vector_ids)``; every id names one
    record in the vector index.
    """
    filename: str
    original_name: str
    uploaded_by: Optional[UUID]
    vector_ids: List[str] = field(default_factory=list)
    file_size: int = 0
    chunk_count: int = 0
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self):
        self.vector_ids = list(self.vector_ids)
        self.chunk_count = len(self.vector_ids)


@dataclass
class ChatReply:
    """Assistant reply with an optional category hint."""
    reply: str
    suggested_category: Optional[str] = None


class AssistantPromptBuilder:
    """Builds the grounded answer prompt."""

    SYSTEM_PROMPT = """You are the Campus Complaint Assistant, a helpful AI for university students and staff.

Use the provided context to answer the user's question accurately.
If the context doesn't contain the answer, use your general knowledge but mention that it is not from official documentation.
Keep responses helpful and concise, and use markdown formatting (bold, lists)."""

    NO_CONTEXT = "No specific documentation found for this query."
    SEPARATOR = "\n---\n"

    @classmethod
    def build_context(cls, passages: Iterable[str]) -> str:
        return cls.SEPARATOR.join(passages)

    @classmethod
    def build_prompt(cls, message: str, context: str) -> str:
        return f"""Context:
{context or cls.NO_CONTEXT}

User Question: {message}

Answer:"""

    @classmethod
    def get_system_prompt(cls) -> str:
        return cls.SYSTEM_PROMPT


class CategoryPromptBuilder:
    """Builds the single-label category classification prompt."""

    @classmethod
    def build_prompt(cls, message: str, labels: Sequence[str]) -> str:
        return f"""Based on this user message, which category does it fit best?
Choose ONLY ONE from: {", ".join(labels)}.
Give only the category name.

User Message: {message}"""

    @staticmethod
    def parse_label(raw: str, labels: Sequence[str], fallback: str) -> str:
        """
        Map a model answer onto the closed label set.

        Anything that is not one of the labels (ignoring case, quotes and
        trailing punctuation) becomes ``fallback``.
        """
        cleaned = raw.strip()
        previous = None
        while cleaned != previous:
            previous = cleaned
            cleaned = cleaned.strip("\"'`*.").strip()
        for label in labels:
            if cleaned.lower() == label.lower():
                return label
        return fallback
