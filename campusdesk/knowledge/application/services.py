"""
Knowledge Application Services
===============================

Knowledge ingestion (PDF -> chunks -> embeddings -> vector index ->
metadata row) and the retrieval-augmented campus assistant.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional
from uuid import UUID, uuid4

from campusdesk.config import settings
from campusdesk.core import (
    Actor,
    ExternalServiceUnavailable,
    NoIngestibleContent,
    Operation,
    PayloadTooLarge,
    ResourceNotFoundException,
    UnextractableDocument,
    ValidationException,
    access_policy,
)
from campusdesk.infrastructure.llm import ILLMClient
from campusdesk.infrastructure.storage import file_extension
from campusdesk.infrastructure.vectorstore import IVectorStore, VectorRecord
from campusdesk.knowledge.domain import (
    AssistantPromptBuilder,
    CategoryPromptBuilder,
    ChatReply,
    KnowledgeDoc,
    chunk_text,
)
from campusdesk.shared.infrastructure.logging import get_logger, log_latency

logger = get_logger(__name__)


# ========== Read models ==========

@dataclass
class KnowledgeDocRecord:
    """A knowledge document joined with its uploader."""
    doc: KnowledgeDoc
    uploader_name: Optional[str] = None
    uploader_email: Optional[str] = None


# ========== Repository / Port Interfaces ==========

class IKnowledgeRepository(ABC):
    """Interface for knowledge document metadata."""

    @abstractmethod
    async def get(self, doc_id: UUID) -> Optional[KnowledgeDoc]:
        """Get a document by ID."""

    @abstractmethod
    async def add(self, doc: KnowledgeDoc) -> KnowledgeDoc:
        """Persist a new document row."""

    @abstractmethod
    async def delete(self, doc_id: UUID) -> None:
        """Delete a document row."""

    @abstractmethod
    async def list(self) -> List[KnowledgeDocRecord]:
        """All documents, newest first."""

    @abstractmethod
    async def commit(self) -> None:
        """Commit the unit of work."""


class ITextExtractor(ABC):

    @abstractmethod
    async def extract(self, content: bytes, name: str) -> str:
        """
        Extract plain text from a document.

        Raises:
            UnextractableDocument: the document cannot be parsed
        """


class IDocumentStorage(ABC):

    @abstractmethod
    async def save(self, content: bytes, original_name: str, prefix: str = "file"):
        """Store bytes; return an object with ``name`` and ``url``."""

    @abstractmethod
    async def delete(self, name: Optional[str]) -> bool:
        """Delete a stored file by name."""


# ========== Ingestion ==========

class IngestionService:
    """
    Knowledge base management.

    Ingest order: store file, extract, chunk, embed, upsert vectors,
    persist metadata. Delete order: vectors, backing file, metadata row.
    A failed vector delete aborts before any local state is removed.
    """

    ALLOWED_EXTENSION = ".pdf"

    def __init__(
        self,
        repository: IKnowledgeRepository,
        extractor: ITextExtractor,
        storage: IDocumentStorage,
        llm_client: Optional[ILLMClient],
        vector_store: Optional[IVectorStore],
    ):
        self._repository = repository
        self._extractor = extractor
        self._storage = storage
        self._llm = llm_client
        self._vector_store = vector_store

    def _require_index(self) -> None:
        if self._llm is None or self._vector_store is None or not self._vector_store.is_configured:
            raise ExternalServiceUnavailable(
                "Knowledge index",
                "Embedding or vector index service is not configured."
            )

    async def list(self, actor: Actor) -> List[KnowledgeDocRecord]:
        access_policy.authorize(actor, Operation.MANAGE_KNOWLEDGE)
        return await self._repository.list()

    async def ingest(self, actor: Actor, original_name: str, content: bytes) -> KnowledgeDoc:
        """
        Ingest a PDF into the knowledge base.

        Raises:
            ValidationException: not a PDF
            PayloadTooLarge: over the knowledge upload cap
            UnextractableDocument: no text layer
            NoIngestibleContent: every chunk is below the noise threshold
            ExternalServiceUnavailable: embeddings or index not configured
        """
        access_policy.authorize(actor, Operation.MANAGE_KNOWLEDGE)

        if file_extension(original_name) != self.ALLOWED_EXTENSION:
            raise ValidationException("Only PDF files are allowed.", {"filename": original_name})
        if len(content) > settings.max_knowledge_upload_bytes:
            raise PayloadTooLarge(
                f"File too large. Maximum size is {settings.max_knowledge_upload_bytes // (1024 * 1024)}MB."
            )

        self._require_index()

        stored = await self._storage.save(content, original_name, prefix="knowledge")
        try:
            with log_latency(logger, "knowledge_ingest", document=original_name):
                doc = await self._ingest(actor, stored.name, original_name, content)
        except Exception:
            await self._storage.delete(stored.name)
            raise

        return doc

    async def _ingest(self, actor: Actor, filename: str, original_name: str, content: bytes) -> KnowledgeDoc:
        text = await self._extractor.extract(content, original_name)
        if not text or not text.strip():
            raise UnextractableDocument(original_name)
        logger.info("Text extracted", extra={"document": original_name, "characters": len(text)})

        chunks = chunk_text(text, settings.chunk_size, settings.min_chunk_length)
        if not chunks:
            raise NoIngestibleContent(original_name)

        records = []
        for chunk in chunks:
            embedding = await self._llm.generate_embedding(chunk.text)
            records.append(VectorRecord(
                id=f"{uuid4().hex}_{chunk.index}",
                embedding=embedding.embedding,
                text=chunk.text,
                metadata={"doc_name": original_name, "chunk_index": chunk.index},
            ))

        await self._vector_store.upsert(records)
        vector_ids = [record.id for record in records]

        doc = KnowledgeDoc(
            filename=filename,
            original_name=original_name,
            uploaded_by=actor.user_id,
            vector_ids=vector_ids,
            file_size=len(content),
        )
        try:
            doc = await self._repository.add(doc)
            await self._repository.commit()
        except Exception:
            logger.error("Metadata write failed, removing indexed vectors", extra={"document": original_name})
            await self._vector_store.delete(vector_ids)
            raise

        logger.info("Document ingested", extra={
            "doc_id": str(doc.id),
            "document": original_name,
            "chunk_count": doc.chunk_count,
        })
        return doc

    async def delete(self, actor: Actor, doc_id: UUID) -> None:
        access_policy.authorize(actor, Operation.MANAGE_KNOWLEDGE)

        doc = await self._repository.get(doc_id)
        if doc is None:
            raise ResourceNotFoundException("Document", str(doc_id))

        if doc.vector_ids:
            self._require_index()
            await self._vector_store.delete(doc.vector_ids)

        await self._storage.delete(doc.filename)
        await self._repository.delete(doc.id)
        await self._repository.commit()

        logger.info("Document deleted", extra={"doc_id": str(doc.id), "vectors": len(doc.vector_ids)})


# ========== Campus assistant ==========

GREETING_REPLY = (
    "**Hello!** Welcome to the Campus Complaint Assistant!\n\n"
    "I can help you with campus issues in dormitories, labs, internet, and classrooms. "
    "Please describe your issue!"
)

HELP_REPLY = (
    "**How I Can Help**\n\n"
    "I'm your campus AI assistant. I can:\n"
    "1. Answer specific questions based on campus documentation.\n"
    "2. Suggest the right category for your complaint.\n"
    "3. Provide troubleshooting steps.\n\n"
    "Just type your question!"
)

ERROR_REPLY = "I encountered an error processing your request. Please try again later."


class ChatService:
    """
    Retrieval-augmented campus assistant.

    Never raises to its caller: unconfigured services yield a static
    greeting or help text, and any failure yields ``ERROR_REPLY``.
    """

    def __init__(self, llm_client: Optional[ILLMClient], vector_store: Optional[IVectorStore]):
        self._llm = llm_client
        self._vector_store = vector_store

    @property
    def is_available(self) -> bool:
        return (
            self._llm is not None
            and self._vector_store is not None
            and self._vector_store.is_configured
        )

    @staticmethod
    def fallback_reply(message: str) -> ChatReply:
        if "help" in message.lower():
            return ChatReply(reply=HELP_REPLY)
        return ChatReply(reply=GREETING_REPLY)

    async def reply(self, message: str) -> ChatReply:
        if not self.is_available:
            logger.warning("Assistant unavailable, serving fallback reply")
            return self.fallback_reply(message)

        try:
            with log_latency(logger, "assistant_chat"):
                return await self._answer(message)
        except Exception as e:
            logger.error("Assistant reply failed", extra={"error": str(e)})
            return ChatReply(reply=ERROR_REPLY)

    async def _answer(self, message: str) -> ChatReply:
        query = await self._llm.generate_embedding(message)
        results = await self._vector_store.search(query.embedding, top_k=settings.top_k_results)

        context = AssistantPromptBuilder.build_context(r.content for r in results)
        answer = await self._llm.chat_completion(
            messages=[
                {"role": "system", "content": AssistantPromptBuilder.get_system_prompt()},
                {"role": "user", "content": AssistantPromptBuilder.build_prompt(message, context)},
            ],
            temperature=settings.llm_temperature,
            max_tokens=settings.llm_max_tokens,
            operation="rag_answer",
        )

        labels = settings.chat_category_labels
        label_response = await self._llm.chat_completion(
            messages=[{"role": "user", "content": CategoryPromptBuilder.build_prompt(message, labels)}],
            temperature=0.0,
            max_tokens=20,
            operation="category_classification",
        )
        label = CategoryPromptBuilder.parse_label(
            label_response.content, labels, settings.chat_fallback_label
        )

        return ChatReply(
            reply=answer.content.strip(),
            suggested_category=None if label == settings.chat_fallback_label else label,
        )
