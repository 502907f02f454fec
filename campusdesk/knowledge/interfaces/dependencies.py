"""
Knowledge Dependencies
======================

FastAPI dependencies wiring the ingestion pipeline and the assistant to
the LLM client and vector store created at startup.
"""

from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from campusdesk.config import settings
from campusdesk.infrastructure.database import get_session
from campusdesk.infrastructure.llm import ILLMClient
from campusdesk.infrastructure.storage import LocalFileStorage
from campusdesk.infrastructure.vectorstore import IVectorStore
from campusdesk.knowledge.application import ChatService, IngestionService
from campusdesk.knowledge.infrastructure import PdfTextExtractor, SQLAlchemyKnowledgeRepository


def get_llm_client(request: Request) -> Optional[ILLMClient]:
    return getattr(request.app.state, "llm_client", None)


def get_vector_store(request: Request) -> Optional[IVectorStore]:
    return getattr(request.app.state, "vector_store", None)


def get_knowledge_storage() -> LocalFileStorage:
    return LocalFileStorage(settings.upload_dir, settings.knowledge_subdir)


def get_ingestion_service(
    session: AsyncSession = Depends(get_session),
    storage: LocalFileStorage = Depends(get_knowledge_storage),
    llm_client: Optional[ILLMClient] = Depends(get_llm_client),
    vector_store: Optional[IVectorStore] = Depends(get_vector_store),
) -> IngestionService:
    return IngestionService(
        SQLAlchemyKnowledgeRepository(session),
        PdfTextExtractor(),
        storage,
        llm_client,
        vector_store,
    )


def get_chat_service(
    llm_client: Optional[ILLMClient] = Depends(get_llm_client),
    vector_store: Optional[IVectorStore] = Depends(get_vector_store),
) -> ChatService:
    return ChatService(llm_client, vector_store)
