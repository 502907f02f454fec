"""
Knowledge Controllers (API Routes)
==================================

FastAPI routes for the knowledge base (admin) and the campus assistant.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, UploadFile, status

from campusdesk.config import settings
from campusdesk.core import Actor, Operation, ValidationException, access_policy
from campusdesk.knowledge.application import (
    ChatRequest,
    ChatResponse,
    ChatService,
    IngestionService,
    KnowledgeDocEnvelope,
    KnowledgeDocListResponse,
    KnowledgeDocRecord,
    KnowledgeDocResponse,
    UploaderRef,
)
from campusdesk.knowledge.domain import KnowledgeDoc
from campusdesk.identity.interfaces.dependencies import get_actor
from campusdesk.knowledge.interfaces.dependencies import get_chat_service, get_ingestion_service
from campusdesk.shared.api.responses import ok

knowledge_router = APIRouter(prefix="/knowledge", tags=["Knowledge"])
chatbot_router = APIRouter(prefix="/chatbot", tags=["Chatbot"])


def _doc_response(doc: KnowledgeDoc, uploader: Optional[UploaderRef] = None) -> KnowledgeDocResponse:
    return KnowledgeDocResponse(
        id=doc.id,
        filename=doc.filename,
        original_name=doc.original_name,
        uploaded_by=uploader,
        chunk_count=doc.chunk_count,
        vector_ids=doc.vector_ids,
        file_size=doc.file_size,
        created_at=doc.created_at,
        updated_at=doc.updated_at,
    )


def _record_response(record: KnowledgeDocRecord) -> KnowledgeDocResponse:
    uploader = None
    if record.doc.uploaded_by is not None:
        uploader = UploaderRef(
            id=record.doc.uploaded_by,
            name=record.uploader_name,
            email=record.uploader_email,
        )
    return _doc_response(record.doc, uploader)


# ========== Knowledge Routes ==========

@knowledge_router.post("", status_code=status.HTTP_201_CREATED)
async def upload_document(
    file: UploadFile = File(None),
    actor: Actor = Depends(get_actor),
    service: IngestionService = Depends(get_ingestion_service),
):
    """Upload a PDF and index it for the assistant."""
    access_policy.authorize(actor, Operation.MANAGE_KNOWLEDGE)
    if file is None or not file.filename:
        raise ValidationException("No PDF file uploaded.")

    content = await file.read(settings.max_knowledge_upload_bytes + 1)
    doc = await service.ingest(actor, file.filename, content)
    return ok(
        KnowledgeDocEnvelope(doc=_doc_response(doc, UploaderRef(id=actor.user_id))),
        "Document uploaded and indexed successfully.",
    )


@knowledge_router.get("")
async def list_documents(
    actor: Actor = Depends(get_actor),
    service: IngestionService = Depends(get_ingestion_service),
):
    records = await service.list(actor)
    return ok(KnowledgeDocListResponse(documents=[_record_response(r) for r in records]))


@knowledge_router.delete("/{doc_id}")
async def delete_document(
    doc_id: UUID,
    actor: Actor = Depends(get_actor),
    service: IngestionService = Depends(get_ingestion_service),
):
    await service.delete(actor, doc_id)
    return ok(message="Document deleted successfully.")


# ========== Chatbot Routes ==========

@chatbot_router.post("")
async def chat(
    payload: ChatRequest,
    actor: Actor = Depends(get_actor),
    service: ChatService = Depends(get_chat_service),
):
    """Ask the campus assistant. Always answers; failures become a fallback reply."""
    access_policy.authorize(actor, Operation.USE_CHATBOT)
    result = await service.reply(payload.message)
    return ok(ChatResponse(reply=result.reply, suggested_category=result.suggested_category))
