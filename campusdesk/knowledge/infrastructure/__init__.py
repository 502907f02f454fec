"""
Knowledge Infrastructure Layer
==============================

Contains:
- SQLAlchemy model and repository for document metadata
- PDF text extraction
"""

from campusdesk.knowledge.infrastructure.models import KnowledgeDocModel
from campusdesk.knowledge.infrastructure.repositories import SQLAlchemyKnowledgeRepository
from campusdesk.knowledge.infrastructure.extraction import PdfTextExtractor, extract_pdf_text

__all__ = [
    "KnowledgeDocModel",
    "SQLAlchemyKnowledgeRepository",
    "PdfTextExtractor",
    "extract_pdf_text",
]
