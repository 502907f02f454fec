"""
PDF Text Extraction
===================

PyPDF2 adapter for the knowledge ingestion pipeline.
"""

import asyncio
from io import BytesIO

from PyPDF2 import PdfReader
from PyPDF2.errors import PdfReadError

from campusdesk.core import UnextractableDocument
from campusdesk.knowledge.application.services import ITextExtractor
from campusdesk.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


def extract_pdf_text(content: bytes) -> str:
    """Concatenate the text layer of every page."""
    reader = PdfReader(BytesIO(content))
    pages = [page.extract_text() or "" for page in reader.pages]
    return "\n".join(pages)


class PdfTextExtractor(ITextExtractor):
    """Runs PyPDF2 in a worker thread; parsing is CPU bound."""

    async def extract(self, content: bytes, name: str) -> str:
        try:
            return await asyncio.to_thread(extract_pdf_text, content)
        except (PdfReadError, ValueError) as e:
            logger.warning("PDF could not be parsed", extra={"document": name, "error": str(e)})
            raise UnextractableDocument(name)
