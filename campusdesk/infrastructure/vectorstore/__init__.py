"""
Vector Store Infrastructure
============================

Milvus (Zilliz Cloud) vector index for knowledge chunks.

The store is an explicit capability: ``is_configured`` reports whether
credentials exist, and ``initialize`` must be awaited at startup before
any upsert, search or delete.
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional

from pymilvus import MilvusClient

from campusdesk.config import settings
from campusdesk.core import VectorStoreException
from campusdesk.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


@dataclass
class VectorRecord:
    """A chunk embedding ready for upsert."""
    id: str
    embedding: List[float]
    text: str
    metadata: dict = field(default_factory=dict)


@dataclass
class SearchResult:
    """Result from vector search."""
    content: str
    metadata: dict
    score: float
    id: Optional[str] = None


class IVectorStore(ABC):
    """Interface for vector index operations."""

    @property
    @abstractmethod
    def is_configured(self) -> bool:
        """Whether the index has credentials and can be initialized."""

    @abstractmethod
    async def initialize(self) -> None:
        """Connect and ensure the collection exists."""

    @abstractmethod
    async def upsert(self, records: List[VectorRecord]) -> None:
        """Insert or replace records by id."""

    @abstractmethod
    async def search(self, query_embedding: List[float], top_k: int = 5) -> List[SearchResult]:
        """Search for the nearest records."""

    @abstractmethod
    async def delete(self, ids: List[str]) -> None:
        """Delete records by id."""


class MilvusVectorStore(IVectorStore):
    """
    Zilliz Cloud (Managed Milvus) implementation of the vector index.

    For correct connection, find your cluster's Public Endpoint in the
    Zilliz Cloud Console. It should look like:
    https://inxxxxxxxxxxxxxxxxx.aws-us-west-2.vectordb-uat3.zillizcloud.com
    """

    _ID_MAX_LENGTH = 64

    def __init__(
        self,
        collection_name: Optional[str] = None,
        uri: Optional[str] = None,
        api_key: Optional[str] = None,
    ):
        self._collection_name = collection_name or settings.vector_collection_name
        self._dimension = settings.embedding_dimension
        self._uri = uri or settings.zilliz_uri
        self._api_key = api_key or settings.zilliz_api_key
        self._client: Optional[MilvusClient] = None
        self._initialized = False

    @property
    def is_configured(self) -> bool:
        return bool(self._uri and self._api_key)

    async def initialize(self) -> None:
        """Initialize Zilliz Cloud client and collection."""
        if self._initialized:
            return

        if not self.is_configured:
            raise VectorStoreException("ZILLIZ_URI / ZILLIZ_API_KEY not configured")

        try:
            self._client = MilvusClient(uri=self._uri, token=self._api_key)

            # Create collection if not exists
            has_collection = await asyncio.to_thread(
                self._client.has_collection, self._collection_name
            )
            if not has_collection:
                await asyncio.to_thread(
                    self._client.create_collection,
                    collection_name=self._collection_name,
                    dimension=self._dimension,
                    id_type="string",
                    max_length=self._ID_MAX_LENGTH,
                    metric_type="COSINE",
                )

            self._initialized = True
            logger.info("Vector store initialized", extra={"collection": self._collection_name})

        except Exception as e:
            raise VectorStoreException(f"Failed to initialize Milvus: {str(e)}")

    async def _require_client(self) -> MilvusClient:
        """Connect on first use when startup initialization was skipped or failed."""
        if not self._initialized or self._client is None:
            await self.initialize()
        return self._client

    async def upsert(self, records: List[VectorRecord]) -> None:
        """
        Upsert chunk records into the collection.

        Raises:
            VectorStoreException: If the upsert fails
        """
        client = await self._require_client()

        data = [
            {
                "id": record.id,
                "vector": record.embedding,
                "text": record.text,
                "doc_name": record.metadata.get("doc_name", ""),
                "chunk_index": record.metadata.get("chunk_index", 0),
            }
            for record in records
        ]

        try:
            await asyncio.to_thread(
                client.upsert, collection_name=self._collection_name, data=data
            )
        except Exception as e:
            raise VectorStoreException(f"Failed to upsert vectors: {str(e)}")

    async def search(
        self,
        query_embedding: List[float],
        top_k: int = 5
    ) -> List[SearchResult]:
        """
        Search for similar chunks.

        Raises:
            VectorStoreException: If search fails
        """
        client = await self._require_client()

        try:
            results = await asyncio.to_thread(
                client.search,
                collection_name=self._collection_name,
                data=[query_embedding],
                limit=top_k,
                output_fields=["text", "doc_name", "chunk_index"],
            )
        except Exception as e:
            raise VectorStoreException(f"Search failed: {str(e)}")

        formatted_results = []
        if results and len(results) > 0:
            for hit in results[0]:
                entity = hit.get("entity", {})
                formatted_results.append(SearchResult(
                    content=entity.get("text", ""),
                    metadata={
                        "doc_name": entity.get("doc_name", ""),
                        "chunk_index": entity.get("chunk_index", 0),
                    },
                    score=hit.get("distance", 0.0),
                    id=hit.get("id"),
                ))

        return formatted_results

    async def delete(self, ids: List[str]) -> None:
        """
        Delete records by primary key.

        Raises:
            VectorStoreException: If the delete fails
        """
        if not ids:
            return

        client = await self._require_client()

        try:
            await asyncio.to_thread(
                client.delete, collection_name=self._collection_name, ids=list(ids)
            )
        except Exception as e:
            raise VectorStoreException(f"Failed to delete vectors: {str(e)}")
