"""
LLM Client Infrastructure
==========================

Wrapper for LLM providers (Z.AI, OpenAI) providing a clean interface for
embedding and generation.

The knowledge module depends on the ``ILLMClient`` abstraction, never on a
concrete provider SDK.
"""

import asyncio
import hashlib
import random
import time
from abc import ABC, abstractmethod
from typing import List, Optional

from openai import AsyncOpenAI
from zai import ZaiClient

from campusdesk.config import settings
from campusdesk.core import ConfigurationException, LLMException
from campusdesk.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


class EmbeddingResult:
    """Result of an embedding generation."""

    def __init__(self, embedding: List[float], model: str):
        self.embedding = embedding
        self.model = model
        self.dimension = len(embedding)


class ChatCompletionResult:
    """Result of a chat completion."""

    def __init__(
        self,
        content: str,
        model: str,
        prompt_tokens: int,
        completion_tokens: int,
        latency_ms: int
    ):
        self.content = content
        self.model = model
        self.prompt_tokens = prompt_tokens
        self.completion_tokens = completion_tokens
        self.total_tokens = prompt_tokens + completion_tokens
        self.latency_ms = latency_ms


class ILLMClient(ABC):
    """
    Interface for LLM client operations.

    Only the two capabilities the application uses are defined:
    embedding a text and completing a chat.
    """

    @abstractmethod
    async def generate_embedding(self, text: str) -> EmbeddingResult:
        """Generate embedding for text."""

    @abstractmethod
    async def chat_completion(
        self,
        messages: List[dict],
        temperature: float = 0.3,
        max_tokens: int = 1000,
        operation: str = "chat_completion"
    ) -> ChatCompletionResult:
        """Generate chat completion."""


class ZAIILLMClient(ILLMClient):
    """
    Z.AI SDK client implementation for GLM models.

    The Z.AI SDK is synchronous, so calls run in a worker thread.
    """

    def __init__(self, api_key: Optional[str] = None):
        self._api_key = api_key or settings.zai_api_key
        if not self._api_key:
            raise ConfigurationException("Z.AI API key not configured")

        self._client = ZaiClient(api_key=self._api_key)
        self._model = settings.llm_model
        self._embedding_model = settings.embedding_model

    async def generate_embedding(self, text: str) -> EmbeddingResult:
        """
        Generate embedding for text using the Z.AI embedding model.

        Raises:
            LLMException: If embedding generation fails
        """
        try:
            response = await asyncio.to_thread(
                self._client.embeddings.create,
                model=self._embedding_model,
                input=text,
                dimensions=settings.embedding_dimension,
            )
            return EmbeddingResult(
                embedding=response.data[0].embedding,
                model=self._embedding_model
            )
        except Exception as e:
            raise LLMException(f"Embedding generation failed: {str(e)}")

    async def chat_completion(
        self,
        messages: List[dict],
        temperature: float = 0.3,
        max_tokens: int = 1000,
        operation: str = "chat_completion"
    ) -> ChatCompletionResult:
        """
        Generate chat completion.

        Args:
            messages: List of message dicts with 'role' and 'content'
            temperature: Sampling temperature (0-1)
            max_tokens: Maximum tokens to generate
            operation: Operation label for logs (chat_reply, chat_classification)

        Raises:
            LLMException: If completion fails
        """
        start_time = time.perf_counter()

        try:
            response = await asyncio.to_thread(
                self._client.chat.completions.create,
                model=self._model,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except Exception as e:
            raise LLMException(f"Chat completion failed: {str(e)}")

        latency_ms = int((time.perf_counter() - start_time) * 1000)
        content = response.choices[0].message.content or ""

        # Z.AI doesn't always return token usage, so we estimate
        prompt_tokens = len(str(messages))
        completion_tokens = len(content)

        logger.info("LLM completion", extra={
            "operation": operation,
            "model": self._model,
            "latency_ms": latency_ms,
        })

        return ChatCompletionResult(
            content=content,
            model=self._model,
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            latency_ms=latency_ms
        )


class OpenAILLMClient(ILLMClient):
    """
    OpenAI client implementation for GPT models.

    Provides async wrapper around OpenAI SDK operations.
    """

    def __init__(self, api_key: Optional[str] = None):
        self._api_key = api_key or settings.openai_api_key
        if not self._api_key:
            raise ConfigurationException("OpenAI API key not configured")

        self._client = AsyncOpenAI(api_key=self._api_key)
        self._model = settings.llm_model
        self._embedding_model = settings.embedding_model

    async def generate_embedding(self, text: str) -> EmbeddingResult:
        """
        Generate embedding for text using the OpenAI embedding model.

        Raises:
            LLMException: If embedding generation fails
        """
        try:
            response = await self._client.embeddings.create(
                model=self._embedding_model,
                input=text,
                dimensions=settings.embedding_dimension,
            )
            return EmbeddingResult(
                embedding=response.data[0].embedding,
                model=self._embedding_model
            )
        except Exception as e:
            raise LLMException(f"Embedding generation failed: {str(e)}")

    async def chat_completion(
        self,
        messages: List[dict],
        temperature: float = 0.3,
        max_tokens: int = 1000,
        operation: str = "chat_completion"
    ) -> ChatCompletionResult:
        """
        Generate chat completion using OpenAI GPT.

        Raises:
            LLMException: If completion fails
        """
        start_time = time.perf_counter()

        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens
            )
        except Exception as e:
            raise LLMException(f"Chat completion failed: {str(e)}")

        latency_ms = int((time.perf_counter() - start_time) * 1000)
        content = response.choices[0].message.content or ""
        usage = response.usage

        logger.info("LLM completion", extra={
            "operation": operation,
            "model": self._model,
            "latency_ms": latency_ms,
        })

        return ChatCompletionResult(
            content=content,
            model=self._model,
            prompt_tokens=usage.prompt_tokens if usage else 0,
            completion_tokens=usage.completion_tokens if usage else 0,
            latency_ms=latency_ms
        )


class MockLLMClient(ILLMClient):
    """
    Mock LLM client for local development and testing.

    Returns predictable responses without calling external APIs.
    """

    async def generate_embedding(self, text: str) -> EmbeddingResult:
        """Deterministic pseudo-embedding derived from the text hash."""
        seed = int(hashlib.sha256(text.encode()).hexdigest()[:8], 16)
        rng = random.Random(seed)
        embedding = [rng.uniform(-1, 1) for _ in range(settings.embedding_dimension)]
        return EmbeddingResult(embedding=embedding, model="mock-embedding")

    async def chat_completion(
        self,
        messages: List[dict],
        temperature: float = 0.3,
        max_tokens: int = 1000,
        operation: str = "chat_completion"
    ) -> ChatCompletionResult:
        """Return mock response based on operation type."""
        if "classif" in operation.lower():
            content = settings.chat_fallback_label
        else:
            content = "This is a mock assistant reply for testing purposes."

        return ChatCompletionResult(
            content=content,
            model="mock-model",
            prompt_tokens=100,
            completion_tokens=len(content.split()),
            latency_ms=1
        )


def build_llm_client(provider: Optional[str] = None) -> Optional[ILLMClient]:
    """
    Build the LLM client for the configured provider.

    Returns:
        The client, or None when the provider's API key is missing
        (the chat engine then serves its static fallback).
    """
    provider = provider or settings.llm_provider

    if provider == "mock":
        return MockLLMClient()

    try:
        if provider == "openai":
            return OpenAILLMClient()
        return ZAIILLMClient()
    except ConfigurationException as e:
        logger.warning("LLM client not configured", extra={"provider": provider, "error": e.message})
        return None
