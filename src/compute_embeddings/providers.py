"""Embedding providers: OpenAI API or a local sentence-transformers model."""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Any, Protocol, Sequence

import openai
from openai import AsyncOpenAI
from sentence_transformers import SentenceTransformer

from common.errors import EmbeddingError
from common.settings import EmbeddingSettings
from common.vectors import is_usable_embedding

logger = logging.getLogger(__name__)


class EmbeddingProvider(Protocol):
    model: str

    async def embed(self, text: str) -> list[float]:
        """Return a vector for text or raise EmbeddingError."""
        ...


def _checked_vector(values: Sequence[float], dimensions: int | None) -> list[float]:
    vector = [float(v) for v in values]
    if not is_usable_embedding(vector, dimensions):
        raise EmbeddingError(
            "invalid_vector",
            f"unusable embedding (size={len(vector)}, expected={dimensions})",
        )
    return vector


class OpenAIEmbeddingProvider:
    def __init__(
        self,
        model: str = "text-embedding-3-small",
        dimensions: int | None = 1536,
        timeout_seconds: float = 20.0,
        max_retries: int = 2,
        client: Any | None = None,
    ):
        self.model = model
        self.dimensions = dimensions
        self.timeout_seconds = timeout_seconds
        self._client = client or AsyncOpenAI(
            api_key=os.environ.get("OPENAI_API_KEY"),
            base_url=os.environ.get("OPENAI_BASE_URL") or None,
            max_retries=max_retries,
        )

    async def embed(self, text: str) -> list[float]:
        if not text or not text.strip():
            raise EmbeddingError("empty_text", "nothing to embed")

        kwargs: dict[str, Any] = {"model": self.model, "input": text}
        if self.dimensions and self.model.startswith("text-embedding-3"):
            kwargs["dimensions"] = self.dimensions
        try:
            response = await asyncio.wait_for(
                self._client.embeddings.create(**kwargs),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError as exc:
            raise EmbeddingError("timeout", f"embedding timed out after {self.timeout_seconds}s") from exc
        except openai.APIStatusError as exc:
            raise EmbeddingError(f"api_error:{exc.status_code}", str(exc)) from exc
        except openai.OpenAIError as exc:
            raise EmbeddingError(f"api_error:{type(exc).__name__}", str(exc)) from exc

        if not response.data:
            raise EmbeddingError("empty_response", "provider returned no embedding")
        return _checked_vector(response.data[0].embedding, self.dimensions)


class SentenceTransformerEmbeddingProvider:
    """Local model; encoding runs in a worker thread so the event loop stays free."""

    def __init__(
        self,
        model: str = "all-MiniLM-L6-v2",
        dimensions: int | None = None,
        timeout_seconds: float = 20.0,
    ):
        self.model = model
        self.dimensions = dimensions
        self.timeout_seconds = timeout_seconds
        self._encoder: SentenceTransformer | None = None

    def _encode(self, text: str) -> list[float]:
        if self._encoder is None:
            logger.info("Loading model: %s", self.model)
            self._encoder = SentenceTransformer(self.model)
        embedding = self._encoder.encode(text, convert_to_numpy=True, show_progress_bar=False)
        return embedding.tolist()

    async def embed(self, text: str) -> list[float]:
        if not text or not text.strip():
            raise EmbeddingError("empty_text", "nothing to embed")
        try:
            values = await asyncio.wait_for(
                asyncio.to_thread(self._encode, text),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError as exc:
            raise EmbeddingError("timeout", f"embedding timed out after {self.timeout_seconds}s") from exc
        except (OSError, RuntimeError, ValueError) as exc:
            raise EmbeddingError(f"model_error:{type(exc).__name__}", str(exc)) from exc
        return _checked_vector(values, self.dimensions)


def build_embedding_provider(settings: EmbeddingSettings) -> EmbeddingProvider | None:
    """Build the configured provider, or None when embeddings are unavailable.

    None makes clustering use the title-key path for every article.
    """
    if settings.provider == "openai":
        if not os.environ.get("OPENAI_API_KEY"):
            logger.warning("OPENAI_API_KEY not set; clustering will use title keys only")
            return None
        return OpenAIEmbeddingProvider(
            model=settings.model,
            dimensions=settings.dimensions,
            timeout_seconds=settings.timeout_seconds,
            max_retries=settings.max_retries,
        )
    if settings.provider == "sentence-transformers":
        return SentenceTransformerEmbeddingProvider(
            model=settings.local_model,
            dimensions=settings.dimensions,
            timeout_seconds=settings.timeout_seconds,
        )
    if settings.provider == "none":
        return None
    raise ValueError(f"Unknown embedding provider: {settings.provider!r}")
