"""Embedding provider: turns query and entry text into vectors.

``EmbeddingProvider`` is the contract the searcher depends on.
``LiteLLMEmbedder`` implements it with litellm as the routing layer, so any
provider litellm supports (OpenAI, Gemini, Ollama, ...) can be used.

Failures of any kind surface as :class:`EmbeddingUnavailable`. Nothing here
retries; the whole search is safe to retry by the caller.
"""

from __future__ import annotations

import math
from typing import Any, Protocol, runtime_checkable

from loguru import logger

from smriti.core.exceptions import EmbeddingUnavailable

from .config import EmbeddingConfig


@runtime_checkable
class EmbeddingProvider(Protocol):
    """Contract for turning text into fixed-length vectors."""

    async def embed(self, text: str) -> list[float]:
        """Embed a single text."""
        ...

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Embed several texts. Output order matches input order."""
        ...


def _field(item: Any, name: str) -> Any:
    """Read ``name`` from a response item that may be a dict or an object."""
    if isinstance(item, dict):
        return item.get(name)
    return getattr(item, name, None)


def _as_vector(raw: Any, dimensions: int | None) -> list[float]:
    if raw is None or isinstance(raw, (str, bytes)):
        raise EmbeddingUnavailable("Embedding response item has no vector")
    try:
        vector = [float(x) for x in raw]
    except (TypeError, ValueError) as e:
        raise EmbeddingUnavailable(f"Embedding response contains a non-numeric vector: {e}") from e
    if not vector or not all(math.isfinite(x) for x in vector):
        raise EmbeddingUnavailable("Embedding response contains an empty or non-finite vector")
    if dimensions is not None and len(vector) != dimensions:
        raise EmbeddingUnavailable(f"Expected {dimensions}-dimensional embeddings, got {len(vector)}")
    return vector


def order_embeddings(data: list[Any], expected: int, dimensions: int | None = None) -> list[list[float]]:
    """Put a provider's embedding items back into request order.

    Items carry the ``index`` of the input they belong to and may arrive in
    any order.

    Raises:
        EmbeddingUnavailable: If the items don't cover exactly ``0..expected-1``
            or a vector is malformed.
    """
    if data is None or len(data) != expected:
        got = "no" if data is None else len(data)
        raise EmbeddingUnavailable(f"Expected {expected} embeddings, got {got}")

    indexed: dict[int, list[float]] = {}
    for position, item in enumerate(data):
        index = _field(item, "index")
        if index is None:
            index = position
        if not isinstance(index, int) or isinstance(index, bool) or not 0 <= index < expected or index in indexed:
            raise EmbeddingUnavailable(f"Embedding response has an invalid index: {index!r}")
        indexed[index] = _as_vector(_field(item, "embedding"), dimensions)

    return [indexed[i] for i in range(expected)]


class LiteLLMEmbedder:
    """Embedding client backed by ``litellm.aembedding``.

    Example::

        embedder = LiteLLMEmbedder(EmbeddingConfig(model="text-embedding-3-small"))
        vector = await embedder.embed("long walk by the river")
    """

    def __init__(self, config: EmbeddingConfig | None = None):
        self.config = config or EmbeddingConfig()

    async def embed(self, text: str) -> list[float]:
        vectors = await self.embed_batch([text])
        return vectors[0]

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []

        try:
            import litellm
        except ImportError:
            raise ImportError("litellm is required for embeddings. Install with: pip install smriti") from None

        kwargs: dict[str, Any] = {
            "model": self.config.model,
            "input": list(texts),
            "timeout": self.config.timeout,
        }
        if self.config.dimensions:
            kwargs["dimensions"] = self.config.dimensions
        if self.config.api_key:
            kwargs["api_key"] = self.config.api_key

        try:
            response = await litellm.aembedding(**kwargs)
        except Exception as e:
            logger.error(f"Embedding request to {self.config.model} failed: {e}")
            raise EmbeddingUnavailable(f"Embedding provider unavailable: {e}") from e

        vectors = order_embeddings(_field(response, "data"), len(texts), self.config.dimensions)

        usage = _field(response, "usage")
        if usage is not None:
            tokens = _field(usage, "total_tokens") or _field(usage, "prompt_tokens") or 0
            logger.debug(f"Embedded {len(texts)} text(s) with {self.config.model} ({tokens} tokens)")
        return vectors
