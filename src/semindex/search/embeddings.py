"""Embedding backends — LiteLLM by default, injectable for tests.

A backend turns a list of texts into one vector per text. The vector store
never talks to LiteLLM directly, so a deterministic in-process backend can
stand in wherever network access is unavailable.
"""

from __future__ import annotations

import os
from typing import Protocol

import litellm

from semindex.log import get_logger

log = get_logger(__name__)

DEFAULT_EMBEDDING_MODEL = "openai/text-embedding-3-small"

_PROVIDER_KEYS = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "cohere": "COHERE_API_KEY",
    "gemini": "GEMINI_API_KEY",
    "voyage": "VOYAGE_API_KEY",
    "mistral": "MISTRAL_API_KEY",
}


class EmbeddingError(RuntimeError):
    """Raised when the embedding backend is unavailable or fails."""


class EmbeddingBackend(Protocol):
    model: str

    async def embed(self, texts: list[str]) -> list[list[float]]: ...


class LiteLLMBackend:
    """Calls ``litellm.aembedding()`` for the configured model.

    Args:
        model: LiteLLM model string in ``provider/model`` form.
    """

    def __init__(self, model: str = DEFAULT_EMBEDDING_MODEL) -> None:
        self.model = model

    async def embed(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []
        check_api_key(self.model)
        try:
            response = await litellm.aembedding(model=self.model, input=texts)
        except Exception as exc:  # LiteLLM maps provider errors onto many types
            raise EmbeddingError(f"Embedding request to '{self.model}' failed: {exc}") from exc

        vectors = [item["embedding"] for item in response.data]
        if len(vectors) != len(texts):
            raise EmbeddingError(
                f"Embedding backend returned {len(vectors)} vectors for {len(texts)} inputs"
            )
        return vectors


def check_api_key(model: str) -> None:
    """Raise EmbeddingError if the provider of *model* has no API key set."""
    provider = model.split("/")[0].lower() if "/" in model else ""
    required_env = _PROVIDER_KEYS.get(provider)
    if required_env and not os.environ.get(required_env):
        raise EmbeddingError(
            f"No API key found for provider '{provider}'. "
            f"Set the {required_env} environment variable."
        )
