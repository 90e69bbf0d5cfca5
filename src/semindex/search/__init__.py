"""semindex similarity search — embedding backends and the vector store."""

from semindex.search.embeddings import EmbeddingBackend, EmbeddingError, LiteLLMBackend
from semindex.search.vector_store import SearchResult, VectorStore, cosine_similarity

__all__ = [
    "EmbeddingBackend",
    "EmbeddingError",
    "LiteLLMBackend",
    "SearchResult",
    "VectorStore",
    "cosine_similarity",
]
