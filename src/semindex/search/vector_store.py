"""Vector store — at-most-once chunk embedding and cosine similarity search.

Embeddings live in the ``vector_embeddings`` table keyed by
``(chunk_id, model_name)``. A stored row short-circuits regeneration, so
each chunk is sent to the backend at most once per model.

Search is an exhaustive scan: the query is embedded once, stored vectors are
read in fixed-size batches and scored with cosine similarity. Both the scan
and bulk embedding yield to the event loop between batches; they do not run
in parallel.
"""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import AsyncIterator, Sequence
from dataclasses import dataclass, field

import numpy as np

from semindex.db.models import SemanticChunk
from semindex.db.repository import Repository
from semindex.log import get_logger
from semindex.search.embeddings import EmbeddingBackend, EmbeddingError, LiteLLMBackend

log = get_logger(__name__)

DEFAULT_MAX_INPUT_CHARS = 8192
DEFAULT_BATCH_SIZE = 100
DEFAULT_LIMIT = 10
DEFAULT_THRESHOLD = 0.5


@dataclass
class SearchResult:
    chunk: SemanticChunk
    similarity: float

    def to_dict(self) -> dict:
        return {**self.chunk.to_dict(), "similarity": self.similarity}


@dataclass
class _IdLock:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    users: int = 0


def cosine_similarity(a: Sequence[float] | np.ndarray, b: Sequence[float] | np.ndarray) -> float:
    """Cosine similarity in [-1, 1]; 0.0 when either vector has zero magnitude."""
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    if va.shape != vb.shape:
        raise ValueError(f"Vector shapes differ: {va.shape} vs {vb.shape}")
    norm = float(np.linalg.norm(va) * np.linalg.norm(vb))
    if norm == 0.0:
        return 0.0
    return float(np.clip(np.dot(va, vb) / norm, -1.0, 1.0))


def embedding_text(chunk: SemanticChunk, max_chars: int = DEFAULT_MAX_INPUT_CHARS) -> str:
    """Text sent to the backend: name, purpose and code, cut to *max_chars*."""
    return f"{chunk.name} {chunk.purpose} {chunk.code}"[:max_chars]


class VectorStore:
    """Embeds stored chunks and answers similarity queries.

    Args:
        repo: Open repository; chunks must be persisted before embedding.
        backend: Embedding backend. Defaults to ``LiteLLMBackend``.
        max_input_chars: Character ceiling for embedding input text.
        batch_size: Rows per batch for bulk embedding and search scans.
    """

    def __init__(
        self,
        repo: Repository,
        backend: EmbeddingBackend | None = None,
        *,
        max_input_chars: int = DEFAULT_MAX_INPUT_CHARS,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        self._repo = repo
        self._backend = backend or LiteLLMBackend()
        self.max_input_chars = max_input_chars
        self.batch_size = batch_size
        self._locks: dict[str, _IdLock] = {}

    @property
    def model(self) -> str:
        return self._backend.model

    # ------------------------------------------------------------------
    # Embedding
    # ------------------------------------------------------------------

    async def embed_chunk(self, chunk: SemanticChunk) -> np.ndarray:
        """Return the chunk's vector, generating and storing it only if absent.

        Raises:
            EmbeddingError: If the backend fails.
            sqlite3.IntegrityError: If the chunk is not in the database.
        """
        async with self._claim(chunk.id):
            cached = self._repo.get_embedding(chunk.id, self.model)
            if cached is not None:
                return cached
            vectors = await self._backend.embed([embedding_text(chunk, self.max_input_chars)])
            vector = np.asarray(vectors[0], dtype=np.float32)
            self._repo.upsert_embedding(chunk.id, self.model, vector)
            log.debug("embedding_generated", chunk_id=chunk.id, model=self.model, dims=len(vector))
        return vector

    async def embed_chunks(self, chunks: Sequence[SemanticChunk]) -> int:
        """Embed every chunk that has no vector yet.

        One backend call per batch of missing chunks; control is yielded to
        the event loop after each batch. Ids being embedded by a concurrent
        call are waited for and then skipped.

        Returns:
            Number of embeddings newly generated.
        """
        generated = 0
        for start in range(0, len(chunks), self.batch_size):
            batch = chunks[start : start + self.batch_size]
            candidates = {c.id: c for c in batch if not self._repo.has_embedding(c.id, self.model)}
            if candidates:
                async with contextlib.AsyncExitStack() as stack:
                    # Sorted acquisition keeps overlapping bulk calls from deadlocking.
                    for chunk_id in sorted(candidates):
                        await stack.enter_async_context(self._claim(chunk_id))
                    pending = [
                        c for c in candidates.values() if not self._repo.has_embedding(c.id, self.model)
                    ]
                    if pending:
                        vectors = await self._backend.embed(
                            [embedding_text(c, self.max_input_chars) for c in pending]
                        )
                        if len(vectors) != len(pending):
                            raise EmbeddingError(
                                f"Embedding backend returned {len(vectors)} vectors "
                                f"for {len(pending)} inputs"
                            )
                        for chunk, vector in zip(pending, vectors):
                            self._repo.upsert_embedding(chunk.id, self.model, vector)
                        generated += len(pending)
            await asyncio.sleep(0)

        log.info("embedding_generated", count=generated, total=len(chunks), model=self.model)
        return generated

    @contextlib.asynccontextmanager
    async def _claim(self, chunk_id: str) -> AsyncIterator[None]:
        """Hold the per-id lock; the entry is dropped once nobody holds or awaits it."""
        entry = self._locks.get(chunk_id)
        if entry is None:
            entry = self._locks[chunk_id] = _IdLock()
        entry.users += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.users -= 1
            if entry.users == 0:
                del self._locks[chunk_id]

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    async def search(
        self,
        query: str,
        limit: int = DEFAULT_LIMIT,
        threshold: float = DEFAULT_THRESHOLD,
    ) -> list[SearchResult]:
        """Rank stored chunks by cosine similarity to *query*.

        Rows below *threshold*, rows with a zero-magnitude vector and rows
        whose dimensions differ from the query vector are never returned.

        Raises:
            EmbeddingError: If the query cannot be embedded.
        """
        if limit < 1:
            return []
        vectors = await self._backend.embed([query[: self.max_input_chars]])
        q = np.asarray(vectors[0], dtype=np.float64)
        q_norm = float(np.linalg.norm(q))
        if q_norm == 0.0:
            log.info("search_complete", query_len=len(query), scanned=0, matches=0)
            return []

        scored: list[tuple[str, float]] = []
        scanned = 0
        for batch in self._repo.iter_embeddings(self.model, self.batch_size):
            scanned += len(batch)
            rows = [(cid, vec) for cid, vec in batch if vec.shape == q.shape]
            if rows:
                matrix = np.vstack([vec for _, vec in rows]).astype(np.float64)
                norms = np.linalg.norm(matrix, axis=1)
                valid = norms > 0
                sims = np.zeros(len(rows))
                sims[valid] = np.clip(matrix[valid] @ q / (norms[valid] * q_norm), -1.0, 1.0)
                for (cid, _), sim, ok in zip(rows, sims, valid):
                    if ok and sim >= threshold:
                        scored.append((cid, float(sim)))
            await asyncio.sleep(0)

        scored.sort(key=lambda item: item[1], reverse=True)
        results: list[SearchResult] = []
        for chunk_id, sim in scored:
            chunk = self._repo.get_chunk(chunk_id)
            if chunk is None:
                continue
            results.append(SearchResult(chunk=chunk, similarity=sim))
            if len(results) >= limit:
                break

        log.info("search_complete", query_len=len(query), scanned=scanned, matches=len(results))
        return results
