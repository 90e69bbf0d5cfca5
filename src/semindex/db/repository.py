"""Repository pattern for all semindex database operations.

Single interface for: semantic chunks, text search over chunk names/purposes,
and per-model vector embeddings. The chunk table owns identity; embeddings
reference it with ``ON DELETE CASCADE``.
"""

from __future__ import annotations

import json
import sqlite3
from collections.abc import Iterable, Iterator

import numpy as np
from sqlite_vec import serialize_float32

from semindex.db.models import Complexity, SemanticChunk

_CHUNK_COLUMNS = (
    "id, name, file_path, type, subtype, content, start_line, "
    "complexity_score, purpose, metadata, updated_at"
)

_TEXT_SEARCH_LIMIT = 50


class Repository:
    """Data access layer for chunks and embeddings.

    Wraps an open sqlite3.Connection. The connection is owned by the caller
    and must be closed after use.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        """Initialise with an open database connection.

        Args:
            conn: An open sqlite3.Connection with foreign keys enabled and the
                schema initialised (see semindex.db.schema.initialize).
        """
        self._conn = conn

    @property
    def conn(self) -> sqlite3.Connection:
        return self._conn

    # ------------------------------------------------------------------
    # Chunks
    # ------------------------------------------------------------------

    def upsert_chunks(self, chunks: Iterable[SemanticChunk]) -> int:
        """Insert or replace *chunks* keyed by id, in a single transaction.

        Existing rows are overwritten in place (replace semantics, not merge),
        so embeddings attached to an unchanged id survive re-extraction.
        A storage error rolls the whole batch back and propagates.

        Returns:
            Number of rows written.
        """
        rows = [
            (
                c.id,
                c.name,
                c.file_path,
                c.category,
                c.node_kind,
                c.code,
                c.start_line,
                c.complexity.score,
                c.purpose,
                c.metadata_json(),
            )
            for c in chunks
        ]
        if not rows:
            return 0
        with self._conn:
            self._conn.executemany(
                """
                INSERT INTO semantic_chunks
                    (id, name, file_path, type, subtype, content, start_line,
                     complexity_score, purpose, metadata)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    name = excluded.name,
                    file_path = excluded.file_path,
                    type = excluded.type,
                    subtype = excluded.subtype,
                    content = excluded.content,
                    start_line = excluded.start_line,
                    complexity_score = excluded.complexity_score,
                    purpose = excluded.purpose,
                    metadata = excluded.metadata,
                    updated_at = datetime('now')
                """,
                rows,
            )
        return len(rows)

    def get_chunk(self, chunk_id: str) -> SemanticChunk | None:
        row = self._conn.execute(
            f"SELECT {_CHUNK_COLUMNS} FROM semantic_chunks WHERE id = ?",
            (chunk_id,),
        ).fetchone()
        return _row_to_chunk(row) if row else None

    def get_chunks_by_file(self, file_path: str) -> list[SemanticChunk]:
        """Return all chunks of *file_path*, ordered by start line."""
        rows = self._conn.execute(
            f"SELECT {_CHUNK_COLUMNS} FROM semantic_chunks "
            "WHERE file_path = ? ORDER BY start_line, id",
            (file_path,),
        ).fetchall()
        return [_row_to_chunk(r) for r in rows]

    def search_chunks_by_text(self, query: str) -> list[SemanticChunk]:
        """Substring match on chunk name or purpose (case-insensitive, max 50).

        ``%`` and ``_`` in *query* match literally.
        """
        escaped = query.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        pattern = f"%{escaped}%"
        rows = self._conn.execute(
            f"SELECT {_CHUNK_COLUMNS} FROM semantic_chunks "
            "WHERE name LIKE ? ESCAPE '\\' OR purpose LIKE ? ESCAPE '\\' "
            "ORDER BY file_path, start_line LIMIT ?",
            (pattern, pattern, _TEXT_SEARCH_LIMIT),
        ).fetchall()
        return [_row_to_chunk(r) for r in rows]

    def delete_chunk(self, chunk_id: str) -> bool:
        """Delete one chunk; its embeddings go with it (cascade)."""
        with self._conn:
            cur = self._conn.execute("DELETE FROM semantic_chunks WHERE id = ?", (chunk_id,))
        return cur.rowcount > 0

    def delete_chunks_by_file(self, file_path: str) -> int:
        """Delete every chunk of *file_path*. Returns the number removed."""
        with self._conn:
            cur = self._conn.execute(
                "DELETE FROM semantic_chunks WHERE file_path = ?", (file_path,)
            )
        return cur.rowcount

    def prune_file(self, file_path: str, keep_ids: Iterable[str]) -> int:
        """Delete chunks of *file_path* whose id is not in *keep_ids*.

        Chunks that survive a re-index keep their embeddings.
        """
        keep = set(keep_ids)
        stale = [
            row["id"]
            for row in self._conn.execute(
                "SELECT id FROM semantic_chunks WHERE file_path = ?", (file_path,)
            )
            if row["id"] not in keep
        ]
        if stale:
            with self._conn:
                self._conn.executemany(
                    "DELETE FROM semantic_chunks WHERE id = ?", [(cid,) for cid in stale]
                )
        return len(stale)

    def clear_chunks(self) -> int:
        with self._conn:
            cur = self._conn.execute("DELETE FROM semantic_chunks")
        return cur.rowcount

    # ------------------------------------------------------------------
    # Embeddings
    # ------------------------------------------------------------------

    def upsert_embedding(self, chunk_id: str, model: str, vector: Iterable[float]) -> None:
        """Store *vector* for (*chunk_id*, *model*) as a float32 BLOB.

        Raises:
            sqlite3.IntegrityError: If *chunk_id* does not exist.
        """
        values = [float(v) for v in vector]
        with self._conn:
            self._conn.execute(
                """
                INSERT INTO vector_embeddings (chunk_id, model_name, embedding, dimensions)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(chunk_id, model_name) DO UPDATE SET
                    embedding = excluded.embedding,
                    dimensions = excluded.dimensions,
                    created_at = datetime('now')
                """,
                (chunk_id, model, serialize_float32(values), len(values)),
            )

    def get_embedding(self, chunk_id: str, model: str) -> np.ndarray | None:
        row = self._conn.execute(
            "SELECT embedding FROM vector_embeddings WHERE chunk_id = ? AND model_name = ?",
            (chunk_id, model),
        ).fetchone()
        return _blob_to_vector(row["embedding"]) if row else None

    def has_embedding(self, chunk_id: str, model: str) -> bool:
        row = self._conn.execute(
            "SELECT 1 FROM vector_embeddings WHERE chunk_id = ? AND model_name = ?",
            (chunk_id, model),
        ).fetchone()
        return row is not None

    def iter_embeddings(
        self, model: str, batch_size: int = 100
    ) -> Iterator[list[tuple[str, np.ndarray]]]:
        """Yield stored vectors for *model* in batches of ``(chunk_id, vector)``."""
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        cur = self._conn.execute(
            "SELECT chunk_id, embedding FROM vector_embeddings WHERE model_name = ? ORDER BY chunk_id",
            (model,),
        )
        while True:
            rows = cur.fetchmany(batch_size)
            if not rows:
                break
            yield [(r["chunk_id"], _blob_to_vector(r["embedding"])) for r in rows]

    def clear_embeddings(self, model: str | None = None) -> int:
        """Delete embeddings for *model*, or for every model when None."""
        with self._conn:
            if model is None:
                cur = self._conn.execute("DELETE FROM vector_embeddings")
            else:
                cur = self._conn.execute(
                    "DELETE FROM vector_embeddings WHERE model_name = ?", (model,)
                )
        return cur.rowcount

    def list_models(self) -> list[str]:
        rows = self._conn.execute(
            "SELECT DISTINCT model_name FROM vector_embeddings ORDER BY model_name"
        ).fetchall()
        return [r[0] for r in rows]

    # ------------------------------------------------------------------
    # Stats
    # ------------------------------------------------------------------

    def stats(self) -> dict[str, float | int]:
        """Aggregate counts for status surfaces."""
        total_chunks, avg_size = self._conn.execute(
            "SELECT COUNT(*), AVG(LENGTH(content)) FROM semantic_chunks"
        ).fetchone()
        total_embeddings = self._conn.execute(
            "SELECT COUNT(*) FROM vector_embeddings"
        ).fetchone()[0]
        return {
            "total_chunks": total_chunks,
            "total_embeddings": total_embeddings,
            "average_chunk_size": round(avg_size or 0.0, 1),
        }


# ------------------------------------------------------------------
# Row → model helpers
# ------------------------------------------------------------------


def _blob_to_vector(blob: bytes) -> np.ndarray:
    return np.frombuffer(blob, dtype="<f4").copy()


def _row_to_chunk(row: sqlite3.Row) -> SemanticChunk:
    meta = json.loads(row["metadata"] or "{}")
    return SemanticChunk(
        id=row["id"],
        name=row["name"],
        file_path=row["file_path"],
        category=meta.get("category", row["type"]),
        node_kind=row["subtype"],
        code=row["content"],
        start_line=row["start_line"],
        complexity=Complexity(
            score=row["complexity_score"],
            level=meta.get("complexity_level", "low"),
        ),
        purpose=row["purpose"],
        business_domain=meta.get("business_domain", []),
        technical_patterns=meta.get("technical_patterns", []),
        tags=meta.get("tags", []),
        imports=meta.get("imports", []),
        types=meta.get("types", []),
        bundles=meta.get("bundles", []),
        is_exported=bool(meta.get("is_exported", False)),
        is_async=bool(meta.get("is_async", False)),
        updated_at=row["updated_at"],
    )
