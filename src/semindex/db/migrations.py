"""Forward-only migration runner for the semindex database schema."""

from __future__ import annotations

import sqlite3

# schema_version is the bootstrap table, created before migrations run.
_CREATE_SCHEMA_VERSION = """
CREATE TABLE IF NOT EXISTS schema_version (
    version     INTEGER NOT NULL,
    applied_at  DATETIME NOT NULL DEFAULT (datetime('now'))
)
"""

_V1_SQL = """
CREATE TABLE IF NOT EXISTS semantic_chunks (
    id                TEXT PRIMARY KEY,
    name              TEXT NOT NULL,
    file_path         TEXT NOT NULL,
    type              TEXT NOT NULL,
    subtype           TEXT NOT NULL,
    content           TEXT NOT NULL,
    start_line        INTEGER NOT NULL,
    complexity_score  INTEGER NOT NULL DEFAULT 1,
    purpose           TEXT NOT NULL,
    metadata          TEXT NOT NULL DEFAULT '{}',
    updated_at        DATETIME NOT NULL DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS vector_embeddings (
    chunk_id    TEXT NOT NULL REFERENCES semantic_chunks(id) ON DELETE CASCADE,
    model_name  TEXT NOT NULL,
    embedding   BLOB NOT NULL,
    dimensions  INTEGER NOT NULL,
    created_at  DATETIME NOT NULL DEFAULT (datetime('now')),
    PRIMARY KEY (chunk_id, model_name)
);

CREATE INDEX IF NOT EXISTS idx_chunks_file ON semantic_chunks(file_path);
CREATE INDEX IF NOT EXISTS idx_chunks_purpose ON semantic_chunks(purpose);
CREATE INDEX IF NOT EXISTS idx_embeddings_model ON vector_embeddings(model_name);
"""

# Append-only. Each entry: (version: int, sql: str).
# executescript() issues an implicit COMMIT before running.
MIGRATIONS: list[tuple[int, str]] = [
    (1, _V1_SQL),
]


def run_migrations(conn: sqlite3.Connection) -> None:
    """Apply all pending migrations in ascending version order.

    Idempotent: safe to call on a database at any version.
    """
    conn.execute(_CREATE_SCHEMA_VERSION)
    conn.commit()

    row = conn.execute("SELECT MAX(version) FROM schema_version").fetchone()
    current = row[0] if row[0] is not None else 0

    for version, sql in MIGRATIONS:
        if version > current:
            conn.executescript(sql)
            conn.execute(
                "INSERT INTO schema_version (version) VALUES (?)", (version,)
            )
            conn.commit()
