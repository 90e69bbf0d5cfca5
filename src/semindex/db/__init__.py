"""semindex database layer."""

from semindex.db.connection import Database
from semindex.db.migrations import MIGRATIONS, run_migrations
from semindex.db.models import Complexity, SemanticChunk
from semindex.db.repository import Repository
from semindex.db.schema import initialize

__all__ = [
    "Database",
    "initialize",
    "run_migrations",
    "MIGRATIONS",
    "Complexity",
    "SemanticChunk",
    "Repository",
]
