"""SemanticSplitter — turns a list of project files into chunk records.

Pipeline per file: read -> parse -> extract units -> assemble context ->
score complexity -> classify -> tag. Problems local to one file (missing,
unsupported, too large, unparsable) are recorded as ``SkippedFile`` entries
and never stop the run.

Parsing and classification are synchronous and CPU-bound; callers serving
concurrent requests should offload ``extract()`` to a worker thread.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from semindex.db.models import SemanticChunk
from semindex.extract import complexity
from semindex.extract.base import BaseExtractor, CandidateUnit, FileStructure
from semindex.extract.bundles import bundles_for_file
from semindex.extract.code import CodeExtractor
from semindex.extract.context import assemble
from semindex.extract.documents import (
    CssExtractor,
    HtmlExtractor,
    JsonExtractor,
    MarkdownExtractor,
    SqlExtractor,
    TomlExtractor,
)
from semindex.extract.languages import Language, ParseError, ParserRegistry, language_for_path
from semindex.heuristics.conditions import RuleContext
from semindex.heuristics.manager import HeuristicsManager
from semindex.log import get_logger

log = get_logger(__name__)

LARGE_CHUNK_CHARS = 2000

SKIP_MISSING = "missing"
SKIP_UNSUPPORTED = "unsupported"
SKIP_TOO_LARGE = "too-large"
SKIP_PARSE_ERROR = "parse-error"
SKIP_READ_ERROR = "read-error"

_DOCUMENT_EXTRACTORS: dict[Language, type[BaseExtractor]] = {
    Language.JSON: JsonExtractor,
    Language.CSS: CssExtractor,
    Language.HTML: HtmlExtractor,
    Language.SQL: SqlExtractor,
    Language.MARKDOWN: MarkdownExtractor,
    Language.TOML: TomlExtractor,
}


@dataclass
class SkippedFile:
    path: str
    reason: str  # missing | unsupported | too-large | parse-error | read-error
    detail: str = ""


@dataclass
class ExtractionResult:
    """Chunks from one run plus every file that contributed none, and why."""

    chunks: list[SemanticChunk] = field(default_factory=list)
    skipped: list[SkippedFile] = field(default_factory=list)
    total_files: int = 0

    def summary(self) -> dict[str, float | int]:
        sizes = [len(c.code) for c in self.chunks]
        return {
            "total_files": self.total_files,
            "total_chunks": len(self.chunks),
            "skipped_files": len(self.skipped),
            "average_size": round(sum(sizes) / len(sizes)) if sizes else 0,
        }

    def skipped_by_reason(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for skip in self.skipped:
            counts[skip.reason] = counts.get(skip.reason, 0) + 1
        return counts


class SemanticSplitter:
    """Extracts classified ``SemanticChunk`` records from source files.

    Args:
        heuristics: Classification engine; a manager with the built-in rule
            set is created when omitted.
        max_chunk_size: Ceiling for a chunk's assembled code.
        min_function_size: Function units must be longer than this.
        min_structure_size: Structure units must be at least this long.
        max_file_size: Files with more characters than this are skipped.
        include_context: Prepend relevant imports/types to each unit.
    """

    def __init__(
        self,
        heuristics: HeuristicsManager | None = None,
        *,
        max_chunk_size: int = 3000,
        min_function_size: int = 40,
        min_structure_size: int = 20,
        max_file_size: int = 200_000,
        include_context: bool = True,
        registry: ParserRegistry | None = None,
    ) -> None:
        if max_chunk_size < 1:
            raise ValueError("max_chunk_size must be >= 1")
        self.heuristics = heuristics or HeuristicsManager()
        self.max_chunk_size = max_chunk_size
        self.min_function_size = min_function_size
        self.min_structure_size = min_structure_size
        self.max_file_size = max_file_size
        self.include_context = include_context
        self.registry = registry or ParserRegistry()
        self._extractors: dict[Language, BaseExtractor] = {}

    def extract(
        self,
        project_root: Path,
        files: Iterable[str],
        bundles: Mapping[str, Sequence[str]] | None = None,
    ) -> ExtractionResult:
        """Extract chunks from *files* (paths relative to *project_root*).

        Files are processed in the order given. Chunk ids are unique within
        the result; a later unit colliding with an earlier id is dropped.
        """
        result = ExtractionResult()
        seen: set[str] = set()
        for rel_path in files:
            result.total_files += 1
            try:
                chunks = self.extract_file(project_root, rel_path, bundles)
            except FileSkipped as skip:
                result.skipped.append(SkippedFile(rel_path, skip.reason, skip.detail))
                continue
            for chunk in chunks:
                if chunk.id in seen:
                    log.debug("duplicate_chunk_id", chunk_id=chunk.id)
                    continue
                seen.add(chunk.id)
                result.chunks.append(chunk)

        log.info("extraction_complete", **result.summary())
        return result

    def extract_file(
        self,
        project_root: Path,
        rel_path: str,
        bundles: Mapping[str, Sequence[str]] | None = None,
    ) -> list[SemanticChunk]:
        """Extract chunks from one file.

        Raises:
            FileSkipped: The file contributes no chunks; ``extract()``
                records it as a ``SkippedFile``.
        """
        rel_path = rel_path.replace("\\", "/")
        language = language_for_path(rel_path)
        if language is None:
            log.debug("file_skipped", path=rel_path, reason=SKIP_UNSUPPORTED)
            raise FileSkipped(SKIP_UNSUPPORTED, "no grammar for this extension")
        if not self.registry.available(language):
            log.debug("file_skipped", path=rel_path, reason=SKIP_UNSUPPORTED)
            raise FileSkipped(SKIP_UNSUPPORTED, f"{language.value} grammar is not installed")

        path = project_root / rel_path
        if not path.is_file():
            log.debug("file_skipped", path=rel_path, reason=SKIP_MISSING)
            raise FileSkipped(SKIP_MISSING, "file not found")
        try:
            raw = path.read_bytes()
        except OSError as exc:
            raise FileSkipped(SKIP_READ_ERROR, str(exc)) from exc

        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            log.warning("parse_failed", path=rel_path, error="not valid UTF-8")
            raise FileSkipped(SKIP_PARSE_ERROR, "not valid UTF-8") from exc

        if len(text) > self.max_file_size:
            log.warning(
                "file_skipped",
                path=rel_path,
                reason=SKIP_TOO_LARGE,
                size=len(text),
                limit=self.max_file_size,
            )
            raise FileSkipped(SKIP_TOO_LARGE, f"{len(text)} characters > {self.max_file_size}")

        try:
            tree = self.registry.parse(language, raw)
        except ParseError as exc:
            log.warning("parse_failed", path=rel_path, error=str(exc))
            raise FileSkipped(SKIP_PARSE_ERROR, str(exc)) from exc

        structure = self._extractor(language).extract(tree.root_node, raw, rel_path)
        file_bundles = bundles_for_file(rel_path, bundles)
        return [self._build_chunk(unit, structure, rel_path, file_bundles) for unit in structure.units]

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _extractor(self, language: Language) -> BaseExtractor:
        extractor = self._extractors.get(language)
        if extractor is None:
            if language.is_code:
                extractor = CodeExtractor(
                    language, self.min_function_size, self.min_structure_size
                )
            else:
                extractor = _DOCUMENT_EXTRACTORS[language](
                    self.min_function_size, self.min_structure_size
                )
            self._extractors[language] = extractor
        return extractor

    def _build_chunk(
        self,
        unit: CandidateUnit,
        structure: FileStructure,
        rel_path: str,
        file_bundles: list[str],
    ) -> SemanticChunk:
        assembled = assemble(
            unit,
            structure.imports,
            structure.types,
            max_size=self.max_chunk_size,
            include_context=self.include_context,
        )
        labels = self.heuristics.classify(
            RuleContext(
                name=unit.name,
                file_path=rel_path,
                node_kind=unit.node_kind,
                code=unit.code,
                imports=tuple(structure.imports),
                is_exported=unit.is_exported,
                is_async=unit.is_async,
            )
        )

        tags = [unit.node_kind]
        if unit.is_exported:
            tags.append("exported")
        if unit.is_async:
            tags.append("async")
        if len(unit.code) > LARGE_CHUNK_CHARS:
            tags.append("large")
        tags.append(assembled.level)

        return SemanticChunk(
            id=SemanticChunk.make_id(rel_path, unit.name, unit.start_line),
            name=unit.name,
            file_path=rel_path,
            category=unit.category,
            node_kind=unit.node_kind,
            code=assembled.code,
            start_line=unit.start_line,
            complexity=complexity.score(unit.code),
            purpose=labels.purpose,
            business_domain=labels.business_domain,
            technical_patterns=labels.technical_patterns,
            tags=tags,
            imports=list(structure.imports),
            types=structure.type_names,
            bundles=list(file_bundles),
            is_exported=unit.is_exported,
            is_async=unit.is_async,
        )


class FileSkipped(Exception):
    """Raised by ``extract_file`` when a file is skipped."""

    def __init__(self, reason: str, detail: str = "") -> None:
        super().__init__(f"{reason}: {detail}")
        self.reason = reason
        self.detail = detail
