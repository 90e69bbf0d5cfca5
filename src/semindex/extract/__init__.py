"""semindex structural extraction — grammars, extractors, context assembly."""

from semindex.extract.base import BaseExtractor, CandidateUnit, FileStructure
from semindex.extract.code import CodeExtractor
from semindex.extract.context import assemble
from semindex.extract.languages import Language, ParseError, ParserRegistry, language_for_path
from semindex.extract.splitter import (
    ExtractionResult,
    FileSkipped,
    SemanticSplitter,
    SkippedFile,
)

__all__ = [
    "BaseExtractor",
    "CandidateUnit",
    "CodeExtractor",
    "ExtractionResult",
    "FileSkipped",
    "FileStructure",
    "Language",
    "ParseError",
    "ParserRegistry",
    "SemanticSplitter",
    "SkippedFile",
    "assemble",
    "language_for_path",
]
