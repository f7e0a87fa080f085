"""
Base Extraction Infrastructure.

Defines the extraction context shared by all extractors of one file, the
Extractor protocol, and the registry that runs them in priority order and
folds their findings into a FileExtraction.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Generator, List, Protocol, Union

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImportSpecifier:
    """Raw, internal-looking import specifier as written in the source."""
    value: str
    line: int = 0
    is_dynamic: bool = False
    is_commonjs: bool = False


@dataclass(frozen=True)
class ExportName:
    value: str
    line: int = 0


@dataclass(frozen=True)
class StructuralSignals:
    """Counts the complexity estimator turns into a score."""
    lines: int = 0
    functions: int = 0
    control_flow: int = 0
    jsx_elements: int = 0
    hook_calls: int = 0


Finding = Union[ImportSpecifier, ExportName, StructuralSignals]


@dataclass
class ExtractionContext:
    """
    Shared context for all extractors processing a single file.
    """

    file_path: Path
    node_id: str
    text: str
    extension: str = ""


@dataclass
class FileExtraction:
    """
    Per-file output of the extraction stage.

    ``imports`` and ``exports`` are ordered and de-duplicated. ``specifiers``
    keeps the first occurrence of each import with its line and kind.
    """

    node_id: str
    imports: List[str] = field(default_factory=list)
    exports: List[str] = field(default_factory=list)
    specifiers: List[ImportSpecifier] = field(default_factory=list)
    signals: StructuralSignals | None = None
    parse_failed: bool = False
    error: str | None = None

    @classmethod
    def failed(cls, node_id: str, error: str) -> "FileExtraction":
        return cls(node_id=node_id, parse_failed=True, error=error)

    @property
    def dynamic_imports(self) -> int:
        return sum(1 for s in self.specifiers if s.is_dynamic)

    @property
    def commonjs_imports(self) -> int:
        return sum(1 for s in self.specifiers if s.is_commonjs)

    def add(self, finding: Finding) -> None:
        if isinstance(finding, ImportSpecifier):
            if finding.value not in self.imports:
                self.imports.append(finding.value)
                self.specifiers.append(finding)
        elif isinstance(finding, ExportName):
            if finding.value not in self.exports:
                self.exports.append(finding.value)
        elif isinstance(finding, StructuralSignals):
            self.signals = finding


class Extractor(Protocol):
    """
    Universal extractor interface.

    Any class implementing this protocol can be registered to an
    ExtractorRegistry.
    """

    @property
    def name(self) -> str:
        """Unique name for debugging."""
        ...

    @property
    def priority(self) -> int:
        """Execution priority. Higher numbers run first."""
        ...

    def can_extract(self, ctx: ExtractionContext) -> bool:
        ...

    def extract(self, ctx: ExtractionContext) -> Generator[Finding, None, None]:
        ...


class ExtractorRegistry:
    """
    Manages and orchestrates the extractors applied to each file.
    """

    def __init__(self):
        self._extractors: List[Extractor] = []

    def register(self, extractor: Extractor) -> None:
        """Register a new extractor and sort by priority."""
        self._extractors.append(extractor)
        self._extractors.sort(key=lambda e: -e.priority)

    @property
    def extractors(self) -> List[Extractor]:
        return list(self._extractors)

    def extract_all(self, ctx: ExtractionContext) -> FileExtraction:
        """
        Run every applicable extractor against the context.

        A failing extractor marks the file as a parse failure; findings of
        the other extractors are discarded so the file degrades to empty
        import/export lists.
        """
        result = FileExtraction(node_id=ctx.node_id)
        for extractor in self._extractors:
            if not extractor.can_extract(ctx):
                continue
            try:
                for finding in extractor.extract(ctx):
                    result.add(finding)
            except Exception as e:
                logger.warning(f"Extractor {extractor.name} failed on {ctx.file_path}: {e}")
                return FileExtraction.failed(ctx.node_id, f"{extractor.name}: {e}")
        return result
