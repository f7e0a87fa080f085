"""
Dependency Resolver.

Maps raw import specifiers onto node ids of the same scan. Rules are tried in
order for each specifier and the first match wins:

1. exact path match
2. path + each inferred extension
3. directory index file (``<path>/index.<ext>``)
4. root-normalized match: leading project-root segments (src, app, lib, ...)
   stripped from both the candidate and the node paths

Unresolved specifiers are dropped and counted. Resolved edges are recorded
on both endpoints (``imports`` / ``imported_by``); cycles are allowed.
"""

import logging
import posixpath
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Sequence, Tuple

from ..config import PROJECT_ROOT_SEGMENTS, RELATIVE_PREFIXES, RESOLVE_EXTENSIONS, ROOT_RELATIVE_PREFIXES
from ..core.graph import NodeIndex
from ..core.types import GraphNode, NodeKind, ResolutionStrategy

logger = logging.getLogger(__name__)

Resolution = Tuple[str, ResolutionStrategy]


@dataclass
class ResolutionReport:
    resolved: int = 0
    unresolved: int = 0
    strategies: Counter = field(default_factory=Counter)
    edge_strategies: Dict[Tuple[str, str], ResolutionStrategy] = field(default_factory=dict)
    unresolved_specifiers: Dict[str, List[str]] = field(default_factory=dict)

    def strategy_counts(self) -> Dict[str, int]:
        return {str(strategy): count for strategy, count in sorted(self.strategies.items())}


class DependencyResolver:
    def __init__(
        self,
        extensions: Sequence[str] = RESOLVE_EXTENSIONS,
        root_segments: FrozenSet[str] = PROJECT_ROOT_SEGMENTS,
    ):
        self.extensions = tuple(extensions)
        self.root_segments = frozenset(root_segments)
        self._files: Dict[str, str] = {}
        self._normalized: Dict[str, str] = {}

    def index_files(self, index: NodeIndex) -> None:
        """Build the path lookups. Must see the complete scan first."""
        self._files = {}
        self._normalized = {}
        for node in sorted(index.files(), key=lambda n: n.path):
            self._files[node.path] = node.id
            self._normalized.setdefault(self.strip_root(node.path), node.id)

    def resolve(self, index: NodeIndex, imports: Mapping[str, Sequence[str]]) -> ResolutionReport:
        """
        Resolve every file's specifiers and write edges into the nodes.

        Args:
            index: Complete node arena of the scan.
            imports: Raw specifiers keyed by importing node id.
        """
        self.index_files(index)
        report = ResolutionReport()

        # Per-source pass, then a merge step that touches the targets
        pending: List[Tuple[GraphNode, List[Resolution]]] = []
        for node in index.walk():
            specifiers = imports.get(node.id)
            if not specifiers or node.kind != NodeKind.FILE:
                continue
            resolved: List[Resolution] = []
            for specifier in specifiers:
                match = self.resolve_specifier(node, specifier)
                if match is None:
                    report.unresolved += 1
                    report.unresolved_specifiers.setdefault(node.id, []).append(specifier)
                    continue
                resolved.append(match)
            pending.append((node, resolved))

        for source, resolved in pending:
            for target_id, strategy in resolved:
                target = index.get(target_id)
                if target is None or target_id in source.imports:
                    continue
                source.imports.add(target_id)
                target.imported_by.add(source.id)
                report.resolved += 1
                report.strategies[strategy] += 1
                report.edge_strategies[(source.id, target_id)] = strategy

        logger.info(f"Resolved {report.resolved} imports ({report.unresolved} unresolved)")
        return report

    def resolve_specifier(self, importer: GraphNode, specifier: str) -> Optional[Resolution]:
        candidate = self.candidate_path(importer, specifier)
        if candidate is None:
            return None

        match = self._lookup(candidate, self._files)
        if match is not None:
            return match

        normalized = self.strip_root(candidate)
        target_id = self._first(self._with_variants(normalized), self._normalized)
        if target_id is not None:
            return target_id, ResolutionStrategy.ROOT_NORMALIZED
        return None

    def candidate_path(self, importer: GraphNode, specifier: str) -> Optional[str]:
        """Turn a specifier into a root-relative POSIX path."""
        if specifier in (".", "..") or specifier.startswith(RELATIVE_PREFIXES):
            base = posixpath.dirname(importer.path)
            joined = posixpath.normpath(posixpath.join(base, specifier))
        else:
            for prefix in ROOT_RELATIVE_PREFIXES:
                if specifier.startswith(prefix):
                    joined = posixpath.normpath(specifier[len(prefix):] or ".")
                    break
            else:
                return None
        return joined

    def strip_root(self, path: str) -> str:
        parts = path.split("/")
        while len(parts) > 1 and parts[0] in self.root_segments:
            parts.pop(0)
        return "/".join(parts)

    def _lookup(self, candidate: str, files: Dict[str, str]) -> Optional[Resolution]:
        if candidate in files:
            return files[candidate], ResolutionStrategy.EXACT
        target_id = self._first((candidate + ext for ext in self.extensions), files)
        if target_id is not None:
            return target_id, ResolutionStrategy.EXTENSION
        target_id = self._first(self._index_paths(candidate), files)
        if target_id is not None:
            return target_id, ResolutionStrategy.INDEX
        return None

    def _index_paths(self, candidate: str) -> Iterable[str]:
        prefix = "" if candidate in (".", "") else f"{candidate}/"
        return (f"{prefix}index{ext}" for ext in self.extensions)

    def _with_variants(self, candidate: str) -> Iterable[str]:
        yield candidate
        for ext in self.extensions:
            yield candidate + ext
        yield from self._index_paths(candidate)

    @staticmethod
    def _first(paths: Iterable[str], lookup: Dict[str, str]) -> Optional[str]:
        for path in paths:
            if path in lookup:
                return lookup[path]
        return None
