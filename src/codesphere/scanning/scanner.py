"""
Tree Scanner.

Walks a directory tree with an explicit stack and builds one GraphNode per
file or directory. Entry inspection (stat) for each directory listing runs on
a bounded thread pool; directory sizes are aggregated bottom-up once every
child is known.
"""

import logging
import os
import stat
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, NamedTuple, Set, Tuple

from ..config import ScanConfig
from ..core.errors import ErrorKind, ScanError
from ..core.graph import NodeIndex
from ..core.result import Err, Ok, Result
from ..core.types import Category, GraphNode, NodeKind
from .categories import categorize_file

logger = logging.getLogger(__name__)


class EntryInfo(NamedTuple):
    name: str
    path: str
    is_dir: bool
    size: int
    mtime: float
    inode: Tuple[int, int]


@dataclass
class ScanResult:
    index: NodeIndex
    root_path: Path | None = None
    unreadable: List[str] = field(default_factory=list)
    scan_time_ms: float = 0.0

    @property
    def root(self) -> GraphNode:
        return self.index.root


def _relative(parent_path: str, name: str) -> str:
    return name if parent_path == "." else f"{parent_path}/{name}"


class TreeScanner:
    """
    Builds the node tree for one root directory.

    A single unreadable entry is skipped and logged; only an inaccessible
    root aborts the scan.
    """

    def __init__(self, config: ScanConfig | None = None):
        self.config = config or ScanConfig()
        self._logger = logging.getLogger(f"{__name__}.TreeScanner")

    def scan(self, root_dir: Path | str | None = None) -> Result[ScanResult, ScanError]:
        start_time = time.perf_counter()
        root = Path(root_dir) if root_dir is not None else self.config.root_dir

        try:
            resolved = root.expanduser().resolve()
            root_stat = resolved.stat()
        except OSError as e:
            return Err(ScanError(f"Root path is not accessible: {root}", ErrorKind.ROOT_NOT_FOUND, str(root), e))

        if not stat.S_ISDIR(root_stat.st_mode):
            return Err(ScanError(f"Root path is not a directory: {root}", ErrorKind.ROOT_NOT_FOUND, str(root)))

        root_name = resolved.name or str(resolved)
        root_node = GraphNode(
            id=root_name,
            name=root_name,
            kind=NodeKind.DIRECTORY,
            category=Category.DIRECTORY,
            path=".",
            depth=0,
            last_modified=root_stat.st_mtime,
        )
        index = NodeIndex(root_node)
        unreadable: List[str] = []
        visited: Set[Tuple[int, int]] = {(root_stat.st_dev, root_stat.st_ino)}

        stack: List[Tuple[str, GraphNode]] = [(str(resolved), root_node)]
        with ThreadPoolExecutor(max_workers=max(1, self.config.max_workers)) as pool:
            while stack:
                dir_path, dir_node = stack.pop()
                try:
                    with os.scandir(dir_path) as it:
                        entries = sorted(
                            (e for e in it if not self.config.should_skip(e.name)),
                            key=lambda e: e.name,
                        )
                except OSError as e:
                    if dir_node is root_node:
                        return Err(ScanError(f"Root path is not readable: {root}", ErrorKind.ROOT_NOT_FOUND, str(root), e))
                    self._record_unreadable(unreadable, dir_node.path, e)
                    continue

                inspected = pool.map(self._inspect, entries)
                for entry, outcome in zip(entries, inspected):
                    rel_path = _relative(dir_node.path, entry.name)
                    if isinstance(outcome, OSError):
                        self._record_unreadable(unreadable, rel_path, outcome)
                        continue
                    if outcome is None:
                        self._logger.debug(f"Skipping special file {rel_path}")
                        continue

                    if outcome.is_dir:
                        if outcome.inode in visited:
                            self._logger.debug(f"Skipping already visited directory {rel_path}")
                            continue
                        visited.add(outcome.inode)

                    child = self._make_node(root_name, dir_node, rel_path, outcome)
                    dir_node.children.append(child)
                    index.add(child)
                    if outcome.is_dir:
                        stack.append((outcome.path, child))

        self._finalize(index)
        scan_time_ms = (time.perf_counter() - start_time) * 1000
        self._logger.info(
            f"Scanned {len(index)} nodes under {resolved} in {scan_time_ms:.1f}ms "
            f"({len(unreadable)} unreadable)"
        )
        return Ok(ScanResult(index=index, root_path=resolved, unreadable=unreadable, scan_time_ms=scan_time_ms))

    def _inspect(self, entry: os.DirEntry) -> EntryInfo | OSError | None:
        """Stat one entry. Runs on the worker pool."""
        try:
            is_dir = entry.is_dir(follow_symlinks=self.config.follow_symlinks)
            # Broken symlinks raise here
            st = entry.stat()
        except OSError as e:
            return e

        if not is_dir and not stat.S_ISREG(st.st_mode):
            return None
        return EntryInfo(
            name=entry.name,
            path=entry.path,
            is_dir=is_dir,
            size=0 if is_dir else st.st_size,
            mtime=st.st_mtime,
            inode=(st.st_dev, st.st_ino),
        )

    def _make_node(self, root_name: str, parent: GraphNode, rel_path: str, info: EntryInfo) -> GraphNode:
        if info.is_dir:
            return GraphNode(
                id=f"{root_name}/{rel_path}",
                name=info.name,
                kind=NodeKind.DIRECTORY,
                category=Category.DIRECTORY,
                path=rel_path,
                depth=parent.depth + 1,
                parent_id=parent.id,
                last_modified=info.mtime,
            )
        return GraphNode(
            id=f"{root_name}/{rel_path}",
            name=info.name,
            kind=NodeKind.FILE,
            category=categorize_file(rel_path),
            path=rel_path,
            depth=parent.depth + 1,
            parent_id=parent.id,
            extension=Path(info.name).suffix.lower() or None,
            size=info.size,
            last_modified=info.mtime,
        )

    def _record_unreadable(self, unreadable: List[str], rel_path: str, error: OSError) -> None:
        self._logger.warning(f"Skipping unreadable entry {rel_path}: {error}")
        unreadable.append(rel_path)

    @staticmethod
    def _finalize(index: NodeIndex) -> None:
        """Order children (directories first, then by name) and aggregate sizes."""
        for node in index.bottom_up():
            if node.kind != NodeKind.DIRECTORY:
                continue
            node.children.sort(key=lambda c: (c.kind != NodeKind.DIRECTORY, c.name))
            node.size = sum(child.size for child in node.children)


def scan_tree(root_dir: Path | str, exclude_patterns: List[str] | None = None) -> Result[ScanResult, ScanError]:
    """Convenience wrapper: scan ``root_dir`` with optional exclusion patterns."""
    config = ScanConfig(root_dir=Path(root_dir))
    if exclude_patterns is not None:
        config.exclude_patterns = tuple(exclude_patterns)
    return TreeScanner(config).scan()
