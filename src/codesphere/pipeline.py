"""
Analysis pipeline: scan -> extract -> resolve -> estimate -> layout.

Only an inaccessible root aborts the run (returned as ``Err``); every other
problem is folded into ``Diagnostics``.
"""

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List

from .analysis.complexity import ComplexityEstimator
from .analysis.resolver import DependencyResolver, ResolutionReport
from .config import ProjectConfig
from .core.errors import ScanError
from .core.graph import CodeGraph, NodeIndex
from .core.result import Err, Ok, Result
from .core.types import DependencyEdge, Diagnostics, FileMetrics, GraphNode
from .layout.engine import LayoutEngine, LayoutResult
from .parsing.base import FileExtraction
from .parsing.engine import ExtractionEngine, FileReader
from .scanning.scanner import ScanResult, TreeScanner

logger = logging.getLogger(__name__)


@dataclass
class AnalysisResult:
    index: NodeIndex
    graph: CodeGraph
    layout: LayoutResult
    diagnostics: Diagnostics
    duration_ms: float = 0.0

    @property
    def root(self) -> GraphNode:
        return self.index.root

    @property
    def edges(self) -> List[DependencyEdge]:
        return self.graph.edges()

    def to_dict(self) -> Dict[str, Any]:
        """Transport shape: node tree, flat edge list, position and radius maps."""
        return {
            "tree": self.root.model_dump(mode="json"),
            "edges": self.graph.to_dict()["edges"],
            "positions": {k: list(v) for k, v in self.layout.positions.items()},
            "radii": self.layout.radii,
            "districts": [d.model_dump(mode="json") for d in self.layout.districts],
            "diagnostics": self.diagnostics.model_dump(mode="json"),
        }


def build_diagnostics(
    scan: ScanResult,
    extractions: Dict[str, FileExtraction],
    report: ResolutionReport,
    graph: CodeGraph,
) -> Diagnostics:
    index = scan.index
    files = index.files()
    return Diagnostics(
        total_files=len(files),
        total_directories=len(index.directories()),
        total_size=index.root.size,
        average_complexity=sum(f.complexity for f in files) / len(files) if files else 0.0,
        unreadable_entries=list(scan.unreadable),
        parse_failures=sum(1 for e in extractions.values() if e.parse_failed),
        resolved_imports=report.resolved,
        unresolved_imports=report.unresolved,
        resolution_strategies=report.strategy_counts(),
        cyclic_components=len(graph.cyclic_components()),
    )


def analyze_project(
    root_dir: Path | str | None = None,
    config: ProjectConfig | None = None,
    read_file: FileReader | None = None,
) -> Result[AnalysisResult, ScanError]:
    """
    Run the full pipeline over one directory tree.

    Args:
        root_dir: Directory to analyze; defaults to ``config.scan.root_dir``.
        config: Scan, complexity and layout settings.
        read_file: Optional file-read capability (path -> bytes).
    """
    config = config or ProjectConfig()
    start_time = time.perf_counter()

    scanned = TreeScanner(config.scan).scan(root_dir)
    if isinstance(scanned, Err):
        logger.error(scanned.error.message)
        return scanned
    scan = scanned.value
    index = scan.index

    extractions = ExtractionEngine(config.scan, read_file=read_file).extract_all(index, scan.root_path)
    for node_id, extraction in extractions.items():
        node = index.get(node_id)
        node.exports = list(extraction.exports)
        node.parse_failed = extraction.parse_failed
        signals = extraction.signals
        if signals is not None:
            node.metrics = FileMetrics(
                lines=signals.lines,
                functions=signals.functions,
                control_flow=signals.control_flow,
                jsx_elements=signals.jsx_elements,
                hook_calls=signals.hook_calls,
                dynamic_imports=extraction.dynamic_imports,
                commonjs_imports=extraction.commonjs_imports,
            )

    report = DependencyResolver().resolve(
        index, {node_id: e.imports for node_id, e in extractions.items()}
    )
    ComplexityEstimator(config.complexity).estimate(
        index, {node_id: e.signals for node_id, e in extractions.items()}
    )

    graph = CodeGraph.from_index(index, report.edge_strategies)
    diagnostics = build_diagnostics(scan, extractions, report, graph)
    layout = LayoutEngine(config.layout).run(index, graph.edges())

    duration_ms = (time.perf_counter() - start_time) * 1000
    logger.info(
        f"Analyzed {diagnostics.total_files} files, {graph.edge_count} edges in {duration_ms:.1f}ms"
    )
    return Ok(AnalysisResult(index=index, graph=graph, layout=layout, diagnostics=diagnostics, duration_ms=duration_ms))
