"""
Complexity Estimator.

Two passes over the tree:

1. raw structural score per file:
   ``log2(1 + loc) * w_lines + functions * w_fn + control_flow * w_cf
   + jsx_elements * w_jsx + hook_calls * w_hook``
2. connectivity rescaling per file:
   ``score *= 1 + log2(1 + in_degree + out_degree) * k``

Directories then receive the sum of their children's rescaled scores,
computed deepest first. Files without structural signals (non-source, too
large, unreadable) get the default score.
"""

import logging
import math
from typing import Mapping

from ..config import ComplexityWeights
from ..core.graph import NodeIndex
from ..core.types import NodeKind
from ..parsing.base import StructuralSignals

logger = logging.getLogger(__name__)


class ComplexityEstimator:
    def __init__(self, weights: ComplexityWeights | None = None):
        self.weights = weights or ComplexityWeights()

    def raw_score(self, signals: StructuralSignals | None) -> float:
        if signals is None:
            return self.weights.default
        w = self.weights
        return (
            math.log2(1 + signals.lines) * w.lines
            + signals.functions * w.function
            + signals.control_flow * w.control_flow
            + signals.jsx_elements * w.jsx_element
            + signals.hook_calls * w.hook_call
        )

    def connectivity_factor(self, in_degree: int, out_degree: int) -> float:
        return 1 + math.log2(1 + in_degree + out_degree) * self.weights.connectivity

    def estimate(self, index: NodeIndex, signals: Mapping[str, StructuralSignals | None]) -> None:
        """
        Write ``complexity`` on every node of the index.

        Must run after resolution: the rescaling reads ``imports`` and
        ``imported_by``.
        """
        for node in index.files():
            raw = self.raw_score(signals.get(node.id))
            node.complexity = raw * self.connectivity_factor(len(node.imported_by), len(node.imports))

        for node in index.bottom_up():
            if node.kind == NodeKind.DIRECTORY:
                node.complexity = sum(child.complexity for child in node.children)

        logger.debug(f"Estimated complexity for {len(index)} nodes (root={index.root.complexity:.2f})")
