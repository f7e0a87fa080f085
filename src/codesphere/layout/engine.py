"""
Layout Engine.

Drives one layout run: ``IDLE -> PLACING -> RELAXING -> DONE``. Every run
rebuilds positions from scratch; nothing carries over from a previous run.
"""

import logging
import time
from typing import Dict, List, Sequence

import numpy as np
from pydantic import BaseModel, Field

from ..config import LayoutConfig
from ..core.errors import LayoutStateError
from ..core.graph import NodeIndex
from ..core.types import DependencyEdge, District, LayoutNode, NodeKind, Vec3
from .base import ALLOWED_TRANSITIONS, LayoutState, LayoutStrategy, layout_order
from .forces import ForceRelaxation
from .strategies import create_strategy

logger = logging.getLogger(__name__)


class LayoutResult(BaseModel):
    """Position map (every node) plus radius map (directories)."""
    strategy: LayoutStrategy
    iterations: int
    seed: int
    positions: Dict[str, Vec3] = Field(default_factory=dict)
    radii: Dict[str, float] = Field(default_factory=dict)
    districts: List[District] = Field(default_factory=list)
    elapsed_ms: float = 0.0

    def nodes(self) -> List[LayoutNode]:
        return [
            LayoutNode(id=node_id, position=position, radius=self.radii.get(node_id))
            for node_id, position in self.positions.items()
        ]


class LayoutEngine:
    def __init__(self, config: LayoutConfig | None = None):
        self.config = config or LayoutConfig()
        self._state = LayoutState.IDLE
        self._logger = logging.getLogger(f"{__name__}.LayoutEngine")

    @property
    def state(self) -> LayoutState:
        return self._state

    def _transition(self, target: LayoutState) -> None:
        if target not in ALLOWED_TRANSITIONS[self._state]:
            raise LayoutStateError(f"Invalid layout transition {self._state} -> {target}")
        self._logger.debug(f"Layout state {self._state} -> {target}")
        self._state = target

    def reset(self) -> None:
        if self._state == LayoutState.DONE:
            self._transition(LayoutState.IDLE)

    def run(self, index: NodeIndex, edges: Sequence[DependencyEdge] = ()) -> LayoutResult:
        """
        Compute a position for every node of ``index``.

        Raises:
            ValueError: if the configured strategy is unknown.
            LayoutStateError: if the engine is mid-run (re-entrant call).
        """
        self.reset()
        if self._state != LayoutState.IDLE:
            raise LayoutStateError(f"Layout already running (state={self._state})")

        start_time = time.perf_counter()
        strategy = create_strategy(self.config.strategy, self.config)
        nodes = layout_order(index)

        if len(nodes) <= 1:
            self._transition(LayoutState.DONE)
            return LayoutResult(
                strategy=strategy.name,
                iterations=0,
                seed=self.config.seed,
                positions={n.id: (0.0, 0.0, 0.0) for n in nodes},
                radii={n.id: 0.0 for n in nodes if n.kind == NodeKind.DIRECTORY},
            )

        self._transition(LayoutState.PLACING)
        try:
            placement = strategy.place(index)
            rows = placement.rows
            positions = placement.positions.copy()
            if self.config.jitter > 0:
                rng = np.random.default_rng(self.config.seed)
                positions += rng.uniform(-self.config.jitter, self.config.jitter, size=positions.shape)
                strategy.constrain(positions, placement)

            tree_edges = np.array(
                [(rows[n.parent_id], rows[n.id]) for n in nodes if n.parent_id is not None],
                dtype=np.intp,
            ).reshape(-1, 2)
            known = [e for e in edges if e.source_id in rows and e.target_id in rows]
            dependency_edges = np.array(
                [(rows[e.source_id], rows[e.target_id]) for e in known], dtype=np.intp
            ).reshape(-1, 2)
            weights = np.array([e.strength for e in known], dtype=float)

            self._transition(LayoutState.RELAXING)
            relaxed = ForceRelaxation(self.config).run(
                positions,
                tree_edges,
                dependency_edges,
                weights,
                constrain=lambda p: strategy.constrain(p, placement),
            )
        except Exception:
            # No partial results: drop back to IDLE for the next run
            self._state = LayoutState.IDLE
            raise

        self._transition(LayoutState.DONE)
        elapsed_ms = (time.perf_counter() - start_time) * 1000
        self._logger.info(
            f"Laid out {len(nodes)} nodes with {strategy.name} "
            f"({len(known)} dependency edges) in {elapsed_ms:.1f}ms"
        )
        return LayoutResult(
            strategy=strategy.name,
            iterations=self.config.iterations,
            seed=self.config.seed,
            positions={
                node_id: (float(x), float(y), float(z))
                for node_id, (x, y, z) in zip(placement.ids, relaxed)
            },
            radii=dict(placement.radii),
            districts=placement.districts,
            elapsed_ms=elapsed_ms,
        )


def compute_layout(
    index: NodeIndex,
    edges: Sequence[DependencyEdge] = (),
    config: LayoutConfig | None = None,
) -> LayoutResult:
    return LayoutEngine(config).run(index, edges)
