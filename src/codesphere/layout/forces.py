"""
Force-directed relaxation shared by all placement strategies.

Per iteration: repulsion between nearby pairs, spring attraction along tree
and dependency edges, gravity toward the origin, then damped velocity
integration with a cooling temperature. An optional ``constrain`` callback
re-applies strategy bounds after every step.
"""

import logging
from typing import Callable, Optional

import numpy as np

from ..config import LayoutConfig

logger = logging.getLogger(__name__)

# Rows per repulsion block; keeps the pairwise buffers at O(block * n)
REPULSION_BLOCK = 512

Constrain = Callable[[np.ndarray], None]


class ForceRelaxation:
    def __init__(self, config: LayoutConfig):
        self.config = config

    def repulsion(self, positions: np.ndarray) -> np.ndarray:
        """Inverse-square push between every pair closer than the threshold."""
        cfg = self.config
        count = len(positions)
        forces = np.zeros_like(positions)
        floor = cfg.min_distance * cfg.min_distance

        for start in range(0, count, REPULSION_BLOCK):
            stop = min(start + REPULSION_BLOCK, count)
            delta = positions[start:stop, None, :] - positions[None, :, :]
            dist_sq = np.einsum("ijk,ijk->ij", delta, delta)
            distance = np.sqrt(dist_sq)

            active = distance < cfg.repulsion_threshold
            active[np.arange(stop - start), np.arange(start, stop)] = False

            magnitude = np.where(active, cfg.repulsion_strength / np.maximum(dist_sq, floor), 0.0)
            # Coincident points get no direction; jitter separates them first
            safe = np.where(distance > 0, distance, 1.0)
            forces[start:stop] += np.einsum("ij,ijk->ik", magnitude / safe, delta)
        return forces

    @staticmethod
    def springs(
        positions: np.ndarray,
        edges: np.ndarray,
        target: float,
        strength: float,
        weights: Optional[np.ndarray] = None,
    ) -> np.ndarray:
        """Hooke-style pull of each edge toward ``target`` separation."""
        forces = np.zeros_like(positions)
        if len(edges) == 0:
            return forces
        src, dst = edges[:, 0], edges[:, 1]
        delta = positions[dst] - positions[src]
        distance = np.linalg.norm(delta, axis=1)
        safe = np.where(distance > 0, distance, 1.0)
        pull = strength * (distance - target)
        if weights is not None:
            pull = pull * weights
        vectors = delta * (pull / safe)[:, None]
        np.add.at(forces, src, vectors)
        np.add.at(forces, dst, -vectors)
        return forces

    def gravity(self, positions: np.ndarray) -> np.ndarray:
        """Pull toward the origin, weaker with distance: ``-P * pull / max(|P|, 1)``."""
        norms = np.linalg.norm(positions, axis=1)
        return -positions * (self.config.center_pull / np.maximum(norms, 1.0))[:, None]

    def run(
        self,
        positions: np.ndarray,
        tree_edges: np.ndarray,
        dependency_edges: np.ndarray,
        dependency_weights: Optional[np.ndarray] = None,
        constrain: Optional[Constrain] = None,
    ) -> np.ndarray:
        """
        Relax ``positions`` for the configured number of iterations.

        Args:
            positions: (n, 3) initial positions; not modified.
            tree_edges: (m, 2) parent/child row pairs.
            dependency_edges: (k, 2) source/target row pairs.
            dependency_weights: per dependency edge strength multiplier.
            constrain: called with the updated positions after each step.

        Returns:
            The relaxed (n, 3) positions.
        """
        cfg = self.config
        current = positions.astype(float, copy=True)
        velocity = np.zeros_like(current)
        temperature = cfg.temperature

        for _ in range(cfg.iterations):
            forces = self.repulsion(current)
            forces += self.springs(current, tree_edges, cfg.tree_link_distance, cfg.tree_link_strength)
            forces += self.springs(
                current,
                dependency_edges,
                cfg.dependency_link_distance,
                cfg.dependency_link_strength,
                dependency_weights,
            )
            forces += self.gravity(current)

            velocity = (velocity + forces * temperature) * cfg.damping
            current += velocity
            temperature *= cfg.cooling

            if constrain is not None:
                constrain(current)

        logger.debug(f"Relaxed {len(current)} nodes over {cfg.iterations} iterations")
        return current
