"""
Layout building blocks.

A layout run moves through ``IDLE -> PLACING -> RELAXING -> DONE``. Placement
is delegated to an interchangeable PlacementStrategy; every strategy must
place every node and give every directory a radius.
"""

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Dict, List

import numpy as np

from ..config import LayoutConfig
from ..core.graph import NodeIndex
from ..core.types import District, GraphNode

GOLDEN_ANGLE = math.pi * (3 - math.sqrt(5))


class LayoutState(StrEnum):
    IDLE = "idle"
    PLACING = "placing"
    RELAXING = "relaxing"
    DONE = "done"


ALLOWED_TRANSITIONS = {
    LayoutState.IDLE: {LayoutState.PLACING, LayoutState.DONE},
    LayoutState.PLACING: {LayoutState.RELAXING},
    LayoutState.RELAXING: {LayoutState.DONE},
    LayoutState.DONE: {LayoutState.IDLE},
}


class LayoutStrategy(StrEnum):
    HIERARCHICAL_SPHERE = "hierarchical_sphere"
    DISTRICT_CLUSTER = "district_cluster"
    FOLDER_BUBBLE = "folder_bubble"


@dataclass
class Placement:
    """
    Initial assignment produced by a strategy.

    ``positions`` rows follow ``ids``; ``rows`` maps an id back to its row.
    """

    ids: List[str]
    positions: np.ndarray
    radii: Dict[str, float] = field(default_factory=dict)
    districts: List[District] = field(default_factory=list)

    @property
    def rows(self) -> Dict[str, int]:
        return {node_id: row for row, node_id in enumerate(self.ids)}


def layout_order(index: NodeIndex) -> List[GraphNode]:
    """Deterministic node order shared by all strategies (pre-order tree walk)."""
    return list(index.walk())


def fibonacci_sphere(count: int) -> np.ndarray:
    """
    Evenly spread ``count`` unit vectors with the golden-angle distribution.

    ``y = 1 - 2i/(n-1)``, ``theta = i * phi``; a single point sits on the
    equator.
    """
    points = np.zeros((count, 3))
    for i in range(count):
        y = 0.0 if count == 1 else 1 - 2 * i / (count - 1)
        ring = math.sqrt(max(0.0, 1 - y * y))
        theta = GOLDEN_ANGLE * i
        points[i] = (math.cos(theta) * ring, y, math.sin(theta) * ring)
    return points


def project_into_spheres(positions: np.ndarray, centers: np.ndarray, radii: np.ndarray) -> None:
    """Pull every row farther than its radius from its center back onto the boundary."""
    offsets = positions - centers
    distances = np.linalg.norm(offsets, axis=1)
    outside = distances > radii
    if not np.any(outside):
        return
    scale = radii[outside] / distances[outside]
    positions[outside] = centers[outside] + offsets[outside] * scale[:, None]


class PlacementStrategy(ABC):
    """Interchangeable initial-placement strategy."""

    def __init__(self, config: LayoutConfig):
        self.config = config

    @property
    @abstractmethod
    def name(self) -> LayoutStrategy:
        pass

    @abstractmethod
    def place(self, index: NodeIndex) -> Placement:
        """Give every node an initial position and every directory a radius."""

    def constrain(self, positions: np.ndarray, placement: Placement) -> None:
        """Re-apply structural constraints after each integration step."""
        return None
