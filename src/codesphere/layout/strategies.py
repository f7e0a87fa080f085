"""
Placement strategies.

- HierarchicalSpherePlacement: children on a Fibonacci sphere around their
  parent, shell radius growing with depth.
- DistrictClusterPlacement: nodes grouped into category districts arranged
  around the origin; members kept inside their district sphere.
- FolderBubblePlacement: directories as bubbles sized by their file count,
  sibling bubbles on a ring around the parent, files spiralled inside.
"""

import logging
import math
from typing import Dict, List, Type

import numpy as np

from ..config import LayoutConfig
from ..core.graph import NodeIndex
from ..core.types import District, DistrictType, GraphNode, NodeKind
from ..scanning.categories import district_for
from .base import (
    GOLDEN_ANGLE,
    LayoutStrategy,
    Placement,
    PlacementStrategy,
    fibonacci_sphere,
    layout_order,
    project_into_spheres,
)

logger = logging.getLogger(__name__)


class HierarchicalSpherePlacement(PlacementStrategy):
    @property
    def name(self) -> LayoutStrategy:
        return LayoutStrategy.HIERARCHICAL_SPHERE

    def shell_radius(self, depth: int) -> float:
        return self.config.layer_distance * (depth + 1) * self.config.child_spread

    def place(self, index: NodeIndex) -> Placement:
        nodes = layout_order(index)
        placement = Placement(ids=[n.id for n in nodes], positions=np.zeros((len(nodes), 3)))
        rows = placement.rows

        # Pre-order walk: a parent is always placed before its children
        for node in nodes:
            if node.kind != NodeKind.DIRECTORY:
                continue
            radius = self.shell_radius(node.depth)
            placement.radii[node.id] = radius
            if not node.children:
                continue
            parent_position = placement.positions[rows[node.id]]
            for child, unit in zip(node.children, fibonacci_sphere(len(node.children))):
                placement.positions[rows[child.id]] = parent_position + unit * radius
        return placement


def importance(node: GraphNode) -> float:
    """Connectivity-weighted importance: log2(1 + deps + importers) * complexity."""
    return math.log2(1 + len(node.imports) + len(node.imported_by)) * node.complexity


class DistrictClusterPlacement(PlacementStrategy):
    """
    Districts sit at equal angles on the base radius; the core district sits
    at the origin. District radius is ``sqrt(member_count) * scale``.
    """

    @property
    def name(self) -> LayoutStrategy:
        return LayoutStrategy.DISTRICT_CLUSTER

    def build_districts(self, nodes: List[GraphNode]) -> Dict[DistrictType, District]:
        members: Dict[DistrictType, List[str]] = {t: [] for t in DistrictType}
        for node in nodes:
            members[district_for(node.category)].append(node.id)

        districts: Dict[DistrictType, District] = {}
        step = 2 * math.pi / len(DistrictType)
        for position, district_type in enumerate(DistrictType):
            ring = 0.0 if district_type == DistrictType.CORE else self.config.district_base_radius
            angle = step * position
            districts[district_type] = District(
                type=district_type,
                center=(math.cos(angle) * ring, 0.0, math.sin(angle) * ring),
                radius=math.sqrt(len(members[district_type])) * self.config.district_radius_scale,
                member_ids=set(members[district_type]),
            )
        return districts

    def place(self, index: NodeIndex) -> Placement:
        nodes = layout_order(index)
        placement = Placement(ids=[n.id for n in nodes], positions=np.zeros((len(nodes), 3)))
        rows = placement.rows
        districts = self.build_districts(nodes)
        placement.districts = [districts[t] for t in DistrictType if districts[t].member_ids]

        by_district: Dict[DistrictType, List[GraphNode]] = {t: [] for t in DistrictType}
        for node in nodes:
            by_district[district_for(node.category)].append(node)

        for district_type, members in by_district.items():
            district = districts[district_type]
            cx, _, cz = district.center
            count = len(members)
            for i, node in enumerate(members):
                angle = i * GOLDEN_ANGLE
                distance = (i / count) * district.radius
                weight = importance(node) * self.config.importance_scale
                placement.positions[rows[node.id]] = (
                    cx + math.cos(angle) * distance,
                    weight * self.config.layer_height,
                    cz + math.sin(angle) * distance,
                )
                if node.kind == NodeKind.DIRECTORY:
                    placement.radii[node.id] = 0.5 + 0.5 * min(weight, 1.0)

        self._bounds = self._row_bounds(placement, districts)
        self.constrain(placement.positions, placement)
        return placement

    def _row_bounds(self, placement: Placement, districts: Dict[DistrictType, District]):
        centers = np.zeros((len(placement.ids), 3))
        radii = np.zeros(len(placement.ids))
        rows = placement.rows
        for district in districts.values():
            for member_id in district.member_ids:
                centers[rows[member_id]] = district.center
                radii[rows[member_id]] = district.radius
        return centers, radii

    def constrain(self, positions: np.ndarray, placement: Placement) -> None:
        centers, radii = self._bounds
        project_into_spheres(positions, centers, radii)


class FolderBubblePlacement(PlacementStrategy):
    """
    Bubble size: ``max(min_size, sqrt(file_count) * file_spacing + 2 * padding)``.
    """

    @property
    def name(self) -> LayoutStrategy:
        return LayoutStrategy.FOLDER_BUBBLE

    def bubble_size(self, directory: GraphNode) -> float:
        file_count = sum(1 for child in directory.children if child.kind == NodeKind.FILE)
        return max(
            self.config.bubble_min_size,
            math.sqrt(file_count) * self.config.bubble_file_spacing + 2 * self.config.bubble_padding,
        )

    def place(self, index: NodeIndex) -> Placement:
        nodes = layout_order(index)
        placement = Placement(ids=[n.id for n in nodes], positions=np.zeros((len(nodes), 3)))
        rows = placement.rows

        for node in nodes:
            if node.kind == NodeKind.DIRECTORY:
                placement.radii[node.id] = self.bubble_size(node)

        for node in nodes:
            if node.kind != NodeKind.DIRECTORY:
                continue
            center = placement.positions[rows[node.id]]
            size = placement.radii[node.id]
            subdirs = [c for c in node.children if c.kind == NodeKind.DIRECTORY]
            files = [c for c in node.children if c.kind == NodeKind.FILE]

            for i, child in enumerate(subdirs):
                ring = size + placement.radii[child.id] + self.config.bubble_spacing
                angle = 2 * math.pi * i / len(subdirs)
                placement.positions[rows[child.id]] = center + (math.cos(angle) * ring, 0.0, math.sin(angle) * ring)

            inner = size - self.config.bubble_padding
            for i, child in enumerate(files):
                r = math.sqrt((i + 0.5) / len(files)) * inner
                angle = i * GOLDEN_ANGLE
                placement.positions[rows[child.id]] = center + (math.cos(angle) * r, 0.0, math.sin(angle) * r)

        self._parents = np.array(
            [rows[n.parent_id] if n.kind == NodeKind.FILE and n.parent_id else -1 for n in nodes]
        )
        self._limits = np.array(
            [placement.radii.get(n.parent_id, 0.0) if n.kind == NodeKind.FILE and n.parent_id else 0.0 for n in nodes]
        )
        return placement

    def constrain(self, positions: np.ndarray, placement: Placement) -> None:
        """Keep files inside the bubble of their directory."""
        contained = self._parents >= 0
        if not np.any(contained):
            return
        sub = positions[contained]
        project_into_spheres(sub, positions[self._parents[contained]], self._limits[contained])
        positions[contained] = sub


STRATEGIES: Dict[LayoutStrategy, Type[PlacementStrategy]] = {
    LayoutStrategy.HIERARCHICAL_SPHERE: HierarchicalSpherePlacement,
    LayoutStrategy.DISTRICT_CLUSTER: DistrictClusterPlacement,
    LayoutStrategy.FOLDER_BUBBLE: FolderBubblePlacement,
}


def create_strategy(name: str | LayoutStrategy, config: LayoutConfig) -> PlacementStrategy:
    try:
        strategy = LayoutStrategy(name)
    except ValueError:
        valid = ", ".join(s.value for s in LayoutStrategy)
        raise ValueError(f"Unknown layout strategy '{name}' (expected one of: {valid})") from None
    return STRATEGIES[strategy](config)
