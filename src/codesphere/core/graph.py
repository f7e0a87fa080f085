"""
Node arena and dependency graph.

``NodeIndex`` is the explicit, passed-down index of one scan: every node is
reachable by id and by root-relative path. ``CodeGraph`` is a networkx view of
the resolved import edges, used for edge export and graph statistics.
"""

import math
from collections import defaultdict
from typing import Dict, Iterator, List, Optional

import networkx as nx

from ..config import EDGE_COMPLEXITY_FACTOR, MAX_EDGE_STRENGTH
from .types import DependencyEdge, GraphNode, NodeKind, ResolutionStrategy


class NodeIndex:
    """
    Arena of nodes keyed by id, built once per scan.

    Insertion order is the scanner's deterministic traversal order.
    """

    def __init__(self, root: GraphNode):
        self._root = root
        self._by_id: Dict[str, GraphNode] = {}
        self._by_path: Dict[str, str] = {}
        self.add(root)

    @property
    def root(self) -> GraphNode:
        return self._root

    def add(self, node: GraphNode) -> None:
        if node.id in self._by_id:
            raise ValueError(f"Duplicate node id: {node.id}")
        self._by_id[node.id] = node
        self._by_path[node.path] = node.id

    def get(self, node_id: str) -> Optional[GraphNode]:
        return self._by_id.get(node_id)

    def get_by_path(self, path: str) -> Optional[GraphNode]:
        node_id = self._by_path.get(path)
        return self._by_id.get(node_id) if node_id else None

    def __contains__(self, node_id: str) -> bool:
        return node_id in self._by_id

    def __len__(self) -> int:
        return len(self._by_id)

    def __iter__(self) -> Iterator[GraphNode]:
        return iter(self._by_id.values())

    def files(self) -> List[GraphNode]:
        return [n for n in self._by_id.values() if n.kind == NodeKind.FILE]

    def directories(self) -> List[GraphNode]:
        return [n for n in self._by_id.values() if n.kind == NodeKind.DIRECTORY]

    def bottom_up(self) -> List[GraphNode]:
        """Nodes ordered deepest first, so every child precedes its parent."""
        return sorted(self._by_id.values(), key=lambda n: -n.depth)

    def walk(self) -> Iterator[GraphNode]:
        """Pre-order traversal with an explicit stack."""
        stack = [self._root]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))


def edge_strength(source: GraphNode, target: GraphNode) -> float:
    """Edge weight scaled by the combined complexity of both endpoints."""
    combined = max(source.complexity, 0.0) + max(target.complexity, 0.0)
    strength = 1.0 + math.log2(1.0 + combined) * EDGE_COMPLEXITY_FACTOR
    return min(strength, MAX_EDGE_STRENGTH)


class CodeGraph:
    """
    Directed import graph over the node ids of one scan.

    Cycles are allowed; nothing here assumes a DAG.
    """

    def __init__(self):
        self._graph = nx.DiGraph()

    @classmethod
    def from_index(
        cls,
        index: NodeIndex,
        strategies: Dict[tuple, ResolutionStrategy] | None = None,
    ) -> "CodeGraph":
        graph = cls()
        strategies = strategies or {}
        for node in index.walk():
            graph._graph.add_node(node.id)
        for node in index.walk():
            for target_id in sorted(node.imports):
                target = index.get(target_id)
                if target is None:
                    continue
                graph.add_edge(
                    DependencyEdge(
                        source_id=node.id,
                        target_id=target_id,
                        strength=edge_strength(node, target),
                        strategy=strategies.get((node.id, target_id)),
                    )
                )
        return graph

    def add_edge(self, edge: DependencyEdge) -> None:
        if edge.source_id not in self._graph or edge.target_id not in self._graph:
            return
        # DiGraph coalesces duplicate ordered pairs
        self._graph.add_edge(edge.source_id, edge.target_id, edge=edge)

    def has_edge(self, source_id: str, target_id: str) -> bool:
        return self._graph.has_edge(source_id, target_id)

    def in_degree(self, node_id: str) -> int:
        return self._graph.in_degree(node_id) if node_id in self._graph else 0

    def out_degree(self, node_id: str) -> int:
        return self._graph.out_degree(node_id) if node_id in self._graph else 0

    def edges(self) -> List[DependencyEdge]:
        return [data["edge"] for _, _, data in self._graph.edges(data=True)]

    @property
    def node_count(self) -> int:
        return self._graph.number_of_nodes()

    @property
    def edge_count(self) -> int:
        return self._graph.number_of_edges()

    def cyclic_components(self) -> List[List[str]]:
        """Strongly connected components that contain a cycle."""
        components = []
        for component in nx.strongly_connected_components(self._graph):
            if len(component) > 1:
                components.append(sorted(component))
            else:
                (only,) = component
                if self._graph.has_edge(only, only):
                    components.append([only])
        return sorted(components)

    def get_stats(self) -> Dict[str, int]:
        fan_in: Dict[str, int] = defaultdict(int)
        for _, target in self._graph.edges():
            fan_in[target] += 1
        orphans = sum(1 for n in self._graph.nodes if self._graph.degree(n) == 0)
        return {
            "total_nodes": self.node_count,
            "total_edges": self.edge_count,
            "max_fan_in": max(fan_in.values(), default=0),
            "orphans": orphans,
            "cyclic_components": len(self.cyclic_components()),
        }

    def to_dict(self) -> Dict[str, list]:
        return {"edges": [edge.model_dump(mode="json") for edge in self.edges()]}
