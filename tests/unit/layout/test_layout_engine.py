"""Unit tests for the layout engine state machine and end-to-end layout runs."""

from unittest.mock import patch

import numpy as np
import pytest

from codesphere.config import LayoutConfig
from codesphere.core.errors import LayoutStateError
from codesphere.core.graph import CodeGraph, NodeIndex
from codesphere.core.types import Category, GraphNode, NodeKind
from codesphere.layout.base import LayoutState, LayoutStrategy
from codesphere.layout.engine import LayoutEngine, LayoutResult, compute_layout


def _edges(index):
    return CodeGraph.from_index(index).edges()


class TestStateMachine:
    def test_starts_idle_and_ends_done(self, small_index):
        engine = LayoutEngine(LayoutConfig(iterations=5))
        assert engine.state == LayoutState.IDLE

        engine.run(small_index, _edges(small_index))

        assert engine.state == LayoutState.DONE

    def test_passes_through_every_state(self, small_index):
        engine = LayoutEngine(LayoutConfig(iterations=2))
        seen = []
        original = engine._transition

        def record(target):
            original(target)
            seen.append(target)

        with patch.object(engine, "_transition", side_effect=record):
            engine.run(small_index, _edges(small_index))

        assert seen == [LayoutState.PLACING, LayoutState.RELAXING, LayoutState.DONE]

    def test_rerun_from_done(self, small_index):
        engine = LayoutEngine(LayoutConfig(iterations=2))
        engine.run(small_index)

        engine.run(small_index)

        assert engine.state == LayoutState.DONE

    def test_illegal_transition(self):
        engine = LayoutEngine()

        with pytest.raises(LayoutStateError):
            engine._transition(LayoutState.RELAXING)

    def test_failure_returns_to_idle(self, small_index):
        engine = LayoutEngine(LayoutConfig(iterations=2))

        with patch("codesphere.layout.engine.ForceRelaxation.run", side_effect=FloatingPointError("nan")):
            with pytest.raises(FloatingPointError):
                engine.run(small_index)

        assert engine.state == LayoutState.IDLE

    def test_unknown_strategy(self, small_index):
        with pytest.raises(ValueError):
            LayoutEngine(LayoutConfig(strategy="spiral")).run(small_index)


class TestDegenerateGraphs:
    def test_single_node_at_origin(self):
        root = GraphNode(id="r", name="r", kind=NodeKind.DIRECTORY, category=Category.DIRECTORY, path=".", depth=0)

        result = compute_layout(NodeIndex(root))

        assert result.positions == {"r": (0.0, 0.0, 0.0)}
        assert result.radii == {"r": 0.0}
        assert result.iterations == 0


@pytest.mark.parametrize("strategy", [s.value for s in LayoutStrategy])
class TestEveryStrategy:
    def test_every_node_positioned(self, small_index, strategy):
        result = compute_layout(small_index, _edges(small_index), LayoutConfig(strategy=strategy, iterations=10))

        assert set(result.positions) == {n.id for n in small_index}
        assert all(np.all(np.isfinite(p)) for p in result.positions.values())
        assert {n.id for n in small_index.directories()} <= set(result.radii)

    def test_deterministic(self, small_index, strategy):
        config = LayoutConfig(strategy=strategy, iterations=20, seed=11)

        first = compute_layout(small_index, _edges(small_index), config)
        second = compute_layout(small_index, _edges(small_index), config)

        assert first.positions == second.positions

    def test_nodes_view(self, small_index, strategy):
        result = compute_layout(small_index, _edges(small_index), LayoutConfig(strategy=strategy, iterations=1))

        nodes = {n.id: n for n in result.nodes()}
        assert nodes["r"].radius is not None
        assert nodes["r/README.md"].radius is None


def test_seed_changes_jitter(small_index):
    a = compute_layout(small_index, config=LayoutConfig(seed=1, iterations=0))
    b = compute_layout(small_index, config=LayoutConfig(seed=2, iterations=0))

    assert a.positions != b.positions


def test_district_members_stay_bounded(small_index):
    config = LayoutConfig(strategy="district_cluster", iterations=50)

    result = compute_layout(small_index, _edges(small_index), config)

    assert result.districts
    for district in result.districts:
        center = np.array(district.center)
        for member in district.member_ids:
            distance = np.linalg.norm(np.array(result.positions[member]) - center)
            assert distance <= district.radius + 1e-6


def test_jittered_placement_stays_in_district_without_relaxation(small_index):
    config = LayoutConfig(strategy="district_cluster", iterations=0, jitter=0.5)

    result = compute_layout(small_index, _edges(small_index), config)

    assert result.districts
    for district in result.districts:
        center = np.array(district.center)
        for member in district.member_ids:
            distance = np.linalg.norm(np.array(result.positions[member]) - center)
            assert distance <= district.radius + 1e-6


@pytest.mark.parametrize("iterations,jitter", [(50, 0.01), (0, 0.5)])
def test_files_stay_inside_parent_bubble(small_index, iterations, jitter):
    config = LayoutConfig(strategy="folder_bubble", iterations=iterations, jitter=jitter)

    result = compute_layout(small_index, _edges(small_index), config)

    for node in small_index.files():
        parent = np.array(result.positions[node.parent_id])
        distance = np.linalg.norm(np.array(result.positions[node.id]) - parent)
        assert distance <= result.radii[node.parent_id] + 1e-6


def test_result_serializes(small_index):
    result = compute_layout(small_index, config=LayoutConfig(iterations=1))

    data = result.model_dump(mode="json")

    assert LayoutResult.model_validate(data).positions.keys() == result.positions.keys()
    assert data["strategy"] == "hierarchical_sphere"
