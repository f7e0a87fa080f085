"""Unit tests for the placement strategies."""

import math

import numpy as np
import pytest

from codesphere.config import LayoutConfig
from codesphere.core.types import DistrictType, NodeKind
from codesphere.layout.base import LayoutStrategy, fibonacci_sphere, project_into_spheres
from codesphere.layout.strategies import (
    DistrictClusterPlacement,
    FolderBubblePlacement,
    HierarchicalSpherePlacement,
    create_strategy,
)


def _assert_contract(index, placement):
    assert set(placement.ids) == {n.id for n in index}
    assert placement.positions.shape == (len(index), 3)
    assert np.all(np.isfinite(placement.positions))
    for node in index.directories():
        assert node.id in placement.radii


class TestFibonacciSphere:
    def test_unit_vectors(self):
        points = fibonacci_sphere(12)

        assert np.allclose(np.linalg.norm(points, axis=1), 1.0)
        assert points[0][1] == pytest.approx(1.0)
        assert points[-1][1] == pytest.approx(-1.0)

    def test_single_point_on_equator(self):
        (point,) = fibonacci_sphere(1)

        assert point[1] == 0.0
        assert np.linalg.norm(point) == pytest.approx(1.0)


def test_project_into_spheres():
    positions = np.array([[10.0, 0.0, 0.0], [0.5, 0.0, 0.0]])
    centers = np.zeros((2, 3))
    radii = np.array([2.0, 2.0])

    project_into_spheres(positions, centers, radii)

    assert positions[0] == pytest.approx([2.0, 0.0, 0.0])
    assert positions[1] == pytest.approx([0.5, 0.0, 0.0])


class TestHierarchicalSphere:
    def test_contract(self, small_index):
        strategy = HierarchicalSpherePlacement(LayoutConfig())

        _assert_contract(small_index, strategy.place(small_index))

    def test_children_on_parent_shell(self, small_index):
        config = LayoutConfig(layer_distance=5.0)
        placement = HierarchicalSpherePlacement(config).place(small_index)
        rows = placement.rows

        assert placement.positions[rows["r"]] == pytest.approx([0.0, 0.0, 0.0])
        for node in small_index.directories():
            parent_pos = placement.positions[rows[node.id]]
            for child in node.children:
                distance = np.linalg.norm(placement.positions[rows[child.id]] - parent_pos)
                assert distance == pytest.approx(5.0 * (node.depth + 1))

    def test_radius_grows_with_depth(self, small_index):
        placement = HierarchicalSpherePlacement(LayoutConfig()).place(small_index)

        assert placement.radii["r/src/components"] > placement.radii["r/src"] > placement.radii["r"]


class TestDistrictCluster:
    def test_contract(self, small_index):
        _assert_contract(small_index, DistrictClusterPlacement(LayoutConfig()).place(small_index))

    def test_district_geometry(self, small_index):
        config = LayoutConfig()
        strategy = DistrictClusterPlacement(config)
        placement = strategy.place(small_index)
        districts = {d.type: d for d in placement.districts}

        assert districts[DistrictType.UI].member_ids == {"r/src/components/Button.tsx"}
        assert districts[DistrictType.LOGIC].member_ids == {"r/src/hooks/useThing.ts"}
        assert districts[DistrictType.DATA].member_ids == {"r/src/api.ts"}
        # Directories and uncategorized files share the utility district
        assert len(districts[DistrictType.UTILITY].member_ids) == 5
        assert DistrictType.CORE not in districts

        utility = districts[DistrictType.UTILITY]
        assert utility.radius == pytest.approx(math.sqrt(5) * config.district_radius_scale)
        assert math.hypot(utility.center[0], utility.center[2]) == pytest.approx(config.district_base_radius)

    def test_members_start_inside_district(self, small_index):
        placement = DistrictClusterPlacement(LayoutConfig()).place(small_index)
        rows = placement.rows

        for district in placement.districts:
            for member in district.member_ids:
                distance = np.linalg.norm(placement.positions[rows[member]] - np.array(district.center))
                assert distance <= district.radius + 1e-9

    def test_constrain_projects_escapees(self, small_index):
        strategy = DistrictClusterPlacement(LayoutConfig())
        placement = strategy.place(small_index)
        positions = placement.positions + 1000.0

        strategy.constrain(positions, placement)

        rows = placement.rows
        for district in placement.districts:
            for member in district.member_ids:
                distance = np.linalg.norm(positions[rows[member]] - np.array(district.center))
                assert distance == pytest.approx(district.radius)


class TestFolderBubble:
    def test_contract(self, small_index):
        _assert_contract(small_index, FolderBubblePlacement(LayoutConfig()).place(small_index))

    def test_bubble_size(self, small_index):
        config = LayoutConfig()
        strategy = FolderBubblePlacement(config)

        # root has one file (README.md)
        assert strategy.bubble_size(small_index.root) == pytest.approx(
            max(config.bubble_min_size, 1 * config.bubble_file_spacing + 2 * config.bubble_padding)
        )

    def test_files_inside_parent_bubble(self, small_index):
        placement = FolderBubblePlacement(LayoutConfig()).place(small_index)
        rows = placement.rows

        for node in small_index.files():
            center = placement.positions[rows[node.parent_id]]
            distance = np.linalg.norm(placement.positions[rows[node.id]] - center)
            assert distance <= placement.radii[node.parent_id]

    def test_subdirectory_ring(self, small_index):
        config = LayoutConfig()
        placement = FolderBubblePlacement(config).place(small_index)
        rows = placement.rows

        src = small_index.get("r/src")
        for child in (c for c in src.children if c.kind == NodeKind.DIRECTORY):
            distance = np.linalg.norm(placement.positions[rows[child.id]] - placement.positions[rows[src.id]])
            expected = placement.radii[src.id] + placement.radii[child.id] + config.bubble_spacing
            assert distance == pytest.approx(expected)


class TestRegistry:
    @pytest.mark.parametrize("name", [s.value for s in LayoutStrategy])
    def test_create_known(self, name):
        assert create_strategy(name, LayoutConfig()).name == name

    def test_unknown_strategy(self):
        with pytest.raises(ValueError, match="force_atlas"):
            create_strategy("force_atlas", LayoutConfig())
