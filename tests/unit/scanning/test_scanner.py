"""Unit tests for the tree scanner."""

import os

import pytest

from codesphere.config import ScanConfig
from codesphere.core.errors import ErrorKind
from codesphere.core.result import Err, Ok
from codesphere.core.types import Category, NodeKind
from codesphere.scanning.scanner import TreeScanner, scan_tree


def _scan(root, **overrides):
    result = TreeScanner(ScanConfig(root_dir=root, max_workers=2, **overrides)).scan()
    assert isinstance(result, Ok)
    return result.value


class TestRootHandling:
    def test_missing_root_is_root_not_found(self, tmp_path):
        result = scan_tree(tmp_path / "missing")

        assert isinstance(result, Err)
        assert result.error.kind == ErrorKind.ROOT_NOT_FOUND
        assert result.error.is_fatal

    def test_file_root_is_root_not_found(self, tmp_path):
        f = tmp_path / "file.ts"
        f.write_text("x")

        result = scan_tree(f)

        assert isinstance(result, Err)
        assert result.error.kind == ErrorKind.ROOT_NOT_FOUND

    def test_empty_directory_yields_single_root(self, tmp_path):
        scan = _scan(tmp_path)

        assert len(scan.index) == 1
        assert scan.root.path == "."
        assert scan.root.parent_id is None
        assert scan.root.size == 0


class TestTreeShape:
    def test_sizes_sum_to_children(self, app_project):
        scan = _scan(app_project)

        for node in scan.index:
            if node.kind == NodeKind.DIRECTORY:
                assert node.size == sum(child.size for child in node.children)
            else:
                assert node.size == (app_project / node.path).stat().st_size

    def test_parent_relation_forms_a_tree(self, app_project):
        scan = _scan(app_project)
        index = scan.index

        roots = [n for n in index if n.parent_id is None]
        assert roots == [scan.root]

        for node in index:
            seen = {node.id}
            current = node
            while current.parent_id is not None:
                assert current.parent_id not in seen
                seen.add(current.parent_id)
                current = index.get(current.parent_id)
            assert current is scan.root

        reachable = {n.id for n in index.walk()}
        assert reachable == {n.id for n in index}

    def test_ids_are_unique_and_path_derived(self, app_project):
        scan = _scan(app_project)

        ids = [n.id for n in scan.index]
        assert len(ids) == len(set(ids))
        assert scan.index.get_by_path("src/App.tsx").id == "proj/src/App.tsx"

    def test_directories_before_files_then_by_name(self, make_project):
        root = make_project({"b.ts": "", "a.ts": "", "z/x.ts": "", "m/y.ts": ""})

        scan = _scan(root)

        assert [c.name for c in scan.root.children] == ["m", "z", "a.ts", "b.ts"]

    def test_depth_and_extension(self, app_project):
        scan = _scan(app_project)
        hook = scan.index.get_by_path("src/hooks/useCounter.ts")

        assert hook.depth == 3
        assert hook.extension == ".ts"
        assert hook.category == Category.HOOK

    def test_scan_is_deterministic(self, app_project):
        first = _scan(app_project)
        second = _scan(app_project)

        assert [n.id for n in first.index.walk()] == [n.id for n in second.index.walk()]


class TestExclusion:
    def test_node_modules_excluded(self, app_project):
        scan = _scan(app_project, exclude_patterns=("node_modules",))

        assert not any("node_modules" in n.path for n in scan.index)
        assert scan.index.get_by_path("src") is not None

    def test_suffix_pattern(self, make_project):
        root = make_project({"debug.log": "x", "keep.ts": "x"})

        scan = _scan(root, exclude_patterns=("*.log",))

        assert scan.index.get_by_path("debug.log") is None
        assert scan.index.get_by_path("keep.ts") is not None

    def test_default_patterns_skip_dependency_folders(self, app_project):
        scan = _scan(app_project)

        assert scan.index.get_by_path("node_modules") is None


class TestUnreadableEntries:
    @pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unsupported")
    def test_broken_symlink_is_skipped(self, make_project):
        root = make_project({"ok.ts": "x"})
        os.symlink(root / "nowhere.ts", root / "dangling.ts")

        scan = _scan(root)

        assert scan.index.get_by_path("ok.ts") is not None
        assert scan.index.get_by_path("dangling.ts") is None
        assert "dangling.ts" in scan.unreadable

    @pytest.mark.skipif(os.name != "posix" or os.geteuid() == 0, reason="needs non-root posix")
    def test_unreadable_directory_is_skipped(self, make_project):
        root = make_project({"ok.ts": "x", "locked/secret.ts": "x"})
        (root / "locked").chmod(0)
        try:
            scan = _scan(root)
        finally:
            (root / "locked").chmod(0o755)

        assert scan.index.get_by_path("ok.ts") is not None
        assert "locked" in scan.unreadable
