"""Unit tests for the extraction engine."""

from unittest.mock import MagicMock

import pytest

from codesphere.config import ScanConfig
from codesphere.core.result import Ok
from codesphere.parsing.engine import ExtractionEngine
from codesphere.scanning.scanner import TreeScanner


@pytest.fixture
def scanned(app_project):
    result = TreeScanner(ScanConfig(root_dir=app_project, max_workers=2)).scan()
    assert isinstance(result, Ok)
    return result.value


def test_only_source_files_are_extracted(scanned):
    results = ExtractionEngine(ScanConfig(max_workers=2)).extract_all(scanned.index, scanned.root_path)

    assert "proj/src/App.tsx" in results
    assert "proj/src/styles/main.css" not in results
    assert "proj/package.json" not in results


def test_imports_are_raw_specifiers(scanned):
    results = ExtractionEngine(ScanConfig(max_workers=2)).extract_all(scanned.index, scanned.root_path)

    app = results["proj/src/App.tsx"]
    assert app.imports == ["@/components/Button", "./hooks/useCounter"]
    assert app.exports == ["App"]
    assert app.signals.jsx_elements >= 2


def test_unreadable_file_is_parse_failure(scanned):
    def read_file(path):
        if path.name == "App.tsx":
            raise PermissionError("denied")
        return path.read_bytes()

    engine = ExtractionEngine(ScanConfig(max_workers=2), read_file=read_file)
    results = engine.extract_all(scanned.index, scanned.root_path)

    assert results["proj/src/App.tsx"].parse_failed
    assert results["proj/src/App.tsx"].imports == []
    assert not results["proj/src/index.ts"].parse_failed


def test_undecodable_bytes_fall_back(scanned):
    read_file = MagicMock(return_value=b"import a from './a'\n\xff\xfe")
    engine = ExtractionEngine(ScanConfig(max_workers=1), read_file=read_file)

    node = scanned.index.get_by_path("src/index.ts")
    result = engine.extract_file(node, scanned.root_path / node.path)

    assert result.imports == ["./a"]
    assert not result.parse_failed


def test_oversized_file_not_read(scanned):
    read_file = MagicMock()
    engine = ExtractionEngine(ScanConfig(max_file_size=1), read_file=read_file)

    node = scanned.index.get_by_path("src/App.tsx")
    result = engine.extract_file(node, scanned.root_path / node.path)

    read_file.assert_not_called()
    assert result.signals is None
    assert result.imports == []
