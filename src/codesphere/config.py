"""
Global Configuration and Safety Defaults.

This module centralizes the "Safe Defaults" for the scan / resolve / layout
pipeline and the tunable constants behind complexity scoring and layout.
It protects the scanner from dependency folders, binary files and huge
generated sources.
"""

import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, FrozenSet, List, Tuple

import yaml

from .core.errors import ConfigError

logger = logging.getLogger(__name__)

# --- Safety Limits ---
# Files larger than this are not read; they keep the default complexity
MAX_FILE_SIZE_BYTES = 1024 * 1024  # 1MB

# Worker pool bound for stat/read/extract (respects fd limits)
DEFAULT_MAX_WORKERS = 8

# --- Exclusions ---

# Exact name match, or suffix match when the pattern starts with '*'
DEFAULT_EXCLUDE_PATTERNS: Tuple[str, ...] = (
    "node_modules",
    ".git",
    ".next",
    "dist",
    "build",
    "coverage",
    ".DS_Store",
    "*.log",
)

# --- Source Handling ---

# Files whose content is scanned for imports, exports and structure
SOURCE_EXTENSIONS: FrozenSet[str] = frozenset({".js", ".jsx", ".ts", ".tsx", ".mjs", ".cjs"})

# Extensions where JSX markup is counted as a structural signal
JSX_EXTENSIONS: FrozenSet[str] = frozenset({".jsx", ".tsx"})

# Extension inference order used by the resolver
RESOLVE_EXTENSIONS: Tuple[str, ...] = (".ts", ".tsx", ".js", ".jsx")

# Leading segments ignored by the root-normalization fallback
PROJECT_ROOT_SEGMENTS: FrozenSet[str] = frozenset({"src", "app", "lib", "source", "packages"})

# Specifier prefixes that point inside the project
RELATIVE_PREFIXES: Tuple[str, ...] = ("./", "../")
ROOT_RELATIVE_PREFIXES: Tuple[str, ...] = ("@/", "~/", "/")

# --- Edges ---
MAX_EDGE_STRENGTH = 2.0
EDGE_COMPLEXITY_FACTOR = 0.1


def is_excluded(name: str, patterns: Tuple[str, ...] | List[str]) -> bool:
    """Check an entry name against exact-name and '*suffix' patterns."""
    for pattern in patterns:
        if pattern.startswith("*"):
            if name.endswith(pattern[1:]):
                return True
        elif name == pattern:
            return True
    return False


@dataclass
class ScanConfig:
    root_dir: Path = field(default_factory=Path.cwd)
    exclude_patterns: Tuple[str, ...] = DEFAULT_EXCLUDE_PATTERNS
    source_extensions: FrozenSet[str] = SOURCE_EXTENSIONS
    max_file_size: int = MAX_FILE_SIZE_BYTES
    max_workers: int = DEFAULT_MAX_WORKERS
    follow_symlinks: bool = False

    def should_skip(self, name: str) -> bool:
        return is_excluded(name, self.exclude_patterns)

    def is_source(self, path: Path) -> bool:
        return path.suffix.lower() in self.source_extensions


@dataclass(frozen=True)
class ComplexityWeights:
    """
    Weights of the heuristic complexity score.

    The values are empirical; they only need to stay fixed within one run.
    """

    lines: float = 1.0
    function: float = 2.0
    control_flow: float = 1.5
    jsx_element: float = 1.2
    hook_call: float = 2.0
    connectivity: float = 0.2
    default: float = 1.0


@dataclass
class LayoutConfig:
    strategy: str = "hierarchical_sphere"
    iterations: int = 50
    seed: int = 42
    jitter: float = 0.01

    # Integration
    temperature: float = 0.1
    cooling: float = 0.98
    damping: float = 0.95

    # Forces
    repulsion_strength: float = 1.0
    repulsion_threshold: float = 10.0
    min_distance: float = 0.3
    center_pull: float = 0.6
    tree_link_distance: float = 3.0
    tree_link_strength: float = 0.1
    dependency_link_distance: float = 6.0
    dependency_link_strength: float = 0.05

    # Hierarchical sphere
    layer_distance: float = 5.0
    child_spread: float = 1.0

    # District clustering
    district_base_radius: float = 40.0
    district_radius_scale: float = 5.0
    layer_height: float = 15.0
    importance_scale: float = 1.0 / 15.0

    # Folder bubbles
    bubble_min_size: float = 2.0
    bubble_file_spacing: float = 1.5
    bubble_padding: float = 0.5
    bubble_spacing: float = 1.0


@dataclass
class ProjectConfig:
    scan: ScanConfig = field(default_factory=ScanConfig)
    complexity: ComplexityWeights = field(default_factory=ComplexityWeights)
    layout: LayoutConfig = field(default_factory=LayoutConfig)


def _build(cls, section: str, values: Dict[str, Any]):
    known = {f.name for f in fields(cls)}
    unknown = set(values) - known
    if unknown:
        raise ConfigError(f"Unknown keys in '{section}' section: {', '.join(sorted(unknown))}")

    coerced = dict(values)
    if "root_dir" in coerced:
        coerced["root_dir"] = Path(coerced["root_dir"])
    if "exclude_patterns" in coerced:
        coerced["exclude_patterns"] = tuple(coerced["exclude_patterns"])
    if "source_extensions" in coerced:
        coerced["source_extensions"] = frozenset(coerced["source_extensions"])
    return cls(**coerced)


def load_config(path: Path | str | None = None) -> ProjectConfig:
    """
    Load a YAML configuration file into a ProjectConfig.

    A missing path yields the defaults. Sections: ``scan``, ``complexity``,
    ``layout``; each maps directly onto the matching dataclass fields.
    """
    if path is None:
        return ProjectConfig()

    config_path = Path(path)
    try:
        raw = yaml.safe_load(config_path.read_text()) or {}
    except OSError as e:
        raise ConfigError(f"Cannot read config file {config_path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigError(f"Config root must be a mapping, got {type(raw).__name__}")

    unknown_sections = set(raw) - {"scan", "complexity", "layout"}
    if unknown_sections:
        raise ConfigError(f"Unknown config sections: {', '.join(sorted(unknown_sections))}")

    logger.debug(f"Loaded config from {config_path}")
    return ProjectConfig(
        scan=_build(ScanConfig, "scan", raw.get("scan") or {}),
        complexity=_build(ComplexityWeights, "complexity", raw.get("complexity") or {}),
        layout=_build(LayoutConfig, "layout", raw.get("layout") or {}),
    )
