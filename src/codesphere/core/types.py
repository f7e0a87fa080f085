"""
Core type definitions for codesphere.

The node tree is a strict ownership tree (``children``), while ``imports`` /
``imported_by`` form a separate, possibly cyclic, directed graph over the
same id space.
"""

from enum import StrEnum
from typing import Dict, List, Set, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_serializer

Vec3 = Tuple[float, float, float]


class NodeKind(StrEnum):
    FILE = "file"
    DIRECTORY = "directory"


class Category(StrEnum):
    """Closed classification of a node. One value per node."""
    # Core application structure
    PAGE = "page"
    LAYOUT = "layout"
    ROUTE = "route"
    MIDDLEWARE = "middleware"
    # UI layer
    COMPONENT = "component"
    UI = "ui"
    STYLE = "style"
    ASSET = "asset"
    # Application logic
    HOOK = "hook"
    CONTEXT = "context"
    STORE = "store"
    SERVICE = "service"
    UTIL = "util"
    # Data layer
    API = "api"
    MODEL = "model"
    SCHEMA = "schema"
    QUERY = "query"
    # Type system
    TYPES = "types"
    INTERFACE = "interface"
    # Testing & config
    TEST = "test"
    CONFIG = "config"
    ENV = "env"
    # Special
    DIRECTORY = "directory"
    OTHER = "other"


class DistrictType(StrEnum):
    CORE = "core"
    UI = "ui"
    LOGIC = "logic"
    DATA = "data"
    UTILITY = "utility"


class EdgeKind(StrEnum):
    IMPORT = "import"


class ResolutionStrategy(StrEnum):
    """Which resolver rule produced an edge, in evaluation order."""
    EXACT = "exact"
    EXTENSION = "extension"
    INDEX = "index"
    ROOT_NORMALIZED = "root_normalized"


class FileMetrics(BaseModel):
    """Per-file structural counts behind the complexity score."""
    lines: int = 0
    functions: int = 0
    control_flow: int = 0
    jsx_elements: int = 0
    hook_calls: int = 0
    dynamic_imports: int = 0
    commonjs_imports: int = 0


class GraphNode(BaseModel):
    """
    One file or directory of the scanned tree.
    """
    id: str
    name: str
    kind: NodeKind
    category: Category
    path: str
    depth: int
    parent_id: str | None = None
    extension: str | None = None
    size: int = 0
    complexity: float = 0.0
    last_modified: float | None = None
    children: List["GraphNode"] = Field(default_factory=list)
    imports: Set[str] = Field(default_factory=set)
    imported_by: Set[str] = Field(default_factory=set)
    exports: List[str] = Field(default_factory=list)
    metrics: FileMetrics | None = None
    parse_failed: bool = False

    model_config = ConfigDict(extra="ignore")

    @field_serializer("imports", "imported_by")
    def _sorted_ids(self, value: Set[str]) -> List[str]:
        return sorted(value)

    @property
    def is_file(self) -> bool:
        return self.kind == NodeKind.FILE

    @property
    def is_directory(self) -> bool:
        return self.kind == NodeKind.DIRECTORY

    @property
    def degree(self) -> int:
        return len(self.imports) + len(self.imported_by)

    def __hash__(self):
        return hash(self.id)

    def __eq__(self, other):
        if isinstance(other, GraphNode):
            return self.id == other.id
        return False


class DependencyEdge(BaseModel):
    """Resolved directed import between two nodes of the same scan."""
    source_id: str
    target_id: str
    kind: EdgeKind = EdgeKind.IMPORT
    strength: float = 1.0
    strategy: ResolutionStrategy | None = None


class LayoutNode(BaseModel):
    id: str
    position: Vec3
    radius: float | None = None


class District(BaseModel):
    """Category cluster used by the district placement. Lives only during layout."""
    type: DistrictType
    center: Vec3
    radius: float
    member_ids: Set[str] = Field(default_factory=set)

    @field_serializer("member_ids")
    def _sorted_members(self, value: Set[str]) -> List[str]:
        return sorted(value)


class Diagnostics(BaseModel):
    """Aggregate, non-fatal findings of one pipeline run."""
    total_files: int = 0
    total_directories: int = 0
    total_size: int = 0
    average_complexity: float = 0.0
    unreadable_entries: List[str] = Field(default_factory=list)
    parse_failures: int = 0
    resolved_imports: int = 0
    unresolved_imports: int = 0
    resolution_strategies: Dict[str, int] = Field(default_factory=dict)
    cyclic_components: int = 0
