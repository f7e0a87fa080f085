"""
File classification.

A node's category comes from an ordered rule list evaluated against its
root-relative path and file name. First match wins. Each category carries
presentation metadata and maps onto one layout district.
"""

import re
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Callable, Dict, List, Tuple

from ..core.types import Category, DistrictType


@dataclass(frozen=True)
class CategoryMetadata:
    importance: float  # Base importance score (0-1)
    layer: int  # Default vertical layer
    group: str  # Logical grouping


CATEGORY_METADATA: Dict[Category, CategoryMetadata] = {
    Category.PAGE: CategoryMetadata(1.0, 4, "core"),
    Category.LAYOUT: CategoryMetadata(0.9, 3, "core"),
    Category.ROUTE: CategoryMetadata(0.8, 3, "core"),
    Category.MIDDLEWARE: CategoryMetadata(0.7, 2, "core"),
    Category.COMPONENT: CategoryMetadata(0.8, 2, "ui"),
    Category.UI: CategoryMetadata(0.7, 2, "ui"),
    Category.STYLE: CategoryMetadata(0.6, 1, "ui"),
    Category.ASSET: CategoryMetadata(0.5, 1, "ui"),
    Category.HOOK: CategoryMetadata(0.8, 3, "logic"),
    Category.CONTEXT: CategoryMetadata(0.7, 3, "logic"),
    Category.STORE: CategoryMetadata(0.9, 3, "logic"),
    Category.SERVICE: CategoryMetadata(0.8, 2, "logic"),
    Category.UTIL: CategoryMetadata(0.6, 1, "logic"),
    Category.API: CategoryMetadata(0.9, 3, "data"),
    Category.MODEL: CategoryMetadata(0.8, 2, "data"),
    Category.SCHEMA: CategoryMetadata(0.7, 2, "data"),
    Category.QUERY: CategoryMetadata(0.7, 2, "data"),
    Category.TYPES: CategoryMetadata(0.6, 1, "types"),
    Category.INTERFACE: CategoryMetadata(0.6, 1, "types"),
    Category.TEST: CategoryMetadata(0.5, 1, "testing"),
    Category.CONFIG: CategoryMetadata(0.6, 1, "config"),
    Category.ENV: CategoryMetadata(0.6, 1, "config"),
    Category.DIRECTORY: CategoryMetadata(0.4, 0, "structure"),
    Category.OTHER: CategoryMetadata(0.3, 0, "other"),
}

DISTRICT_BY_CATEGORY: Dict[Category, DistrictType] = {
    Category.PAGE: DistrictType.CORE,
    Category.LAYOUT: DistrictType.CORE,
    Category.ROUTE: DistrictType.CORE,
    Category.MIDDLEWARE: DistrictType.CORE,
    Category.COMPONENT: DistrictType.UI,
    Category.UI: DistrictType.UI,
    Category.STYLE: DistrictType.UI,
    Category.ASSET: DistrictType.UI,
    Category.HOOK: DistrictType.LOGIC,
    Category.CONTEXT: DistrictType.LOGIC,
    Category.STORE: DistrictType.LOGIC,
    Category.API: DistrictType.DATA,
    Category.SERVICE: DistrictType.DATA,
    Category.MODEL: DistrictType.DATA,
    Category.SCHEMA: DistrictType.DATA,
    Category.QUERY: DistrictType.DATA,
}

CODE_EXT = re.compile(r"\.(tsx|ts|jsx|js|mjs|cjs)$")
COMPONENT_EXT = re.compile(r"\.(tsx|jsx)$")
TEST_NAME = re.compile(r"\.(test|spec)\.(tsx|ts|jsx|js|mjs|cjs)$")
STYLE_EXT = re.compile(r"\.(css|scss|sass|less|styl)$")
ASSET_EXT = re.compile(r"\.(png|jpe?g|gif|svg|ico|webp|avif|woff2?|ttf|otf|eot|mp4|webm|mp3)$")
CONFIG_NAME = re.compile(r"(\.config\.(js|ts|mjs|cjs|json)|rc(\.(js|json|ya?ml))?|\.(json|ya?ml|toml))$")
HOOK_NAME = re.compile(r"^use([A-Z]|-)")
APP_ROUTE_NAME = re.compile(r"^route\.(ts|js)$")
APP_PAGE_NAME = re.compile(r"^page\.(tsx|jsx|ts|js)$")
LAYOUT_NAME = re.compile(r"^layout\.(tsx|jsx|ts|js)$")
MIDDLEWARE_NAME = re.compile(r"^middleware\.(ts|js)$")
STORE_NAME = re.compile(r"(^store\.|slice\.(ts|js)$)", re.IGNORECASE)


@dataclass(frozen=True)
class PathFacts:
    """Pre-computed facts about one relative path, shared by every rule."""
    name: str
    lower_name: str
    dirs: Tuple[str, ...]

    @classmethod
    def of(cls, relative_path: str) -> "PathFacts":
        pure = PurePosixPath(relative_path)
        dirs = tuple(part.lower() for part in pure.parts[:-1])
        return cls(name=pure.name, lower_name=pure.name.lower(), dirs=dirs)

    def within(self, *segments: str) -> bool:
        return any(segment in self.dirs for segment in segments)

    @property
    def is_code(self) -> bool:
        return bool(CODE_EXT.search(self.lower_name))


Rule = Tuple[Category, Callable[[PathFacts], bool]]

# Evaluated in order; first match wins
RULES: List[Rule] = [
    (Category.TEST, lambda f: bool(TEST_NAME.search(f.lower_name)) or f.within("__tests__", "test", "tests")),
    (Category.STYLE, lambda f: bool(STYLE_EXT.search(f.lower_name))),
    (Category.API, lambda f: f.is_code and (
        (f.within("app") and bool(APP_ROUTE_NAME.match(f.lower_name)))
        or (f.within("app", "pages") and f.within("api"))
    )),
    (Category.PAGE, lambda f: (f.within("app") and bool(APP_PAGE_NAME.match(f.lower_name)))
        or (f.within("pages") and f.is_code)),
    (Category.ROUTE, lambda f: f.within("routes") and f.is_code),
    (Category.LAYOUT, lambda f: bool(LAYOUT_NAME.match(f.lower_name)) or (f.within("layouts") and f.is_code)),
    (Category.MIDDLEWARE, lambda f: bool(MIDDLEWARE_NAME.match(f.lower_name))),
    (Category.HOOK, lambda f: f.is_code and (bool(HOOK_NAME.match(f.name)) or f.within("hooks"))),
    (Category.CONTEXT, lambda f: f.is_code and (f.within("context", "contexts", "providers") or "context" in f.lower_name)),
    (Category.STORE, lambda f: f.is_code and (f.within("store", "redux") or bool(STORE_NAME.search(f.name)))),
    (Category.UI, lambda f: bool(COMPONENT_EXT.search(f.lower_name)) and f.within("components") and f.within("ui")),
    (Category.COMPONENT, lambda f: bool(COMPONENT_EXT.search(f.lower_name)) and (f.within("components") or f.name[:1].isupper())),
    (Category.SERVICE, lambda f: f.is_code and f.within("services", "service")),
    (Category.MODEL, lambda f: f.is_code and f.within("models", "model")),
    (Category.SCHEMA, lambda f: f.lower_name.endswith(".prisma") or (f.is_code and f.within("schemas", "schema"))),
    (Category.QUERY, lambda f: f.lower_name.endswith((".sql", ".graphql", ".gql")) or (f.is_code and f.within("queries"))),
    (Category.TYPES, lambda f: f.lower_name.endswith(".d.ts") or (f.is_code and f.within("types"))),
    (Category.INTERFACE, lambda f: f.is_code and f.within("interfaces")),
    (Category.UTIL, lambda f: f.is_code and f.within("utils", "util", "helpers", "lib")),
    (Category.ENV, lambda f: f.lower_name.startswith(".env")),
    (Category.CONFIG, lambda f: bool(CONFIG_NAME.search(f.lower_name))),
    (Category.ASSET, lambda f: bool(ASSET_EXT.search(f.lower_name))),
]


def categorize_file(relative_path: str) -> Category:
    """Classify a file by its root-relative POSIX path."""
    facts = PathFacts.of(relative_path)
    for category, matches in RULES:
        if matches(facts):
            return category
    return Category.OTHER


def category_metadata(category: Category) -> CategoryMetadata:
    return CATEGORY_METADATA[category]


def district_for(category: Category) -> DistrictType:
    return DISTRICT_BY_CATEGORY.get(category, DistrictType.UTILITY)


def category_rank(category: Category) -> int:
    """Presentation rank, most important first. Never affects graph semantics."""
    return -int(category_metadata(category).importance * 100)
