"""Shared fixtures: small on-disk project trees."""

from pathlib import Path
from typing import Callable, Dict

import pytest

from codesphere.config import LayoutConfig, ProjectConfig
from codesphere.core.graph import NodeIndex
from codesphere.core.types import Category, GraphNode, NodeKind


@pytest.fixture
def make_project(tmp_path) -> Callable[[Dict[str, str]], Path]:
    """Write ``{relative_path: content}`` under a fresh project root."""

    def _make(files: Dict[str, str], name: str = "proj") -> Path:
        root = tmp_path / name
        root.mkdir()
        for rel, content in files.items():
            target = root / rel
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content)
        return root

    return _make


@pytest.fixture
def cycle_project(make_project) -> Path:
    return make_project(
        {
            "a.ts": "import { b } from './b'\nexport const a = 1\n",
            "b.ts": "import { c } from './c'\nexport const b = 2\n",
            "c.ts": "import { a } from './a'\nexport const c = 3\n",
        }
    )


@pytest.fixture
def app_project(make_project) -> Path:
    """A small React-style app with components, hooks, utils and an API route."""
    return make_project(
        {
            "package.json": '{"name": "app"}',
            "src/index.ts": "import App from './App'\nimport './styles/main.css'\n",
            "src/App.tsx": (
                "import { Button } from '@/components/Button'\n"
                "import { useCounter } from './hooks/useCounter'\n"
                "export default function App() {\n"
                "  const [n, inc] = useCounter()\n"
                "  return <div><Button onClick={inc}>{n}</Button></div>\n"
                "}\n"
            ),
            "src/components/Button.tsx": (
                "import React from 'react'\n"
                "import { cn } from '../utils'\n"
                "export function Button(props) {\n"
                "  if (props.disabled) { return null }\n"
                "  return <button className={cn('btn')}>{props.children}</button>\n"
                "}\n"
            ),
            "src/hooks/useCounter.ts": (
                "import { useState } from 'react'\n"
                "export function useCounter() {\n"
                "  const [n, setN] = useState(0)\n"
                "  return [n, () => setN(n + 1)]\n"
                "}\n"
            ),
            "src/utils/index.ts": "export const cn = (...xs) => xs.join(' ')\n",
            "src/styles/main.css": "body { margin: 0 }\n",
            "src/app/api/users/route.ts": "import { cn } from '~/utils'\nexport async function GET() {}\n",
            "node_modules/react/index.js": "module.exports = {}\n",
        }
    )


def _node(id_: str, kind: NodeKind, path: str, depth: int, parent: GraphNode | None, category=None) -> GraphNode:
    node = GraphNode(
        id=id_,
        name=path.rsplit("/", 1)[-1],
        kind=kind,
        category=category or (Category.DIRECTORY if kind == NodeKind.DIRECTORY else Category.OTHER),
        path=path,
        depth=depth,
        parent_id=parent.id if parent else None,
    )
    if parent is not None:
        parent.children.append(node)
    return node


@pytest.fixture
def small_index() -> NodeIndex:
    """
    In-memory tree:

        r/
          src/
            components/Button.tsx   (component)
            hooks/useThing.ts       (hook)
            api.ts                  (api)
          README.md                 (other)
    """
    root = _node("r", NodeKind.DIRECTORY, ".", 0, None)
    index = NodeIndex(root)
    src = _node("r/src", NodeKind.DIRECTORY, "src", 1, root)
    components = _node("r/src/components", NodeKind.DIRECTORY, "src/components", 2, src)
    hooks = _node("r/src/hooks", NodeKind.DIRECTORY, "src/hooks", 2, src)
    button = _node("r/src/components/Button.tsx", NodeKind.FILE, "src/components/Button.tsx", 3, components, Category.COMPONENT)
    hook = _node("r/src/hooks/useThing.ts", NodeKind.FILE, "src/hooks/useThing.ts", 3, hooks, Category.HOOK)
    api = _node("r/src/api.ts", NodeKind.FILE, "src/api.ts", 2, src, Category.API)
    readme = _node("r/README.md", NodeKind.FILE, "README.md", 1, root)
    for node in (src, components, hooks, button, hook, api, readme):
        index.add(node)

    button.imports.add(hook.id)
    hook.imported_by.add(button.id)
    hook.imports.add(api.id)
    api.imported_by.add(hook.id)
    for node in index:
        node.complexity = 2.0 if node.kind == NodeKind.FILE else 0.0
    return index


@pytest.fixture
def fast_config() -> ProjectConfig:
    config = ProjectConfig()
    config.scan.max_workers = 2
    config.layout = LayoutConfig(iterations=10)
    return config
