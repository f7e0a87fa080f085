"""
JavaScript/TypeScript extractors.

Lightweight text scanning for:
- Import specifiers (ES modules, dynamic import(), CommonJS require, re-exports)
- Export names (declarations and export lists)
- Structural signals for the complexity estimator

This is pattern matching, not parsing: it tolerates syntax a parser would
reject but can over-match inside strings or comments.
"""

import re
from bisect import bisect_right
from typing import Generator, List, Tuple

from ...config import JSX_EXTENSIONS, RELATIVE_PREFIXES, ROOT_RELATIVE_PREFIXES, SOURCE_EXTENSIONS
from ..base import ExportName, ExtractionContext, Finding, ImportSpecifier, StructuralSignals

# (pattern, is_dynamic, is_commonjs)
IMPORT_PATTERNS: List[Tuple[re.Pattern, bool, bool]] = [
    # import x from "module" / import { a } from "module" / import "module"
    (re.compile(r'\bimport\s+(?:type\s+)?(?:[\w$*{}\s,]+?\s+from\s+)?["\']([^"\'\n]+)["\']'), False, False),
    # export * from "module" / export { a } from "module"
    (re.compile(r'\bexport\s+(?:type\s+)?(?:\*(?:\s+as\s+[\w$]+)?|\{[^}]*\})\s*from\s+["\']([^"\'\n]+)["\']'), False, False),
    # import("module")
    (re.compile(r'\bimport\s*\(\s*["\']([^"\'\n]+)["\']\s*\)'), True, False),
    # require("module")
    (re.compile(r'\brequire\s*\(\s*["\']([^"\'\n]+)["\']\s*\)'), False, True),
]

EXPORT_DECLARATION = re.compile(
    r'\bexport\s+(?:default\s+)?(?:declare\s+)?(?:async\s+)?(?:abstract\s+)?'
    r'(?:class|function\*?|const|let|var|interface|type|enum)\s+([A-Za-z_$][\w$]*)'
)
EXPORT_DEFAULT_EXPRESSION = re.compile(
    r'\bexport\s+default\b(?!\s+(?:async\s+)?(?:abstract\s+)?(?:class|function)\b)'
)
EXPORT_LIST = re.compile(r'\bexport\s+(?:type\s+)?\{([^}]*)\}')

FUNCTION_PATTERN = re.compile(r'\bfunction\b|=>|\bclass\s+[A-Za-z_$]')
CONTROL_FLOW_PATTERN = re.compile(r'\b(?:if|for|while|switch|catch)\b')
JSX_ELEMENT_PATTERN = re.compile(r'<(?:[A-Z][\w.]*|[a-z][\w-]*)(?=[\s/>])')
HOOK_CALL_PATTERN = re.compile(r'\buse[A-Z][\w$]*\s*\(')


def is_internal_specifier(specifier: str) -> bool:
    """True for relative or root-relative specifiers; bare packages are external."""
    if specifier in (".", ".."):
        return True
    return specifier.startswith(RELATIVE_PREFIXES) or specifier.startswith(ROOT_RELATIVE_PREFIXES)


def _line_starts(text: str) -> List[int]:
    """Offsets of the first character of every line."""
    return [0] + [m.end() for m in re.finditer(r"\n", text)]


def _line_of(line_starts: List[int], offset: int) -> int:
    return bisect_right(line_starts, offset)


class _SourceExtractor:
    """Shared applicability check for JS/TS sources."""

    def can_extract(self, ctx: ExtractionContext) -> bool:
        return ctx.extension in SOURCE_EXTENSIONS


class ImportExtractor(_SourceExtractor):
    """Internal import specifiers in source order."""

    @property
    def name(self) -> str:
        return "js_imports"

    @property
    def priority(self) -> int:
        return 100

    def extract(self, ctx: ExtractionContext) -> Generator[Finding, None, None]:
        matches = []
        for pattern, is_dynamic, is_commonjs in IMPORT_PATTERNS:
            for match in pattern.finditer(ctx.text):
                matches.append((match.start(1), match.group(1).strip(), is_dynamic, is_commonjs))

        line_starts = _line_starts(ctx.text)
        seen = set()
        for offset, specifier, is_dynamic, is_commonjs in sorted(matches, key=lambda m: m[0]):
            if specifier in seen or not is_internal_specifier(specifier):
                continue
            seen.add(specifier)
            yield ImportSpecifier(
                value=specifier,
                line=_line_of(line_starts, offset),
                is_dynamic=is_dynamic,
                is_commonjs=is_commonjs,
            )


class ExportExtractor(_SourceExtractor):
    """Exported names; list exports record the public alias."""

    @property
    def name(self) -> str:
        return "js_exports"

    @property
    def priority(self) -> int:
        return 90

    def extract(self, ctx: ExtractionContext) -> Generator[Finding, None, None]:
        found = []
        for match in EXPORT_DECLARATION.finditer(ctx.text):
            found.append((match.start(), match.group(1)))

        for match in EXPORT_DEFAULT_EXPRESSION.finditer(ctx.text):
            found.append((match.start(), "default"))

        for match in EXPORT_LIST.finditer(ctx.text):
            for raw in match.group(1).split(","):
                item = raw.strip()
                if item.startswith("type "):
                    item = item[5:].strip()
                if not item:
                    continue
                # `a as b` exports b
                alias = re.split(r'\s+as\s+', item)[-1].strip()
                if alias:
                    found.append((match.start(), alias))

        line_starts = _line_starts(ctx.text)
        seen = set()
        for offset, name in sorted(found, key=lambda f: f[0]):
            if name in seen:
                continue
            seen.add(name)
            yield ExportName(value=name, line=_line_of(line_starts, offset))


class StructureExtractor(_SourceExtractor):
    """Counts lines of code, declarations, branches, JSX and hook calls."""

    @property
    def name(self) -> str:
        return "js_structure"

    @property
    def priority(self) -> int:
        return 50

    def extract(self, ctx: ExtractionContext) -> Generator[Finding, None, None]:
        text = ctx.text
        is_jsx = ctx.extension in JSX_EXTENSIONS
        yield StructuralSignals(
            lines=sum(1 for line in text.splitlines() if line.strip()),
            functions=len(FUNCTION_PATTERN.findall(text)),
            control_flow=len(CONTROL_FLOW_PATTERN.findall(text)),
            jsx_elements=len(JSX_ELEMENT_PATTERN.findall(text)) if is_jsx else 0,
            hook_calls=len(HOOK_CALL_PATTERN.findall(text)),
        )


def default_extractors() -> list:
    return [ImportExtractor(), ExportExtractor(), StructureExtractor()]
