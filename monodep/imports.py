"""Tree-sitter powered import extraction for JavaScript and TypeScript sources."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Dict, List, Optional, Set

import tree_sitter_javascript
import tree_sitter_typescript
from tree_sitter import Language, Node, Parser

from .logging import get_logger
from .models import DynamicCandidate, ExtractedImports

_GRAMMARS: Dict[str, Callable[[], object]] = {
    "typescript": tree_sitter_typescript.language_typescript,
    "tsx": tree_sitter_typescript.language_tsx,
    "javascript": tree_sitter_javascript.language,
}

_DIALECT_BY_SUFFIX = {
    ".ts": "typescript",
    ".mts": "typescript",
    ".cts": "typescript",
    ".tsx": "tsx",
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
}

_TYPE_MODIFIERS = {"type", "typeof"}

logger = get_logger("imports")


def dialect_for(filename: Optional[str]) -> str:
    """Pick the grammar for ``filename``; TSX is the most permissive fallback."""
    if filename:
        suffix = Path(filename).suffix.lower()
        if suffix in _DIALECT_BY_SUFFIX:
            return _DIALECT_BY_SUFFIX[suffix]
    return "tsx"


def read_source(path: str | Path) -> Optional[str]:
    """Read a source file, returning None (with a warning) when it cannot be read."""
    try:
        return Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("Failed to read %s: %s", path, exc)
        return None


class ImportExtractor:
    """Extracts value, type-only and dynamic imports from a source file."""

    def __init__(self) -> None:
        self._parsers: Dict[str, Parser] = {}

    def extract(self, content: str | bytes, filename: Optional[str] = None) -> ExtractedImports:
        if isinstance(content, bytes):
            try:
                content = content.decode("utf-8")
            except UnicodeDecodeError:
                logger.warning("Skipping undecodable source %s", filename or "<memory>")
                return ExtractedImports()
        source_bytes = content.encode("utf-8")
        try:
            tree = self._get_parser(dialect_for(filename)).parse(source_bytes)
        except (ValueError, TypeError) as exc:
            logger.warning("Failed to parse %s: %s", filename or "<memory>", exc)
            return ExtractedImports()

        collector = _Collector(source_bytes)
        collector.walk(tree.root_node)
        return ExtractedImports(
            values=frozenset(collector.values),
            type_only=frozenset(collector.type_only - collector.values),
            dynamic=tuple(collector.dynamic),
        )

    def extract_file(self, path: str | Path) -> ExtractedImports:
        content = read_source(path)
        if content is None:
            return ExtractedImports()
        return self.extract(content, str(path))

    def _get_parser(self, dialect: str) -> Parser:
        parser = self._parsers.get(dialect)
        if parser is None:
            parser = Parser(Language(_GRAMMARS[dialect]()))
            self._parsers[dialect] = parser
        return parser


class _Collector:
    def __init__(self, source_bytes: bytes) -> None:
        self.source_bytes = source_bytes
        self.values: Set[str] = set()
        self.type_only: Set[str] = set()
        self.dynamic: List[DynamicCandidate] = []

    def walk(self, root: Node) -> None:
        stack = [root]
        while stack:
            node = stack.pop()
            if node.type == "import_statement":
                self._visit_import(node)
                continue
            if node.type == "export_statement" and node.child_by_field_name("source"):
                self._visit_export(node)
                continue
            if node.type == "call_expression":
                self._visit_call(node)
            stack.extend(reversed(node.children))

    def _visit_import(self, node: Node) -> None:
        source = node.child_by_field_name("source")
        require_clause = _first_child(node, "import_require_clause")
        if source is None and require_clause is not None:
            source = require_clause.child_by_field_name("source") or _first_child(
                require_clause, "string"
            )
        specifier = self._literal(source)
        if not specifier:
            return

        clause = _first_child(node, "import_clause")
        if _has_type_modifier(node):
            self.type_only.add(specifier)
        elif clause is None or _clause_is_value(clause):
            self.values.add(specifier)
        else:
            self.type_only.add(specifier)

    def _visit_export(self, node: Node) -> None:
        specifier = self._literal(node.child_by_field_name("source"))
        if not specifier:
            return
        if _has_type_modifier(node):
            self.type_only.add(specifier)
            return
        export_clause = _first_child(node, "export_clause")
        if export_clause is not None:
            specifiers = [
                child for child in export_clause.named_children if child.type == "export_specifier"
            ]
            if specifiers and all(_has_type_modifier(child) for child in specifiers):
                self.type_only.add(specifier)
                return
        self.values.add(specifier)

    def _visit_call(self, node: Node) -> None:
        function = node.child_by_field_name("function")
        arguments = node.child_by_field_name("arguments")
        if function is None or arguments is None or arguments.type != "arguments":
            return
        is_import = function.type == "import"
        is_require = function.type == "identifier" and self._text(function) == "require"
        if not (is_import or is_require):
            return

        args = [child for child in arguments.named_children if child.type != "comment"]
        if not args:
            return
        first = args[0]
        specifier = self._literal(first)
        if specifier is not None:
            if specifier:
                self.values.add(specifier)
            return
        self.dynamic.append(
            DynamicCandidate(line=node.start_point[0] + 1, expression=self._text(first))
        )

    def _literal(self, node: Optional[Node]) -> Optional[str]:
        if node is None:
            return None
        if node.type == "string":
            return self._text(node)[1:-1]
        if node.type == "template_string" and not any(
            child.type == "template_substitution" for child in node.named_children
        ):
            return self._text(node)[1:-1]
        return None

    def _text(self, node: Node) -> str:
        return self.source_bytes[node.start_byte : node.end_byte].decode("utf-8", errors="ignore")


def _first_child(node: Node, node_type: str) -> Optional[Node]:
    for child in node.children:
        if child.type == node_type:
            return child
    return None


def _has_type_modifier(node: Node) -> bool:
    return any(not child.is_named and child.type in _TYPE_MODIFIERS for child in node.children)


def _clause_is_value(clause: Node) -> bool:
    named_bindings: List[Node] = []
    for child in clause.named_children:
        if child.type in ("identifier", "namespace_import"):
            return True
        if child.type == "named_imports":
            named_bindings.extend(
                spec for spec in child.named_children if spec.type == "import_specifier"
            )
    if not named_bindings:
        return True
    return not all(_has_type_modifier(spec) for spec in named_bindings)


__all__ = ["ImportExtractor", "dialect_for", "read_source"]
