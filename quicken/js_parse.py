"""Tree-sitter parsing of ECMAScript-family documents.

This module provides the syntax-tree layer of the import engine:
- parse(): permissive parsing of JavaScript, JSX, TypeScript and TSX
- get_existing_imports(): top-level import/require statements with ranges
- find_require_calls(): every ``require('...')`` call anywhere in a tree

Trees that contain error nodes are treated as unanalyzable and ``None`` is
returned, so callers skip the document instead of working on a partial tree.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterator, Optional

logger = logging.getLogger(__name__)

# Tree-sitter availability checks
TREE_SITTER_AVAILABLE = False
TREE_SITTER_JAVASCRIPT_AVAILABLE = False

try:
    from tree_sitter import Language, Parser, Tree
    import tree_sitter_typescript

    TREE_SITTER_AVAILABLE = True
except ImportError:
    pass

try:
    import tree_sitter_javascript

    TREE_SITTER_JAVASCRIPT_AVAILABLE = True
except ImportError:
    pass

TYPESCRIPT_LANGUAGE_IDS = {"typescript", "typescriptreact"}

REQUIRE_FUNCTION = "require"

_parsers: dict[str, Any] = {}


def _get_parser(grammar: str) -> Optional[Any]:
    """Get or create a tree-sitter parser for a grammar.

    Args:
        grammar: One of "typescript", "tsx", "javascript"

    Returns:
        Configured Parser or None if the grammar is not available
    """
    if not TREE_SITTER_AVAILABLE:
        return None

    if grammar in _parsers:
        return _parsers[grammar]

    if grammar == "typescript":
        language = Language(tree_sitter_typescript.language_typescript())
    elif grammar == "tsx":
        language = Language(tree_sitter_typescript.language_tsx())
    elif grammar == "javascript":
        if not TREE_SITTER_JAVASCRIPT_AVAILABLE:
            return None
        language = Language(tree_sitter_javascript.language())
    else:
        return None

    parser = Parser(language)
    _parsers[grammar] = parser
    return parser


def grammars_for(language_id: str) -> tuple[str, ...]:
    """Grammar order to try for a document language identifier or extension."""
    if language_id in TYPESCRIPT_LANGUAGE_IDS or language_id == "ts":
        return ("typescript", "tsx")
    return ("tsx", "javascript")


def parse(source_text: str | bytes, language_id: str = "javascript") -> Optional["Tree"]:
    """Parse source code with the most permissive grammar that accepts it.

    Args:
        source_text: Document text
        language_id: Document language identifier (javascript, typescriptreact...)
            or a bare file extension

    Returns:
        tree-sitter Tree, or None if no grammar parses the text cleanly
    """
    source = source_text.encode("utf-8") if isinstance(source_text, str) else source_text

    for grammar in grammars_for(language_id):
        parser = _get_parser(grammar)
        if parser is None:
            continue
        tree = parser.parse(source)
        if not tree.root_node.has_error:
            return tree
        logger.debug(f"Grammar {grammar} reported syntax errors for {language_id} source")

    logger.debug(f"Could not parse {language_id} source")
    return None


def node_text(node, source: bytes) -> str:
    return source[node.start_byte:node.end_byte].decode("utf-8")


def string_value(node, source: bytes) -> Optional[str]:
    """Literal value of a ``string`` node, without its quotes."""
    if node is None or node.type != "string":
        return None
    text = node_text(node, source)
    if len(text) < 2:
        return None
    return text[1:-1]


@dataclass(frozen=True)
class SourcePoint:
    """Position in a document: 0-based line and byte column."""

    line: int
    column: int

    @classmethod
    def from_point(cls, point) -> "SourcePoint":
        return cls(line=point[0], column=point[1])


@dataclass(frozen=True)
class SourceRange:
    start: SourcePoint
    end: SourcePoint
    start_byte: int
    end_byte: int

    @classmethod
    def of(cls, node) -> "SourceRange":
        return cls(
            start=SourcePoint.from_point(node.start_point),
            end=SourcePoint.from_point(node.end_point),
            start_byte=node.start_byte,
            end_byte=node.end_byte,
        )


class ImportKind(Enum):
    """Statement shapes recognized as existing imports."""

    IMPORT_DECLARATION = "import"  # import x from '...'
    REQUIRE_DECLARATION = "require_declaration"  # const x = require('...')
    REQUIRE_CALL = "require_call"  # require('...')


@dataclass(frozen=True)
class ExistingImport:
    """An import or require statement found in a parsed document.

    ``node`` is the import_statement, the variable_declarator holding the
    require call, or the expression_statement of a bare require call.
    ``range`` spans the whole statement in the original document.
    """

    node: Any
    kind: ImportKind
    path: str
    range: SourceRange

    @property
    def is_import_declaration(self) -> bool:
        return self.kind is ImportKind.IMPORT_DECLARATION


def _require_argument(call_node, source: bytes) -> Optional[str]:
    """Module path of ``require('<literal>')``, or None for any other call."""
    if call_node is None or call_node.type != "call_expression":
        return None

    function = call_node.child_by_field_name("function")
    if function is None or function.type != "identifier":
        return None
    if node_text(function, source) != REQUIRE_FUNCTION:
        return None

    arguments = call_node.child_by_field_name("arguments")
    if arguments is None or arguments.type != "arguments" or len(arguments.named_children) != 1:
        return None

    return string_value(arguments.named_children[0], source)


def _trim_path(path: str) -> str:
    # "./lib/" and "./lib" refer to the same module
    return path[:-1] if path.endswith("/") and len(path) > 1 else path


def get_existing_imports(tree: Optional["Tree"], source: bytes) -> list[ExistingImport]:
    """Extract top-level import and require statements.

    Recognized forms:
    - ``import ... from '<literal>'`` and ``import '<literal>'``
    - ``const|let|var <binding> = require('<literal>')``
    - ``require('<literal>')`` as a statement

    Args:
        tree: Parsed tree, or None for an unanalyzable document
        source: Document bytes the tree was parsed from

    Returns:
        Statements in document order
    """
    if tree is None:
        return []

    imports: list[ExistingImport] = []

    for node in tree.root_node.named_children:
        if node.type == "import_statement":
            path = string_value(node.child_by_field_name("source"), source)
            if path is not None:
                imports.append(ExistingImport(
                    node=node,
                    kind=ImportKind.IMPORT_DECLARATION,
                    path=_trim_path(path),
                    range=SourceRange.of(node),
                ))

        elif node.type in ("lexical_declaration", "variable_declaration"):
            for declarator in node.named_children:
                if declarator.type != "variable_declarator":
                    continue
                path = _require_argument(declarator.child_by_field_name("value"), source)
                if path is not None:
                    imports.append(ExistingImport(
                        node=declarator,
                        kind=ImportKind.REQUIRE_DECLARATION,
                        path=_trim_path(path),
                        range=SourceRange.of(node),
                    ))

        elif node.type == "expression_statement" and node.named_child_count == 1:
            path = _require_argument(node.named_children[0], source)
            if path is not None:
                imports.append(ExistingImport(
                    node=node,
                    kind=ImportKind.REQUIRE_CALL,
                    path=_trim_path(path),
                    range=SourceRange.of(node),
                ))

    return imports


def walk(tree: Optional["Tree"]) -> Iterator[Any]:
    """Visit every node once, depth first, using an explicit worklist."""
    if tree is None:
        return

    visited: set[int] = set()
    worklist = [tree.root_node]
    while worklist:
        node = worklist.pop()
        if node.id in visited:
            continue
        visited.add(node.id)
        yield node
        worklist.extend(reversed(node.children))


def find_require_calls(tree: Optional["Tree"], source: bytes) -> list[tuple[Any, str]]:
    """Find ``require('<literal>')`` calls anywhere in the tree.

    Returns:
        (string literal node, module path) pairs in document order
    """
    calls = []
    for node in walk(tree):
        path = _require_argument(node, source)
        if path is not None:
            literal = node.child_by_field_name("arguments").named_children[0]
            calls.append((literal, path))
    return calls


def find_first(tree: Optional["Tree"], predicate) -> Optional[Any]:
    """First node in document order for which predicate(node) is true."""
    for node in walk(tree):
        if predicate(node):
            return node
    return None
