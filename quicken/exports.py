"""Static export surface of ECMAScript modules.

Determines which names a file exposes to ``import { name }`` by reading its
top-level export statements:

- ``export function f`` / ``export const a, b`` / ``export class C``
- ``export { a, b as c }`` and ``export { a } from './x'``
- ``export * from './x'`` (followed recursively) and ``export * as ns from``
- ``module.exports = { a, b }`` and ``exports.a = ...``

Every failure (missing file, parse error) yields an empty list. Star
re-exports from packages rather than relative paths are not followed.
"""

import logging
import os
from typing import Optional

from .js_parse import node_text, parse, string_value, walk
from .path_info import PathInfo, resolve_relative

logger = logging.getLogger(__name__)

DECLARATION_TYPES = {
    "function_declaration",
    "generator_function_declaration",
    "class_declaration",
    "abstract_class_declaration",
    "enum_declaration",
    "interface_declaration",
    "type_alias_declaration",
}

VARIABLE_DECLARATION_TYPES = {"lexical_declaration", "variable_declaration"}


def get_file_path_with_extension(expected_extension: str, directory: str, module_path: str) -> str:
    """Resolve an import path the way Node does for a bare relative specifier.

    An existing file wins, then the path with the extension appended, then the
    index file of a directory.
    """
    file_path = resolve_relative(directory, module_path)
    if os.path.isfile(file_path):
        return file_path
    with_extension = file_path + "." + expected_extension
    if os.path.isdir(file_path) and not os.path.exists(with_extension):
        return os.path.join(file_path, "index." + expected_extension)
    return with_extension


def _read_tree(file_path: str):
    try:
        with open(file_path, "rb") as f:
            source = f.read()
    except OSError as e:
        logger.debug(f"Could not read {file_path}: {e}")
        return None, b""

    tree = parse(source, PathInfo(file_path).file_extension_without_leading_dot)
    if tree is None:
        logger.warning(f"Could not parse {file_path}")
    return tree, source


def _is_module_exports(node, source: bytes) -> bool:
    """``module.exports``"""
    if node is None or node.type != "member_expression":
        return False
    obj = node.child_by_field_name("object")
    prop = node.child_by_field_name("property")
    return (
        obj is not None and obj.type == "identifier" and node_text(obj, source) == "module"
        and prop is not None and node_text(prop, source) == "exports"
    )


def module_exports_assignment(statement, source: bytes):
    """The assignment node of a top-level ``module.exports = ...`` statement."""
    if statement.type != "expression_statement" or statement.named_child_count != 1:
        return None
    expression = statement.named_children[0]
    if expression.type != "assignment_expression":
        return None
    if not _is_module_exports(expression.child_by_field_name("left"), source):
        return None
    return expression


def _exports_member_name(statement, source: bytes) -> Optional[str]:
    """Name assigned by ``exports.name = ...`` or ``module.exports.name = ...``."""
    if statement.type != "expression_statement" or statement.named_child_count != 1:
        return None
    expression = statement.named_children[0]
    if expression.type != "assignment_expression":
        return None
    left = expression.child_by_field_name("left")
    if left is None or left.type != "member_expression":
        return None

    obj = left.child_by_field_name("object")
    prop = left.child_by_field_name("property")
    if obj is None or prop is None:
        return None
    is_exports = obj.type == "identifier" and node_text(obj, source) == "exports"
    if is_exports or _is_module_exports(obj, source):
        return node_text(prop, source)
    return None


def _object_property_names(obj, source: bytes) -> list[str]:
    names = []
    for child in obj.named_children:
        if child.type == "shorthand_property_identifier":
            names.append(node_text(child, source))
        elif child.type == "pair":
            key = child.child_by_field_name("key")
            if key is None:
                continue
            if key.type == "string":
                names.append(string_value(key, source))
            elif key.type in ("property_identifier", "identifier"):
                names.append(node_text(key, source))
        elif child.type == "method_definition":
            name = child.child_by_field_name("name")
            if name is not None:
                names.append(node_text(name, source))
    return [name for name in names if name]


def _declared_names(declaration, source: bytes) -> list[str]:
    if declaration.type in DECLARATION_TYPES:
        name = declaration.child_by_field_name("name")
        return [node_text(name, source)] if name is not None else []
    if declaration.type in VARIABLE_DECLARATION_TYPES:
        names = []
        for declarator in declaration.named_children:
            if declarator.type != "variable_declarator":
                continue
            name = declarator.child_by_field_name("name")
            if name is not None and name.type == "identifier":
                names.append(node_text(name, source))
        return names
    return []


def export_specifiers(statement, source: bytes) -> list[tuple[str, str]]:
    """(exported name, local name) pairs of an ``export { ... }`` clause."""
    pairs = []
    for child in statement.named_children:
        if child.type != "export_clause":
            continue
        for specifier in child.named_children:
            if specifier.type != "export_specifier":
                continue
            local = specifier.child_by_field_name("name")
            alias = specifier.child_by_field_name("alias")
            if local is None:
                continue
            local_name = node_text(local, source)
            exported_name = node_text(alias, source) if alias is not None else local_name
            pairs.append((exported_name, local_name))
    return pairs


def is_default_export(statement) -> bool:
    """``export default ...`` or TypeScript's ``export = ...``"""
    if statement.type != "export_statement":
        return False
    return any(child.type in ("default", "=") for child in statement.children)


def is_star_export(statement) -> bool:
    """``export * from '...'`` without a namespace alias."""
    return statement.type == "export_statement" and any(
        child.type == "*" for child in statement.children
    )


def namespace_export_name(statement, source: bytes) -> Optional[str]:
    """Alias of ``export * as name from '...'``."""
    for child in statement.named_children:
        if child.type == "namespace_export":
            for grandchild in child.named_children:
                if grandchild.type in ("identifier", "string"):
                    return string_value(grandchild, source) or node_text(grandchild, source)
    return None


def has_default_export(tree, source: bytes) -> bool:
    """Whether a module has an ``export default`` or a ``module.exports =``."""
    for node in walk(tree):
        if is_default_export(node):
            return True
        if node.type == "expression_statement" and module_exports_assignment(node, source) is not None:
            return True
    return False


class ExportResolver:
    """Resolve exported names of files.

    Results are memoized within one top-level call only; nothing is cached
    across calls, so edits on disk are always picked up.
    """

    def get_exported_variables(self, file_path: str) -> list[str]:
        """Names a file exports, following star re-exports, without ``default``.

        Args:
            file_path: Absolute path of the module

        Returns:
            Exported names in declaration order, or [] if the file cannot be analyzed
        """
        memo: dict[str, list[str]] = {}
        return self._exported_variables(os.path.normpath(file_path), memo, set())

    def _exported_variables(self, file_path: str, memo: dict[str, list[str]], visiting: set[str]) -> list[str]:
        if file_path in memo:
            return memo[file_path]
        if file_path in visiting:
            logger.debug(f"Export cycle through {file_path}")
            return []
        visiting.add(file_path)

        tree, source = _read_tree(file_path)
        if tree is None:
            memo[file_path] = []
            visiting.discard(file_path)
            return []

        info = PathInfo(file_path)
        names: list[str] = []
        for statement in tree.root_node.named_children:
            if statement.type == "export_statement":
                declaration = statement.child_by_field_name("declaration")
                if declaration is not None and not is_default_export(statement):
                    names.extend(_declared_names(declaration, source))
                    continue

                namespace_name = namespace_export_name(statement, source)
                if namespace_name:
                    names.append(namespace_name)
                    continue

                module_path = string_value(statement.child_by_field_name("source"), source)
                if is_star_export(statement):
                    if module_path and module_path.startswith("."):
                        target = get_file_path_with_extension(
                            info.file_extension_without_leading_dot, info.directory_path, module_path
                        )
                        names.extend(self._exported_variables(target, memo, visiting))
                    continue

                names.extend(exported for exported, _ in export_specifiers(statement, source))

            elif statement.type == "expression_statement":
                assignment = module_exports_assignment(statement, source)
                if assignment is not None:
                    right = assignment.child_by_field_name("right")
                    if right is not None and right.type == "object":
                        names.extend(_object_property_names(right, source))
                    continue

                member_name = _exports_member_name(statement, source)
                if member_name:
                    names.append(member_name)

        result = _unique([name for name in names if name and name != "default"])
        memo[file_path] = result
        visiting.discard(file_path)
        return result

    def get_exported_variables_through_index(self, file_path: str, index_path: str) -> list[str]:
        """Names reachable for a file when it is imported through its index file.

        If ``file_path`` is the index itself, its full export list is returned;
        otherwise only the names the index re-exports from ``file_path``.
        """
        file_path = os.path.normpath(file_path)
        index_path = os.path.normpath(index_path)

        if PathInfo(file_path).file_name_without_extension == "index":
            return self.get_exported_variables(index_path)

        tree, source = _read_tree(index_path)
        if tree is None:
            return []

        index_info = PathInfo(index_path)
        extension = index_info.file_extension_without_leading_dot
        directory = index_info.directory_path

        def resolve(module_path: Optional[str]) -> Optional[str]:
            if not module_path or not module_path.startswith("."):
                return None
            return get_file_path_with_extension(extension, directory, module_path)

        # local binding -> file it was imported from
        imported_sources: dict[str, str] = {}
        for statement in tree.root_node.named_children:
            if statement.type != "import_statement":
                continue
            origin = resolve(string_value(statement.child_by_field_name("source"), source))
            if origin is None:
                continue
            for local_name in _import_clause_bindings(statement, source):
                imported_sources[local_name] = origin

        memo: dict[str, list[str]] = {}
        names_by_source: dict[str, list[str]] = {}
        for statement in tree.root_node.named_children:
            if statement.type != "export_statement":
                continue
            statement_source = string_value(statement.child_by_field_name("source"), source)

            if is_star_export(statement):
                origin = resolve(statement_source)
                if origin is not None:
                    names = self._exported_variables(os.path.normpath(origin), memo, set())
                    names_by_source.setdefault(os.path.normpath(origin), []).extend(names)
                continue

            for exported_name, local_name in export_specifiers(statement, source):
                if statement_source is not None:
                    origin = resolve(statement_source)
                else:
                    origin = imported_sources.get(local_name)
                if origin is None or exported_name == "default":
                    continue
                names_by_source.setdefault(os.path.normpath(origin), []).append(exported_name)

        return _unique(names_by_source.get(file_path, []))


def _import_clause_bindings(statement, source: bytes) -> list[str]:
    """Local names bound by an import statement's default and named specifiers."""
    names = []
    for child in statement.named_children:
        if child.type != "import_clause":
            continue
        for clause_child in child.named_children:
            if clause_child.type == "identifier":
                names.append(node_text(clause_child, source))
            elif clause_child.type == "named_imports":
                for specifier in clause_child.named_children:
                    if specifier.type != "import_specifier":
                        continue
                    alias = specifier.child_by_field_name("alias")
                    name = specifier.child_by_field_name("name")
                    bound = alias if alias is not None else name
                    if bound is not None:
                        names.append(node_text(bound, source))
    return names


def _unique(names: list[str]) -> list[str]:
    seen = set()
    result = []
    for name in names:
        if name not in seen:
            seen.add(name)
            result.append(name)
    return result
