"""Tests for tree-sitter parsing and existing import extraction."""

import pytest

# Skip all tests if the TypeScript grammar is not available
pytest.importorskip("tree_sitter_typescript")


def scan(source: str, language_id: str = "javascript"):
    from quicken.js_parse import get_existing_imports, parse

    data = source.encode("utf-8")
    return get_existing_imports(parse(data, language_id), data)


class TestParse:
    def test_jsx(self):
        from quicken.js_parse import parse

        tree = parse("const App = () => <div className='x'>{items}</div>;\n", "javascriptreact")

        assert tree is not None

    def test_decorators_and_types(self):
        from quicken.js_parse import parse

        source = "@Component({})\nclass Foo { bar: string = ''; }\nexport default Foo;\n"

        assert parse(source, "typescript") is not None

    def test_syntax_error_returns_none(self):
        from quicken.js_parse import parse

        assert parse("import { from 'x'\nconst = ;", "javascript") is None

    def test_empty_source(self):
        from quicken.js_parse import parse

        assert parse("", "javascript") is not None


class TestExistingImports:
    def test_three_recognized_forms(self):
        from quicken.js_parse import ImportKind

        imports = scan(
            "import React from 'react';\n"
            "const fs = require('fs');\n"
            "require('./setup');\n"
            "doSomething();\n"
        )

        assert [(item.kind, item.path) for item in imports] == [
            (ImportKind.IMPORT_DECLARATION, "react"),
            (ImportKind.REQUIRE_DECLARATION, "fs"),
            (ImportKind.REQUIRE_CALL, "./setup"),
        ]

    def test_side_effect_import(self):
        imports = scan("import './styles.css'\n")

        assert [item.path for item in imports] == ["./styles.css"]

    def test_trailing_slash_trimmed(self):
        imports = scan("import lib from './lib/'\n")

        assert imports[0].path == "./lib"

    def test_nested_require_ignored(self):
        imports = scan(
            "function load() {\n"
            "  const x = require('./x');\n"
            "}\n"
            "const y = require(name);\n"
            "const z = other('./z');\n"
        )

        assert imports == []

    def test_ranges_cover_statement(self):
        source = "// header\nimport { a } from './m';\nconst b = require('./b')\n"
        imports = scan(source)
        data = source.encode("utf-8")

        first, second = imports
        assert first.range.start.line == 1
        assert first.range.start.column == 0
        assert data[first.range.start_byte:first.range.end_byte] == b"import { a } from './m';"
        assert data[second.range.start_byte:second.range.end_byte] == b"const b = require('./b')"

    def test_unparsable_document(self):
        assert scan("import { from") == []


class TestRequireCalls:
    def test_finds_nested_calls_in_order(self):
        from quicken.js_parse import find_require_calls, parse

        source = (
            "const a = require('./a');\n"
            "function f() {\n"
            "  return require('./b').default;\n"
            "}\n"
            "module.exports = { c: require(\"./c\") };\n"
        )
        data = source.encode("utf-8")

        calls = find_require_calls(parse(data), data)

        assert [path for _, path in calls] == ["./a", "./b", "./c"]
        literal, _ = calls[2]
        assert data[literal.start_byte:literal.end_byte] == b'"./c"'
