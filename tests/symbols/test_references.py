"""Tests for symbols/references.py - reference matching per language."""

from __future__ import annotations

import pytest

from codelineage.core.errors import UnsupportedLanguageError
from codelineage.symbols.models import Reference, Symbol, SymbolKind, UsageKind
from codelineage.symbols.references import ReferenceMatcher
from codelineage.symbols.service import SymbolService


def _refs(source: str, language: str, targets: list[Symbol | str]) -> list[Reference]:
    return SymbolService.get().references(source, language, targets)


def _rows(refs: list[Reference]) -> list[tuple[str, int, str, str | None]]:
    return [(r.symbol, r.line, r.usage.value, r.context) for r in refs]


ADD = Symbol("add", SymbolKind.METHOD, 8, 10, "javascript", parent="Calculator")


class TestJavaScriptReferences:
    """Call, instantiation, import, plain reference."""

    def test_member_call_reported_once(self) -> None:
        # Given
        source = "const calc = new Calculator();\ncalc.add(5, 3);\n"

        # When
        refs = _refs(source, "javascript", [ADD])

        # Then
        assert refs == [Reference(symbol="add", line=2, usage=UsageKind.CALL, context=None)]

    def test_usage_file(self, calculator_js: str, usage_js: str) -> None:
        # Given
        targets = SymbolService.get().extract(calculator_js, "javascript")

        # When
        refs = _refs(usage_js, "javascript", targets)

        # Then
        assert _rows(refs) == [
            ("Calculator", 3, "import", None),
            ("processNumbers", 3, "import", None),
            ("MAGIC_NUMBER", 3, "import", None),
            ("Calculator", 6, "instantiation", "main"),
            ("add", 8, "call", "main"),
            ("subtract", 11, "call", "main"),
            ("MAGIC_NUMBER", 11, "reference", "main"),
            ("processNumbers", 15, "call", "main"),
            ("Calculator", 20, "instantiation", None),
        ]

    def test_declaring_lines_never_reported(self, calculator_js: str) -> None:
        # Given
        targets = SymbolService.get().extract(calculator_js, "javascript")
        declared = {(t.name, t.start_line) for t in targets}

        # When
        refs = _refs(calculator_js, "javascript", targets)

        # Then
        assert refs
        assert not {(r.symbol, r.line) for r in refs} & declared

    def test_context_skips_anonymous_functions(self, calculator_js: str) -> None:
        refs = _refs(calculator_js, "javascript", [ADD])

        assert _rows(refs) == [("add", 23, "call", "processNumbers")]

    def test_method_context_qualified_by_class(self) -> None:
        source = "class Runner {\n  go() {\n    return helper();\n  }\n}\n"

        refs = _refs(source, "javascript", ["helper"])

        assert _rows(refs) == [("helper", 3, "call", "Runner.go")]

    def test_arrow_function_bound_to_variable_names_context(self) -> None:
        source = "const run = () => {\n  helper();\n};\n"

        refs = _refs(source, "javascript", ["helper"])

        assert _rows(refs) == [("helper", 2, "call", "run")]

    def test_inheritance(self) -> None:
        source = "class Special extends Calculator {}\n"

        refs = _refs(source, "javascript", ["Calculator"])

        assert _rows(refs) == [("Calculator", 1, "inheritance", None)]

    def test_assignment_target_counts_as_use(self) -> None:
        source = "function reset() {\n  counter = 0;\n}\n"

        refs = _refs(source, "javascript", ["counter"])

        assert _rows(refs) == [("counter", 2, "reference", "reset")]

    def test_no_targets(self) -> None:
        assert _refs("foo();", "javascript", []) == []


class TestPythonReferences:
    """Python predicates."""

    DEFS = """\
class Greeter:
    def greet(self, name):
        return name

def make():
    return Greeter()
"""
    USAGE = """\
from app import Greeter, make

class Loud(Greeter):
    def shout(self):
        g = make()
        return g.greet("x")
"""

    def test_usage_kinds_and_contexts(self) -> None:
        targets = SymbolService.get().extract(self.DEFS, "python")

        refs = _refs(self.USAGE, "python", targets)

        assert _rows(refs) == [
            ("Greeter", 1, "import", None),
            ("make", 1, "import", None),
            ("Greeter", 3, "inheritance", None),
            ("make", 5, "call", "Loud.shout"),
            ("greet", 6, "call", "Loud.shout"),
        ]

    def test_class_call_is_instantiation(self) -> None:
        targets = SymbolService.get().extract(self.DEFS, "python")

        refs = _refs(self.DEFS, "python", targets)

        assert _rows(refs) == [("Greeter", 6, "instantiation", "make")]

    def test_name_shared_by_class_and_function_is_a_call(self) -> None:
        """Only a call whose every target is a class counts as construction."""
        # Given
        targets = [
            Symbol("Widget", SymbolKind.CLASS, 1, 2, "python"),
            Symbol("Widget", SymbolKind.FUNCTION, 1, 2, "python"),
        ]
        source = "w = Widget()\n"

        # When
        refs = _refs(source, "python", targets)

        # Then
        assert _rows(refs) == [("Widget", 1, "call", None)]

    def test_class_only_targets_make_instantiation(self) -> None:
        # Given
        targets = [Symbol("Widget", SymbolKind.CLASS, 1, 2, "python")]

        # When
        refs = _refs("w = Widget()\n", "python", targets)

        # Then
        assert _rows(refs) == [("Widget", 1, "instantiation", None)]

    def test_parameters_are_declarations(self) -> None:
        source = "def f(name):\n    return name\n"

        refs = _refs(source, "python", ["name"])

        assert _rows(refs) == [("name", 2, "reference", "f")]


class TestOtherLanguages:
    """Bash and C# predicates."""

    def test_bash_command_is_call(self) -> None:
        source = 'greet() {\n  echo hi\n}\ngreet\ndeploy() {\n  greet "x"\n}\n'

        refs = _refs(source, "bash", ["greet"])

        assert _rows(refs) == [
            ("greet", 4, "call", None),
            ("greet", 6, "call", "deploy"),
        ]

    def test_csharp_inheritance_instantiation_call(self) -> None:
        source = """\
using Demo;
class Program : Calculator
{
    static void Main()
    {
        var calc = new Calculator();
        calc.Add(1, 2);
    }
}
"""
        targets = [
            Symbol("Calculator", SymbolKind.CLASS, 1, 20, "csharp"),
            Symbol("Add", SymbolKind.METHOD, 5, 8, "csharp", parent="Calculator"),
        ]

        refs = _refs(source, "csharp", targets)

        assert _rows(refs) == [
            ("Calculator", 2, "inheritance", None),
            ("Calculator", 6, "instantiation", "Program.Main"),
            ("Add", 7, "call", "Program.Main"),
        ]

    def test_csharp_declared_types_are_type_references(self) -> None:
        # Given
        source = """\
class Shop
{
    private Calculator calc;
    public void Use(Calculator seed)
    {
        Calculator local = seed;
    }
}
"""

        # When
        refs = _refs(source, "csharp", ["Calculator"])

        # Then
        assert _rows(refs) == [
            ("Calculator", 3, "inheritance", None),
            ("Calculator", 4, "inheritance", "Shop.Use"),
            ("Calculator", 6, "inheritance", "Shop.Use"),
        ]

    def test_typescript_annotations_are_type_references(self) -> None:
        # Given
        source = (
            "function describe(c: Calculator): string {\n"
            '  return "x";\n'
            "}\n"
            "let current: Calculator;\n"
        )

        # When
        refs = _refs(source, "typescript", ["Calculator"])

        # Then
        assert _rows(refs) == [
            ("Calculator", 1, "inheritance", "describe"),
            ("Calculator", 4, "inheritance", None),
        ]

    def test_python_annotations_are_type_references(self) -> None:
        source = "def f(c: Calculator) -> Calculator:\n    return c\n"

        refs = _refs(source, "python", ["Calculator"])

        assert _rows(refs) == [
            ("Calculator", 1, "inheritance", "f"),
            ("Calculator", 1, "inheritance", "f"),
        ]

    def test_unsupported_language(self) -> None:
        with pytest.raises(UnsupportedLanguageError):
            ReferenceMatcher("cobol")
