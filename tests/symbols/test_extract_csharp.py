"""Symbol extraction for C#."""

from __future__ import annotations

from collections.abc import Callable

from codelineage.symbols.models import Symbol, SymbolKind

SOURCE = """\
namespace Demo
{
    public class Calculator : BaseCalc
    {
        public const int MAX_VALUE = 100;
        private static readonly string DefaultName = "calc";
        private int total;

        public Calculator()
        {
            total = 0;
        }

        public int Add(int a, int b)
        {
            return a + b;
        }
    }

    public interface IShape
    {
        double Area();
    }
}
"""


class TestCSharpExtraction:
    """Types, members, constants."""

    def test_default_query_keeps_types_and_members(
        self, extract: Callable[..., list[Symbol]]
    ) -> None:
        symbols = extract(SOURCE, "csharp")

        assert [(s.name, s.kind.value, s.start_line, s.end_line) for s in symbols] == [
            ("Calculator", "class", 3, 18),
            ("MAX_VALUE", "constant", 5, 5),
            ("DefaultName", "constant", 6, 6),
            ("total", "field", 7, 7),
            ("Calculator", "constructor", 9, 12),
            ("Add", "method", 14, 17),
            ("IShape", "interface", 20, 23),
            ("Area", "method", 22, 22),
        ]

    def test_base_list_gives_superclass(self, extract: Callable[..., list[Symbol]]) -> None:
        [calc] = extract(SOURCE, "csharp", {"Elements": ["class"]})

        assert calc.extends == "BaseCalc"

    def test_method_parent_is_enclosing_type(self, extract: Callable[..., list[Symbol]]) -> None:
        methods = extract(SOURCE, "csharp", {"Elements": ["method"]})

        assert [(m.name, m.parent) for m in methods] == [
            ("Add", "Calculator"),
            ("Area", "IShape"),
        ]

    def test_const_and_static_readonly_fields_are_constants(
        self, extract: Callable[..., list[Symbol]]
    ) -> None:
        constants = extract(SOURCE, "csharp", {"Elements": ["constant"]})

        assert [(c.name, c.start_line, c.parent) for c in constants] == [
            ("MAX_VALUE", 5, "Calculator"),
            ("DefaultName", 6, "Calculator"),
        ]

    def test_plain_field(self, extract: Callable[..., list[Symbol]]) -> None:
        fields = extract(SOURCE, "csharp", {"Elements": ["field"]})

        assert [(f.name, f.kind, f.parent) for f in fields] == [
            ("total", SymbolKind.FIELD, "Calculator")
        ]

    def test_constructor_named_after_owner(self, extract: Callable[..., list[Symbol]]) -> None:
        [ctor] = extract(SOURCE, "csharp", {"Elements": ["constructor"]})

        assert (ctor.name, ctor.parent, ctor.start_line, ctor.end_line) == (
            "Calculator",
            "Calculator",
            9,
            12,
        )
