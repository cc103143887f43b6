"""Per-language symbol extraction rules.

One ``SymbolExtractor`` subclass per language. Each maps tree-sitter node
types to handler methods; handlers read names and bases from the node and
resolve parents and top-level-ness from the ancestor chain.
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from typing import Any

from codelineage.core.errors import UnsupportedLanguageError
from codelineage.parsing.packs import get_pack
from codelineage.symbols.extractor import Handler, SymbolExtractor
from codelineage.symbols.models import Symbol, SymbolKind
from codelineage.symbols.walk import Visit, field_text, first_child_of_type, text

_UPPER_CONSTANT = re.compile(r"^[A-Z][A-Z_0-9]*$")
_UPPER_CONSTANT_DOTTED = re.compile(r"^[A-Z][A-Z._0-9]*$")


def _strip_quotes(value: str) -> str:
    return value.strip().strip("'\"")


# =============================================================================
# JavaScript / TypeScript
# =============================================================================

_JS_FUNCTION_SCOPES = frozenset(
    {
        "function_declaration",
        "generator_function_declaration",
        "function_expression",
        "function",
        "generator_function",
        "arrow_function",
        "method_definition",
    }
)
_JS_CLASSES = frozenset({"class_declaration", "abstract_class_declaration", "class"})
_JS_FUNCTION_VALUES = frozenset(
    {"arrow_function", "function_expression", "function", "generator_function"}
)
_JS_GLOBAL_OBJECTS = frozenset({"window", "global", "globalThis"})
_JS_NAMED_DECLARATIONS = frozenset(
    {
        "function_declaration",
        "generator_function_declaration",
        "class_declaration",
        "abstract_class_declaration",
        "interface_declaration",
        "type_alias_declaration",
        "enum_declaration",
    }
)


def _js_superclass(node: Any) -> str | None:
    heritage = first_child_of_type(node, "class_heritage")
    if heritage is None:
        return None
    # TypeScript wraps the base in an extends_clause
    extends = first_child_of_type(heritage, "extends_clause")
    if extends is not None:
        value = extends.child_by_field_name("value")
        if value is None and extends.named_children:
            value = extends.named_children[0]
        return text(value) or None
    for child in heritage.named_children:
        return text(child) or None
    return None


def _js_declarators(node: Any) -> list[Any]:
    return [c for c in node.named_children if c.type == "variable_declarator"]


class JavaScriptExtractor(SymbolExtractor):
    language = "javascript"

    def _build_handlers(self) -> dict[str, Handler]:
        return {
            "class_declaration": self._class,
            "abstract_class_declaration": self._class,
            "function_declaration": self._function,
            "generator_function_declaration": self._function,
            "method_definition": self._method,
            "lexical_declaration": self._declaration,
            "variable_declaration": self._declaration,
            "pair": self._object_method,
            "assignment_expression": self._global,
            "export_statement": self._export,
        }

    def _class(self, visit: Visit) -> Iterator[Symbol]:
        node = visit.node
        name = field_text(node, "name")
        if name:
            yield self.symbol(node, name, SymbolKind.CLASS, extends=_js_superclass(node))

    def _function(self, visit: Visit) -> Iterator[Symbol]:
        name = field_text(visit.node, "name")
        if name:
            yield self.symbol(visit.node, name, SymbolKind.FUNCTION)

    def _method(self, visit: Visit) -> Iterator[Symbol]:
        name = field_text(visit.node, "name")
        if not name:
            return
        cls = visit.nearest(_JS_CLASSES)
        parent = field_text(cls, "name") if cls is not None else None
        yield self.symbol(visit.node, name, SymbolKind.METHOD, parent=parent)

    def _declaration(self, visit: Visit) -> Iterator[Symbol]:
        """Function-valued declarators at any depth; top-level `const` otherwise."""
        node = visit.node
        is_const = bool(node.children) and text(node.children[0]) == "const"
        nested = visit.inside(_JS_FUNCTION_SCOPES)
        declarators = _js_declarators(node)
        for declarator in declarators:
            name_node = declarator.child_by_field_name("name")
            if name_node is None or name_node.type != "identifier":
                continue
            span = node if len(declarators) == 1 else declarator
            value = declarator.child_by_field_name("value")
            if value is not None and value.type in _JS_FUNCTION_VALUES:
                yield self.symbol(span, text(name_node), SymbolKind.FUNCTION)
            elif is_const and not nested:
                yield from self.constant(span, text(name_node))

    def _object_method(self, visit: Visit) -> Iterator[Symbol]:
        # { name: function () {}, other: () => {} } outside class bodies
        node = visit.node
        value = node.child_by_field_name("value")
        if value is None or value.type not in _JS_FUNCTION_VALUES:
            return
        if visit.nearest(_JS_CLASSES) is not None:
            return
        key = node.child_by_field_name("key")
        if key is None or key.type == "computed_property_name":
            return
        name = _strip_quotes(text(key))
        if name:
            yield self.symbol(node, name, SymbolKind.METHOD)

    def _global(self, visit: Visit) -> Iterator[Symbol]:
        left = visit.node.child_by_field_name("left")
        if left is None or left.type != "member_expression":
            return
        obj = field_text(left, "object")
        prop = field_text(left, "property")
        if obj in _JS_GLOBAL_OBJECTS and prop:
            yield self.symbol(visit.node, prop, SymbolKind.GLOBAL)

    def _export(self, visit: Visit) -> Iterator[Symbol]:
        node = visit.node
        declaration = node.child_by_field_name("declaration")
        if declaration is not None:
            yield self.symbol(node, _exported_name(declaration), SymbolKind.EXPORT)
            return
        clause = first_child_of_type(node, "export_clause")
        if clause is not None:
            for spec in clause.named_children:
                if spec.type != "export_specifier":
                    continue
                name = field_text(spec, "alias") or field_text(spec, "name")
                if name:
                    yield self.symbol(node, name, SymbolKind.EXPORT)
            return
        if any(child.type == "default" for child in node.children):
            yield self.symbol(node, "default", SymbolKind.EXPORT)


def _exported_name(declaration: Any) -> str:
    if declaration.type in _JS_NAMED_DECLARATIONS:
        return field_text(declaration, "name") or "default"
    if declaration.type in ("lexical_declaration", "variable_declaration"):
        for declarator in _js_declarators(declaration):
            name = field_text(declarator, "name")
            if name:
                return name
    return "default"


class TypeScriptExtractor(JavaScriptExtractor):
    language = "typescript"

    def _build_handlers(self) -> dict[str, Handler]:
        handlers = super()._build_handlers()
        handlers["interface_declaration"] = self._interface
        return handlers

    def _interface(self, visit: Visit) -> Iterator[Symbol]:
        name = field_text(visit.node, "name")
        if name:
            yield self.symbol(visit.node, name, SymbolKind.INTERFACE)


# =============================================================================
# Python
# =============================================================================

_PY_SCOPES = frozenset({"function_definition", "class_definition"})


class PythonExtractor(SymbolExtractor):
    language = "python"

    def _build_handlers(self) -> dict[str, Handler]:
        return {
            "class_definition": self._class,
            "function_definition": self._function,
            "assignment": self._constant,
            "global_statement": self._global,
        }

    def _class(self, visit: Visit) -> Iterator[Symbol]:
        node = visit.node
        name = field_text(node, "name")
        if not name:
            return
        base = None
        superclasses = node.child_by_field_name("superclasses")
        if superclasses is not None:
            for arg in superclasses.named_children:
                if arg.type != "keyword_argument":
                    base = text(arg)
                    break
        yield self.symbol(node, name, SymbolKind.CLASS, extends=base)

    def _function(self, visit: Visit) -> Iterator[Symbol]:
        node = visit.node
        name = field_text(node, "name")
        if not name:
            return
        cls = visit.nearest({"class_definition"})
        if cls is None:
            yield self.symbol(node, name, SymbolKind.FUNCTION)
        else:
            yield self.symbol(node, name, SymbolKind.METHOD, parent=field_text(cls, "name"))

    def _constant(self, visit: Visit) -> Iterator[Symbol]:
        left = visit.node.child_by_field_name("left")
        if left is None or left.type != "identifier":
            return
        name = text(left)
        if _UPPER_CONSTANT.match(name) and not visit.inside(_PY_SCOPES):
            yield from self.constant(visit.node, name)

    def _global(self, visit: Visit) -> Iterator[Symbol]:
        for child in visit.node.named_children:
            if child.type == "identifier":
                yield self.symbol(visit.node, text(child), SymbolKind.GLOBAL)


# =============================================================================
# Bash
# =============================================================================


class BashExtractor(SymbolExtractor):
    language = "bash"

    def _build_handlers(self) -> dict[str, Handler]:
        return {
            "function_definition": self._function,
            "declaration_command": self._declaration,
        }

    def _function(self, visit: Visit) -> Iterator[Symbol]:
        name = field_text(visit.node, "name")
        if name:
            yield self.symbol(visit.node, name, SymbolKind.FUNCTION)

    def _declaration(self, visit: Visit) -> Iterator[Symbol]:
        node = visit.node
        if not node.children:
            return
        keyword = text(node.children[0])
        flags = "".join(
            text(c)[1:] for c in node.named_children if c.type == "word" and text(c).startswith("-")
        )
        readonly = keyword == "readonly" or (keyword in ("declare", "typeset") and "r" in flags)
        exported = keyword == "export" or (keyword in ("declare", "typeset") and "x" in flags)

        for child in node.named_children:
            if child.type == "variable_assignment":
                name = field_text(child, "name")
            elif child.type == "variable_name":
                name = text(child)
            else:
                continue
            if not name:
                continue
            if readonly:
                yield from self.constant(node, name)
            if exported:
                yield self.symbol(node, name, SymbolKind.GLOBAL)
                yield self.symbol(node, name, SymbolKind.EXPORT)


# =============================================================================
# PowerShell
# =============================================================================

_PS_SCOPED_VARIABLE = re.compile(r"^\$(?:global|script):(\w+)$", re.IGNORECASE)
_PS_OPTION = re.compile(r"-Option\s+['\"]?(?:ReadOnly|Constant)\b", re.IGNORECASE)
_PS_NAME = re.compile(r"-Name\s+['\"]?(\w+)", re.IGNORECASE)
_PS_POSITIONAL = re.compile(r"^[\w-]+\s+['\"]?(\w+)")
_PS_FUNCTION_LIST = re.compile(r"-Function\s+([^-]+)", re.IGNORECASE)
_PS_CLASSES = frozenset({"class_statement"})


def _descendant(node: Any | None, node_type: str) -> Any | None:
    if node is None:
        return None
    stack = [node]
    while stack:
        current = stack.pop()
        if current.type == node_type:
            return current
        stack.extend(reversed(current.children))
    return None


class PowerShellExtractor(SymbolExtractor):
    language = "powershell"

    def _build_handlers(self) -> dict[str, Handler]:
        return {
            "class_statement": self._class,
            "function_statement": self._function,
            "class_method_definition": self._method,
            "method_definition": self._method,
            "assignment_expression": self._assignment,
            "command": self._command,
        }

    def _class(self, visit: Visit) -> Iterator[Symbol]:
        names = [c for c in visit.node.children if c.type == "simple_name"]
        if not names:
            return
        base = text(names[1]) if len(names) > 1 else None
        yield self.symbol(visit.node, text(names[0]), SymbolKind.CLASS, extends=base)

    def _function(self, visit: Visit) -> Iterator[Symbol]:
        name_node = first_child_of_type(visit.node, "function_name")
        if name_node is not None:
            yield self.symbol(visit.node, text(name_node), SymbolKind.FUNCTION)

    def _method(self, visit: Visit) -> Iterator[Symbol]:
        name_node = first_child_of_type(visit.node, "simple_name")
        if name_node is None:
            return
        cls = visit.nearest(_PS_CLASSES)
        parent = None
        if cls is not None:
            cls_name = first_child_of_type(cls, "simple_name")
            parent = text(cls_name) if cls_name is not None else None
        yield self.symbol(visit.node, text(name_node), SymbolKind.METHOD, parent=parent)

    def _assignment(self, visit: Visit) -> Iterator[Symbol]:
        node = visit.node
        if not node.children:
            return
        left = node.children[0]
        variable = _descendant(left, "variable")
        if variable is None:
            return
        raw = text(variable)
        if m := _PS_SCOPED_VARIABLE.match(raw):
            yield self.symbol(node, m.group(1), SymbolKind.GLOBAL)
        elif "[readonly]" in text(left).lower():
            yield from self.constant(node, raw.lstrip("$"))

    def _command(self, visit: Visit) -> Iterator[Symbol]:
        node = visit.node
        command = field_text(node, "command_name").lower()
        if not command:
            name_node = first_child_of_type(node, "command_name")
            command = text(name_node).lower()
        body = text(node)

        if command in ("set-variable", "new-variable") and _PS_OPTION.search(body):
            m = _PS_NAME.search(body) or _PS_POSITIONAL.match(body)
            if m:
                yield from self.constant(node, m.group(1))
        elif command == "export-modulemember":
            m = _PS_FUNCTION_LIST.search(body)
            names = m.group(1) if m else body.split(None, 1)[-1]
            for name in names.split(","):
                cleaned = _strip_quotes(name)
                if cleaned and cleaned.lower() != command:
                    yield self.symbol(node, cleaned, SymbolKind.EXPORT)


# =============================================================================
# R
# =============================================================================


def _r_operator(node: Any) -> str:
    op = node.child_by_field_name("operator")
    if op is not None:
        return text(op)
    # Operator is the unnamed middle child in some grammar versions
    for child in node.children:
        if not child.is_named:
            return text(child)
    return ""


class RExtractor(SymbolExtractor):
    language = "r"

    def _build_handlers(self) -> dict[str, Handler]:
        return {
            "binary_operator": self._binary,
            "call": self._assign_call,
        }

    def _binary(self, visit: Visit) -> Iterator[Symbol]:
        node = visit.node
        lhs = node.child_by_field_name("lhs")
        rhs = node.child_by_field_name("rhs")
        if lhs is None or rhs is None:
            return
        op = _r_operator(node)
        name = text(lhs)

        if op == "<<-":
            yield self.symbol(node, name, SymbolKind.GLOBAL)
        elif op in ("<-", "="):
            if rhs.type == "function_definition":
                yield self.symbol(node, name, SymbolKind.FUNCTION)
            elif _UPPER_CONSTANT_DOTTED.match(name) and not visit.inside({"function_definition"}):
                yield from self.constant(node, name)

    def _assign_call(self, visit: Visit) -> Iterator[Symbol]:
        node = visit.node
        if field_text(node, "function") != "assign":
            return
        arguments = node.child_by_field_name("arguments")
        if arguments is None:
            return
        for arg in arguments.named_children:
            if arg.type == "argument":
                value = arg.child_by_field_name("value")
                name = _strip_quotes(text(value if value is not None else arg))
            else:
                name = _strip_quotes(text(arg))
            if name:
                yield self.symbol(node, name, SymbolKind.GLOBAL)
            return


# =============================================================================
# C#
# =============================================================================

_CS_TYPES = frozenset(
    {"class_declaration", "struct_declaration", "record_declaration", "interface_declaration"}
)


def _cs_modifiers(node: Any) -> set[str]:
    mods: set[str] = set()
    for child in node.children:
        if child.type in ("modifier", "modifiers"):
            mods.update(text(child).split())
    return mods


def _cs_declarator_names(field_node: Any) -> list[str]:
    declaration = first_child_of_type(field_node, "variable_declaration")
    if declaration is None:
        return []
    names: list[str] = []
    for declarator in declaration.named_children:
        if declarator.type != "variable_declarator":
            continue
        name_node = declarator.child_by_field_name("name") or first_child_of_type(
            declarator, "identifier"
        )
        if name_node is not None:
            names.append(text(name_node))
    return names


class CSharpExtractor(SymbolExtractor):
    language = "csharp"

    def _build_handlers(self) -> dict[str, Handler]:
        return {
            "class_declaration": self._class,
            "interface_declaration": self._interface,
            "method_declaration": self._method,
            "constructor_declaration": self._constructor,
            "field_declaration": self._field,
        }

    def _enclosing_type(self, visit: Visit) -> str | None:
        owner = visit.nearest(_CS_TYPES)
        if owner is None:
            return None
        return field_text(owner, "name") or None

    def _class(self, visit: Visit) -> Iterator[Symbol]:
        node = visit.node
        name = field_text(node, "name")
        if not name:
            return
        base = None
        bases = node.child_by_field_name("bases") or first_child_of_type(node, "base_list")
        if bases is not None and bases.named_children:
            base = text(bases.named_children[0])
        yield self.symbol(node, name, SymbolKind.CLASS, extends=base)

    def _interface(self, visit: Visit) -> Iterator[Symbol]:
        name = field_text(visit.node, "name")
        if name:
            yield self.symbol(visit.node, name, SymbolKind.INTERFACE)

    def _method(self, visit: Visit) -> Iterator[Symbol]:
        name = field_text(visit.node, "name")
        if name:
            yield self.symbol(
                visit.node, name, SymbolKind.METHOD, parent=self._enclosing_type(visit)
            )

    def _constructor(self, visit: Visit) -> Iterator[Symbol]:
        owner = self._enclosing_type(visit)
        name = owner or field_text(visit.node, "name")
        if name:
            yield self.symbol(visit.node, name, SymbolKind.CONSTRUCTOR, parent=owner)

    def _field(self, visit: Visit) -> Iterator[Symbol]:
        node = visit.node
        mods = _cs_modifiers(node)
        is_constant = "const" in mods or {"static", "readonly"} <= mods
        owner = self._enclosing_type(visit)
        for name in _cs_declarator_names(node):
            if is_constant:
                yield from self.constant(node, name, parent=owner)
            else:
                yield self.symbol(node, name, SymbolKind.FIELD, parent=owner)


# =============================================================================
# Registry
# =============================================================================

EXTRACTORS: dict[str, type[SymbolExtractor]] = {
    "javascript": JavaScriptExtractor,
    "typescript": TypeScriptExtractor,
    "python": PythonExtractor,
    "bash": BashExtractor,
    "powershell": PowerShellExtractor,
    "r": RExtractor,
    "csharp": CSharpExtractor,
}


def get_extractor(language: str) -> SymbolExtractor:
    """Return a fresh extractor for ``language`` (aliases resolved via packs).

    Raises:
        UnsupportedLanguageError: No extractor exists for the language.
    """
    pack = get_pack(language)
    name = pack.name if pack is not None else language.lower()
    extractor_cls = EXTRACTORS.get(name)
    if extractor_cls is None:
        raise UnsupportedLanguageError.for_language(language)
    return extractor_cls()
