"""Reference matching: where is a symbol used within one parsed file.

A single ancestor-carrying walk classifies each node against every target
name. Predicates run from most to least specific (call, instantiation,
import, inheritance or type position, assignment target, plain
identifier); the first match wins and claims the identifier nodes it
covers so a use is reported once. Type annotations report as inheritance.

Declarations are never references: the name node of a declaration is
skipped, and the language's extraction rules run alongside the walk so any
hit on a line where the target is declared in this file is dropped.

Matching is syntactic. Over- and under-matching are expected (a method
call ``x.add()`` matches every ``add``).
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import Any

from codelineage.core.errors import UnsupportedLanguageError
from codelineage.parsing.packs import get_pack
from codelineage.symbols.extractor import SymbolExtractor
from codelineage.symbols.languages import get_extractor
from codelineage.symbols.models import Reference, Symbol, SymbolKind, UsageKind
from codelineage.symbols.walk import Visit, first_child_of_type, start_line, text, walk

NodeKey = tuple[int, int, str]


@dataclass(frozen=True)
class MatchRules:
    """Node types that drive reference classification for one language."""

    # call node type -> callee field
    calls: dict[str, str] = field(default_factory=dict)
    # member access type -> field holding the accessed name
    members: dict[str, str] = field(default_factory=dict)
    # instantiation node type -> constructor field
    instantiations: dict[str, str] = field(default_factory=dict)
    # import node type -> field whose subtree is NOT an imported name (or None)
    imports: dict[str, str | None] = field(default_factory=dict)
    # inheritance node type -> field holding the bases (None = whole node)
    inheritance: dict[str, str | None] = field(default_factory=dict)
    # type annotation node type -> field holding the type (None = whole node)
    type_positions: dict[str, str | None] = field(default_factory=dict)
    # assignment node type -> target field
    assignments: dict[str, str] = field(default_factory=dict)
    identifiers: frozenset[str] = frozenset({"identifier"})
    # declaration node type -> name field (None = any direct child)
    declarations: dict[str, str | None] = field(default_factory=dict)
    # function-like node type -> name field (None = resolved from the binding)
    functions: dict[str, str | None] = field(default_factory=dict)
    # class-like node type -> name field (None = first identifier-like child)
    classes: dict[str, str | None] = field(default_factory=dict)
    case_insensitive: bool = False


_JS_RULES = MatchRules(
    calls={"call_expression": "function"},
    members={"member_expression": "property"},
    instantiations={"new_expression": "constructor"},
    imports={"import_statement": "source"},
    inheritance={"class_heritage": None},
    type_positions={"type_annotation": None, "type_arguments": None},
    assignments={"assignment_expression": "left"},
    identifiers=frozenset(
        {"identifier", "property_identifier", "shorthand_property_identifier", "type_identifier"}
    ),
    declarations={
        "function_declaration": "name",
        "generator_function_declaration": "name",
        "class_declaration": "name",
        "abstract_class_declaration": "name",
        "class": "name",
        "method_definition": "name",
        "variable_declarator": "name",
        "interface_declaration": "name",
        "formal_parameters": None,
    },
    functions={
        "function_declaration": "name",
        "generator_function_declaration": "name",
        "function_expression": "name",
        "function": "name",
        "method_definition": "name",
        "arrow_function": None,
    },
    classes={"class_declaration": "name", "abstract_class_declaration": "name", "class": "name"},
)

_PYTHON_RULES = MatchRules(
    calls={"call": "function"},
    members={"attribute": "attribute"},
    imports={"import_from_statement": "module_name", "import_statement": None},
    inheritance={"class_definition": "superclasses"},
    type_positions={"type": None},
    assignments={"assignment": "left", "augmented_assignment": "left"},
    declarations={
        "function_definition": "name",
        "class_definition": "name",
        "parameters": None,
        "default_parameter": "name",
        "typed_parameter": None,
        "typed_default_parameter": "name",
        "keyword_argument": "name",
    },
    functions={"function_definition": "name", "lambda": None},
    classes={"class_definition": "name"},
)

_CSHARP_RULES = MatchRules(
    calls={"invocation_expression": "function"},
    members={"member_access_expression": "name"},
    instantiations={"object_creation_expression": "type"},
    imports={"using_directive": None},
    inheritance={"base_list": None},
    type_positions={
        "variable_declaration": "type",
        "parameter": "type",
        "property_declaration": "type",
        "type_argument_list": None,
    },
    assignments={"assignment_expression": "left"},
    declarations={
        "class_declaration": "name",
        "struct_declaration": "name",
        "record_declaration": "name",
        "interface_declaration": "name",
        "method_declaration": "name",
        "constructor_declaration": "name",
        "property_declaration": "name",
        "variable_declarator": "name",
        "parameter": "name",
    },
    functions={
        "method_declaration": "name",
        "constructor_declaration": "name",
        "local_function_statement": "name",
    },
    classes={
        "class_declaration": "name",
        "struct_declaration": "name",
        "record_declaration": "name",
        "interface_declaration": "name",
    },
)

_POWERSHELL_RULES = MatchRules(
    calls={"command": "command_name"},
    identifiers=frozenset({"simple_name", "variable"}),
    declarations={"class_statement": None, "class_method_definition": None},
    functions={"function_statement": None, "class_method_definition": None},
    classes={"class_statement": None},
    case_insensitive=True,
)

_BASH_RULES = MatchRules(
    calls={"command": "name"},
    identifiers=frozenset({"variable_name"}),
    declarations={"function_definition": "name"},
    functions={"function_definition": "name"},
)

_R_RULES = MatchRules(
    calls={"call": "function"},
    functions={"function_definition": None},
)

RULES: dict[str, MatchRules] = {
    "javascript": _JS_RULES,
    "typescript": _JS_RULES,
    "python": _PYTHON_RULES,
    "csharp": _CSHARP_RULES,
    "powershell": _POWERSHELL_RULES,
    "bash": _BASH_RULES,
    "r": _R_RULES,
}

_PS_SCOPE_PREFIX = re.compile(r"^\$(?:global:|script:|local:|private:)?", re.IGNORECASE)
_NAME_LIKE = frozenset(
    {"identifier", "simple_name", "function_name", "type_identifier", "word", "variable_name"}
)


def _key(node: Any) -> NodeKey:
    return (node.start_byte, node.end_byte, node.type)


def _descendants(node: Any) -> Iterator[Any]:
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


class ReferenceMatcher:
    """Finds uses of target symbols in one language's trees."""

    def __init__(self, language: str) -> None:
        pack = get_pack(language)
        self.language = pack.name if pack is not None else language.lower()
        rules = RULES.get(self.language)
        if rules is None:
            raise UnsupportedLanguageError.for_language(language)
        self.rules = rules
        self.extractor: SymbolExtractor = get_extractor(self.language)

    # ------------------------------------------------------------------
    # Name matching
    # ------------------------------------------------------------------

    def _normalize(self, node: Any) -> str:
        value = text(node)
        if node.type == "variable":
            value = _PS_SCOPE_PREFIX.sub("", value)
        return value.lower() if self.rules.case_insensitive else value

    def _target_key(self, name: str) -> str:
        bare = name.rsplit(".", 1)[-1]
        return bare.lower() if self.rules.case_insensitive else bare

    def _names_in(self, node: Any, target: str, skip: Any | None = None) -> list[Any]:
        """Identifier-like nodes under ``node`` whose text is ``target``."""
        skip_key = _key(skip) if skip is not None else None
        found: list[Any] = []
        stack = [node]
        while stack:
            current = stack.pop()
            if skip_key is not None and _key(current) == skip_key:
                continue
            if (
                current.type in self.rules.identifiers or current.type in _NAME_LIKE
            ) and self._normalize(current) == target:
                found.append(current)
            stack.extend(current.children)
        return found

    # ------------------------------------------------------------------
    # Predicates, most specific first
    # ------------------------------------------------------------------

    def _callee_hits(self, callee: Any, target: str) -> list[Any]:
        if self._normalize(callee) == target:
            return [callee, *self._names_in(callee, target)]
        member_field = self.rules.members.get(callee.type)
        if member_field is not None:
            member = callee.child_by_field_name(member_field)
            if member is not None and self._normalize(member) == target:
                return [member]
        return []

    def _classify(
        self, node: Any, target: str, kinds: set[SymbolKind]
    ) -> tuple[UsageKind, list[Any]] | None:
        rules = self.rules
        node_type = node.type

        if node_type in rules.calls:
            callee = node.child_by_field_name(rules.calls[node_type])
            if callee is None and node_type == "command":
                callee = first_child_of_type(node, "command_name")
            if callee is not None and (hits := self._callee_hits(callee, target)):
                usage = UsageKind.CALL
                # A plain call is only a construction when every target of that name
                # is a class; a name shared with a function stays a call
                if kinds and kinds <= {SymbolKind.CLASS} and callee.type not in rules.members:
                    usage = UsageKind.INSTANTIATION
                return usage, hits

        if node_type in rules.instantiations:
            ctor = node.child_by_field_name(rules.instantiations[node_type])
            if ctor is not None and (
                hits := self._callee_hits(ctor, target) or self._names_in(ctor, target)
            ):
                return UsageKind.INSTANTIATION, hits

        if node_type in rules.imports:
            skip_field = rules.imports[node_type]
            skip = node.child_by_field_name(skip_field) if skip_field else None
            if hits := self._names_in(node, target, skip=skip):
                return UsageKind.IMPORT, hits

        if node_type in rules.inheritance:
            base_field = rules.inheritance[node_type]
            bases = node.child_by_field_name(base_field) if base_field else node
            if bases is not None and (hits := self._names_in(bases, target)):
                return UsageKind.INHERITANCE, hits

        if node_type in rules.type_positions:
            type_field = rules.type_positions[node_type]
            holder = node.child_by_field_name(type_field) if type_field else node
            if holder is not None and (hits := self._names_in(holder, target)):
                return UsageKind.INHERITANCE, hits

        if node_type in rules.assignments:
            left = node.child_by_field_name(rules.assignments[node_type])
            if left is not None and self._normalize(left) == target:
                return UsageKind.REFERENCE, [left, *self._names_in(left, target)]

        if node_type in rules.identifiers and self._normalize(node) == target:
            return UsageKind.REFERENCE, [node]

        return None

    # ------------------------------------------------------------------
    # Declarations and context
    # ------------------------------------------------------------------

    def _is_declaration_name(self, visit: Visit) -> bool:
        if not visit.ancestors:
            return False
        parent = visit.ancestors[-1]
        if parent.type not in self.rules.declarations:
            return False
        name_field = self.rules.declarations[parent.type]
        if name_field is None:
            if parent.type in self.rules.classes or parent.type in self.rules.functions:
                # Only the first name-like child names the declaration
                first = next((c for c in parent.children if c.type in _NAME_LIKE), None)
                return first is not None and _key(first) == _key(visit.node)
            return True
        name_node = parent.child_by_field_name(name_field)
        return name_node is not None and _key(name_node) == _key(visit.node)

    def _function_name(self, node: Any, outer: Any | None) -> str | None:
        name_field = self.rules.functions[node.type]
        if name_field is not None:
            return text(node.child_by_field_name(name_field)) or None
        named = first_child_of_type(node, "function_name", "simple_name")
        if named is not None:
            return text(named)
        # Anonymous function bound to a name: const f = () => ..., f <- function(), f = lambda: ...
        if outer is not None:
            for binding_field in ("name", "left", "lhs"):
                bound = outer.child_by_field_name(binding_field)
                if bound is not None and bound.type in _NAME_LIKE:
                    return text(bound)
        return None

    def _class_name(self, node: Any) -> str | None:
        name_field = self.rules.classes[node.type]
        if name_field is not None:
            return text(node.child_by_field_name(name_field)) or None
        named = first_child_of_type(node, *_NAME_LIKE)
        return text(named) if named is not None else None

    def context_of(self, ancestors: tuple[Any, ...]) -> str | None:
        """Name of the enclosing function, qualified by an outer class."""
        function_name: str | None = None
        for index in range(len(ancestors) - 1, -1, -1):
            ancestor = ancestors[index]
            if function_name is None and ancestor.type in self.rules.functions:
                outer = ancestors[index - 1] if index > 0 else None
                function_name = self._function_name(ancestor, outer)
            elif function_name is not None and ancestor.type in self.rules.classes:
                class_name = self._class_name(ancestor)
                if class_name:
                    return f"{class_name}.{function_name}"
        return function_name

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def find_references(self, tree: Any, symbols: Iterable[Symbol | str]) -> list[Reference]:
        """All uses of ``symbols`` in ``tree``, in document order."""
        targets: dict[str, tuple[str, set[SymbolKind]]] = {}
        for sym in symbols:
            name = sym if isinstance(sym, str) else sym.name
            entry = targets.setdefault(self._target_key(name), (name.rsplit(".", 1)[-1], set()))
            if isinstance(sym, Symbol):
                entry[1].add(sym.kind)
        if not targets:
            return []

        root = getattr(tree, "root_node", tree)
        claimed: set[NodeKey] = set()
        declared: dict[str, set[int]] = {}
        found: list[Reference] = []

        for visit in walk(root):
            node = visit.node

            handler = self.extractor.handlers.get(node.type)
            if handler is not None:
                for declared_symbol in handler(visit):
                    key = self._target_key(declared_symbol.name)
                    if key in targets:
                        declared.setdefault(key, set()).add(declared_symbol.start_line)

            if _key(node) in claimed:
                continue
            if node.type in self.rules.identifiers and self._is_declaration_name(visit):
                continue

            for key, (display, kinds) in targets.items():
                outcome = self._classify(node, key, kinds)
                if outcome is None:
                    continue
                usage, hits = outcome
                claimed.update(_key(hit) for hit in hits)
                claimed.update(_key(d) for hit in hits for d in _descendants(hit))
                found.append(
                    Reference(
                        symbol=display,
                        line=start_line(hits[0]) if hits else start_line(node),
                        usage=usage,
                        context=self.context_of(visit.ancestors),
                    )
                )

        return [
            ref
            for ref in found
            if ref.line not in declared.get(self._target_key(ref.symbol), ())
        ]


def find_references(tree: Any, symbols: Iterable[Symbol | str], language: str) -> list[Reference]:
    """Convenience wrapper: ``ReferenceMatcher(language).find_references(...)``."""
    return ReferenceMatcher(language).find_references(tree, symbols)
