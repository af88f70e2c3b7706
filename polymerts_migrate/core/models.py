"""
Program-part models for PolymerTS constructs.

Each model wraps a syntax node and the source file it belongs to. Derived
fields are computed on demand from the node and never raise: a model built
from a node that lacks the expected decorator simply reports empty fields.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import cached_property
from typing import List, Optional, Tuple

from tree_sitter import Node, Tree

from .classifier import (
    DecoratorKind,
    class_host,
    decorator_arguments,
    find_decorator,
    find_decorators,
    method_name,
    qualified_class_name,
)
from .treesitter import language_for_path, node_text, parse_source
from .treesitter.nodes import find_child, named_children

FUNCTION_TYPES = {"arrow_function", "function_expression", "function"}
BOOLEAN_TYPES = {"true", "false"}
STRING_LITERAL_TYPES = {"string", "template_string"}


@dataclass
class SourceFile:
    """A TypeScript source text together with its parse tree."""
    text: str
    file_path: str = "<memory>"
    language_id: Optional[str] = None

    def __post_init__(self):
        if self.language_id is None:
            self.language_id = language_for_path(self.file_path)

    @cached_property
    def data(self) -> bytes:
        return self.text.encode("utf-8")

    @cached_property
    def tree(self) -> Tree:
        return parse_source(self.text, self.language_id)

    def text_of(self, node: Optional[Node]) -> str:
        return node_text(self.data, node)

    def line_of(self, node: Optional[Node]) -> Optional[int]:
        return node.start_point[0] + 1 if node else None


def unquote(text: str) -> str:
    if len(text) >= 2 and text[0] in "\"'`" and text[-1] == text[0]:
        return text[1:-1]
    return text


def object_pairs(obj: Optional[Node], source_file: SourceFile) -> List[Tuple[str, Node]]:
    """``(key, value node)`` for every ``key: value`` entry of an object literal."""
    pairs: List[Tuple[str, Node]] = []
    if not obj or obj.type != "object":
        return pairs
    for child in named_children(obj):
        if child.type != "pair":
            continue
        key = child.child_by_field_name("key")
        value = child.child_by_field_name("value")
        if key is None or value is None:
            continue
        pairs.append((unquote(source_file.text_of(key)), value))
    return pairs


def object_argument(decorator: Optional[Node]) -> Optional[Node]:
    for arg in decorator_arguments(decorator):
        if arg.type == "object":
            return arg
    return None


def string_arguments(args: List[Node], source_file: SourceFile) -> List[str]:
    """Names from string / string-array arguments; ``"a, b"`` splits on commas."""
    names: List[str] = []
    for arg in args:
        items = named_children(arg) if arg.type == "array" else [arg]
        for item in items:
            if item.type != "string":
                continue
            for part in unquote(source_file.text_of(item)).split(","):
                part = part.strip()
                if part:
                    names.append(part)
    return names


def parameter_names(method: Optional[Node], source_file: SourceFile) -> List[str]:
    if not method:
        return []
    params = method.child_by_field_name("parameters")
    names: List[str] = []
    for param in named_children(params):
        pattern = param.child_by_field_name("pattern") or find_child(param, "identifier")
        if pattern is not None:
            names.append(source_file.text_of(pattern))
    return names


def is_getter(method: Optional[Node]) -> bool:
    return bool(method) and any(child.type == "get" for child in method.children)


@dataclass
class ProgramPart:
    node: Optional[Node]
    source_file: SourceFile

    @property
    def text(self) -> str:
        return self.source_file.text_of(self.node)

    @property
    def line(self) -> Optional[int]:
        return self.source_file.line_of(self.node)


@dataclass
class IncludedBehavior(ProgramPart):
    """A ``@behavior(X)`` class decorator, re-emitted as a mixin call ``X(base)``."""

    @property
    def decorator(self) -> Optional[Node]:
        return self.node

    @cached_property
    def behavior_name(self) -> Optional[str]:
        args = decorator_arguments(self.node)
        return self.source_file.text_of(args[0]) if args else None

    def mixin_call(self, inner: str) -> str:
        return f"{self.behavior_name}({inner})"


@dataclass
class Component(ProgramPart):
    """A class carrying a ``@component("tag-name")`` decorator."""

    @cached_property
    def decorator(self) -> Optional[Node]:
        return find_decorator(self.node, self.source_file.data, DecoratorKind.COMPONENT)

    @cached_property
    def name(self) -> Optional[str]:
        args = decorator_arguments(self.decorator)
        return unquote(self.source_file.text_of(args[0])) if args else None

    @cached_property
    def class_name(self) -> str:
        name_node = self.node.child_by_field_name("name") if self.node else None
        return self.source_file.text_of(name_node) if name_node else "<anonymous>"

    @cached_property
    def qualified_name(self) -> str:
        """Class name with its enclosing namespaces; unique within the file."""
        return qualified_class_name(self.node, self.source_file.data) or self.class_name

    @cached_property
    def host(self) -> Optional[Node]:
        return class_host(self.node) if self.node else None

    @cached_property
    def behaviors(self) -> List[IncludedBehavior]:
        return [
            IncludedBehavior(node=decorator, source_file=self.source_file)
            for decorator in find_decorators(self.node, self.source_file.data, DecoratorKind.BEHAVIOR)
        ]

    @cached_property
    def extends_clause(self) -> Optional[Node]:
        heritage = find_child(self.node, "class_heritage")
        return find_child(heritage, "extends_clause")

    @cached_property
    def implements_clause(self) -> Optional[Node]:
        heritage = find_child(self.node, "class_heritage")
        return find_child(heritage, "implements_clause")

    @cached_property
    def heritage(self) -> Optional[str]:
        """The base-class expression text, without type arguments."""
        clause = self.extends_clause
        if not clause:
            return None
        value = clause.child_by_field_name("value")
        if value is None:
            values = named_children(clause)
            value = values[0] if values else None
        return self.source_file.text_of(value) if value else None


@dataclass
class Property(ProgramPart):
    """A class field carrying a ``@property({...})`` decorator."""

    @cached_property
    def decorator(self) -> Optional[Node]:
        return find_decorator(self.node, self.source_file.data, DecoratorKind.PROPERTY)

    @cached_property
    def name(self) -> Optional[str]:
        name_node = self.node.child_by_field_name("name") if self.node else None
        return self.source_file.text_of(name_node) if name_node else None

    @cached_property
    def options(self) -> Optional[Node]:
        return object_argument(self.decorator)

    @cached_property
    def params(self) -> Optional[str]:
        return self.source_file.text_of(self.options) if self.options else None

    @cached_property
    def option_pairs(self) -> List[Tuple[str, Node]]:
        return object_pairs(self.options, self.source_file)

    def option(self, key: str) -> Optional[Node]:
        for name, value in self.option_pairs:
            if name == key:
                return value
        return None

    @cached_property
    def type(self) -> Optional[str]:
        value = self.option("type")
        return self.source_file.text_of(value) if value else None

    @cached_property
    def value_expression(self) -> Optional[Node]:
        return self.option("value")

    @cached_property
    def value_kind(self) -> Optional[str]:
        value = self.value_expression
        if value is None:
            return None
        if value.type == "parenthesized_expression":
            inner = named_children(value)
            value = inner[0] if inner else value
        if value.type == "array":
            return "array"
        if value.type in FUNCTION_TYPES:
            return "function"
        if value.type == "object":
            return "object"
        if value.type in BOOLEAN_TYPES:
            return "boolean"
        if value.type in STRING_LITERAL_TYPES:
            return "string"
        if value.type == "null":
            return "null"
        if value.type == "undefined" or (value.type == "identifier" and self.source_file.text_of(value) == "undefined"):
            return "undefined"
        if value.type == "number" or (value.type == "unary_expression" and
                                      self.source_file.text_of(value).lstrip("-+").strip().replace(".", "", 1).isdigit()):
            return "number"
        return "expression"

    @property
    def contains_value_array_literal(self) -> bool:
        return self.value_kind == "array"

    @property
    def contains_value_function(self) -> bool:
        return self.value_kind == "function"

    @property
    def contains_value_object_declaration(self) -> bool:
        return self.value_kind == "object"

    @property
    def contains_value_boolean(self) -> bool:
        return self.value_kind == "boolean"

    @property
    def contains_value_string_literal(self) -> bool:
        return self.value_kind == "string"

    @property
    def contains_value_null(self) -> bool:
        return self.value_kind == "null"

    @property
    def contains_value_undefined(self) -> bool:
        return self.value_kind == "undefined"

    @property
    def contains_value_number(self) -> bool:
        return self.value_kind == "number"

    @cached_property
    def initializer(self) -> Optional[Node]:
        return self.node.child_by_field_name("value") if self.node else None


@dataclass
class ComputedProperty(ProgramPart):
    """A method or getter carrying ``@computed(...)``."""

    @cached_property
    def decorator(self) -> Optional[Node]:
        return find_decorator(self.node, self.source_file.data, DecoratorKind.COMPUTED)

    @cached_property
    def name(self) -> Optional[str]:
        return method_name(self.node, self.source_file.data)

    @property
    def getter_name(self) -> Optional[str]:
        return self.name

    @cached_property
    def options(self) -> Optional[Node]:
        return object_argument(self.decorator)

    @cached_property
    def params(self) -> Optional[str]:
        return self.source_file.text_of(self.options) if self.options else None

    @cached_property
    def type(self) -> Optional[str]:
        for key, value in object_pairs(self.options, self.source_file):
            if key == "type":
                return self.source_file.text_of(value)
        return None

    @cached_property
    def dependencies(self) -> List[str]:
        declared = string_arguments(decorator_arguments(self.decorator), self.source_file)
        if declared:
            return declared
        return parameter_names(self.node, self.source_file)

    @property
    def is_getter(self) -> bool:
        return is_getter(self.node)


@dataclass
class Observer(ProgramPart):
    """A method carrying ``@observe("a,b")``."""

    @cached_property
    def decorator(self) -> Optional[Node]:
        return find_decorator(self.node, self.source_file.data, DecoratorKind.OBSERVE)

    @cached_property
    def method_name(self) -> Optional[str]:
        return method_name(self.node, self.source_file.data)

    @cached_property
    def params(self) -> List[str]:
        return string_arguments(decorator_arguments(self.decorator), self.source_file)

    @property
    def is_complex(self) -> bool:
        return any("." in param for param in self.params)


@dataclass
class Listener(ProgramPart):
    """A method carrying ``@listen("elementId.event")``."""

    @cached_property
    def decorator(self) -> Optional[Node]:
        return find_decorator(self.node, self.source_file.data, DecoratorKind.LISTEN)

    @cached_property
    def method_name(self) -> Optional[str]:
        return method_name(self.node, self.source_file.data)

    @cached_property
    def event_declaration(self) -> Optional[str]:
        args = decorator_arguments(self.decorator)
        return unquote(self.source_file.text_of(args[0])) if args else None

    @cached_property
    def _split(self) -> Tuple[Optional[str], Optional[str]]:
        declaration = self.event_declaration
        if not declaration:
            return None, None
        if "." not in declaration:
            return None, declaration
        element_id, event_name = declaration.split(".", 1)
        return element_id or None, event_name or None

    @property
    def element_id(self) -> Optional[str]:
        return self._split[0]

    @property
    def event_name(self) -> Optional[str]:
        return self._split[1]


@dataclass
class ReadyMethod(ProgramPart):
    """The ``ready()`` lifecycle method of a class."""

    @cached_property
    def name(self) -> Optional[str]:
        return method_name(self.node, self.source_file.data)

    @cached_property
    def body(self) -> Optional[Node]:
        return self.node.child_by_field_name("body") if self.node else None

    @cached_property
    def statements(self) -> List[str]:
        return [self.source_file.text_of(stmt) for stmt in named_children(self.body)]

    @property
    def calls_super(self) -> bool:
        return any(stmt.replace(" ", "").startswith("super.ready(") for stmt in self.statements)


