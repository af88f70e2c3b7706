"""
Synthesized syntax nodes.

Replacement nodes built by the analysis pass. Tree-sitter trees cannot be
edited, so a replacement is a small immutable description that renders
itself to source text. Rendering takes the indentation of the slot being
replaced: the first line is emitted without it (the slot already starts
there), every following line is prefixed with it.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import ClassVar, List, Optional, Sequence, Tuple, Union


@dataclass(frozen=True)
class SyntheticNode:
    kind: ClassVar[str] = "node"

    def render(self, indent: str = "", unit: str = "    ") -> str:
        raise NotImplementedError


@dataclass(frozen=True)
class RawText(SyntheticNode):
    """Source text carried over verbatim, e.g. an unrecognized decorator."""
    text: str
    kind: ClassVar[str] = "raw"

    def render(self, indent: str = "", unit: str = "    ") -> str:
        return self.text


@dataclass(frozen=True)
class ObjectLiteral(SyntheticNode):
    entries: Tuple[Tuple[str, Optional[str]], ...] = ()
    multiline: bool = False
    entry_indent: Optional[str] = None
    closing_indent: Optional[str] = None
    kind: ClassVar[str] = "object"

    def has(self, key: str) -> bool:
        return any(name == key for name, _ in self.entries)

    def get(self, key: str) -> Optional[str]:
        for name, value in self.entries:
            if name == key:
                return value
        return None

    def with_entry(self, key: str, value: str) -> "ObjectLiteral":
        if self.has(key):
            entries = tuple((name, value if name == key else old) for name, old in self.entries)
        else:
            entries = self.entries + ((key, value),)
        return replace(self, entries=entries)

    def without(self, key: str) -> "ObjectLiteral":
        return replace(self, entries=tuple(entry for entry in self.entries if entry[0] != key))

    @staticmethod
    def _entry(key: str, value: Optional[str]) -> str:
        # Shorthand, spread and method entries are kept as written.
        return key if value is None else f"{key}: {value}"

    def render(self, indent: str = "", unit: str = "    ") -> str:
        if not self.entries:
            return "{}"
        if not self.multiline:
            return "{" + ", ".join(self._entry(key, value) for key, value in self.entries) + "}"
        entry_indent = self.entry_indent if self.entry_indent is not None else indent + unit
        closing_indent = self.closing_indent if self.closing_indent is not None else indent
        body = ",\n".join(entry_indent + self._entry(key, value) for key, value in self.entries)
        return "{\n" + body + "\n" + closing_indent + "}"


Argument = Union[str, ObjectLiteral]


@dataclass(frozen=True)
class Decorator(SyntheticNode):
    name: str
    arguments: Tuple[Argument, ...] = ()
    kind: ClassVar[str] = "decorator"

    def render(self, indent: str = "", unit: str = "    ") -> str:
        args = ", ".join(arg if isinstance(arg, str) else arg.render(indent, unit) for arg in self.arguments)
        return f"@{self.name}({args})"

    @property
    def options(self) -> Optional[ObjectLiteral]:
        for arg in self.arguments:
            if isinstance(arg, ObjectLiteral):
                return arg
        return None

    def with_options(self, options: ObjectLiteral) -> "Decorator":
        others = tuple(arg for arg in self.arguments if not isinstance(arg, ObjectLiteral))
        return replace(self, arguments=(options,) + others)


DecoratorLike = Union[Decorator, RawText]


@dataclass(frozen=True)
class Member(SyntheticNode):
    """A declaration preceded by its decorators, one per line."""
    decorators: Tuple[DecoratorLike, ...] = ()

    def declaration(self, indent: str, unit: str) -> str:
        raise NotImplementedError

    def render(self, indent: str = "", unit: str = "    ") -> str:
        lines = [decorator.render(indent, unit) for decorator in self.decorators]
        lines.append(self.declaration(indent, unit))
        return ("\n" + indent).join(lines)

    def find_decorator(self, name: str) -> Optional[Decorator]:
        for decorator in self.decorators:
            if isinstance(decorator, Decorator) and decorator.name == name:
                return decorator
        return None

    def replace_decorator(self, name: str, new: Optional[DecoratorLike]) -> "Member":
        decorators: List[DecoratorLike] = []
        replaced = False
        for decorator in self.decorators:
            if isinstance(decorator, Decorator) and decorator.name == name and not replaced:
                replaced = True
                if new is not None:
                    decorators.append(new)
                continue
            decorators.append(decorator)
        if not replaced and new is not None:
            decorators.insert(0, new)
        return replace(self, decorators=tuple(decorators))


@dataclass(frozen=True)
class PropertyDeclaration(Member):
    head: str = ""
    initializer: Optional[str] = None
    kind: ClassVar[str] = "public_field_definition"

    def declaration(self, indent: str, unit: str) -> str:
        if self.initializer is None:
            return self.head
        return f"{self.head} = {self.initializer}"

    def with_option(self, key: str, value: str) -> "PropertyDeclaration":
        decorator = self.find_decorator("property") or Decorator("property")
        options = decorator.options or ObjectLiteral()
        return self.replace_decorator("property", decorator.with_options(options.with_entry(key, value)))


@dataclass(frozen=True)
class MethodDeclaration(Member):
    text: str = ""
    kind: ClassVar[str] = "method_definition"

    def declaration(self, indent: str, unit: str) -> str:
        return self.text


@dataclass(frozen=True)
class GetAccessor(Member):
    head: str = ""
    body: str = "{}"
    kind: ClassVar[str] = "get_accessor"

    def declaration(self, indent: str, unit: str) -> str:
        return f"{self.head} {self.body}"


@dataclass(frozen=True)
class ClassDeclaration(Member):
    head: str = ""
    body: str = "{}"
    kind: ClassVar[str] = "class_declaration"

    def declaration(self, indent: str, unit: str) -> str:
        return f"{self.head} {self.body}"


@dataclass(frozen=True)
class ReferenceTag(SyntheticNode):
    path: str = ""
    kind: ClassVar[str] = "comment"

    def render(self, indent: str = "", unit: str = "    ") -> str:
        return f'/// <reference path="{self.path}" />'


# --- Factories ---

def quote(value: str, quote_style: str = '"') -> str:
    escaped = value.replace("\\", "\\\\").replace(quote_style, "\\" + quote_style)
    return f"{quote_style}{escaped}{quote_style}"


def create_decorator(name: str, *arguments: Argument) -> Decorator:
    return Decorator(name=name, arguments=tuple(arguments))


def create_string_decorator(name: str, values: Sequence[str], quote_style: str = '"') -> Decorator:
    return Decorator(name=name, arguments=tuple(quote(value, quote_style) for value in values))


def create_ready_method(statements: Sequence[str], indent: str, unit: str) -> MethodDeclaration:
    body = append_statements("{}", ["super.ready();"] + list(statements), indent + unit, indent)
    return MethodDeclaration(text=f"ready() {body}")


# --- Block editing ---

def append_statements(block: str, statements: Sequence[str], statement_indent: str, closing_indent: str) -> str:
    """Append statements at the end of a ``{ ... }`` block."""
    if not statements:
        return block
    lines = "".join(f"\n{statement_indent}{statement}" for statement in statements)
    inner = block[1:-1]
    if not inner.strip():
        return "{" + lines + "\n" + closing_indent + "}"
    return block[:-1].rstrip() + lines + "\n" + closing_indent + "}"


def prepend_statements(block: str, statements: Sequence[str], statement_indent: str, closing_indent: str) -> str:
    """Insert statements right after the opening brace of a block."""
    if not statements:
        return block
    if not block[1:-1].strip():
        return append_statements(block, statements, statement_indent, closing_indent)
    lines = "".join(f"\n{statement_indent}{statement}" for statement in statements)
    rest = block[1:]
    if not rest.lstrip(" \t").startswith("\n"):
        rest = "\n" + statement_indent + rest.lstrip(" \t")
    return "{" + lines + rest
