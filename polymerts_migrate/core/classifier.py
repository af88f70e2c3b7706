"""
Decorator classification for PolymerTS sources.

A decorator is recognized from its parsed call expression rather than from
its rendered text: the callee must be a bare identifier naming one of the
PolymerTS decorators and the arguments must have the shape that decorator
accepts. Anything else is "not recognized" and is left untouched.
"""

from __future__ import annotations

from enum import Enum
from typing import Callable, Dict, List, Optional

from tree_sitter import Node

from .treesitter import node_text, parse_source
from .treesitter.nodes import named_children


class DecoratorKind(Enum):
    COMPONENT = "component"
    PROPERTY = "property"
    COMPUTED = "computed"
    OBSERVE = "observe"
    LISTEN = "listen"
    BEHAVIOR = "behavior"


class MethodRole(Enum):
    """Role of a method declaration, listed in dispatch priority order."""
    COMPUTED = "computed"
    LISTENER = "listener"
    OBSERVER = "observer"
    READY = "ready"


STRING_TYPES = {"string"}


def _is_string(arg: Node) -> bool:
    return arg.type in STRING_TYPES


def _is_string_array(arg: Node) -> bool:
    return arg.type == "array" and all(_is_string(item) for item in named_children(arg))


def _component_args(args: List[Node]) -> bool:
    return len(args) == 1 and _is_string(args[0])


def _property_args(args: List[Node]) -> bool:
    return not args or (len(args) == 1 and args[0].type == "object")


def _computed_args(args: List[Node]) -> bool:
    objects = [arg for arg in args if arg.type == "object"]
    if len(objects) > 1:
        return False
    return all(arg.type == "object" or _is_string(arg) or _is_string_array(arg) for arg in args)


def _observe_args(args: List[Node]) -> bool:
    return bool(args) and all(_is_string(arg) for arg in args)


def _listen_args(args: List[Node]) -> bool:
    return len(args) == 1 and _is_string(args[0])


def _behavior_args(args: List[Node]) -> bool:
    return len(args) == 1


_ARGUMENT_RULES: Dict[str, Callable[[List[Node]], bool]] = {
    DecoratorKind.COMPONENT.value: _component_args,
    DecoratorKind.PROPERTY.value: _property_args,
    DecoratorKind.COMPUTED.value: _computed_args,
    DecoratorKind.OBSERVE.value: _observe_args,
    DecoratorKind.LISTEN.value: _listen_args,
    DecoratorKind.BEHAVIOR.value: _behavior_args,
}


# --- Decorator call-expression helpers ---

def decorator_call(decorator: Optional[Node]) -> Optional[Node]:
    """The call expression a decorator applies, or None for bare decorators."""
    if not decorator:
        return None
    for child in named_children(decorator):
        if child.type == "call_expression":
            return child
        return None
    return None


def call_arguments(call: Optional[Node]) -> List[Node]:
    if not call:
        return []
    return named_children(call.child_by_field_name("arguments"))


def decorator_arguments(decorator: Optional[Node]) -> List[Node]:
    return call_arguments(decorator_call(decorator))


def decorator_name(decorator: Optional[Node], data: bytes) -> Optional[str]:
    call = decorator_call(decorator)
    if call:
        callee = call.child_by_field_name("function")
        return node_text(data, callee) if callee else None
    children = named_children(decorator)
    return node_text(data, children[0]) if children else None


def classify_decorator(decorator: Optional[Node], data: bytes) -> Optional[DecoratorKind]:
    call = decorator_call(decorator)
    if not call:
        return None
    callee = call.child_by_field_name("function")
    if not callee or callee.type != "identifier":
        return None
    name = node_text(data, callee)
    rule = _ARGUMENT_RULES.get(name)
    if not rule or not rule(call_arguments(call)):
        return None
    return DecoratorKind(name)


def classify_decorator_text(text: str) -> Optional[DecoratorKind]:
    """Classify a rendered decorator such as ``@observe("a,b")``."""
    text = text.strip()
    if not text.startswith("@"):
        text = "@" + text
    snippet = f"{text}\nclass DecoratedClass {{}}\n"
    tree = parse_source(snippet)
    data = snippet.encode("utf-8")
    for child in tree.root_node.children:
        decorators = get_decorators(child)
        if decorators:
            return classify_decorator(decorators[0], data)
    return None


def is_component_decorator(decorator: Node, data: bytes) -> bool:
    return classify_decorator(decorator, data) is DecoratorKind.COMPONENT


def is_property_decorator(decorator: Node, data: bytes) -> bool:
    return classify_decorator(decorator, data) is DecoratorKind.PROPERTY


def is_computed_decorator(decorator: Node, data: bytes) -> bool:
    return classify_decorator(decorator, data) is DecoratorKind.COMPUTED


def is_observer_decorator(decorator: Node, data: bytes) -> bool:
    return classify_decorator(decorator, data) is DecoratorKind.OBSERVE


def is_listener_decorator(decorator: Node, data: bytes) -> bool:
    return classify_decorator(decorator, data) is DecoratorKind.LISTEN


def is_behavior_decorator(decorator: Node, data: bytes) -> bool:
    return classify_decorator(decorator, data) is DecoratorKind.BEHAVIOR


# --- Decorator placement ---

def leading_decorators(member: Node) -> List[Node]:
    """
    Decorators written before a method. The TypeScript grammar attaches them
    to the enclosing class body as siblings of the method definition.
    """
    found: List[Node] = []
    prev = member.prev_sibling
    while prev is not None and prev.type in ("decorator", "comment"):
        if prev.type == "decorator":
            found.append(prev)
        prev = prev.prev_sibling
    found.reverse()
    return found


def decorator_items(node: Optional[Node]) -> List[Node]:
    """
    Decorators of a class, field or method together with the comments written
    between them, in source order. Comments before the first decorator are
    not part of the member and are left out.
    """
    if not node:
        return []
    if node.type == "method_definition":
        items: List[Node] = []
        prev = node.prev_sibling
        while prev is not None and prev.type in ("decorator", "comment"):
            items.append(prev)
            prev = prev.prev_sibling
        items.reverse()
    else:
        hosts = [node]
        if node.type == "class_declaration" and class_host(node) is not node:
            hosts.insert(0, class_host(node))
        items = []
        for host in hosts:
            children = host.children
            last = max((i for i, child in enumerate(children) if child.type == "decorator"), default=-1)
            items.extend(child for child in children[:last + 1] if child.type in ("decorator", "comment"))
    while items and items[0].type == "comment":
        items.pop(0)
    return items


def class_host(class_node: Node) -> Node:
    """The node carrying a class's decorators: the class or its export statement."""
    parent = class_node.parent
    if parent is not None and parent.type == "export_statement":
        if any(child.type == "decorator" for child in parent.children):
            return parent
    return class_node


def get_decorators(node: Optional[Node]) -> List[Node]:
    if not node:
        return []
    own = [child for child in node.children if child.type == "decorator"]
    if node.type == "class_declaration":
        host = class_host(node)
        if host is not node:
            return [child for child in host.children if child.type == "decorator"] + own
        return own
    if node.type == "export_statement":
        declaration = node.child_by_field_name("declaration")
        inner = [child for child in declaration.children if child.type == "decorator"] if declaration else []
        return own + inner
    if node.type == "method_definition":
        return leading_decorators(node) + own
    return own


def find_decorator(node: Optional[Node], data: bytes, kind: DecoratorKind) -> Optional[Node]:
    """First decorator of ``kind``; at most one per category is honoured."""
    for decorator in get_decorators(node):
        if classify_decorator(decorator, data) is kind:
            return decorator
    return None


def find_decorators(node: Optional[Node], data: bytes, kind: DecoratorKind) -> List[Node]:
    return [d for d in get_decorators(node) if classify_decorator(d, data) is kind]


# --- Node classification ---

def is_component(class_node: Optional[Node], data: bytes) -> bool:
    return bool(class_node) and class_node.type == "class_declaration" and \
        find_decorator(class_node, data, DecoratorKind.COMPONENT) is not None


def is_declared_property(field_node: Optional[Node], data: bytes) -> bool:
    return bool(field_node) and field_node.type == "public_field_definition" and \
        find_decorator(field_node, data, DecoratorKind.PROPERTY) is not None


def is_computed_property(method_node: Optional[Node], data: bytes) -> bool:
    return find_decorator(method_node, data, DecoratorKind.COMPUTED) is not None


def is_listener(method_node: Optional[Node], data: bytes) -> bool:
    return find_decorator(method_node, data, DecoratorKind.LISTEN) is not None


def is_observer(method_node: Optional[Node], data: bytes) -> bool:
    return find_decorator(method_node, data, DecoratorKind.OBSERVE) is not None


def method_name(method_node: Optional[Node], data: bytes) -> Optional[str]:
    if not method_node:
        return None
    name_node = method_node.child_by_field_name("name")
    return node_text(data, name_node) if name_node else None


def classify_method(method_node: Optional[Node], data: bytes) -> Optional[MethodRole]:
    """Dispatch a method by role; the first match in priority order wins."""
    if not method_node or method_node.type != "method_definition":
        return None
    if is_computed_property(method_node, data):
        return MethodRole.COMPUTED
    if is_listener(method_node, data):
        return MethodRole.LISTENER
    if is_observer(method_node, data):
        return MethodRole.OBSERVER
    if method_name(method_node, data) == "ready":
        return MethodRole.READY
    return None


# --- Class identity ---

NAMED_SCOPES = {"internal_module", "module", "class_declaration", "class",
                "function_declaration", "generator_function_declaration", "method_definition"}
ANONYMOUS_SCOPES = {"arrow_function", "function_expression", "function", "generator_function"}


def qualified_class_name(class_node: Optional[Node], data: bytes) -> Optional[str]:
    """
    Dotted name of a class including its enclosing namespaces, modules,
    classes and functions, e.g. ``A.X`` for ``namespace A { class X {} }``.

    Same-named classes in different scopes get different names. Anonymous
    function scopes are written as ``<anonymous@byte>``.
    """
    if not class_node:
        return None
    name_node = class_node.child_by_field_name("name")
    if name_node is None:
        return None
    parts = [node_text(data, name_node)]
    scope = class_node.parent
    while scope is not None:
        if scope.type in NAMED_SCOPES:
            scope_name = scope.child_by_field_name("name")
            if scope_name is not None:
                parts.append(node_text(data, scope_name))
        elif scope.type in ANONYMOUS_SCOPES:
            parts.append(f"<anonymous@{scope.start_byte}>")
        scope = scope.parent
    return ".".join(reversed(parts))
