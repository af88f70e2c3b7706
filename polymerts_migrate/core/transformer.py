"""
Analysis pass: classify PolymerTS constructs and record their rewrites.

The tree is visited depth-first with children before parents, so a class is
analyzed only after every one of its members has a record. Inside a class
body the fields are visited first, then ``ready()``, then the remaining
methods: observers fold into property records and listeners into the ready
record without depending on declaration order.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

from tree_sitter import Node

from .change_records import (
    TOP_OF_FILE,
    ChangeRecordStore,
    Severity,
    TransformChangeRecord,
    TransformChangeType,
)
from .classifier import (
    DecoratorKind,
    MethodRole,
    classify_decorator,
    class_host,
    classify_method,
    decorator_arguments,
    decorator_items,
    get_decorators,
    is_component,
    is_declared_property,
    method_name,
    qualified_class_name,
)
from .config import ConverterOptions
from .emitter import Renderer, member_start
from .models import (
    Component,
    ComputedProperty,
    Listener,
    Observer,
    Property,
    ReadyMethod,
    SourceFile,
)
from .synthesis import (
    ClassDeclaration,
    Decorator,
    DecoratorLike,
    GetAccessor,
    MethodDeclaration,
    ObjectLiteral,
    PropertyDeclaration,
    RawText,
    ReferenceTag,
    append_statements,
    create_ready_method,
    create_string_decorator,
    prepend_statements,
    quote,
)
from .treesitter import node_text, walk
from .treesitter.nodes import apply_edits, line_indent, named_children, span_text

CANONICAL_BASE_CLASS = "Polymer.Element"
DECLARATIVE_LISTENERS_MIXIN = "Polymer.DeclarativeEventListeners"
GESTURE_LISTENERS_MIXIN = "Polymer.GestureEventListeners"
REFERENCE_TAG_TARGET = "polymer-decorators/global.d.ts"

# Polymer 1 lifecycle callbacks and their custom-element replacements
LIFECYCLE_RENAMES = {
    "attached": "connectedCallback",
    "detached": "disconnectedCallback",
}
LIFECYCLE_MANUAL = {
    "created": "move its body into constructor() after super()",
    "attributeChanged": "rename it to attributeChangedCallback(name, old, value) and call super",
}

# Identifier positions that declare a name rather than read it
DECLARATION_FIELDS = {
    "variable_declarator": "name",
    "required_parameter": "pattern",
    "optional_parameter": "pattern",
    "arrow_function": "parameter",
    "function_declaration": "name",
    "function_expression": "name",
    "catch_clause": "parameter",
}


def object_literal(obj: Optional[Node], source_file: SourceFile) -> ObjectLiteral:
    """Synthesized copy of an object-literal node, keeping its layout."""
    if obj is None or obj.type != "object":
        return ObjectLiteral()
    data = source_file.data
    entries = []
    for child in named_children(obj):
        if child.type == "pair":
            key = child.child_by_field_name("key")
            value = child.child_by_field_name("value")
            entries.append((source_file.text_of(key), source_file.text_of(value)))
        else:
            entries.append((source_file.text_of(child), None))
    multiline = obj.start_point[0] != obj.end_point[0]
    first = named_children(obj)
    return ObjectLiteral(
        entries=tuple(entries),
        multiline=multiline,
        entry_indent=line_indent(data, first[0].start_byte) if multiline and first else None,
        closing_indent=line_indent(data, obj.end_byte - 1) if multiline else None,
    )


def unwrap_factory(value: Node, source_file: SourceFile) -> str:
    """
    The value a ``value:`` option produces.

    ``() => []`` and ``() => { return {}; }`` give the returned expression;
    other functions are invoked in place.
    """
    node = value
    while node.type == "parenthesized_expression" and named_children(node):
        node = named_children(node)[0]
    if node.type not in ("arrow_function", "function_expression", "function"):
        return source_file.text_of(value)

    has_params = (node.child_by_field_name("parameter") is not None
                  or bool(named_children(node.child_by_field_name("parameters"))))
    if not has_params:
        body = node.child_by_field_name("body")
        if body is not None and body.type != "statement_block":
            if body.type == "parenthesized_expression" and named_children(body):
                return source_file.text_of(named_children(body)[0])
            return source_file.text_of(body)
        statements = named_children(body)
        if len(statements) == 1 and statements[0].type == "return_statement":
            returned = named_children(statements[0])
            if returned:
                return source_file.text_of(returned[0])
    return f"({source_file.text_of(value)})()"


def field_head(field_node: Node, source_file: SourceFile) -> str:
    """Field text after its decorators and before its initializer."""
    decorators = [child for child in field_node.children if child.type == "decorator"]
    start = decorators[-1].end_byte if decorators else field_node.start_byte
    value = field_node.child_by_field_name("value")
    end = value.start_byte if value is not None else field_node.end_byte
    head = span_text(source_file.data, start, end).strip()
    if value is not None:
        head = head.rstrip("=").rstrip()
    return head


def enclosing_class(member: Node) -> Optional[Node]:
    body = member.parent
    if body is None or body.type != "class_body":
        return None
    return body.parent if body.parent is not None and body.parent.type == "class_declaration" else None


class PolymerTsTransformer:
    """Builds the change-record store for one PolymerTS source file."""

    def __init__(self, source_file: SourceFile, options: Optional[ConverterOptions] = None):
        self.source_file = source_file
        self.options = options or ConverterOptions()
        self.store = ChangeRecordStore(source_file.file_path)
        self.renderer = Renderer(source_file, self.store)
        self.components: List[Component] = []
        self._ready_statements: Dict[str, List[str]] = {}

    @property
    def data(self) -> bytes:
        return self.source_file.data

    def q(self, value: str) -> str:
        return quote(value, self.options.quote_style)

    def analyze(self) -> ChangeRecordStore:
        self._visit(self.source_file.tree.root_node)
        self._flag_register_calls()
        self._add_reference_tag()
        return self.store

    # --- Traversal ---

    def _visit(self, node: Node) -> None:
        for child in self._ordered_children(node):
            self._visit(child)
        self._analyze_node(node)

    def _ordered_children(self, node: Node) -> List[Node]:
        if node.type != "class_body":
            return list(node.children)
        fields = [c for c in node.children if c.type == "public_field_definition"]
        ready = [c for c in node.children
                 if c.type == "method_definition" and method_name(c, self.data) == "ready"]
        rest = [c for c in node.children if c not in fields and c not in ready]
        return fields + ready + rest

    def _analyze_node(self, node: Node) -> None:
        if node.type == "class_declaration":
            self._visit_class(node)
        elif node.type == "public_field_definition" and is_declared_property(node, self.data):
            self._visit_property(node)
        elif node.type == "method_definition":
            self._visit_method(node)

    def _class_name(self, class_node: Optional[Node]) -> Optional[str]:
        return qualified_class_name(class_node, self.data)

    def _record(self, node: Node, change_type: TransformChangeType, new_node=None, part=None,
                notification=None) -> TransformChangeRecord:
        record = TransformChangeRecord(
            change_type=change_type,
            original_node=node,
            new_node=new_node,
            notification=notification,
            class_name=self._class_name(enclosing_class(node)),
            part=part,
        )
        self.store.set(node, record)
        return record

    def _member_decorators(
        self,
        node: Node,
        kind: Optional[DecoratorKind] = None,
        replacement: Sequence[DecoratorLike] = (),
        drop: Sequence[DecoratorKind] = (),
    ) -> List[DecoratorLike]:
        """
        Decorators of ``node`` and the comments between them, in source order.

        The first decorator of ``kind`` is swapped for ``replacement`` (which
        is prepended when there is none) and decorators of a ``drop`` kind are
        removed. Everything else is carried over verbatim.
        """
        result: List[DecoratorLike] = []
        replaced = False
        for item in decorator_items(node):
            if item.type == "comment":
                result.append(RawText(self.source_file.text_of(item)))
                continue
            item_kind = classify_decorator(item, self.data)
            if kind is not None and item_kind is kind and not replaced:
                result.extend(replacement)
                replaced = True
            elif item_kind not in drop:
                result.append(RawText(self.source_file.text_of(item)))
        if not replaced:
            result[0:0] = list(replacement)
        return result

    # --- Properties ---

    def _property_decorators(self, prop: Property, options: ObjectLiteral) -> List[DecoratorLike]:
        args = (options,) if options.entries else ()
        return self._member_decorators(prop.node, DecoratorKind.PROPERTY, [Decorator("property", args)])

    def property_declaration(self, prop: Property, without_value: bool = False) -> PropertyDeclaration:
        options = object_literal(prop.options, self.source_file)
        if without_value:
            options = options.without("value")
        initializer = prop.initializer
        return PropertyDeclaration(
            decorators=tuple(self._property_decorators(prop, options)),
            head=field_head(prop.node, self.source_file),
            initializer=self.source_file.text_of(initializer) if initializer is not None else None,
        )

    def _visit_property(self, node: Node) -> None:
        prop = Property(node=node, source_file=self.source_file)
        value = prop.value_expression
        if value is None:
            self._record(node, TransformChangeType.PROPERTY_MODIFY, part=prop)
            return

        if prop.value_kind == "expression":
            notification = self.store.notify(
                Severity.ACTION_REQUIRED,
                f"Property '{prop.name}' has a non-literal default value; move it to an initializer by hand",
                node,
            )
            self._record(node, TransformChangeType.PROPERTY_MODIFY, part=prop, notification=notification)
            return

        declaration = self.property_declaration(prop, without_value=True)
        notification = None
        if prop.initializer is not None:
            notification = self.store.notify(
                Severity.WARN,
                f"Property '{prop.name}' already has an initializer; its 'value' option was dropped",
                node,
            )
        else:
            declaration = PropertyDeclaration(
                decorators=declaration.decorators,
                head=declaration.head,
                initializer=unwrap_factory(value, self.source_file),
            )
        self._record(node, TransformChangeType.PROPERTY_ADD_VALUE_INITIALIZER, declaration,
                     part=prop, notification=notification)

    # --- Methods ---

    def _visit_method(self, node: Node) -> None:
        role = classify_method(node, self.data)
        if role is MethodRole.COMPUTED:
            self._visit_computed(node)
        elif role is MethodRole.LISTENER:
            self._visit_listener(node)
        elif role is MethodRole.OBSERVER:
            self._visit_observer(node)
        elif role is MethodRole.READY:
            self._visit_ready(node)
        elif self.options.rename_lifecycle_callbacks:
            self._visit_lifecycle(node)

    def _body_edits_for_dependencies(self, body: Node, dependencies: List[str]) -> List:
        edits = []
        wanted = set(dependencies)
        for ident in walk(body):
            if ident.type not in ("identifier", "shorthand_property_identifier"):
                continue
            name = node_text(self.data, ident)
            if name not in wanted:
                continue
            parent = ident.parent
            if parent is not None and parent.type in DECLARATION_FIELDS:
                declared = parent.child_by_field_name(DECLARATION_FIELDS[parent.type])
                if declared is not None and declared.start_byte == ident.start_byte and declared.type == ident.type:
                    continue
            if ident.type == "shorthand_property_identifier":
                edits.append((ident.start_byte, ident.end_byte, f"{name}: this.{name}"))
            else:
                edits.append((ident.start_byte, ident.end_byte, f"this.{name}"))
        return edits

    def _visit_computed(self, node: Node) -> None:
        computed = ComputedProperty(node=node, source_file=self.source_file)
        replacement: List[DecoratorLike] = []
        if computed.options is not None:
            options = object_literal(computed.options, self.source_file).without("value")
            replacement.append(Decorator("property", (options,) if options.entries else ()))
        replacement.append(create_string_decorator("computed", computed.dependencies, self.options.quote_style))
        decorators = self._member_decorators(node, DecoratorKind.COMPUTED, replacement)

        body = node.child_by_field_name("body")
        edits = self.renderer.edits(body) + self._body_edits_for_dependencies(body, computed.dependencies)
        body_text = apply_edits(self.data, body.start_byte, body.end_byte, edits)

        if computed.is_getter:
            head = span_text(self.data, node.start_byte, body.start_byte).rstrip()
            change_type = TransformChangeType.METHOD_MODIFY
        else:
            head = self._getter_head(node)
            change_type = TransformChangeType.METHOD_REPLACE
        getter = GetAccessor(decorators=tuple(decorators), head=head, body=body_text)
        self._record(node, change_type, getter, part=computed)

    def _getter_head(self, node: Node) -> str:
        name = node.child_by_field_name("name")
        modifiers = []
        for child in node.children:
            if child == name:
                break
            if child.type in ("decorator", "comment", "async"):
                continue
            modifiers.append(self.source_file.text_of(child))
        return_type = node.child_by_field_name("return_type")
        parts = modifiers + [f"get {self.source_file.text_of(name)}()"]
        return " ".join(parts) + (self.source_file.text_of(return_type) if return_type is not None else "")

    def _visit_listener(self, node: Node) -> None:
        listener = Listener(node=node, source_file=self.source_file)
        kept = self._member_decorators(node, DecoratorKind.LISTEN)
        if listener.event_name is None:
            notification = self.store.notify(
                Severity.ERROR, f"Listener '{listener.method_name}' has no event name; decorator dropped", node)
            method = MethodDeclaration(decorators=tuple(kept), text=self.renderer.render(node))
            self._record(node, TransformChangeType.METHOD_MODIFY, method, part=listener, notification=notification)
            return

        if self.options.apply_declarative_event_listeners_mixin:
            target = self.q(listener.element_id) if listener.element_id else "document"
            decorator = Decorator("listen", (self.q(listener.event_name), target))
            method = MethodDeclaration(decorators=tuple(self._member_decorators(node, DecoratorKind.LISTEN, [decorator])),
                                      text=self.renderer.render(node))
            self._record(node, TransformChangeType.METHOD_MODIFY, method, part=listener)
            return

        method = MethodDeclaration(decorators=tuple(kept), text=self.renderer.render(node))
        self._record(node, TransformChangeType.METHOD_MODIFY, method, part=listener)

        receiver = f"this.$.{listener.element_id}" if listener.element_id else "this"
        statement = (f"{receiver}.addEventListener({self.q(listener.event_name)}, "
                     f"this.{listener.method_name}.bind(this));")
        class_node = enclosing_class(node)
        self._add_to_ready(class_node, statement)
        self.store.notify(
            Severity.ACTION_REQUIRED,
            f"Listener '{listener.method_name}' for '{listener.event_declaration}' is now added in ready(); "
            f"check that the target exists at that point",
            node,
        )

    def _visit_ready(self, node: Node) -> None:
        ready = ReadyMethod(node=node, source_file=self.source_file)
        self._record(node, TransformChangeType.METHOD_MODIFY, part=ready)

    def _add_to_ready(self, class_node: Optional[Node], statement: str) -> None:
        class_name = self._class_name(class_node)
        if class_name is None:
            return
        statements = self._ready_statements.setdefault(class_name, [])
        statements.append(statement)

        body = class_node.child_by_field_name("body")
        indent = self.renderer.member_indent(body)
        record = self.store.find_ready_record(class_name)
        if record is None:
            record = TransformChangeRecord(
                change_type=TransformChangeType.LISTENER_ADD_TO_READY,
                class_name=class_name,
                part=ReadyMethod(node=None, source_file=self.source_file),
            )
            self.store.add_new_member(class_name, record)

        if record.original_node is None:
            record.new_node = create_ready_method(statements, indent, self.renderer.unit)
            return

        ready: ReadyMethod = record.part
        method = record.original_node
        method_indent = line_indent(self.data, member_start(method))
        block = ready.body
        first = named_children(block)
        if first and first[0].start_point[0] != block.start_point[0]:
            statement_indent = line_indent(self.data, first[0].start_byte)
        else:
            statement_indent = method_indent + self.renderer.unit
        block_text = self.renderer.render(block)
        if not ready.calls_super:
            block_text = prepend_statements(block_text, ["super.ready();"], statement_indent, method_indent)
        block_text = append_statements(block_text, statements, statement_indent, method_indent)
        head = span_text(self.data, method.start_byte, block.start_byte)
        record.new_node = MethodDeclaration(
            decorators=tuple(self._member_decorators(method)),
            text=head + block_text,
        )
        record.change_type = TransformChangeType.LISTENER_ADD_TO_READY
        self.store.set(method, record)

    def _visit_observer(self, node: Node) -> None:
        observer = Observer(node=node, source_file=self.source_file)
        kept = self._member_decorators(node, DecoratorKind.OBSERVE)
        class_name = self._class_name(enclosing_class(node))

        fold = (self.options.move_single_property_observers_to_property
                and len(observer.params) == 1 and not observer.is_complex)
        if fold:
            target = observer.params[0]
            prop_record = self.store.find_property_record(target, class_name)
            if prop_record is None:
                notification = self.store.notify(
                    Severity.ERROR,
                    f"Observer '{observer.method_name}' watches '{target}', which is not a declared property "
                    f"of {class_name}; the @observe decorator was dropped",
                    node,
                )
                method = MethodDeclaration(decorators=tuple(kept), text=self.renderer.render(node))
                self._record(node, TransformChangeType.METHOD_MODIFY, method, part=observer,
                             notification=notification)
                return

            declaration = prop_record.new_node or self.property_declaration(prop_record.part)
            existing = declaration.find_decorator("property")
            options = existing.options if existing is not None else None
            if options is None or not options.has("observer"):
                prop_record.new_node = declaration.with_option("observer", self.q(observer.method_name))
                if prop_record.change_type is not TransformChangeType.PROPERTY_ADD_VALUE_INITIALIZER:
                    prop_record.change_type = TransformChangeType.PROPERTY_MODIFY
                self.store.set(prop_record.key, prop_record)
                method = MethodDeclaration(decorators=tuple(kept), text=self.renderer.render(node))
                self._record(node, TransformChangeType.METHOD_MODIFY, method, part=observer)
                return
            self.store.notify(
                Severity.INFO,
                f"Property '{target}' already has an observer; '{observer.method_name}' keeps its @observe decorator",
                node,
            )

        decorator = create_string_decorator("observe", observer.params, self.options.quote_style)
        method = MethodDeclaration(decorators=tuple(self._member_decorators(node, DecoratorKind.OBSERVE, [decorator])),
                                  text=self.renderer.render(node))
        self._record(node, TransformChangeType.METHOD_MODIFY, method, part=observer)

    def _visit_lifecycle(self, node: Node) -> None:
        name = method_name(node, self.data)
        class_node = enclosing_class(node)
        if not is_component(class_node, self.data):
            return
        if name in LIFECYCLE_MANUAL:
            self.store.notify(Severity.ACTION_REQUIRED, f"'{name}()' has no direct equivalent; {LIFECYCLE_MANUAL[name]}", node)
            return
        new_name = LIFECYCLE_RENAMES.get(name)
        if new_name is None:
            return

        name_node = node.child_by_field_name("name")
        body = node.child_by_field_name("body")
        method_indent = line_indent(self.data, member_start(node))
        first = named_children(body)
        if first and first[0].start_point[0] != body.start_point[0]:
            statement_indent = line_indent(self.data, first[0].start_byte)
        else:
            statement_indent = method_indent + self.renderer.unit
        block = prepend_statements(self.renderer.render(body), [f"super.{new_name}();"], statement_indent, method_indent)
        text = apply_edits(self.data, node.start_byte, node.end_byte,
                           [(name_node.start_byte, name_node.end_byte, new_name),
                            (body.start_byte, body.end_byte, block)])
        method = MethodDeclaration(
            decorators=tuple(self._member_decorators(node)),
            text=text,
        )
        notification = self.store.notify(Severity.INFO, f"Renamed lifecycle callback '{name}' to '{new_name}'", node)
        self._record(node, TransformChangeType.METHOD_RENAME, method, notification=notification)

    # --- Classes ---

    def _visit_class(self, node: Node) -> None:
        class_name = self._class_name(node)
        if class_name is None:
            return
        if is_component(node, self.data):
            self._visit_component(node)
        elif self.store.new_members(class_name):
            self._reassemble_class(node, class_name)

    def _class_head(self, node: Node, heritage: Optional[str] = None, component: Optional[Component] = None) -> str:
        decorators = get_decorators(node)
        host = class_host(node)
        start = max(d.end_byte for d in decorators) if decorators else host.start_byte
        body = node.child_by_field_name("body")
        edits = []
        if heritage is not None and component is not None and heritage != component.heritage:
            clause = component.extends_clause
            if clause is not None:
                value = clause.child_by_field_name("value") or named_children(clause)[0]
                edits.append((value.start_byte, clause.end_byte, heritage))
            else:
                anchor = node.child_by_field_name("type_parameters") or node.child_by_field_name("name")
                edits.append((anchor.end_byte, anchor.end_byte, f" extends {heritage}"))
        return apply_edits(self.data, start, body.start_byte, edits).strip()

    def _reassemble_class(self, node: Node, class_name: str) -> None:
        body = node.child_by_field_name("body")
        host = class_host(node)
        declaration = ClassDeclaration(
            decorators=tuple(self._member_decorators(node)),
            head=self._class_head(node),
            body=self.renderer.render_class_body(body, class_name),
        )
        record = TransformChangeRecord(
            change_type=TransformChangeType.CLASS_MODIFY,
            original_node=host,
            new_node=declaration,
            class_name=class_name,
        )
        self.store.set_class_record(class_name, record)

    def heritage_for(self, component: Component) -> str:
        """Base-class expression with behaviors and listener mixins applied."""
        base = component.heritage
        if base is None or self.options.change_component_class_extension:
            base = CANONICAL_BASE_CLASS
        for behavior in component.behaviors:
            base = behavior.mixin_call(base)
        if self.options.apply_declarative_event_listeners_mixin:
            base = f"{DECLARATIVE_LISTENERS_MIXIN}({base})"
        if self.options.apply_gesture_event_listeners_mixin:
            base = f"{GESTURE_LISTENERS_MIXIN}({base})"
        return base

    def _visit_component(self, node: Node) -> None:
        component = Component(node=node, source_file=self.source_file)
        self.components.append(component)
        logging.info(f"Parsing the {component.name} Component...")

        args = decorator_arguments(component.decorator)
        custom_element = Decorator("customElement", (self.source_file.text_of(args[0]),))
        decorators = self._member_decorators(node, DecoratorKind.COMPONENT, [custom_element],
                                             drop=[DecoratorKind.BEHAVIOR])

        heritage = self.heritage_for(component)
        body = node.child_by_field_name("body")
        declaration = ClassDeclaration(
            decorators=tuple(decorators),
            head=self._class_head(node, heritage, component),
            body=self.renderer.render_class_body(body, component.qualified_name),
        )
        notification = self.store.notify(
            Severity.INFO,
            f"Converted component '{component.name}' ({component.class_name} extends {heritage})",
            node,
        )
        record = TransformChangeRecord(
            change_type=TransformChangeType.CLASS_MODIFY,
            original_node=component.host,
            new_node=declaration,
            notification=notification,
            class_name=component.qualified_name,
            part=component,
        )
        self.store.set_class_record(component.qualified_name, record)

    # --- File level ---

    def _flag_register_calls(self) -> None:
        class_names = {component.class_name for component in self.components}
        if not class_names:
            return
        for node in walk(self.source_file.tree.root_node):
            if node.type != "call_expression":
                continue
            callee = node.child_by_field_name("function")
            if callee is None or callee.type != "member_expression":
                continue
            obj = callee.child_by_field_name("object")
            prop = callee.child_by_field_name("property")
            if prop is None or self.source_file.text_of(prop) != "register":
                continue
            if self.source_file.text_of(obj) in class_names:
                self.store.notify(
                    Severity.ACTION_REQUIRED,
                    f"'{self.source_file.text_of(node)}' is not needed with @customElement; remove it",
                    node,
                )

    def _add_reference_tag(self) -> None:
        bower = self.options.path_to_bower_components
        if not bower or not self.components:
            return
        tag = ReferenceTag(path=f"{bower.rstrip('/')}/{REFERENCE_TAG_TARGET}")
        for child in self.source_file.tree.root_node.children:
            if child.type != "comment":
                continue
            text = self.source_file.text_of(child)
            if text.startswith("///") and "<reference" in text and "polymer-ts" in text:
                self._record(child, TransformChangeType.ADD_REFERENCE_TAG, tag)
                return
        record = TransformChangeRecord(
            change_type=TransformChangeType.ADD_REFERENCE_TAG,
            new_node=tag,
            key=TOP_OF_FILE,
        )
        self.store.set(TOP_OF_FILE, record)
