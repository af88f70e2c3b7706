"""
Unit tests for decorator and method classification.
"""

import pytest

from polymerts_migrate.core.classifier import (
    DecoratorKind,
    MethodRole,
    class_host,
    classify_decorator_text,
    classify_method,
    decorator_items,
    find_decorators,
    get_decorators,
    is_component,
    is_declared_property,
    qualified_class_name,
)


class TestClassifyDecorator:
    """Decorators are recognized from callee name and argument shape."""

    @pytest.mark.parametrize("text,kind", [
        ('@component("my-element")', DecoratorKind.COMPONENT),
        ("@component('my-element')", DecoratorKind.COMPONENT),
        ("@property()", DecoratorKind.PROPERTY),
        ("@property({type: String, notify: true})", DecoratorKind.PROPERTY),
        ('@computed("a", "b")', DecoratorKind.COMPUTED),
        ('@computed(["a", "b"])', DecoratorKind.COMPUTED),
        ("@computed({type: Number})", DecoratorKind.COMPUTED),
        ("@computed()", DecoratorKind.COMPUTED),
        ('@observe("a,b")', DecoratorKind.OBSERVE),
        ('@observe("a", "b")', DecoratorKind.OBSERVE),
        ('@listen("button.tap")', DecoratorKind.LISTEN),
        ("@behavior(Polymer.IronResizableBehavior)", DecoratorKind.BEHAVIOR),
    ])
    def test_recognized(self, text, kind):
        """Test well-formed PolymerTS decorators are classified."""
        assert classify_decorator_text(text) is kind

    @pytest.mark.parametrize("text", [
        "@component(tagName)",
        '@component("a", "b")',
        '@property("name")',
        "@computed({a: 1}, {b: 2})",
        "@observe()",
        "@observe(name)",
        '@listen("tap", document)',
        "@behavior()",
        "@behavior(A, B)",
        '@Polymer.component("x")',
        "@component",
        '@customElement("my-element")',
        '@template("<div></div>")',
    ])
    def test_not_recognized(self, text):
        """Test decorators with the wrong callee or argument shape are ignored."""
        assert classify_decorator_text(text) is None

    def test_whitespace_and_missing_at_sign(self):
        """Test formatting differences do not change the classification."""
        assert classify_decorator_text('  observe( "a" ,\n "b" )  ') is DecoratorKind.OBSERVE


class TestDecoratorPlacement:
    """Where decorators live in the tree."""

    def test_class_decorators(self, parse, nodes_of_type):
        """Test class decorators are found on the class declaration."""
        sf = parse('@component("x-a")\n@behavior(B)\nclass A extends Polymer.Element {}\n')
        class_node = nodes_of_type(sf, "class_declaration")[0]
        assert len(get_decorators(class_node)) == 2
        assert is_component(class_node, sf.data)
        assert class_host(class_node) == class_node
        assert len(find_decorators(class_node, sf.data, DecoratorKind.BEHAVIOR)) == 1

    def test_exported_class_decorators(self, parse, nodes_of_type):
        """Test decorators written before 'export' belong to the exported class."""
        sf = parse('@component("x-a")\nexport class A extends Polymer.Element {}\n')
        class_node = nodes_of_type(sf, "class_declaration")[0]
        assert is_component(class_node, sf.data)
        assert class_host(class_node).type == "export_statement"

    def test_method_decorators_are_leading_siblings(self, parse, nodes_of_type):
        """Test method decorators are collected from the class body."""
        sf = parse('class A {\n    @observe("x")\n    // why\n    @listen("tap")\n    m() {}\n}\n')
        method = nodes_of_type(sf, "method_definition")[0]
        names = [sf.text_of(d) for d in get_decorators(method)]
        assert names == ['@observe("x")', '@listen("tap")']

    def test_declared_property(self, parse, nodes_of_type):
        """Test a field with @property is a declared property and a plain field is not."""
        sf = parse("class A {\n    @property({type: String})\n    a: string;\n    b: string;\n}\n")
        fields = nodes_of_type(sf, "public_field_definition")
        assert is_declared_property(fields[0], sf.data)
        assert not is_declared_property(fields[1], sf.data)


class TestClassifyMethod:
    """Method dispatch follows a fixed priority."""

    def _method(self, parse, nodes_of_type, body):
        sf = parse(f"class A {{\n{body}\n}}\n")
        return sf, nodes_of_type(sf, "method_definition")[0]

    def test_computed_wins_over_observer(self, parse, nodes_of_type):
        """Test a method matching several roles takes the first in priority order."""
        sf, method = self._method(parse, nodes_of_type, '    @observe("a")\n    @computed("a")\n    m(a) {}')
        assert classify_method(method, sf.data) is MethodRole.COMPUTED

    def test_listener_wins_over_observer(self, parse, nodes_of_type):
        """Test LISTENER comes before OBSERVER."""
        sf, method = self._method(parse, nodes_of_type, '    @observe("a")\n    @listen("tap")\n    m() {}')
        assert classify_method(method, sf.data) is MethodRole.LISTENER

    def test_ready(self, parse, nodes_of_type):
        """Test an undecorated ready() is the READY role."""
        sf, method = self._method(parse, nodes_of_type, "    ready() {}")
        assert classify_method(method, sf.data) is MethodRole.READY

    def test_plain_method(self, parse, nodes_of_type):
        """Test a plain or unknown-decorated method has no role."""
        sf, method = self._method(parse, nodes_of_type, '    @debounce(100)\n    m() {}')
        assert classify_method(method, sf.data) is None


class TestClassIdentity:
    """Qualified class names."""

    def test_namespaces_qualify(self, parse, nodes_of_type):
        """Test enclosing namespaces are part of the name."""
        sf = parse("namespace A.B { export class X {} }\nnamespace C { class X {} }\nclass X {}\n")
        names = [qualified_class_name(c, sf.data) for c in nodes_of_type(sf, "class_declaration")]
        assert names == ["A.B.X", "C.X", "X"]

    def test_function_scopes_qualify(self, parse, nodes_of_type):
        """Test classes declared inside functions do not collide."""
        sf = parse("function make() { class X {} }\nconst f = () => { class X {} };\n")
        first, second = [qualified_class_name(c, sf.data) for c in nodes_of_type(sf, "class_declaration")]
        assert first == "make.X"
        assert second.startswith("<anonymous@") and second.endswith(".X")


class TestDecoratorItems:
    """Decorators with interleaved comments."""

    def test_method_items_in_order(self, parse, nodes_of_type):
        """Test comments between decorators are included and leading ones are not."""
        sf = parse("class A {\n  // docs\n  @a()\n  // mid\n  @b()\n  m() {}\n}\n")
        method = nodes_of_type(sf, "method_definition")[0]
        assert [sf.text_of(item) for item in decorator_items(method)] == ["@a()", "// mid", "@b()"]

    def test_undecorated_member(self, parse, nodes_of_type):
        """Test a member without decorators has no items."""
        sf = parse("class A {\n  // docs\n  m() {}\n}\n")
        assert decorator_items(nodes_of_type(sf, "method_definition")[0]) == []

    def test_exported_class_items(self, parse, nodes_of_type):
        """Test decorators written before 'export' are found."""
        sf = parse('@a()\n/* c */\n@b()\nexport class X {}\n')
        items = decorator_items(nodes_of_type(sf, "class_declaration")[0])
        assert [sf.text_of(item) for item in items] == ["@a()", "/* c */", "@b()"]
