"""
Unit tests for the emit pass.
"""

import pytest

from polymerts_migrate.core.change_records import (
    TOP_OF_FILE,
    ChangeRecordStore,
    Severity,
    TransformChangeRecord,
    TransformChangeType,
)
from polymerts_migrate.core.emitter import PrintError, Renderer, emit, member_start, original_kind
from polymerts_migrate.core.synthesis import GetAccessor, MethodDeclaration, RawText, ReferenceTag


SOURCE = "class A {\n    @dec()\n    foo() {}\n\n    get bar() { return 1; }\n}\n"


def method(parse, nodes_of_type, text=SOURCE, index=0):
    sf = parse(text)
    return sf, nodes_of_type(sf, "method_definition")[index]


class TestNodeHelpers:
    """Kinds and member extents."""

    def test_original_kind(self, parse, nodes_of_type):
        """Test getters are reported as get_accessor and classes by their declaration."""
        sf = parse(SOURCE)
        foo, bar = nodes_of_type(sf, "method_definition")
        assert original_kind(foo) == "method_definition"
        assert original_kind(bar) == "get_accessor"
        assert original_kind(nodes_of_type(sf, "class_declaration")[0]) == "class_declaration"

    def test_member_start_includes_decorators(self, parse, nodes_of_type):
        """Test a decorated method starts at its first decorator."""
        sf, foo = method(parse, nodes_of_type)
        assert member_start(foo) == SOURCE.index("@dec()")


class TestEmit:
    """Applying records."""

    def test_no_records_is_identity(self, parse):
        """Test an empty store reproduces the input byte for byte."""
        sf = parse(SOURCE)
        assert emit(sf, ChangeRecordStore("sample.ts")) == SOURCE

    def test_replacement_covers_decorators(self, parse, nodes_of_type):
        """Test a method replacement also replaces its decorators."""
        sf, foo = method(parse, nodes_of_type)
        store = ChangeRecordStore("sample.ts")
        store.set(foo, TransformChangeRecord(TransformChangeType.METHOD_MODIFY, foo,
                                             MethodDeclaration(decorators=(RawText("@other()"),), text="foo() {}")))
        assert emit(sf, store) == SOURCE.replace("@dec()", "@other()")

    def test_kind_mismatch_keeps_original(self, parse, nodes_of_type):
        """Test a getter cannot silently replace a plain method."""
        sf, foo = method(parse, nodes_of_type)
        store = ChangeRecordStore("sample.ts")
        store.set(foo, TransformChangeRecord(TransformChangeType.METHOD_MODIFY, foo,
                                             GetAccessor(head="get foo()", body="{}")))
        assert emit(sf, store) == SOURCE
        warnings = [n for n in store.notifications if n.severity is Severity.WARN]
        assert warnings and "get_accessor" in warnings[0].message

    def test_method_replace_allows_kind_change(self, parse, nodes_of_type):
        """Test METHOD_REPLACE may turn a method into a getter."""
        sf, foo = method(parse, nodes_of_type)
        store = ChangeRecordStore("sample.ts")
        store.set(foo, TransformChangeRecord(TransformChangeType.METHOD_REPLACE, foo,
                                             GetAccessor(head="get foo()", body="{}")))
        assert "    get foo() {}\n" in emit(sf, store)

    def test_reference_tag_at_top_of_file(self, parse):
        """Test the top-of-file slot inserts a line before everything else."""
        sf = parse(SOURCE)
        store = ChangeRecordStore("sample.ts")
        store.set(TOP_OF_FILE, TransformChangeRecord(TransformChangeType.ADD_REFERENCE_TAG,
                                                     new_node=ReferenceTag(path="x.d.ts"), key=TOP_OF_FILE))
        assert emit(sf, store) == '/// <reference path="x.d.ts" />\n' + SOURCE

    def test_unparseable_output_raises(self, parse, nodes_of_type):
        """Test a replacement that breaks the syntax is a PrintError."""
        sf, foo = method(parse, nodes_of_type)
        store = ChangeRecordStore("sample.ts")
        store.set(foo, TransformChangeRecord(TransformChangeType.METHOD_REPLACE, foo,
                                             MethodDeclaration(text="foo( {")))
        with pytest.raises(PrintError) as exc:
            emit(sf, store)
        assert exc.value.file_path == "sample.ts"

    def test_broken_input_is_not_a_print_error(self, parse):
        """Test input that already has syntax errors is passed through."""
        text = "class A {\n    foo( {\n}\n"
        assert emit(parse(text), ChangeRecordStore("sample.ts")) == text


class TestRenderer:
    """Class body reassembly."""

    def test_new_member_in_empty_body(self, parse, nodes_of_type):
        """Test a member added to an empty body gets its own line."""
        sf = parse("class A {}\n")
        store = ChangeRecordStore("sample.ts")
        store.add_new_member("A", TransformChangeRecord(TransformChangeType.LISTENER_ADD_TO_READY,
                                                        new_node=MethodDeclaration(text="foo() {}")))
        body = nodes_of_type(sf, "class_body")[0]
        assert Renderer(sf, store).render_class_body(body, "A") == "{\n    foo() {}\n}"

    def test_new_member_after_last(self, parse, nodes_of_type):
        """Test a member added after existing ones is separated by a blank line."""
        sf = parse("class A {\n  bar() {}\n}\n")
        store = ChangeRecordStore("sample.ts")
        store.add_new_member("A", TransformChangeRecord(TransformChangeType.LISTENER_ADD_TO_READY,
                                                        new_node=MethodDeclaration(text="foo() {}")))
        body = nodes_of_type(sf, "class_body")[0]
        assert Renderer(sf, store).render_class_body(body, "A") == "{\n  bar() {}\n\n  foo() {}\n}"

    def test_indent_unit_detected(self, parse):
        """Test the indentation unit follows the file."""
        assert Renderer(parse("class A {\n  bar() {}\n}\n"), ChangeRecordStore()).unit == "  "
