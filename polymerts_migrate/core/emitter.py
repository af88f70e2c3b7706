"""
Emit pass: render a source file with its change records applied.

The tree is walked top-down. A node that has a record is replaced by the
rendering of the record's new node and its subtree is not visited further;
any other node is copied verbatim except for the replaced descendants it
contains. The same ``Renderer`` is used by the analysis pass to reassemble
component class bodies.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from tree_sitter import Node

from .change_records import TOP_OF_FILE, ChangeRecordStore, Severity, TransformChangeType
from .classifier import leading_decorators, qualified_class_name
from .models import SourceFile, is_getter
from .treesitter.nodes import apply_edits, detect_indent_unit, line_indent, named_children

Edit = Tuple[int, int, str]


class PrintError(RuntimeError):
    """A file whose rewritten text cannot be produced."""

    def __init__(self, file_path: Optional[str], message: str):
        super().__init__(f"{file_path}: {message}" if file_path else message)
        self.file_path = file_path


def class_of(node: Node) -> Optional[Node]:
    """The class declared by ``node``, which is a class or an export of one."""
    if node.type == "class_declaration":
        return node
    if node.type == "export_statement":
        declaration = node.child_by_field_name("declaration")
        if declaration is not None and declaration.type == "class_declaration":
            return declaration
    return None


def original_kind(node: Node) -> str:
    if node.type == "method_definition" and is_getter(node):
        return "get_accessor"
    if class_of(node) is not None:
        return "class_declaration"
    return node.type


def member_start(node: Node) -> int:
    """Start of a member including its decorators."""
    if node.type == "method_definition":
        decorators = leading_decorators(node)
        if decorators:
            return decorators[0].start_byte
    return node.start_byte


class Renderer:
    """Renders nodes of one source file with the store's replacements spliced in."""

    def __init__(self, source_file: SourceFile, store: ChangeRecordStore, unit: Optional[str] = None):
        self.source_file = source_file
        self.store = store
        self.unit = unit or detect_indent_unit(source_file.text)

    @property
    def data(self) -> bytes:
        return self.source_file.data

    def render(self, node: Optional[Node]) -> str:
        if node is None:
            return ""
        return apply_edits(self.data, node.start_byte, node.end_byte, self.edits(node))

    def edits(self, node: Node) -> List[Edit]:
        found: List[Edit] = []
        for child in node.children:
            replacement = self.replacement(child)
            if replacement is not None:
                found.append(replacement)
            else:
                found.extend(self.edits(child))
        return found

    def replacement(self, node: Node) -> Optional[Edit]:
        class_node = class_of(node)
        if class_node is not None:
            return self._class_replacement(node, class_node)

        record = self.store.get(node)
        if record is None or record.new_node is None:
            return None
        if record.change_type is TransformChangeType.CLASS_MODIFY:
            return None
        if not self._kind_allowed(node, record):
            return None
        start = member_start(node)
        indent = line_indent(self.data, start)
        return start, node.end_byte, record.new_node.render(indent, self.unit)

    def _class_replacement(self, node: Node, class_node: Node) -> Optional[Edit]:
        name_node = class_node.child_by_field_name("name")
        if name_node is None:
            return None
        record = self.store.get_class_record(qualified_class_name(class_node, self.data))
        if record is None or record.new_node is None:
            return None
        # Only the node carrying the class decorators is replaced.
        if record.key is None or record.key.type != node.type:
            return None
        if not self._kind_allowed(node, record):
            return None
        indent = line_indent(self.data, node.start_byte)
        return node.start_byte, node.end_byte, record.new_node.render(indent, self.unit)

    def _kind_allowed(self, node: Node, record) -> bool:
        kind = original_kind(node)
        new_kind = record.new_node.kind
        if kind == new_kind or record.change_type is TransformChangeType.METHOD_REPLACE:
            return True
        self.store.notify(
            Severity.WARN,
            f"Replacement of kind '{new_kind}' does not fit a '{kind}' ({record.change_type.name}); "
            f"the original was kept",
            node,
        )
        return False

    # --- Class bodies ---

    def member_indent(self, body: Node) -> str:
        members = named_children(body)
        if members and members[0].start_point[0] != body.start_point[0]:
            return line_indent(self.data, member_start(members[0]))
        return line_indent(self.data, body.start_byte) + self.unit

    def render_class_body(self, body: Node, class_name: str) -> str:
        """Class body with member records applied and new members appended."""
        edits = self.edits(body)
        new_members = [record.new_node for record in self.store.new_members(class_name) if record.new_node]
        if new_members:
            indent = self.member_indent(body)
            rendered = [member.render(indent, self.unit) for member in new_members]
            closing = body.end_byte - 1
            content_end = body.start_byte + len(self.data[body.start_byte:closing].rstrip())
            if content_end <= body.start_byte + 1:
                closing_indent = line_indent(self.data, closing)
                text = "".join(f"\n{indent}{member}" for member in rendered)
                edits.append((body.start_byte + 1, closing, text + "\n" + closing_indent))
            else:
                text = "".join(f"\n\n{indent}{member}" for member in rendered)
                edits.append((content_end, content_end, text))
        return apply_edits(self.data, body.start_byte, body.end_byte, edits)


def emit(source_file: SourceFile, store: ChangeRecordStore) -> str:
    """
    Produce the rewritten text of ``source_file``.

    The text is parsed again so that no node object from the analysis pass
    is reused; records are matched by ``NodeKey``.

    Raises:
        PrintError: if the edits overlap, or the result no longer parses
            while the input did.
    """
    fresh = SourceFile(text=source_file.text, file_path=source_file.file_path,
                       language_id=source_file.language_id)
    renderer = Renderer(fresh, store)
    root = fresh.tree.root_node
    edits = renderer.edits(root)

    top = store.get(TOP_OF_FILE)
    if top is not None and top.new_node is not None:
        edits.append((0, 0, top.new_node.render("", renderer.unit) + "\n"))

    try:
        text = apply_edits(fresh.data, 0, len(fresh.data), edits)
    except ValueError as e:
        raise PrintError(source_file.file_path, str(e)) from e

    if text != source_file.text and not root.has_error:
        result = SourceFile(text=text, file_path=source_file.file_path, language_id=source_file.language_id)
        if result.tree.root_node.has_error:
            raise PrintError(source_file.file_path, "rewritten source does not parse")
    logging.debug(f"Rendered {source_file.file_path} with {len(edits)} replacements")
    return text
