"""
Node helpers shared by the analysis and emit passes.

Tree-sitter nodes are read-only views into a parsed tree, and a fresh
Python object is created every time a node is reached. Nodes are therefore
identified by a ``NodeKey`` (type plus byte span), which is stable for a
given source text and survives re-parsing the same text.
"""

from __future__ import annotations

from typing import Iterator, List, NamedTuple, Optional, Tuple

from tree_sitter import Node


class NodeKey(NamedTuple):
    type: str
    start_byte: int
    end_byte: int


def node_key(node: Node) -> NodeKey:
    return NodeKey(node.type, node.start_byte, node.end_byte)


def node_text(data: bytes, node: Optional[Node]) -> str:
    if not node:
        return ""
    return data[node.start_byte:node.end_byte].decode("utf-8")


def span_text(data: bytes, start: int, end: int) -> str:
    return data[start:end].decode("utf-8")


def walk(node: Node) -> Iterator[Node]:
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


def named_children(node: Optional[Node]) -> List[Node]:
    """Named children without interleaved comments."""
    if not node:
        return []
    return [child for child in node.named_children if child.type != "comment"]


def find_child(node: Optional[Node], *types: str) -> Optional[Node]:
    if not node:
        return None
    for child in node.children:
        if child.type in types:
            return child
    return None


def line_indent(data: bytes, offset: int) -> str:
    """Leading whitespace of the line that contains ``offset``."""
    line_start = data.rfind(b"\n", 0, offset) + 1
    end = line_start
    while end < len(data) and data[end:end + 1] in (b" ", b"\t"):
        end += 1
    return data[line_start:end].decode("utf-8")


def detect_indent_unit(text: str) -> str:
    tab_lines = 0
    widths = []
    for line in text.splitlines():
        if not line.strip():
            continue
        if line.startswith("\t"):
            tab_lines += 1
            continue
        width = len(line) - len(line.lstrip(" "))
        if width:
            widths.append(width)
    if tab_lines > len(widths):
        return "\t"
    if not widths:
        return "    "
    return " " * min(widths)


def apply_edits(data: bytes, start: int, end: int, edits: List[Tuple[int, int, str]]) -> str:
    """
    Splice ``(start, end, text)`` edits into ``data[start:end]``.

    Edits fully contained in an earlier edit are dropped. Partially
    overlapping edits raise ``ValueError``.
    """
    pieces: List[bytes] = []
    cursor = start
    last_end = start
    for edit_start, edit_end, text in sorted(edits, key=lambda e: (e[0], e[1] > e[0], -e[1])):
        if edit_start < last_end:
            if edit_end <= last_end:
                continue
            raise ValueError(f"Overlapping edits at bytes {edit_start}-{edit_end}")
        pieces.append(data[cursor:edit_start])
        pieces.append(text.encode("utf-8"))
        cursor = edit_end
        last_end = edit_end
    pieces.append(data[cursor:end])
    return b"".join(pieces).decode("utf-8")
