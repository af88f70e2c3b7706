"""
Change records produced by the analysis pass and consumed by the emit pass.

The store maps an original syntax node (by ``NodeKey``) to the change that
should be applied to it. Records may be overwritten at any time before the
emit pass runs; an observer folding itself into an already-recorded
property relies on this.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, List, Optional, Union

from tree_sitter import Node

from .models import ProgramPart, Property, ReadyMethod
from .treesitter import NodeKey, node_key


class Severity(Enum):
    INFO = "info"
    WARN = "warn"
    ERROR = "error"
    ACTION_REQUIRED = "action_required"


_LOG_LEVELS = {
    Severity.INFO: logging.INFO,
    Severity.WARN: logging.WARNING,
    Severity.ERROR: logging.ERROR,
    Severity.ACTION_REQUIRED: logging.WARNING,
}


@dataclass
class Notification:
    severity: Severity
    message: str
    file_path: Optional[str] = None
    line: Optional[int] = None

    def __str__(self) -> str:
        location = ""
        if self.file_path:
            location = f"{self.file_path}:{self.line}: " if self.line else f"{self.file_path}: "
        return f"[{self.severity.name}] {location}{self.message}"


class TransformChangeType(Enum):
    CLASS_MODIFY = "class_modify"
    METHOD_REPLACE = "method_replace"
    METHOD_MODIFY = "method_modify"
    METHOD_RENAME = "method_rename"
    PROPERTY_MODIFY = "property_modify"
    PROPERTY_ADD_VALUE_INITIALIZER = "property_add_value_initializer"
    LISTENER_ADD_TO_READY = "listener_add_to_ready"
    ADD_REFERENCE_TAG = "add_reference_tag"


PROPERTY_CHANGE_TYPES = {
    TransformChangeType.PROPERTY_MODIFY,
    TransformChangeType.PROPERTY_ADD_VALUE_INITIALIZER,
}


@dataclass
class TransformChangeRecord:
    """
    A planned change to one node.

    ``new_node`` is a synthesized node (see ``synthesis``); ``None`` means
    the construct was recognized but is already compliant. ``original_node``
    is ``None`` for brand-new class members, which are appended to their
    class when it is reassembled.
    """
    change_type: TransformChangeType
    original_node: Optional[Node] = None
    new_node: Optional[object] = None
    notification: Optional[Notification] = None
    class_name: Optional[str] = None
    part: Optional[ProgramPart] = None
    key: Optional[NodeKey] = None

    def __post_init__(self):
        if self.key is None and self.original_node is not None:
            self.key = node_key(self.original_node)


NodeOrKey = Union[Node, NodeKey]

# Zero-width slot at the start of the file, for inserted reference tags.
TOP_OF_FILE = NodeKey("comment", 0, 0)


def _as_key(node_or_key: NodeOrKey) -> NodeKey:
    if isinstance(node_or_key, NodeKey):
        return node_or_key
    return node_key(node_or_key)


class ChangeRecordStore:
    """Per-file mapping from original nodes to their change records."""

    def __init__(self, file_path: Optional[str] = None):
        self.file_path = file_path
        self._records: Dict[NodeKey, TransformChangeRecord] = {}
        self._class_records: Dict[str, TransformChangeRecord] = {}
        self._new_members: Dict[str, List[TransformChangeRecord]] = {}
        self.notifications: List[Notification] = []

    def set(self, node_or_key: NodeOrKey, record: TransformChangeRecord) -> None:
        self._records[_as_key(node_or_key)] = record
        if record.notification:
            self._log(record.notification)

    def get(self, node_or_key: NodeOrKey) -> Optional[TransformChangeRecord]:
        return self._records.get(_as_key(node_or_key))

    def __contains__(self, node_or_key: NodeOrKey) -> bool:
        return _as_key(node_or_key) in self._records

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[TransformChangeRecord]:
        return iter(self.records())

    def records(self) -> List[TransformChangeRecord]:
        new_members = [rec for recs in self._new_members.values() for rec in recs]
        return list(self._records.values()) + new_members + list(self._class_records.values())

    # --- Classes are resolved by qualified name (see classifier.qualified_class_name) ---

    def set_class_record(self, class_name: str, record: TransformChangeRecord) -> None:
        self._class_records[class_name] = record
        if record.notification:
            self._log(record.notification)

    def get_class_record(self, class_name: str) -> Optional[TransformChangeRecord]:
        return self._class_records.get(class_name)

    # --- Members with no original node ---

    def add_new_member(self, class_name: str, record: TransformChangeRecord) -> None:
        record.class_name = class_name
        self._new_members.setdefault(class_name, []).append(record)

    def new_members(self, class_name: str) -> List[TransformChangeRecord]:
        return list(self._new_members.get(class_name, []))

    # --- Lookups ---

    def find_property_record(self, name: str, class_name: Optional[str] = None) -> Optional[TransformChangeRecord]:
        for record in self._records.values():
            if record.change_type not in PROPERTY_CHANGE_TYPES or not isinstance(record.part, Property):
                continue
            if class_name is not None and record.class_name != class_name:
                continue
            if record.part.name == name:
                return record
        return None

    def find_ready_record(self, class_name: Optional[str] = None) -> Optional[TransformChangeRecord]:
        candidates = list(self._records.values())
        if class_name is not None:
            candidates += self._new_members.get(class_name, [])
        else:
            candidates += [rec for recs in self._new_members.values() for rec in recs]
        for record in candidates:
            if not isinstance(record.part, ReadyMethod):
                continue
            if class_name is not None and record.class_name != class_name:
                continue
            return record
        return None

    # --- Notifications ---

    def notify(self, severity: Severity, message: str, node: Optional[Node] = None) -> Notification:
        notification = Notification(
            severity=severity,
            message=message,
            file_path=self.file_path,
            line=node.start_point[0] + 1 if node is not None else None,
        )
        self._log(notification)
        return notification

    def _log(self, notification: Notification) -> None:
        if any(existing is notification for existing in self.notifications):
            return
        if notification.file_path is None:
            notification.file_path = self.file_path
        self.notifications.append(notification)
        logging.log(_LOG_LEVELS[notification.severity], str(notification))
