"""
Pytest configuration and fixtures for polymerts-migrate tests.
"""

import pytest
import tempfile
import shutil
from pathlib import Path
from typing import Callable, Iterator, List

from tree_sitter import Node

from polymerts_migrate.core.config import ConverterOptions
from polymerts_migrate.core.converter import TransformResult, transform_source
from polymerts_migrate.core.models import SourceFile
from polymerts_migrate.core.treesitter import walk


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    shutil.rmtree(temp_path)


@pytest.fixture
def default_options():
    """Options with every default value."""
    return ConverterOptions()


@pytest.fixture
def parse() -> Callable[[str], SourceFile]:
    """Parse a TypeScript snippet into a SourceFile."""
    def _parse(text: str, file_path: str = "sample.ts") -> SourceFile:
        return SourceFile(text=text, file_path=file_path)
    return _parse


@pytest.fixture
def nodes_of_type() -> Callable[[SourceFile, str], List[Node]]:
    """All nodes of one type, in source order."""
    def _nodes(source_file: SourceFile, node_type: str) -> List[Node]:
        return [node for node in walk(source_file.tree.root_node) if node.type == node_type]
    return _nodes


@pytest.fixture
def run_transform() -> Callable[..., TransformResult]:
    """Transform a source text with option overrides given as keywords."""
    def _run(source: str, **options) -> TransformResult:
        return transform_source(source, ConverterOptions(**options), file_path="sample.ts")
    return _run


@pytest.fixture
def sample_component_source():
    """A PolymerTS component exercising every decorator."""
    return '''/// <reference path="../bower_components/polymer-ts/polymer-ts.d.ts" />

@component("my-element")
@behavior(Polymer.IronResizableBehavior)
class MyElement extends polymer.Base {
    @property({type: String})
    name: string;

    @property({type: Array, value: () => []})
    items: any[];

    @property({type: Boolean, value: false})
    opened: boolean;

    @computed("first, last")
    fullName(first, last) {
        return first + " " + last;
    }

    @observe("name")
    _nameChanged(name) {
        console.log(name);
    }

    @observe("items.*, opened")
    _itemsChanged(items, opened) {
        this.fire("items-changed");
    }

    @listen("saveButton.tap")
    _onSave(e) {
        this.save();
    }

    @customDecorator("untouched")
    helper() {
        return 1;
    }
}

MyElement.register();
'''


@pytest.fixture
def sample_compliant_source():
    """A component already written in the polymer-decorators convention."""
    return '''@customElement("my-element")
class MyElement extends Polymer.Element {
    @property({type: String, observer: "_nameChanged"})
    name: string;

    @property({type: Array})
    items: any[] = [];

    @observe("a", "b")
    _onAB(a, b) {
        console.log(a, b);
    }

    @computed("first", "last")
    get fullName() {
        return this.first + " " + this.last;
    }

    ready() {
        super.ready();
        this.addEventListener("tap", this._onTap.bind(this));
    }

    _nameChanged(name) {
    }

    _onTap(e) {
    }
}
'''
