"""Shared fixtures for the ripdoc tests."""

from typing import Any

import pytest

from ir_builders import rich_crate, util_crate
from ripdoc.build_graph import build_graph
from ripdoc.decode_ir import decode_ir
from ripdoc.item_graph import ItemGraph
from ripdoc.path_resolver import PathResolver


def graph_of(doc: dict[str, Any]) -> ItemGraph:
    """Decode and link a document."""
    return build_graph(decode_ir(doc))


@pytest.fixture
def util_doc() -> dict[str, Any]:
    """Fixture providing the `demo` crate with its `util` module."""
    return util_crate()


@pytest.fixture
def util_graph(util_doc: dict[str, Any]) -> ItemGraph:
    """Fixture providing the linked graph of the `demo` crate."""
    return graph_of(util_doc)


@pytest.fixture
def rich_doc() -> dict[str, Any]:
    """Fixture providing the `rich` crate."""
    return rich_crate()


@pytest.fixture
def rich_graph(rich_doc: dict[str, Any]) -> ItemGraph:
    """Fixture providing the linked graph of the `rich` crate."""
    return graph_of(rich_doc)


@pytest.fixture
def rich_resolver(rich_graph: ItemGraph) -> PathResolver:
    """Fixture providing resolved paths for the `rich` crate."""
    return PathResolver(rich_graph)
