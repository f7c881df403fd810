"""Tests for visibility, feature and path filtering."""

import pytest

from ir_builders import document, function, impl_block, path_type, plain_struct, trait, trait_ref
from ripdoc.build_graph import build_graph
from ripdoc.decode_ir import decode_ir
from ripdoc.errors import TargetNotFound
from ripdoc.feature_set import FeatureSet
from ripdoc.filter_engine import FilterOptions, is_root_only, project, restrict_to_path
from ripdoc.item_graph import ItemGraph
from ripdoc.path_resolver import PathResolver


def assert_ancestor_closed(graph: ItemGraph, projection: frozenset[str]) -> None:
    """Check that every kept item's ancestors are kept too."""
    for item_id in projection:
        assert set(graph.ancestors(item_id)) <= projection


def test_private_items_are_hidden_by_default(util_graph: ItemGraph) -> None:
    """Verify that restricted items and their members are left out."""
    kept = project(util_graph, FilterOptions())

    assert kept == {"0", "1", "4", "5", "6", "7"}
    assert_ancestor_closed(util_graph, kept)


def test_include_private_is_monotonic(util_graph: ItemGraph) -> None:
    """Verify that including private items never removes anything."""
    public = project(util_graph, FilterOptions())
    private = project(util_graph, FilterOptions(include_private=True))

    assert public <= private
    assert {"2", "3"} <= private


def test_derived_and_auto_impls(rich_graph: ItemGraph) -> None:
    """Verify that derived impls are dropped and auto impls need the toggle."""
    default = project(rich_graph, FilterOptions())
    with_auto = project(rich_graph, FilterOptions(include_auto_impls=True))

    assert "13" not in default and "13" not in with_auto
    assert "14" not in default
    assert "14" in with_auto


def test_feature_gated_items(rich_graph: ItemGraph) -> None:
    """Verify that cfg-gated items follow the enabled features."""
    off = project(rich_graph, FilterOptions())
    on = project(rich_graph, FilterOptions(features=FeatureSet(frozenset({"extra"}))))
    every = project(rich_graph, FilterOptions(features=FeatureSet(all_features=True)))

    assert "40" not in off
    assert "40" in on
    assert "40" in every
    assert "41" in off


def test_impl_of_hidden_trait_is_dropped() -> None:
    """Verify that implementing a private local trait hides the impl."""
    doc = document(
        "demo",
        [1, 4],
        [
            plain_struct(1, "S", [], impls=[2]),
            impl_block(2, path_type("S", 1), [3], trait=trait_ref("Secret", 4)),
            function(3, "reveal", visibility="default"),
            trait(4, "Secret", [], visibility="crate"),
        ],
    )
    graph = build_graph(decode_ir(doc))

    assert "2" not in project(graph, FilterOptions())
    assert "2" in project(graph, FilterOptions(include_private=True))


def test_emptied_inherent_impl_is_dropped() -> None:
    """Verify that an impl whose members were all filtered out disappears."""
    doc = document(
        "demo",
        [1],
        [
            plain_struct(1, "S", [], impls=[2]),
            impl_block(2, path_type("S", 1), [3]),
            function(3, "internal", visibility="crate"),
        ],
    )
    graph = build_graph(decode_ir(doc))

    assert project(graph, FilterOptions()) == {"0", "1"}


def test_path_filter_keeps_subtree_and_ancestors(util_graph: ItemGraph) -> None:
    """Verify that a path filter narrows the projection to one subtree."""
    kept = project(util_graph, FilterOptions(path_filter=("util", "Outer")))

    assert kept == {"0", "1", "4", "5", "6", "7"}
    narrowed = project(util_graph, FilterOptions(path_filter=("util", "Outer", "get")))
    assert narrowed == {"0", "1", "4", "6", "7"}


def test_path_filter_may_repeat_crate_name(util_graph: ItemGraph) -> None:
    """Verify that a filter already starting with the crate name still resolves."""
    resolver = PathResolver(util_graph)
    kept = project(util_graph, FilterOptions())

    assert restrict_to_path(util_graph, kept, ("demo", "util"), resolver) == kept


def test_path_filter_without_match(util_graph: ItemGraph) -> None:
    """Verify that a filter naming nothing visible raises TargetNotFound."""
    with pytest.raises(TargetNotFound, match="util::Inner"):
        project(util_graph, FilterOptions(path_filter=("util", "Inner")))


def test_is_root_only(util_graph: ItemGraph) -> None:
    """Verify detection of a projection with nothing but the crate root."""
    assert is_root_only(util_graph, frozenset({"0"}))
    assert not is_root_only(util_graph, project(util_graph, FilterOptions()))
