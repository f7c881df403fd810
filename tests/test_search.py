"""Tests for the search index and selection building."""

import pytest

from ripdoc.errors import InvalidConfiguration
from ripdoc.filter_engine import FilterOptions, project
from ripdoc.item_graph import ItemGraph
from ripdoc.path_resolver import PathResolver
from ripdoc.search import (
    SearchDomain,
    SearchIndex,
    SearchOptions,
    build_selection,
    domain_names,
    parse_domains,
)


def make_index(graph: ItemGraph, include_private: bool = False) -> SearchIndex:
    """Create a search index over the default projection of a graph."""
    projection = project(graph, FilterOptions(include_private=include_private))
    return SearchIndex(graph, projection, PathResolver(graph))


def test_parse_domains() -> None:
    """Verify parsing of comma separated and list domain specs."""
    assert parse_domains("name,doc") == SearchDomain.NAME | SearchDomain.DOC
    assert parse_domains(["Signature", " path "]) == SearchDomain.SIGNATURE | SearchDomain.PATH
    assert domain_names(SearchDomain.DEFAULT) == ["name", "doc", "signature"]


@pytest.mark.parametrize("spec", ["name,body", "", " , "])
def test_parse_domains_rejects_bad_specs(spec: str) -> None:
    """Verify that unknown or empty domain specs are configuration errors."""
    with pytest.raises(InvalidConfiguration):
        parse_domains(spec)


def test_doc_domain_match(util_graph: ItemGraph) -> None:
    """Verify that a documentation match reports the doc domain only."""
    results = make_index(util_graph).search(
        SearchOptions(query="status", domains=SearchDomain.DOC)
    )

    assert [r.item_id for r in results] == ["7"]
    assert results[0].matched == SearchDomain.DOC
    assert results[0].path == "demo::util::Outer::get"


def test_case_sensitivity(util_graph: ItemGraph) -> None:
    """Verify that matching folds case unless asked not to."""
    index = make_index(util_graph)

    assert index.search(SearchOptions(query="OUTER", domains=SearchDomain.NAME))
    assert not index.search(
        SearchOptions(query="OUTER", domains=SearchDomain.NAME, case_sensitive=True)
    )


def test_signature_domain(util_graph: ItemGraph) -> None:
    """Verify that signatures are matched as rendered declarations."""
    results = make_index(util_graph).search(
        SearchOptions(query="-> u32", domains=SearchDomain.SIGNATURE)
    )

    assert [r.item_id for r in results] == ["7"]


def test_path_domain_is_opt_in(util_graph: ItemGraph) -> None:
    """Verify that the path domain is only searched when requested."""
    index = make_index(util_graph)

    assert not index.search(SearchOptions(query="util::Outer"))
    found = index.search(SearchOptions(query="util::Outer", domains=SearchDomain.PATH))
    assert [r.item_id for r in found] == ["4", "5", "7"]


def test_blank_query_matches_nothing(util_graph: ItemGraph) -> None:
    """Verify that a whitespace query yields no results."""
    assert make_index(util_graph).search(SearchOptions(query="   ")) == []


def test_private_items_are_not_searched_by_default(util_graph: ItemGraph) -> None:
    """Verify that search only sees the filtered projection."""
    query = SearchOptions(query="Inner", domains=SearchDomain.NAME)

    assert not make_index(util_graph).search(query)
    assert make_index(util_graph, include_private=True).search(query)


def test_selection_adds_ancestor_context(util_graph: ItemGraph) -> None:
    """Verify that matches bring their ancestors but not their siblings."""
    projection = project(util_graph, FilterOptions())
    index = SearchIndex(util_graph, projection, PathResolver(util_graph))
    results = index.search(SearchOptions(query="status", domains=SearchDomain.DOC))

    selection = build_selection(util_graph, projection, results)

    assert selection.matches == {"7"}
    assert selection.context == {"0", "1", "4", "6", "7"}
    assert not selection.expanded


def test_matched_container_expands(util_graph: ItemGraph) -> None:
    """Verify that a matched struct shows all of its projected members."""
    projection = project(util_graph, FilterOptions())
    index = SearchIndex(util_graph, projection, PathResolver(util_graph))
    results = index.search(SearchOptions(query="Outer", domains=SearchDomain.NAME))

    expanded = build_selection(util_graph, projection, results)
    direct = build_selection(util_graph, projection, results, expand_containers=False)

    assert expanded.expands("4")
    assert {"5", "6", "7"} <= expanded.context
    assert direct.context == {"0", "1", "4"}
    assert direct.context <= expanded.context


def test_matches_are_within_projection(rich_graph: ItemGraph) -> None:
    """Verify that every match is part of the projection searched."""
    projection = project(rich_graph, FilterOptions())
    index = SearchIndex(rich_graph, projection, PathResolver(rich_graph))

    for result in index.search(SearchOptions(query="a", domains=SearchDomain.ALL)):
        assert result.item_id in projection
