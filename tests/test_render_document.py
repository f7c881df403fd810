"""Tests for the whole decode, filter, search and render pipeline on one document."""

from typing import Any

import pytest

from ir_builders import document, function, impl_block, path_type, plain_struct, trait_ref
from ripdoc.errors import InvalidConfiguration
from ripdoc.run_pipeline import (
    EMPTY_QUERY_MESSAGE,
    NO_ITEMS_MESSAGE,
    PipelineOptions,
    render_document,
)
from ripdoc.search import SearchDomain


def listing(doc: dict[str, Any], **kw: Any) -> list[str]:
    """Render a document in listing mode and return its paths."""
    options = PipelineOptions(list_items=True, **kw)
    return [line.split()[1] for line in render_document(doc, options).splitlines()]


def test_doc_search_collapses_to_ancestors(util_doc: dict[str, Any]) -> None:
    """Verify that a doc match lists its ancestors but no unrelated siblings."""
    paths = listing(util_doc, query="status", domains=SearchDomain.DOC)

    assert paths == [
        "demo",
        "demo::util",
        "demo::util::Outer",
        "demo::util::Outer::get",
    ]


def test_private_items_do_not_leak_into_search(util_doc: dict[str, Any]) -> None:
    """Verify that including private items does not add non-matching items."""
    public = listing(util_doc, query="status", domains=SearchDomain.DOC)
    private = listing(
        util_doc, query="status", domains=SearchDomain.DOC, include_private=True
    )

    assert private == public
    assert not any("Inner" in p for p in private)


def test_listing_with_raw_output_is_rejected(util_doc: dict[str, Any]) -> None:
    """Verify that listing combined with raw Rust output is a configuration error."""
    with pytest.raises(InvalidConfiguration):
        render_document(util_doc, PipelineOptions(list_items=True, render_format="rust"))


@pytest.mark.parametrize(
    "options",
    [
        PipelineOptions(raw_json=True, list_items=True),
        PipelineOptions(raw_json=True, query="x"),
    ],
)
def test_raw_json_conflicts(options: PipelineOptions) -> None:
    """Verify that raw JSON output refuses list and search modes."""
    with pytest.raises(InvalidConfiguration):
        render_document({}, options)


def test_dangling_trait_does_not_abort_render() -> None:
    """Verify that an impl of a missing trait is dropped and the rest renders."""
    doc = document(
        "demo",
        [1, 4],
        [
            plain_struct(1, "S", [], impls=[2]),
            impl_block(2, path_type("S", 1), [3], trait=trait_ref("Missing", 999)),
            function(3, "ghost", visibility="default"),
            function(4, "visible"),
        ],
    )

    source = render_document(doc, PipelineOptions(render_format="rust"))

    assert "pub struct S {\n    }" in source
    assert "pub fn visible() {}" in source
    assert "Missing" not in source
    assert "ghost" not in source


def test_rendering_twice_is_byte_identical(rich_doc: dict[str, Any]) -> None:
    """Verify that the pipeline output is stable across runs."""
    options = PipelineOptions(render_format="rust", include_private=True)

    assert render_document(rich_doc, options) == render_document(rich_doc, options)


def test_markdown_is_the_default_format(util_doc: dict[str, Any]) -> None:
    """Verify that the default output lifts docs into prose."""
    output = render_document(util_doc, PipelineOptions())

    assert output.startswith("Utilities.\n\n```rust\npub mod util {\n")
    assert "    // The outer type.\n" in output
    assert "///" not in output
    assert output.endswith("```\n")


def test_raw_json_passthrough(util_doc: dict[str, Any]) -> None:
    """Verify that the IR document is printed unchanged."""
    output = render_document(util_doc, PipelineOptions(raw_json=True))

    assert output.startswith("{\n")
    assert '"format_version": 39' in output


def test_empty_query(util_doc: dict[str, Any]) -> None:
    """Verify that a blank query is reported rather than searched."""
    output = render_document(util_doc, PipelineOptions(query="  "))

    assert output == EMPTY_QUERY_MESSAGE + "\n"


def test_no_matches(util_doc: dict[str, Any]) -> None:
    """Verify the message for a query matching nothing."""
    output = render_document(util_doc, PipelineOptions(query=" zebra "))

    assert output == 'No matches found for "zebra".\n'


def test_binary_crate_falls_back_to_private_items() -> None:
    """Verify that a crate without public items renders its private ones."""
    doc = document("tool", [1], [function(1, "main", visibility="crate")])

    output = render_document(doc, PipelineOptions(render_format="rust"))

    assert output == "pub mod tool {\n    fn main() {}\n}\n"


def test_empty_crate_reports_no_items() -> None:
    """Verify the message for a crate with nothing to show."""
    output = render_document(document("empty", [], []), PipelineOptions())

    assert output == NO_ITEMS_MESSAGE + "\n"


def test_path_filter(util_doc: dict[str, Any]) -> None:
    """Verify that a sub-path narrows a listing to that subtree."""
    paths = listing(util_doc, path_filter=("util", "Outer"))

    assert paths == [
        "demo",
        "demo::util",
        "demo::util::Outer",
        "demo::util::Outer::value",
        "demo::util::Outer::get",
    ]


def test_direct_match_only_is_a_subset(util_doc: dict[str, Any]) -> None:
    """Verify that direct-match-only never shows more than expanded search."""
    expanded = listing(util_doc, query="Outer", domains=SearchDomain.NAME)
    direct = listing(
        util_doc, query="Outer", domains=SearchDomain.NAME, direct_match_only=True
    )

    assert set(direct) <= set(expanded)
    assert "demo::util::Outer::get" in expanded
    assert "demo::util::Outer::get" not in direct


def test_self_listed_root_still_renders() -> None:
    """Verify that a root module naming itself as a member renders once."""
    doc = document("demo", [1], [function(1, "f")])
    doc["index"]["0"]["inner"]["module"]["items"].append(0)

    output = render_document(doc, PipelineOptions(render_format="rust"))

    assert output == "pub mod demo {\n    pub fn f() {}\n}\n"


def test_prebuilt_ir_shows_feature_gated_items(rich_doc: dict[str, Any]) -> None:
    """Verify that without a manifest no item is hidden behind a feature."""
    default = listing(rich_doc)
    narrowed = listing(rich_doc, features=["other"])

    assert "rich::gated" in default
    assert "rich::always" in default
    assert "rich::gated" not in narrowed
