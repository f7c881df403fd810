"""Tests for the flat item catalog."""

from ripdoc.filter_engine import FilterOptions, project
from ripdoc.highlight_matches import HIGHLIGHT_END, HIGHLIGHT_START, highlight_matches
from ripdoc.item_graph import ItemGraph
from ripdoc.path_resolver import PathResolver
from ripdoc.render_listing import ListingEntry, listing_entries, render_listing
from ripdoc.render_skeleton import SkeletonRenderer


def test_listing_of_public_items(util_graph: ItemGraph) -> None:
    """Verify kind labels, canonical paths and column alignment."""
    projection = project(util_graph, FilterOptions())
    entries = listing_entries(util_graph, projection, PathResolver(util_graph))

    assert render_listing(entries) == (
        "crate  demo\n"
        "module demo::util\n"
        "struct demo::util::Outer\n"
        "field  demo::util::Outer::value\n"
        "method demo::util::Outer::get\n"
    )


def test_empty_listing_renders_nothing() -> None:
    """Verify that no entries give an empty string."""
    assert render_listing([]) == ""


def test_listing_matches_rendered_items(rich_graph: ItemGraph) -> None:
    """Verify that listing and rendering enumerate the same items."""
    projection = project(rich_graph, FilterOptions(include_private=True))
    entries = listing_entries(rich_graph, projection, PathResolver(rich_graph))
    renderer = SkeletonRenderer(rich_graph, projection, include_private=True)
    renderer.render()

    rendered = [i for i in renderer.emitted if rich_graph.items[i].kind.label != "impl"]
    assert [e.item_id for e in entries] == rendered


def test_labels_are_lowercase_words(rich_graph: ItemGraph) -> None:
    """Verify the labels used for enums, variants, traits and macros."""
    projection = project(rich_graph, FilterOptions())
    entries = listing_entries(rich_graph, projection, PathResolver(rich_graph))
    labels = {e.path: e.label for e in entries}

    assert labels["rich"] == "crate"
    assert labels["rich::Color"] == "enum"
    assert labels["rich::Color::Red"] == "variant"
    assert labels["rich::Shape"] == "trait"
    assert labels["rich::make"] == "macro"
    assert labels["rich::always"] == "function"


def test_render_listing_pads_to_widest_label() -> None:
    """Verify alignment for entries of different label widths."""
    entries = [ListingEntry("1", "fn", "a::b"), ListingEntry("2", "module", "a")]

    assert render_listing(entries) == "fn     a::b\nmodule a\n"


def test_highlight_matches() -> None:
    """Verify that every occurrence is wrapped, respecting case sensitivity."""
    text = "Status and status"

    assert highlight_matches(text, "status") == (
        f"{HIGHLIGHT_START}Status{HIGHLIGHT_END} and {HIGHLIGHT_START}status{HIGHLIGHT_END}"
    )
    assert highlight_matches(text, "status", case_sensitive=True) == (
        f"Status and {HIGHLIGHT_START}status{HIGHLIGHT_END}"
    )
    assert highlight_matches(text, "  ") == text
