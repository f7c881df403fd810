"""Flat `kind path` catalog of a projection."""

from dataclasses import dataclass

from ripdoc.item_graph import ItemGraph
from ripdoc.item_kind import ItemKind
from ripdoc.path_resolver import PathResolver
from ripdoc.search import Selection


@dataclass(frozen=True)
class ListingEntry:
    """One catalog line: the item's kind label and canonical path."""

    item_id: str
    label: str
    path: str


def listing_entries(
    graph: ItemGraph,
    projection: frozenset[str],
    resolver: PathResolver,
    selection: Selection | None = None,
) -> list[ListingEntry]:
    """Collect catalog entries in declaration order.

    Impl blocks have no path of their own and are left out; their members are
    listed under the path of the type they implement.
    """
    entries = []
    for item in graph.walk():
        if item.id not in projection or item.kind is ItemKind.IMPL:
            continue
        if selection is not None and not selection.includes(item.id):
            continue
        path = resolver.path_of(item.id)
        if path is None:
            continue
        entries.append(ListingEntry(item_id=item.id, label=item.kind.label, path=path))
    return entries


def render_listing(entries: list[ListingEntry]) -> str:
    """Render entries as aligned `label path` lines."""
    if not entries:
        return ""
    width = max(len(e.label) for e in entries)
    return "\n".join(f"{e.label:<{width}} {e.path}" for e in entries) + "\n"
