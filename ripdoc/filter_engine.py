"""Visibility, feature and auto-impl filtering of the item graph."""

import logging
from dataclasses import dataclass, field

from ripdoc.errors import TargetNotFound
from ripdoc.feature_set import FeatureSet
from ripdoc.item import ImplBlock, Item, Visibility
from ripdoc.item_graph import ItemGraph
from ripdoc.path_resolver import PathResolver

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FilterOptions:
    """Switches deciding which items survive into a projection."""

    include_private: bool = False
    include_auto_impls: bool = False
    features: FeatureSet = field(default_factory=FeatureSet)
    path_filter: tuple[str, ...] = ()


def _survives_locally(item: Item, options: FilterOptions) -> bool:
    if item.visibility is not Visibility.PUBLIC and not item.inherits_visibility:
        if not options.include_private:
            return False
    if item.cfg is not None and not item.cfg.evaluate(options.features):
        return False
    if isinstance(item, ImplBlock):
        if item.derived:
            return False
        if item.is_auto and not options.include_auto_impls:
            return False
    return True


def project(
    graph: ItemGraph, options: FilterOptions, resolver: PathResolver | None = None
) -> frozenset[str]:
    """Return the ids surviving the filter, closed under ancestors.

    Items survive top-down: an item whose parent was dropped is dropped with
    it. Impl blocks that declared associated items but kept none are dropped.
    """
    kept: set[str] = {graph.root_id}
    stack = [graph.root_id]
    while stack:
        parent = stack.pop()
        for child_id in graph.children_of(parent):
            child = graph.items[child_id]
            if _survives_locally(child, options):
                kept.add(child_id)
                stack.append(child_id)

    for item in graph.items.values():
        if not isinstance(item, ImplBlock) or item.id not in kept:
            continue
        hidden_trait = item.trait_id in graph and item.trait_id not in kept
        emptied = item.items and not any(c in kept for c in graph.children_of(item.id))
        if hidden_trait or emptied:
            kept.discard(item.id)
            kept.difference_update(graph.children_of(item.id))

    if options.path_filter:
        kept = restrict_to_path(graph, kept, options.path_filter, resolver)

    logger.debug("Projection keeps %d of %d items", len(kept), len(graph.items))
    return frozenset(kept)


def restrict_to_path(
    graph: ItemGraph,
    kept: set[str] | frozenset[str],
    path_filter: tuple[str, ...],
    resolver: PathResolver | None,
) -> set[str]:
    """Narrow a projection to the addressed item, its descendants and ancestors."""
    resolver = resolver or PathResolver(graph)
    wanted = "::".join((graph.crate_name, *path_filter))
    target = resolver.lookup(wanted)
    if target is None:
        # a leading crate segment may already be part of the filter
        target = resolver.lookup("::".join(path_filter))
    if target is None or target not in kept:
        msg = f"filter matched no item: {'::'.join(path_filter)}"
        raise TargetNotFound(msg)

    restricted = {target, *graph.ancestors(target)}
    stack = [target]
    while stack:
        for child in graph.children_of(stack.pop()):
            if child in kept and child not in restricted:
                restricted.add(child)
                stack.append(child)
    return restricted


def is_root_only(graph: ItemGraph, projection: frozenset[str]) -> bool:
    """Check if a projection holds nothing beyond the crate root."""
    return projection <= {graph.root_id}
