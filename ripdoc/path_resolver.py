"""Canonical path assignment for every item in the graph."""

import logging
from collections import deque

from ripdoc.item import ImplBlock
from ripdoc.item_graph import ItemGraph
from ripdoc.item_kind import ItemKind, is_module_kind
from ripdoc.render_types import render_path

logger = logging.getLogger(__name__)

MAX_PATHS_PER_ITEM = 16
MAX_DEPTH = 64

Segments = tuple[str, ...]


def _precedence(candidate: tuple[bool, Segments]) -> tuple[bool, int, Segments]:
    declared, segments = candidate
    return (not declared, len(segments), segments)


class PathResolver:
    """Computes every reachable path once and designates one canonical path per item.

    Precedence among candidates: a declared path (parent links that are
    not adoptions) beats a re-exported one, then fewer segments, then the
    lexicographically smallest segment tuple. Trait-impl members whose plain `Type::name` path
    is already taken are qualified as `<Type as Trait>::name`.
    """

    def __init__(self, graph: ItemGraph) -> None:
        """Resolve paths for the whole graph."""
        self.graph = graph
        self.candidates: dict[str, list[tuple[bool, Segments]]] = {}
        self.canonical: dict[str, Segments] = {}
        self.by_path: dict[str, str] = {}
        self._collect()
        self._assign()

    def path_of(self, item_id: str) -> str | None:
        """Canonical `::`-joined path, or None for anonymous items (impl blocks)."""
        segments = self.canonical.get(item_id)
        return "::".join(segments) if segments else None

    def paths_of(self, item_id: str) -> list[str]:
        """Every known path of the item, canonical first."""
        seen: list[str] = []
        first = self.path_of(item_id)
        if first:
            seen.append(first)
        for _, segments in sorted(self.candidates.get(item_id, []), key=_precedence):
            text = "::".join(segments)
            if text not in seen:
                seen.append(text)
        return seen

    def lookup(self, path: str) -> str | None:
        """Find the item a canonical or alternate path names."""
        path = path.strip().strip(":")
        if path in self.by_path:
            return self.by_path[path]
        for item_id, candidates in self.candidates.items():
            if any("::".join(s) == path for _, s in candidates):
                return item_id
        return None

    def _add(self, item_id: str, declared: bool, segments: Segments) -> bool:
        found = self.candidates.setdefault(item_id, [])
        if len(found) >= MAX_PATHS_PER_ITEM or (declared, segments) in found:
            return False
        found.append((declared, segments))
        return True

    def _collect(self) -> None:
        g = self.graph
        root = (g.crate_name,)
        self._add(g.root_id, True, root)
        queue = deque([(g.root_id, root, True)])
        while queue:
            item_id, segments, declared = queue.popleft()
            if len(segments) >= MAX_DEPTH:
                continue
            for child_id in g.children_of(item_id):
                child = g.items[child_id]
                if isinstance(child, ImplBlock):
                    for member_id in g.children_of(child_id):
                        name = g.name_of(member_id)
                        if name:
                            self._add(member_id, declared, (*segments, name))
                    continue
                name = g.name_of(child_id)
                # adopted items only sit where their first re-export put them
                child_declared = declared and child_id not in g.adopted
                if name and self._add(child_id, child_declared, (*segments, name)):
                    queue.append((child_id, (*segments, name), child_declared))
            if is_module_kind(g.items[item_id].kind):
                for target_id, alias in self._reexported(item_id):
                    path = (*segments, alias)
                    if self._add(target_id, False, path):
                        queue.append((target_id, path, False))

    def _reexported(self, module_id: str) -> list[tuple[str, str]]:
        g = self.graph
        found = []
        for edge in g.reexports_in(module_id):
            target = edge.target_id
            if target is None or target not in g:
                continue
            if not edge.is_glob:
                found.append((target, edge.name))
                continue
            if g.items[target].kind in {ItemKind.MODULE, ItemKind.ENUM}:
                for child_id in g.children_of(target):
                    child = g.items[child_id]
                    if isinstance(child, ImplBlock) or g.parent_of(child_id) == module_id:
                        continue
                    name = g.name_of(child_id)
                    if name:
                        found.append((child_id, name))
        return found

    def _assign(self) -> None:
        g = self.graph
        deferred = []
        for item in g.walk():
            if item.id not in self.candidates:
                continue
            impl = g.owning_impl(item.id)
            if impl is not None and impl.trait_path:
                deferred.append((item.id, impl))
                continue
            self._claim(item.id, self._best(item.id))

        for item_id, impl in deferred:
            best = self._best(item_id)
            if "::".join(best) not in self.by_path:
                self._claim(item_id, best)
                continue
            type_segment, name = best[-2], best[-1]
            qualified = f"<{type_segment} as {impl.trait_name}>"
            self._claim(item_id, (*best[:-2], qualified, name))

    def _best(self, item_id: str) -> Segments:
        return min(self.candidates[item_id], key=_precedence)[1]

    def _claim(self, item_id: str, segments: Segments) -> None:
        text = "::".join(segments)
        if text in self.by_path:
            segments = self._disambiguate(item_id, segments)
            text = "::".join(segments)
        self.canonical[item_id] = segments
        self.by_path[text] = item_id

    def _disambiguate(self, item_id: str, segments: Segments) -> Segments:
        item = self.graph.items[item_id]
        impl = self.graph.owning_impl(item_id)
        options: list[Segments] = []
        if item.kind is ItemKind.MACRO:
            options.append((*segments[:-1], f"{segments[-1]}!"))
        if impl is not None and impl.trait_path:
            # `From<A>` and `From<B>` impls need their generic arguments
            trait = impl.signature.get("trait") or {}
            full = render_path(trait) if trait else impl.trait_path
            type_segment = self._type_segment(impl)
            options.append((*segments[:-2], f"<{type_segment} as {full}>", segments[-1]))
        n = 2
        while True:
            for option in options:
                if "::".join(option) not in self.by_path:
                    return option
            options = [(*segments[:-1], f"{segments[-1]}#{n}")]
            n += 1

    def _type_segment(self, impl: ImplBlock) -> str:
        target = impl.target_id
        return (self.graph.name_of(target) if target else None) or "_"
