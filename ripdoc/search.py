"""Domain-scoped text search over a filtered projection of the item graph."""

import enum
import logging
from collections.abc import Iterable
from dataclasses import dataclass

from ripdoc.errors import InvalidConfiguration
from ripdoc.item_graph import ItemGraph
from ripdoc.item_kind import ItemKind, is_expandable_kind
from ripdoc.path_resolver import PathResolver
from ripdoc.render_signature import declaration

logger = logging.getLogger(__name__)


class SearchDomain(enum.Flag):
    """Text fields a query can be matched against."""

    NAME = enum.auto()
    DOC = enum.auto()
    SIGNATURE = enum.auto()
    PATH = enum.auto()
    DEFAULT = NAME | DOC | SIGNATURE
    ALL = NAME | DOC | SIGNATURE | PATH


DOMAIN_NAMES = {
    "name": SearchDomain.NAME,
    "doc": SearchDomain.DOC,
    "signature": SearchDomain.SIGNATURE,
    "path": SearchDomain.PATH,
}


def parse_domains(values: str | Iterable[str]) -> SearchDomain:
    """Parse domain names ("name,doc" or a list) into a SearchDomain flag."""
    if isinstance(values, str):
        values = values.split(",")
    domains = SearchDomain(0)
    for raw in values:
        name = raw.strip().lower()
        if not name:
            continue
        if name not in DOMAIN_NAMES:
            msg = f"unknown search domain {raw!r} (expected one of: {', '.join(DOMAIN_NAMES)})"
            raise InvalidConfiguration(msg)
        domains |= DOMAIN_NAMES[name]
    if not domains:
        msg = "at least one search domain is required"
        raise InvalidConfiguration(msg)
    return domains


def domain_names(domains: SearchDomain) -> list[str]:
    return [name for name, flag in DOMAIN_NAMES.items() if flag in domains]


@dataclass(frozen=True)
class SearchOptions:
    """A query plus the switches that shape how it matches."""

    query: str
    domains: SearchDomain = SearchDomain.DEFAULT
    case_sensitive: bool = False


@dataclass(frozen=True)
class IndexEntry:
    """Searchable text of one projected item."""

    item_id: str
    kind: ItemKind
    name: str
    path: str | None
    docs: str
    signature: str


@dataclass(frozen=True)
class SearchResult:
    """An item that matched, and which domains it matched in."""

    item_id: str
    kind: ItemKind
    path: str | None
    name: str
    matched: SearchDomain


@dataclass(frozen=True)
class Selection:
    """What to render for a search.

    `matches` are the direct hits, `expanded` the matched containers shown
    in full, and `context` everything that gets rendered at all.
    """

    matches: frozenset[str]
    context: frozenset[str]
    expanded: frozenset[str]

    def includes(self, item_id: str) -> bool:
        return item_id in self.context

    def expands(self, item_id: str) -> bool:
        return item_id in self.expanded


class SearchIndex:
    """Precomputed domain text for every item of a projection."""

    def __init__(
        self, graph: ItemGraph, projection: frozenset[str], resolver: PathResolver
    ) -> None:
        """Index the projection in declaration order."""
        self.graph = graph
        self.projection = projection
        self.entries: list[IndexEntry] = []
        for item in graph.walk():
            if item.id not in projection:
                continue
            self.entries.append(
                IndexEntry(
                    item_id=item.id,
                    kind=item.kind,
                    name=graph.name_of(item.id) or "",
                    path=resolver.path_of(item.id),
                    docs=item.docs,
                    signature=declaration(graph, item),
                )
            )

    def search(self, options: SearchOptions) -> list[SearchResult]:
        """Return matching entries in declaration order."""
        query = options.query.strip()
        if not query:
            return []
        if not options.case_sensitive:
            query = query.casefold()

        results = []
        for entry in self.entries:
            matched = SearchDomain(0)
            for domain, text in (
                (SearchDomain.NAME, entry.name),
                (SearchDomain.DOC, entry.docs),
                (SearchDomain.SIGNATURE, entry.signature),
                (SearchDomain.PATH, entry.path or ""),
            ):
                if domain not in options.domains or not text:
                    continue
                haystack = text if options.case_sensitive else text.casefold()
                if query in haystack:
                    matched |= domain
            if matched:
                results.append(
                    SearchResult(
                        item_id=entry.item_id,
                        kind=entry.kind,
                        path=entry.path,
                        name=entry.name,
                        matched=matched,
                    )
                )
        logger.debug("Query %r matched %d items", options.query, len(results))
        return results


def build_selection(
    graph: ItemGraph,
    projection: frozenset[str],
    results: list[SearchResult],
    expand_containers: bool = True,
) -> Selection:
    """Close the matches over their ancestors, expanding matched containers."""
    matches = frozenset(r.item_id for r in results)
    expanded = frozenset(
        r.item_id for r in results if expand_containers and is_expandable_kind(r.kind)
    )
    context = set(matches)
    for item_id in matches:
        context.update(graph.ancestors(item_id))
    stack = list(expanded)
    seen = set(expanded)
    while stack:
        for child in graph.children_of(stack.pop()):
            if child in projection and child not in seen:
                seen.add(child)
                context.add(child)
                stack.append(child)
    return Selection(matches=matches, context=frozenset(context), expanded=expanded)
