"""The linked, read-only item graph of one crate."""

from collections.abc import Iterator
from dataclasses import dataclass, field

from ripdoc.decode_report import DecodeReport
from ripdoc.item import ImplBlock, Item, ReExport


@dataclass
class ItemGraph:
    """Items keyed by id, with parent links and ordered child lists.

    Built once by `build_graph`; filters and searches only read it.
    """

    root_id: str
    crate_name: str
    items: dict[str, Item]
    parents: dict[str, str]
    children: dict[str, list[str]]
    reexports: dict[str, list[ReExport]]
    derives: dict[str, list[str]]
    local_names: dict[str, str] = field(default_factory=dict)
    adopted: frozenset[str] = frozenset()
    report: DecodeReport = field(default_factory=DecodeReport)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self.items

    def get(self, item_id: str) -> Item | None:
        """Look up an item by id."""
        return self.items.get(item_id)

    def name_of(self, item_id: str) -> str | None:
        """Name the item is exposed under (a renaming re-export wins)."""
        return self.local_names.get(item_id) or self.items[item_id].name

    @property
    def root(self) -> Item:
        return self.items[self.root_id]

    def parent_of(self, item_id: str) -> str | None:
        return self.parents.get(item_id)

    def children_of(self, item_id: str) -> list[str]:
        """Direct children in declaration order."""
        return self.children.get(item_id, [])

    def ancestors(self, item_id: str) -> list[str]:
        """Containing item ids from the nearest parent up to the root."""
        chain = []
        current = self.parents.get(item_id)
        while current is not None:
            chain.append(current)
            current = self.parents.get(current)
        return chain

    def impls_of(self, item_id: str) -> list[ImplBlock]:
        """Impl blocks whose target is the given type."""
        return [
            c
            for c in (self.items[i] for i in self.children_of(item_id))
            if isinstance(c, ImplBlock)
        ]

    def reexports_in(self, module_id: str) -> list[ReExport]:
        return self.reexports.get(module_id, [])

    def walk(self, start: str | None = None) -> Iterator[Item]:
        """Yield items depth first in declaration order."""
        stack = [start or self.root_id]
        while stack:
            item_id = stack.pop()
            yield self.items[item_id]
            stack.extend(reversed(self.children_of(item_id)))

    def owning_impl(self, item_id: str) -> ImplBlock | None:
        parent = self.parents.get(item_id)
        item = self.items.get(parent) if parent else None
        return item if isinstance(item, ImplBlock) else None
