"""Logic for linking decoded records into an item graph."""

import logging
from collections import deque

from ripdoc.decode_ir import DecodedCrate
from ripdoc.item import ImplBlock, Item, ReExport
from ripdoc.item_graph import ItemGraph
from ripdoc.item_kind import ItemKind, is_module_kind
from ripdoc.load_config import DEFAULT_CONFIG

logger = logging.getLogger(__name__)

DERIVE_TRAITS = tuple(DEFAULT_CONFIG["render"]["derive_traits"])
IMPL_TARGET_KINDS = {ItemKind.STRUCT, ItemKind.ENUM, ItemKind.TRAIT}


def member_ids(item: Item) -> list[str]:
    """Ids a container declares directly, in declaration order."""
    p = item.signature
    if item.kind in {ItemKind.CRATE, ItemKind.MODULE}:
        return _raw_ids(p.get("items"))
    if item.tag == "union":
        return _raw_ids(p.get("fields"))
    if item.kind is ItemKind.STRUCT:
        kind = p.get("kind")
        if isinstance(kind, dict) and "tuple" in kind:
            return _raw_ids(kind["tuple"])
        if isinstance(kind, dict) and "plain" in kind:
            return _raw_ids((kind["plain"] or {}).get("fields"))
        return _raw_ids(p.get("fields"))
    if item.kind is ItemKind.ENUM:
        return _raw_ids(p.get("variants"))
    if item.kind is ItemKind.VARIANT:
        kind = p.get("kind")
        if isinstance(kind, dict) and "tuple" in kind:
            return _raw_ids(kind["tuple"])
        if isinstance(kind, dict) and "struct" in kind:
            return _raw_ids((kind["struct"] or {}).get("fields"))
        return []
    if item.kind is ItemKind.TRAIT:
        return _raw_ids(p.get("items"))
    if isinstance(item, ImplBlock):
        return list(item.items)
    return []


def _raw_ids(values: object) -> list[str]:
    if not isinstance(values, list):
        return []
    return [str(v) for v in values if v is not None and not isinstance(v, bool)]


def is_stripped_module(item: Item) -> bool:
    return item.tag == "module" and bool(item.signature.get("is_stripped"))


class _Linker:
    """Mutable state used while building; discarded once the graph exists."""

    def __init__(self, decoded: DecodedCrate, derive_traits: tuple[str, ...]) -> None:
        self.decoded = decoded
        self.report = decoded.report
        self.items = dict(decoded.items)
        self.derive_traits = set(derive_traits)
        self.parents: dict[str, str] = {}
        self.children: dict[str, list[str]] = {}
        self.module_uses: dict[str, list[str]] = {}
        self.stripped_children: dict[str, list[str]] = {}
        self.stripped = {
            i for i, it in self.items.items() if is_stripped_module(it)
        } - {decoded.root_id}
        self.reexports: dict[str, list[ReExport]] = {}
        self.derives: dict[str, list[str]] = {}
        self.local_names: dict[str, str] = {}
        self.adopted: set[str] = set()

    def link(self, parent: str, child: str) -> bool:
        if child in self.parents:
            return False
        if self.would_cycle(parent, child):
            self.report.record_dangling(parent, child, "cycle")
            return False
        self.parents[child] = parent
        self.children.setdefault(parent, []).append(child)
        return True

    def would_cycle(self, parent: str, child: str) -> bool:
        """Check if linking `child` under `parent` would make a loop."""
        if child == self.decoded.root_id:
            return True
        current: str | None = parent
        while current is not None:
            if current == child:
                return True
            current = self.parents.get(current)
        return False

    def check_ref(self, source: str, target: str, edge: str) -> bool:
        """Return True if target is a local item; record it if it is dangling."""
        if target in self.items:
            return True
        if not self.decoded.is_known(target):
            self.report.record_dangling(source, target, edge)
        return False

    def link_declared(self) -> None:
        for item in self.decoded.items.values():
            if isinstance(item, ImplBlock):
                continue
            for child in member_ids(item):
                if is_module_kind(item.kind) and child in self.decoded.uses:
                    self.module_uses.setdefault(item.id, []).append(child)
                    continue
                if not self.check_ref(item.id, child, "member"):
                    continue
                if isinstance(self.items[child], ImplBlock) or child in self.stripped:
                    continue
                if item.id in self.stripped:
                    self.stripped_children.setdefault(item.id, []).append(child)
                else:
                    self.link(item.id, child)

    def link_impls(self) -> None:
        owners: dict[str, str] = {}
        for item in self.decoded.items.values():
            if item.kind in {ItemKind.STRUCT, ItemKind.ENUM}:
                for impl_id in _raw_ids(item.signature.get("impls")):
                    owners.setdefault(impl_id, item.id)

        # type impls lists first so impl blocks keep the type's order
        ordered = [i for i in owners if isinstance(self.items.get(i), ImplBlock)]
        ordered += [
            i
            for i, it in self.items.items()
            if isinstance(it, ImplBlock) and i not in owners
        ]
        for impl_id in ordered:
            impl = self.items[impl_id]
            if not isinstance(impl, ImplBlock):
                continue
            if impl.trait_id is not None and not self.decoded.is_known(impl.trait_id):
                self.report.record_dangling(impl_id, impl.trait_id, "trait")
                self._drop_impl(impl, "implemented trait is dangling")
                continue
            if impl.trait_id is not None and impl.trait_id not in self.items:
                impl.trait_id = None
            target = owners.get(impl_id) or impl.target_id
            if target is None or not self.check_ref(impl_id, target, "target"):
                self._drop_impl(impl, "impl target is not a local type")
                continue
            if self.items[target].kind not in IMPL_TARGET_KINDS:
                self._drop_impl(impl, "impl target is not a struct, enum or trait")
                continue
            impl.target_id = target
            self.link(target, impl_id)
            for member in impl.items:
                if self.check_ref(impl_id, member, "member"):
                    self.link(impl_id, member)
            self._mark_derived(impl)

    def _drop_impl(self, impl: ImplBlock, reason: str) -> None:
        self.report.record_dropped(impl.id, reason)
        self.items.pop(impl.id, None)
        for member in impl.items:
            if member in self.items and member not in self.parents:
                self.report.record_dropped(member, "owning impl was dropped")
                self.items.pop(member)

    def _mark_derived(self, impl: ImplBlock) -> None:
        name = impl.trait_name
        if impl.is_auto or impl.is_negative or name not in self.derive_traits:
            return
        impl.derived = True
        names = self.derives.setdefault(impl.target_id or "", [])
        if name not in names:
            names.append(name)

    def adopt(self, module_id: str, item_id: str, name: str) -> None:
        if self.would_cycle(module_id, item_id):
            self.report.record_dangling(module_id, item_id, "cycle")
            return
        old = self.parents.pop(item_id, None)
        if old is not None:
            self.children[old].remove(item_id)
        if self.link(module_id, item_id):
            self.adopted.add(item_id)
        if self.items[item_id].name != name:
            self.local_names[item_id] = name
        if item_id in self.stripped:
            self.stripped.discard(item_id)
            for child in self.stripped_children.pop(item_id, []):
                self.link(item_id, child)
        logger.debug("Adopted %s into module %s as %s", item_id, module_id, name)

    def needs_adoption(self, item_id: str) -> bool:
        if item_id in self.stripped:
            return item_id not in self.parents
        parent = self.parents.get(item_id)
        return parent is None and item_id != self.decoded.root_id

    def walk_modules(self) -> None:
        """Record re-export edges breadth first, adopting orphaned targets."""
        queue = deque([self.decoded.root_id])
        seen: set[str] = set()
        while queue:
            module_id = queue.popleft()
            if module_id in seen:
                continue
            seen.add(module_id)
            for use_id in self.module_uses.get(module_id, []):
                self._apply_use(module_id, use_id)
            for child in self.children.get(module_id, []):
                if is_module_kind(self.items[child].kind):
                    queue.append(child)

    def _apply_use(self, module_id: str, use_id: str) -> None:
        use = self.decoded.uses[use_id]
        target = use.target_id
        if target is not None and target not in self.items:
            if not self.decoded.is_known(target):
                self.report.record_dangling(use_id, target, "reexport")
            target = None

        if target is not None and use.is_glob:
            orphans = self.stripped_children.get(target) or self.children.get(target, [])
            if self.needs_adoption(target):
                for child in list(orphans):
                    if self.parents.get(child) in {None, target}:
                        self.adopt(module_id, child, self.items[child].name or "")
        elif target is not None and self.needs_adoption(target):
            self.adopt(module_id, target, use.name)

        self.reexports.setdefault(module_id, []).append(
            ReExport(
                module_id=module_id,
                name=use.name,
                target_id=target,
                source=use.source,
                is_glob=use.is_glob,
                visibility=use.visibility,
                use_id=use_id,
            )
        )

    def reachable(self) -> set[str]:
        seen = {self.decoded.root_id}
        stack = [self.decoded.root_id]
        while stack:
            for child in self.children.get(stack.pop(), []):
                if child not in seen:
                    seen.add(child)
                    stack.append(child)
        return seen

    def resolve_bounds(self, keep: set[str]) -> None:
        for item_id in [i for i in self.items if i in keep]:
            for param in self.items[item_id].generics:
                local = []
                for bound_id in param.bound_ids:
                    if self.check_ref(item_id, bound_id, "bound"):
                        local.append(bound_id)
                param.bound_ids = local


def build_graph(
    decoded: DecodedCrate, derive_traits: tuple[str, ...] | list[str] = DERIVE_TRAITS
) -> ItemGraph:
    """Resolve parents, impl targets, re-exports and bounds into an ItemGraph."""
    linker = _Linker(decoded, tuple(derive_traits))
    linker.link_declared()
    linker.link_impls()
    linker.walk_modules()

    keep = linker.reachable()
    for item_id in linker.items:
        if item_id not in keep:
            decoded.report.record_dropped(item_id, "not reachable from the crate root")
    linker.resolve_bounds(keep)

    items = {i: it for i, it in linker.items.items() if i in keep}
    parents = {c: p for c, p in linker.parents.items() if c in keep}
    for child, parent in parents.items():
        items[child].parent = parent
    children = {
        p: [c for c in cs if c in keep] for p, cs in linker.children.items() if p in keep
    }
    reexports = {m: edges for m, edges in linker.reexports.items() if m in keep}

    logger.debug(
        "Built graph with %d items (%s)", len(items), decoded.report.summary()
    )
    return ItemGraph(
        root_id=decoded.root_id,
        crate_name=decoded.crate_name,
        items=items,
        parents=parents,
        children=children,
        reexports=reexports,
        derives={t: names for t, names in linker.derives.items() if t in keep},
        local_names={i: n for i, n in linker.local_names.items() if i in keep},
        adopted=frozenset(i for i in linker.adopted if i in keep),
        report=decoded.report,
    )
