"""Rendering of a projection into a bodiless Rust skeleton."""

import logging

from ripdoc.escape_ident import escape_ident, escape_path
from ripdoc.item import ImplBlock, Item, ReExport, Visibility
from ripdoc.item_graph import ItemGraph
from ripdoc.item_kind import ItemKind
from ripdoc.render_signature import (
    constant_declaration,
    enum_declaration,
    field_type,
    function_declaration,
    impl_declaration,
    macro_source,
    proc_macro_lines,
    render_name,
    render_vis,
    trait_declaration,
    type_alias_declaration,
    variant_declaration,
)
from ripdoc.render_types import render_generics, render_where_clause
from ripdoc.search import Selection

logger = logging.getLogger(__name__)

INDENT = "    "
KEPT_ATTRS = ("#[repr(", "#[non_exhaustive", "#[must_use", "#[deprecated")


def _struct_shape(item: Item) -> tuple[str, list[str | None]]:
    """Return ("unit" | "tuple" | "plain", field ids) for a struct or union."""
    p = item.signature
    if item.tag == "union":
        return "plain", [str(f) for f in p.get("fields") or []]
    kind = p.get("kind")
    if kind == "unit" or p.get("struct_type") == "unit":
        return "unit", []
    if isinstance(kind, dict) and "tuple" in kind:
        return "tuple", [None if f is None else str(f) for f in kind["tuple"]]
    if p.get("struct_type") == "tuple":
        return "tuple", [None if f is None else str(f) for f in p.get("fields") or []]
    if isinstance(kind, dict) and "plain" in kind:
        return "plain", [str(f) for f in (kind["plain"] or {}).get("fields") or []]
    return "plain", [str(f) for f in p.get("fields") or []]


def _variant_fields(item: Item) -> tuple[str, list[str]]:
    kind = item.signature.get("kind")
    if isinstance(kind, dict) and "struct" in kind:
        return "struct", [str(f) for f in (kind["struct"] or {}).get("fields") or []]
    if isinstance(kind, dict) and "tuple" in kind:
        return "tuple", [str(f) for f in kind["tuple"] if f is not None]
    return "plain", []


class SkeletonRenderer:
    """Render the items of a projection as four-space indented Rust.

    With a selection, only items in its context are rendered; matched
    containers in `expanded` show all of their projected members because the
    selection context already holds them. `emitted` lists the ids of every
    rendered item in output order.
    """

    def __init__(
        self,
        graph: ItemGraph,
        projection: frozenset[str],
        selection: Selection | None = None,
        *,
        include_private: bool = False,
        show_reexports: bool = True,
    ) -> None:
        self.graph = graph
        self.projection = projection
        self.selection = selection
        self.include_private = include_private
        self.show_reexports = show_reexports and selection is None
        self.emitted: list[str] = []

    def render(self) -> str:
        """Render the whole crate as a single `pub mod <crate> { ... }` unit."""
        self.emitted = []
        lines = self._module(self.graph.root, 0)
        logger.debug("Rendered %d items", len(self.emitted))
        return "\n".join(lines).rstrip() + "\n"

    def shows(self, item_id: str) -> bool:
        if item_id not in self.projection:
            return False
        return self.selection is None or self.selection.includes(item_id)

    def _block(self, item_id: str, depth: int) -> list[str]:
        item = self.graph.items[item_id]
        kind = item.kind
        if kind is ItemKind.MODULE:
            return self._module(item, depth)
        if kind is ItemKind.STRUCT:
            return self._struct(item, depth)
        if kind is ItemKind.ENUM:
            return self._enum(item, depth)
        if kind is ItemKind.TRAIT:
            return self._trait(item, depth)
        if kind is ItemKind.MACRO:
            return self._macro(item, depth)
        line = self._member_line(item, in_trait=False)
        if line is None:
            logger.debug("Nothing to render for %s item %s", kind.value, item.id)
            return []
        self.emitted.append(item.id)
        return [*self._preamble(item, depth), f"{INDENT * depth}{line}"]

    def _preamble(self, item: Item, depth: int, inner: bool = False) -> list[str]:
        """Doc comment lines followed by the attributes worth keeping."""
        pad = INDENT * depth
        marker = "//!" if inner else "///"
        lines = []
        if item.docs:
            for text in item.docs.splitlines():
                lines.append(f"{pad}{marker} {text}".rstrip())
        if not inner:
            lines += [f"{pad}{a}" for a in item.attrs if a.startswith(KEPT_ATTRS)]
        return lines

    def _module(self, item: Item, depth: int) -> list[str]:
        pad = INDENT * depth
        if item.kind is ItemKind.CRATE:
            lines = [f"pub mod {escape_ident(self.graph.crate_name)} {{"]
            module_docs = self._preamble(item, depth + 1, inner=True)
            if module_docs:
                lines += [*module_docs, ""]
        else:
            lines = [
                *self._preamble(item, depth),
                f"{pad}{render_vis(item)}mod {render_name(self.graph, item)} {{",
            ]
        self.emitted.append(item.id)

        if self.show_reexports:
            uses = [self._use_line(r) for r in self.graph.reexports_in(item.id)]
            uses = [u for u in uses if u]
            if uses:
                lines += [f"{INDENT * (depth + 1)}{u}" for u in uses]
                lines.append("")

        for child in self.graph.children_of(item.id):
            if not self.shows(child):
                continue
            block = self._block(child, depth + 1)
            if block:
                lines += [*block, ""]

        if lines[-1] == "":
            lines.pop()
        lines.append(f"{pad}}}")
        return lines

    def _use_line(self, reexport: ReExport) -> str | None:
        """`pub use source;` for re-exports whose target is not rendered in place."""
        if reexport.visibility is not Visibility.PUBLIC and not self.include_private:
            return None
        target = reexport.target_id
        if target is not None:
            if target not in self.graph:
                # a stripped module whose children were adopted here
                return None
            if reexport.is_glob:
                children = self.graph.children_of(target)
                if not children or all(
                    self.graph.parent_of(c) == reexport.module_id for c in children
                ):
                    return None
            elif self.graph.parent_of(target) == reexport.module_id:
                return None
            elif target not in self.projection:
                return None

        vis = "pub " if reexport.visibility is Visibility.PUBLIC else ""
        source = escape_path(reexport.source)
        if reexport.is_glob:
            return f"{vis}use {source}::*;"
        last = reexport.source.rsplit("::", 1)[-1]
        if reexport.name != last:
            return f"{vis}use {source} as {escape_ident(reexport.name)};"
        return f"{vis}use {source};"

    def _derive_line(self, item: Item, depth: int) -> list[str]:
        names = self.graph.derives.get(item.id)
        if not names:
            return []
        return [f"{INDENT * depth}#[derive({', '.join(names)})]"]

    def _struct(self, item: Item, depth: int) -> list[str]:
        pad = INDENT * depth
        graph = self.graph
        generics = item.signature.get("generics")
        keyword = "union" if item.tag == "union" else "struct"
        head = f"{render_vis(item)}{keyword} {render_name(graph, item)}{render_generics(generics)}"
        where = render_where_clause(generics)

        lines = [*self._preamble(item, depth), *self._derive_line(item, depth)]
        self.emitted.append(item.id)
        shape, fields = _struct_shape(item)
        if shape == "unit":
            lines.append(f"{pad}{head}{where};")
        elif shape == "tuple":
            parts = []
            for field_id in fields:
                if field_id is None or not self.shows(field_id):
                    parts.append("_")
                    continue
                self.emitted.append(field_id)
                parts.append(f"{render_vis(graph.items[field_id])}{field_type(graph, field_id)}")
            lines.append(f"{pad}{head}({', '.join(parts)}){where};")
        else:
            lines.append(f"{pad}{head}{where} {{")
            for field_id in fields:
                if field_id is not None and self.shows(field_id):
                    lines += self._field(field_id, depth + 1)
            lines.append(f"{pad}}}")

        for impl in self._impls(item, depth):
            lines += ["", *impl]
        return lines

    def _field(self, field_id: str, depth: int) -> list[str]:
        field = self.graph.items[field_id]
        self.emitted.append(field_id)
        return [
            *self._preamble(field, depth),
            f"{INDENT * depth}{render_vis(field)}{render_name(self.graph, field)}: "
            f"{field_type(self.graph, field_id)},",
        ]

    def _enum(self, item: Item, depth: int) -> list[str]:
        pad = INDENT * depth
        lines = [
            *self._preamble(item, depth),
            *self._derive_line(item, depth),
            f"{pad}{enum_declaration(self.graph, item)} {{",
        ]
        self.emitted.append(item.id)
        for variant_id in self.graph.children_of(item.id):
            variant = self.graph.items[variant_id]
            if variant.kind is not ItemKind.VARIANT or not self.shows(variant_id):
                continue
            lines += self._variant(variant, depth + 1)
        lines.append(f"{pad}}}")

        for impl in self._impls(item, depth):
            lines += ["", *impl]
        return lines

    def _variant(self, variant: Item, depth: int) -> list[str]:
        pad = INDENT * depth
        self.emitted.append(variant.id)
        shape, fields = _variant_fields(variant)
        lines = self._preamble(variant, depth)
        if shape == "struct":
            shown = [f for f in fields if self.shows(f)]
            lines.append(f"{pad}{render_name(self.graph, variant)} {{")
            for field_id in shown:
                lines += self._field(field_id, depth + 1)
            lines.append(f"{pad}}}{_discriminant(variant)},")
            return lines
        if shape == "tuple":
            parts = []
            for field_id in fields:
                if self.shows(field_id):
                    self.emitted.append(field_id)
                    parts.append(field_type(self.graph, field_id))
                else:
                    parts.append("_")
            text = variant_declaration(self.graph, variant, f"({', '.join(parts)})")
            return [*lines, f"{pad}{text},"]
        return [*lines, f"{pad}{variant_declaration(self.graph, variant)},"]

    def _trait(self, item: Item, depth: int) -> list[str]:
        pad = INDENT * depth
        lines = self._preamble(item, depth)
        self.emitted.append(item.id)
        if item.tag == "trait_alias":
            lines.append(f"{pad}{trait_declaration(self.graph, item)};")
        else:
            lines.append(f"{pad}{trait_declaration(self.graph, item)} {{")
            members = [
                c
                for c in self.graph.children_of(item.id)
                if not isinstance(self.graph.items[c], ImplBlock) and self.shows(c)
            ]
            for n, member_id in enumerate(members):
                member = self.graph.items[member_id]
                line = self._member_line(member, in_trait=True)
                if line is None:
                    continue
                if n and member.kind in {ItemKind.METHOD, ItemKind.ASSOCIATED_FUNCTION}:
                    lines.append("")
                self.emitted.append(member_id)
                lines += [*self._preamble(member, depth + 1), f"{INDENT * (depth + 1)}{line}"]
            lines.append(f"{pad}}}")

        for impl in self._impls(item, depth):
            lines += ["", *impl]
        return lines

    def _impls(self, item: Item, depth: int) -> list[list[str]]:
        """Rendered impl blocks of a type, in the type's impl order."""
        blocks = []
        for impl in self.graph.impls_of(item.id):
            if not self.shows(impl.id):
                continue
            block = self._impl(impl, depth)
            if block:
                blocks.append(block)
        return blocks

    def _impl(self, impl: ImplBlock, depth: int) -> list[str]:
        pad = INDENT * depth
        generics = impl.signature.get("generics")
        where = render_where_clause(generics).strip()
        header = [*self._preamble(impl, depth), f"{pad}{impl_declaration(impl, with_where=False)}"]
        if where:
            header.append(f"{pad}{where}")

        body: list[str] = []
        emitted = []
        for member_id in self.graph.children_of(impl.id):
            if not self.shows(member_id):
                continue
            member = self.graph.items[member_id]
            line = self._member_line(member, in_trait=False)
            if line is None:
                continue
            if body and member.kind in {ItemKind.METHOD, ItemKind.ASSOCIATED_FUNCTION}:
                body.append("")
            emitted.append(member_id)
            body += [*self._preamble(member, depth + 1), f"{INDENT * (depth + 1)}{line}"]

        if not body and impl.items:
            # every associated item was filtered out of this view
            return []
        self.emitted.append(impl.id)
        self.emitted += emitted
        if not body:
            header[-1] += " {}"
            return header
        header[-1] += " {"
        return [*header, *body, f"{pad}}}"]

    def _member_line(self, item: Item, in_trait: bool) -> str | None:
        """Single-line rendering of a leaf item, including its terminator."""
        graph = self.graph
        kind = item.kind
        if kind in {ItemKind.FUNCTION, ItemKind.METHOD, ItemKind.ASSOCIATED_FUNCTION}:
            decl = function_declaration(graph, item)
            if in_trait and not item.signature.get("has_body", False):
                return f"{decl};"
            return f"{decl} {{}}"
        if kind is ItemKind.CONSTANT:
            return f"{constant_declaration(graph, item)};"
        if kind is ItemKind.TYPE_ALIAS:
            return f"{type_alias_declaration(graph, item)};"
        return None

    def _macro(self, item: Item, depth: int) -> list[str]:
        pad = INDENT * depth
        lines = self._preamble(item, depth)
        self.emitted.append(item.id)
        if item.tag == "proc_macro":
            return [*lines, *(f"{pad}{line}" for line in proc_macro_lines(self.graph, item))]
        source = macro_source(self.graph, item)
        if source.startswith("macro_rules!"):
            lines.append(f"{pad}#[macro_export]")
        lines += [f"{pad}{line}".rstrip() for line in source.splitlines()]
        return lines


def _discriminant(variant: Item) -> str:
    discriminant = variant.signature.get("discriminant")
    if isinstance(discriminant, dict) and discriminant.get("expr"):
        return f" = {discriminant['expr']}"
    return ""


def render_skeleton(
    graph: ItemGraph,
    projection: frozenset[str],
    selection: Selection | None = None,
    *,
    include_private: bool = False,
    show_reexports: bool = True,
) -> str:
    """Render a projection as raw Rust source."""
    renderer = SkeletonRenderer(
        graph,
        projection,
        selection,
        include_private=include_private,
        show_reexports=show_reexports,
    )
    return renderer.render()
