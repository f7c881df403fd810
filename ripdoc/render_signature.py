"""Single-line declarations for items, shared by search and the skeleton renderer."""

import re

from ripdoc.escape_ident import escape_ident
from ripdoc.item import ImplBlock, Item, Visibility
from ripdoc.item_graph import ItemGraph
from ripdoc.item_kind import ItemKind
from ripdoc.render_types import (
    render_abi,
    render_bounds,
    render_fn_args,
    render_generics,
    render_path,
    render_return,
    render_type,
    render_where_clause,
)

MACRO_PLACEHOLDER_RE = re.compile(r"\}\s*\{\s*\.\.\.\s*\}\s*$")


def render_vis(item: Item) -> str:
    """`pub ` for public items that are allowed to spell their visibility."""
    if item.inherits_visibility or item.visibility is not Visibility.PUBLIC:
        return ""
    return "pub "


def render_name(graph: ItemGraph | None, item: Item) -> str:
    name = (graph.name_of(item.id) if graph is not None else None) or item.name
    return escape_ident(name) if name else "?"


def function_declaration(graph: ItemGraph | None, item: Item) -> str:
    """`pub const unsafe fn name<T>(args) -> R where ...` without a body."""
    p = item.signature
    sig = p.get("sig") or p.get("decl") or {}
    header = p.get("header") or {}
    prefixes = [
        word
        for word, flag in (
            ("const", header.get("is_const", header.get("const"))),
            ("async", header.get("is_async", header.get("async"))),
            ("unsafe", header.get("is_unsafe", header.get("unsafe"))),
        )
        if flag
    ]
    prefix = "".join(f"{w} " for w in prefixes)
    generics = p.get("generics")
    return (
        f"{render_vis(item)}{prefix}{render_abi(header.get('abi'))}fn "
        f"{render_name(graph, item)}{render_generics(generics)}"
        f"({render_fn_args(sig)}){render_return(sig)}{render_where_clause(generics)}"
    )


def struct_declaration(graph: ItemGraph | None, item: Item) -> str:
    keyword = "union" if item.tag == "union" else "struct"
    generics = item.signature.get("generics")
    return (
        f"{render_vis(item)}{keyword} {render_name(graph, item)}"
        f"{render_generics(generics)}{render_where_clause(generics)}"
    )


def enum_declaration(graph: ItemGraph | None, item: Item) -> str:
    generics = item.signature.get("generics")
    return (
        f"{render_vis(item)}enum {render_name(graph, item)}"
        f"{render_generics(generics)}{render_where_clause(generics)}"
    )


def trait_declaration(graph: ItemGraph | None, item: Item) -> str:
    p = item.signature
    generics = p.get("generics")
    name = render_name(graph, item)
    if item.tag == "trait_alias":
        bounds = render_bounds(p.get("params"))
        return (
            f"{render_vis(item)}trait {name}{render_generics(generics)} = {bounds}"
            f"{render_where_clause(generics)}"
        )
    bounds = render_bounds(p.get("bounds"))
    unsafe = "unsafe " if p.get("is_unsafe") else ""
    auto = "auto " if p.get("is_auto") else ""
    return (
        f"{render_vis(item)}{unsafe}{auto}trait {name}{render_generics(generics)}"
        f"{': ' + bounds if bounds else ''}{render_where_clause(generics)}"
    )


def impl_declaration(impl: ImplBlock, with_where: bool = True) -> str:
    """`unsafe impl<T> !Trait for Type where ...`."""
    p = impl.signature
    generics = p.get("generics")
    trait = p.get("trait")
    trait_part = ""
    if isinstance(trait, dict):
        rendered = render_path(trait)
        if rendered:
            trait_part = f"{'!' if impl.is_negative else ''}{rendered} for "
    where = render_where_clause(generics) if with_where else ""
    return (
        f"{'unsafe ' if p.get('is_unsafe') else ''}impl{render_generics(generics)} "
        f"{trait_part}{render_type(p.get('for'))}{where}"
    )


def field_declaration(graph: ItemGraph | None, item: Item) -> str:
    ty = render_type(item.signature.get("type"))
    return f"{render_vis(item)}{render_name(graph, item)}: {ty}"


def variant_declaration(graph: ItemGraph | None, item: Item, fields: str = "") -> str:
    """`Name`, `Name(A, B)` or `Name { .. }`, plus any discriminant."""
    p = item.signature
    kind = p.get("kind")
    text = render_name(graph, item)
    if fields:
        text += fields
    elif isinstance(kind, dict) and "tuple" in kind:
        tys = [
            render_type(graph.items[str(f)].signature.get("type"))
            if graph is not None and str(f) in graph
            else "_"
            for f in kind["tuple"]
            if f is not None
        ]
        text += f"({', '.join(tys)})"
    elif isinstance(kind, dict) and "struct" in kind:
        text += " { .. }"
    discriminant = p.get("discriminant")
    if isinstance(discriminant, dict) and discriminant.get("expr"):
        text += f" = {discriminant['expr']}"
    return text


def constant_declaration(graph: ItemGraph | None, item: Item) -> str:
    p = item.signature
    name = render_name(graph, item)
    ty = render_type(p.get("type"))
    if item.tag == "static":
        mutable = "mut " if p.get("is_mutable", p.get("mutable")) else ""
        return f"{render_vis(item)}static {mutable}{name}: {ty} = {p.get('expr', '_')}"
    if item.tag == "assoc_const":
        value = p.get("value", p.get("default"))
        return f"const {name}: {ty}{' = ' + str(value) if value else ''}"
    const = p.get("const") if isinstance(p.get("const"), dict) else p
    return f"{render_vis(item)}const {name}: {ty} = {const.get('expr', '_')}"


def type_alias_declaration(graph: ItemGraph | None, item: Item) -> str:
    p = item.signature
    name = render_name(graph, item)
    generics = p.get("generics")
    if item.tag == "assoc_type":
        bounds = render_bounds(p.get("bounds"))
        default = p.get("type", p.get("default"))
        return (
            f"type {name}{render_generics(generics)}"
            f"{': ' + bounds if bounds else ''}"
            f"{' = ' + render_type(default) if default is not None else ''}"
        )
    return (
        f"{render_vis(item)}type {name}{render_generics(generics)}"
        f"{render_where_clause(generics)} = {render_type(p.get('type'))}"
    )


def macro_source(graph: ItemGraph | None, item: Item) -> str:
    """The macro definition text, fixed up to parse as Rust."""
    text = str(item.signature.get("source") or "")
    if text.startswith("macro ") and MACRO_PLACEHOLDER_RE.search(text):
        text = MACRO_PLACEHOLDER_RE.sub("}", text)
    m = re.match(r"(macro_rules!\s*)([A-Za-z_][A-Za-z0-9_]*)", text)
    if m:
        text = f"{m.group(1)}{escape_ident(m.group(2))}{text[m.end():]}"
    if not text:
        text = f"macro_rules! {render_name(graph, item)} {{ ... }}"
    return text


def proc_macro_lines(graph: ItemGraph | None, item: Item) -> list[str]:
    """Attribute line and stub function of a procedural macro."""
    name = render_name(graph, item)
    kind = item.signature.get("kind")
    helpers = item.signature.get("helpers") or []
    if kind == "derive":
        attrs = f", attributes({', '.join(helpers)})" if helpers else ""
        attr = f"#[proc_macro_derive({name}{attrs})]"
        args = "input: proc_macro::TokenStream"
    elif kind == "attr":
        attr = "#[proc_macro_attribute]"
        args = "attr: proc_macro::TokenStream, item: proc_macro::TokenStream"
    else:
        attr = "#[proc_macro]"
        args = "input: proc_macro::TokenStream"
    return [attr, f"pub fn {name}({args}) -> proc_macro::TokenStream {{}}"]


def declaration(graph: ItemGraph | None, item: Item) -> str:
    """Single-line declaration of any item, as matched by signature search."""
    kind = item.kind
    if kind in {ItemKind.CRATE, ItemKind.MODULE}:
        vis = render_vis(item) if kind is ItemKind.MODULE else "pub "
        return f"{vis}mod {render_name(graph, item)}"
    if kind is ItemKind.STRUCT:
        return struct_declaration(graph, item)
    if kind is ItemKind.ENUM:
        return enum_declaration(graph, item)
    if kind is ItemKind.TRAIT:
        return trait_declaration(graph, item)
    if isinstance(item, ImplBlock):
        return impl_declaration(item)
    if kind in {ItemKind.FUNCTION, ItemKind.METHOD, ItemKind.ASSOCIATED_FUNCTION}:
        return function_declaration(graph, item)
    if kind is ItemKind.FIELD:
        return field_declaration(graph, item)
    if kind is ItemKind.VARIANT:
        return variant_declaration(graph, item)
    if kind is ItemKind.CONSTANT:
        return constant_declaration(graph, item)
    if kind is ItemKind.TYPE_ALIAS:
        return type_alias_declaration(graph, item)
    if item.tag == "proc_macro":
        return proc_macro_lines(graph, item)[1].removesuffix(" {}")
    lines = macro_source(graph, item).splitlines()
    return lines[0] if lines else ""


def field_type(graph: ItemGraph, field_id: str) -> str:
    """Rendered type of a struct or variant field, `_` when it is unknown."""
    item = graph.items.get(field_id)
    return render_type(item.signature.get("type")) if item is not None else "_"
