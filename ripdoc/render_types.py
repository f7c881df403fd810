"""Rendering of IR types, paths, bounds and generics into Rust syntax."""

from typing import Any

from ripdoc.escape_ident import escape_path

TRAIT_MODIFIERS = {"none": "", "maybe": "?", "maybe_const": "~const "}
ABI_NAMES = {
    "C": "C",
    "Cdecl": "cdecl",
    "Stdcall": "stdcall",
    "Fastcall": "fastcall",
    "Aapcs": "aapcs",
    "Win64": "win64",
    "SysV64": "sysv64",
    "System": "system",
}


def _tag(value: Any) -> tuple[str, Any]:
    """Split an externally tagged IR value into (tag, payload)."""
    if isinstance(value, str):
        return value, None
    if isinstance(value, dict) and len(value) == 1:
        return next(iter(value.items()))
    return "", value


def render_path(path: dict[str, Any]) -> str:
    """Render a resolved path with its generic arguments."""
    name = str(path.get("path") or path.get("name") or "")
    name = name.replace("$crate::", "")
    return f"{escape_path(name) if name else ''}{render_generic_args(path.get('args'))}"


def render_type(ty: Any, nested: bool = False) -> str:
    """Render a type; `nested` adds parentheses where `+` would be ambiguous."""
    tag, v = _tag(ty)
    if tag == "resolved_path":
        return render_path(v)
    if tag in {"generic", "primitive"}:
        return str(v)
    if tag == "tuple":
        return f"({', '.join(render_type(t, True) for t in v)})"
    if tag == "slice":
        return f"[{render_type(v, True)}]"
    if tag == "array":
        return f"[{render_type(v['type'], True)}; {v.get('len', '_')}]"
    if tag == "infer":
        return "_"
    if tag == "raw_pointer":
        mutable = v.get("is_mutable", v.get("mutable", False))
        return f"*{'mut' if mutable else 'const'} {render_type(v['type'], True)}"
    if tag == "borrowed_ref":
        lifetime = f"{v['lifetime']} " if v.get("lifetime") else ""
        mutable = "mut " if v.get("is_mutable", v.get("mutable", False)) else ""
        return f"&{lifetime}{mutable}{render_type(v['type'], True)}"
    if tag == "dyn_trait":
        traits = " + ".join(render_poly_trait(t) for t in v.get("traits") or [])
        lifetime = f" + {v['lifetime']}" if v.get("lifetime") else ""
        inner = f"dyn {traits}{lifetime}"
        if nested and (lifetime or " + " in traits):
            return f"({inner})"
        return inner
    if tag == "impl_trait":
        bounds = render_bounds(v)
        if nested and " + " in bounds:
            return f"(impl {bounds})"
        return f"impl {bounds}"
    if tag == "function_pointer":
        return render_function_pointer(v)
    if tag == "qualified_path":
        return _render_qualified_path(v)
    if tag == "pat":
        return "/* pattern */"
    return "_"


def _render_qualified_path(v: dict[str, Any]) -> str:
    self_type = render_type(v.get("self_type"), True)
    args = render_generic_args(v.get("args"))
    trait = v.get("trait")
    trait_path = render_path(trait) if isinstance(trait, dict) else ""
    if trait_path:
        return f"<{self_type} as {trait_path}>::{v['name']}{args}"
    return f"{self_type}::{v['name']}{args}"


def render_function_pointer(v: dict[str, Any]) -> str:
    sig = v.get("sig") or v.get("decl") or {}
    hrtb = _render_hrtb(v.get("generic_params") or [])
    header = v.get("header") or {}
    prefix = "unsafe " if header.get("is_unsafe") else ""
    abi = render_abi(header.get("abi"))
    args = ", ".join(
        render_type(t) if name == "_" else f"{name}: {render_type(t)}"
        for name, t in sig.get("inputs") or []
    )
    return f"{hrtb}{prefix}{abi}fn({args}){render_return(sig)}"


def render_abi(abi: Any) -> str:
    """Render an `extern "..." ` prefix for non-Rust ABIs."""
    tag, payload = _tag(abi)
    if not tag or tag == "Rust":
        return ""
    if tag == "Other":
        name = str(payload or "").strip('"')
    else:
        name = ABI_NAMES.get(tag, tag.lower())
    return f'extern "{name}" '


def render_generic_args(args: Any) -> str:
    """Render `<...>` or `(...) -> ...` generic arguments of a path."""
    if not args:
        return ""
    tag, v = _tag(args)
    if tag == "angle_bracketed":
        parts = [_render_generic_arg(a) for a in v.get("args") or []]
        parts += [
            _render_constraint(c)
            for c in v.get("constraints", v.get("bindings")) or []
        ]
        return f"<{', '.join(parts)}>" if parts else ""
    if tag == "parenthesized":
        inputs = ", ".join(render_type(t) for t in v.get("inputs") or [])
        output = f" -> {render_type(v['output'])}" if v.get("output") else ""
        return f"({inputs}){output}"
    return ""


def _render_generic_arg(arg: Any) -> str:
    tag, v = _tag(arg)
    if tag == "lifetime":
        return str(v)
    if tag == "type":
        return render_type(v)
    if tag == "const":
        expr = str(v.get("expr", "_")) if isinstance(v, dict) else str(v)
        # unexpanded macro variables would not parse
        return "/* macro expression */" if "$" in expr else expr
    return "_"


def _render_term(term: Any) -> str:
    tag, v = _tag(term)
    if tag == "type":
        return render_type(v)
    if tag == "constant":
        return str(v.get("expr", "_")) if isinstance(v, dict) else str(v)
    return "_"


def _render_constraint(c: dict[str, Any]) -> str:
    name = f"{c['name']}{render_generic_args(c.get('args'))}"
    tag, v = _tag(c.get("binding"))
    if tag == "equality":
        return f"{name} = {_render_term(v)}"
    if tag == "constraint":
        bounds = render_bounds(v)
        return f"{name}: {bounds}" if bounds else name
    return name


def render_poly_trait(poly: dict[str, Any]) -> str:
    """Render a trait reference with any `for<'a>` binder."""
    return f"{_render_hrtb(poly.get('generic_params') or [])}{render_path(poly['trait'])}"


def _render_hrtb(params: list[dict[str, Any]]) -> str:
    rendered = [p for p in (render_generic_param(p) for p in params) if p]
    return f"for<{', '.join(rendered)}> " if rendered else ""


def render_bound(bound: Any) -> str:
    tag, v = _tag(bound)
    if tag == "trait_bound":
        modifier = TRAIT_MODIFIERS.get(str(v.get("modifier", "none")), "")
        poly = {"trait": v["trait"], "generic_params": v.get("generic_params")}
        return f"{modifier}{render_poly_trait(poly)}"
    if tag == "outlives":
        return str(v)
    # precise-capturing `use<..>` bounds are unstable; leave them out
    return ""


def render_bounds(bounds: list[Any] | None) -> str:
    """Render bounds joined with ` + `."""
    return " + ".join(b for b in (render_bound(x) for x in bounds or []) if b)


def render_generic_param(param: dict[str, Any]) -> str | None:
    """Render one generic parameter definition; synthetic ones render as None."""
    tag, v = _tag(param.get("kind"))
    name = param["name"]
    v = v or {}
    if tag == "lifetime":
        outlives = v.get("outlives") or []
        return f"{name}: {' + '.join(outlives)}" if outlives else name
    if tag == "type":
        if v.get("is_synthetic", v.get("synthetic", False)):
            return None
        bounds = render_bounds(v.get("bounds"))
        out = f"{name}: {bounds}" if bounds else name
        if v.get("default") is not None:
            out += f" = {render_type(v['default'])}"
        return out
    if tag == "const":
        out = f"const {name}: {render_type(v.get('type'))}"
        if v.get("default") is not None:
            out += f" = {v['default']}"
        return out
    return None


def render_generics(generics: dict[str, Any] | None) -> str:
    """Render a `<...>` parameter list, or nothing when there are none."""
    params = [
        p
        for p in (render_generic_param(x) for x in (generics or {}).get("params") or [])
        if p
    ]
    return f"<{', '.join(params)}>" if params else ""


def render_where_clause(generics: dict[str, Any] | None) -> str:
    """Render ` where ...` for a generics block."""
    preds = [
        p
        for p in (
            _render_where_predicate(x)
            for x in (generics or {}).get("where_predicates") or []
        )
        if p
    ]
    return f" where {', '.join(preds)}" if preds else ""


def _render_where_predicate(pred: Any) -> str | None:
    tag, v = _tag(pred)
    if tag == "bound_predicate":
        params = v.get("generic_params") or []
        if any(
            _tag(p.get("kind"))[0] == "type"
            and (_tag(p.get("kind"))[1] or {}).get("is_synthetic")
            for p in params
        ):
            return None
        bounds = render_bounds(v.get("bounds"))
        if not bounds:
            return None
        return f"{_render_hrtb(params)}{render_type(v['type'])}: {bounds}"
    if tag in {"lifetime_predicate", "region_predicate"}:
        outlives = v.get("outlives") or v.get("bounds") or []
        outlives = [o if isinstance(o, str) else render_bound(o) for o in outlives]
        return f"{v['lifetime']}: {' + '.join(outlives)}" if outlives else v["lifetime"]
    if tag == "eq_predicate":
        return f"{render_type(v['lhs'])} = {_render_term(v['rhs'])}"
    return None


def render_self_arg(ty: Any) -> str:
    """Render a `self` receiver in its shorthand form where possible."""
    tag, v = _tag(ty)
    if tag == "borrowed_ref":
        inner_tag, inner = _tag(v.get("type"))
        if inner_tag == "generic" and inner == "Self":
            lifetime = f"{v['lifetime']} " if v.get("lifetime") else ""
            mutable = "mut " if v.get("is_mutable", v.get("mutable", False)) else ""
            return f"&{lifetime}{mutable}self"
    if tag == "generic" and v == "Self":
        return "self"
    if tag == "resolved_path" and v.get("path") == "Self" and not v.get("args"):
        return "self"
    return f"self: {render_type(ty)}"


def render_fn_args(sig: dict[str, Any]) -> str:
    """Render a function's parameter list."""
    parts = []
    for name, ty in sig.get("inputs") or []:
        if name == "self":
            parts.append(render_self_arg(ty))
        else:
            parts.append(f"{name}: {render_type(ty)}")
    if sig.get("is_c_variadic", sig.get("c_variadic", False)):
        parts.append("...")
    return ", ".join(parts)


def render_return(sig: dict[str, Any]) -> str:
    """Render ` -> T`, or nothing for unit returns."""
    output = sig.get("output")
    if output is None:
        return ""
    return f" -> {render_type(output)}"
