"""Logic for decoding a rustdoc JSON document into typed item records."""

import logging
from dataclasses import dataclass, field
from typing import Any

from ripdoc.as_id import as_attr, as_id
from ripdoc.cfg_predicate import (
    CfgParseError,
    CfgPredicate,
    cfg_texts_from_attrs,
    combine_predicates,
    parse_cfg,
)
from ripdoc.decode_report import DecodeReport
from ripdoc.errors import UnsupportedSchema
from ripdoc.item import GenericParam, ImplBlock, Item, UseRecord, Visibility
from ripdoc.item_kind import ItemKind

logger = logging.getLogger(__name__)

MIN_FORMAT_VERSION = 30
MAX_FORMAT_VERSION = 60

TAG_KINDS = {
    "module": ItemKind.MODULE,
    "struct": ItemKind.STRUCT,
    "union": ItemKind.STRUCT,
    "enum": ItemKind.ENUM,
    "variant": ItemKind.VARIANT,
    "struct_field": ItemKind.FIELD,
    "trait": ItemKind.TRAIT,
    "trait_alias": ItemKind.TRAIT,
    "function": ItemKind.FUNCTION,
    "constant": ItemKind.CONSTANT,
    "static": ItemKind.CONSTANT,
    "assoc_const": ItemKind.CONSTANT,
    "type_alias": ItemKind.TYPE_ALIAS,
    "typedef": ItemKind.TYPE_ALIAS,
    "assoc_type": ItemKind.TYPE_ALIAS,
    "impl": ItemKind.IMPL,
    "macro": ItemKind.MACRO,
    "proc_macro": ItemKind.MACRO,
}
USE_TAGS = {"use", "import"}


@dataclass
class DecodedCrate:
    """Typed records of one rustdoc JSON document, not yet linked."""

    root_id: str
    crate_name: str
    format_version: int
    includes_private: bool
    items: dict[str, Item]
    uses: dict[str, UseRecord]
    paths: dict[str, dict[str, Any]]
    report: DecodeReport = field(default_factory=DecodeReport)

    def is_known(self, item_id: str) -> bool:
        """Check if an id is defined locally or as a foreign path."""
        return item_id in self.items or item_id in self.uses or item_id in self.paths


def check_format_version(
    doc: dict[str, Any],
    min_version: int = MIN_FORMAT_VERSION,
    max_version: int = MAX_FORMAT_VERSION,
) -> int:
    """Return the document's format version or raise UnsupportedSchema."""
    version = doc.get("format_version")
    if not isinstance(version, int) or isinstance(version, bool):
        msg = f"rustdoc JSON has no usable format_version (got {version!r})"
        raise UnsupportedSchema(msg)
    if not min_version <= version <= max_version:
        msg = (
            f"rustdoc JSON format_version {version} is outside the supported "
            f"range {min_version}..{max_version}"
        )
        raise UnsupportedSchema(msg)
    return version


def decode_ir(
    doc: dict[str, Any],
    report: DecodeReport | None = None,
    *,
    min_version: int = MIN_FORMAT_VERSION,
    max_version: int = MAX_FORMAT_VERSION,
) -> DecodedCrate:
    """Decode every index record, skipping malformed ones with a warning."""
    report = report or DecodeReport()
    if not isinstance(doc, dict):
        msg = "rustdoc JSON document must be an object"
        raise UnsupportedSchema(msg)
    version = check_format_version(doc, min_version, max_version)

    index = doc.get("index")
    root_id = as_id(doc.get("root"))
    if not isinstance(index, dict) or root_id is None:
        msg = "rustdoc JSON document lacks 'root' or 'index'"
        raise UnsupportedSchema(msg)
    index = {str(k): v for k, v in index.items()}
    root_raw = index.get(root_id)
    if not isinstance(root_raw, dict) or "module" not in (root_raw.get("inner") or {}):
        msg = f"root id {root_id} does not name a module in the index"
        raise UnsupportedSchema(msg)

    ctx = _MemberContext.scan(index)
    items: dict[str, Item] = {}
    uses: dict[str, UseRecord] = {}
    for item_id, raw in index.items():
        try:
            record = _decode_record(item_id, raw, ctx, report)
        except (KeyError, TypeError, ValueError, AttributeError, IndexError) as e:
            report.record_warning(f"Skipping malformed item {item_id}: {e!r}")
            continue
        if isinstance(record, UseRecord):
            uses[item_id] = record
        elif record is not None:
            items[item_id] = record

    if root_id not in items:
        msg = f"root module {root_id} could not be decoded"
        raise UnsupportedSchema(msg)
    items[root_id].kind = ItemKind.CRATE

    paths = {
        str(k): v for k, v in (doc.get("paths") or {}).items() if isinstance(v, dict)
    }
    logger.debug(
        "Decoded %d items and %d use records (format_version %d)",
        len(items),
        len(uses),
        version,
    )
    return DecodedCrate(
        root_id=root_id,
        crate_name=items[root_id].name or "crate",
        format_version=version,
        includes_private=bool(doc.get("includes_private")),
        items=items,
        uses=uses,
        paths=paths,
        report=report,
    )


@dataclass
class _MemberContext:
    """Ids whose kind or visibility depends on the container holding them."""

    assoc_members: set[str]  # members of traits and impls
    inheriting: set[str]  # variants and their fields, trait and trait-impl members

    @classmethod
    def scan(cls, index: dict[str, Any]) -> "_MemberContext":
        assoc: set[str] = set()
        inheriting: set[str] = set()
        for raw in index.values():
            inner = raw.get("inner") if isinstance(raw, dict) else None
            if not isinstance(inner, dict):
                continue
            if isinstance(inner.get("trait"), dict):
                members = _ids(inner["trait"].get("items"))
                assoc.update(members)
                inheriting.update(members)
            elif isinstance(inner.get("impl"), dict):
                members = _ids(inner["impl"].get("items"))
                assoc.update(members)
                if inner["impl"].get("trait"):
                    inheriting.update(members)
            elif isinstance(inner.get("enum"), dict):
                inheriting.update(_ids(inner["enum"].get("variants")))
            elif isinstance(inner.get("variant"), dict):
                kind = inner["variant"].get("kind")
                if isinstance(kind, dict) and "tuple" in kind:
                    inheriting.update(_ids(kind["tuple"]))
                elif isinstance(kind, dict) and "struct" in kind:
                    inheriting.update(_ids((kind["struct"] or {}).get("fields")))
        return cls(assoc_members=assoc, inheriting=inheriting)


def _ids(values: object) -> list[str]:
    if not isinstance(values, list):
        return []
    return [i for i in (as_id(v) for v in values) if i is not None]


def _visibility(raw: object, inherits: bool) -> Visibility:
    if raw == "public":
        return Visibility.PUBLIC
    if raw == "default":
        return Visibility.PUBLIC if inherits else Visibility.PRIVATE
    if raw == "crate" or (isinstance(raw, dict) and "restricted" in raw):
        return Visibility.RESTRICTED
    return Visibility.PRIVATE


def _decode_attrs(raw: object) -> list[str]:
    if not isinstance(raw, list):
        return []
    return [a for a in (as_attr(v) for v in raw) if a]


def _decode_generics(payload: dict[str, Any]) -> list[GenericParam]:
    generics = payload.get("generics") or {}
    params = []
    for p in generics.get("params") or []:
        kind_obj = p.get("kind") or {}
        kind = next(iter(kind_obj), "type") if isinstance(kind_obj, dict) else "type"
        detail = kind_obj.get(kind) if isinstance(kind_obj, dict) else None
        bound_ids = []
        if kind == "type" and isinstance(detail, dict):
            for bound in detail.get("bounds") or []:
                tb = bound.get("trait_bound") if isinstance(bound, dict) else None
                if isinstance(tb, dict):
                    bid = as_id((tb.get("trait") or {}).get("id"))
                    if bid is not None:
                        bound_ids.append(bid)
        params.append(
            GenericParam(name=str(p["name"]), kind=kind, raw=p, bound_ids=bound_ids)
        )
    return params


def _decode_record(
    item_id: str,
    raw: dict[str, Any],
    ctx: _MemberContext,
    report: DecodeReport,
) -> Item | UseRecord | None:
    inner = raw["inner"]
    if not isinstance(inner, dict) or len(inner) != 1:
        msg = "inner must be an object with exactly one kind tag"
        raise ValueError(msg)
    tag, payload = next(iter(inner.items()))
    if tag == "struct_field":
        payload = {"type": payload}
    elif tag == "macro":
        payload = {"source": payload if isinstance(payload, str) else ""}
    elif not isinstance(payload, dict):
        payload = {}

    docs = raw.get("docs") or ""
    attrs = _decode_attrs(raw.get("attrs"))
    inherits = item_id in ctx.inheriting or "impl" in inner
    visibility = _visibility(raw.get("visibility"), inherits)
    cfg = _decode_cfg(item_id, attrs, report)

    if tag in USE_TAGS:
        source = payload.get("source")
        name = payload.get("name")
        if not isinstance(source, str) or not isinstance(name, str):
            msg = "use record lacks source or name"
            raise ValueError(msg)
        return UseRecord(
            id=item_id,
            name=name,
            source=source,
            target_id=as_id(payload.get("id")),
            is_glob=bool(payload.get("is_glob", payload.get("glob", False))),
            visibility=visibility,
            docs=docs,
            attrs=attrs,
            cfg=cfg,
        )

    kind = TAG_KINDS.get(tag)
    if kind is None:
        report.record_warning(f"Skipping item {item_id} of unsupported kind {tag!r}")
        return None
    if kind is ItemKind.FUNCTION and item_id in ctx.assoc_members:
        kind = ItemKind.METHOD if _takes_self(payload) else ItemKind.ASSOCIATED_FUNCTION

    name = raw.get("name")
    if name is not None and not isinstance(name, str):
        msg = "name must be a string"
        raise TypeError(msg)
    if name is None and kind is not ItemKind.IMPL:
        msg = f"{tag} item has no name"
        raise ValueError(msg)

    common: dict[str, Any] = {
        "id": item_id,
        "kind": kind,
        "name": name,
        "docs": docs,
        "visibility": visibility,
        "tag": tag,
        "signature": payload,
        "attrs": attrs,
        "cfg": cfg,
        "generics": _decode_generics(payload),
        "inherits_visibility": inherits,
    }
    if kind is ItemKind.IMPL:
        return _decode_impl(common, payload)
    return Item(**common)


def _decode_impl(common: dict[str, Any], payload: dict[str, Any]) -> ImplBlock:
    trait = payload.get("trait")
    target = payload.get("for") or {}
    resolved = target.get("resolved_path") if isinstance(target, dict) else None
    return ImplBlock(
        **common,
        target_id=as_id(resolved.get("id")) if isinstance(resolved, dict) else None,
        trait_id=as_id(trait.get("id")) if isinstance(trait, dict) else None,
        trait_path=_path_name(trait) if isinstance(trait, dict) else None,
        items=_ids(payload.get("items")),
        is_synthetic=bool(payload.get("is_synthetic", payload.get("synthetic", False))),
        is_blanket=payload.get("blanket_impl") is not None,
        is_negative=bool(payload.get("is_negative", payload.get("negative", False))),
    )


def _path_name(path: dict[str, Any]) -> str:
    # "path" in current formats, "name" in older ones
    return str(path.get("path") or path.get("name") or "")


def _takes_self(payload: dict[str, Any]) -> bool:
    sig = payload.get("sig") or payload.get("decl") or {}
    inputs = sig.get("inputs") or []
    return bool(inputs) and inputs[0][0] == "self"


def _decode_cfg(
    item_id: str, attrs: list[str], report: DecodeReport
) -> CfgPredicate | None:
    predicates = []
    for text in cfg_texts_from_attrs(attrs):
        try:
            predicates.append(parse_cfg(text))
        except CfgParseError as e:
            report.record_warning(
                f"Ignoring unparseable cfg on item {item_id}: {text!r} ({e})"
            )
    return combine_predicates(predicates)
