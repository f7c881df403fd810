"""Tests for decoding rustdoc JSON into typed records."""

from typing import Any

import pytest

from ir_builders import document, field, function, impl_block, path_type, plain_struct, record
from ripdoc.decode_ir import check_format_version, decode_ir
from ripdoc.errors import UnsupportedSchema
from ripdoc.item import ImplBlock, Visibility
from ripdoc.item_kind import ItemKind


def test_root_becomes_crate(util_doc: dict[str, Any]) -> None:
    """Verify that the root module is decoded as the crate item."""
    decoded = decode_ir(util_doc)

    assert decoded.crate_name == "demo"
    assert decoded.items["0"].kind is ItemKind.CRATE
    assert decoded.items["1"].kind is ItemKind.MODULE
    assert decoded.format_version == 39


def test_format_version_outside_window_is_rejected(util_doc: dict[str, Any]) -> None:
    """Verify that unsupported format versions raise UnsupportedSchema."""
    util_doc["format_version"] = 12

    with pytest.raises(UnsupportedSchema, match="outside the supported range"):
        decode_ir(util_doc)


def test_missing_format_version_is_rejected() -> None:
    """Verify that a document without a format version is refused."""
    with pytest.raises(UnsupportedSchema):
        check_format_version({"root": 0, "index": {}})


def test_custom_version_window() -> None:
    """Verify that the accepted window can be widened by the caller."""
    assert check_format_version({"format_version": 70}, 30, 80) == 70


def test_root_must_be_a_module() -> None:
    """Verify that a root id naming a non-module is refused."""
    doc = document("demo", [], [])
    doc["root"] = 5
    doc["index"]["5"] = function(5, "main")

    with pytest.raises(UnsupportedSchema, match="does not name a module"):
        decode_ir(doc)


def test_malformed_record_is_skipped_with_warning() -> None:
    """Verify that one bad record does not abort the whole decode."""
    bad = record(2, None, {"struct": {"kind": "unit", "impls": []}})
    doc = document("demo", [1, 2], [function(1, "fine"), bad])

    decoded = decode_ir(doc)

    assert "1" in decoded.items
    assert "2" not in decoded.items
    assert any("Skipping malformed item 2" in w for w in decoded.report.warnings)


def test_unknown_kind_is_skipped() -> None:
    """Verify that unsupported item kinds are skipped rather than fatal."""
    doc = document("demo", [1], [record(1, "Ext", {"extern_type": None})])

    decoded = decode_ir(doc)

    assert "1" not in decoded.items
    assert any("unsupported kind" in w for w in decoded.report.warnings)


def test_visibility_mapping() -> None:
    """Verify how public, crate, restricted and default visibilities are decoded."""
    doc = document(
        "demo",
        [1, 2, 3, 4],
        [
            function(1, "a"),
            function(2, "b", visibility="crate"),
            function(3, "c", visibility={"restricted": {"parent": 0, "path": "::m"}}),
            function(4, "d", visibility="default"),
        ],
    )

    items = decode_ir(doc).items

    assert items["1"].visibility is Visibility.PUBLIC
    assert items["2"].visibility is Visibility.RESTRICTED
    assert items["3"].visibility is Visibility.RESTRICTED
    assert items["4"].visibility is Visibility.PRIVATE


def test_impl_members_are_methods_or_associated_functions() -> None:
    """Verify that functions inside impls are classified by their receiver."""
    doc = document(
        "demo",
        [1],
        [
            plain_struct(1, "S", [], impls=[2]),
            impl_block(2, path_type("S", 1), [3, 4]),
            function(3, "new", output=path_type("S", 1)),
            function(4, "len", takes_self=True, output={"primitive": "usize"}),
        ],
    )

    items = decode_ir(doc).items

    assert items["3"].kind is ItemKind.ASSOCIATED_FUNCTION
    assert items["4"].kind is ItemKind.METHOD
    impl = items["2"]
    assert isinstance(impl, ImplBlock)
    assert impl.target_id == "1"
    assert impl.trait_id is None
    assert impl.inherits_visibility


def test_cfg_attributes_are_parsed() -> None:
    """Verify that cfg attributes become predicates and bad ones are reported."""
    doc = document(
        "demo",
        [1, 2],
        [
            function(1, "gated", attrs=['#[cfg(feature = "fast")]']),
            function(2, "broken", attrs=["#[cfg(all(feature = )]"]),
        ],
    )

    decoded = decode_ir(doc)

    assert str(decoded.items["1"].cfg) == 'feature = "fast"'
    assert decoded.items["2"].cfg is None
    assert any("unparseable cfg" in w for w in decoded.report.warnings)


def test_structured_attributes_are_rendered() -> None:
    """Verify that newer structured attrs are turned back into source text."""
    doc = document(
        "demo",
        [1],
        [field(1, "x", attrs=[{"must_use": {"reason": None}}, {"other": "#[doc(hidden)]"}])],
    )

    assert decode_ir(doc).items["1"].attrs == ["#[must_use]", "#[doc(hidden)]"]
