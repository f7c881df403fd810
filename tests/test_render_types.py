"""Tests for rendering IR types and declarations as Rust syntax."""

from typing import Any

import pytest

from ir_builders import document, function, record
from ripdoc.decode_ir import decode_ir
from ripdoc.escape_ident import escape_ident, escape_path
from ripdoc.render_signature import declaration, function_declaration, macro_source
from ripdoc.render_types import (
    render_abi,
    render_generics,
    render_type,
    render_where_clause,
)

STR_REF = {"borrowed_ref": {"lifetime": None, "is_mutable": False, "type": {"primitive": "str"}}}


def vec_of(inner: dict[str, Any]) -> dict[str, Any]:
    """A `Vec<inner>` type."""
    return {
        "resolved_path": {
            "path": "Vec",
            "id": 100,
            "args": {"angle_bracketed": {"args": [{"type": inner}], "constraints": []}},
        }
    }


def trait_bound(name: str) -> dict[str, Any]:
    return {
        "trait_bound": {
            "trait": {"path": name, "id": 200, "args": None},
            "generic_params": [],
            "modifier": "none",
        }
    }


@pytest.mark.parametrize(
    ("ty", "expected"),
    [
        ({"primitive": "u8"}, "u8"),
        (vec_of({"generic": "T"}), "Vec<T>"),
        ({"tuple": []}, "()"),
        ({"tuple": [{"primitive": "u8"}, {"generic": "T"}]}, "(u8, T)"),
        ({"slice": {"primitive": "u8"}}, "[u8]"),
        ({"array": {"type": {"primitive": "u8"}, "len": "4"}}, "[u8; 4]"),
        (
            {
                "borrowed_ref": {
                    "lifetime": "'a",
                    "is_mutable": True,
                    "type": {"primitive": "str"},
                }
            },
            "&'a mut str",
        ),
        ({"raw_pointer": {"is_mutable": False, "type": {"primitive": "u8"}}}, "*const u8"),
        (
            {
                "dyn_trait": {
                    "traits": [{"trait": {"path": "Error", "id": 1, "args": None}}],
                    "lifetime": None,
                }
            },
            "dyn Error",
        ),
        ({"impl_trait": [trait_bound("Iterator")]}, "impl Iterator"),
        (
            {
                "qualified_path": {
                    "name": "Item",
                    "args": None,
                    "self_type": {"generic": "I"},
                    "trait": {"path": "Iterator", "id": 2, "args": None},
                }
            },
            "<I as Iterator>::Item",
        ),
        ({"resolved_path": {"path": "$crate::Thing", "id": 3, "args": None}}, "Thing"),
        ("infer", "_"),
    ],
)
def test_render_type(ty: Any, expected: str) -> None:
    """Verify rendering of each type shape."""
    assert render_type(ty) == expected


def test_generics_and_where_clause() -> None:
    """Verify generic parameter lists and where predicates."""
    generics = {
        "params": [
            {"name": "'a", "kind": {"lifetime": {"outlives": []}}},
            {
                "name": "T",
                "kind": {
                    "type": {
                        "bounds": [trait_bound("Clone")],
                        "default": None,
                        "is_synthetic": False,
                    }
                },
            },
            {"name": "impl Sized", "kind": {"type": {"bounds": [], "is_synthetic": True}}},
            {"name": "N", "kind": {"const": {"type": {"primitive": "usize"}, "default": None}}},
        ],
        "where_predicates": [
            {
                "bound_predicate": {
                    "type": {"generic": "T"},
                    "bounds": [trait_bound("Send")],
                    "generic_params": [],
                }
            }
        ],
    }

    assert render_generics(generics) == "<'a, T: Clone, const N: usize>"
    assert render_where_clause(generics) == " where T: Send"
    assert render_generics(None) == ""


def test_abi() -> None:
    """Verify extern prefixes for foreign calling conventions."""
    assert render_abi("Rust") == ""
    assert render_abi({"C": {"unwind": False}}) == 'extern "C" '
    assert render_abi({"Other": "C-cmse-nonsecure-call"}) == 'extern "C-cmse-nonsecure-call" '
    assert render_abi({"Other": '"riscv-interrupt-m"'}) == 'extern "riscv-interrupt-m" '


def test_escape_ident() -> None:
    """Verify raw identifiers for keywords, except path keywords."""
    assert escape_ident("type") == "r#type"
    assert escape_ident("self") == "self"
    assert escape_ident("value") == "value"
    assert escape_path("crate::match::fn") == "crate::r#match::r#fn"


def test_function_declaration() -> None:
    """Verify a full function signature with arguments and return type."""
    doc = document(
        "demo",
        [1],
        [
            function(
                1,
                "parse",
                inputs=[("input", STR_REF)],
                output=vec_of({"primitive": "u8"}),
            )
        ],
    )
    item = decode_ir(doc).items["1"]

    assert function_declaration(None, item) == "pub fn parse(input: &str) -> Vec<u8>"
    assert declaration(None, item) == function_declaration(None, item)


def test_macro_source_fallback() -> None:
    """Verify that a macro without source text still renders a definition."""
    doc = document("demo", [1], [record(1, "m", {"macro": ""})])
    item = decode_ir(doc).items["1"]

    assert macro_source(None, item) == "macro_rules! m { ... }"
