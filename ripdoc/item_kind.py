"""Item kinds recognised in the item graph and their listing labels."""

from enum import Enum


class ItemKind(Enum):
    """Kind of a documented item."""

    CRATE = "crate"
    MODULE = "module"
    STRUCT = "struct"
    ENUM = "enum"
    TRAIT = "trait"
    FUNCTION = "function"
    ASSOCIATED_FUNCTION = "associated-function"
    METHOD = "method"
    FIELD = "field"
    VARIANT = "variant"
    CONSTANT = "constant"
    TYPE_ALIAS = "type-alias"
    IMPL = "implementation-block"
    MACRO = "macro"

    @property
    def label(self) -> str:
        """Lowercase word used in listings."""
        return _LABELS[self]


_LABELS = {
    ItemKind.CRATE: "crate",
    ItemKind.MODULE: "module",
    ItemKind.STRUCT: "struct",
    ItemKind.ENUM: "enum",
    ItemKind.TRAIT: "trait",
    ItemKind.FUNCTION: "function",
    ItemKind.ASSOCIATED_FUNCTION: "function",
    ItemKind.METHOD: "method",
    ItemKind.FIELD: "field",
    ItemKind.VARIANT: "variant",
    ItemKind.CONSTANT: "constant",
    ItemKind.TYPE_ALIAS: "type",
    ItemKind.IMPL: "impl",
    ItemKind.MACRO: "macro",
}


def is_expandable_kind(kind: ItemKind) -> bool:
    """Check if a matched item of this kind expands to show all its members."""
    return kind in {ItemKind.STRUCT, ItemKind.ENUM, ItemKind.TRAIT, ItemKind.IMPL}


def is_module_kind(kind: ItemKind) -> bool:
    """Check if the kind is a module or the crate root."""
    return kind in {ItemKind.CRATE, ItemKind.MODULE}
