"""Data models for items decoded from the rustdoc IR."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ripdoc.cfg_predicate import CfgPredicate
from ripdoc.item_kind import ItemKind


class Visibility(Enum):
    """Declared visibility of an item."""

    PUBLIC = "public"
    RESTRICTED = "restricted"
    PRIVATE = "private"


@dataclass
class GenericParam:
    """One generic parameter (lifetime, type or const) of an item."""

    name: str
    kind: str  # lifetime/type/const
    raw: dict[str, Any]
    bound_ids: list[str] = field(default_factory=list)


@dataclass
class Item:
    """Represents a documented item (module, struct, function, etc.)."""

    id: str
    kind: ItemKind
    name: str | None
    docs: str
    visibility: Visibility
    tag: str  # inner tag in the IR ("struct", "union", "static"...)
    signature: dict[str, Any]  # inner payload, enough to regenerate the declaration
    attrs: list[str] = field(default_factory=list)
    cfg: CfgPredicate | None = None
    generics: list[GenericParam] = field(default_factory=list)
    inherits_visibility: bool = False  # variants and their fields, trait and trait-impl members
    parent: str | None = None


@dataclass
class ImplBlock(Item):
    """An impl block contributing associated items to a target type."""

    target_id: str | None = None
    trait_id: str | None = None
    trait_path: str | None = None
    items: list[str] = field(default_factory=list)
    is_synthetic: bool = False
    is_blanket: bool = False
    is_negative: bool = False
    derived: bool = False

    @property
    def is_auto(self) -> bool:
        """Compiler-generated auto trait impl or blanket impl."""
        return self.is_synthetic or self.is_blanket

    @property
    def trait_name(self) -> str | None:
        """Last segment of the implemented trait's path."""
        if not self.trait_path:
            return None
        return self.trait_path.rsplit("::", 1)[-1]


@dataclass
class UseRecord:
    """A `use` declaration as decoded, before it is attached to a module."""

    id: str
    name: str
    source: str
    target_id: str | None
    is_glob: bool
    visibility: Visibility
    docs: str = ""
    attrs: list[str] = field(default_factory=list)
    cfg: CfgPredicate | None = None


@dataclass(frozen=True)
class ReExport:
    """A `use` edge exposing `target_id` under `name` inside `module_id`."""

    module_id: str
    name: str
    target_id: str | None
    source: str
    is_glob: bool
    visibility: Visibility = Visibility.PUBLIC
    use_id: str = ""
