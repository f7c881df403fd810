"""Parsing and evaluation of `#[cfg(...)]` feature-gate predicates."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from ripdoc.feature_set import FeatureSet

CFG_TOKEN_RE = re.compile(
    r'\s*(?:(?P<ident>[A-Za-z_][A-Za-z0-9_]*)'
    r'|(?P<str>"(?:[^"\\]|\\.)*")'
    r"|(?P<punct>[(),=]))"
)


class CfgParseError(ValueError):
    """Raised for a predicate that is not valid cfg syntax."""


@dataclass(frozen=True)
class CfgPredicate:
    """One node of a cfg expression tree."""

    op: str  # all/any/not/option
    args: tuple[CfgPredicate, ...] = field(default=())
    key: str = ""
    value: str | None = None

    def evaluate(self, features: FeatureSet) -> bool:
        """Evaluate the predicate against the enabled feature set."""
        if self.op == "all":
            return all(a.evaluate(features) for a in self.args)
        if self.op == "any":
            return any(a.evaluate(features) for a in self.args)
        if self.op == "not":
            return not self.args[0].evaluate(features)
        if self.key == "feature" and self.value is not None:
            return features.is_enabled(self.value)
        # The IR was produced for one concrete target, so every other
        # option held when it was generated.
        return True

    def __str__(self) -> str:
        if self.op in {"all", "any", "not"}:
            return f"{self.op}({', '.join(str(a) for a in self.args)})"
        if self.value is None:
            return self.key
        return f'{self.key} = "{self.value}"'


def _tokenize(text: str) -> list[str]:
    tokens = []
    pos = 0
    text = text.rstrip()
    while pos < len(text):
        m = CFG_TOKEN_RE.match(text, pos)
        if not m or m.end() == pos:
            msg = f"unexpected character in cfg predicate at {pos}: {text!r}"
            raise CfgParseError(msg)
        tokens.append(m.group(m.lastgroup or "punct"))
        pos = m.end()
    return tokens


class _Parser:
    def __init__(self, tokens: list[str]) -> None:
        self.tokens = tokens
        self.pos = 0

    def peek(self) -> str | None:
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def take(self, expected: str | None = None) -> str:
        tok = self.peek()
        if tok is None or (expected is not None and tok != expected):
            msg = f"expected {expected or 'token'}, found {tok!r}"
            raise CfgParseError(msg)
        self.pos += 1
        return tok

    def parse_predicate(self) -> CfgPredicate:
        name = self.take()
        if not re.fullmatch(r"[A-Za-z_][A-Za-z0-9_]*", name):
            msg = f"expected identifier, found {name!r}"
            raise CfgParseError(msg)
        if name in {"all", "any", "not"} and self.peek() == "(":
            self.take("(")
            args: list[CfgPredicate] = []
            while self.peek() != ")":
                args.append(self.parse_predicate())
                if self.peek() == ",":
                    self.take(",")
                elif self.peek() != ")":
                    msg = f"expected ',' or ')', found {self.peek()!r}"
                    raise CfgParseError(msg)
            self.take(")")
            if name == "not" and len(args) != 1:
                msg = "not() takes exactly one predicate"
                raise CfgParseError(msg)
            return CfgPredicate(op=name, args=tuple(args))
        if self.peek() == "=":
            self.take("=")
            raw = self.take()
            if not raw.startswith('"'):
                msg = f"expected string value, found {raw!r}"
                raise CfgParseError(msg)
            return CfgPredicate(op="option", key=name, value=raw[1:-1])
        return CfgPredicate(op="option", key=name)


def parse_cfg(text: str) -> CfgPredicate:
    """Parse the inside of a `cfg(...)` attribute."""
    parser = _Parser(_tokenize(text))
    predicate = parser.parse_predicate()
    if parser.peek() is not None:
        msg = f"trailing tokens in cfg predicate: {text!r}"
        raise CfgParseError(msg)
    return predicate


def cfg_texts_from_attrs(attrs: list[str]) -> list[str]:
    """Extract the predicate text of every cfg and doc(cfg) attribute."""
    found = []
    for attr in attrs:
        a = attr.strip()
        if a.startswith("#[cfg(") and a.endswith(")]"):
            found.append(a[len("#[cfg(") : -2])
        elif a.startswith("#[doc(cfg(") and a.endswith("))]"):
            found.append(a[len("#[doc(cfg(") : -3])
    return found


def combine_predicates(predicates: list[CfgPredicate]) -> CfgPredicate | None:
    """Join several predicates with `all`; None means always enabled."""
    if not predicates:
        return None
    if len(predicates) == 1:
        return predicates[0]
    return CfgPredicate(op="all", args=tuple(predicates))
