"""Raw-identifier escaping for names that collide with Rust keywords."""

RESERVED_WORDS = frozenset(
    {
        "abstract", "as", "async", "await", "become", "box", "break", "const",
        "continue", "crate", "do", "dyn", "else", "enum", "extern", "false",
        "final", "fn", "for", "gen", "if", "impl", "in", "let", "loop", "macro",
        "match", "mod", "move", "mut", "override", "priv", "pub", "ref",
        "return", "self", "Self", "static", "struct", "super", "trait", "true",
        "try", "type", "typeof", "unsafe", "unsized", "use", "virtual", "where",
        "while", "yield",
    }
)

# Keywords that cannot be written as raw identifiers at all.
PATH_KEYWORDS = frozenset({"crate", "self", "Self", "super"})


def escape_ident(name: str) -> str:
    """Prefix `r#` to a name that is a reserved word."""
    if name in RESERVED_WORDS and name not in PATH_KEYWORDS:
        return f"r#{name}"
    return name


def escape_path(path: str) -> str:
    """Escape every segment of a `::`-separated path."""
    return "::".join(escape_ident(seg) for seg in path.split("::"))
