"""Logic for normalising IR identifiers and attribute values."""


def as_id(v: object) -> str | None:
    """Convert an IR id (integer or string) to the string form used as a key."""
    if v is None or isinstance(v, bool):
        return None
    if isinstance(v, int | str):
        s = str(v).strip()
        return s or None
    return None


def as_attr(v: object) -> str | None:
    """Convert a string or structured attribute to `#[...]` source text."""
    if isinstance(v, str):
        return v.strip() or None
    if not isinstance(v, dict) or len(v) != 1:
        return None
    key, value = next(iter(v.items()))
    if key == "other" and isinstance(value, str):
        return value
    if key == "must_use":
        reason = value.get("reason") if isinstance(value, dict) else None
        return f'#[must_use = "{reason}"]' if reason else "#[must_use]"
    if key == "repr" and isinstance(value, dict):
        kind = value.get("kind")
        return f"#[repr({kind})]" if isinstance(kind, str) else "#[repr]"
    return f"#[{key}]"
