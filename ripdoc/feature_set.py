"""The set of optional crate features a render is evaluated under."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class FeatureSet:
    """Enabled feature names, or every feature when `all_features` is set."""

    enabled: frozenset[str] = field(default_factory=frozenset)
    all_features: bool = False

    def is_enabled(self, name: str) -> bool:
        """Check if a feature is on."""
        return self.all_features or name in self.enabled


def resolve_features(
    requested: list[str],
    manifest_features: dict[str, list[str]] | None = None,
    *,
    no_default_features: bool = False,
    all_features: bool = False,
) -> FeatureSet:
    """Expand requested features (and defaults) through the manifest table."""
    if manifest_features is None and not any(f.strip() for f in requested):
        # prebuilt IR: the features it was built with are unknown
        return FeatureSet(all_features=True)
    table = manifest_features or {}
    pending = [f.strip() for f in requested if f.strip()]
    if not no_default_features and "default" in table:
        pending.append("default")

    enabled: set[str] = set()
    while pending:
        name = pending.pop()
        # "dep:x" enables an optional dependency, not a local feature
        if name.startswith("dep:"):
            continue
        if "/" in name:
            name = name.split("/", 1)[0]
        if name in enabled:
            continue
        enabled.add(name)
        pending.extend(table.get(name, []))

    enabled.discard("default")
    return FeatureSet(enabled=frozenset(enabled), all_features=all_features)
