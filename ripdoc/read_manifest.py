"""Reading of the parts of a Cargo manifest the pipeline needs."""

import logging
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from ripdoc.errors import IrUnavailable

logger = logging.getLogger(__name__)

MANIFEST_NAME = "Cargo.toml"


@dataclass
class Manifest:
    """Package identity, feature table and workspace members of a Cargo.toml."""

    path: Path
    name: str | None = None
    version: str | None = None
    features: dict[str, list[str]] = field(default_factory=dict)
    members: list[str] = field(default_factory=list)
    lib_name: str | None = None
    bin_names: list[str] = field(default_factory=list)

    @property
    def directory(self) -> Path:
        return self.path.parent

    @property
    def is_package(self) -> bool:
        return self.name is not None

    @property
    def has_lib(self) -> bool:
        return self.lib_name is not None


def read_manifest(path: Path) -> Manifest:
    """Parse a Cargo.toml."""
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except (OSError, tomllib.TOMLDecodeError) as e:
        msg = f"cannot read manifest {path}: {e}"
        raise IrUnavailable(msg) from e

    package = data.get("package") or {}
    name = package.get("name")
    version = package.get("version")
    if isinstance(version, dict):
        # `version.workspace = true` inherits a version we do not resolve
        version = None

    features = {
        str(k): [str(v) for v in values]
        for k, values in (data.get("features") or {}).items()
        if isinstance(values, list)
    }
    members = [str(m) for m in (data.get("workspace") or {}).get("members") or []]

    lib_name = None
    lib = data.get("lib")
    if isinstance(lib, dict) or (path.parent / "src" / "lib.rs").exists():
        lib_name = (lib if isinstance(lib, dict) else {}).get("name") or name
    bin_names = [
        b["name"] for b in data.get("bin") or [] if isinstance(b, dict) and b.get("name")
    ]
    if not bin_names and name and (path.parent / "src" / "main.rs").exists():
        bin_names = [name]

    return Manifest(
        path=path,
        name=name,
        version=version,
        features=features,
        members=members,
        lib_name=lib_name,
        bin_names=bin_names,
    )


def find_manifest(start: Path) -> Path | None:
    """Find the nearest Cargo.toml at or above `start`."""
    current = start if start.is_dir() else start.parent
    for directory in (current, *current.parents):
        candidate = directory / MANIFEST_NAME
        if candidate.is_file():
            return candidate
    return None


def workspace_packages(workspace: Manifest) -> list[Manifest]:
    """Manifests of the workspace's member packages, in member order."""
    packages = []
    for pattern in workspace.members:
        for member_dir in sorted(workspace.directory.glob(pattern)):
            candidate = member_dir / MANIFEST_NAME
            if candidate.is_file():
                packages.append(read_manifest(candidate))
            else:
                logger.debug("Workspace member %s has no manifest", member_dir)
    return packages
