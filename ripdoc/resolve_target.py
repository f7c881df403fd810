"""Locating the IR document for a target, building it when necessary."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ripdoc.build_rustdoc_json import build_rustdoc_json
from ripdoc.errors import InvalidConfiguration, TargetNotFound
from ripdoc.load_rustdoc_json import load_rustdoc_json
from ripdoc.read_manifest import (
    MANIFEST_NAME,
    Manifest,
    find_manifest,
    read_manifest,
    workspace_packages,
)
from ripdoc.target_spec import TargetSpec, to_import_name

logger = logging.getLogger(__name__)

MODULE_FILES = {"lib.rs", "main.rs", "mod.rs"}


@dataclass
class ResolvedTarget:
    """Where the IR comes from, plus the sub-path filter below the crate root."""

    filter: tuple[str, ...]
    ir_path: Path | None = None
    manifest: Manifest | None = None


def resolve_target(
    spec: TargetSpec, config: dict[str, Any], cwd: Path | None = None
) -> ResolvedTarget:
    """Map a target onto a local IR file or package manifest."""
    cwd = cwd or Path.cwd()
    if spec.is_path:
        return _resolve_path(spec, cwd)
    return _resolve_name(spec, config, cwd)


def _resolve_path(spec: TargetSpec, cwd: Path) -> ResolvedTarget:
    path = Path(spec.entry)
    if not path.is_absolute():
        path = cwd / path
    if not path.exists():
        msg = f"no such file or directory: {spec.entry}"
        raise TargetNotFound(msg)

    if path.is_file() and path.suffix == ".json":
        if spec.version:
            msg = "a version qualifier cannot be combined with an IR file"
            raise InvalidConfiguration(msg)
        return ResolvedTarget(filter=spec.path, ir_path=path)

    if path.is_file() and path.suffix == ".rs":
        manifest_path = find_manifest(path)
        if manifest_path is None:
            msg = f"no {MANIFEST_NAME} found above {spec.entry}"
            raise TargetNotFound(msg)
        manifest = _check_version(read_manifest(manifest_path), spec)
        modules = _module_path(path.resolve(), manifest_path.parent.resolve())
        return ResolvedTarget(filter=(*modules, *spec.path), manifest=manifest)

    manifest_path = path / MANIFEST_NAME
    if not manifest_path.is_file():
        msg = f"{spec.entry} is neither a package nor a workspace"
        raise TargetNotFound(msg)
    manifest = read_manifest(manifest_path)
    if manifest.is_package:
        return ResolvedTarget(filter=spec.path, manifest=_check_version(manifest, spec))

    # a virtual workspace: the first path segment picks the package
    packages = workspace_packages(manifest)
    if not spec.path:
        names = ", ".join(p.name or "?" for p in packages) or "none"
        msg = f"no package specified in workspace {spec.entry} (available: {names})"
        raise TargetNotFound(msg)
    wanted, *rest = spec.path
    for package in packages:
        if package.name and to_import_name(package.name) == to_import_name(wanted):
            return ResolvedTarget(
                filter=tuple(rest), manifest=_check_version(package, spec)
            )
    msg = f"package {wanted!r} not found in workspace {spec.entry}"
    raise TargetNotFound(msg)


def _resolve_name(spec: TargetSpec, config: dict[str, Any], cwd: Path) -> ResolvedTarget:
    wanted = to_import_name(spec.entry)
    manifest_path = find_manifest(cwd)
    if manifest_path is not None:
        root = read_manifest(manifest_path)
        candidates = [root] if root.is_package else []
        if root.members:
            candidates += workspace_packages(root)
        for package in candidates:
            if package.name is None or to_import_name(package.name) != wanted:
                continue
            if spec.version and package.version != spec.version:
                logger.debug(
                    "Skipping %s %s, version %s requested",
                    package.name,
                    package.version,
                    spec.version,
                )
                continue
            return ResolvedTarget(filter=spec.path, manifest=package)

    if not spec.version:
        target_dir = Path(str(config["toolchain"]["target_dir"]))
        if not target_dir.is_absolute():
            target_dir = cwd / target_dir
        prebuilt = target_dir / "doc" / f"{wanted}.json"
        if prebuilt.is_file():
            return ResolvedTarget(filter=spec.path, ir_path=prebuilt)

    qualifier = f"@{spec.version}" if spec.version else ""
    msg = (
        f"crate {spec.entry}{qualifier} not found locally "
        "(remote registries are not consulted)"
    )
    raise TargetNotFound(msg)


def _check_version(manifest: Manifest, spec: TargetSpec) -> Manifest:
    if spec.version and manifest.version != spec.version:
        msg = (
            f"package {manifest.name} is version {manifest.version}, "
            f"not {spec.version}"
        )
        raise TargetNotFound(msg)
    return manifest


def _module_path(file: Path, package_dir: Path) -> tuple[str, ...]:
    """Module path of a source file relative to its package root."""
    parts = list(file.relative_to(package_dir).parts)
    if parts and parts[0] == "src":
        parts = parts[1:]
    if parts and parts[-1] in MODULE_FILES:
        parts = parts[:-1]
    elif parts:
        parts[-1] = parts[-1].removesuffix(".rs")
    return tuple(parts)


def load_target_ir(
    resolved: ResolvedTarget,
    config: dict[str, Any],
    *,
    features: list[str] | None = None,
    no_default_features: bool = False,
    all_features: bool = False,
    include_private: bool = False,
) -> dict[str, Any]:
    """Read the target's IR document, invoking the toolchain if it has none."""
    if resolved.ir_path is not None:
        logger.info("Reading IR from %s", resolved.ir_path)
        return load_rustdoc_json(resolved.ir_path)
    if resolved.manifest is None:
        msg = "target names neither an IR file nor a package"
        raise TargetNotFound(msg)
    json_path = build_rustdoc_json(
        resolved.manifest,
        config["toolchain"],
        features=features,
        no_default_features=no_default_features,
        all_features=all_features,
        include_private=include_private,
    )
    return load_rustdoc_json(json_path)
