"""Invocation of `cargo rustdoc` to produce a crate's JSON IR."""

import logging
import re
import subprocess
from pathlib import Path
from typing import Any

from ripdoc.errors import IrUnavailable
from ripdoc.read_manifest import Manifest
from ripdoc.target_spec import to_import_name

logger = logging.getLogger(__name__)

DIAGNOSTIC_RE = re.compile(r"^error(\[E\d+\])?:")
UNSTABLE_FEATURE_MARKERS = ("unknown feature", "E0635")


def rustdoc_command(
    manifest: Manifest,
    toolchain: dict[str, Any],
    *,
    features: list[str] | None = None,
    no_default_features: bool = False,
    all_features: bool = False,
    include_private: bool = False,
) -> list[str]:
    """Build the `cargo rustdoc` command line for one package."""
    cmd = [str(toolchain.get("cargo") or "cargo")]
    channel = toolchain.get("channel")
    if channel:
        cmd.append(f"+{channel}")
    cmd += ["rustdoc", "--manifest-path", str(manifest.path)]
    if manifest.has_lib or not manifest.bin_names:
        cmd.append("--lib")
    else:
        cmd += ["--bin", manifest.bin_names[0]]
    cmd += ["--target-dir", str(target_dir(manifest, toolchain))]
    if features:
        cmd += ["--features", ",".join(features)]
    if no_default_features:
        cmd.append("--no-default-features")
    if all_features:
        cmd.append("--all-features")
    cmd += ["--", "-Z", "unstable-options", "--output-format", "json"]
    if include_private:
        cmd.append("--document-private-items")
    return cmd


def target_dir(manifest: Manifest, toolchain: dict[str, Any]) -> Path:
    configured = Path(str(toolchain.get("target_dir") or "target"))
    return configured if configured.is_absolute() else manifest.directory / configured


def first_diagnostic(stderr: str) -> str | None:
    """The first `error:` line of compiler output."""
    for line in stderr.splitlines():
        if DIAGNOSTIC_RE.match(line.strip()):
            return line.strip()
    return None


def build_rustdoc_json(
    manifest: Manifest,
    toolchain: dict[str, Any],
    *,
    features: list[str] | None = None,
    no_default_features: bool = False,
    all_features: bool = False,
    include_private: bool = False,
) -> Path:
    """Run `cargo rustdoc` and return the path of the JSON it wrote."""
    cmd = rustdoc_command(
        manifest,
        toolchain,
        features=features,
        no_default_features=no_default_features,
        all_features=all_features,
        include_private=include_private,
    )
    logger.info("Running: %s", " ".join(cmd))
    try:
        result = subprocess.run(
            cmd,
            check=False,
            capture_output=True,
            text=True,
            cwd=manifest.directory,
        )
    except OSError as e:
        msg = f"cannot run {cmd[0]}: {e}"
        raise IrUnavailable(msg) from e

    if result.returncode != 0:
        logger.debug("cargo rustdoc stderr:\n%s", result.stderr)
        if any(m in result.stderr for m in UNSTABLE_FEATURE_MARKERS):
            msg = (
                "rustdoc failed: the crate uses unstable features the installed "
                "nightly toolchain does not support"
            )
            raise IrUnavailable(msg)
        diagnostic = first_diagnostic(result.stderr)
        msg = diagnostic or f"cargo rustdoc exited with status {result.returncode}"
        raise IrUnavailable(msg)

    name = manifest.lib_name if manifest.has_lib else (manifest.bin_names or [None])[0]
    json_path = target_dir(manifest, toolchain) / "doc" / f"{to_import_name(name or '')}.json"
    if not json_path.is_file():
        msg = f"cargo rustdoc produced no IR at {json_path}"
        raise IrUnavailable(msg)
    return json_path
