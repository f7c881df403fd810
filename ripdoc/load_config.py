"""Logic for loading, merging and validating configuration files."""

import copy
import logging
from pathlib import Path
from typing import Any

import yaml

from ripdoc.deep_merge import deep_merge
from ripdoc.errors import InvalidConfiguration

logger = logging.getLogger(__name__)

DEFAULT_CONFIG: dict[str, Any] = {
    "ir": {
        "min_format_version": 30,
        "max_format_version": 60,
    },
    "search": {
        "domains": ["name", "doc", "signature"],
        "case_sensitive": False,
    },
    "render": {
        "format": "markdown",
        "derive_traits": [
            "Clone",
            "Copy",
            "Debug",
            "Default",
            "Display",
            "Eq",
            "Error",
            "FromStr",
            "Hash",
            "Ord",
            "PartialEq",
            "PartialOrd",
            "Send",
            "StructuralPartialEq",
            "Sync",
            "Serialize",
            "Deserialize",
        ],
    },
    "toolchain": {
        "cargo": "cargo",
        "channel": "nightly",
        "target_dir": "target",
    },
}

RENDER_FORMATS = {"markdown", "rust"}


def load_config(path: str | None = None) -> dict[str, Any]:
    """Load configuration from a YAML file and merge it with defaults."""
    config = copy.deepcopy(DEFAULT_CONFIG)
    if path:
        p = Path(path)
        if p.exists():
            try:
                user_config = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
            except yaml.YAMLError as e:
                msg = f"cannot parse config file {p}: {e}"
                raise InvalidConfiguration(msg) from e
            if not isinstance(user_config, dict):
                msg = f"config file {p} must contain a mapping"
                raise InvalidConfiguration(msg)
            config = deep_merge(config, user_config)
        else:
            logger.info("Config file %s not found, using defaults", p)
    validate_config(config)
    return config


def validate_config(config: dict[str, Any]) -> None:
    """Reject values the pipeline cannot work with."""
    ir = config.get("ir") or {}
    lo, hi = ir.get("min_format_version"), ir.get("max_format_version")
    if not isinstance(lo, int) or not isinstance(hi, int) or lo > hi:
        msg = f"invalid ir format version window: {lo!r}..{hi!r}"
        raise InvalidConfiguration(msg)

    fmt = (config.get("render") or {}).get("format")
    if fmt not in RENDER_FORMATS:
        msg = f"render.format must be one of {sorted(RENDER_FORMATS)}, got {fmt!r}"
        raise InvalidConfiguration(msg)

    traits = (config.get("render") or {}).get("derive_traits")
    if not isinstance(traits, list) or not all(isinstance(t, str) for t in traits):
        msg = "render.derive_traits must be a list of trait names"
        raise InvalidConfiguration(msg)

    domains = (config.get("search") or {}).get("domains")
    if not isinstance(domains, list | str):
        msg = "search.domains must be a list or a comma separated string"
        raise InvalidConfiguration(msg)
