"""Logic for loading a rustdoc JSON document from disk."""

import json
from pathlib import Path
from typing import Any

from ripdoc.errors import IrUnavailable, UnsupportedSchema


def load_rustdoc_json(path: Path) -> dict[str, Any]:
    """Load and parse a rustdoc JSON file."""
    try:
        raw = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        msg = f"{path} is not UTF-8 encoded: {e}"
        raise UnsupportedSchema(msg) from e
    except OSError as e:
        msg = f"cannot read {path}: {e}"
        raise IrUnavailable(msg) from e
    try:
        doc = json.loads(raw)
    except json.JSONDecodeError as e:
        msg = f"{path} is not valid JSON: {e}"
        raise UnsupportedSchema(msg) from e
    if not isinstance(doc, dict):
        msg = f"{path} does not hold a rustdoc JSON object"
        raise UnsupportedSchema(msg)
    return doc
