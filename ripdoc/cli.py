"""Command line entry point for rendering crate skeletons."""

import argparse
import logging
import sys
from collections.abc import Sequence

from ripdoc.errors import RipdocError
from ripdoc.run_pipeline import run_pipeline

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    ap = argparse.ArgumentParser(
        prog="ripdoc",
        description=(
            "Render a crate's public API as a Rust skeleton or Markdown outline "
            "from rustdoc JSON."
        ),
    )
    ap.add_argument(
        "target",
        nargs="?",
        help=(
            "Crate name, package directory, .rs file or rustdoc .json file, "
            "optionally suffixed with @version and ::path (default: .)"
        ),
    )
    ap.add_argument(
        "--raw-json",
        action="store_true",
        help="Print the rustdoc JSON document instead of rendering it",
    )
    ap.add_argument(
        "--format",
        choices=["markdown", "rust"],
        help="Output format (default from config: markdown)",
    )
    ap.add_argument("-s", "--search", metavar="QUERY", help="Only render items matching QUERY")
    ap.add_argument(
        "-S",
        "--search-spec",
        metavar="DOMAINS",
        help="Comma separated search domains: name, doc, signature, path",
    )
    ap.add_argument(
        "-c",
        "--case-sensitive",
        action="store_true",
        help="Match the search query case sensitively",
    )
    ap.add_argument(
        "-d",
        "--direct-match-only",
        action="store_true",
        help="Do not expand matched containers to show all their members",
    )
    ap.add_argument(
        "-l",
        "--list",
        action="store_true",
        help="Print a flat `kind path` catalog instead of rendering",
    )
    ap.add_argument("-p", "--private", action="store_true", help="Include private items")
    ap.add_argument(
        "-i",
        "--auto-impls",
        action="store_true",
        help="Include auto trait and blanket impls",
    )
    ap.add_argument(
        "-f",
        "--features",
        action="append",
        metavar="FEATURES",
        help="Features to enable (comma or space separated, repeatable)",
    )
    ap.add_argument(
        "-n",
        "--no-default-features",
        action="store_true",
        help="Do not enable the crate's default features",
    )
    ap.add_argument("-a", "--all-features", action="store_true", help="Enable every feature")
    ap.add_argument("-v", "--verbose", action="store_true", help="Log debug output to stderr")
    ap.add_argument("--config", help="Path to configuration file")
    return ap


def main(argv: Sequence[str] | None = None) -> int:
    """Run ripdoc and return its exit status."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        return run_pipeline(args)
    except RipdocError as e:
        logger.debug("Aborting with %s", type(e).__name__)
        print(f"error: {e}", file=sys.stderr)
        return e.exit_code


if __name__ == "__main__":
    raise SystemExit(main())
