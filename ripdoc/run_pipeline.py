"""Orchestration of decode, filter, search and render for one target."""

import argparse
import json
import logging
import sys
from dataclasses import dataclass, field, replace
from typing import Any

from ripdoc.build_graph import build_graph
from ripdoc.decode_ir import decode_ir
from ripdoc.errors import InvalidConfiguration
from ripdoc.feature_set import resolve_features
from ripdoc.filter_engine import FilterOptions, is_root_only, project, restrict_to_path
from ripdoc.highlight_matches import highlight_matches
from ripdoc.item_graph import ItemGraph
from ripdoc.load_config import DEFAULT_CONFIG, load_config
from ripdoc.path_resolver import PathResolver
from ripdoc.render_listing import listing_entries, render_listing
from ripdoc.render_markdown import render_markdown
from ripdoc.render_skeleton import render_skeleton
from ripdoc.resolve_target import load_target_ir, resolve_target
from ripdoc.search import (
    SearchDomain,
    SearchIndex,
    SearchOptions,
    Selection,
    build_selection,
    parse_domains,
)
from ripdoc.target_spec import parse_target

logger = logging.getLogger(__name__)

EMPTY_QUERY_MESSAGE = "Search query is empty; nothing to do."
NO_ITEMS_MESSAGE = "No items found."


@dataclass
class PipelineOptions:
    """Everything that shapes one render, after flags and config are merged."""

    render_format: str = "markdown"
    query: str | None = None
    domains: SearchDomain = SearchDomain.DEFAULT
    case_sensitive: bool = False
    direct_match_only: bool = False
    list_items: bool = False
    raw_json: bool = False
    include_private: bool = False
    include_auto_impls: bool = False
    features: list[str] = field(default_factory=list)
    no_default_features: bool = False
    all_features: bool = False
    path_filter: tuple[str, ...] = ()
    derive_traits: list[str] = field(
        default_factory=lambda: list(DEFAULT_CONFIG["render"]["derive_traits"])
    )
    min_format_version: int = DEFAULT_CONFIG["ir"]["min_format_version"]
    max_format_version: int = DEFAULT_CONFIG["ir"]["max_format_version"]

    @property
    def is_search(self) -> bool:
        return self.query is not None


def validate_options(options: PipelineOptions) -> None:
    """Reject flag combinations that have no meaning together."""
    if options.raw_json and options.list_items:
        msg = "--raw-json cannot be combined with --list"
        raise InvalidConfiguration(msg)
    if options.raw_json and options.is_search:
        msg = "--raw-json cannot be combined with --search"
        raise InvalidConfiguration(msg)
    if options.list_items and options.render_format == "rust":
        msg = "--list cannot be combined with raw Rust output (--format rust)"
        raise InvalidConfiguration(msg)


def options_from_args(args: argparse.Namespace, config: dict[str, Any]) -> PipelineOptions:
    """Merge parsed command line flags over configuration values."""
    search_cfg = config["search"]
    domains = parse_domains(args.search_spec or search_cfg["domains"])
    features = [f for raw in args.features or [] for f in raw.replace(",", " ").split()]
    return PipelineOptions(
        render_format=args.format or config["render"]["format"],
        query=args.search,
        domains=domains,
        case_sensitive=args.case_sensitive or bool(search_cfg["case_sensitive"]),
        direct_match_only=args.direct_match_only,
        list_items=args.list,
        raw_json=args.raw_json,
        include_private=args.private,
        include_auto_impls=args.auto_impls,
        features=features,
        no_default_features=args.no_default_features,
        all_features=args.all_features,
        derive_traits=list(config["render"]["derive_traits"]),
        min_format_version=config["ir"]["min_format_version"],
        max_format_version=config["ir"]["max_format_version"],
    )


def render_document(
    doc: dict[str, Any],
    options: PipelineOptions,
    manifest_features: dict[str, list[str]] | None = None,
) -> str:
    """Turn one IR document into the requested output text."""
    validate_options(options)
    if options.raw_json:
        return json.dumps(doc, indent=2) + "\n"
    if options.is_search and not (options.query or "").strip():
        return EMPTY_QUERY_MESSAGE + "\n"

    decoded = decode_ir(
        doc,
        min_version=options.min_format_version,
        max_version=options.max_format_version,
    )
    graph = build_graph(decoded, options.derive_traits)
    logger.info("Decode report: %s", graph.report.summary())
    resolver = PathResolver(graph)

    features = resolve_features(
        options.features,
        manifest_features,
        no_default_features=options.no_default_features,
        all_features=options.all_features,
    )
    filter_options = FilterOptions(
        include_private=options.include_private,
        include_auto_impls=options.include_auto_impls,
        features=features,
    )
    projection = project(graph, filter_options, resolver)
    full_render = not options.is_search and not options.list_items
    if full_render and not options.include_private and is_root_only(graph, projection):
        # binary crates have no public API; show their private items instead
        logger.info("No public items in %s, including private items", graph.crate_name)
        filter_options = replace(filter_options, include_private=True)
        projection = project(graph, filter_options, resolver)
    if options.path_filter:
        projection = frozenset(
            restrict_to_path(graph, projection, options.path_filter, resolver)
        )

    selection = None
    if options.is_search:
        selection = _search(graph, projection, resolver, options)
        if not selection.matches:
            return f'No matches found for "{options.query.strip()}".\n'

    if options.list_items:
        entries = listing_entries(graph, projection, resolver, selection)
        return render_listing(entries) or NO_ITEMS_MESSAGE + "\n"

    source = render_skeleton(
        graph,
        projection,
        selection,
        include_private=filter_options.include_private,
        show_reexports=not options.path_filter,
    )
    if options.render_format == "rust":
        return source
    markdown = render_markdown(source)
    return markdown + "\n" if markdown else NO_ITEMS_MESSAGE + "\n"


def _search(
    graph: ItemGraph,
    projection: frozenset[str],
    resolver: PathResolver,
    options: PipelineOptions,
) -> Selection:
    index = SearchIndex(graph, projection, resolver)
    results = index.search(
        SearchOptions(
            query=options.query or "",
            domains=options.domains,
            case_sensitive=options.case_sensitive,
        )
    )
    return build_selection(
        graph, projection, results, expand_containers=not options.direct_match_only
    )


def run_pipeline(args: argparse.Namespace) -> int:
    """Resolve the target, render it and write the result to stdout."""
    config = load_config(args.config)
    options = options_from_args(args, config)
    validate_options(options)

    spec = parse_target(args.target)
    resolved = resolve_target(spec, config)
    options.path_filter = resolved.filter
    manifest = resolved.manifest
    doc = load_target_ir(
        resolved,
        config,
        features=options.features,
        no_default_features=options.no_default_features,
        all_features=options.all_features,
        include_private=options.include_private
        or (manifest is not None and not manifest.has_lib),
    )

    output = render_document(doc, options, manifest.features if manifest else None)
    if options.is_search and sys.stdout.isatty():
        output = highlight_matches(output, options.query or "", options.case_sensitive)
    sys.stdout.write(output)
    return 0
