"""Fetch-and-graph command."""

from __future__ import annotations

import argparse
import logging

from lineargraph.commands.common import (
    CommandRuntime,
    emit_graph,
    load_config,
    render_targets,
    resolve_api_key,
    write_snapshot,
)
from lineargraph.fetcher import fetch_all
from lineargraph.graph_builder import build_graph

logger = logging.getLogger(__name__)


def run(args: argparse.Namespace, *, runtime: CommandRuntime) -> int:
    config = load_config(args)
    targets = render_targets(args)

    connector = runtime.source_connector_cls(
        api_key=resolve_api_key(config.linear),
        endpoint=config.linear.endpoint,
        timeout_seconds=config.linear.timeout_seconds,
    )
    result = fetch_all(connector, args.project, page_size=config.linear.page_size)
    if result.incomplete_projects:
        logger.warning("Graph is partial; pagination stopped early for project(s): %s", ", ".join(result.incomplete_projects))
    if args.save_input_json:
        write_snapshot(args.save_input_json, result)

    graph = build_graph(result.issues, result.projects, config.graph)
    emit_graph(args, graph, config, runtime=runtime, targets=targets)
    summary = graph.summary()
    logger.info("Graph complete: nodes=%s edges=%s clusters=%s", summary["nodes"], summary["edges"], summary["clusters"])
    return 0
