"""Offline snapshot graph command."""

from __future__ import annotations

import argparse
import logging

from lineargraph.commands.common import CommandRuntime, emit_graph, load_config, load_snapshot, render_targets
from lineargraph.graph_builder import build_graph

logger = logging.getLogger(__name__)


def run(args: argparse.Namespace, *, runtime: CommandRuntime) -> int:
    config = load_config(args)
    targets = render_targets(args)
    snapshot = load_snapshot(args.input)
    graph = build_graph(snapshot.issues, snapshot.projects, config.graph)
    emit_graph(args, graph, config, runtime=runtime, targets=targets)
    logger.info("Scan complete: issues=%s nodes=%s", len(snapshot.issues), len(graph.nodes))
    return 0
