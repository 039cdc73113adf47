"""CLI parser construction."""

from __future__ import annotations

import argparse

from lineargraph.commands.common import add_common_config_flags, add_graph_flags, add_output_flags
from lineargraph.logging_utils import LOG_LEVELS


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="lineargraph", description="CLI for analysing issues from linear.app")
    parser.add_argument(
        "--log-level",
        default="INFO",
        type=str.upper,
        choices=LOG_LEVELS,
        help="Logging level",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    graph = sub.add_parser("graph", aliases=["deps"], help="Generate a dependency graph for Linear project(s)")
    graph.add_argument(
        "--project",
        nargs="+",
        required=True,
        help="Scope to the given project(s); each name must match exactly one project",
    )
    graph.add_argument("--save-input-json", help="Write the fetched issues to a JSON snapshot")
    add_graph_flags(graph)
    add_output_flags(graph)
    add_common_config_flags(graph)

    scan = sub.add_parser("scan", aliases=["scan-snapshot"], help="Build a dependency graph from a saved JSON snapshot")
    scan.add_argument("--input", required=True, help="Path to a snapshot written by graph --save-input-json")
    add_graph_flags(scan)
    add_output_flags(scan)
    add_common_config_flags(scan)

    return parser
