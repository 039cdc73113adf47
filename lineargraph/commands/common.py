"""Shared helpers for CLI command modules."""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any

import yaml

from lineargraph.config import LinearApiConfig, LinearGraphConfig, load_effective_config
from lineargraph.dot import to_dot
from lineargraph.fetcher import FetchResult
from lineargraph.models import Graph, Issue
from lineargraph.render import validate_output_target
from lineargraph.services.command_runtime import CommandRuntime

logger = logging.getLogger(__name__)

ALIAS_TO_CANONICAL = {
    "deps": "graph",
    "scan-snapshot": "scan",
}

RENDER_FLAGS = ("svg", "png")


def normalize_command(name: str) -> str:
    return ALIAS_TO_CANONICAL.get(name, name)


def load_yaml_dict(path: str | None) -> dict | None:
    if not path:
        return None
    data = yaml.safe_load(Path(path).read_text())
    if data is None:
        return None
    if not isinstance(data, dict):
        raise ValueError(f"YAML at {path} must decode to a mapping")
    return data


def graph_overrides(args: argparse.Namespace) -> dict[str, Any]:
    flags = {
        "include_completed": getattr(args, "completed", None),
        "include_canceled": getattr(args, "cancelled", None),
        "include_duplicates": getattr(args, "duplicates", None),
        "cluster_by": getattr(args, "cluster_by", None),
        "hide_external": getattr(args, "hide_external", None),
        "censor_content": getattr(args, "censor", None),
        "issue_url_template": getattr(args, "issue_url_template", None),
    }
    graph = {key: value for key, value in flags.items() if value is not None}
    return {"graph": graph} if graph else {}


def load_config(args: argparse.Namespace) -> LinearGraphConfig:
    return load_effective_config(
        repo_path=args.repo_path,
        org_defaults=load_yaml_dict(args.org_config),
        system_defaults=load_yaml_dict(args.system_config),
        runtime_override=load_yaml_dict(args.runtime_override),
        cli_override=graph_overrides(args),
    )


def resolve_api_key(linear_cfg: LinearApiConfig) -> str:
    api_key = os.environ.get(linear_cfg.api_key_env, "").strip()
    if not api_key:
        raise ValueError(f"Set {linear_cfg.api_key_env} to a Linear API key")
    return api_key


def render_targets(args: argparse.Namespace) -> list[tuple[str, Path]]:
    """Requested (format, path) pairs, validated before any fetching or rendering."""
    targets: list[tuple[str, Path]] = []
    for fmt in RENDER_FLAGS:
        path = getattr(args, fmt, None)
        if path:
            targets.append((fmt, validate_output_target(path, fmt)))
    return targets


def write_snapshot(path: str | Path, result: FetchResult) -> None:
    payload = {
        "projects": result.projects,
        "issues": [issue.model_dump(mode="json") for issue in result.issues],
    }
    Path(path).write_text(json.dumps(payload, indent=2))
    logger.info("Wrote issue snapshot to %s", path)


def load_snapshot(path: str | Path) -> FetchResult:
    raw = json.loads(Path(path).read_text())
    if not isinstance(raw, dict) or not isinstance(raw.get("issues"), list):
        raise ValueError("Snapshot must be a JSON object with an 'issues' array")
    projects = raw.get("projects") or {}
    if not isinstance(projects, dict):
        raise ValueError("Snapshot 'projects' must map project ids to names")
    issues = [Issue.model_validate(item) for item in raw["issues"]]
    return FetchResult(issues=issues, projects={str(k): str(v) for k, v in projects.items()})


def emit_graph(
    args: argparse.Namespace,
    graph: Graph,
    config: LinearGraphConfig,
    *,
    runtime: CommandRuntime,
    targets: list[tuple[str, Path]],
) -> None:
    dot_text = to_dot(graph)
    if args.output:
        Path(args.output).write_text(dot_text)
        logger.info("Wrote DOT graph to %s", args.output)
    elif not targets:
        sys.stdout.write(dot_text)

    for fmt, path in targets:
        runtime.render(dot_text, fmt, path, engine=config.render.engine)


def add_common_config_flags(cmd: argparse.ArgumentParser) -> None:
    cmd.add_argument("--repo-path", default=".", help="Directory holding an optional .lineargraph.yaml")
    cmd.add_argument("--org-config", help="Optional org defaults YAML")
    cmd.add_argument("--system-config", help="Optional system defaults YAML")
    cmd.add_argument("--runtime-override", help="Optional runtime override YAML")


def add_graph_flags(cmd: argparse.ArgumentParser) -> None:
    cmd.add_argument("--completed", action=argparse.BooleanOptionalAction, default=None, help="Include completed issues")
    cmd.add_argument(
        "--cancelled",
        "--canceled",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Include cancelled issues",
    )
    cmd.add_argument(
        "--duplicates",
        "--dupes",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Include duplicate-of relations",
    )
    cmd.add_argument(
        "--cluster-by",
        choices=["none", "cycle", "project"],
        default=None,
        help="Cluster issues into subgraphs by cycle or project",
    )
    cmd.add_argument(
        "--cluster-cycles",
        "--cycles",
        dest="cluster_by",
        action="store_const",
        const="cycle",
        help="Shorthand for --cluster-by cycle",
    )
    cmd.add_argument(
        "--hide-external",
        "--noext",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Hide issues external to the specified project(s), even if there are dependencies on them",
    )
    cmd.add_argument(
        "--censor",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Replace issue titles and descriptions with placeholders",
    )
    cmd.add_argument("--issue-url-template", help="Node URL template, e.g. https://linear.app/acme/issue/{identifier}")


def add_output_flags(cmd: argparse.ArgumentParser) -> None:
    cmd.add_argument("--output", help="Write DOT text to this file (default: stdout)")
    cmd.add_argument("--svg", help="Render an SVG image to the file specified")
    cmd.add_argument("--png", help="Render a PNG image to the file specified")
