"""CLI entrypoint for Linear dependency graphs."""

from __future__ import annotations

import argparse
import logging

import yaml

from lineargraph.commands import graph as graph_cmd
from lineargraph.commands import scan as scan_cmd
from lineargraph.commands.common import normalize_command
from lineargraph.commands.parser import build_parser
from lineargraph.connectors.linear_api import LinearSourceConnector
from lineargraph.fetcher import AmbiguousProjectError
from lineargraph.logging_utils import configure_logging
from lineargraph.render import OutputTargetMismatchError, RenderError, render_dot
from lineargraph.services.command_runtime import CommandRuntime

logger = logging.getLogger(__name__)

COMMANDS = {
    "graph": graph_cmd.run,
    "scan": scan_cmd.run,
}


def default_runtime() -> CommandRuntime:
    return CommandRuntime(source_connector_cls=LinearSourceConnector, render=render_dot)


def main(argv: list[str] | None = None, *, runtime: CommandRuntime | None = None) -> int:
    parser = build_parser()
    args: argparse.Namespace = parser.parse_args(argv)
    configure_logging(args.log_level)

    command = COMMANDS.get(normalize_command(args.command))
    if command is None:
        parser.print_help()
        return 1

    try:
        return command(args, runtime=runtime or default_runtime())
    except AmbiguousProjectError as exc:
        logger.error("%s", exc)
    except OutputTargetMismatchError as exc:
        logger.error("%s", exc)
    except RenderError as exc:
        logger.error("%s (unrendered graph: %s)", exc, exc.recovery_path)
    except ValueError as exc:
        logger.error("Invalid configuration: %s", exc)
    except yaml.YAMLError as exc:
        logger.error("Could not parse YAML config: %s", exc)
    except OSError as exc:
        logger.error("Could not read or write %s: %s", exc.filename or "file", exc.strerror or exc)
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
