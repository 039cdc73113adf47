"""Image rendering of DOT text through the graphviz library."""

from __future__ import annotations

import logging
from pathlib import Path

import graphviz

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = ("svg", "png")


class OutputTargetMismatchError(ValueError):
    def __init__(self, path: str | Path, fmt: str) -> None:
        super().__init__(f"Output path {path} does not match render format '{fmt}' (expected a .{fmt} file)")
        self.path = Path(path)
        self.fmt = fmt


class RenderError(RuntimeError):
    def __init__(self, message: str, *, recovery_path: Path, returncode: int | None = None) -> None:
        super().__init__(message)
        self.recovery_path = recovery_path
        self.returncode = returncode


def validate_output_target(path: str | Path, fmt: str) -> Path:
    if fmt not in SUPPORTED_FORMATS:
        raise ValueError(f"Unsupported render format '{fmt}'; expected one of {', '.join(SUPPORTED_FORMATS)}")
    target = Path(path)
    if target.suffix.lower() != f".{fmt}":
        raise OutputTargetMismatchError(target, fmt)
    return target


def recovery_path_for(out_path: str | Path) -> Path:
    target = Path(out_path)
    return target.with_name(f"{target.name}.dot")


def render_dot(dot_text: str, fmt: str, out_path: str | Path, *, engine: str = "dot") -> Path:
    """Render DOT text to ``out_path`` with a graphviz layout engine.

    On failure the unrendered DOT text is written next to the target and a
    RenderError naming that file is raised.
    """
    target = validate_output_target(out_path, fmt)
    source = graphviz.Source(dot_text, format=fmt, engine=engine)
    logger.info("Rendering %s with graphviz engine %s", target, engine)
    try:
        image = source.pipe(quiet=True)
    except graphviz.ExecutableNotFound as exc:
        recovery = _write_recovery(dot_text, target)
        raise RenderError(f"Graphviz engine not found: {exc}; graph saved to {recovery}", recovery_path=recovery) from exc
    except graphviz.CalledProcessError as exc:
        recovery = _write_recovery(dot_text, target)
        raise RenderError(
            f"{engine} exited with status {exc.returncode}: {_stderr_text(exc.stderr)}; graph saved to {recovery}",
            recovery_path=recovery,
            returncode=exc.returncode,
        ) from exc

    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(image)
    logger.info("Wrote %s", target)
    return target


def _stderr_text(stderr: bytes | str | None) -> str:
    if stderr is None:
        return ""
    if isinstance(stderr, bytes):
        stderr = stderr.decode("utf-8", errors="replace")
    return stderr.strip()


def _write_recovery(dot_text: str, target: Path) -> Path:
    recovery = recovery_path_for(target)
    recovery.parent.mkdir(parents=True, exist_ok=True)
    recovery.write_text(dot_text, encoding="utf-8")
    logger.error("Render failed; wrote unrendered graph to %s", recovery)
    return recovery
