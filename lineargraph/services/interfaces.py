"""Service interfaces used by command/runtime orchestration."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from lineargraph.connectors.base import IssueSourceConnector


class SourceConnectorFactory(Protocol):
    def __call__(
        self,
        *,
        api_key: str,
        endpoint: str = "https://api.linear.app/graphql",
        timeout_seconds: float = 30.0,
    ) -> IssueSourceConnector: ...


class Renderer(Protocol):
    def __call__(self, dot_text: str, fmt: str, out_path: str | Path, *, engine: str = "dot") -> Path: ...
