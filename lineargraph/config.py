"""Configuration models and loading for lineargraph."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from lineargraph.models import ClusterBy


class GraphConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    include_completed: bool = False
    include_canceled: bool = False
    include_duplicates: bool = False
    cluster_by: ClusterBy = ClusterBy.NONE
    hide_external: bool = False
    censor_content: bool = False
    issue_url_template: str = "https://linear.app/issue/{identifier}"
    graph_attrs: dict[str, str] = Field(default_factory=lambda: {"overlap": "false", "ranksep": "2"})
    cluster_attrs: dict[str, str] = Field(
        default_factory=lambda: {
            "labeljust": "l",
            "fontsize": "20",
            "fontcolor": "green",
            "penwidth": "2",
            "pencolor": "green",
        }
    )

    @field_validator("issue_url_template")
    @classmethod
    def check_url_template(cls, value: str) -> str:
        try:
            value.format(identifier="ENG-1")
        except (KeyError, IndexError, ValueError) as exc:
            raise ValueError(f"issue_url_template may only reference {{identifier}}: {exc!r}") from exc
        return value

    @property
    def clustering(self) -> bool:
        return self.cluster_by != ClusterBy.NONE


class LinearApiConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    endpoint: str = "https://api.linear.app/graphql"
    api_key_env: str = "LINEAR_API_KEY"
    timeout_seconds: float = 30.0
    page_size: int = Field(default=50, ge=1, le=250)


class RenderConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    engine: str = "dot"


class LinearGraphConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    graph: GraphConfig = Field(default_factory=GraphConfig)
    linear: LinearApiConfig = Field(default_factory=LinearApiConfig)
    render: RenderConfig = Field(default_factory=RenderConfig)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    data = yaml.safe_load(path.read_text())
    return data or {}


def load_effective_config(
    repo_path: str | Path,
    org_defaults: dict[str, Any] | None = None,
    system_defaults: dict[str, Any] | None = None,
    runtime_override: dict[str, Any] | None = None,
    cli_override: dict[str, Any] | None = None,
) -> LinearGraphConfig:
    """Load config with precedence cli flags > runtime > repo .lineargraph.yaml > org > system."""
    repo = Path(repo_path)
    repo_config = _load_yaml(repo / ".lineargraph.yaml")

    merged: dict[str, Any] = {}
    if system_defaults:
        merged = _deep_merge(merged, system_defaults)
    if org_defaults:
        merged = _deep_merge(merged, org_defaults)
    if repo_config:
        merged = _deep_merge(merged, repo_config)
    if runtime_override:
        merged = _deep_merge(merged, runtime_override)
    if cli_override:
        merged = _deep_merge(merged, cli_override)

    return LinearGraphConfig.model_validate(merged)
