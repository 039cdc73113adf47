"""Typed command runtime dependency container."""

from __future__ import annotations

from dataclasses import dataclass

from lineargraph.services.interfaces import Renderer, SourceConnectorFactory


@dataclass(frozen=True)
class CommandRuntime:
    source_connector_cls: SourceConnectorFactory
    render: Renderer
