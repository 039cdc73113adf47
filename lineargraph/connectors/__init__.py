"""Connector interfaces and implementations."""

from .linear_api import LinearApiClient, LinearSourceConnector, LinearTransportError

__all__ = ["LinearApiClient", "LinearSourceConnector", "LinearTransportError"]
