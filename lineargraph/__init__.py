"""Dependency graphs of Linear issues rendered through graphviz."""

__version__ = "0.1.0"
