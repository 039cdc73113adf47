"""Text helpers shared by node styling and DOT output."""

from __future__ import annotations

import re

WRAP_WIDTH = 25

_WORD_RE = re.compile(r"\S+")


def wrap(text: str, width: int = WRAP_WIDTH) -> str:
    """Greedily wrap ``text`` so lines stay within ``width`` where possible.

    Breaks replace the whitespace run between two words with a newline and
    never fall inside a word; a single word longer than ``width`` stays on
    its own line. Existing newlines are kept.
    """
    wrapped_lines: list[str] = []
    for raw_line in text.split("\n"):
        current: str | None = None
        pos = 0
        for match in _WORD_RE.finditer(raw_line):
            gap = raw_line[pos : match.start()]
            word = match.group(0)
            pos = match.end()
            if current is None:
                current = gap + word
                continue
            candidate = current + gap + word
            if len(candidate) > width:
                wrapped_lines.append(current)
                current = word
            else:
                current = candidate
        if current is None:
            wrapped_lines.append(raw_line)
        else:
            wrapped_lines.append(current + raw_line[pos:])
    return "\n".join(wrapped_lines)


def encode(text: str) -> str:
    """Escape the XML entities graphviz tooltips choke on (``&``, ``<``, ``>``)."""
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")
