"""Node and edge attribute derivation for the dependency graph."""

from __future__ import annotations

import re
from types import MappingProxyType

from lineargraph.config import GraphConfig
from lineargraph.models import Issue
from lineargraph.text import encode, wrap

SIZES = MappingProxyType(
    {
        0: (0.25, 10.0),
        1: (0.5, 12.0),
        2: (0.75, 14.0),
        3: (1.0, 18.0),
        5: (1.25, 22.0),
        8: (1.5, 26.0),
    }
)

PRIORITIES = MappingProxyType(
    {
        0: ("#555555", "No priority"),
        1: ("red", "Urgent"),
        2: ("orange", "High"),
        3: ("yellow", "Medium"),
        4: ("blue", "Low"),
    }
)

PRIORITY_PENWIDTH = "5"
EPIC_SHAPE = "hexagon"
NO_STATE_SHAPE = "doubleoctagon"
EPIC_SIZE_ESTIMATE = 5
DARK_THRESHOLD = 128.0

HAS_PARENT = "has parent"
BLOCKS = "blocks"
DUPLICATE = "duplicate"
DUPLICATE_OF = "duplicate of"

EDGE_STYLES = MappingProxyType(
    {
        HAS_PARENT: {"color": "blue", "fontcolor": "blue"},
        DUPLICATE_OF: {"color": "red", "fontcolor": "red"},
    }
)

CENSORED_TITLE = "Issue name hidden due to confidentiality"
CENSORED_DESCRIPTION = "Issue description hidden due to confidentiality"

_EPIC_WORD_RE = re.compile(r"\bepic\b", re.IGNORECASE)
_HEX_RE = re.compile(r"^#?([0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")


def _format_number(value: int | float) -> str:
    return f"{value:g}"


def issue_info(issue: Issue) -> str:
    assignee = issue.assignee or "??"
    cycle = str(issue.cycle.number) if issue.cycle else "-"
    estimate = _format_number(issue.estimate) if issue.estimate is not None else "?"
    return f"[{assignee} / C{cycle} / E{estimate}]"


def node_label(issue: Issue) -> str:
    return f"{issue.identifier} {issue_info(issue)}\n{wrap(issue.title)}"


def priority_name(priority: int | None) -> str:
    if priority is None or priority not in PRIORITIES:
        return "unknown"
    return PRIORITIES[priority][1]


def node_tooltip(issue: Issue, projects: dict[str, str]) -> str:
    state = issue.state.name if issue.state else "Unknown state"
    cycle = str(issue.cycle.number) if issue.cycle else "-"
    estimate = _format_number(issue.estimate) if issue.estimate is not None else "?"
    project = projects.get(issue.project_id) or issue.project_id or "-"
    header = (
        f"{state}  Priority: {priority_name(issue.priority)}  Cycle: {cycle}  Estimate: {estimate}\n"
        f"Project: {project}\n\n"
    )
    return header + encode(issue.description or "No description.")


def parse_hex_color(color: str) -> tuple[int, int, int] | None:
    match = _HEX_RE.match(color.strip())
    if not match:
        return None
    digits = match.group(1)
    if len(digits) == 3:
        digits = "".join(ch * 2 for ch in digits)
    return int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16)


def is_dark(color: str) -> bool:
    """YIQ perceived brightness below the darkness threshold; unparseable colors count as light."""
    rgb = parse_hex_color(color)
    if rgb is None:
        return False
    red, green, blue = rgb
    brightness = (red * 299 + green * 587 + blue * 114) / 1000
    return brightness < DARK_THRESHOLD


def size_for(issue: Issue) -> tuple[float, float] | None:
    estimate = issue.estimate
    if "EPIC" in issue.title:
        estimate = EPIC_SIZE_ESTIMATE
    if estimate is None:
        return None
    return SIZES.get(estimate)


def node_attrs(issue: Issue, projects: dict[str, str], config: GraphConfig) -> dict[str, str]:
    if config.censor_content:
        issue = issue.model_copy(update={"title": CENSORED_TITLE, "description": CENSORED_DESCRIPTION})

    attrs: dict[str, str] = {
        "label": node_label(issue),
        "URL": config.issue_url_template.format(identifier=issue.identifier),
        "tooltip": node_tooltip(issue, projects),
    }

    if issue.state is not None:
        sizes = size_for(issue)
        if sizes:
            width, fontsize = sizes
            attrs["width"] = _format_number(width)
            attrs["fontsize"] = _format_number(fontsize)
        if issue.state.color:
            attrs["fillcolor"] = issue.state.color
            attrs["style"] = "filled"
            if is_dark(issue.state.color):
                attrs["fontcolor"] = "white"
        if _EPIC_WORD_RE.search(issue.title):
            attrs["shape"] = EPIC_SHAPE
    else:
        attrs["shape"] = NO_STATE_SHAPE

    if issue.priority is not None and issue.priority in PRIORITIES:
        attrs["penwidth"] = PRIORITY_PENWIDTH
        attrs["color"] = PRIORITIES[issue.priority][0]
    return attrs


def edge_attrs(label: str) -> dict[str, str]:
    return {"label": label, **EDGE_STYLES.get(label, {})}
