"""Multi-project issue fetching and merging."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from lineargraph.connectors.base import IssueSourceConnector
from lineargraph.connectors.linear_api import LinearTransportError
from lineargraph.models import Issue, Project

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 50


class AmbiguousProjectError(RuntimeError):
    def __init__(self, scope: str, candidates: list[str] | None = None, reason: str | None = None) -> None:
        self.scope = scope
        self.candidates = list(candidates or [])
        message = reason or f"Couldn't find a unique project matching '{scope}' (found {len(self.candidates)})"
        if self.candidates:
            message += ": " + ", ".join(self.candidates)
        super().__init__(message)


@dataclass
class FetchResult:
    issues: list[Issue]
    projects: dict[str, str]
    pages: dict[str, int] = field(default_factory=dict)
    incomplete_projects: list[str] = field(default_factory=list)


def resolve_project(source: IssueSourceConnector, scope: str) -> Project:
    try:
        projects = source.list_projects_matching(scope)
    except LinearTransportError as exc:
        raise AmbiguousProjectError(scope, reason=f"Project lookup for '{scope}' failed: {exc}") from exc

    if len(projects) != 1:
        logger.warning("Found %s projects matching '%s'", len(projects), scope)
        for project in projects:
            logger.warning("  %s", project.name)
        raise AmbiguousProjectError(scope, [project.name for project in projects])
    return projects[0]


def fetch_project_issues(
    source: IssueSourceConnector,
    project_id: str,
    *,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> tuple[list[Issue], int, bool]:
    """Page through a project's issues in cursor order.

    Returns ``(issues, pages, complete)``. A transport failure stops paging and
    keeps whatever was already fetched, with ``complete`` set to False.
    """
    issues: list[Issue] = []
    cursor: str | None = None
    page = 1
    while True:
        logger.info("Issue query page %s %s ...", page, f"after {cursor}" if cursor else "at start")
        try:
            page_issues, page_info = source.list_issues_page(project_id, cursor, page_size=page_size)
        except LinearTransportError as exc:
            logger.warning(
                "Stopping pagination for project %s at page %s: %s (keeping %s issue(s))",
                project_id,
                page,
                exc,
                len(issues),
            )
            return issues, page - 1, False

        for issue in page_issues:
            if issue.project_id != project_id:
                issue = issue.model_copy(update={"project_id": project_id})
            issues.append(issue)
        logger.info(
            "  Got %s new issue(s); total now %s; has_next_page=%s",
            len(page_issues),
            len(issues),
            page_info.has_next_page,
        )
        if not page_info.has_next_page:
            return issues, page, True
        if not page_info.end_cursor or page_info.end_cursor == cursor:
            logger.warning(
                "Stopping pagination for project %s at page %s: next page reported without a new cursor (keeping %s issue(s))",
                project_id,
                page,
                len(issues),
            )
            return issues, page, False
        cursor = page_info.end_cursor
        page += 1


def merge_issues(merged: dict[str, Issue], incoming: list[Issue]) -> None:
    """Merge ``incoming`` into ``merged`` keyed by identifier.

    A record with a populated children list replaces one without; otherwise the
    first-seen record is kept.
    """
    for issue in incoming:
        existing = merged.get(issue.identifier)
        if existing is None:
            merged[issue.identifier] = issue
            continue
        if issue.has_children and not existing.has_children:
            logger.debug("Replacing shallower record for %s", issue.identifier)
            merged[issue.identifier] = issue


def fetch_all(
    source: IssueSourceConnector,
    scopes: list[str],
    *,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> FetchResult:
    if not scopes:
        raise ValueError("fetch_all() called with no project names")

    merged: dict[str, Issue] = {}
    projects: dict[str, str] = {}
    pages: dict[str, int] = {}
    incomplete: list[str] = []

    for scope in scopes:
        project = resolve_project(source, scope)
        logger.info("Found project '%s' with id %s", project.name, project.id)
        projects[project.id] = project.name
        project_issues, page_count, complete = fetch_project_issues(source, project.id, page_size=page_size)
        pages[project.id] = page_count
        if not complete:
            incomplete.append(project.id)
        merge_issues(merged, project_issues)

    logger.info("Fetched %s unique issue(s) across %s project(s)", len(merged), len(projects))
    return FetchResult(issues=list(merged.values()), projects=projects, pages=pages, incomplete_projects=incomplete)
