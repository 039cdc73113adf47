"""Connector interface for issue sources."""

from __future__ import annotations

from typing import Protocol

from lineargraph.models import Issue, PageInfo, Project


class IssueSourceConnector(Protocol):
    def list_projects_matching(self, substring: str) -> list[Project]: ...

    def list_issues_page(
        self,
        project_id: str,
        cursor: str | None = None,
        *,
        page_size: int = 50,
    ) -> tuple[list[Issue], PageInfo]: ...
