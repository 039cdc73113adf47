"""Linear GraphQL connector for project and issue ingestion."""

from __future__ import annotations

import json
import logging
import urllib.error
import urllib.request
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from lineargraph.connectors.base import IssueSourceConnector
from lineargraph.models import Cycle, Issue, IssueRef, IssueState, PageInfo, Project, Relation, StateCategory

logger = logging.getLogger(__name__)

PROJECTS_QUERY = """
query Projects($filter: ProjectFilter) {
  projects(filter: $filter) {
    nodes {
      id
      slugId
      name
      description
    }
  }
}
"""

ISSUES_QUERY = """
query Dependencies($projectId: String!, $first: Int!, $after: String) {
  project(id: $projectId) {
    name
    issues(first: $first, after: $after) {
      nodes {
        identifier
        title
        description
        assignee {
          displayName
        }
        state {
          name
          type
          color
        }
        priority
        estimate
        cycle {
          id
          number
          name
        }
        children {
          nodes {
            identifier
            title
            description
            estimate
            state {
              name
              type
              color
            }
          }
        }
        relations {
          nodes {
            type
            relatedIssue {
              identifier
              title
              description
              state {
                name
                type
                color
              }
            }
          }
        }
      }
      pageInfo {
        hasNextPage
        endCursor
      }
    }
  }
}
"""

_STATE_CATEGORIES = {
    "completed": StateCategory.COMPLETED,
    "canceled": StateCategory.CANCELED,
    "cancelled": StateCategory.CANCELED,
    "started": StateCategory.ACTIVE,
    "unstarted": StateCategory.ACTIVE,
    "backlog": StateCategory.ACTIVE,
    "triage": StateCategory.ACTIVE,
}


class LinearTransportError(RuntimeError):
    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class LinearProject(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    name: str


class LinearUser(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    display_name: str | None = Field(default=None, alias="displayName")


class LinearState(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str
    type: str | None = None
    color: str | None = None


class LinearCycle(BaseModel):
    model_config = ConfigDict(extra="ignore")

    number: int
    id: str | None = None
    name: str | None = None


class LinearIssueRef(BaseModel):
    model_config = ConfigDict(extra="ignore")

    identifier: str
    title: str = ""
    description: str | None = None
    estimate: float | None = None
    state: LinearState | None = None


class LinearRelation(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    type: str
    related_issue: LinearIssueRef = Field(alias="relatedIssue")


class LinearRefConnection(BaseModel):
    model_config = ConfigDict(extra="ignore")

    nodes: list[LinearIssueRef] = Field(default_factory=list)


class LinearRelationConnection(BaseModel):
    model_config = ConfigDict(extra="ignore")

    nodes: list[LinearRelation] = Field(default_factory=list)


class LinearIssue(BaseModel):
    model_config = ConfigDict(extra="ignore")

    identifier: str
    title: str
    description: str | None = None
    assignee: LinearUser | None = None
    state: LinearState | None = None
    priority: int | None = None
    estimate: float | None = None
    cycle: LinearCycle | None = None
    children: LinearRefConnection | None = None
    relations: LinearRelationConnection | None = None


class LinearPageInfo(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    has_next_page: bool = Field(alias="hasNextPage")
    end_cursor: str | None = Field(default=None, alias="endCursor")


class LinearApiClient:
    def __init__(self, endpoint: str, api_key: str, timeout_seconds: float = 30.0) -> None:
        self._endpoint = endpoint
        self._api_key = api_key
        self._timeout_seconds = timeout_seconds

    def query(self, query: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        payload = {"query": query, "variables": variables or {}}
        data = json.dumps(payload).encode("utf-8")
        headers = {"Content-Type": "application/json", "Authorization": self._api_key}
        req = urllib.request.Request(self._endpoint, data=data, headers=headers, method="POST")
        try:
            with urllib.request.urlopen(req, timeout=self._timeout_seconds) as response:
                status = getattr(response, "status", 200)
                raw = response.read().decode("utf-8")
        except urllib.error.HTTPError as exc:
            raise LinearTransportError(f"Linear API returned HTTP {exc.code}", status=exc.code) from exc
        except (urllib.error.URLError, TimeoutError, OSError) as exc:
            raise LinearTransportError(f"Linear API request failed: {exc}") from exc

        if status != 200:
            raise LinearTransportError(f"Linear API returned HTTP {status}", status=status)
        try:
            body = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise LinearTransportError("Linear API returned a non-JSON body", status=status) from exc
        if not isinstance(body, dict):
            raise LinearTransportError("Linear API returned an unexpected payload", status=status)
        return body


class LinearSourceConnector(IssueSourceConnector):
    def __init__(self, api_key: str, endpoint: str = "https://api.linear.app/graphql", *, timeout_seconds: float = 30.0) -> None:
        self.client = LinearApiClient(endpoint=endpoint, api_key=api_key, timeout_seconds=timeout_seconds)

    def list_projects_matching(self, substring: str) -> list[Project]:
        body = self.client.query(PROJECTS_QUERY, {"filter": {"name": {"contains": substring}}})
        nodes = _dig(body, "data", "projects", "nodes")
        if not isinstance(nodes, list):
            logger.error("Response for project filter %r had no data.projects.nodes: %s", substring, body)
            raise LinearTransportError("Couldn't find data.projects.nodes field in response")
        try:
            projects = [LinearProject.model_validate(item) for item in nodes]
        except ValidationError as exc:
            raise LinearTransportError(f"Malformed project list for filter {substring!r}: {exc}") from exc
        return [Project(id=project.id, name=project.name) for project in projects]

    def list_issues_page(
        self,
        project_id: str,
        cursor: str | None = None,
        *,
        page_size: int = 50,
    ) -> tuple[list[Issue], PageInfo]:
        body = self.client.query(ISSUES_QUERY, {"projectId": project_id, "first": page_size, "after": cursor})
        issues_payload = _dig(body, "data", "project", "issues")
        nodes = _dig(issues_payload, "nodes")
        if not isinstance(nodes, list):
            logger.error("Response for project %s had no data.project.issues.nodes: %s", project_id, body)
            raise LinearTransportError("Couldn't find data.project.issues.nodes field in response")
        raw_page_info = _dig(issues_payload, "pageInfo")
        if not isinstance(raw_page_info, dict):
            logger.error("Response for project %s had no data.project.issues.pageInfo: %s", project_id, body)
            raise LinearTransportError("Couldn't find data.project.issues.pageInfo field in response")
        try:
            raw_issues = [LinearIssue.model_validate(item) for item in nodes]
            page_info = LinearPageInfo.model_validate(raw_page_info)
            issues = [_normalize_issue(raw, project_id) for raw in raw_issues]
        except ValidationError as exc:
            raise LinearTransportError(f"Malformed issue page for project {project_id}: {exc}") from exc

        if page_info.has_next_page and not page_info.end_cursor:
            raise LinearTransportError(f"Issue page for project {project_id} has a next page but no endCursor")
        return issues, PageInfo(has_next_page=page_info.has_next_page, end_cursor=page_info.end_cursor)


def _dig(payload: Any, *path: str) -> Any:
    current = payload
    for key in path:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


def _normalize_state(state: LinearState | None) -> IssueState | None:
    if state is None:
        return None
    category = _STATE_CATEGORIES.get((state.type or "").lower(), StateCategory.OTHER)
    return IssueState(name=state.name, category=category, color=state.color)


def _normalize_estimate(value: float | None) -> int | float | None:
    if value is None:
        return None
    if float(value).is_integer():
        return int(value)
    return value


def _normalize_ref(ref: LinearIssueRef) -> IssueRef:
    return IssueRef(
        identifier=ref.identifier,
        title=ref.title,
        description=ref.description,
        estimate=_normalize_estimate(ref.estimate),
        state=_normalize_state(ref.state),
    )


def _normalize_issue(raw: LinearIssue, project_id: str) -> Issue:
    children = None
    if raw.children is not None:
        children = [_normalize_ref(child) for child in raw.children.nodes]
    relations = []
    if raw.relations is not None:
        relations = [
            Relation(type=relation.type, related_issue=_normalize_ref(relation.related_issue))
            for relation in raw.relations.nodes
        ]
    cycle = None
    if raw.cycle is not None:
        cycle = Cycle(number=raw.cycle.number, id=raw.cycle.id, name=raw.cycle.name)
    return Issue(
        identifier=raw.identifier,
        title=raw.title,
        description=raw.description,
        project_id=project_id,
        assignee=raw.assignee.display_name if raw.assignee else None,
        state=_normalize_state(raw.state),
        priority=raw.priority,
        estimate=_normalize_estimate(raw.estimate),
        cycle=cycle,
        children=children,
        relations=relations,
    )
