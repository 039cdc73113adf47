import io
import json
import urllib.error

import pytest

from lineargraph.connectors.linear_api import LinearSourceConnector, LinearTransportError
from lineargraph.fetcher import fetch_project_issues
from lineargraph.models import StateCategory


class _FakeResponse:
    def __init__(self, payload, status: int = 200) -> None:
        self._payload = payload
        self.status = status

    def __enter__(self) -> "_FakeResponse":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        return None

    def read(self) -> bytes:
        if isinstance(self._payload, str):
            return self._payload.encode("utf-8")
        return json.dumps(self._payload).encode("utf-8")


def _issue_page() -> dict:
    return {
        "data": {
            "project": {
                "name": "Platform",
                "issues": {
                    "nodes": [
                        {
                            "identifier": "ENG-1",
                            "title": "Parent",
                            "description": None,
                            "assignee": {"displayName": "Sam"},
                            "state": {"name": "In Progress", "type": "started", "color": "#f2c94c"},
                            "priority": 2,
                            "estimate": 3.0,
                            "cycle": {"id": "c1", "number": 7, "name": None},
                            "children": {
                                "nodes": [
                                    {
                                        "identifier": "ENG-2",
                                        "title": "Child",
                                        "description": "",
                                        "estimate": 0.5,
                                        "state": {"name": "Canceled", "type": "canceled", "color": "#95a2b3"},
                                    }
                                ]
                            },
                            "relations": {
                                "nodes": [
                                    {
                                        "type": "blocks",
                                        "relatedIssue": {"identifier": "OPS-4", "title": "Elsewhere", "description": None},
                                    }
                                ]
                            },
                        },
                        {
                            "identifier": "ENG-3",
                            "title": "Loose",
                            "assignee": None,
                            "state": {"name": "Icebox", "type": "frozen"},
                            "priority": 0,
                            "estimate": None,
                            "cycle": None,
                            "children": {"nodes": []},
                            "relations": {"nodes": []},
                        },
                    ],
                    "pageInfo": {"hasNextPage": True, "endCursor": "cursor-2"},
                },
            }
        }
    }


def test_issue_page_posts_query_and_normalizes(monkeypatch: pytest.MonkeyPatch) -> None:
    captured = {}

    def _fake_urlopen(request, timeout: float):  # noqa: ANN001
        captured["url"] = request.full_url
        captured["timeout"] = timeout
        captured["auth"] = request.get_header("Authorization")
        captured["body"] = json.loads(request.data.decode("utf-8"))
        return _FakeResponse(_issue_page())

    monkeypatch.setattr("urllib.request.urlopen", _fake_urlopen)

    connector = LinearSourceConnector("lin_api_secret", "https://linear.example/graphql", timeout_seconds=4.0)
    issues, page_info = connector.list_issues_page("p1", "cursor-1", page_size=50)

    assert captured["url"] == "https://linear.example/graphql"
    assert captured["timeout"] == 4.0
    assert captured["auth"] == "lin_api_secret"
    assert captured["body"]["variables"] == {"projectId": "p1", "first": 50, "after": "cursor-1"}

    assert page_info.has_next_page is True
    assert page_info.end_cursor == "cursor-2"

    parent, loose = issues
    assert parent.project_id == loose.project_id == "p1"
    assert parent.assignee == "Sam"
    assert parent.estimate == 3 and isinstance(parent.estimate, int)
    assert parent.state.category == StateCategory.ACTIVE
    assert parent.cycle.number == 7
    assert parent.children[0].identifier == "ENG-2"
    assert parent.children[0].estimate == 0.5
    assert parent.children[0].state.category == StateCategory.CANCELED
    assert parent.relations[0].type == "blocks"
    assert parent.relations[0].related_issue.identifier == "OPS-4"
    assert parent.relations[0].related_issue.state is None

    assert loose.children == []
    assert loose.has_children is False
    assert loose.state.category == StateCategory.OTHER
    assert loose.assignee is None


def test_project_lookup_uses_name_filter(monkeypatch: pytest.MonkeyPatch) -> None:
    captured = {}

    def _fake_urlopen(request, timeout: float):  # noqa: ANN001
        captured["body"] = json.loads(request.data.decode("utf-8"))
        return _FakeResponse({"data": {"projects": {"nodes": [{"id": "p1", "name": "Platform", "slugId": "plat"}]}}})

    monkeypatch.setattr("urllib.request.urlopen", _fake_urlopen)

    projects = LinearSourceConnector("key").list_projects_matching("Plat")

    assert captured["body"]["variables"] == {"filter": {"name": {"contains": "Plat"}}}
    assert [(project.id, project.name) for project in projects] == [("p1", "Platform")]


@pytest.mark.parametrize(
    "payload",
    [
        {"errors": [{"message": "Entity not found"}]},
        {"data": {"project": None}},
        {"data": {"project": {"issues": {"pageInfo": {}}}}},
    ],
)
def test_missing_nodes_path_is_a_transport_error(monkeypatch: pytest.MonkeyPatch, payload: dict) -> None:
    monkeypatch.setattr("urllib.request.urlopen", lambda request, timeout: _FakeResponse(payload))

    with pytest.raises(LinearTransportError, match="data.project.issues.nodes"):
        LinearSourceConnector("key").list_issues_page("p1")


def test_http_error_carries_status(monkeypatch: pytest.MonkeyPatch) -> None:
    def _fake_urlopen(request, timeout: float):  # noqa: ANN001
        raise urllib.error.HTTPError(request.full_url, 401, "Unauthorized", {}, io.BytesIO(b""))

    monkeypatch.setattr("urllib.request.urlopen", _fake_urlopen)

    with pytest.raises(LinearTransportError) as excinfo:
        LinearSourceConnector("bad").list_projects_matching("Plat")

    assert excinfo.value.status == 401


def test_non_json_and_non_200_bodies_fail(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("urllib.request.urlopen", lambda request, timeout: _FakeResponse("<html>oops</html>"))
    with pytest.raises(LinearTransportError, match="non-JSON"):
        LinearSourceConnector("key").list_projects_matching("Plat")

    monkeypatch.setattr("urllib.request.urlopen", lambda request, timeout: _FakeResponse({}, status=502))
    with pytest.raises(LinearTransportError) as excinfo:
        LinearSourceConnector("key").list_projects_matching("Plat")
    assert excinfo.value.status == 502


def test_network_failure_is_a_transport_error(monkeypatch: pytest.MonkeyPatch) -> None:
    def _fake_urlopen(request, timeout: float):  # noqa: ANN001
        raise urllib.error.URLError("connection refused")

    monkeypatch.setattr("urllib.request.urlopen", _fake_urlopen)

    with pytest.raises(LinearTransportError, match="request failed"):
        LinearSourceConnector("key").list_issues_page("p1")


def _single_issue_page(page_info: dict | None) -> dict:
    issues = {"nodes": [{"identifier": "ENG-1", "title": "Only"}]}
    if page_info is not None:
        issues["pageInfo"] = page_info
    return {"data": {"project": {"issues": issues}}}


@pytest.mark.parametrize(
    "page_info",
    [
        None,
        {"hasNextPage": True, "endCursor": None},
        {"hasNextPage": True},
        {"endCursor": "cursor-2"},
    ],
)
def test_unusable_page_info_is_a_transport_error(monkeypatch: pytest.MonkeyPatch, page_info: dict | None) -> None:
    monkeypatch.setattr("urllib.request.urlopen", lambda request, timeout: _FakeResponse(_single_issue_page(page_info)))

    with pytest.raises(LinearTransportError):
        LinearSourceConnector("key").list_issues_page("p1")


def test_null_cursor_on_next_page_stops_fetching(monkeypatch: pytest.MonkeyPatch) -> None:
    cursors = []

    def _fake_urlopen(request, timeout: float):  # noqa: ANN001
        cursors.append(json.loads(request.data.decode("utf-8"))["variables"]["after"])
        return _FakeResponse(_single_issue_page({"hasNextPage": True, "endCursor": None}))

    monkeypatch.setattr("urllib.request.urlopen", _fake_urlopen)

    issues, pages, complete = fetch_project_issues(LinearSourceConnector("key"), "p1")

    assert cursors == [None]
    assert (issues, pages, complete) == ([], 0, False)


def test_out_of_range_priority_is_a_transport_error(monkeypatch: pytest.MonkeyPatch) -> None:
    page = _single_issue_page({"hasNextPage": False, "endCursor": None})
    page["data"]["project"]["issues"]["nodes"][0]["priority"] = 9
    monkeypatch.setattr("urllib.request.urlopen", lambda request, timeout: _FakeResponse(page))

    with pytest.raises(LinearTransportError, match="Malformed issue page"):
        LinearSourceConnector("key").list_issues_page("p1")
