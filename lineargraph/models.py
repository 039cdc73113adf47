"""Core Pydantic domain models for lineargraph."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

NO_CLUSTER = "no-cluster"


class StateCategory(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELED = "canceled"
    OTHER = "other"


class ClusterBy(str, Enum):
    NONE = "none"
    CYCLE = "cycle"
    PROJECT = "project"


class IssueState(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str
    category: StateCategory = StateCategory.OTHER
    color: str | None = None


class Cycle(BaseModel):
    model_config = ConfigDict(extra="forbid")

    number: int
    id: str | None = None
    name: str | None = None


class Project(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str
    name: str


class PageInfo(BaseModel):
    model_config = ConfigDict(extra="forbid")

    has_next_page: bool = False
    end_cursor: str | None = None


class IssueRef(BaseModel):
    """Lightweight issue reference as returned for children and relation targets."""

    model_config = ConfigDict(extra="forbid")

    identifier: str
    title: str = ""
    description: str | None = None
    estimate: int | float | None = None
    state: IssueState | None = None


class Relation(BaseModel):
    model_config = ConfigDict(extra="forbid")

    type: str
    related_issue: IssueRef


class Issue(BaseModel):
    model_config = ConfigDict(extra="forbid")

    identifier: str
    title: str
    description: str | None = None
    project_id: str = ""
    assignee: str | None = None
    state: IssueState | None = None
    priority: int | None = Field(default=None, ge=0, le=4)
    estimate: int | float | None = None
    cycle: Cycle | None = None
    # None means the payload carried no children list at all.
    children: list[IssueRef] | None = None
    relations: list[Relation] = Field(default_factory=list)

    @property
    def has_children(self) -> bool:
        return bool(self.children)

    @classmethod
    def from_ref(cls, ref: IssueRef, project_id: str = "") -> Issue:
        return cls(
            identifier=ref.identifier,
            title=ref.title,
            description=ref.description,
            estimate=ref.estimate,
            state=ref.state,
            project_id=project_id,
        )


class GraphNode(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str
    cluster_key: str = NO_CLUSTER
    attrs: dict[str, str] = Field(default_factory=dict)


class GraphEdge(BaseModel):
    model_config = ConfigDict(extra="forbid")

    tail: str
    head: str
    label: str
    attrs: dict[str, str] = Field(default_factory=dict)

    @property
    def key(self) -> tuple[str, str, str]:
        return (self.tail, self.head, self.label)


class GraphCluster(BaseModel):
    model_config = ConfigDict(extra="forbid")

    key: str
    attrs: dict[str, str] = Field(default_factory=dict)
    node_ids: list[str] = Field(default_factory=list)
    edges: list[GraphEdge] = Field(default_factory=list)


class Graph(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = "Dependency graph"
    attrs: dict[str, str] = Field(default_factory=dict)
    nodes: dict[str, GraphNode] = Field(default_factory=dict)
    node_ids: list[str] = Field(default_factory=list)
    edges: list[GraphEdge] = Field(default_factory=list)
    clusters: dict[str, GraphCluster] = Field(default_factory=dict)

    def all_edges(self) -> list[GraphEdge]:
        edges = list(self.edges)
        for cluster in self.clusters.values():
            edges.extend(cluster.edges)
        return edges

    def summary(self) -> dict[str, Any]:
        return {
            "nodes": len(self.nodes),
            "edges": len(self.all_edges()),
            "clusters": len(self.clusters),
        }
