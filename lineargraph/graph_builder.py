"""Two-pass dependency graph assembly over a merged issue set."""

from __future__ import annotations

import logging

from lineargraph.config import GraphConfig
from lineargraph.models import (
    NO_CLUSTER,
    ClusterBy,
    Graph,
    GraphCluster,
    GraphEdge,
    GraphNode,
    Issue,
    IssueRef,
    IssueState,
    StateCategory,
)
from lineargraph.styling import BLOCKS, DUPLICATE, DUPLICATE_OF, HAS_PARENT, edge_attrs, issue_info, node_attrs

logger = logging.getLogger(__name__)

_NO_CLUSTER_LABELS = {
    ClusterBy.CYCLE: "No cycle",
    ClusterBy.PROJECT: "No project",
}


class GraphBuilder:
    """Owns every lookup table of a single build; each instance builds once."""

    def __init__(self, projects: dict[str, str], config: GraphConfig | None = None) -> None:
        self._projects = dict(projects)
        self._config = config or GraphConfig()
        self._graph = Graph(attrs=dict(self._config.graph_attrs))
        self._issues_by_id: dict[str, Issue] = {}
        self._edge_keys: set[tuple[str, str, str]] = set()
        self._built = False

    def build(self, issues: list[Issue]) -> Graph:
        if self._built:
            raise RuntimeError("GraphBuilder.build() may only be called once per builder")
        self._built = True

        for issue in issues:
            self._issues_by_id.setdefault(issue.identifier, issue)

        for issue in issues:
            if self.is_hidden(issue.state):
                continue
            self.ensure_node(issue, self.cluster_key_for(issue))
        logger.info("Registered %s issue node(s)", len(self._graph.nodes))

        for issue in issues:
            if self.is_hidden(issue.state):
                continue
            logger.debug("%s: %s %s", issue.identifier, issue.title, issue_info(issue))
            self._add_children(issue)
            self._add_relations(issue)

        summary = self._graph.summary()
        logger.info("Graph built: nodes=%s edges=%s clusters=%s", summary["nodes"], summary["edges"], summary["clusters"])
        return self._graph.model_copy(deep=True)

    def is_hidden(self, state: IssueState | None) -> bool:
        if state is None:
            return False
        if state.category == StateCategory.CANCELED and not self._config.include_canceled:
            return True
        if state.category == StateCategory.COMPLETED and not self._config.include_completed:
            return True
        return False

    def cluster_key_for(self, issue: Issue) -> str:
        cluster_by = self._config.cluster_by
        if cluster_by == ClusterBy.CYCLE and issue.cycle is not None:
            return str(issue.cycle.number)
        if cluster_by == ClusterBy.PROJECT and issue.project_id:
            return issue.project_id
        return NO_CLUSTER

    def ensure_cluster(self, key: str) -> GraphCluster:
        cluster = self._graph.clusters.get(key)
        if cluster is not None:
            return cluster
        cluster = GraphCluster(key=key, attrs={"label": self._cluster_label(key), **self._config.cluster_attrs})
        self._graph.clusters[key] = cluster
        return cluster

    def ensure_node(self, issue: Issue, cluster_key: str = NO_CLUSTER) -> GraphNode:
        """Return the node for ``issue``, creating and placing it on first sight only."""
        node = self._graph.nodes.get(issue.identifier)
        if node is not None:
            if node.cluster_key != cluster_key:
                logger.debug("%s already placed in %s; ignoring %s", issue.identifier, node.cluster_key, cluster_key)
            return node

        node = GraphNode(
            id=issue.identifier,
            cluster_key=cluster_key,
            attrs=node_attrs(issue, self._projects, self._config),
        )
        self._graph.nodes[issue.identifier] = node
        if self._config.clustering:
            self.ensure_cluster(cluster_key).node_ids.append(node.id)
        else:
            self._graph.node_ids.append(node.id)
        return node

    def _cluster_label(self, key: str) -> str:
        cluster_by = self._config.cluster_by
        if key == NO_CLUSTER:
            return _NO_CLUSTER_LABELS.get(cluster_by, "Unclustered")
        if cluster_by == ClusterBy.PROJECT:
            return self._projects.get(key, key)
        return f"Cycle {key}"

    def _resolve_endpoint(self, ref: IssueRef) -> str | None:
        """Node id for a child/relation target, registering external issues as needed.

        Returns None when the target is hidden or is an external issue that
        ``hide_external`` suppresses.
        """
        known = self._issues_by_id.get(ref.identifier)
        state = known.state if known is not None else ref.state
        if self.is_hidden(state):
            return None
        if ref.identifier in self._graph.nodes:
            return ref.identifier
        if self._config.hide_external:
            logger.debug("  hiding external issue %s", ref.identifier)
            return None
        self.ensure_node(Issue.from_ref(ref), NO_CLUSTER)
        return ref.identifier

    def _add_children(self, issue: Issue) -> None:
        for child in issue.children or []:
            child_id = self._resolve_endpoint(child)
            if child_id is None:
                continue
            self._add_edge(child_id, issue.identifier, HAS_PARENT)
            logger.debug("  has child %s", child_id)

    def _add_relations(self, issue: Issue) -> None:
        for relation in issue.relations:
            related = relation.related_issue
            if relation.type == BLOCKS:
                tail, head, label = issue.identifier, related.identifier, BLOCKS
            elif relation.type == DUPLICATE and self._config.include_duplicates:
                tail, head, label = related.identifier, issue.identifier, DUPLICATE_OF
            else:
                logger.debug("  ignoring: %s %s", relation.type, related.identifier)
                continue
            if self._resolve_endpoint(related) is None:
                continue
            self._add_edge(tail, head, label)
            logger.debug("  %s %s", relation.type, related.identifier)

    def _add_edge(self, tail: str, head: str, label: str) -> None:
        edge = GraphEdge(tail=tail, head=head, label=label, attrs=edge_attrs(label))
        if edge.key in self._edge_keys:
            return
        self._edge_keys.add(edge.key)

        if not self._config.clustering:
            self._graph.edges.append(edge)
            return
        tail_key = self._graph.nodes[tail].cluster_key
        head_key = self._graph.nodes[head].cluster_key
        if tail_key == head_key:
            self.ensure_cluster(tail_key).edges.append(edge)
        else:
            self._graph.edges.append(edge)


def build_graph(issues: list[Issue], projects: dict[str, str], config: GraphConfig | None = None) -> Graph:
    return GraphBuilder(projects, config).build(issues)
