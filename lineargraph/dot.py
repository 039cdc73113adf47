"""Graphviz DOT serialization of an assembled graph."""

from __future__ import annotations

import graphviz

from lineargraph.models import Graph, GraphEdge, GraphNode

CLUSTER_PREFIX = "cluster_"


def _escape(value: str) -> str:
    # graphviz escString: keep literal backslashes, turn newlines into \n line breaks
    return value.replace("\\", "\\\\").replace("\n", "\\n")


def _escape_attrs(attrs: dict[str, str]) -> dict[str, str]:
    # values are plain text; never let graphviz read "<...>" as an HTML label
    return {key: graphviz.nohtml(_escape(value)) for key, value in attrs.items()}


def _add_node(target: graphviz.Digraph, node: GraphNode) -> None:
    target.node(node.id, **_escape_attrs(node.attrs))


def _add_edge(target: graphviz.Digraph, edge: GraphEdge) -> None:
    target.edge(edge.tail, edge.head, **_escape_attrs(edge.attrs))


def to_dot(graph: Graph) -> str:
    """Serialize ``graph`` to DOT text; clusters become nested ``cluster_*`` subgraphs."""
    dot = graphviz.Digraph(name=graph.name, graph_attr=_escape_attrs(graph.attrs))

    for node_id in graph.node_ids:
        _add_node(dot, graph.nodes[node_id])

    for cluster in graph.clusters.values():
        with dot.subgraph(name=f"{CLUSTER_PREFIX}{cluster.key}") as sub:
            sub.attr(**_escape_attrs(cluster.attrs))
            for node_id in cluster.node_ids:
                _add_node(sub, graph.nodes[node_id])
            for edge in cluster.edges:
                _add_edge(sub, edge)

    for edge in graph.edges:
        _add_edge(dot, edge)

    return dot.source
