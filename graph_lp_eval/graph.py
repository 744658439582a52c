"""Graph snapshot helpers built on NetworkX.

This module provides small, self-contained helpers to:
- build a graph from node and edge lists, keeping node labels and edge ids
- produce independent working copies, with or without edges
- obtain a set view of edges that respects undirected symmetry
- query degrees and neighbourhoods regardless of edge direction

Node identifiers are opaque hashables (usually strings). Direction is a
graph-level property: ``nx.Graph`` is undirected, ``nx.DiGraph`` is directed.
"""

from typing import Any, Hashable, Iterable, Optional, Set, Tuple

import networkx as nx

EdgeKey = Tuple[Hashable, Hashable]

EDGE_ID_ATTR = "id"
NODE_LABEL_ATTR = "label"


def build_graph(
    nodes: Iterable[Any],
    edges: Iterable[Tuple[Hashable, ...]],
    undirected: bool = True,
) -> nx.Graph:
    """Construct a NetworkX graph from node and edge lists.

    Args:
        nodes: Node identifiers, or ``(identifier, label)`` pairs.
        edges: ``(source, target)`` or ``(source, target, edge_id)`` tuples.
        undirected: If True, build an undirected graph; otherwise a directed one.

    Returns:
        A Graph or DiGraph. Nodes without a label are labelled with their id and
        edges without an id get one derived from their endpoints.
    """
    g = nx.Graph() if undirected else nx.DiGraph()
    # Create all nodes up-front so nodes without edges are still present
    for node in nodes:
        if isinstance(node, tuple):
            node_id, label = node
        else:
            node_id, label = node, node
        g.add_node(node_id, **{NODE_LABEL_ATTR: str(label)})
    for edge in edges:
        u, v = edge[0], edge[1]
        edge_id = edge[2] if len(edge) > 2 else None
        add_edge(g, u, v, edge_id=edge_id)
    return g


def add_edge(
    g: nx.Graph,
    u: Hashable,
    v: Hashable,
    edge_id: Optional[str] = None,
    **attributes: Any,
) -> EdgeKey:
    """Insert an edge and return its key, labelling unknown endpoints by id."""
    for node in (u, v):
        if node not in g:
            g.add_node(node, **{NODE_LABEL_ATTR: str(node)})
    g.add_edge(u, v, **{EDGE_ID_ATTR: edge_id or f"{u}-{v}"}, **attributes)
    return (u, v)


def node_only_clone(g: nx.Graph) -> nx.Graph:
    """Return an independent graph with the same nodes as ``g`` and no edges."""
    h = g.__class__()
    h.add_nodes_from((n, dict(data)) for n, data in g.nodes(data=True))
    return h


def copy_graph(g: nx.Graph) -> nx.Graph:
    """Return an independent copy of ``g`` including edges and attributes.

    ``nx.Graph.copy`` shares the graph-level attribute dict values, so the
    graph attributes are copied one level deeper here.
    """
    h = g.copy()
    h.graph = {
        k: dict(v) if isinstance(v, dict) else v for k, v in g.graph.items()
    }
    return h


def edge_key(g: nx.Graph, u: Hashable, v: Hashable) -> EdgeKey:
    """Normalise an endpoint pair so undirected edges compare equal."""
    if g.is_directed():
        return (u, v)
    return (u, v) if str(u) <= str(v) else (v, u)


def edge_set(g: nx.Graph) -> Set[EdgeKey]:
    """Return a Python ``set`` of edges, respecting undirected symmetry.

    For undirected graphs each edge is normalised with ``edge_key`` so that the
    pair appears only once regardless of endpoint order.
    """
    return {edge_key(g, u, v) for u, v in g.edges()}


def edge_count(g: nx.Graph) -> int:
    """Number of edges in ``g``."""
    return g.number_of_edges()


def degree(g: nx.Graph, n: Hashable) -> int:
    """Degree of ``n``; for directed graphs in- and out-edges both count."""
    return int(g.degree(n))


def neighbours(g: nx.Graph, n: Hashable) -> Set[Hashable]:
    """All neighbours of ``n`` ignoring edge direction."""
    return set(nx.all_neighbors(g, n))


def node_label(g: nx.Graph, n: Hashable) -> str:
    """Label of ``n``, falling back to its identifier."""
    return str(g.nodes[n].get(NODE_LABEL_ATTR, n))


def edge_id(g: nx.Graph, u: Hashable, v: Hashable) -> str:
    """Identifier stored on the edge ``(u, v)``."""
    return str(g.edges[u, v].get(EDGE_ID_ATTR, f"{u}-{v}"))
