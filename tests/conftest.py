"""Shared fixtures: the nine-node example graph and a validation counterpart."""

import networkx as nx
import pytest

from graph_lp_eval.graph import build_graph

EXAMPLE_NODES = [(n, f"Node {n}") for n in "ABCDEFGHI"]
EXAMPLE_EDGES = [
    ("A", "B", "E1"),
    ("A", "D", "E2"),
    ("A", "E", "E3"),
    ("B", "D", "E4"),
    ("B", "C", "E5"),
    ("C", "D", "E6"),
    ("C", "F", "E7"),
    ("E", "F", "E8"),
    ("E", "G", "E9"),
    ("F", "G", "E10"),
    ("G", "H", "E11"),
    ("G", "I", "E12"),
]
VALIDATION_EXTRA_EDGES = [("A", "G", "V1"), ("B", "G", "V2"), ("H", "I", "V3")]


@pytest.fixture
def example_graph() -> nx.Graph:
    """Undirected graph with degrees A-F = 3, G = 4, H and I = 1."""
    return build_graph(EXAMPLE_NODES, EXAMPLE_EDGES)


@pytest.fixture
def validation_graph() -> nx.Graph:
    """The example graph plus three edges to be predicted."""
    return build_graph(EXAMPLE_NODES, EXAMPLE_EDGES + VALIDATION_EXTRA_EDGES)
