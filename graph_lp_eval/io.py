"""Data loading and export helpers for node/edge CSVs and predicted graphs.

This module reads simple CSV tables into NetworkX graphs and writes predicted
graphs back out. It assumes a schema with columns ``id`` and optionally
``label`` for nodes, and ``source``, ``target`` and optionally ``id`` for
edges. Identifiers are read as strings so node ids such as ``"007"`` keep
their form.
"""

from typing import Any, List, Optional, Tuple

import os

import networkx as nx
import pandas as pd

from .columns import (
    COL_ADDED_IN_RUN,
    COL_LAST_CALCULATED_VALUE,
    COL_LAST_PREDICTION,
)
from .errors import ConfigurationError
from .graph import build_graph, edge_id


def _require_columns(table: pd.DataFrame, columns: List[str], path: str) -> None:
    missing = [c for c in columns if c not in table.columns]
    if missing:
        raise ConfigurationError(
            f"{path} is missing column(s): {', '.join(missing)}"
        )


def read_nodes(path: str) -> List[Tuple[str, str]]:
    """Read ``(id, label)`` pairs from a node table; labels default to the id."""
    nodes = pd.read_csv(path, dtype=str, keep_default_na=False)
    _require_columns(nodes, ["id"], path)
    labels = nodes["label"] if "label" in nodes.columns else nodes["id"]
    ids = nodes["id"].tolist()
    return [(nid, label or nid) for nid, label in zip(ids, labels.tolist())]


def read_edges(path: str) -> List[Tuple[str, ...]]:
    """Read ``(source, target[, id])`` tuples from an edge table."""
    edges = pd.read_csv(path, dtype=str, keep_default_na=False)
    _require_columns(edges, ["source", "target"], path)
    has_id = "id" in edges.columns
    out: List[Tuple[str, ...]] = []
    for _, row in edges.iterrows():
        if has_id and row["id"]:
            out.append((row["source"], row["target"], row["id"]))
        else:
            out.append((row["source"], row["target"]))
    return out


def load_graphs(
    data_dir: str,
    initial_edges_csv: str,
    validation_edges_csv: str,
    nodes_csv: Optional[str] = None,
    undirected: bool = True,
) -> Tuple[nx.Graph, nx.Graph]:
    """Load the initial and validation graphs from a directory of CSV files.

    Both graphs share the node table when one is given; otherwise each graph
    holds the union of endpoints seen in either edge table so that the node
    sets match.

    Returns:
        ``(initial, validation)`` graphs.
    """
    initial_edges = read_edges(os.path.join(data_dir, initial_edges_csv))
    validation_edges = read_edges(os.path.join(data_dir, validation_edges_csv))
    nodes: List[Any]
    if nodes_csv:
        nodes = list(read_nodes(os.path.join(data_dir, nodes_csv)))
    else:
        seen = {n for e in initial_edges + validation_edges for n in e[:2]}
        nodes = sorted(seen)
    initial = build_graph(nodes, initial_edges, undirected=undirected)
    validation = build_graph(nodes, validation_edges, undirected=undirected)
    return initial, validation


def edges_frame(g: nx.Graph, predicted_only: bool = False) -> pd.DataFrame:
    """Tabulate the edges of ``g`` with their metadata columns.

    Args:
        g: Graph to export.
        predicted_only: If True, keep only edges inserted by an algorithm.

    Returns:
        A DataFrame sorted by iteration, then endpoints.
    """
    rows = []
    for u, v, data in g.edges(data=True):
        added_in = int(data.get(COL_ADDED_IN_RUN, 0))
        if predicted_only and added_in <= 0:
            continue
        rows.append(
            {
                "id": edge_id(g, u, v),
                "source": str(u),
                "target": str(v),
                COL_LAST_PREDICTION: data.get(COL_LAST_PREDICTION, ""),
                COL_ADDED_IN_RUN: added_in,
                COL_LAST_CALCULATED_VALUE: float(
                    data.get(COL_LAST_CALCULATED_VALUE, 0.0)
                ),
            }
        )
    columns = [
        "id",
        "source",
        "target",
        COL_LAST_PREDICTION,
        COL_ADDED_IN_RUN,
        COL_LAST_CALCULATED_VALUE,
    ]
    frame = pd.DataFrame(rows, columns=columns)
    return frame.sort_values([COL_ADDED_IN_RUN, "source", "target"]).reset_index(
        drop=True
    )


def write_predictions_csv(
    g: nx.Graph, path: str, predicted_only: bool = True
) -> pd.DataFrame:
    """Write the (predicted) edges of ``g`` to ``path`` and return the table."""
    frame = edges_frame(g, predicted_only=predicted_only)
    frame.to_csv(path, index=False)
    return frame


def write_gexf(g: nx.Graph, path: str) -> None:
    """Export ``g`` as GEXF, keeping the metadata columns as edge attributes.

    The graph-level column schema is not representable in GEXF and is left
    out of the export.
    """
    h = g.copy()
    h.graph = {}
    nx.write_gexf(h, path)
