"""Typed per-edge metadata columns written by the prediction engine.

Three columns form a stable contract for any tool reading a predicted graph:

- ``lastPredictionAlgorithm`` (str): algorithm that last produced the edge
- ``iterationAddedIn`` (int): iteration that inserted the edge, 0 for edges
  present from the start
- ``lastCalculatedScore`` (float): the algorithm's most recent score

The column schema is registered in ``g.graph`` and values are stored as
NetworkX edge attributes, so they survive GEXF or GraphML export. Edges
without a stored value read as the column default.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Hashable, Tuple, Type

import networkx as nx

from .errors import UninitializedColumnsError

_LOGGER = logging.getLogger(__name__)

COL_LAST_PREDICTION = "lastPredictionAlgorithm"
COL_ADDED_IN_RUN = "iterationAddedIn"
COL_LAST_CALCULATED_VALUE = "lastCalculatedScore"

SCHEMA_KEY = "edge_columns"


@dataclass(frozen=True)
class ColumnSpec:
    """Name, value type and default of a metadata column."""

    name: str
    dtype: Type[Any]
    default: Any


COLUMN_SPECS: Tuple[ColumnSpec, ...] = (
    ColumnSpec(COL_LAST_PREDICTION, str, ""),
    ColumnSpec(COL_ADDED_IN_RUN, int, 0),
    ColumnSpec(COL_LAST_CALCULATED_VALUE, float, 0.0),
)


class Column:
    """Typed accessor for one metadata column of a graph's edge table."""

    def __init__(self, g: nx.Graph, spec: ColumnSpec) -> None:
        self.g = g
        self.spec = spec

    @property
    def name(self) -> str:
        return self.spec.name

    def get(self, u: Hashable, v: Hashable) -> Any:
        """Return the value for edge ``(u, v)`` or the column default."""
        return self.g.edges[u, v].get(self.spec.name, self.spec.default)

    def set(self, u: Hashable, v: Hashable, value: Any) -> None:
        """Store ``value`` on edge ``(u, v)`` after checking its type."""
        self.g.edges[u, v][self.spec.name] = self._coerce(value)

    def values(self) -> Dict[Tuple[Hashable, Hashable], Any]:
        """Mapping of every edge to its value in this column."""
        return {(u, v): self.get(u, v) for u, v in self.g.edges()}

    def _coerce(self, value: Any) -> Any:
        dtype = self.spec.dtype
        # bool is an int subclass but never a valid column value
        if isinstance(value, bool):
            raise TypeError(f"Column {self.name} does not accept booleans")
        if dtype is float and isinstance(value, (int, float)):
            return float(value)
        if not isinstance(value, dtype):
            raise TypeError(
                f"Column {self.name} expects {dtype.__name__}, "
                f"got {type(value).__name__}"
            )
        return value


def has_columns(g: nx.Graph) -> bool:
    """Return True if every metadata column is registered on ``g``."""
    schema = g.graph.get(SCHEMA_KEY, {})
    return all(spec.name in schema for spec in COLUMN_SPECS)


def initialize_columns(g: nx.Graph) -> None:
    """Register the metadata columns on ``g`` if they are not there yet.

    Calling this repeatedly leaves the schema and all stored values unchanged.
    """
    schema = g.graph.setdefault(SCHEMA_KEY, {})
    for spec in COLUMN_SPECS:
        if spec.name not in schema:
            _LOGGER.debug("Creating edge column %s", spec.name)
            schema[spec.name] = spec.dtype.__name__


def get_column(g: nx.Graph, name: str, auto_initialize: bool = True) -> Column:
    """Return a typed accessor for column ``name``.

    Raises:
        UninitializedColumnsError: If the columns are missing and
            ``auto_initialize`` is False.
        KeyError: If ``name`` is not one of the metadata columns.
    """
    if not has_columns(g):
        if not auto_initialize:
            raise UninitializedColumnsError(
                "Edge metadata columns are not initialised on this graph"
            )
        initialize_columns(g)
    for spec in COLUMN_SPECS:
        if spec.name == name:
            return Column(g, spec)
    raise KeyError(f"Unknown edge column: {name}")


def get_max_iteration(g: nx.Graph, algorithm_name: str) -> int:
    """Highest ``iterationAddedIn`` among edges tagged with ``algorithm_name``.

    Returns 0 when the algorithm has not added any edge to ``g``.
    """
    best = 0
    for _, _, data in g.edges(data=True):
        if data.get(COL_LAST_PREDICTION) == algorithm_name:
            best = max(best, int(data.get(COL_ADDED_IN_RUN, 0)))
    return best


def filter_by_iteration(g: nx.Graph, algorithm_name: str, limit: int) -> nx.Graph:
    """Read-only view of ``g`` hiding edges predicted after iteration ``limit``.

    Edges present from the start are always kept; edges added by
    ``algorithm_name`` are kept when ``1 <= iterationAddedIn <= limit``. Edges
    added by other algorithms are hidden.
    """

    def keep(u: Hashable, v: Hashable) -> bool:
        data = g.edges[u, v]
        added_in = int(data.get(COL_ADDED_IN_RUN, 0))
        if added_in <= 0:
            return True
        return data.get(COL_LAST_PREDICTION) == algorithm_name and added_in <= limit

    return nx.subgraph_view(g, filter_edge=keep)
