"""Scoring algorithms that predict one missing edge per execution.

Every algorithm scores candidate node pairs (pairs of distinct nodes that are
not yet connected), picks the highest score and inserts exactly one edge for
it, tagging the edge with the metadata columns from ``columns``. Ties are
broken by ascending ``(source, target)`` order of the string identifiers, so
repeated executions from the same state insert the same edges.

New algorithms are added by subclassing ``LinkPredictionAlgorithm`` and
decorating the class with ``register_algorithm``.
"""

import logging
import math
from abc import ABC, abstractmethod
from typing import Dict, Hashable, Iterator, Optional, Tuple, Type, TypeVar

import networkx as nx

from .columns import (
    COL_ADDED_IN_RUN,
    COL_LAST_CALCULATED_VALUE,
    COL_LAST_PREDICTION,
    get_column,
    get_max_iteration,
    has_columns,
    initialize_columns,
)
from .errors import (
    ConfigurationError,
    NoCandidateError,
    PredictionNotFoundError,
    UninitializedColumnsError,
)
from .graph import EdgeKey, add_edge, degree, neighbours

_LOGGER = logging.getLogger(__name__)


class LinkPredictionAlgorithm(ABC):
    """Shared behaviour of all scoring algorithms.

    Subclasses set ``key`` (registry key) and ``name`` (the value written to
    ``lastPredictionAlgorithm``) and implement ``score``.
    """

    key: str = ""
    name: str = ""

    def __init__(self, auto_initialize: bool = True) -> None:
        self.auto_initialize = auto_initialize

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"

    @abstractmethod
    def score(self, g: nx.Graph, u: Hashable, v: Hashable) -> float:
        """Likelihood that the non-adjacent pair ``(u, v)`` should be linked."""

    def candidates(self, g: nx.Graph) -> Iterator[EdgeKey]:
        """Yield unconnected pairs of distinct nodes in ascending order.

        Undirected graphs yield each pair once with ``str(u) <= str(v)``;
        directed graphs yield every ordered pair without an edge ``u -> v``.
        """
        nodes = sorted(g.nodes(), key=str)
        directed = g.is_directed()
        for i, u in enumerate(nodes):
            targets = nodes if directed else nodes[i + 1 :]
            for v in targets:
                if u != v and not g.has_edge(u, v):
                    yield (u, v)

    def predict(self, g: nx.Graph) -> Tuple[Hashable, Hashable, float]:
        """Return the best candidate pair and its score without modifying ``g``.

        Raises:
            NoCandidateError: If every pair of distinct nodes is connected.
        """
        best: Optional[Tuple[Hashable, Hashable, float]] = None
        checked = 0
        # Candidates arrive in ascending order, so keeping the first maximum
        # implements the lexical tie-break
        for u, v in self.candidates(g):
            checked += 1
            s = float(self.score(g, u, v))
            if best is None or s > best[2]:
                best = (u, v, s)
        if best is None:
            raise NoCandidateError(
                f"{self.name}: every node pair is already connected"
            )
        _LOGGER.debug(
            "%s checked %d candidates, best %s-%s with score %s",
            self.name,
            checked,
            best[0],
            best[1],
            best[2],
        )
        return best

    def execute(self, g: nx.Graph) -> EdgeKey:
        """Insert the highest-scoring missing edge into ``g`` in place.

        Returns:
            The ``(source, target)`` key of the inserted edge.

        Raises:
            NoCandidateError: If no pair can be connected.
            UninitializedColumnsError: If the metadata columns are missing and
                ``auto_initialize`` is False.
        """
        if not has_columns(g):
            if not self.auto_initialize:
                raise UninitializedColumnsError(
                    f"{self.name}: edge metadata columns are not initialised"
                )
            initialize_columns(g)

        u, v, s = self.predict(g)
        iteration = self.get_next_iteration(g)
        add_edge(g, u, v, edge_id=f"{self.key}-{iteration}")
        get_column(g, COL_LAST_PREDICTION).set(u, v, self.name)
        get_column(g, COL_ADDED_IN_RUN).set(u, v, iteration)
        get_column(g, COL_LAST_CALCULATED_VALUE).set(u, v, s)
        _LOGGER.debug("%s iteration %d added %s-%s", self.name, iteration, u, v)
        return (u, v)

    def get_next_iteration(
        self, g: nx.Graph, algorithm_name: Optional[str] = None
    ) -> int:
        """Iteration number the next ``execute`` will record, starting at 1."""
        return get_max_iteration(g, algorithm_name or self.name) + 1

    def get_highest_prediction(self, g: nx.Graph) -> EdgeKey:
        """Best-scored edge among those added in this algorithm's latest iteration.

        Raises:
            PredictionNotFoundError: If the algorithm never added an edge to ``g``
                or no edge carries its latest iteration.
        """
        latest = get_max_iteration(g, self.name)
        if latest == 0:
            raise PredictionNotFoundError(f"{self.name} has not predicted any edge")
        best: Optional[Tuple[float, EdgeKey]] = None
        edges = sorted(g.edges(data=True), key=lambda e: (str(e[0]), str(e[1])))
        for u, v, data in edges:
            if data.get(COL_LAST_PREDICTION) != self.name:
                continue
            if int(data.get(COL_ADDED_IN_RUN, 0)) != latest:
                continue
            s = float(data.get(COL_LAST_CALCULATED_VALUE, 0.0))
            if best is None or s > best[0]:
                best = (s, (u, v))
        if best is None:
            raise PredictionNotFoundError(
                f"{self.name}: no edge recorded for iteration {latest}"
            )
        return best[1]


A = TypeVar("A", bound=Type[LinkPredictionAlgorithm])

ALGORITHMS: Dict[str, Type[LinkPredictionAlgorithm]] = {}


def register_algorithm(cls: A) -> A:
    """Class decorator adding an algorithm to ``ALGORITHMS`` under its key."""
    if not cls.key:
        raise ValueError(f"{cls.__name__} must define a registry key")
    ALGORITHMS[cls.key] = cls
    return cls


def get_algorithm(key: str, **kwargs: bool) -> LinkPredictionAlgorithm:
    """Instantiate the registered algorithm ``key``.

    Raises:
        ConfigurationError: If no algorithm is registered under ``key``.
    """
    try:
        cls = ALGORITHMS[key]
    except KeyError:
        known = ", ".join(sorted(ALGORITHMS))
        raise ConfigurationError(
            f"Unknown algorithm: {key} (expected one of: {known})"
        ) from None
    return cls(**kwargs)


@register_algorithm
class PreferentialAttachment(LinkPredictionAlgorithm):
    """Scores a pair by the product of its endpoint degrees."""

    key = "preferential_attachment"
    name = "Preferential Attachment"

    def score(self, g: nx.Graph, u: Hashable, v: Hashable) -> float:
        return float(degree(g, u) * degree(g, v))


@register_algorithm
class CommonNeighbours(LinkPredictionAlgorithm):
    """Scores a pair by the number of neighbours it shares."""

    key = "common_neighbours"
    name = "Common Neighbours"

    def score(self, g: nx.Graph, u: Hashable, v: Hashable) -> float:
        return float(len(neighbours(g, u) & neighbours(g, v)))


@register_algorithm
class JaccardCoefficient(LinkPredictionAlgorithm):
    """Shared neighbours divided by the union of both neighbourhoods."""

    key = "jaccard"
    name = "Jaccard Coefficient"

    def score(self, g: nx.Graph, u: Hashable, v: Hashable) -> float:
        nu, nv = neighbours(g, u), neighbours(g, v)
        union = nu | nv
        if not union:
            return 0.0
        return len(nu & nv) / len(union)


@register_algorithm
class AdamicAdar(LinkPredictionAlgorithm):
    """Shared neighbours weighted by the inverse log of their degree."""

    key = "adamic_adar"
    name = "Adamic Adar"

    def score(self, g: nx.Graph, u: Hashable, v: Hashable) -> float:
        total = 0.0
        for w in neighbours(g, u) & neighbours(g, v):
            d = degree(g, w)
            if d > 1:
                total += 1.0 / math.log(d)
        return total

