"""Drive a scoring algorithm over a working graph for a number of steps."""

import logging
from typing import Callable, Iterator, List, Optional, Tuple

import networkx as nx

from .algorithms import LinkPredictionAlgorithm
from .errors import RunCancelled
from .graph import EdgeKey

_LOGGER = logging.getLogger(__name__)


class IterationRunner:
    """Repeatedly execute ``algorithm`` on ``graph``, one edge per step.

    The runner assumes exclusive ownership of ``graph`` while iterating.
    ``should_stop`` is consulted before every step; when it returns True the
    loop raises ``RunCancelled`` carrying the number of completed steps.
    """

    def __init__(
        self,
        algorithm: LinkPredictionAlgorithm,
        graph: nx.Graph,
        should_stop: Optional[Callable[[], bool]] = None,
    ) -> None:
        self.algorithm = algorithm
        self.graph = graph
        self.should_stop = should_stop

    def iterate(self, steps: int) -> Iterator[Tuple[int, EdgeKey]]:
        """Yield ``(iteration, edge)`` after each of ``steps`` executions."""
        if steps < 0:
            raise ValueError(f"steps must be non-negative, got {steps}")
        for i in range(1, steps + 1):
            if self.should_stop is not None and self.should_stop():
                _LOGGER.info("Stopped %s after %d steps", self.algorithm.name, i - 1)
                raise RunCancelled(
                    f"{self.algorithm.name} stopped before step {i}", completed=i - 1
                )
            edge = self.algorithm.execute(self.graph)
            yield i, edge

    def run(self, steps: int) -> List[EdgeKey]:
        """Execute ``steps`` times and return the inserted edges in order."""
        return [edge for _, edge in self.iterate(steps)]
