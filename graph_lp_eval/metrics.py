"""Evaluation metrics measuring how well predicted edges match a validation graph.

An ``EvaluationMetric`` wraps one scoring algorithm together with an initial
and a validation graph. ``run`` predicts as many edges as separate the two
graphs and records the metric value after every iteration, plus a final value
once the loop ends. Concrete metrics only implement ``calculate``.

Two metric instances are equal when they wrap the same algorithm class, which
lets result collections hold one entry per algorithm under test.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import (
    Any,
    Callable,
    Dict,
    Iterable,
    List,
    Optional,
    Tuple,
    Type,
    TypeVar,
    Union,
)

import networkx as nx

from .algorithms import LinkPredictionAlgorithm
from .columns import initialize_columns
from .errors import (
    AlgorithmTypeError,
    ConfigurationError,
    NoCandidateError,
    RunCancelled,
)
from .graph import EdgeKey, copy_graph, edge_count, edge_set, node_only_clone
from .runner import IterationRunner

_LOGGER = logging.getLogger(__name__)


@dataclass
class EvaluationRun:
    """Everything produced by one call to ``EvaluationMetric.run``."""

    algorithm_name: str
    metric_name: str
    initial: nx.Graph
    validation: nx.Graph
    trained: nx.Graph
    diff_edge_count: int
    iteration_results: Dict[int, float] = field(default_factory=dict)
    final_result: Optional[float] = None
    predicted_edges: List[EdgeKey] = field(default_factory=list)

    @property
    def completed(self) -> bool:
        """True once the final result has been computed."""
        return self.final_result is not None

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly summary without the graphs themselves."""
        return {
            "algorithm": self.algorithm_name,
            "metric": self.metric_name,
            "diff_edge_count": self.diff_edge_count,
            "iteration_results": {
                str(i): v for i, v in self.iteration_results.items()
            },
            "final_result": self.final_result,
            "completed": self.completed,
            "predicted_edges": [[str(u), str(v)] for u, v in self.predicted_edges],
        }


class EvaluationMetric(ABC):
    """Run a scoring algorithm and score its predictions iteration by iteration.

    Args:
        algorithm: Scoring algorithm to evaluate.
        initial: Graph the prediction starts from; never modified.
        validation: Ground-truth graph; never modified.
        copy_edges: If True the working graph starts with the edges of the
            smaller graph instead of being a node-only clone.
        should_stop: Optional hook checked at every iteration boundary.

    Raises:
        AlgorithmTypeError: If ``algorithm`` is not one of
            ``supported_algorithms``.
    """

    key: str = ""
    name: str = ""
    supported_algorithms: Tuple[Type[LinkPredictionAlgorithm], ...] = (
        LinkPredictionAlgorithm,
    )

    def __init__(
        self,
        algorithm: LinkPredictionAlgorithm,
        initial: nx.Graph,
        validation: nx.Graph,
        copy_edges: bool = False,
        should_stop: Optional[Callable[[], bool]] = None,
    ) -> None:
        if not isinstance(algorithm, self.supported_algorithms):
            expected = ", ".join(c.__name__ for c in self.supported_algorithms)
            raise AlgorithmTypeError(
                f"{type(self).__name__} expects {expected}, "
                f"got {type(algorithm).__name__}"
            )
        self.algorithm = algorithm
        self.initial = initial
        self.validation = validation
        self.copy_edges = copy_edges
        self.should_stop = should_stop
        self._run: Optional[EvaluationRun] = None

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.algorithm!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, EvaluationMetric):
            return NotImplemented
        return type(other.algorithm) is type(self.algorithm)

    def __hash__(self) -> int:
        return hash(type(self.algorithm))

    @abstractmethod
    def calculate(
        self, added_edges: int, trained: nx.Graph, validation: nx.Graph
    ) -> float:
        """Metric value for the current state of the prediction.

        The first graph is the smaller one (the predicted set) and the second
        the larger one (the reference), see ``calculate_current_result``.

        Args:
            added_edges: Validation edge count minus trained edge count; may be
                negative.
            trained: Graph holding the predicted edges, or the validation
                graph when the prediction has outgrown it.
            validation: Reference graph, or the trained graph when it has
                outgrown the validation graph.
        """

    def run(self) -> EvaluationRun:
        """Predict the missing edges and record the metric per iteration.

        Returns:
            The completed ``EvaluationRun``, also kept for the getters.

        Raises:
            ConfigurationError: If the input graphs cannot be compared.
            NoCandidateError: If the algorithm runs out of pairs to connect;
                ``partial_run`` holds the iterations computed so far.
            RunCancelled: If ``should_stop`` fired; ``partial_run`` is set too.
        """
        self._check_inputs()
        _LOGGER.info("Evaluating %s with %s", self.algorithm.name, self.name)

        for g in (self.initial, self.validation):
            initialize_columns(g)
        initial_count = edge_count(self.initial)
        validation_count = edge_count(self.validation)
        _LOGGER.debug("Initial edges count: %d", initial_count)
        _LOGGER.debug("Validation edges count: %d", validation_count)

        current, diff_edge_count = self._determine_current_graph(
            initial_count, validation_count
        )
        if self.copy_edges:
            trained = copy_graph(current)
        else:
            trained = node_only_clone(current)
        initialize_columns(trained)

        run = EvaluationRun(
            algorithm_name=self.algorithm.name,
            metric_name=self.name,
            initial=self.initial,
            validation=self.validation,
            trained=trained,
            diff_edge_count=diff_edge_count,
        )
        self._run = run

        runner = IterationRunner(self.algorithm, trained, self.should_stop)
        try:
            for i, edge in runner.iterate(diff_edge_count):
                run.predicted_edges.append(edge)
                current_result = self.calculate_current_result(
                    edge_count(trained), validation_count
                )
                run.iteration_results[i] = current_result
                _LOGGER.debug("Current result in iteration %d: %s", i, current_result)
        except (NoCandidateError, RunCancelled) as exc:
            _LOGGER.warning(
                "%s stopped after %d of %d iterations: %s",
                self.algorithm.name,
                len(run.iteration_results),
                diff_edge_count,
                exc,
            )
            exc.partial_run = run
            raise

        run.final_result = self.calculate_current_result(
            edge_count(trained), validation_count
        )
        _LOGGER.info("%s final result: %s", self.algorithm.name, run.final_result)
        return run

    def calculate_current_result(
        self, trained_edge_count: int, validation_edge_count: int
    ) -> float:
        """Route the current graphs to ``calculate`` with the larger one second.

        The trained graph is always compared with the validation graph, also
        when the working graph was seeded from the validation graph. Equal
        counts take the same route as a smaller trained graph so concrete
        metrics always see the same argument order for that case.

        Only valid while ``run`` is active or after it returned.

        Raises:
            RuntimeError: If ``run`` has not been called yet.
        """
        trained = self._require_run().trained
        added_edges = validation_edge_count - trained_edge_count
        if trained_edge_count > validation_edge_count:
            return float(self.calculate(added_edges, self.validation, trained))
        return float(self.calculate(added_edges, trained, self.validation))

    def get_iteration_results(self) -> Dict[int, float]:
        """Metric value per iteration of the last run, in iteration order."""
        if self._run is None:
            return {}
        return dict(self._run.iteration_results)

    def get_final_result(self) -> float:
        """Final metric value of the last completed run, 0.0 before that."""
        if self._run is None or self._run.final_result is None:
            return 0.0
        return self._run.final_result

    def get_diff_edge_count(self) -> int:
        """Number of edges the last run had to predict."""
        return 0 if self._run is None else self._run.diff_edge_count

    def get_algorithm_name(self) -> str:
        return self.algorithm.name

    def get_highest_prediction(self, graph: Optional[nx.Graph] = None) -> EdgeKey:
        """Best edge of the latest iteration on ``graph`` or the trained graph."""
        if graph is None:
            graph = self._require_run().trained
        return self.algorithm.get_highest_prediction(graph)

    @property
    def last_run(self) -> Optional[EvaluationRun]:
        return self._run

    def _require_run(self) -> EvaluationRun:
        if self._run is None:
            raise RuntimeError(f"{type(self).__name__}.run() has not been called")
        return self._run

    def _determine_current_graph(
        self, initial_count: int, validation_count: int
    ) -> Tuple[nx.Graph, int]:
        # The graph with fewer edges seeds the working graph; ties use initial
        if initial_count > validation_count:
            _LOGGER.debug("Initial graph is bigger than validation graph")
            return self.validation, initial_count - validation_count
        _LOGGER.debug("Validation graph is at least as big as initial graph")
        return self.initial, validation_count - initial_count

    def _check_inputs(self) -> None:
        if self.initial is None or self.validation is None:
            raise ConfigurationError("Initial and validation graphs are required")
        if self.initial.is_directed() != self.validation.is_directed():
            raise ConfigurationError(
                "Initial and validation graphs must both be directed or undirected"
            )
        if set(self.initial.nodes()) != set(self.validation.nodes()):
            missing = set(self.initial.nodes()) ^ set(self.validation.nodes())
            sample = ", ".join(sorted(str(n) for n in missing)[:5])
            raise ConfigurationError(
                f"Initial and validation graphs have different nodes: {sample}"
            )


def _overlap(a: nx.Graph, b: nx.Graph) -> int:
    return len(edge_set(a) & edge_set(b))


M = TypeVar("M", bound=Type[EvaluationMetric])

METRICS: Dict[str, Type[EvaluationMetric]] = {}


def register_metric(cls: M) -> M:
    """Class decorator adding a metric to ``METRICS`` under its key."""
    if not cls.key:
        raise ValueError(f"{cls.__name__} must define a registry key")
    METRICS[cls.key] = cls
    return cls


def get_metric(key: str) -> Type[EvaluationMetric]:
    """Return the metric class registered under ``key``.

    Raises:
        ConfigurationError: If no metric is registered under ``key``.
    """
    try:
        return METRICS[key]
    except KeyError:
        known = ", ".join(sorted(METRICS))
        raise ConfigurationError(
            f"Unknown metric: {key} (expected one of: {known})"
        ) from None


@register_metric
class PrecisionMetric(EvaluationMetric):
    """Shared edges relative to the number of edges still missing.

    ``|edges(trained) & edges(validation)| / max(added_edges, 1)``
    """

    key = "precision"
    name = "Precision"

    def calculate(
        self, added_edges: int, trained: nx.Graph, validation: nx.Graph
    ) -> float:
        return _overlap(trained, validation) / max(added_edges, 1)


@register_metric
class RecallMetric(EvaluationMetric):
    """Share of reference edges that are also in the predicted graph."""

    key = "recall"
    name = "Recall"

    def calculate(
        self, added_edges: int, trained: nx.Graph, validation: nx.Graph
    ) -> float:
        return _overlap(trained, validation) / max(edge_count(validation), 1)


def evaluate_algorithms(
    algorithms: Iterable[LinkPredictionAlgorithm],
    initial: nx.Graph,
    validation: nx.Graph,
    metric: Union[str, Type[EvaluationMetric]] = "precision",
    copy_edges: bool = False,
    should_stop: Optional[Callable[[], bool]] = None,
) -> Dict[str, EvaluationRun]:
    """Evaluate several algorithms, each on its own working graph.

    Algorithms of the same class are evaluated once. Runs are keyed by
    algorithm name in the order the algorithms were given. When one of them
    fails, ``completed_runs`` on the exception holds the runs finished before
    the failure and ``partial_run`` the run that was interrupted.

    Raises:
        NoCandidateError: If an algorithm runs out of pairs to connect.
        RunCancelled: If ``should_stop`` fired.
    """
    metric_cls = get_metric(metric) if isinstance(metric, str) else metric
    unique: Dict[EvaluationMetric, None] = {}
    for algorithm in algorithms:
        instance = metric_cls(
            algorithm,
            initial,
            validation,
            copy_edges=copy_edges,
            should_stop=should_stop,
        )
        if instance in unique:
            _LOGGER.debug("Skipping duplicate algorithm %s", algorithm.name)
            continue
        unique[instance] = None

    runs: Dict[str, EvaluationRun] = {}
    for instance in unique:
        try:
            runs[instance.get_algorithm_name()] = instance.run()
        except (NoCandidateError, RunCancelled) as exc:
            exc.completed_runs = dict(runs)
            raise
    return runs
