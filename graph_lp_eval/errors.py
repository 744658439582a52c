"""Exceptions raised by the link prediction and evaluation engine.

Every error derives from ``LinkPredictionError`` so callers can catch the
whole family at once. Some errors also derive from a builtin exception type
(``ValueError``, ``TypeError``, ``LookupError``) so they are handled naturally
by generic code such as the CLI.
"""

from typing import Any, Dict, Optional


class LinkPredictionError(Exception):
    """Base class for all engine errors."""


class UninitializedColumnsError(LinkPredictionError):
    """Edge metadata columns are missing and automatic initialisation is off."""


class NoCandidateError(LinkPredictionError):
    """The scoring algorithm cannot find a node pair to connect.

    When raised from an evaluation run, ``partial_run`` holds the results
    computed up to the failing iteration. When raised while benchmarking
    several algorithms, ``completed_runs`` maps the names of the algorithms
    that finished before the failure to their runs.
    """

    def __init__(
        self,
        message: str,
        partial_run: Any = None,
        completed_runs: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.partial_run = partial_run
        self.completed_runs = completed_runs or {}


class PredictionNotFoundError(LinkPredictionError, LookupError):
    """No predicted edge exists for the requested algorithm."""


class ConfigurationError(LinkPredictionError, ValueError):
    """Inputs are malformed or cannot be compared meaningfully."""


class AlgorithmTypeError(LinkPredictionError, TypeError):
    """A metric received an algorithm of an unsupported type."""


class RunCancelled(LinkPredictionError):
    """An iteration loop was stopped by its ``should_stop`` hook."""

    def __init__(
        self,
        message: str,
        completed: int = 0,
        partial_run: Any = None,
        completed_runs: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.completed = completed
        self.partial_run = partial_run
        self.completed_runs = completed_runs or {}
