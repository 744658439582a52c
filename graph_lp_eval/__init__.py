"""Graph Link Prediction Evaluation: iterative link prediction with scoring.

This package provides:
- graph helpers for building snapshots and independent working copies
- typed per-edge metadata columns recording which algorithm added an edge,
  in which iteration and with which score
- scoring algorithms (preferential attachment, common neighbours, Jaccard,
  Adamic-Adar) that insert the single best missing edge per execution
- an iteration runner and evaluation metrics that compare the predicted
  graph with a validation graph after every iteration
- CSV/GEXF IO, plotting, configuration and a command line interface
"""

__all__ = [
    "errors",
    "graph",
    "columns",
    "algorithms",
    "runner",
    "metrics",
    "io",
    "eval",
    "config",
    "utils",
    "cli",
]
