"""Reporting utilities for evaluation runs.

This module summarises per-iteration metric values and writes a line plot of
the metric over iterations, one line per algorithm, to disk.
"""

from typing import Dict, Mapping

import os
import numpy as np
import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402

from .metrics import EvaluationRun  # noqa: E402


def summarise_run(run: EvaluationRun) -> Dict[str, float]:
    """Reduce a run to a few scalars.

    Args:
        run: A completed or partial evaluation run.

    Returns:
        A mapping with the number of iterations computed, the mean, maximum and
        last per-iteration value, and the final result (NaN while unset).
    """
    values = np.fromiter(run.iteration_results.values(), dtype=float)
    if values.size == 0:
        mean = best = last = float("nan")
    else:
        mean, best, last = float(values.mean()), float(values.max()), float(values[-1])
    return {
        "iterations": float(values.size),
        "mean": mean,
        "max": best,
        "last": last,
        "final": float("nan") if run.final_result is None else run.final_result,
    }


def plot_iteration_results(
    runs: Mapping[str, EvaluationRun], out_path: str, dpi: int = 120
) -> str:
    """Plot the metric value per iteration for each run and save the image.

    Args:
        runs: Evaluation runs keyed by algorithm name.
        out_path: Image file to write; parent directories are created.
        dpi: Output image DPI.

    Returns:
        ``out_path``.
    """
    # Ensure the output folder exists before writing files
    out_dir = os.path.dirname(out_path)
    if out_dir:
        os.makedirs(out_dir, exist_ok=True)

    metric_names = {run.metric_name for run in runs.values()}
    plt.figure()
    for algorithm_name, run in runs.items():
        iterations = np.fromiter(run.iteration_results.keys(), dtype=int)
        values = np.fromiter(run.iteration_results.values(), dtype=float)
        plt.plot(iterations, values, marker=".", label=algorithm_name)
    plt.xlabel("Iteration")
    plt.ylabel(", ".join(sorted(metric_names)) or "Metric")
    plt.title("Metric per iteration")
    if runs:
        plt.legend()
    plt.savefig(out_path, dpi=dpi, bbox_inches="tight")
    plt.close()
    return out_path
