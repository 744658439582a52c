"""Command line interface for the link prediction evaluation engine.

This script defines the packaged `graph-lp-eval` entry point and its
subcommands. It loads a YAML or JSON configuration file, applies a small set of
command line overrides (output directory, algorithms, metric, log level), and
then calls the engine to produce run artefacts on disk.

The `predict` command runs one algorithm for a fixed number of steps on a copy
of the initial graph and exports the predicted edges. The `evaluate` command
runs one evaluation per configured algorithm against the validation graph and
stores the per-iteration results in `metrics.json`. The `report` command
locates a completed run directory and prints the stored final results.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import Any, Callable

from graph_lp_eval.algorithms import ALGORITHMS, get_algorithm
from graph_lp_eval.config import load_configuration, prepare_configuration
from graph_lp_eval.errors import LinkPredictionError, NoCandidateError, RunCancelled
from graph_lp_eval.eval import plot_iteration_results, summarise_run
from graph_lp_eval.graph import copy_graph, node_label
from graph_lp_eval.io import load_graphs, write_gexf, write_predictions_csv
from graph_lp_eval.metrics import METRICS, EvaluationRun, evaluate_algorithms
from graph_lp_eval.runner import IterationRunner
from graph_lp_eval.utils import (
    configure_logging,
    new_run_dir,
    read_json,
    save_config_copy,
    write_json,
)

_LOGGER = logging.getLogger(__name__)


def _load_prepared_configuration(arguments: argparse.Namespace) -> dict[str, Any]:
    """Load the configuration named on the command line and apply overrides."""

    configuration, configuration_text = load_configuration(arguments.config)
    prepared_configuration = prepare_configuration(
        configuration=configuration,
        configuration_text=configuration_text,
        config_path=arguments.config,
        output_directory_override=arguments.output_dir,
        algorithm_overrides=getattr(arguments, "algorithm", None),
        metric_override=getattr(arguments, "metric", None),
        log_level_override=arguments.log_level,
    )
    configure_logging(prepared_configuration["log_level"])
    return prepared_configuration


def _load_input_graphs(configuration: dict[str, Any]) -> tuple[Any, Any]:
    data = configuration["data"]
    return load_graphs(
        data["dir"],
        data["initial_edges_csv"],
        data["validation_edges_csv"],
        nodes_csv=data.get("nodes_csv"),
        undirected=bool(data["undirected"]),
    )


def _find_latest_run_directory(output_directory: str) -> str:
    """Return the most recently created run directory under an output folder.

    Only subdirectories that contain a ``metrics.json`` file are considered.
    Run directories are timestamp-named, so sorting the directory names
    lexicographically returns the most recent run last.
    """

    if not os.path.isdir(output_directory):
        raise FileNotFoundError(f"Output directory does not exist: {output_directory}")
    run_directories = []
    for candidate_directory_name in sorted(os.listdir(output_directory)):
        candidate_directory_path = os.path.join(
            output_directory, candidate_directory_name
        )
        candidate_metrics_path = os.path.join(candidate_directory_path, "metrics.json")
        if os.path.isdir(candidate_directory_path) and os.path.exists(
            candidate_metrics_path
        ):
            run_directories.append(candidate_directory_path)

    if not run_directories:
        raise FileNotFoundError(f"No run directories found under: {output_directory}")
    return run_directories[-1]


def _command_predict(arguments: argparse.Namespace) -> int:
    """Handle the ``predict`` subcommand.

    The first configured algorithm is executed ``--steps`` times on a copy of
    the initial graph. Predicted edges are written to ``predictions.csv`` and
    the whole predicted graph to ``predicted.gexf``.
    """

    configuration = _load_prepared_configuration(arguments)
    initial, _ = _load_input_graphs(configuration)
    algorithm = get_algorithm(configuration["evaluation"]["algorithms"][0])

    working = copy_graph(initial)
    print(
        f"Predicting {arguments.steps} edge(s) with {algorithm.name}...", flush=True
    )
    edges = IterationRunner(algorithm, working).run(arguments.steps)

    run_directory = new_run_dir(configuration["output_dir"])
    write_predictions_csv(working, os.path.join(run_directory, "predictions.csv"))
    write_gexf(working, os.path.join(run_directory, "predicted.gexf"))
    save_config_copy(
        os.path.join(run_directory, "config.txt"), configuration["_config_text"]
    )
    for u, v in edges:
        print(f"  {node_label(working, u)} -- {node_label(working, v)}")
    print(f"Artefacts: {run_directory}")
    return 0


def _write_evaluation_artefacts(
    configuration: dict[str, Any], runs: dict[str, EvaluationRun]
) -> str:
    """Write ``metrics.json``, ``iterations.png`` and the config copy."""

    run_directory = new_run_dir(configuration["output_dir"])
    metrics = {
        "metric": configuration["evaluation"]["metric"],
        "runs": {
            name: {**run.to_dict(), "summary": summarise_run(run)}
            for name, run in runs.items()
        },
    }
    write_json(os.path.join(run_directory, "metrics.json"), metrics)
    plot_iteration_results(
        runs,
        os.path.join(run_directory, "iterations.png"),
        dpi=int(configuration["plots"]["dpi"]),
    )
    save_config_copy(
        os.path.join(run_directory, "config.txt"), configuration["_config_text"]
    )
    return run_directory


def _command_evaluate(arguments: argparse.Namespace) -> int:
    """Handle the ``evaluate`` subcommand.

    Each configured algorithm is evaluated on its own working graph. The
    results are written to ``metrics.json`` and plotted to ``iterations.png``.
    When an algorithm runs out of candidates the runs finished so far and the
    interrupted run, up to its last completed iteration, are still written
    and the command returns 2.
    """

    configuration = _load_prepared_configuration(arguments)
    initial, validation = _load_input_graphs(configuration)
    evaluation = configuration["evaluation"]
    algorithms = [get_algorithm(key) for key in evaluation["algorithms"]]

    print(
        f"Evaluating {len(algorithms)} algorithm(s) with metric "
        f"{evaluation['metric']}...",
        flush=True,
    )
    try:
        runs = evaluate_algorithms(
            algorithms,
            initial,
            validation,
            metric=evaluation["metric"],
            copy_edges=bool(evaluation["copy_edges"]),
        )
    except (NoCandidateError, RunCancelled) as exception:
        runs = dict(exception.completed_runs)
        partial = exception.partial_run
        if partial is not None:
            runs[partial.algorithm_name] = partial
            if partial.iteration_results:
                last = max(partial.iteration_results)
                print(
                    f"{partial.algorithm_name} stopped after iteration {last}: "
                    f"{partial.iteration_results[last]}",
                    file=sys.stderr,
                )
        print(str(exception), file=sys.stderr)
        run_directory = _write_evaluation_artefacts(configuration, runs)
        print(f"Partial artefacts: {run_directory}")
        return 2

    run_directory = _write_evaluation_artefacts(configuration, runs)
    for name, run in runs.items():
        print(
            f"{name}: {run.diff_edge_count} iteration(s), "
            f"final {run.metric_name} {run.final_result}"
        )
    print(f"Artefacts: {run_directory}")
    return 0


def _command_report(arguments: argparse.Namespace) -> int:
    """Handle the ``report`` subcommand by reading stored run metrics."""

    configuration = _load_prepared_configuration(arguments)
    if arguments.run_dir is not None:
        run_directory = os.path.abspath(arguments.run_dir)
    else:
        run_directory = _find_latest_run_directory(str(configuration["output_dir"]))

    metrics_path = os.path.join(run_directory, "metrics.json")
    if not os.path.exists(metrics_path):
        raise FileNotFoundError(f"Expected metrics file does not exist: {metrics_path}")

    metrics = read_json(metrics_path)
    print(f"Loaded metrics from: {metrics_path}")
    for name, run in metrics.get("runs", {}).items():
        print(f"{name}: final {metrics.get('metric')} {run.get('final_result')}")
    return 0


def _build_parser() -> argparse.ArgumentParser:
    """Create the top-level argument parser with subcommands."""

    parser = argparse.ArgumentParser(prog="graph-lp-eval")
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_common_options(subparser: argparse.ArgumentParser) -> None:
        subparser.add_argument(
            "--config",
            required=True,
            help="Path to a YAML or JSON configuration file.",
        )
        subparser.add_argument(
            "--output-dir",
            type=str,
            default=None,
            help="Optional output directory override for run artefacts.",
        )
        subparser.add_argument(
            "--log-level",
            type=str,
            default=None,
            help="Optional log level override, for example 'DEBUG'.",
        )

    def add_algorithm_option(subparser: argparse.ArgumentParser) -> None:
        subparser.add_argument(
            "--algorithm",
            action="append",
            choices=sorted(ALGORITHMS),
            default=None,
            help="Algorithm to use; repeat to evaluate several. "
            "If omitted, the config value is used.",
        )

    predict_parser = subparsers.add_parser(
        "predict", help="Predict a number of edges on the initial graph."
    )
    add_common_options(predict_parser)
    add_algorithm_option(predict_parser)
    predict_parser.add_argument(
        "--steps",
        type=int,
        required=True,
        help="Number of edges to predict.",
    )
    predict_parser.set_defaults(handler=_command_predict)

    evaluate_parser = subparsers.add_parser(
        "evaluate", help="Evaluate algorithms against the validation graph."
    )
    add_common_options(evaluate_parser)
    add_algorithm_option(evaluate_parser)
    evaluate_parser.add_argument(
        "--metric",
        choices=sorted(METRICS),
        default=None,
        help="Optional metric override. If omitted, the config value is used.",
    )
    evaluate_parser.set_defaults(handler=_command_evaluate)

    report_parser = subparsers.add_parser(
        "report", help="Print the stored results of an evaluation run."
    )
    add_common_options(report_parser)
    report_parser.add_argument(
        "--run-dir",
        type=str,
        default=None,
        help="Optional explicit run directory to report.",
    )
    report_parser.set_defaults(handler=_command_report)

    return parser


def main(argument_list: list[str] | None = None) -> int:
    """Entry point for the ``graph-lp-eval`` console script.

    The function returns an integer exit code so it can be tested without
    spawning a subprocess. Configuration and engine errors return code 2, which
    matches the conventional behaviour of ``argparse`` for invalid input.
    """

    parser = _build_parser()
    try:
        arguments = parser.parse_args(argument_list)
    except SystemExit as system_exit_exception:
        return (
            int(system_exit_exception.code)
            if system_exit_exception.code is not None
            else 1
        )

    handler: Callable[[argparse.Namespace], int] = arguments.handler
    try:
        return int(handler(arguments))
    except (FileNotFoundError, ValueError, LinkPredictionError) as exception:
        _LOGGER.debug("Command failed", exc_info=True)
        print(str(exception), file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())  # pragma: no cover
