"""Smoke tests for the public command line interface.

The CLI is implemented as a Python function that returns an exit code, which
keeps tests fast and avoids spawning subprocesses. These tests run the
quickstart configuration end to end and check the artefacts on disk.
"""

from __future__ import annotations

import json
from pathlib import Path

import pandas as pd
import pytest

from graph_lp_eval import cli
from graph_lp_eval.algorithms import ALGORITHMS, PreferentialAttachment

REPOSITORY_ROOT = Path(__file__).resolve().parents[1]
QUICKSTART_CONFIG = REPOSITORY_ROOT / "configs" / "quickstart.yaml"


def _write_json_config(directory: Path, **evaluation) -> Path:
    """Write a JSON config pointing at the quickstart data."""
    payload = {
        "output_dir": "artifacts",
        "data": {
            "dir": str(REPOSITORY_ROOT / "data" / "quickstart"),
            "nodes_csv": "nodes.csv",
            "initial_edges_csv": "initial.csv",
            "validation_edges_csv": "validation.csv",
            "undirected": True,
        },
        "evaluation": {
            "algorithms": ["preferential_attachment"],
            "metric": "precision",
            **evaluation,
        },
    }
    config_path = directory / "config.json"
    config_path.write_text(json.dumps(payload), encoding="utf-8")
    return config_path


def test_cli_evaluate_and_report_quickstart_config(tmp_path, capsys):
    """Evaluate writes metrics and a plot; report reads them back."""
    output_directory = tmp_path / "run_output"
    exit_code = cli.main(
        [
            "evaluate",
            "--config",
            str(QUICKSTART_CONFIG),
            "--output-dir",
            str(output_directory),
        ]
    )
    assert exit_code == 0

    metrics_files = list(output_directory.rglob("metrics.json"))
    assert len(metrics_files) == 1
    assert (metrics_files[0].parent / "iterations.png").is_file()
    assert (metrics_files[0].parent / "config.txt").is_file()

    metrics = json.loads(metrics_files[0].read_text(encoding="utf-8"))
    assert metrics["metric"] == "precision"
    assert set(metrics["runs"]) == {
        "Preferential Attachment",
        "Common Neighbours",
        "Jaccard Coefficient",
    }
    pa = metrics["runs"]["Preferential Attachment"]
    assert pa["diff_edge_count"] == 3
    assert sorted(pa["iteration_results"]) == ["1", "2", "3"]
    assert pa["final_result"] == pytest.approx(2 / 12)

    capsys.readouterr()
    report_exit_code = cli.main(
        [
            "report",
            "--config",
            str(QUICKSTART_CONFIG),
            "--output-dir",
            str(output_directory),
        ]
    )
    assert report_exit_code == 0
    output_text = capsys.readouterr().out
    assert "Loaded metrics from:" in output_text
    assert "Preferential Attachment: final precision" in output_text


def test_cli_evaluate_with_algorithm_and_metric_overrides(tmp_path):
    """Command line overrides select the algorithms and metric."""
    config_path = _write_json_config(tmp_path)
    exit_code = cli.main(
        [
            "evaluate",
            "--config",
            str(config_path),
            "--algorithm",
            "jaccard",
            "--algorithm",
            "adamic_adar",
            "--metric",
            "recall",
        ]
    )
    assert exit_code == 0

    (metrics_file,) = (tmp_path / "artifacts").rglob("metrics.json")
    metrics = json.loads(metrics_file.read_text(encoding="utf-8"))
    assert metrics["metric"] == "recall"
    assert set(metrics["runs"]) == {"Jaccard Coefficient", "Adamic Adar"}


def test_cli_predict_writes_predictions(tmp_path, capsys):
    """Predict runs the first algorithm on the initial graph."""
    config_path = _write_json_config(tmp_path)
    exit_code = cli.main(["predict", "--config", str(config_path), "--steps", "2"])
    assert exit_code == 0

    (predictions_file,) = (tmp_path / "artifacts").rglob("predictions.csv")
    predictions = pd.read_csv(predictions_file)
    assert predictions["iterationAddedIn"].tolist() == [1, 2]
    assert {predictions.loc[0, "source"], predictions.loc[0, "target"]} == {"A", "G"}
    assert (predictions_file.parent / "predicted.gexf").is_file()
    assert "Node A -- Node G" in capsys.readouterr().out


def test_cli_report_supports_explicit_run_directory(tmp_path, capsys):
    """Report can read a specific run directory when metrics are present."""
    run_directory = tmp_path / "20200101-000000"
    run_directory.mkdir(parents=True, exist_ok=True)
    (run_directory / "metrics.json").write_text("{}", encoding="utf-8")

    exit_code = cli.main(
        [
            "report",
            "--config",
            str(QUICKSTART_CONFIG),
            "--run-dir",
            str(run_directory),
        ]
    )
    assert exit_code == 0
    assert "Loaded metrics from:" in capsys.readouterr().out


def test_cli_report_without_runs_fails(tmp_path, capsys):
    """An empty output directory has nothing to report."""
    exit_code = cli.main(
        [
            "report",
            "--config",
            str(QUICKSTART_CONFIG),
            "--output-dir",
            str(tmp_path),
        ]
    )
    assert exit_code == 2
    assert "No run directories found" in capsys.readouterr().err


def test_cli_unknown_algorithm_in_config_returns_error(tmp_path, capsys):
    """Configuration errors map to exit code 2 with a message."""
    config_path = _write_json_config(tmp_path)
    payload = json.loads(config_path.read_text(encoding="utf-8"))
    payload["evaluation"]["algorithms"] = ["katz"]
    config_path.write_text(json.dumps(payload), encoding="utf-8")

    exit_code = cli.main(["evaluate", "--config", str(config_path)])
    assert exit_code == 2
    assert "Unknown algorithm: katz" in capsys.readouterr().err


def test_cli_missing_required_field_returns_error(tmp_path, capsys):
    """A config without the data section is rejected before any work."""
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps({"output_dir": "x"}), encoding="utf-8")
    exit_code = cli.main(["evaluate", "--config", str(config_path)])
    assert exit_code == 2
    assert "data.dir" in capsys.readouterr().err


def test_cli_requires_subcommand_and_steps(tmp_path):
    """argparse errors are returned as exit codes."""
    assert cli.main([]) == 2
    config_path = _write_json_config(tmp_path)
    assert cli.main(["predict", "--config", str(config_path)]) == 2
    assert cli.main(["predict", "--config", str(config_path), "--steps", "-1"]) == 2


class _FirstEdgeOnly(PreferentialAttachment):
    """Runs out of candidates once the working graph has an edge."""

    key = "first_edge_only"
    name = "First Edge Only"

    def candidates(self, g):
        if g.number_of_edges() == 0:
            yield from super().candidates(g)


def test_cli_evaluate_writes_finished_runs_when_one_algorithm_fails(
    tmp_path, capsys, monkeypatch
):
    """Finished and interrupted runs are stored before the error exit code."""
    monkeypatch.setitem(ALGORITHMS, _FirstEdgeOnly.key, _FirstEdgeOnly)
    config_path = _write_json_config(
        tmp_path, algorithms=["preferential_attachment", "first_edge_only"]
    )

    exit_code = cli.main(["evaluate", "--config", str(config_path)])
    assert exit_code == 2
    assert "First Edge Only stopped after iteration 1" in capsys.readouterr().err

    (metrics_file,) = (tmp_path / "artifacts").rglob("metrics.json")
    metrics = json.loads(metrics_file.read_text(encoding="utf-8"))
    finished = metrics["runs"]["Preferential Attachment"]
    assert finished["completed"] is True
    assert finished["final_result"] == pytest.approx(2 / 12)
    interrupted = metrics["runs"]["First Edge Only"]
    assert interrupted["completed"] is False
    assert interrupted["final_result"] is None
    assert list(interrupted["iteration_results"]) == ["1"]
