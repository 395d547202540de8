"""Unit tests for CLI interface."""

import json
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner

from densitygraph.models.config import EngineConfig
from densitygraph.models.data_models import (
    DataPoint,
    GridDescriptor,
    Histogram,
    RunResult,
    RunStats,
)
from densitygraph.pipeline.main import main


@pytest.fixture
def mock_result():
    """Create a mock run result."""
    histogram = Histogram({DataPoint(0, 0): 2, DataPoint(1, 1): 1})
    return RunResult(
        grid=GridDescriptor(columns=3, rows=3, batch_count=4),
        histograms=[histogram],
        failed_indices=[1, 3],
        empty_indices=[2],
        progress=100,
        completed=True,
        elapsed_seconds=0.5,
        stats=RunStats(fetch_attempts=10, retries=6, points_received=3),
    )


def test_cli_help():
    """Test that CLI help message works."""
    runner = CliRunner()
    result = runner.invoke(main, ["--help"])

    assert result.exit_code == 0
    assert "Density Graph" in result.output
    assert "--config" in result.output
    assert "--max-attempts" in result.output
    assert "--source" in result.output


def test_cli_version():
    """Test that version flag works."""
    runner = CliRunner()
    result = runner.invoke(main, ["--version"])

    assert result.exit_code == 0
    assert "1.0.0" in result.output


@patch("densitygraph.pipeline.main.PipelineOrchestrator")
@patch("densitygraph.pipeline.main.ConfigManager")
def test_cli_passes_overrides(mock_config_manager_class, mock_orchestrator_class, mock_result, tmp_path):
    """Test CLI flags are forwarded as config overrides."""
    mock_config_manager = MagicMock()
    mock_config_manager.load_config.return_value = EngineConfig(output_directory=str(tmp_path))
    mock_config_manager_class.return_value = mock_config_manager
    mock_orchestrator_class.return_value.run.return_value = mock_result

    runner = CliRunner()
    result = runner.invoke(main, [
        "--source", "HTTP",
        "--url", "http://host:9000",
        "--max-attempts", "2",
        "--batches", "8",
        "--seed", "3",
        "--log-level", "debug",
        "--no-progress",
    ])

    assert result.exit_code == 0, result.output
    overrides = mock_config_manager.load_config.call_args.args[0]
    assert overrides == {
        "source": "http",
        "server_url": "http://host:9000",
        "batch_count": 8,
        "max_attempts": 2,
        "random_seed": 3,
        "log_level": "DEBUG",
    }


@patch("densitygraph.pipeline.main.PipelineOrchestrator")
def test_cli_saves_output_and_lists_failures(mock_orchestrator_class, mock_result, tmp_path):
    """Test results are saved and failed indices reported."""
    mock_orchestrator_class.return_value.run.return_value = mock_result
    output_path = tmp_path / "result.json"

    runner = CliRunner()
    result = runner.invoke(main, [
        "--config", str(tmp_path / "missing.yaml"),
        "--output", str(output_path),
        "--no-progress",
    ])

    assert result.exit_code == 0, result.output
    assert "Failed indices: 1, 3" in result.output
    data = json.loads(output_path.read_text())
    assert data["failed_indices"] == [1, 3]
    assert data["summary"]["largest_multiple"] == 2


@patch("densitygraph.pipeline.main.PipelineOrchestrator")
def test_cli_progress_mode_uses_listener(mock_orchestrator_class, mock_result, tmp_path):
    """Test progress mode hands a listener to the engine run."""
    mock_orchestrator_class.return_value.run.return_value = mock_result

    runner = CliRunner()
    result = runner.invoke(main, [
        "--config", str(tmp_path / "missing.yaml"),
        "--output", str(tmp_path / "out.json"),
    ])

    assert result.exit_code == 0, result.output
    assert "Run Complete!" in result.output
    assert "Largest Multiple" in result.output
    listener = mock_orchestrator_class.return_value.run.call_args.kwargs["listener"]
    assert callable(listener)


def test_cli_end_to_end_simulated(tmp_path):
    """Test a real simulated run through the CLI."""
    output_path = tmp_path / "histograms.json"

    runner = CliRunner()
    result = runner.invoke(main, [
        "--config", str(tmp_path / "missing.yaml"),
        "--batches", "6",
        "--seed", "11",
        "--log-level", "ERROR",
        "--output", str(output_path),
        "--no-progress",
    ])

    assert result.exit_code == 0, result.output
    data = json.loads(output_path.read_text())
    assert data["grid"]["batch_count"] == 6
    assert data["summary"]["completed"] is True
    assert data["summary"]["progress"] == 100


def test_cli_invalid_config_exits_with_error(tmp_path):
    """Test configuration errors exit with code 1."""
    runner = CliRunner()
    result = runner.invoke(main, [
        "--config", str(tmp_path / "missing.yaml"),
        "--max-attempts", "0",
        "--no-progress",
    ])

    assert result.exit_code == 1
    assert "Error" in result.output


@patch("densitygraph.pipeline.main.PipelineOrchestrator")
def test_cli_debug_prints_traceback(mock_orchestrator_class, tmp_path):
    """Test --debug adds a traceback to the error report."""
    mock_orchestrator_class.return_value.run.side_effect = RuntimeError("engine exploded")
    args = ["--config", str(tmp_path / "missing.yaml"), "--no-progress"]

    runner = CliRunner()
    quiet = runner.invoke(main, args)
    verbose = runner.invoke(main, args + ["--debug"])

    assert quiet.exit_code == 1
    assert "engine exploded" in quiet.output
    assert "Traceback" not in quiet.output
    assert verbose.exit_code == 1
    assert "Traceback" in verbose.output
