"""Path construction helpers for simulation output directories.

Centralises the directory/file naming conventions used by the batch runner.
"""

from __future__ import annotations

from pathlib import Path


def logs_dir(out_dir: Path) -> Path:
    """Return path to the logs subdirectory within an output directory."""
    return out_dir / "logs"


def trajectory_path(out_dir: Path) -> Path:
    """Return path to the trajectory Parquet file."""
    return logs_dir(out_dir) / "trajectory.parquet"


def flock_metrics_path(out_dir: Path) -> Path:
    """Return path to the per-tick flock metrics Parquet file."""
    return logs_dir(out_dir) / "flock_metrics.parquet"


def run_config_path(out_dir: Path) -> Path:
    """Return path to the JSON record of the run configuration."""
    return out_dir / "run_config.json"
