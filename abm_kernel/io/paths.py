"""Path construction helpers for run output directories."""

from __future__ import annotations

from pathlib import Path


def logs_dir(out_dir: Path) -> Path:
    """Return path to the logs subdirectory within an output directory."""
    return out_dir / "logs"


def agent_data_path(out_dir: Path) -> Path:
    """Return path to the per-step agent data Parquet file."""
    return logs_dir(out_dir) / "agent_data.parquet"


def model_data_path(out_dir: Path) -> Path:
    """Return path to the per-step model data Parquet file."""
    return logs_dir(out_dir) / "model_data.parquet"


def run_meta_path(out_dir: Path) -> Path:
    """Return path to the run metadata JSON file."""
    return out_dir / "run_meta.json"
