"""Simulation engine: model context, stepping driver, collection and Parquet persistence."""

from abm_kernel.simulation.collect import DataCollector
from abm_kernel.simulation.engine import RunResult, add, iterate, run, step
from abm_kernel.simulation.model import Model, build_space
from abm_kernel.simulation.parallel import agent_rng
from abm_kernel.simulation.persistence import flush_table, run_to_parquet, write_run

__all__ = [
    "DataCollector",
    "Model",
    "RunResult",
    "add",
    "agent_rng",
    "build_space",
    "flush_table",
    "iterate",
    "run",
    "run_to_parquet",
    "step",
    "write_run",
]
