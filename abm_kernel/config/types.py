"""Configuration dataclasses for spaces, models and runs.

All dataclasses are frozen and validate their fields on construction.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from abm_kernel.config.constants import (
    DEFAULT_PARALLEL_WORKERS,
    DEFAULT_SEED,
    DEFAULT_SPACING,
    MAX_RUN_STEPS,
)

__all__ = [
    "ContinuousSpaceConfig",
    "GridSpaceConfig",
    "Metric",
    "ModelConfig",
    "RunConfig",
    "UpdateMode",
]


class Metric(Enum):
    """Distance function used by neighbor queries."""

    CHEBYSHEV = "chebyshev"
    MANHATTAN = "manhattan"
    EUCLIDEAN = "euclidean"


class UpdateMode(Enum):
    """How the per-agent callback is driven within one step."""

    SEQUENTIAL = "sequential"
    PARALLEL = "parallel"


@dataclass(frozen=True)
class GridSpaceConfig:
    """Discrete grid of fixed dimensions."""

    dims: tuple[int, ...] = (20, 20)
    periodic: bool = False
    metric: Metric = Metric.CHEBYSHEV
    capacity: int | None = None
    """Maximum agents per cell (``None`` = unbounded, ``1`` = single occupancy)."""

    def __post_init__(self) -> None:
        if not self.dims:
            raise ValueError("dims must not be empty")
        if any(d < 1 for d in self.dims):
            raise ValueError("grid dimensions must be >= 1")
        if self.capacity is not None and self.capacity < 1:
            raise ValueError("capacity must be >= 1 or None")


@dataclass(frozen=True)
class ContinuousSpaceConfig:
    """Bounded continuous region indexed by square buckets of ``spacing``."""

    extent: tuple[float, ...] = (20.0, 20.0)
    spacing: float = DEFAULT_SPACING
    periodic: bool = False
    metric: Metric = Metric.EUCLIDEAN

    def __post_init__(self) -> None:
        if not self.extent:
            raise ValueError("extent must not be empty")
        if any(e <= 0.0 for e in self.extent):
            raise ValueError("extent values must be > 0")
        if self.spacing <= 0.0:
            raise ValueError("spacing must be > 0")
        if any(self.spacing > e for e in self.extent):
            raise ValueError("spacing cannot exceed the extent")


@dataclass(frozen=True)
class ModelConfig:
    """Run-invariant model knobs."""

    seed: int = DEFAULT_SEED
    agents_first: bool = True
    """Run agent callbacks before the model callback in each step."""
    update_mode: UpdateMode = UpdateMode.SEQUENTIAL
    parallel_workers: int = DEFAULT_PARALLEL_WORKERS

    def __post_init__(self) -> None:
        if self.parallel_workers < 1:
            raise ValueError("parallel_workers must be >= 1")


@dataclass(frozen=True)
class RunConfig:
    """Driver settings for ``run``."""

    collect_initial: bool = True
    max_steps: int = MAX_RUN_STEPS

    def __post_init__(self) -> None:
        if self.max_steps < 1:
            raise ValueError("max_steps must be >= 1")
