"""Configuration layer: constants and typed config dataclasses."""

from abm_kernel.config.constants import (
    DEFAULT_PARALLEL_WORKERS,
    DEFAULT_SEED,
    DEFAULT_SPACING,
    FIRST_AGENT_ID,
    FLUSH_THRESHOLD,
    MAX_RUN_STEPS,
    RUN_SCHEMA_VERSION,
)
from abm_kernel.config.types import (
    ContinuousSpaceConfig,
    GridSpaceConfig,
    Metric,
    ModelConfig,
    RunConfig,
    UpdateMode,
)

__all__ = [
    "ContinuousSpaceConfig",
    "DEFAULT_PARALLEL_WORKERS",
    "DEFAULT_SEED",
    "DEFAULT_SPACING",
    "FIRST_AGENT_ID",
    "FLUSH_THRESHOLD",
    "GridSpaceConfig",
    "MAX_RUN_STEPS",
    "Metric",
    "ModelConfig",
    "RUN_SCHEMA_VERSION",
    "RunConfig",
    "UpdateMode",
]
