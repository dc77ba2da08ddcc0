"""Agent-based modeling kernel.

Typical use::

    from abm_kernel import AgentSchema, GridSpace, Model, run

    schema = AgentSchema.of("Cell", alive=bool)
    model = Model(schema, GridSpace((10, 10)), agent_step=update)
    result = run(model, 50, agent_data=["alive"])
"""

from abm_kernel.config import (
    ContinuousSpaceConfig,
    GridSpaceConfig,
    Metric,
    ModelConfig,
    RunConfig,
    UpdateMode,
)
from abm_kernel.domain import (
    Agent,
    AgentSchema,
    AStarPathfinder,
    ByKind,
    ByProperty,
    ContinuousSpace,
    Custom,
    GridSpace,
    Randomly,
    Sequential,
    choose_event,
    diffuse,
    evaporate,
    sample_agents,
)
from abm_kernel.errors import (
    CallbackError,
    KernelError,
    OccupiedCellError,
    OutOfBoundsError,
    ParallelContractError,
    StepLimitError,
    UnknownAgentError,
)
from abm_kernel.simulation import (
    Model,
    RunResult,
    add,
    iterate,
    run,
    run_to_parquet,
    step,
    write_run,
)

__all__ = [
    "AStarPathfinder",
    "Agent",
    "AgentSchema",
    "ByKind",
    "ByProperty",
    "CallbackError",
    "ContinuousSpace",
    "ContinuousSpaceConfig",
    "Custom",
    "GridSpace",
    "GridSpaceConfig",
    "KernelError",
    "Metric",
    "Model",
    "ModelConfig",
    "OccupiedCellError",
    "OutOfBoundsError",
    "ParallelContractError",
    "Randomly",
    "RunConfig",
    "RunResult",
    "Sequential",
    "StepLimitError",
    "UnknownAgentError",
    "UpdateMode",
    "add",
    "choose_event",
    "diffuse",
    "evaporate",
    "iterate",
    "run",
    "run_to_parquet",
    "sample_agents",
    "step",
    "write_run",
]
