"""Domain layer: spaces, agent records, the agent store and schedulers."""

from abm_kernel.domain.agent import Agent, AgentSchema, FieldSpec
from abm_kernel.domain.continuous import ContinuousSpace
from abm_kernel.domain.events import choose_event, cumulative_propensities, select_event
from abm_kernel.domain.fields import diffuse, evaporate
from abm_kernel.domain.geometry import distance, offsets, periodic_delta
from abm_kernel.domain.grid import GridSpace
from abm_kernel.domain.pathfinding import AStarPathfinder
from abm_kernel.domain.sampling import sample_agents
from abm_kernel.domain.scheduler import ByKind, ByProperty, Custom, Randomly, Scheduler, Sequential
from abm_kernel.domain.store import AgentStore, Space

__all__ = [
    "AStarPathfinder",
    "Agent",
    "AgentSchema",
    "AgentStore",
    "ByKind",
    "ByProperty",
    "ContinuousSpace",
    "Custom",
    "FieldSpec",
    "GridSpace",
    "Randomly",
    "Scheduler",
    "Sequential",
    "Space",
    "choose_event",
    "cumulative_propensities",
    "diffuse",
    "distance",
    "evaporate",
    "offsets",
    "periodic_delta",
    "sample_agents",
    "select_event",
]
