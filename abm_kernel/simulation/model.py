"""Model: the explicit invocation context passed into every callback.

A ``Model`` bundles the agent store, the optional space, the mutable
``properties`` mapping, the seeded generator and the step callbacks.  Runs
never share state through globals, so independent models can be built and
stepped side by side.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping, Sequence
from contextlib import contextmanager
from random import Random
from typing import Any

from abm_kernel.config.types import ContinuousSpaceConfig, GridSpaceConfig, Metric, ModelConfig
from abm_kernel.domain.agent import Agent, AgentSchema
from abm_kernel.domain.continuous import ContinuousSpace
from abm_kernel.domain.grid import GridSpace
from abm_kernel.domain.scheduler import Scheduler, Sequential
from abm_kernel.domain.store import AgentStore, Space
from abm_kernel.errors import ParallelContractError

AgentStep = Callable[..., None]
ModelStep = Callable[["Model"], None]


def build_space(config: GridSpaceConfig | ContinuousSpaceConfig) -> Space:
    """Instantiate the space described by ``config``."""
    if isinstance(config, GridSpaceConfig):
        return GridSpace.from_config(config)
    return ContinuousSpace.from_config(config)


class Model:
    """Agents, space, properties and callbacks of one simulation run.

    ``agent_step`` is either one callable ``(agent, model)`` used for every
    agent or a mapping from kind to callable; kinds missing from the mapping
    are not stepped.  Under ``UpdateMode.PARALLEL`` the agent callback
    signature is ``(agent, properties, rng)`` instead (see
    ``abm_kernel.simulation.parallel``).
    """

    def __init__(
        self,
        schema: AgentSchema,
        space: Space | None = None,
        *,
        properties: Mapping[str, Any] | None = None,
        agent_step: AgentStep | Mapping[str, AgentStep] | None = None,
        model_step: ModelStep | None = None,
        scheduler: Scheduler | None = None,
        config: ModelConfig | None = None,
    ) -> None:
        self.config = config or ModelConfig()
        self.schema = schema
        self.space = space
        self.store = AgentStore(schema, space)
        self.properties: dict[str, Any] = dict(properties or {})
        self.scheduler: Scheduler = scheduler or Sequential()
        if isinstance(agent_step, Mapping):
            if schema.kinds is None:
                raise ValueError("per-kind agent_step requires a schema with kinds")
            stray = set(agent_step) - set(schema.kinds)
            if stray:
                raise ValueError(f"agent_step has unknown kind(s): {', '.join(sorted(stray))}")
        self.agent_step = agent_step
        self.model_step = model_step
        self.time = 0
        self._rng = Random(self.config.seed)
        self._frozen = False

    # ------------------------------------------------------------------
    # Shared-state guards
    # ------------------------------------------------------------------

    @property
    def rng(self) -> Random:
        """The run's single seeded generator."""
        self._check_mutable("drawing from model.rng")
        return self._rng

    @property
    def frozen(self) -> bool:
        """True while a parallel agent step is running."""
        return self._frozen

    def _check_mutable(self, operation: str) -> None:
        if self._frozen:
            raise ParallelContractError(f"{operation} is not allowed during a parallel step")

    @contextmanager
    def parallel_phase(self) -> Iterator[None]:
        """Freeze shared state for the duration of a parallel agent step."""
        if self._frozen:
            raise ParallelContractError("parallel steps cannot nest")
        self._frozen = True
        try:
            yield
        finally:
            self._frozen = False

    # ------------------------------------------------------------------
    # Agent lifecycle
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self.store)

    def __contains__(self, agent_id: object) -> bool:
        return agent_id in self.store

    def __getitem__(self, agent_id: int) -> Agent:
        return self.agent(agent_id)

    def agent(self, agent_id: int) -> Agent:
        self._check_mutable("agent lookup")
        return self.store.get(agent_id)

    def agents(self, *, snapshot: bool) -> Iterator[Agent]:
        self._check_mutable("agent iteration")
        return self.store.all(snapshot=snapshot)

    def add_agent(
        self, position: Sequence[Any] | None = None, kind: str | None = None, **fields: Any
    ) -> Agent:
        """Create an agent; without ``position`` a random (empty, if capped) cell is used."""
        self._check_mutable("add_agent")
        if position is None and self.space is not None:
            position = self._random_spawn_position()
        return self.store.create(position, kind, **fields)

    def _random_spawn_position(self) -> Sequence[Any]:
        space = self.space
        if isinstance(space, GridSpace) and space.capacity is not None:
            pos = space.random_empty(self._rng)
            if pos is None:
                raise ValueError("no empty position left in the grid")
            return pos
        return self._require_space().random_position(self._rng)

    def remove_agent(self, agent: Agent | int) -> None:
        self._check_mutable("remove_agent")
        self.store.remove(_agent_id(agent))

    def move_agent(self, agent: Agent | int, target: Sequence[Any]) -> Agent:
        self._check_mutable("move_agent")
        return self.store.move(_agent_id(agent), target)

    def walk(self, agent: Agent | int, delta: Sequence[Any]) -> Agent:
        self._check_mutable("walk")
        return self.store.walk(_agent_id(agent), delta)

    def swap_agents(self, a: Agent | int, b: Agent | int) -> None:
        self._check_mutable("swap_agents")
        self.store.swap(_agent_id(a), _agent_id(b))

    # ------------------------------------------------------------------
    # Neighbor queries
    # ------------------------------------------------------------------

    def _require_space(self) -> Space:
        if self.space is None:
            raise ValueError("model has no space")
        return self.space

    def _require_grid(self) -> GridSpace:
        if not isinstance(self.space, GridSpace):
            raise ValueError("operation requires a grid space")
        return self.space

    def nearby_ids(
        self, where: Agent | Sequence[Any], radius: float = 1, metric: Metric | None = None
    ) -> Iterator[int]:
        """Ids near an agent (the agent itself excluded) or near a position."""
        self._check_mutable("nearby_ids")
        space = self._require_space()
        if isinstance(where, Agent):
            own = where.id
            return (i for i in space.nearby_ids(where.pos, radius, metric) if i != own)
        return space.nearby_ids(where, radius, metric)

    def nearby_agents(
        self, where: Agent | Sequence[Any], radius: float = 1, metric: Metric | None = None
    ) -> Iterator[Agent]:
        return (self.store.get(i) for i in self.nearby_ids(where, radius, metric))

    def nearby_positions(
        self, where: Agent | Sequence[int], radius: float = 1, metric: Metric | None = None
    ) -> Iterator[tuple[int, ...]]:
        pos = where.pos if isinstance(where, Agent) else where
        return self._require_grid().nearby_positions(pos, radius, metric)

    def random_nearby_id(
        self,
        where: Agent | Sequence[Any],
        radius: float = 1,
        predicate: Callable[[int], bool] | None = None,
    ) -> int | None:
        candidates = [
            i for i in self.nearby_ids(where, radius) if predicate is None or predicate(i)
        ]
        return self.rng.choice(candidates) if candidates else None

    def random_nearby_agent(
        self,
        where: Agent | Sequence[Any],
        radius: float = 1,
        predicate: Callable[[Agent], bool] | None = None,
    ) -> Agent | None:
        agent_id = self.random_nearby_id(
            where,
            radius,
            None if predicate is None else (lambda i: predicate(self.store.get(i))),
        )
        return None if agent_id is None else self.store.get(agent_id)

    def random_nearby_position(
        self,
        where: Agent | Sequence[int],
        radius: float = 1,
        predicate: Callable[[tuple[int, ...]], bool] | None = None,
    ) -> tuple[int, ...] | None:
        candidates = [
            p for p in self.nearby_positions(where, radius) if predicate is None or predicate(p)
        ]
        return self.rng.choice(candidates) if candidates else None

    def is_empty(self, position: Sequence[int]) -> bool:
        return self._require_grid().is_empty(position)

    def ids_in_position(self, position: Sequence[int]) -> list[int]:
        return self._require_grid().ids_in_position(position)

    def empty_positions(self) -> Iterator[tuple[int, ...]]:
        return self._require_grid().empty_positions()

    def positions(self) -> Iterator[tuple[int, ...]]:
        return self._require_grid().positions()

    # ------------------------------------------------------------------
    # Stepping
    # ------------------------------------------------------------------

    def callback_for(self, agent: Agent) -> AgentStep | None:
        """Update callback that applies to ``agent``'s kind."""
        if isinstance(self.agent_step, Mapping):
            return self.agent_step.get(agent.kind)  # type: ignore[arg-type]
        return self.agent_step

    def step(self, n: int = 1) -> None:
        from abm_kernel.simulation.engine import step

        step(self, n)


def _agent_id(agent: Agent | int) -> int:
    return agent.id if isinstance(agent, Agent) else agent
