"""Canonical agent collection with monotonic identifier allocation."""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from typing import Any

from abm_kernel.config.constants import FIRST_AGENT_ID
from abm_kernel.domain.agent import Agent, AgentSchema
from abm_kernel.domain.continuous import ContinuousSpace
from abm_kernel.domain.grid import GridSpace
from abm_kernel.errors import UnknownAgentError

Space = GridSpace | ContinuousSpace


class AgentStore:
    """Owns every live agent record and keeps ``agent.pos`` in sync with the space.

    Identifiers start at ``FIRST_AGENT_ID`` and only grow; a removed id is
    retired for the lifetime of the store.
    """

    def __init__(self, schema: AgentSchema, space: Space | None = None) -> None:
        self.schema = schema
        self.space = space
        self._agents: dict[int, Agent] = {}
        self._next_id = FIRST_AGENT_ID

    def __len__(self) -> int:
        return len(self._agents)

    def __contains__(self, agent_id: object) -> bool:
        return agent_id in self._agents

    @property
    def next_id(self) -> int:
        """Identifier the next ``create`` will assign."""
        return self._next_id

    def create(
        self, position: Sequence[Any] | None = None, kind: str | None = None, **fields: Any
    ) -> Agent:
        """Validate, place and insert a new agent.

        The identifier is consumed only once placement succeeded, so a
        rejected position never burns an id.
        """
        agent_id = self._next_id
        values = self.schema.resolve_fields(fields)
        kind = self.schema.validate_kind(kind)
        if self.space is None:
            if position is not None:
                raise ValueError("model has no space; position must be None")
            pos = None
        else:
            if position is None:
                raise ValueError("position is required when the model has a space")
            pos = self.space.place(agent_id, position)
        agent = self.schema.record_type(id=agent_id, pos=pos, kind=kind, **values)
        self._agents[agent_id] = agent
        self._next_id += 1
        return agent

    def get(self, agent_id: int) -> Agent:
        try:
            return self._agents[agent_id]
        except KeyError:
            raise UnknownAgentError(agent_id) from None

    def remove(self, agent_id: int) -> Agent:
        agent = self._agents.pop(agent_id, None)
        if agent is None:
            raise UnknownAgentError(agent_id)
        if self.space is not None:
            self.space.remove(agent_id)
        return agent

    def ids(self) -> list[int]:
        """Live ids in ascending order."""
        return sorted(self._agents)

    def all(self, *, snapshot: bool) -> Iterator[Agent]:
        """Iterate live agents in ascending id order.

        ``snapshot=True`` fixes the id set at call time and skips ids removed
        during iteration; agents created meanwhile are not visited.
        ``snapshot=False`` is a live view: changing the population while
        iterating raises ``RuntimeError``.
        """
        if snapshot:
            return self._iter_snapshot(self.ids())
        return iter(self._agents.values())

    def _iter_snapshot(self, ids: list[int]) -> Iterator[Agent]:
        for agent_id in ids:
            agent = self._agents.get(agent_id)
            if agent is not None:
                yield agent

    # ------------------------------------------------------------------
    # Movement: every position change goes through the store
    # ------------------------------------------------------------------

    def _require_space(self) -> Space:
        if self.space is None:
            raise ValueError("model has no space")
        return self.space

    def move(self, agent_id: int, target: Sequence[Any]) -> Agent:
        agent = self.get(agent_id)
        agent.pos = self._require_space().move(agent_id, target)
        return agent

    def walk(self, agent_id: int, delta: Sequence[Any]) -> Agent:
        agent = self.get(agent_id)
        agent.pos = self._require_space().translate(agent_id, delta)
        return agent

    def swap(self, a: int, b: int) -> None:
        agent_a = self.get(a)
        agent_b = self.get(b)
        agent_a.pos, agent_b.pos = self._require_space().swap(a, b)
