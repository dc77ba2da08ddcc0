"""Activation-order schedulers.

A scheduler is any callable ``scheduler(model) -> list[int]`` returning
every live id exactly once.  It is invoked once at the start of each step;
ids removed later in that step are skipped by the driver.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from abm_kernel.simulation.model import Model


class Scheduler(Protocol):
    def __call__(self, model: Model) -> list[int]: ...


class Sequential:
    """Ascending identifier order."""

    def __call__(self, model: Model) -> list[int]:
        return model.store.ids()


class Randomly:
    """Fresh permutation per step, drawn from the model's seeded generator."""

    def __call__(self, model: Model) -> list[int]:
        order = model.store.ids()
        model.rng.shuffle(order)
        return order


class ByProperty:
    """Order by a field value (or ``key(agent)``); ties broken by ascending id."""

    def __init__(self, key: str | Callable[[Any], Any], *, reverse: bool = False) -> None:
        self.key = key
        self.reverse = reverse

    def _value(self, agent: Any) -> Any:
        if callable(self.key):
            return self.key(agent)
        return getattr(agent, self.key)

    def __call__(self, model: Model) -> list[int]:
        agents = list(model.store.all(snapshot=True))
        # stable sort keeps ascending id among equal keys in both directions
        agents.sort(key=self._value, reverse=self.reverse)
        return [agent.id for agent in agents]


class ByKind:
    """All agents of one kind, then the next, following ``order``.

    ``shuffle_kinds`` permutes the kind order each step and
    ``shuffle_agents`` permutes agents within each kind.
    """

    def __init__(
        self,
        order: Sequence[str],
        *,
        shuffle_kinds: bool = False,
        shuffle_agents: bool = False,
    ) -> None:
        if len(order) != len(set(order)):
            raise ValueError("order must not repeat kinds")
        self.order = tuple(order)
        self.shuffle_kinds = shuffle_kinds
        self.shuffle_agents = shuffle_agents

    def __call__(self, model: Model) -> list[int]:
        groups: dict[str | None, list[int]] = {kind: [] for kind in self.order}
        for agent in model.store.all(snapshot=True):
            if agent.kind not in groups:
                raise ValueError(f"kind {agent.kind!r} missing from scheduler order")
            groups[agent.kind].append(agent.id)
        kinds = list(self.order)
        if self.shuffle_kinds:
            model.rng.shuffle(kinds)
        result: list[int] = []
        for kind in kinds:
            ids = groups[kind]
            if self.shuffle_agents:
                model.rng.shuffle(ids)
            result.extend(ids)
        return result


class Custom:
    """User ordering function, checked against the live population."""

    def __init__(self, fn: Callable[[Model], Iterable[int]]) -> None:
        self.fn = fn

    def __call__(self, model: Model) -> list[int]:
        order = list(self.fn(model))
        live = model.store.ids()
        if len(order) != len(live) or set(order) != set(live):
            raise ValueError("custom scheduler must return every live id exactly once")
        return order
