"""Population resampling (Wright-Fisher style generational replacement)."""

from __future__ import annotations

import copy
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from abm_kernel.simulation.model import Model


def _weights(agents: list[Any], weight: str | Callable[[Any], float]) -> list[float]:
    values = [float(weight(a) if callable(weight) else getattr(a, weight)) for a in agents]
    if any(v < 0.0 for v in values):
        raise ValueError("sampling weights must be >= 0")
    return values


def sample_agents(
    model: Model,
    n: int,
    weight: str | Callable[[Any], float] | None = None,
    *,
    replace: bool = True,
) -> list[int]:
    """Replace the population with ``n`` agents drawn from the current one.

    Draws are uniform, or proportional to ``weight`` (a field name or a
    callable).  Every drawn agent is copied into a new agent with a fresh
    id; the previous generation is removed first, so ids never repeat.
    Returns the new ids in creation order.
    """
    if n < 0:
        raise ValueError("n must be >= 0")
    population = list(model.agents(snapshot=True))
    if n > 0 and not population:
        raise ValueError("cannot sample from an empty population")
    rng = model.rng
    if weight is None:
        if replace:
            chosen = rng.choices(population, k=n)
        else:
            if n > len(population):
                raise ValueError("n exceeds population size when sampling without replacement")
            chosen = rng.sample(population, n)
    else:
        if not replace:
            raise ValueError("weighted sampling is only supported with replacement")
        chosen = rng.choices(population, weights=_weights(population, weight), k=n)
    blueprints = [(a.pos, a.kind, copy.deepcopy(a.field_values())) for a in chosen]
    for agent in population:
        model.remove_agent(agent)
    return [model.add_agent(pos, kind, **fields).id for pos, kind, fields in blueprints]
