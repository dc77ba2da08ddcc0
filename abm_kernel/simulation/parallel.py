"""Parallel execution of independent per-agent updates.

Only updates that read shared state and write nothing but the agent's own
fields may run here.  The contract is enforced structurally: the callback
receives ``(agent, properties, rng)`` where ``properties`` is a read-only
view of the model properties and ``rng`` is private to the agent, and the
model is frozen so store/space mutation, cross-agent lookups and
``model.rng`` raise ``ParallelContractError``.  Matrices held inside the
properties are not copied; writing into them from a parallel callback is a
contract violation the kernel cannot detect.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from random import Random
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from abm_kernel.errors import CallbackError

if TYPE_CHECKING:
    from abm_kernel.simulation.model import Model

logger = logging.getLogger(__name__)


def agent_rng(step_seed: int, agent_id: int) -> Random:
    """Per-agent generator derived from the step seed; independent of thread timing."""
    return Random(f"{step_seed}:{agent_id}")


def parallel_agent_step(model: Model, order: Sequence[int], step_index: int) -> None:
    """Run the agent callbacks for ``order`` across a thread pool.

    One 64-bit seed is drawn from ``model.rng`` per step, so the driver's
    generator advances identically regardless of the worker count.
    """
    step_seed = model.rng.getrandbits(64)
    properties = MappingProxyType(model.properties)
    work: list[tuple[Any, Any]] = []
    for agent_id in order:
        agent = model.store.get(agent_id)
        callback = model.callback_for(agent)
        if callback is not None:
            work.append((agent, callback))

    def invoke(agent: Any, callback: Any) -> None:
        try:
            callback(agent, properties, agent_rng(step_seed, agent.id))
        except Exception as exc:
            raise CallbackError(step_index, agent.id, exc) from exc

    logger.debug(
        "parallel step %d: %d agents on %d workers",
        step_index,
        len(work),
        model.config.parallel_workers,
    )
    with model.parallel_phase(), ThreadPoolExecutor(
        max_workers=model.config.parallel_workers
    ) as pool:
        futures = [pool.submit(invoke, agent, callback) for agent, callback in work]
        try:
            for future in futures:
                future.result()
        except CallbackError:
            pool.shutdown(wait=True, cancel_futures=True)
            raise
