"""Stepping driver: activation loop, stopping rules and data collection."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

import pyarrow as pa

from abm_kernel.config.types import RunConfig, UpdateMode
from abm_kernel.domain.agent import Agent
from abm_kernel.errors import CallbackError, StepLimitError
from abm_kernel.simulation.collect import AgentDataSpec, DataCollector, ModelDataSpec
from abm_kernel.simulation.model import Model
from abm_kernel.simulation.parallel import parallel_agent_step

logger = logging.getLogger(__name__)

StopCondition = int | Callable[[Model], bool]


@dataclass(frozen=True)
class RunResult:
    """Collected tables of one ``run`` call."""

    agent_table: pa.Table
    model_table: pa.Table
    steps: int


def add(
    model: Model, position: Sequence[Any] | None = None, kind: str | None = None, **fields: Any
) -> Agent:
    """Create an agent in ``model``; see ``Model.add_agent``."""
    return model.add_agent(position, kind, **fields)


def _run_model_step(model: Model, step_index: int) -> None:
    if model.model_step is None:
        return
    try:
        model.model_step(model)
    except Exception as exc:
        raise CallbackError(step_index, None, exc) from exc


def _run_agents_sequential(model: Model, order: Sequence[int], step_index: int) -> None:
    store = model.store
    for agent_id in order:
        if agent_id not in store:
            # removed earlier in this step
            continue
        agent = store.get(agent_id)
        callback = model.callback_for(agent)
        if callback is None:
            continue
        try:
            callback(agent, model)
        except Exception as exc:
            raise CallbackError(step_index, agent_id, exc) from exc


def _advance(model: Model) -> None:
    step_index = model.time + 1
    if not model.config.agents_first:
        _run_model_step(model, step_index)
    if model.agent_step is not None:
        order = model.scheduler(model)
        if model.config.update_mode == UpdateMode.PARALLEL:
            parallel_agent_step(model, order, step_index)
        else:
            _run_agents_sequential(model, order, step_index)
    if model.config.agents_first:
        _run_model_step(model, step_index)
    model.time = step_index
    logger.debug("step %d complete: %d agents", step_index, len(model))


def step(model: Model, n: int = 1) -> None:
    """Advance ``model`` by ``n`` full steps."""
    if n < 0:
        raise ValueError("n must be >= 0")
    for _ in range(n):
        _advance(model)


def iterate(model: Model, until: StopCondition, *, max_steps: int) -> Iterator[int]:
    """Yield the number of steps taken, once before stepping and after every step.

    An int ``until`` runs that many steps.  A predicate is evaluated before
    the first step and after each completed step, never mid-step.
    """
    if isinstance(until, bool):
        raise TypeError("until must be an int or a predicate, not bool")
    if isinstance(until, int):
        if until < 0:
            raise ValueError("step count must be >= 0")
        yield 0
        for taken in range(1, until + 1):
            _advance(model)
            yield taken
        return
    taken = 0
    yield taken
    while not until(model):
        if taken >= max_steps:
            raise StepLimitError(max_steps)
        _advance(model)
        taken += 1
        yield taken


def run(
    model: Model,
    until: StopCondition,
    *,
    agent_data: Sequence[AgentDataSpec] = (),
    model_data: Sequence[ModelDataSpec] = (),
    config: RunConfig | None = None,
    column_types: Mapping[str, pa.DataType] | None = None,
) -> RunResult:
    """Step ``model`` until ``until`` and return the collected tables.

    Data is sampled after every step and, with ``collect_initial``, once
    before the first one.  Any callback failure aborts the run with a
    ``CallbackError``; the model is then in a half-stepped state and must be
    discarded.
    """
    config = config or RunConfig()
    collector = DataCollector(agent_data, model_data, column_types)
    logger.info("run started at t=%d with %d agents", model.time, len(model))
    taken = 0
    for taken in iterate(model, until, max_steps=config.max_steps):
        if taken > 0 or config.collect_initial:
            collector.collect(model)
    logger.info("run finished after %d steps at t=%d", taken, model.time)
    return RunResult(
        agent_table=collector.agent_table(),
        model_table=collector.model_table(),
        steps=taken,
    )
