"""Error taxonomy for the simulation kernel.

Every failure aborts the current run; nothing here is caught and retried
inside the kernel.  ``CallbackError`` carries the step and agent context of
an exception raised by user-supplied update logic.
"""

from __future__ import annotations


class KernelError(Exception):
    """Base class for all kernel errors."""


class OutOfBoundsError(KernelError, ValueError):
    """Position lies outside a non-periodic space."""

    def __init__(self, position: tuple, bounds: tuple) -> None:
        super().__init__(f"position {position} outside space bounds {bounds}")
        self.position = position
        self.bounds = bounds


class UnknownAgentError(KernelError, KeyError):
    """Identifier was never allocated or has already been removed."""

    def __init__(self, agent_id: int) -> None:
        super().__init__(agent_id)
        self.agent_id = agent_id

    def __str__(self) -> str:
        return f"unknown agent id {self.agent_id}"


class OccupiedCellError(KernelError, ValueError):
    """Grid cell is already at capacity."""

    def __init__(self, position: tuple, capacity: int) -> None:
        super().__init__(f"cell {position} already holds {capacity} agent(s)")
        self.position = position
        self.capacity = capacity


class CallbackError(KernelError):
    """Exception raised inside an agent or model callback.

    ``agent_id`` is ``None`` when the global (model) callback failed.
    """

    def __init__(self, step: int, agent_id: int | None, cause: BaseException) -> None:
        where = "model callback" if agent_id is None else f"agent {agent_id}"
        super().__init__(f"step {step}, {where}: {type(cause).__name__}: {cause}")
        self.step = step
        self.agent_id = agent_id
        self.cause = cause


class ParallelContractError(KernelError, RuntimeError):
    """Shared state was touched while a parallel agent step was running."""


class StepLimitError(KernelError, RuntimeError):
    """A predicate-driven run hit its step cap before the predicate held."""

    def __init__(self, max_steps: int) -> None:
        super().__init__(f"stopping predicate still false after {max_steps} steps")
        self.max_steps = max_steps
