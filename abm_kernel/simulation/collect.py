"""Per-step data collection into Arrow tables.

Agent specs:

- ``"field"`` - a schema field, ``"pos"`` or ``"kind"``;
- ``fn`` - a named callable ``fn(agent)``, column named after ``fn.__name__``;
- ``(field_or_fn, aggregator)`` - one value per step, column
  ``"{aggregator}_{field}"``.

Raw and aggregated agent specs cannot be mixed.  Model specs are property
names or named callables ``fn(model)``.

Raw schema fields keep the Arrow type of their declared Python type; other
columns are inferred per table unless ``column_types`` declares them.  With
``widen_integers`` inferred integer columns become float64, so a value that
starts as ``0`` and later turns fractional keeps one type across chunks.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from enum import Enum
from typing import TYPE_CHECKING, Any

import numpy as np
import pyarrow as pa

from abm_kernel.io.schemas import agent_column_types

if TYPE_CHECKING:
    from abm_kernel.simulation.model import Model

AgentDataSpec = str | Callable[[Any], Any] | tuple[str | Callable[[Any], Any], Callable[..., Any]]
ModelDataSpec = str | Callable[[Any], Any]


def _callable_name(fn: Callable[..., Any]) -> str:
    name = getattr(fn, "__name__", None)
    if not name or name == "<lambda>":
        raise ValueError("data callables need a __name__ (use a def, not a lambda)")
    return name


def to_arrow_value(value: Any) -> Any:
    """Convert kernel values to Arrow-friendly Python values."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, np.generic):
        return value.item()
    if isinstance(value, np.ndarray):
        return value.tolist()
    if isinstance(value, tuple):
        return [to_arrow_value(v) for v in value]
    return value


class _AgentColumn:
    def __init__(self, spec: str | Callable[[Any], Any]) -> None:
        self.field = spec if isinstance(spec, str) else None
        self.name = spec if isinstance(spec, str) else _callable_name(spec)
        self._getter: Callable[[Any], Any] = (
            (lambda agent: getattr(agent, spec)) if isinstance(spec, str) else spec
        )

    def __call__(self, agent: Any) -> Any:
        return self._getter(agent)


class DataCollector:
    """Accumulate agent and model observations column by column."""

    def __init__(
        self,
        agent_data: Sequence[AgentDataSpec] = (),
        model_data: Sequence[ModelDataSpec] = (),
        column_types: Mapping[str, pa.DataType] | None = None,
        *,
        widen_integers: bool = False,
    ) -> None:
        raw = [s for s in agent_data if not isinstance(s, tuple)]
        aggregated = [s for s in agent_data if isinstance(s, tuple)]
        if raw and aggregated:
            raise ValueError("cannot mix raw and aggregated agent data specs")
        self.aggregated = bool(aggregated)
        self._agent_columns: list[tuple[str, _AgentColumn, Callable[..., Any] | None]] = []
        for spec in agent_data:
            if isinstance(spec, tuple):
                target, aggregator = spec
                column = _AgentColumn(target)
                name = f"{_callable_name(aggregator)}_{column.name}"
                self._agent_columns.append((name, column, aggregator))
            else:
                column = _AgentColumn(spec)
                self._agent_columns.append((column.name, column, None))
        self._model_columns: list[tuple[str, Callable[[Any], Any]]] = []
        for spec in model_data:
            if isinstance(spec, str):
                self._model_columns.append((spec, _property_getter(spec)))
            else:
                self._model_columns.append((_callable_name(spec), spec))
        names = [name for name, _, _ in self._agent_columns]
        if len(names) != len(set(names)):
            raise ValueError("agent data column names must be unique")
        if {"step", "id"} & set(names):
            raise ValueError("'step' and 'id' are always collected; do not request them")
        declared = dict(column_types or {})
        model_names = {name for name, _ in self._model_columns}
        unknown = set(declared) - set(names) - model_names
        if unknown:
            raise ValueError(f"column_types names unknown columns: {', '.join(sorted(unknown))}")
        self.widen_integers = widen_integers
        self._agent_rows: dict[str, list[Any]] = self._empty_agent_rows()
        self._model_rows: dict[str, list[Any]] = self._empty_model_rows()
        self._types: dict[str, pa.DataType | None] = {
            "step": pa.int64(),
            "id": pa.int64(),
            **{k: v for k, v in declared.items() if k in names},
        }
        self._model_types: dict[str, pa.DataType | None] = {
            "step": pa.int64(),
            **{k: v for k, v in declared.items() if k in model_names},
        }
        self._validated = False

    def _empty_agent_rows(self) -> dict[str, list[Any]]:
        if not self._agent_columns:
            return {}
        lead = ["step"] if self.aggregated else ["step", "id"]
        return {name: [] for name in [*lead, *(n for n, _, _ in self._agent_columns)]}

    def _empty_model_rows(self) -> dict[str, list[Any]]:
        if not self._model_columns:
            return {}
        return {name: [] for name in ["step", *(n for n, _ in self._model_columns)]}

    def _validate(self, model: Model) -> None:
        known = agent_column_types(model.schema)
        for name, column, aggregator in self._agent_columns:
            if column.field is not None:
                if column.field not in known:
                    raise ValueError(f"unknown agent field {column.field!r}")
                if aggregator is None:
                    self._types.setdefault(name, known[column.field])
        self._validated = True

    @property
    def agent_row_count(self) -> int:
        return len(self._agent_rows.get("step", ()))

    @property
    def model_row_count(self) -> int:
        return len(self._model_rows.get("step", ()))

    def collect(self, model: Model) -> None:
        """Sample every configured column at ``model.time``."""
        if not self._validated:
            self._validate(model)
        step = model.time
        if self._agent_columns:
            agents = list(model.store.all(snapshot=True))
            rows = self._agent_rows
            if self.aggregated:
                rows["step"].append(step)
                for name, column, aggregator in self._agent_columns:
                    values = [to_arrow_value(column(agent)) for agent in agents]
                    rows[name].append(to_arrow_value(aggregator(values)))  # type: ignore[misc]
            else:
                for agent in agents:
                    rows["step"].append(step)
                    rows["id"].append(agent.id)
                    for name, column, _ in self._agent_columns:
                        rows[name].append(to_arrow_value(column(agent)))
        if self._model_columns:
            self._model_rows["step"].append(step)
            for name, getter in self._model_columns:
                self._model_rows[name].append(to_arrow_value(getter(model)))

    def _table(
        self, rows: dict[str, list[Any]], types: dict[str, pa.DataType | None]
    ) -> pa.Table:
        columns = {}
        for name, values in rows.items():
            array = pa.array(values, type=types.get(name))
            if self.widen_integers and name not in types and pa.types.is_integer(array.type):
                array = array.cast(pa.float64())
            columns[name] = array
        return pa.table(columns)

    def agent_table(self) -> pa.Table:
        return self._table(self._agent_rows, self._types)

    def model_table(self) -> pa.Table:
        return self._table(self._model_rows, self._model_types)

    def drain_agent_table(self) -> pa.Table:
        """Return accumulated agent rows as a table and clear the buffers."""
        table = self.agent_table()
        for values in self._agent_rows.values():
            values.clear()
        return table

    def drain_model_table(self) -> pa.Table:
        table = self.model_table()
        for values in self._model_rows.values():
            values.clear()
        return table


def _property_getter(name: str) -> Callable[[Any], Any]:
    def getter(model: Any) -> Any:
        return model.properties[name]

    return getter
