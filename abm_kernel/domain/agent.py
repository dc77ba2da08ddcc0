"""Fixed-schema agent records.

An ``AgentSchema`` is declared once per model.  It generates a dataclass
record type whose attributes are ``id``, ``pos``, ``kind`` and the declared
fields, and validates field values whenever an agent is built.
"""

from __future__ import annotations

import numbers
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, fields, make_dataclass
from functools import cached_property
from typing import Any

RESERVED_NAMES = frozenset({"id", "pos", "kind"})

_NO_DEFAULT: Any = object()


class Agent:
    """Base class of every generated record type.

    ``pos`` mirrors the space index and must only change through the model
    (``move_agent``/``walk``/``swap_agents``); assigning it directly leaves
    the index stale.
    """

    id: int
    pos: Any
    kind: str | None

    def field_values(self) -> dict[str, Any]:
        """Return the schema-declared fields as a plain dict."""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)  # type: ignore[arg-type]
            if f.name not in RESERVED_NAMES
        }


@dataclass(frozen=True)
class FieldSpec:
    """One declared agent field."""

    name: str
    type: type = object
    default: Any = _NO_DEFAULT
    default_factory: Callable[[], Any] | None = None

    def __post_init__(self) -> None:
        if not self.name.isidentifier():
            raise ValueError(f"field name must be an identifier: {self.name!r}")
        if self.name in RESERVED_NAMES:
            raise ValueError(f"field name {self.name!r} is reserved")
        if self.default is not _NO_DEFAULT and self.default_factory is not None:
            raise ValueError("default and default_factory are mutually exclusive")

    @property
    def required(self) -> bool:
        return self.default is _NO_DEFAULT and self.default_factory is None

    def initial(self) -> Any:
        if self.default_factory is not None:
            return self.default_factory()
        return self.default

    def coerce(self, value: Any) -> Any:
        """Check ``value`` against the declared type; ints widen to float."""
        expected = self.type
        if expected is object:
            return value
        if expected is float:
            if isinstance(value, bool) or not isinstance(value, numbers.Real):
                raise TypeError(f"field {self.name!r} expects float, got {type(value).__name__}")
            return float(value)
        if expected is int:
            if isinstance(value, bool) or not isinstance(value, numbers.Integral):
                raise TypeError(f"field {self.name!r} expects int, got {type(value).__name__}")
            return int(value)
        if not isinstance(value, expected):
            raise TypeError(
                f"field {self.name!r} expects {expected.__name__}, got {type(value).__name__}"
            )
        return value


@dataclass(frozen=True)
class AgentSchema:
    """Record layout shared by every agent of a model.

    ``kinds`` is the closed set of agent variants.  When it is ``None`` the
    model is single-kind and ``agent.kind`` stays ``None``.
    """

    name: str = "Agent"
    fields: tuple[FieldSpec, ...] = ()
    kinds: tuple[str, ...] | None = None

    def __post_init__(self) -> None:
        if not self.name.isidentifier():
            raise ValueError(f"schema name must be an identifier: {self.name!r}")
        names = [spec.name for spec in self.fields]
        if len(names) != len(set(names)):
            raise ValueError("field names must be unique")
        if self.kinds is not None:
            if not self.kinds:
                raise ValueError("kinds must not be empty when given")
            if len(self.kinds) != len(set(self.kinds)):
                raise ValueError("kinds must be unique")

    @classmethod
    def of(
        cls, name: str = "Agent", kinds: tuple[str, ...] | None = None, **types: type
    ) -> AgentSchema:
        """Shorthand for a schema whose fields all lack defaults."""
        return cls(
            name=name,
            fields=tuple(FieldSpec(n, t) for n, t in types.items()),
            kinds=kinds,
        )

    @cached_property
    def record_type(self) -> type[Agent]:
        """Dataclass generated from the declared fields."""
        spec_fields = [("id", int), ("pos", Any), ("kind", str | None, field(default=None))]
        spec_fields.extend((spec.name, spec.type) for spec in self.fields)
        return make_dataclass(self.name, spec_fields, bases=(Agent,), kw_only=True)

    @cached_property
    def field_map(self) -> dict[str, FieldSpec]:
        return {spec.name: spec for spec in self.fields}

    def validate_kind(self, kind: str | None) -> str | None:
        if self.kinds is None:
            if kind is not None:
                raise ValueError(f"schema {self.name} declares no kinds, got {kind!r}")
            return None
        if kind not in self.kinds:
            raise ValueError(f"kind must be one of {', '.join(self.kinds)}; got {kind!r}")
        return kind

    def resolve_fields(self, values: Mapping[str, Any]) -> dict[str, Any]:
        """Validate ``values`` and fill defaults, returning declared-order fields."""
        unknown = set(values) - set(self.field_map)
        if unknown:
            raise TypeError(f"unknown field(s) for {self.name}: {', '.join(sorted(unknown))}")
        resolved: dict[str, Any] = {}
        for spec in self.fields:
            if spec.name in values:
                resolved[spec.name] = spec.coerce(values[spec.name])
            elif spec.required:
                raise TypeError(f"missing required field {spec.name!r} for {self.name}")
            else:
                resolved[spec.name] = spec.initial()
        return resolved

    def build(self, agent_id: int, pos: Any, kind: str | None, values: Mapping[str, Any]) -> Agent:
        """Construct a validated record."""
        resolved = self.resolve_fields(values)
        return self.record_type(id=agent_id, pos=pos, kind=self.validate_kind(kind), **resolved)
