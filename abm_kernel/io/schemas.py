"""Arrow type mapping for collected agent fields."""

from __future__ import annotations

from enum import Enum

import pyarrow as pa

from abm_kernel.domain.agent import AgentSchema

_SCALAR_TYPES: dict[type, pa.DataType] = {
    bool: pa.bool_(),
    int: pa.int64(),
    float: pa.float64(),
    str: pa.string(),
}


def arrow_type_for(field_type: type) -> pa.DataType | None:
    """Arrow type for a declared field type, ``None`` when it must be inferred.

    Enum fields are stored by value, so their type is inferred from the
    member values.
    """
    if isinstance(field_type, type) and issubclass(field_type, Enum):
        return None
    return _SCALAR_TYPES.get(field_type)


def agent_column_types(schema: AgentSchema) -> dict[str, pa.DataType | None]:
    """Known Arrow types of the schema's reserved and declared columns."""
    types: dict[str, pa.DataType | None] = {"id": pa.int64(), "kind": pa.string(), "pos": None}
    for spec in schema.fields:
        types[spec.name] = arrow_type_for(spec.type)
    return types
