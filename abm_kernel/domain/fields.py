"""Grid-aligned property fields: diffusion and evaporation.

Fields are numpy arrays whose shape equals the grid ``dims``.  Diffusion
follows the grid's own topology: values only cross the boundary of a
periodic grid.
"""

from __future__ import annotations

import numpy as np

from abm_kernel.config.types import Metric
from abm_kernel.domain.geometry import offsets
from abm_kernel.domain.grid import GridSpace


def _shifted(values: np.ndarray, delta: tuple[int, ...], periodic: bool) -> np.ndarray:
    """Array ``out`` with ``out[p] = values[p - delta]``, zero where ``p - delta`` is outside."""
    if periodic:
        return np.roll(values, shift=delta, axis=tuple(range(values.ndim)))
    out = np.zeros_like(values)
    src: list[slice] = []
    dst: list[slice] = []
    for d, size in zip(delta, values.shape, strict=True):
        if abs(d) >= size:
            return out
        if d >= 0:
            dst.append(slice(d, size))
            src.append(slice(0, size - d))
        else:
            dst.append(slice(0, size + d))
            src.append(slice(-d, size))
    out[tuple(dst)] = values[tuple(src)]
    return out


def _check_field(field: np.ndarray, space: GridSpace) -> None:
    if tuple(field.shape) != space.dims:
        raise ValueError(f"field shape {field.shape} does not match grid dims {space.dims}")


def diffuse(
    field: np.ndarray, space: GridSpace, rate: float, metric: Metric | None = None
) -> np.ndarray:
    """Return a diffused copy of ``field``.

    Each cell keeps ``1 - rate`` of its value and splits ``rate`` equally
    among its radius-1 neighbors, so the total is conserved.  Edge cells of
    a non-periodic grid split among fewer neighbors.
    """
    _check_field(field, space)
    if not 0.0 <= rate <= 1.0:
        raise ValueError("rate must be in [0.0, 1.0]")
    if space.periodic and any(d < 3 for d in space.dims):
        raise ValueError("periodic diffusion needs every dimension >= 3")
    deltas = offsets(1, metric or space.metric, space.ndim)
    values = np.asarray(field, dtype=float)
    counts = np.zeros_like(values)
    ones = np.ones_like(values)
    for delta in deltas:
        counts += _shifted(ones, delta, space.periodic)
    has_neighbors = counts > 0
    share = np.divide(rate * values, counts, out=np.zeros_like(values), where=has_neighbors)
    result = np.where(has_neighbors, (1.0 - rate) * values, values)
    for delta in deltas:
        result += _shifted(share, delta, space.periodic)
    return result


def evaporate(field: np.ndarray, rate: float) -> np.ndarray:
    """Scale ``field`` by ``1 - rate`` in place and return it."""
    if not 0.0 <= rate <= 1.0:
        raise ValueError("rate must be in [0.0, 1.0]")
    field *= 1.0 - rate
    return field
