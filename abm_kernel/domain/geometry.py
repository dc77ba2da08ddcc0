"""Distance metrics and neighborhood offset enumeration."""

from __future__ import annotations

import itertools
import math
from collections.abc import Sequence
from functools import lru_cache

from abm_kernel.config.types import Metric


def distance(delta: Sequence[float], metric: Metric) -> float:
    """Length of a displacement vector under ``metric``."""
    if metric == Metric.CHEBYSHEV:
        return max((abs(d) for d in delta), default=0)
    if metric == Metric.MANHATTAN:
        return sum(abs(d) for d in delta)
    return math.sqrt(sum(d * d for d in delta))


def periodic_delta(a: Sequence[float], b: Sequence[float], extent: Sequence[float]) -> tuple:
    """Minimum-image displacement from ``a`` to ``b`` on a torus of ``extent``."""
    out = []
    for ai, bi, ei in zip(a, b, extent, strict=True):
        d = bi - ai
        if abs(d) > ei / 2:
            d = d - ei if d > 0 else d + ei
        out.append(d)
    return tuple(out)


@lru_cache(maxsize=128)
def offsets(radius: float, metric: Metric, ndim: int) -> tuple[tuple[int, ...], ...]:
    """Integer offsets within ``radius`` (origin excluded), lexicographically ordered.

    Enumerates the enclosing hypercube once per ``(radius, metric, ndim)``
    and keeps the vectors whose length is within ``radius``.
    """
    if radius < 0:
        raise ValueError("radius must be >= 0")
    reach = int(radius)
    span = range(-reach, reach + 1)
    return tuple(
        delta
        for delta in itertools.product(span, repeat=ndim)
        if any(delta) and distance(delta, metric) <= radius
    )
