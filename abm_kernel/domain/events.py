"""Discrete-event branch selection by propensity (Gillespie direct method)."""

from __future__ import annotations

import bisect
import itertools
from collections.abc import Sequence
from random import Random


def cumulative_propensities(propensities: Sequence[float]) -> list[float]:
    """Running totals of ``propensities``; rejects negative or all-zero rates."""
    if not propensities:
        raise ValueError("propensities must not be empty")
    if any(p < 0 for p in propensities):
        raise ValueError("propensities must be >= 0")
    totals = list(itertools.accumulate(float(p) for p in propensities))
    if totals[-1] <= 0.0:
        raise ValueError("total propensity must be > 0")
    return totals


def select_event(propensities: Sequence[float], u: float) -> int:
    """Index of the event whose cumulative range contains ``u * total``.

    ``u`` is a uniform variate in ``[0, 1)``.  Events with zero propensity
    are never selected.
    """
    if not 0.0 <= u < 1.0:
        raise ValueError("u must be in [0.0, 1.0)")
    totals = cumulative_propensities(propensities)
    return bisect.bisect_right(totals, u * totals[-1])


def choose_event(rng: Random, propensities: Sequence[float]) -> int:
    """Draw one uniform variate from ``rng`` and select an event."""
    return select_event(propensities, rng.random())
