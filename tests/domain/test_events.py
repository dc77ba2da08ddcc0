"""Tests for abm_kernel.domain.events (propensity-based selection)."""

from __future__ import annotations

from collections import Counter
from random import Random

import pytest

from abm_kernel.domain.events import choose_event, cumulative_propensities, select_event


class TestSelectEvent:
    def test_boundaries(self) -> None:
        propensities = [1.0, 2.0, 1.0]
        assert select_event(propensities, 0.0) == 0
        assert select_event(propensities, 0.24) == 0
        assert select_event(propensities, 0.25) == 1
        assert select_event(propensities, 0.74) == 1
        assert select_event(propensities, 0.75) == 2
        assert select_event(propensities, 0.999) == 2

    def test_zero_propensity_never_selected(self) -> None:
        for u in (0.0, 0.3, 0.5, 0.99):
            assert select_event([0.0, 1.0, 0.0, 1.0], u) in (1, 3)

    def test_u_out_of_range(self) -> None:
        with pytest.raises(ValueError):
            select_event([1.0], 1.0)
        with pytest.raises(ValueError):
            select_event([1.0], -0.1)

    def test_negative_rate_rejected(self) -> None:
        with pytest.raises(ValueError):
            select_event([1.0, -0.5], 0.1)

    def test_zero_total_rejected(self) -> None:
        with pytest.raises(ValueError):
            cumulative_propensities([0.0, 0.0])

    def test_empty_rejected(self) -> None:
        with pytest.raises(ValueError):
            cumulative_propensities([])


class TestChooseEvent:
    def test_frequencies_follow_propensities(self) -> None:
        rng = Random(5)
        counts = Counter(choose_event(rng, [1.0, 3.0]) for _ in range(20_000))
        assert counts[1] / 20_000 == pytest.approx(0.75, abs=0.02)

    def test_deterministic_for_seed(self) -> None:
        draws = [[choose_event(Random(9), [1, 1, 1]) for _ in range(3)] for _ in range(2)]
        assert draws[0] == draws[1]
