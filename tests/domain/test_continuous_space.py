"""Tests for abm_kernel.domain.continuous.ContinuousSpace."""

from __future__ import annotations

from random import Random

import pytest

from abm_kernel.config.types import Metric
from abm_kernel.domain.continuous import ContinuousSpace
from abm_kernel.errors import OutOfBoundsError, UnknownAgentError


def _brute_force(space: ContinuousSpace, center: tuple[float, ...], radius: float) -> set[int]:
    return {
        agent_id
        for agent_id, pos in space._positions.items()
        if space.distance(center, pos) <= radius
    }


class TestBoundsPolicy:
    def test_place_inside(self) -> None:
        space = ContinuousSpace((10.0, 10.0))
        assert space.place(1, (2, 3.5)) == (2.0, 3.5)

    def test_outside_rejected(self) -> None:
        space = ContinuousSpace((10.0, 10.0))
        with pytest.raises(OutOfBoundsError):
            space.place(1, (10.0, 1.0))

    def test_nan_rejected(self) -> None:
        space = ContinuousSpace((10.0, 10.0), periodic=True)
        with pytest.raises(ValueError, match="NaN"):
            space.place(1, (float("nan"), 1.0))

    def test_periodic_wraps(self) -> None:
        space = ContinuousSpace((10.0, 10.0), periodic=True)
        x, y = space.place(1, (12.5, -0.5))
        assert x == pytest.approx(2.5)
        assert y == pytest.approx(9.5)

    def test_tiny_negative_wraps_inside(self) -> None:
        space = ContinuousSpace((10.0,), periodic=True)
        (x,) = space.place(1, (-1e-18,))
        assert 0.0 <= x < 10.0

    def test_clip_is_explicit(self) -> None:
        space = ContinuousSpace((10.0, 10.0))
        x, y = space.clip((-3.0, 12.0))
        assert x == 0.0
        assert y < 10.0 and space.in_bounds((x, y))

    def test_walk_out_of_bounds_keeps_position(self) -> None:
        space = ContinuousSpace((10.0, 10.0))
        space.place(1, (9.0, 9.0))
        with pytest.raises(OutOfBoundsError):
            space.translate(1, (2.0, 0.0))
        assert space.position_of(1) == (9.0, 9.0)

    def test_remove_unknown(self) -> None:
        space = ContinuousSpace((10.0, 10.0))
        with pytest.raises(UnknownAgentError):
            space.remove(3)


class TestNeighborQueries:
    def test_radius_query_filters_exact_distance(self) -> None:
        space = ContinuousSpace((10.0, 10.0))
        space.place(1, (5.0, 5.0))
        space.place(2, (5.9, 5.0))
        space.place(3, (5.8, 5.8))
        assert sorted(space.nearby_ids((5.0, 5.0), 1.0)) == [1, 2]

    def test_metric_override(self) -> None:
        space = ContinuousSpace((10.0, 10.0))
        space.place(1, (5.8, 5.8))
        assert list(space.nearby_ids((5.0, 5.0), 1.0, Metric.CHEBYSHEV)) == [1]
        assert list(space.nearby_ids((5.0, 5.0), 1.0)) == []

    def test_periodic_query_across_edge(self) -> None:
        space = ContinuousSpace((10.0, 10.0), periodic=True)
        space.place(1, (0.2, 5.0))
        space.place(2, (9.9, 5.0))
        assert sorted(space.nearby_ids((0.2, 5.0), 0.5)) == [1, 2]

    def test_non_periodic_query_does_not_wrap(self) -> None:
        space = ContinuousSpace((10.0, 10.0))
        space.place(1, (0.2, 5.0))
        space.place(2, (9.9, 5.0))
        assert list(space.nearby_ids((0.2, 5.0), 0.5)) == [1]

    def test_partial_last_bucket_on_torus(self) -> None:
        space = ContinuousSpace((10.5,), spacing=2.0, periodic=True)
        space.place(1, (0.1,))
        space.place(2, (8.2,))
        assert sorted(space.nearby_ids((0.1,), 2.5)) == [1, 2]

    @pytest.mark.parametrize("periodic", [False, True])
    def test_matches_brute_force(self, periodic: bool) -> None:
        space = ContinuousSpace((7.3, 5.1), spacing=0.7, periodic=periodic)
        rng = Random(11)
        for agent_id in range(1, 201):
            space.place(agent_id, space.random_position(rng))
        for _ in range(25):
            center = space.random_position(rng)
            radius = rng.uniform(0.0, 3.0)
            assert set(space.nearby_ids(center, radius)) == _brute_force(space, center, radius)

    def test_removal_while_iterating(self) -> None:
        space = ContinuousSpace((5.0, 5.0))
        for agent_id in range(1, 5):
            space.place(agent_id, (1.5, 1.5))
        seen = []
        for agent_id in space.nearby_ids((1.5, 1.5), 1.0):
            seen.append(agent_id)
            if agent_id == 1:
                space.remove(2)
                space.remove(3)
        assert seen == [1, 4]

    def test_nearest_neighbor_prefers_lower_id_on_tie(self) -> None:
        space = ContinuousSpace((10.0, 10.0))
        space.place(5, (5.0, 5.0))
        space.place(3, (6.0, 5.0))
        space.place(2, (4.0, 5.0))
        assert space.nearest_neighbor(5, 2.0) == 2

    def test_nearest_neighbor_none_when_alone(self) -> None:
        space = ContinuousSpace((10.0, 10.0))
        space.place(1, (5.0, 5.0))
        assert space.nearest_neighbor(1, 3.0) is None


class TestInteractingPairs:
    def _space(self) -> ContinuousSpace:
        space = ContinuousSpace((10.0, 10.0))
        space.place(1, (1.0, 1.0))
        space.place(2, (1.5, 1.0))
        space.place(3, (2.2, 1.0))
        space.place(4, (8.0, 8.0))
        return space

    def test_all_pairs(self) -> None:
        assert self._space().interacting_pairs(1.0, "all") == [(1, 2), (2, 3)]

    def test_nearest_pairs(self) -> None:
        assert self._space().interacting_pairs(1.0, "nearest") == [(1, 2), (2, 3)]

    def test_nearest_pairs_deduplicated(self) -> None:
        space = ContinuousSpace((10.0, 10.0))
        space.place(1, (1.0, 1.0))
        space.place(2, (1.2, 1.0))
        assert space.interacting_pairs(1.0) == [(1, 2)]

    def test_unknown_mode(self) -> None:
        with pytest.raises(ValueError):
            self._space().interacting_pairs(1.0, "types")
