"""Tests for abm_kernel.domain.grid.GridSpace."""

from __future__ import annotations

from random import Random

import numpy as np
import pytest

from abm_kernel.config.types import GridSpaceConfig, Metric
from abm_kernel.domain.grid import GridSpace
from abm_kernel.errors import OccupiedCellError, OutOfBoundsError, UnknownAgentError


class TestPlacement:
    def test_place_returns_normalized_cell(self) -> None:
        grid = GridSpace((5, 5))
        assert grid.place(1, [2, 3]) == (2, 3)
        assert grid.position_of(1) == (2, 3)

    def test_out_of_bounds_rejected(self) -> None:
        grid = GridSpace((5, 5))
        with pytest.raises(OutOfBoundsError) as excinfo:
            grid.place(1, (5, 0))
        assert excinfo.value.position == (5, 0)
        assert grid.is_empty((4, 0))

    def test_periodic_wraps(self) -> None:
        grid = GridSpace((5, 5), periodic=True)
        assert grid.place(1, (-1, 7)) == (4, 2)

    def test_non_int_coordinates_rejected(self) -> None:
        grid = GridSpace((5, 5))
        with pytest.raises(TypeError):
            grid.place(1, (1.0, 2))

    def test_numpy_integer_coordinates_accepted(self) -> None:
        grid = GridSpace((5, 5))
        cell = np.unravel_index(np.argmax(np.arange(25).reshape(5, 5)), (5, 5))
        pos = grid.place(1, cell)
        assert pos == (4, 4)
        assert all(type(c) is int for c in pos)
        assert grid.ids_in_position((np.int64(4), np.int32(4))) == [1]

    def test_numpy_bool_coordinates_rejected(self) -> None:
        grid = GridSpace((5, 5))
        with pytest.raises(TypeError):
            grid.place(1, (np.bool_(True), 2))

    def test_wrong_arity_rejected(self) -> None:
        grid = GridSpace((5, 5))
        with pytest.raises(ValueError):
            grid.place(1, (1, 2, 3))

    def test_capacity_enforced(self) -> None:
        grid = GridSpace((3, 3), capacity=1)
        grid.place(1, (1, 1))
        with pytest.raises(OccupiedCellError):
            grid.place(2, (1, 1))
        assert grid.is_full((1, 1))
        assert grid.ids_in_position((1, 1)) == [1]

    def test_unbounded_capacity_stacks(self) -> None:
        grid = GridSpace((3, 3))
        grid.place(2, (0, 0))
        grid.place(1, (0, 0))
        assert grid.ids_in_position((0, 0)) == [1, 2]
        assert not grid.is_full((0, 0))

    def test_from_config(self) -> None:
        grid = GridSpace.from_config(GridSpaceConfig(dims=(4, 6), periodic=True, capacity=2))
        assert grid.dims == (4, 6)
        assert grid.periodic and grid.capacity == 2


class TestMovement:
    def test_move_updates_cells(self) -> None:
        grid = GridSpace((5, 5))
        grid.place(1, (0, 0))
        grid.move(1, (3, 3))
        assert grid.is_empty((0, 0))
        assert grid.ids_in_position((3, 3)) == [1]

    def test_failed_move_leaves_agent_in_place(self) -> None:
        grid = GridSpace((5, 5), capacity=1)
        grid.place(1, (0, 0))
        grid.place(2, (1, 0))
        with pytest.raises(OccupiedCellError):
            grid.move(1, (1, 0))
        assert grid.position_of(1) == (0, 0)
        assert grid.ids_in_position((0, 0)) == [1]

    def test_translate_wraps_on_torus(self) -> None:
        grid = GridSpace((5, 5), periodic=True)
        grid.place(1, (4, 0))
        assert grid.translate(1, (1, -1)) == (0, 4)

    def test_translate_out_of_bounds(self) -> None:
        grid = GridSpace((5, 5))
        grid.place(1, (4, 0))
        with pytest.raises(OutOfBoundsError):
            grid.translate(1, (1, 0))

    def test_swap_under_single_occupancy(self) -> None:
        grid = GridSpace((3, 3), capacity=1)
        grid.place(1, (0, 0))
        grid.place(2, (2, 2))
        assert grid.swap(1, 2) == ((2, 2), (0, 0))
        assert grid.ids_in_position((0, 0)) == [2]
        assert grid.ids_in_position((2, 2)) == [1]

    def test_remove_unknown(self) -> None:
        grid = GridSpace((3, 3))
        with pytest.raises(UnknownAgentError):
            grid.remove(9)


class TestCellQueries:
    def test_positions_row_major(self) -> None:
        grid = GridSpace((2, 3))
        assert list(grid.positions()) == [(0, 0), (0, 1), (0, 2), (1, 0), (1, 1), (1, 2)]

    def test_empty_positions(self) -> None:
        grid = GridSpace((2, 2))
        grid.place(1, (0, 1))
        assert list(grid.empty_positions()) == [(0, 0), (1, 0), (1, 1)]

    def test_random_empty_none_when_full(self) -> None:
        grid = GridSpace((1, 2), capacity=1)
        grid.place(1, (0, 0))
        assert grid.random_empty(Random(0)) == (0, 1)
        grid.place(2, (0, 1))
        assert grid.random_empty(Random(0)) is None

    def test_random_position_in_bounds(self) -> None:
        grid = GridSpace((4, 7))
        rng = Random(3)
        for _ in range(50):
            assert grid.in_bounds(grid.random_position(rng))


class TestNeighborQueries:
    def test_corner_chebyshev_has_three_cells(self) -> None:
        grid = GridSpace((10, 10))
        assert sorted(grid.nearby_positions((0, 0), 1)) == [(0, 1), (1, 0), (1, 1)]

    def test_corner_periodic_has_eight_cells(self) -> None:
        grid = GridSpace((10, 10), periodic=True)
        cells = set(grid.nearby_positions((0, 0), 1))
        assert len(cells) == 8
        assert (9, 9) in cells

    def test_manhattan_metric_override(self) -> None:
        grid = GridSpace((5, 5))
        cells = list(grid.nearby_positions((2, 2), 1, Metric.MANHATTAN))
        assert cells == [(1, 2), (2, 1), (2, 3), (3, 2)]

    def test_periodic_large_radius_deduplicates(self) -> None:
        grid = GridSpace((3, 3), periodic=True)
        cells = list(grid.nearby_positions((1, 1), 3))
        assert len(cells) == len(set(cells)) == 8

    def test_nearby_ids_include_centre_occupants(self) -> None:
        grid = GridSpace((5, 5))
        grid.place(1, (2, 2))
        grid.place(2, (2, 3))
        grid.place(3, (4, 4))
        assert list(grid.nearby_ids((2, 2), 1)) == [1, 2]

    def test_nearby_ids_is_lazy(self) -> None:
        grid = GridSpace((5, 5))
        grid.place(1, (2, 2))
        ids = grid.nearby_ids((2, 2), 1)
        assert next(ids) == 1

    def test_nearby_ids_skips_agents_removed_while_iterating(self) -> None:
        grid = GridSpace((5, 5))
        for agent_id in (1, 2, 3):
            grid.place(agent_id, (2, 2))
        seen = []
        for agent_id in grid.nearby_ids((2, 2), 1):
            seen.append(agent_id)
            if agent_id == 1:
                grid.remove(2)
        assert seen == [1, 3]
