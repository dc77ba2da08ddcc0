"""Discrete N-dimensional grid space with optional toroidal wraparound.

Cells hold zero or more agent ids up to ``capacity``.  Neighborhoods are
enumerated from cached integer offsets; on a periodic grid wrapped cells are
de-duplicated, which matters once the radius exceeds half a dimension.
"""

from __future__ import annotations

import itertools
import numbers
from collections.abc import Iterable, Iterator, Sequence
from random import Random

from abm_kernel.config.types import GridSpaceConfig, Metric
from abm_kernel.domain.geometry import offsets
from abm_kernel.errors import OccupiedCellError, OutOfBoundsError, UnknownAgentError

Position = tuple[int, ...]


class GridSpace:
    """Grid of fixed ``dims`` mapping cells to the ids they contain."""

    def __init__(
        self,
        dims: Sequence[int],
        *,
        periodic: bool = False,
        metric: Metric = Metric.CHEBYSHEV,
        capacity: int | None = None,
    ) -> None:
        config = GridSpaceConfig(
            dims=tuple(dims), periodic=periodic, metric=metric, capacity=capacity
        )
        self.dims: Position = config.dims
        self.periodic = config.periodic
        self.metric = config.metric
        self.capacity = config.capacity
        self._cells: dict[Position, list[int]] = {}
        self._positions: dict[int, Position] = {}

    @classmethod
    def from_config(cls, config: GridSpaceConfig) -> GridSpace:
        return cls(
            config.dims, periodic=config.periodic, metric=config.metric, capacity=config.capacity
        )

    @property
    def ndim(self) -> int:
        return len(self.dims)

    # ------------------------------------------------------------------
    # Bounds policy
    # ------------------------------------------------------------------

    def in_bounds(self, position: Sequence[int]) -> bool:
        return len(position) == self.ndim and all(
            0 <= c < d for c, d in zip(position, self.dims, strict=True)
        )

    def normalize(self, position: Iterable[int]) -> Position:
        """Wrap ``position`` on a periodic grid, reject it otherwise if outside."""
        pos = tuple(position)
        if len(pos) != self.ndim:
            raise ValueError(f"position {pos} has {len(pos)} coordinates, grid has {self.ndim}")
        for c in pos:
            if isinstance(c, bool) or not isinstance(c, numbers.Integral):
                raise TypeError(f"grid coordinates must be ints, got {pos}")
        pos = tuple(int(c) for c in pos)
        if self.periodic:
            return tuple(c % d for c, d in zip(pos, self.dims, strict=True))
        if not self.in_bounds(pos):
            raise OutOfBoundsError(pos, self.dims)
        return pos

    # ------------------------------------------------------------------
    # Occupancy index
    # ------------------------------------------------------------------

    def _insert(self, agent_id: int, pos: Position) -> None:
        occupants = self._cells.get(pos)
        if occupants is None:
            self._cells[pos] = [agent_id]
            return
        if self.capacity is not None and len(occupants) >= self.capacity:
            raise OccupiedCellError(pos, self.capacity)
        occupants.append(agent_id)

    def _discard(self, agent_id: int, pos: Position) -> None:
        occupants = self._cells[pos]
        occupants.remove(agent_id)
        if not occupants:
            del self._cells[pos]

    def place(self, agent_id: int, position: Iterable[int]) -> Position:
        """Insert ``agent_id`` at ``position`` and return the normalized cell."""
        if agent_id in self._positions:
            raise ValueError(f"agent {agent_id} is already placed")
        pos = self.normalize(position)
        self._insert(agent_id, pos)
        self._positions[agent_id] = pos
        return pos

    def move(self, agent_id: int, position: Iterable[int]) -> Position:
        """Move ``agent_id`` to an absolute cell."""
        old = self.position_of(agent_id)
        pos = self.normalize(position)
        if pos == old:
            return pos
        self._insert(agent_id, pos)
        self._discard(agent_id, old)
        self._positions[agent_id] = pos
        return pos

    def translate(self, agent_id: int, delta: Sequence[int]) -> Position:
        """Move ``agent_id`` by an integer displacement."""
        old = self.position_of(agent_id)
        return self.move(agent_id, tuple(c + d for c, d in zip(old, delta, strict=True)))

    def swap(self, a: int, b: int) -> tuple[Position, Position]:
        """Exchange the cells of two agents; works under single occupancy."""
        pos_a = self.position_of(a)
        pos_b = self.position_of(b)
        if pos_a != pos_b:
            cell_a = self._cells[pos_a]
            cell_b = self._cells[pos_b]
            cell_a[cell_a.index(a)] = b
            cell_b[cell_b.index(b)] = a
            self._positions[a] = pos_b
            self._positions[b] = pos_a
        return pos_b, pos_a

    def remove(self, agent_id: int) -> None:
        pos = self._positions.pop(agent_id, None)
        if pos is None:
            raise UnknownAgentError(agent_id)
        self._discard(agent_id, pos)

    def position_of(self, agent_id: int) -> Position:
        try:
            return self._positions[agent_id]
        except KeyError:
            raise UnknownAgentError(agent_id) from None

    # ------------------------------------------------------------------
    # Cell queries
    # ------------------------------------------------------------------

    def positions(self) -> Iterator[Position]:
        """Every cell in row-major order."""
        return itertools.product(*(range(d) for d in self.dims))

    def ids_in_position(self, position: Iterable[int]) -> list[int]:
        return sorted(self._cells.get(self.normalize(position), ()))

    def is_empty(self, position: Iterable[int]) -> bool:
        return self.normalize(position) not in self._cells

    def is_full(self, position: Iterable[int]) -> bool:
        occupants = self._cells.get(self.normalize(position), ())
        return self.capacity is not None and len(occupants) >= self.capacity

    def empty_positions(self) -> Iterator[Position]:
        return (pos for pos in self.positions() if pos not in self._cells)

    def random_position(self, rng: Random) -> Position:
        return tuple(rng.randrange(d) for d in self.dims)

    def random_empty(self, rng: Random) -> Position | None:
        """Uniformly chosen empty cell, or ``None`` when every cell is occupied."""
        empties = list(self.empty_positions())
        if not empties:
            return None
        return rng.choice(empties)

    # ------------------------------------------------------------------
    # Neighbor queries
    # ------------------------------------------------------------------

    def nearby_positions(
        self, position: Iterable[int], radius: float = 1, metric: Metric | None = None
    ) -> Iterator[Position]:
        """Cells within ``radius`` of ``position``, the centre excluded."""
        center = self.normalize(position)
        deltas = offsets(radius, metric or self.metric, self.ndim)
        if self.periodic:
            seen = {center}
            for delta in deltas:
                cell = tuple(
                    (c + d) % size for c, d, size in zip(center, delta, self.dims, strict=True)
                )
                if cell not in seen:
                    seen.add(cell)
                    yield cell
            return
        for delta in deltas:
            cell = tuple(c + d for c, d in zip(center, delta, strict=True))
            if self.in_bounds(cell):
                yield cell

    def nearby_ids(
        self, position: Iterable[int], radius: float = 1, metric: Metric | None = None
    ) -> Iterator[int]:
        """Ids within ``radius`` of ``position``, including the centre cell's occupants."""
        center = self.normalize(position)
        for cell in itertools.chain((center,), self.nearby_positions(center, radius, metric)):
            for agent_id in sorted(self._cells.get(cell, ())):
                if agent_id in self._positions:
                    yield agent_id
