"""Continuous bounded space with a bucketed spatial index.

Agents are hashed into square buckets of edge ``spacing``.  A radius query
scans only the buckets that can intersect the search ball and then filters
by exact distance, so queries cost O(local density) instead of O(n).
"""

from __future__ import annotations

import itertools
import math
from collections.abc import Iterable, Iterator, Sequence
from random import Random

from abm_kernel.config.constants import DEFAULT_SPACING
from abm_kernel.config.types import ContinuousSpaceConfig, Metric
from abm_kernel.domain.geometry import distance, periodic_delta
from abm_kernel.errors import OutOfBoundsError, UnknownAgentError

Point = tuple[float, ...]
Bucket = tuple[int, ...]


class ContinuousSpace:
    """Region ``[0, extent)`` per dimension, optionally toroidal."""

    def __init__(
        self,
        extent: Sequence[float],
        *,
        spacing: float = DEFAULT_SPACING,
        periodic: bool = False,
        metric: Metric = Metric.EUCLIDEAN,
    ) -> None:
        config = ContinuousSpaceConfig(
            extent=tuple(float(e) for e in extent),
            spacing=float(spacing),
            periodic=periodic,
            metric=metric,
        )
        self.extent: Point = config.extent
        self.spacing = config.spacing
        self.periodic = config.periodic
        self.metric = config.metric
        self._n_buckets = tuple(math.ceil(e / self.spacing) for e in self.extent)
        self._buckets: dict[Bucket, dict[int, None]] = {}
        self._positions: dict[int, Point] = {}

    @classmethod
    def from_config(cls, config: ContinuousSpaceConfig) -> ContinuousSpace:
        return cls(
            config.extent, spacing=config.spacing, periodic=config.periodic, metric=config.metric
        )

    @property
    def ndim(self) -> int:
        return len(self.extent)

    # ------------------------------------------------------------------
    # Bounds policy
    # ------------------------------------------------------------------

    def in_bounds(self, position: Sequence[float]) -> bool:
        return len(position) == self.ndim and all(
            0.0 <= c < e for c, e in zip(position, self.extent, strict=True)
        )

    def normalize(self, position: Iterable[float]) -> Point:
        """Wrap ``position`` on a periodic space, reject it otherwise if outside."""
        pos = tuple(float(c) for c in position)
        if len(pos) != self.ndim:
            raise ValueError(f"position {pos} has {len(pos)} coordinates, space has {self.ndim}")
        if any(math.isnan(c) for c in pos):
            raise ValueError(f"position {pos} contains NaN")
        if self.periodic:
            wrapped = []
            for c, e in zip(pos, self.extent, strict=True):
                w = c % e
                # float modulo of tiny negatives can round up to the extent itself
                wrapped.append(0.0 if w >= e else w)
            return tuple(wrapped)
        if not self.in_bounds(pos):
            raise OutOfBoundsError(pos, self.extent)
        return pos

    def clip(self, position: Iterable[float]) -> Point:
        """Clamp ``position`` into the region; never applied implicitly."""
        return tuple(
            min(max(float(c), 0.0), math.nextafter(e, 0.0))
            for c, e in zip(position, self.extent, strict=True)
        )

    def random_position(self, rng: Random) -> Point:
        return tuple(rng.random() * e for e in self.extent)

    # ------------------------------------------------------------------
    # Spatial index
    # ------------------------------------------------------------------

    def _bucket(self, pos: Point) -> Bucket:
        return tuple(
            min(int(c // self.spacing), n - 1) for c, n in zip(pos, self._n_buckets, strict=True)
        )

    def _index(self, agent_id: int, pos: Point) -> None:
        self._buckets.setdefault(self._bucket(pos), {})[agent_id] = None
        self._positions[agent_id] = pos

    def _unindex(self, agent_id: int) -> Point:
        pos = self._positions.pop(agent_id)
        bucket = self._bucket(pos)
        members = self._buckets[bucket]
        del members[agent_id]
        if not members:
            del self._buckets[bucket]
        return pos

    def place(self, agent_id: int, position: Iterable[float]) -> Point:
        if agent_id in self._positions:
            raise ValueError(f"agent {agent_id} is already placed")
        pos = self.normalize(position)
        self._index(agent_id, pos)
        return pos

    def move(self, agent_id: int, position: Iterable[float]) -> Point:
        self.position_of(agent_id)
        pos = self.normalize(position)
        self._unindex(agent_id)
        self._index(agent_id, pos)
        return pos

    def translate(self, agent_id: int, delta: Sequence[float]) -> Point:
        """Move ``agent_id`` by ``delta``; same bounds policy as ``place``."""
        old = self.position_of(agent_id)
        return self.move(agent_id, tuple(c + d for c, d in zip(old, delta, strict=True)))

    def swap(self, a: int, b: int) -> tuple[Point, Point]:
        pos_a = self.position_of(a)
        pos_b = self.position_of(b)
        self._unindex(a)
        self._unindex(b)
        self._index(a, pos_b)
        self._index(b, pos_a)
        return pos_b, pos_a

    def remove(self, agent_id: int) -> None:
        if agent_id not in self._positions:
            raise UnknownAgentError(agent_id)
        self._unindex(agent_id)

    def position_of(self, agent_id: int) -> Point:
        try:
            return self._positions[agent_id]
        except KeyError:
            raise UnknownAgentError(agent_id) from None

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def delta(self, a: Sequence[float], b: Sequence[float]) -> tuple[float, ...]:
        """Displacement from ``a`` to ``b`` (minimum image when periodic)."""
        if self.periodic:
            return periodic_delta(a, b, self.extent)
        return tuple(bi - ai for ai, bi in zip(a, b, strict=True))

    def distance(
        self, a: Sequence[float], b: Sequence[float], metric: Metric | None = None
    ) -> float:
        return distance(self.delta(a, b), metric or self.metric)

    def _candidate_buckets(self, center: Point, radius: float) -> Iterator[Bucket]:
        reach = math.ceil(radius / self.spacing)
        origin = self._bucket(center)
        ranges = []
        for o, n, e in zip(origin, self._n_buckets, self.extent, strict=True):
            if self.periodic:
                # a partial last bucket shortens the wrapped distance by up to one bucket
                r = reach + 1 if n * self.spacing > e else reach
                span = range(o - r, o + r + 1) if 2 * r + 1 < n else range(n)
                ranges.append(sorted({i % n for i in span}))
            else:
                ranges.append(range(max(o - reach, 0), min(o + reach, n - 1) + 1))
        return itertools.product(*ranges)

    def nearby_ids(
        self, position: Iterable[float], radius: float, metric: Metric | None = None
    ) -> Iterator[int]:
        """Ids whose distance to ``position`` is at most ``radius``."""
        if radius < 0:
            raise ValueError("radius must be >= 0")
        center = self.normalize(position)
        chosen = metric or self.metric
        for bucket in self._candidate_buckets(center, radius):
            for agent_id in tuple(self._buckets.get(bucket, ())):
                pos = self._positions.get(agent_id)
                # removed by the caller since the bucket was read
                if pos is None:
                    continue
                if distance(self.delta(center, pos), chosen) <= radius:
                    yield agent_id

    def nearest_neighbor(self, agent_id: int, radius: float) -> int | None:
        """Closest other agent within ``radius``; ties resolve to the lower id."""
        pos = self.position_of(agent_id)
        best: tuple[float, int] | None = None
        for other in self.nearby_ids(pos, radius):
            if other == agent_id:
                continue
            candidate = (self.distance(pos, self._positions[other]), other)
            if best is None or candidate < best:
                best = candidate
        return None if best is None else best[1]

    def interacting_pairs(self, radius: float, mode: str = "nearest") -> list[tuple[int, int]]:
        """Unordered pairs ``(low_id, high_id)`` of agents within ``radius``.

        ``"all"`` returns every such pair; ``"nearest"`` pairs each agent with
        its nearest neighbor and drops duplicates.
        """
        if mode not in ("all", "nearest"):
            raise ValueError("mode must be 'all' or 'nearest'")
        pairs: set[tuple[int, int]] = set()
        for agent_id in sorted(self._positions):
            if mode == "nearest":
                other = self.nearest_neighbor(agent_id, radius)
                if other is not None:
                    pairs.add((min(agent_id, other), max(agent_id, other)))
                continue
            for other in self.nearby_ids(self._positions[agent_id], radius):
                if other > agent_id:
                    pairs.add((agent_id, other))
        return sorted(pairs)
