"""A* route planning on grid spaces.

The walkable cells form a ``networkx`` graph whose edges connect radius-1
neighbors (Chebyshev with diagonal movement, Manhattan without) under the
grid's periodicity.  Edge weight is the Euclidean step length plus the
absolute penalty difference between the two cells.
"""

from __future__ import annotations

import logging
import math
from collections import deque
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

import networkx as nx
import numpy as np

from abm_kernel.config.types import Metric
from abm_kernel.domain.grid import GridSpace, Position

if TYPE_CHECKING:
    from abm_kernel.simulation.model import Model

logger = logging.getLogger(__name__)


class AStarPathfinder:
    """Plans and replays per-agent routes over a fixed walkmap."""

    def __init__(
        self,
        space: GridSpace,
        *,
        walkmap: np.ndarray | None = None,
        penalty: np.ndarray | None = None,
        diagonal_movement: bool = True,
    ) -> None:
        for name, array in (("walkmap", walkmap), ("penalty", penalty)):
            if array is not None and tuple(array.shape) != space.dims:
                raise ValueError(
                    f"{name} shape {array.shape} does not match grid dims {space.dims}"
                )
        self.space = space
        self.walkmap = (
            np.ones(space.dims, dtype=bool) if walkmap is None else np.asarray(walkmap, dtype=bool)
        )
        self.penalty = None if penalty is None else np.asarray(penalty, dtype=float)
        self.diagonal_movement = diagonal_movement
        self.graph = self._build_graph()
        self._routes: dict[int, deque[Position]] = {}

    def _build_graph(self) -> nx.Graph:
        metric = Metric.CHEBYSHEV if self.diagonal_movement else Metric.MANHATTAN
        graph = nx.Graph()
        for cell in self.space.positions():
            if not self.walkmap[cell]:
                continue
            graph.add_node(cell)
            for neighbor in self.space.nearby_positions(cell, 1, metric):
                if self.walkmap[neighbor]:
                    graph.add_edge(cell, neighbor, weight=self._step_cost(cell, neighbor))
        return graph

    def _delta(self, a: Position, b: Position) -> list[int]:
        out = []
        for ai, bi, size in zip(a, b, self.space.dims, strict=True):
            d = abs(bi - ai)
            out.append(min(d, size - d) if self.space.periodic else d)
        return out

    def _step_cost(self, a: Position, b: Position) -> float:
        cost = math.hypot(*self._delta(a, b))
        if self.penalty is not None:
            cost += abs(float(self.penalty[b]) - float(self.penalty[a]))
        return cost

    def _heuristic(self, a: Position, b: Position) -> float:
        return math.hypot(*self._delta(a, b))

    def find_path(self, start: Sequence[int], target: Sequence[int]) -> list[Position]:
        """Cells from ``start`` (exclusive) to ``target`` (inclusive); empty if unreachable."""
        source = self.space.normalize(start)
        goal = self.space.normalize(target)
        if not self.walkmap[goal]:
            raise ValueError(f"target {goal} is not walkable")
        if not self.walkmap[source]:
            raise ValueError(f"start {source} is not walkable")
        try:
            path = nx.astar_path(
                self.graph, source, goal, heuristic=self._heuristic, weight="weight"
            )
        except nx.NetworkXNoPath:
            logger.debug("no path from %s to %s", source, goal)
            return []
        return [tuple(cell) for cell in path[1:]]

    def plan_route(self, agent: Any, target: Sequence[int]) -> list[Position]:
        """Store and return the route of ``agent`` towards ``target``."""
        route = self.find_path(agent.pos, target)
        self._routes[agent.id] = deque(route)
        return route

    def route_of(self, agent: Any) -> list[Position]:
        return list(self._routes.get(agent.id, ()))

    def is_stationary(self, agent: Any) -> bool:
        """True when ``agent`` has no remaining route."""
        return not self._routes.get(agent.id)

    def forget(self, agent: Any) -> None:
        self._routes.pop(agent.id, None)

    def move_along_route(self, model: Model, agent: Any) -> bool:
        """Advance ``agent`` one cell along its route; False once it has arrived."""
        route = self._routes.get(agent.id)
        if not route:
            return False
        model.move_agent(agent, route[0])
        route.popleft()
        return True
