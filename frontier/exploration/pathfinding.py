"""Routes over the connections the player has discovered."""

from __future__ import annotations

import heapq
import math
from dataclasses import dataclass, field
from itertools import count
from typing import Dict, List, Optional, Set, Tuple

from ..constants import BASE_TRAVEL_TIME
from ..models.knowledge import PlayerKnowledge
from ..models.world import Connection
from ..worldgen import WorldGraph


@dataclass(frozen=True, slots=True)
class TravelRoute:
    path: List[str]
    connections: List[Connection] = field(default_factory=list)
    total_time: int = 0

    @property
    def hops(self) -> int:
        return len(self.connections)


def travel_time(
    connection: Connection,
    *,
    base_travel_time: int = BASE_TRAVEL_TIME,
    scavenge: bool = False,
) -> int:
    ticks = base_travel_time * connection.travel_time_multiplier
    return ticks * 2 if scavenge else ticks


class Pathfinder:
    """Uniform-cost search restricted to known connections.

    Connections that exist in the world but are unknown to the player are
    never traversed.
    """

    def __init__(
        self,
        world: WorldGraph,
        knowledge: PlayerKnowledge,
        *,
        base_travel_time: int = BASE_TRAVEL_TIME,
    ) -> None:
        self.world = world
        self.knowledge = knowledge
        self.base_travel_time = base_travel_time

    def known_edges(self, area_id: str) -> List[Connection]:
        return [
            connection
            for connection in self.world.connections_for(area_id)
            if self.knowledge.is_connection_known(
                connection.from_area_id, connection.to_area_id
            )
        ]

    def direct_route(self, start: str, goal: str) -> Optional[TravelRoute]:
        for connection in self.known_edges(start):
            if connection.other_end(start) == goal:
                return TravelRoute(
                    path=[start, goal],
                    connections=[connection],
                    total_time=travel_time(
                        connection, base_travel_time=self.base_travel_time
                    ),
                )
        return None

    def find_route(self, start: str, goal: str) -> Optional[TravelRoute]:
        if start == goal:
            return TravelRoute(path=[start])
        open_set: List[Tuple[int, int, str]] = []
        tie_breaker = count()
        cost: Dict[str, float] = {start: 0}
        came_from: Dict[str, Tuple[str, Connection]] = {}
        heapq.heappush(open_set, (0, next(tie_breaker), start))
        closed: Set[str] = set()

        while open_set:
            current_cost, _, current = heapq.heappop(open_set)
            if current == goal:
                return self._reconstruct(came_from, goal, current_cost)
            if current in closed:
                continue
            closed.add(current)
            for connection in self.known_edges(current):
                neighbour = connection.other_end(current)
                if neighbour in closed:
                    continue
                tentative = current_cost + travel_time(
                    connection, base_travel_time=self.base_travel_time
                )
                if tentative >= cost.get(neighbour, math.inf):
                    continue
                cost[neighbour] = tentative
                came_from[neighbour] = (current, connection)
                heapq.heappush(open_set, (tentative, next(tie_breaker), neighbour))
        return None

    def _reconstruct(
        self, came_from: Dict[str, Tuple[str, Connection]], goal: str, total: int
    ) -> TravelRoute:
        path = [goal]
        connections: List[Connection] = []
        current = goal
        while current in came_from:
            current, connection = came_from[current]
            path.append(current)
            connections.append(connection)
        path.reverse()
        connections.reverse()
        return TravelRoute(path=path, connections=connections, total_time=total)


__all__ = ["Pathfinder", "TravelRoute", "travel_time"]
