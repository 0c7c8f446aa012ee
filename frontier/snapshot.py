"""Read-only views of the world graph for display and analysis."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, FrozenSet, Optional, Tuple

import networkx as nx

from .models.knowledge import PlayerKnowledge
from .worldgen import WorldGraph


@dataclass(frozen=True, slots=True)
class AreaView:
    id: str
    distance: int
    index_in_distance: int
    name: Optional[str]
    generated: bool
    known: bool
    location_ids: Tuple[str, ...]
    known_location_ids: Tuple[str, ...]


@dataclass(frozen=True, slots=True)
class ConnectionView:
    id: str
    from_area_id: str
    to_area_id: str
    travel_time_multiplier: int
    known: bool


@dataclass(frozen=True, slots=True)
class WorldSnapshot:
    """Frozen copy of the generated world and what the player knows of it.

    Later actions do not change a snapshot that was already taken.
    """

    current_area_id: str
    areas: Tuple[AreaView, ...]
    connections: Tuple[ConnectionView, ...]
    known_area_ids: FrozenSet[str]
    known_location_ids: FrozenSet[str]
    known_connection_ids: FrozenSet[str]

    @classmethod
    def capture(cls, world: WorldGraph, knowledge: PlayerKnowledge) -> "WorldSnapshot":
        areas = tuple(
            AreaView(
                id=area.id,
                distance=area.distance,
                index_in_distance=area.index_in_distance,
                name=area.name,
                generated=area.generated,
                known=knowledge.is_area_known(area.id),
                location_ids=tuple(location.id for location in area.locations),
                known_location_ids=tuple(
                    location.id
                    for location in area.locations
                    if knowledge.is_location_known(location.id)
                ),
            )
            for area in sorted(
                world.areas.values(), key=lambda a: (a.distance, a.index_in_distance)
            )
        )
        connections = tuple(
            ConnectionView(
                id=connection.id,
                from_area_id=connection.from_area_id,
                to_area_id=connection.to_area_id,
                travel_time_multiplier=connection.travel_time_multiplier,
                known=knowledge.is_connection_known(
                    connection.from_area_id, connection.to_area_id
                ),
            )
            for connection in world.connections
        )
        return cls(
            current_area_id=knowledge.current_area_id,
            areas=areas,
            connections=connections,
            known_area_ids=frozenset(knowledge.known_area_ids),
            known_location_ids=frozenset(knowledge.known_location_ids),
            known_connection_ids=frozenset(knowledge.known_connection_ids),
        )

    def area(self, area_id: str) -> Optional[AreaView]:
        for view in self.areas:
            if view.id == area_id:
                return view
        return None

    def known_areas(self) -> Tuple[AreaView, ...]:
        return tuple(view for view in self.areas if view.known)

    def known_connections(self) -> Tuple[ConnectionView, ...]:
        return tuple(view for view in self.connections if view.known)

    def counts(self) -> Dict[str, int]:
        return {
            "areas_generated": sum(1 for view in self.areas if view.generated),
            "areas_known": len(self.known_area_ids),
            "locations_known": len(self.known_location_ids),
            "connections_generated": len(self.connections),
            "connections_known": len(self.known_connection_ids),
        }

    def to_networkx(self, *, known_only: bool = True) -> nx.Graph:
        """Return the world as an undirected graph.

        With ``known_only`` the graph holds just the player's map: known areas
        and the known connections between them.
        """

        graph = nx.Graph()
        for view in self.areas:
            if known_only and not view.known:
                continue
            graph.add_node(
                view.id,
                label=view.name or view.id,
                distance=view.distance,
                known=view.known,
                generated=view.generated,
                current=view.id == self.current_area_id,
                locations=len(view.location_ids),
                known_locations=len(view.known_location_ids),
            )
        for view in self.connections:
            if known_only and not view.known:
                continue
            if view.from_area_id not in graph or view.to_area_id not in graph:
                continue
            graph.add_edge(
                view.from_area_id,
                view.to_area_id,
                id=view.id,
                multiplier=view.travel_time_multiplier,
                known=view.known,
            )
        return graph


__all__ = ["AreaView", "ConnectionView", "WorldSnapshot"]
