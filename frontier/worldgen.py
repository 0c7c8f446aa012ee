"""Lazy procedural generation of the area graph radiating from the hub.

Area content and connection rolls are drawn from streams derived from the
world seed and the area id, never from the player's action counter.  An area
therefore always materializes with the same locations no matter when the
player first reaches it, and generation never perturbs the sequence of
discovery rolls.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Set, Tuple

from .constants import (
    AREA_COUNT_SEED,
    CONNECTION_COUNTS,
    GATHERING_NODE_CHANCE,
    HUB_AREA_ID,
    MOB_CAMP_CHANCE,
    MOB_DIFFICULTY_SPREAD,
    QUARTILE_THRESHOLDS,
    TRAVEL_MULTIPLIERS,
)
from .models.world import (
    Area,
    Connection,
    Location,
    LocationType,
    WorldIntegrityError,
    area_id_for,
    parse_area_id,
)
from .naming import name_area
from .rng import RollStream

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Area shape
# ---------------------------------------------------------------------------


def area_count(distance: int) -> int:
    """Number of areas in the band ``distance`` steps from the hub.

    The hub band holds exactly one area; from distance 1 onwards the counts
    follow the Fibonacci progression 5, 8, 13, 21, ...
    """

    if distance < 0:
        raise ValueError(f"Distance cannot be negative: {distance}")
    if distance == 0:
        return 1
    previous, current = AREA_COUNT_SEED[1] - AREA_COUNT_SEED[0], AREA_COUNT_SEED[0]
    for _ in range(distance - 1):
        previous, current = current, previous + current
    return current


def area_ids_at(distance: int) -> Iterator[str]:
    for index in range(area_count(distance)):
        yield area_id_for(distance, index)


def _quartile_pick(value: float, options: Sequence[int]) -> int:
    for threshold, option in zip(QUARTILE_THRESHOLDS, options):
        if value < threshold:
            return option
    return options[-1]


def roll_travel_multiplier(stream: RollStream, first: str, second: str) -> int:
    """Travel multiplier for the unordered pair ``first``/``second``."""

    low, high = sorted((first, second))
    pair_stream = stream.derive(f"travel:{low}|{high}")
    return _quartile_pick(
        pair_stream.draw(0, 1, f"travel_{low}_{high}"), TRAVEL_MULTIPLIERS
    )


# ---------------------------------------------------------------------------
# Generation primitives
# ---------------------------------------------------------------------------


def generate_town() -> Area:
    return Area(
        id=HUB_AREA_ID,
        distance=0,
        index_in_distance=0,
        name="Town",
        generated=True,
        locations=[
            Location(
                id=f"{HUB_AREA_ID}-guild-hall",
                area_id=HUB_AREA_ID,
                type=LocationType.GUILD_HALL,
                guild="Explorers",
            ),
            Location(
                id=f"{HUB_AREA_ID}-warehouse",
                area_id=HUB_AREA_ID,
                type=LocationType.WAREHOUSE,
            ),
        ],
    )


def generate_area_locations(stream: RollStream, area_id: str, distance: int) -> List[Location]:
    """Roll independently for each kind of content; most areas stay sparse."""

    locations: List[Location] = []
    for skill, chance in GATHERING_NODE_CHANCE.items():
        if stream.draw(0, 1, f"loc_{skill.lower()}_{area_id}") < chance:
            locations.append(
                Location(
                    id=f"{area_id}-loc-{len(locations)}",
                    area_id=area_id,
                    type=LocationType.GATHERING_NODE,
                    gathering_skill=skill,
                )
            )
    if stream.draw(0, 1, f"loc_mob_{area_id}") < MOB_CAMP_CHANCE:
        offset = round(
            stream.draw(-MOB_DIFFICULTY_SPREAD, MOB_DIFFICULTY_SPREAD, f"mob_difficulty_{area_id}")
        )
        locations.append(
            Location(
                id=f"{area_id}-loc-{len(locations)}",
                area_id=area_id,
                type=LocationType.MOB_CAMP,
                creature_type="creature",
                difficulty=distance + offset,
            )
        )
    return locations


def generate_area(stream: RollStream, distance: int, index: int) -> Area:
    """Materialize the area at ``(distance, index)``.

    Only the seed of ``stream`` matters; its counter is neither read nor
    advanced.
    """

    if distance == 0:
        return generate_town()
    area_id = area_id_for(distance, index)
    content_stream = stream.derive(f"area:{area_id}")
    area = Area(
        id=area_id,
        distance=distance,
        index_in_distance=index,
        generated=True,
        locations=generate_area_locations(content_stream, area_id, distance),
    )
    area.name = name_area(area, content_stream)
    return area


def _nth_free_index(position: int, taken: Iterable[int]) -> int:
    """Index of the ``position``-th entry of a band once ``taken`` is removed."""

    index = position
    for used in sorted(taken):
        if used <= index:
            index += 1
    return index


def generate_area_connections(stream: RollStream, area_id: str) -> List[Connection]:
    """Roll the links ``area_id`` contributes to the world graph.

    The hub links to every distance 1 area.  Any other area rolls 0-3 links
    into each of the bands ``distance - 1``, ``distance`` and
    ``distance + 1``, choosing targets without replacement; the hub is never
    a target.  Each target is a position among the band's indices not yet taken.
    """

    if area_id == HUB_AREA_ID:
        return [
            Connection(HUB_AREA_ID, target_id, roll_travel_multiplier(stream, HUB_AREA_ID, target_id))
            for target_id in area_ids_at(1)
        ]

    distance, own_index = parse_area_id(area_id)
    link_stream = stream.derive(f"connections:{area_id}")
    connections: List[Connection] = []
    for target_distance in (distance - 1, distance, distance + 1):
        if target_distance < 1:
            continue
        taken = [own_index] if target_distance == distance else []
        available = area_count(target_distance) - len(taken)
        if available <= 0:
            continue
        wanted = _quartile_pick(
            link_stream.draw(0, 1, f"conn_count_{area_id}_d{target_distance}"),
            CONNECTION_COUNTS,
        )
        for pick in range(min(wanted, available)):
            remaining = available - pick
            position = int(
                link_stream.draw(0, remaining, f"conn_pick_{area_id}_d{target_distance}_{pick}")
            )
            index = _nth_free_index(min(position, remaining - 1), taken)
            taken.append(index)
            target_id = area_id_for(target_distance, index)
            connections.append(
                Connection(area_id, target_id, roll_travel_multiplier(stream, area_id, target_id))
            )
    return connections


def _placeholder(area_id: str) -> Area:
    distance, index = parse_area_id(area_id)
    return Area(id=area_id, distance=distance, index_in_distance=index)


# ---------------------------------------------------------------------------
# World graph
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class WorldGraph:
    """Every area and connection generated so far.

    ``connections_rolled`` lists areas whose own link roll has been applied.
    An area's incident connections are final once it and every area in the
    neighbouring distance bands have rolled.
    """

    areas: Dict[str, Area] = field(default_factory=dict)
    connections: List[Connection] = field(default_factory=list)
    connections_rolled: Set[str] = field(default_factory=set)
    _adjacency: Dict[str, List[Connection]] = field(default_factory=dict, repr=False)
    _pairs: Dict[Tuple[str, str], Connection] = field(default_factory=dict, repr=False)

    def __post_init__(self) -> None:
        existing = list(self.connections)
        self.connections = []
        self._adjacency = {}
        self._pairs = {}
        for connection in existing:
            self.add_connection(connection)

    # -- lookups ---------------------------------------------------------

    def area(self, area_id: str) -> Area:
        try:
            return self.areas[area_id]
        except KeyError:
            log.error("Area %s is referenced but was never generated", area_id)
            raise WorldIntegrityError(f"Unknown area referenced: {area_id}") from None

    def get_area(self, area_id: str) -> Optional[Area]:
        return self.areas.get(area_id)

    def connections_for(self, area_id: str) -> List[Connection]:
        return list(self._adjacency.get(area_id, ()))

    def connection_between(self, first: str, second: str) -> Optional[Connection]:
        return self._pairs.get(tuple(sorted((first, second))))  # type: ignore[arg-type]

    def neighbours(self, area_id: str) -> List[str]:
        return [connection.other_end(area_id) for connection in self._adjacency.get(area_id, ())]

    # -- mutation --------------------------------------------------------

    def add_area(self, area: Area) -> Area:
        existing = self.areas.get(area.id)
        if existing is not None:
            return existing
        distance, index = parse_area_id(area.id)
        if (distance, index) != (area.distance, area.index_in_distance):
            log.error("Area %s placed at distance %d index %d", area.id, area.distance, area.index_in_distance)
            raise WorldIntegrityError(
                f"Area {area.id} does not match distance={area.distance} index={area.index_in_distance}"
            )
        self.areas[area.id] = area
        return area

    def add_connection(self, connection: Connection) -> bool:
        if connection.from_area_id == connection.to_area_id:
            log.error("Refusing self connection on %s", connection.from_area_id)
            raise WorldIntegrityError(f"Self connection on {connection.from_area_id}")
        key = tuple(sorted((connection.from_area_id, connection.to_area_id)))
        if key in self._pairs:
            return False
        self._pairs[key] = connection  # type: ignore[index]
        self.connections.append(connection)
        self._adjacency.setdefault(connection.from_area_id, []).append(connection)
        self._adjacency.setdefault(connection.to_area_id, []).append(connection)
        return True

    def materialize(self, stream: RollStream, area_id: str) -> Area:
        """Populate ``area_id``'s content once; later calls are no-ops."""

        area = self.areas.get(area_id)
        if area is not None and area.generated:
            return area
        distance, index = parse_area_id(area_id)
        generated = generate_area(stream, distance, index)
        if area is None:
            self.areas[area_id] = generated
            area = generated
        else:
            area.locations = generated.locations
            area.name = generated.name
            area.generated = True
        log.debug(
            "Materialized %s (%s) with %d locations", area.id, area.name, len(area.locations)
        )
        return area

    def roll_connections(self, stream: RollStream, area_id: str) -> List[Connection]:
        """Apply ``area_id``'s own link roll once and return the new edges."""

        if area_id in self.connections_rolled:
            return []
        added: List[Connection] = []
        for connection in generate_area_connections(stream, area_id):
            if self.connection_between(connection.from_area_id, connection.to_area_id):
                continue
            for endpoint in (connection.from_area_id, connection.to_area_id):
                if endpoint not in self.areas:
                    self.add_area(_placeholder(endpoint))
            self.add_connection(connection)
            added.append(connection)
        self.connections_rolled.add(area_id)
        if added:
            log.debug("Rolled %d connections for %s", len(added), area_id)
        return added

    def ensure_area_fully_generated(self, stream: RollStream, area: Area | str) -> Area:
        """Finalize ``area``'s connections and materialize its neighbours.

        Idempotent: a second call generates nothing new.
        """

        area_id = area if isinstance(area, str) else area.id
        target = self.materialize(stream, area_id)
        if target.distance == 0:
            self.roll_connections(stream, HUB_AREA_ID)
        else:
            for band in range(max(1, target.distance - 1), target.distance + 2):
                for other_id in area_ids_at(band):
                    self.roll_connections(stream, other_id)
        for neighbour_id in self.neighbours(target.id):
            self.materialize(stream, neighbour_id)
        return target

    def is_fully_generated(self, area_id: str) -> bool:
        area = self.areas.get(area_id)
        if area is None or not area.generated:
            return False
        if area.distance == 0:
            bands_ready = HUB_AREA_ID in self.connections_rolled
        else:
            bands_ready = all(
                other in self.connections_rolled
                for band in range(max(1, area.distance - 1), area.distance + 2)
                for other in area_ids_at(band)
            )
        if not bands_ready:
            return False
        return all(self.areas[n].generated for n in self.neighbours(area_id))


def ensure_area_fully_generated(stream: RollStream, world: WorldGraph, area: Area | str) -> Area:
    return world.ensure_area_fully_generated(stream, area)


def initialize_world(stream: RollStream) -> WorldGraph:
    """Create the hub with every distance 1 area and the hub's links."""

    world = WorldGraph()
    world.add_area(generate_town())
    for index in range(area_count(1)):
        world.materialize(stream, area_id_for(1, index))
    world.ensure_area_fully_generated(stream, HUB_AREA_ID)
    log.debug("Initialized world %s with %d areas", stream.seed, len(world.areas))
    return world


__all__ = [
    "WorldGraph",
    "area_count",
    "area_ids_at",
    "ensure_area_fully_generated",
    "generate_area",
    "generate_area_connections",
    "generate_area_locations",
    "generate_town",
    "initialize_world",
    "roll_travel_multiplier",
]
