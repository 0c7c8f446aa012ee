"""Tests for single and multi hop travel over known connections."""

from __future__ import annotations

from typing import Iterable

import pytest

from frontier.config import ExplorationConfig
from frontier.constants import BASE_TRAVEL_TIME, HUB_AREA_ID
from frontier.exploration.pathfinding import Pathfinder, travel_time
from frontier.game import ExplorationState
from frontier.models.actions import ExplorationTravelAction, FailureKind, FarTravelAction
from frontier.models.knowledge import PlayerKnowledge
from frontier.models.player import SessionClock, SkillState
from frontier.models.world import Area, Connection, area_id_for
from frontier.rng import RollStream
from frontier.worldgen import WorldGraph, area_ids_at, generate_town

NORTH = "area-d1-i0"
EAST = "area-d1-i1"
WEST = "area-d1-i2"


def _make_state(
    *,
    known_areas: Iterable[str] = (),
    known_connections: Iterable[str] = (),
    session_ticks: int = 500,
) -> ExplorationState:
    areas = [generate_town()] + [
        Area(id=area_id_for(1, index), distance=1, index_in_distance=index, generated=True)
        for index in range(3)
    ]
    world = WorldGraph(
        areas={area.id: area for area in areas},
        connections=[
            Connection(HUB_AREA_ID, NORTH, 2),
            Connection(NORTH, EAST, 3),
            Connection(HUB_AREA_ID, EAST, 1),
            Connection(HUB_AREA_ID, WEST, 4),
        ],
    )
    world.connections_rolled.update({HUB_AREA_ID, *area_ids_at(1), *area_ids_at(2)})
    knowledge = PlayerKnowledge(
        known_area_ids={HUB_AREA_ID, *known_areas},
        known_connection_ids=set(known_connections),
    )
    return ExplorationState(
        config=ExplorationConfig(seed="travel", session_ticks=session_ticks),
        rng=RollStream("travel"),
        world=world,
        knowledge=knowledge,
        skills={"Exploration": SkillState(level=1)},
        clock=SessionClock(current_tick=0, session_remaining_ticks=session_ticks),
    )


def test_travel_time_scales_with_multiplier_and_scavenging() -> None:
    connection = Connection(HUB_AREA_ID, NORTH, 2)

    assert travel_time(connection) == BASE_TRAVEL_TIME * 2
    assert travel_time(connection, scavenge=True) == BASE_TRAVEL_TIME * 4
    assert travel_time(connection, base_travel_time=3) == 6


def test_single_hop_costs_base_time_times_multiplier() -> None:
    state = _make_state(known_areas=(NORTH,), known_connections=(f"TOWN->{NORTH}",))

    result = state.engine.execute(ExplorationTravelAction(NORTH))

    assert result.success is True
    assert result.ticks_consumed == BASE_TRAVEL_TIME * 2
    assert result.path == [HUB_AREA_ID, NORTH]
    assert state.knowledge.current_area_id == NORTH
    assert state.clock.session_remaining_ticks == 500 - 20
    assert result.discovered_area_id is None


def test_scavenging_doubles_single_hop_time() -> None:
    state = _make_state(known_areas=(NORTH,), known_connections=(f"TOWN->{NORTH}",))

    result = state.engine.execute(ExplorationTravelAction(NORTH, scavenge=True))

    assert result.ticks_consumed == BASE_TRAVEL_TIME * 2 * 2


def test_arriving_through_a_known_link_reveals_the_area() -> None:
    state = _make_state(known_connections=(f"{NORTH}->TOWN",))

    result = state.engine.execute(ExplorationTravelAction(NORTH))

    assert result.success is True
    assert result.discovered_area_id == NORTH
    assert state.knowledge.is_area_known(NORTH)
    assert state.world.is_fully_generated(NORTH)


def test_single_hop_needs_a_known_direct_link() -> None:
    state = _make_state(known_areas=(EAST,), known_connections=(f"TOWN->{NORTH}", f"{NORTH}->{EAST}"))

    result = state.engine.execute(ExplorationTravelAction(EAST))

    assert result.failure_kind is FailureKind.NO_PATH_TO_DESTINATION
    assert state.knowledge.current_area_id == HUB_AREA_ID
    assert state.clock.current_tick == 0


@pytest.mark.parametrize("action_type", [ExplorationTravelAction, FarTravelAction])
def test_travelling_to_current_area_fails(action_type) -> None:
    state = _make_state()

    result = state.engine.execute(action_type(HUB_AREA_ID))

    assert result.failure_kind is FailureKind.ALREADY_IN_AREA


def test_travel_longer_than_session_consumes_nothing() -> None:
    state = _make_state(
        known_areas=(NORTH,), known_connections=(f"TOWN->{NORTH}",), session_ticks=19
    )

    result = state.engine.execute(ExplorationTravelAction(NORTH))

    assert result.failure_kind is FailureKind.SESSION_ENDED
    assert result.ticks_consumed == 0
    assert state.clock.session_remaining_ticks == 19
    assert state.knowledge.current_area_id == HUB_AREA_ID


def test_far_travel_requires_a_known_destination() -> None:
    state = _make_state(known_connections=(f"TOWN->{NORTH}",))

    result = state.engine.execute(FarTravelAction(NORTH))

    assert result.failure_kind is FailureKind.AREA_NOT_KNOWN


def test_far_travel_without_known_route_fails() -> None:
    state = _make_state(known_areas=(EAST,))

    result = state.engine.execute(FarTravelAction(EAST))

    assert result.failure_kind is FailureKind.NO_PATH_TO_DESTINATION


def test_far_travel_follows_only_known_links() -> None:
    state = _make_state(
        known_areas=(NORTH, EAST),
        known_connections=(f"TOWN->{NORTH}", f"{NORTH}->{EAST}"),
    )

    result = state.engine.execute(FarTravelAction(EAST))

    assert result.success is True
    assert result.path == [HUB_AREA_ID, NORTH, EAST]
    assert result.ticks_consumed == BASE_TRAVEL_TIME * (2 + 3)
    assert state.knowledge.current_area_id == EAST


def test_far_travel_prefers_the_cheapest_route() -> None:
    state = _make_state(
        known_areas=(NORTH, EAST),
        known_connections=(f"TOWN->{NORTH}", f"{NORTH}->{EAST}", f"TOWN->{EAST}"),
    )

    route = Pathfinder(state.world, state.knowledge).find_route(HUB_AREA_ID, EAST)

    assert route is not None
    assert route.path == [HUB_AREA_ID, EAST]
    assert route.total_time == BASE_TRAVEL_TIME
    assert route.hops == 1


def test_pathfinder_ignores_unknown_links() -> None:
    state = _make_state(known_areas=(WEST,))
    pathfinder = Pathfinder(state.world, state.knowledge)

    assert pathfinder.find_route(HUB_AREA_ID, WEST) is None
    assert pathfinder.direct_route(HUB_AREA_ID, WEST) is None


def test_travel_moves_on_the_final_tick() -> None:
    state = _make_state(known_areas=(NORTH,), known_connections=(f"TOWN->{NORTH}",))
    run = state.engine.start(ExplorationTravelAction(NORTH))

    for _ in range(19):
        progress = next(run)
        assert state.knowledge.current_area_id == HUB_AREA_ID
    assert progress.total_ticks == 20
    last = next(run)

    assert last.ticks_elapsed == 20
    assert state.knowledge.current_area_id == NORTH
    assert list(run) == []
    assert run.result.success is True


def test_cancelled_far_travel_stops_at_the_last_reached_area() -> None:
    state = _make_state(
        known_areas=(NORTH, EAST),
        known_connections=(f"TOWN->{NORTH}", f"{NORTH}->{EAST}"),
    )
    run = state.engine.start(FarTravelAction(EAST))

    for _ in range(25):
        next(run)
    result = run.cancel()

    assert result.cancelled is True
    assert result.ticks_consumed == 25
    assert state.clock.session_remaining_ticks == 475
    assert state.knowledge.current_area_id == NORTH


def test_travel_preview_is_fixed_cost() -> None:
    state = _make_state(known_areas=(NORTH,), known_connections=(f"TOWN->{NORTH}",))

    preview = state.engine.preview(ExplorationTravelAction(NORTH, scavenge=True))
    missing = state.engine.preview(FarTravelAction(WEST))

    assert preview.expected_ticks == 40.0
    assert preview.is_variable is False
    assert missing.expected_ticks == float("inf")
    assert state.clock.current_tick == 0
