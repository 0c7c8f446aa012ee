"""Tests for discovery candidates and the weighted pick."""

from __future__ import annotations

import pytest

from frontier.constants import HUB_AREA_ID
from frontier.exploration.discovery import (
    Discoverable,
    DiscoverableKind,
    explore_candidates,
    survey_candidates,
    weighted_pick,
)
from frontier.models.knowledge import PlayerKnowledge
from frontier.models.player import SkillState
from frontier.models.world import (
    Area,
    Connection,
    Location,
    LocationType,
    WorldIntegrityError,
)
from frontier.rng import RollRecord, RollStream
from frontier.worldgen import WorldGraph, generate_town

HOME = "area-d1-i0"


def _make_world() -> WorldGraph:
    home = Area(
        id=HOME,
        distance=1,
        index_in_distance=0,
        generated=True,
        locations=[
            Location(f"{HOME}-loc-0", HOME, LocationType.GATHERING_NODE, gathering_skill="Mining"),
            Location(
                f"{HOME}-loc-1", HOME, LocationType.GATHERING_NODE, gathering_skill="Woodcutting"
            ),
            Location(f"{HOME}-loc-2", HOME, LocationType.MOB_CAMP, difficulty=2),
        ],
    )
    neighbours = [
        Area(id=f"area-d1-i{index}", distance=1, index_in_distance=index, generated=True)
        for index in (1, 2)
    ]
    areas = [generate_town(), home, *neighbours]
    connections = [
        Connection(HUB_AREA_ID, HOME, 1),
        Connection(HOME, "area-d1-i1", 2),
        Connection("area-d1-i2", HOME, 3),
    ]
    return WorldGraph(areas={area.id: area for area in areas}, connections=connections)


def _skills() -> dict[str, SkillState]:
    return {"Mining": SkillState(level=3), "Woodcutting": SkillState(level=0)}


def test_explore_weights_follow_content_and_knowledge() -> None:
    world = _make_world()
    knowledge = PlayerKnowledge(current_area_id=HOME, known_area_ids={HUB_AREA_ID, HOME})

    candidates = explore_candidates(world, knowledge, world.area(HOME), _skills())
    weights = {candidate.id: candidate.weight for candidate in candidates}

    assert weights == {
        f"{HOME}-loc-0": 0.5,
        f"{HOME}-loc-1": 0.05,
        f"{HOME}-loc-2": 0.5,
        f"TOWN->{HOME}": 1.0,
        f"{HOME}->area-d1-i1": 0.25,
        f"area-d1-i2->{HOME}": 0.25,
    }


def test_explore_skips_everything_already_known() -> None:
    world = _make_world()
    knowledge = PlayerKnowledge(
        current_area_id=HOME,
        known_area_ids={HUB_AREA_ID, HOME},
        known_location_ids={f"{HOME}-loc-0", f"{HOME}-loc-2"},
        known_connection_ids={f"{HOME}->TOWN", f"{HOME}->area-d1-i2"},
    )

    candidates = explore_candidates(world, knowledge, world.area(HOME), _skills())

    assert [(candidate.kind, candidate.id) for candidate in candidates] == [
        (DiscoverableKind.LOCATION, f"{HOME}-loc-1"),
        (DiscoverableKind.CONNECTION, f"{HOME}->area-d1-i1"),
    ]


def test_survey_offers_each_unknown_neighbour_equally() -> None:
    world = _make_world()
    knowledge = PlayerKnowledge(
        current_area_id=HOME,
        known_area_ids={HUB_AREA_ID, HOME, "area-d1-i2"},
    )

    candidates = survey_candidates(world, knowledge, world.area(HOME))

    assert [candidate.id for candidate in candidates] == ["area-d1-i1"]
    assert candidates[0].kind is DiscoverableKind.AREA
    assert candidates[0].connection is not None
    assert candidates[0].connection.joins(HOME, "area-d1-i1")


def test_candidates_refuse_ungenerated_neighbours() -> None:
    world = _make_world()
    world.add_area(Area(id="area-d2-i0", distance=2, index_in_distance=0))
    world.add_connection(Connection(HOME, "area-d2-i0", 1))
    knowledge = PlayerKnowledge(current_area_id=HOME, known_area_ids={HUB_AREA_ID, HOME})

    with pytest.raises(WorldIntegrityError):
        survey_candidates(world, knowledge, world.area(HOME))


def test_weighted_pick_without_candidates_draws_nothing() -> None:
    stream = RollStream("empty")

    assert weighted_pick([], stream) is None
    assert stream.counter == 0


def test_weighted_pick_consumes_one_draw() -> None:
    stream = RollStream("single")
    audit: list[RollRecord] = []
    only = Discoverable(DiscoverableKind.LOCATION, "loc", 0.5)

    assert weighted_pick([only], stream, "explore_pick", audit=audit) is only
    assert stream.counter == 1
    assert [record.label for record in audit] == ["explore_pick"]


def test_weighted_pick_favours_heavy_candidates() -> None:
    light = Discoverable(DiscoverableKind.LOCATION, "light", 1e-12)
    heavy = Discoverable(DiscoverableKind.CONNECTION, "heavy", 1.0)

    picks = [weighted_pick([light, heavy], RollStream(f"seed-{n}")) for n in range(25)]

    assert all(pick is heavy for pick in picks)


def test_weighted_pick_matches_cumulative_threshold() -> None:
    stream = RollStream("cumulative")
    first = Discoverable(DiscoverableKind.LOCATION, "first", 1.0)
    second = Discoverable(DiscoverableKind.LOCATION, "second", 3.0)
    threshold = RollStream("cumulative").draw(0, 4.0)

    pick = weighted_pick([first, second], stream)

    assert pick is (first if threshold < 1.0 else second)
