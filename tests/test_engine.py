"""Tests for the tick-stepped Survey and Explore executor."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Iterable, Sequence

import pytest

PROJECT_BASE = Path(__file__).resolve().parents[1]
if str(PROJECT_BASE) not in sys.path:
    sys.path.insert(0, str(PROJECT_BASE))

from frontier.config import ExplorationConfig
from frontier.constants import HUB_AREA_ID
from frontier.exploration.engine import ExplorationEngine, next_roll_tick
from frontier.game import ExplorationState
from frontier.models.actions import (
    ExplorationTravelAction,
    ExploreAction,
    FailureKind,
    SurveyAction,
)
from frontier.models.knowledge import PlayerKnowledge
from frontier.models.player import SessionClock, SkillState
from frontier.models.world import Area, Connection, Location, LocationType, area_id_for
from frontier.rng import RollStream
from frontier.worldgen import WorldGraph, area_ids_at, generate_town

FIRST = "area-d1-i0"
SECOND = "area-d1-i1"
FAR = "area-d3-i0"
FAR_NEIGHBOUR = "area-d3-i1"


def _area(distance: int, index: int, *locations: Location) -> Area:
    area_id = area_id_for(distance, index)
    return Area(
        id=area_id,
        distance=distance,
        index_in_distance=index,
        name=area_id,
        generated=True,
        locations=list(locations),
    )


def _make_state(
    areas: Sequence[Area],
    connections: Iterable[Connection],
    *,
    current: str = HUB_AREA_ID,
    known_areas: Iterable[str] = (),
    known_connections: Iterable[str] = (),
    level: int = 1,
    session_ticks: int = 1000,
    seed: str = "engine-test",
) -> ExplorationState:
    world = WorldGraph(areas={area.id: area for area in areas}, connections=list(connections))
    world.connections_rolled.add(HUB_AREA_ID)
    for band in range(1, max(area.distance for area in areas) + 2):
        world.connections_rolled.update(area_ids_at(band))
    town_locations = {location.id for location in world.area(HUB_AREA_ID).locations}
    knowledge = PlayerKnowledge(
        current_area_id=current,
        known_area_ids={HUB_AREA_ID, current, *known_areas},
        known_location_ids=town_locations,
        known_connection_ids=set(known_connections),
    )
    config = ExplorationConfig(seed=seed, session_ticks=session_ticks)
    return ExplorationState(
        config=config,
        rng=RollStream(seed),
        world=world,
        knowledge=knowledge,
        skills={
            "Exploration": SkillState(level=level),
            "Mining": SkillState(level=1),
            "Woodcutting": SkillState(),
        },
        clock=SessionClock(current_tick=0, session_remaining_ticks=session_ticks),
    )


def _hub_state(**overrides) -> ExplorationState:
    areas = [
        generate_town(),
        _area(
            1,
            0,
            Location(f"{FIRST}-loc-0", FIRST, LocationType.GATHERING_NODE, gathering_skill="Mining"),
        ),
        _area(1, 1),
    ]
    connections = [
        Connection(HUB_AREA_ID, FIRST, 2),
        Connection(HUB_AREA_ID, SECOND, 1),
        Connection(FIRST, SECOND, 3),
    ]
    return _make_state(areas, connections, **overrides)


def _far_state(**overrides) -> ExplorationState:
    """Explorer deep in the third band, where a level 1 roll cannot succeed."""

    areas = [generate_town(), _area(3, 0), _area(3, 1)]
    return _make_state(areas, [Connection(FAR, FAR_NEIGHBOUR, 1)], current=FAR, **overrides)


def _known(state: ExplorationState) -> tuple[set[str], set[str], set[str]]:
    knowledge = state.knowledge
    return (
        set(knowledge.known_area_ids),
        set(knowledge.known_location_ids),
        set(knowledge.known_connection_ids),
    )


@pytest.mark.parametrize(
    ("interval", "ticks"),
    [(2.0, [2, 4, 6, 8]), (1.0, [1, 2, 3, 4]), (1.5, [1, 3, 4, 6]), (1.9, [1, 3, 5, 7])],
)
def test_rolls_land_on_interval_boundaries(interval: float, ticks: list[int]) -> None:
    assert [next_roll_tick(made, interval) for made in range(4)] == ticks


def test_explore_discovers_exactly_one_thing() -> None:
    state = _hub_state()
    before = _known(state)

    result = ExplorationEngine(state).execute(ExploreAction())

    assert result.success is True
    assert result.failure_kind is None
    assert result.discovered_connection_id in (f"TOWN->{FIRST}", f"TOWN->{SECOND}")
    assert state.knowledge.known_connection_ids == before[2] | {result.discovered_connection_id}
    assert state.knowledge.known_area_ids == before[0]
    assert result.ticks_consumed % 2 == 0
    roll_count = result.ticks_consumed // 2
    assert state.rng.counter == roll_count + 1
    assert len(result.rolls) == roll_count + 1
    assert all(record.result is False for record in result.rolls[: roll_count - 1])
    assert result.rolls[roll_count - 1].result is True
    assert state.clock.session_remaining_ticks == 1000 - result.ticks_consumed
    assert state.clock.current_tick == result.ticks_consumed


def test_successful_discovery_grants_xp_and_luck() -> None:
    state = _hub_state()

    result = ExplorationEngine(state).execute(ExploreAction())

    assert result.xp_gained == result.ticks_consumed
    assert result.luck is not None
    assert result.luck.expected_ticks == pytest.approx(20.0)
    assert state.luck.history == [result.luck.luck_delta]
    assert result.roll_result.discovered_id == result.discovered_connection_id
    skill = state.skills["Exploration"]
    assert skill.level == 1 + len(result.level_ups)


def test_survey_reveals_area_and_connection() -> None:
    state = _hub_state()

    result = ExplorationEngine(state).execute(SurveyAction())

    assert result.success is True
    assert result.discovered_area_id in (FIRST, SECOND)
    assert state.knowledge.is_area_known(result.discovered_area_id)
    assert state.knowledge.is_connection_known(HUB_AREA_ID, result.discovered_area_id)
    assert result.discovered_connection_id == f"TOWN->{result.discovered_area_id}"
    assert result.roll_result.discovered_id == result.discovered_area_id
    assert state.knowledge.current_area_id == HUB_AREA_ID


def test_explore_on_fully_explored_area_changes_nothing() -> None:
    state = _hub_state(known_connections=(f"TOWN->{FIRST}", f"{SECOND}->TOWN"))
    before = _known(state)

    result = ExplorationEngine(state).execute(ExploreAction())

    assert result.success is False
    assert result.failure_kind is FailureKind.AREA_FULLY_EXPLORED
    assert result.area_fully_explored is True
    assert result.ticks_consumed == 0
    assert state.rng.counter == 0
    assert state.clock.session_remaining_ticks == 1000
    assert _known(state) == before
    assert state.is_area_fully_explored(HUB_AREA_ID) is True


def test_survey_without_unknown_neighbours_fails() -> None:
    state = _hub_state(known_areas=(FIRST, SECOND))

    result = ExplorationEngine(state).execute(SurveyAction())

    assert result.failure_kind is FailureKind.NO_UNDISCOVERED_AREAS
    assert state.rng.counter == 0


@pytest.mark.parametrize("action", [SurveyAction(), ExploreAction()])
def test_unqualified_explorer_is_turned_away(action) -> None:
    state = _hub_state(level=0)

    result = ExplorationEngine(state).execute(action)

    assert result.failure_kind is FailureKind.NOT_QUALIFIED
    assert state.rng.counter == 0
    assert state.clock.current_tick == 0


def test_exhausted_session_fails_before_rolling() -> None:
    state = _hub_state(session_ticks=0)

    result = ExplorationEngine(state).execute(SurveyAction())

    assert result.failure_kind is FailureKind.SESSION_ENDED
    assert result.ticks_consumed == 0
    assert state.rng.counter == 0


def test_session_running_out_mid_search_keeps_spent_ticks() -> None:
    state = _far_state(session_ticks=7)
    before = _known(state)

    result = ExplorationEngine(state).execute(SurveyAction())

    assert result.failure_kind is FailureKind.SESSION_ENDED
    assert result.ticks_consumed == 7
    assert state.clock.session_remaining_ticks == 0
    assert state.rng.counter == 3
    assert [record.counter for record in result.rolls] == [0, 1, 2]
    assert _known(state) == before


def test_session_ending_before_first_roll_draws_nothing() -> None:
    state = _hub_state(session_ticks=1)

    result = ExplorationEngine(state).execute(SurveyAction())

    assert result.failure_kind is FailureKind.SESSION_ENDED
    assert result.ticks_consumed == 1
    assert state.rng.counter == 0


def test_cancelling_survey_keeps_ticks_and_draws_only() -> None:
    state = _far_state()
    before = _known(state)
    run = ExplorationEngine(state).start(SurveyAction())

    progress = [next(run) for _ in range(5)]
    result = run.cancel()

    assert [tick.ticks_elapsed for tick in progress] == [1, 2, 3, 4, 5]
    assert [tick.rolls_made for tick in progress] == [0, 1, 1, 2, 2]
    assert result.cancelled is True
    assert result.success is False
    assert result.failure_kind is None
    assert result.ticks_consumed == 5
    assert state.clock.session_remaining_ticks == 995
    assert state.rng.counter == 2
    assert _known(state) == before
    assert run.result is result
    assert list(run) == []


def test_reading_result_mid_run_leaves_the_run_going() -> None:
    state = _far_state()
    run = ExplorationEngine(state).start(ExploreAction())
    next(run)
    next(run)

    with pytest.raises(RuntimeError):
        run.result

    assert run.done is False
    assert next(run).ticks_elapsed == 3
    assert run.cancel().ticks_consumed == 3
    assert state.rng.counter == 1


def test_progress_is_observable_tick_by_tick() -> None:
    state = _hub_state()
    run = ExplorationEngine(state).start(ExploreAction())

    ticks = list(run)

    assert [tick.ticks_elapsed for tick in ticks] == list(range(1, len(ticks) + 1))
    assert ticks[-1].tick == state.clock.current_tick
    assert run.result.ticks_consumed == len(ticks)
    assert run.result.success is True


def test_preview_matches_model_without_mutating() -> None:
    state = _hub_state()
    engine = ExplorationEngine(state)

    preview = engine.preview(SurveyAction())

    assert preview.is_variable is True
    assert preview.success_chance == pytest.approx(0.10)
    assert preview.roll_interval == 2.0
    assert preview.expected_ticks == pytest.approx(20.0)
    assert state.rng.counter == 0
    assert state.clock.current_tick == 0


def test_unknown_actions_are_rejected() -> None:
    engine = ExplorationEngine(_hub_state())

    with pytest.raises(TypeError):
        engine.start(object())  # type: ignore[arg-type]
    with pytest.raises(TypeError):
        engine.preview("Survey")  # type: ignore[arg-type]


def _play(state: ExplorationState, rounds: int) -> list[dict]:
    engine = state.engine
    log: list[dict] = []
    for _ in range(rounds):
        survey = engine.execute(SurveyAction())
        log.append(survey.to_dict())
        if survey.discovered_area_id:
            log.append(
                engine.execute(ExplorationTravelAction(survey.discovered_area_id)).to_dict()
            )
        log.append(engine.execute(ExploreAction()).to_dict())
    return log


def test_same_seed_and_decisions_replay_identically() -> None:
    config = ExplorationConfig(seed="replay", session_ticks=600)
    first = ExplorationState.new(config)
    second = ExplorationState.new(ExplorationConfig(seed="replay", session_ticks=600))

    assert _play(first, 4) == _play(second, 4)
    assert first.to_dict() == second.to_dict()


def test_knowledge_never_shrinks() -> None:
    state = ExplorationState.new(ExplorationConfig(seed="monotonic", session_ticks=800))
    engine = state.engine
    previous = _known(state)

    for _ in range(6):
        for action in (SurveyAction(), ExploreAction()):
            result = engine.execute(action)
            current = _known(state)
            assert all(old <= new for old, new in zip(previous, current))
            previous = current
            if result.discovered_area_id:
                engine.execute(ExplorationTravelAction(result.discovered_area_id))
                current = _known(state)
                assert all(old <= new for old, new in zip(previous, current))
                previous = current
