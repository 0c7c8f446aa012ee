"""Tick-stepped execution of exploration actions.

Every action runs as a generator that yields one :class:`TickProgress` per
simulated tick.  State is mutated tick by tick, so a caller that stops
driving a run keeps exactly the effects reached so far: consumed ticks stay
charged, the roll counter stays advanced, and a discovery is only applied on
the tick its roll succeeded.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Generator, Iterator, List, Optional

from ..constants import EXPLORATION_SKILL
from ..models.actions import (
    ActionResult,
    CostPreview,
    ExplorationAction,
    ExplorationTravelAction,
    ExploreAction,
    FailureKind,
    FarTravelAction,
    SurveyAction,
    TickProgress,
    action_name,
)
from ..models.world import Area
from ..rng import RollRecord
from .discovery import (
    Discoverable,
    DiscoverableKind,
    explore_candidates,
    survey_candidates,
    weighted_pick,
)
from .luck import luck_summary
from .pathfinding import Pathfinder, TravelRoute, travel_time
from .probability import chance_for, expected_ticks, roll_interval

if TYPE_CHECKING:  # pragma: no cover
    from ..game import ExplorationState

log = logging.getLogger(__name__)

Steps = Generator[TickProgress, None, ActionResult]


def next_roll_tick(rolls_made: int, interval: float) -> int:
    """Tick (counted from the start of the action) of the next roll."""

    return math.floor(round((rolls_made + 1) * interval, 9))


@dataclass(slots=True)
class _RunTally:
    action: str
    ticks: int = 0
    rolls: List[RollRecord] = field(default_factory=list)
    rolls_made: int = 0
    outcome: Optional[ActionResult] = None


class ActionRun:
    """Iterator over the ticks of one action.

    ``result`` is available once iteration is exhausted.  Only :meth:`cancel`
    stops a run early.
    """

    def __init__(self, action: ExplorationAction, steps: Iterator[TickProgress], tally: _RunTally) -> None:
        self.action = action
        self._steps = steps
        self._tally = tally
        self._result: Optional[ActionResult] = None

    @classmethod
    def finished(cls, action: ExplorationAction, result: ActionResult) -> "ActionRun":
        run = cls(action, iter(()), _RunTally(result.action))
        run._result = result
        return run

    def __iter__(self) -> "ActionRun":
        return self

    def __next__(self) -> TickProgress:
        if self._result is not None:
            raise StopIteration
        try:
            return next(self._steps)
        except StopIteration as stop:
            self._result = stop.value
            raise

    @property
    def done(self) -> bool:
        return self._result is not None

    @property
    def ticks_elapsed(self) -> int:
        if self._result is not None:
            return self._result.ticks_consumed
        return self._tally.ticks

    @property
    def result(self) -> ActionResult:
        if self._result is None:
            raise RuntimeError(f"{self._tally.action} is still running")
        return self._result

    def cancel(self) -> ActionResult:
        if self._result is not None:
            return self._result
        close = getattr(self._steps, "close", None)
        if close is not None:
            close()
        tally = self._tally
        if tally.outcome is not None:
            self._result = tally.outcome
            return self._result
        self._result = ActionResult(
            action=tally.action,
            success=False,
            ticks_consumed=tally.ticks,
            cancelled=True,
            rolls=list(tally.rolls),
            summary=f"{tally.action} cancelled after {tally.ticks} ticks",
        )
        log.info("%s cancelled after %d ticks", tally.action, tally.ticks)
        return self._result


class ExplorationEngine:
    """Runs Survey, Explore and both travel actions against one state."""

    def __init__(self, state: "ExplorationState") -> None:
        self.state = state

    @property
    def pathfinder(self) -> Pathfinder:
        return Pathfinder(
            self.state.world,
            self.state.knowledge,
            base_travel_time=self.state.config.base_travel_time,
        )

    # ------------------------------------------------------------------
    # Public surface
    # ------------------------------------------------------------------

    def start(self, action: ExplorationAction) -> ActionRun:
        match action:
            case SurveyAction():
                return self._start_discovery(action, survey=True)
            case ExploreAction():
                return self._start_discovery(action, survey=False)
            case ExplorationTravelAction():
                return self._start_travel(action, multi_hop=False)
            case FarTravelAction():
                return self._start_travel(action, multi_hop=True)
        raise TypeError(f"Unsupported exploration action: {action!r}")

    def execute(self, action: ExplorationAction) -> ActionResult:
        run = self.start(action)
        for _ in run:
            pass
        return run.result

    def preview(self, action: ExplorationAction) -> CostPreview:
        """Expected cost of ``action`` without touching any state."""

        state = self.state
        match action:
            case SurveyAction() | ExploreAction():
                level = state.exploration_level
                interval = roll_interval(level)
                chance = chance_for(level, state.world, state.knowledge, state.current_area)
                return CostPreview(
                    expected_ticks=expected_ticks(chance, interval),
                    is_variable=True,
                    success_chance=chance,
                    roll_interval=interval,
                )
            case ExplorationTravelAction() | FarTravelAction():
                route = self._route_for(action)
                if route is None:
                    return CostPreview(expected_ticks=math.inf, is_variable=False)
                return CostPreview(
                    expected_ticks=float(self._travel_ticks(route, action.scavenge)),
                    is_variable=False,
                )
        raise TypeError(f"Unsupported exploration action: {action!r}")

    # ------------------------------------------------------------------
    # Survey / Explore
    # ------------------------------------------------------------------

    def _start_discovery(self, action: SurveyAction | ExploreAction, *, survey: bool) -> ActionRun:
        state = self.state
        name = action_name(action)
        level = state.exploration_level
        if level <= 0:
            return ActionRun.finished(
                action, ActionResult.failure(name, FailureKind.NOT_QUALIFIED)
            )
        if state.clock.exhausted:
            return ActionRun.finished(
                action, ActionResult.failure(name, FailureKind.SESSION_ENDED)
            )

        area = state.ensure_current_area_generated()
        if survey:
            candidates = survey_candidates(state.world, state.knowledge, area)
        else:
            candidates = explore_candidates(state.world, state.knowledge, area, state.skills)
        if not candidates:
            kind = FailureKind.NO_UNDISCOVERED_AREAS if survey else FailureKind.AREA_FULLY_EXPLORED
            return ActionRun.finished(
                action,
                ActionResult.failure(name, kind, area_fully_explored=not survey),
            )

        tally = _RunTally(name)
        steps = self._discovery_steps(action, area, level, tally)
        return ActionRun(action, steps, tally)

    def _discovery_steps(
        self,
        action: SurveyAction | ExploreAction,
        area: Area,
        level: int,
        tally: _RunTally,
    ) -> Steps:
        state = self.state
        interval = roll_interval(level)
        chance = chance_for(level, state.world, state.knowledge, area)
        expected = expected_ticks(chance, interval)
        log.debug(
            "%s in %s: chance %.3f every %.1f ticks (expected %.1f)",
            tally.action,
            area.id,
            chance,
            interval,
            expected,
        )

        while True:
            if state.clock.exhausted:
                log.info("%s ran out of session time after %d ticks", tally.action, tally.ticks)
                return ActionResult.failure(
                    tally.action,
                    FailureKind.SESSION_ENDED,
                    ticks_consumed=tally.ticks,
                    rolls=tally.rolls,
                )
            state.clock.consume(1)
            tally.ticks += 1

            succeeded = False
            if tally.ticks >= next_roll_tick(tally.rolls_made, interval):
                tally.rolls_made += 1
                succeeded = state.rng.roll(
                    chance, f"{tally.action.lower()}_roll_{tally.rolls_made}", audit=tally.rolls
                )

            if succeeded:
                tally.outcome = self._complete_discovery(
                    action, area, tally, expected, interval
                )

            yield TickProgress(
                action=tally.action,
                tick=state.clock.current_tick,
                ticks_elapsed=tally.ticks,
                rolls_made=tally.rolls_made,
            )

            if tally.outcome is not None:
                return tally.outcome

    def _complete_discovery(
        self,
        action: SurveyAction | ExploreAction,
        area: Area,
        tally: _RunTally,
        expected: float,
        interval: float,
    ) -> ActionResult:
        state = self.state
        if isinstance(action, SurveyAction):
            candidates = survey_candidates(state.world, state.knowledge, area)
        else:
            candidates = explore_candidates(state.world, state.knowledge, area, state.skills)
        winner = weighted_pick(
            candidates, state.rng, f"{tally.action.lower()}_pick", audit=tally.rolls
        )
        result = ActionResult(
            action=tally.action,
            success=True,
            ticks_consumed=tally.ticks,
            rolls=list(tally.rolls),
        )
        if winner is not None:
            self._apply_discovery(area, winner, result)

        skill = state.skill(EXPLORATION_SKILL)
        result.xp_gained = tally.ticks * (area.distance + 1)
        result.level_ups = skill.add_xp(EXPLORATION_SKILL, result.xp_gained)
        result.luck = luck_summary(tally.ticks, expected, interval, state.luck)
        if isinstance(action, ExploreAction):
            result.area_fully_explored = state.is_area_fully_explored(area.id)

        found = result.roll_result.discovered_id
        result.summary = (
            f"{tally.action} found {found} after {tally.ticks} ticks "
            f"({result.luck.describe()})"
        )
        log.info(
            "%s discovered %s in %s after %d ticks",
            tally.action,
            found,
            area.id,
            tally.ticks,
        )
        for level_up in result.level_ups:
            log.info(
                "%s advanced from %d to %d",
                level_up.skill,
                level_up.from_level,
                level_up.to_level,
            )
        return result

    def _apply_discovery(
        self, area: Area, winner: Discoverable, result: ActionResult
    ) -> None:
        knowledge = self.state.knowledge
        if winner.kind is DiscoverableKind.LOCATION:
            knowledge.mark_location_known(winner.id)
            result.discovered_location_id = winner.id
            return
        connection = winner.connection
        if connection is None:
            raise ValueError(f"Discoverable {winner.id} has no connection")
        knowledge.mark_connection_known(connection.from_area_id, connection.to_area_id)
        result.discovered_connection_id = connection.id
        if winner.kind is DiscoverableKind.AREA:
            knowledge.mark_area_known(winner.id)
            result.discovered_area_id = winner.id

    # ------------------------------------------------------------------
    # Travel
    # ------------------------------------------------------------------

    def _route_for(self, action: ExplorationTravelAction | FarTravelAction) -> Optional[TravelRoute]:
        start = self.state.knowledge.current_area_id
        if isinstance(action, ExplorationTravelAction):
            return self.pathfinder.direct_route(start, action.destination_area_id)
        if not self.state.knowledge.is_area_known(action.destination_area_id):
            return None
        return self.pathfinder.find_route(start, action.destination_area_id)

    def _travel_ticks(self, route: TravelRoute, scavenge: bool) -> int:
        return route.total_time * 2 if scavenge else route.total_time

    def _start_travel(
        self, action: ExplorationTravelAction | FarTravelAction, *, multi_hop: bool
    ) -> ActionRun:
        state = self.state
        name = action_name(action)
        destination = action.destination_area_id
        if destination == state.knowledge.current_area_id:
            return ActionRun.finished(
                action, ActionResult.failure(name, FailureKind.ALREADY_IN_AREA)
            )
        if multi_hop and not state.knowledge.is_area_known(destination):
            return ActionRun.finished(
                action, ActionResult.failure(name, FailureKind.AREA_NOT_KNOWN)
            )
        route = self._route_for(action)
        if route is None:
            return ActionRun.finished(
                action, ActionResult.failure(name, FailureKind.NO_PATH_TO_DESTINATION)
            )
        total = self._travel_ticks(route, action.scavenge)
        if total > state.clock.session_remaining_ticks:
            return ActionRun.finished(
                action, ActionResult.failure(name, FailureKind.SESSION_ENDED)
            )

        tally = _RunTally(name)
        return ActionRun(action, self._travel_steps(action, route, total, tally), tally)

    def _travel_steps(
        self,
        action: ExplorationTravelAction | FarTravelAction,
        route: TravelRoute,
        total: int,
        tally: _RunTally,
    ) -> Steps:
        state = self.state
        origin = state.knowledge.current_area_id
        discovered: Optional[str] = None
        arrivals = []
        elapsed = 0
        for connection, hop_end in zip(route.connections, route.path[1:]):
            elapsed += travel_time(
                connection,
                base_travel_time=state.config.base_travel_time,
                scavenge=action.scavenge,
            )
            arrivals.append((elapsed, hop_end))

        for tick in range(1, total + 1):
            state.clock.consume(1)
            tally.ticks = tick
            while arrivals and arrivals[0][0] == tick:
                _, hop_end = arrivals.pop(0)
                if not state.knowledge.is_area_known(hop_end):
                    discovered = hop_end
                state.knowledge.move_to(hop_end)
                state.world.ensure_area_fully_generated(state.rng, hop_end)
            if tick == total:
                tally.outcome = ActionResult(
                    action=tally.action,
                    success=True,
                    ticks_consumed=tally.ticks,
                    discovered_area_id=discovered,
                    destination_area_id=action.destination_area_id,
                    path=list(route.path),
                    summary=(
                        f"Travelled from {origin} to {action.destination_area_id} "
                        f"in {tally.ticks} ticks"
                    ),
                )
                log.info(
                    "%s from %s to %s took %d ticks",
                    tally.action,
                    origin,
                    action.destination_area_id,
                    tally.ticks,
                )
            yield TickProgress(
                action=tally.action,
                tick=state.clock.current_tick,
                ticks_elapsed=tally.ticks,
                rolls_made=0,
                total_ticks=total,
            )
        return tally.outcome


__all__ = ["ActionRun", "ExplorationEngine", "next_roll_tick"]
