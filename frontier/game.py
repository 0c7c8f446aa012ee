"""Aggregate exploration state for a single player run."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional

from .config import ExplorationConfig
from .constants import EXPLORATION_SKILL, GATHERING_SKILLS, HUB_AREA_ID
from .exploration.discovery import explore_candidates
from .models.knowledge import ExplorationCache, PlayerKnowledge
from .models.player import LuckLedger, SessionClock, SkillState
from .models.world import Area, Connection, WorldIntegrityError
from .rng import RollStream
from .snapshot import WorldSnapshot
from .worldgen import WorldGraph, initialize_world

if TYPE_CHECKING:  # pragma: no cover
    from .exploration.engine import ExplorationEngine

log = logging.getLogger(__name__)

STATE_VERSION = 1


class ExplorationState:
    """Everything one in-progress run owns.

    Only one action may run against a state at a time; separate runs need
    separate instances.
    """

    def __init__(
        self,
        config: ExplorationConfig,
        rng: RollStream,
        world: WorldGraph,
        knowledge: PlayerKnowledge,
        skills: Dict[str, SkillState],
        clock: SessionClock,
        luck: LuckLedger | None = None,
    ) -> None:
        self.config = config
        self.rng = rng
        self.world = world
        self.knowledge = knowledge
        self.skills = skills
        self.clock = clock
        self.luck = luck or LuckLedger()
        self.cache = ExplorationCache()
        self._engine: "ExplorationEngine" | None = None
        self.check_integrity()

    @classmethod
    def new(cls, config: ExplorationConfig | None = None) -> "ExplorationState":
        config = config or ExplorationConfig()
        rng = RollStream(config.seed)
        world = initialize_world(rng)
        knowledge = PlayerKnowledge()
        for location in world.area(HUB_AREA_ID).locations:
            knowledge.mark_location_known(location.id)
        skills = {EXPLORATION_SKILL: SkillState(level=config.starting_exploration_level)}
        for skill in GATHERING_SKILLS:
            skills[skill] = SkillState()
        clock = SessionClock(current_tick=0, session_remaining_ticks=config.session_ticks)
        log.info(
            "Started exploration run with seed %s and %d session ticks",
            config.seed,
            config.session_ticks,
        )
        return cls(config, rng, world, knowledge, skills, clock)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def engine(self) -> "ExplorationEngine":
        if self._engine is None:
            from .exploration.engine import ExplorationEngine

            self._engine = ExplorationEngine(self)
        return self._engine

    @property
    def current_area(self) -> Area:
        return self.world.area(self.knowledge.current_area_id)

    def skill(self, name: str) -> SkillState:
        return self.skills.setdefault(name, SkillState())

    @property
    def exploration_level(self) -> int:
        return self.skill(EXPLORATION_SKILL).level

    def ensure_current_area_generated(self) -> Area:
        return self.world.ensure_area_fully_generated(self.rng, self.knowledge.current_area_id)

    def is_area_fully_explored(self, area_id: str) -> bool:
        """Whether every location and link of ``area_id`` is known."""

        def compute(target_id: str) -> bool:
            area = self.world.ensure_area_fully_generated(self.rng, target_id)
            return not explore_candidates(self.world, self.knowledge, area, self.skills)

        return self.cache.is_fully_explored(area_id, compute)

    def known_connections(self) -> list[Connection]:
        return [
            connection
            for connection in self.world.connections
            if self.knowledge.is_connection_known(
                connection.from_area_id, connection.to_area_id
            )
        ]

    def snapshot(self) -> WorldSnapshot:
        return WorldSnapshot.capture(self.world, self.knowledge)

    # ------------------------------------------------------------------
    # Integrity
    # ------------------------------------------------------------------

    def check_integrity(self) -> None:
        for connection in self.world.connections:
            for endpoint in (connection.from_area_id, connection.to_area_id):
                if endpoint not in self.world.areas:
                    log.error("Connection %s references missing area %s", connection.id, endpoint)
                    raise WorldIntegrityError(
                        f"Connection {connection.id} references missing area {endpoint}"
                    )
        for area_id in self.knowledge.known_area_ids:
            if area_id not in self.world.areas:
                log.error("Known area %s is missing from the world", area_id)
                raise WorldIntegrityError(f"Known area {area_id} is missing from the world")
        current = self.world.area(self.knowledge.current_area_id)
        if not current.generated:
            log.error("Current area %s was never generated", current.id)
            raise WorldIntegrityError(f"Current area {current.id} was never generated")

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": STATE_VERSION,
            "config": {
                "seed": self.config.seed,
                "session_ticks": self.config.session_ticks,
                "base_travel_time": self.config.base_travel_time,
                "starting_exploration_level": self.config.starting_exploration_level,
                "log_level": self.config.log_level,
            },
            "rng": self.rng.to_dict(),
            "areas": [
                self.world.areas[area_id].to_dict() for area_id in sorted(self.world.areas)
            ],
            "connections": [connection.to_dict() for connection in self.world.connections],
            "connections_rolled": sorted(self.world.connections_rolled),
            "knowledge": self.knowledge.to_dict(),
            "skills": {name: skill.to_dict() for name, skill in sorted(self.skills.items())},
            "clock": self.clock.to_dict(),
            "luck": self.luck.to_dict(),
        }

    @classmethod
    def from_dict(
        cls, data: Mapping[str, Any], *, config: Optional[ExplorationConfig] = None
    ) -> "ExplorationState":
        """Rebuild a run exactly as it was saved; nothing is re-rolled."""

        stored_config = data.get("config") or {}
        if config is None:
            config = ExplorationConfig(
                seed=str(stored_config.get("seed", data["rng"]["seed"])),
                session_ticks=int(stored_config.get("session_ticks", 0)),
                base_travel_time=int(
                    stored_config.get("base_travel_time", ExplorationConfig().base_travel_time)
                ),
                starting_exploration_level=int(
                    stored_config.get("starting_exploration_level", 1)
                ),
                log_level=str(stored_config.get("log_level", "INFO")),
            )
        world = WorldGraph(
            areas={
                area.id: area for area in (Area.from_dict(entry) for entry in data["areas"])
            },
            connections=[Connection.from_dict(entry) for entry in data.get("connections", [])],
            connections_rolled=set(data.get("connections_rolled", [])),
        )
        return cls(
            config=config,
            rng=RollStream.from_dict(data["rng"]),
            world=world,
            knowledge=PlayerKnowledge.from_dict(data["knowledge"]),
            skills={
                str(name): SkillState.from_dict(entry)
                for name, entry in (data.get("skills") or {}).items()
            },
            clock=SessionClock.from_dict(data["clock"]),
            luck=LuckLedger.from_dict(data.get("luck") or {}),
        )


__all__ = ["ExplorationState", "STATE_VERSION"]
