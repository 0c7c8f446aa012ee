"""Exploration configuration utilities."""

from __future__ import annotations

import os
from dataclasses import dataclass

from .constants import BASE_TRAVEL_TIME


def env(name: str, default: str | None = None) -> str:
    value = os.getenv(name, default)
    if value is None:
        raise RuntimeError(f"Missing required environment variable: {name}")
    return value


@dataclass(slots=True)
class ExplorationConfig:
    seed: str = "frontier"
    session_ticks: int = 1000
    base_travel_time: int = BASE_TRAVEL_TIME
    starting_exploration_level: int = 1
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "ExplorationConfig":
        seed = env("FRONTIER_SEED", "frontier")
        session_ticks = int(os.getenv("FRONTIER_SESSION_TICKS", "1000"))
        base_travel_time = int(
            os.getenv("FRONTIER_BASE_TRAVEL_TIME", str(BASE_TRAVEL_TIME))
        )
        starting_level = int(os.getenv("FRONTIER_EXPLORATION_LEVEL", "1"))
        log_level = os.getenv("FRONTIER_LOG_LEVEL", "INFO").strip().upper() or "INFO"

        session_ticks = max(0, session_ticks)
        base_travel_time = max(1, base_travel_time)
        starting_level = max(0, starting_level)

        return cls(
            seed=seed,
            session_ticks=session_ticks,
            base_travel_time=base_travel_time,
            starting_exploration_level=starting_level,
            log_level=log_level,
        )


__all__ = ["ExplorationConfig", "env"]
