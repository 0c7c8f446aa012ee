"""Discovery and traversal for the frontier exploration game.

The probability model, candidate builder, pathfinder and luck reporter are
shared by every action so a preview and the run it describes never disagree.
:class:`ExplorationEngine` drives actions one tick at a time.
"""

from __future__ import annotations

from .discovery import (
    Discoverable,
    DiscoverableKind,
    explore_candidates,
    survey_candidates,
    weighted_pick,
)
from .engine import ActionRun, ExplorationEngine, next_roll_tick
from .luck import luck_label, luck_summary, normal_cdf
from .pathfinding import Pathfinder, TravelRoute, travel_time
from .probability import (
    KnowledgeParams,
    chance_for,
    expected_ticks,
    knowledge_params,
    roll_interval,
    success_chance,
)

__all__ = [
    "ActionRun",
    "Discoverable",
    "DiscoverableKind",
    "ExplorationEngine",
    "KnowledgeParams",
    "Pathfinder",
    "TravelRoute",
    "chance_for",
    "expected_ticks",
    "explore_candidates",
    "knowledge_params",
    "luck_label",
    "luck_summary",
    "next_roll_tick",
    "normal_cdf",
    "roll_interval",
    "success_chance",
    "survey_candidates",
    "travel_time",
    "weighted_pick",
]
