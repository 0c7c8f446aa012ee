"""Shared constants used across world generation and exploration actions."""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping, Tuple

# Identifier of the singular distance 0 area every game starts in.
HUB_AREA_ID = "TOWN"

# Ticks needed to cross a connection with a travel multiplier of 1.
BASE_TRAVEL_TIME = 10

# Skill that governs Survey and Explore.
EXPLORATION_SKILL = "Exploration"

# Gathering skills a node can require. Holding one (level > 0) makes the
# matching nodes much easier to spot while exploring.
GATHERING_SKILLS: Tuple[str, ...] = ("Mining", "Woodcutting")

# Flat chance per roll for players outside the exploration guild.
UNQUALIFIED_SUCCESS_CHANCE = 0.01

BASE_SUCCESS_CHANCE = 0.05
LEVEL_BONUS_PER_LEVEL = 0.05
DISTANCE_PENALTY_PER_BAND = 0.05
CONNECTED_KNOWLEDGE_BONUS = 0.05
NON_CONNECTED_KNOWLEDGE_BONUS = 0.20

# Roll interval shrinks by this many ticks for every ten levels.
ROLL_INTERVAL_MAX = 2.0
ROLL_INTERVAL_MIN = 1.0
ROLL_INTERVAL_STEP = 0.1

# Relative discovery weights, expressed against a connection to a known area.
WEIGHT_CONNECTION_TO_KNOWN_AREA = 1.0
WEIGHT_CONNECTION_TO_UNKNOWN_AREA = 0.25
WEIGHT_GATHERING_NODE_SKILLED = 0.5
WEIGHT_GATHERING_NODE_UNSKILLED = 0.05
WEIGHT_MOB_CAMP = 0.5
WEIGHT_OTHER_LOCATION = 0.5

# Independent existence rolls made for every materialized wilderness area.
GATHERING_NODE_CHANCE: Mapping[str, float] = MappingProxyType(
    {"Mining": 0.3, "Woodcutting": 0.3}
)
MOB_CAMP_CHANCE = 0.25
MOB_DIFFICULTY_SPREAD = 3.0

# Cumulative thresholds for the 15/35/35/15 split used by both the number of
# links an area rolls per distance band and connection travel multipliers.
QUARTILE_THRESHOLDS: Tuple[float, float, float] = (0.15, 0.5, 0.85)
CONNECTION_COUNTS: Tuple[int, int, int, int] = (0, 1, 2, 3)
TRAVEL_MULTIPLIERS: Tuple[int, int, int, int] = (1, 2, 3, 4)

# First two terms of the area count progression for distance 1 and 2.
AREA_COUNT_SEED: Tuple[int, int] = (5, 8)

# Luck percentiles (of the realised tick count) bounding each label. Fewer
# ticks than expected means a low percentile, which reads as lucky.
LUCK_LABEL_BANDS: Tuple[Tuple[float, str], ...] = (
    (6.68, "very lucky"),
    (30.85, "lucky"),
    (69.15, "average"),
    (93.32, "unlucky"),
)
LUCK_LABEL_FALLBACK = "very unlucky"

# Most recent luck deltas kept on the ledger.
LUCK_HISTORY_LIMIT = 50


__all__ = [
    "AREA_COUNT_SEED",
    "BASE_SUCCESS_CHANCE",
    "BASE_TRAVEL_TIME",
    "CONNECTED_KNOWLEDGE_BONUS",
    "CONNECTION_COUNTS",
    "DISTANCE_PENALTY_PER_BAND",
    "EXPLORATION_SKILL",
    "GATHERING_NODE_CHANCE",
    "GATHERING_SKILLS",
    "HUB_AREA_ID",
    "LEVEL_BONUS_PER_LEVEL",
    "LUCK_LABEL_BANDS",
    "LUCK_HISTORY_LIMIT",
    "LUCK_LABEL_FALLBACK",
    "MOB_CAMP_CHANCE",
    "MOB_DIFFICULTY_SPREAD",
    "NON_CONNECTED_KNOWLEDGE_BONUS",
    "QUARTILE_THRESHOLDS",
    "ROLL_INTERVAL_MAX",
    "ROLL_INTERVAL_MIN",
    "ROLL_INTERVAL_STEP",
    "TRAVEL_MULTIPLIERS",
    "UNQUALIFIED_SUCCESS_CHANCE",
    "WEIGHT_CONNECTION_TO_KNOWN_AREA",
    "WEIGHT_CONNECTION_TO_UNKNOWN_AREA",
    "WEIGHT_GATHERING_NODE_SKILLED",
    "WEIGHT_GATHERING_NODE_UNSKILLED",
    "WEIGHT_MOB_CAMP",
    "WEIGHT_OTHER_LOCATION",
]
