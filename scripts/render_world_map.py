#!/usr/bin/env python3
"""Simulate an exploration run and render the player's map of the world."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
import sys

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import networkx as nx
from matplotlib.lines import Line2D

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from frontier.config import ExplorationConfig
from frontier.game import ExplorationState
from frontier.models.actions import (
    ExplorationTravelAction,
    ExploreAction,
    FailureKind,
    SurveyAction,
)
from frontier.snapshot import WorldSnapshot

log = logging.getLogger("render_world_map")

# Edge colours follow the travel multiplier: quick links are green, slow ones
# fade to red.
MULTIPLIER_COLOURS = {1: "#2ca02c", 2: "#bcbd22", 3: "#ff7f0e", 4: "#d62728"}

HUB_NODE_COLOUR = "#f0a500"
KNOWN_NODE_COLOUR = "#98df8a"
UNKNOWN_NODE_COLOUR = "#d9d9d9"
CURRENT_NODE_EDGE = "#1f77b4"


def simulate(state: ExplorationState, steps: int) -> None:
    """Alternate Survey, travel and Explore until the budget runs out."""

    engine = state.engine
    for _ in range(steps):
        result = engine.execute(SurveyAction())
        if result.failure_kind is FailureKind.SESSION_ENDED:
            break
        if result.success and result.discovered_area_id:
            travel = engine.execute(ExplorationTravelAction(result.discovered_area_id))
            if travel.failure_kind is FailureKind.SESSION_ENDED:
                break
        explore = engine.execute(ExploreAction())
        if explore.failure_kind is FailureKind.SESSION_ENDED:
            break
        log.info("%s", explore.summary)


def _positions(graph: nx.Graph) -> dict[str, tuple[float, float]]:
    shells: dict[int, list[str]] = {}
    for node, data in graph.nodes(data=True):
        shells.setdefault(int(data.get("distance", 0)), []).append(node)
    ordered = [sorted(shells[distance]) for distance in sorted(shells)]
    if len(ordered) == 1:
        return nx.circular_layout(graph)
    return nx.shell_layout(graph, nlist=ordered)


def render_world_map(
    snapshot: WorldSnapshot,
    output_path: Path,
    *,
    dpi: int = 150,
    size: float = 12.0,
    known_only: bool = True,
) -> None:
    graph = snapshot.to_networkx(known_only=known_only)
    pos = _positions(graph)

    plt.figure(figsize=(size, size), dpi=dpi)

    node_colours = []
    for node, data in graph.nodes(data=True):
        if data.get("distance") == 0:
            node_colours.append(HUB_NODE_COLOUR)
        elif data.get("known"):
            node_colours.append(KNOWN_NODE_COLOUR)
        else:
            node_colours.append(UNKNOWN_NODE_COLOUR)
    edge_outline = [
        CURRENT_NODE_EDGE if data.get("current") else "#333333"
        for _, data in graph.nodes(data=True)
    ]

    nx.draw_networkx_nodes(
        graph,
        pos,
        node_color=node_colours,
        node_size=420,
        linewidths=[2.5 if data.get("current") else 0.5 for _, data in graph.nodes(data=True)],
        edgecolors=edge_outline,
    )
    labels = {node: data.get("label", node) for node, data in graph.nodes(data=True)}
    nx.draw_networkx_labels(graph, pos, labels=labels, font_size=6)

    for multiplier, colour in MULTIPLIER_COLOURS.items():
        edges = [
            (u, v)
            for u, v, data in graph.edges(data=True)
            if data.get("multiplier") == multiplier
        ]
        if not edges:
            continue
        nx.draw_networkx_edges(
            graph,
            pos,
            edgelist=edges,
            edge_color=colour,
            width=1.0 + 0.5 * (4 - multiplier),
            style="solid",
            alpha=0.8,
        )

    legend_handles = [
        Line2D([], [], color=colour, linewidth=1.5, label=f"x{multiplier} travel")
        for multiplier, colour in MULTIPLIER_COLOURS.items()
    ]
    legend_handles.append(
        Line2D([], [], marker="o", linestyle="", color=HUB_NODE_COLOUR, label="Town")
    )
    legend_handles.append(
        Line2D([], [], marker="o", linestyle="", color=KNOWN_NODE_COLOUR, label="Known area")
    )
    if not known_only:
        legend_handles.append(
            Line2D([], [], marker="o", linestyle="", color=UNKNOWN_NODE_COLOUR, label="Unknown area")
        )

    plt.legend(handles=legend_handles, loc="upper left", frameon=False, fontsize=8)
    plt.axis("off")
    plt.tight_layout()

    output_path.parent.mkdir(parents=True, exist_ok=True)
    plt.savefig(output_path, bbox_inches="tight")
    plt.close()


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--output",
        type=Path,
        default=Path("img/world-map.png"),
        help="Where to write the rendered map image.",
    )
    parser.add_argument("--seed", help="World seed; defaults to FRONTIER_SEED.")
    parser.add_argument(
        "--steps",
        type=int,
        default=10,
        help="Number of survey/travel/explore rounds to simulate before rendering.",
    )
    parser.add_argument("--dpi", type=int, default=150, help="Rendering DPI.")
    parser.add_argument("--size", type=float, default=12.0, help="Figure size in inches.")
    parser.add_argument(
        "--all",
        action="store_true",
        help="Include generated areas and links the player has not discovered.",
    )

    args = parser.parse_args()
    config = ExplorationConfig.from_env()
    if args.seed:
        config.seed = args.seed
    logging.basicConfig(level=getattr(logging, config.log_level, logging.INFO))

    state = ExplorationState.new(config)
    simulate(state, args.steps)
    snapshot = state.snapshot()
    log.info("Final map: %s", snapshot.counts())
    render_world_map(
        snapshot, args.output, dpi=args.dpi, size=args.size, known_only=not args.all
    )


if __name__ == "__main__":
    main()
