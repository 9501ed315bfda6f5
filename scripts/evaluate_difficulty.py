#!/usr/bin/env python3
"""Pit two difficulty tiers (or a tier and a random mover) against each other."""

import argparse
import json
from typing import Dict, Optional

import numpy as np

from qataar.core import get_layout, load_custom_board
from qataar.env import QataarEnv
from qataar.evaluation import RandomPolicy, SearchPolicy, evaluate_policies
from qataar.search import Difficulty


def make_policy(name: str, layout, seed: Optional[int]):
    rng = np.random.default_rng(seed)
    if name == "random":
        return RandomPolicy(rng)
    return SearchPolicy(layout, Difficulty(name), rng=rng)


def run_evaluation(
    *,
    layout_name: str = "standard",
    board: Optional[str] = None,
    player_one: str = "random",
    player_two: str = "normal",
    episodes: int = 4,
    max_ply: int = 200,
    seed: Optional[int] = None,
) -> Dict[str, object]:
    layout = load_custom_board(board) if board else get_layout(layout_name)
    policy_one = make_policy(player_one, layout, seed)
    policy_two = make_policy(player_two, layout, None if seed is None else seed + 1)
    result = evaluate_policies(
        policy_one,
        policy_two,
        episodes=episodes,
        env_factory=lambda: QataarEnv(layout=layout, max_ply=max_ply),
        rng=np.random.default_rng(seed),
    )
    return {
        "layout": layout.name.value,
        "player_one": player_one,
        "player_two": player_two,
        "games": result.games_played,
        "player_one_wins": result.player_one_wins,
        "player_two_wins": result.player_two_wins,
        "draws": result.draws,
        "average_length": result.average_length,
        "player_one_winrate": result.winrate_player_one(),
        "player_two_winrate": result.winrate_player_two(),
    }


def main() -> None:
    choices = ["random"] + [tier.value for tier in Difficulty]
    parser = argparse.ArgumentParser()
    parser.add_argument("--layout", choices=["standard", "extended", "square"], default="standard")
    parser.add_argument("--board", help="Custom board document (JSON or YAML)")
    parser.add_argument("--player-one", choices=choices, default="random")
    parser.add_argument("--player-two", choices=choices, default="normal")
    parser.add_argument("--episodes", type=int, default=4)
    parser.add_argument("--max-ply", type=int, default=200)
    parser.add_argument("--seed", type=int)
    args = parser.parse_args()

    output = run_evaluation(
        layout_name=args.layout,
        board=args.board,
        player_one=args.player_one,
        player_two=args.player_two,
        episodes=args.episodes,
        max_ply=args.max_ply,
        seed=args.seed,
    )
    print(json.dumps(output, indent=2))


if __name__ == "__main__":
    main()
