from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np

from qataar.core import Player
from qataar.env import QataarEnv

from .policies import Policy


@dataclass
class EvaluationResult:
    games_played: int
    player_one_wins: int
    player_two_wins: int
    draws: int
    average_length: float

    def winrate_player_one(self) -> float:
        return self.player_one_wins / max(1, self.games_played)

    def winrate_player_two(self) -> float:
        return self.player_two_wins / max(1, self.games_played)


def evaluate_policies(
    policy_player_one: Policy,
    policy_player_two: Policy,
    *,
    episodes: int,
    env_factory: Optional[Callable[[], QataarEnv]] = None,
    rng: Optional[np.random.Generator] = None,
) -> EvaluationResult:
    env_factory = env_factory or QataarEnv
    rng = rng or np.random.default_rng()

    player_one_wins = 0
    player_two_wins = 0
    draws = 0
    total_ply = 0

    for _ in range(episodes):
        env = env_factory()
        obs, info = env.reset()
        done = env.state.winner is not None

        while not done:
            state_snapshot = env.state.copy()
            legal_mask = info["legal_action_mask"]
            if not legal_mask.any():
                break
            policy = policy_player_one if state_snapshot.current_player == Player.ONE else policy_player_two
            probs = policy.act(state_snapshot, legal_mask)
            if probs.sum() <= 0:
                probs = legal_mask.astype(np.float32)
            probs = probs.astype(np.float64) / float(probs.sum())
            action_index = int(rng.choice(len(probs), p=probs))
            obs, reward, terminated, truncated, info = env.step(action_index)
            done = terminated or truncated

        total_ply += env.state.ply_count
        if env.state.winner == Player.ONE:
            player_one_wins += 1
        elif env.state.winner == Player.TWO:
            player_two_wins += 1
        else:
            draws += 1

    average_length = total_ply / max(1, episodes)
    return EvaluationResult(
        games_played=episodes,
        player_one_wins=player_one_wins,
        player_two_wins=player_two_wins,
        draws=draws,
        average_length=average_length,
    )
