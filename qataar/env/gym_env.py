from __future__ import annotations

from typing import Dict, Optional

import gymnasium as gym
import numpy as np
from gymnasium import spaces

from qataar.core import GameState, Layout, Move, Player, standard_layout
from qataar.core.rules import action_space_size, decode_action, encode_action
from qataar.engine import GameEngine, GameMode

BOARD_CHANNELS = 4
AUX_VECTOR_SIZE = 3


class QataarEnv(gym.Env):
    """Both sides driven through the engine in two-player mode.

    Actions index (origin node, target node) pairs in the topology's node
    order; a capture chain keeps the same player to move until it ends.
    """

    metadata = {"render_modes": []}

    def __init__(
        self,
        *,
        layout: Optional[Layout] = None,
        max_ply: int = 200,
        enforce_legal_actions: bool = True,
    ) -> None:
        super().__init__()
        self.layout = layout or standard_layout()
        self._max_ply = max_ply
        self._enforce_legal = enforce_legal_actions

        num_nodes = len(self.layout.topology.nodes)
        self.observation_space = spaces.Dict(
            {
                "board": spaces.Box(low=0.0, high=1.0, shape=(BOARD_CHANNELS, num_nodes), dtype=np.float32),
                "aux": spaces.Box(low=0.0, high=1.0, shape=(AUX_VECTOR_SIZE,), dtype=np.float32),
            }
        )
        self.action_space = spaces.Discrete(action_space_size(self.layout.topology))

        self.engine = GameEngine(self.layout, game_mode=GameMode.PVP)
        self._last_info: Dict[str, np.ndarray] = {}

    @property
    def state(self) -> GameState:
        return self.engine.state

    def reset(self, *, seed: Optional[int] = None, options: Optional[Dict] = None):
        super().reset(seed=seed)
        if options and "max_ply" in options:
            self._max_ply = int(options["max_ply"])
        self.engine.reset()
        self._skip_blocked_turns()
        observation = self._build_observation()
        info = self._build_info()
        self._last_info = info
        return observation, info

    def step(self, action_index: int):
        if not self.action_space.contains(action_index):
            raise ValueError(f"Action index {action_index} out of bounds.")

        legal_mask = self.legal_action_mask()
        if self._enforce_legal and not legal_mask[action_index]:
            raise ValueError("Illegal action provided and enforce_legal_actions=True.")

        move = self.move_for_action(int(action_index))
        if move is None or not self.engine.play(move):
            raise ValueError(f"Action {action_index} does not match a legal move.")
        self._skip_blocked_turns()

        observation = self._build_observation()
        info = self._build_info()
        self._last_info = info

        terminated = self.state.winner is not None
        truncated = not terminated and (
            self.state.ply_count >= self._max_ply or not self.engine.legal_moves()
        )
        reward = self._compute_reward(self.state.winner)
        return observation, reward, terminated, truncated, info

    def legal_action_mask(self) -> np.ndarray:
        mask = np.zeros(self.action_space.n, dtype=np.int8)
        for move in self.engine.legal_moves():
            mask[self.action_for_move(move)] = 1
        return mask

    def action_for_move(self, move: Move) -> int:
        piece = self.state.piece(move.piece_id)
        return encode_action(self.layout.topology, piece.node, move.target)

    def move_for_action(self, action_index: int) -> Optional[Move]:
        origin, target = decode_action(self.layout.topology, action_index)
        for move in self.engine.legal_moves():
            piece = self.state.piece(move.piece_id)
            if piece is not None and piece.node == origin and move.target == target:
                return move
        return None

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _skip_blocked_turns(self) -> None:
        # A side without moves passes; if both are blocked the episode truncates.
        for _ in range(2):
            if self.state.winner is not None or self.engine.legal_moves():
                return
            self.engine.pass_turn()

    def _build_observation(self) -> Dict[str, np.ndarray]:
        topology = self.layout.topology
        board = np.zeros((BOARD_CHANNELS, len(topology.nodes)), dtype=np.float32)
        for piece in self.state.pieces:
            if piece.node not in topology.nodes:
                continue
            channel = (0 if piece.player == Player.ONE else 2) + (1 if piece.is_king else 0)
            board[channel, topology.index_of(piece.node)] = 1.0
        aux = np.zeros(AUX_VECTOR_SIZE, dtype=np.float32)
        aux[0 if self.state.current_player == Player.ONE else 1] = 1.0
        aux[2] = 1.0 if self.state.is_chain_jumping else 0.0
        return {"board": board, "aux": aux}

    def _build_info(self) -> Dict[str, np.ndarray]:
        return {"legal_action_mask": self.legal_action_mask()}

    def _compute_reward(self, winner: Optional[Player]) -> float:
        if winner == Player.ONE:
            return 1.0
        if winner == Player.TWO:
            return -1.0
        return 0.0
