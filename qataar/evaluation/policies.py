from __future__ import annotations

from typing import Optional

import numpy as np

from qataar.core import GameState, Layout
from qataar.core.rules import encode_action
from qataar.search import AIRequest, Difficulty, DifficultyConfig, SearchConfig, choose_move


class Policy:
    """Policy interface producing action probabilities over legal moves."""

    def act(self, state: GameState, legal_mask: np.ndarray) -> np.ndarray:
        raise NotImplementedError


class RandomPolicy(Policy):
    def __init__(self, rng: Optional[np.random.Generator] = None) -> None:
        self.rng = rng or np.random.default_rng()

    def act(self, state: GameState, legal_mask: np.ndarray) -> np.ndarray:
        logits = legal_mask.astype(np.float64)
        if logits.sum() == 0:
            return logits.astype(np.float32)
        probs = logits / logits.sum()
        return probs.astype(np.float32, copy=True)


class SearchPolicy(Policy):
    """Puts all probability on the move the difficulty tier would play.

    While a capture chain is running the first forced jump is taken without
    searching, as the engine does for the computer player.
    """

    def __init__(
        self,
        layout: Layout,
        difficulty: Difficulty = Difficulty.NORMAL,
        *,
        rng: Optional[np.random.Generator] = None,
        search: Optional[SearchConfig] = None,
        depths: Optional[DifficultyConfig] = None,
    ) -> None:
        self.layout = layout
        self.difficulty = Difficulty(difficulty)
        self.rng = rng or np.random.default_rng()
        self.search = search or SearchConfig()
        self.depths = depths or DifficultyConfig()

    def act(self, state: GameState, legal_mask: np.ndarray) -> np.ndarray:
        if state.is_chain_jumping and state.legal_moves:
            move = state.legal_moves[0]
        else:
            request = AIRequest(
                pieces=tuple(state.pieces),
                layout=self.layout,
                difficulty=self.difficulty,
                player=state.current_player,
                generation=state.generation,
                search=self.search,
                depths=self.depths,
            )
            move = choose_move(request, self.rng).move

        probs = np.zeros_like(legal_mask, dtype=np.float32)
        if move is None:
            return probs
        piece = state.piece(move.piece_id)
        probs[encode_action(self.layout.topology, piece.node, move.target)] = 1.0
        return probs * legal_mask
