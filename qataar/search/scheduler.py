from __future__ import annotations

import logging
import math
from concurrent.futures import Executor, Future, ProcessPoolExecutor, ThreadPoolExecutor
from concurrent.futures import wait as futures_wait
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

import numpy as np

from qataar.core import Layout, Move, Piece, Player
from qataar.core.rules import apply_move, chain_continuation, player_moves

from .evaluate import SearchConfig
from .minimax import SearchStats, minimax, order_moves

logger = logging.getLogger(__name__)


class Difficulty(str, Enum):
    EASY = "easy"
    NORMAL = "normal"
    HARD = "hard"

    def next(self) -> "Difficulty":
        order = list(Difficulty)
        return order[(order.index(self) + 1) % len(order)]


@dataclass
class DifficultyConfig:
    normal_depth: int = 2
    hard_depth: int = 6

    def depth_for(self, difficulty: Difficulty) -> int:
        if difficulty == Difficulty.HARD:
            return self.hard_depth
        if difficulty == Difficulty.NORMAL:
            return self.normal_depth
        return 0


@dataclass(frozen=True)
class AIRequest:
    """Everything the search needs, copied out of the live game."""

    pieces: Tuple[Piece, ...]
    layout: Layout
    difficulty: Difficulty = Difficulty.NORMAL
    player: Player = Player.TWO
    generation: int = 0
    seed: Optional[int] = None
    search: SearchConfig = field(default_factory=SearchConfig)
    depths: DifficultyConfig = field(default_factory=DifficultyConfig)


@dataclass(frozen=True)
class AIResponse:
    move: Optional[Move]
    generation: int
    value: Optional[float] = None
    nodes: int = 0


class SchedulerBusyError(RuntimeError):
    pass


def choose_move(request: AIRequest, rng: Optional[np.random.Generator] = None) -> AIResponse:
    """Pick one move for ``request.player`` according to the difficulty tier.

    Easy picks uniformly among the legal moves. Normal and hard shuffle the
    candidates, put jumps first and keep the first candidate whose searched
    value is strictly better than everything seen before it. A root jump that
    leaves a capture chain open is searched at the full depth with the same
    side still to move, as chains are inside the tree.
    """
    rng = rng or np.random.default_rng(request.seed)
    pieces = tuple(request.pieces)
    layout = request.layout
    moves = player_moves(request.player, pieces, layout)
    if not moves:
        return AIResponse(move=None, generation=request.generation)

    if request.difficulty == Difficulty.EASY:
        move = moves[int(rng.integers(len(moves)))]
        return AIResponse(move=move, generation=request.generation)

    depth = request.depths.depth_for(request.difficulty)
    maximizing = request.player == Player.TWO
    candidates = order_moves(moves[int(i)] for i in rng.permutation(len(moves)))
    stats = SearchStats()

    best_move: Optional[Move] = None
    best_value = -math.inf if maximizing else math.inf
    for move in candidates:
        next_pieces, moved, promoted = apply_move(pieces, move, layout)
        if chain_continuation(next_pieces, move, moved, promoted, layout):
            value = minimax(
                next_pieces,
                depth,
                -math.inf,
                math.inf,
                maximizing,
                layout,
                request.search,
                chain_piece_id=move.piece_id,
                stats=stats,
            )
        else:
            value = minimax(
                next_pieces,
                depth - 1,
                -math.inf,
                math.inf,
                not maximizing,
                layout,
                request.search,
                stats=stats,
            )
        if (maximizing and value > best_value) or (not maximizing and value < best_value):
            best_value = value
            best_move = move

    logger.debug(
        "%s search for player %d at depth %d: %d candidates, %d nodes, value %.1f",
        request.difficulty.value,
        int(request.player),
        depth,
        len(candidates),
        stats.node_count,
        best_value,
    )
    return AIResponse(
        move=best_move,
        generation=request.generation,
        value=best_value,
        nodes=stats.node_count,
    )


class AIScheduler:
    """Runs :func:`choose_move` off the caller's thread, one request at a time.

    Requests and responses are plain frozen values, so the default thread
    worker can be swapped for a process worker without shared state.
    """

    def __init__(
        self,
        *,
        use_processes: bool = False,
        executor: Optional[Executor] = None,
    ) -> None:
        if executor is None:
            executor = ProcessPoolExecutor(max_workers=1) if use_processes else ThreadPoolExecutor(max_workers=1)
            self._owns_executor = True
        else:
            self._owns_executor = False
        self._executor = executor
        self._pending: Optional[Future] = None

    @property
    def busy(self) -> bool:
        return self._pending is not None and not self._pending.done()

    def submit(self, request: AIRequest) -> "Future[AIResponse]":
        if self.busy:
            raise SchedulerBusyError("An AI computation is already outstanding.")
        logger.debug(
            "Submitting %s request for generation %d", request.difficulty.value, request.generation
        )
        self._pending = self._executor.submit(choose_move, request)
        return self._pending

    def wait(self, timeout: Optional[float] = None) -> None:
        """Block until the outstanding computation, if any, has finished."""
        if self._pending is not None:
            futures_wait([self._pending], timeout=timeout)

    def shutdown(self, wait: bool = True) -> None:
        if self._owns_executor:
            self._executor.shutdown(wait=wait)

    def __enter__(self) -> "AIScheduler":
        return self

    def __exit__(self, *exc_info) -> None:
        self.shutdown()
