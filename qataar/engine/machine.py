from __future__ import annotations

import logging
from concurrent.futures import Future
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple

from qataar.core import GameState, Layout, Move, Piece, Player, TurnPhase
from qataar.core.rules import apply_move, chain_continuation, player_moves
from qataar.search import (
    AIRequest,
    AIResponse,
    AIScheduler,
    Difficulty,
    DifficultyConfig,
    SearchConfig,
)

logger = logging.getLogger(__name__)


class GameMode(str, Enum):
    PVC = "pvc"
    PVP = "pvp"


class EngineEvent(Enum):
    SELECT = "select"
    WALK = "walk"
    JUMP_CONTINUES = "jump_continues"
    JUMP_ENDS = "jump_ends"
    PASS = "pass"
    WIN = "win"


TRANSITIONS: Dict[Tuple[TurnPhase, EngineEvent], TurnPhase] = {
    (TurnPhase.AWAITING_SELECTION, EngineEvent.SELECT): TurnPhase.PIECE_SELECTED,
    (TurnPhase.PIECE_SELECTED, EngineEvent.SELECT): TurnPhase.PIECE_SELECTED,
    (TurnPhase.PIECE_SELECTED, EngineEvent.WALK): TurnPhase.AWAITING_SELECTION,
    (TurnPhase.PIECE_SELECTED, EngineEvent.JUMP_CONTINUES): TurnPhase.CHAIN_JUMPING,
    (TurnPhase.CHAIN_JUMPING, EngineEvent.JUMP_CONTINUES): TurnPhase.CHAIN_JUMPING,
    (TurnPhase.PIECE_SELECTED, EngineEvent.JUMP_ENDS): TurnPhase.AWAITING_SELECTION,
    (TurnPhase.CHAIN_JUMPING, EngineEvent.JUMP_ENDS): TurnPhase.AWAITING_SELECTION,
    (TurnPhase.AWAITING_SELECTION, EngineEvent.PASS): TurnPhase.AWAITING_SELECTION,
    (TurnPhase.PIECE_SELECTED, EngineEvent.PASS): TurnPhase.AWAITING_SELECTION,
    (TurnPhase.AWAITING_SELECTION, EngineEvent.WIN): TurnPhase.GAME_OVER,
    (TurnPhase.PIECE_SELECTED, EngineEvent.WIN): TurnPhase.GAME_OVER,
    (TurnPhase.CHAIN_JUMPING, EngineEvent.WIN): TurnPhase.GAME_OVER,
}


@dataclass(frozen=True)
class EngineView:
    """Read-only snapshot handed to presentation code."""

    pieces: Tuple[Piece, ...]
    turn: Player
    winner: Optional[Player]
    selected_piece_id: Optional[str]
    legal_moves: Tuple[Move, ...]
    chain_jumping: bool
    phase: TurnPhase
    generation: int
    ai_blocked: bool = False


class GameEngine:
    """Sole owner of the mutable game state.

    Every change to the placement goes through :meth:`_apply`. Requests that
    do not fit the current phase (wrong piece, illegal target, stale AI
    result, input while the computer is thinking) return ``False`` and leave
    the state untouched.
    """

    def __init__(
        self,
        layout: Layout,
        *,
        game_mode: GameMode = GameMode.PVC,
        difficulty: Difficulty = Difficulty.NORMAL,
        scheduler: Optional[AIScheduler] = None,
        search_config: Optional[SearchConfig] = None,
        depths: Optional[DifficultyConfig] = None,
        seed: Optional[int] = None,
    ) -> None:
        self.layout = layout
        self.game_mode = GameMode(game_mode)
        self.difficulty = Difficulty(difficulty)
        self.scheduler = scheduler
        self.search_config = search_config or SearchConfig()
        self.depths = depths or DifficultyConfig()
        self.seed = seed
        self._ai_generation: Optional[int] = None
        self.state = GameState(pieces=list(layout.initial_pieces))
        self._check_winner()

    # ------------------------------------------------------------------
    # Session control
    # ------------------------------------------------------------------
    def reset(self) -> None:
        generation = self.state.generation + 1
        self._ai_generation = None
        self.state = GameState(pieces=list(self.layout.initial_pieces), generation=generation)
        logger.debug("Game reset on %s layout (generation %d)", self.layout.name.value, generation)
        self._check_winner()

    def set_layout(self, layout: Layout) -> None:
        self.layout = layout
        self.reset()

    def set_game_mode(self, game_mode: GameMode) -> None:
        self.game_mode = GameMode(game_mode)
        self.reset()

    def set_difficulty(self, difficulty: Difficulty) -> None:
        self.difficulty = Difficulty(difficulty)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    @property
    def phase(self) -> TurnPhase:
        return self.state.phase

    @property
    def ai_pending(self) -> bool:
        return self._ai_generation is not None

    @property
    def ai_to_move(self) -> bool:
        return (
            self.game_mode == GameMode.PVC
            and self.state.current_player == Player.TWO
            and not self.state.is_terminal
        )

    @property
    def ai_blocked(self) -> bool:
        """The worker is still finishing a search abandoned by a reset."""
        return not self.ai_pending and self.scheduler is not None and self.scheduler.busy

    def view(self) -> EngineView:
        state = self.state
        return EngineView(
            pieces=tuple(state.pieces),
            turn=state.current_player,
            winner=state.winner,
            selected_piece_id=state.selected_piece_id,
            legal_moves=tuple(state.legal_moves),
            chain_jumping=state.is_chain_jumping,
            phase=state.phase,
            generation=state.generation,
            ai_blocked=self.ai_blocked,
        )

    def legal_moves(self) -> List[Move]:
        """Every move the side to move may make right now."""
        if self.state.is_terminal:
            return []
        if self.state.is_chain_jumping:
            return list(self.state.legal_moves)
        return player_moves(self.state.current_player, self.state.pieces, self.layout)

    def piece_moves(self, piece_id: str) -> List[Move]:
        return [move for move in self.legal_moves() if move.piece_id == piece_id]

    # ------------------------------------------------------------------
    # Human input
    # ------------------------------------------------------------------
    def _accepts_input(self) -> bool:
        if self.state.is_terminal or self.ai_pending:
            return False
        return not self.ai_to_move

    def select(self, piece_id: str) -> bool:
        if not self._accepts_input():
            return False
        return self._select(piece_id)

    def move(self, target: str) -> bool:
        if not self._accepts_input():
            return False
        for candidate in self.state.legal_moves:
            if candidate.target == target:
                return self._apply(candidate)
        logger.debug("Ignoring move to %s: not in the legal set", target)
        return False

    def play(self, move: Move) -> bool:
        """Apply a complete move (piece id included) for the side to move."""
        if not self._accepts_input():
            return False
        if move not in self.legal_moves() or not self._select(move.piece_id):
            return False
        return self._apply(move)

    def pass_turn(self) -> bool:
        if not self._fire(EngineEvent.PASS):
            return False
        logger.debug("Player %d passes", int(self.state.current_player))
        self._end_turn()
        return True

    # ------------------------------------------------------------------
    # Computer opponent
    # ------------------------------------------------------------------
    def build_ai_request(self) -> AIRequest:
        return AIRequest(
            pieces=tuple(self.state.pieces),
            layout=self.layout,
            difficulty=self.difficulty,
            player=self.state.current_player,
            generation=self.state.generation,
            seed=None if self.seed is None else self.seed + self.state.generation,
            search=self.search_config,
            depths=self.depths,
        )

    def request_ai_move(self) -> "Optional[Future[AIResponse]]":
        """Start the computer's turn.

        Inside a capture chain the forced jumps are played immediately and
        ``None`` is returned; otherwise the search is submitted to the
        scheduler and its future returned. Returns ``None`` as well when it
        is not the computer's turn, a computation is already outstanding, or
        the worker is still busy with a result abandoned by a reset.
        """
        if not self.ai_to_move or self.ai_pending:
            return None
        if self.state.is_chain_jumping:
            self._continue_forced_chain()
            return None
        if self.scheduler is None:
            self.scheduler = AIScheduler()
        if self.scheduler.busy:
            return None
        request = self.build_ai_request()
        self._ai_generation = request.generation
        return self.scheduler.submit(request)

    def resolve_ai_move(self, response: Optional[AIResponse]) -> bool:
        """Apply a finished AI computation if it still matches the live game."""
        if response is None:
            self._ai_generation = None
            return self.pass_turn() if self.ai_to_move else False
        if response.generation == self._ai_generation:
            self._ai_generation = None
        if response.generation != self.state.generation or not self.ai_to_move:
            logger.debug(
                "Discarding stale AI result for generation %d (now %d)",
                response.generation,
                self.state.generation,
            )
            return False
        if response.move is None:
            return self.pass_turn()

        legal = player_moves(self.state.current_player, self.state.pieces, self.layout)
        if response.move not in legal:
            logger.warning("AI proposed an illegal move %s; passing instead", response.move)
            return self.pass_turn()
        self._select(response.move.piece_id)
        self._apply(response.move)
        self._continue_forced_chain()
        return True

    def play_ai_turn(self, timeout: Optional[float] = None) -> bool:
        """Blocking helper: request, wait for and apply the computer's move."""
        if self.ai_to_move and self.state.is_chain_jumping and not self.ai_pending:
            self._continue_forced_chain()
            return True
        if self.ai_to_move and self.ai_blocked:
            self.scheduler.wait(timeout=timeout)
        future = self.request_ai_move()
        if future is None:
            return False
        return self.resolve_ai_move(future.result(timeout=timeout))

    def close(self) -> None:
        if self.scheduler is not None:
            self.scheduler.shutdown()

    def __enter__(self) -> "GameEngine":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _continue_forced_chain(self) -> None:
        while self.state.is_chain_jumping and self.ai_to_move and self.state.legal_moves:
            self._apply(self.state.legal_moves[0])

    # ------------------------------------------------------------------
    # State machine internals
    # ------------------------------------------------------------------
    def _fire(self, event: EngineEvent) -> bool:
        target = TRANSITIONS.get((self.state.phase, event))
        if target is None:
            logger.debug("Rejected %s in phase %s", event.value, self.state.phase.value)
            return False
        self.state.phase = target
        return True

    def _select(self, piece_id: str) -> bool:
        state = self.state
        if state.is_chain_jumping:
            return piece_id == state.chain_piece_id
        piece = state.piece(piece_id)
        if piece is None or piece.player != state.current_player:
            return False
        moves = self.piece_moves(piece_id)
        if not moves:
            return False
        if not self._fire(EngineEvent.SELECT):
            return False
        state.selected_piece_id = piece_id
        state.legal_moves = moves
        return True

    def _apply(self, move: Move) -> bool:
        """The single entry point that changes the placement."""
        state = self.state
        pieces, moved, promoted = apply_move(state.pieces, move, self.layout)
        if moved is None:
            return False
        state.pieces = list(pieces)
        state.ply_count += 1

        if not move.is_jump:
            self._fire(EngineEvent.WALK)
            self._end_turn()
        else:
            follow_up = chain_continuation(pieces, move, moved, promoted, self.layout)
            if follow_up:
                self._fire(EngineEvent.JUMP_CONTINUES)
                state.chain_piece_id = moved.id
                state.selected_piece_id = moved.id
                state.legal_moves = follow_up
            else:
                self._fire(EngineEvent.JUMP_ENDS)
                self._end_turn()
        if promoted:
            logger.debug("%s crowned on %s", moved.id, moved.node)
        self._check_winner()
        return True

    def _end_turn(self) -> None:
        state = self.state
        state.selected_piece_id = None
        state.legal_moves = []
        state.chain_piece_id = None
        state.current_player = state.current_player.opponent
        state.generation += 1

    def _check_winner(self) -> None:
        state = self.state
        if state.winner is not None or not state.pieces:
            return
        if state.count(Player.ONE) == 0:
            state.winner = Player.TWO
        elif state.count(Player.TWO) == 0:
            state.winner = Player.ONE
        else:
            return
        self._fire(EngineEvent.WIN)
        state.selected_piece_id = None
        state.legal_moves = []
        state.chain_piece_id = None
        logger.debug("Player %d wins", int(state.winner))
