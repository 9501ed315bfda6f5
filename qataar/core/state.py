from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum, IntEnum
from typing import Dict, Iterable, List, Optional, Sequence, Tuple


class Player(IntEnum):
    ONE = 1
    TWO = 2

    @property
    def opponent(self) -> "Player":
        return Player.TWO if self == Player.ONE else Player.ONE

    @property
    def forward(self) -> int:
        """Sign of the y step that moves this player's men forward."""
        return -1 if self == Player.ONE else 1


class MoveKind(Enum):
    WALK = "walk"
    JUMP = "jump"


class TurnPhase(Enum):
    AWAITING_SELECTION = "awaiting_selection"
    PIECE_SELECTED = "piece_selected"
    CHAIN_JUMPING = "chain_jumping"
    GAME_OVER = "game_over"


@dataclass(frozen=True)
class Move:
    target: str
    kind: MoveKind
    captured: Optional[str] = None
    piece_id: Optional[str] = None

    @property
    def is_jump(self) -> bool:
        return self.kind == MoveKind.JUMP

    def with_piece(self, piece_id: str) -> "Move":
        return replace(self, piece_id=piece_id)


@dataclass(frozen=True)
class Piece:
    id: str
    player: Player
    node: str
    is_king: bool = False

    def moved_to(self, node: str, *, promote: bool = False) -> "Piece":
        return replace(self, node=node, is_king=self.is_king or promote)


@dataclass
class GameState:
    pieces: List[Piece]
    current_player: Player = Player.ONE
    phase: TurnPhase = TurnPhase.AWAITING_SELECTION
    selected_piece_id: Optional[str] = None
    legal_moves: List[Move] = field(default_factory=list)
    chain_piece_id: Optional[str] = None
    winner: Optional[Player] = None
    generation: int = 0
    ply_count: int = 0

    def copy(self) -> "GameState":
        return GameState(
            pieces=list(self.pieces),
            current_player=self.current_player,
            phase=self.phase,
            selected_piece_id=self.selected_piece_id,
            legal_moves=list(self.legal_moves),
            chain_piece_id=self.chain_piece_id,
            winner=self.winner,
            generation=self.generation,
            ply_count=self.ply_count,
        )

    @property
    def is_terminal(self) -> bool:
        return self.winner is not None

    @property
    def is_chain_jumping(self) -> bool:
        return self.chain_piece_id is not None

    def piece(self, piece_id: Optional[str]) -> Optional[Piece]:
        for piece in self.pieces:
            if piece.id == piece_id:
                return piece
        return None

    def piece_at(self, node: str) -> Optional[Piece]:
        for piece in self.pieces:
            if piece.node == node:
                return piece
        return None

    def pieces_of(self, player: Player) -> Iterable[Piece]:
        return (piece for piece in self.pieces if piece.player == player)

    def count(self, player: Player) -> int:
        return sum(1 for piece in self.pieces if piece.player == player)

    def __repr__(self) -> str:
        placement = ", ".join(
            f"{piece.id}@{piece.node}{'K' if piece.is_king else ''}" for piece in self.pieces
        )
        return (
            f"GameState(current={self.current_player.name}, phase={self.phase.value}, "
            f"winner={self.winner}, ply={self.ply_count})\n{placement}"
        )


def occupancy(pieces: Sequence[Piece]) -> Dict[str, Piece]:
    return {piece.node: piece for piece in pieces}


# Immutable placement passed through search and simulation
PieceSet = Tuple[Piece, ...]
