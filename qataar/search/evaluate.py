"""Static position scoring, always from player 2's (the computer's) side."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from qataar.core import BoardTopology, Piece, Player


@dataclass
class SearchConfig:
    king_value: int = 100
    man_value: int = 20
    advancement_weight: int = 2
    centre_bonus: int = 3
    centre_band: float = 1.0
    terminal_score: int = 10_000


def piece_value(piece: Piece, topology: BoardTopology, config: SearchConfig) -> float:
    value: float = config.king_value if piece.is_king else config.man_value
    node = topology.node(piece.node)
    if node is None:
        return value

    if not piece.is_king:
        # Rows advanced from the piece's own back edge of the board.
        if piece.player == Player.TWO:
            value += (node.y - topology.min_y) * config.advancement_weight
        else:
            value += (topology.max_y - node.y) * config.advancement_weight

    if abs(node.x - topology.centre_x) <= config.centre_band:
        value += config.centre_bonus
    return value


def evaluate(
    pieces: Sequence[Piece],
    topology: BoardTopology,
    config: Optional[SearchConfig] = None,
) -> float:
    config = config or SearchConfig()
    score = 0.0
    for piece in pieces:
        value = piece_value(piece, topology, config)
        score += value if piece.player == Player.TWO else -value
    return score
