"""Alpha-beta minimax over Qataar positions.

Player 2 maximises and player 1 minimises the value returned by
:func:`qataar.search.evaluate.evaluate`. A turn may span several captures: when
a jump leaves the same piece with further jumps, the search recurses at the
same depth with the same side to move and only that piece's jumps as
candidates. Depth drops and the side flips only when the turn really ends.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from qataar.core import Layout, Move, Piece, Player
from qataar.core.rules import apply_move, chain_continuation, further_jumps, player_moves

from .evaluate import SearchConfig, evaluate


@dataclass
class SearchStats:
    node_count: int = 0


def order_moves(moves: Iterable[Move]) -> List[Move]:
    """Jumps first; the sort is stable so any prior shuffle survives within each group."""
    return sorted(moves, key=lambda move: 0 if move.is_jump else 1)


def minimax(
    pieces: Sequence[Piece],
    depth: int,
    alpha: float,
    beta: float,
    maximizing: bool,
    layout: Layout,
    config: Optional[SearchConfig] = None,
    *,
    chain_piece_id: Optional[str] = None,
    stats: Optional[SearchStats] = None,
) -> float:
    """Return the value of ``pieces`` with the given side to move.

    Args:
        pieces: Current placement. Never modified.
        depth: Remaining full turns to search. At 0 the static evaluation is returned.
        alpha: Best value the maximiser is already guaranteed.
        beta: Best value the minimiser is already guaranteed.
        maximizing: ``True`` when player 2 is to move.
        layout: Active layout (topology, promotion rows, custom-board gating).
        config: Piece values and terminal score.
        chain_piece_id: Piece locked into a capture chain; only its jumps are searched.
        stats: Optional node counter.
    """
    config = config or SearchConfig()
    if stats is not None:
        stats.node_count += 1

    if depth <= 0:
        return evaluate(pieces, layout.topology, config)

    player = Player.TWO if maximizing else Player.ONE
    if chain_piece_id is not None:
        chained = next((piece for piece in pieces if piece.id == chain_piece_id), None)
        moves = further_jumps(chained, pieces, layout) if chained is not None else []
    else:
        moves = player_moves(player, pieces, layout)

    if not moves:
        return -config.terminal_score if maximizing else config.terminal_score

    best = -math.inf if maximizing else math.inf
    for move in order_moves(moves):
        next_pieces, moved, promoted = apply_move(pieces, move, layout)
        if chain_continuation(next_pieces, move, moved, promoted, layout):
            value = minimax(
                next_pieces,
                depth,
                alpha,
                beta,
                maximizing,
                layout,
                config,
                chain_piece_id=move.piece_id,
                stats=stats,
            )
        else:
            value = minimax(
                next_pieces,
                depth - 1,
                alpha,
                beta,
                not maximizing,
                layout,
                config,
                stats=stats,
            )

        if maximizing:
            best = max(best, value)
            alpha = max(alpha, value)
        else:
            best = min(best, value)
            beta = min(beta, value)
        if beta <= alpha:
            break
    return best
