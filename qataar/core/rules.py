from __future__ import annotations

from typing import List, Mapping, Optional, Sequence, Tuple, Union

from .layouts import Layout
from .state import Move, MoveKind, Piece, PieceSet, Player, occupancy
from .topology import BoardTopology

Placement = Union[Sequence[Piece], Mapping[str, Piece]]


def _board(pieces: Placement) -> Mapping[str, Piece]:
    if isinstance(pieces, Mapping):
        return pieces
    return occupancy(pieces)


def direction_allowed(piece: Piece, dy: float, layout: Layout) -> bool:
    """Forward/lateral gate shared by walks and jumps.

    Kings and every piece on a custom board move omnidirectionally.
    """
    if piece.is_king or layout.is_custom:
        return True
    if abs(dy) < 0.1:
        return True
    return (dy < 0) if piece.player == Player.ONE else (dy > 0)


def calculate_valid_moves(piece: Piece, pieces: Placement, layout: Layout) -> List[Move]:
    """All walks and single jumps available to ``piece`` in the given placement.

    A piece on a node the topology does not know yields no moves.
    """
    topology: BoardTopology = layout.topology
    origin = topology.node(piece.node)
    if origin is None:
        return []

    board = _board(pieces)
    moves: List[Move] = []
    for neighbour_id in topology.neighbors(piece.node):
        neighbour = topology.node(neighbour_id)
        if neighbour is None:
            continue
        dy = neighbour.y - origin.y
        occupant = board.get(neighbour_id)

        if occupant is None:
            if direction_allowed(piece, dy, layout):
                moves.append(Move(neighbour_id, MoveKind.WALK, piece_id=piece.id))
            continue

        if occupant.player == piece.player:
            continue

        if not direction_allowed(piece, dy, layout):
            continue
        for landing in topology.landings(piece.node, neighbour_id):
            if landing in board:
                continue
            moves.append(
                Move(landing, MoveKind.JUMP, captured=occupant.id, piece_id=piece.id)
            )
    return moves


def further_jumps(piece: Piece, pieces: Placement, layout: Layout) -> List[Move]:
    return [move for move in calculate_valid_moves(piece, pieces, layout) if move.is_jump]


def player_moves(player: Player, pieces: Sequence[Piece], layout: Layout) -> List[Move]:
    """Every legal move for ``player``; jumps only whenever any jump exists."""
    board = occupancy(pieces)
    moves: List[Move] = []
    for piece in pieces:
        if piece.player == player:
            moves.extend(calculate_valid_moves(piece, board, layout))
    jumps = [move for move in moves if move.is_jump]
    return jumps if jumps else moves


def promotes(piece: Piece, target: str, layout: Layout) -> bool:
    return not piece.is_king and target in layout.promotion_nodes(piece.player)


def apply_move(
    pieces: Sequence[Piece], move: Move, layout: Layout
) -> Tuple[PieceSet, Optional[Piece], bool]:
    """Move, promote, then remove the captured piece.

    Returns the new placement, the moved piece (``None`` when ``move.piece_id``
    is unknown) and whether the move crowned it.
    """
    moved: Optional[Piece] = None
    promoted = False
    result: List[Piece] = []
    for piece in pieces:
        if piece.id == move.piece_id:
            promoted = promotes(piece, move.target, layout)
            moved = piece.moved_to(move.target, promote=promoted)
            result.append(moved)
        elif move.is_jump and piece.id == move.captured:
            continue
        else:
            result.append(piece)
    if moved is None:
        return tuple(pieces), None, False
    return tuple(result), moved, promoted


def simulate_move(pieces: Sequence[Piece], move: Move, layout: Layout) -> PieceSet:
    return apply_move(pieces, move, layout)[0]


def chain_continuation(
    pieces: Sequence[Piece], move: Move, moved: Optional[Piece], promoted: bool, layout: Layout
) -> List[Move]:
    """Jumps the same piece must keep making after ``move``.

    Empty after a walk, after a promotion, or when no capture follows.
    """
    if moved is None or not move.is_jump or promoted:
        return []
    return further_jumps(moved, pieces, layout)


# ----------------------------------------------------------------------
# Action encoding over the topology's node order
# ----------------------------------------------------------------------
def action_space_size(topology: BoardTopology) -> int:
    return len(topology.nodes) ** 2


def encode_action(topology: BoardTopology, origin: str, target: str) -> int:
    size = len(topology.nodes)
    return topology.index_of(origin) * size + topology.index_of(target)


def decode_action(topology: BoardTopology, index: int) -> Tuple[str, str]:
    size = len(topology.nodes)
    if not 0 <= index < size * size:
        raise ValueError("Action index out of range.")
    node_ids = topology.node_ids
    return node_ids[index // size], node_ids[index % size]
