"""Core game logic for Qataar: board graph, layouts and move rules."""

from .state import GameState, Move, MoveKind, Piece, Player, TurnPhase
from .topology import COLINEARITY_THRESHOLD, BoardTopology, Node, build_adjacency, segments_to_chains
from .layouts import (
    BoardConfigError,
    Layout,
    LayoutName,
    custom_layout,
    extended_layout,
    get_layout,
    load_custom_board,
    square_layout,
    standard_layout,
)
from .rules import (
    action_space_size,
    apply_move,
    calculate_valid_moves,
    chain_continuation,
    decode_action,
    encode_action,
    further_jumps,
    player_moves,
    promotes,
    simulate_move,
)

__all__ = [
    "GameState",
    "Move",
    "MoveKind",
    "Piece",
    "Player",
    "TurnPhase",
    "COLINEARITY_THRESHOLD",
    "BoardTopology",
    "Node",
    "build_adjacency",
    "segments_to_chains",
    "BoardConfigError",
    "Layout",
    "LayoutName",
    "custom_layout",
    "extended_layout",
    "get_layout",
    "load_custom_board",
    "square_layout",
    "standard_layout",
    "action_space_size",
    "apply_move",
    "calculate_valid_moves",
    "chain_continuation",
    "decode_action",
    "encode_action",
    "further_jumps",
    "player_moves",
    "promotes",
    "simulate_move",
]
