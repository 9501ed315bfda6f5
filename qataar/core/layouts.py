from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, FrozenSet, List, Mapping, Sequence, Tuple, Union

import yaml

from .state import Piece, Player
from .topology import COLINEARITY_THRESHOLD, BoardTopology, segments_to_chains


class LayoutName(str, Enum):
    STANDARD = "standard"
    EXTENDED = "extended"
    SQUARE = "square"
    CUSTOM = "custom"


class BoardConfigError(ValueError):
    pass


@dataclass(frozen=True)
class Layout:
    """A named topology together with its opening placement and promotion rows.

    Custom layouts derive promotion rows from the active topology: player 1
    crowns on the minimum-y row, player 2 on the maximum-y row.
    """

    name: LayoutName
    topology: BoardTopology
    initial_pieces: Tuple[Piece, ...] = ()
    promotion: Dict[Player, FrozenSet[str]] = field(default_factory=dict)

    @property
    def is_custom(self) -> bool:
        return self.name == LayoutName.CUSTOM

    def promotion_nodes(self, player: Player) -> FrozenSet[str]:
        if self.is_custom:
            nodes = self.topology.nodes
            if not nodes:
                return frozenset()
            row = self.topology.min_y if player == Player.ONE else self.topology.max_y
            return frozenset(node_id for node_id, node in nodes.items() if node.y == row)
        return self.promotion.get(player, frozenset())


# ----------------------------------------------------------------------
# Built-in geometry
# ----------------------------------------------------------------------
BASE_NODES: Dict[int, Tuple[int, int, str]] = {
    19: (0, 0, "C"),
    # top triangle
    7: (-1, -1, "7"),
    8: (0, -1, "8"),
    9: (1, -1, "9"),
    4: (-2, -2, "4"),
    5: (0, -2, "5"),
    6: (2, -2, "6"),
    1: (-3, -3, "1"),
    2: (0, -3, "2"),
    3: (3, -3, "3"),
    # bottom triangle
    10: (-1, 1, "10"),
    11: (0, 1, "11"),
    12: (1, 1, "12"),
    13: (-2, 2, "13"),
    14: (0, 2, "14"),
    15: (2, 2, "15"),
    16: (-3, 3, "16"),
    17: (0, 3, "17"),
    18: (3, 3, "18"),
}

EXTRA_NODES: Dict[int, Tuple[int, int, str]] = {
    20: (-3, 0, "L"),
    21: (3, 0, "R"),
}

SQUARE_NODES: Dict[int, Tuple[int, int, str]] = {
    # outer ring
    1: (-3, -3, "TL1"), 2: (0, -3, "TM1"), 3: (3, -3, "TR1"),
    4: (-3, 0, "ML1"), 5: (3, 0, "MR1"),
    6: (-3, 3, "BL1"), 7: (0, 3, "BM1"), 8: (3, 3, "BR1"),
    # middle ring
    9: (-2, -2, "TL2"), 10: (0, -2, "TM2"), 11: (2, -2, "TR2"),
    12: (-2, 0, "ML2"), 13: (2, 0, "MR2"),
    14: (-2, 2, "BL2"), 15: (0, 2, "BM2"), 16: (2, 2, "BR2"),
    # inner ring
    17: (-1, -1, "TL3"), 18: (0, -1, "TM3"), 19: (1, -1, "TR3"),
    20: (-1, 0, "ML3"), 21: (1, 0, "MR3"),
    22: (-1, 1, "BL3"), 23: (0, 1, "BM3"), 24: (1, 1, "BR3"),
}

BASE_LINES: Tuple[Tuple[int, ...], ...] = (
    (1, 2, 3),
    (4, 5, 6),
    (7, 8, 9),
    (10, 11, 12),
    (13, 14, 15),
    (16, 17, 18),
    (2, 5, 8, 19, 11, 14, 17),
    (16, 13, 10, 19, 9, 6, 3),
    (18, 15, 12, 19, 7, 4, 1),
)

EXTRA_LINES: Tuple[Tuple[int, ...], ...] = (
    (1, 20, 16),
    (3, 21, 18),
    (20, 19, 21),
)

SQUARE_LINES: Tuple[Tuple[int, ...], ...] = (
    # rings
    (1, 2, 3), (3, 5, 8), (8, 7, 6), (6, 4, 1),
    (9, 10, 11), (11, 13, 16), (16, 15, 14), (14, 12, 9),
    (17, 18, 19), (19, 21, 24), (24, 23, 22), (22, 20, 17),
    # radials
    (1, 9, 17), (3, 11, 19), (8, 16, 24), (6, 14, 22),
    (2, 10, 18), (5, 13, 21), (7, 15, 23), (4, 12, 20),
)


def _topology(
    nodes: Mapping[int, Tuple[int, int, str]],
    lines: Sequence[Sequence[int]],
    colinearity_threshold: float,
) -> BoardTopology:
    return BoardTopology.from_mapping(
        {node_id: {"x": x, "y": y, "label": label} for node_id, (x, y, label) in nodes.items()},
        lines,
        colinearity_threshold=colinearity_threshold,
    )


def _placement(player: Player, nodes: Sequence[int]) -> List[Piece]:
    prefix = f"p{int(player)}"
    return [Piece(f"{prefix}-{i + 1}", player, str(node)) for i, node in enumerate(nodes)]


def _rows(*node_ids: int) -> FrozenSet[str]:
    return frozenset(str(node_id) for node_id in node_ids)


def standard_layout(colinearity_threshold: float = COLINEARITY_THRESHOLD) -> Layout:
    return Layout(
        name=LayoutName.STANDARD,
        topology=_topology(BASE_NODES, BASE_LINES, colinearity_threshold),
        initial_pieces=tuple(
            _placement(Player.TWO, range(1, 10)) + _placement(Player.ONE, range(10, 19))
        ),
        promotion={Player.ONE: _rows(1, 2, 3), Player.TWO: _rows(16, 17, 18)},
    )


def extended_layout(colinearity_threshold: float = COLINEARITY_THRESHOLD) -> Layout:
    return Layout(
        name=LayoutName.EXTENDED,
        topology=_topology(
            {**BASE_NODES, **EXTRA_NODES}, BASE_LINES + EXTRA_LINES, colinearity_threshold
        ),
        initial_pieces=tuple(
            _placement(Player.TWO, range(1, 10)) + _placement(Player.ONE, range(10, 19))
        ),
        promotion={Player.ONE: _rows(1, 2, 3), Player.TWO: _rows(16, 17, 18)},
    )


def square_layout(colinearity_threshold: float = COLINEARITY_THRESHOLD) -> Layout:
    return Layout(
        name=LayoutName.SQUARE,
        topology=_topology(SQUARE_NODES, SQUARE_LINES, colinearity_threshold),
        initial_pieces=tuple(
            _placement(Player.TWO, (1, 2, 3, 9, 10, 11))
            + _placement(Player.ONE, (6, 7, 8, 14, 15, 16))
        ),
        promotion={Player.ONE: _rows(1, 2, 3), Player.TWO: _rows(6, 7, 8)},
    )


BUILTIN_LAYOUTS = {
    LayoutName.STANDARD: standard_layout,
    LayoutName.EXTENDED: extended_layout,
    LayoutName.SQUARE: square_layout,
}


def get_layout(
    name: Union[str, LayoutName], colinearity_threshold: float = COLINEARITY_THRESHOLD
) -> Layout:
    layout_name = LayoutName(name)
    if layout_name == LayoutName.CUSTOM:
        raise BoardConfigError("Custom layouts are built from a board document, use load_custom_board().")
    return BUILTIN_LAYOUTS[layout_name](colinearity_threshold)


# ----------------------------------------------------------------------
# Custom boards
# ----------------------------------------------------------------------
def custom_layout(
    document: Mapping[str, object], colinearity_threshold: float = COLINEARITY_THRESHOLD
) -> Layout:
    """Build a custom layout from a board document.

    The document carries ``nodes`` (id -> {x, y, label}), ``lines`` (chains of
    ids) and ``pieces`` ({id, player, node, isKing}). When ``lines`` is missing
    the two-node ``segments`` are merged into chains instead.
    """
    nodes = document.get("nodes")
    if not isinstance(nodes, Mapping):
        raise BoardConfigError("Board document has no node mapping.")

    lines = document.get("lines")
    if lines is None:
        try:
            lines = segments_to_chains(document.get("segments") or [])
        except (TypeError, ValueError) as exc:
            raise BoardConfigError(f"Malformed board segments: {exc}") from exc
    if not isinstance(lines, (list, tuple)):
        raise BoardConfigError("Board lines must be a list of node chains.")

    try:
        topology = BoardTopology.from_mapping(
            nodes, lines, colinearity_threshold=colinearity_threshold
        )
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise BoardConfigError(f"Malformed board nodes: {exc}") from exc

    pieces: List[Piece] = []
    for index, raw in enumerate(document.get("pieces") or []):
        try:
            player = Player(int(raw["player"]))
            pieces.append(
                Piece(
                    id=str(raw.get("id", f"p{int(player)}-{index + 1}")),
                    player=player,
                    node=str(raw["node"]),
                    is_king=bool(raw.get("isKing", False)),
                )
            )
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise BoardConfigError(f"Malformed piece entry {raw!r}: {exc}") from exc

    return Layout(name=LayoutName.CUSTOM, topology=topology, initial_pieces=tuple(pieces))


def load_custom_board(
    path: Union[str, Path], colinearity_threshold: float = COLINEARITY_THRESHOLD
) -> Layout:
    # JSON documents are valid YAML, so one loader covers both formats.
    document = yaml.safe_load(Path(path).read_text()) or {}
    if not isinstance(document, Mapping):
        raise BoardConfigError(f"{path} does not contain a board document.")
    return custom_layout(document, colinearity_threshold)
