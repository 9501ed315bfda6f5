from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import numpy as np

# Minimum cosine between (origin -> jumped) and (jumped -> landing) for a
# capture to count as a straight jump. Bends up to about 25.8 degrees pass.
COLINEARITY_THRESHOLD = 0.90


@dataclass(frozen=True)
class Node:
    id: str
    x: int
    y: int
    label: Optional[str] = None


@dataclass(frozen=True)
class BoardTopology:
    """Immutable board graph: node coordinates plus the declared straight lines.

    Adjacency only ever comes from consecutive ids inside a line. Capture
    geometry is derived from coordinates and cached per (origin, jumped) pair
    so the move generator never recomputes vectors during search.
    """

    nodes: Dict[str, Node]
    lines: Tuple[Tuple[str, ...], ...]
    colinearity_threshold: float = COLINEARITY_THRESHOLD
    _adjacency: Dict[str, Tuple[str, ...]] = field(init=False, repr=False, compare=False)
    _landings: Dict[Tuple[str, str], Tuple[str, ...]] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        adjacency = build_adjacency(self.lines, self.nodes.keys())
        object.__setattr__(self, "_adjacency", adjacency)
        object.__setattr__(self, "_landings", self._compute_landings(adjacency))

    @classmethod
    def from_mapping(
        cls,
        nodes: Mapping[object, Mapping[str, object]],
        lines: Iterable[Sequence[object]],
        *,
        colinearity_threshold: float = COLINEARITY_THRESHOLD,
    ) -> "BoardTopology":
        parsed = {
            str(node_id): Node(
                id=str(node_id),
                x=int(attrs["x"]),
                y=int(attrs["y"]),
                label=None if attrs.get("label") is None else str(attrs["label"]),
            )
            for node_id, attrs in nodes.items()
        }
        chains = tuple(tuple(str(node_id) for node_id in line) for line in lines)
        return cls(nodes=parsed, lines=chains, colinearity_threshold=colinearity_threshold)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    @property
    def adjacency(self) -> Dict[str, Tuple[str, ...]]:
        return dict(self._adjacency)

    @property
    def node_ids(self) -> Tuple[str, ...]:
        return tuple(self.nodes)

    def neighbors(self, node_id: str) -> Tuple[str, ...]:
        return self._adjacency.get(node_id, ())

    def is_adjacent(self, first: str, second: str) -> bool:
        return second in self._adjacency.get(first, ())

    def node(self, node_id: str) -> Optional[Node]:
        return self.nodes.get(node_id)

    def landings(self, origin: str, jumped: str) -> Tuple[str, ...]:
        """Nodes a piece on ``origin`` may land on when capturing on ``jumped``."""
        return self._landings.get((origin, jumped), ())

    def index_of(self, node_id: str) -> int:
        return self.node_ids.index(node_id)

    @property
    def min_y(self) -> int:
        return min(node.y for node in self.nodes.values())

    @property
    def max_y(self) -> int:
        return max(node.y for node in self.nodes.values())

    @property
    def centre_x(self) -> float:
        xs = [node.x for node in self.nodes.values()]
        return (min(xs) + max(xs)) / 2.0

    # ------------------------------------------------------------------
    def _compute_landings(
        self, adjacency: Dict[str, Tuple[str, ...]]
    ) -> Dict[Tuple[str, str], Tuple[str, ...]]:
        landings: Dict[Tuple[str, str], Tuple[str, ...]] = {}
        for origin, neighbours in adjacency.items():
            start = self.nodes.get(origin)
            if start is None:
                continue
            for jumped in neighbours:
                middle = self.nodes.get(jumped)
                if middle is None:
                    continue
                candidates = [
                    landing
                    for landing in adjacency.get(jumped, ())
                    if landing != origin and landing in self.nodes
                ]
                if not candidates:
                    continue
                v1 = np.array([middle.x - start.x, middle.y - start.y], dtype=np.float64)
                len1 = np.linalg.norm(v1)
                if len1 == 0:
                    continue
                ends = np.array(
                    [[self.nodes[c].x, self.nodes[c].y] for c in candidates], dtype=np.float64
                )
                v2 = ends - np.array([middle.x, middle.y], dtype=np.float64)
                len2 = np.linalg.norm(v2, axis=1)
                with np.errstate(divide="ignore", invalid="ignore"):
                    cosines = (v2 @ v1) / (len1 * len2)
                straight = tuple(
                    candidate
                    for candidate, length, cosine in zip(candidates, len2, cosines)
                    if length > 0 and cosine > self.colinearity_threshold
                )
                if straight:
                    landings[(origin, jumped)] = straight
        return landings


def build_adjacency(
    lines: Iterable[Sequence[str]], node_ids: Iterable[str] = ()
) -> Dict[str, Tuple[str, ...]]:
    """Connect every consecutive pair of every line, undirected and deduplicated.

    Ids are kept in first-seen order so iteration is stable across processes.
    """
    ordered: Dict[str, Dict[str, None]] = {node_id: {} for node_id in node_ids}
    for line in lines:
        for first, second in zip(line, line[1:]):
            if first == second:
                continue
            ordered.setdefault(first, {})[second] = None
            ordered.setdefault(second, {})[first] = None
    return {node_id: tuple(neighbours) for node_id, neighbours in ordered.items()}


def segments_to_chains(segments: Iterable[Sequence[object]]) -> List[List[str]]:
    """Merge two-node segments into maximal chains by extending head or tail."""
    pool = [[str(a), str(b)] for a, b in segments]
    chains: List[List[str]] = []
    while pool:
        chain = pool.pop(0)
        extended = True
        while extended:
            extended = False
            head, tail = chain[0], chain[-1]
            for index, (a, b) in enumerate(pool):
                if a == tail:
                    chain.append(b)
                elif b == tail:
                    chain.append(a)
                elif b == head:
                    chain.insert(0, a)
                elif a == head:
                    chain.insert(0, b)
                else:
                    continue
                del pool[index]
                extended = True
                break
        chains.append(chain)
    return chains
