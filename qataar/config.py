from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

import yaml

from qataar.core import COLINEARITY_THRESHOLD, Layout, LayoutName, get_layout, load_custom_board
from qataar.engine import GameEngine, GameMode
from qataar.search import AIScheduler, Difficulty, DifficultyConfig, SearchConfig


@dataclass
class EngineConfig:
    layout: LayoutName = LayoutName.STANDARD
    custom_board: Optional[str] = None
    game_mode: GameMode = GameMode.PVC
    difficulty: Difficulty = Difficulty.NORMAL
    colinearity_threshold: float = COLINEARITY_THRESHOLD
    use_processes: bool = False
    seed: Optional[int] = None
    search: SearchConfig = field(default_factory=SearchConfig)
    depths: DifficultyConfig = field(default_factory=DifficultyConfig)

    def __post_init__(self) -> None:
        self.layout = LayoutName(self.layout)
        self.game_mode = GameMode(self.game_mode)
        self.difficulty = Difficulty(self.difficulty)


def load_config(path: Union[str, Path]) -> EngineConfig:
    cfg = yaml.safe_load(Path(path).read_text()) or {}
    search = SearchConfig(**cfg.pop("search", {}))
    depths = DifficultyConfig(**cfg.pop("depths", {}))
    return EngineConfig(search=search, depths=depths, **cfg)


def build_layout(config: EngineConfig) -> Layout:
    if config.layout == LayoutName.CUSTOM:
        if not config.custom_board:
            raise ValueError("custom layout selected but no custom_board path configured")
        return load_custom_board(config.custom_board, config.colinearity_threshold)
    return get_layout(config.layout, config.colinearity_threshold)


def create_engine(config: Optional[EngineConfig] = None) -> GameEngine:
    config = config or EngineConfig()
    return GameEngine(
        build_layout(config),
        game_mode=config.game_mode,
        difficulty=config.difficulty,
        scheduler=AIScheduler(use_processes=config.use_processes),
        search_config=config.search,
        depths=config.depths,
        seed=config.seed,
    )
