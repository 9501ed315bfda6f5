"""Qataar rules engine and computer opponent."""

from . import core, engine, env, evaluation, search
from .core import (
    BoardTopology,
    GameState,
    Layout,
    LayoutName,
    Move,
    MoveKind,
    Piece,
    Player,
    TurnPhase,
    get_layout,
    load_custom_board,
)
from .engine import EngineView, GameEngine, GameMode
from .env import QataarEnv
from .search import AIRequest, AIResponse, AIScheduler, Difficulty, choose_move, minimax
from .evaluation import EvaluationResult, RandomPolicy, SearchPolicy, evaluate_policies
from .config import EngineConfig, create_engine, load_config

__all__ = [
    "core",
    "engine",
    "env",
    "evaluation",
    "search",
    "BoardTopology",
    "GameState",
    "Layout",
    "LayoutName",
    "Move",
    "MoveKind",
    "Piece",
    "Player",
    "TurnPhase",
    "get_layout",
    "load_custom_board",
    "EngineView",
    "GameEngine",
    "GameMode",
    "QataarEnv",
    "AIRequest",
    "AIResponse",
    "AIScheduler",
    "Difficulty",
    "choose_move",
    "minimax",
    "EvaluationResult",
    "RandomPolicy",
    "SearchPolicy",
    "evaluate_policies",
    "EngineConfig",
    "create_engine",
    "load_config",
]
