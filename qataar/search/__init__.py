"""Computer opponent: evaluation, alpha-beta search and difficulty policy."""

from .evaluate import SearchConfig, evaluate
from .minimax import SearchStats, minimax, order_moves
from .scheduler import (
    AIRequest,
    AIResponse,
    AIScheduler,
    Difficulty,
    DifficultyConfig,
    SchedulerBusyError,
    choose_move,
)

__all__ = [
    "SearchConfig",
    "evaluate",
    "SearchStats",
    "minimax",
    "order_moves",
    "AIRequest",
    "AIResponse",
    "AIScheduler",
    "Difficulty",
    "DifficultyConfig",
    "SchedulerBusyError",
    "choose_move",
]
