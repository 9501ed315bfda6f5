"""Turn state machine owning the live game."""

from .machine import TRANSITIONS, EngineEvent, EngineView, GameEngine, GameMode

__all__ = ["TRANSITIONS", "EngineEvent", "EngineView", "GameEngine", "GameMode"]
