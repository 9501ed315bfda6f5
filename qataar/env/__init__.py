"""Gymnasium environment wrapper for Qataar."""

from .gym_env import AUX_VECTOR_SIZE, BOARD_CHANNELS, QataarEnv

__all__ = ["AUX_VECTOR_SIZE", "BOARD_CHANNELS", "QataarEnv"]
