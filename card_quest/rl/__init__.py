"""Reinforcement learning utilities for Card Quest battles."""

from .env import BattleEnv, RewardConfig
from .metrics import UpdateMetrics
from .ppo import PPOConfig, PPOTrainer

__all__ = [
    "BattleEnv",
    "RewardConfig",
    "PPOConfig",
    "PPOTrainer",
    "UpdateMetrics",
]
