"""High level helpers for running PPO training against the scripted enemy."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

from .rl import BattleEnv, PPOConfig, PPOTrainer, RewardConfig
from .rl.metrics import UpdateMetrics

logger = logging.getLogger(__name__)


@dataclass
class TrainingReport:
    """Summary statistics returned after a training run."""

    config: PPOConfig
    total_updates: int
    mean_return: float
    mean_length: float
    win_rate: float
    history: list[float] = field(default_factory=list)
    update_metrics: list[UpdateMetrics] = field(default_factory=list)


class RLTrainingSession:
    """Orchestrates environment creation and PPO training."""

    def __init__(
        self,
        *,
        config: Optional[PPOConfig] = None,
        reward_config: Optional[RewardConfig] = None,
        env_kwargs: Optional[Dict] = None,
    ) -> None:
        env_kwargs = dict(env_kwargs or {})
        self.env = BattleEnv(reward_config=reward_config, **env_kwargs)
        self.trainer = PPOTrainer(self.env, config=config)

    def train(
        self,
        total_updates: Optional[int] = None,
        *,
        progress_bar: bool = True,
        eval_episodes: int = 10,
    ) -> TrainingReport:
        updates = total_updates or self.trainer.config.total_updates
        logger.info("Training for %d updates", updates)
        self.trainer.train(total_updates=updates, progress_bar=progress_bar)
        metrics = self.trainer.evaluate(episodes=eval_episodes)
        logger.info(
            "Evaluation: return %.3f, length %.1f, win rate %.2f",
            metrics["mean_return"],
            metrics["mean_length"],
            metrics["win_rate"],
        )
        return TrainingReport(
            config=self.trainer.config,
            total_updates=updates,
            mean_return=metrics["mean_return"],
            mean_length=metrics["mean_length"],
            win_rate=metrics["win_rate"],
            history=list(self.trainer.training_returns),
            update_metrics=list(self.trainer.update_metrics),
        )

    def save(self, path: str) -> None:
        self.trainer.save(path)

    def load(self, path: str) -> None:
        self.trainer.load(path)
