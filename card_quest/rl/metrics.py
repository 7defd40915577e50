"""Metric helpers for PPO updates and evaluation runs."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

import numpy as np


def win_rate(outcomes: Iterable[bool]) -> float:
    values = np.asarray(list(outcomes), dtype=np.float64)
    return float(values.mean()) if values.size else 0.0


@dataclass
class UpdateMetrics:
    """Aggregated statistics captured for a single PPO update."""

    actor_loss: float
    value_loss: float
    entropy: float
    approx_kl: float
    clip_fraction: float
    value_explained_variance: float

    def to_dict(self) -> dict[str, float]:
        return {
            "actor_loss": self.actor_loss,
            "value_loss": self.value_loss,
            "entropy": self.entropy,
            "approx_kl": self.approx_kl,
            "clip_fraction": self.clip_fraction,
            "value_explained_variance": self.value_explained_variance,
        }
