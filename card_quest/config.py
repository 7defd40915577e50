"""Tunable battle and progression parameters."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass
class BattleConfig:
    """Numbers that shape a battle and its rewards."""

    hand_size: int = 3
    max_enemy_cards: int = 3
    enemy_base_health: int = 30
    enemy_health_per_level: int = 20
    base_experience: int = 50
    experience_per_level: int = 25
    reward_chance: float = 0.7

    # Seconds; purely pacing for the client, no rule depends on the exact value.
    enemy_action_delay: float = 1.0
    enemy_return_delay: float = 2.0
    stun_skip_delay: float = 1.5
    outcome_display_delay: float = 3.0

    def __post_init__(self) -> None:
        if self.hand_size < 1:
            raise ValueError("hand_size must be at least 1")
        if self.max_enemy_cards < 1:
            raise ValueError("max_enemy_cards must be at least 1")
        if not 0.0 <= self.reward_chance <= 1.0:
            raise ValueError("reward_chance must be within [0, 1]")
        delays = (
            self.enemy_action_delay,
            self.enemy_return_delay,
            self.stun_skip_delay,
            self.outcome_display_delay,
        )
        if any(delay < 0 for delay in delays):
            raise ValueError("delays must be non-negative")

    def enemy_max_health(self, level: int) -> int:
        return self.enemy_base_health + level * self.enemy_health_per_level

    def enemy_card_count(self, level: int) -> int:
        return min(self.max_enemy_cards, level + 1)

    def experience_for(self, level: int) -> int:
        return self.base_experience + level * self.experience_per_level
