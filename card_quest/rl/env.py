"""Gymnasium environment: the agent plays the player's hand, the scripted enemy answers."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional

import gymnasium as gym
import numpy as np
from gymnasium import spaces

from ..config import BattleConfig
from ..effects import total_power
from ..enums import CardEffect, CardSource, Side
from ..game import GameSession
from ..models import BattleState, Card
from ..scheduler import ManualScheduler

MAX_HAND_SIZE = 3
_EFFECTS = list(CardEffect)
_CARD_FEATURES = 4 + len(_EFFECTS)
_LEDGER_KINDS = [
    CardEffect.BOOST,
    CardEffect.WEAKEN,
    CardEffect.SHIELD,
    CardEffect.REFLECT,
    CardEffect.BURN,
    CardEffect.FREEZE,
]
_STATE_FEATURES = 6


@dataclass
class RewardConfig:
    """Configurable reward shaping parameters."""

    damage_dealt_scale: float = 0.02
    damage_taken_scale: float = 0.02
    turn_penalty: float = -0.01
    invalid_action_penalty: float = -0.1
    win_bonus: float = 1.0
    loss_penalty: float = 1.0


class BattleEnv(gym.Env):
    """One episode is one battle at a level drawn from ``[min_level, max_level]``."""

    metadata = {"render_modes": ["ansi"]}

    def __init__(
        self,
        *,
        reward_config: Optional[RewardConfig] = None,
        battle_config: Optional[BattleConfig] = None,
        min_level: int = 1,
        max_level: int = 5,
        max_turns: int = 60,
        seed: Optional[int] = None,
    ) -> None:
        super().__init__()
        if min_level < 1 or max_level < min_level:
            raise ValueError("Level range must satisfy 1 <= min_level <= max_level")
        self.reward_config = reward_config or RewardConfig()
        self.battle_config = battle_config or BattleConfig(hand_size=MAX_HAND_SIZE)
        if self.battle_config.hand_size > MAX_HAND_SIZE:
            raise ValueError(f"hand_size cannot exceed {MAX_HAND_SIZE}")
        self.min_level = min_level
        self.max_level = max_level
        self.max_turns = max_turns
        self._seed = seed

        self.session: Optional[GameSession] = None
        self.scheduler: Optional[ManualScheduler] = None
        self.turns = 0

        obs_dim = _STATE_FEATURES + MAX_HAND_SIZE * _CARD_FEATURES * 2 + len(_LEDGER_KINDS) * 2
        self.observation_space = spaces.Box(low=-np.inf, high=np.inf, shape=(obs_dim,), dtype=np.float32)
        self.action_space = spaces.Discrete(MAX_HAND_SIZE)

    # ------------------------------------------------------------------
    # Gym API
    # ------------------------------------------------------------------

    def reset(self, *, seed: Optional[int] = None, options: Optional[Dict] = None):
        super().reset(seed=seed if seed is not None else self._seed)
        self._seed = None

        level = int((options or {}).get("level") or self.np_random.integers(self.min_level, self.max_level + 1))
        self.scheduler = ManualScheduler()
        self.session = GameSession(
            seed=int(self.np_random.integers(0, 2**31 - 1)),
            scheduler=self.scheduler,
            config=self.battle_config,
            starter_cards=0,
        )
        hand = self.session.generator.generate_many(self.battle_config.hand_size, CardSource.PACK, level)
        self.session.collection.cards.extend(hand)
        self.session.start_battle(level)
        self.turns = 0

        observation = self._build_observation()
        info = {"action_mask": self._action_mask(), "level": level}
        return observation, info

    def step(self, action: int):
        if self.session is None or self.scheduler is None:
            raise RuntimeError("Environment has not been reset")

        info: Dict[str, object] = {}
        mask = self._action_mask()
        if not mask[action]:
            info["action_mask"] = mask
            info["invalid_action"] = True
            return self._build_observation(), self.reward_config.invalid_action_penalty, False, False, info

        before = self.state
        prev_player, prev_enemy = before.player_health, before.enemy_health
        self.session.play_card(int(action))
        self.scheduler.run_until_idle()
        self.turns += 1

        after = self.state
        cfg = self.reward_config
        reward = (
            (prev_enemy - after.enemy_health) * cfg.damage_dealt_scale
            - (prev_player - after.player_health) * cfg.damage_taken_scale
            + cfg.turn_penalty
        )
        terminated = after.is_over
        if terminated:
            reward += cfg.win_bonus if after.enemy_health <= 0 else -cfg.loss_penalty
        truncated = not terminated and self.turns >= self.max_turns

        info["action_mask"] = self._action_mask()
        info["outcome"] = after.outcome.value if after.outcome else None
        return self._build_observation(), float(reward), bool(terminated), bool(truncated), info

    def render(self) -> str:
        state = self.state
        return (
            f"turn {self.turns} | you {state.player_health}/{state.player_max_health}"
            f" | enemy {state.enemy_health}/{state.enemy_max_health}"
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @property
    def state(self) -> BattleState:
        if self.session is None:
            raise RuntimeError("Environment has not been reset")
        return self.session.battle.state

    def _action_mask(self) -> np.ndarray:
        mask = np.zeros(self.action_space.n, dtype=np.int8)
        if self.session is None:
            return mask
        state = self.state
        if state.is_over:
            return mask
        mask[: len(state.player_cards)] = 1
        return mask

    def _build_observation(self) -> np.ndarray:
        state = self.state
        features: List[float] = [
            state.health_ratio(Side.PLAYER),
            state.health_ratio(Side.ENEMY),
            state.level / 10,
            self.turns / self.max_turns,
            1.0 if state.player_skip_next_turn else 0.0,
            1.0 if state.enemy_skip_next_turn else 0.0,
        ]
        for cards in (state.player_cards, state.enemy_cards):
            for idx in range(MAX_HAND_SIZE):
                features.extend(self._encode_card(cards[idx] if idx < len(cards) else None))
        for side in (Side.PLAYER, Side.ENEMY):
            ledger = state.effects(side)
            features.extend(total_power(ledger, kind) / 20 for kind in _LEDGER_KINDS)
        return np.asarray(features, dtype=np.float32)

    def _encode_card(self, card: Optional[Card]) -> List[float]:
        if card is None:
            return [0.0] * _CARD_FEATURES
        one_hot = [1.0 if card.effect is effect else 0.0 for effect in _EFFECTS]
        return [
            card.power / 50,
            card.cost / 20,
            card.effect_power / 20,
            card.effect_duration / 3,
            *one_hot,
        ]

