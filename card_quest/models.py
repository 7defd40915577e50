"""Dataclasses that describe cards, status effects and the live battle state."""
from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

from .enums import CardEffect, CardType, CreatureType, Outcome, Rarity, Side


@dataclass(frozen=True)
class Card:
    """An immutable card as produced by the generator."""

    id: str
    name: str
    description: str
    card_type: CardType
    rarity: Rarity
    power: int
    cost: int
    creature_type: CreatureType
    color: str
    effect: CardEffect = CardEffect.NONE
    effect_power: int = 0
    effect_duration: int = 0
    unlock_level: int = 1

    def __post_init__(self) -> None:
        if self.power < 1:
            raise ValueError(f"Card power must be at least 1, got {self.power}")
        if self.effect_power < 0:
            raise ValueError(f"Effect power must be non-negative, got {self.effect_power}")

    @property
    def has_effect(self) -> bool:
        return self.effect is not CardEffect.NONE

    @staticmethod
    def cost_for(power: int) -> int:
        return math.ceil(power / 3)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "type": self.card_type.value,
            "rarity": self.rarity.label,
            "power": self.power,
            "cost": self.cost,
            "creatureType": self.creature_type.value,
            "color": self.color,
            "effect": self.effect.value,
            "effectPower": self.effect_power,
            "effectDuration": self.effect_duration,
            "unlockLevel": self.unlock_level,
        }


@dataclass(frozen=True)
class StatusEffect:
    """A timed effect sitting in one combatant's ledger."""

    effect: CardEffect
    power: int
    duration: int
    source_card: Optional[Card] = None
    # turn number the entry was placed on; the owner's turn end of that turn leaves it alone
    applied_turn: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "effect": self.effect.value,
            "power": self.power,
            "duration": self.duration,
            "sourceCardId": self.source_card.id if self.source_card else None,
        }


@dataclass
class BattleState:
    """Complete state for a single battle against a scripted enemy.

    Instances are treated as snapshots: transitions work on a :meth:`copy` and the
    state machine swaps the whole object in once a step has been resolved.
    """

    active: bool = False
    level: int = 1
    player_health: int = 100
    player_max_health: int = 100
    enemy_health: int = 50
    enemy_max_health: int = 50
    player_cards: List[Card] = field(default_factory=list)
    enemy_cards: List[Card] = field(default_factory=list)
    active_card: Optional[Card] = None
    enemy_active_card: Optional[Card] = None
    player_effects: List[StatusEffect] = field(default_factory=list)
    enemy_effects: List[StatusEffect] = field(default_factory=list)
    current_turn: Side = Side.PLAYER
    outcome: Optional[Outcome] = None
    player_skip_next_turn: bool = False
    enemy_skip_next_turn: bool = False
    generation: int = 0
    turn_number: int = 0

    def copy(self) -> "BattleState":
        return replace(
            self,
            player_cards=list(self.player_cards),
            enemy_cards=list(self.enemy_cards),
            player_effects=list(self.player_effects),
            enemy_effects=list(self.enemy_effects),
        )

    @property
    def is_over(self) -> bool:
        return self.outcome is not None

    # ------------------------------------------------------------------
    # Side-addressed accessors used by the resolver
    # ------------------------------------------------------------------

    def health(self, side: Side) -> int:
        return self.player_health if side is Side.PLAYER else self.enemy_health

    def max_health(self, side: Side) -> int:
        return self.player_max_health if side is Side.PLAYER else self.enemy_max_health

    def set_health(self, side: Side, value: int) -> int:
        clamped = max(0, min(self.max_health(side), value))
        if side is Side.PLAYER:
            self.player_health = clamped
        else:
            self.enemy_health = clamped
        return clamped

    def health_ratio(self, side: Side) -> float:
        max_health = self.max_health(side)
        return self.health(side) / max_health if max_health else 0.0

    def effects(self, side: Side) -> List[StatusEffect]:
        return self.player_effects if side is Side.PLAYER else self.enemy_effects

    def set_effects(self, side: Side, effects: List[StatusEffect]) -> None:
        if side is Side.PLAYER:
            self.player_effects = effects
        else:
            self.enemy_effects = effects

    def hand(self, side: Side) -> List[Card]:
        return self.player_cards if side is Side.PLAYER else self.enemy_cards

    def skips_next_turn(self, side: Side) -> bool:
        return self.player_skip_next_turn if side is Side.PLAYER else self.enemy_skip_next_turn

    def set_skip_next_turn(self, side: Side, value: bool) -> None:
        if side is Side.PLAYER:
            self.player_skip_next_turn = value
        else:
            self.enemy_skip_next_turn = value

    def to_dict(self) -> Dict[str, Any]:
        return {
            "active": self.active,
            "level": self.level,
            "playerHealth": self.player_health,
            "playerMaxHealth": self.player_max_health,
            "enemyHealth": self.enemy_health,
            "enemyMaxHealth": self.enemy_max_health,
            "playerCards": [card.to_dict() for card in self.player_cards],
            "enemyCards": [card.to_dict() for card in self.enemy_cards],
            "activeCard": self.active_card.to_dict() if self.active_card else None,
            "enemyActiveCard": self.enemy_active_card.to_dict() if self.enemy_active_card else None,
            "playerEffects": [effect.to_dict() for effect in self.player_effects],
            "enemyEffects": [effect.to_dict() for effect in self.enemy_effects],
            "currentTurn": self.current_turn.value,
            "outcome": self.outcome.value if self.outcome else None,
            "playerSkipNextTurn": self.player_skip_next_turn,
            "enemySkipNextTurn": self.enemy_skip_next_turn,
        }
