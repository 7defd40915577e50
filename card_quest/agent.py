"""Heuristic card pickers for the scripted enemy and for autoplaying the player."""
from __future__ import annotations

import random
from typing import List, Sequence

from .combat import effective_power, strike_damage
from .enums import CardEffect, Side
from .models import BattleState, Card


def strongest_card(cards: Sequence[Card]) -> int:
    """Index of the highest-power card; the first one wins ties."""
    best = 0
    for idx, card in enumerate(cards):
        if card.power > cards[best].power:
            best = idx
    return best


class EnemyPolicy:
    """Picks the enemy's card each turn from the player's remaining health.

    Below ``low_threshold`` of max health the enemy goes for the kill with its
    strongest card; above ``high_threshold`` it opens with its first effect card.
    In between it picks at random.
    """

    def __init__(
        self,
        seed: int | None = None,
        *,
        low_threshold: float = 0.3,
        high_threshold: float = 0.7,
        rng: random.Random | None = None,
    ) -> None:
        self.rng = rng or random.Random(seed)
        self.low_threshold = low_threshold
        self.high_threshold = high_threshold

    def select(self, state: BattleState) -> int:
        cards = state.enemy_cards
        if not cards:
            raise ValueError("Enemy has no cards to choose from")

        health = state.player_health
        max_health = state.player_max_health
        if health < max_health * self.low_threshold:
            return strongest_card(cards)
        if health > max_health * self.high_threshold:
            for idx, card in enumerate(cards):
                if card.effect is not CardEffect.NONE:
                    return idx
            return strongest_card(cards)
        return self.rng.randrange(len(cards))


class GreedyPlayerPolicy:
    """Plays whichever card deals the most damage right now."""

    def select(self, state: BattleState) -> int:
        scores = self.score_hand(state)
        if not scores:
            raise ValueError("Player has no cards to choose from")
        return max(range(len(scores)), key=lambda idx: scores[idx])

    def score_hand(self, state: BattleState) -> List[float]:
        attacker_effects = state.effects(Side.PLAYER)
        defender_effects = state.effects(Side.ENEMY)
        scores: List[float] = []
        for card in state.player_cards:
            power = effective_power(card.power, attacker_effects, defender_effects)
            damage = strike_damage(power, defender_effects)
            if card.effect is CardEffect.DOUBLE_ATTACK:
                damage *= 2
            elif card.effect is CardEffect.BURN:
                damage += card.effect_power
            # small tie-breaker so effect cards beat plain ones of equal damage
            scores.append(damage + (0.5 if card.has_effect else 0.0))
        return scores


class RandomPlayerPolicy:
    def __init__(self, seed: int | None = None) -> None:
        self.rng = random.Random(seed)

    def select(self, state: BattleState) -> int:
        if not state.player_cards:
            raise ValueError("Player has no cards to choose from")
        return self.rng.randrange(len(state.player_cards))
