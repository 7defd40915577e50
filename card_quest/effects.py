"""Status effect ledgers: stacking, filtering and turn-based decay.

A ledger is the list of :class:`~card_quest.models.StatusEffect` entries active on
one combatant. Entries never merge; two shields of 3 and 4 block 7 together.
Every helper returns a new list so battle snapshots stay independent.
"""
from __future__ import annotations

from dataclasses import replace
from typing import List, Optional, Sequence

from .enums import CardEffect
from .models import Card, StatusEffect


def add_effect(ledger: Sequence[StatusEffect], effect: StatusEffect) -> List[StatusEffect]:
    return [*ledger, effect]


def effects_of_kind(ledger: Sequence[StatusEffect], kind: CardEffect) -> List[StatusEffect]:
    return [entry for entry in ledger if entry.effect is kind]


def total_power(ledger: Sequence[StatusEffect], kind: CardEffect) -> int:
    return sum(entry.power for entry in ledger if entry.effect is kind)


def first_of_kind(ledger: Sequence[StatusEffect], kind: CardEffect) -> Optional[StatusEffect]:
    for entry in ledger:
        if entry.effect is kind:
            return entry
    return None


def has_effect(ledger: Sequence[StatusEffect], kind: CardEffect) -> bool:
    return first_of_kind(ledger, kind) is not None


def burn_ticks(ledger: Sequence[StatusEffect]) -> List[int]:
    """Damage of each burn entry, in ledger order."""
    return [entry.power for entry in ledger if entry.effect is CardEffect.BURN]


def decrement(ledger: Sequence[StatusEffect], current_turn: Optional[int] = None) -> List[StatusEffect]:
    """Age every entry by one turn and drop the ones that ran out.

    Entries placed during ``current_turn`` are kept as they are.
    """
    aged = [
        entry if is_fresh(entry, current_turn) else replace(entry, duration=entry.duration - 1)
        for entry in ledger
    ]
    return [entry for entry in aged if entry.duration > 0]


def is_fresh(entry: StatusEffect, current_turn: Optional[int]) -> bool:
    return current_turn is not None and entry.applied_turn == current_turn


def from_card(card: Card, turn: Optional[int] = None) -> StatusEffect:
    return StatusEffect(
        effect=card.effect,
        power=card.effect_power,
        duration=card.effect_duration or 1,
        source_card=card,
        applied_turn=turn,
    )
