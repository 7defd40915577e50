"""Combat resolution: damage, mitigation, effect application and turn-end decay.

Both entry points are pure. They copy the incoming :class:`BattleState`, work on the
copy and hand back a :class:`Resolution`; the caller commits ``resolution.state`` in
one assignment so health and ledger changes from one step land together.

Attack order: boost, weaken (never below 1), shields (summed), reflect (first entry
only), leech, lethal check, double attack, then the card's own effect.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence

from .effects import (
    add_effect,
    burn_ticks,
    decrement,
    first_of_kind,
    from_card,
    has_effect,
    is_fresh,
    total_power,
)
from .enums import CardEffect, Outcome, Side
from .models import BattleState, Card, StatusEffect
from .ports import Notification


@dataclass
class Resolution:
    """Result of resolving one step against a copy of the battle state."""

    state: BattleState
    events: List[Notification] = field(default_factory=list)
    winner: Optional[Side] = None

    @property
    def outcome(self) -> Optional[Outcome]:
        return Outcome.for_winner(self.winner) if self.winner else None

    def info(self, message: str) -> None:
        self.events.append(Notification.info(message))

    def damage(self, side: Side, amount: int) -> int:
        return self.state.set_health(side, self.state.health(side) - max(0, amount))

    def heal(self, side: Side, amount: int) -> int:
        return self.state.set_health(side, self.state.health(side) + max(0, amount))


def _who(side: Side) -> str:
    return "you" if side is Side.PLAYER else "the enemy"


def _whose(side: Side) -> str:
    return "your" if side is Side.PLAYER else "the enemy's"


def _be(side: Side) -> str:
    return "are" if side is Side.PLAYER else "is"


def _cap(text: str) -> str:
    return text[:1].upper() + text[1:]


# ----------------------------------------------------------------------
# Damage arithmetic
# ----------------------------------------------------------------------


def effective_power(
    power: int,
    attacker_effects: Sequence[StatusEffect],
    defender_effects: Sequence[StatusEffect],
) -> int:
    """Card power after the attacker's boosts and the weakens on the defender."""
    boosted = power + total_power(attacker_effects, CardEffect.BOOST)
    return max(1, boosted - total_power(defender_effects, CardEffect.WEAKEN))


def strike_damage(power: int, defender_effects: Sequence[StatusEffect]) -> int:
    return max(0, power - total_power(defender_effects, CardEffect.SHIELD))


def reflected_damage(power: int, defender_effects: Sequence[StatusEffect]) -> int:
    reflect = first_of_kind(defender_effects, CardEffect.REFLECT)
    if reflect is None:
        return 0
    return power * reflect.power // 100


def _strike(resolution: Resolution, defender: Side, power: int) -> None:
    effects = resolution.state.effects(defender)
    blocked = total_power(effects, CardEffect.SHIELD)
    if blocked:
        resolution.info(f"{_cap(_whose(defender))} shield blocked {blocked} damage!")
    damage = strike_damage(power, effects)
    resolution.damage(defender, damage)
    resolution.info(f"{_cap(_who(defender))} took {damage} damage.")


# ----------------------------------------------------------------------
# Card effect handlers
# ----------------------------------------------------------------------

EffectHandler = Callable[[Resolution, Side, Card], None]


def _no_status(resolution: Resolution, attacker: Side, card: Card) -> None:
    """Effects resolved during the strike itself leave nothing in a ledger."""


def _buff_self(resolution: Resolution, attacker: Side, card: Card) -> None:
    state = resolution.state
    state.set_effects(attacker, add_effect(state.effects(attacker), from_card(card, state.turn_number)))
    if card.effect is CardEffect.SHIELD:
        resolution.info(f"Gained shield that blocks {card.effect_power} damage!")
    elif card.effect is CardEffect.BOOST:
        resolution.info(f"Power boosted by {card.effect_power}!")
    elif card.effect is CardEffect.REFLECT:
        resolution.info(f"{_cap(_whose(attacker))} reflect will return {card.effect_power}% of incoming damage.")


def _heal(resolution: Resolution, attacker: Side, card: Card) -> None:
    before = resolution.state.health(attacker)
    after = resolution.heal(attacker, card.effect_power)
    resolution.info(f"{_cap(_who(attacker))} healed {after - before} health!")
    _buff_self(resolution, attacker, card)


def _debuff_opponent(resolution: Resolution, attacker: Side, card: Card) -> None:
    state = resolution.state
    defender = attacker.opponent
    state.set_effects(defender, add_effect(state.effects(defender), from_card(card, state.turn_number)))
    if card.effect is CardEffect.WEAKEN:
        resolution.info(f"{_cap(_who(defender))} {_be(defender)} weakened by {card.effect_power} power!")
    elif card.effect is CardEffect.FREEZE:
        resolution.info(f"{_cap(_who(defender))} {_be(defender)} frozen and can't use special abilities!")


def _stun(resolution: Resolution, attacker: Side, card: Card) -> None:
    defender = attacker.opponent
    resolution.state.set_skip_next_turn(defender, True)
    resolution.info(f"{_cap(_who(defender))} {_be(defender)} stunned and will skip the next turn!")
    _debuff_opponent(resolution, attacker, card)


def _burn(resolution: Resolution, attacker: Side, card: Card) -> None:
    defender = attacker.opponent
    remaining = resolution.damage(defender, card.effect_power)
    resolution.info(f"Burn effect deals {card.effect_power} damage!")
    _debuff_opponent(resolution, attacker, card)
    if remaining <= 0:
        resolution.winner = attacker


EFFECT_HANDLERS: Dict[CardEffect, EffectHandler] = {
    CardEffect.NONE: _no_status,
    CardEffect.LEECH: _no_status,
    CardEffect.DOUBLE_ATTACK: _no_status,
    CardEffect.HEAL: _heal,
    CardEffect.SHIELD: _buff_self,
    CardEffect.BOOST: _buff_self,
    CardEffect.REFLECT: _buff_self,
    CardEffect.STUN: _stun,
    CardEffect.BURN: _burn,
    CardEffect.WEAKEN: _debuff_opponent,
    CardEffect.FREEZE: _debuff_opponent,
}

_unhandled = set(CardEffect) - set(EFFECT_HANDLERS)
if _unhandled:
    raise RuntimeError(f"No effect handler for {sorted(e.value for e in _unhandled)}")


# ----------------------------------------------------------------------
# Entry points
# ----------------------------------------------------------------------


def resolve_attack(state: BattleState, attacker: Side, card: Card) -> Resolution:
    """Resolve ``attacker`` playing ``card`` against the other side."""
    resolution = Resolution(state.copy())
    working = resolution.state
    defender = attacker.opponent
    attacker_effects = working.effects(attacker)
    defender_effects = working.effects(defender)

    for boost in attacker_effects:
        if boost.effect is CardEffect.BOOST:
            resolution.info(f"Boost effect adds {boost.power} power!")
    for weaken in defender_effects:
        if weaken.effect is CardEffect.WEAKEN:
            resolution.info(f"Weaken effect reduces damage by {weaken.power}!")
    power = effective_power(card.power, attacker_effects, defender_effects)

    _strike(resolution, defender, power)

    if has_effect(defender_effects, CardEffect.REFLECT):
        reflected = reflected_damage(power, defender_effects)
        remaining = resolution.damage(attacker, reflected)
        resolution.info(f"{_cap(_who(defender))} reflected {reflected} damage back!")
        if remaining <= 0:
            resolution.winner = defender
            return resolution

    frozen = has_effect(attacker_effects, CardEffect.FREEZE)
    if frozen and card.has_effect:
        resolution.info(f"{_cap(_who(attacker))} {_be(attacker)} frozen; {card.name}'s {card.effect.value} fizzles.")

    if card.effect is CardEffect.LEECH and not frozen:
        before = working.health(attacker)
        after = resolution.heal(attacker, min(power, card.effect_power))
        resolution.info(f"{_cap(_who(attacker))} leeched {after - before} health!")

    if working.health(defender) <= 0:
        resolution.winner = attacker
        return resolution

    if card.effect is CardEffect.DOUBLE_ATTACK and not frozen:
        resolution.info("Double attack! A second hit lands!")
        _strike(resolution, defender, power)
        if working.health(defender) <= 0:
            resolution.winner = attacker
            return resolution

    if not frozen:
        EFFECT_HANDLERS[card.effect](resolution, attacker, card)
    return resolution


def resolve_turn_end(state: BattleState, side: Side) -> Resolution:
    """Burns on ``side`` tick, then ``side``'s own ledger ages by one turn.

    Entries ``side`` placed on itself during this turn keep their duration until its
    next turn end.
    """
    resolution = Resolution(state.copy())
    working = resolution.state

    for tick in burn_ticks(working.effects(side)):
        resolution.damage(side, tick)
        resolution.info(f"Burn effect deals {tick} damage to {_who(side)}!")

    before = working.effects(side)
    for entry in before:
        if entry.duration <= 1 and not is_fresh(entry, working.turn_number):
            resolution.info(f"{_cap(_whose(side))} {entry.effect.value} wore off.")
    working.set_effects(side, decrement(before, working.turn_number))

    if working.health(side) <= 0:
        resolution.winner = side.opponent
    return resolution
