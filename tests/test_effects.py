from card_quest.effects import (
    add_effect,
    burn_ticks,
    decrement,
    effects_of_kind,
    first_of_kind,
    from_card,
    has_effect,
    total_power,
)
from card_quest.enums import CardEffect
from card_quest.models import StatusEffect


def test_entries_never_merge():
    ledger = add_effect([], StatusEffect(CardEffect.SHIELD, 3, 1))
    ledger = add_effect(ledger, StatusEffect(CardEffect.SHIELD, 4, 2))
    assert len(ledger) == 2
    assert total_power(ledger, CardEffect.SHIELD) == 7
    assert len(effects_of_kind(ledger, CardEffect.SHIELD)) == 2


def test_add_effect_returns_new_list():
    ledger = [StatusEffect(CardEffect.BOOST, 2, 1)]
    updated = add_effect(ledger, StatusEffect(CardEffect.BOOST, 1, 1))
    assert len(ledger) == 1
    assert len(updated) == 2


def test_first_of_kind_and_has_effect():
    ledger = [
        StatusEffect(CardEffect.SHIELD, 1, 1),
        StatusEffect(CardEffect.REFLECT, 30, 1),
        StatusEffect(CardEffect.REFLECT, 80, 1),
    ]
    assert first_of_kind(ledger, CardEffect.REFLECT).power == 30
    assert first_of_kind(ledger, CardEffect.BURN) is None
    assert has_effect(ledger, CardEffect.SHIELD)
    assert not has_effect(ledger, CardEffect.FREEZE)


def test_decrement_drops_expired_entries():
    ledger = [
        StatusEffect(CardEffect.BURN, 3, 1),
        StatusEffect(CardEffect.WEAKEN, 2, 3),
    ]
    aged = decrement(ledger)
    assert [(e.effect, e.duration) for e in aged] == [(CardEffect.WEAKEN, 2)]
    assert ledger[1].duration == 3


def test_decrement_keeps_entries_placed_this_turn():
    ledger = [
        StatusEffect(CardEffect.SHIELD, 3, 1, applied_turn=2),
        StatusEffect(CardEffect.BOOST, 2, 1, applied_turn=1),
    ]
    assert decrement(ledger, current_turn=2) == [ledger[0]]
    assert decrement(ledger) == []


def test_burn_ticks_in_ledger_order():
    ledger = [
        StatusEffect(CardEffect.BURN, 3, 2),
        StatusEffect(CardEffect.SHIELD, 9, 2),
        StatusEffect(CardEffect.BURN, 1, 1),
    ]
    assert burn_ticks(ledger) == [3, 1]


def test_from_card_uses_card_numbers(make_card):
    card = make_card(power=10, effect=CardEffect.WEAKEN, effect_power=4, effect_duration=2)
    entry = from_card(card, turn=3)
    assert (entry.effect, entry.power, entry.duration) == (CardEffect.WEAKEN, 4, 2)
    assert entry.source_card is card
    assert entry.applied_turn == 3
    assert entry.to_dict()["sourceCardId"] == card.id
