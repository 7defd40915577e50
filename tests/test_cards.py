import math
import random

import pytest

from card_quest.cards import EFFECT_POOLS, CardGenerator, describe_effect
from card_quest.enums import CardEffect, CardSource, CardType, CreatureType, Rarity
from card_quest.models import Card


def test_generated_cards_are_well_formed():
    generator = CardGenerator(seed=42)
    cards = generator.generate_many(200, CardSource.PACK, level=3)
    assert len({card.id for card in cards}) == 200
    for card in cards:
        assert card.power >= 1
        assert card.cost == math.ceil(card.power / 3)
        assert card.effect_power >= 0
        if card.has_effect:
            assert card.effect in EFFECT_POOLS[card.card_type]
            assert card.effect_duration == card.rarity.effect_duration
            assert card.effect_power >= int(card.power * 0.3)
        else:
            assert card.effect_power == 0


def test_starter_cards_are_plain_commons():
    generator = CardGenerator(seed=1)
    for card in generator.generate_many(50, CardSource.STARTER):
        assert card.rarity is Rarity.COMMON
        assert card.effect is CardEffect.NONE


def test_same_seed_same_cards():
    first = CardGenerator(seed=9).generate_many(5)
    second = CardGenerator(seed=9).generate_many(5)
    assert first == second


def test_power_scales_with_level():
    low_power = CardGenerator(rng=random.Random(0)).roll_power(Rarity.RARE, level=1)
    high_power = CardGenerator(rng=random.Random(0)).roll_power(Rarity.RARE, level=4)
    assert high_power - low_power == 9


def test_enemy_rarity_odds_grow_with_level():
    generator = CardGenerator(seed=0)
    low = generator.rarity_chances(CardSource.ENEMY, level=1)
    high = generator.rarity_chances(CardSource.ENEMY, level=5)
    assert high[Rarity.LEGENDARY] > low[Rarity.LEGENDARY]
    assert high[Rarity.RARE] == pytest.approx(0.15 + 5 * 0.03)


def test_reward_cards_have_better_odds_than_base():
    chances = CardGenerator(seed=0).rarity_chances(CardSource.REWARD)
    assert chances[Rarity.LEGENDARY] == pytest.approx(0.06)
    assert chances[Rarity.EPIC] == pytest.approx(0.15)


def test_card_validation():
    with pytest.raises(ValueError):
        Card(
            id="x",
            name="Broken",
            description="",
            card_type=CardType.SPELL,
            rarity=Rarity.COMMON,
            power=0,
            cost=0,
            creature_type=CreatureType.GOLEM,
            color="#000",
        )


def test_rarity_lookup_by_label():
    assert Rarity.from_label("epic") is Rarity.EPIC
    with pytest.raises(ValueError):
        Rarity.from_label("mythic")


def test_card_dict_uses_client_keys(make_card):
    data = make_card(power=7, effect=CardEffect.SHIELD, effect_power=2).to_dict()
    assert data["power"] == 7
    assert data["cost"] == 3
    assert data["effect"] == "shield"
    assert data["effectPower"] == 2
    assert data["rarity"] == "common"


def test_effect_descriptions():
    assert describe_effect(CardEffect.SHIELD, 4, 2) == "Blocks 4 damage for 2 turns."
    assert describe_effect(CardEffect.STUN, 1, 1) == "Stuns opponent for 1 turn."
    assert describe_effect(CardEffect.NONE, 0, 0) == ""
