import pytest

from card_quest.agent import EnemyPolicy, GreedyPlayerPolicy, RandomPlayerPolicy, strongest_card
from card_quest.enums import CardEffect
from card_quest.models import BattleState, StatusEffect


def enemy_state(cards, player_health):
    return BattleState(active=True, player_health=player_health, player_max_health=100, enemy_cards=cards)


def test_low_player_health_picks_strongest(make_card):
    cards = [make_card(power=4), make_card(power=11, effect=CardEffect.HEAL, effect_power=2), make_card(power=9)]
    policy = EnemyPolicy(seed=1)
    for _ in range(20):
        assert policy.select(enemy_state(cards, 25)) == 1


def test_high_player_health_opens_with_first_effect_card(make_card):
    cards = [make_card(power=12), make_card(power=3, effect=CardEffect.BURN, effect_power=2), make_card(power=3, effect=CardEffect.STUN)]
    assert EnemyPolicy(seed=1).select(enemy_state(cards, 90)) == 1


def test_high_player_health_without_effects_falls_back_to_strongest(make_card):
    cards = [make_card(power=3), make_card(power=8), make_card(power=8)]
    assert EnemyPolicy(seed=1).select(enemy_state(cards, 90)) == 1


def test_mid_health_choice_stays_in_range(make_card):
    cards = [make_card(power=3), make_card(power=8), make_card(power=5)]
    policy = EnemyPolicy(seed=7)
    picks = {policy.select(enemy_state(cards, 50)) for _ in range(50)}
    assert picks <= {0, 1, 2}
    assert len(picks) > 1


def test_thresholds_are_strict(make_card):
    cards = [make_card(power=3, effect=CardEffect.SHIELD, effect_power=1), make_card(power=9)]
    policy = EnemyPolicy(seed=3)
    # exactly 70% is not "above" the high threshold, exactly 30% is not "below" the low one
    for health in (30, 70):
        assert policy.select(enemy_state(cards, health)) in (0, 1)
    assert policy.select(enemy_state(cards, 29)) == 1
    assert policy.select(enemy_state(cards, 71)) == 0


def test_empty_hand_raises():
    with pytest.raises(ValueError):
        EnemyPolicy().select(enemy_state([], 50))


def test_strongest_card_prefers_first_on_ties(make_card):
    assert strongest_card([make_card(power=5), make_card(power=9), make_card(power=9)]) == 1


def test_greedy_player_accounts_for_shields_and_double_attack(make_card):
    state = BattleState(
        active=True,
        player_cards=[
            make_card(power=10),
            make_card(power=7, effect=CardEffect.DOUBLE_ATTACK, effect_power=1),
        ],
        enemy_effects=[StatusEffect(CardEffect.SHIELD, 4, 1)],
    )
    policy = GreedyPlayerPolicy()
    assert policy.score_hand(state) == [6, 6.5]
    assert policy.select(state) == 1


def test_random_player_policy_is_seeded(make_card):
    state = BattleState(active=True, player_cards=[make_card(), make_card(), make_card()])
    first = [RandomPlayerPolicy(seed=5).select(state) for _ in range(5)]
    second = [RandomPlayerPolicy(seed=5).select(state) for _ in range(5)]
    assert first == second
