import random

from card_quest.enums import CardSource
from card_quest.player import MAX_DECK_SIZE, CardCollection, PlayerProfile
from card_quest.ports import NotificationLog


def test_experience_levels_up_once_and_carries_remainder():
    notifier = NotificationLog()
    profile = PlayerProfile(notifier=notifier)
    assert profile.gain_experience(60) is False
    assert profile.gain_experience(70) is True
    assert profile.level == 2
    assert profile.experience == 30
    assert profile.next_level_experience == 150
    assert profile.max_health == 110
    assert profile.health == 110
    assert "Level Up! You are now level 2" in notifier.messages()


def test_level_up_restores_full_health():
    profile = PlayerProfile(health=40)
    profile.gain_experience(100)
    assert profile.get_health() == (110, 110)


def test_collection_starts_with_starter_card(fixed_generator, make_card):
    starter = make_card(power=5)
    generator = fixed_generator([starter])
    collection = CardCollection(generator, PlayerProfile())
    assert collection.cards == [starter]
    assert generator.calls == [(CardSource.STARTER, 1)]


def test_add_card_grants_experience(fixed_generator, make_card):
    profile = PlayerProfile()
    notifier = NotificationLog()
    collection = CardCollection(fixed_generator(), profile, notifier, starter_cards=0)
    card = make_card()
    collection.add_card(card)
    assert collection.cards == [card]
    assert profile.experience == 10
    assert "New card acquired!" in notifier.messages()


def test_pack_uses_player_level(fixed_generator):
    profile = PlayerProfile(level=4)
    generator = fixed_generator()
    collection = CardCollection(generator, profile, starter_cards=0)
    collection.add_card_from_pack()
    assert generator.calls == [(CardSource.PACK, 4)]
    assert profile.experience == 25


def test_deck_is_capped(fixed_generator, make_card):
    notifier = NotificationLog()
    collection = CardCollection(fixed_generator(), PlayerProfile(), notifier, starter_cards=0)
    collection.cards = [make_card() for _ in range(MAX_DECK_SIZE + 1)]
    for idx in range(MAX_DECK_SIZE):
        assert collection.add_to_deck(idx)
    assert collection.add_to_deck(MAX_DECK_SIZE) is False
    assert len(collection.deck) == MAX_DECK_SIZE
    assert "Deck is full" in notifier.messages()
    assert collection.add_to_deck(99) is False


def test_remove_from_deck_and_collection(fixed_generator, make_card):
    collection = CardCollection(fixed_generator(), PlayerProfile(), starter_cards=0)
    card = make_card()
    collection.cards = [card]
    collection.add_to_deck(0)
    assert collection.remove_from_deck(0) is card
    assert collection.remove_from_deck(0) is None
    assert collection.remove_card(0) is card
    assert collection.remove_card(0) is None


def test_battle_hand_prefers_deck_and_samples(fixed_generator, make_card):
    collection = CardCollection(fixed_generator(), PlayerProfile(), rng=random.Random(3), starter_cards=0)
    collection.cards = [make_card() for _ in range(6)]
    hand = collection.get_battle_hand(3)
    assert len(hand) == 3
    assert len({card.id for card in hand}) == 3
    assert all(card in collection.cards for card in hand)

    collection.add_to_deck(4)
    assert collection.get_battle_hand(3) == [collection.cards[4]]
