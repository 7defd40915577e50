import itertools
from dataclasses import dataclass, field
from typing import List, Optional

import pytest

from card_quest.agent import EnemyPolicy
from card_quest.battle import BattleStateMachine
from card_quest.config import BattleConfig
from card_quest.enums import CardEffect, CardSource, CardType, CreatureType, Rarity
from card_quest.game import GameNavigator
from card_quest.models import Card
from card_quest.player import PlayerProfile
from card_quest.ports import NotificationLog
from card_quest.scheduler import ManualScheduler

_ids = itertools.count(1)


def build_card(
    power: int = 10,
    effect: CardEffect = CardEffect.NONE,
    effect_power: int = 0,
    effect_duration: int = 1,
    *,
    name: Optional[str] = None,
    rarity: Rarity = Rarity.COMMON,
) -> Card:
    number = next(_ids)
    return Card(
        id=f"card-{number}",
        name=name or f"Test Card {number}",
        description="test card",
        card_type=CardType.CREATURE,
        rarity=rarity,
        power=power,
        cost=Card.cost_for(power),
        creature_type=CreatureType.BEAST,
        color="#ffffff",
        effect=effect,
        effect_power=effect_power,
        effect_duration=effect_duration if effect is not CardEffect.NONE else 0,
    )


class FixedGenerator:
    """Hands out queued cards, then plain power-1 cards once the queue is empty."""

    def __init__(self, cards: Optional[List[Card]] = None) -> None:
        self.queue = list(cards or [])
        self.calls: List[tuple] = []

    def generate(self, source: CardSource = CardSource.PACK, level: int = 1) -> Card:
        self.calls.append((source, level))
        if self.queue:
            return self.queue.pop(0)
        return build_card(power=1)


class FailingGenerator:
    def generate(self, source: CardSource = CardSource.PACK, level: int = 1) -> Card:
        raise RuntimeError("card service unavailable")


class StubCollection:
    def __init__(self, hand: List[Card]) -> None:
        self.hand = list(hand)
        self.added: List[Card] = []

    def get_battle_hand(self, count: int) -> List[Card]:
        return self.hand[:count]

    def add_card(self, card: Card) -> None:
        self.added.append(card)


@dataclass
class BattleRig:
    machine: BattleStateMachine
    scheduler: ManualScheduler
    notifier: NotificationLog
    navigator: GameNavigator
    profile: PlayerProfile
    collection: StubCollection
    generator: FixedGenerator
    states: list = field(default_factory=list)

    def settle(self) -> None:
        self.scheduler.run_until_idle()


@pytest.fixture
def make_card():
    return build_card


@pytest.fixture
def battle_rig():
    """Factory for a battle machine wired to in-memory collaborators."""

    def factory(
        hand: List[Card],
        enemy_cards: Optional[List[Card]] = None,
        *,
        config: Optional[BattleConfig] = None,
        health: int = 100,
        generator=None,
    ) -> BattleRig:
        scheduler = ManualScheduler()
        notifier = NotificationLog()
        navigator = GameNavigator()
        profile = PlayerProfile(health=health, max_health=max(100, health))
        collection = StubCollection(hand)
        generator = generator or FixedGenerator(enemy_cards)
        machine = BattleStateMachine(
            generator,
            collection,
            profile,
            navigator,
            notifier,
            scheduler,
            policy=EnemyPolicy(seed=0),
            config=config,
        )
        rig = BattleRig(machine, scheduler, notifier, navigator, profile, collection, generator)
        machine.add_listener(rig.states.append)
        return rig

    return factory


@pytest.fixture
def fixed_generator():
    return FixedGenerator


@pytest.fixture
def failing_generator():
    return FailingGenerator()
