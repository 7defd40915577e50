"""What happens around a battle once it has an outcome."""
from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .battle import BattleStateMachine
from .config import BattleConfig
from .enums import CardSource, GameView, Outcome
from .models import BattleState, Card
from .ports import (
    CardGeneratorPort,
    CollectionStore,
    Notification,
    NotificationSink,
    ProgressionStore,
    ViewNavigator,
)
from .scheduler import Scheduler

logger = logging.getLogger(__name__)


@dataclass
class BattleRecord:
    """One finished battle, kept for history and analytics."""

    enemy_level: int
    outcome: Outcome
    player_cards_used: List[str]
    enemy_cards_used: List[str]
    turns: int
    reward_card: Optional[str] = None
    battle_time: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "enemyLevel": self.enemy_level,
            "outcome": self.outcome.value,
            "playerCardsUsed": list(self.player_cards_used),
            "enemyCardsUsed": list(self.enemy_cards_used),
            "turns": self.turns,
            "rewardCard": self.reward_card,
            "battleTime": self.battle_time.isoformat(),
        }


class BattleHistory:
    def __init__(self) -> None:
        self.records: List[BattleRecord] = []

    def append(self, record: BattleRecord) -> None:
        self.records.append(record)

    def wins(self) -> int:
        return sum(1 for record in self.records if record.outcome is Outcome.WIN)

    def to_list(self) -> List[Dict[str, Any]]:
        return [record.to_dict() for record in self.records]


class BattleSessionLifecycle:
    """Hands out experience and reward cards, then sends the player back to the map."""

    def __init__(
        self,
        machine: BattleStateMachine,
        generator: CardGeneratorPort,
        collection: CollectionStore,
        progression: ProgressionStore,
        navigator: ViewNavigator,
        notifier: NotificationSink,
        scheduler: Scheduler,
        *,
        config: Optional[BattleConfig] = None,
        history: Optional[BattleHistory] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.machine = machine
        self.generator = generator
        self.collection = collection
        self.progression = progression
        self.navigator = navigator
        self.notifier = notifier
        self.scheduler = scheduler
        self.config = config or machine.config
        self.history = history
        self.rng = rng or random.Random()
        machine.add_outcome_listener(self.on_outcome)

    def on_outcome(self, state: BattleState, outcome: Outcome) -> None:
        reward: Optional[Card] = None
        if outcome is Outcome.WIN:
            experience = self.config.experience_for(state.level)
            self.progression.gain_experience(experience)
            logger.info("Awarded %d experience for a level %d win", experience, state.level)
            reward = self._roll_reward()

        if self.history is not None:
            self.history.append(
                BattleRecord(
                    enemy_level=state.level,
                    outcome=outcome,
                    player_cards_used=[card.id for card in state.player_cards],
                    enemy_cards_used=[card.id for card in state.enemy_cards],
                    turns=state.turn_number,
                    reward_card=reward.id if reward else None,
                )
            )

        generation = state.generation
        self.scheduler.call_later(
            self.config.outcome_display_delay,
            lambda: self._return_to_world(generation),
        )

    def _roll_reward(self) -> Optional[Card]:
        if self.rng.random() >= self.config.reward_chance:
            return None
        card = self.generator.generate(CardSource.REWARD, self.progression.level)
        self.collection.add_card(card)
        self.notifier.notify(Notification.success(f"You received a new {card.rarity.label} card: {card.name}!"))
        return card

    def _return_to_world(self, generation: int) -> None:
        state = self.machine.state
        if state.active and state.generation != generation:
            logger.debug("Battle %d already replaced; staying in battle view", generation)
            return
        self.navigator.set_view(GameView.WORLD)
