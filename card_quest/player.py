"""Player progression and card collection kept in memory."""
from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from .enums import CardSource
from .models import Card
from .ports import CardGeneratorPort, Notification, NotificationSink

MAX_DECK_SIZE = 10
CARD_EXPERIENCE = 10
PACK_EXPERIENCE = 25


@dataclass
class PlayerProfile:
    level: int = 1
    experience: int = 0
    next_level_experience: int = 100
    health: int = 100
    max_health: int = 100
    notifier: Optional[NotificationSink] = field(default=None, repr=False, compare=False)

    def get_health(self) -> Tuple[int, int]:
        return self.health, self.max_health

    def gain_experience(self, amount: int) -> bool:
        """Add experience; returns ``True`` when it triggered a level up.

        A single call raises the level at most once, leftover experience carries
        into the new level.
        """
        total = self.experience + amount
        if total < self.next_level_experience:
            self.experience = total
            return False

        self.level += 1
        self.experience = total - self.next_level_experience
        self.next_level_experience = int(self.next_level_experience * 1.5)
        self.max_health += 10
        self.health = self.max_health
        if self.notifier:
            self.notifier.notify(
                Notification.success(
                    f"Level Up! You are now level {self.level}",
                    "Your maximum health has increased!",
                )
            )
        return True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "level": self.level,
            "experience": self.experience,
            "nextLevelExperience": self.next_level_experience,
            "health": self.health,
            "maxHealth": self.max_health,
        }


class CardCollection:
    """Owned cards plus the optional deck that battle hands are drawn from."""

    def __init__(
        self,
        generator: CardGeneratorPort,
        profile: PlayerProfile,
        notifier: Optional[NotificationSink] = None,
        *,
        rng: Optional[random.Random] = None,
        starter_cards: int = 1,
    ) -> None:
        self.generator = generator
        self.profile = profile
        self.notifier = notifier
        self.rng = rng or random.Random()
        self.cards: List[Card] = [generator.generate(CardSource.STARTER) for _ in range(starter_cards)]
        self.deck: List[Card] = []

    def _notify(self, notification: Notification) -> None:
        if self.notifier:
            self.notifier.notify(notification)

    def add_card(self, card: Card) -> None:
        self.cards.append(card)
        self._notify(Notification.success("New card acquired!", f"{card.name} has been added to your collection."))
        self.profile.gain_experience(CARD_EXPERIENCE)

    def add_card_from_pack(self) -> Card:
        card = self.generator.generate(CardSource.PACK, self.profile.level)
        self.cards.append(card)
        self.profile.gain_experience(PACK_EXPERIENCE)
        return card

    def remove_card(self, idx: int) -> Card | None:
        if 0 <= idx < len(self.cards):
            return self.cards.pop(idx)
        return None

    # ------------------------------------------------------------------
    # Deck management
    # ------------------------------------------------------------------

    def add_to_deck(self, idx: int) -> bool:
        if not 0 <= idx < len(self.cards):
            return False
        if len(self.deck) >= MAX_DECK_SIZE:
            self._notify(
                Notification.error(
                    "Deck is full",
                    f"You can only have {MAX_DECK_SIZE} cards in your deck. Remove some first.",
                )
            )
            return False
        card = self.cards[idx]
        self.deck.append(card)
        self._notify(Notification.success("Card added to deck", f"{card.name} has been added to your active deck."))
        return True

    def remove_from_deck(self, idx: int) -> Card | None:
        if 0 <= idx < len(self.deck):
            card = self.deck.pop(idx)
            self._notify(Notification.info("Card removed from deck"))
            return card
        return None

    def get_battle_hand(self, count: int) -> List[Card]:
        """Deck cards if a deck is set, otherwise the whole collection.

        Returns everything when there are ``count`` cards or fewer, else a random
        subset without repeats.
        """
        source = self.deck if self.deck else self.cards
        if len(source) <= count:
            return list(source)
        return self.rng.sample(source, count)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cards": [card.to_dict() for card in self.cards],
            "deck": [card.to_dict() for card in self.deck],
        }
