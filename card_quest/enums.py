"""Core enumerations used across the card battle engine."""
from __future__ import annotations

from enum import Enum


class CardType(Enum):
    """Broad card families; each has its own pool of effects."""

    SPELL = "spell"
    CREATURE = "creature"
    ARTIFACT = "artifact"


class Rarity(Enum):
    """Card rarities determine base power and effect odds."""

    COMMON = ("common", 5, 0.1, 1)
    UNCOMMON = ("uncommon", 10, 0.3, 1)
    RARE = ("rare", 15, 0.6, 2)
    EPIC = ("epic", 20, 0.8, 2)
    LEGENDARY = ("legendary", 30, 1.0, 3)

    def __init__(self, label: str, base_power: int, effect_chance: float, effect_duration: int) -> None:
        self.label = label
        self.base_power = base_power
        self.effect_chance = effect_chance
        self.effect_duration = effect_duration

    @classmethod
    def from_label(cls, label: str) -> "Rarity":
        for rarity in cls:
            if rarity.label == label:
                return rarity
        raise ValueError(f"Unknown rarity: {label!r}")


class CreatureType(Enum):
    DRAGON = "dragon"
    ELEMENTAL = "elemental"
    BEAST = "beast"
    UNDEAD = "undead"
    GOLEM = "golem"


class CardEffect(Enum):
    """Special rules a card applies when played."""

    NONE = "none"
    STUN = "stun"
    HEAL = "heal"
    SHIELD = "shield"
    BURN = "burn"
    LEECH = "leech"
    BOOST = "boost"
    WEAKEN = "weaken"
    DOUBLE_ATTACK = "double_attack"
    REFLECT = "reflect"
    FREEZE = "freeze"


class CardSource(Enum):
    """Where a generated card comes from."""

    STARTER = "starter"
    PACK = "pack"
    ENEMY = "enemy"
    REWARD = "reward"


class Side(Enum):
    """The two combatants of a battle."""

    PLAYER = "player"
    ENEMY = "enemy"

    @property
    def opponent(self) -> "Side":
        return Side.ENEMY if self is Side.PLAYER else Side.PLAYER


class Outcome(Enum):
    WIN = "win"
    LOSE = "lose"

    @classmethod
    def for_winner(cls, winner: Side) -> "Outcome":
        return cls.WIN if winner is Side.PLAYER else cls.LOSE


class GameView(Enum):
    WORLD = "world"
    BATTLE = "battle"
    COLLECTION = "collection"
    PACK_OPENING = "pack_opening"


class GamePhase(Enum):
    TUTORIAL = "tutorial"
    READY = "ready"
    PLAYING = "playing"
    ENDED = "ended"


class NotificationLevel(Enum):
    INFO = "info"
    SUCCESS = "success"
    ERROR = "error"
