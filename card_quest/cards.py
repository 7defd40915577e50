"""Procedural card generation and card text helpers."""
from __future__ import annotations

import random
import uuid
from typing import Dict, List, Optional

from .enums import CardEffect, CardSource, CardType, CreatureType, Rarity
from .models import Card

NAME_PREFIXES = [
    "Arcane", "Mystic", "Enchanted", "Feral", "Ancient",
    "Shadow", "Crystal", "Blazing", "Frost", "Emerald",
    "Ethereal", "Vengeful", "Cursed", "Sacred", "Corrupted",
    "Celestial", "Void", "Runic", "Divine", "Primal",
]

NAME_CORES = [
    "Dragon", "Elemental", "Beast", "Guardian", "Mage",
    "Warrior", "Sprite", "Spirit", "Golem", "Knight",
    "Sorcerer", "Wyrm", "Demon", "Angel", "Scout",
    "Titan", "Phoenix", "Specter", "Djinn", "Druid",
]

NAME_SUFFIXES = [
    "of Power", "of Wisdom", "of Protection", "of Destruction", "of Time",
    "of Eternity", "of the Sky", "of the Deep", "of Flames", "of Frost",
    "of Legends", "of Shadows", "of Light", "of Doom", "of Fortune",
    "of Fate", "of the Void", "of the Ancients", "of Mystery", "of Vengeance",
]

DESCRIPTION_TEMPLATES = [
    "A powerful card that deals {power} damage to enemies.",
    "Summons a {creature_type} with {power} attack power.",
    "An ancient artifact that grants {power} power to its wielder.",
    "Conjures a magical {creature_type} to fight for you.",
    "An enchanted being with {power} strength.",
    "A mystical {creature_type} from the realm of shadows.",
    "Unleashes {power} points of elemental energy.",
    "A rare {creature_type} known for its {power} attack damage.",
    "Channels the power of {power} magical spirits.",
    "A legendary creature with devastating {power} attack.",
]

RARITY_COLORS: Dict[Rarity, List[str]] = {
    Rarity.COMMON: ["#78909c", "#90a4ae", "#b0bec5"],
    Rarity.UNCOMMON: ["#4caf50", "#66bb6a", "#81c784"],
    Rarity.RARE: ["#2196f3", "#42a5f5", "#64b5f6"],
    Rarity.EPIC: ["#9c27b0", "#ab47bc", "#ba68c8"],
    Rarity.LEGENDARY: ["#ff9800", "#ffa726", "#ffb74d"],
}

EFFECT_POOLS: Dict[CardType, List[CardEffect]] = {
    CardType.CREATURE: [CardEffect.LEECH, CardEffect.DOUBLE_ATTACK, CardEffect.SHIELD, CardEffect.BOOST],
    CardType.SPELL: [CardEffect.STUN, CardEffect.BURN, CardEffect.FREEZE, CardEffect.WEAKEN, CardEffect.HEAL],
    CardType.ARTIFACT: [CardEffect.SHIELD, CardEffect.REFLECT, CardEffect.BOOST],
}

# Player level required before a card with the given effect unlocks.
UNLOCK_LEVELS: Dict[CardType, Dict[CardEffect, int]] = {
    CardType.CREATURE: {CardEffect.DOUBLE_ATTACK: 5, CardEffect.LEECH: 3},
    CardType.SPELL: {CardEffect.FREEZE: 8, CardEffect.STUN: 6, CardEffect.BURN: 4, CardEffect.HEAL: 2, CardEffect.WEAKEN: 2},
    CardType.ARTIFACT: {CardEffect.REFLECT: 7, CardEffect.BOOST: 4},
}

BASE_LEGENDARY_CHANCE = 0.01
BASE_EPIC_CHANCE = 0.05
BASE_RARE_CHANCE = 0.15
BASE_UNCOMMON_CHANCE = 0.35


def _plural(duration: int) -> str:
    return "s" if duration > 1 else ""


def describe_effect(effect: CardEffect, power: int, duration: int) -> str:
    """Card-text sentence for an effect."""
    turns = f"{duration} turn{_plural(duration)}"
    descriptions = {
        CardEffect.STUN: f"Stuns opponent for {turns}.",
        CardEffect.HEAL: f"Heals {power} health.",
        CardEffect.SHIELD: f"Blocks {power} damage for {turns}.",
        CardEffect.BURN: f"Deals {power} damage over {turns}.",
        CardEffect.LEECH: f"Steals {power} health from opponent.",
        CardEffect.BOOST: f"Increases power by {power} for {turns}.",
        CardEffect.WEAKEN: f"Reduces opponent's power by {power} for {turns}.",
        CardEffect.DOUBLE_ATTACK: "Attacks twice in one turn.",
        CardEffect.REFLECT: f"Reflects {power}% of damage back to attacker.",
        CardEffect.FREEZE: f"Prevents opponent from using effects for {turns}.",
    }
    return descriptions.get(effect, "")


def effect_message(effect: CardEffect, power: int, target: str) -> str:
    """Short battle-log phrase for an effect aimed at ``target``."""
    messages = {
        CardEffect.STUN: f"{target} is stunned and will skip next turn",
        CardEffect.HEAL: f"Heals {power} health",
        CardEffect.SHIELD: f"Blocks {power} damage",
        CardEffect.BURN: f"Deals {power} damage over time",
        CardEffect.LEECH: f"Steals {power} health from {target}",
        CardEffect.BOOST: f"Increases power by {power}",
        CardEffect.WEAKEN: f"Reduces {target}'s power by {power}",
        CardEffect.DOUBLE_ATTACK: "Attacks twice in one turn",
        CardEffect.REFLECT: f"Reflects {power}% of damage back",
        CardEffect.FREEZE: f"{target} can't use special abilities",
    }
    return messages.get(effect, "")


class CardGenerator:
    """Rolls new cards from rarity, type and effect probability tables."""

    def __init__(self, seed: int | None = None, rng: Optional[random.Random] = None) -> None:
        self.rng = rng or random.Random(seed)

    def generate(self, source: CardSource = CardSource.PACK, level: int = 1) -> Card:
        rarity = self.roll_rarity(source, level)
        power = self.roll_power(rarity, level)
        creature_type = self.rng.choice(list(CreatureType))
        color = self.rng.choice(RARITY_COLORS[rarity])
        card_type = self.roll_card_type()

        effect = CardEffect.NONE
        effect_power = 0
        effect_duration = 0
        unlock_level = 1
        if source is not CardSource.STARTER and self.rng.random() < rarity.effect_chance:
            effect = self.rng.choice(EFFECT_POOLS[card_type])
            unlock_level = UNLOCK_LEVELS[card_type].get(effect, 1)
            effect_power = int(power * 0.3) + self.rng.randint(0, 4)
            effect_duration = rarity.effect_duration

        description = self._describe(power, creature_type)
        if effect is not CardEffect.NONE:
            description = f"{description} {describe_effect(effect, effect_power, effect_duration)}"

        return Card(
            id=uuid.UUID(int=self.rng.getrandbits(128)).hex,
            name=self._name(),
            description=description,
            card_type=card_type,
            rarity=rarity,
            power=power,
            cost=Card.cost_for(power),
            creature_type=creature_type,
            color=color,
            effect=effect,
            effect_power=effect_power,
            effect_duration=effect_duration,
            unlock_level=unlock_level,
        )

    def generate_many(self, count: int, source: CardSource = CardSource.PACK, level: int = 1) -> List[Card]:
        return [self.generate(source, level) for _ in range(count)]

    # ------------------------------------------------------------------
    # Probability tables
    # ------------------------------------------------------------------

    def rarity_chances(self, source: CardSource, level: int = 1) -> Dict[Rarity, float]:
        """Chance of each non-common rarity; common takes whatever remains."""
        legendary = BASE_LEGENDARY_CHANCE
        epic = BASE_EPIC_CHANCE
        rare = BASE_RARE_CHANCE
        if source is CardSource.ENEMY:
            legendary += level * 0.01
            epic += level * 0.02
            rare += level * 0.03
        elif source is CardSource.REWARD:
            legendary += 0.05
            epic += 0.10
            rare += 0.15
        elif source is CardSource.PACK:
            legendary += self.rng.random() * 0.05
            epic += self.rng.random() * 0.10
            rare += self.rng.random() * 0.15
        return {
            Rarity.LEGENDARY: legendary,
            Rarity.EPIC: epic,
            Rarity.RARE: rare,
            Rarity.UNCOMMON: BASE_UNCOMMON_CHANCE,
        }

    def roll_rarity(self, source: CardSource, level: int = 1) -> Rarity:
        if source is CardSource.STARTER:
            return Rarity.COMMON
        roll = self.rng.random()
        threshold = 0.0
        for rarity, chance in self.rarity_chances(source, level).items():
            threshold += chance
            if roll < threshold:
                return rarity
        return Rarity.COMMON

    def roll_power(self, rarity: Rarity, level: int = 1) -> int:
        level_bonus = (level - 1) * 3
        return max(1, rarity.base_power + level_bonus + self.rng.randint(-2, 3))

    def roll_card_type(self) -> CardType:
        roll = self.rng.random()
        if roll < 0.6:
            return CardType.CREATURE
        if roll < 0.85:
            return CardType.SPELL
        return CardType.ARTIFACT

    def _name(self) -> str:
        name = f"{self.rng.choice(NAME_PREFIXES)} {self.rng.choice(NAME_CORES)}"
        if self.rng.random() > 0.5:
            name = f"{name} {self.rng.choice(NAME_SUFFIXES)}"
        return name

    def _describe(self, power: int, creature_type: CreatureType) -> str:
        template = self.rng.choice(DESCRIPTION_TEMPLATES)
        return template.format(power=power, creature_type=creature_type.value)
