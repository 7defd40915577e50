"""Public entrypoints for the Card Quest battle engine."""
from .agent import EnemyPolicy, GreedyPlayerPolicy, RandomPlayerPolicy
from .battle import BattleStateMachine
from .cards import CardGenerator
from .combat import Resolution, resolve_attack, resolve_turn_end
from .config import BattleConfig
from .enums import CardEffect, CardSource, Outcome, Rarity, Side
from .game import GameSession
from .models import BattleState, Card, StatusEffect
from .player import CardCollection, PlayerProfile
from .scheduler import AsyncioScheduler, ManualScheduler
from .session import BattleHistory, BattleRecord, BattleSessionLifecycle

__all__ = [
    "BattleConfig",
    "BattleHistory",
    "BattleRecord",
    "BattleSessionLifecycle",
    "BattleState",
    "BattleStateMachine",
    "Card",
    "CardCollection",
    "CardEffect",
    "CardGenerator",
    "CardSource",
    "EnemyPolicy",
    "GameSession",
    "GreedyPlayerPolicy",
    "ManualScheduler",
    "AsyncioScheduler",
    "Outcome",
    "PlayerProfile",
    "RandomPlayerPolicy",
    "Rarity",
    "Resolution",
    "Side",
    "StatusEffect",
    "resolve_attack",
    "resolve_turn_end",
]
