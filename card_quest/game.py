"""Game orchestration: views, progression, collection and battles in one place."""
from __future__ import annotations

import random
from typing import Any, Dict, Optional

from .agent import EnemyPolicy
from .battle import BattleStateMachine
from .cards import CardGenerator
from .config import BattleConfig
from .enums import GamePhase, GameView
from .models import BattleState, Card
from .player import CardCollection, PlayerProfile
from .ports import CardGeneratorPort, NotificationLog, NotificationSink
from .scheduler import ManualScheduler, Scheduler
from .session import BattleHistory, BattleSessionLifecycle


class GameNavigator:
    """Tracks which screen the client should show."""

    def __init__(self, view: GameView = GameView.WORLD, phase: GamePhase = GamePhase.TUTORIAL) -> None:
        self.view = view
        self.phase = phase
        self.history: list[GameView] = []

    def set_view(self, view: GameView) -> None:
        self.history.append(view)
        self.view = view

    def set_phase(self, phase: GamePhase) -> None:
        self.phase = phase


class GameSession:
    """Complete state for one player's game."""

    def __init__(
        self,
        *,
        seed: Optional[int] = None,
        generator: Optional[CardGeneratorPort] = None,
        scheduler: Optional[Scheduler] = None,
        notifier: Optional[NotificationSink] = None,
        config: Optional[BattleConfig] = None,
        profile: Optional[PlayerProfile] = None,
        starter_cards: int = 1,
    ) -> None:
        rng = random.Random(seed)
        self.config = config or BattleConfig()
        self.notifier = notifier or NotificationLog()
        self.scheduler = scheduler or ManualScheduler()
        self.generator = generator or CardGenerator(rng=random.Random(rng.getrandbits(32)))
        self.navigator = GameNavigator()
        self.profile = profile or PlayerProfile()
        self.profile.notifier = self.notifier
        self.collection = CardCollection(
            self.generator,
            self.profile,
            self.notifier,
            rng=random.Random(rng.getrandbits(32)),
            starter_cards=starter_cards,
        )
        self.history = BattleHistory()

        self.battle = BattleStateMachine(
            self.generator,
            self.collection,
            self.profile,
            self.navigator,
            self.notifier,
            self.scheduler,
            policy=EnemyPolicy(rng=random.Random(rng.getrandbits(32))),
            config=self.config,
        )
        self.lifecycle = BattleSessionLifecycle(
            self.battle,
            self.generator,
            self.collection,
            self.profile,
            self.navigator,
            self.notifier,
            self.scheduler,
            config=self.config,
            history=self.history,
            rng=random.Random(rng.getrandbits(32)),
        )
        self.battle.add_outcome_listener(lambda state, outcome: self.navigator.set_phase(GamePhase.ENDED))

    # ------------------------------------------------------------------
    # Battle commands
    # ------------------------------------------------------------------

    def start_battle(self, level: int = 1) -> BattleState:
        state = self.battle.start_battle(level)
        self.navigator.set_phase(GamePhase.PLAYING)
        return state

    def play_card(self, idx: int) -> bool:
        return self.battle.play_card(idx)

    def end_turn(self) -> bool:
        return self.battle.end_turn()

    def start_new_battle(self) -> None:
        self.battle.start_new_battle()
        self.navigator.set_phase(GamePhase.READY)

    # ------------------------------------------------------------------
    # Collection
    # ------------------------------------------------------------------

    def open_pack(self) -> Card:
        self.navigator.set_view(GameView.PACK_OPENING)
        return self.collection.add_card_from_pack()

    def show_collection(self) -> None:
        self.navigator.set_view(GameView.COLLECTION)

    def to_public_dict(self) -> Dict[str, Any]:
        return {
            "view": self.navigator.view.value,
            "phase": self.navigator.phase.value,
            "player": self.profile.to_dict(),
            "collection": self.collection.to_dict(),
            "battle": self.battle.state.to_dict(),
        }
