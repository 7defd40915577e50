"""Turn sequencing for a battle against the scripted enemy."""
from __future__ import annotations

import logging
from typing import Callable, List, Optional

from .agent import EnemyPolicy
from .combat import Resolution, resolve_attack, resolve_turn_end
from .config import BattleConfig
from .enums import CardSource, GameView, Outcome, Side
from .models import BattleState
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

StateListener = Callable[[BattleState], None]
OutcomeListener = Callable[[BattleState, Outcome], None]


class BattleStateMachine:
    """Owns the single live :class:`BattleState` and every transition on it.

    Commands that do not apply (wrong turn, bad index, battle already over) are
    ignored and return ``False``. The enemy turn runs through the scheduler; each
    deferred step remembers the battle generation and turn number it was queued
    for and does nothing if either has moved on by the time it fires.
    """

    def __init__(
        self,
        generator: CardGeneratorPort,
        collection: CollectionStore,
        progression: ProgressionStore,
        navigator: ViewNavigator,
        notifier: NotificationSink,
        scheduler: Scheduler,
        policy: Optional[EnemyPolicy] = None,
        config: Optional[BattleConfig] = None,
    ) -> None:
        self.generator = generator
        self.collection = collection
        self.progression = progression
        self.navigator = navigator
        self.notifier = notifier
        self.scheduler = scheduler
        self.policy = policy or EnemyPolicy()
        self.config = config or BattleConfig()

        self._state = BattleState()
        self._generation = 0
        self._listeners: List[StateListener] = []
        self._outcome_listeners: List[OutcomeListener] = []

    @property
    def state(self) -> BattleState:
        return self._state

    def add_listener(self, listener: StateListener) -> None:
        self._listeners.append(listener)

    def add_outcome_listener(self, listener: OutcomeListener) -> None:
        self._outcome_listeners.append(listener)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def start_battle(self, level: int = 1) -> BattleState:
        health, max_health = self.progression.get_health()
        player_cards = self.collection.get_battle_hand(self.config.hand_size)
        enemy_cards = [
            self.generator.generate(CardSource.ENEMY, level)
            for _ in range(self.config.enemy_card_count(level))
        ]
        enemy_max_health = self.config.enemy_max_health(level)

        self._generation += 1
        self._commit_state(
            BattleState(
                active=True,
                level=level,
                player_health=health,
                player_max_health=max_health,
                enemy_health=enemy_max_health,
                enemy_max_health=enemy_max_health,
                player_cards=list(player_cards),
                enemy_cards=enemy_cards,
                current_turn=Side.PLAYER,
                generation=self._generation,
            )
        )
        logger.debug("Battle %d started at level %d", self._generation, level)
        self.navigator.set_view(GameView.BATTLE)
        self.notifier.notify(
            Notification.info(
                f"Battle started against Level {level} enemy!",
                "Choose your cards wisely to defeat your opponent.",
            )
        )
        return self._state

    def start_new_battle(self) -> None:
        """Drop the transient battle fields; the next start_battle re-seeds the rest."""
        self._generation += 1
        state = self._state.copy()
        state.active = False
        state.active_card = None
        state.enemy_active_card = None
        state.current_turn = Side.PLAYER
        state.outcome = None
        state.generation = self._generation
        self._commit_state(state)

    def play_card(self, index: int) -> bool:
        state = self._state
        if not state.active or state.is_over or state.current_turn is not Side.PLAYER:
            return False

        if state.skips_next_turn(Side.PLAYER):
            stunned = state.copy()
            stunned.set_skip_next_turn(Side.PLAYER, False)
            self._commit_state(stunned)
            self.notifier.notify(Notification.error("You are stunned and cannot play a card this turn!"))
            self._end_turn()
            return True

        hand = state.hand(Side.PLAYER)
        if not 0 <= index < len(hand):
            return False

        card = hand[index]
        playing = state.copy()
        playing.active_card = card
        logger.debug("Player plays %s (power %d, %s)", card.name, card.power, card.effect.value)
        self._apply(resolve_attack(playing, Side.PLAYER, card))
        if not self._state.is_over:
            self._end_turn()
        return True

    def end_turn(self) -> bool:
        """End the player's turn. The enemy's turn only ends through the scheduler."""
        state = self._state
        if not state.active or state.is_over or state.current_turn is not Side.PLAYER:
            return False
        return self._end_turn()

    def _end_turn(self) -> bool:
        state = self._state
        ending = state.current_turn
        self._apply(resolve_turn_end(state, ending))
        if self._state.is_over:
            return True

        swapped = self._state.copy()
        swapped.turn_number += 1
        if ending is Side.PLAYER:
            swapped.current_turn = Side.ENEMY
            swapped.active_card = None
            skip = swapped.skips_next_turn(Side.ENEMY)
            swapped.set_skip_next_turn(Side.ENEMY, False)
            self._commit_state(swapped)
            if skip:
                self.notifier.notify(Notification.info("Enemy is stunned and skips their turn!"))
                self._defer(self.config.stun_skip_delay, self._finish_enemy_turn)
            else:
                self._defer(self.config.enemy_action_delay, self._enemy_action)
        else:
            swapped.current_turn = Side.PLAYER
            swapped.enemy_active_card = None
            self._commit_state(swapped)
        logger.debug("Turn %d: %s to act", self._state.turn_number, self._state.current_turn.value)
        return True

    def end_battle(self, outcome: Outcome) -> None:
        if not self._state.active or self._state.is_over:
            return
        ended = self._state.copy()
        ended.outcome = outcome
        self._commit_state(ended)
        self._announce_outcome(ended, outcome)

    def _announce_outcome(self, ended: BattleState, outcome: Outcome) -> None:
        logger.info("Battle %d ended: %s", ended.generation, outcome.value)
        if outcome is Outcome.WIN:
            self.notifier.notify(
                Notification.success(
                    f"Victory! You defeated the level {ended.level} enemy",
                    "You gained experience and might have found a new card!",
                )
            )
        else:
            self.notifier.notify(
                Notification.error(
                    "Defeat! The enemy was too strong",
                    "Try collecting more powerful cards or level up more.",
                )
            )
        for listener in self._outcome_listeners:
            listener(ended, outcome)

    # ------------------------------------------------------------------
    # Enemy turn
    # ------------------------------------------------------------------

    def _enemy_action(self) -> None:
        state = self._state
        hand = state.hand(Side.ENEMY)
        if not hand:
            self.end_battle(Outcome.WIN)
            return

        idx = self.policy.select(state)
        card = hand[idx]
        acting = state.copy()
        acting.enemy_active_card = card
        logger.debug("Enemy plays %s (power %d, %s)", card.name, card.power, card.effect.value)
        self._apply(resolve_attack(acting, Side.ENEMY, card))
        if not self._state.is_over:
            self._defer(self.config.enemy_return_delay, self._finish_enemy_turn)

    def _finish_enemy_turn(self) -> None:
        if self._state.current_turn is Side.ENEMY:
            self._end_turn()

    def _defer(self, delay: float, step: Callable[[], None]) -> None:
        generation = self._state.generation
        turn_number = self._state.turn_number

        def fire() -> None:
            state = self._state
            if (
                state.generation != generation
                or state.turn_number != turn_number
                or not state.active
                or state.is_over
            ):
                logger.debug("Dropping stale %s for battle %d", step.__name__, generation)
                return
            step()

        self.scheduler.call_later(delay, fire)

    # ------------------------------------------------------------------
    # Commit helpers
    # ------------------------------------------------------------------

    def _apply(self, resolution: Resolution) -> None:
        state = resolution.state
        outcome = resolution.outcome
        if outcome is not None:
            state.outcome = outcome
        self._commit_state(state)
        for event in resolution.events:
            self.notifier.notify(event)
        if outcome is not None:
            self._announce_outcome(state, outcome)

    def _commit_state(self, state: BattleState) -> None:
        self._state = state
        for listener in self._listeners:
            listener(state)
