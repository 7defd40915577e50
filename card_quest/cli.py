"""Command line entrypoint: play a battle, batch-simulate, train and plot."""
from __future__ import annotations

import argparse
import json
import logging
import sys
from collections import Counter
from typing import List, Optional, Sequence

import numpy as np
from tqdm import tqdm

from .agent import GreedyPlayerPolicy, RandomPlayerPolicy
from .cards import effect_message
from .enums import CardSource, Outcome, Side
from .game import GameSession
from .models import BattleState
from .ports import NotificationLog
from .scheduler import ManualScheduler

logger = logging.getLogger(__name__)

POLICIES = {
    "greedy": lambda seed: GreedyPlayerPolicy(),
    "random": lambda seed: RandomPlayerPolicy(seed),
}


def new_session(seed: Optional[int], level: int, *, hand: int = 3) -> GameSession:
    """A session with ``hand`` fresh pack cards so the player has something to play."""
    session = GameSession(seed=seed, scheduler=ManualScheduler(), starter_cards=0)
    session.collection.cards.extend(session.generator.generate_many(hand, CardSource.PACK, level))
    return session


def run_battle(session: GameSession, policy, level: int, *, max_turns: int = 200) -> Optional[Outcome]:
    """Play one battle to the end with ``policy`` choosing the player's cards.

    Returns ``None`` if the battle is still undecided after ``max_turns`` plays.
    """
    scheduler = session.scheduler
    session.start_battle(level)
    for _ in range(max_turns):
        state = session.battle.state
        if state.is_over:
            break
        session.play_card(policy.select(state))
        scheduler.run_until_idle()
    return session.battle.state.outcome


def format_state(state: BattleState) -> str:
    lines = [
        f"Level {state.level} | You {state.player_health}/{state.player_max_health}"
        f" | Enemy {state.enemy_health}/{state.enemy_max_health}",
    ]
    for side in (Side.PLAYER, Side.ENEMY):
        ledger = ", ".join(f"{e.effect.value}({e.power}, {e.duration})" for e in state.effects(side))
        if ledger:
            lines.append(f"  {side.value} effects: {ledger}")
    lines.append("Your hand:")
    for idx, card in enumerate(state.player_cards):
        effect = f" [{effect_message(card.effect, card.effect_power, 'the enemy')}]" if card.has_effect else ""
        lines.append(f"  {idx}: {card.name} ({card.rarity.label}) power {card.power}{effect}")
    return "\n".join(lines)


# ----------------------------------------------------------------------
# Commands
# ----------------------------------------------------------------------


def cmd_play(args: argparse.Namespace) -> int:
    session = new_session(args.seed, args.level, hand=args.hand)
    notifier = session.notifier
    if isinstance(notifier, NotificationLog):
        notifier.subscribe(lambda note: print(f"* {note.message}"))

    session.start_battle(args.level)
    while not session.battle.state.is_over:
        print()
        print(format_state(session.battle.state))
        choice = input("Card to play (q to quit): ").strip()
        if choice.lower() in {"q", "quit"}:
            return 0
        if not choice.isdigit() or not session.play_card(int(choice)):
            print("That card cannot be played.")
            continue
        session.scheduler.run_until_idle()

    outcome = session.battle.state.outcome
    print()
    print(f"Battle over: {outcome.value if outcome else 'undecided'}")
    print(f"Player level {session.profile.level}, experience {session.profile.experience}")
    return 0


def cmd_simulate(args: argparse.Namespace) -> int:
    results: Counter = Counter()
    turns: List[int] = []
    for episode in tqdm(range(args.battles), disable=args.quiet):
        seed = None if args.seed is None else args.seed + episode
        session = new_session(seed, args.level, hand=args.hand)
        policy = POLICIES[args.policy](seed)
        outcome = run_battle(session, policy, args.level, max_turns=args.max_turns)
        results[outcome.value if outcome else "undecided"] += 1
        turns.append(session.battle.state.turn_number)

    logger.info("Simulation finished: %s", dict(results))
    total = max(1, args.battles)
    print(f"Battles: {args.battles} at level {args.level} with the {args.policy} policy")
    for label in ("win", "lose", "undecided"):
        print(f"  {label:<10} {results[label]:>5} ({results[label] / total * 100:.1f}%)")
    print(f"  mean turns {np.mean(turns) if turns else 0.0:.1f}")
    return 0


def cmd_train(args: argparse.Namespace) -> int:
    from .rl import PPOConfig
    from .training import RLTrainingSession

    config = PPOConfig(
        rollout_steps=args.rollout_steps,
        total_updates=args.updates,
        learning_rate=args.learning_rate,
    )
    session = RLTrainingSession(
        config=config,
        env_kwargs={"min_level": args.min_level, "max_level": args.max_level, "seed": args.seed},
    )
    report = session.train(progress_bar=not args.quiet, eval_episodes=args.eval_episodes)
    print(f"Mean return {report.mean_return:.3f} | mean length {report.mean_length:.1f} | win rate {report.win_rate:.2f}")
    if args.save:
        session.save(args.save)
        print(f"Policy saved to {args.save}")
    if args.history:
        with open(args.history, "w", encoding="utf-8") as handle:
            json.dump(
                {
                    "returns": report.history,
                    "updates": [metrics.to_dict() for metrics in report.update_metrics],
                },
                handle,
            )
        print(f"Training history saved to {args.history}")
    return 0


def cmd_plot(args: argparse.Namespace) -> int:
    import matplotlib.pyplot as plt

    with open(args.history, encoding="utf-8") as handle:
        history = json.load(handle)
    returns = np.asarray(history.get("returns", []), dtype=np.float64)
    updates = history.get("updates", [])
    if returns.size == 0:
        print("No episode returns recorded in history.")
        return 1

    fig, (ax1, ax2) = plt.subplots(1, 2, figsize=(15, 5))
    window = max(1, min(args.window, returns.size))
    smoothed = np.convolve(returns, np.ones(window) / window, mode="valid")
    ax1.plot(smoothed, alpha=0.8)
    ax1.set_xlabel("Episode")
    ax1.set_ylabel("Return (smoothed)")
    ax1.set_title("Training Returns")
    ax1.grid(True, alpha=0.3)

    if updates:
        ax2.plot([u["entropy"] for u in updates], label="entropy")
        ax2.plot([u["value_explained_variance"] for u in updates], label="explained variance")
        ax2.plot([u["clip_fraction"] for u in updates], label="clip fraction")
        ax2.legend()
    ax2.set_xlabel("Update")
    ax2.set_title("PPO Diagnostics")
    ax2.grid(True, alpha=0.3)

    plt.tight_layout()
    if args.output:
        plt.savefig(args.output, dpi=150, bbox_inches="tight")
        print(f"Plot saved to {args.output}")
    else:
        plt.show()
    plt.close(fig)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="card-quest", description="Card Quest battle engine")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (DEBUG, INFO, ...)")
    sub = parser.add_subparsers(dest="command", required=True)

    play = sub.add_parser("play", help="Play a battle in the terminal")
    play.add_argument("--level", type=int, default=1)
    play.add_argument("--hand", type=int, default=3, help="Pack cards dealt to the player")
    play.add_argument("--seed", type=int, default=None)
    play.set_defaults(func=cmd_play)

    simulate = sub.add_parser("simulate", help="Run many battles with a scripted player")
    simulate.add_argument("--battles", type=int, default=100)
    simulate.add_argument("--level", type=int, default=1)
    simulate.add_argument("--hand", type=int, default=3)
    simulate.add_argument("--policy", choices=sorted(POLICIES), default="greedy")
    simulate.add_argument("--max-turns", type=int, default=200)
    simulate.add_argument("--seed", type=int, default=None)
    simulate.add_argument("--quiet", action="store_true")
    simulate.set_defaults(func=cmd_simulate)

    train = sub.add_parser("train", help="Train a PPO policy against the scripted enemy")
    train.add_argument("--updates", type=int, default=200)
    train.add_argument("--rollout-steps", type=int, default=1024)
    train.add_argument("--learning-rate", type=float, default=3e-4)
    train.add_argument("--min-level", type=int, default=1)
    train.add_argument("--max-level", type=int, default=5)
    train.add_argument("--eval-episodes", type=int, default=10)
    train.add_argument("--seed", type=int, default=None)
    train.add_argument("--save", default=None, help="Where to write the policy weights")
    train.add_argument("--history", default=None, help="Where to write returns and update metrics as JSON")
    train.add_argument("--quiet", action="store_true")
    train.set_defaults(func=cmd_train)

    plot = sub.add_parser("plot", help="Plot a training history written by 'train --history'")
    plot.add_argument("history")
    plot.add_argument("--window", type=int, default=50)
    plot.add_argument("--output", default=None)
    plot.set_defaults(func=cmd_plot)
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
