import numpy as np
import pytest

from card_quest.config import BattleConfig
from card_quest.rl import BattleEnv, PPOConfig
from card_quest.rl.ppo import Rollout
from card_quest.training import RLTrainingSession


def test_environment_reset_and_mask():
    env = BattleEnv(seed=3)
    obs, info = env.reset()
    assert obs.shape == env.observation_space.shape
    assert obs.dtype == np.float32
    mask = info["action_mask"]
    assert mask.shape[0] == env.action_space.n
    assert mask.tolist() == [1, 1, 1]
    assert 1 <= info["level"] <= 5


def test_reset_level_option():
    env = BattleEnv(seed=0)
    _, info = env.reset(options={"level": 4})
    assert info["level"] == 4
    assert env.state.level == 4
    assert env.state.enemy_max_health == 110


def test_step_before_reset_raises():
    env = BattleEnv()
    with pytest.raises(RuntimeError):
        env.step(0)


def test_environment_invalid_action_penalty():
    env = BattleEnv(battle_config=BattleConfig(hand_size=2), seed=1)
    _, info = env.reset()
    mask = info["action_mask"]
    assert mask.tolist() == [1, 1, 0]

    _, reward, terminated, truncated, info = env.step(2)
    assert info.get("invalid_action") is True
    assert reward == env.reward_config.invalid_action_penalty
    assert not terminated and not truncated

    obs, reward, terminated, truncated, info = env.step(0)
    assert obs.shape == env.observation_space.shape
    assert isinstance(reward, float)
    assert isinstance(terminated, bool)
    assert isinstance(truncated, bool)
    # the enemy has answered, so it is the player's move again unless the battle ended
    assert terminated or env.state.current_turn.value == "player"


def test_episode_terminates_or_truncates():
    env = BattleEnv(seed=5, max_turns=10)
    env.reset()
    done = False
    steps = 0
    while not done:
        _, _, terminated, truncated, info = env.step(0)
        done = terminated or truncated
        steps += 1
    assert steps <= 10
    if terminated:
        assert info["outcome"] in {"win", "lose"}
        assert info["action_mask"].sum() == 0


def test_rejects_oversized_hand():
    with pytest.raises(ValueError):
        BattleEnv(battle_config=BattleConfig(hand_size=4))


def test_training_session_smoke():
    config = PPOConfig(rollout_steps=64, minibatch_size=32, update_epochs=1, total_updates=1)
    session = RLTrainingSession(config=config, env_kwargs={"seed": 0, "max_turns": 20})
    report = session.train(progress_bar=False, eval_episodes=2)
    assert report.total_updates == 1
    assert isinstance(report.mean_return, float)
    assert 0.0 <= report.win_rate <= 1.0
    assert isinstance(report.history, list)
    assert len(report.update_metrics) == 1
    assert set(report.update_metrics[0].to_dict()) >= {"approx_kl", "clip_fraction"}


def make_rollout(values, returns):
    size = len(values)
    return Rollout(
        obs=np.zeros((size, 4), dtype=np.float32),
        actions=np.zeros(size, dtype=np.int64),
        log_probs=np.zeros(size, dtype=np.float32),
        values=np.asarray(values, dtype=np.float32),
        advantages=np.zeros(size, dtype=np.float32),
        returns=np.asarray(returns, dtype=np.float32),
        masks=np.ones((size, 3), dtype=bool),
    )


def test_value_fit_against_battle_returns():
    returns = [1.0, -1.0, 0.5, -0.5]
    assert make_rollout(returns, returns).value_fit() == pytest.approx(1.0)
    assert make_rollout([0.0] * 4, returns).value_fit() == pytest.approx(0.0)
    assert make_rollout([-r * 3 for r in returns], returns).value_fit() == -1.0
    assert make_rollout([0.2, 0.4], [1.0, 1.0]).value_fit() == 0.0
    assert make_rollout([], []).value_fit() == 0.0
