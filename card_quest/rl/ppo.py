"""Proximal Policy Optimisation for learning which card to play."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

import numpy as np
import torch
from torch import Tensor, nn
from torch.distributions import Categorical
from torch.optim import Adam
from tqdm import trange

from .env import BattleEnv
from .metrics import UpdateMetrics, win_rate


@dataclass
class PPOConfig:
    """Hyper-parameters that control the PPO training loop."""

    rollout_steps: int = 1024
    minibatch_size: int = 128
    update_epochs: int = 6
    gamma: float = 0.97
    gae_lambda: float = 0.95
    clip_range: float = 0.2
    learning_rate: float = 3e-4
    entropy_coef: float = 0.01
    value_coef: float = 0.5
    max_grad_norm: float = 0.5
    hidden_size: int = 128
    total_updates: int = 200
    device: str = "cpu"


@dataclass
class Rollout:
    obs: np.ndarray
    actions: np.ndarray
    log_probs: np.ndarray
    values: np.ndarray
    advantages: np.ndarray
    returns: np.ndarray
    masks: np.ndarray

    def value_fit(self) -> float:
        """Share of the spread in discounted battle returns the value head predicted.

        ``1 - SSE / SST`` over the rollout, clipped to ``[-1, 1]``. A rollout whose
        returns are all equal reports ``0``.
        """
        if self.returns.size == 0:
            return 0.0
        returns = self.returns.astype(np.float64)
        spread = float(np.sum((returns - returns.mean()) ** 2))
        if spread == 0.0:
            return 0.0
        error = float(np.sum((returns - self.values.astype(np.float64)) ** 2))
        return float(np.clip(1.0 - error / spread, -1.0, 1.0))


class ActorCritic(nn.Module):
    """Shared trunk with a masked policy head and a value head."""

    def __init__(self, obs_dim: int, action_dim: int, hidden: int = 128) -> None:
        super().__init__()
        self.backbone = nn.Sequential(
            nn.Linear(obs_dim, hidden),
            nn.LayerNorm(hidden),
            nn.Tanh(),
            nn.Linear(hidden, hidden),
            nn.Tanh(),
        )
        self.policy_head = nn.Linear(hidden, action_dim)
        self.value_head = nn.Linear(hidden, 1)

    def forward(self, obs: Tensor) -> Tuple[Tensor, Tensor]:
        x = self.backbone(obs)
        return self.policy_head(x), self.value_head(x).squeeze(-1)

    def distribution(self, obs: Tensor, mask: Tensor) -> Tuple[Categorical, Tensor]:
        logits, value = self.forward(obs)
        # a fully masked row (battle already over) falls back to uniform logits
        any_legal = mask.any(dim=-1, keepdim=True)
        mask = torch.where(any_legal, mask, torch.ones_like(mask))
        return Categorical(logits=logits.masked_fill(~mask, -1e9)), value

    def act(self, obs: Tensor, mask: Tensor, deterministic: bool = False) -> Tuple[Tensor, Tensor, Tensor]:
        dist, value = self.distribution(obs, mask)
        action = dist.probs.argmax(dim=-1) if deterministic else dist.sample()
        return action, dist.log_prob(action), value

    def evaluate_actions(self, obs: Tensor, mask: Tensor, actions: Tensor) -> Tuple[Tensor, Tensor, Tensor]:
        dist, value = self.distribution(obs, mask)
        return dist.log_prob(actions), dist.entropy(), value


class PPOTrainer:
    """PPO with action masking over a :class:`BattleEnv`."""

    def __init__(self, env: BattleEnv, config: Optional[PPOConfig] = None) -> None:
        self.env = env
        self.config = config or PPOConfig()
        self.device = torch.device(self.config.device)

        obs_dim = int(np.prod(env.observation_space.shape))
        self.policy = ActorCritic(obs_dim, int(env.action_space.n), self.config.hidden_size).to(self.device)
        self.optimizer = Adam(self.policy.parameters(), lr=self.config.learning_rate)

        self.training_returns: List[float] = []
        self.training_lengths: List[int] = []
        self.update_metrics: List[UpdateMetrics] = []

        self._obs: Optional[np.ndarray] = None
        self._mask: Optional[np.ndarray] = None
        self._episode_return = 0.0
        self._episode_length = 0

    def train(self, total_updates: Optional[int] = None, *, progress_bar: bool = True) -> None:
        updates = total_updates or self.config.total_updates
        if self._obs is None:
            self._reset_env()

        iterator: Iterable[int]
        if progress_bar:
            bar = trange(updates)
            iterator = bar
        else:
            bar = None
            iterator = range(updates)

        for _ in iterator:
            rollout = self._collect_rollout()
            self.update_metrics.append(self._update_policy(rollout))
            if bar is not None:
                recent = self.training_returns[-20:]
                bar.set_description(f"Return {np.mean(recent) if recent else 0.0: .2f}")

    # ------------------------------------------------------------------
    # Data collection
    # ------------------------------------------------------------------

    def _reset_env(self) -> None:
        obs, info = self.env.reset()
        self._obs = obs
        self._mask = info["action_mask"].astype(bool)
        self._episode_return = 0.0
        self._episode_length = 0

    def _policy_step(self, obs: np.ndarray, mask: np.ndarray, deterministic: bool = False) -> Tuple[int, float, float]:
        obs_tensor = torch.tensor(obs, dtype=torch.float32, device=self.device)
        mask_tensor = torch.tensor(mask, dtype=torch.bool, device=self.device)
        with torch.no_grad():
            action, log_prob, value = self.policy.act(obs_tensor, mask_tensor, deterministic)
        return int(action.item()), float(log_prob.item()), float(value.item())

    def _collect_rollout(self) -> Rollout:
        obs_list: List[np.ndarray] = []
        mask_list: List[np.ndarray] = []
        actions: List[int] = []
        log_probs: List[float] = []
        rewards: List[float] = []
        values: List[float] = []
        dones: List[bool] = []

        for _ in range(self.config.rollout_steps):
            obs, mask = self._obs, self._mask
            action, log_prob, value = self._policy_step(obs, mask)
            next_obs, reward, terminated, truncated, info = self.env.step(action)
            done = terminated or truncated

            obs_list.append(obs.copy())
            mask_list.append(mask.copy())
            actions.append(action)
            log_probs.append(log_prob)
            rewards.append(float(reward))
            values.append(value)
            dones.append(done)

            self._episode_return += reward
            self._episode_length += 1
            if done:
                self.training_returns.append(self._episode_return)
                self.training_lengths.append(self._episode_length)
                self._reset_env()
            else:
                self._obs = next_obs
                self._mask = info["action_mask"].astype(bool)

        _, _, next_value = self._policy_step(self._obs, self._mask)
        advantages, returns = self._compute_gae(rewards, values, dones, next_value)
        return Rollout(
            obs=np.stack(obs_list),
            actions=np.asarray(actions, dtype=np.int64),
            log_probs=np.asarray(log_probs, dtype=np.float32),
            values=np.asarray(values, dtype=np.float32),
            advantages=advantages,
            returns=returns,
            masks=np.stack(mask_list),
        )

    def _compute_gae(
        self,
        rewards: List[float],
        values: List[float],
        dones: List[bool],
        next_value: float,
    ) -> Tuple[np.ndarray, np.ndarray]:
        advantages = np.zeros(len(rewards), dtype=np.float32)
        gae = 0.0
        values_ext = values + [next_value]
        for step in reversed(range(len(rewards))):
            not_done = 1.0 - float(dones[step])
            delta = rewards[step] + self.config.gamma * values_ext[step + 1] * not_done - values_ext[step]
            gae = delta + self.config.gamma * self.config.gae_lambda * not_done * gae
            advantages[step] = gae
        returns = advantages + np.asarray(values, dtype=np.float32)
        return advantages, returns

    # ------------------------------------------------------------------
    # Optimisation step
    # ------------------------------------------------------------------

    def _update_policy(self, rollout: Rollout) -> UpdateMetrics:
        def as_tensor(array: np.ndarray, dtype: torch.dtype) -> Tensor:
            return torch.tensor(array, dtype=dtype, device=self.device)

        obs = as_tensor(rollout.obs, torch.float32)
        actions = as_tensor(rollout.actions, torch.int64)
        old_log_probs = as_tensor(rollout.log_probs, torch.float32)
        returns = as_tensor(rollout.returns, torch.float32)
        advantages = as_tensor(rollout.advantages, torch.float32)
        masks = as_tensor(rollout.masks, torch.bool)
        advantages = (advantages - advantages.mean()) / (advantages.std() + 1e-8)

        stats: Dict[str, List[float]] = {"actor": [], "value": [], "entropy": [], "kl": [], "clip": []}
        batch_size = obs.shape[0]
        for _ in range(self.config.update_epochs):
            order = torch.randperm(batch_size, device=self.device)
            for start in range(0, batch_size, self.config.minibatch_size):
                idx = order[start:start + self.config.minibatch_size]
                new_log_probs, entropy, values = self.policy.evaluate_actions(obs[idx], masks[idx], actions[idx])

                log_ratio = new_log_probs - old_log_probs[idx]
                ratio = log_ratio.exp()
                clipped = torch.clamp(ratio, 1.0 - self.config.clip_range, 1.0 + self.config.clip_range)
                actor_loss = -torch.min(ratio * advantages[idx], clipped * advantages[idx]).mean()
                value_loss = (returns[idx] - values).pow(2).mean()
                entropy_mean = entropy.mean()
                loss = actor_loss + self.config.value_coef * value_loss - self.config.entropy_coef * entropy_mean

                self.optimizer.zero_grad()
                loss.backward()
                nn.utils.clip_grad_norm_(self.policy.parameters(), self.config.max_grad_norm)
                self.optimizer.step()

                with torch.no_grad():
                    stats["actor"].append(float(actor_loss.item()))
                    stats["value"].append(float(value_loss.item()))
                    stats["entropy"].append(float(entropy_mean.item()))
                    stats["kl"].append(float(((ratio - 1) - log_ratio).mean().item()))
                    stats["clip"].append(float(((ratio - 1.0).abs() > self.config.clip_range).float().mean().item()))

        return UpdateMetrics(
            actor_loss=float(np.mean(stats["actor"])),
            value_loss=float(np.mean(stats["value"])),
            entropy=float(np.mean(stats["entropy"])),
            approx_kl=float(np.mean(stats["kl"])),
            clip_fraction=float(np.mean(stats["clip"])),
            value_explained_variance=rollout.value_fit(),
        )

    # ------------------------------------------------------------------
    # Evaluation helpers
    # ------------------------------------------------------------------

    def evaluate(self, episodes: int = 10, *, deterministic: bool = True) -> Dict[str, float]:
        returns: List[float] = []
        lengths: List[int] = []
        wins: List[bool] = []
        for _ in range(episodes):
            obs, info = self.env.reset()
            mask = info["action_mask"].astype(bool)
            done = False
            episode_return = 0.0
            episode_length = 0
            while not done:
                action, _, _ = self._policy_step(obs, mask, deterministic)
                obs, reward, terminated, truncated, info = self.env.step(action)
                mask = info["action_mask"].astype(bool)
                done = terminated or truncated
                episode_return += reward
                episode_length += 1
            returns.append(episode_return)
            lengths.append(episode_length)
            wins.append(info.get("outcome") == "win")
        # evaluation consumed the env; continue training from a fresh battle
        self._obs = None
        self._reset_env()
        return {
            "mean_return": float(np.mean(returns) if returns else 0.0),
            "mean_length": float(np.mean(lengths) if lengths else 0.0),
            "win_rate": win_rate(wins),
        }

    def save(self, path: str) -> None:
        torch.save(self.policy.state_dict(), path)

    def load(self, path: str) -> None:
        state_dict = torch.load(path, map_location=self.device)
        self.policy.load_state_dict(state_dict)
