"""
Sling RL Training: Slingshot Gymnasium Environment

One round of the slingshot game per episode. Each step is one shot: the
agent chooses a pull, the bird is dragged, released and simulated until it
comes to rest. The episode ends when the round is won or lost.

Observation space (14 floats):
    birds left (1) + pigs left (1) + pig hit flags (3) + block hit flags (3) +
    pig positions relative to the anchor (6)

Action space (2 floats):
    pull_x [-1,1], pull_y [-1,1]  → pull offset scaled by MAX_PULL
"""

import sys
import os

import gymnasium as gym
import numpy as np
from gymnasium import spaces

# Add project root to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from slingshot_engine.game_state import Outcome, round_outcome, simulate_shot
from slingshot_engine.sling import begin_drag, end_drag, update_drag
from slingshot_engine.world import (
    BIRD_RADIUS,
    BIRDS_PER_ROUND,
    MAX_PULL,
    CircleTarget,
    Mode,
    WorldState,
    reset_projectile,
)


DEFAULT_ENV_CONFIG = {
    "aim_noise": 0.0,             # std-dev of gaussian noise on the action
    "max_ticks_per_shot": 2000,
    "pig_reward": 10.0,
    "block_reward": 1.0,
    "win_bonus": 20.0,
    "proximity_reward": 2.0,      # shaping for shots that miss every pig
}

OBS_DIM = 14


class SlingshotEnv(gym.Env):
    """Fixed-level slingshot environment, one shot per step."""

    metadata = {"render_modes": ["human"]}

    def __init__(
        self,
        env_config: dict = None,
        render_mode: str = None,
    ):
        super().__init__()

        unknown = set(env_config or {}) - set(DEFAULT_ENV_CONFIG)
        if unknown:
            raise ValueError(f"Unknown env config keys: {sorted(unknown)}")
        self.config = {**DEFAULT_ENV_CONFIG, **(env_config or {})}
        self.render_mode = render_mode

        self.observation_space = spaces.Box(
            low=-np.inf, high=np.inf, shape=(OBS_DIM,), dtype=np.float32
        )
        self.action_space = spaces.Box(
            low=-1.0, high=1.0, shape=(2,), dtype=np.float32
        )

        self.world: WorldState = WorldState.new()
        self.last_trajectory = None

        # Stats tracking
        self.episode_count: int = 0
        self.win_count: int = 0

    def _get_observation(self) -> np.ndarray:
        """Build the 14-element observation vector."""
        world = self.world
        pig_flags = [float(p.hit) for p in world.pigs]
        block_flags = [float(b.hit) for b in world.blocks]
        pig_offsets = np.concatenate([
            (p.position - world.anchor) / world.width for p in world.pigs
        ])

        obs = np.concatenate([
            [world.birds_left / BIRDS_PER_ROUND],        # 1
            [world.pigs_left / len(world.pigs)],         # 1
            pig_flags,                                   # 3
            block_flags,                                 # 3
            pig_offsets,                                 # 6
        ]).astype(np.float32)                            # Total: 14

        obs = np.nan_to_num(obs, nan=0.0, posinf=10.0, neginf=-10.0)
        return obs

    def _closest_approach(self, trajectory, pigs) -> float:
        """Closest any trajectory point got to the edge of a standing pig."""
        standing = [p for p in pigs if not p.hit]
        if not standing or not trajectory:
            return float("inf")
        return min(
            np.linalg.norm(pos - pig.position) - pig.radius - BIRD_RADIUS
            for pos, _ in trajectory
            for pig in standing
        )

    def reset(self, seed=None, options=None):
        """Start a new round."""
        super().reset(seed=seed)

        self.world.reset()
        self.last_trajectory = None

        obs = self._get_observation()
        info = {
            "birds_left": self.world.birds_left,
            "pigs_left": self.world.pigs_left,
        }
        return obs, info

    def step(self, action: np.ndarray):
        """Take one shot.

        Action mapping:
            action[0]: pull_x [-1,1] → [-MAX_PULL, MAX_PULL] px from anchor
            action[1]: pull_y [-1,1] → [-MAX_PULL, MAX_PULL] px from anchor
        The sling clamps the combined pull length to MAX_PULL.
        """
        action = np.clip(np.asarray(action, dtype=np.float64), -1.0, 1.0)
        if self.config["aim_noise"] > 0:
            action = action + self.np_random.normal(0.0, self.config["aim_noise"], size=2)
        offset = action * MAX_PULL

        world = self.world
        pigs_before = [CircleTarget(p.position, p.radius, p.hit) for p in world.pigs]

        # Drive the same drag lifecycle a pointer would
        bird_x, bird_y = world.bird.position
        begin_drag(world, bird_x, bird_y)
        target_x, target_y = world.anchor + offset
        update_drag(world, target_x, target_y)
        end_drag(world)

        shot = simulate_shot(world, max_ticks=self.config["max_ticks_per_shot"])
        self.last_trajectory = shot.trajectory

        if shot.truncated:
            # Bird never settled: take it out of flight so the round can go on
            world.mode = Mode.IDLE
            if world.pigs_left > 0 and world.birds_left > 0:
                reset_projectile(world)

        pigs_hit = sum(1 for t in shot.hits if isinstance(t, CircleTarget))
        blocks_hit = len(shot.hits) - pigs_hit
        closest = self._closest_approach(shot.trajectory, pigs_before)

        reward = (
            pigs_hit * self.config["pig_reward"]
            + blocks_hit * self.config["block_reward"]
        )
        if pigs_hit == 0 and np.isfinite(closest):
            reward += self.config["proximity_reward"] * np.exp(
                -max(closest, 0.0) / (2.0 * BIRD_RADIUS)
            )

        outcome = round_outcome(world)
        if outcome is Outcome.WON:
            reward += self.config["win_bonus"]

        terminated = outcome is not Outcome.PLAYING
        truncated = False

        if terminated:
            self.episode_count += 1
            if outcome is Outcome.WON:
                self.win_count += 1

        obs = self._get_observation()
        info = {
            "pigs_hit": pigs_hit,
            "blocks_hit": blocks_hit,
            "reward": float(reward),
            "closest_approach": closest,
            "birds_left": world.birds_left,
            "pigs_left": world.pigs_left,
            "outcome": outcome.value,
            "ticks": shot.ticks,
            "shot_truncated": shot.truncated,
        }

        return obs, float(reward), terminated, truncated, info

    @property
    def success_rate(self) -> float:
        """Fraction of finished rounds that were won."""
        if self.episode_count == 0:
            return 0.0
        return self.win_count / self.episode_count


# ---------- Smoke Test ----------
if __name__ == "__main__":
    from rich.console import Console

    console = Console()
    console.print("\n[bold cyan]═══ Sling Environment Smoke Test ═══[/bold cyan]\n")

    console.print("[bold]Test 1:[/bold] Environment creation and space validation")
    env = SlingshotEnv()
    console.print(f"  Observation space: {env.observation_space}")
    console.print(f"  Action space: {env.action_space}")
    assert env.observation_space.shape == (OBS_DIM,)
    assert env.action_space.shape == (2,)
    console.print("  ✅ Spaces correct")

    console.print("\n[bold]Test 2:[/bold] Full round with random shots")
    obs, info = env.reset(seed=42)
    steps = 0
    terminated = False
    while not terminated:
        obs, reward, terminated, truncated, info = env.step(env.action_space.sample())
        steps += 1
        console.print(f"  Shot {steps}: reward={reward:.2f}, pigs_left={info['pigs_left']}, outcome={info['outcome']}")
    assert steps <= BIRDS_PER_ROUND
    console.print("  ✅ Round ends before the birds run out")

    console.print("\n[bold green]All slingshot environment tests passed![/bold green]\n")
