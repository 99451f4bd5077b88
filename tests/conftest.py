"""
Sling Test Suite: Shared Fixtures

Provides reusable pytest fixtures for all test stages.
"""

import sys
from pathlib import Path

import matplotlib
matplotlib.use("Agg")  # Headless rendering for renderer/app tests

import numpy as np
import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from slingshot_engine.game_state import simulate_shot
from slingshot_engine.sling import begin_drag, end_drag, update_drag
from slingshot_engine.world import Mode, WorldState
from rl_training.envs.slingshot_env import SlingshotEnv


# ---------- World Fixtures ----------
@pytest.fixture
def world():
    """Freshly reset world: 3 birds, 3 pigs, 3 blocks, bird on the anchor."""
    return WorldState.new()


@pytest.fixture
def flying_world(world):
    """World with the bird forced into flight (position/velocity set by the test)."""
    world.mode = Mode.FLYING
    world.bird.velocity = np.zeros(2)
    return world


@pytest.fixture
def launch():
    """Callable: pull the bird by (dx, dy) from the anchor and release it."""
    def _launch(w: WorldState, dx: float, dy: float) -> bool:
        bx, by = w.bird.position
        if not begin_drag(w, bx, by):
            return False
        ax, ay = w.anchor
        update_drag(w, ax + dx, ay + dy)
        return end_drag(w)
    return _launch


@pytest.fixture
def play_shot(launch):
    """Callable: launch and simulate the shot to rest. Returns the ShotResult."""
    def _play(w: WorldState, dx: float, dy: float, max_ticks: int = 5000):
        assert launch(w, dx, dy), "launch was refused"
        return simulate_shot(w, max_ticks=max_ticks)
    return _play


# ---------- Environment Fixtures ----------
@pytest.fixture
def default_env():
    """Slingshot environment with default config."""
    env = SlingshotEnv()
    yield env
    env.close()


@pytest.fixture
def noisy_env():
    """Environment with aim noise, so seeds matter."""
    env = SlingshotEnv(env_config={"aim_noise": 0.1})
    yield env
    env.close()


@pytest.fixture
def seeded_rng():
    """Seeded numpy RNG for determinism."""
    return np.random.default_rng(seed=42)
