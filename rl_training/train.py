"""
Sling RL Training: Main Training Script

Trains a PPO aiming policy on the slingshot environment with Stable-Baselines3.
Supports vectorized environments (SubprocVecEnv) for parallel rollout collection.

Usage:
    python rl_training/train.py
    python rl_training/train.py --num-envs 8 --timesteps 500000
    python rl_training/train.py --resume rl_training/checkpoints/slingshot_best.zip
    python rl_training/train.py --quick-test
"""

import argparse
import os
import sys
import time
from collections import deque
from pathlib import Path

import torch
import yaml
from rich.console import Console

from stable_baselines3 import PPO
from stable_baselines3.common.callbacks import BaseCallback
from stable_baselines3.common.monitor import Monitor
from stable_baselines3.common.utils import set_random_seed
from stable_baselines3.common.vec_env import DummyVecEnv, SubprocVecEnv, VecNormalize

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from rl_training.envs.slingshot_env import SlingshotEnv

console = Console()

# ---------- Paths ----------
CONFIGS_DIR = Path(__file__).resolve().parent / "configs"
CHECKPOINTS_DIR = Path(__file__).resolve().parent / "checkpoints"
LOGS_DIR = Path(__file__).resolve().parent / "logs"


def load_training_config(config_path: Path = None) -> dict:
    """Load training settings from YAML."""
    if config_path is None:
        config_path = CONFIGS_DIR / "training.yaml"
    with open(config_path) as f:
        data = yaml.safe_load(f)
    # Fail early on a config missing a required section
    for key in ("total_timesteps", "num_envs", "seed", "env", "ppo"):
        if key not in data:
            raise KeyError(f"training config {config_path} is missing '{key}'")
    return data


def get_device(requested: str = "cpu") -> str:
    """Determine best available device."""
    if requested == "cuda":
        if torch.cuda.is_available():
            return "cuda"
        console.print("[yellow]⚠ CUDA not available, falling back to CPU[/yellow]")
    return "cpu"


def make_env(rank: int, seed: int, env_config: dict, log_dir: Path = None):
    """Factory function that returns a callable to create a Monitor-wrapped SlingshotEnv."""
    def _init():
        env = SlingshotEnv(env_config=env_config)
        monitor_path = str(log_dir / f"monitor_{rank}") if log_dir else None
        env = Monitor(env, filename=monitor_path)
        env.reset(seed=seed + rank)
        return env
    set_random_seed(seed + rank)
    return _init


def create_vec_env(num_envs: int, env_config: dict, seed: int = 42, log_dir: Path = None):
    """Create a vectorized environment with Monitor wrappers."""
    if num_envs > 1:
        return SubprocVecEnv(
            [make_env(i, seed, env_config, log_dir) for i in range(num_envs)],
        )
    return DummyVecEnv([make_env(0, seed, env_config, log_dir)])


# ---------- Custom Callbacks ----------

class WinRateCallback(BaseCallback):
    """Tracks the rolling round win rate, checkpoints and keeps the best model."""

    def __init__(
        self,
        checkpoint_dir: Path,
        window_size: int = 200,
        checkpoint_freq: int = 25000,
        verbose: int = 1,
    ):
        super().__init__(verbose)
        self.checkpoint_dir = checkpoint_dir
        self.window_size = window_size
        self.checkpoint_freq = checkpoint_freq

        self.win_history = deque(maxlen=window_size)
        self.round_count = 0
        self.best_win_rate = 0.0
        self.last_checkpoint_step = 0

    @property
    def win_rate(self) -> float:
        if len(self.win_history) == 0:
            return 0.0
        return sum(self.win_history) / len(self.win_history)

    def _on_step(self) -> bool:
        # One info per sub-env; only finished rounds carry a final outcome
        infos = self.locals.get("infos", [])
        for info in infos:
            if info.get("outcome") in ("won", "lost"):
                self.win_history.append(1.0 if info["outcome"] == "won" else 0.0)
                self.round_count += 1

        if self.round_count > 0 and self.round_count % 100 == 0:
            self.logger.record("rounds/win_rate", self.win_rate)
            self.logger.record("rounds/count", self.round_count)

        if self.num_timesteps - self.last_checkpoint_step >= self.checkpoint_freq:
            self._save("step_" + str(self.num_timesteps))
            self.last_checkpoint_step = self.num_timesteps
            if self.verbose:
                console.print(f"  💾 Checkpoint saved at step {self.num_timesteps:,} (win rate: {self.win_rate:.1%})")

        if self.win_rate > self.best_win_rate and len(self.win_history) >= min(100, self.window_size):
            self.best_win_rate = self.win_rate
            self._save("best")

        return True

    def _save(self, tag: str) -> None:
        self.model.save(str(self.checkpoint_dir / f"slingshot_{tag}.zip"))
        # VecNormalize stats must travel with the model
        self.training_env.save(str(self.checkpoint_dir / f"vecnormalize_slingshot_{tag}.pkl"))


# ---------- Training ----------
def train(
    config: dict,
    device: str = "cpu",
    resume_path: str = None,
    quick_test: bool = False,
):
    """Run PPO on the slingshot environment and save the final model."""
    num_envs = config["num_envs"]
    total_timesteps = config["total_timesteps"]
    ppo_cfg = dict(config["ppo"])
    net_arch = ppo_cfg.pop("net_arch", [128, 128])

    if quick_test:
        total_timesteps = ppo_cfg["n_steps"] * num_envs

    console.print(f"\n[bold cyan]═══ Sling Training ═══[/bold cyan]")
    console.print(f"  Device: {device}")
    console.print(f"  Parallel envs: {num_envs}")
    console.print(f"  Total timesteps: {total_timesteps:,}")
    console.print(f"  Env config: {config['env']}")

    CHECKPOINTS_DIR.mkdir(parents=True, exist_ok=True)
    LOGS_DIR.mkdir(parents=True, exist_ok=True)

    base_vec_env = create_vec_env(num_envs, config["env"], seed=config["seed"], log_dir=LOGS_DIR)

    if resume_path:
        console.print(f"  Resuming from: {resume_path}")
        vn_path = Path(resume_path).parent / f"vecnormalize_{Path(resume_path).stem}.pkl"
        if vn_path.exists():
            env = VecNormalize.load(str(vn_path), base_vec_env)
            env.training = True
            console.print(f"  Loaded VecNormalize stats: {vn_path.name}")
        else:
            console.print("  [yellow]⚠ No VecNormalize stats found, using fresh stats[/yellow]")
            env = VecNormalize(base_vec_env, norm_obs=True, norm_reward=True, clip_obs=10.0)
        model = PPO.load(resume_path, env=env, device=device)
    else:
        env = VecNormalize(base_vec_env, norm_obs=True, norm_reward=True, clip_obs=10.0)
        policy_kwargs = dict(
            net_arch=dict(pi=list(net_arch), vf=list(net_arch)),
            activation_fn=torch.nn.Tanh,
        )
        model = PPO(
            "MlpPolicy",
            env,
            policy_kwargs=policy_kwargs,
            verbose=1,
            seed=config["seed"],
            device=device,
            tensorboard_log=str(LOGS_DIR),
            **ppo_cfg,
        )

    callback = WinRateCallback(
        checkpoint_dir=CHECKPOINTS_DIR,
        window_size=config.get("win_window", 200),
        checkpoint_freq=config.get("checkpoint_freq", 25000) if not quick_test else ppo_cfg["n_steps"],
    )

    console.print(f"\n[bold]Starting training...[/bold]\n")
    start_time = time.time()

    try:
        model.learn(
            total_timesteps=total_timesteps,
            callback=callback,
            tb_log_name="ppo_slingshot",
            reset_num_timesteps=resume_path is None,
        )
    except KeyboardInterrupt:
        console.print("\n[yellow]Training interrupted by user[/yellow]")

    elapsed = time.time() - start_time

    final_path = CHECKPOINTS_DIR / "slingshot_final.zip"
    model.save(str(final_path))
    env.save(str(CHECKPOINTS_DIR / "vecnormalize_slingshot_final.pkl"))
    env.close()

    console.print(f"\n[bold cyan]═══ Training Summary ═══[/bold cyan]")
    console.print(f"  Time: {elapsed:.0f}s ({elapsed/60:.1f}min)")
    console.print(f"  Rounds: {callback.round_count:,}")
    console.print(f"  Final win rate: {callback.win_rate:.1%} (best {callback.best_win_rate:.1%})")
    console.print(f"  Model saved: {final_path}")

    return model


# ---------- CLI ----------
def main():
    parser = argparse.ArgumentParser(description="Sling RL Training")
    parser.add_argument("--config", type=str, default=None,
                        help="Path to training YAML (default: rl_training/configs/training.yaml)")
    parser.add_argument("--device", type=str, default="cpu", choices=["cpu", "cuda"],
                        help="Training device (default: cpu)")
    parser.add_argument("--timesteps", type=int, default=None,
                        help="Override total training timesteps")
    parser.add_argument("--num-envs", type=int, default=None, dest="num_envs",
                        help="Override number of parallel environments")
    parser.add_argument("--resume", type=str, default=None,
                        help="Path to checkpoint .zip to resume from")
    parser.add_argument("--quick-test", action="store_true", dest="quick_test",
                        help="Quick test mode (one rollout)")
    args = parser.parse_args()

    try:
        config = load_training_config(Path(args.config) if args.config else None)
    except (FileNotFoundError, KeyError) as e:
        console.print(f"[red]Error loading training config: {e}[/red]")
        sys.exit(1)

    if args.timesteps is not None:
        config["total_timesteps"] = args.timesteps
    if args.num_envs is not None:
        config["num_envs"] = args.num_envs

    train(
        config=config,
        device=get_device(args.device),
        resume_path=args.resume,
        quick_test=args.quick_test,
    )


if __name__ == "__main__":
    main()
