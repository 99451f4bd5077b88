"""
Sling RL Training: Evaluation Script

Evaluate a trained aiming policy (or a random baseline) over many rounds,
print a results table and optionally plot the shots over the level.

Usage:
    python rl_training/evaluate.py --model rl_training/checkpoints/slingshot_final.zip
    python rl_training/evaluate.py --model rl_training/checkpoints/slingshot_best.zip --rounds 200 --visualize
    python rl_training/evaluate.py --random --rounds 50  # Random baseline
"""

import argparse
import os
import sys
from pathlib import Path

import numpy as np
import matplotlib
matplotlib.use("Agg")  # Non-interactive backend for saving plots
import matplotlib.pyplot as plt
from matplotlib.lines import Line2D
from rich.console import Console
from rich.table import Table

from stable_baselines3 import PPO
from stable_baselines3.common.monitor import Monitor
from stable_baselines3.common.vec_env import DummyVecEnv, VecNormalize

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from game_ui.renderer import draw_level, trajectory_xy
from rl_training.envs.slingshot_env import SlingshotEnv
from slingshot_engine.world import WorldState

console = Console()

CHECKPOINTS_DIR = Path(__file__).resolve().parent / "checkpoints"
LOGS_DIR = Path(__file__).resolve().parent / "logs"
PLOTS_DIR = LOGS_DIR / "eval_plots"


def find_vecnorm_stats(model_path: str, vecnorm_path: str = None) -> str:
    """Locate VecNormalize stats for a model: explicit path, then sibling file."""
    if vecnorm_path and os.path.exists(vecnorm_path):
        return vecnorm_path

    candidate = Path(model_path).parent / f"vecnormalize_{Path(model_path).stem}.pkl"
    if candidate.exists():
        return str(candidate)
    return None


def evaluate_rounds(
    model,
    n_rounds: int = 100,
    use_random: bool = False,
    vec_normalize: VecNormalize = None,
    env_config: dict = None,
    keep_shots: int = 12,
) -> dict:
    """Play `n_rounds` full rounds and collect statistics.

    Returns dict with: win_rate, avg_reward, avg_pigs_hit, avg_shots, shots.
    """
    env = SlingshotEnv(env_config=env_config)

    wins = 0
    total_reward = 0.0
    pigs_hit = []
    shots_used = []
    shots = []

    for i in range(n_rounds):
        obs, _ = env.reset(seed=i)
        terminated = truncated = False
        round_reward = 0.0
        round_pigs = 0
        round_shots = 0

        while not (terminated or truncated):
            if use_random:
                action = env.action_space.sample()
            else:
                obs_in = vec_normalize.normalize_obs(obs) if vec_normalize is not None else obs
                action, _ = model.predict(obs_in, deterministic=True)

            obs, reward, terminated, truncated, info = env.step(action)
            round_reward += reward
            round_pigs += info["pigs_hit"]
            round_shots += 1

            if len(shots) < keep_shots and env.last_trajectory:
                shots.append({
                    "points": trajectory_xy(env.last_trajectory),
                    "pigs_hit": info["pigs_hit"],
                })

        total_reward += round_reward
        pigs_hit.append(round_pigs)
        shots_used.append(round_shots)
        if info["outcome"] == "won":
            wins += 1

    env.close()

    return {
        "win_rate": wins / n_rounds,
        "wins": wins,
        "total": n_rounds,
        "avg_reward": total_reward / n_rounds,
        "avg_pigs_hit": float(np.mean(pigs_hit)),
        "avg_shots": float(np.mean(shots_used)),
        "shots": shots,
    }


def visualize_shots(results: dict, save_dir: Path, label: str) -> str:
    """Plot recorded shots over the level and save to file. Returns path."""
    shots = results["shots"]
    if not shots:
        return ""

    fig, ax = plt.subplots(figsize=(12, 7.5))
    draw_level(ax, WorldState.new())

    for shot in shots:
        pts = shot["points"]
        color = "green" if shot["pigs_hit"] else "red"
        ax.plot(pts[:, 0], pts[:, 1], color=color, alpha=0.7, linewidth=1.5, zorder=5)
        ax.scatter(pts[-1, 0], pts[-1, 1], color=color, s=20, zorder=6)

    ax.set_title(
        f"Sling shots ({label})\n"
        f"Win rate: {results['win_rate']:.1%} | Avg reward: {results['avg_reward']:.1f}",
        fontsize=12,
    )
    legend_elements = [
        Line2D([0], [0], color="green", linewidth=2, label="Hit a pig"),
        Line2D([0], [0], color="red", linewidth=2, label="Missed"),
    ]
    ax.legend(handles=legend_elements, loc="upper right")

    save_dir.mkdir(parents=True, exist_ok=True)
    path = save_dir / f"shots_{label}.png"
    fig.savefig(str(path), dpi=150, bbox_inches="tight")
    plt.close(fig)

    return str(path)


def evaluate(
    model_path: str = None,
    vecnorm_path: str = None,
    n_rounds: int = 100,
    visualize: bool = False,
    use_random: bool = False,
):
    """Main evaluation function with VecNormalize support."""

    console.print(f"\n[bold cyan]═══ Sling Evaluation ═══[/bold cyan]")

    model = None
    vec_normalize = None

    if not use_random:
        if model_path is None:
            console.print("[red]Error: --model required (or use --random)[/red]")
            return None
        console.print(f"  Model: {model_path}")
        model = PPO.load(model_path)

        vn_path = find_vecnorm_stats(model_path, vecnorm_path)
        if vn_path:
            dummy_env = DummyVecEnv([lambda: Monitor(SlingshotEnv())])
            vec_normalize = VecNormalize.load(vn_path, dummy_env)
            vec_normalize.training = False
            vec_normalize.norm_reward = False
            console.print(f"  VecNormalize: [green]Loaded from {os.path.basename(vn_path)}[/green]")
        else:
            console.print("  VecNormalize: [yellow]⚠ No stats found, using raw observations[/yellow]")
    else:
        console.print("  Using random policy (baseline)")

    console.print(f"  Rounds: {n_rounds}\n")

    results = evaluate_rounds(
        model=model,
        n_rounds=n_rounds,
        use_random=use_random,
        vec_normalize=vec_normalize,
    )

    table = Table(title="Evaluation Results")
    table.add_column("Policy", style="cyan")
    table.add_column("Win Rate", justify="right", style="green")
    table.add_column("Avg Reward", justify="right")
    table.add_column("Avg Pigs Hit", justify="right", style="yellow")
    table.add_column("Avg Shots", justify="right")
    table.add_column("Wins / Rounds", justify="right")

    label = "random" if use_random else Path(model_path).stem
    table.add_row(
        label,
        f"{results['win_rate']:.1%}",
        f"{results['avg_reward']:.1f}",
        f"{results['avg_pigs_hit']:.2f}",
        f"{results['avg_shots']:.2f}",
        f"{results['wins']}/{results['total']}",
    )
    console.print(table)

    if visualize:
        plot_path = visualize_shots(results, PLOTS_DIR, label)
        if plot_path:
            console.print(f"  📊 Plot saved: {plot_path}")

    if vec_normalize is not None:
        vec_normalize.close()

    return results


# ---------- CLI ----------
def main():
    parser = argparse.ArgumentParser(description="Sling RL Evaluation")
    parser.add_argument("--model", type=str, default=None,
                        help="Path to trained model checkpoint")
    parser.add_argument("--vecnorm", type=str, default=None,
                        help="Path to VecNormalize stats (.pkl). Auto-detected if not provided")
    parser.add_argument("--rounds", type=int, default=100,
                        help="Number of rounds to play")
    parser.add_argument("--visualize", action="store_true",
                        help="Plot recorded shots over the level")
    parser.add_argument("--random", action="store_true",
                        help="Evaluate random policy (baseline)")
    args = parser.parse_args()

    evaluate(
        model_path=args.model,
        vecnorm_path=args.vecnorm,
        n_rounds=args.rounds,
        visualize=args.visualize,
        use_random=args.random,
    )


if __name__ == "__main__":
    main()
