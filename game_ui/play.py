"""
Sling UI: Interactive Game Window

Runs the slingshot game in a matplotlib window. Pointer events drive the
sling, a FuncAnimation callback runs one tick per frame, and a button (or
the `r` key) resets the round.

Usage:
    python -m game_ui.play
    python -m game_ui.play --fps 30
"""

import argparse
import os
import sys

import matplotlib.pyplot as plt
from matplotlib.animation import FuncAnimation
from matplotlib.widgets import Button
from rich.console import Console

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from game_ui.renderer import SceneRenderer
from slingshot_engine.game_state import Outcome, evaluate_status, round_outcome, tick
from slingshot_engine.sling import begin_drag, end_drag, update_drag
from slingshot_engine.world import CircleTarget, WorldState, reset_world

console = Console()


class SlingshotApp:
    """Binds a WorldState to a matplotlib figure."""

    def __init__(self, fps: int = 60, verbose: bool = True):
        self.fps = fps
        self.verbose = verbose
        self.world = WorldState.new()
        self.last_outcome = Outcome.PLAYING

        self.fig = plt.figure(figsize=(9.6, 6.6))
        self.ax = self.fig.add_axes([0.0, 0.09, 1.0, 0.91])
        if self.fig.canvas.manager is not None:
            self.fig.canvas.manager.set_window_title("Sling")
        self.renderer = SceneRenderer(self.ax, self.world)

        button_ax = self.fig.add_axes([0.44, 0.01, 0.12, 0.06])
        self.reset_button = Button(button_ax, "Reset")
        self.reset_button.on_clicked(lambda _event: self.reset())

        canvas = self.fig.canvas
        canvas.mpl_connect("button_press_event", self.on_press)
        canvas.mpl_connect("motion_notify_event", self.on_move)
        canvas.mpl_connect("button_release_event", self.on_release)
        canvas.mpl_connect("axes_leave_event", self.on_leave)
        canvas.mpl_connect("key_press_event", self.on_key)

        self.animation = None

    def _log(self, message: str) -> None:
        if self.verbose:
            console.print(message)

    # ---------- Input ----------
    def _in_play_area(self, event) -> bool:
        return event.inaxes is self.ax and event.xdata is not None and event.ydata is not None

    def on_press(self, event) -> None:
        if not self._in_play_area(event):
            return
        if begin_drag(self.world, event.xdata, event.ydata):
            self._log("[dim]Grabbed the bird[/dim]")

    def on_move(self, event) -> None:
        if not self._in_play_area(event):
            return
        update_drag(self.world, event.xdata, event.ydata)

    def on_release(self, event) -> None:
        if end_drag(self.world):
            v = self.world.bird.velocity
            self._log(f"🐦 Launched at ({v[0]:.2f}, {v[1]:.2f}), birds left: {self.world.birds_left}")

    def on_leave(self, event) -> None:
        if event.inaxes is self.ax:
            self.on_release(event)

    def on_key(self, event) -> None:
        if event.key == "r":
            self.reset()

    def reset(self) -> None:
        reset_world(self.world)
        self.last_outcome = Outcome.PLAYING
        self._log("[bold]Round reset[/bold]")

    # ---------- Frame ----------
    def on_frame(self, _frame) -> list:
        result = tick(self.world)
        for target in result.hits:
            kind = "pig" if isinstance(target, CircleTarget) else "block"
            self._log(f"  💥 Hit {kind} at ({target.position[0]:.0f}, {target.position[1]:.0f})")

        outcome = round_outcome(self.world)
        if outcome is not self.last_outcome:
            if outcome is Outcome.WON:
                self._log("[bold green]All pigs down![/bold green]")
            elif outcome is Outcome.LOST:
                self._log("[yellow]Out of birds[/yellow]")
            self.last_outcome = outcome

        return self.renderer.update(result.status)

    def run(self) -> None:
        self.renderer.update(evaluate_status(self.world))
        self.animation = FuncAnimation(
            self.fig,
            self.on_frame,
            interval=1000.0 / self.fps,
            blit=False,
            cache_frame_data=False,
        )
        plt.show()


# ---------- CLI ----------
def main():
    parser = argparse.ArgumentParser(description="Sling: slingshot physics toy")
    parser.add_argument("--fps", type=int, default=60,
                        help="Frames (simulation ticks) per second (default: 60)")
    parser.add_argument("--quiet", action="store_true",
                        help="Do not print gameplay events to the console")
    args = parser.parse_args()

    console.print("\n[bold cyan]═══ Sling ═══[/bold cyan]")
    console.print("  Drag the bird back and release. Press [bold]r[/bold] or Reset to start over.\n")

    SlingshotApp(fps=args.fps, verbose=not args.quiet).run()


if __name__ == "__main__":
    main()
