"""
Sling Engine: Game State and Tick Loop

`evaluate_status` is a pure function of the world; `tick` runs one frame of
integrate -> collide -> evaluate; `simulate_shot` plays a launched bird out
headlessly and records its trajectory.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Tuple

import numpy as np

from slingshot_engine.ballistics import integrate, settle, step_flight
from slingshot_engine.collision import Target, check_collisions
from slingshot_engine.world import Hint, WorldState

VICTORY_MESSAGE = "All pigs down! You win!"
DEFEAT_MESSAGE = "Out of birds. Press reset to try again."

HINT_MESSAGES = {
    Hint.READY: "Drag the bird to start",
    Hint.DRAGGING: "Release to launch",
    Hint.FLYING: "Flying...",
    Hint.HIT: "Hit!",
    Hint.NEXT_SHOT: "Drag the next bird",
}


class Outcome(Enum):
    PLAYING = "playing"
    WON = "won"
    LOST = "lost"


def round_outcome(world: WorldState) -> Outcome:
    """Won once every pig is hit; lost once the last bird has landed."""
    if world.pigs_left == 0:
        return Outcome.WON
    if world.birds_left == 0 and not world.is_flying:
        return Outcome.LOST
    return Outcome.PLAYING


def evaluate_status(world: WorldState) -> str:
    """Status line for the HUD. Reads the world, never mutates it."""
    outcome = round_outcome(world)
    if outcome is Outcome.WON:
        return VICTORY_MESSAGE
    if outcome is Outcome.LOST:
        return DEFEAT_MESSAGE
    return HINT_MESSAGES[world.hint]


@dataclass
class TickResult:
    """What happened during one call to `tick`."""
    hits: List[Target] = field(default_factory=list)
    came_to_rest: bool = False
    status: str = ""


def tick(world: WorldState) -> TickResult:
    """Run one frame. Physics and collisions only run while a bird flies."""
    result = TickResult()
    if world.is_flying:
        result.came_to_rest = integrate(world)
        result.hits = check_collisions(world)
    result.status = evaluate_status(world)
    return result


@dataclass
class ShotResult:
    """Outcome of `simulate_shot`."""
    trajectory: List[Tuple[np.ndarray, np.ndarray]]
    hits: List[Target]
    ticks: int
    truncated: bool


def simulate_shot(world: WorldState, max_ticks: int = 2000) -> ShotResult:
    """Tick a launched bird until it leaves flight or `max_ticks` runs out.

    The trajectory holds (position, velocity) copies, starting with the
    launch state. The last entry is the state at rest, recorded before the
    bird is moved back to the anchor for the next shot.

    Args:
        world: World with a bird in flight. Any other mode returns at once.
        max_ticks: Safety cap on frames simulated.

    Returns:
        ShotResult; `truncated` is True if the bird was still flying at the cap.
    """
    bird = world.bird
    trajectory = [(bird.position.copy(), bird.velocity.copy())]
    hits: List[Target] = []
    ticks = 0

    while world.is_flying and ticks < max_ticks:
        step_flight(world)
        ticks += 1
        # settle() may move the bird back to the anchor; keep where it stopped.
        state = (bird.position.copy(), bird.velocity.copy())
        if settle(world):
            trajectory.append(state)
            break
        hits.extend(check_collisions(world))
        trajectory.append((bird.position.copy(), bird.velocity.copy()))

    return ShotResult(
        trajectory=trajectory,
        hits=hits,
        ticks=ticks,
        truncated=world.is_flying,
    )
