"""
Sling Engine: Input Mapper

Turns pointer coordinates into a sling pull and a launch velocity.
Every entry point is a guarded no-op when called in the wrong mode, and
reports whether it did anything.
"""

import numpy as np

from slingshot_engine.world import (
    GRAB_TOLERANCE,
    LAUNCH_FACTOR,
    MAX_PULL,
    Hint,
    Mode,
    WorldState,
)


# ---------- Pure Helpers ----------
def clamp_pull(offset: np.ndarray, max_pull: float = MAX_PULL) -> np.ndarray:
    """Cap the length of a pull vector, keeping its direction."""
    offset = np.asarray(offset, dtype=np.float64)
    length = np.linalg.norm(offset)
    if length <= max_pull:
        return offset.copy()
    return offset / length * max_pull


def compute_launch_velocity(
    anchor: np.ndarray,
    position: np.ndarray,
    factor: float = LAUNCH_FACTOR,
) -> np.ndarray:
    """Launch velocity for a bird released at `position`.

    Points from the pulled position back to the anchor, so it is always
    opposite the pull and proportional to its length.
    """
    return (np.asarray(anchor, dtype=np.float64) - np.asarray(position, dtype=np.float64)) * factor


# ---------- Drag Lifecycle ----------
def begin_drag(world: WorldState, x: float, y: float) -> bool:
    """Grab the bird if the pointer lands on it.

    Ignored while a bird is flying or when no birds are left.
    """
    if world.is_flying or world.birds_left <= 0:
        return False

    bird = world.bird
    distance = np.linalg.norm(np.array([x, y], dtype=np.float64) - bird.position)
    if distance > bird.radius + GRAB_TOLERANCE:
        return False

    world.mode = Mode.DRAGGING
    world.hint = Hint.DRAGGING
    return True


def update_drag(world: WorldState, x: float, y: float) -> bool:
    """Move the bird along the pull, capped at MAX_PULL from the anchor."""
    if not world.is_dragging:
        return False

    offset = np.array([x, y], dtype=np.float64) - world.anchor
    world.bird.position = world.anchor + clamp_pull(offset)
    return True


def end_drag(world: WorldState) -> bool:
    """Release the sling: set the launch velocity and spend one bird."""
    if not world.is_dragging:
        return False

    world.bird.velocity = compute_launch_velocity(world.anchor, world.bird.position)
    world.mode = Mode.FLYING
    world.birds_left -= 1
    world.hint = Hint.FLYING
    return True
