"""
Sling Engine: Collision Detection

Hit detection between the bird and the level's targets.
Blocks are tested with a circle-vs-rectangle closest-point test and push
back on the bird; pigs are tested circle-vs-circle and only get marked.
"""

from typing import List, Union

import numpy as np

from slingshot_engine.world import (
    BLOCK_IMPULSE,
    CircleTarget,
    Hint,
    RectTarget,
    WorldState,
)

Target = Union[CircleTarget, RectTarget]


# ---------- Geometry ----------
def closest_point_on_rect(point: np.ndarray, rect: RectTarget) -> np.ndarray:
    """Point of `rect` nearest to `point` (clamp each axis to the bounds)."""
    x_min, y_min, x_max, y_max = rect.bounds
    return np.array([
        np.clip(point[0], x_min, x_max),
        np.clip(point[1], y_min, y_max),
    ])


def circle_hits_rect(center: np.ndarray, radius: float, rect: RectTarget) -> bool:
    """Strict overlap: touching edges do not count."""
    d = np.asarray(center, dtype=np.float64) - closest_point_on_rect(center, rect)
    return bool(np.dot(d, d) < radius * radius)


def circles_overlap(c1: np.ndarray, r1: float, c2: np.ndarray, r2: float) -> bool:
    """Strict overlap of two circles."""
    distance = np.linalg.norm(np.asarray(c1, dtype=np.float64) - np.asarray(c2, dtype=np.float64))
    return bool(distance < r1 + r2)


# ---------- Hit Detection ----------
def check_collisions(world: WorldState) -> List[Target]:
    """Test the flying bird against every target that is still standing.

    Blocks are evaluated before pigs, each in list order. A block hit
    scales vx down and reflects vy; a pig hit only marks the pig.
    Hit flags only ever go from False to True here.

    Returns:
        Targets newly marked as hit during this call, in evaluation order.
    """
    if not world.is_flying:
        return []

    bird = world.bird
    newly_hit: List[Target] = []

    for block in world.blocks:
        if block.hit:
            continue
        if circle_hits_rect(bird.position, bird.radius, block):
            block.hit = True
            bird.velocity[0] *= BLOCK_IMPULSE[0]
            bird.velocity[1] *= BLOCK_IMPULSE[1]
            newly_hit.append(block)

    for pig in world.pigs:
        if pig.hit:
            continue
        if circles_overlap(bird.position, bird.radius, pig.position, pig.radius):
            pig.hit = True
            world.hint = Hint.HIT
            newly_hit.append(pig)

    return newly_hit


# ---------- Smoke Test ----------
if __name__ == "__main__":
    from rich.console import Console

    from slingshot_engine.world import Mode

    console = Console()
    console.print("\n[bold cyan]═══ Sling Collision Smoke Test ═══[/bold cyan]\n")

    # Test 1: Bird overlapping the first block
    console.print("[bold]Test 1:[/bold] Bird grazing the left face of block 0")
    world = WorldState.new()
    world.mode = Mode.FLYING
    block = world.blocks[0]
    world.bird.position = np.array([block.position[0] - 10.0, block.position[1] + 20.0])
    world.bird.velocity = np.array([10.0, 4.0])
    hits = check_collisions(world)
    assert hits == [block], "Expected exactly block 0 to be hit"
    assert np.allclose(world.bird.velocity, [7.0, -2.4])
    console.print(f"  ✅ Block hit, velocity after impulse = {world.bird.velocity}")

    # Test 2: Bird overlapping a pig
    console.print("\n[bold]Test 2:[/bold] Bird on top of pig 2")
    world = WorldState.new()
    world.mode = Mode.FLYING
    pig = world.pigs[2]
    world.bird.position = pig.position + np.array([0.0, -(pig.radius + world.bird.radius - 1.0)])
    hits = check_collisions(world)
    assert pig in hits and pig.hit
    assert world.pigs_left == 2
    console.print(f"  ✅ Pig hit, pigs left = {world.pigs_left}")

    # Test 3: Exactly touching is not a hit
    console.print("\n[bold]Test 3:[/bold] Tangent circles")
    assert not circles_overlap(np.array([0.0, 0.0]), 1.0, np.array([2.0, 0.0]), 1.0)
    console.print("  ✅ Tangent circles do not overlap")

    console.print("\n[bold green]All collision tests passed![/bold green]\n")
