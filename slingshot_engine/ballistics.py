"""
Sling Engine: Flight Integrator

Per-tick projectile motion using Euler integration, with
restitution against the ground line and the side walls of the play surface.

Velocity is updated before position (semi-implicit), one tick at a time,
with no explicit dt: the constants in `world` are tuned per frame.
"""

import numpy as np

from slingshot_engine.world import (
    GRAVITY,
    GROUND_FRICTION,
    GROUND_RESTITUTION,
    REST_EPSILON,
    WALL_RESTITUTION,
    Hint,
    Mode,
    WorldState,
    reset_projectile,
)


# ---------- Physics Functions ----------
def _bounce_ground(world: WorldState) -> bool:
    """Clamp the bird onto the ground line and damp both axes."""
    bird = world.bird
    if bird.position[1] + bird.radius <= world.ground_y:
        return False

    bird.position[1] = world.ground_y - bird.radius
    bird.velocity[1] *= -GROUND_RESTITUTION
    bird.velocity[0] *= GROUND_FRICTION
    return True


def _bounce_walls(world: WorldState) -> bool:
    """Reflect off the left/right edges, clamping the bird back inside."""
    bird = world.bird
    r = bird.radius
    if bird.position[0] - r >= 0.0 and bird.position[0] + r <= world.width:
        return False

    bird.position[0] = np.clip(bird.position[0], r, world.width - r)
    bird.velocity[0] *= -WALL_RESTITUTION
    return True


def is_at_rest(velocity: np.ndarray, epsilon: float = REST_EPSILON) -> bool:
    """True when both velocity components are under `epsilon`."""
    return bool(np.all(np.abs(velocity) < epsilon))


def step_flight(world: WorldState) -> None:
    """Gravity, position, then ground and wall restitution."""
    bird = world.bird
    bird.velocity[1] += GRAVITY
    bird.position += bird.velocity

    _bounce_ground(world)
    _bounce_walls(world)


def settle(world: WorldState) -> bool:
    """End the flight if the bird is at rest.

    If the round is still on (pigs and birds both left) the next bird is
    placed on the anchor, otherwise the bird stays where it stopped.
    """
    if not is_at_rest(world.bird.velocity):
        return False

    world.mode = Mode.IDLE
    if world.pigs_left > 0 and world.birds_left > 0:
        world.hint = Hint.NEXT_SHOT
        reset_projectile(world)
    return True


def integrate(world: WorldState) -> bool:
    """Advance the flying bird by one tick.

    Returns:
        True if the bird came to rest during this tick.
    """
    if not world.is_flying:
        return False

    step_flight(world)
    return settle(world)


# ---------- Smoke Test ----------
if __name__ == "__main__":
    from rich.console import Console
    from rich.table import Table

    from slingshot_engine.sling import begin_drag, end_drag, update_drag

    console = Console()
    console.print("\n[bold cyan]═══ Sling Flight Smoke Test ═══[/bold cyan]\n")

    # Test 1: Pull 50px left, release, fly until rest
    console.print("[bold]Test 1:[/bold] 50px pull to the left, released")
    world = WorldState.new()
    ax, ay = world.anchor
    assert begin_drag(world, ax, ay)
    update_drag(world, ax - 50.0, ay)
    end_drag(world)
    console.print(f"  Launch velocity: {world.bird.velocity}")

    table = Table(title="Flight (sampled every 10 ticks)")
    table.add_column("Tick", style="cyan")
    table.add_column("Position (x, y)", style="green")
    table.add_column("Velocity (vx, vy)", style="yellow")

    ticks = 0
    while world.is_flying and ticks < 2000:
        if ticks % 10 == 0:
            p, v = world.bird.position, world.bird.velocity
            table.add_row(str(ticks), f"({p[0]:.1f}, {p[1]:.1f})", f"({v[0]:.2f}, {v[1]:.2f})")
        integrate(world)
        ticks += 1
    console.print(table)

    assert not world.is_flying, "Bird never came to rest!"
    assert world.birds_left == 2
    console.print(f"  ✅ At rest after {ticks} ticks, birds left = {world.birds_left}\n")

    # Test 2: Ground clamp
    console.print("[bold]Test 2:[/bold] Fast drop onto the ground")
    world = WorldState.new()
    world.mode = Mode.FLYING
    world.bird.position = np.array([400.0, world.ground_y - 20.0])
    world.bird.velocity = np.array([0.0, 30.0])
    integrate(world)
    assert world.bird.position[1] + world.bird.radius <= world.ground_y + 1e-9
    assert world.bird.velocity[1] < 0
    console.print(f"  ✅ Clamped at y={world.bird.position[1]:.1f}, bounced vy={world.bird.velocity[1]:.2f}\n")

    console.print("[bold green]All flight tests passed![/bold green]\n")
