"""
Sling Engine
Slingshot flight physics, target collisions and round bookkeeping.
"""

from slingshot_engine.world import (
    Mode,
    Hint,
    Projectile,
    CircleTarget,
    RectTarget,
    WorldState,
    reset_world,
    reset_projectile,
)
from slingshot_engine.sling import (
    begin_drag,
    update_drag,
    end_drag,
    clamp_pull,
    compute_launch_velocity,
)
from slingshot_engine.ballistics import integrate
from slingshot_engine.collision import check_collisions
from slingshot_engine.game_state import (
    Outcome,
    evaluate_status,
    round_outcome,
    tick,
    simulate_shot,
)

__all__ = [
    "Mode",
    "Hint",
    "Projectile",
    "CircleTarget",
    "RectTarget",
    "WorldState",
    "reset_world",
    "reset_projectile",
    "begin_drag",
    "update_drag",
    "end_drag",
    "clamp_pull",
    "compute_launch_velocity",
    "integrate",
    "check_collisions",
    "Outcome",
    "evaluate_status",
    "round_outcome",
    "tick",
    "simulate_shot",
]
