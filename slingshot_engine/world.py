"""
Sling Engine: World State

Holds everything the simulation mutates: the projectile ("bird"), the
circular targets ("pigs"), the rectangular targets ("blocks"), the birds
left in the round and the current interaction mode.

Coordinate system: canvas pixels, x=right, y=down.
All velocities are in pixels per tick; there is no explicit timestep.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List

import numpy as np

# ---------- Play Surface ----------
SURFACE_WIDTH = 960.0
SURFACE_HEIGHT = 600.0
GROUND_Y = SURFACE_HEIGHT * 0.72      # top of the sand band

# ---------- Sling ----------
ANCHOR = (160.0, 360.0)
BIRD_RADIUS = 18.0
BIRDS_PER_ROUND = 3
MAX_PULL = 90.0                       # max drag distance from anchor
GRAB_TOLERANCE = 10.0                 # extra pick-up slack around the bird
LAUNCH_FACTOR = 0.22                  # velocity per pixel of pull

# ---------- Flight Tuning ----------
# Gameplay feel depends on these exact values; do not re-derive them.
GRAVITY = 0.35                        # px/tick²
GROUND_RESTITUTION = 0.4              # vy scale on ground bounce
GROUND_FRICTION = 0.85                # vx scale on ground bounce
WALL_RESTITUTION = 0.6                # vx scale on wall bounce
REST_EPSILON = 0.15                   # |v| below this on both axes = at rest
BLOCK_IMPULSE = (0.7, -0.6)           # (vx, vy) scale when striking a block

# ---------- Level Layout ----------
PIG_LAYOUT = [
    (690.0, 310.0, 22.0),
    (760.0, 280.0, 20.0),
    (720.0, 250.0, 18.0),
]
BLOCK_LAYOUT = [
    (670.0, 360.0, 40.0, 80.0),
    (720.0, 360.0, 40.0, 80.0),
    (750.0, 300.0, 100.0, 20.0),
]


class Mode(Enum):
    """Interaction mode. Exactly one holds at any time."""
    IDLE = "idle"
    DRAGGING = "dragging"
    FLYING = "flying"


class Hint(Enum):
    """Last gameplay event, rendered as status text by the evaluator."""
    READY = "ready"
    DRAGGING = "dragging"
    FLYING = "flying"
    HIT = "hit"
    NEXT_SHOT = "next_shot"


# ---------- Data Classes ----------
# Entities compare by identity; their numpy fields have no scalar equality.
@dataclass(eq=False)
class Projectile:
    """The bird. Position and velocity are float64 [x, y] vectors."""
    position: np.ndarray
    velocity: np.ndarray = field(default_factory=lambda: np.zeros(2))
    radius: float = BIRD_RADIUS


@dataclass(eq=False)
class CircleTarget:
    """A pig: circle at `position` (center)."""
    position: np.ndarray
    radius: float
    hit: bool = False


@dataclass(eq=False)
class RectTarget:
    """A block: axis-aligned rectangle with top-left corner at `position`."""
    position: np.ndarray
    width: float
    height: float
    hit: bool = False

    @property
    def bounds(self):
        """(x_min, y_min, x_max, y_max)."""
        x, y = self.position
        return x, y, x + self.width, y + self.height


def make_pigs() -> List[CircleTarget]:
    """Fresh pigs at the fixed level coordinates."""
    return [
        CircleTarget(position=np.array([x, y], dtype=np.float64), radius=r)
        for x, y, r in PIG_LAYOUT
    ]


def make_blocks() -> List[RectTarget]:
    """Fresh blocks at the fixed level coordinates."""
    return [
        RectTarget(position=np.array([x, y], dtype=np.float64), width=w, height=h)
        for x, y, w, h in BLOCK_LAYOUT
    ]


@dataclass
class WorldState:
    """Single mutable state object shared by every subsystem.

    Subsystems receive it explicitly; there is no module-level instance.
    `pigs_left` is always derived from the pigs' hit flags.
    """
    anchor: np.ndarray = field(default_factory=lambda: np.array(ANCHOR, dtype=np.float64))
    bird: Projectile = field(default_factory=lambda: Projectile(position=np.array(ANCHOR, dtype=np.float64)))
    pigs: List[CircleTarget] = field(default_factory=make_pigs)
    blocks: List[RectTarget] = field(default_factory=make_blocks)
    birds_left: int = BIRDS_PER_ROUND
    mode: Mode = Mode.IDLE
    hint: Hint = Hint.READY
    width: float = SURFACE_WIDTH
    height: float = SURFACE_HEIGHT
    ground_y: float = GROUND_Y

    @classmethod
    def new(cls) -> "WorldState":
        """A freshly reset world."""
        world = cls()
        reset_world(world)
        return world

    @property
    def pigs_left(self) -> int:
        return sum(1 for pig in self.pigs if not pig.hit)

    @property
    def is_dragging(self) -> bool:
        return self.mode is Mode.DRAGGING

    @property
    def is_flying(self) -> bool:
        return self.mode is Mode.FLYING

    def reset(self) -> None:
        reset_world(self)

    def reset_projectile(self) -> None:
        reset_projectile(self)


# ---------- Lifecycle ----------
def reset_projectile(world: WorldState) -> None:
    """Put the bird back on the anchor, at rest. Targets and counters are kept."""
    world.bird.position = world.anchor.copy()
    world.bird.velocity = np.zeros(2)
    world.mode = Mode.IDLE


def reset_world(world: WorldState) -> None:
    """Start a new round: full birds, fresh targets, bird on the anchor."""
    world.birds_left = BIRDS_PER_ROUND
    world.pigs = make_pigs()
    world.blocks = make_blocks()
    world.bird.radius = BIRD_RADIUS
    reset_projectile(world)
    world.hint = Hint.READY
