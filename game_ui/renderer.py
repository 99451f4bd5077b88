"""
Sling UI: Scene Renderer

Draws a WorldState onto a matplotlib Axes in canvas coordinates (y down).
`SceneRenderer` owns one artist per drawable and only updates their
properties each frame; `draw_level` is a one-off static drawing used for
saved plots.
"""

from typing import List

import numpy as np
from matplotlib.axes import Axes
from matplotlib.lines import Line2D
from matplotlib.patches import Circle, Rectangle, Wedge

from slingshot_engine.world import WorldState

# ---------- Palette ----------
SKY_COLOR = "#bfe6ff"
GRASS_COLOR = "#7cc36c"
SAND_COLOR = "#f7d76b"
TRUNK_COLOR = "#6b4a2b"
CANOPY_COLOR = "#4b2f15"
SLING_COLOR = "#4b2f15"
BAND_COLOR = "#3a1c0f"
BIRD_COLOR = "#ff5a5f"
BLOCK_COLOR = "#d9a441"
BLOCK_HIT_COLOR = "#b7b7b7"
BLOCK_EDGE_COLOR = "#9e7330"
PIG_COLOR = "#6fcf5b"
PIG_HIT_COLOR = "#a4a4a4"
PIG_EYE_COLOR = "#1c3d1f"
PIG_HIT_EYE_COLOR = "#666666"
PREVIEW_COLOR = (1.0, 90 / 255, 95 / 255, 0.5)

# Sling frame, in canvas pixels
SLING_FRAME = [(110, 420), (140, 300), (170, 420)]
BAND_FRONT = (140, 305)
BAND_BACK = (170, 410)


def setup_axes(ax: Axes, world: WorldState) -> None:
    """Canvas-style axes: origin top-left, y down, no ticks."""
    ax.set_xlim(0, world.width)
    ax.set_ylim(world.height, 0)
    ax.set_aspect("equal")
    ax.set_facecolor(SKY_COLOR)
    ax.set_xticks([])
    ax.set_yticks([])


def draw_background(ax: Axes, world: WorldState) -> None:
    """Grass and sand bands plus the decorative tree."""
    w, h = world.width, world.height
    ax.add_patch(Rectangle((0, h * 0.62), w, h * 0.38, color=GRASS_COLOR, zorder=0))
    ax.add_patch(Rectangle((0, h * 0.72), w, h * 0.28, color=SAND_COLOR, zorder=0))
    ax.add_patch(Rectangle((40, 330), 18, 120, color=TRUNK_COLOR, zorder=0))
    ax.add_patch(Wedge((52, 320), 26, 180, 360, color=CANOPY_COLOR, zorder=0))
    xs, ys = zip(*SLING_FRAME)
    ax.add_line(Line2D(xs, ys, color=SLING_COLOR, linewidth=4, zorder=1))


def draw_level(ax: Axes, world: WorldState) -> None:
    """Static drawing of the whole scene, for saved figures."""
    setup_axes(ax, world)
    draw_background(ax, world)
    for block in world.blocks:
        ax.add_patch(Rectangle(
            tuple(block.position), block.width, block.height,
            facecolor=BLOCK_HIT_COLOR if block.hit else BLOCK_COLOR,
            edgecolor=BLOCK_EDGE_COLOR, zorder=2,
        ))
    for pig in world.pigs:
        ax.add_patch(Circle(
            tuple(pig.position), pig.radius,
            color=PIG_HIT_COLOR if pig.hit else PIG_COLOR, zorder=3,
        ))


class SceneRenderer:
    """Per-frame view of a WorldState.

    Artists are created once; `update` restyles and repositions them.
    The world's target lists are re-created on reset, so targets are
    matched by index.
    """

    def __init__(self, ax: Axes, world: WorldState):
        self.ax = ax
        self.world = world

        setup_axes(ax, world)
        draw_background(ax, world)

        self.block_patches: List[Rectangle] = []
        for block in world.blocks:
            patch = Rectangle(tuple(block.position), block.width, block.height,
                              edgecolor=BLOCK_EDGE_COLOR, zorder=2)
            ax.add_patch(patch)
            self.block_patches.append(patch)

        self.pig_patches: List[Circle] = []
        self.pig_eyes: List[List[Circle]] = []
        for pig in world.pigs:
            body = Circle(tuple(pig.position), pig.radius, zorder=3)
            eyes = [
                Circle((pig.position[0] - 5, pig.position[1] - 4), 3, zorder=4),
                Circle((pig.position[0] + 6, pig.position[1] - 4), 3, zorder=4),
            ]
            ax.add_patch(body)
            for eye in eyes:
                ax.add_patch(eye)
            self.pig_patches.append(body)
            self.pig_eyes.append(eyes)

        self.band = Line2D([], [], color=BAND_COLOR, linewidth=3, zorder=5)
        ax.add_line(self.band)
        self.preview = Line2D([], [], color=PREVIEW_COLOR, linewidth=2,
                              linestyle=(0, (6, 6)), zorder=5)
        ax.add_line(self.preview)

        self.bird = Circle((0, 0), world.bird.radius, color=BIRD_COLOR, zorder=6)
        self.bird_eye = Circle((0, 0), 5, color="white", zorder=7)
        self.bird_pupil = Circle((0, 0), 2, color="#1f1f1f", zorder=8)
        for patch in (self.bird, self.bird_eye, self.bird_pupil):
            ax.add_patch(patch)

        # HUD
        self.counts_text = ax.text(16, 28, "", fontsize=12, fontweight="bold", zorder=10)
        self.status_text = ax.text(world.width / 2, 28, "", fontsize=12,
                                   ha="center", zorder=10)

        self.update("")

    def update(self, status: str) -> list:
        """Sync every artist with the world. Returns the artists touched."""
        world = self.world

        for patch, block in zip(self.block_patches, world.blocks):
            patch.set_facecolor(BLOCK_HIT_COLOR if block.hit else BLOCK_COLOR)

        for body, eyes, pig in zip(self.pig_patches, self.pig_eyes, world.pigs):
            body.set_facecolor(PIG_HIT_COLOR if pig.hit else PIG_COLOR)
            for eye in eyes:
                eye.set_facecolor(PIG_HIT_EYE_COLOR if pig.hit else PIG_EYE_COLOR)

        bx, by = world.bird.position
        self.band.set_data([BAND_FRONT[0], bx, BAND_BACK[0]], [BAND_FRONT[1], by, BAND_BACK[1]])

        if world.is_dragging:
            ax_, ay_ = world.anchor
            self.preview.set_data([bx, ax_], [by, ay_])
            self.preview.set_visible(True)
        else:
            self.preview.set_visible(False)

        self.bird.center = (bx, by)
        self.bird.set_radius(world.bird.radius)
        self.bird_eye.center = (bx + 6, by - 4)
        self.bird_pupil.center = (bx + 7, by - 4)

        self.counts_text.set_text(f"Birds: {world.birds_left}    Pigs: {world.pigs_left}")
        self.status_text.set_text(status)

        return [
            *self.block_patches, *self.pig_patches,
            *[eye for eyes in self.pig_eyes for eye in eyes],
            self.band, self.preview, self.bird, self.bird_eye, self.bird_pupil,
            self.counts_text, self.status_text,
        ]


def trajectory_xy(trajectory) -> np.ndarray:
    """(N, 2) array of positions from a list of (position, velocity)."""
    if not trajectory:
        return np.zeros((0, 2))
    return np.array([p for p, _ in trajectory])
