"""
Sling Test Suite: Stage 2: MEDIUM

Per-tick physics and collisions with hand-computed expectations.

Tests:
    - Gravity and Euler integration
    - Ground and wall restitution
    - Rest detection and re-arming the sling
    - Circle-vs-rectangle and circle-vs-circle hits, impulse, ordering
    - Tick loop gating
    - Renderer and interactive app wiring (headless)
"""

from types import SimpleNamespace

import numpy as np
import pytest
from matplotlib.colors import to_rgba
import matplotlib.pyplot as plt

from slingshot_engine.ballistics import integrate, is_at_rest
from slingshot_engine.collision import (
    check_collisions,
    circle_hits_rect,
    circles_overlap,
    closest_point_on_rect,
)
from slingshot_engine.game_state import DEFEAT_MESSAGE, HINT_MESSAGES, tick
from slingshot_engine.world import (
    ANCHOR,
    GRAVITY,
    Hint,
    Mode,
    RectTarget,
)
from game_ui.play import SlingshotApp
from game_ui.renderer import (
    BLOCK_HIT_COLOR,
    PIG_COLOR,
    PIG_HIT_COLOR,
    SceneRenderer,
)


# ============================================================
# 1. Integrator
# ============================================================

class TestIntegration:
    """Test one Euler step in open air."""

    def test_gravity_then_position(self, flying_world):
        """vy gains GRAVITY before the position moves."""
        bird = flying_world.bird
        bird.position = np.array([400.0, 200.0])
        bird.velocity = np.array([3.0, -5.0])

        came_to_rest = integrate(flying_world)

        assert came_to_rest is False
        assert np.allclose(bird.velocity, [3.0, -5.0 + GRAVITY])
        assert np.allclose(bird.position, [403.0, 200.0 - 5.0 + GRAVITY])
        assert flying_world.is_flying

    def test_integrate_only_while_flying(self, world):
        """Idle and dragging birds do not move."""
        for mode in (Mode.IDLE, Mode.DRAGGING):
            world.mode = mode
            world.bird.velocity = np.array([5.0, 5.0])
            assert integrate(world) is False
            assert np.allclose(world.bird.position, ANCHOR)


class TestGroundBounce:
    """Test the ground line."""

    def test_ground_clamp_and_damping(self, flying_world):
        """Crossing the ground clamps y and damps both axes."""
        bird = flying_world.bird
        bird.position = np.array([400.0, 410.0])
        bird.velocity = np.array([5.0, 10.0])

        integrate(flying_world)

        assert bird.position[1] == pytest.approx(flying_world.ground_y - bird.radius)
        assert bird.velocity[1] == pytest.approx(-(10.0 + GRAVITY) * 0.4)
        assert bird.velocity[0] == pytest.approx(5.0 * 0.85)
        assert bird.position[0] == pytest.approx(405.0)

    def test_fast_fall_never_below_ground(self, flying_world):
        """Even a huge downward speed ends on the ground line."""
        bird = flying_world.bird
        bird.position = np.array([300.0, 100.0])
        bird.velocity = np.array([0.0, 500.0])
        integrate(flying_world)
        assert bird.position[1] + bird.radius <= flying_world.ground_y + 1e-9


class TestWallBounce:
    """Test the left and right edges."""

    def test_right_wall(self, flying_world):
        """Right wall reflects vx and clamps x inside."""
        bird = flying_world.bird
        bird.position = np.array([940.0, 200.0])
        bird.velocity = np.array([5.0, 0.0])
        integrate(flying_world)
        assert bird.velocity[0] == pytest.approx(-3.0)
        assert bird.position[0] == pytest.approx(flying_world.width - bird.radius)

    def test_left_wall(self, flying_world):
        """Left wall reflects vx and clamps x inside."""
        bird = flying_world.bird
        bird.position = np.array([20.0, 200.0])
        bird.velocity = np.array([-5.0, 0.0])
        integrate(flying_world)
        assert bird.velocity[0] == pytest.approx(3.0)
        assert bird.position[0] == pytest.approx(bird.radius)


class TestRestDetection:
    """Test leaving flight."""

    def test_is_at_rest(self):
        """Both axes must be under epsilon."""
        assert is_at_rest(np.array([0.1, -0.1])) is True
        assert is_at_rest(np.array([0.1, 0.2])) is False
        assert is_at_rest(np.array([-0.15, 0.0])) is False

    def test_rest_rearms_sling(self, flying_world):
        """Round still on → bird goes back to the anchor."""
        bird = flying_world.bird
        bird.position = np.array([400.0, 414.0])
        bird.velocity = np.array([0.1, -GRAVITY])

        assert integrate(flying_world) is True
        assert flying_world.mode is Mode.IDLE
        assert flying_world.hint is Hint.NEXT_SHOT
        assert np.allclose(bird.position, ANCHOR)
        assert np.allclose(bird.velocity, 0.0)

    def test_rest_without_birds_stays_put(self, flying_world):
        """Last bird stays where it stopped, round is lost."""
        flying_world.birds_left = 0
        bird = flying_world.bird
        bird.position = np.array([400.0, 414.0])
        bird.velocity = np.array([0.1, -GRAVITY])

        assert integrate(flying_world) is True
        assert flying_world.mode is Mode.IDLE
        assert bird.position[0] == pytest.approx(400.1)
        assert tick(flying_world).status == DEFEAT_MESSAGE

    def test_rest_without_pigs_stays_put(self, flying_world):
        """After the last pig the bird is not re-armed."""
        for pig in flying_world.pigs:
            pig.hit = True
        bird = flying_world.bird
        bird.position = np.array([400.0, 414.0])
        bird.velocity = np.array([0.0, -GRAVITY])

        assert integrate(flying_world) is True
        assert not np.allclose(bird.position, ANCHOR)


# ============================================================
# 2. Collisions
# ============================================================

class TestGeometry:
    """Test the pure geometry helpers."""

    def test_closest_point_inside(self):
        """A point inside the rectangle is its own closest point."""
        rect = RectTarget(position=np.array([0.0, 0.0]), width=10.0, height=5.0)
        assert np.allclose(closest_point_on_rect(np.array([3.0, 2.0]), rect), [3.0, 2.0])

    def test_closest_point_corner(self):
        """Outside a corner the corner is closest."""
        rect = RectTarget(position=np.array([0.0, 0.0]), width=10.0, height=5.0)
        assert np.allclose(closest_point_on_rect(np.array([15.0, -4.0]), rect), [10.0, 0.0])

    def test_circle_rect_strict(self):
        """Touching the edge is not a hit; overlapping is."""
        rect = RectTarget(position=np.array([0.0, 0.0]), width=10.0, height=5.0)
        assert circle_hits_rect(np.array([13.0, 2.0]), 3.0, rect) is False
        assert circle_hits_rect(np.array([12.9, 2.0]), 3.0, rect) is True

    def test_circles_strict(self):
        """Tangent circles do not overlap."""
        assert circles_overlap(np.array([0.0, 0.0]), 1.0, np.array([2.0, 0.0]), 1.0) is False
        assert circles_overlap(np.array([0.0, 0.0]), 1.0, np.array([1.9, 0.0]), 1.0) is True


class TestCheckCollisions:
    """Test hit marking and response against the real level."""

    def test_block_hit_applies_impulse(self, flying_world):
        """Block hit scales vx by 0.7 and reflects vy by -0.6."""
        block = flying_world.blocks[0]
        flying_world.bird.position = np.array([block.position[0] - 10.0, block.position[1] + 20.0])
        flying_world.bird.velocity = np.array([10.0, 4.0])

        hits = check_collisions(flying_world)

        assert hits == [block]
        assert block.hit is True
        assert np.allclose(flying_world.bird.velocity, [7.0, -2.4])

    def test_pig_hit_marks_only(self, flying_world):
        """Pig hit marks the pig and sets the hit hint, velocity unchanged."""
        pig = flying_world.pigs[2]
        flying_world.bird.position = pig.position + np.array([0.0, -30.0])
        flying_world.bird.velocity = np.array([2.0, 1.0])

        hits = check_collisions(flying_world)

        assert hits == [pig]
        assert pig.hit is True
        assert flying_world.hint is Hint.HIT
        assert flying_world.pigs_left == 2
        assert np.allclose(flying_world.bird.velocity, [2.0, 1.0])

    def test_blocks_before_pigs(self, flying_world):
        """A bird touching a block and a pig reports the block first."""
        flying_world.bird.position = np.array([760.0, 300.0])
        flying_world.bird.velocity = np.array([1.0, 1.0])

        hits = check_collisions(flying_world)

        assert hits == [flying_world.blocks[2], flying_world.pigs[1]]

    def test_hit_targets_ignored(self, flying_world):
        """Already-hit targets neither re-trigger nor push the bird."""
        block = flying_world.blocks[0]
        block.hit = True
        flying_world.bird.position = np.array([block.position[0] + 5.0, block.position[1] + 5.0])
        flying_world.bird.velocity = np.array([10.0, 4.0])

        assert check_collisions(flying_world) == []
        assert np.allclose(flying_world.bird.velocity, [10.0, 4.0])

    def test_hit_flags_monotonic(self, flying_world):
        """Moving away after a hit never clears the flag."""
        pig = flying_world.pigs[0]
        flying_world.bird.position = pig.position.copy()
        check_collisions(flying_world)
        flying_world.bird.position = np.array([300.0, 100.0])
        for _ in range(5):
            check_collisions(flying_world)
        assert pig.hit is True

    def test_no_collisions_unless_flying(self, world):
        """A bird placed on a pig while idle does not hit it."""
        world.bird.position = world.pigs[0].position.copy()
        assert check_collisions(world) == []
        assert world.pigs_left == 3


class TestTick:
    """Test the per-frame loop."""

    def test_idle_tick_only_evaluates(self, world):
        """Idle tick moves nothing and reports the ready hint."""
        result = tick(world)
        assert result.hits == []
        assert result.came_to_rest is False
        assert result.status == HINT_MESSAGES[Hint.READY]
        assert np.allclose(world.bird.position, ANCHOR)

    def test_flying_tick_reports_hits(self, flying_world):
        """A tick that ends overlapping a pig reports the hit."""
        pig = flying_world.pigs[0]
        flying_world.bird.position = pig.position - np.array([5.0, GRAVITY])
        flying_world.bird.velocity = np.array([5.0, 0.0])
        result = tick(flying_world)
        assert pig in result.hits
        assert result.status == HINT_MESSAGES[Hint.HIT]


# ============================================================
# 3. Presentation (headless)
# ============================================================

class TestRenderer:
    """Test that artists track the world."""

    def test_preview_only_while_dragging(self, world):
        """The pull preview line shows only during a drag."""
        fig, ax = plt.subplots()
        renderer = SceneRenderer(ax, world)
        renderer.update("")
        assert renderer.preview.get_visible() is False

        world.mode = Mode.DRAGGING
        world.bird.position = world.anchor + np.array([-40.0, 10.0])
        renderer.update("")
        assert renderer.preview.get_visible() is True
        xs, ys = renderer.preview.get_data()
        assert xs[0] == pytest.approx(world.bird.position[0])
        plt.close(fig)

    def test_colors_follow_hit_flags(self, world):
        """Hit pigs and blocks are greyed out."""
        fig, ax = plt.subplots()
        renderer = SceneRenderer(ax, world)
        world.pigs[1].hit = True
        world.blocks[0].hit = True
        renderer.update("")
        assert renderer.pig_patches[0].get_facecolor() == pytest.approx(to_rgba(PIG_COLOR))
        assert renderer.pig_patches[1].get_facecolor() == pytest.approx(to_rgba(PIG_HIT_COLOR))
        assert renderer.block_patches[0].get_facecolor() == pytest.approx(to_rgba(BLOCK_HIT_COLOR))
        plt.close(fig)

    def test_hud_text(self, world):
        """HUD shows counts and the status line."""
        fig, ax = plt.subplots()
        renderer = SceneRenderer(ax, world)
        world.birds_left = 2
        world.pigs[0].hit = True
        renderer.update("Hit!")
        assert renderer.counts_text.get_text() == "Birds: 2    Pigs: 2"
        assert renderer.status_text.get_text() == "Hit!"
        plt.close(fig)

    def test_bird_artist_follows_bird(self, world):
        """Bird circle is drawn at the bird position."""
        fig, ax = plt.subplots()
        renderer = SceneRenderer(ax, world)
        world.bird.position = np.array([321.0, 123.0])
        renderer.update("")
        assert renderer.bird.center == pytest.approx((321.0, 123.0))
        plt.close(fig)


class TestApp:
    """Test pointer events and frames on the interactive app."""

    @pytest.fixture
    def app(self):
        app = SlingshotApp(verbose=False)
        yield app
        plt.close(app.fig)

    def _event(self, app, x, y):
        return SimpleNamespace(inaxes=app.ax, xdata=x, ydata=y, key=None)

    def test_press_move_release(self, app):
        """Pointer sequence drags and launches the bird."""
        ax_, ay_ = app.world.anchor
        app.on_press(self._event(app, ax_, ay_))
        assert app.world.is_dragging
        app.on_move(self._event(app, ax_ - 40.0, ay_))
        assert app.world.bird.position[0] == pytest.approx(ax_ - 40.0)
        app.on_release(self._event(app, ax_ - 40.0, ay_))
        assert app.world.is_flying
        assert app.world.birds_left == 2

    def test_press_outside_axes_ignored(self, app):
        """Clicks on the button strip do not grab the bird."""
        app.on_press(SimpleNamespace(inaxes=None, xdata=None, ydata=None))
        assert app.world.mode is Mode.IDLE

    def test_leave_ends_drag(self, app):
        """Leaving the play area releases the sling."""
        ax_, ay_ = app.world.anchor
        app.on_press(self._event(app, ax_, ay_))
        app.on_move(self._event(app, ax_ - 20.0, ay_ + 20.0))
        app.on_leave(self._event(app, None, None))
        assert app.world.is_flying

    def test_frame_and_reset(self, app):
        """Frames advance the world; reset key restores it."""
        ax_, ay_ = app.world.anchor
        app.on_press(self._event(app, ax_, ay_))
        app.on_move(self._event(app, ax_ - 60.0, ay_ + 30.0))
        app.on_release(self._event(app, ax_ - 60.0, ay_ + 30.0))
        artists = app.on_frame(0)
        assert len(artists) > 0
        assert not np.allclose(app.world.bird.position, [ax_ - 60.0, ay_ + 30.0])

        app.on_key(SimpleNamespace(key="r"))
        assert app.world.birds_left == 3
        assert app.world.mode is Mode.IDLE
