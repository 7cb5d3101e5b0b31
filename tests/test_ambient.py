"""Tests for the decorative ambient field."""

import numpy as np
import pytest

from ambient import AmbientField
from conftest import FixedMicrophone
from constants import AMBIENT_TRAIL_LENGTH, AMBIENT_TRAIL_MIN_ALPHA
from modes import Mode


@pytest.fixture
def ctx(simulation):
    return simulation.context


def press_on_ambient_particle(ctx, index):
    """Holds the pointer on an ambient particle's current screen position."""
    x, y = ctx.ambient.positions[index]
    ctx.pointer.x = ctx.width / 2 + x
    ctx.pointer.y = ctx.height / 2 + y
    ctx.pointer.pressed = True


def test_initial_distribution(ctx):
    ambient = ctx.ambient
    assert ambient.count == 400
    assert np.all((ambient.radii >= 30) & (ambient.radii <= 300))
    assert np.all((ambient.speeds >= 0.1) & (ambient.speeds <= 0.8))
    assert np.all((ambient.sizes >= 1) & (ambient.sizes <= 4))
    assert np.all((ambient.alphas >= 80) & (ambient.alphas <= 180))
    assert ambient.trails == {}


def test_seeded_generation_is_reproducible(sim_params):
    a = AmbientField(sim_params, 800, 600, np.random.default_rng(7))
    b = AmbientField(sim_params, 800, 600, np.random.default_rng(7))
    np.testing.assert_array_equal(a.angles, b.angles)
    np.testing.assert_array_equal(a.radii, b.radii)


def test_update_advances_angles(ctx):
    ambient = ctx.ambient
    before = ambient.angles.copy()
    ambient.update(ctx)
    np.testing.assert_allclose(ambient.angles, before + ambient.speeds)


def test_positions_follow_radius_at_time_zero(ctx):
    ambient = ctx.ambient
    ambient.update(ctx)
    radii = np.linalg.norm(ambient.positions, axis=1)
    np.testing.assert_allclose(radii, ambient.radii)


def test_no_trails_in_auto_mode(ctx):
    ctx.ambient.update(ctx)
    press_on_ambient_particle(ctx, 0)
    for _ in range(10):
        ctx.ambient.update(ctx)
    assert ctx.ambient.trails == {}


def test_pointer_grows_trail_in_interactive_mode(ctx):
    ambient = ctx.ambient
    ambient.update(ctx)
    ctx.mode = Mode.INTERACTIVE
    press_on_ambient_particle(ctx, 0)

    ambient.update(ctx)

    assert 0 in ambient.trails
    # Pushed outward by the pointer
    assert np.linalg.norm(ambient.positions[0]) > ambient.radii[0]


def test_trail_is_bounded_and_pruned(ctx):
    ambient = ctx.ambient
    ambient.update(ctx)
    ctx.mode = Mode.INTERACTIVE

    for _ in range(60):
        press_on_ambient_particle(ctx, 0)
        ambient.update(ctx)
        for trail in ambient.trails.values():
            assert 0 < len(trail) <= AMBIENT_TRAIL_LENGTH
            assert all(point[2] > AMBIENT_TRAIL_MIN_ALPHA for point in trail)

    ctx.pointer.pressed = False
    for _ in range(60):
        ambient.update(ctx)
    assert ambient.trails == {}


def test_trail_alpha_decays(ctx):
    ambient = ctx.ambient
    ambient.update(ctx)
    ctx.mode = Mode.INTERACTIVE
    press_on_ambient_particle(ctx, 0)
    ambient.update(ctx)
    first_alpha = ambient.trails[0][0][2]
    assert first_alpha == pytest.approx(ambient.alphas[0] * 0.9)

    ctx.pointer.pressed = False
    ambient.update(ctx)
    assert ambient.trails[0][0][2] == pytest.approx(first_alpha * 0.9)


def test_render_values_without_microphone(ctx):
    ambient = ctx.ambient
    ctx.black_hole.size = 100.0
    ambient.update(ctx)
    np.testing.assert_allclose(ambient.draw_alphas, ambient.alphas)
    np.testing.assert_allclose(ambient.draw_sizes, ambient.sizes * 1.1)


def test_render_values_follow_sound_level(ctx):
    ambient = ctx.ambient
    ctx.microphone = FixedMicrophone(0.125)
    ctx.sound_level = 1.0
    ambient.update(ctx)
    np.testing.assert_allclose(ambient.draw_alphas, np.clip(ambient.alphas + 50, 50, 255))
    np.testing.assert_allclose(ambient.draw_sizes, ambient.sizes * 1.5)
