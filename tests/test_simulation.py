"""Tests for the particle integrator, mode switching and the simulation tick."""

import math

import numpy as np
import pytest

from conftest import FixedMicrophone
from constants import SOUND_COOLDOWN_TICKS, TRAIL_LENGTH
from modes import Mode
from simulation import Simulation


def integrate(simulation):
    return simulation.integrator.step(simulation.context)


class TestParticleIntegrator:
    """Force, pointer and smoothing rules for one tick."""

    def test_distance_is_floored_at_one(self, simulation):
        ctx = simulation.context
        ctx.black_hole.size = 100.0
        ctx.black_hole.gravity = 0.1
        ctx.particles.positions[0] = (ctx.black_hole.x, ctx.black_hole.y)

        result = integrate(simulation)

        assert result.distances[0] == 1.0
        assert result.forces[0] == pytest.approx(0.1 * 100.0)
        assert np.all(result.distances >= 1.0)

    def test_force_formula(self, simulation):
        ctx = simulation.context
        ctx.black_hole.size = 120.0
        ctx.black_hole.gravity = 0.1

        result = integrate(simulation)

        # Particle 0 starts 80 px from the center
        assert result.distances[0] == pytest.approx(80.0)
        assert result.forces[0] == pytest.approx(0.1 * 120.0 / 80.0)

    def test_weak_pull_moves_eight_percent_toward_target(self, simulation):
        ctx = simulation.context
        particles = ctx.particles
        start = particles.positions[0].copy()
        speed = particles.speeds[0]

        integrate(simulation)

        angle = math.radians(speed)
        target = np.array([400.0 + math.cos(angle) * 80.0, 300.0 + math.sin(angle) * 80.0])
        expected = start + (target - start) * 0.08
        np.testing.assert_allclose(particles.positions[0], expected)
        assert particles.angles[0] == pytest.approx(speed)

    def test_strong_pull_moves_fifteen_percent_toward_target(self, simulation):
        ctx = simulation.context
        particles = ctx.particles
        ctx.black_hole.size = 120.0
        ctx.black_hole.gravity = 0.3
        start = particles.positions[0].copy()

        result = integrate(simulation)

        force = result.forces[0]
        assert force > 0.2
        angle = math.radians(particles.speeds[0] * (1 - force * 0.5))
        radius = particles.orbits[0] * (1 - force * 0.3)
        target = np.array([400.0 + math.cos(angle) * radius, 300.0 + math.sin(angle) * radius])
        np.testing.assert_allclose(particles.positions[0], start + (target - start) * 0.15)

    def test_pointer_force_is_clamped(self, simulation):
        """Pointer 20 px away -> min(0.2, 40 / 20) = 0.2."""
        ctx = simulation.context
        ctx.mode = Mode.INTERACTIVE
        simulation.press_pointer(500.0, 300.0)

        result = integrate(simulation)

        assert result.pointer_distances[0] == pytest.approx(20.0)
        assert result.pointer_forces[0] == pytest.approx(0.2)

    def test_pointer_force_falls_off_with_distance(self, simulation):
        ctx = simulation.context
        ctx.mode = Mode.INTERACTIVE
        simulation.press_pointer(880.0, 300.0)

        result = integrate(simulation)

        assert result.pointer_distances[0] == pytest.approx(400.0)
        assert result.pointer_forces[0] == pytest.approx(0.1)

    def test_pointer_ignored_in_auto_mode(self, simulation):
        simulation.press_pointer(500.0, 300.0)
        result = integrate(simulation)
        assert np.all(result.pointer_forces == 0.0)

    def test_pointer_ignored_when_released(self, simulation):
        simulation.context.mode = Mode.INTERACTIVE
        simulation.press_pointer(500.0, 300.0)
        simulation.release_pointer()
        result = integrate(simulation)
        assert np.all(result.pointer_forces == 0.0)

    def test_hue_drift_in_auto_mode(self, simulation):
        ctx = simulation.context
        ctx.timeline.phase = 0.5
        integrate(simulation)
        # No gravity: hue advances by phase * 20 only
        assert ctx.particles.hues[0] == pytest.approx(10.0)

    def test_hue_drift_in_interactive_mode(self, simulation):
        ctx = simulation.context
        ctx.mode = Mode.INTERACTIVE
        ctx.sound_level = 0.5
        ctx.black_hole.size = 120.0
        ctx.black_hole.gravity = 0.1

        result = integrate(simulation)

        expected = result.forces[0] * 3.0 + 0.5 * 10.0
        assert ctx.particles.hues[0] == pytest.approx(expected)

    def test_hue_stays_in_range(self, simulation):
        ctx = simulation.context
        for _ in range(600):
            simulation.step()
            assert np.all((ctx.particles.hues >= 0.0) & (ctx.particles.hues < 360.0))

    def test_sound_trigger_and_cooldown(self, simulation, audio):
        ctx = simulation.context
        ctx.black_hole.size = 120.0
        ctx.black_hole.gravity = 0.3
        ctx.particles.positions[0] = (500.0, 300.0)

        first = integrate(simulation)
        assert first.triggered[0]
        assert ctx.particles.sound_timers[0] == SOUND_COOLDOWN_TICKS
        assert len(audio.of_kind("ambient")) == first.sound_triggers

        second = integrate(simulation)
        assert not second.triggered[0]
        assert ctx.particles.sound_timers[0] == SOUND_COOLDOWN_TICKS - 1

    def test_no_sound_without_pull(self, simulation, audio):
        ctx = simulation.context
        result = integrate(simulation)
        assert result.sound_triggers == 0
        assert audio.of_kind("ambient") == []
        assert np.all(ctx.particles.sound_timers == -1)

    def test_ambient_sound_hints_are_in_range(self, simulation, audio):
        ctx = simulation.context
        ctx.black_hole.size = 120.0
        ctx.black_hole.gravity = 0.3
        integrate(simulation)
        for _, volume, rate in audio.of_kind("ambient"):
            assert 0.1 <= volume <= 0.5
            assert 0.5 <= rate <= 2.0

    def test_touch_sound_near_pointer(self, simulation, audio):
        simulation.context.mode = Mode.INTERACTIVE
        simulation.press_pointer(500.0, 300.0)
        integrate(simulation)
        touches = audio.of_kind("touch")
        assert len(touches) == 1
        assert touches[0][1] == pytest.approx(0.5)

    def test_touch_sound_only_every_fifteenth_tick(self, simulation, audio):
        ctx = simulation.context
        ctx.mode = Mode.INTERACTIVE
        ctx.tick = 7
        simulation.press_pointer(500.0, 300.0)
        integrate(simulation)
        assert audio.of_kind("touch") == []

    def test_trails_sampled_every_third_tick(self, simulation):
        ctx = simulation.context
        for _ in range(7):
            simulation.step()
        # Ticks 0, 3 and 6 were sampled
        assert len(ctx.particles.trails[0]) == 3

    def test_trails_never_exceed_capacity(self, simulation):
        ctx = simulation.context
        for _ in range(3 * TRAIL_LENGTH + 30):
            simulation.step()
        assert all(len(trail) <= TRAIL_LENGTH for trail in ctx.particles.trails)
        assert len(ctx.particles.trails[0]) == TRAIL_LENGTH


class TestModeSwitching:

    def test_round_trip_restores_initial_kinematics(self, simulation, audio):
        ctx = simulation.context
        for _ in range(250):
            simulation.step()
        assert not np.allclose(ctx.particles.orbits, ctx.particles.initial_orbits)

        simulation.switch_mode(Mode.INTERACTIVE)
        simulation.switch_mode(Mode.AUTO)

        particles = ctx.particles
        np.testing.assert_array_equal(particles.orbits, particles.initial_orbits)
        np.testing.assert_allclose(particles.speeds, particles.base_speeds)
        assert all(len(trail) == 0 for trail in particles.trails)
        assert np.all(particles.sound_timers == 0)
        assert ctx.phase == 0.0
        assert ctx.mode is Mode.AUTO
        assert len(audio.of_kind("switch")) == 2

    def test_same_mode_switch_still_resets(self, simulation, audio):
        ctx = simulation.context
        for _ in range(50):
            simulation.step()
        simulation.switch_mode(Mode.AUTO)
        assert ctx.phase == 0.0
        np.testing.assert_array_equal(ctx.particles.orbits, ctx.particles.initial_orbits)
        assert len(audio.of_kind("switch")) == 1

    def test_toggle(self, simulation):
        assert simulation.toggle_mode() is Mode.INTERACTIVE
        assert simulation.mode is Mode.INTERACTIVE
        assert simulation.toggle_mode() is Mode.AUTO

    def test_switch_rearms_interaction_gate(self, simulation):
        simulation.switch_mode(Mode.INTERACTIVE)
        simulation.press_pointer(100.0, 100.0)
        assert simulation.context.phase == 1.0
        simulation.release_pointer()

        simulation.switch_mode(Mode.INTERACTIVE)
        for _ in range(300):
            simulation.step()
        assert simulation.context.phase == 1.0

    def test_mode_labels(self):
        assert Mode.AUTO.label == "auto"
        assert Mode.INTERACTIVE.label == "interaction"


class TestSimulation:

    def test_sound_level_from_microphone(self, sim_params):
        sim = Simulation(sim_params, 800, 600, microphone=FixedMicrophone(0.1))
        assert sim.poll_sound_level() == pytest.approx(0.8)

    def test_sound_level_is_capped(self, sim_params):
        sim = Simulation(sim_params, 800, 600, microphone=FixedMicrophone(1.0))
        assert sim.poll_sound_level() == pytest.approx(2.0)

    def test_sound_level_without_microphone(self, simulation):
        assert simulation.poll_sound_level() == 0.0

    def test_microphone_drives_interactive_gravity(self, sim_params):
        sim = Simulation(sim_params, 800, 600, microphone=FixedMicrophone(0.1))
        sim.switch_mode(Mode.INTERACTIVE)
        sim.press_pointer(10.0, 10.0)
        sim.step()
        assert sim.context.black_hole.gravity == pytest.approx(0.1 + 0.8 * 0.2)

    def test_step_advances_clock_and_music(self, simulation, audio):
        simulation.step()
        ctx = simulation.context
        assert ctx.tick == 1
        assert ctx.time == pytest.approx(0.5)
        assert len(audio.of_kind("music")) == 1

    def test_start_sound_once(self, simulation):
        simulation.start_sound()
        assert simulation.context.audio.started

    def test_reset(self, simulation):
        for _ in range(120):
            simulation.step()
        simulation.reset()
        ctx = simulation.context
        assert ctx.phase == 0.0
        np.testing.assert_array_equal(ctx.particles.positions, ctx.particles.initial_positions)
        assert ctx.ambient.trails == {}

    def test_resize_reinitializes(self, simulation):
        simulation.resize(1000, 500)
        ctx = simulation.context
        assert (ctx.black_hole.x, ctx.black_hole.y) == (500, 250)
        assert ctx.black_hole.max_size == pytest.approx(100.0)
        np.testing.assert_allclose(ctx.particles.positions[0], [580.0, 250.0])
        assert ctx.ambient.radii.max() <= 250.0

    @pytest.mark.parametrize("width, height", [(0, 600), (800, -1)])
    def test_rejects_non_positive_canvas(self, sim_params, width, height):
        with pytest.raises(ValueError):
            Simulation(sim_params, width, height)

    def test_rejects_unknown_start_mode(self, sim_params):
        sim_params["start_mode"] = "turbo"
        with pytest.raises(ValueError):
            Simulation(sim_params, 800, 600)

    def test_rejects_bad_phase_increment(self, sim_params):
        sim_params["auto_phase_increment"] = 0.0
        with pytest.raises(ValueError):
            Simulation(sim_params, 800, 600)

    def test_interactive_start_mode(self, sim_params):
        sim_params["start_mode"] = "interactive"
        sim = Simulation(sim_params, 800, 600)
        assert sim.mode is Mode.INTERACTIVE
