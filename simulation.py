# simulation.py
"""
Handles the core simulation logic and physics calculations.

This module defines the SimulationContext, which owns every piece of
mutable simulation state, the ParticleIntegrator, which moves the
orbiting particles toward the black hole each tick, and the Simulation
class, which runs one tick in a fixed order and exposes the input entry
points (pointer, keys, resize).
"""
import logging
import math
from typing import Any, Dict, Optional

import numpy as np
from numba import jit

from ambient import AmbientField
from audio import AudioEngine, Microphone, music_hints, particle_sound_hints, touch_sound_hints
from constants import (
    EASE_FACTOR_STRONG, EASE_FACTOR_WEAK, GLOBAL_TIME_STEP, POINTER_FORCE_MAX,
    POINTER_FORCE_SCALE, SOUND_COOLDOWN_TICKS, SOUND_FORCE_THRESHOLD,
    STRONG_PULL_THRESHOLD, TOUCH_SOUND_INTERVAL, TOUCH_SOUND_RADIUS,
    TRAIL_SAMPLE_INTERVAL
)
from modes import Mode, ModeController
from particle import BlackHole, ParticleSystem
from phase import PhaseTimeline

# --- Data Contracts ---
#
# class SimulationContext:
#   - Holds the canvas size, the BlackHole, the ParticleSystem, the
#     AmbientField, the PhaseTimeline, the current Mode, the Pointer,
#     the audio and microphone collaborators, the latest sound level,
#     the tick counter and the global animation time.
#   - Invariants: Only one component writes each field during a tick.
#     PhaseTimeline writes black_hole.size/gravity and particle
#     orbits/speeds; ParticleIntegrator writes particle positions,
#     angles, hues, trails and sound timers; AmbientField writes its own
#     arrays; Simulation writes tick, time and sound_level.
#
# class ParticleIntegrator:
#   - step(self, context: SimulationContext) -> IntegrationResult:
#     - Side Effects: Moves every particle, records trails every
#       TRAIL_SAMPLE_INTERVAL ticks and emits play_ambient() for each
#       particle whose sound cooldown fires, plus at most one play_touch().
#     - Invariants: Force distances are floored at 1.
#
# class Simulation:
#   - __init__(self, params: Dict[str, Any], width: int, height: int,
#              audio: Optional[AudioEngine] = None,
#              microphone: Optional[Microphone] = None):
#     - Inputs:
#       - params: Dictionary of simulation parameters from config.json.
#         - "seed": int
#         - "mic_gain": float
#         - "max_sound_level": float
#         - "start_mode": "auto" | "interactive"
#         - plus those read by ParticleSystem, AmbientField, ModeController.
#       - width, height: positive canvas dimensions.
#     - Side Effects: Builds all components. Raises ValueError for a
#       non-positive canvas.
#
#   - step(self) -> None:
#     - Side Effects: Advances the whole simulation by one tick.


@jit(nopython=True)
def _integrate_numba(
    positions, angles, orbits, speeds, hues, sound_timers,
    center_x, center_y, black_hole_size, gravity,
    pointer_active, pointer_x, pointer_y,
    color_gain, hue_drift
):
    """
    Numba-jitted function that advances every particle by one tick.

    Returns the per-particle force, floored distance to the black hole,
    pointer force, floored pointer distance and a mask of particles whose
    sound cooldown fired this tick.
    """
    particle_count = positions.shape[0]
    forces = np.zeros(particle_count)
    distances = np.zeros(particle_count)
    pointer_forces = np.zeros(particle_count)
    pointer_distances = np.full(particle_count, np.inf)
    triggered = np.zeros(particle_count, dtype=np.bool_)

    for i in range(particle_count):
        px = positions[i, 0]
        py = positions[i, 1]

        # Gravitational pull toward the black hole
        dx = center_x - px
        dy = center_y - py
        distance = max(1.0, math.sqrt(dx * dx + dy * dy))
        force = gravity * (black_hole_size / distance)

        # Orbital motion, slowed and tightened by a strong pull
        angles[i] += speeds[i] * (1.0 - force * 0.5)
        radians = math.radians(angles[i])
        radius = orbits[i] * (1.0 - force * 0.3)
        target_x = center_x + math.cos(radians) * radius
        target_y = center_y + math.sin(radians) * radius

        if pointer_active:
            mx = pointer_x - px
            my = pointer_y - py
            pointer_distance = max(1.0, math.sqrt(mx * mx + my * my))
            pointer_force = min(POINTER_FORCE_MAX, POINTER_FORCE_SCALE / pointer_distance)
            target_x += mx * pointer_force
            target_y += my * pointer_force
            pointer_forces[i] = pointer_force
            pointer_distances[i] = pointer_distance

        ease_factor = EASE_FACTOR_STRONG if force > STRONG_PULL_THRESHOLD else EASE_FACTOR_WEAK
        positions[i, 0] = px + (target_x - px) * ease_factor
        positions[i, 1] = py + (target_y - py) * ease_factor

        hues[i] = (hues[i] + force * color_gain + hue_drift) % 360.0

        if sound_timers[i] <= 0 and distance < black_hole_size * 2.0 and force > SOUND_FORCE_THRESHOLD:
            triggered[i] = True
            sound_timers[i] = SOUND_COOLDOWN_TICKS
        else:
            sound_timers[i] -= 1

        forces[i] = force
        distances[i] = distance

    return forces, distances, pointer_forces, pointer_distances, triggered


class Pointer:
    """Latest pointer position and whether it is held down."""

    def __init__(self):
        self.x = 0.0
        self.y = 0.0
        self.pressed = False


class SimulationContext:
    """
    The single owner of all mutable simulation state.
    """
    def __init__(
        self,
        width: float,
        height: float,
        black_hole: BlackHole,
        particles: ParticleSystem,
        ambient: AmbientField,
        timeline: PhaseTimeline,
        mode: Mode,
        audio: AudioEngine,
        microphone: Microphone,
    ):
        self.width = width
        self.height = height
        self.black_hole = black_hole
        self.particles = particles
        self.ambient = ambient
        self.timeline = timeline
        self.mode = mode
        self.audio = audio
        self.microphone = microphone
        self.pointer = Pointer()
        self.sound_level = 0.0
        self.tick = 0
        self.time = 0.0

    @property
    def phase(self) -> float:
        return self.timeline.phase


class IntegrationResult:
    """Per-particle quantities from the last integrator step."""

    def __init__(self, forces, distances, pointer_forces, pointer_distances, triggered):
        self.forces = forces
        self.distances = distances
        self.pointer_forces = pointer_forces
        self.pointer_distances = pointer_distances
        self.triggered = triggered

    @property
    def sound_triggers(self) -> int:
        return int(np.count_nonzero(self.triggered))


class ParticleIntegrator:
    """
    Moves the orbiting particles toward their phase targets.
    """
    def __init__(self, modes: ModeController):
        self.modes = modes

    def step(self, context: SimulationContext) -> IntegrationResult:
        particles = context.particles
        black_hole = context.black_hole
        mode = context.mode

        if context.tick % TRAIL_SAMPLE_INTERVAL == 0:
            particles.record_trails()

        pointer = context.pointer
        pointer_active = mode is Mode.INTERACTIVE and pointer.pressed

        result = IntegrationResult(*_integrate_numba(
            particles.positions, particles.angles, particles.orbits, particles.speeds,
            particles.hues, particles.sound_timers,
            black_hole.x, black_hole.y, black_hole.size, black_hole.gravity,
            pointer_active, float(pointer.x), float(pointer.y),
            self.modes.color_gain(mode),
            self.modes.hue_drift(mode, context.phase, context.sound_level),
        ))

        for i in np.flatnonzero(result.triggered):
            volume, rate = particle_sound_hints(
                result.forces[i], result.distances[i], black_hole.size
            )
            context.audio.play_ambient(volume, rate)

        if pointer_active and context.tick % TOUCH_SOUND_INTERVAL == 0:
            near = result.pointer_distances < TOUCH_SOUND_RADIUS
            if near.any():
                volume, rate = touch_sound_hints(float(result.pointer_forces[near].max()))
                context.audio.play_touch(volume, rate)

        return result


class Simulation:
    """
    Runs the simulation tick and routes user input into the context.
    """
    def __init__(
        self,
        params: Dict[str, Any],
        width: int,
        height: int,
        audio: Optional[AudioEngine] = None,
        microphone: Optional[Microphone] = None,
    ):
        """
        Initializes the simulation environment.

        Args:
            params (Dict[str, Any]): Simulation parameters from config.
            width (int): The width of the canvas.
            height (int): The height of the canvas.
            audio (Optional[AudioEngine]): Sound collaborator, silent if None.
            microphone (Optional[Microphone]): Input level source, silent if None.
        """
        self._validate_canvas(width, height)
        self.params = params
        self.mic_gain = float(params.get('mic_gain', 8.0))
        self.max_sound_level = float(params.get('max_sound_level', 2.0))

        # Rule 12: All randomness is controlled by a single master seed.
        self.rng = np.random.default_rng(params.get('seed'))

        try:
            start_mode = Mode(params.get('start_mode', 'auto'))
        except ValueError:
            msg = f"Configuration error: unknown start_mode {params.get('start_mode')!r}."
            logging.critical(msg)
            raise ValueError(msg)

        self.modes = ModeController(params)
        self.integrator = ParticleIntegrator(self.modes)
        self.context = SimulationContext(
            width=width,
            height=height,
            black_hole=BlackHole(width, height),
            particles=ParticleSystem(params, width, height),
            ambient=AmbientField(params, width, height, self.rng),
            timeline=PhaseTimeline(self.modes),
            mode=start_mode,
            audio=audio if audio is not None else AudioEngine(),
            microphone=microphone if microphone is not None else Microphone(),
        )
        self.last_result: Optional[IntegrationResult] = None

        logging.info(
            f"Simulation initialized on a {width}x{height} canvas in {start_mode.label} mode "
            f"(black hole max size {self.context.black_hole.max_size:.1f})."
        )

    @staticmethod
    def _validate_canvas(width: float, height: float) -> None:
        if width <= 0 or height <= 0:
            msg = f"Configuration error: canvas size must be positive, got {width}x{height}."
            logging.critical(msg)
            raise ValueError(msg)

    @property
    def mode(self) -> Mode:
        return self.context.mode

    def poll_sound_level(self) -> float:
        level = self.context.microphone.get_level() if self.context.microphone.available else 0.0
        self.context.sound_level = min(self.max_sound_level, max(0.0, level * self.mic_gain))
        return self.context.sound_level

    def step(self) -> None:
        """
        Executes one tick of the simulation.
        """
        ctx = self.context

        # 1. Latest microphone level (never blocks)
        self.poll_sound_level()

        # 2. Phase targets for the black hole and the particle orbits
        ctx.timeline.update(ctx)

        # 3. Move the orbiting particles
        self.last_result = self.integrator.step(ctx)

        # 4. Decorative field
        ctx.ambient.update(ctx)

        # 5. Background music follows the phase
        ctx.audio.set_music(*music_hints(ctx.phase, ctx.mode, ctx.sound_level))

        ctx.tick += 1
        ctx.time += GLOBAL_TIME_STEP

    # --- Input entry points ---

    def switch_mode(self, target: Mode) -> None:
        self.modes.switch(self.context, target)

    def toggle_mode(self) -> Mode:
        return self.modes.toggle(self.context)

    def press_pointer(self, x: float, y: float) -> None:
        pointer = self.context.pointer
        pointer.x, pointer.y = x, y
        pointer.pressed = True
        self.context.timeline.register_interaction(self.context.mode)

    def move_pointer(self, x: float, y: float) -> None:
        pointer = self.context.pointer
        pointer.x, pointer.y = x, y

    def release_pointer(self) -> None:
        self.context.pointer.pressed = False

    def start_sound(self) -> None:
        if not self.context.audio.started:
            self.context.audio.start()

    def reset(self) -> None:
        """Re-creates both particle sets and restarts the phase cycle."""
        ctx = self.context
        ctx.particles = ParticleSystem(self.params, ctx.width, ctx.height)
        ctx.ambient = AmbientField(self.params, ctx.width, ctx.height, self.rng)
        ctx.timeline.reset()
        logging.info("Simulation reset by user.")

    def resize(self, width: int, height: int) -> None:
        self._validate_canvas(width, height)
        ctx = self.context
        ctx.width, ctx.height = width, height
        ctx.black_hole.recenter(width, height)
        ctx.particles = ParticleSystem(self.params, width, height)
        ctx.ambient = AmbientField(self.params, width, height, self.rng)
        logging.info(f"Canvas resized to {width}x{height}; particles reinitialized.")
