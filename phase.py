# phase.py
"""
The four-stage lifecycle that drives the black hole and the particle orbits.

The timeline holds a single scalar `phase` in [0, 4). Its integer part
selects one of four stages, and the fractional part is eased within the
stage to produce the black hole's size and gravity and each particle's
target orbit and angular speed.
"""
import enum
import logging
import math

from easing import ease
from modes import Mode, ModeController
from particle import BlackHole, ParticleSystem

# Forward reference for type hinting to avoid circular import
from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from simulation import SimulationContext

# --- Data Contracts ---
#
# class PhaseTimeline:
#   - __init__(self, modes: ModeController):
#     - Side Effects: Starts at phase 0.0 with the interaction gate armed.
#
#   - advance(self, mode: Mode) -> float:
#     - Side Effects: phase = (phase + increment(mode)) mod 4. In
#       interactive mode, before the first interaction, phase is capped
#       at exactly 1.0. The held stage is therefore ACTIVITY at sub-phase
#       0: the black hole sits at max_size with activity gravity
#       until the first press opens the gate.
#     - Outputs: The new phase value.
#
#   - apply(self, context: SimulationContext) -> None:
#     - Side Effects: Writes black_hole.size, black_hole.gravity and, for
#       formation, stability and dissipation, the particles' orbits (and
#       speeds for the last two) from the current phase.
#     - Invariants: 0 <= black_hole.size <= black_hole.max_size,
#       black_hole.gravity >= 0.
#
#   - register_interaction(self, mode: Mode) -> None:
#     - Side Effects: Opens the interaction gate. In interactive mode a
#       phase still in formation jumps to 1.0 (activity).

PHASE_CYCLE = 4.0


class Phase(enum.IntEnum):
    FORMATION = 0
    ACTIVITY = 1
    STABILITY = 2
    DISSIPATION = 3

    @classmethod
    def of(cls, phase: float) -> "Phase":
        return cls(int(math.floor(phase)) % 4)

    @property
    def label(self) -> str:
        return self.name.lower()


class PhaseTimeline:
    """
    Advances the cyclic phase and derives the per-phase targets.
    """
    def __init__(self, modes: ModeController):
        self.modes = modes
        self.phase = 0.0
        self.interacted = False
        self._last_stage = Phase.FORMATION
        self._handlers = {
            Phase.FORMATION: self._formation,
            Phase.ACTIVITY: self._activity,
            Phase.STABILITY: self._stability,
            Phase.DISSIPATION: self._dissipation,
        }

    @property
    def current(self) -> Phase:
        return Phase.of(self.phase)

    @property
    def label(self) -> str:
        return self.current.label

    @property
    def gated(self) -> bool:
        """True while interactive mode is holding the phase at the activity boundary."""
        return not self.interacted

    def reset(self) -> None:
        self.phase = 0.0
        self.interacted = False
        self._last_stage = Phase.FORMATION

    def advance(self, mode: Mode) -> float:
        phase = (self.phase + self.modes.phase_increment(mode)) % PHASE_CYCLE
        if mode is Mode.INTERACTIVE and not self.interacted and self.phase <= 1.0:
            phase = min(phase, 1.0)
        self.phase = phase

        stage = self.current
        if stage is not self._last_stage:
            logging.info(f"Phase changed: {self._last_stage.label} -> {stage.label} (phase={self.phase:.3f}).")
            self._last_stage = stage
        return self.phase

    def register_interaction(self, mode: Mode) -> None:
        if self.interacted:
            return
        self.interacted = True
        if mode is Mode.INTERACTIVE and self.phase < 1.0:
            logging.debug(f"First interaction at phase {self.phase:.3f}; skipping to activity.")
            self.phase = 1.0

    def apply(self, context: "SimulationContext") -> None:
        stage = self.current
        sub = self.phase - stage.value
        self._handlers[stage](sub, context.black_hole, context.particles, context.mode, context.sound_level)

    def update(self, context: "SimulationContext") -> None:
        """Advances the phase for the context's mode and applies the new targets."""
        self.advance(context.mode)
        self.apply(context)

    # --- Phase handlers ---
    # Each receives the eased position within its own stage (0 <= sub < 1).

    def _formation(self, sub: float, black_hole: BlackHole, particles: ParticleSystem,
                   mode: Mode, sound_level: float) -> None:
        e = ease(sub)
        black_hole.size = black_hole.max_size * e
        black_hole.gravity = e * 0.1
        particles.orbits[:] = particles.initial_orbits * e

    def _activity(self, sub: float, black_hole: BlackHole, particles: ParticleSystem,
                  mode: Mode, sound_level: float) -> None:
        black_hole.size = black_hole.max_size
        if mode is Mode.INTERACTIVE:
            black_hole.gravity = 0.1 + sound_level * 0.2
        else:
            black_hole.gravity = 0.1

    def _stability(self, sub: float, black_hole: BlackHole, particles: ParticleSystem,
                   mode: Mode, sound_level: float) -> None:
        e = ease(sub)
        black_hole.size = black_hole.max_size * (1 - 0.7 * e)
        black_hole.gravity = 0.1 + 0.2 * e
        particles.orbits[:] = particles.initial_orbits * (1 - 0.8 * e)
        particles.speeds[:] = particles.base_speeds * (1 + sub * 2)

    def _dissipation(self, sub: float, black_hole: BlackHole, particles: ParticleSystem,
                     mode: Mode, sound_level: float) -> None:
        e = ease(sub)
        black_hole.size = black_hole.max_size * 0.3 * (1 - e)
        black_hole.gravity = 0.3 * (1 - e)
        particles.orbits[:] = particles.initial_orbits * (0.2 + 0.8 * e)
        particles.speeds[:] = particles.base_speeds * (3 - 2 * e)
