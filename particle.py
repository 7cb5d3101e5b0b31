# particle.py
"""
Manages the state of the orbiting particles and the central black hole.

This module defines the ParticleSystem class, which is responsible for
initializing and storing particle data (e.g., position, orbit, hue)
in efficient NumPy arrays, and the BlackHole record shared by the
phase timeline and the integrator.
"""
import logging
from collections import deque
from typing import Any, Deque, Dict, List, NamedTuple, Tuple

import numpy as np

from constants import (
    BASE_SPEED, BLACK_HOLE_SIZE_RATIO, SPEED_ORBIT_UNIT, SPEED_PER_ORBIT_UNIT,
    TRAIL_LENGTH
)

# --- Data Contracts ---
#
# class BlackHole:
#   - __init__(self, width: float, height: float):
#     - Side Effects: Centers the black hole on the canvas and derives
#       max_size = BLACK_HOLE_SIZE_RATIO * min(width, height).
#     - Invariants: 0 <= size <= max_size, gravity >= 0. size and gravity
#       are only written by the PhaseTimeline.
#
# class ParticleSystem:
#   - __init__(self, params: Dict[str, Any], width: float, height: float):
#     - Inputs:
#       - params: Dictionary of simulation parameters from config.json.
#         - "ring_step_degrees": int
#         - "ring_count": int
#         - "ring_spacing": float
#       - width, height: canvas dimensions; particles orbit the center.
#     - Outputs: None
#     - Side Effects: Initializes internal NumPy arrays for particle state.
#     - Invariants:
#       - self.positions is a NumPy array of shape (N, 2) of dtype float64.
#       - self.angles, orbits, speeds, hues, sizes are (N,) float64.
#       - self.sound_timers is (N,) int64.
#       - len(self.trails[i]) <= TRAIL_LENGTH for every particle.
#       - self.initial_positions and self.initial_orbits never change.


class BlackHole:
    """The pulsating attractor at the center of the canvas."""

    def __init__(self, width: float, height: float):
        self.x = 0.0
        self.y = 0.0
        self.max_size = 0.0
        self.size = 0.0
        self.gravity = 0.0
        self.recenter(width, height)

    def recenter(self, width: float, height: float) -> None:
        self.x = width / 2
        self.y = height / 2
        self.max_size = min(width, height) * BLACK_HOLE_SIZE_RATIO

    def __repr__(self) -> str:
        return (
            f"BlackHole(x={self.x:.1f}, y={self.y:.1f}, size={self.size:.2f}, "
            f"max_size={self.max_size:.2f}, gravity={self.gravity:.3f})"
        )


class ParticleState(NamedTuple):
    """Read-only snapshot of one particle, handed to the render surface."""
    x: float
    y: float
    angle: float
    orbit: float
    speed: float
    size: float
    hue: float
    trail: Tuple[Tuple[float, float], ...]
    sound_timer: int


class ParticleSystem:
    """
    A container for all orbiting particles, managing their state via NumPy arrays.
    """
    def __init__(self, params: Dict[str, Any], width: float, height: float):
        """
        Initializes the particle rings around the canvas center.

        Args:
            params (Dict[str, Any]): Simulation parameters from config.
            width (float): The width of the canvas.
            height (float): The height of the canvas.
        """
        self.ring_step = params.get('ring_step_degrees', 15)
        self.ring_count = params.get('ring_count', 4)
        self.ring_spacing = float(params.get('ring_spacing', 80.0))

        if self.ring_step <= 0 or self.ring_count <= 0 or self.ring_spacing <= 0:
            msg = (
                f"Configuration error: ring_step_degrees ({self.ring_step}), "
                f"ring_count ({self.ring_count}) and ring_spacing ({self.ring_spacing}) "
                f"must all be positive."
            )
            logging.critical(msg)
            raise ValueError(msg)

        # One particle per (angle, ring) pair, angle-major like the rings are drawn.
        ring_angles = np.arange(0, 360, self.ring_step, dtype=np.float64)
        ring_indices = np.arange(1, self.ring_count + 1, dtype=np.float64)
        angles, rings = np.meshgrid(ring_angles, ring_indices, indexing='ij')
        angles = angles.ravel()
        rings = rings.ravel()

        self.particle_count = angles.shape[0]
        center = np.array([width / 2, height / 2])
        radians = np.radians(angles)
        unit = np.column_stack((np.cos(radians), np.sin(radians)))

        self.initial_orbits = rings * self.ring_spacing
        self.initial_positions = center + unit * self.initial_orbits[:, np.newaxis]
        self.initial_orbits.setflags(write=False)
        self.initial_positions.setflags(write=False)

        self.positions = self.initial_positions.copy()
        self.angles = angles.copy()
        self.orbits = self.initial_orbits.copy()
        self.speeds = self.base_speeds.copy()
        self.sizes = 3.0 + rings * 2.0
        self.hues = np.mod(angles, 360.0)
        self.sound_timers = np.zeros(self.particle_count, dtype=np.int64)
        self.trails: List[Deque[Tuple[float, float]]] = [
            deque(maxlen=TRAIL_LENGTH) for _ in range(self.particle_count)
        ]

        logging.info(
            f"ParticleSystem initialized with {self.particle_count} "
            f"particles on {self.ring_count} rings."
        )
        logging.debug(
            f"Particle data arrays created. "
            f"Positions shape: {self.positions.shape}, "
            f"Orbits range: [{self.initial_orbits.min():.1f}, {self.initial_orbits.max():.1f}]"
        )

    @property
    def base_speeds(self) -> np.ndarray:
        """Resting angular velocity of each particle, derived from its ring."""
        return BASE_SPEED + (self.initial_orbits / SPEED_ORBIT_UNIT) * SPEED_PER_ORBIT_UNIT

    def record_trails(self) -> None:
        """Appends every particle's current position to its trail."""
        for trail, (x, y) in zip(self.trails, self.positions):
            trail.append((float(x), float(y)))

    def reset_kinematics(self) -> None:
        """Restores orbit and speed to their resting values and clears trails."""
        self.orbits[:] = self.initial_orbits
        self.speeds[:] = self.base_speeds
        self.sound_timers[:] = 0
        for trail in self.trails:
            trail.clear()

    def state(self, index: int) -> ParticleState:
        x, y = self.positions[index]
        return ParticleState(
            x=float(x),
            y=float(y),
            angle=float(self.angles[index]),
            orbit=float(self.orbits[index]),
            speed=float(self.speeds[index]),
            size=float(self.sizes[index]),
            hue=float(self.hues[index]),
            trail=tuple(self.trails[index]),
            sound_timer=int(self.sound_timers[index]),
        )

    def __len__(self) -> int:
        return self.particle_count
