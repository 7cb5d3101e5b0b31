# ambient.py
"""
The decorative ambient field.

Several hundred small particles circle the canvas center independently of
the orbit simulation. They read only the black hole's size, the sound
level and the pointer, and never feed anything back into the main
particles.
"""
import logging
from collections import deque
from typing import Any, Deque, Dict, List

import numpy as np

from constants import (
    AMBIENT_POINTER_RADIUS, AMBIENT_PUSH_STRENGTH, AMBIENT_TRAIL_DECAY,
    AMBIENT_TRAIL_LENGTH, AMBIENT_TRAIL_MIN_ALPHA
)
from modes import Mode

# Forward reference for type hinting to avoid circular import
from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from simulation import SimulationContext

# --- Data Contracts ---
#
# class AmbientField:
#   - __init__(self, params: Dict[str, Any], width: float, height: float, rng: np.random.Generator):
#     - Inputs:
#       - params: simulation parameters; "ambient_count": int (default 400).
#       - rng: the simulation's seeded generator.
#     - Invariants:
#       - angles, radii, speeds, sizes, alphas are (N,) float64.
#       - positions, draw_sizes, draw_alphas hold the latest update's
#         render values; positions are relative to the canvas center.
#       - Every trail in self.trails is non-empty, holds at most
#         AMBIENT_TRAIL_LENGTH [x, y, alpha] points and every alpha is
#         above AMBIENT_TRAIL_MIN_ALPHA.
#
#   - update(self, context: SimulationContext) -> None:
#     - Side Effects: Advances angles, recomputes positions and render
#       values, grows trails near a pressed pointer in interactive mode,
#       decays and prunes all trails.


class AmbientField:
    """
    Background particles orbiting the canvas center.
    """
    def __init__(self, params: Dict[str, Any], width: float, height: float, rng: np.random.Generator):
        self.count = int(params.get('ambient_count', 400))
        max_radius = max(min(width, height) / 2, 30.0)

        self.angles = rng.uniform(0.0, 360.0, self.count)
        self.radii = rng.uniform(30.0, max_radius, self.count)
        self.speeds = rng.uniform(0.1, 0.8, self.count)
        self.sizes = rng.uniform(1.0, 4.0, self.count)
        self.alphas = rng.uniform(80.0, 180.0, self.count)

        self.positions = np.zeros((self.count, 2), dtype=np.float64)
        self.draw_sizes = self.sizes.copy()
        self.draw_alphas = self.alphas.copy()
        # Created lazily, only for particles the pointer has touched.
        self.trails: Dict[int, Deque[List[float]]] = {}

        logging.info(f"AmbientField initialized with {self.count} particles.")

    def update(self, context: "SimulationContext") -> None:
        self.angles += self.speeds
        target_radii = self.radii + np.sin(np.radians(context.time * 0.5)) * 1.5

        pointer = context.pointer
        if context.mode is Mode.INTERACTIVE and pointer.pressed:
            radians = np.radians(self.angles)
            unit = np.column_stack((np.cos(radians), np.sin(radians)))
            current = unit * target_radii[:, np.newaxis]
            rel_pointer = np.array([pointer.x - context.width / 2, pointer.y - context.height / 2])
            distances = np.linalg.norm(current - rel_pointer, axis=1)

            for i in np.flatnonzero(distances < AMBIENT_POINTER_RADIUS).tolist():
                target_radii[i] += (AMBIENT_POINTER_RADIUS - distances[i]) / AMBIENT_POINTER_RADIUS * AMBIENT_PUSH_STRENGTH
                trail = self.trails.get(i)
                if trail is None:
                    trail = deque(maxlen=AMBIENT_TRAIL_LENGTH)
                    self.trails[i] = trail
                trail.append([
                    unit[i, 0] * target_radii[i],
                    unit[i, 1] * target_radii[i],
                    self.alphas[i],
                ])

        radians = np.radians(self.angles)
        self.positions[:, 0] = np.cos(radians) * target_radii
        self.positions[:, 1] = np.sin(radians) * target_radii

        self._decay_trails()

        size_factor = 1.0
        if context.microphone.available:
            size_factor += context.sound_level * 0.5
            self.draw_alphas = np.clip(self.alphas + context.sound_level * 50, 50, 255)
        else:
            self.draw_alphas = self.alphas.copy()
        size_factor *= 1 + context.black_hole.size / 1000
        self.draw_sizes = self.sizes * size_factor

    def _decay_trails(self) -> None:
        for i in list(self.trails):
            trail = self.trails[i]
            for point in trail:
                point[2] *= AMBIENT_TRAIL_DECAY
            kept = [point for point in trail if point[2] > AMBIENT_TRAIL_MIN_ALPHA]
            if not kept:
                del self.trails[i]
            elif len(kept) != len(trail):
                self.trails[i] = deque(kept, maxlen=AMBIENT_TRAIL_LENGTH)
