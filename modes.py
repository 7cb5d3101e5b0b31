# modes.py
"""
Auto and interaction modes, and switching between them.

In auto mode the phase timeline runs on its own. In interaction mode the
timeline runs at half speed, waits for the first touch before leaving
formation, pointer presses pull particles and the microphone level
modulates gravity and color.
"""
import enum
import logging
from typing import Dict, Any

# Forward reference for type hinting to avoid circular import
from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from simulation import SimulationContext

# --- Data Contracts ---
#
# class ModeController:
#   - __init__(self, params: Dict[str, Any]):
#     - Inputs:
#       - params: Dictionary of simulation parameters from config.json.
#         - "auto_phase_increment": float
#         - "interactive_phase_increment": float
#   - switch(self, context: SimulationContext, target: Mode) -> None:
#     - Side Effects: Sets context.mode, resets the phase timeline, resets
#       every particle's orbit/speed/trail/sound timer and emits one
#       play_switch() on the audio collaborator. Same-mode switches
#       perform the full reset as well.
#   - toggle(self, context: SimulationContext) -> Mode:
#     - Outputs: The mode that is now active.


class Mode(enum.Enum):
    AUTO = "auto"
    INTERACTIVE = "interactive"

    @property
    def label(self) -> str:
        """Name shown in the HUD."""
        return "auto" if self is Mode.AUTO else "interaction"

    @property
    def other(self) -> "Mode":
        return Mode.INTERACTIVE if self is Mode.AUTO else Mode.AUTO


# Hue gain per unit of gravitational force.
COLOR_GAINS = {Mode.AUTO: 5.0, Mode.INTERACTIVE: 3.0}


class ModeController:
    """
    Owns the per-mode rates and the mode switch procedure.
    """
    def __init__(self, params: Dict[str, Any]):
        self.increments = {
            Mode.AUTO: float(params.get('auto_phase_increment', 0.01)),
            Mode.INTERACTIVE: float(params.get('interactive_phase_increment', 0.005)),
        }
        for mode, increment in self.increments.items():
            if not 0 < increment < 4:
                msg = (
                    f"Configuration error: phase increment for {mode.value} mode "
                    f"must be in (0, 4), got {increment}."
                )
                logging.critical(msg)
                raise ValueError(msg)

    def phase_increment(self, mode: Mode) -> float:
        return self.increments[mode]

    @staticmethod
    def color_gain(mode: Mode) -> float:
        return COLOR_GAINS[mode]

    @staticmethod
    def hue_drift(mode: Mode, phase: float, sound_level: float) -> float:
        """Per-tick hue advance independent of force."""
        if mode is Mode.AUTO:
            return phase * 20.0
        return sound_level * 10.0

    def switch(self, context: "SimulationContext", target: Mode) -> None:
        previous = context.mode
        context.mode = target
        context.timeline.reset()
        context.particles.reset_kinematics()
        context.audio.play_switch()
        logging.info(f"Mode switched: {previous.label} -> {target.label}.")

    def toggle(self, context: "SimulationContext") -> Mode:
        target = context.mode.other
        self.switch(context, target)
        return target
