"""Pytest configuration and shared fixtures."""

import pytest

from audio import AudioEngine, Microphone
from simulation import Simulation

CANVAS_WIDTH = 800
CANVAS_HEIGHT = 600


class RecordingAudio(AudioEngine):
    """Audio collaborator that remembers every trigger it receives."""

    def __init__(self):
        super().__init__()
        self.events = []

    def play_ambient(self, volume, rate):
        self.events.append(("ambient", volume, rate))

    def play_touch(self, volume, rate):
        self.events.append(("touch", volume, rate))

    def play_switch(self):
        self.events.append(("switch",))

    def set_music(self, volume, rate):
        self.events.append(("music", volume, rate))

    def of_kind(self, kind):
        return [event for event in self.events if event[0] == kind]


class FixedMicrophone(Microphone):
    """Microphone that always reports the same level."""

    def __init__(self, level):
        super().__init__()
        self.available = True
        self.level = level

    def get_level(self):
        return self.level


@pytest.fixture
def sim_params() -> dict:
    """Default simulation parameters, matching config.json."""
    return {
        "seed": 42,
        "start_mode": "auto",
        "ring_step_degrees": 15,
        "ring_count": 4,
        "ring_spacing": 80.0,
        "ambient_count": 400,
        "auto_phase_increment": 0.01,
        "interactive_phase_increment": 0.005,
        "mic_gain": 8.0,
        "max_sound_level": 2.0,
    }


@pytest.fixture
def audio() -> RecordingAudio:
    return RecordingAudio()


@pytest.fixture
def simulation(sim_params, audio) -> Simulation:
    """An 800x600 simulation with a recording audio collaborator."""
    return Simulation(sim_params, CANVAS_WIDTH, CANVAS_HEIGHT, audio=audio)
