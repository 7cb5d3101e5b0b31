# audio.py
"""
Audio and microphone collaborators.

The simulation never talks to a sound device directly. It emits discrete
triggers (`play_ambient`, `play_touch`, `play_switch`) and background-music
hints (`set_music`) on an AudioEngine, and polls a Microphone for the
latest input level. The base classes are silent, so a missing mixer,
missing assets or a denied microphone simply leave the animation running
without sound.
"""
import logging
import os
import threading
from typing import Any, Dict, Optional, Tuple

import numpy as np
import pygame

# sounddevice raises OSError on import when the PortAudio library is missing.
try:
    import sounddevice as sd
    _SOUNDDEVICE_ERROR = None
except (ImportError, OSError) as e:
    sd = None
    _SOUNDDEVICE_ERROR = e

from constants import AUDIO_ASSETS
from easing import clamp, ease, remap
from modes import Mode

# --- Data Contracts ---
#
# particle_sound_hints(force: float, distance: float, black_hole_size: float) -> (volume, rate)
#   - volume in [0.1, 0.5], louder the closer the particle is to the horizon.
#   - rate in [0.5, 2.0], faster the stronger the pull.
#
# touch_sound_hints(force: float) -> (volume, rate)
#   - volume in [0.2, 0.5], rate in [0.7, 1.5].
#
# music_hints(phase: float, mode: Mode, sound_level: float) -> (volume, rate)
#   - volume in [0, 1], rate in [0.5, 1.5].
#
# class AudioEngine / PygameAudio:
#   - start() -> None: first user gesture; nothing is audible before it.
#   - play_ambient(volume, rate), play_touch(volume, rate), play_switch(),
#     set_music(volume, rate): never raise.
#
# class Microphone / SoundDeviceMicrophone:
#   - get_level() -> float in [0, 1]. Never blocks.
#   - available: bool, False until an input stream is running.


def particle_sound_hints(force: float, distance: float, black_hole_size: float) -> Tuple[float, float]:
    if black_hole_size > 0:
        volume = remap(distance, black_hole_size, black_hole_size * 2, 0.5, 0.1)
    else:
        volume = 0.1
    rate = remap(force, 0.05, 0.5, 0.8, 1.5)
    return clamp(volume, 0.1, 0.5), clamp(rate, 0.5, 2.0)


def touch_sound_hints(force: float) -> Tuple[float, float]:
    volume = remap(force, 0.0, 0.2, 0.2, 0.5)
    rate = remap(force, 0.0, 0.2, 0.9, 1.3)
    return clamp(volume, 0.2, 0.5), clamp(rate, 0.7, 1.5)


def music_hints(phase: float, mode: Mode, sound_level: float) -> Tuple[float, float]:
    """Background music volume and playback rate for the current phase."""
    if phase < 1:
        volume = 0.2 + 0.3 * ease(phase)
    elif phase < 2:
        volume = 0.5
    elif phase < 3:
        volume = 0.5 + 0.3 * ease(phase - 2)
    else:
        volume = 0.8 - 0.6 * ease(phase - 3)

    if mode is Mode.INTERACTIVE:
        volume *= 1 + sound_level * 0.5
        rate = 0.8 + 0.4 * sound_level
    else:
        rate = 0.8 + 0.4 * ease(phase)

    return clamp(volume, 0.0, 1.0), clamp(rate, 0.5, 1.5)


class AudioEngine:
    """
    Silent audio collaborator. Every trigger is accepted and ignored.
    """
    def __init__(self):
        self.started = False

    def start(self) -> None:
        self.started = True

    def play_ambient(self, volume: float, rate: float) -> None:
        pass

    def play_touch(self, volume: float, rate: float) -> None:
        pass

    def play_switch(self) -> None:
        pass

    def set_music(self, volume: float, rate: float) -> None:
        pass

    def close(self) -> None:
        pass


class PygameAudio(AudioEngine):
    """
    Plays the sound effects and background music through pygame.mixer.

    pygame.mixer has no per-sound playback-rate control, so rate hints
    are accepted but only volume hints are applied.
    """
    def __init__(self, asset_dir: str, music_volume: float = 0.5):
        super().__init__()
        self.asset_dir = asset_dir
        self.music_volume = music_volume
        self.mixer_ready = False
        self.music_loaded = False
        self.sounds: Dict[str, Optional[pygame.mixer.Sound]] = {}

        try:
            pygame.mixer.init()
            self.mixer_ready = True
        except pygame.error as e:
            logging.error(f"Audio mixer could not be initialized: {e}. Sound is disabled.")
            return

        for name in ("switch", "touch", "particle"):
            self.sounds[name] = self._load_sound(name)

        music_path = os.path.join(asset_dir, AUDIO_ASSETS["music"])
        try:
            pygame.mixer.music.load(music_path)
            pygame.mixer.music.set_volume(music_volume)
            self.music_loaded = True
            logging.info(f"Background music loaded from {music_path}.")
        except (pygame.error, FileNotFoundError) as e:
            logging.warning(f"Background music failed to load from {music_path}: {e}")

    def _load_sound(self, name: str) -> Optional[pygame.mixer.Sound]:
        path = os.path.join(self.asset_dir, AUDIO_ASSETS[name])
        try:
            sound = pygame.mixer.Sound(path)
        except (pygame.error, FileNotFoundError) as e:
            logging.warning(f"Sound effect '{name}' failed to load from {path}: {e}")
            return None
        logging.info(f"Sound effect '{name}' loaded successfully.")
        return sound

    def start(self) -> None:
        if self.started:
            return
        super().start()
        if self.music_loaded:
            pygame.mixer.music.play(loops=-1)
        self._play("particle", 0.5)
        logging.info("Audio started by user gesture.")

    def _play(self, name: str, volume: float, retrigger: bool = True) -> None:
        if not self.started:
            return
        sound = self.sounds.get(name)
        if sound is None:
            return
        if not retrigger and sound.get_num_channels() > 0:
            return
        sound.set_volume(volume)
        sound.play()

    def play_ambient(self, volume: float, rate: float) -> None:
        self._play("particle", volume, retrigger=False)

    def play_touch(self, volume: float, rate: float) -> None:
        self._play("touch", volume, retrigger=False)

    def play_switch(self) -> None:
        self._play("switch", 0.7)

    def set_music(self, volume: float, rate: float) -> None:
        if self.started and self.music_loaded:
            pygame.mixer.music.set_volume(volume)

    def close(self) -> None:
        if self.mixer_ready:
            pygame.mixer.quit()
            self.mixer_ready = False


class Microphone:
    """
    Microphone collaborator with no input device. Always reports silence.
    """
    def __init__(self):
        self.available = False

    def start(self) -> None:
        pass

    def get_level(self) -> float:
        return 0.0

    def close(self) -> None:
        pass


class SoundDeviceMicrophone(Microphone):
    """
    Reads the default input device through sounddevice and keeps the RMS
    level of the most recent block.
    """
    def __init__(self, samplerate: int = 22050, blocksize: int = 1024, device: Optional[Any] = None):
        super().__init__()
        self.samplerate = samplerate
        self.blocksize = blocksize
        self.device = device
        self._level = 0.0
        self._lock = threading.Lock()
        self._stream = None

    def start(self) -> None:
        if sd is None:
            logging.warning(f"Microphone unavailable, sound interaction is disabled: {_SOUNDDEVICE_ERROR}")
            return

        try:
            self._stream = sd.InputStream(
                device=self.device, channels=1, samplerate=self.samplerate,
                blocksize=self.blocksize, dtype="float32",
                callback=self._callback,
            )
            self._stream.start()
        except (sd.PortAudioError, ValueError) as e:
            logging.warning(f"Microphone permission or device not available, sound interaction is disabled: {e}")
            self._stream = None
            return

        self.available = True
        logging.info("Microphone input stream started.")

    def _callback(self, indata, frames, time, status) -> None:
        if status:
            logging.debug(f"Microphone stream status: {status}")
        mono = indata[:, 0]
        rms = float(np.sqrt(np.mean(mono * mono))) if mono.size else 0.0
        with self._lock:
            self._level = min(max(rms, 0.0), 1.0)

    def get_level(self) -> float:
        if not self.available:
            return 0.0
        with self._lock:
            return self._level

    def close(self) -> None:
        if self._stream is not None:
            self._stream.stop()
            self._stream.close()
            self._stream = None
        self.available = False
