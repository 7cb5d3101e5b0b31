# constants.py
"""
Application-level constants.

These values are static and do not change between simulation runs.
They are fundamental to the application's framework, such as rendering
properties, default window sizes, or the fixed physics rules of the
orbit engine that are not part of the experimental configuration.
"""

# Visualization settings
# Set to True to run in borderless fullscreen mode.
# Set to False to run in a resizable window (see DEFAULT_WINDOW_SIZE).
FULLSCREEN = False
DEFAULT_WINDOW_SIZE = (1280, 800)
FPS = 60
WINDOW_TITLE = "Digital Bloom"
BACKGROUND_COLOR = (5, 10, 0)

# --- Motion Blur ---
# Alpha value (0-255) of the fade layer. Lower is a longer trail.
FADE_ALPHA_TRAILS = 13
FADE_ALPHA_NO_TRAILS = 38

# --- Black Hole ---
# Max radius as a fraction of min(width, height).
BLACK_HOLE_SIZE_RATIO = 0.2

# --- Particle Speeds ---
# Resting speed is BASE_SPEED + (initial orbit / SPEED_ORBIT_UNIT) * SPEED_PER_ORBIT_UNIT,
# independent of the configured ring spacing.
BASE_SPEED = 0.08
SPEED_ORBIT_UNIT = 80.0
SPEED_PER_ORBIT_UNIT = 0.04

# --- Particle Trails ---
TRAIL_LENGTH = 30
TRAIL_SAMPLE_INTERVAL = 3
AMBIENT_TRAIL_LENGTH = 20
AMBIENT_TRAIL_DECAY = 0.9
AMBIENT_TRAIL_MIN_ALPHA = 10

# --- Integrator ---
POINTER_FORCE_MAX = 0.2
POINTER_FORCE_SCALE = 40.0
STRONG_PULL_THRESHOLD = 0.2
EASE_FACTOR_STRONG = 0.15
EASE_FACTOR_WEAK = 0.08

# --- Sound Triggers ---
SOUND_COOLDOWN_TICKS = 30
SOUND_FORCE_THRESHOLD = 0.05
TOUCH_SOUND_INTERVAL = 15
TOUCH_SOUND_RADIUS = 100.0

# --- Ambient Field ---
AMBIENT_POINTER_RADIUS = 100.0
AMBIENT_PUSH_STRENGTH = 5.0
GLOBAL_TIME_STEP = 0.5

# --- HUD ---
HUD_TEXT_COLOR = (255, 255, 255)
SWITCH_BUTTON_RECT = (20, 120, 140, 30)
BUTTON_COLOR = (50, 50, 50, 180)
BUTTON_HOVER_COLOR = (80, 80, 80, 204)
BUTTON_BORDER_COLOR = (255, 255, 255, 204)

# Human-readable stage names shown in the HUD, indexed by phase.
STAGE_NAMES = ["formation", "activity", "stability", "dissipation"]

# Audio asset file names, looked up under the configured asset directory.
AUDIO_ASSETS = {
    "music": "blackhole.mp3",
    "switch": "switch.mp3",
    "touch": "touch.mp3",
    "particle": "particle.mp3",
}
