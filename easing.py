# easing.py
"""
Easing curves used by the phase timeline and the audio mappings.

The curve is compiled with Numba so the particle kernel and the
Python-side phase handlers share a single implementation.
"""
from numba import jit

# --- Data Contracts ---
#
# ease(t: float) -> float:
#   - Inputs:
#     - t: any float. Values outside [0, 1] are clamped.
#   - Outputs: float in [0, 1].
#   - Invariants: ease(0) == 0, ease(0.5) == 0.5, ease(1) == 1.
#     Continuous and non-decreasing on [0, 1].


@jit(nopython=True)
def ease(t):
    """Cubic ease-in/out over a normalized value."""
    x = min(max(float(t), 0.0), 1.0)
    if x < 0.5:
        return 4.0 * x * x * x
    return 1.0 - ((-2.0 * x + 2.0) ** 3) / 2.0


def remap(value: float, in_min: float, in_max: float, out_min: float, out_max: float) -> float:
    """Linearly re-maps a value from one range onto another (unclamped)."""
    return out_min + (value - in_min) * (out_max - out_min) / (in_max - in_min)


def clamp(value: float, low: float, high: float) -> float:
    return min(max(value, low), high)
