import numpy as np
from numba import njit

# ────────────────────────────────────────────────────────────
# Utility helpers
# ────────────────────────────────────────────────────────────
def clamp(v, mn, mx):
    """Restrict *v* to the closed interval [mn, mx]."""
    return max(mn, min(v, mx))


@njit(cache=True)
def color_distance_squared(a, b):
    """Squared RGB distance between two pixels; alpha is ignored."""
    dr = int(a[0]) - int(b[0])
    dg = int(a[1]) - int(b[1])
    db = int(a[2]) - int(b[2])
    return dr * dr + dg * dg + db * db


@njit(cache=True)                 # heavy loop → numba-compiled
def _image_difference_numba(a, b):
    diff = 0
    for i in range(a.shape[0]):
        for j in range(a.shape[1]):
            diff += color_distance_squared(a[i, j], b[i, j])
    return diff


def image_difference(arr_a: np.ndarray, arr_b: np.ndarray) -> int:
    """Total squared-RGB error between two same-sized pixel grids."""
    return int(_image_difference_numba(
        np.ascontiguousarray(arr_a, np.uint8),
        np.ascontiguousarray(arr_b, np.uint8)
    ))


def ease_out_cubic(t: float) -> float:
    """Fast start, slow settle. *t* is clamped to [0, 1]."""
    t = clamp(float(t), 0.0, 1.0)
    return 1.0 - (1.0 - t) ** 3
