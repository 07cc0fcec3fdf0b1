import logging
from typing import NamedTuple, Tuple

import numpy as np
from numba import njit

from .config import ITERATIONS_PER_TICK, PATCH_ALPHA, RADIUS_MAX, RADIUS_MIN
from .utils import color_distance_squared, image_difference

logger = logging.getLogger(__name__)

RGBA = Tuple[int, int, int, int]


class Patch(NamedTuple):
    """A circular, translucent colour proposal. Never stored past one step."""
    x: int
    y: int
    radius: int
    color: RGBA


# ────────────────────────────────────────────────────────────
# Compiled patch kernel
# ────────────────────────────────────────────────────────────
@njit(cache=True)
def _apply_patch(working, target, cx, cy, radius, r, g, b, a, undo):
    """
    Paint a disk into *working* in place and keep it only if it helps.

    Every touched cell is logged into *undo* as (y, x, r, g, b, a) before
    it is overwritten. On rejection the log is replayed backwards, which
    leaves the grid bit-identical to how it was found.
    """
    h, w = working.shape[0], working.shape[1]
    min_x, max_x = max(0, cx - radius), min(w - 1, cx + radius)
    min_y, max_y = max(0, cy - radius), min(h - 1, cy + radius)
    r2 = radius * radius
    inv = 255 - a

    n = 0
    error_before = 0
    error_after = 0
    for y in range(min_y, max_y + 1):
        dy = y - cy
        for x in range(min_x, max_x + 1):
            dx = x - cx
            if dx * dx + dy * dy > r2:
                continue
            px = working[y, x]
            undo[n, 0] = y
            undo[n, 1] = x
            for k in range(4):
                undo[n, 2 + k] = px[k]
            n += 1

            error_before += color_distance_squared(px, target[y, x])
            working[y, x, 0] = np.uint8((a * r + inv * int(px[0])) // 255)
            working[y, x, 1] = np.uint8((a * g + inv * int(px[1])) // 255)
            working[y, x, 2] = np.uint8((a * b + inv * int(px[2])) // 255)
            working[y, x, 3] = np.uint8(255)
            error_after += color_distance_squared(px, target[y, x])

    if error_after < error_before:
        return True, error_before, error_after, n

    for i in range(n - 1, -1, -1):
        y = undo[i, 0]
        x = undo[i, 1]
        for k in range(4):
            working[y, x, k] = np.uint8(undo[i, 2 + k])
    return False, error_before, error_after, n


# ────────────────────────────────────────────────────────────
# Optimizer
# ────────────────────────────────────────────────────────────
class MutationOptimizer:
    """
    Hill-climb a working grid towards a target with random translucent disks.

    Only strictly improving patches survive, so the total error of the
    working grid never goes up. The optimizer owns *working* and mutates it
    in place; *target* is only read.
    """

    def __init__(self, working: np.ndarray, target: np.ndarray,
                 rng: np.random.Generator = None, seed=None,
                 radius_range=(RADIUS_MIN, RADIUS_MAX),
                 alpha: int = PATCH_ALPHA) -> None:
        if working.shape != target.shape:
            raise ValueError(f"working grid {working.shape} does not match "
                             f"target grid {target.shape}")
        if working.ndim != 3 or working.shape[2] != 4:
            raise ValueError(f"expected an RGBA grid, got shape {working.shape}")
        if working.shape[0] == 0 or working.shape[1] == 0:
            raise ValueError("cannot optimise a zero-sized grid")
        lo, hi = radius_range
        if not 0 <= lo <= hi:
            raise ValueError(f"bad radius range {radius_range}")
        if not 0 <= alpha <= 255:
            raise ValueError(f"alpha must lie in [0, 255], got {alpha}")

        self.working = np.ascontiguousarray(working, dtype=np.uint8)
        self.target = np.ascontiguousarray(target, dtype=np.uint8)
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        self.radius_range = (int(lo), int(hi))
        self.alpha = int(alpha)

        side = 2 * self.radius_range[1] + 1
        self._undo = np.zeros((side * side, 6), dtype=np.int64)

        self.iterations = 0
        self.accepted = 0

    # ------------ accessors ------------
    @property
    def height(self) -> int:
        return self.working.shape[0]

    @property
    def width(self) -> int:
        return self.working.shape[1]

    @property
    def pixels(self) -> np.ndarray:
        """The live working grid, for upload to a display surface."""
        return self.working

    def total_error(self) -> int:
        return image_difference(self.working, self.target)

    # ------------ behaviour ------------
    def random_patch(self) -> Patch:
        lo, hi = self.radius_range
        r, g, b = (int(c) for c in self.rng.integers(0, 256, size=3))
        return Patch(
            x=int(self.rng.integers(0, self.width)),
            y=int(self.rng.integers(0, self.height)),
            radius=int(self.rng.integers(lo, hi + 1)),
            color=(r, g, b, self.alpha),
        )

    def try_patch(self, patch: Patch) -> bool:
        """Paint *patch*, keeping it iff the local error strictly drops."""
        r, g, b, a = patch.color
        side = 2 * patch.radius + 1
        if side * side > self._undo.shape[0]:
            self._undo = np.zeros((side * side, 6), dtype=np.int64)
        keep, _, _, _ = _apply_patch(self.working, self.target,
                                     patch.x, patch.y, patch.radius,
                                     r, g, b, a, self._undo)
        self.iterations += 1
        if keep:
            self.accepted += 1
        return bool(keep)

    def step(self) -> bool:
        return self.try_patch(self.random_patch())

    def evolve(self, iterations: int = ITERATIONS_PER_TICK) -> int:
        """Run *iterations* sequential steps; return how many were kept."""
        kept = 0
        for _ in range(iterations):
            kept += self.step()
        logger.debug("evolve: kept %d/%d patches (%d total)",
                     kept, iterations, self.accepted)
        return kept
