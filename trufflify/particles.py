"""
Particle transport: send every (strided) source pixel to a target pixel of
similar colour and animate the trip.

The match is deliberately approximate. Each source pixel looks at a fixed
number of target pixels drawn at random and takes the closest colour among
them, so the layout cost per particle does not grow with the target size.
"""

import logging
import math
from typing import List, NamedTuple, Tuple

import numpy as np
from numba import njit

from .config import (END_JITTER, MATCH_SAMPLES, PARTICLE_BUDGET, SIZE_JITTER,
                     VIEWPORT, VIEWPORT_FRACTION)
from .utils import color_distance_squared, ease_out_cubic

logger = logging.getLogger(__name__)

Point = Tuple[float, float]
RGBA = Tuple[int, int, int, int]


# ────────────────────────────────────────────────────────────
# Display placement
# ────────────────────────────────────────────────────────────
class Placement(NamedTuple):
    """Affine map from pixel coordinates to display coordinates."""
    scale: float
    offset_x: float
    offset_y: float

    @classmethod
    def fit(cls, width: int, height: int, viewport=VIEWPORT,
            fraction: float = VIEWPORT_FRACTION) -> "Placement":
        """Centre an image so its limiting side fills *fraction* of the viewport."""
        vw, vh = viewport
        scale = fraction * min(vw / width, vh / height)
        return cls(scale, (vw - width * scale) / 2, (vh - height * scale) / 2)

    def apply(self, xs, ys) -> np.ndarray:
        xs = np.asarray(xs, dtype=np.float64)
        ys = np.asarray(ys, dtype=np.float64)
        return np.column_stack((self.offset_x + xs * self.scale,
                                self.offset_y + ys * self.scale))


def particle_stride(width: int, height: int, budget: int = PARTICLE_BUDGET) -> int:
    """Pixel skip that keeps the particle count near *budget*."""
    if budget <= 0:
        raise ValueError(f"particle budget must be positive, got {budget}")
    return max(1, int(math.floor(1 / math.sqrt(budget / (width * height)))))


def build_target_index(target: np.ndarray, placement: Placement):
    """Colours and display positions of every target pixel with alpha > 0."""
    ys, xs = np.nonzero(target[..., 3])
    return target[ys, xs], placement.apply(xs, ys)


@njit(cache=True)
def _nearest_of_sample(colors, index_colors, picks):
    """For each colour, the index entry closest to it among its own picks."""
    n, k = picks.shape
    best = np.empty(n, np.int64)
    for i in range(n):
        best_j = picks[i, 0]
        best_d = color_distance_squared(colors[i], index_colors[best_j])
        for s in range(1, k):
            j = picks[i, s]
            d = color_distance_squared(colors[i], index_colors[j])
            if d < best_d:
                best_d = d
                best_j = j
        best[i] = best_j
    return best


# ────────────────────────────────────────────────────────────
# Particle set
# ────────────────────────────────────────────────────────────
class Particle(NamedTuple):
    start_position: Point
    start_color: RGBA
    end_position: Point
    end_color: RGBA
    size: float


class ParticleSet:
    """
    Column-wise, read-only particle storage.

    Positions are ``(n, 2)`` float arrays in display space, colours are
    ``(n, 4)`` uint8 arrays. Nothing here changes after construction;
    everything a frame needs is derived from the progress value.
    """

    def __init__(self, start_positions, start_colors, end_positions,
                 end_colors, sizes, stride: int = 1) -> None:
        self.start_positions = np.asarray(start_positions, np.float64).reshape(-1, 2)
        self.start_colors = np.asarray(start_colors, np.uint8).reshape(-1, 4)
        self.end_positions = np.asarray(end_positions, np.float64).reshape(-1, 2)
        self.end_colors = np.asarray(end_colors, np.uint8).reshape(-1, 4)
        self.sizes = np.asarray(sizes, np.float64).reshape(-1)
        self.stride = stride

        n = len(self.start_positions)
        for name in ("start_colors", "end_positions", "end_colors", "sizes"):
            arr = getattr(self, name)
            if len(arr) != n:
                raise ValueError(f"{name} has {len(arr)} rows, expected {n}")
            arr.setflags(write=False)
        self.start_positions.setflags(write=False)

    def __len__(self) -> int:
        return len(self.start_positions)

    def __getitem__(self, i) -> Particle:
        return Particle(tuple(self.start_positions[i].tolist()),
                        tuple(self.start_colors[i].tolist()),
                        tuple(self.end_positions[i].tolist()),
                        tuple(self.end_colors[i].tolist()),
                        float(self.sizes[i]))

    def __iter__(self):
        return (self[i] for i in range(len(self)))

    def positions_at(self, t: float) -> np.ndarray:
        """Current positions at progress *t*; exact at t=0 and t=1."""
        e = ease_out_cubic(t)
        return (1.0 - e) * self.start_positions + e * self.end_positions

    def primitives_at(self, t: float) -> List[Tuple[Point, float, RGBA]]:
        """``(position, size, colour)`` per particle; colour never fades."""
        return list(zip(map(tuple, self.positions_at(t).tolist()),
                        self.sizes.tolist(),
                        map(tuple, self.start_colors.tolist())))


# ────────────────────────────────────────────────────────────
# Layout pass
# ────────────────────────────────────────────────────────────
def build_assignment(source: np.ndarray, target: np.ndarray, viewport=VIEWPORT,
                     rng: np.random.Generator = None, seed=None,
                     budget: int = PARTICLE_BUDGET,
                     samples: int = MATCH_SAMPLES,
                     fraction: float = VIEWPORT_FRACTION,
                     jitter: float = END_JITTER,
                     size_jitter: float = SIZE_JITTER) -> ParticleSet:
    """
    Match every strided, non-transparent source pixel to a target pixel.

    The particle count depends only on the source alpha channel and the
    stride; the random draws decide where particles go, never how many
    there are. A fully transparent target leaves every particle in place.
    """
    if samples < 1:
        raise ValueError(f"need at least one match sample, got {samples}")
    for grid in (source, target):
        if grid.ndim != 3 or grid.shape[2] != 4 or 0 in grid.shape[:2]:
            raise ValueError(f"expected a non-empty RGBA grid, got {grid.shape}")
    rng = rng if rng is not None else np.random.default_rng(seed)

    sh, sw = source.shape[:2]
    th, tw = target.shape[:2]
    src_place = Placement.fit(sw, sh, viewport, fraction)
    tgt_place = Placement.fit(tw, th, viewport, fraction)

    step = particle_stride(sw, sh, budget)
    base_size = step * src_place.scale

    index_colors, index_positions = build_target_index(target, tgt_place)

    sampled = source[::step, ::step]
    ys, xs = np.nonzero(sampled[..., 3])
    colors = np.ascontiguousarray(sampled[ys, xs])
    start = src_place.apply(xs * step, ys * step)
    n = len(colors)

    if n and len(index_colors):
        picks = rng.integers(0, len(index_colors), size=(n, samples))
        best = _nearest_of_sample(colors, np.ascontiguousarray(index_colors), picks)
        offsets = rng.uniform(-jitter, jitter, size=(n, 2)) * tgt_place.scale
        end = index_positions[best] + offsets
        end_colors = index_colors[best]
    else:
        end = start.copy()
        end_colors = colors.copy()

    sizes = base_size * rng.uniform(1.0 - size_jitter, 1.0 + size_jitter, size=n)

    logger.info("layout: %d particles (stride %d) onto %d target pixels",
                n, step, len(index_colors))
    return ParticleSet(start, colors, end, end_colors, sizes, stride=step)


class ParticleTransport:
    """Engine wrapper: one layout pass at construction, pure frames after."""

    def __init__(self, source: np.ndarray, target: np.ndarray, viewport=VIEWPORT,
                 rng: np.random.Generator = None, seed=None, **layout) -> None:
        self.viewport = tuple(viewport)
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        self.particles = build_assignment(source, target, self.viewport,
                                          rng=self.rng, **layout)

    def __len__(self) -> int:
        return len(self.particles)

    def positions_at(self, t: float) -> np.ndarray:
        return self.particles.positions_at(t)

    def primitives_at(self, t: float):
        return self.particles.primitives_at(t)
