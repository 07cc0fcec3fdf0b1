"""Per-frame drivers: pull one frame from an engine each time ``tick`` is called."""

import logging
import time

from .config import ANIMATION_DURATION, ITERATIONS_PER_TICK
from .grid import load_pixel_grid, load_working_grid
from .mutation import MutationOptimizer
from .particles import ParticleTransport

logger = logging.getLogger(__name__)


class OptimizerDriver:
    mode = "mutate"

    def __init__(self, optimizer: MutationOptimizer,
                 iterations_per_tick: int = ITERATIONS_PER_TICK) -> None:
        self.optimizer = optimizer
        self.iterations_per_tick = iterations_per_tick
        self.frames = 0

    def tick(self):
        """Run one batch of mutations and hand back the working grid."""
        self.optimizer.evolve(self.iterations_per_tick)
        self.frames += 1
        return self.optimizer.pixels

    def restart(self) -> None:
        # hill climbing has no timeline to rewind
        logger.debug("restart ignored in mutate mode")


class TransportDriver:
    mode = "particles"

    def __init__(self, transport: ParticleTransport,
                 duration: float = ANIMATION_DURATION,
                 clock=time.monotonic) -> None:
        if duration <= 0:
            raise ValueError(f"duration must be positive, got {duration}")
        self.transport = transport
        self.duration = duration
        self.clock = clock
        self.started = clock()

    def progress(self) -> float:
        return min(1.0, max(0.0, (self.clock() - self.started) / self.duration))

    def tick(self):
        return self.transport.primitives_at(self.progress())

    def restart(self) -> None:
        self.started = self.clock()
        logger.debug("animation restarted")


def open_session(mode: str, source_path, target_path, seed=None,
                 iterations: int = ITERATIONS_PER_TICK,
                 duration: float = ANIMATION_DURATION, **layout):
    """
    Load both grids and wire up the driver for *mode*.

    Raises MissingAsset / DecodeFailure from the loader untouched; the
    target is loaded first so a missing secret sauce is reported even when
    the source is missing too.
    """
    target = load_pixel_grid(target_path)
    if mode == "mutate":
        working = load_working_grid(source_path, target)
        return OptimizerDriver(MutationOptimizer(working, target, seed=seed),
                               iterations_per_tick=iterations)
    if mode == "particles":
        source = load_pixel_grid(source_path)
        return TransportDriver(ParticleTransport(source, target, seed=seed, **layout),
                               duration=duration)
    raise ValueError(f"Unknown mode: {mode}")
