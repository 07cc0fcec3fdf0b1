"""
Tunable parameters for both engines and the display surfaces.

None of the sampling constants are load-bearing: the optimizer stays
monotone and the matcher stays deterministic in its particle count for
any positive value.
"""

# ── Assets ──────────────────────────────────────────────────────────
TARGET_PATH = "truffle.png"     # the secret sauce

# ── Mutation optimizer ──────────────────────────────────────────────
ITERATIONS_PER_TICK = 200       # mutations per displayed frame
RADIUS_MIN = 2                  # inclusive
RADIUS_MAX = 30                 # inclusive
PATCH_ALPHA = 100               # blend strength out of 255

# ── Particle transport ──────────────────────────────────────────────
PARTICLE_BUDGET = 15000         # rough cap on emitted particles
MATCH_SAMPLES = 100             # candidates drawn per source pixel
VIEWPORT = (800, 800)           # width, height of the display surface
VIEWPORT_FRACTION = 0.8         # share of the viewport an image fills
END_JITTER = 0.5                # end-position jitter, in target pixels
SIZE_JITTER = 0.25              # relative spread of particle sizes
ANIMATION_DURATION = 3.0        # seconds from source to target

# ── Display ─────────────────────────────────────────────────────────
MIN_DISPLAY_WIDTH = 600         # small grids are scaled up to this
BACKGROUND = (30, 30, 30)

DEFAULTS = dict(
    mode        ='mutate',
    iterations  =ITERATIONS_PER_TICK,
    duration    =ANIMATION_DURATION,
    viewport    =VIEWPORT,
    background  =BACKGROUND,
)


def make_ctx(**extra):
    ctx = DEFAULTS.copy()
    ctx.update(extra)
    return ctx
