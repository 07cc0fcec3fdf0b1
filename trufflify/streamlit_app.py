import time

import numpy as np
import streamlit as st
from PIL import Image, ImageDraw

from trufflify.config import (ANIMATION_DURATION, BACKGROUND, ITERATIONS_PER_TICK,
                              TARGET_PATH, VIEWPORT)
from trufflify.grid import (DecodeFailure, MissingAsset, load_pixel_grid,
                            to_grid, working_canvas)
from trufflify.mutation import MutationOptimizer
from trufflify.particles import ParticleTransport


def render_particles(primitives, viewport=VIEWPORT) -> Image.Image:
    """Rasterise ``(position, size, colour)`` primitives onto a still."""
    img = Image.new("RGBA", tuple(viewport), BACKGROUND + (255,))
    draw = ImageDraw.Draw(img, "RGBA")
    for (x, y), size, color in primitives:
        half = size / 2
        draw.rectangle([x - half, y - half, x + half, y + half], fill=tuple(color))
    return img


# ------------------------------------------------------------
# Main App Layout
# ------------------------------------------------------------
def trufflify_app():
    st.title("Trufflify")
    uploaded_file = st.file_uploader("Upload an image", type=["jpg", "jpeg", "png"])
    target_path = st.text_input("Secret sauce", value=TARGET_PATH)
    if uploaded_file is None:
        return

    source_img = Image.open(uploaded_file).convert("RGBA")
    st.image(source_img, caption="Input Image", use_column_width=True)

    mode = st.selectbox("Engine", ("mutate", "particles"))
    frames = st.number_input("Frames", min_value=1, value=120, step=1)
    seed = st.number_input("Seed", min_value=0, value=0, step=1)
    if mode == "mutate":
        iterations = st.slider("Mutations per frame", 1, 2000, ITERATIONS_PER_TICK)

    if not st.button("Run"):
        return

    try:
        target = load_pixel_grid(target_path)
    except (MissingAsset, DecodeFailure) as e:
        st.error(f"secret sauce not usable: {e}")
        return

    img_placeholder = st.empty()
    progress_placeholder = st.empty()
    if mode == "mutate":
        working = working_canvas(source_img, (target.shape[1], target.shape[0]))
        opt = MutationOptimizer(working, target, seed=int(seed))
        for i in range(frames):
            opt.evolve(iterations)
            img_placeholder.image(opt.pixels, width=350)
            progress_placeholder.text(
                f"Frame {i+1}/{frames}: {opt.accepted}/{opt.iterations} patches kept")
    else:
        transport = ParticleTransport(to_grid(source_img), target, seed=int(seed))
        for i in range(frames):
            t = (i + 1) / frames
            img_placeholder.image(np.array(render_particles(transport.primitives_at(t))))
            progress_placeholder.text(f"{len(transport)} particles, t={t:.2f}")
            time.sleep(ANIMATION_DURATION / frames)


if __name__ == "__main__":
    trufflify_app()
