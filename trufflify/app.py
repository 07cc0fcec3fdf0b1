import io
import base64

import numpy as np
from flask import Flask, render_template, request, jsonify
from PIL import Image

from .config import MIN_DISPLAY_WIDTH, make_ctx


def display_scale(width: int) -> float:
    """Small grids are blown up so they are not postage stamps."""
    return MIN_DISPLAY_WIDTH / width if width < MIN_DISPLAY_WIDTH else 1.0


def encode_png(pixels: np.ndarray) -> str:
    buf = io.BytesIO()
    Image.fromarray(pixels, "RGBA").save(buf, format="PNG")
    return base64.b64encode(buf.getvalue()).decode()


def particles_json(primitives):
    return [{"x": round(x, 2), "y": round(y, 2),
             "size": round(size, 2), "color": list(color)}
            for (x, y), size, color in primitives]


def create_app(driver) -> Flask:
    app = Flask(__name__)
    app.config["DRIVER"] = driver

    # ── Canvas page ─────────────────────────────────────────────────
    @app.route("/")
    def index():
        d = app.config["DRIVER"]
        if d.mode == "mutate":
            opt = d.optimizer
            scale = display_scale(opt.width)
            dims = (round(opt.width * scale), round(opt.height * scale))
        else:
            dims = d.transport.viewport
        ctx = make_ctx(mode=d.mode, dims=dims,
                       iterations=getattr(d, "iterations_per_tick", None),
                       duration=getattr(d, "duration", None))
        return render_template("index.html", **ctx)

    # ── One frame per animation tick ───────────────────────────────
    @app.get("/frame")
    def frame():
        d = app.config["DRIVER"]
        if d.mode == "mutate":
            if "iterations" in request.args:
                try:
                    n = int(request.args["iterations"])
                    if n < 0:
                        raise ValueError(f"negative iteration count {n}")
                except ValueError as e:
                    return jsonify(ok=False, msg=str(e)), 400
                d.iterations_per_tick = n
            pixels = d.tick()
            opt = d.optimizer
            app.logger.debug("frame %d: %d/%d patches kept",
                             d.frames, opt.accepted, opt.iterations)
            return jsonify(ok=True, mode=d.mode,
                           png=encode_png(pixels),
                           width=opt.width, height=opt.height,
                           iterations=opt.iterations, accepted=opt.accepted)

        progress = d.progress()
        return jsonify(ok=True, mode=d.mode, progress=progress,
                       particles=particles_json(d.transport.primitives_at(progress)))

    # ── Reset key ──────────────────────────────────────────────────
    @app.post("/restart")
    def restart():
        app.config["DRIVER"].restart()
        app.logger.info("restart requested")
        return jsonify(ok=True)

    return app
