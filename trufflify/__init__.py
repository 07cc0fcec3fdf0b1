"""Morph a source image into the secret sauce, one patch or particle at a time."""

__version__ = "0.1.0"
