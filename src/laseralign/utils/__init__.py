"""Utility functions for LaserAlign."""

from .visualization import (
    build_output_path,
    draw_stability_overlay,
    draw_stripe_overlay,
    save_image,
)

__all__ = ["draw_stripe_overlay", "draw_stability_overlay", "build_output_path", "save_image"]
