"""
Seed extraction from a user overlay.

The overlay is an RGBA image painted over the source: opaque green-ish strokes
mark foreground, opaque red strokes mark background, transparent pixels are
left for the automaton to decide. Thresholds are on an 8-bit scale; overlays
of other depths are rescaled first.
"""

import numpy as np

from .fields import to_8bit
from .grid import Grid

OPACITY_THRESHOLD = 0x80
RED_MARGIN = 128

FOREGROUND = 1.0
BACKGROUND = -1.0


def _check_overlay(overlay: np.ndarray) -> None:
    if overlay.ndim != 3 or overlay.shape[2] != 4:
        raise ValueError(f"Overlay must be [H, W, 4] RGBA, got shape {overlay.shape}")
    Grid.from_shape(overlay.shape)


def seed_masks(overlay: np.ndarray):
    """Return boolean (foreground, background) seed masks for an RGBA overlay."""
    _check_overlay(overlay)
    rgba = to_8bit(overlay)
    opaque = rgba[..., 3] > OPACITY_THRESHOLD
    red = rgba[..., 0] > rgba[..., 1] + RED_MARGIN
    return opaque & ~red, opaque & red


def init_strength(overlay: np.ndarray) -> np.ndarray:
    """
    Initial signed strength field, float32 [H, W].

    +1.0 for foreground seeds, -1.0 for background seeds, 0.0 elsewhere.
    """
    foreground, background = seed_masks(overlay)
    strength = np.zeros(foreground.shape, dtype=np.float32)
    strength[foreground] = FOREGROUND
    strength[background] = BACKGROUND
    return strength


def composite_overlay(image: np.ndarray, overlay: np.ndarray) -> np.ndarray:
    """Paint the opaque overlay strokes onto a copy of the image."""
    _check_overlay(overlay)
    if image.shape[:2] != overlay.shape[:2]:
        raise ValueError(f"Image and overlay must have same size, got {image.shape[:2]} vs {overlay.shape[:2]}")
    out = np.array(image, copy=True)
    opaque = to_8bit(overlay[..., 3]) > OPACITY_THRESHOLD
    out[opaque, :3] = overlay[opaque, :3]
    return out
