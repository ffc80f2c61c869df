"""
Core functionality for GrowCut foreground extraction.
"""

from typing import Tuple

import numpy as np

from .automaton import MAX_ITERATIONS, N_WORKERS, run_growcut
from .fields import build_color_field, compute_affinity, render_color_field
from .grid import Grid
from .io import load_image_rgba
from .mask import apply_mask, extract_mask
from .seeds import init_strength


def _validate_inputs(image: np.ndarray, overlay: np.ndarray) -> None:
    if image.ndim != 3 or image.shape[2] not in (3, 4):
        raise ValueError(f"Image must be [H, W, 3] or [H, W, 4], got shape {image.shape}")
    if overlay.ndim != 3 or overlay.shape[2] != 4:
        raise ValueError(f"Overlay must be [H, W, 4] RGBA, got shape {overlay.shape}")
    if image.shape[:2] != overlay.shape[:2]:
        raise ValueError(f"Image and overlay must have same size, got {image.shape[:2]} vs {overlay.shape[:2]}")
    Grid.from_shape(image.shape)


def run_pipeline(image: np.ndarray,
                 overlay: np.ndarray,
                 max_iterations: int = MAX_ITERATIONS,
                 workers: int = N_WORKERS,
                 smooth: bool = True) -> Tuple[np.ndarray, np.ndarray, int, bool]:
    """
    Build the color field, run the automaton and return both.

    Returns:
    -------
    tuple
        (colors, strength, iterations, converged). ``colors`` is the float32
        [H, W, 3] field the affinities were computed from.
    """
    _validate_inputs(image, overlay)
    if max_iterations < 1:
        raise ValueError(f"max_iterations must be >= 1, got {max_iterations}")
    if workers < 0:
        raise ValueError(f"workers must be >= 0, got {workers}")

    colors = build_color_field(image, smooth=smooth)
    affinity = compute_affinity(colors)
    strength = init_strength(overlay)
    strength, iterations, converged = run_growcut(affinity, strength,
                                                  max_iterations=max_iterations, workers=workers)
    return colors, strength, iterations, converged


def growcut_segmentation(image: np.ndarray,
                         overlay: np.ndarray,
                         max_iterations: int = MAX_ITERATIONS,
                         workers: int = N_WORKERS,
                         smooth: bool = True) -> Tuple[np.ndarray, int, bool]:
    """
    Run the full GrowCut pipeline and return the raw automaton result.

    Parameters:
    ----------
    image : np.ndarray
        Source pixels [H, W, 3] or [H, W, 4]. Integer dtypes are mapped from
        their full range, float images are expected in [0, 1].
    overlay : np.ndarray
        RGBA seed overlay [H, W, 4], same size as ``image``. Opaque red
        strokes mark background, other opaque strokes foreground.
    max_iterations : int, optional
        Iteration ceiling for the automaton. Default: 2000
    workers : int, optional
        Interior row bands processed concurrently. Default: 4
    smooth : bool, optional
        Apply the 3x3 mean filter before computing affinities. Default: True

    Returns:
    -------
    tuple
        (strength, iterations, converged) where strength is the settled
        float32 [H, W] signed strength field.
    """
    _, strength, iterations, converged = run_pipeline(image, overlay, max_iterations, workers, smooth)
    return strength, iterations, converged


def segment_image(image: np.ndarray,
                  overlay: np.ndarray,
                  max_iterations: int = MAX_ITERATIONS,
                  workers: int = N_WORKERS,
                  smooth: bool = True) -> np.ndarray:
    """
    Segment ``image`` into foreground and background from the overlay seeds.

    Returns:
    -------
    np.ndarray
        Boolean [H, W] mask, True for foreground.
    """
    strength, _, _ = growcut_segmentation(image, overlay, max_iterations, workers, smooth)
    return extract_mask(strength)


def segment_rgba(image: np.ndarray,
                 overlay: np.ndarray,
                 max_iterations: int = MAX_ITERATIONS,
                 workers: int = N_WORKERS,
                 smooth: bool = True,
                 show_effects: bool = False) -> np.ndarray:
    """
    Segment and return an RGBA image with the background made transparent.

    With ``show_effects`` the color channels hold the preprocessed color
    field instead of the source pixels.
    """
    colors, strength, _, _ = run_pipeline(image, overlay, max_iterations, workers, smooth)
    mask = extract_mask(strength)
    if show_effects:
        return apply_mask(render_color_field(colors), mask)
    return apply_mask(image, mask)


def process_image_file(image_path: str,
                       overlay_path: str,
                       max_iterations: int = MAX_ITERATIONS,
                       workers: int = N_WORKERS,
                       smooth: bool = True,
                       show_effects: bool = False) -> np.ndarray:
    """
    Load an image and its overlay from disk and segment them.

    Returns:
    -------
    np.ndarray
        uint8 RGBA [H, W, 4] with alpha set from the segmentation.
    """
    image = load_image_rgba(image_path)
    overlay = load_image_rgba(overlay_path)
    return segment_rgba(image, overlay, max_iterations, workers, smooth, show_effects)
