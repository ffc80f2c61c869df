"""
Binary decision from the settled strength field.
"""

import numpy as np


def extract_mask(strength: np.ndarray) -> np.ndarray:
    """Foreground where the strength is strictly positive, background elsewhere."""
    return np.asarray(strength) > 0.0


def apply_mask(image: np.ndarray, mask: np.ndarray) -> np.ndarray:
    """
    Return an RGBA copy of ``image`` whose alpha is fully opaque on the mask
    and fully transparent off it. Color channels are passed through.
    """
    if image.ndim != 3 or image.shape[2] < 3:
        raise ValueError(f"Image must be [H, W, C>=3], got shape {image.shape}")
    if image.shape[:2] != mask.shape:
        raise ValueError(f"Image and mask must have same size, got {image.shape[:2]} vs {mask.shape}")

    if np.issubdtype(image.dtype, np.integer):
        opaque = np.iinfo(image.dtype).max
    else:
        opaque = 1.0

    out = np.empty(image.shape[:2] + (4,), dtype=image.dtype)
    out[..., :3] = image[..., :3]
    out[..., 3] = np.where(mask, opaque, 0)
    return out
