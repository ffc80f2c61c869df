"""
Color field construction and edge-aware neighbour affinities.

The color field is a float32 [H, W, 3] array in the unit cube. It is smoothed
once with a 3x3 box mean (divisor is the number of in-bounds pixels, so edges
and corners average over fewer samples) and then only read.

The affinity of pixel p towards its neighbour q is

    g = 1 - |C(p) - C(q)| / sqrt(3)

stored in an [H, W, 8] array indexed by ``NEIGHBOR_OFFSETS``. Directions that
fall outside the grid are left as NaN and are never read by the automaton.
"""

import numpy as np

from .grid import NEIGHBOR_OFFSETS, Grid

# Largest euclidean distance between two points of the unit RGB cube
MAX_COLOR_DISTANCE = np.sqrt(np.float32(3.0))


def normalize_samples(samples: np.ndarray) -> np.ndarray:
    """
    Convert pixel samples to float32 in [0, 1].

    Integer samples are mapped from the full range of their dtype, so signed
    types land in [0, 1] too. Float samples already in [0, 1] are kept,
    anything else is min-max rescaled.
    """
    arr = np.ascontiguousarray(samples)
    if np.issubdtype(arr.dtype, np.integer):
        info = np.iinfo(arr.dtype)
        if info.min == 0:
            return arr.astype(np.float32) / float(info.max)
        span = float(info.max) - float(info.min)
        return ((arr.astype(np.float64) - float(info.min)) / span).astype(np.float32)
    arr = arr.astype(np.float32)
    vmin, vmax = float(arr.min()), float(arr.max())
    if vmin < 0 or vmax > 1:
        arr = np.zeros_like(arr, dtype=np.float32) if vmax <= vmin else (arr - vmin) / (vmax - vmin)
    return arr


def to_8bit(samples: np.ndarray) -> np.ndarray:
    """Rescale samples of any depth to integers on the 0..255 scale."""
    arr = np.asarray(samples)
    if arr.dtype == np.uint8:
        return arr.astype(np.int32)
    if np.issubdtype(arr.dtype, np.integer):
        info = np.iinfo(arr.dtype)
        scale = 255.0 / (float(info.max) - float(info.min))
        return np.rint((arr.astype(np.float64) - float(info.min)) * scale).astype(np.int32)
    return np.rint(np.clip(arr.astype(np.float64), 0.0, 1.0) * 255.0).astype(np.int32)


def smooth_color_field(colors: np.ndarray) -> np.ndarray:
    """Replace every pixel by the mean of itself and its in-bounds 8-neighbours, in place."""
    grid = Grid.from_shape(colors.shape)
    total = colors.copy()
    count = np.ones(grid.shape, dtype=np.float32)

    for dy, dx in NEIGHBOR_OFFSETS:
        rows, cols, nrows, ncols = grid.overlap(dy, dx)
        total[rows, cols] += colors[nrows, ncols]
        count[rows, cols] += 1.0

    colors[...] = total / count[..., None]
    return colors


def build_color_field(samples: np.ndarray, smooth: bool = True) -> np.ndarray:
    """
    Build the float32 [H, W, 3] color field from [H, W, C] samples (C >= 3).

    Only the first three channels are used; an alpha channel is ignored.
    """
    if samples.ndim != 3 or samples.shape[2] < 3:
        raise ValueError(f"Color samples must be [H, W, C>=3], got shape {samples.shape}")
    Grid.from_shape(samples.shape)

    colors = np.array(normalize_samples(samples[..., :3]), dtype=np.float32, order="C")
    if smooth:
        smooth_color_field(colors)
    return colors


def compute_affinity(colors: np.ndarray) -> np.ndarray:
    """Directional diffusion weights for every pixel, shape [H, W, 8]."""
    grid = Grid.from_shape(colors.shape)
    affinity = np.full(grid.shape + (len(NEIGHBOR_OFFSETS),), np.nan, dtype=np.float32)

    for d, (dy, dx) in enumerate(NEIGHBOR_OFFSETS):
        rows, cols, nrows, ncols = grid.overlap(dy, dx)
        diff = colors[rows, cols] - colors[nrows, ncols]
        dist = np.sqrt(np.sum(diff * diff, axis=-1))
        # Not clamped: colors outside the unit cube give negative weights
        affinity[rows, cols, d] = 1.0 - dist / MAX_COLOR_DISTANCE

    return affinity


def render_color_field(colors: np.ndarray) -> np.ndarray:
    """Convert a color field back to uint8 RGB for inspection."""
    return to_8bit(colors).astype(np.uint8)
