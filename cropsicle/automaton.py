"""
GrowCut cellular automaton.

Every cell holds a signed strength: the sign is the label (positive foreground,
negative background), the magnitude the confidence in [0, 1]. One step reads
the previous state ``src`` and writes ``dst``:

    dst[p] = src[p]
    for each in-bounds neighbour q of p, in NEIGHBOR_OFFSETS order:
        candidate = g(p, q) * src[q]
        if |candidate| > |dst[p]|:
            dst[p] = candidate

Since g <= 1 and seeds start at magnitude 1.0, seeds can never be conquered.
The automaton stops once a whole step changes nothing, or at the iteration
ceiling.

Interior pixels (all 8 neighbours in bounds) are split into contiguous row
bands, one task per band; the outer ring is one extra task with per-direction
bounds checks. Tasks write disjoint cells of ``dst`` and only read ``src``, so
the result is identical for any number of workers.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from contextlib import nullcontext
from typing import List, Optional, Tuple

import numpy as np

from .grid import NEIGHBOR_OFFSETS, Grid

logger = logging.getLogger(__name__)

MAX_ITERATIONS = 2000
N_WORKERS = 4


def _row_bands(grid: Grid, workers: int) -> List[Tuple[int, int]]:
    if grid.width < 3 or grid.height < 3:
        return []
    rows = np.arange(1, grid.height - 1)
    bands = np.array_split(rows, max(1, workers))
    return [(int(b[0]), int(b[-1]) + 1) for b in bands if b.size]


def _border_coords(grid: Grid) -> Tuple[np.ndarray, np.ndarray]:
    """Coordinates of the outer ring, each pixel exactly once."""
    w, h = grid.width, grid.height
    xs = [np.arange(w)]
    ys = [np.zeros(w, dtype=np.intp)]
    if h > 1:
        xs.append(np.arange(w))
        ys.append(np.full(w, h - 1, dtype=np.intp))
    inner = np.arange(1, h - 1)
    xs.append(np.zeros(inner.size, dtype=np.intp))
    ys.append(inner)
    if w > 1:
        xs.append(np.full(inner.size, w - 1, dtype=np.intp))
        ys.append(inner)
    return np.concatenate(ys).astype(np.intp), np.concatenate(xs).astype(np.intp)


class GrowCutAutomaton:
    """
    Double-buffered GrowCut state over a fixed affinity field.

    Parameters:
    ----------
    affinity : np.ndarray
        float32 [H, W, 8] weights from ``compute_affinity``
    strength : np.ndarray
        Initial signed strength field [H, W], magnitudes in [0, 1]
    workers : int, optional
        Number of interior row bands processed concurrently. 0 or 1 runs
        every step in the calling thread.
    """

    def __init__(self, affinity: np.ndarray, strength: np.ndarray, workers: int = N_WORKERS):
        if workers < 0:
            raise ValueError(f"workers must be >= 0, got {workers}")
        if strength.ndim != 2:
            raise ValueError(f"Strength field must be [H, W], got shape {strength.shape}")
        expected = strength.shape + (len(NEIGHBOR_OFFSETS),)
        if affinity.shape != expected:
            raise ValueError(f"Affinity must have shape {expected}, got {affinity.shape}")

        self.grid = Grid.from_shape(strength.shape)
        self.workers = int(workers)
        self.iterations = 0
        self._affinity = np.ascontiguousarray(affinity, dtype=np.float32)
        self._buffers = [
            np.array(strength, dtype=np.float32, order="C"),
            np.zeros(self.grid.shape, dtype=np.float32),
        ]
        self._current = 0

        self._bands = _row_bands(self.grid, self.workers)
        self._border_y, self._border_x = _border_coords(self.grid)
        self._border_links = self._link_border()

    @property
    def strength(self) -> np.ndarray:
        """Strength field at the last completed step boundary."""
        return self._buffers[self._current]

    def _link_border(self):
        # Per direction: which ring cells have that neighbour, where it is,
        # and the matching affinities.
        links = []
        for d, (dy, dx) in enumerate(NEIGHBOR_OFFSETS):
            ny = self._border_y + dy
            nx = self._border_x + dx
            valid = (ny >= 0) & (ny < self.grid.height) & (nx >= 0) & (nx < self.grid.width)
            sel = np.nonzero(valid)[0]
            g = self._affinity[self._border_y[sel], self._border_x[sel], d]
            links.append((sel, ny[sel], nx[sel], g))
        return links

    def _step_band(self, src: np.ndarray, dst: np.ndarray, y0: int, y1: int) -> bool:
        w = self.grid.width
        cur = src[y0:y1, 1:w - 1].copy()
        changed = False
        for d, (dy, dx) in enumerate(NEIGHBOR_OFFSETS):
            cand = self._affinity[y0:y1, 1:w - 1, d] * src[y0 + dy:y1 + dy, 1 + dx:w - 1 + dx]
            win = np.abs(cand) > np.abs(cur)
            if win.any():
                np.copyto(cur, cand, where=win)
                changed = True
        dst[y0:y1, 1:w - 1] = cur
        return changed

    def _step_border(self, src: np.ndarray, dst: np.ndarray) -> bool:
        cur = src[self._border_y, self._border_x]
        changed = False
        for sel, ny, nx, g in self._border_links:
            cand = g * src[ny, nx]
            win = np.abs(cand) > np.abs(cur[sel])
            if win.any():
                cur[sel[win]] = cand[win]
                changed = True
        dst[self._border_y, self._border_x] = cur
        return changed

    def step(self, executor: Optional[ThreadPoolExecutor] = None) -> bool:
        """
        Run one synchronous update and swap buffers.

        Returns True if any cell changed. With an executor, the bands and the
        border run as separate tasks and this call waits for all of them.
        """
        src = self._buffers[self._current]
        dst = self._buffers[1 - self._current]

        if executor is None:
            results = [self._step_band(src, dst, y0, y1) for y0, y1 in self._bands]
            results.append(self._step_border(src, dst))
        else:
            futs = [executor.submit(self._step_band, src, dst, y0, y1) for y0, y1 in self._bands]
            futs.append(executor.submit(self._step_border, src, dst))
            results = [f.result() for f in futs]

        self._current = 1 - self._current
        self.iterations += 1
        return any(results)

    def run(self, max_iterations: int = MAX_ITERATIONS) -> Tuple[np.ndarray, int, bool]:
        """
        Step until nothing changes or ``max_iterations`` steps have run.

        Returns:
        -------
        tuple
            (strength, iterations, converged). Reaching the ceiling is not an
            error, ``converged`` is simply False.
        """
        if max_iterations < 1:
            raise ValueError(f"max_iterations must be >= 1, got {max_iterations}")

        converged = False
        pool = ThreadPoolExecutor(max_workers=self.workers + 1) if self.workers > 1 else nullcontext()
        with pool as executor:
            for _ in range(max_iterations):
                if not self.step(executor):
                    converged = True
                    break

        h, w = self.grid.shape
        logger.debug(f"growcut {w}x{h}, iterations {self.iterations}, converged {converged}")
        return self.strength.copy(), self.iterations, converged


def run_growcut(affinity: np.ndarray,
                strength: np.ndarray,
                max_iterations: int = MAX_ITERATIONS,
                workers: int = N_WORKERS) -> Tuple[np.ndarray, int, bool]:
    """Run the automaton to convergence, returns (strength, iterations, converged)."""
    return GrowCutAutomaton(affinity, strength, workers=workers).run(max_iterations)
