"""
Pixel grid addressing shared by every per-pixel field.
"""

from typing import Iterator, NamedTuple, Tuple

# 8-neighbourhood in raster order, as (dy, dx). The affinity field stores one
# weight per entry of this table, in this order.
NEIGHBOR_OFFSETS = (
    (-1, -1), (-1, 0), (-1, 1),
    (0, -1),           (0, 1),
    (1, -1),  (1, 0),  (1, 1),
)


def _overlap(length: int, delta: int) -> Tuple[slice, slice]:
    lo = max(0, -delta)
    hi = length - max(0, delta)
    return slice(lo, max(lo, hi)), slice(lo + delta, max(lo, hi) + delta)


class Grid(NamedTuple):
    """Immutable (width, height) pair with bounds-checked index mapping."""

    width: int
    height: int

    @classmethod
    def from_shape(cls, shape) -> "Grid":
        """Build a grid from an array shape (H, W, ...). Rejects empty grids."""
        if len(shape) < 2:
            raise ValueError(f"Expected at least 2 dimensions, got shape {tuple(shape)}")
        height, width = int(shape[0]), int(shape[1])
        if width < 1 or height < 1:
            raise ValueError(f"Grid must be at least 1x1, got {width}x{height}")
        return cls(width, height)

    @property
    def size(self) -> int:
        return self.width * self.height

    @property
    def shape(self) -> Tuple[int, int]:
        return self.height, self.width

    def contains(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def index(self, x: int, y: int) -> int:
        if not self.contains(x, y):
            raise IndexError(f"({x}, {y}) outside {self.width}x{self.height} grid")
        return y * self.width + x

    def neighbors(self, x: int, y: int) -> Iterator[Tuple[int, int, int]]:
        """Yield (direction, nx, ny) for every in-bounds neighbour of (x, y)."""
        for d, (dy, dx) in enumerate(NEIGHBOR_OFFSETS):
            nx, ny = x + dx, y + dy
            if self.contains(nx, ny):
                yield d, nx, ny

    def overlap(self, dy: int, dx: int) -> Tuple[slice, slice, slice, slice]:
        """
        Slices selecting every pixel whose (dy, dx) neighbour is in bounds.

        Returns (rows, cols, neighbor_rows, neighbor_cols) so that
        ``field[rows, cols]`` and ``field[neighbor_rows, neighbor_cols]`` line
        up pixel for pixel.
        """
        rows, nrows = _overlap(self.height, dy)
        cols, ncols = _overlap(self.width, dx)
        return rows, cols, nrows, ncols
