"""
cropsicle - GrowCut foreground extraction
-----------------------------------------
Seeded two-class segmentation with the GrowCut cellular automaton. A few
foreground and background seed pixels compete to conquer the rest of the
image, each attack attenuated by the color similarity between neighbours.

Example:
    >>> import numpy as np
    >>> from cropsicle import segment_image
    >>>
    >>> image = ...  # H x W x 3 or H x W x 4 array
    >>>
    >>> # RGBA overlay: opaque green keeps, opaque red removes
    >>> overlay = np.zeros(image.shape[:2] + (4,), dtype=np.uint8)
    >>> overlay[40:50, 40:50] = (0, 255, 0, 255)  # foreground
    >>> overlay[0:5, :] = (255, 0, 0, 255)        # background
    >>>
    >>> mask = segment_image(image, overlay)
"""

from .automaton import GrowCutAutomaton, run_growcut
from .core import growcut_segmentation, process_image_file, run_pipeline, segment_image, segment_rgba
from .grid import Grid

__version__ = "0.1.0"
__all__ = [
    "GrowCutAutomaton",
    "Grid",
    "growcut_segmentation",
    "process_image_file",
    "run_growcut",
    "run_pipeline",
    "segment_image",
    "segment_rgba",
]
