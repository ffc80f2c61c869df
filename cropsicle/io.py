"""
Pillow adapters for reading and writing RGBA images.
"""

from pathlib import Path
from typing import List, Optional, Tuple

import numpy as np
from PIL import Image

IMG_EXTS = {".jpg", ".jpeg", ".png", ".bmp", ".tif", ".tiff"}


def load_image_rgba(path: str) -> np.ndarray:
    """Return H x W x 4 uint8 RGBA. Images without alpha become fully opaque."""
    img = Image.open(path)
    if img.mode != "RGBA":
        img = img.convert("RGBA")
    return np.ascontiguousarray(np.asarray(img, dtype=np.uint8))


def save_image_rgba(image: np.ndarray, out_path: str) -> None:
    """Save an H x W x 4 uint8 array as an RGBA PNG, creating parent directories."""
    arr = np.asarray(image)
    if arr.ndim != 3 or arr.shape[2] != 4:
        raise ValueError(f"Expected H x W x 4 RGBA array, got shape {arr.shape}")
    im = Image.fromarray(np.ascontiguousarray(arr, dtype=np.uint8))
    Path(out_path).parent.mkdir(parents=True, exist_ok=True)
    im.save(out_path, format="PNG")


def find_image_overlay_pairs(images_dir: str, overlays_dir: str) -> List[Tuple[str, Optional[str]]]:
    """Pair images with overlays by basename. Overlays must be .png, missing ones pair with None."""
    images_dir = Path(images_dir)
    overlays_dir = Path(overlays_dir)
    imgs = [p for p in images_dir.iterdir() if p.is_file() and p.suffix.lower() in IMG_EXTS]
    pairs = []
    for ip in sorted(imgs):
        ovl = overlays_dir / f"{ip.stem}.png"
        pairs.append((str(ip), str(ovl) if ovl.exists() else None))
    return pairs
