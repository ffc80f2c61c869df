#!/usr/bin/env python3
"""
Example script demonstrating GrowCut segmentation.
"""

import argparse
import numpy as np
import matplotlib.pyplot as plt
from PIL import Image
from cropsicle import growcut_segmentation

def create_overlay(image_shape, margin=5, object_size=20):
    """Create a background frame and a foreground square in the middle."""
    height, width = image_shape[:2]
    overlay = np.zeros((height, width, 4), dtype=np.uint8)
    red = (255, 0, 0, 255)
    green = (0, 255, 0, 255)

    # Background strokes as a frame
    overlay[margin:-margin, margin:margin + 2] = red  # Left
    overlay[margin:-margin, -margin - 2:-margin] = red  # Right
    overlay[margin:margin + 2, margin:-margin] = red  # Top
    overlay[-margin - 2:-margin, margin:-margin] = red  # Bottom

    # Foreground stroke in the center
    center_y, center_x = height // 2, width // 2
    half_size = object_size // 4
    overlay[center_y - half_size:center_y + half_size,
            center_x - half_size:center_x + half_size] = green

    return overlay

def synthetic_image(size=96, radius=28, noise=0.05, seed=0):
    """Noisy disc on a textured background."""
    rng = np.random.default_rng(seed)
    yy, xx = np.mgrid[:size, :size]
    disc = (yy - size / 2) ** 2 + (xx - size / 2) ** 2 < radius ** 2
    image = np.empty((size, size, 3), dtype=np.float32)
    image[...] = (0.2, 0.4, 0.7)
    image[disc] = (0.9, 0.6, 0.1)
    image += rng.normal(0.0, noise, image.shape).astype(np.float32)
    return np.clip(image, 0.0, 1.0)

def load_image(image_path):
    """Load an image as H x W x 4 uint8."""
    return np.asarray(Image.open(image_path).convert("RGBA"))

def visualize_results(image, overlay, mask):
    """Visualize the input image, overlay, and segmentation result."""
    fig, axes = plt.subplots(1, 3, figsize=(15, 5))

    axes[0].imshow(image[..., :3])
    axes[0].set_title('Original Image')
    axes[0].axis('off')

    axes[1].imshow(image[..., :3])
    axes[1].imshow(overlay)
    axes[1].set_title('Seeds\n(Red=Background, Green=Foreground)')
    axes[1].axis('off')

    axes[2].imshow(mask, cmap='gray')
    axes[2].set_title('Segmentation Result')
    axes[2].axis('off')

    plt.tight_layout()
    plt.show()

def main():
    parser = argparse.ArgumentParser(description='Test GrowCut segmentation on an image')
    parser.add_argument('image_path', nargs='?', help='Path to the input image (synthetic disc if omitted)')
    parser.add_argument('--margin', type=int, default=5,
                       help='Margin from border for background strokes (default: 5)')
    parser.add_argument('--object-size', type=int, default=20,
                       help='Size of the foreground stroke (default: 20)')
    parser.add_argument('--threads', type=int, default=4,
                       help='Automaton row bands per step (default: 4)')
    args = parser.parse_args()

    print("Loading image...")
    image = load_image(args.image_path) if args.image_path else synthetic_image()

    print("Creating overlay...")
    overlay = create_overlay(image.shape, margin=args.margin, object_size=args.object_size)

    print("Running GrowCut segmentation...")
    strength, iterations, converged = growcut_segmentation(image, overlay, workers=args.threads)
    mask = strength > 0

    # Seeds must keep their label
    seeds = overlay[..., 3] > 0x80
    assert np.all(mask[seeds] == (overlay[seeds, 1] > 0)), \
           "Error: Segmentation did not preserve seed labels!"

    print("\nSegmentation Statistics:")
    print(f"Image shape: {image.shape}")
    print(f"Iterations: {iterations} (converged: {converged})")
    fg = int(mask.sum())
    print(f"Foreground: {fg} pixels ({100 * fg / mask.size:.1f}%)")

    print("\nDisplaying visualization...")
    visualize_results(image, overlay, mask)

if __name__ == "__main__":
    main()
