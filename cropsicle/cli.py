#!/usr/bin/env python3
"""
cropsicle command line

Single image:
    cropsicle --image photo.png --overlay strokes.png --output cut.png

Batch, overlays paired with images by basename:
    cropsicle --images_dir imgs/ --overlays_dir strokes/ --output_dir out/

The overlay is a transparent image with a few green strokes over the part to
keep and red strokes over the background. Strokes do not need to be pure red
or green, only opaque with the red or green channel dominant.
"""

import argparse, json, logging, time
from pathlib import Path

import numpy as np
from tqdm import tqdm

from .automaton import MAX_ITERATIONS, N_WORKERS
from .core import growcut_segmentation, run_pipeline
from .fields import render_color_field
from .io import find_image_overlay_pairs, load_image_rgba, save_image_rgba
from .mask import apply_mask, extract_mask
from .seeds import composite_overlay

METHOD_NAME = "growcut"


# --------------------------- Runner ---------------------------

def run_single_image(image_path: str, overlay_path: str, args) -> np.ndarray:
    if overlay_path is None:
        raise FileNotFoundError(f"No matching overlay for {image_path}")
    image = load_image_rgba(image_path)
    overlay = load_image_rgba(overlay_path)

    if args.preview_overlay:
        return composite_overlay(image, overlay)

    t0 = time.time()
    colors, strength, iterations, converged = run_pipeline(image, overlay,
                                                           max_iterations=args.max_iterations,
                                                           workers=args.threads,
                                                           smooth=not args.no_smooth)
    ms = (time.time() - t0) * 1000.0

    H, W = strength.shape
    logging.info(f"{Path(image_path).stem}, {W}x{H}, iterations {iterations}, "
                 f"converged {converged}, runtime_ms {ms:.2f}")

    mask = extract_mask(strength)
    if args.show_effects:
        return apply_mask(render_color_field(colors), mask)
    return apply_mask(image, mask)


def run_batch(args) -> dict:
    pairs = find_image_overlay_pairs(args.images_dir, args.overlays_dir)
    start_idx = max(0, int(args.start_one) - 1)
    if start_idx >= len(pairs):
        return {"processed": 0, "skipped": len(pairs), "reason": "start index beyond input"}
    end_idx = len(pairs) if args.num_images == 0 else min(len(pairs), start_idx + int(args.num_images))
    work_list = pairs[start_idx:end_idx]

    out_root = Path(args.output_dir) / METHOD_NAME
    out_root.mkdir(parents=True, exist_ok=True)

    processed, skipped = 0, 0
    times = []

    def task(img_path, ovl_path):
        base = Path(img_path).stem
        if ovl_path is None:
            return base, None, "missing"
        t0 = time.time()
        out = run_single_image(img_path, ovl_path, args)
        save_image_rgba(out, str(out_root / f"{base}.png"))
        return base, out, (time.time() - t0) * 1000.0

    from concurrent.futures import ThreadPoolExecutor, as_completed
    with tqdm(total=len(work_list), desc="GrowCut") as pbar:
        if args.workers and args.workers > 0:
            with ThreadPoolExecutor(max_workers=int(args.workers)) as ex:
                futs = {ex.submit(task, i, o): i for i, o in work_list}
                for f in as_completed(futs):
                    try:
                        base, out, ms = f.result()
                    except (OSError, ValueError) as e:
                        logging.error(f"Error on {Path(futs[f]).stem}: {e}")
                        skipped += 1
                    else:
                        if out is None:
                            logging.error(f"Missing overlay for {base}, skipping")
                            skipped += 1
                        else:
                            processed += 1
                            times.append(ms)
                    pbar.update(1)
        else:
            for img_path, ovl_path in work_list:
                base = Path(img_path).stem
                if ovl_path is None:
                    logging.error(f"Missing overlay for {base}, skipping")
                    skipped += 1
                    pbar.update(1)
                    continue
                try:
                    _, _, ms = task(img_path, ovl_path)
                    processed += 1
                    times.append(ms)
                except (OSError, ValueError) as e:
                    logging.error(f"Error on {base}: {e}")
                    skipped += 1
                pbar.update(1)

    return {
        "total": len(work_list),
        "processed": processed,
        "skipped": skipped,
        "avg_runtime_ms": float(np.mean(times)) if times else None,
        "median_runtime_ms": float(np.median(times)) if times else None,
        "threads": int(args.threads),
        "method": METHOD_NAME
    }


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="GrowCut foreground extraction from a stroke overlay")
    ap.add_argument("--image", type=str, help="source image")
    ap.add_argument("--overlay", type=str, help="RGBA overlay with seed strokes")
    ap.add_argument("--output", type=str, help="RGBA PNG to write")
    ap.add_argument("--images_dir", type=str)
    ap.add_argument("--overlays_dir", type=str)
    ap.add_argument("--output_dir", type=str)
    ap.add_argument("--num-images", type=int, default=0, help="0 means all")
    ap.add_argument("--start-one", type=int, default=1, help="1-indexed start position")
    ap.add_argument("--workers", type=int, default=0, help="files processed concurrently in batch mode")
    ap.add_argument("--threads", type=int, default=N_WORKERS, help="automaton row bands per step")
    ap.add_argument("--max-iterations", type=int, default=MAX_ITERATIONS)
    ap.add_argument("--no-smooth", action="store_true", help="skip the 3x3 mean filter")
    ap.add_argument("--show-effects", action="store_true", help="write the preprocessed colors instead of the source")
    ap.add_argument("--preview-overlay", action="store_true", help="write the image with the overlay painted on, no segmentation")
    ap.add_argument("--run-tests", action="store_true")
    return ap


def main(argv=None):
    ap = build_parser()
    args = ap.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(message)s")

    if args.run_tests:
        _run_tests()
        return

    single = (args.image, args.overlay, args.output)
    batch = (args.images_dir, args.overlays_dir, args.output_dir)
    if all(single):
        out = run_single_image(args.image, args.overlay, args)
        save_image_rgba(out, args.output)
    elif all(batch):
        print(json.dumps(run_batch(args)))
    else:
        ap.error("either --image/--overlay/--output or --images_dir/--overlays_dir/--output_dir are required")


# --------------------------- Minimal tests ---------------------------

def _synthetic_case(H: int = 32, W: int = 32):
    image = np.zeros((H, W, 4), dtype=np.uint8)
    image[..., 3] = 255
    image[:, W // 2:, :3] = 220
    image[:, :W // 2, :3] = 30
    overlay = np.zeros((H, W, 4), dtype=np.uint8)
    overlay[4:8, 4:8] = (0, 255, 0, 255)  # foreground, dark half
    overlay[H - 8:H - 4, W - 8:W - 4] = (255, 0, 0, 255)  # background, bright half
    return image, overlay


def _run_tests():
    logging.info("Running synthetic test")
    image, overlay = _synthetic_case()
    strength, iterations, converged = growcut_segmentation(image, overlay)
    mask = extract_mask(strength)
    W = mask.shape[1]
    assert converged, "synthetic case must converge"
    assert mask[:, :W // 2].all(), "dark half must be foreground"
    assert not mask[:, W // 2:].any(), "bright half must be background"
    logging.info(f"OK, iterations {iterations}")
    print(json.dumps({"test": "ok", "iterations": int(iterations)}))


if __name__ == "__main__":
    main()
