#!/usr/bin/env python3
"""Render the random spheres scene.

Builds the random spheres cover scene (or loads a scene from JSON), sets up
the thin-lens camera and renders with progressive refinement. The image is
written as plain-text PPM (to stdout by default) or PNG.

Usage:
    python examples/render_random_scene.py [options]

Options:
    --width WIDTH           Image width in pixels (default: 400)
    --aspect-ratio RATIO    Width / height (default: 1.5)
    --samples SAMPLES       Number of samples per pixel (default: 500)
    --max-depth DEPTH       Bounce budget per path (default: 50)
    --seed SEED             Seed for scene layout and sampling (default: 0)
    --output OUTPUT         Output file path, '-' for stdout (default: -)
    --format {ppm,png}      Output format (default: from extension, else ppm)
    --scene FILE            JSON scene to render instead of the random scene
    --arch {cpu,gpu}        Taichi backend (default: gpu, falls back to cpu)
    --batch-size SIZE       Samples per progress update (default: 10)
    --quiet                 Suppress progress output

Example:
    python examples/render_random_scene.py --width 200 --samples 20 > image.ppm
"""

from __future__ import annotations

import argparse
import json
import sys
import time
from pathlib import Path

import numpy as np
import taichi as ti
from loguru import logger


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render the random spheres scene.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--width",
        type=int,
        default=400,
        help="Image width in pixels (default: 400)",
    )
    parser.add_argument(
        "--aspect-ratio",
        type=float,
        default=3.0 / 2.0,
        help="Image width divided by height (default: 1.5)",
    )
    parser.add_argument(
        "--samples",
        type=int,
        default=500,
        help="Number of samples per pixel (default: 500)",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        default=50,
        help="Maximum number of bounces per path (default: 50)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=0,
        help="Seed for scene layout and sampling (default: 0)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="-",
        help="Output file path, '-' writes PPM to stdout (default: -)",
    )
    parser.add_argument(
        "--format",
        choices=("ppm", "png"),
        default=None,
        help="Output format (default: inferred from the output extension, else ppm)",
    )
    parser.add_argument(
        "--scene",
        type=str,
        default=None,
        help="JSON scene file (as written by SceneManager.to_dict) to render instead",
    )
    parser.add_argument(
        "--arch",
        choices=("cpu", "gpu"),
        default="gpu",
        help="Taichi backend (default: gpu, falls back to cpu)",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=10,
        help="Samples per progress update (default: 10)",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )
    return parser.parse_args(argv)


def resolve_format(output: str, fmt: str | None) -> str:
    """Pick the output format from the explicit flag or the file extension."""
    if fmt is not None:
        return fmt
    if output != "-" and Path(output).suffix.lower() == ".png":
        return "png"
    return "ppm"


def render_random_scene(
    width: int = 400,
    aspect_ratio: float = 3.0 / 2.0,
    num_samples: int = 500,
    max_depth: int = 50,
    seed: int = 0,
    output_path: str = "-",
    output_format: str = "ppm",
    scene_path: str | None = None,
    batch_size: int = 10,
    quiet: bool = False,
) -> Path | None:
    """Render the scene and write the image.

    Args:
        width: Image width in pixels.
        aspect_ratio: Image width divided by height.
        num_samples: Number of samples per pixel.
        max_depth: Bounce budget per path.
        seed: Seed for the scene layout.
        output_path: Output file path, or '-' for stdout.
        output_format: 'ppm' or 'png'.
        scene_path: Optional JSON scene to load instead of the random scene.
        batch_size: Number of samples to render between progress updates.
        quiet: If True, suppress progress output.

    Returns:
        Path to the saved image file, or None when writing to stdout.
    """
    # Lazy imports so Taichi fields are created after ti.init
    from pathtracer.camera.thin_lens import setup_camera
    from pathtracer.core.progressive import ProgressiveRenderer, RenderSettings
    from pathtracer.scene.manager import SceneManager
    from pathtracer.scene.random_spheres import (
        RandomSceneParams,
        create_random_scene,
        default_camera,
    )

    if output_path == "-" and output_format != "ppm":
        raise ValueError("Only PPM output can be written to stdout")

    settings = RenderSettings(
        image_width=width,
        aspect_ratio=aspect_ratio,
        samples_per_pixel=num_samples,
        max_depth=max_depth,
        seed=seed,
    )

    if scene_path is not None:
        if not quiet:
            print(f"Loading scene from {scene_path}...", file=sys.stderr)
        scene = SceneManager()
        scene.from_dict(json.loads(Path(scene_path).read_text()))
    else:
        if not quiet:
            print(
                f"Creating random scene ({settings.image_width}x{settings.image_height})...",
                file=sys.stderr,
            )
        create_random_scene(RandomSceneParams(seed=seed), np.random.default_rng(seed))

    setup_camera(default_camera(settings.aspect_ratio))

    renderer = ProgressiveRenderer.from_settings(settings)

    if not quiet:
        print(f"Rendering {num_samples} samples per pixel...", file=sys.stderr)

    start_time = time.time()

    def progress_callback(current: int, target: int) -> None:
        if not quiet:
            elapsed = time.time() - start_time
            progress_pct = (current / target) * 100 if target > 0 else 0
            samples_per_sec = current / elapsed if elapsed > 0 else 0
            print(
                f"\r  Progress: {current}/{target} samples "
                f"({progress_pct:.1f}%) - {samples_per_sec:.1f} spp/s",
                end="",
                file=sys.stderr,
                flush=True,
            )

    renderer.render(
        num_samples=settings.samples_per_pixel,
        batch_size=batch_size,
        callback=progress_callback,
    )

    if not quiet:
        print(file=sys.stderr)  # Newline after progress

    if output_path == "-":
        renderer.save_ppm(sys.stdout)
        output_file = None
    else:
        output_file = Path(output_path)
        if output_format == "png":
            renderer.save_png(output_file)
        else:
            renderer.save_ppm(output_file)

    total_time = time.time() - start_time
    if not quiet:
        if output_file is not None:
            print(f"Saved to: {output_file.absolute()}", file=sys.stderr)
        print(f"Total time: {total_time:.2f}s", file=sys.stderr)

    return output_file


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    logger.remove()
    logger.add(sys.stderr, level="WARNING" if args.quiet else "INFO")

    if args.arch == "gpu":
        # Use GPU if available, fall back to CPU
        try:
            ti.init(arch=ti.gpu, random_seed=args.seed)
        except Exception:
            ti.init(arch=ti.cpu, random_seed=args.seed)
    else:
        ti.init(arch=ti.cpu, random_seed=args.seed)

    try:
        render_random_scene(
            width=args.width,
            aspect_ratio=args.aspect_ratio,
            num_samples=args.samples,
            max_depth=args.max_depth,
            seed=args.seed,
            output_path=args.output,
            output_format=resolve_format(args.output, args.format),
            scene_path=args.scene,
            batch_size=args.batch_size,
            quiet=args.quiet,
        )
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
