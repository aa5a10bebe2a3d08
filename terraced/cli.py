from __future__ import annotations

import argparse
import logging
import random

from terraced.config import (
    APP_VERSION,
    DEFAULT_BUILD_WORKERS,
    DEFAULT_FOG_END,
    DEFAULT_FOG_START,
    DEFAULT_HEADLESS_DT,
    DEFAULT_HEADLESS_TICKS,
    DEFAULT_HEIGHT_OFFSET,
    DEFAULT_HEIGHTFIELD_BATCH,
    DEFAULT_HEIGHTFIELD_WORKERS,
    DEFAULT_NOISE_AMPLITUDE,
    DEFAULT_NOISE_FREQUENCY,
    DEFAULT_SEED,
    DEFAULT_SMOOTHING_ANGLE_DEG,
    DEFAULT_SPEED,
    DEFAULT_TARGET_FPS,
    DEFAULT_TERRACE_STEP,
    DEFAULT_TERRAIN_AMOUNT,
    DEFAULT_TILE_AMOUNT,
)
from terraced.world.params import WorldParams

def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="terraced", description=f"Endless terraced terrain (ModernGL + pygame) v{APP_VERSION}")
    p.add_argument("--seed", default=str(DEFAULT_SEED), help="int seed or 'random' (default: 12345)")
    p.add_argument("--terrain-amount", type=int, nargs=2, metavar=("X", "Z"), default=list(DEFAULT_TERRAIN_AMOUNT), help="window size in tiles (default: 8 8)")
    p.add_argument("--tile-amount", type=int, nargs=2, metavar=("X", "Z"), default=list(DEFAULT_TILE_AMOUNT), help="cells per tile (default: 16 16)")
    p.add_argument("--noise-frequency", type=float, default=DEFAULT_NOISE_FREQUENCY, help="heightfield noise frequency")
    p.add_argument("--noise-amplitude", type=float, default=DEFAULT_NOISE_AMPLITUDE, help="heightfield amplitude (max height)")
    p.add_argument("--terrace-step", type=float, default=DEFAULT_TERRACE_STEP, help="terrace band height")
    p.add_argument("--smoothing-angle", type=float, default=DEFAULT_SMOOTHING_ANGLE_DEG, help="hard-edge angle for normal smoothing (degrees)")
    p.add_argument("--batch-size", type=int, default=DEFAULT_HEIGHTFIELD_BATCH, help="heightfield cells per worker batch")
    p.add_argument("--build-workers", type=int, default=DEFAULT_BUILD_WORKERS, help="tiles built concurrently")
    p.add_argument("--heightfield-workers", type=int, default=DEFAULT_HEIGHTFIELD_WORKERS, help="threads sampling heightfield batches")
    p.add_argument("--speed", type=float, default=DEFAULT_SPEED, help="viewpoint speed (world units / sec)")
    p.add_argument("--height-offset", type=float, default=DEFAULT_HEIGHT_OFFSET, help="camera height above terrain")
    p.add_argument("--wireframe", action="store_true", help="render wireframe")
    p.add_argument("--fog-start", type=float, default=DEFAULT_FOG_START, help="fog start distance")
    p.add_argument("--fog-end", type=float, default=DEFAULT_FOG_END, help="fog end distance")
    p.add_argument("--target-fps", type=int, default=DEFAULT_TARGET_FPS, help="target FPS for adaptive mesh uploads")
    p.add_argument("--debug", action="store_true", help="enable debug overlay (HUD + logs)")
    p.add_argument("--headless", action="store_true", help="run ticks without a window and print a summary")
    p.add_argument("--ticks", type=int, default=DEFAULT_HEADLESS_TICKS, help="ticks to run in --headless mode")
    return p.parse_args(argv)

def _seed_from_arg(value: str) -> int:
    if value.lower() == "random":
        return random.randint(0, 2**31 - 1)
    return int(value)

def main(argv: list[str] | None = None) -> None:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="[terraced] %(levelname)s %(name)s: %(message)s",
    )

    params = WorldParams(
        terrain_amount=tuple(args.terrain_amount),
        tile_amount=tuple(args.tile_amount),
        noise_frequency=float(args.noise_frequency),
        noise_amplitude=float(args.noise_amplitude),
        terrace_step=float(args.terrace_step),
        smoothing_angle_deg=float(args.smoothing_angle),
        heightfield_batch=int(args.batch_size),
        seed=_seed_from_arg(str(args.seed)),
        build_workers=int(args.build_workers),
        heightfield_workers=int(args.heightfield_workers),
    )

    if args.headless:
        from terraced.headless import run_headless

        summary = run_headless(params=params, ticks=int(args.ticks), speed=float(args.speed), dt=DEFAULT_HEADLESS_DT)
        print(" ".join(f"{k}={v:.2f}" if isinstance(v, float) else f"{k}={v}" for k, v in summary.items()))
        return

    from terraced.app import run_app

    run_app(
        params=params,
        speed=float(args.speed),
        height_offset=float(args.height_offset),
        wireframe=bool(args.wireframe),
        debug=bool(args.debug),
        target_fps=int(args.target_fps),
        fog_start=float(args.fog_start),
        fog_end=float(args.fog_end),
    )
