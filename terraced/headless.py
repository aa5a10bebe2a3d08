from __future__ import annotations

import logging
import time

from terraced.render.headless import HeadlessMeshBackend
from terraced.world.params import WorldParams
from terraced.world.tile import BuildState
from terraced.world.world import TerrainWorld

logger = logging.getLogger(__name__)


def run_headless(*, params: WorldParams, ticks: int, speed: float, dt: float) -> dict:
    """Fly the viewpoint along +Z for ``ticks`` ticks without a window.

    Returns a summary of window churn and generated geometry.
    """
    backend = HeadlessMeshBackend()
    t0 = time.perf_counter()
    world = TerrainWorld(params, backend)
    created = destroyed = built = 0
    try:
        z = 0.0
        for i in range(int(ticks)):
            stats = world.tick((0.0, 0.0, z))
            created += stats.created
            destroyed += stats.destroyed
            built += stats.built
            if stats.created or stats.destroyed:
                logger.info("tick %d z=%.1f: +%d -%d tiles, built %d", i, z, stats.created, stats.destroyed, stats.built)
            z += speed * dt

        ready = world.tiles_in_state(BuildState.READY)
        summary = {
            "ticks": int(ticks),
            "tiles": len(world.window),
            "created": created,
            "destroyed": destroyed,
            "built": built,
            "uploads": backend.uploads,
            "vertices": sum(len(t.vertices) for t in ready),
            "triangles": sum(len(t.triangles) for t in ready),
            "seconds": time.perf_counter() - t0,
        }
    finally:
        world.shutdown()
    logger.info(
        "%(ticks)d ticks: %(tiles)d live tiles, %(built)d builds, %(vertices)d vertices, "
        "%(triangles)d triangles in %(seconds).2fs", summary,
    )
    return summary
