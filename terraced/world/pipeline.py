from __future__ import annotations

import logging
import time
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import List, Optional, Sequence, Tuple

from terraced.errors import TileBuildError
from terraced.world.arena import TileHandle
from terraced.world.commit_log import CommitLog
from terraced.world.heightfield import build_heightfield
from terraced.world.noise import NoiseSampler
from terraced.world.normals import smooth_normals
from terraced.world.params import WorldParams
from terraced.world.terrace_builder import build_terraces
from terraced.world.tile import GridCoordinate, Tile, TileMesh

logger = logging.getLogger(__name__)


def build_tile_mesh(
    origin: Sequence[float],
    params: WorldParams,
    sampler: NoiseSampler,
    *,
    cell_executor: Optional[Executor] = None,
) -> TileMesh:
    """Heightfield -> terraces -> smoothed normals for one tile.

    Each stage's output is handed to the next by return value and owned by this
    call alone until it is logged.
    """
    squares = build_heightfield(
        origin,
        params.tile_amount,
        sampler,
        batch_size=params.heightfield_batch,
        executor=cell_executor,
    )
    mesh = build_terraces(squares, params.terrace_step)
    mesh.check_indices()
    return smooth_normals(mesh, params.smoothing_angle_deg)


class BuildScheduler:
    """Runs the build pipeline of every NeedsBuild tile of a tick.

    Tiles are built concurrently on one pool while their heightfield batches
    run on a second pool, so a tile task waiting on its cells never starves
    the workers it is waiting for.
    """

    def __init__(self, params: WorldParams, sampler: NoiseSampler, commit_log: CommitLog) -> None:
        self.params = params
        self.sampler = sampler
        self.commit_log = commit_log
        self._tile_pool = ThreadPoolExecutor(max_workers=params.build_workers, thread_name_prefix="tilebuild")
        self._cell_pool = ThreadPoolExecutor(
            max_workers=params.heightfield_workers, thread_name_prefix="heightfield"
        )

    def shutdown(self) -> None:
        self._tile_pool.shutdown(wait=True)
        self._cell_pool.shutdown(wait=True)

    def _run_one(self, handle: TileHandle, origin: Tuple[float, float, float]) -> None:
        mesh = build_tile_mesh(origin, self.params, self.sampler, cell_executor=self._cell_pool)
        self.commit_log.record_built(handle, mesh)

    def run(self, tiles: Sequence[Tuple[TileHandle, Tile]]) -> int:
        """Build ``tiles`` and wait for all of them (the tick's barrier).

        Only the commit log is written here. If any tile fails, everything
        logged this tick is discarded and ``TileBuildError`` is raised once all
        tasks have stopped.
        """
        if not tiles:
            return 0
        t0 = time.perf_counter()
        jobs: List[Tuple[GridCoordinate, Future]] = [
            (tile.coord, self._tile_pool.submit(self._run_one, handle, tile.origin)) for handle, tile in tiles
        ]

        failed: Optional[Tuple[GridCoordinate, BaseException]] = None
        for coord, fut in jobs:
            exc = fut.exception()
            if exc is not None and failed is None:
                failed = (coord, exc)

        if failed is not None:
            coord, exc = failed
            self.commit_log.discard()
            logger.error("build of tile %s failed: %r", tuple(coord), exc)
            raise TileBuildError(coord, f"build pipeline failed: {exc}") from exc

        logger.debug("built %d tiles in %.1f ms", len(jobs), (time.perf_counter() - t0) * 1000.0)
        return len(jobs)
