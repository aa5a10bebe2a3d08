from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from terraced.world.arena import TileArena
from terraced.world.commit_log import CommitLog
from terraced.world.noise import NoiseSampler
from terraced.world.params import WorldParams
from terraced.world.pipeline import BuildScheduler
from terraced.world.tile import BuildState, Tile
from terraced.world.upload import MeshUploadSystem
from terraced.world.window import TileWindowManager

logger = logging.getLogger(__name__)


@dataclass
class TickStats:
    created: int = 0
    destroyed: int = 0
    built: int = 0
    committed_ops: int = 0
    uploaded: int = 0


class TerrainWorld:
    """Per-tick driver: reconcile the window, build new tiles, commit, upload.

    ``backend`` is the render-side collaborator; it needs a ``material``
    attribute and ``create_mesh(coord)``, ``upload(render_mesh, tile_mesh)`` and
    ``release(render_mesh)`` methods.
    """

    def __init__(self, params: WorldParams, backend, *, prime: bool = True) -> None:
        self.params = params
        self.backend = backend

        self.arena = TileArena()
        self.sampler = NoiseSampler(
            seed=params.seed,
            frequency=params.noise_frequency,
            amplitude=params.noise_amplitude,
        )
        self.commit_log = CommitLog()
        self.window = TileWindowManager(params, self.arena, backend)
        self.scheduler = BuildScheduler(params, self.sampler, self.commit_log)
        self.uploader = MeshUploadSystem(backend)

        if prime:
            res = self.window.prime()
            logger.info(
                "terrain window %dx%d tiles of %dx%d cells (%d created)",
                params.terrain_amount[0], params.terrain_amount[1],
                params.tile_amount[0], params.tile_amount[1], len(res.created),
            )

    def tick(self, viewpoint: Sequence[float], *, upload: bool = True, max_uploads: Optional[int] = None) -> TickStats:
        stats = TickStats()
        rec = self.window.reconcile(viewpoint)
        stats.created = len(rec.created)
        stats.destroyed = len(rec.destroyed)

        stats.built = self.scheduler.run(self.arena.with_state(BuildState.NEEDS_BUILD))
        stats.committed_ops = self.commit_log.apply(self.arena)

        if upload:
            stats.uploaded = self.upload_ready(max_tiles=max_uploads)
        return stats

    def upload_ready(self, max_tiles: Optional[int] = None) -> int:
        return self.uploader.run(self.arena, max_tiles=max_tiles)

    def tiles_in_state(self, state: BuildState) -> List[Tile]:
        return [t for _, t in self.arena.with_state(state)]

    def height_at(self, x: float, z: float) -> float:
        return self.sampler.height_at(x, z)

    def draw(self, renderer) -> None:
        for tile in self.tiles_in_state(BuildState.READY):
            renderer.draw_tile(tile)

    def shutdown(self) -> None:
        self.scheduler.shutdown()
        self.window.shutdown()
