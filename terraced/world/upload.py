from __future__ import annotations

import logging
from typing import Optional

from terraced.world.arena import TileArena
from terraced.world.tile import AABB, BuildState

logger = logging.getLogger(__name__)


class MeshUploadSystem:
    """Pushes committed tile geometry to the mesh backend.

    Picks up tiles tagged NEEDS_MESH_UPLOAD, uploads their buffers through the
    tile's render handle, recomputes the bounds from the final vertices and
    moves the tile to READY so the same geometry is never uploaded twice.
    """

    def __init__(self, backend) -> None:
        self.backend = backend

    def run(self, arena: TileArena, *, max_tiles: Optional[int] = None) -> int:
        uploaded = 0
        for _, tile in arena.with_state(BuildState.NEEDS_MESH_UPLOAD):
            if max_tiles is not None and uploaded >= max_tiles:
                break
            self.backend.upload(tile.render_mesh, tile.mesh())
            tile.bounds = AABB.from_points(tile.vertices.positions)
            tile.advance(BuildState.NEEDS_MESH_UPLOAD, BuildState.READY)
            uploaded += 1
        if uploaded:
            logger.debug("uploaded %d tile meshes", uploaded)
        return uploaded
