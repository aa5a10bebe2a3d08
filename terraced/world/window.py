from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from terraced.errors import InvariantViolation
from terraced.util.math import index_to_2d
from terraced.world.arena import TileArena
from terraced.world.params import WorldParams
from terraced.world.tile import GridCoordinate, RenderMesh, Tile

logger = logging.getLogger(__name__)


@dataclass
class ReconcileResult:
    created: List[Tile] = field(default_factory=list)
    destroyed: List[GridCoordinate] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.created or self.destroyed)


class TileWindowManager:
    """Keeps exactly ``terrain_amount.x * terrain_amount.y`` tiles around the viewpoint.

    The window only moves in coarse steps of half its size, so small camera
    motion never creates or destroys anything. Tiles whose coordinate stays in
    the window are carried over as the same object.
    """

    def __init__(self, params: WorldParams, arena: TileArena, backend) -> None:
        self.params = params
        self.arena = arena
        self.backend = backend

        self._active: Dict[GridCoordinate, Tile] = {}
        self._pending: Dict[GridCoordinate, Tile] = {}
        self.coarse_cell: Optional[Tuple[int, int]] = None

    @property
    def tiles(self) -> Mapping[GridCoordinate, Tile]:
        return MappingProxyType(self._active)

    def __len__(self) -> int:
        return len(self._active)

    def coarse_cell_for(self, viewpoint: Sequence[float]) -> Tuple[int, int]:
        """Recenter cell of a world position, in tile units."""
        hx, hz = self.params.recenter_cells
        ex, ez = self.params.tile_extent
        cx = int(round(float(viewpoint[0]) / (hx * ex))) * hx
        cz = int(round(float(viewpoint[2]) / (hz * ez))) * hz
        return cx, cz

    def desired_coordinates(self, coarse: Tuple[int, int]) -> List[GridCoordinate]:
        tx, tz = self.params.terrain_amount
        hx, hz = tx // 2, tz // 2
        out: List[GridCoordinate] = []
        for i in range(tx * tz):
            gx, gz = index_to_2d(i, tx)
            out.append(GridCoordinate.from_xz(gx - hx + coarse[0], gz - hz + coarse[1]))
        return out

    def reconcile(self, viewpoint: Sequence[float]) -> ReconcileResult:
        coarse = self.coarse_cell_for(viewpoint)
        result = ReconcileResult()
        if coarse == self.coarse_cell and len(self._active) == self.params.window_size:
            return result

        pending = self._pending
        for coord in self.desired_coordinates(coarse):
            if coord in pending:
                raise InvariantViolation(f"coordinate {tuple(coord)} desired twice")
            tile = self._active.pop(coord, None)
            if tile is None:
                tile = self._create(coord)
                result.created.append(tile)
            pending[coord] = tile

        for coord, tile in self._active.items():
            self._destroy(tile)
            result.destroyed.append(coord)

        self._active, self._pending = pending, {}
        self.coarse_cell = coarse

        if len(self._active) != self.params.window_size:
            raise InvariantViolation(f"window holds {len(self._active)} tiles, expected {self.params.window_size}")
        logger.debug(
            "window at cell %s: +%d -%d tiles (%d live)",
            coarse, len(result.created), len(result.destroyed), len(self._active),
        )
        return result

    def prime(self) -> ReconcileResult:
        """Materialize the startup window around the world origin."""
        return self.reconcile((0.0, 0.0, 0.0))

    def shutdown(self) -> None:
        for tile in self._active.values():
            self._destroy(tile)
        self._active = {}
        self.coarse_cell = None

    def _create(self, coord: GridCoordinate) -> Tile:
        mesh = self.backend.create_mesh(coord)
        tile = Tile(
            coord=coord,
            origin=coord.world_origin(self.params.tile_extent),
            render_mesh=RenderMesh(material=self.backend.material, mesh=mesh),
        )
        self.arena.insert(tile)
        return tile

    def _destroy(self, tile: Tile) -> None:
        self.backend.release(tile.render_mesh)
        tile.render_mesh.mesh = None
        tile.release()
        self.arena.remove(tile.handle)
