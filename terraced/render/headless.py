from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict

import numpy as np

from terraced.errors import InvariantViolation
from terraced.world.tile import GridCoordinate, RenderMesh, TileMesh

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class CPUMesh:
    coord: GridCoordinate
    vbo_data: np.ndarray = field(default_factory=lambda: np.zeros((0,), dtype=np.float32))  # interleaved pos+norm
    indices: np.ndarray = field(default_factory=lambda: np.zeros((0,), dtype=np.uint32))
    uploads: int = 0
    released: bool = False


class HeadlessMeshBackend:
    """Mesh backend that keeps uploaded geometry in host memory.

    Used by ``--headless`` runs and the test suite; it also counts mesh
    lifetimes so leaks and double releases show up.
    """

    def __init__(self, material: str = "TerracedTerrainMaterial") -> None:
        self.material = material
        self.live: Dict[int, CPUMesh] = {}
        self.created = 0
        self.released = 0
        self.uploads = 0

    def create_mesh(self, coord: GridCoordinate) -> CPUMesh:
        mesh = CPUMesh(coord=coord)
        self.live[id(mesh)] = mesh
        self.created += 1
        return mesh

    def upload(self, render_mesh: RenderMesh, tile_mesh: TileMesh) -> None:
        mesh = render_mesh.mesh
        if mesh is None or mesh.released:
            raise InvariantViolation("upload to a released mesh")
        mesh.vbo_data = tile_mesh.vertices.interleaved()
        mesh.indices = tile_mesh.triangles.indices.reshape(-1).astype(np.uint32)
        mesh.uploads += 1
        self.uploads += 1

    def release(self, render_mesh: RenderMesh) -> None:
        mesh = render_mesh.mesh
        if mesh is None or mesh.released or id(mesh) not in self.live:
            raise InvariantViolation("mesh released twice")
        mesh.released = True
        del self.live[id(mesh)]
        self.released += 1
