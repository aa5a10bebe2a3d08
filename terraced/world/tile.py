from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, NamedTuple, Optional

import numpy as np

from terraced.errors import InvariantViolation


class GridCoordinate(NamedTuple):
    """Tile origin on the window lattice, in tile units. ``y`` is always 0."""

    x: int
    y: int
    z: int

    @classmethod
    def from_xz(cls, x: int, z: int) -> "GridCoordinate":
        return cls(int(x), 0, int(z))

    def world_origin(self, extent: tuple[int, int]) -> tuple[float, float, float]:
        return float(self.x * extent[0]), 0.0, float(self.z * extent[1])


class BuildState(enum.Enum):
    NEEDS_BUILD = "needs_build"
    NEEDS_MESH_UPLOAD = "needs_mesh_upload"
    READY = "ready"


_NEXT_STATE = {
    BuildState.NEEDS_BUILD: BuildState.NEEDS_MESH_UPLOAD,
    BuildState.NEEDS_MESH_UPLOAD: BuildState.READY,
}


class FaceKind(enum.IntEnum):
    CAP = 0  # flat plateau polygon
    RISER = 1  # vertical wall between two bands


@dataclass
class VertexBuffer:
    positions: np.ndarray  # (N, 3) float32, tile-local
    normals: np.ndarray  # (N, 3) float32

    @classmethod
    def empty(cls) -> "VertexBuffer":
        return cls(np.zeros((0, 3), dtype=np.float32), np.zeros((0, 3), dtype=np.float32))

    def __len__(self) -> int:
        return int(self.positions.shape[0])

    def interleaved(self) -> np.ndarray:
        """pos (3) + norm (3) per vertex, flattened float32."""
        return np.concatenate([self.positions, self.normals], axis=1).astype(np.float32).reshape(-1)


@dataclass
class TriangleBuffer:
    indices: np.ndarray  # (M, 3) uint32
    kinds: np.ndarray  # (M,) uint8, FaceKind values

    @classmethod
    def empty(cls) -> "TriangleBuffer":
        return cls(np.zeros((0, 3), dtype=np.uint32), np.zeros((0,), dtype=np.uint8))

    def __len__(self) -> int:
        return int(self.indices.shape[0])

    def count(self, kind: FaceKind) -> int:
        return int(np.count_nonzero(self.kinds == int(kind)))


@dataclass
class TileMesh:
    """Output of one tile's build pipeline before it is committed."""

    vertices: VertexBuffer
    triangles: TriangleBuffer

    def check_indices(self) -> None:
        if len(self.triangles) and int(self.triangles.indices.max()) >= len(self.vertices):
            raise InvariantViolation(
                f"triangle index {int(self.triangles.indices.max())} >= vertex count {len(self.vertices)}"
            )


@dataclass(frozen=True)
class AABB:
    center: tuple[float, float, float]
    extents: tuple[float, float, float]

    @classmethod
    def from_points(cls, points: np.ndarray) -> "AABB":
        if points.shape[0] == 0:
            return cls((0.0, 0.0, 0.0), (0.0, 0.0, 0.0))
        lo = points.min(axis=0).astype(np.float64)
        hi = points.max(axis=0).astype(np.float64)
        c = (lo + hi) * 0.5
        e = (hi - lo) * 0.5
        return cls((float(c[0]), float(c[1]), float(c[2])), (float(e[0]), float(e[1]), float(e[2])))

    @property
    def min(self) -> tuple[float, float, float]:
        return tuple(c - e for c, e in zip(self.center, self.extents))  # type: ignore[return-value]

    @property
    def max(self) -> tuple[float, float, float]:
        return tuple(c + e for c, e in zip(self.center, self.extents))  # type: ignore[return-value]


@dataclass
class RenderMesh:
    """Render handle: a backend mesh bound to the shared material."""

    material: Any
    mesh: Any = None
    cast_shadows: bool = True
    receive_shadows: bool = True


@dataclass(eq=False)
class Tile:
    coord: GridCoordinate
    origin: tuple[float, float, float]
    render_mesh: RenderMesh
    state: BuildState = BuildState.NEEDS_BUILD
    vertices: VertexBuffer = field(default_factory=VertexBuffer.empty)
    triangles: TriangleBuffer = field(default_factory=TriangleBuffer.empty)
    bounds: Optional[AABB] = None
    handle: Any = None

    def advance(self, expected: BuildState, to: BuildState) -> None:
        if self.state is not expected or _NEXT_STATE.get(expected) is not to:
            raise InvariantViolation(
                f"tile {tuple(self.coord)}: illegal transition {self.state.name} -> {to.name} "
                f"(expected from {expected.name})"
            )
        self.state = to

    def mesh(self) -> TileMesh:
        return TileMesh(self.vertices, self.triangles)

    def release(self) -> None:
        self.vertices = VertexBuffer.empty()
        self.triangles = TriangleBuffer.empty()
        self.bounds = None
