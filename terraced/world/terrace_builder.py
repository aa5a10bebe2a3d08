from __future__ import annotations

import math
from typing import Iterable, List, Sequence, Tuple

import numpy as np

from terraced.errors import InvariantViolation
from terraced.world.heightfield import Square
from terraced.world.tile import FaceKind, TileMesh, TriangleBuffer, VertexBuffer

Vec3 = Tuple[float, float, float]
# Point on the heightfield: (x, z, h), tile-local
FieldPoint = Tuple[float, float, float]

_UP: Vec3 = (0.0, 1.0, 0.0)
_MIN_AREA2 = 1e-9  # twice the smallest polygon area still emitted
_SPLIT = ((0, 1, 2), (0, 2, 3))


def _newell(points: Sequence[Vec3]) -> Vec3:
    """Polygon normal scaled by twice its area."""
    nx = ny = nz = 0.0
    n = len(points)
    for i in range(n):
        x0, y0, z0 = points[i]
        x1, y1, z1 = points[(i + 1) % n]
        nx += (y0 - y1) * (z0 + z1)
        ny += (z0 - z1) * (x0 + x1)
        nz += (x0 - x1) * (y0 + y1)
    return nx, ny, nz


class MeshBuffers:
    """Append-only vertex and triangle lists of one tile."""

    def __init__(self) -> None:
        self.positions: List[Vec3] = []
        self.normals: List[Vec3] = []
        self.indices: List[Tuple[int, int, int]] = []
        self.kinds: List[int] = []

    def add_vertex(self, p: Vec3, n: Vec3) -> int:
        self.positions.append(p)
        self.normals.append(n)
        return len(self.positions) - 1

    def add_triangle(self, a: int, b: int, c: int, kind: FaceKind) -> None:
        count = len(self.positions)
        for i in (a, b, c):
            if not 0 <= i < count:
                raise InvariantViolation(f"triangle references vertex {i}, only {count} appended")
        self.indices.append((a, b, c))
        self.kinds.append(int(kind))

    def add_polygon(self, points: Sequence[Vec3], kind: FaceKind, facing: Vec3) -> bool:
        """Append a planar convex polygon as a triangle fan with its own vertices.

        Winding is chosen so the face normal points along ``facing``. Returns
        False (and appends nothing) for degenerate polygons.
        """
        if len(points) < 3:
            return False
        nx, ny, nz = _newell(points)
        length = math.sqrt(nx * nx + ny * ny + nz * nz)
        if length < _MIN_AREA2:
            return False
        if nx * facing[0] + ny * facing[1] + nz * facing[2] < 0.0:
            points = list(reversed(points))
            nx, ny, nz = -nx, -ny, -nz
        normal = (nx / length, ny / length, nz / length)
        base = [self.add_vertex(p, normal) for p in points]
        for i in range(1, len(base) - 1):
            self.add_triangle(base[0], base[i], base[i + 1], kind)
        return True

    def to_mesh(self) -> TileMesh:
        if self.positions:
            pos = np.asarray(self.positions, dtype=np.float32)
            nrm = np.asarray(self.normals, dtype=np.float32)
        else:
            pos = np.zeros((0, 3), dtype=np.float32)
            nrm = np.zeros((0, 3), dtype=np.float32)
        if self.indices:
            idx = np.asarray(self.indices, dtype=np.uint32)
        else:
            idx = np.zeros((0, 3), dtype=np.uint32)
        kinds = np.asarray(self.kinds, dtype=np.uint8)
        return TileMesh(VertexBuffer(pos, nrm), TriangleBuffer(idx, kinds))


def _edge_point(a: FieldPoint, b: FieldPoint, level: float) -> FieldPoint:
    # Shared edges are always walked in the same direction so both
    # neighbouring triangles produce bit-identical crossing points.
    if (b[0], b[1]) < (a[0], a[1]):
        a, b = b, a
    t = (level - a[2]) / (b[2] - a[2])
    return a[0] + (b[0] - a[0]) * t, a[1] + (b[1] - a[1]) * t, level


def _band_polygon(tri: Sequence[FieldPoint], lo: float, hi: float) -> List[FieldPoint]:
    """Part of ``tri`` where ``lo <= h <= hi`` (h is linear over the triangle)."""
    out: List[FieldPoint] = []
    n = len(tri)
    for i in range(n):
        a = tri[i]
        b = tri[(i + 1) % n]
        if lo <= a[2] <= hi:
            out.append(a)
        levels = [c for c in (lo, hi) if (a[2] - c) * (b[2] - c) < 0.0]
        levels.sort(reverse=a[2] > b[2])
        for c in levels:
            out.append(_edge_point(a, b, c))
    return out


def _contour(tri: Sequence[FieldPoint], level: float) -> List[FieldPoint]:
    pts: List[FieldPoint] = []
    n = len(tri)
    for i in range(n):
        a = tri[i]
        b = tri[(i + 1) % n]
        if (a[2] >= level) != (b[2] >= level):
            pts.append(_edge_point(a, b, level))
    return pts


def _band(h: float, step: float) -> int:
    return int(math.floor(h / step))


def _terrace_triangle(tri: Sequence[FieldPoint], step: float, out: MeshBuffers) -> None:
    hs = [p[2] for p in tri]
    k_lo = _band(min(hs), step)
    k_hi = _band(max(hs), step)
    for k in range(k_lo, k_hi + 1):
        lo = k * step
        hi = lo + step
        cap = _band_polygon(tri, lo, hi)
        out.add_polygon([(x, lo, z) for x, z, _ in cap], FaceKind.CAP, _UP)

        if k == k_hi:
            continue
        seg = _contour(tri, hi)
        if len(seg) != 2:
            continue
        (px, pz, _), (qx, qz, _) = seg
        below = next(p for p in tri if p[2] < hi)
        facing = (below[0] - px, 0.0, below[1] - pz)
        out.add_polygon(
            [(px, lo, pz), (qx, lo, qz), (qx, hi, qz), (px, hi, pz)],
            FaceKind.RISER,
            facing,
        )


def terrace_square(square: Square, step: float, out: MeshBuffers) -> None:
    """Append the stepped geometry of one heightfield cell."""
    pts: List[FieldPoint] = [(float(c[0]), float(c[2]), float(c[1])) for c in square.corners]
    bands = {_band(p[2], step) for p in pts}
    if len(bands) == 1:
        y = bands.pop() * step
        out.add_polygon([(x, y, z) for x, z, _ in pts], FaceKind.CAP, _UP)
        return
    for i0, i1, i2 in _SPLIT:
        _terrace_triangle((pts[i0], pts[i1], pts[i2]), step, out)


def build_terraces(squares: Iterable[Square], step: float) -> TileMesh:
    """Turn a tile's ordered heightfield cells into flat plateaus joined by risers."""
    if step <= 0.0:
        raise ValueError(f"terrace step must be positive, got {step}")
    out = MeshBuffers()
    for square in squares:
        terrace_square(square, step, out)
    return out.to_mesh()
