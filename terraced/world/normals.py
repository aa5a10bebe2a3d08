from __future__ import annotations

import math

import numpy as np

from terraced.config import DEFAULT_SMOOTHING_ANGLE_DEG
from terraced.util.math import normalize_rows
from terraced.world.tile import TileMesh

WELD_EPS = 1e-4  # positions closer than this count as the same vertex position


def face_normals(positions: np.ndarray, indices: np.ndarray) -> np.ndarray:
    """Unnormalized face normals; length is twice the triangle area."""
    p = positions.astype(np.float64)
    i = indices.astype(np.int64)
    v0 = p[i[:, 0]]
    return np.cross(p[i[:, 1]] - v0, p[i[:, 2]] - v0)


def smooth_normals(mesh: TileMesh, angle_deg: float = DEFAULT_SMOOTHING_ANGLE_DEG) -> TileMesh:
    """Recompute vertex normals in place, keeping hard edges.

    Every triangle corner looks at all faces touching the same position. Faces
    whose normal is within ``angle_deg`` of the corner's own face contribute
    their area-weighted normal; the rest are left out, so e.g. a terrace cap
    and the riser below it keep separate normals.
    """
    idx = mesh.triangles.indices.astype(np.int64)
    if idx.shape[0] == 0:
        return mesh
    pos = mesh.vertices.positions

    face = face_normals(pos, idx)
    unit = normalize_rows(face)
    cos_limit = math.cos(math.radians(float(angle_deg)))

    keys = np.round(pos.astype(np.float64) / WELD_EPS).astype(np.int64)
    _, group = np.unique(keys, axis=0, return_inverse=True)
    group = np.asarray(group).reshape(-1)

    corner_vertex = idx.reshape(-1)
    corner_face = np.repeat(np.arange(idx.shape[0]), 3)
    corner_group = group[corner_vertex]
    order = np.argsort(corner_group, kind="stable")
    splits = np.flatnonzero(np.diff(corner_group[order])) + 1

    normals = mesh.vertices.normals.astype(np.float64)
    for corners in np.split(order, splits):
        faces = corner_face[corners]
        fu = unit[faces]
        mask = (fu @ fu.T) > cos_limit
        np.fill_diagonal(mask, True)
        summed = mask.astype(np.float64) @ face[faces]
        length = np.linalg.norm(summed, axis=1)
        ok = length > 1e-12
        verts = corner_vertex[corners]
        normals[verts[ok]] = summed[ok] / length[ok, None]

    mesh.vertices.normals = normals.astype(np.float32)
    return mesh
