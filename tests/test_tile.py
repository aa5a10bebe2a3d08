from __future__ import annotations

import numpy as np
import pytest

from terraced.errors import InvariantViolation
from terraced.world.tile import AABB, BuildState, GridCoordinate, RenderMesh, Tile, TileMesh, TriangleBuffer, VertexBuffer


def make_tile() -> Tile:
    coord = GridCoordinate.from_xz(-2, 3)
    return Tile(coord=coord, origin=coord.world_origin((16, 16)), render_mesh=RenderMesh(material="m"))


def test_world_origin_scales_by_extent():
    assert GridCoordinate.from_xz(-2, 3).world_origin((16, 8)) == (-32.0, 0.0, 24.0)


def test_new_tile_needs_build():
    tile = make_tile()
    assert tile.state is BuildState.NEEDS_BUILD
    assert len(tile.vertices) == 0 and len(tile.triangles) == 0
    assert tile.bounds is None


def test_states_advance_in_order_only():
    tile = make_tile()
    with pytest.raises(InvariantViolation):
        tile.advance(BuildState.NEEDS_BUILD, BuildState.READY)
    tile.advance(BuildState.NEEDS_BUILD, BuildState.NEEDS_MESH_UPLOAD)
    with pytest.raises(InvariantViolation):
        tile.advance(BuildState.NEEDS_BUILD, BuildState.NEEDS_MESH_UPLOAD)
    tile.advance(BuildState.NEEDS_MESH_UPLOAD, BuildState.READY)
    assert tile.state is BuildState.READY


def test_aabb_from_points():
    box = AABB.from_points(np.array([[0, 1, 2], [4, 3, -2]], dtype=np.float32))
    assert box.center == (2.0, 2.0, 0.0)
    assert box.extents == (2.0, 1.0, 2.0)
    assert box.min == (0.0, 1.0, -2.0)
    assert box.max == (4.0, 3.0, 2.0)


def test_check_indices_flags_dangling_triangle():
    mesh = TileMesh(
        VertexBuffer(np.zeros((3, 3), np.float32), np.zeros((3, 3), np.float32)),
        TriangleBuffer(np.array([[0, 1, 3]], np.uint32), np.zeros(1, np.uint8)),
    )
    with pytest.raises(InvariantViolation):
        mesh.check_indices()


def test_interleaved_layout():
    vb = VertexBuffer(np.array([[1, 2, 3]], np.float32), np.array([[0, 1, 0]], np.float32))
    assert vb.interleaved().tolist() == [1.0, 2.0, 3.0, 0.0, 1.0, 0.0]
