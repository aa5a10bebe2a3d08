from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pytest

from terraced.errors import InvariantViolation
from terraced.world.arena import TileArena
from terraced.world.commit_log import CommitLog, ReplaceVertices
from terraced.world.tile import BuildState, GridCoordinate, RenderMesh, Tile, TileMesh, TriangleBuffer, VertexBuffer


def make_mesh(n: int) -> TileMesh:
    pos = np.full((n, 3), float(n), dtype=np.float32)
    return TileMesh(
        VertexBuffer(pos, np.zeros_like(pos)),
        TriangleBuffer(np.zeros((1, 3), np.uint32), np.zeros(1, np.uint8)),
    )


@pytest.fixture
def arena_with_tiles():
    arena = TileArena()
    handles = []
    for i in range(8):
        coord = GridCoordinate.from_xz(i, 0)
        handles.append(arena.insert(Tile(coord=coord, origin=coord.world_origin((4, 4)), render_mesh=RenderMesh("m"))))
    return arena, handles


def test_nothing_changes_until_apply(arena_with_tiles):
    arena, handles = arena_with_tiles
    log = CommitLog()
    log.record_built(handles[0], make_mesh(3))
    tile = arena.get(handles[0])
    assert tile.state is BuildState.NEEDS_BUILD
    assert len(tile.vertices) == 0
    assert len(log) == 3

    assert log.apply(arena) == 3
    assert tile.state is BuildState.NEEDS_MESH_UPLOAD
    assert len(tile.vertices) == 3
    assert len(tile.triangles) == 1
    assert len(log) == 0


def test_ops_apply_in_submission_order(arena_with_tiles):
    arena, handles = arena_with_tiles
    log = CommitLog()
    log.record(ReplaceVertices(handles[1], make_mesh(2).vertices))
    log.record(ReplaceVertices(handles[1], make_mesh(5).vertices))
    log.apply(arena)
    assert len(arena.get(handles[1]).vertices) == 5


def test_concurrent_producers(arena_with_tiles):
    arena, handles = arena_with_tiles
    log = CommitLog()
    with ThreadPoolExecutor(max_workers=4) as pool:
        list(pool.map(lambda h: log.record_built(h, make_mesh(h.index + 1)), handles))
    assert log.apply(arena) == 3 * len(handles)
    for h in handles:
        tile = arena.get(h)
        assert tile.state is BuildState.NEEDS_MESH_UPLOAD
        assert len(tile.vertices) == h.index + 1


def test_discard_drops_everything(arena_with_tiles):
    arena, handles = arena_with_tiles
    log = CommitLog()
    log.record_built(handles[2], make_mesh(1))
    assert log.discard() == 3
    assert log.apply(arena) == 0
    assert arena.get(handles[2]).state is BuildState.NEEDS_BUILD


def test_stale_handle_is_an_invariant_violation(arena_with_tiles):
    arena, handles = arena_with_tiles
    log = CommitLog()
    log.record_built(handles[3], make_mesh(1))
    arena.remove(handles[3])
    with pytest.raises(InvariantViolation):
        log.apply(arena)


def test_second_build_commit_is_rejected(arena_with_tiles):
    arena, handles = arena_with_tiles
    log = CommitLog()
    log.record_built(handles[4], make_mesh(1))
    log.record_built(handles[4], make_mesh(1))
    with pytest.raises(InvariantViolation):
        log.apply(arena)
