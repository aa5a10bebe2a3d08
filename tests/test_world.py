from __future__ import annotations

import numpy as np
import pytest

from terraced.errors import TileBuildError
from terraced.world import pipeline
from terraced.world.noise import NoiseSampler
from terraced.world.pipeline import build_tile_mesh
from terraced.world.tile import BuildState, FaceKind, GridCoordinate


def test_first_tick_builds_and_uploads_every_tile(world, backend, small_params):
    assert len(world.tiles_in_state(BuildState.NEEDS_BUILD)) == 16

    stats = world.tick((0.0, 0.0, 0.0))

    assert stats.created == 0  # primed at construction
    assert stats.built == 16
    assert stats.committed_ops == 48
    assert stats.uploaded == 16
    ready = world.tiles_in_state(BuildState.READY)
    assert len(ready) == 16
    for tile in ready:
        assert len(tile.vertices) > 0
        assert int(tile.triangles.indices.max()) < len(tile.vertices)
        assert tile.render_mesh.mesh.uploads == 1
        assert tile.render_mesh.material == backend.material
        lo, hi = tile.bounds.min, tile.bounds.max
        assert lo[0] == pytest.approx(0.0) and hi[0] == pytest.approx(small_params.tile_amount[0])
        assert 0.0 <= lo[1] <= hi[1] <= small_params.noise_amplitude


def test_upload_tag_is_cleared_so_geometry_is_not_reuploaded(world, backend):
    world.tick((0.0, 0.0, 0.0))
    uploads = backend.uploads
    stats = world.tick((0.0, 0.0, 0.0))
    assert stats.built == 0
    assert stats.uploaded == 0
    assert backend.uploads == uploads


def test_upload_budget_defers_the_rest(world):
    stats = world.tick((0.0, 0.0, 0.0), max_uploads=5)
    assert stats.uploaded == 5
    assert len(world.tiles_in_state(BuildState.NEEDS_MESH_UPLOAD)) == 11
    assert world.upload_ready() == 11
    assert len(world.tiles_in_state(BuildState.READY)) == 16


def test_moving_builds_only_new_tiles(world):
    world.tick((0.0, 0.0, 0.0))
    old = {t.coord: t for t in world.tiles_in_state(BuildState.READY)}

    # coarse step is 2 tiles * 4 cells = 8 world units
    stats = world.tick((5.0, 0.0, 0.0))

    assert stats.created == 8 and stats.destroyed == 8
    assert stats.built == 8
    assert len(world.tiles_in_state(BuildState.READY)) == 16
    for coord, tile in world.window.tiles.items():
        if coord in old:
            assert tile is old[coord]
            assert tile.render_mesh.mesh.uploads == 1


def test_caps_cover_every_tile_footprint(world, small_params):
    world.tick((0.0, 0.0, 0.0))
    tile = world.window.tiles[GridCoordinate(0, 0, 0)]
    caps = tile.triangles.indices[tile.triangles.kinds == int(FaceKind.CAP)].astype(np.int64)
    p = tile.vertices.positions.astype(np.float64)
    n = np.cross(p[caps[:, 1]] - p[caps[:, 0]], p[caps[:, 2]] - p[caps[:, 0]])
    tx, tz = small_params.tile_amount
    assert 0.5 * n[:, 1].sum() == pytest.approx(tx * tz, abs=1e-3)


def test_tile_geometry_is_regenerated_identically(world):
    world.tick((0.0, 0.0, 0.0))
    coord = GridCoordinate(-1, 0, 1)
    first = world.window.tiles[coord]
    pos, nrm, idx = first.vertices.positions.copy(), first.vertices.normals.copy(), first.triangles.indices.copy()

    world.tick((500.0, 0.0, 500.0))
    assert coord not in world.window.tiles
    world.tick((0.0, 0.0, 0.0))

    again = world.window.tiles[coord]
    assert again is not first
    np.testing.assert_array_equal(again.vertices.positions, pos)
    np.testing.assert_array_equal(again.vertices.normals, nrm)
    np.testing.assert_array_equal(again.triangles.indices, idx)


def test_pipeline_matches_direct_build(world, small_params):
    world.tick((0.0, 0.0, 0.0))
    tile = world.window.tiles[GridCoordinate(1, 0, -2)]
    sampler = NoiseSampler(seed=small_params.seed, frequency=small_params.noise_frequency, amplitude=small_params.noise_amplitude)
    direct = build_tile_mesh(tile.origin, small_params, sampler)
    np.testing.assert_array_equal(direct.vertices.positions, tile.vertices.positions)


def test_stage_failure_aborts_the_tick(world, monkeypatch):
    def broken(squares, step):
        raise ArithmeticError("bad cell")

    monkeypatch.setattr(pipeline, "build_terraces", broken)
    with pytest.raises(TileBuildError) as info:
        world.tick((0.0, 0.0, 0.0))
    assert isinstance(info.value.__cause__, ArithmeticError)
    assert len(world.commit_log) == 0
    assert len(world.tiles_in_state(BuildState.NEEDS_BUILD)) == 16

    monkeypatch.undo()
    stats = world.tick((0.0, 0.0, 0.0))
    assert stats.built == 16


def test_shutdown_releases_all_meshes(small_params, backend):
    from terraced.world.world import TerrainWorld

    w = TerrainWorld(small_params, backend)
    w.tick((0.0, 0.0, 0.0))
    w.shutdown()
    assert backend.live == {}
    assert backend.released == backend.created
