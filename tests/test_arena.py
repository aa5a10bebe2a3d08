from __future__ import annotations

import pytest

from terraced.errors import InvariantViolation
from terraced.world.arena import TileArena
from terraced.world.tile import BuildState, GridCoordinate, RenderMesh, Tile


def make_tile(x: int, z: int) -> Tile:
    coord = GridCoordinate.from_xz(x, z)
    return Tile(coord=coord, origin=coord.world_origin((16, 16)), render_mesh=RenderMesh(material="m"))


def test_insert_get_remove():
    arena = TileArena()
    tile = make_tile(1, 2)
    h = arena.insert(tile)
    assert tile.handle == h
    assert arena.get(h) is tile
    assert len(arena) == 1
    assert arena.remove(h) is tile
    assert len(arena) == 0
    assert tile.handle is None


def test_removed_handle_goes_stale_even_when_slot_is_reused():
    arena = TileArena()
    old = arena.insert(make_tile(0, 0))
    arena.remove(old)
    new = arena.insert(make_tile(5, 5))
    assert new.index == old.index
    assert new.generation != old.generation
    assert old not in arena
    with pytest.raises(InvariantViolation):
        arena.get(old)


def test_tile_cannot_be_inserted_twice():
    arena = TileArena()
    tile = make_tile(0, 0)
    arena.insert(tile)
    with pytest.raises(InvariantViolation):
        arena.insert(tile)


def test_with_state_filters():
    arena = TileArena()
    a, b, c = make_tile(0, 0), make_tile(1, 0), make_tile(2, 0)
    for t in (a, b, c):
        arena.insert(t)
    b.state = BuildState.READY
    assert [t for _, t in arena.with_state(BuildState.NEEDS_BUILD)] == [a, c]
    assert [t for _, t in arena.with_state(BuildState.READY)] == [b]
