"""Shared fixtures: small world parameters and a headless mesh backend.

Nothing here needs an OpenGL context; geometry is uploaded to
``HeadlessMeshBackend`` which keeps it in host memory.
"""

from __future__ import annotations

import pytest

from terraced.render.headless import HeadlessMeshBackend
from terraced.world.arena import TileArena
from terraced.world.params import WorldParams
from terraced.world.window import TileWindowManager
from terraced.world.world import TerrainWorld


@pytest.fixture
def backend() -> HeadlessMeshBackend:
    return HeadlessMeshBackend()


@pytest.fixture
def default_params() -> WorldParams:
    return WorldParams()


@pytest.fixture
def small_params() -> WorldParams:
    """4x4 window of 4x4-cell tiles: cheap enough to build every tick."""
    return WorldParams(terrain_amount=(4, 4), tile_amount=(4, 4), build_workers=2, heightfield_workers=2, heightfield_batch=5)


@pytest.fixture
def window(default_params: WorldParams, backend: HeadlessMeshBackend) -> TileWindowManager:
    return TileWindowManager(default_params, TileArena(), backend)


@pytest.fixture
def world(small_params: WorldParams, backend: HeadlessMeshBackend):
    w = TerrainWorld(small_params, backend)
    yield w
    w.shutdown()
