from __future__ import annotations

from concurrent.futures import Executor
from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np

from terraced.config import DEFAULT_HEIGHTFIELD_BATCH
from terraced.util.math import index_to_2d
from terraced.util.parallel import parallel_map
from terraced.world.noise import NoiseSampler

# Unit-cell corner offsets (x, z): p0, p1 = +z, p2 = +x+z, p3 = +x
_CORNERS = ((0, 0), (0, 1), (1, 1), (1, 0))


@dataclass(frozen=True)
class Square:
    """One heightfield cell: 4 corners in tile-local space with sampled heights.

    ``corners`` is (4, 3) float32 where column 1 holds the height.
    """

    index: int
    corners: np.ndarray

    @property
    def heights(self) -> np.ndarray:
        return self.corners[:, 1]

    def __getitem__(self, i: int) -> np.ndarray:
        return self.corners[i]


def build_square(index: int, tile_amount: tuple[int, int], offset: Sequence[float], sampler: NoiseSampler) -> Square:
    gx, gz = index_to_2d(index, tile_amount[0])
    corners = np.zeros((4, 3), dtype=np.float32)
    for k, (dx, dz) in enumerate(_CORNERS):
        lx = float(gx + dx)
        lz = float(gz + dz)
        corners[k, 0] = lx
        corners[k, 2] = lz
        corners[k, 1] = sampler.height(lx + offset[0], 0.0 + offset[1], lz + offset[2])
    return Square(index=index, corners=corners)


def build_heightfield(
    offset: Sequence[float],
    tile_amount: tuple[int, int],
    sampler: NoiseSampler,
    *,
    batch_size: int = DEFAULT_HEIGHTFIELD_BATCH,
    executor: Optional[Executor] = None,
) -> List[Square]:
    """Sample every cell of one tile; result is ordered by linear cell index."""
    count = int(tile_amount[0]) * int(tile_amount[1])
    return parallel_map(
        lambda i: build_square(i, tile_amount, offset, sampler),
        count,
        batch_size=batch_size,
        executor=executor,
    )
