from __future__ import annotations

from dataclasses import dataclass

from terraced.config import (
    DEFAULT_BUILD_WORKERS,
    DEFAULT_HEIGHTFIELD_BATCH,
    DEFAULT_HEIGHTFIELD_WORKERS,
    DEFAULT_NOISE_AMPLITUDE,
    DEFAULT_NOISE_FREQUENCY,
    DEFAULT_SEED,
    DEFAULT_SMOOTHING_ANGLE_DEG,
    DEFAULT_TERRACE_STEP,
    DEFAULT_TERRAIN_AMOUNT,
    DEFAULT_TILE_AMOUNT,
)


@dataclass(frozen=True)
class WorldParams:
    terrain_amount: tuple[int, int] = DEFAULT_TERRAIN_AMOUNT
    tile_amount: tuple[int, int] = DEFAULT_TILE_AMOUNT
    noise_frequency: float = DEFAULT_NOISE_FREQUENCY
    noise_amplitude: float = DEFAULT_NOISE_AMPLITUDE
    terrace_step: float = DEFAULT_TERRACE_STEP
    smoothing_angle_deg: float = DEFAULT_SMOOTHING_ANGLE_DEG
    heightfield_batch: int = DEFAULT_HEIGHTFIELD_BATCH
    seed: int = DEFAULT_SEED
    build_workers: int = DEFAULT_BUILD_WORKERS
    heightfield_workers: int = DEFAULT_HEIGHTFIELD_WORKERS

    def __post_init__(self) -> None:
        ta = tuple(int(v) for v in self.terrain_amount)
        tl = tuple(int(v) for v in self.tile_amount)
        if len(ta) != 2 or min(ta) < 2:
            raise ValueError(f"terrain_amount needs two values >= 2, got {self.terrain_amount}")
        if len(tl) != 2 or min(tl) < 1:
            raise ValueError(f"tile_amount needs two values >= 1, got {self.tile_amount}")
        if self.terrace_step <= 0.0:
            raise ValueError(f"terrace_step must be positive, got {self.terrace_step}")
        if not 0.0 < self.smoothing_angle_deg <= 180.0:
            raise ValueError(f"smoothing_angle_deg must be in (0, 180], got {self.smoothing_angle_deg}")
        if self.heightfield_batch < 1:
            raise ValueError(f"heightfield_batch must be >= 1, got {self.heightfield_batch}")
        if self.build_workers < 1 or self.heightfield_workers < 1:
            raise ValueError("worker counts must be >= 1")
        object.__setattr__(self, "terrain_amount", ta)
        object.__setattr__(self, "tile_amount", tl)

    @property
    def tile_extent(self) -> tuple[int, int]:
        """World size of one tile; cells are one unit wide."""
        return self.tile_amount

    @property
    def window_size(self) -> int:
        return self.terrain_amount[0] * self.terrain_amount[1]

    @property
    def recenter_cells(self) -> tuple[int, int]:
        """Tiles per coarse recenter step along x and z."""
        return self.terrain_amount[0] // 2, self.terrain_amount[1] // 2
