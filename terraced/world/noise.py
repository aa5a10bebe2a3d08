from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from opensimplex import OpenSimplex

from terraced.config import DEFAULT_NOISE_AMPLITUDE, DEFAULT_NOISE_FREQUENCY, DEFAULT_SEED


def sample_height(noise: OpenSimplex, world_pos: Sequence[float], frequency: float, amplitude: float) -> float:
    """Height of the terrain at ``world_pos``.

    ``(1 + snoise(p * frequency)) * 0.5 * amplitude``, so the result lies in
    ``[0, amplitude]``. Pure: the same generator, position and parameters always
    give the same float.
    """
    x, y, z = (float(c) * frequency for c in world_pos)
    return (1.0 + noise.noise3(x, y, z)) * 0.5 * amplitude


@dataclass
class NoiseSampler:
    """Seeded 3D simplex heightfield.

    OpenSimplex only reads its permutation tables after construction, so one
    sampler may be shared by every heightfield worker thread.
    """

    seed: int = DEFAULT_SEED
    frequency: float = DEFAULT_NOISE_FREQUENCY
    amplitude: float = DEFAULT_NOISE_AMPLITUDE
    _simp: OpenSimplex = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._simp = OpenSimplex(int(self.seed))

    def height(self, x: float, y: float, z: float) -> float:
        return sample_height(self._simp, (x, y, z), self.frequency, self.amplitude)

    def height_at(self, x: float, z: float) -> float:
        """Ground height below a point on the XZ plane (for camera follow)."""
        return self.height(x, 0.0, z)
