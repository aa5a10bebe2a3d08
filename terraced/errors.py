from __future__ import annotations


class TerrainError(RuntimeError):
    """Base class for failures raised by the terrain core."""


class InvariantViolation(TerrainError):
    """A bookkeeping invariant was broken (logic defect, never retried)."""


class TileBuildError(TerrainError):
    """A stage of a tile's build pipeline failed; the tick's build phase is aborted."""

    def __init__(self, coord, message: str) -> None:
        super().__init__(f"tile {tuple(coord)}: {message}")
        self.coord = coord
