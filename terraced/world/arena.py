from __future__ import annotations

from typing import Iterator, List, NamedTuple, Optional, Tuple

from terraced.errors import InvariantViolation
from terraced.world.tile import BuildState, Tile


class TileHandle(NamedTuple):
    index: int
    generation: int


class TileArena:
    """Dense slot array of tiles addressed by generational handles.

    Freed slots are recycled; bumping the slot generation on removal makes any
    handle to the old occupant stale.
    """

    def __init__(self) -> None:
        self._slots: List[Optional[Tile]] = []
        self._generations: List[int] = []
        self._free: List[int] = []
        self._count = 0

    def __len__(self) -> int:
        return self._count

    def __contains__(self, handle: object) -> bool:
        if not isinstance(handle, TileHandle):
            return False
        return (
            0 <= handle.index < len(self._slots)
            and self._generations[handle.index] == handle.generation
            and self._slots[handle.index] is not None
        )

    def insert(self, tile: Tile) -> TileHandle:
        if tile.handle is not None:
            raise InvariantViolation(f"tile {tuple(tile.coord)} is already stored as {tile.handle}")
        if self._free:
            index = self._free.pop()
            self._slots[index] = tile
        else:
            index = len(self._slots)
            self._slots.append(tile)
            self._generations.append(0)
        handle = TileHandle(index, self._generations[index])
        tile.handle = handle
        self._count += 1
        return handle

    def get(self, handle: TileHandle) -> Tile:
        if handle not in self:
            raise InvariantViolation(f"stale tile handle {handle}")
        tile = self._slots[handle.index]
        assert tile is not None
        return tile

    def remove(self, handle: TileHandle) -> Tile:
        tile = self.get(handle)
        self._slots[handle.index] = None
        self._generations[handle.index] += 1
        self._free.append(handle.index)
        self._count -= 1
        tile.handle = None
        return tile

    def __iter__(self) -> Iterator[Tuple[TileHandle, Tile]]:
        for index, tile in enumerate(self._slots):
            if tile is not None:
                yield TileHandle(index, self._generations[index]), tile

    def with_state(self, state: BuildState) -> List[Tuple[TileHandle, Tile]]:
        """Snapshot of tiles currently tagged ``state``, in slot order."""
        return [(h, t) for h, t in self if t.state is state]
