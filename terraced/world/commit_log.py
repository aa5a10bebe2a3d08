from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import List, Union

from terraced.world.arena import TileArena, TileHandle
from terraced.world.tile import BuildState, TileMesh, TriangleBuffer, VertexBuffer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReplaceVertices:
    handle: TileHandle
    vertices: VertexBuffer


@dataclass(frozen=True)
class ReplaceTriangles:
    handle: TileHandle
    triangles: TriangleBuffer


@dataclass(frozen=True)
class AdvanceState:
    handle: TileHandle
    expected: BuildState
    to: BuildState


Op = Union[ReplaceVertices, ReplaceTriangles, AdvanceState]


class CommitLog:
    """Tile mutations recorded during the parallel build phase.

    Pipeline tasks only append; nothing touches a tile until ``apply`` runs
    after every task of the tick has finished, so tiles never look half-built
    to anyone enumerating them in between.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._ops: List[Op] = []

    def __len__(self) -> int:
        with self._lock:
            return len(self._ops)

    def record(self, *ops: Op) -> None:
        """Append ``ops`` as one contiguous group."""
        with self._lock:
            self._ops.extend(ops)

    def record_built(self, handle: TileHandle, mesh: TileMesh) -> None:
        self.record(
            ReplaceVertices(handle, mesh.vertices),
            ReplaceTriangles(handle, mesh.triangles),
            AdvanceState(handle, BuildState.NEEDS_BUILD, BuildState.NEEDS_MESH_UPLOAD),
        )

    def discard(self) -> int:
        with self._lock:
            n = len(self._ops)
            self._ops = []
        if n:
            logger.debug("discarded %d logged tile ops", n)
        return n

    def apply(self, arena: TileArena) -> int:
        """Apply every logged op in submission order; returns the op count."""
        with self._lock:
            ops, self._ops = self._ops, []
        for op in ops:
            tile = arena.get(op.handle)
            if isinstance(op, ReplaceVertices):
                tile.vertices = op.vertices
            elif isinstance(op, ReplaceTriangles):
                tile.triangles = op.triangles
            else:
                tile.advance(op.expected, op.to)
        return len(ops)
