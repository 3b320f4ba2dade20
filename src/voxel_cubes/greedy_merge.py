"""
Greedy Cube Merging with Numba JIT Compilation

This module coalesces adjacent unit cubes that share a material (and a
texture mapping) into larger cuboids, so the emitted mesh needs far fewer
vertices and faces while covering exactly the same cells.

Algorithm Overview:
1. Label Grid: Every occupied cell gets an integer merge key; cells may only
   merge with cells of the same key (same material, same texture basis)
2. Seed Growth: Cells are scanned in (x, y, z) order. Each unclaimed cell
   seeds a box that grows in the fixed order +x, -x, +y, -y, +z, -z, one
   full slab at a time, while every cell of the slab is occupied, unclaimed
   and of the same key
3. Coalescing: Finished boxes that share a complete face and a key are
   joined, repeating until a pass changes nothing
4. Emit Cuboids: Each box becomes one Cube spanning its cells

Boxes only ever absorb whole slabs of free, same-key cells, so no empty
cell is ever covered, no occupied cell is dropped and no two boxes overlap.
"""

import logging
from typing import Dict, Hashable, Iterable, List, Optional, Sequence, Set, Tuple

import numpy as np
from numba import njit

from .cube import Cell, Cube, footprint_texture_quad
from .geometry import Vector3
from .progress import ProgressSink, resolve

logger = logging.getLogger(__name__)

EMPTY = -1


@njit(cache=True)
def _slab_is_free(
    keys: np.ndarray,
    owner: np.ndarray,
    key: int,
    lo: np.ndarray,
    hi: np.ndarray
) -> bool:
    """Check that every cell in [lo, hi) is unclaimed and carries ``key``."""
    for x in range(lo[0], hi[0]):
        for y in range(lo[1], hi[1]):
            for z in range(lo[2], hi[2]):
                if keys[x, y, z] != key or owner[x, y, z] != EMPTY:
                    return False
    return True


@njit(cache=True)
def _claim_slab(owner: np.ndarray, label: int, lo: np.ndarray, hi: np.ndarray):
    """Mark every cell in [lo, hi) as belonging to box ``label``."""
    for x in range(lo[0], hi[0]):
        for y in range(lo[1], hi[1]):
            for z in range(lo[2], hi[2]):
                owner[x, y, z] = label


@njit(cache=True)
def _grow_boxes(keys: np.ndarray) -> np.ndarray:
    """
    Greedily grow boxes over a key grid.

    Args:
        keys: (X, Y, Z) int32 merge keys, EMPTY for unoccupied cells

    Returns:
        (N, 7) int64 array of boxes: x0, y0, z0, x1, y1, z1 (exclusive), key
    """
    dims = np.empty(3, dtype=np.int64)
    dims[0] = keys.shape[0]
    dims[1] = keys.shape[1]
    dims[2] = keys.shape[2]

    owner = np.empty_like(keys)
    owner.fill(EMPTY)

    boxes = np.empty((keys.size, 7), dtype=np.int64)
    lo = np.empty(3, dtype=np.int64)
    hi = np.empty(3, dtype=np.int64)
    slab_lo = np.empty(3, dtype=np.int64)
    slab_hi = np.empty(3, dtype=np.int64)
    count = 0

    for x in range(dims[0]):
        for y in range(dims[1]):
            for z in range(dims[2]):
                key = keys[x, y, z]
                if key == EMPTY or owner[x, y, z] != EMPTY:
                    continue

                lo[0] = x
                lo[1] = y
                lo[2] = z
                hi[0] = x + 1
                hi[1] = y + 1
                hi[2] = z + 1
                owner[x, y, z] = count

                # +x, -x, +y, -y, +z, -z
                for direction in range(6):
                    axis = direction // 2
                    positive = direction % 2 == 0

                    while True:
                        for i in range(3):
                            slab_lo[i] = lo[i]
                            slab_hi[i] = hi[i]

                        if positive:
                            if hi[axis] >= dims[axis]:
                                break
                            slab_lo[axis] = hi[axis]
                            slab_hi[axis] = hi[axis] + 1
                        else:
                            if lo[axis] <= 0:
                                break
                            slab_lo[axis] = lo[axis] - 1
                            slab_hi[axis] = lo[axis]

                        if not _slab_is_free(keys, owner, key, slab_lo, slab_hi):
                            break

                        _claim_slab(owner, count, slab_lo, slab_hi)
                        if positive:
                            hi[axis] += 1
                        else:
                            lo[axis] -= 1

                for i in range(3):
                    boxes[count, i] = lo[i]
                    boxes[count, i + 3] = hi[i]
                boxes[count, 6] = key
                count += 1

    return boxes[:count]


def coalesce_boxes(boxes: List[List[int]]) -> Tuple[List[List[int]], int]:
    """
    Join boxes that share a complete face until nothing changes.

    Two boxes join along an axis when they have the same key, identical
    extents on the other two axes and one ends where the other starts.

    Args:
        boxes: Boxes as [x0, y0, z0, x1, y1, z1, key] (modified in place)

    Returns:
        Tuple of (remaining boxes in their original order, number of joins)
    """
    joins = 0
    changed = True

    while changed:
        changed = False

        for axis in range(3):
            a, b = [other for other in range(3) if other != axis]

            starts: Dict[Tuple[int, ...], int] = {}
            for i, box in enumerate(boxes):
                starts[(box[6], box[axis], box[a], box[a + 3], box[b], box[b + 3])] = i

            absorbed: Set[int] = set()
            for i, box in enumerate(boxes):
                if i in absorbed:
                    continue
                while True:
                    j = starts.get((box[6], box[axis + 3], box[a], box[a + 3], box[b], box[b + 3]))
                    if j is None or j in absorbed:
                        break
                    box[axis + 3] = boxes[j][axis + 3]
                    absorbed.add(j)
                    joins += 1

            if absorbed:
                boxes = [box for i, box in enumerate(boxes) if i not in absorbed]
                changed = True

    return boxes, joins


def merge_key(cube: Cube) -> Hashable:
    """
    Value that two cubes must share to be merged.

    Cubes with a texture basis can merge with any cube of the same basis
    (the merged quad is recomputed from the footprint). Cubes without a
    basis keep their quad verbatim, so it has to match exactly.
    """
    if cube.texture_basis is not None:
        return (cube.material, cube.texture_basis, None)
    return (cube.material, None, cube.texture_quad)


class GreedyMerger:
    """
    Greedy cuboid merging for unit cubes.

    This class wraps the Numba-accelerated growth kernel and turns its
    boxes back into Cube objects.
    """

    def __init__(self, coalesce: bool = True):
        """
        Initialize the merger.

        Args:
            coalesce: If True, keep joining finished boxes until a fixpoint
        """
        self.coalesce = coalesce
        self.last_stats: Dict[str, int] = {}

    def merge(
        self,
        cubes: Sequence[Cube],
        progress: Optional[ProgressSink] = None
    ) -> List[Cube]:
        """
        Merge unit cubes into cuboids covering the same cells.

        Only unit cubes tagged with a cell take part; any other cube is
        passed through unchanged after the merged ones.

        Args:
            cubes: Cubes to merge
            progress: Optional progress sink (steps = covered cells)

        Returns:
            List of cubes with no overlaps and the same covered cells

        Raises:
            ValueError: If two cubes claim the same cell
        """
        progress = resolve(progress)

        candidates: List[Cube] = []
        passthrough: List[Cube] = []
        for cube in cubes:
            (candidates if cube.is_unit else passthrough).append(cube)

        progress.start("merging cubes", len(candidates))

        if not candidates:
            progress.finish()
            self.last_stats = {"input": len(passthrough), "output": len(passthrough), "joins": 0}
            return list(passthrough)

        by_cell: Dict[Cell, Cube] = {}
        for cube in candidates:
            cell = tuple(int(c) for c in cube.cell)
            if cell in by_cell:
                raise ValueError(f"Two cubes occupy cell {cell}")
            by_cell[cell] = cube

        cells = np.array(list(by_cell.keys()), dtype=np.int64)
        origin = cells.min(axis=0)
        shape = tuple(int(s) for s in cells.max(axis=0) - origin + 1)

        key_ids: Dict[Hashable, int] = {}
        keys = np.full(shape, EMPTY, dtype=np.int32)
        for cell, cube in by_cell.items():
            key_id = key_ids.setdefault(merge_key(cube), len(key_ids))
            keys[cell[0] - origin[0], cell[1] - origin[1], cell[2] - origin[2]] = key_id

        boxes = _grow_boxes(keys).tolist()
        grown = len(boxes)

        joins = 0
        if self.coalesce:
            boxes, joins = coalesce_boxes(boxes)

        offset = tuple(int(o) for o in origin)
        merged: List[Cube] = []
        for box in boxes:
            cube = self._box_to_cube(box, offset, by_cell)
            merged.append(cube)
            progress.advance(cube.cell_count)
        progress.finish()

        self.last_stats = {
            "input": len(candidates) + len(passthrough),
            "output": len(merged) + len(passthrough),
            "grown": grown,
            "joins": joins,
        }
        logger.debug(
            "Merged %d unit cubes into %d cuboids (%d after growth, %d joins)",
            len(candidates), len(merged), grown, joins
        )

        return merged + passthrough

    @staticmethod
    def _box_to_cube(box: List[int], offset: Cell, by_cell: Dict[Cell, Cube]) -> Cube:
        """Build the cuboid for one box from its extreme unit cubes."""
        lo = (box[0] + offset[0], box[1] + offset[1], box[2] + offset[2])
        hi = (box[3] + offset[0], box[4] + offset[1], box[5] + offset[2])
        extent = (hi[0] - lo[0], hi[1] - lo[1], hi[2] - lo[2])

        first = by_cell[lo]
        if extent == (1, 1, 1):
            return first

        last = by_cell[(hi[0] - 1, hi[1] - 1, hi[2] - 1)]
        texture_quad = first.texture_quad
        if first.texture_basis is not None:
            texture_quad = footprint_texture_quad(lo, extent, first.texture_basis)

        return Cube(
            position=(first.position + last.position) * 0.5,
            scale=Vector3(
                abs(first.scale.x) * extent[0],
                abs(first.scale.y) * extent[1],
                abs(first.scale.z) * extent[2],
            ),
            material=first.material,
            texture_quad=texture_quad,
            cell=lo,
            extent=extent,
            texture_basis=first.texture_basis,
        )


def merge_cubes(
    cubes: Sequence[Cube],
    progress: Optional[ProgressSink] = None
) -> List[Cube]:
    """Convenience wrapper around GreedyMerger().merge()."""
    return GreedyMerger().merge(cubes, progress)


def covered_cells(cubes: Iterable[Cube]) -> Set[Cell]:
    """Set of grid cells covered by a collection of cubes."""
    cells: Set[Cell] = set()
    for cube in cubes:
        cells.update(cube.cells())
    return cells


def find_overlaps(cubes: Sequence[Cube]) -> List[Tuple[int, int]]:
    """
    Find pairs of cubes that share interior volume.

    Returns:
        List of (i, j) index pairs with i < j
    """
    pairs = []
    for i in range(len(cubes)):
        for j in range(i + 1, len(cubes)):
            if cubes[i].overlaps(cubes[j]):
                pairs.append((i, j))
    return pairs
