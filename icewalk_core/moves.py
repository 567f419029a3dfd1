from __future__ import annotations

from typing import List

from .board import Coord


def _sign(n: int) -> int:
    return (n > 0) - (n < 0)


def manhattan(a: Coord, b: Coord) -> int:
    return abs(a[0] - b[0]) + abs(a[1] - b[1])


def neighbors(coord: Coord) -> List[Coord]:
    """Gets the orthogonal neighbors of a coordinate (unbounded)."""
    r, c = coord
    return [(r - 1, c), (r + 1, c), (r, c - 1), (r, c + 1)]


def compute_path(start: Coord, dest: Coord) -> List[Coord]:
    """
    Lists the cells visited walking from ``start`` to ``dest``, one unit step each.
    The row delta is exhausted first, then the column delta. The start cell is not
    included, so the path is empty exactly when ``start == dest``. Occupancy is not
    consulted: creatures may walk over cells held by others.
    """
    r, c = start
    tr, tc = dest
    path: List[Coord] = []
    dr = _sign(tr - r)
    while r != tr:
        r += dr
        path.append((r, c))
    dc = _sign(tc - c)
    while c != tc:
        c += dc
        path.append((r, c))
    return path
