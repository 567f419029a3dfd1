from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Optional, Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from .catalog import Shape

Coord = Tuple[int, int]  # (row, col)


class PlacementError(ValueError):
    """Raised when a piece is written into cells that are out of bounds or taken."""


class Grid:
    """Square occupancy map: each cell holds at most one creature id."""

    def __init__(self, size: int) -> None:
        if size <= 0:
            raise ValueError(f'grid size must be positive, got {size}')
        self.size = size
        self._cells: List[List[Optional[int]]] = [[None] * size for _ in range(size)]
        self._claims: Dict[int, Tuple[Coord, ...]] = {}

    def in_bounds(self, r: int, c: int) -> bool:
        return 0 <= r < self.size and 0 <= c < self.size

    def is_edge(self, r: int, c: int) -> bool:
        """True for cells on the outer ring of the board."""
        if not self.in_bounds(r, c):
            return False
        last = self.size - 1
        return r == 0 or c == 0 or r == last or c == last

    def coords(self) -> Iterable[Coord]:
        """Iterates over all coordinates on the board."""
        for r in range(self.size):
            for c in range(self.size):
                yield (r, c)

    def can_place(self, anchor: Coord, shape: 'Shape', ignore: Optional[int] = None) -> bool:
        """Checks every cell of ``shape`` at ``anchor`` is on the board and free.

        Cells held by ``ignore`` count as free, which lets a creature test a
        position that overlaps its own current footprint.
        """
        for r, c in shape.cells(anchor):
            if not self.in_bounds(r, c):
                return False
            holder = self._cells[r][c]
            if holder is not None and holder != ignore:
                return False
        return True

    def place(self, creature_id: int, anchor: Coord, shape: 'Shape') -> None:
        if creature_id in self._claims:
            raise PlacementError(f'creature {creature_id} is already placed; vacate it first')
        if not self.can_place(anchor, shape):
            raise PlacementError(f'cannot place creature {creature_id} as {shape.name} at {anchor}')
        cells = tuple(shape.cells(anchor))
        for r, c in cells:
            self._cells[r][c] = creature_id
        self._claims[creature_id] = cells

    def vacate(self, creature_id: int) -> Tuple[Coord, ...]:
        """Clears every cell held by ``creature_id`` and returns them."""
        cells = self._claims.pop(creature_id, ())
        for r, c in cells:
            if self._cells[r][c] == creature_id:
                self._cells[r][c] = None
        return cells

    def occupant_at(self, r: int, c: int) -> Optional[int]:
        if not self.in_bounds(r, c):
            return None
        return self._cells[r][c]

    def cells_of(self, creature_id: int) -> Tuple[Coord, ...]:
        return self._claims.get(creature_id, ())

    def occupied_count(self) -> int:
        return sum(len(cells) for cells in self._claims.values())

    def clear(self) -> None:
        for row in self._cells:
            for c in range(self.size):
                row[c] = None
        self._claims.clear()

    def pretty(self, labels: Optional[Mapping[int, str]] = None, marks: Optional[Mapping[Coord, str]] = None) -> str:
        """Generates a human-readable string representation of the occupancy.

        ``labels`` maps creature ids to a one-character label, ``marks`` draws
        a character on otherwise empty cells (exits, ice).
        """
        lines: List[str] = []
        lbl = labels or {}
        mk = marks or {}
        for r in range(self.size):
            row: List[str] = []
            for c in range(self.size):
                holder = self._cells[r][c]
                if holder is not None:
                    row.append(lbl.get(holder, '#'))
                elif (r, c) in mk:
                    row.append(mk[(r, c)])
                else:
                    row.append('.')
            lines.append(' '.join(row))
        return '\n'.join(lines)
